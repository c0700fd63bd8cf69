"""Domain models for GitHub pull request review latency processing.

Raw records model only the subset of API payload fields required to rebuild
a pull request timeline. Derived records are frozen once built.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

REVIEW_REQUESTED = "review_requested"
CLOSED = "closed"
APPROVED = "APPROVED"

REPORT_COLUMNS: Tuple[str, ...] = (
    "number",
    "title",
    "author",
    "created_at",
    "review_requested_at",
    "opened_at",
    "first_comment_at",
    "first_comment_or_approval",
    "approved_at",
    "merged_at",
    "review_to_first_response_hours",
    "review_to_approval_hours",
)

DEFAULT_COLUMNS: Tuple[str, ...] = tuple(
    column for column in REPORT_COLUMNS if column not in ("author", "first_comment_or_approval")
)


@dataclass(slots=True)
class RawPullRequest:
    """Represents the pull request fields needed to build a timeline."""

    number: int
    title: str
    author: str
    created_at: datetime
    merged_at: Optional[datetime] = None
    merge_commit_sha: Optional[str] = None


@dataclass(slots=True)
class RawEvent:
    """Represents one issue event; only review requests and closes are used."""

    event: str
    created_at: Optional[datetime]
    commit_id: Optional[str] = None


@dataclass(slots=True)
class RawComment:
    """Represents the minimal comment data used to find the first response."""

    author: str
    created_at: Optional[datetime]


@dataclass(slots=True)
class RawReview:
    """Represents a submitted pull request review."""

    author: str
    state: str
    submitted_at: Optional[datetime]


@dataclass(frozen=True, slots=True)
class PullRequestTimeline:
    """Milestone timestamps reconstructed for one pull request."""

    number: int
    title: str
    author: str
    created_at: datetime
    opened_at: datetime
    review_requested_at: Optional[datetime] = None
    first_comment_at: Optional[datetime] = None
    approved_at: Optional[datetime] = None
    merged_at: Optional[datetime] = None

    @property
    def first_response_at(self) -> Optional[datetime]:
        """First reviewer response: a comment if any, otherwise the approval."""
        return self.first_comment_at or self.approved_at


@dataclass(frozen=True, slots=True)
class MetricSet:
    """Business-hour durations derived from one timeline."""

    review_to_first_response_hours: Optional[float] = None
    review_to_approval_hours: Optional[float] = None

    def get(self, metric: str) -> Optional[float]:
        return getattr(self, metric)


@dataclass(frozen=True, slots=True)
class PullRequestReport:
    """A timeline together with the metrics computed from it."""

    timeline: PullRequestTimeline
    metrics: MetricSet


@dataclass(frozen=True, slots=True)
class WeekStats:
    """Mean and median of one metric inside one week bucket."""

    mean: float
    median: float


@dataclass(slots=True)
class AggregatedSeries:
    """Weekly statistics per metric aligned on a single sorted week axis."""

    weeks: List[str] = field(default_factory=list)
    metrics: Dict[str, Dict[str, WeekStats]] = field(default_factory=dict)

    def chart_series(self) -> Dict[str, Dict[str, List[float]]]:
        """Return ``{metric: {"Average": [...], "Median": [...]}}`` over ``weeks``.

        Weeks without data for a metric are filled with ``0.0``.
        """
        series: Dict[str, Dict[str, List[float]]] = {}
        for metric, buckets in self.metrics.items():
            empty = WeekStats(mean=0.0, median=0.0)
            stats = [buckets.get(week, empty) for week in self.weeks]
            series[metric] = {
                "Average": [item.mean for item in stats],
                "Median": [item.median for item in stats],
            }
        return series
