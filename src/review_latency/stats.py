"""Statistics, weekly aggregation and summary formatting for review metrics.

This module provides utilities for:
- Mean, median and linear-interpolation percentiles over hour samples.
- Bucketing pull request metrics by the week of their review request.
- Building a human-readable console summary of the collected metrics.
"""

from __future__ import annotations

import logging
import math
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional, Sequence

from .business_calendar import BusinessCalendar
from .metrics import METRIC_NAMES
from .models import AggregatedSeries, PullRequestReport, WeekStats

logger = logging.getLogger(__name__)

METRIC_LABELS = {
    "review_to_first_response_hours": "Review Request to First Response",
    "review_to_approval_hours": "Review Request to Approval",
}


def calculate_mean(values: Sequence[float]) -> float:
    """Arithmetic mean, ``0.0`` for an empty sample."""
    if not values:
        return 0.0
    return sum(values) / len(values)


def calculate_median(values: Sequence[float]) -> float:
    """Median as the mean of the two middle elements of the sorted sample.

    For odd lengths both middle indices point at the same element. An empty
    sample yields ``0.0`` so chart axes stay numeric.
    """
    if not values:
        return 0.0
    ordered = sorted(values)
    length = len(ordered)
    return (ordered[(length - 1) // 2] + ordered[length // 2]) / 2.0


def calculate_percentile(sorted_values: List[float], p: float) -> Optional[float]:
    """Calculate a percentile using linear interpolation.

    The input sequence is expected to already be sorted in ascending order.

    Args:
        sorted_values: Sorted numeric samples.
        p: Percentile in the inclusive range ``[0, 100]``.

    Returns:
        Percentile value as ``float`` or ``None`` when input is empty.

    Raises:
        ValueError: If ``p`` is outside ``[0, 100]``.
    """
    if not 0 <= p <= 100:
        raise ValueError("Percentile 'p' must be in the range [0, 100].")

    if not sorted_values:
        return None

    if p <= 0:
        return sorted_values[0]

    if p >= 100:
        return sorted_values[-1]

    position = (len(sorted_values) - 1) * (p / 100.0)
    lower_index = math.floor(position)
    upper_index = math.ceil(position)

    if lower_index == upper_index:
        return sorted_values[int(position)]

    lower_value = sorted_values[lower_index]
    upper_value = sorted_values[upper_index]
    return lower_value + (upper_value - lower_value) * (position - lower_index)


def week_key(timestamp: datetime) -> str:
    """Return the ISO week key ``YYYY-Www`` for an already-localized timestamp."""
    iso_year, iso_week, _ = timestamp.isocalendar()
    return f"{iso_year:04d}-W{iso_week:02d}"


def bucket_by_week(
    reports: Sequence[PullRequestReport], calendar: BusinessCalendar, metric: str
) -> Dict[str, List[float]]:
    """Group non-null values of ``metric`` by the week of the review request."""
    buckets: Dict[str, List[float]] = defaultdict(list)
    for report in reports:
        requested_at = report.timeline.review_requested_at
        value = report.metrics.get(metric)
        if requested_at is None or value is None:
            continue
        buckets[week_key(calendar.localize(requested_at))].append(value)
    return dict(buckets)


def aggregate_weekly(
    reports: Sequence[PullRequestReport],
    calendar: BusinessCalendar,
    metrics: Sequence[str] = METRIC_NAMES,
) -> AggregatedSeries:
    """Compute weekly mean and median per metric on a merged week axis.

    Each metric only has buckets for weeks in which it has values. The
    ``weeks`` axis is the sorted union across metrics; use
    :meth:`AggregatedSeries.chart_series` for the zero-filled view.
    """
    series = AggregatedSeries()
    all_weeks = set()

    for metric in metrics:
        buckets = bucket_by_week(reports, calendar, metric)
        series.metrics[metric] = {
            week: WeekStats(mean=calculate_mean(values), median=calculate_median(values))
            for week, values in sorted(buckets.items())
        }
        all_weeks.update(buckets)

    series.weeks = sorted(all_weeks)

    logger.info(
        "Aggregated weekly review metrics",
        extra={"weeks": len(series.weeks), "reports": len(reports)},
    )
    return series


def compute_statistics(samples: Sequence[Optional[float]]) -> Dict[str, Optional[float]]:
    """Compute count, mean and P50/P75/P90 for hour samples.

    ``None``, ``NaN`` and negative values are ignored. Percentiles are
    ``None`` when no valid samples exist.
    """
    clean_samples = sorted(
        sample
        for sample in samples
        if sample is not None and not math.isnan(sample) and sample >= 0
    )

    return {
        "count": float(len(clean_samples)),
        "mean": calculate_mean(clean_samples) if clean_samples else None,
        "p50": calculate_percentile(clean_samples, 50),
        "p75": calculate_percentile(clean_samples, 75),
        "p90": calculate_percentile(clean_samples, 90),
    }


def format_hours(hours: Optional[float]) -> str:
    """Format an hour value with two decimals, ``"n/a"`` when missing."""
    if hours is None:
        return "n/a"
    return f"{hours:.2f}h"


def generate_summary(repository: str, reports: Sequence[PullRequestReport]) -> str:
    """Generate a human-readable summary of review latency for a repository.

    Args:
        repository: ``owner/name`` display name.
        reports: Per-PR reports collected in this run.

    Returns:
        Formatted multi-line text report.
    """
    lines = [
        f"Repository: {repository}",
        "PR Review Latency Report (business hours)",
        f"Pull requests: {len(reports)}",
    ]

    for index, metric in enumerate(METRIC_NAMES, start=1):
        stats = compute_statistics([report.metrics.get(metric) for report in reports])
        lines.extend(
            [
                "",
                f"{index}) {METRIC_LABELS[metric]}",
                f"   Samples: {int(stats['count'] or 0)}",
                f"   Mean: {format_hours(stats['mean'])}",
                f"   P50: {format_hours(stats['p50'])}",
                f"   P75: {format_hours(stats['p75'])}",
                f"   P90: {format_hours(stats['p90'])}",
            ]
        )

    return "\n".join(lines)
