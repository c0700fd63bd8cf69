"""Tests for review latency metric extraction."""

import sys
from datetime import datetime, time, timezone
from pathlib import Path

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_latency.business_calendar import BusinessCalendar
from review_latency.config import CalendarConfig
from review_latency.metrics import compute_approval_time, compute_first_response_time, compute_metrics
from review_latency.models import PullRequestTimeline, RawComment, RawEvent, RawPullRequest, RawReview
from review_latency.timeline import build_timeline


def _utc(day: int, hour: int, minute: int = 0) -> datetime:
    return datetime(2024, 5, day, hour, minute, tzinfo=timezone.utc)


def _calendar() -> BusinessCalendar:
    return BusinessCalendar(CalendarConfig(day_start=time(10, 0), day_end=time(19, 0)))


def _timeline(requested=None, comment=None, approved=None) -> PullRequestTimeline:
    return PullRequestTimeline(
        number=1,
        title="t",
        author="alice",
        created_at=_utc(1, 9),
        opened_at=_utc(1, 9),
        review_requested_at=requested,
        first_comment_at=comment,
        approved_at=approved,
    )


def test_metrics_null_without_review_request():
    """Verify both metrics are None when the PR was never review-requested."""
    metrics = compute_metrics(_calendar(), _timeline(comment=_utc(1, 12), approved=_utc(2, 11)))

    assert metrics.review_to_first_response_hours is None
    assert metrics.review_to_approval_hours is None


def test_first_response_prefers_comment_over_approval():
    """Verify the first comment is used as the response when both exist."""
    timeline = _timeline(requested=_utc(1, 10, 30), comment=_utc(1, 12), approved=_utc(1, 11))

    assert compute_first_response_time(_calendar(), timeline) == 1.5


def test_first_response_falls_back_to_approval():
    """Verify the approval counts as first response when nobody commented."""
    timeline = _timeline(requested=_utc(1, 10, 30), approved=_utc(1, 13))

    assert compute_first_response_time(_calendar(), timeline) == 2.5


def test_metrics_null_when_end_timestamp_missing():
    """Verify each metric is None when its own end timestamp is missing."""
    timeline = _timeline(requested=_utc(1, 10, 30))

    assert compute_first_response_time(_calendar(), timeline) is None
    assert compute_approval_time(_calendar(), timeline) is None


def test_metrics_rounded_to_two_decimals():
    """Verify business hours are rounded to two decimals."""
    timeline = _timeline(requested=_utc(1, 10), approved=_utc(1, 10, 20))

    assert compute_approval_time(_calendar(), timeline) == 0.33


def test_metrics_response_before_request_left_empty(caplog):
    """Verify a response earlier than the review request yields None and a warning."""
    timeline = _timeline(requested=_utc(2, 10), approved=_utc(1, 12))

    with caplog.at_level("WARNING", logger="review_latency.metrics"):
        metrics = compute_metrics(_calendar(), timeline)

    assert metrics.review_to_first_response_hours is None
    assert metrics.review_to_approval_hours is None
    assert any(getattr(record, "pr_number", None) == 1 for record in caplog.records)


def test_comment_before_request_only_empties_first_response():
    """Verify a bot comment ahead of the review request does not affect approval time."""
    timeline = _timeline(requested=_utc(1, 10, 30), comment=_utc(1, 9, 5), approved=_utc(2, 11))

    metrics = compute_metrics(_calendar(), timeline)

    assert metrics.review_to_first_response_hours is None
    assert metrics.review_to_approval_hours == 9.5


def test_end_to_end_timeline_and_metrics():
    """Verify a Wednesday request answered the same day and approved Thursday."""
    pr = RawPullRequest(
        number=42,
        title="Speed up search",
        author="alice",
        created_at=_utc(1, 9),
        merged_at=_utc(2, 15),
        merge_commit_sha="deadbeef",
    )
    events = [RawEvent(event="review_requested", created_at=_utc(1, 10, 30))]
    comments = [
        RawComment(author="alice", created_at=_utc(1, 11)),
        RawComment(author="bob", created_at=_utc(1, 12)),
    ]
    reviews = [RawReview(author="bob", state="APPROVED", submitted_at=_utc(2, 11))]

    timeline = build_timeline(pr, events, comments, reviews, excluded_authors=frozenset({"alice"}))
    metrics = compute_metrics(_calendar(), timeline)

    assert metrics.review_to_first_response_hours == 1.5
    assert metrics.review_to_approval_hours == 9.5
