"""Review latency metrics derived from a pull request timeline.

Two metrics are computed in business hours, rounded to two decimals:
- review request to first response (first non-excluded comment, or the
  approval when nobody commented)
- review request to approval
"""

from __future__ import annotations

import logging
from typing import Optional

from .business_calendar import BusinessCalendar
from .models import MetricSet, PullRequestTimeline

logger = logging.getLogger(__name__)

REVIEW_TO_FIRST_RESPONSE = "review_to_first_response_hours"
REVIEW_TO_APPROVAL = "review_to_approval_hours"
METRIC_NAMES = (REVIEW_TO_FIRST_RESPONSE, REVIEW_TO_APPROVAL)


def _business_hours(calendar, timeline, start, end, metric) -> Optional[float]:
    if start is None or end is None:
        return None
    if end < start:
        logger.warning(
            "Response precedes review request; metric left empty",
            extra={"pr_number": timeline.number, "metric": metric},
        )
        return None
    hours = calendar.business_duration(start, end)
    if hours is None:
        return None
    return round(hours, 2)


def compute_first_response_time(
    calendar: BusinessCalendar, timeline: PullRequestTimeline
) -> Optional[float]:
    """Business hours from review request to the first reviewer response.

    Returns ``None`` when there was no review request, no response, or the
    response predates the request.
    """
    if timeline.review_requested_at is None:
        return None
    return _business_hours(
        calendar,
        timeline,
        timeline.review_requested_at,
        timeline.first_response_at,
        REVIEW_TO_FIRST_RESPONSE,
    )


def compute_approval_time(
    calendar: BusinessCalendar, timeline: PullRequestTimeline
) -> Optional[float]:
    """Business hours from review request to approval, or ``None``."""
    if timeline.review_requested_at is None:
        return None
    return _business_hours(
        calendar, timeline, timeline.review_requested_at, timeline.approved_at, REVIEW_TO_APPROVAL
    )


def compute_metrics(calendar: BusinessCalendar, timeline: PullRequestTimeline) -> MetricSet:
    """Compute the full ``MetricSet`` for one timeline."""
    metrics = MetricSet(
        review_to_first_response_hours=compute_first_response_time(calendar, timeline),
        review_to_approval_hours=compute_approval_time(calendar, timeline),
    )
    logger.debug(
        "Computed review metrics",
        extra={
            "pr_number": timeline.number,
            REVIEW_TO_FIRST_RESPONSE: metrics.review_to_first_response_hours,
            REVIEW_TO_APPROVAL: metrics.review_to_approval_hours,
        },
    )
    return metrics
