"""Reconstruct a pull request timeline from unordered GitHub records.

Each milestone has its own reconciliation rule and they are intentionally
not unified:

- ``review_requested_at``: first ``review_requested`` event in input order
  (first-write-wins).
- ``merged_at``: starts from the pull request's merge time and is replaced
  by every ``closed`` event whose commit matches the merge commit
  (overwrite-on-match, so the last match in input order wins).
- ``first_comment_at``: running minimum over comments from non-excluded
  authors, so input order does not matter.
- ``approved_at``: first ``APPROVED`` review from a non-excluded author in
  input order (first-write-wins, no minimum correction).
"""

from __future__ import annotations

import logging
from datetime import datetime
from typing import AbstractSet, Iterable, Optional

from .models import (
    APPROVED,
    CLOSED,
    REVIEW_REQUESTED,
    PullRequestTimeline,
    RawComment,
    RawEvent,
    RawPullRequest,
    RawReview,
)

logger = logging.getLogger(__name__)


def first_review_request(events: Iterable[RawEvent]) -> Optional[datetime]:
    """Return the timestamp of the first ``review_requested`` event in input order."""
    requested_at: Optional[datetime] = None
    for event in events:
        if event.event == REVIEW_REQUESTED and requested_at is None:
            requested_at = event.created_at
    return requested_at


def merge_time(pr: RawPullRequest, events: Iterable[RawEvent]) -> Optional[datetime]:
    """Return the merge time, refined by ``closed`` events on the merge commit.

    A closed event only counts when the pull request has a merge commit,
    the event references that same commit and it carries a timestamp.
    """
    merged_at = pr.merged_at
    if pr.merge_commit_sha is None:
        return merged_at

    for event in events:
        if (
            event.event == CLOSED
            and event.commit_id == pr.merge_commit_sha
            and event.created_at is not None
        ):
            merged_at = event.created_at
    return merged_at


def earliest_comment(
    comments: Iterable[RawComment], excluded_authors: AbstractSet[str]
) -> Optional[datetime]:
    """Return the earliest comment timestamp from an author outside ``excluded_authors``."""
    earliest: Optional[datetime] = None
    for comment in comments:
        if comment.author in excluded_authors or comment.created_at is None:
            continue
        if earliest is None or comment.created_at < earliest:
            earliest = comment.created_at
    return earliest


def first_approval(
    reviews: Iterable[RawReview], excluded_authors: AbstractSet[str]
) -> Optional[datetime]:
    """Return the first ``APPROVED`` review timestamp in input order."""
    approved_at: Optional[datetime] = None
    for review in reviews:
        if review.state != APPROVED or review.author in excluded_authors:
            continue
        if approved_at is None:
            approved_at = review.submitted_at
    return approved_at


def build_timeline(
    pr: RawPullRequest,
    events: Iterable[RawEvent],
    comments: Iterable[RawComment],
    reviews: Iterable[RawReview],
    excluded_authors: AbstractSet[str],
) -> PullRequestTimeline:
    """Build the canonical timeline for one pull request.

    Args:
        pr: Pull request snapshot.
        events: Issue events in the order received.
        comments: Issue comments in the order received.
        reviews: Reviews in the order received.
        excluded_authors: Logins whose comments and approvals never count as
            a reviewer response (at least the PR author).

    Returns:
        An immutable ``PullRequestTimeline``.
    """
    events = list(events)

    timeline = PullRequestTimeline(
        number=pr.number,
        title=pr.title,
        author=pr.author,
        created_at=pr.created_at,
        opened_at=pr.created_at,
        review_requested_at=first_review_request(events),
        first_comment_at=earliest_comment(comments, excluded_authors),
        approved_at=first_approval(reviews, excluded_authors),
        merged_at=merge_time(pr, events),
    )

    if timeline.review_requested_at is None:
        logger.debug("Pull request has no review request event", extra={"pr_number": pr.number})

    return timeline
