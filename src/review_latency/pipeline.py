"""Fetch, rebuild and measure pull requests for the tracked authors.

Per-PR work is independent: each pull request's records are fetched, folded
into a timeline and measured without touching shared state. Results are
always returned sorted by creation time.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from typing import Dict, FrozenSet, List, Tuple

from .business_calendar import BusinessCalendar
from .config import EXCLUDE_TRACKED, FETCH_ERROR_SKIP, Config
from .errors import ApiError, DataValidationError
from .github_client import GitHubClient
from .metrics import compute_metrics
from .models import PullRequestReport, RawComment, RawEvent, RawPullRequest, RawReview
from .timeline import build_timeline

logger = logging.getLogger(__name__)


def excluded_authors_for(pr: RawPullRequest, config: Config) -> FrozenSet[str]:
    """Authors whose comments and approvals do not count as a review response.

    The PR author is always excluded; the ``tracked`` policy also excludes
    every tracked user.
    """
    if config.exclusion_policy == EXCLUDE_TRACKED:
        return frozenset(config.users) | {pr.author}
    return frozenset({pr.author})


def collect_pull_requests(client: GitHubClient, config: Config) -> List[RawPullRequest]:
    """Search merged PRs for every tracked user, deduplicated and sorted by creation."""
    by_number: Dict[int, RawPullRequest] = {}
    for user in config.users:
        for pr in client.search_merged_pull_requests(
            config.repository, user, config.from_date, config.to_date
        ):
            by_number.setdefault(pr.number, pr)

    return sorted(by_number.values(), key=lambda pr: (pr.created_at, pr.number))


def fetch_records(
    client: GitHubClient, config: Config, pr: RawPullRequest
) -> Tuple[RawPullRequest, List[RawEvent], List[RawComment], List[RawReview]]:
    """Fetch the full PR plus its events, comments and reviews.

    With the ``skip`` fetch error policy an API failure or a malformed
    record yields empty record lists (and the search snapshot of the PR)
    instead of raising.
    """
    try:
        full_pr = client.get_pull_request(config.repository, pr.number)
        events = client.list_issue_events(config.repository, pr.number)
        comments = client.list_issue_comments(config.repository, pr.number)
        reviews = client.list_reviews(config.repository, pr.number)
    except (ApiError, DataValidationError) as exc:
        if config.fetch_error_policy != FETCH_ERROR_SKIP:
            raise
        logger.warning(
            "Failed to fetch pull request records; continuing without them",
            extra={"pr_number": pr.number, "error": str(exc)},
        )
        return pr, [], [], []

    return full_pr, events, comments, reviews


def build_report(
    client: GitHubClient, config: Config, calendar: BusinessCalendar, pr: RawPullRequest
) -> PullRequestReport:
    """Fetch one PR's records and turn them into a timeline and metric set."""
    full_pr, events, comments, reviews = fetch_records(client, config, pr)
    timeline = build_timeline(
        full_pr,
        events=events,
        comments=comments,
        reviews=reviews,
        excluded_authors=excluded_authors_for(full_pr, config),
    )
    return PullRequestReport(timeline=timeline, metrics=compute_metrics(calendar, timeline))


def generate_reports(
    client: GitHubClient,
    config: Config,
    calendar: BusinessCalendar,
    prs: List[RawPullRequest],
) -> List[PullRequestReport]:
    """Build reports for ``prs``, fanning out over ``config.workers`` threads.

    Returned reports are sorted by creation time ascending.
    """
    if config.workers > 1 and len(prs) > 1:
        with ThreadPoolExecutor(max_workers=config.workers) as executor:
            reports = list(
                executor.map(lambda pr: build_report(client, config, calendar, pr), prs)
            )
    else:
        reports = [build_report(client, config, calendar, pr) for pr in prs]

    missing_request = sum(1 for report in reports if report.timeline.review_requested_at is None)
    logger.info(
        "Built pull request reports",
        extra={
            "repository": config.repository,
            "prs_total": len(reports),
            "prs_without_review_request": missing_request,
        },
    )

    return sorted(reports, key=lambda report: (report.timeline.created_at, report.timeline.number))
