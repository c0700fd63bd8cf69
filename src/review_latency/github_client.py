"""GitHub REST API client for pull request review data retrieval."""

from __future__ import annotations

import logging
import threading
import time
from datetime import date, datetime, timezone
from typing import Any, Dict, List, Optional

import requests

from .config import Config
from .errors import ApiError, DataValidationError
from .models import RawComment, RawEvent, RawPullRequest, RawReview

logger = logging.getLogger(__name__)


class GitHubClient:
    """Small, typed client for the GitHub pull request and issue APIs."""

    _API_URL = "https://api.github.com"
    _API_VERSION = "2022-11-28"
    _SEARCH_PAGE_SIZE = 50
    _LIST_PAGE_SIZE = 100
    _MAX_RETRIES = 5
    _MAX_BACKOFF_SECONDS = 30

    def __init__(self, config: Config, timeout_seconds: int = 30) -> None:
        """Initialize an authenticated GitHub API client.

        Args:
            config: Validated runtime configuration including the access token.
            timeout_seconds: Per-request timeout in seconds.
        """
        self._config = config
        self._timeout_seconds = timeout_seconds
        self._local = threading.local()

    @property
    def _session(self) -> requests.Session:
        """Authenticated session owned by the calling thread."""
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(
                {
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"Bearer {self._config.token}",
                    "X-GitHub-Api-Version": self._API_VERSION,
                }
            )
            self._local.session = session
        return session

    def _build_url(self, path: str) -> str:
        return f"{self._API_URL}/{path.lstrip('/')}"

    def _parse_datetime(self, value: Optional[str]) -> Optional[datetime]:
        """Parse GitHub ISO8601 timestamps into timezone-aware datetimes.

        Raises:
            DataValidationError: If ``value`` is not an ISO8601 timestamp.
        """
        if not value:
            return None

        normalized = value[:-1] + "+00:00" if value.endswith("Z") else value
        try:
            parsed = datetime.fromisoformat(normalized)
        except (TypeError, ValueError) as exc:
            raise DataValidationError(f"GitHub API returned an invalid timestamp: {value!r}") from exc
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=timezone.utc)
        return parsed

    def _extract_backoff_seconds(self, response: requests.Response, attempt: int) -> int:
        """Compute exponential backoff seconds, honoring Retry-After when available."""
        retry_after_header = response.headers.get("Retry-After")
        if retry_after_header:
            try:
                retry_after_seconds = int(retry_after_header)
                return min(self._MAX_BACKOFF_SECONDS, max(1, retry_after_seconds))
            except ValueError:
                pass

        return min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1))

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Any:
        """Execute a GET request with retry logic for 429/5xx responses.

        Raises:
            ApiError: If the request repeatedly fails, returns HTTP >= 400,
                or does not return a JSON object or array.
        """
        url = self._build_url(path)
        last_error: Optional[Exception] = None

        for attempt in range(1, self._MAX_RETRIES + 1):
            try:
                response = self._session.get(url, params=params, timeout=self._timeout_seconds)
            except requests.RequestException as exc:
                last_error = exc
                if attempt == self._MAX_RETRIES:
                    raise ApiError(f"GitHub request failed after retries: GET {url}") from exc
                time.sleep(min(self._MAX_BACKOFF_SECONDS, 2 ** (attempt - 1)))
                continue

            status_code = response.status_code
            is_retryable = status_code == 429 or 500 <= status_code <= 599

            if is_retryable and attempt < self._MAX_RETRIES:
                logger.warning(
                    "Retrying GitHub request",
                    extra={"url": url, "status_code": status_code, "attempt": attempt},
                )
                time.sleep(self._extract_backoff_seconds(response, attempt))
                continue

            if status_code >= 400:
                raise ApiError(
                    "GitHub API request failed: "
                    f"GET {url} returned {status_code} - {response.text}"
                )

            try:
                payload = response.json()
            except ValueError as exc:
                raise ApiError(f"GitHub API returned invalid JSON: GET {url}") from exc

            if not isinstance(payload, (dict, list)):
                raise ApiError(f"GitHub API returned unexpected payload shape: GET {url}")

            return payload

        raise ApiError(f"GitHub request failed after retries: GET {url}") from last_error

    def _list_paginated(self, path: str) -> List[Dict[str, Any]]:
        """Collect every item of a list endpoint, stopping on a short or empty page."""
        items: List[Dict[str, Any]] = []
        page = 1

        while True:
            payload = self._get_json(path, params={"per_page": self._LIST_PAGE_SIZE, "page": page})
            if not isinstance(payload, list):
                raise ApiError(f"GitHub API returned unexpected payload shape: GET {path}")

            items.extend(item for item in payload if isinstance(item, dict))
            if len(payload) < self._LIST_PAGE_SIZE:
                break
            page += 1

        return items

    @staticmethod
    def _login(item: Dict[str, Any]) -> Optional[str]:
        user = item.get("user") or {}
        login = user.get("login")
        return str(login) if login else None

    def search_merged_pull_requests(
        self, repository: str, author: str, from_date: date, to_date: date
    ) -> List[RawPullRequest]:
        """Search merged, approved pull requests by ``author`` created in a date range.

        Pages are requested until the search returns an empty page. Search
        results do not carry the merge commit; use :meth:`get_pull_request`
        for the full record.
        """
        query = (
            f"repo:{repository} author:{author} "
            f"created:{from_date.isoformat()}..{to_date.isoformat()} "
            "is:pr is:merged review:approved"
        )
        pull_requests: List[RawPullRequest] = []
        page = 1

        while True:
            payload = self._get_json(
                "search/issues",
                params={"q": query, "per_page": self._SEARCH_PAGE_SIZE, "page": page},
            )
            if not isinstance(payload, dict):
                raise ApiError("GitHub search returned unexpected payload shape")

            page_items = payload.get("items") or []
            if not page_items:
                break

            for item in page_items:
                pull_requests.append(self._to_pull_request(item, repository))
            page += 1

        logger.info(
            "Searched merged pull requests",
            extra={"repository": repository, "author": author, "count": len(pull_requests)},
        )
        return pull_requests

    def _to_pull_request(self, item: Dict[str, Any], repository: str) -> RawPullRequest:
        number = item.get("number")
        created_at = self._parse_datetime(item.get("created_at"))
        author = self._login(item)

        if number is None or created_at is None or not author:
            raise DataValidationError(
                "GitHub pull request payload is missing required fields: "
                f"repository={repository}, payload={item}"
            )

        merged_at = item.get("merged_at")
        if merged_at is None:
            merged_at = (item.get("pull_request") or {}).get("merged_at")

        return RawPullRequest(
            number=int(number),
            title=str(item.get("title") or ""),
            author=author,
            created_at=created_at,
            merged_at=self._parse_datetime(merged_at),
            merge_commit_sha=item.get("merge_commit_sha"),
        )

    def get_pull_request(self, repository: str, number: int) -> RawPullRequest:
        """Fetch one pull request including its merge commit sha."""
        payload = self._get_json(f"repos/{repository}/pulls/{number}")
        if not isinstance(payload, dict):
            raise ApiError(f"GitHub API returned unexpected pull request payload: #{number}")
        return self._to_pull_request(payload, repository)

    def list_issue_events(self, repository: str, number: int) -> List[RawEvent]:
        """List issue events (review requests, closes, ...) for a pull request."""
        events: List[RawEvent] = []
        for item in self._list_paginated(f"repos/{repository}/issues/{number}/events"):
            kind = item.get("event")
            if not kind:
                logger.debug("Skipping event without kind", extra={"pr_number": number})
                continue
            events.append(
                RawEvent(
                    event=str(kind),
                    created_at=self._parse_datetime(item.get("created_at")),
                    commit_id=item.get("commit_id"),
                )
            )
        return events

    def list_reviews(self, repository: str, number: int) -> List[RawReview]:
        """List submitted reviews for a pull request."""
        reviews: List[RawReview] = []
        for item in self._list_paginated(f"repos/{repository}/pulls/{number}/reviews"):
            author = self._login(item)
            if not author:
                logger.debug("Skipping review without author", extra={"pr_number": number})
                continue
            reviews.append(
                RawReview(
                    author=author,
                    state=str(item.get("state") or ""),
                    submitted_at=self._parse_datetime(item.get("submitted_at")),
                )
            )
        return reviews

    def list_issue_comments(self, repository: str, number: int) -> List[RawComment]:
        """List conversation comments for a pull request."""
        comments: List[RawComment] = []
        for item in self._list_paginated(f"repos/{repository}/issues/{number}/comments"):
            author = self._login(item)
            if not author:
                logger.debug("Skipping comment without author", extra={"pr_number": number})
                continue
            comments.append(
                RawComment(author=author, created_at=self._parse_datetime(item.get("created_at")))
            )
        return comments
