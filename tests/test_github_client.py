"""Tests for GitHub API client behavior with mocked HTTP."""

import sys
import threading
from datetime import date, datetime, timezone
from pathlib import Path
from unittest.mock import Mock, patch

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_latency.config import Config
from review_latency.errors import ApiError, DataValidationError
from review_latency.github_client import GitHubClient


def _build_client() -> GitHubClient:
    config = Config(
        repository="octo/repo",
        users=("alice",),
        from_date=date(2024, 5, 1),
        to_date=date(2024, 6, 30),
        token="gh-token",
    )
    return GitHubClient(config=config)


def _response(status_code: int, payload=None, text: str = "", headers: dict | None = None):
    response = Mock()
    response.status_code = status_code
    response.text = text
    response.headers = headers or {}
    response.json.return_value = payload if payload is not None else {}
    return response


def _search_item(number: int, author: str = "alice") -> dict:
    return {
        "number": number,
        "title": f"PR {number}",
        "user": {"login": author},
        "created_at": "2024-05-01T09:00:00Z",
        "pull_request": {"merged_at": "2024-05-02T15:00:00Z"},
    }


def test_session_sends_bearer_token():
    """Verify the session authenticates with the configured token."""
    client = _build_client()

    assert client._session.headers["Authorization"] == "Bearer gh-token"


def test_get_json_retries_on_429_and_succeeds():
    """Verify _get_json retries after HTTP 429 and eventually returns JSON payload."""
    client = _build_client()
    first = _response(429, payload={}, headers={"Retry-After": "1"})
    second = _response(200, payload=[{"id": 1}])

    client._session.get = Mock(side_effect=[first, second])

    with patch("review_latency.github_client.time.sleep") as sleep_mock:
        payload = client._get_json("repos/octo/repo/issues/1/events")

    assert payload == [{"id": 1}]
    assert client._session.get.call_count == 2
    sleep_mock.assert_called_once_with(1)


def test_get_json_retries_on_5xx_and_raises_after_max_retries():
    """Verify _get_json retries retryable server errors and raises ApiError after limit."""
    client = _build_client()
    server_error = _response(503, payload={}, text="service unavailable")
    client._session.get = Mock(side_effect=[server_error] * client._MAX_RETRIES)

    with patch("review_latency.github_client.time.sleep") as sleep_mock:
        with pytest.raises(ApiError):
            client._get_json("search/issues")

    assert client._session.get.call_count == client._MAX_RETRIES
    assert sleep_mock.call_count == client._MAX_RETRIES - 1


def test_get_json_client_error_raises_without_retry():
    """Verify a 404 is raised immediately as ApiError."""
    client = _build_client()
    client._session.get = Mock(return_value=_response(404, text="Not Found"))

    with pytest.raises(ApiError):
        client._get_json("repos/octo/repo/pulls/999")

    assert client._session.get.call_count == 1


def test_search_merged_pull_requests_pages_until_empty_page():
    """Verify search paginates by page number and stops at an empty page."""
    client = _build_client()
    pages = [
        {"items": [_search_item(1), _search_item(2)]},
        {"items": [_search_item(3)]},
        {"items": []},
    ]
    client._get_json = Mock(side_effect=pages)

    prs = client.search_merged_pull_requests(
        "octo/repo", "alice", date(2024, 5, 1), date(2024, 6, 30)
    )

    assert [pr.number for pr in prs] == [1, 2, 3]
    assert prs[0].author == "alice"
    assert prs[0].merged_at == datetime(2024, 5, 2, 15, tzinfo=timezone.utc)
    assert prs[0].merge_commit_sha is None
    assert client._get_json.call_count == 3

    params = client._get_json.call_args_list[0].kwargs["params"]
    assert params["q"] == (
        "repo:octo/repo author:alice created:2024-05-01..2024-06-30 "
        "is:pr is:merged review:approved"
    )
    assert params["page"] == 1
    assert client._get_json.call_args_list[2].kwargs["params"]["page"] == 3


def test_search_item_missing_fields_raises_data_validation_error():
    """Verify malformed search items are rejected."""
    client = _build_client()
    client._get_json = Mock(side_effect=[{"items": [{"number": 1}]}])

    with pytest.raises(DataValidationError):
        client.search_merged_pull_requests("octo/repo", "alice", date(2024, 5, 1), date(2024, 5, 2))


def test_get_pull_request_reads_merge_commit():
    """Verify the pull endpoint supplies merge time and merge commit."""
    client = _build_client()
    client._get_json = Mock(
        return_value={
            "number": 5,
            "title": "Fix",
            "user": {"login": "alice"},
            "created_at": "2024-05-01T09:00:00Z",
            "merged_at": "2024-05-03T10:00:00Z",
            "merge_commit_sha": "abc123",
        }
    )

    pr = client.get_pull_request("octo/repo", 5)

    assert pr.merge_commit_sha == "abc123"
    assert pr.merged_at == datetime(2024, 5, 3, 10, tzinfo=timezone.utc)
    client._get_json.assert_called_once_with("repos/octo/repo/pulls/5")


def test_list_issue_events_paginates_until_short_page():
    """Verify list endpoints keep paging while pages are full."""
    client = _build_client()
    full_page = [
        {"event": "labeled", "created_at": "2024-05-01T09:30:00Z", "commit_id": None}
    ] * client._LIST_PAGE_SIZE
    last_page = [
        {"event": "review_requested", "created_at": "2024-05-01T10:30:00Z"},
        {"created_at": "2024-05-01T10:31:00Z"},
    ]
    client._get_json = Mock(side_effect=[full_page, last_page])

    events = client.list_issue_events("octo/repo", 5)

    assert len(events) == client._LIST_PAGE_SIZE + 1
    assert events[-1].event == "review_requested"
    assert events[-1].created_at == datetime(2024, 5, 1, 10, 30, tzinfo=timezone.utc)
    assert client._get_json.call_args_list[1].kwargs["params"] == {
        "per_page": client._LIST_PAGE_SIZE,
        "page": 2,
    }


def test_list_reviews_and_comments_skip_missing_authors():
    """Verify records from deleted users are skipped."""
    client = _build_client()
    client._get_json = Mock(
        side_effect=[
            [
                {"user": {"login": "bob"}, "state": "APPROVED", "submitted_at": "2024-05-02T11:00:00Z"},
                {"user": None, "state": "APPROVED", "submitted_at": "2024-05-02T10:00:00Z"},
            ],
            [
                {"user": {"login": "carol"}, "created_at": "2024-05-01T12:00:00Z"},
                {"created_at": "2024-05-01T11:00:00Z"},
            ],
        ]
    )

    reviews = client.list_reviews("octo/repo", 5)
    comments = client.list_issue_comments("octo/repo", 5)

    assert [(review.author, review.state) for review in reviews] == [("bob", "APPROVED")]
    assert [comment.author for comment in comments] == ["carol"]


def test_list_endpoint_with_object_payload_raises():
    """Verify a non-list payload from a list endpoint is an ApiError."""
    client = _build_client()
    client._get_json = Mock(return_value={"message": "oops"})

    with pytest.raises(ApiError):
        client.list_issue_comments("octo/repo", 5)


def test_invalid_timestamp_raises_data_validation_error():
    """Verify unparseable timestamps surface as DataValidationError."""
    client = _build_client()
    client._get_json = Mock(return_value=[{"user": {"login": "bob"}, "created_at": "not-a-date"}])

    with pytest.raises(DataValidationError):
        client.list_issue_comments("octo/repo", 5)


def test_each_thread_gets_its_own_session():
    """Verify worker threads do not share one requests session."""
    client = _build_client()
    sessions = []

    def _capture():
        sessions.append(client._session)

    worker = threading.Thread(target=_capture)
    worker.start()
    worker.join()

    assert client._session is client._session
    assert sessions[0] is not client._session
    assert sessions[0].headers["Authorization"] == "Bearer gh-token"
