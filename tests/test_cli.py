"""Tests for command-line argument parsing."""

import sys
from datetime import date, time
from pathlib import Path

import pytest

# Add src directory to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from review_latency.cli import parse_args


def test_parse_args_with_valid_arguments(monkeypatch):
    """Verify CLI parsing succeeds when all main arguments are provided."""
    monkeypatch.setattr(
        sys,
        "argv",
        [
            "github-review-latency",
            "--repo",
            "octo/repo",
            "--users",
            "alice,bob",
            "--from",
            "2024-05-01",
            "--to",
            "2024-06-30",
            "--work-start",
            "09:00",
            "--work-end",
            "18:00",
            "--work-days",
            "mon,tue,wed,thu",
            "--timezone",
            "Asia/Tokyo",
            "--columns",
            "number, title ,review_to_approval_hours",
            "--exclude",
            "tracked",
            "--workers",
            "4",
        ],
    )

    args = parse_args()

    assert args.repo == "octo/repo"
    assert args.users == ("alice", "bob")
    assert args.from_date == date(2024, 5, 1)
    assert args.to_date == date(2024, 6, 30)
    assert args.work_start == time(9, 0)
    assert args.work_end == time(18, 0)
    assert args.work_days == frozenset({0, 1, 2, 3})
    assert args.timezone == "Asia/Tokyo"
    assert args.columns == ["number", "title", "review_to_approval_hours"]
    assert args.exclude == "tracked"
    assert args.workers == 4


def test_parse_args_defaults():
    """Verify defaults leave repository, users and calendar to the environment."""
    args = parse_args([])

    assert args.repo is None
    assert args.users is None
    assert args.from_date is None
    assert args.to_date is None
    assert args.days == 30
    assert args.output == "pr_data.csv"
    assert args.columns is None
    assert args.exclude == "author"
    assert args.on_fetch_error == "fail"
    assert args.workers == 1
    assert args.verbose is False


@pytest.mark.parametrize(
    "argv",
    [
        ["--days", "-1"],
        ["--from", "2024/05/01"],
        ["--work-start", "7pm"],
        ["--work-days", "mon,someday"],
        ["--exclude", "nobody"],
        ["--workers", "0"],
    ],
)
def test_parse_args_invalid_values_exit(argv):
    """Verify CLI parsing exits with an error for invalid values."""
    with pytest.raises(SystemExit):
        parse_args(argv)
