"""Entry point for the GitHub review latency report generator."""

from __future__ import annotations

import logging
import sys
from datetime import date, timedelta
from typing import Optional, Sequence

from .business_calendar import BusinessCalendar
from .charts import plot_weekly_trends
from .cli import parse_args
from .config import load_config
from .errors import ApiError, AuthenticationError, ConfigurationError, DataValidationError
from .export import write_csv
from .github_client import GitHubClient
from .pipeline import collect_pull_requests, generate_reports
from .stats import aggregate_weekly, generate_summary

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_UNEXPECTED = 1
EXIT_CONFIGURATION = 2
EXIT_AUTHENTICATION = 3
EXIT_API = 4


def orchestrate_report_generation(argv: Optional[Sequence[str]] = None) -> int:
    """Run the full report: search, rebuild timelines, export CSV and charts.

    Returns:
        Process exit code.
    """
    try:
        args = parse_args(argv)
        logging.basicConfig(
            level=logging.DEBUG if args.verbose else logging.INFO,
            format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
        )

        to_date = args.to_date or date.today()
        from_date = args.from_date or to_date - timedelta(days=args.days)

        config = load_config(
            from_date=from_date,
            to_date=to_date,
            repository=args.repo,
            users=args.users,
            work_days=args.work_days,
            day_start=args.work_start,
            day_end=args.work_end,
            timezone=args.timezone,
            exclusion_policy=args.exclude,
            fetch_error_policy=args.on_fetch_error,
            csv_path=args.output,
            columns=args.columns,
            chart_dir=args.chart_dir,
            workers=args.workers,
        )

        calendar = BusinessCalendar(config.calendar)
        client = GitHubClient(config=config)

        print(
            f"Fetching merged PRs in '{config.repository}' by {', '.join(config.users)} "
            f"created {config.from_date.isoformat()}..{config.to_date.isoformat()}..."
        )
        prs = collect_pull_requests(client, config)
        reports = generate_reports(client, config, calendar, prs)

        csv_path = write_csv(reports, config.csv_path, columns=config.columns, calendar=calendar)
        print(f"Wrote {len(reports)} pull requests to {csv_path}")

        series = aggregate_weekly(reports, calendar)
        for chart in plot_weekly_trends(series, config.chart_dir):
            print(f"Saved chart: {chart}")

        print()
        print(generate_summary(config.repository, reports))
        return EXIT_OK
    except ConfigurationError as exc:
        logger.error("Configuration error: %s", exc)
        return EXIT_CONFIGURATION
    except AuthenticationError as exc:
        logger.error("Authentication error: %s", exc)
        return EXIT_AUTHENTICATION
    except (ApiError, DataValidationError) as exc:
        logger.error("GitHub API error: %s", exc)
        return EXIT_API
    except Exception:
        logger.exception("Unexpected error while generating the review latency report")
        return EXIT_UNEXPECTED


def main() -> None:
    sys.exit(orchestrate_report_generation())


if __name__ == "__main__":
    main()
