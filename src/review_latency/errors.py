"""Custom exception types for the review latency report generator.

Everything derived from ``ReviewLatencyError`` is mapped to a process exit
code by ``main``. Broken core preconditions (inverted business-time ranges,
naive datetimes) raise ``ValueError`` instead and are not listed here.
"""


class ReviewLatencyError(Exception):
    """Base exception for failures a report run can report and exit on cleanly."""


class ConfigurationError(ReviewLatencyError):
    """Raised for a bad repository, user list, date range, work calendar or CSV column."""


class AuthenticationError(ReviewLatencyError):
    """Raised when ``GITHUB_ACCESS_TOKEN`` is missing."""


class ApiError(ReviewLatencyError):
    """Raised when a GitHub request keeps failing, returns HTTP >= 400 or non-JSON."""


class DataValidationError(ReviewLatencyError):
    """Raised for malformed GitHub records: a pull request without number,
    author or creation time, or a timestamp that is not ISO8601."""
