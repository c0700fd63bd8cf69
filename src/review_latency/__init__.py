"""Code-review latency metrics for GitHub pull requests."""

__version__ = "0.1.0"
