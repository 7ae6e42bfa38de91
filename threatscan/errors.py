"""Exceptions raised by the scan pipeline.

Pre-loop failures (oversized or empty input, an overlapping run) propagate to
the caller. Store and analyzer failures are raised by the collaborators and
contained per entry by the driver.
"""


class ScanError(Exception):
    """Base class for every error the pipeline reports to its caller."""


class ParseEmptyError(ScanError):
    def __init__(self, message: str = "No log entries found in input"):
        super().__init__(message)


class SizeLimitExceededError(ScanError):
    def __init__(self, length: int, limit: int):
        self.length = length
        self.limit = limit
        super().__init__(
            f"Log content is too large ({length} characters, limit is {limit})"
        )


class RunInProgressError(ScanError):
    def __init__(self, message: str = "A scan is already in progress"):
        super().__init__(message)


class StoreWriteError(ScanError):
    """Log Store insert or update failed."""


class AnalyzerError(ScanError):
    """Analyzer call failed with a non-rate-limit error."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class RateLimitedError(AnalyzerError):
    def __init__(
        self,
        message: str = "Rate limited by analyzer",
        retry_after_seconds: int | None = None,
    ):
        self.retry_after_seconds = retry_after_seconds
        super().__init__(message, status_code=429)


class AnalyzerUnavailableError(AnalyzerError):
    """Transport-level failure reaching the analyzer; safe to retry."""
