"""Custom exceptions for the benchmarking system."""
from typing import Optional


class BenchmarkError(Exception):
    """Base class for failures scoped to a single target or run."""

    def __init__(self, message: str, target: Optional[str] = None, cause: Optional[Exception] = None):
        super().__init__(message)
        self.message = message
        self.target = target
        self.cause = cause


class ConfigurationError(BenchmarkError):
    """Raised when a target's address cannot be resolved."""
    pass


class RequestError(BenchmarkError):
    """Exception raised when a request fails."""

    def __init__(self, message: str, target: Optional[str] = None, cause: Optional[Exception] = None,
                 status_code: Optional[int] = None):
        super().__init__(message, target=target, cause=cause)
        self.status_code = status_code


class FetchError(BenchmarkError):
    """Raised when a metrics endpoint is unreachable or returns an error."""
    pass


class InvalidResponseFormatError(FetchError):
    """Exception raised when response format is invalid."""
    pass


class ProbeError(BenchmarkError):
    """Raised when a latency probe request fails mid-sequence."""

    def __init__(self, message: str, target: Optional[str] = None, cause: Optional[Exception] = None,
                 request_number: Optional[int] = None, status_code: Optional[int] = None):
        super().__init__(message, target=target, cause=cause)
        self.request_number = request_number
        self.status_code = status_code


class AggregationError(BenchmarkError):
    """Raised when averaging an empty set of values."""
    pass
