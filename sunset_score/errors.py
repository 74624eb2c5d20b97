"""
Error taxonomy for the Sunset Score engine.

FetchError        - forecast source unreachable or returned garbage
InsufficientData  - fewer than two usable samples around sunset
PermissionDenied  - location / notification authorization missing
SubmitError       - feedback store refused a correction
"""

from datetime import datetime
from enum import Enum
from typing import Optional


class ErrorType(Enum):
    """Categories of fetch errors for logging and tracking."""
    TIMEOUT = "timeout"
    RATE_LIMIT = "rate_limit"
    API_ERROR = "api_error"
    PARSE_ERROR = "parse_error"
    UNKNOWN = "unknown"


class SunsetScoreError(Exception):
    """Base class for every error raised by this package."""


class FetchError(SunsetScoreError):
    def __init__(self, cause: str, error_type: ErrorType = ErrorType.UNKNOWN):
        super().__init__(cause)
        self.cause = cause
        self.error_type = error_type

    def __str__(self) -> str:
        return f"Forecast fetch failed ({self.error_type.value}): {self.cause}"


class InsufficientData(SunsetScoreError):
    def __init__(self, target: Optional[datetime] = None, found: int = 0):
        self.target = target
        self.found = found
        when = target.isoformat() if target else "sunset"
        super().__init__(
            f"Insufficient weather data around {when}: "
            f"need 2 samples, found {found}"
        )


class PermissionDenied(SunsetScoreError):
    def __init__(self, what: str):
        self.what = what
        super().__init__(f"Permission denied: {what}")


class SubmitError(SunsetScoreError):
    def __init__(self, cause: str):
        self.cause = cause
        super().__init__(f"Failed to submit feedback: {cause}")
