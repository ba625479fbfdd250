"""
Location error taxonomy.

Errors raised to callers or dispatched to subscribers. Advisories
(SourceUnavailable, PoorFixQuality) share the hierarchy but are delivered
through dispatch_advisory(): the session they describe is still running.
"""

from typing import Optional


class LocationError(Exception):
    """Base class for errors produced by the location core."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class NoLocationAvailable(LocationError):
    """One-shot acquisition produced no live fix and no cached fix."""

    def __init__(self, message: str = "No location available"):
        super().__init__(message)


class AcquisitionFailed(LocationError):
    """The position source rejected or failed a request (e.g. permission revoked)."""

    def __init__(self, cause: BaseException, message: Optional[str] = None):
        super().__init__(message or f"Location request failed: {cause}", cause)


class ReconfigurationFailed(LocationError):
    """A continuous request could not be re-issued; the previous one stays in force."""

    def __init__(self, cause: BaseException, message: Optional[str] = None):
        super().__init__(message or f"Could not re-issue location request: {cause}", cause)


class SourceUnavailable(LocationError):
    """Advisory: the position source reported location as unavailable."""

    def __init__(self, message: str = "Location source unavailable"):
        super().__init__(message)


class PoorFixQuality(LocationError):
    """Advisory: several consecutive fixes failed the quality filter."""

    def __init__(self, streak: int, action: Optional[str] = None):
        super().__init__(f"{streak} consecutive poor-quality fixes")
        self.streak = streak
        self.action = action
