"""Error taxonomy for acquisition, session and scheduling failures."""

from __future__ import annotations

from typing import Optional


class TrackerError(Exception):
    """Base class for all r6tracker errors."""


class AcquisitionError(TrackerError):
    """A player's stats could not be acquired.

    ``reason`` is the short, user-facing explanation used in failure lines.
    """

    def __init__(self, message: str, *, reason: Optional[str] = None):
        super().__init__(message)
        self.reason = reason or message


class NetworkError(AcquisitionError):
    """Timeout or connection failure of a single fetch attempt."""


class FetchBlocked(AcquisitionError):
    """All candidates exhausted their retry budget."""

    def __init__(self, message: str, *, classification: str, attempts: int = 0, url: Optional[str] = None):
        super().__init__(message, reason=f"fetch failed ({classification}) after {attempts} attempts")
        self.classification = classification
        self.attempts = attempts
        self.url = url


class SessionUnavailable(TrackerError):
    """Browser automation is missing/failing or the challenge never cleared."""


class ScheduleValidationError(TrackerError, ValueError):
    """Malformed schedule time (expected 24h HH:mm)."""
