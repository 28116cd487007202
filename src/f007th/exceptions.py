"""Custom exception hierarchy for f007th."""

from __future__ import annotations


class F007thError(Exception):
    """Base exception for all f007th errors."""


class F007thConfigError(F007thError):
    """Invalid or missing configuration."""


class F007thDecodeError(F007thError):
    """A message source received a payload it could not turn into a message."""


class F007thTransportError(F007thError):
    """HTTP-level failure (handle unavailable, network error, no response)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        url: str = "",
    ) -> None:
        self.status_code = status_code
        self.url = url
        super().__init__(message)
