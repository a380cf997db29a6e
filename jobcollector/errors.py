"""Exception types raised across the collector."""
from __future__ import annotations


class JobCollectorError(Exception):
    """Base class for all collector errors."""


class ExtractionError(JobCollectorError):
    """The extraction service failed or returned something unusable."""


class CaptureError(JobCollectorError):
    """A capture attempt failed in a way the user must be told about."""

    def __init__(self, message: str, *, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class StoreError(JobCollectorError):
    """Persistent storage could not be written."""
