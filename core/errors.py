from typing import Optional

from .models import SyncSummary


class SyncError(Exception):
    """Base error for a sync run. Carries whatever was persisted before failing."""

    def __init__(self, message: str, summary: Optional[SyncSummary] = None):
        super().__init__(message)
        self.summary = summary if summary is not None else SyncSummary()


class ConfigError(SyncError):
    """Store id or access token is missing."""


class DetectionError(SyncError):
    """None of the candidate endpoints answered with a usable JSON body."""


class TransientFetchError(SyncError):
    """429, 5xx or a transport failure. Retried, then escalated."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        retry_after: Optional[str] = None,
        summary: Optional[SyncSummary] = None,
    ):
        super().__init__(message, summary)
        self.status = status
        self.retry_after = retry_after


class FatalFetchError(SyncError):
    """Non-retryable status or an undecodable page body."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        summary: Optional[SyncSummary] = None,
    ):
        super().__init__(message, summary)
        self.status = status


class CheckpointError(SyncError):
    """The resume marker could not be read or written."""


class SinkError(Exception):
    """A single record failed to persist. Reported, never raised by the sink."""

    def __init__(self, message: str, key: str = ""):
        super().__init__(message)
        self.key = key
