from __future__ import annotations

from typing import Optional


class TopicNewsError(Exception):
    """Base class for all errors raised by topic_news."""


class SourceUnavailable(TopicNewsError):
    """Raised inside an adapter when a source cannot be fetched or parsed.

    Adapters catch it themselves and report it as a diagnostic; it never
    escapes `SourceAdapter.fetch`.
    """

    def __init__(self, message: str, status: Optional[int] = None) -> None:
        super().__init__(message)
        self.status = status


class TierExhausted(TopicNewsError):
    """Raised when every configured tier produced zero accepted records."""


class PersistenceError(TopicNewsError):
    """Raised when the snapshot file cannot be written or read back."""


class SnapshotNotFound(TopicNewsError):
    """Raised when no snapshot has been persisted yet."""


class ConfigError(TopicNewsError):
    """Raised when a configuration file or value is malformed."""
