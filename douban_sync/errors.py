"""Exceptions raised by the sync pipeline."""


class SyncError(Exception):
    """Base class for errors that abort a sync run."""


class ConfigError(SyncError):
    """Required setting missing or invalid."""


class FeedFetchError(SyncError):
    """The feed could not be downloaded (network error, timeout, non-2xx)."""


class StateError(SyncError):
    """The sync cursor could not be persisted."""


class TableError(SyncError):
    """A collection table exists but cannot be decoded as CSV."""
