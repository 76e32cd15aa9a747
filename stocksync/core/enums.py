"""
Shared enums used across the stock sync engine.
"""

from enum import Enum


class SyncAction(str, Enum):
    """Outcome of reconciling a single SKU"""
    NO_CHANGE = "no_change"
    WOULD_UPDATE = "would_update"
    UPDATED = "updated"
    SKIPPED = "skipped"
    ERROR = "error"

    @property
    def is_success(self) -> bool:
        return self in (SyncAction.NO_CHANGE, SyncAction.WOULD_UPDATE, SyncAction.UPDATED)


class ErrorKind(str, Enum):
    """How a remote failure should be treated by the retry logic"""
    NOT_FOUND = "not_found"
    RATE_LIMITED = "rate_limited"
    SERVER_UNAVAILABLE = "server_unavailable"
    UNKNOWN = "unknown"
