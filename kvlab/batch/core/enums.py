"""Core enumerations shared by the batch engine, stores and operations.

Architecture:
    String enums so values serialize directly into log records and store
    attributes without a conversion table.

Key Types:
    - WriteAction: Put vs Delete for write requests
    - TerminalReason: Why an entry left the executor without completing
    - ConditionalStatus: Outcome variants of a single conditional write
    - EntityType: Discriminant of stored record kinds
"""

from enum import Enum


class WriteAction(str, Enum):
    """Kind of write carried by a write request."""

    PUT = "put"
    DELETE = "delete"


class TerminalReason(str, Enum):
    """Terminal state of an entry that did not complete.

    Every request submitted to the executor ends up either completed or
    tagged with exactly one of these reasons.
    """

    MAX_ATTEMPTS_EXCEEDED = "max_attempts_exceeded"
    NON_RETRYABLE = "non_retryable"
    CONDITION_FAILED = "condition_failed"
    CANCELLED = "cancelled"

    @property
    def description(self) -> str:
        """Human readable reason reported to callers."""
        return _REASON_DESCRIPTIONS[self]


_REASON_DESCRIPTIONS = {
    TerminalReason.MAX_ATTEMPTS_EXCEEDED: "max attempts exceeded",
    TerminalReason.NON_RETRYABLE: "non-retryable store fault",
    TerminalReason.CONDITION_FAILED: "condition failed",
    TerminalReason.CANCELLED: "cancelled: deadline exceeded",
}


class ConditionalStatus(str, Enum):
    """Result variants of a single conditional write."""

    APPLIED = "applied"
    CONDITION_FAILED = "condition_failed"
    FAULT = "fault"


class EntityType(str, Enum):
    """Discriminant stored in the ``entity_type`` attribute of every record."""

    PROFILE = "PROFILE"
    VIEWING = "VIEWING"
    MOVIE = "MOVIE"
    SERIES = "SERIES"
    MOVIE_STATS = "MOVIE_STATS"
    SERIES_STATS = "SERIES_STATS"
    EPISODE = "EPISODE"
