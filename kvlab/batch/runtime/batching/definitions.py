"""Batch metadata definitions and policy structures.

This module defines the data structures that flow through the batch engine:
operation requests, chunks, per-call outcomes, retry policy and state, and
the per-chunk and aggregate results.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Union

from ...core.enums import ConditionalStatus, TerminalReason, WriteAction
from ...core.exceptions import StoreError
from ...core.keys import CompositeKey

DEFAULT_CATEGORY = "item"


@dataclass(frozen=True)
class ReadKey:
    """Request to fetch one record.

    Attributes:
        key: Composite key of the record
        category: Logical category used for completion counts (e.g. "profile")
    """

    key: CompositeKey
    category: str = DEFAULT_CATEGORY

    @property
    def identity(self) -> tuple[str, str]:
        return self.key.identity


@dataclass(frozen=True)
class WriteItem:
    """Request to upsert or delete one record.

    Attributes:
        key: Composite key of the record
        payload: Non-key attributes written with a put (ignored for deletes)
        category: Logical category used for completion counts
        action: Put or delete
    """

    key: CompositeKey
    payload: Mapping[str, Any] = field(default_factory=dict, compare=False)
    category: str = DEFAULT_CATEGORY
    action: WriteAction = WriteAction.PUT

    @property
    def identity(self) -> tuple[str, str]:
        return self.key.identity

    def to_item(self) -> dict[str, Any]:
        """Full stored item: payload plus rendered key attributes."""
        item = dict(self.payload)
        item.update(self.key.to_item())
        return item


OperationRequest = Union[ReadKey, WriteItem]


@dataclass(frozen=True)
class Chunk:
    """Ordered, size-bounded group of requests destined for one batch call.

    Attributes:
        index: Zero-based position of this chunk in the overall plan
        requests: Requests in first-seen order
    """

    index: int
    requests: tuple[OperationRequest, ...]

    def __post_init__(self) -> None:
        if not self.requests:
            raise ValueError("Chunk must contain at least one request")

    def __len__(self) -> int:
        return len(self.requests)

    def __iter__(self) -> Iterator[OperationRequest]:
        return iter(self.requests)


@dataclass(frozen=True)
class CompletedEntry:
    """A request the store finished processing.

    Attributes:
        request: The original request
        data: Returned record for reads (None if the record does not exist,
            and always None for writes)
    """

    request: OperationRequest
    data: Mapping[str, Any] | None = field(default=None, compare=False)


@dataclass
class BatchOutcome:
    """Result of one batch call.

    Attributes:
        completed: Entries the store processed
        unprocessed: Exact original requests the store declined to process
    """

    completed: list[CompletedEntry] = field(default_factory=list)
    unprocessed: list[OperationRequest] = field(default_factory=list)


@dataclass(frozen=True)
class UnprocessedEntry:
    """A request that left the executor without completing.

    Attributes:
        request: The original request
        reason: Terminal state of the request
        detail: Store message for faults (None for the other reasons)
    """

    request: OperationRequest
    reason: TerminalReason
    detail: str | None = None

    @property
    def message(self) -> str:
        if self.detail:
            return f"{self.reason.description}: {self.detail}"
        return self.reason.description


@dataclass
class RetryState:
    """Mutable per-chunk retry bookkeeping, owned by the executor.

    Attributes:
        pending: Requests not yet completed or failed
        attempt: Number of store calls issued so far
        delays: Backoff delays slept so far, in order
    """

    pending: list[OperationRequest]
    attempt: int = 0
    delays: list[float] = field(default_factory=list)


@dataclass
class ChunkResult:
    """Final state of one chunk.

    Attributes:
        chunk_index: Index of the chunk this result belongs to
        completed: Entries that completed, in completion order
        failed: Entries that ended in a terminal state
        attempts: Store calls issued for the chunk
        delays: Backoff delays slept for the chunk
    """

    chunk_index: int
    completed: list[CompletedEntry] = field(default_factory=list)
    failed: list[UnprocessedEntry] = field(default_factory=list)
    attempts: int = 0
    delays: list[float] = field(default_factory=list)

    @property
    def fully_completed(self) -> bool:
        return not self.failed


@dataclass(frozen=True)
class AggregateResult:
    """Merged outcome of a whole batch operation.

    Attributes:
        success: True iff every entry completed and no top-level error exists
        counts: Completed entries per category
        completed: Completed entries across all chunks, chunk order
        unprocessed: Entries that did not complete, first-seen order
        attempts: Store calls issued per chunk, indexed by chunk
        error: Single top-level failure reason, if any
    """

    success: bool
    counts: Mapping[str, int] = field(default_factory=lambda: MappingProxyType({}))
    completed: tuple[CompletedEntry, ...] = ()
    unprocessed: tuple[UnprocessedEntry, ...] = ()
    attempts: tuple[int, ...] = ()
    error: str | None = None

    @property
    def total_completed(self) -> int:
        return len(self.completed)

    @property
    def records(self) -> list[Mapping[str, Any]]:
        """Data returned by completed reads, skipping missing records."""
        return [entry.data for entry in self.completed if entry.data is not None]

    def count(self, category: str) -> int:
        return self.counts.get(category, 0)


@dataclass(frozen=True)
class Mutation:
    """Numeric delta applied to one attribute by a conditional write.

    Attributes:
        attribute: Numeric attribute to change
        delta: Signed amount added to the current value (missing counts as 0)
        set_values: Extra attributes overwritten in the same write
    """

    attribute: str
    delta: int | float
    set_values: Mapping[str, Any] = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class Predicate:
    """Condition over the value an attribute would have after a mutation.

    Attributes:
        attribute: Attribute the condition applies to
        minimum: Inclusive lower bound (None means unbounded)
    """

    attribute: str
    minimum: int | float | None = None

    def holds(self, value: int | float) -> bool:
        return self.minimum is None or value >= self.minimum


@dataclass(frozen=True)
class ConditionalResult:
    """Explicit result variants of a single conditional write.

    Attributes:
        status: Which variant this is
        item: Stored item after the write (APPLIED only)
        error: Store fault (FAULT only)
    """

    status: ConditionalStatus
    item: Mapping[str, Any] | None = field(default=None, compare=False)
    error: StoreError | None = field(default=None, compare=False)

    @classmethod
    def applied(cls, item: Mapping[str, Any] | None = None) -> ConditionalResult:
        return cls(status=ConditionalStatus.APPLIED, item=item)

    @classmethod
    def condition_failed(cls) -> ConditionalResult:
        return cls(status=ConditionalStatus.CONDITION_FAILED)

    @classmethod
    def fault(cls, error: StoreError) -> ConditionalResult:
        return cls(status=ConditionalStatus.FAULT, error=error)


class Deadline:
    """Monotonic time budget shared read-only by every chunk of one run."""

    def __init__(self, seconds: float, *, clock: Callable[[], float] = time.monotonic) -> None:
        if seconds < 0:
            raise ValueError("Deadline seconds must be >= 0")
        self._clock = clock
        self._expires_at = clock() + seconds

    def remaining(self) -> float:
        return max(0.0, self._expires_at - self._clock())

    @property
    def expired(self) -> bool:
        return self._clock() >= self._expires_at

