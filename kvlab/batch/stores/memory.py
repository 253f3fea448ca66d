"""In-memory key-value store with scriptable partial acceptance.

The store keeps items in a dict keyed by rendered composite key. Each batch
call consumes one scripted action, if any: leave the last N entries
unprocessed, or raise a fault. Every call is recorded in ``calls`` so tests
can assert exactly what was resubmitted.
"""

from __future__ import annotations

import asyncio
from collections import deque
from collections.abc import Iterable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from ..config import DEFAULT_MAX_READ_BATCH, DEFAULT_MAX_WRITE_BATCH
from ..core.enums import WriteAction
from ..core.exceptions import StoreError, StoreRejectedError
from ..core.keys import CompositeKey
from ..runtime.batching.definitions import (
    BatchOutcome,
    CompletedEntry,
    ConditionalResult,
    Mutation,
    OperationRequest,
    Predicate,
    ReadKey,
    WriteItem,
)


@dataclass(frozen=True)
class StoreCall:
    """One recorded call against the store."""

    operation: str
    identities: tuple[tuple[str, str], ...]


class InMemoryStore:
    """Dict-backed store implementing the KeyValueStore protocol."""

    def __init__(
        self,
        items: Iterable[Mapping[str, Any]] | None = None,
        *,
        max_read_batch: int = DEFAULT_MAX_READ_BATCH,
        max_write_batch: int = DEFAULT_MAX_WRITE_BATCH,
    ) -> None:
        self._items: dict[tuple[str, str], dict[str, Any]] = {}
        self._max_read_batch = max_read_batch
        self._max_write_batch = max_write_batch
        self._script: deque[int | BaseException] = deque()
        self.calls: list[StoreCall] = []
        for item in items or ():
            self.put_item(item)

    @property
    def max_read_batch(self) -> int:
        return self._max_read_batch

    @property
    def max_write_batch(self) -> int:
        return self._max_write_batch

    def put_item(self, item: Mapping[str, Any]) -> None:
        """Store an item directly, bypassing the script."""
        key = CompositeKey.from_item(item)
        self._items[key.identity] = dict(item)

    def get_item(self, key: CompositeKey) -> dict[str, Any] | None:
        item = self._items.get(key.identity)
        return dict(item) if item is not None else None

    def __len__(self) -> int:
        return len(self._items)

    def schedule_unprocessed(self, count: int, *, times: int = 1) -> None:
        """Leave the last ``count`` entries unprocessed on the next ``times`` calls."""
        if count < 0:
            raise ValueError("count must be >= 0")
        self._script.extend([count] * times)

    def schedule_fault(self, error: BaseException, *, times: int = 1) -> None:
        """Raise ``error`` on the next ``times`` calls."""
        self._script.extend([error] * times)

    async def batch_get(self, keys: Sequence[ReadKey]) -> BatchOutcome:
        self._check_size("batch_get", keys, self._max_read_batch)
        held_back = await self._begin("batch_get", keys)
        processed, unprocessed = _partition(keys, held_back)
        completed = [
            CompletedEntry(request=key, data=self.get_item(key.key)) for key in processed
        ]
        return BatchOutcome(completed=completed, unprocessed=list(unprocessed))

    async def batch_write(self, items: Sequence[WriteItem]) -> BatchOutcome:
        self._check_size("batch_write", items, self._max_write_batch)
        held_back = await self._begin("batch_write", items)
        processed, unprocessed = _partition(items, held_back)
        for item in processed:
            if item.action is WriteAction.DELETE:
                self._items.pop(item.identity, None)
            else:
                self._items[item.identity] = item.to_item()
        return BatchOutcome(
            completed=[CompletedEntry(request=item) for item in processed],
            unprocessed=list(unprocessed),
        )

    async def conditional_apply(
        self,
        key: CompositeKey,
        mutation: Mutation,
        predicate: Predicate,
    ) -> ConditionalResult:
        try:
            await self._begin("conditional_apply", [ReadKey(key=key)])
        except StoreError as e:
            return ConditionalResult.fault(e)

        current = self._items.get(key.identity)
        item = dict(current) if current is not None else key.to_item()
        item[mutation.attribute] = item.get(mutation.attribute, 0) + mutation.delta
        if not predicate.holds(item.get(predicate.attribute, 0)):
            return ConditionalResult.condition_failed()
        item.update(mutation.set_values)
        self._items[key.identity] = item
        return ConditionalResult.applied(dict(item))

    async def put_if_absent(self, item: WriteItem) -> ConditionalResult:
        try:
            await self._begin("put_if_absent", [item])
        except StoreError as e:
            return ConditionalResult.fault(e)

        if item.identity in self._items:
            return ConditionalResult.condition_failed()
        self._items[item.identity] = item.to_item()
        return ConditionalResult.applied(item.to_item())

    async def delete_if_exists(self, key: CompositeKey) -> ConditionalResult:
        try:
            await self._begin("delete_if_exists", [ReadKey(key=key)])
        except StoreError as e:
            return ConditionalResult.fault(e)

        removed = self._items.pop(key.identity, None)
        if removed is None:
            return ConditionalResult.condition_failed()
        return ConditionalResult.applied(removed)

    def _check_size(
        self, operation: str, requests: Sequence[OperationRequest], limit: int
    ) -> None:
        if len(requests) > limit:
            raise StoreRejectedError(
                f"{operation} accepts at most {limit} entries, got {len(requests)}",
                code="ValidationException",
            )

    async def _begin(self, operation: str, requests: Sequence[OperationRequest]) -> int:
        """Record the call and return how many trailing entries to hold back."""
        # Yield so concurrently running chunks interleave like real I/O.
        await asyncio.sleep(0)
        self.calls.append(
            StoreCall(operation=operation, identities=tuple(r.identity for r in requests))
        )
        if not self._script:
            return 0
        action = self._script.popleft()
        if isinstance(action, BaseException):
            raise action
        return action


def _partition(
    requests: Sequence[OperationRequest], held_back: int
) -> tuple[Sequence[Any], Sequence[Any]]:
    split_at = max(0, len(requests) - held_back)
    return requests[:split_at], requests[split_at:]
