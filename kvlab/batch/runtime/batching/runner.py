"""Batch runner: validation, chunking, execution and aggregation.

The runner is the caller-facing entry point of the engine. It validates the
requests, splits them into store-sized chunks, drives each chunk through the
executor (sequentially or as concurrent tasks) under an optional deadline,
and merges the chunk results once every chunk has finished.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable, Hashable, Sequence
from time import perf_counter
from typing import TYPE_CHECKING

from ...config import BatchConfig, RetryPolicy
from ...core.enums import WriteAction
from ...core.exceptions import BatchValidationError
from ...core.keys import CompositeKey
from .aggregators import aggregate
from .definitions import (
    AggregateResult,
    Chunk,
    ChunkResult,
    Deadline,
    Mutation,
    OperationRequest,
    Predicate,
    ReadKey,
    WriteItem,
)
from .executors import ApplyFn, BatchExecutor, SubmitFn
from .planners import ChunkPlanner
from .telemetry import log_run_complete

if TYPE_CHECKING:
    from ...stores.base import KeyValueStore

GroupKeyFn = Callable[[OperationRequest], Hashable]


class BatchRunner:
    """Runs batch reads, batch writes and conditional writes against a store."""

    def __init__(
        self,
        store: KeyValueStore,
        config: BatchConfig | None = None,
        *,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize batch runner.

        Args:
            store: Store the batches are submitted to
            config: Engine configuration (defaults to BatchConfig())
            sleep: Coroutine used for backoff delays
        """
        self._store = store
        self._config = config or BatchConfig()
        self._sleep = sleep

    @property
    def config(self) -> BatchConfig:
        return self._config

    async def get(
        self,
        keys: Sequence[ReadKey],
        *,
        group_key: GroupKeyFn | None = None,
    ) -> AggregateResult:
        """Fetch records for all keys.

        Raises:
            BatchValidationError: If the input is empty, contains duplicate
                keys, or contains anything other than ReadKey
        """
        _require_type(keys, ReadKey)
        max_size = min(self._config.max_read_batch, self._store.max_read_batch)
        return await self.run(
            keys,
            self._store.batch_get,
            max_size=max_size,
            operation="batch_get",
            group_key=group_key,
        )

    async def write(
        self,
        items: Sequence[WriteItem],
        *,
        group_key: GroupKeyFn | None = None,
    ) -> AggregateResult:
        """Write all items.

        Raises:
            BatchValidationError: If the input is empty, contains duplicate
                keys, or contains anything other than WriteItem
        """
        _require_type(items, WriteItem)
        max_size = min(self._config.max_write_batch, self._store.max_write_batch)
        return await self.run(
            items,
            self._store.batch_write,
            max_size=max_size,
            operation="batch_write",
            group_key=group_key,
        )

    async def apply(
        self,
        key: CompositeKey,
        mutation: Mutation,
        predicate: Predicate,
        *,
        category: str = "item",
        policy: RetryPolicy | None = None,
    ) -> AggregateResult:
        """Apply one conditional write as a one-entry chunk.

        Args:
            key: Record to mutate
            mutation: Numeric delta plus extra attributes to set
            predicate: Condition over the resulting value
            category: Category counted on success
            policy: Retry policy override for this write
        """
        request = WriteItem(key=key, payload=dict(mutation.set_values), category=category)
        return await self.conditional(
            request,
            lambda: self._store.conditional_apply(key, mutation, predicate),
            operation="conditional_apply",
            policy=policy,
        )

    async def put_if_absent(
        self, item: WriteItem, *, policy: RetryPolicy | None = None
    ) -> AggregateResult:
        """Create one record, failing the condition if the key already exists."""
        return await self.conditional(
            item,
            lambda: self._store.put_if_absent(item),
            operation="put_if_absent",
            policy=policy,
        )

    async def delete_if_exists(
        self,
        key: CompositeKey,
        *,
        category: str = "item",
        policy: RetryPolicy | None = None,
    ) -> AggregateResult:
        """Delete one record, failing the condition if it does not exist.

        The completed entry carries the deleted item as its data.
        """
        request = WriteItem(key=key, category=category, action=WriteAction.DELETE)
        return await self.conditional(
            request,
            lambda: self._store.delete_if_exists(key),
            operation="delete_if_exists",
            policy=policy,
        )

    async def conditional(
        self,
        request: WriteItem,
        apply: ApplyFn,
        *,
        operation: str = "conditional",
        policy: RetryPolicy | None = None,
    ) -> AggregateResult:
        """Run one conditional store call as a one-entry chunk.

        Args:
            request: Request describing the written record
            apply: Async conditional call against the store
            operation: Operation identifier used in telemetry
            policy: Retry policy override for this write

        Returns:
            AggregateResult with one completed or one unprocessed entry
        """
        executor = BatchExecutor(
            policy or self._config.retry, deadline=self._deadline(), sleep=self._sleep
        )
        started = perf_counter()
        chunk_result = await executor.execute_conditional(request, apply)
        result = aggregate([chunk_result])
        log_run_complete(
            operation=operation,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def run(
        self,
        requests: Sequence[OperationRequest],
        submit: SubmitFn,
        *,
        max_size: int,
        operation: str = "batch",
        group_key: GroupKeyFn | None = None,
    ) -> AggregateResult:
        """Validate, chunk, execute and aggregate.

        Args:
            requests: Requests to process
            submit: Async batch call used for every chunk
            max_size: Maximum chunk size
            operation: Operation identifier used in telemetry
            group_key: Optional grouping for the chunk planner

        Returns:
            AggregateResult (store faults never raise)

        Raises:
            BatchValidationError: Before any store call, on invalid input
        """
        validate_requests(requests)
        started = perf_counter()

        chunks = ChunkPlanner(max_size, group_key=group_key, operation=operation).split(requests)
        executor = BatchExecutor(self._config.retry, deadline=self._deadline(), sleep=self._sleep)

        if self._config.concurrent and len(chunks) > 1:
            results = await self._run_concurrent(executor, chunks, submit)
        else:
            results = [await executor.execute(chunk, submit) for chunk in chunks]

        result = aggregate(results)
        log_run_complete(
            operation=operation,
            result=result,
            total_latency_ms=(perf_counter() - started) * 1000.0,
        )
        return result

    async def _run_concurrent(
        self,
        executor: BatchExecutor,
        chunks: Sequence[Chunk],
        submit: SubmitFn,
    ) -> list[ChunkResult]:
        semaphore = asyncio.Semaphore(self._config.max_concurrency)

        async def _bounded(chunk: Chunk) -> ChunkResult:
            async with semaphore:
                return await executor.execute(chunk, submit)

        # Join before merging; the aggregate is built on this task only.
        return list(await asyncio.gather(*(_bounded(chunk) for chunk in chunks)))

    def _deadline(self) -> Deadline | None:
        if self._config.deadline is None:
            return None
        return Deadline(self._config.deadline)


def validate_requests(requests: Sequence[OperationRequest]) -> None:
    """Reject input the engine must not send to a store.

    Raises:
        BatchValidationError: If requests is empty or two requests share a key
    """
    if not requests:
        raise BatchValidationError("No requests provided", field="requests")

    seen: set[tuple[str, str]] = set()
    for request in requests:
        if request.identity in seen:
            raise BatchValidationError(
                f"Duplicate request for key {request.key}", field="requests"
            )
        seen.add(request.identity)


def _require_type(requests: Sequence[OperationRequest], expected: type) -> None:
    for request in requests:
        if not isinstance(request, expected):
            raise BatchValidationError(
                f"Expected {expected.__name__}, got {type(request).__name__}",
                field="requests",
            )
