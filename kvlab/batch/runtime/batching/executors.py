"""Chunk execution logic with partial-acceptance retries.

This module provides the BatchExecutor class that drives one chunk through
the store: submit, classify the response into completed and unprocessed
entries, and resubmit the unprocessed remainder with exponential backoff
until it is empty, the attempt budget is spent, a non-retryable fault
occurs, or the run deadline passes.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence
from time import perf_counter

from ...config import RetryPolicy
from ...core.enums import ConditionalStatus, TerminalReason
from ...core.exceptions import StoreError, ThrottledError
from .definitions import (
    BatchOutcome,
    Chunk,
    ChunkResult,
    CompletedEntry,
    ConditionalResult,
    Deadline,
    OperationRequest,
    RetryState,
    UnprocessedEntry,
)
from .telemetry import (
    log_attempt_completed,
    log_chunk_complete,
    log_chunk_failed,
    log_retry_scheduled,
)

logger = logging.getLogger(__name__)

SubmitFn = Callable[[Sequence[OperationRequest]], Awaitable[BatchOutcome]]
ApplyFn = Callable[[], Awaitable[ConditionalResult]]


class BatchExecutor:
    """Executes chunks against a store with bounded retries.

    Attempts within one chunk are strictly sequential: the unprocessed set
    of attempt N is the input of attempt N+1. The executor keeps no state
    between chunks, so one instance may serve many chunks concurrently.
    """

    def __init__(
        self,
        policy: RetryPolicy,
        *,
        deadline: Deadline | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize batch executor.

        Args:
            policy: Retry policy applied to every chunk
            deadline: Optional time budget shared by the whole run
            sleep: Coroutine used for backoff delays
        """
        self._policy = policy
        self._deadline = deadline
        self._sleep = sleep

    @property
    def policy(self) -> RetryPolicy:
        return self._policy

    async def execute(self, chunk: Chunk, submit: SubmitFn) -> ChunkResult:
        """Drive one chunk to completion.

        Args:
            chunk: Chunk to execute
            submit: Async batch call against the store

        Returns:
            ChunkResult in which every request of the chunk is either
            completed or failed with exactly one terminal reason
        """
        state = RetryState(pending=list(chunk.requests))
        result = ChunkResult(chunk_index=chunk.index)
        cancelled = False
        cause: str | None = None

        while state.pending and state.attempt < self._policy.max_attempts:
            if self._deadline is not None and self._deadline.expired:
                cancelled = True
                break

            attempt = state.attempt
            started = perf_counter()
            try:
                outcome = await submit(list(state.pending))
            except StoreError as e:
                state.attempt += 1
                if not e.retryable:
                    self._fail(result, state, chunk.index, attempt, e)
                    break
                cause = f"{type(e).__name__}: {e}"
                retry_after = e.retry_after if isinstance(e, ThrottledError) else None
            except Exception as e:
                # Unknown failures are not retried; the run still returns a result.
                state.attempt += 1
                logger.error(
                    f"Unexpected error submitting chunk {chunk.index}: {e}", exc_info=True
                )
                self._fail(result, state, chunk.index, attempt, e)
                break
            else:
                state.attempt += 1
                completed = self._classify(state, outcome)
                result.completed.extend(completed)
                log_attempt_completed(
                    chunk_index=chunk.index,
                    attempt=attempt,
                    submitted=len(completed) + len(state.pending),
                    completed=len(completed),
                    unprocessed=len(state.pending),
                    latency_ms=(perf_counter() - started) * 1000.0,
                )
                cause = None
                retry_after = None

            if state.pending and state.attempt < self._policy.max_attempts:
                if not await self._backoff(state, chunk.index, attempt, cause, retry_after):
                    cancelled = True
                    break

        if state.pending:
            if cancelled:
                reason, detail = TerminalReason.CANCELLED, None
            else:
                # Carry the fault of the final attempt, if it was one.
                reason, detail = TerminalReason.MAX_ATTEMPTS_EXCEEDED, cause
            result.failed.extend(
                UnprocessedEntry(request=r, reason=reason, detail=detail) for r in state.pending
            )
            state.pending = []

        result.attempts = state.attempt
        result.delays = list(state.delays)
        log_chunk_complete(result=result)
        return result

    async def execute_conditional(
        self,
        request: OperationRequest,
        apply: ApplyFn,
        *,
        chunk_index: int = 0,
    ) -> ChunkResult:
        """Drive a single conditional write, the one-entry chunk case.

        A failed condition is final unless the policy marks it retryable;
        faults follow the same retryable/non-retryable split as batches.

        Args:
            request: Request describing the written record
            apply: Async conditional write against the store
            chunk_index: Index reported in the result

        Returns:
            ChunkResult with one completed or one failed entry
        """
        state = RetryState(pending=[request])
        result = ChunkResult(chunk_index=chunk_index)
        cancelled = False
        last_cause: str | None = None

        while state.pending and state.attempt < self._policy.max_attempts:
            if self._deadline is not None and self._deadline.expired:
                cancelled = True
                break

            attempt = state.attempt
            try:
                outcome = await apply()
            except StoreError as e:
                outcome = ConditionalResult.fault(e)
            except Exception as e:
                state.attempt += 1
                logger.error(f"Unexpected error in conditional write: {e}", exc_info=True)
                self._fail(result, state, chunk_index, attempt, e)
                break
            state.attempt += 1

            retry_after: float | None = None
            if outcome.status is ConditionalStatus.APPLIED:
                result.completed.append(CompletedEntry(request=request, data=outcome.item))
                state.pending = []
                break
            elif outcome.status is ConditionalStatus.CONDITION_FAILED:
                if not self._policy.retry_condition_failures:
                    result.failed.append(
                        UnprocessedEntry(request=request, reason=TerminalReason.CONDITION_FAILED)
                    )
                    state.pending = []
                    break
                last_cause = TerminalReason.CONDITION_FAILED.description
            else:
                error = outcome.error or StoreError("conditional write fault")
                if not error.retryable:
                    self._fail(result, state, chunk_index, attempt, error)
                    break
                last_cause = f"{type(error).__name__}: {error}"
                if isinstance(error, ThrottledError):
                    retry_after = error.retry_after

            if state.attempt < self._policy.max_attempts:
                if not await self._backoff(state, chunk_index, attempt, last_cause, retry_after):
                    cancelled = True
                    break

        if state.pending:
            if cancelled:
                entry = UnprocessedEntry(request=request, reason=TerminalReason.CANCELLED)
            else:
                entry = UnprocessedEntry(
                    request=request,
                    reason=TerminalReason.MAX_ATTEMPTS_EXCEEDED,
                    detail=last_cause,
                )
            result.failed.append(entry)
            state.pending = []

        result.attempts = state.attempt
        result.delays = list(state.delays)
        log_chunk_complete(result=result)
        return result

    def _classify(self, state: RetryState, outcome: BatchOutcome) -> list[CompletedEntry]:
        """Move completed entries out of ``state.pending``.

        Completed entries are matched to the submitted requests by identity
        and recorded once. Anything submitted that the store reported in
        neither list stays pending; anything reported that was never
        submitted is ignored.
        """
        submitted = {request.identity: request for request in state.pending}
        completed: list[CompletedEntry] = []
        done: set[tuple[str, str]] = set()

        for entry in outcome.completed:
            identity = entry.request.identity
            original = submitted.get(identity)
            if original is None:
                logger.warning(f"Store reported completion for unsubmitted entry {identity}")
                continue
            if identity in done:
                continue
            done.add(identity)
            completed.append(CompletedEntry(request=original, data=entry.data))

        state.pending = [r for r in state.pending if r.identity not in done]
        if len(state.pending) != len(outcome.unprocessed):
            logger.warning(
                f"Store returned {len(outcome.unprocessed)} unprocessed entries, "
                f"{len(state.pending)} remain pending"
            )
        return completed

    async def _backoff(
        self,
        state: RetryState,
        chunk_index: int,
        attempt: int,
        cause: str | None,
        retry_after: float | None,
    ) -> bool:
        """Sleep before the next attempt.

        Returns:
            False if the deadline would pass before the next attempt starts
        """
        delay = self._policy.delay_for(attempt)
        if retry_after is not None:
            delay = min(max(delay, retry_after), self._policy.max_delay)
        if state.delays:
            delay = max(delay, state.delays[-1])

        if self._deadline is not None and self._deadline.remaining() <= delay:
            return False

        log_retry_scheduled(
            chunk_index=chunk_index,
            attempt=attempt,
            pending=len(state.pending),
            delay=delay,
            cause=cause,
        )
        state.delays.append(delay)
        if delay > 0:
            await self._sleep(delay)
        return True

    def _fail(
        self,
        result: ChunkResult,
        state: RetryState,
        chunk_index: int,
        attempt: int,
        error: BaseException,
    ) -> None:
        log_chunk_failed(
            chunk_index=chunk_index,
            attempt=attempt,
            error_type=type(error).__name__,
            error_message=str(error),
            entries=len(state.pending),
        )
        result.failed.extend(
            UnprocessedEntry(request=r, reason=TerminalReason.NON_RETRYABLE, detail=str(error))
            for r in state.pending
        )
        state.pending = []
