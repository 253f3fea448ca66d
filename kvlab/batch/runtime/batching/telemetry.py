"""Structured logging for batch operations.

This module provides telemetry hooks for the batch engine, emitting
structured logs with event names as messages and fields in ``extra``.
"""

from __future__ import annotations

import logging

from .definitions import AggregateResult, ChunkResult

logger = logging.getLogger(__name__)


def log_batch_plan(
    *,
    operation: str,
    total_requests: int,
    total_chunks: int,
    max_size: int,
) -> None:
    """Log chunk plan creation.

    Args:
        operation: Operation identifier (e.g. "batch_get")
        total_requests: Number of requests planned
        total_chunks: Number of chunks produced
        max_size: Maximum chunk size used
    """
    logger.info(
        "batch_plan_created",
        extra={
            "operation": operation,
            "total_requests": total_requests,
            "total_chunks": total_chunks,
            "max_size": max_size,
        },
    )


def log_attempt_completed(
    *,
    chunk_index: int,
    attempt: int,
    submitted: int,
    completed: int,
    unprocessed: int,
    latency_ms: float | None = None,
) -> None:
    """Log one store call for a chunk.

    Args:
        chunk_index: Zero-based index of the chunk
        attempt: Zero-based attempt number
        submitted: Entries sent in this call
        completed: Entries the store completed
        unprocessed: Entries handed back for resubmission
        latency_ms: Call latency in milliseconds (optional)
    """
    logger.debug(
        "batch_attempt_completed",
        extra={
            "chunk_index": chunk_index,
            "attempt": attempt,
            "submitted": submitted,
            "completed": completed,
            "unprocessed": unprocessed,
            "latency_ms": latency_ms,
        },
    )


def log_retry_scheduled(
    *,
    chunk_index: int,
    attempt: int,
    pending: int,
    delay: float,
    cause: str | None = None,
) -> None:
    """Log a backoff sleep before the next attempt.

    Args:
        chunk_index: Zero-based index of the chunk
        attempt: Attempt that just finished
        pending: Entries that will be resubmitted
        delay: Backoff delay in seconds
        cause: Transient fault that triggered the retry, if any
    """
    logger.warning(
        "batch_retry_scheduled",
        extra={
            "chunk_index": chunk_index,
            "attempt": attempt,
            "pending": pending,
            "delay": delay,
            "cause": cause,
        },
    )


def log_chunk_failed(
    *,
    chunk_index: int,
    attempt: int,
    error_type: str,
    error_message: str,
    entries: int,
) -> None:
    """Log a non-retryable fault that aborted a chunk.

    Args:
        chunk_index: Zero-based index of the chunk
        attempt: Attempt on which the fault happened
        error_type: Exception class name
        error_message: Exception message
        entries: Pending entries marked failed
    """
    logger.error(
        "batch_chunk_failed",
        extra={
            "chunk_index": chunk_index,
            "attempt": attempt,
            "error_type": error_type,
            "error_message": error_message,
            "entries": entries,
        },
    )


def log_chunk_complete(*, result: ChunkResult) -> None:
    """Log the final state of a chunk."""
    logger.info(
        "batch_chunk_complete",
        extra={
            "chunk_index": result.chunk_index,
            "attempts": result.attempts,
            "completed": len(result.completed),
            "failed": len(result.failed),
            "total_delay": sum(result.delays),
        },
    )


def log_run_complete(
    *,
    operation: str,
    result: AggregateResult,
    total_latency_ms: float | None = None,
) -> None:
    """Log completion of a whole batch run.

    Args:
        operation: Operation identifier
        result: Aggregated result
        total_latency_ms: Total latency in milliseconds (optional)
    """
    logger.info(
        "batch_run_complete",
        extra={
            "operation": operation,
            "success": result.success,
            "completed": result.total_completed,
            "unprocessed": len(result.unprocessed),
            "counts": dict(result.counts),
            "chunks": len(result.attempts),
            "error": result.error,
            "total_latency_ms": total_latency_ms,
        },
    )
