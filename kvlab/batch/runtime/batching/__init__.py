"""Batch engine for partially completing key-value batch APIs.

This package drives bulk reads and writes to completion against stores whose
batch calls may accept only part of a request.

Architecture:
    The batch layer consists of:
    - definitions.py: Request, chunk, outcome and result structures
    - planners.py: Chunk planning (splits requests into store-sized chunks)
    - executors.py: Chunk execution (submit, classify, retry with backoff)
    - aggregators.py: Merges chunk results into one aggregate
    - runner.py: Validation and orchestration of the above
    - telemetry.py: Structured logging
"""

from __future__ import annotations

from .aggregators import aggregate
from .definitions import (
    AggregateResult,
    BatchOutcome,
    Chunk,
    ChunkResult,
    CompletedEntry,
    ConditionalResult,
    Deadline,
    Mutation,
    OperationRequest,
    Predicate,
    ReadKey,
    RetryState,
    UnprocessedEntry,
    WriteItem,
)
from .executors import BatchExecutor
from .planners import ChunkPlanner, split
from .runner import BatchRunner, validate_requests

__all__ = [
    "AggregateResult",
    "BatchOutcome",
    "Chunk",
    "ChunkResult",
    "CompletedEntry",
    "ConditionalResult",
    "Deadline",
    "Mutation",
    "OperationRequest",
    "Predicate",
    "ReadKey",
    "RetryState",
    "UnprocessedEntry",
    "WriteItem",
    "BatchExecutor",
    "ChunkPlanner",
    "BatchRunner",
    "aggregate",
    "split",
    "validate_requests",
]
