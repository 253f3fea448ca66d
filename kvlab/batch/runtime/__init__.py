"""Runtime orchestration components."""

from .batching import BatchExecutor, BatchRunner, ChunkPlanner, aggregate

__all__ = [
    "BatchExecutor",
    "BatchRunner",
    "ChunkPlanner",
    "aggregate",
]
