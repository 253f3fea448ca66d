"""Chunk planning logic for splitting requests into store-sized batches.

This module provides the ChunkPlanner class that splits an arbitrarily large
sequence of requests into chunks no larger than the store's per-call limit.
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Sequence

from .definitions import Chunk, OperationRequest
from .telemetry import log_batch_plan


class ChunkPlanner:
    """Plans chunks for batch requests.

    The planner preserves first-seen order. With a ``group_key`` it also keeps
    requests sharing a key in the same chunk whenever the group fits, which
    keeps an item and its dependent sub-items together for diagnostics.
    """

    def __init__(
        self,
        max_size: int,
        *,
        group_key: Callable[[OperationRequest], Hashable] | None = None,
        operation: str = "batch",
    ) -> None:
        """Initialize chunk planner.

        Args:
            max_size: Maximum number of requests per chunk (the store's limit)
            group_key: Optional function mapping a request to its group
            operation: Operation identifier used in telemetry

        Raises:
            ValueError: If max_size is less than 1
        """
        if max_size < 1:
            raise ValueError(f"max_size must be >= 1, got {max_size}")
        self._max_size = max_size
        self._group_key = group_key
        self._operation = operation

    @property
    def max_size(self) -> int:
        return self._max_size

    def split(self, requests: Sequence[OperationRequest]) -> list[Chunk]:
        """Split requests into chunks.

        Args:
            requests: Requests in caller order (may be empty)

        Returns:
            Chunks in plan order; empty input produces no chunks
        """
        if self._group_key is None:
            batches = [
                list(requests[i : i + self._max_size])
                for i in range(0, len(requests), self._max_size)
            ]
        else:
            batches = self._pack_groups(requests)

        chunks = [Chunk(index=i, requests=tuple(batch)) for i, batch in enumerate(batches)]

        log_batch_plan(
            operation=self._operation,
            total_requests=len(requests),
            total_chunks=len(chunks),
            max_size=self._max_size,
        )

        return chunks

    def _pack_groups(self, requests: Sequence[OperationRequest]) -> list[list[OperationRequest]]:
        """Pack groups greedily into chunks, in first-seen group order."""
        assert self._group_key is not None
        groups: dict[Hashable, list[OperationRequest]] = {}
        for request in requests:
            groups.setdefault(self._group_key(request), []).append(request)

        batches: list[list[OperationRequest]] = []
        current: list[OperationRequest] = []
        for members in groups.values():
            if current and len(current) + len(members) > self._max_size:
                batches.append(current)
                current = []
            # Oversized groups spill over consecutive chunks.
            for request in members:
                if len(current) == self._max_size:
                    batches.append(current)
                    current = []
                current.append(request)
        if current:
            batches.append(current)
        return batches


def split(requests: Sequence[OperationRequest], max_size: int) -> list[Chunk]:
    """Split requests into chunks of at most ``max_size`` entries."""
    return ChunkPlanner(max_size).split(requests)
