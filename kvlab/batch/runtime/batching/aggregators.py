"""Result aggregation across chunks."""

from __future__ import annotations

from collections import Counter
from collections.abc import Sequence
from types import MappingProxyType

from .definitions import AggregateResult, ChunkResult, CompletedEntry, UnprocessedEntry


def aggregate(results: Sequence[ChunkResult], *, error: str | None = None) -> AggregateResult:
    """Merge per-chunk results into one immutable aggregate.

    Results are ordered by chunk index first, so the outcome does not depend
    on the order in which concurrent chunks finished. When entries failed and
    nothing completed at all, the first failure becomes the top-level error
    so the caller always has an explanation.

    Args:
        results: Chunk results in any order
        error: Top-level failure reason supplied by the caller, if any

    Returns:
        AggregateResult; ``success`` is True iff no entry failed anywhere
    """
    ordered = sorted(results, key=lambda r: r.chunk_index)

    counts: Counter[str] = Counter()
    completed: list[CompletedEntry] = []
    unprocessed: list[UnprocessedEntry] = []
    for result in ordered:
        for entry in result.completed:
            counts[entry.request.category] += 1
        completed.extend(result.completed)
        unprocessed.extend(result.failed)

    if error is None and unprocessed and not completed:
        error = f"No entries completed: {unprocessed[0].message}"

    return AggregateResult(
        success=not unprocessed and error is None,
        counts=MappingProxyType(dict(counts)),
        completed=tuple(completed),
        unprocessed=tuple(unprocessed),
        attempts=tuple(r.attempts for r in ordered),
        error=error,
    )
