"""Unit tests for result aggregation."""

import pytest

from kvlab.batch.core import CompositeKey, TerminalReason
from kvlab.batch.runtime.batching import (
    ChunkResult,
    CompletedEntry,
    ReadKey,
    UnprocessedEntry,
    aggregate,
)


def _read(i, category="item"):
    return ReadKey(key=CompositeKey.of("ITEM", str(i), "DATA", str(i)), category=category)


def _results():
    first = ChunkResult(
        chunk_index=0,
        completed=[
            CompletedEntry(request=_read(0, "profile"), data={"PK": "ITEM#0"}),
            CompletedEntry(request=_read(1, "history-entry"), data=None),
        ],
        attempts=1,
    )
    second = ChunkResult(
        chunk_index=1,
        completed=[CompletedEntry(request=_read(2, "profile"), data={"PK": "ITEM#2"})],
        failed=[UnprocessedEntry(request=_read(3), reason=TerminalReason.MAX_ATTEMPTS_EXCEEDED)],
        attempts=3,
    )
    return first, second


class TestAggregate:
    """Test aggregate merging."""

    def test_counts_by_category(self):
        """Test completed entries are counted per category."""
        result = aggregate(list(_results()))

        assert result.count("profile") == 2
        assert result.count("history-entry") == 1
        assert result.count("episode") == 0
        assert result.total_completed == 3

    def test_failures_make_result_unsuccessful(self):
        """Test success is False when any entry failed."""
        result = aggregate(list(_results()))

        assert result.success is False
        assert result.error is None
        assert [u.request for u in result.unprocessed] == [_read(3)]

    def test_all_completed_is_success(self):
        """Test success when nothing failed."""
        first, _ = _results()
        result = aggregate([first])

        assert result.success is True
        assert result.unprocessed == ()

    def test_order_independent(self):
        """Test chunk completion order does not change the aggregate."""
        first, second = _results()
        assert aggregate([second, first]) == aggregate([first, second])
        assert aggregate([second, first]).attempts == (1, 3)

    def test_idempotent(self):
        """Test aggregating the same results twice gives equal aggregates."""
        results = list(_results())
        assert aggregate(results) == aggregate(results)

    def test_records_skip_missing(self):
        """Test records lists returned data, skipping absent records."""
        result = aggregate(list(_results()))
        assert result.records == [{"PK": "ITEM#0"}, {"PK": "ITEM#2"}]

    def test_top_level_error_when_nothing_completed(self):
        """Test a single error explains a run where every entry failed."""
        failed = ChunkResult(
            chunk_index=0,
            failed=[
                UnprocessedEntry(
                    request=_read(0), reason=TerminalReason.NON_RETRYABLE, detail="denied"
                ),
                UnprocessedEntry(
                    request=_read(1), reason=TerminalReason.NON_RETRYABLE, detail="denied"
                ),
            ],
            attempts=1,
        )
        result = aggregate([failed])

        assert result.success is False
        assert result.error == "No entries completed: non-retryable store fault: denied"
        assert len(result.unprocessed) == 2

    def test_explicit_error(self):
        """Test caller-supplied error forces failure."""
        first, _ = _results()
        result = aggregate([first], error="upstream failure")

        assert result.success is False
        assert result.error == "upstream failure"

    def test_counts_immutable(self):
        """Test counts cannot be modified after aggregation."""
        result = aggregate(list(_results()))
        with pytest.raises(TypeError):
            result.counts["profile"] = 0  # type: ignore[index]
        assert result.count("profile") == 2
