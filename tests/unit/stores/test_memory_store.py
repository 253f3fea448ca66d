"""Unit tests for the in-memory store."""

import pytest

from kvlab.batch.core import (
    CompositeKey,
    ConditionalStatus,
    StoreRejectedError,
    StoreTimeoutError,
    WriteAction,
)
from kvlab.batch.runtime.batching import Mutation, Predicate, ReadKey, WriteItem
from kvlab.batch.stores import InMemoryStore


class TestInMemoryStoreBatches:
    """Test batch reads and writes."""

    @pytest.mark.asyncio
    async def test_write_then_read(self, store, make_writes):
        """Test written items are returned by reads with key attributes."""
        items = make_writes(2)
        await store.batch_write(items)

        outcome = await store.batch_get([ReadKey(key=items[1].key)])

        assert outcome.unprocessed == []
        assert outcome.completed[0].data == {"value": 1, "PK": "ITEM#1", "SK": "DATA#1"}

    @pytest.mark.asyncio
    async def test_delete(self, store, make_writes):
        """Test delete requests remove items."""
        items = make_writes(1)
        await store.batch_write(items)
        await store.batch_write([WriteItem(key=items[0].key, action=WriteAction.DELETE)])

        assert store.get_item(items[0].key) is None
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_scheduled_unprocessed_holds_back_tail(self, store, make_writes):
        """Test the last entries of the next call are handed back unwritten."""
        items = make_writes(4)
        store.schedule_unprocessed(3)

        outcome = await store.batch_write(items)

        assert [e.request for e in outcome.completed] == items[:1]
        assert outcome.unprocessed == items[1:]
        assert len(store) == 1

    @pytest.mark.asyncio
    async def test_script_consumed_per_call(self, store, make_reads):
        """Test each scheduled action applies to exactly one call."""
        store.schedule_unprocessed(1, times=2)
        keys = make_reads(2)

        assert len((await store.batch_get(keys)).unprocessed) == 1
        assert len((await store.batch_get(keys)).unprocessed) == 1
        assert (await store.batch_get(keys)).unprocessed == []

    @pytest.mark.asyncio
    async def test_scheduled_fault(self, store, make_reads):
        """Test a scheduled fault is raised and recorded."""
        store.schedule_fault(StoreTimeoutError("timeout"))

        with pytest.raises(StoreTimeoutError):
            await store.batch_get(make_reads(1))
        assert len(store.calls) == 1

    @pytest.mark.asyncio
    async def test_oversize_call_rejected(self, make_reads):
        """Test calls above the per-call limit are rejected, not recorded."""
        store = InMemoryStore(max_read_batch=2)

        with pytest.raises(StoreRejectedError) as exc_info:
            await store.batch_get(make_reads(3))
        assert exc_info.value.code == "ValidationException"
        assert store.calls == []

    def test_negative_unprocessed_rejected(self, store):
        """Test negative hold-back counts are rejected."""
        with pytest.raises(ValueError):
            store.schedule_unprocessed(-1)


class TestInMemoryStoreConditional:
    """Test conditional_apply."""

    KEY = CompositeKey.of("PRODUCT", "1", "METADATA", "1")

    @pytest.mark.asyncio
    async def test_applied_sets_values(self):
        """Test delta and extra attributes are written together."""
        store = InMemoryStore([{**self.KEY.to_item(), "stock": 2}])

        result = await store.conditional_apply(
            self.KEY,
            Mutation("stock", 3, set_values={"updatedBy": "ops"}),
            Predicate("stock", minimum=0),
        )

        assert result.status is ConditionalStatus.APPLIED
        assert result.item["stock"] == 5
        assert store.get_item(self.KEY)["updatedBy"] == "ops"

    @pytest.mark.asyncio
    async def test_missing_record_starts_at_zero(self, store):
        """Test a missing record is treated as zero stock."""
        result = await store.conditional_apply(
            self.KEY, Mutation("stock", 4), Predicate("stock", minimum=0)
        )

        assert result.status is ConditionalStatus.APPLIED
        assert store.get_item(self.KEY)["stock"] == 4

    @pytest.mark.asyncio
    async def test_condition_failed(self):
        """Test a violated predicate leaves the record untouched."""
        store = InMemoryStore([{**self.KEY.to_item(), "stock": 2}])

        result = await store.conditional_apply(
            self.KEY, Mutation("stock", -3), Predicate("stock", minimum=0)
        )

        assert result.status is ConditionalStatus.CONDITION_FAILED
        assert store.get_item(self.KEY)["stock"] == 2

    @pytest.mark.asyncio
    async def test_fault_returned_as_variant(self, store):
        """Test scheduled faults come back as a FAULT result."""
        store.schedule_fault(StoreTimeoutError("timeout"))

        result = await store.conditional_apply(
            self.KEY, Mutation("stock", 1), Predicate("stock", minimum=0)
        )

        assert result.status is ConditionalStatus.FAULT
        assert isinstance(result.error, StoreTimeoutError)


class TestInMemoryStoreCreateDelete:
    """Test put_if_absent and delete_if_exists."""

    KEY = CompositeKey.of("PRODUCT", "1", "METADATA", "1")

    @pytest.mark.asyncio
    async def test_put_if_absent(self, store):
        """Test a new key is written and an existing one is left alone."""
        first = await store.put_if_absent(WriteItem(key=self.KEY, payload={"name": "Lamp"}))
        second = await store.put_if_absent(WriteItem(key=self.KEY, payload={"name": "Desk"}))

        assert first.status is ConditionalStatus.APPLIED
        assert second.status is ConditionalStatus.CONDITION_FAILED
        assert store.get_item(self.KEY)["name"] == "Lamp"

    @pytest.mark.asyncio
    async def test_delete_if_exists(self):
        """Test the removed item is returned and a second delete fails the condition."""
        store = InMemoryStore([{**self.KEY.to_item(), "name": "Lamp"}])

        first = await store.delete_if_exists(self.KEY)
        second = await store.delete_if_exists(self.KEY)

        assert first.status is ConditionalStatus.APPLIED
        assert first.item["name"] == "Lamp"
        assert second.status is ConditionalStatus.CONDITION_FAILED
        assert len(store) == 0

    @pytest.mark.asyncio
    async def test_fault_leaves_item(self):
        """Test a scheduled fault comes back as FAULT without deleting."""
        store = InMemoryStore([self.KEY.to_item()])
        store.schedule_fault(StoreTimeoutError("timeout"))

        result = await store.delete_if_exists(self.KEY)

        assert result.status is ConditionalStatus.FAULT
        assert len(store) == 1
