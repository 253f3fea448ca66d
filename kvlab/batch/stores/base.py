"""Store interface consumed by the batch engine.

Architecture:
    The batch engine never builds store-specific wire payloads. It talks to
    a store only through this protocol, mapping to and from ReadKey /
    WriteItem requests and BatchOutcome / ConditionalResult values.

Design Decisions:
    - Protocol over inheritance: the in-memory store and the DynamoDB
      adapter share no base class
    - Exact originals: unprocessed entries are the very requests that were
      submitted, so the executor can resubmit them verbatim
    - Explicit conditional variants: a failed condition is a value, not an
      exception

See Also:
    - InMemoryStore: Scriptable store used by tests
    - DynamoDBStore: boto3 adapter
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol

from ..core.keys import CompositeKey
from ..runtime.batching.definitions import (
    BatchOutcome,
    ConditionalResult,
    Mutation,
    Predicate,
    ReadKey,
    WriteItem,
)


class KeyValueStore(Protocol):
    """Protocol for key-value stores with partially completing batch APIs."""

    @property
    def max_read_batch(self) -> int:
        """Largest number of keys accepted by one batch_get call."""
        ...

    @property
    def max_write_batch(self) -> int:
        """Largest number of items accepted by one batch_write call."""
        ...

    async def batch_get(self, keys: Sequence[ReadKey]) -> BatchOutcome:
        """Fetch several records in one call.

        Args:
            keys: Keys to fetch (at most ``max_read_batch``)

        Returns:
            BatchOutcome with returned data for completed keys (None for
            keys with no stored record) and the unprocessed keys

        Raises:
            StoreError: On faults; ``retryable`` tells transient from fatal
        """
        ...

    async def batch_write(self, items: Sequence[WriteItem]) -> BatchOutcome:
        """Write several records in one call.

        Args:
            items: Puts and deletes (at most ``max_write_batch``)

        Returns:
            BatchOutcome with accepted items as completed and the rest as
            unprocessed

        Raises:
            StoreError: On faults; ``retryable`` tells transient from fatal
        """
        ...

    async def conditional_apply(
        self,
        key: CompositeKey,
        mutation: Mutation,
        predicate: Predicate,
    ) -> ConditionalResult:
        """Apply a mutation to one record if the predicate holds afterwards.

        Args:
            key: Record to mutate
            mutation: Numeric delta plus extra attributes to set
            predicate: Condition over the resulting attribute value

        Returns:
            APPLIED with the new item, CONDITION_FAILED, or FAULT
        """
        ...

    async def put_if_absent(self, item: WriteItem) -> ConditionalResult:
        """Create a record only if no record exists under its key.

        Returns:
            APPLIED with the written item, CONDITION_FAILED if the key is
            taken, or FAULT
        """
        ...

    async def delete_if_exists(self, key: CompositeKey) -> ConditionalResult:
        """Delete a record only if it exists.

        Returns:
            APPLIED with the deleted item, CONDITION_FAILED if there was
            nothing to delete, or FAULT
        """
        ...
