"""Composite key value types.

Keys are built once at the boundary with the store and rendered to the
``KIND#identifier`` string form only when a store adapter needs the wire
representation. Code downstream of ingestion compares ``CompositeKey``
values or their ``identity`` tuples and never re-parses strings.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PARTITION_ATTR = "PK"
SORT_ATTR = "SK"
SEPARATOR = "#"


@dataclass(frozen=True)
class KeyPart:
    """One half of a composite key.

    Attributes:
        kind: Entity kind prefix (e.g. ``USER``, ``PROFILE``)
        identifier: Identifier after the separator. ``None`` renders the bare
            kind (``METADATA``); an empty string keeps the separator
            (``VIEWING#``).
    """

    kind: str
    identifier: str | None = None

    def __post_init__(self) -> None:
        if not self.kind:
            raise ValueError("KeyPart kind cannot be empty")
        if SEPARATOR in self.kind:
            raise ValueError(f"KeyPart kind cannot contain '{SEPARATOR}': {self.kind!r}")

    def render(self) -> str:
        if self.identifier is None:
            return self.kind
        return f"{self.kind}{SEPARATOR}{self.identifier}"

    @classmethod
    def parse(cls, value: str) -> KeyPart:
        """Parse a rendered key part. Only store adapters should need this."""
        kind, sep, identifier = value.partition(SEPARATOR)
        return cls(kind=kind, identifier=identifier if sep else None)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class CompositeKey:
    """Partition + sort key identifying one stored record."""

    partition: KeyPart
    sort: KeyPart

    @property
    def identity(self) -> tuple[str, str]:
        """Rendered ``(partition, sort)`` pair, used for matching and dedup."""
        return (self.partition.render(), self.sort.render())

    def to_item(self) -> dict[str, str]:
        return {PARTITION_ATTR: self.partition.render(), SORT_ATTR: self.sort.render()}

    @classmethod
    def from_item(cls, item: dict[str, Any]) -> CompositeKey:
        """Rebuild the key from a stored item's key attributes."""
        try:
            partition = item[PARTITION_ATTR]
            sort = item[SORT_ATTR]
        except KeyError as e:
            raise ValueError(f"Item is missing key attribute {e.args[0]!r}") from e
        return cls(partition=KeyPart.parse(partition), sort=KeyPart.parse(sort))

    @classmethod
    def of(
        cls,
        partition_kind: str,
        partition_id: str | None,
        sort_kind: str,
        sort_id: str | None = None,
    ) -> CompositeKey:
        return cls(
            partition=KeyPart(partition_kind, partition_id),
            sort=KeyPart(sort_kind, sort_id),
        )

    def __str__(self) -> str:
        return f"{self.partition.render()}/{self.sort.render()}"
