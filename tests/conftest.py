"""Shared fixtures for unit tests."""

from __future__ import annotations

import pytest

from kvlab.batch.core import CompositeKey
from kvlab.batch.runtime.batching import ReadKey, WriteItem
from kvlab.batch.stores import InMemoryStore


class FakeClock:
    """Manual monotonic clock whose sleep advances time instead of waiting."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, delay: float) -> None:
        self.sleeps.append(delay)
        self.now += delay


def _key(i: int | str) -> CompositeKey:
    return CompositeKey.of("ITEM", str(i), "DATA", str(i))


@pytest.fixture
def make_reads():
    """Factory for ``n`` distinct read keys."""

    def _make(n: int, *, category: str = "item") -> list[ReadKey]:
        return [ReadKey(key=_key(i), category=category) for i in range(n)]

    return _make


@pytest.fixture
def make_writes():
    """Factory for ``n`` distinct put requests."""

    def _make(n: int, *, category: str = "item") -> list[WriteItem]:
        return [
            WriteItem(key=_key(i), payload={"value": i}, category=category) for i in range(n)
        ]

    return _make


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()
