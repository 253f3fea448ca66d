"""Store implementations of the KeyValueStore protocol."""

from .base import KeyValueStore
from .dynamodb import DynamoDBStore
from .memory import InMemoryStore, StoreCall

__all__ = [
    "KeyValueStore",
    "DynamoDBStore",
    "InMemoryStore",
    "StoreCall",
]
