"""KVLab Batch - Partial-acceptance batch engine for key-value stores."""

from .config import BatchConfig, RetryPolicy, StoreSettings
from .core import (
    BatchError,
    BatchValidationError,
    CompositeKey,
    ConditionalStatus,
    EntityType,
    KeyPart,
    StoreError,
    StoreRejectedError,
    StoreTimeoutError,
    TerminalReason,
    ThrottledError,
    WriteAction,
)
from .operations import (
    AnalyticsResponse,
    ContentWriteResponse,
    DeleteProductResponse,
    InventoryResponse,
    ProductResponse,
    batch_add_content,
    create_product,
    delete_product,
    get_product,
    get_user_analytics,
    update_inventory,
)
from .runtime.batching import (
    AggregateResult,
    BatchExecutor,
    BatchOutcome,
    BatchRunner,
    ChunkPlanner,
    ChunkResult,
    CompletedEntry,
    ConditionalResult,
    Deadline,
    Mutation,
    Predicate,
    ReadKey,
    UnprocessedEntry,
    WriteItem,
    aggregate,
)
from .stores import DynamoDBStore, InMemoryStore, KeyValueStore

__version__ = "0.1.0"

__all__ = [
    "__version__",
    # Configuration
    "BatchConfig",
    "RetryPolicy",
    "StoreSettings",
    # Core
    "CompositeKey",
    "KeyPart",
    "ConditionalStatus",
    "EntityType",
    "TerminalReason",
    "WriteAction",
    # Exceptions
    "BatchError",
    "BatchValidationError",
    "StoreError",
    "StoreRejectedError",
    "StoreTimeoutError",
    "ThrottledError",
    # Engine
    "AggregateResult",
    "BatchExecutor",
    "BatchOutcome",
    "BatchRunner",
    "ChunkPlanner",
    "ChunkResult",
    "CompletedEntry",
    "ConditionalResult",
    "Deadline",
    "Mutation",
    "Predicate",
    "ReadKey",
    "UnprocessedEntry",
    "WriteItem",
    "aggregate",
    # Stores
    "DynamoDBStore",
    "InMemoryStore",
    "KeyValueStore",
    # Operations
    "AnalyticsResponse",
    "ContentWriteResponse",
    "DeleteProductResponse",
    "InventoryResponse",
    "ProductResponse",
    "batch_add_content",
    "create_product",
    "delete_product",
    "get_product",
    "get_user_analytics",
    "update_inventory",
]
