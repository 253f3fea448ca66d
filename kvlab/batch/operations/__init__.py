"""Caller-facing batch operations built on the engine."""

from .analytics import (
    AnalyticsResponse,
    UserAnalytics,
    ViewingRecord,
    get_user_analytics,
)
from .content import (
    ContentWriteResponse,
    ProcessedCounts,
    UnprocessedContentItem,
    batch_add_content,
)
from .inventory import InventoryResponse, update_inventory
from .products import (
    DeleteProductResponse,
    ProductResponse,
    create_product,
    delete_product,
    get_product,
)

__all__ = [
    "AnalyticsResponse",
    "UserAnalytics",
    "ViewingRecord",
    "get_user_analytics",
    "ContentWriteResponse",
    "ProcessedCounts",
    "UnprocessedContentItem",
    "batch_add_content",
    "InventoryResponse",
    "update_inventory",
    "DeleteProductResponse",
    "ProductResponse",
    "create_product",
    "delete_product",
    "get_product",
]
