"""Single-product catalog operations: lookup, create and delete.

Each operation is one request through the engine, so store faults are
retried under the configured policy and come back as error responses.
Create and delete are conditional writes: creating an existing product or
deleting a missing one fails the condition and is not retried.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..config import BatchConfig, RetryPolicy
from ..core.enums import TerminalReason
from ..core.exceptions import BatchValidationError
from ..core.keys import CompositeKey
from ..models.inventory import Product
from ..runtime.batching import AggregateResult, BatchRunner, ReadKey, WriteItem
from ..stores.base import KeyValueStore

PRODUCT_CATEGORY = "product"
PRODUCT_EXISTS = "Product already exists"
PRODUCT_MISSING = "Product does not exist"
PRODUCT_DELETED = "Product deleted successfully"


@dataclass(frozen=True)
class ProductResponse:
    """Caller-facing result of ``get_product`` and ``create_product``."""

    success: bool
    item: dict[str, Any] | None = None
    message: str | None = None
    error: str | None = None
    result: AggregateResult | None = None


@dataclass(frozen=True)
class DeleteProductResponse:
    """Caller-facing result of ``delete_product``.

    Attributes:
        deleted_item: Id, name and category of the removed product plus the
            deletion time
    """

    success: bool
    deleted_item: dict[str, Any] | None = None
    message: str | None = None
    error: str | None = None
    result: AggregateResult | None = None


def product_key(product_id: str) -> CompositeKey:
    return CompositeKey.of("PRODUCT", product_id, "METADATA", product_id)


def validate_product_id(product_id: str) -> None:
    if not product_id or not product_id.strip():
        raise BatchValidationError("Invalid product ID format", field="product_id")


def _failure_message(result: AggregateResult) -> str:
    return result.error or result.unprocessed[0].message


async def get_product(
    store: KeyValueStore,
    product_id: str,
    config: BatchConfig | None = None,
) -> ProductResponse:
    """Fetch one product by id."""
    try:
        validate_product_id(product_id)
    except BatchValidationError as e:
        return ProductResponse(success=False, error=str(e))

    result = await BatchRunner(store, config).get(
        [ReadKey(key=product_key(product_id), category=PRODUCT_CATEGORY)]
    )
    if not result.success:
        return ProductResponse(success=False, error=_failure_message(result), result=result)

    data = result.completed[0].data
    if data is None:
        return ProductResponse(
            success=False, error=f"Product {product_id} not found", result=result
        )
    return ProductResponse(success=True, item=dict(data), result=result)


async def create_product(
    store: KeyValueStore,
    product: Product,
    policy: RetryPolicy | None = None,
    config: BatchConfig | None = None,
) -> ProductResponse:
    """Create a product unless one with the same id already exists.

    Args:
        store: Store to write to
        product: Validated product fields
        policy: Retry policy override for this write
        config: Engine configuration

    Returns:
        ProductResponse with the stored item on success
    """
    item = WriteItem(
        key=product_key(product.product_id),
        payload=product.to_attributes(datetime.now(UTC).isoformat()),
        category=PRODUCT_CATEGORY,
    )
    result = await BatchRunner(store, config).put_if_absent(item, policy=policy)

    if result.success:
        data = result.completed[0].data
        return ProductResponse(
            success=True,
            item=dict(data) if data is not None else None,
            message="Product created successfully",
            result=result,
        )
    if result.unprocessed[0].reason is TerminalReason.CONDITION_FAILED:
        return ProductResponse(success=False, error=PRODUCT_EXISTS, result=result)
    return ProductResponse(success=False, error=_failure_message(result), result=result)


async def delete_product(
    store: KeyValueStore,
    product_id: str,
    policy: RetryPolicy | None = None,
    config: BatchConfig | None = None,
) -> DeleteProductResponse:
    """Delete a product, returning a summary of what was removed.

    Args:
        store: Store holding the product
        product_id: Product to delete
        policy: Retry policy override for this write
        config: Engine configuration

    Returns:
        DeleteProductResponse; a missing product is an error, not a no-op
    """
    try:
        validate_product_id(product_id)
    except BatchValidationError as e:
        return DeleteProductResponse(success=False, error=str(e))

    result = await BatchRunner(store, config).delete_if_exists(
        product_key(product_id), category=PRODUCT_CATEGORY, policy=policy
    )

    if result.success:
        old = result.completed[0].data or {}
        deleted = {
            "productId": old.get("productId", product_id),
            "name": old.get("name"),
            "category": old.get("category"),
            "deletedAt": datetime.now(UTC).isoformat(),
        }
        return DeleteProductResponse(
            success=True, deleted_item=deleted, message=PRODUCT_DELETED, result=result
        )
    if result.unprocessed[0].reason is TerminalReason.CONDITION_FAILED:
        return DeleteProductResponse(success=False, error=PRODUCT_MISSING, result=result)
    return DeleteProductResponse(
        success=False, error=f"Failed to delete product: {_failure_message(result)}", result=result
    )
