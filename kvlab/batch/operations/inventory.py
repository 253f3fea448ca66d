"""Conditional stock update for a single product."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime
from typing import Any

from ..config import BatchConfig, RetryPolicy
from ..core.enums import TerminalReason
from ..core.exceptions import BatchValidationError
from ..models.inventory import UpdateStockRequest
from ..runtime.batching import AggregateResult, BatchRunner, Mutation, Predicate
from ..stores.base import KeyValueStore
from .products import product_key, validate_product_id

STOCK_ATTRIBUTE = "stock"
INVENTORY_CATEGORY = "inventory"
INSUFFICIENT_STOCK = "Insufficient stock available"


@dataclass(frozen=True)
class InventoryResponse:
    """Caller-facing result of ``update_inventory``."""

    success: bool
    stock: int | None = None
    item: dict[str, Any] | None = None
    error: str | None = None
    result: AggregateResult | None = None


def validate_stock_request(request: UpdateStockRequest) -> None:
    validate_product_id(request.product_id)
    if request.quantity <= 0:
        raise BatchValidationError("Quantity must be a positive integer", field="quantity")


async def update_inventory(
    store: KeyValueStore,
    request: UpdateStockRequest,
    policy: RetryPolicy | None = None,
    config: BatchConfig | None = None,
) -> InventoryResponse:
    """Add or subtract stock, never letting it drop below zero.

    The change is a single conditional write: the store applies the signed
    delta only if the resulting stock is non-negative. A failed condition is
    reported as insufficient stock and is not retried unless ``policy`` says
    otherwise.

    Args:
        store: Store holding the product
        request: Product id, quantity and direction
        policy: Retry policy override for this write
        config: Engine configuration

    Returns:
        InventoryResponse with the new stock level on success
    """
    try:
        validate_stock_request(request)
    except BatchValidationError as e:
        return InventoryResponse(success=False, error=str(e))

    mutation = Mutation(
        attribute=STOCK_ATTRIBUTE,
        delta=request.delta,
        set_values={
            "lastUpdated": datetime.now(UTC).isoformat(),
            "updatedBy": request.updated_by,
        },
    )
    result = await BatchRunner(store, config).apply(
        product_key(request.product_id),
        mutation,
        Predicate(attribute=STOCK_ATTRIBUTE, minimum=0),
        category=INVENTORY_CATEGORY,
        policy=policy,
    )

    if result.success:
        data = result.completed[0].data
        item = dict(data) if data is not None else None
        stock = int(item[STOCK_ATTRIBUTE]) if item and STOCK_ATTRIBUTE in item else None
        return InventoryResponse(success=True, stock=stock, item=item, result=result)

    failure = result.unprocessed[0]
    if failure.reason is TerminalReason.CONDITION_FAILED:
        error = INSUFFICIENT_STOCK
    else:
        error = result.error or failure.message
    return InventoryResponse(success=False, error=error, result=result)
