"""Product and inventory input models."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

StockOperation = Literal["add", "subtract"]


class Product(BaseModel):
    """Product catalog entry as created by ``create_product``.

    Field names are snake_case here; ``to_attributes`` renders the stored
    camelCase attribute names.
    """

    product_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    category: str = Field(..., min_length=1)
    price: float
    stock: int = Field(default=0, ge=0)
    brand: str | None = None

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    def to_attributes(self, last_updated: str) -> dict[str, Any]:
        attributes: dict[str, Any] = {
            "productId": self.product_id,
            "name": self.name,
            "category": self.category,
            "price": self.price,
            "stock": self.stock,
            "lastUpdated": last_updated,
        }
        if self.brand is not None:
            attributes["brand"] = self.brand
        return attributes


class UpdateStockRequest(BaseModel):
    """Request to change a product's stock level.

    Business rules (non-empty id, positive quantity) are checked by
    ``update_inventory`` so violations come back as an error response.
    """

    product_id: str
    quantity: int
    operation: StockOperation
    updated_by: str = "system"

    model_config = ConfigDict(frozen=True, str_strip_whitespace=True)

    @property
    def delta(self) -> int:
        return self.quantity if self.operation == "add" else -self.quantity
