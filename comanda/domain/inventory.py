"""
Inventory Domain Models

Categories, inventory items and the transaction ledger.

The ledger is append-only: an item's stock is the sum of the signed
deltas of its transactions, and transactions are never edited.

Author: TM3
"""
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict, Field


class TransactionType(str, Enum):
    IN = "IN"
    OUT = "OUT"


class Category(BaseModel):
    """Category domain model - groups inventory items"""

    id: str = Field(..., description="Category ID")
    name: str = Field(..., description="Display name")
    tenant_id: Optional[str] = Field(None, description="Owning tenant")
    created: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)


class Transaction(BaseModel):
    """
    Transaction domain model - one entry in the inventory ledger

    Fields:
        id: Surrogate ledger ID (insertion order)
        item_id: Inventory item this entry belongs to
        type: IN adds stock, OUT removes it
        price: Price paid/charged for the movement (decimal amount)
        quantity: Unsigned amount moved
        quantity_type_value: Unit of the quantity (kg, pza, lt...)
        created: When the movement was recorded
    """

    id: int = Field(..., description="Ledger entry ID")
    item_id: str = Field(..., description="Inventory item ID")
    type: TransactionType = Field(..., description="IN or OUT")
    price: Decimal = Field(Decimal("0"), description="Price of the movement")
    quantity: float = Field(..., description="Quantity moved", ge=0)
    quantity_type_value: Optional[str] = Field(None, description="Unit of quantity")
    created: datetime = Field(..., description="Recorded at")

    model_config = ConfigDict(from_attributes=True)

    @property
    def delta(self) -> float:
        """Signed stock change"""
        return self.quantity if self.type == TransactionType.IN else -self.quantity


def stock_level(transactions: Iterable[Transaction]) -> float:
    """Current stock implied by a sequence of ledger entries"""
    return sum(t.delta for t in transactions)


class InventoryItem(BaseModel):
    """
    Inventory item domain model

    `stock` is computed from the ledger by the repository query.
    """

    id: str = Field(..., description="Inventory item ID")
    name: str = Field(..., description="Item name")
    status: str = Field("pending", description="pending or completed")
    quantity_type_key: Optional[str] = Field(None, description="Unit family of the item")
    min_stock: Optional[float] = Field(None, description="Low stock threshold")
    stock: float = Field(0, description="Sum of ledger deltas")
    created: Optional[datetime] = Field(None, description="Creation timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_low_stock(self) -> bool:
        """Check if stock dropped below the configured minimum"""
        return self.min_stock is not None and self.stock < self.min_stock

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data['is_low_stock'] = self.is_low_stock
        return data


class TodoItem(BaseModel):
    """Legacy shopping/todo list entry served by /items"""

    id: str
    name: str
    status: str = "pending"
    created: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
