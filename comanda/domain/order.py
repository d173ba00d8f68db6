"""
Order Domain Models

Represents order-related entities in the Comanda system.
These are the single source of truth for order data structure.

Author: TM3
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from comanda.utils.formatting import format_price


class OrderLine(BaseModel):
    """
    A single order_items row as shown inside an aggregation group

    Fields:
        id: Order item ID
        is_takeaway: Whether the line is packed to go
        payment_option_id: Payment option chosen for the line
    """

    id: int = Field(..., description="Order item ID")
    is_takeaway: bool = Field(False, description="Take-away flag")
    payment_option_id: Optional[int] = Field(None, description="Payment option ID")

    model_config = ConfigDict(from_attributes=True)


class OrderProductGroup(BaseModel):
    """
    Order lines of one product at one unit price

    `price` is the unit price captured when the line was ordered, so
    later catalog price changes do not rewrite historical orders.
    """

    product_id: str = Field(..., description="Product ID")
    name: str = Field(..., description="Product name")
    price: int = Field(..., description="Unit price snapshot in cents", ge=0)
    items: List[OrderLine] = Field(default_factory=list, description="Order lines")

    model_config = ConfigDict(from_attributes=True)

    @property
    def quantity(self) -> int:
        return len(self.items)

    @property
    def subtotal(self) -> int:
        return self.price * self.quantity


class Order(BaseModel):
    """
    Order domain model - represents an order header

    Fields:
        id: Internal order ID
        position: Ticket/table number shown to staff
        total: Order total in cents (computed by the database)
        created: When the order was opened
        updated: Last update timestamp
        closed: When the order was closed, None while open
        deleted: Soft-delete timestamp
    """

    id: str = Field(..., description="Order ID")
    tenant_id: Optional[str] = Field(None, description="Owning tenant")
    position: Optional[int] = Field(None, description="Ticket position")
    total: int = Field(0, description="Total in cents")
    created: datetime = Field(..., description="Creation timestamp")
    updated: Optional[datetime] = Field(None, description="Last update timestamp")
    closed: Optional[datetime] = Field(None, description="Closing timestamp")
    deleted: Optional[datetime] = Field(None, description="Soft-delete timestamp")

    model_config = ConfigDict(from_attributes=True)

    @property
    def is_closed(self) -> bool:
        return self.closed is not None

    def to_dict(self) -> dict:
        """Convert to JSON-ready dictionary with computed fields"""
        data = self.model_dump(mode="json")
        data['is_closed'] = self.is_closed
        data['total_formatted'] = format_price(self.total)
        return data


class OrderItemsView(Order):
    """
    Aggregation view: order header plus its lines grouped per product

    Read-only composition, not a persisted entity.
    """

    products: List[OrderProductGroup] = Field(default_factory=list, description="Lines grouped by product")

    @property
    def item_count(self) -> int:
        """Total number of order lines"""
        return sum(group.quantity for group in self.products)

    def to_dict(self) -> dict:
        data = super().to_dict()
        data['item_count'] = self.item_count
        for group, group_data in zip(self.products, data['products']):
            group_data['quantity'] = group.quantity
            group_data['subtotal'] = group.subtotal
        return data
