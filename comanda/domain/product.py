"""
Product Domain Model

Represents a sellable product of a tenant's menu/catalog.

Author: TM3
"""
from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from comanda.utils.formatting import format_price


class Product(BaseModel):
    """
    Product domain model

    Fields:
        id: Internal product ID
        tenant_id: Owning tenant
        name: Product name
        price: Current catalog price in cents
        tags: Free-form labels used for filtering
        created: Creation timestamp
        updated: Last update timestamp
    """

    id: str = Field(..., description="Product ID")
    tenant_id: Optional[str] = Field(None, description="Owning tenant")
    name: str = Field(..., description="Product name")
    price: int = Field(..., description="Price in cents", ge=0)
    tags: List[str] = Field(default_factory=list, description="Tags")
    created: Optional[datetime] = Field(None, description="Creation timestamp")
    updated: Optional[datetime] = Field(None, description="Last update timestamp")

    model_config = ConfigDict(from_attributes=True)

    @field_validator("tags", mode="before")
    @classmethod
    def _split_tags(cls, value):
        # Older rows store tags as a comma separated string
        if value is None:
            return []
        if isinstance(value, str):
            return [tag.strip() for tag in value.split(",") if tag.strip()]
        return value

    def to_dict(self) -> dict:
        data = self.model_dump(mode="json")
        data['price_formatted'] = format_price(self.price)
        return data
