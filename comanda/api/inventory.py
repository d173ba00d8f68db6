"""
Inventory API Endpoints
Categories, inventory items and the transaction ledger

Author: TM3
"""
import logging
from typing import Optional

from fastapi import APIRouter, HTTPException, Query

from comanda.repositories.inventory_repository import InventoryRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/categories")
async def get_categories():
    """Get all categories"""
    try:
        repo = InventoryRepository()
        categories = repo.get_categories()
        return [category.model_dump(mode="json") for category in categories]

    except Exception:
        logger.exception("Error fetching categories")
        raise HTTPException(status_code=500, detail="Failed to fetch categories")


@router.get("/items")
async def get_inventory_items(
    category: Optional[str] = Query(None, description="Filter by category ID"),
):
    """
    Get inventory items with their current stock

    Stock is computed from the transaction ledger.
    """
    try:
        repo = InventoryRepository()
        items = repo.get_items(category=category)
        return [item.to_dict() for item in items]

    except Exception:
        logger.exception(f"Error fetching inventory items (category={category})")
        raise HTTPException(status_code=500, detail="Failed to fetch items")


@router.get("/transactions")
async def get_transactions(
    item_id: Optional[str] = Query(None, alias="itemId", description="Inventory item ID"),
):
    """
    Get the ledger of one inventory item in chronological order

    An item without transactions returns an empty list.
    """
    if not item_id:
        raise HTTPException(status_code=400, detail="Missing itemId")

    try:
        repo = InventoryRepository()
        transactions = repo.get_transactions(item_id)
        return [transaction.model_dump(mode="json") for transaction in transactions]

    except Exception:
        logger.exception(f"Error fetching transactions for item {item_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch transactions")
