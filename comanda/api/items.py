"""
Items API Endpoints
Legacy todo/shopping list

Author: TM3
"""
import logging

from fastapi import APIRouter, HTTPException

from comanda.repositories.item_repository import ItemRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_items():
    try:
        repo = ItemRepository()
        return [item.model_dump(mode="json") for item in repo.get_all_items()]

    except Exception:
        logger.exception("Error fetching items")
        raise HTTPException(status_code=500, detail="Failed to fetch items")
