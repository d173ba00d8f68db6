"""
Tags API Endpoints

Author: TM3
"""
import logging

from fastapi import APIRouter, HTTPException

from comanda.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_tags():
    """Get the distinct tags used by products"""
    try:
        repo = ProductRepository()
        return repo.get_unique_tags()

    except Exception:
        logger.exception("Error fetching tags")
        raise HTTPException(status_code=500, detail="Failed to fetch tags")
