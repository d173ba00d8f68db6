"""
Products API Endpoints
Menu/catalog queries for the session tenant

Author: TM3
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from comanda.core.auth import SessionPayload, get_tenant_session
from comanda.repositories.product_repository import ProductRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_products(
    search: Optional[str] = Query(None, description="Search by name"),
    tags: Optional[str] = Query(None, description="Comma separated tags, all must match"),
    session: SessionPayload = Depends(get_tenant_session),
):
    """Get products of the session tenant, newest first"""
    tag_list = [tag.strip() for tag in tags.split(",") if tag.strip()] if tags else None

    try:
        repo = ProductRepository()
        products = repo.find_all(session.tenant_id, search=search, tags=tag_list)
        return [product.to_dict() for product in products]

    except Exception:
        logger.exception(f"Error fetching products for tenant {session.tenant_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch products")
