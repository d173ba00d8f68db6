"""
Orders API Endpoints
Order listing and the per-order aggregation view

Author: TM3
"""
import logging
from datetime import date as date_type
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from comanda.core.auth import SessionPayload, get_tenant_session
from comanda.repositories.order_repository import OrderRepository

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("")
async def get_orders(
    date: Optional[date_type] = Query(None, description="Day to list (YYYY-MM-DD), defaults to today"),
    status: Optional[str] = Query(None, description="Filter by status: opened or closed"),
    session: SessionPayload = Depends(get_tenant_session),
):
    """
    Get orders of the session tenant

    Only orders with at least one line are listed, newest first.
    """
    if status and status not in ("opened", "closed"):
        raise HTTPException(status_code=400, detail="status must be 'opened' or 'closed'")

    try:
        repo = OrderRepository()
        orders = repo.find_all(
            session.tenant_id,
            date=date.isoformat() if date else None,
            status=status,
        )
        return [order.to_dict() for order in orders]

    except Exception:
        logger.exception(f"Error fetching orders for tenant {session.tenant_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch orders")


@router.get("/{order_id}")
async def get_order(order_id: str):
    """
    Get one order with its lines grouped per product and unit price

    Missing orders and storage failures both answer 500.
    """
    try:
        repo = OrderRepository()
        view = repo.get_order_items_view(order_id)
        return view.to_dict()

    except Exception:
        logger.exception(f"Error fetching order {order_id}")
        raise HTTPException(status_code=500, detail="Failed to fetch order")
