import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException

from orderdesk.api.deps import require_session
from orderdesk.models.schemas import Order, OrderStatus, StatusUpdate
from orderdesk.services.orders_service import fetch_orders, update_order_status

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/", response_model=List[Order])
async def list_orders(status: Optional[OrderStatus] = None, store=Depends(require_session)):
    try:
        return await fetch_orders(store.client, status or OrderStatus.PENDING)
    except Exception as e:
        logger.error(f"Error fetching orders: {e}")
        raise HTTPException(status_code=502, detail="Failed to fetch orders")


@router.patch("/{order_id}")
async def set_status(order_id: str, payload: StatusUpdate, store=Depends(require_session)):
    try:
        await update_order_status(store.client, order_id, payload.status)
    except Exception as e:
        logger.error(f"Error updating order: {e}")
        raise HTTPException(status_code=502, detail="Failed to update order status")
    return {"id": order_id, "status": payload.status}
