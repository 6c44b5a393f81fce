import asyncio
import logging
from contextlib import asynccontextmanager
from typing import List, NamedTuple, Optional

from orderdesk.models.schemas import Order, OrderStatus, can_transition
from orderdesk.services import orders_service
from orderdesk.services.realtime import ChangeEvent, RealtimeFeed
from orderdesk.views.toasts import Toaster

logger = logging.getLogger(__name__)


class Action(NamedTuple):
    label: str
    target: OrderStatus


STATUS_ACTIONS = {
    OrderStatus.PENDING: (
        Action("Process", OrderStatus.PROCESSING),
        Action("Cancel", OrderStatus.CANCELLED),
    ),
    OrderStatus.PROCESSING: (Action("Complete", OrderStatus.COMPLETED),),
}


class OrderListView:
    def __init__(self, client, status: Optional[OrderStatus] = None, show_actions: bool = True,
                 toaster: Optional[Toaster] = None):
        self.client = client
        self.status = status
        self.show_actions = show_actions
        self.toaster = toaster if toaster is not None else Toaster()
        self.orders: List[Order] = []
        self.loading = False

    @property
    def status_filter(self) -> OrderStatus:
        return self.status or OrderStatus.PENDING

    async def fetch(self):
        self.loading = True
        try:
            self.orders = await orders_service.fetch_orders(self.client, self.status_filter)
        except Exception as e:
            logger.error(f"Error fetching orders: {e}")
            self.toaster.error("Failed to fetch orders")
        finally:
            self.loading = False

    async def update_status(self, order_id: str, status: OrderStatus,
                            current: Optional[OrderStatus] = None, refresh: bool = True) -> bool:
        try:
            if current is not None and not can_transition(current, status):
                raise ValueError(f"cannot move order {order_id} from {current.value} to {status.value}")
            await orders_service.update_order_status(self.client, order_id, status)
        except Exception as e:
            logger.error(f"Error updating order: {e}")
            self.toaster.error("Failed to update order status")
            return False

        self.toaster.success(f"Order {order_id} marked as {status.value}")
        if refresh:
            await self.fetch()
        return True

    def actions_for(self, order: Order) -> List[Action]:
        if not self.show_actions:
            return []
        return list(STATUS_ACTIONS.get(order.status, ()))

    @asynccontextmanager
    async def live(self, feed: RealtimeFeed):
        """Yield a queue that receives every change on the orders table.

        Every event counts, whatever status it touches; callers re-fetch once
        per item.
        """
        changes: asyncio.Queue = asyncio.Queue()
        subscription = await feed.subscribe(
            orders_service.ORDERS_TABLE,
            ChangeEvent.ALL,
            changes.put_nowait,
        )
        try:
            yield changes
        finally:
            await subscription.unsubscribe()
