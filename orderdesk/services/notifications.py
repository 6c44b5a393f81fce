# Desktop notifications for new orders, delivered over Web Push.

import asyncio
import json
import logging
from enum import Enum
from typing import Any, Dict, Optional

from pywebpush import WebPushException, webpush

from orderdesk.core.config import Settings
from orderdesk.services.orders_service import ORDERS_TABLE
from orderdesk.services.realtime import ChangeEvent, ChannelSubscription, RealtimeFeed
from orderdesk.utils import format_money

logger = logging.getLogger(__name__)

NEW_ORDER_TITLE = "New Order Received!"


class NotificationPermission(str, Enum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


def parse_permission(value: Optional[str]) -> NotificationPermission:
    try:
        return NotificationPermission((value or "").strip().lower())
    except ValueError:
        logger.warning(f"Unknown NOTIFICATION_PERMISSION {value!r}, using 'default'")
        return NotificationPermission.DEFAULT


def build_message_data(title: str, body: str, icon: Optional[str] = None, url: str = "/") -> str:
    payload = {"title": title, "body": body, "url": url}
    if icon:
        payload["icon"] = icon
        payload["badge"] = icon
    return json.dumps(payload)


class WebPushNotifier:
    def __init__(self, settings: Settings):
        self.public_key = settings.VAPID_PUBLIC_KEY
        self._private_key = settings.VAPID_PRIVATE_KEY
        self._claims = {"sub": f"mailto:{settings.VAPID_CLAIMS_EMAIL}"}
        self.icon = settings.NOTIFICATION_ICON
        self.permission = parse_permission(settings.NOTIFICATION_PERMISSION)
        self._subscriptions: Dict[str, Dict[str, Any]] = {}

    @property
    def supported(self) -> bool:
        return bool(self.public_key and self._private_key)

    @property
    def subscriptions(self):
        return list(self._subscriptions.values())

    def register(self, subscription_info: Dict[str, Any]):
        self._subscriptions[subscription_info["endpoint"]] = subscription_info

    async def request_permission(self) -> NotificationPermission:
        # no prompt on the server side: undetermined resolves by capability
        if self.permission is NotificationPermission.DEFAULT:
            self.permission = (
                NotificationPermission.GRANTED if self.supported else NotificationPermission.DENIED
            )
        return self.permission

    async def show(self, title: str, body: str, icon: Optional[str] = None, url: str = "/") -> int:
        """Push a notification to every registered browser. Returns the delivery count."""
        message_data = build_message_data(title, body, icon, url)
        delivered = 0
        for endpoint, info in list(self._subscriptions.items()):
            try:
                await asyncio.to_thread(
                    webpush,
                    subscription_info=info,
                    data=message_data,
                    vapid_private_key=self._private_key,
                    vapid_claims=dict(self._claims),
                )
                delivered += 1
            except WebPushException as ex:
                status = getattr(ex.response, "status_code", None)
                if status in (404, 410):
                    self._subscriptions.pop(endpoint, None)
                    logger.info(f"Dropped expired push subscription {endpoint}")
                else:
                    logger.warning(f"Web push to {endpoint} failed: {ex}")
        return delivered

    async def notify_new_order(self, order: Dict[str, Any]) -> int:
        body = f"Order #{order.get('id')} - {format_money(order.get('total_amount') or 0)}"
        return await self.show(NEW_ORDER_TITLE, body, icon=self.icon, url="/")


async def setup_notifications(notifier: WebPushNotifier, store) -> Optional[ChannelSubscription]:
    """Subscribe the notifier to new orders for the lifetime of the app.

    Returns the realtime subscription, or None when notifications stay off.
    Calling this twice subscribes twice.
    """
    if not notifier.supported:
        logger.info("Web push is not configured; notifications disabled.")
        return None

    user = await store.get_user() if store is not None else None
    if not user:
        logger.info("User is not logged in. Notifications disabled.")
        return None

    permission = notifier.permission
    if permission is NotificationPermission.DEFAULT:
        permission = await notifier.request_permission()

    if permission is not NotificationPermission.GRANTED:
        logger.info(f"Notification permission is {permission.value}; not subscribing.")
        return None

    feed = RealtimeFeed(store.client)
    return await feed.subscribe(ORDERS_TABLE, ChangeEvent.INSERT, notifier.notify_new_order, name="orders:new")
