import logging
from typing import Optional

from orderdesk.core.config import Settings
from orderdesk.db.supabase import ClientFactory
from orderdesk.services.notifications import WebPushNotifier, setup_notifications
from orderdesk.services.realtime import ChannelSubscription
from orderdesk.services.session import SessionRegistry

logger = logging.getLogger(__name__)


class AppContext:
    """Process-wide state, created at startup and passed to routes explicitly."""

    def __init__(self, settings: Settings, client_factory: ClientFactory):
        self.settings = settings
        self.sessions = SessionRegistry(client_factory)
        self.notifier = WebPushNotifier(settings)
        self.notification_subscription: Optional[ChannelSubscription] = None

    async def start(self):
        store = None
        if self.settings.NOTIFIER_EMAIL and self.settings.NOTIFIER_PASSWORD:
            try:
                _, store = await self.sessions.login(self.settings.NOTIFIER_EMAIL, self.settings.NOTIFIER_PASSWORD)
            except Exception as e:
                logger.error(f"Notifier account could not sign in: {e}")
        try:
            self.notification_subscription = await setup_notifications(self.notifier, store)
        except Exception as e:
            logger.error(f"Could not subscribe to new orders: {e}")

    async def close(self):
        if self.notification_subscription is not None:
            try:
                await self.notification_subscription.unsubscribe()
            except Exception as e:
                logger.warning(f"Failed to remove notification channel: {e}")
            self.notification_subscription = None
        await self.sessions.close()
