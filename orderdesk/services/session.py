import logging
import secrets
from contextlib import contextmanager
from typing import Callable, Dict, Optional, Tuple

from orderdesk.db.supabase import ClientFactory

logger = logging.getLogger(__name__)


class SessionStore:
    """Auth state of a single staff login, backed by its own Supabase client."""

    def __init__(self, client):
        self.client = client

    async def sign_in(self, email: str, password: str):
        res = await self.client.auth.sign_in_with_password({"email": email, "password": password})
        if res.session is None:
            raise RuntimeError("Invalid login credentials")
        return res.session

    async def get_session(self):
        return await self.client.auth.get_session()

    async def get_user(self):
        session = await self.get_session()
        return session.user if session else None

    def on_change(self, callback: Callable):
        """Subscribe to auth-state changes. The returned handle has unsubscribe()."""
        return self.client.auth.on_auth_state_change(callback)

    @contextmanager
    def subscribed(self, callback: Callable):
        subscription = self.on_change(callback)
        try:
            yield subscription
        finally:
            subscription.unsubscribe()

    async def sign_out(self):
        await self.client.auth.sign_out()
        await self.client.remove_all_channels()


class SessionRegistry:
    """One SessionStore per browser login, keyed by the session cookie."""

    def __init__(self, client_factory: ClientFactory):
        self._client_factory = client_factory
        self._stores: Dict[str, SessionStore] = {}

    async def login(self, email: str, password: str) -> Tuple[str, SessionStore]:
        store = SessionStore(await self._client_factory())
        await store.sign_in(email, password)
        sid = secrets.token_urlsafe(32)
        self._stores[sid] = store
        logger.info(f"Staff member {email} signed in")
        return sid, store

    def get(self, sid: Optional[str]) -> Optional[SessionStore]:
        if not sid:
            return None
        return self._stores.get(sid)

    async def logout(self, sid: Optional[str]):
        store = self._stores.pop(sid, None) if sid else None
        if store is not None:
            await store.sign_out()

    async def drop(self, sid: Optional[str]):
        """Forget a login whose session is gone and release its client."""
        store = self._stores.pop(sid, None) if sid else None
        if store is None:
            return
        try:
            await store.sign_out()
        except Exception as e:
            logger.warning(f"Releasing a stale session failed: {e}")

    def __len__(self):
        return len(self._stores)

    async def close(self):
        while self._stores:
            sid, store = self._stores.popitem()
            try:
                await store.sign_out()
            except Exception as e:
                logger.warning(f"Sign-out during shutdown failed: {e}")
