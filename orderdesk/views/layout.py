import asyncio
from enum import Enum
from typing import Optional

from orderdesk.services.session import SessionStore


class LayoutState(str, Enum):
    LOADING = "loading"
    UNAUTHENTICATED = "unauthenticated"
    AUTHENTICATED = "authenticated"


class ProtectedLayout:
    """Gate for every staff page.

    Used as ``async with ProtectedLayout(store) as layout``: entering resolves
    the session once and listens for auth changes until the block exits,
    however it exits.
    """

    def __init__(self, store: Optional[SessionStore]):
        self.store = store
        self.state = LayoutState.LOADING
        self.user = None
        self.signed_out = asyncio.Event()
        self._subscription = None

    @property
    def authenticated(self) -> bool:
        return self.state is LayoutState.AUTHENTICATED

    async def __aenter__(self):
        if self.store is None:
            self._apply(None)
            return self
        self._apply(await self.store.get_session())
        self._subscription = self.store.on_change(self._on_auth_change)
        return self

    async def __aexit__(self, exc_type, exc, tb):
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        return False

    def _on_auth_change(self, event, session):
        self._apply(session)

    def _apply(self, session):
        self.user = session.user if session else None
        if self.user:
            self.state = LayoutState.AUTHENTICATED
            self.signed_out.clear()
        else:
            self.state = LayoutState.UNAUTHENTICATED
            self.signed_out.set()
