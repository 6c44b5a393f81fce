import logging
from typing import Awaitable, Callable, Optional

from orderdesk.services.session import SessionRegistry, SessionStore

logger = logging.getLogger(__name__)

OnLogin = Callable[[str, SessionStore], Awaitable[None]]


class LoginView:
    def __init__(self, sessions: SessionRegistry, on_login: OnLogin):
        self.sessions = sessions
        self.on_login = on_login
        self.error: Optional[str] = None

    async def submit(self, email: str, password: str) -> bool:
        self.error = None
        try:
            sid, store = await self.sessions.login(email, password)
        except Exception as e:
            logger.warning(f"Login failed for {email}: {e}")
            self.error = str(e) or "Invalid login credentials"
            return False
        await self.on_login(sid, store)
        return True
