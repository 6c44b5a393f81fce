from typing import Optional

from fastapi import Depends, HTTPException, status
from starlette.requests import HTTPConnection

from orderdesk.context import AppContext
from orderdesk.services.session import SessionStore


def get_context(conn: HTTPConnection) -> AppContext:
    return conn.app.state.ctx


def get_session_store(conn: HTTPConnection, ctx: AppContext = Depends(get_context)) -> Optional[SessionStore]:
    return ctx.sessions.get(conn.cookies.get(ctx.settings.SESSION_COOKIE))


async def require_session(store: Optional[SessionStore] = Depends(get_session_store)) -> SessionStore:
    if store is None or await store.get_session() is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    return store
