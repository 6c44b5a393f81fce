from typing import Awaitable, Callable

from supabase import AsyncClient, acreate_client

from orderdesk.core.config import Settings

ClientFactory = Callable[[], Awaitable[AsyncClient]]


def client_factory(settings: Settings) -> ClientFactory:
    """Return a coroutine function that opens a fresh Supabase client.

    Every staff login gets its own client so auth state, row-level security
    and realtime authorization never leak between sessions.
    """
    async def create() -> AsyncClient:
        if not settings.SUPABASE_URL or not settings.SUPABASE_ANON_KEY:
            raise RuntimeError("Supabase URL/Key not configured. See .env")
        return await acreate_client(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY)

    return create
