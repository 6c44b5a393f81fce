import asyncio
import inspect
import logging
import uuid
from enum import Enum
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)


class ChangeEvent(str, Enum):
    ALL = "*"
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


def changed_row(payload: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the row out of a postgres_changes payload.

    Newer realtime clients hand over {"new": ..., "old": ...}; older ones
    nest the row under data.record.
    """
    if payload.get("new"):
        return payload["new"]
    data = payload.get("data") or payload
    return data.get("record") or data.get("old_record") or payload.get("old") or {}


class ChannelSubscription:
    def __init__(self, client, channel, name: str):
        self._client = client
        self._channel = channel
        self.name = name
        self.active = True

    async def unsubscribe(self):
        if not self.active:
            return
        self.active = False
        await self._client.remove_channel(self._channel)
        logger.debug(f"Realtime channel {self.name} removed")


class RealtimeFeed:
    """Postgres change subscriptions on one Supabase client."""

    def __init__(self, client, schema: str = "public"):
        self._client = client
        self._schema = schema
        self._tasks = set()

    async def subscribe(
        self,
        table: str,
        event: ChangeEvent,
        callback: Callable[[Dict[str, Any]], Any],
        name: Optional[str] = None,
    ) -> ChannelSubscription:
        # channel topics must be unique per client
        name = name or f"{table}:{uuid.uuid4().hex[:8]}"

        def dispatch(payload):
            result = callback(changed_row(payload))
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._tasks.add(task)
                task.add_done_callback(self._finished)

        channel = self._client.channel(name)
        channel.on_postgres_changes(event.value, schema=self._schema, table=table, callback=dispatch)
        await channel.subscribe()
        logger.info(f"Subscribed to {event.value} changes on {table} ({name})")
        return ChannelSubscription(self._client, channel, name)

    def _finished(self, task):
        self._tasks.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error(f"Realtime handler failed: {task.exception()}")
