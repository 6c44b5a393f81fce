"""
In-memory stand-ins for the Supabase client: tables, auth and realtime.
"""

import copy
import itertools
from types import SimpleNamespace

import pytest
from fastapi.testclient import TestClient

from orderdesk.core.config import Settings
from orderdesk.main import create_app

STAFF_EMAIL = "staff@grocer.test"
STAFF_PASSWORD = "fresh-produce"


class FakeAPIError(Exception):
    pass


class FakeAuthError(Exception):
    pass


def make_order(order_id, status, created_at, items=None, **extra):
    row = {
        "id": order_id,
        "status": status,
        "total_amount": extra.pop("total_amount", 10.0),
        "delivery_address": extra.pop("delivery_address", "12 Market Street"),
        "created_at": created_at,
        "phone_number": extra.pop("phone_number", "555-0100"),
        "customer_name": extra.pop("customer_name", "Ada Shopper"),
        "order_items": items if items is not None else [],
    }
    row.update(extra)
    return row


def make_item(item_id, quantity, price, name="Apples", product_id="p1"):
    return {
        "id": item_id,
        "quantity": quantity,
        "product": {"id": product_id, "name": name, "price": price, "image_url": f"https://img.test/{product_id}.png"},
    }


class FakeResponse:
    def __init__(self, data):
        self.data = data


class FakeQuery:
    def __init__(self, backend, table):
        self.backend = backend
        self.table = table
        self.op = "select"
        self.columns = "*"
        self.values = None
        self.filters = []
        self.ordering = None

    def select(self, columns="*"):
        self.columns = columns
        return self

    def update(self, values):
        self.op = "update"
        self.values = values
        return self

    def eq(self, column, value):
        self.filters.append((column, value))
        return self

    def order(self, column, desc=False):
        self.ordering = (column, desc)
        return self

    def _matches(self, row):
        return all(str(row.get(column)) == str(value) for column, value in self.filters)

    async def execute(self):
        rows = self.backend.tables.setdefault(self.table, [])
        matched = [row for row in rows if self._matches(row)]
        if self.op == "select":
            self.backend.selects += 1
            if self.backend.fail_select:
                raise FakeAPIError("connection reset")
            if self.ordering:
                column, desc = self.ordering
                matched.sort(key=lambda row: row[column], reverse=desc)
            return FakeResponse(copy.deepcopy(matched))

        if self.backend.fail_update:
            raise FakeAPIError("permission denied for table orders")
        self.backend.updates.append((self.table, dict(self.values), list(self.filters)))
        for row in matched:
            row.update(self.values)
            self.backend.emit(self.table, "UPDATE", row)
        return FakeResponse(copy.deepcopy(matched))


class FakeSubscription:
    def __init__(self, auth, callback):
        self.auth = auth
        self.callback = callback

    def unsubscribe(self):
        if self in self.auth.listeners:
            self.auth.listeners.remove(self)


class FakeAuth:
    _ids = itertools.count(1)

    def __init__(self, backend):
        self.backend = backend
        self.session = None
        self.listeners = []

    def _notify(self, event):
        for sub in list(self.listeners):
            sub.callback(event, self.session)

    async def sign_in_with_password(self, credentials):
        email = credentials["email"]
        if self.backend.users.get(email) != credentials["password"]:
            raise FakeAuthError("Invalid login credentials")
        user = SimpleNamespace(id=f"user-{next(self._ids)}", email=email)
        self.session = SimpleNamespace(user=user, access_token=f"token-{user.id}")
        self._notify("SIGNED_IN")
        return SimpleNamespace(user=user, session=self.session)

    async def get_session(self):
        return self.session

    def on_auth_state_change(self, callback):
        sub = FakeSubscription(self, callback)
        self.listeners.append(sub)
        return sub

    async def sign_out(self):
        self.expire()

    def expire(self):
        self.session = None
        self._notify("SIGNED_OUT")


class FakeChannel:
    def __init__(self, name):
        self.name = name
        self.handlers = []
        self.subscribed = False

    def on_postgres_changes(self, event, callback=None, table="*", schema="public", filter=None):
        self.handlers.append((event, table, callback))
        return self

    async def subscribe(self, callback=None):
        self.subscribed = True
        return self

    def deliver(self, table, event_type, row):
        if not self.subscribed:
            return
        for event, handler_table, callback in self.handlers:
            if handler_table in ("*", table) and event in ("*", event_type):
                callback({"schema": "public", "table": table, "eventType": event_type,
                          "new": copy.deepcopy(row), "old": {}})


class FakeClient:
    def __init__(self, backend):
        self.backend = backend
        self.auth = FakeAuth(backend)
        self.channels = {}

    def table(self, name):
        return FakeQuery(self.backend, name)

    def channel(self, name):
        channel = FakeChannel(name)
        self.channels[name] = channel
        return channel

    async def remove_channel(self, channel):
        channel.subscribed = False
        self.channels.pop(channel.name, None)

    async def remove_all_channels(self):
        for channel in list(self.channels.values()):
            await self.remove_channel(channel)


class FakeBackend:
    def __init__(self):
        self.tables = {"orders": []}
        self.users = {STAFF_EMAIL: STAFF_PASSWORD}
        self.clients = []
        self.updates = []
        self.selects = 0
        self.fail_select = False
        self.fail_update = False

    async def factory(self):
        client = FakeClient(self)
        self.clients.append(client)
        return client

    def emit(self, table, event_type, row):
        for client in self.clients:
            for channel in list(client.channels.values()):
                channel.deliver(table, event_type, row)

    def insert(self, table, row):
        self.tables.setdefault(table, []).append(row)
        self.emit(table, "INSERT", row)

    def open_channels(self):
        return [name for client in self.clients for name in client.channels]


@pytest.fixture
def backend():
    b = FakeBackend()
    b.tables["orders"] = [
        make_order("41", "pending", "2024-05-01T09:00:00+00:00",
                   [make_item("i1", 3, 2.5, "Bananas", "p1")]),
        make_order("42", "pending", "2024-05-02T09:30:00+00:00",
                   [make_item("i2", 1, 9.999, "Olive Oil", "p2")], customer_name="Grace Buyer"),
        make_order("43", "processing", "2024-05-01T12:00:00+00:00",
                   [make_item("i3", 2, 4.0, "Bread", "p3")]),
        make_order("44", "completed", "2024-04-30T08:00:00+00:00"),
        make_order("45", "cancelled", "2024-04-29T08:00:00+00:00"),
    ]
    return b


@pytest.fixture
def settings():
    s = Settings()
    s.SUPABASE_URL = None
    s.SUPABASE_ANON_KEY = None
    s.COOKIE_SECURE = False
    s.DISPLAY_TIMEZONE = "UTC"
    s.VAPID_PUBLIC_KEY = None
    s.VAPID_PRIVATE_KEY = None
    s.NOTIFICATION_PERMISSION = "default"
    s.NOTIFIER_EMAIL = None
    s.NOTIFIER_PASSWORD = None
    return s


@pytest.fixture
def client(settings, backend):
    app = create_app(settings, backend.factory)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def staff_client(client):
    response = client.post("/login", data={"email": STAFF_EMAIL, "password": STAFF_PASSWORD})
    assert response.status_code == 200
    return client
