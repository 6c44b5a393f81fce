"""
Tests for the order list view: fetch, status updates and the live feed.
"""

import asyncio

import pytest

from orderdesk.models.schemas import Order, OrderStatus, can_transition
from orderdesk.services.realtime import RealtimeFeed
from orderdesk.views.orders import OrderListView

from .conftest import make_order


def run(coro):
    return asyncio.run(coro)


@pytest.fixture
def fake_client(backend):
    return run(backend.factory())


class TestFetch:
    def test_defaults_to_pending(self, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        assert [o.id for o in view.orders] == ["42", "41"]
        assert all(o.status is OrderStatus.PENDING for o in view.orders)
        assert view.loading is False

    @pytest.mark.parametrize("status, expected", [
        (OrderStatus.PENDING, ["42", "41"]),
        (OrderStatus.PROCESSING, ["43"]),
        (OrderStatus.COMPLETED, ["44"]),
        (OrderStatus.CANCELLED, ["45"]),
    ])
    def test_only_orders_with_the_filtered_status(self, fake_client, status, expected):
        view = OrderListView(fake_client, status)
        run(view.fetch())
        assert [o.id for o in view.orders] == expected
        assert {o.status for o in view.orders} <= {status}

    def test_newest_first(self, backend, fake_client):
        backend.tables["orders"].append(make_order("50", "pending", "2024-05-03T00:00:00+00:00"))
        view = OrderListView(fake_client)
        run(view.fetch())
        stamps = [o.created_at for o in view.orders]
        assert stamps == sorted(stamps, reverse=True)
        assert view.orders[0].id == "50"

    def test_fetch_twice_is_identical(self, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        first = [o.model_dump() for o in view.orders]
        run(view.fetch())
        assert [o.model_dump() for o in view.orders] == first

    def test_nested_items_and_products(self, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        order = view.orders[1]
        assert order.order_items[0].product.name == "Bananas"
        assert order.order_items[0].quantity == 3

    def test_failure_keeps_previous_list(self, backend, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        before = list(view.orders)
        backend.fail_select = True
        run(view.fetch())
        assert view.orders == before
        assert [t.message for t in view.toaster.drain()] == ["Failed to fetch orders"]
        assert view.loading is False

    def test_failure_on_first_load_leaves_empty_list(self, backend, fake_client):
        backend.fail_select = True
        view = OrderListView(fake_client)
        run(view.fetch())
        assert view.orders == []
        assert len(view.toaster) == 1


class TestUpdateStatus:
    def test_process_order_42(self, backend, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        assert "42" in [o.id for o in view.orders]

        assert run(view.update_status("42", OrderStatus.PROCESSING)) is True

        assert backend.updates == [("orders", {"status": "processing"}, [("id", "42")])]
        toasts = view.toaster.drain()
        assert [(t.kind, t.message) for t in toasts] == [("success", "Order 42 marked as processing")]
        assert [o.id for o in view.orders] == ["41"]

    def test_update_refetches_once(self, backend, fake_client):
        view = OrderListView(fake_client)
        selects = backend.selects
        run(view.update_status("41", OrderStatus.CANCELLED))
        assert backend.selects == selects + 1

    def test_update_without_refresh_skips_the_refetch(self, backend, fake_client):
        view = OrderListView(fake_client)
        selects = backend.selects
        assert run(view.update_status("41", OrderStatus.CANCELLED, refresh=False)) is True
        assert backend.selects == selects
        assert [t.message for t in view.toaster.drain()] == ["Order 41 marked as cancelled"]

    def test_failure_leaves_state_unchanged(self, backend, fake_client):
        view = OrderListView(fake_client)
        run(view.fetch())
        before = list(view.orders)
        selects = backend.selects
        backend.fail_update = True

        assert run(view.update_status("42", OrderStatus.PROCESSING)) is False

        assert view.orders == before
        assert backend.selects == selects
        assert [t.message for t in view.toaster.drain()] == ["Failed to update order status"]

    def test_illegal_transition_is_rejected_when_current_status_known(self, backend, fake_client):
        view = OrderListView(fake_client, OrderStatus.COMPLETED)
        ok = run(view.update_status("44", OrderStatus.PROCESSING, current=OrderStatus.COMPLETED))
        assert ok is False
        assert backend.updates == []
        assert [t.kind for t in view.toaster.drain()] == ["error"]


class TestActions:
    def _order(self, status):
        return Order(**make_order("1", status, "2024-05-01T09:00:00+00:00"))

    def test_pending_offers_process_and_cancel(self):
        actions = OrderListView(None).actions_for(self._order("pending"))
        assert [(a.label, a.target) for a in actions] == [
            ("Process", OrderStatus.PROCESSING),
            ("Cancel", OrderStatus.CANCELLED),
        ]

    def test_processing_offers_complete(self):
        actions = OrderListView(None).actions_for(self._order("processing"))
        assert [a.label for a in actions] == ["Complete"]

    @pytest.mark.parametrize("status", ["completed", "cancelled"])
    def test_terminal_statuses_offer_nothing(self, status):
        assert OrderListView(None).actions_for(self._order(status)) == []

    @pytest.mark.parametrize("status", ["pending", "processing", "completed", "cancelled"])
    def test_hidden_actions(self, status):
        assert OrderListView(None, show_actions=False).actions_for(self._order(status)) == []

    def test_every_offered_action_is_a_legal_transition(self):
        view = OrderListView(None)
        for status in OrderStatus:
            for action in view.actions_for(self._order(status.value)):
                assert can_transition(status, action.target)


class TestLiveFeed:
    def test_any_order_change_queues_a_refetch(self, backend, fake_client):
        async def scenario():
            view = OrderListView(fake_client, OrderStatus.COMPLETED)
            async with view.live(RealtimeFeed(fake_client)) as changes:
                assert len(fake_client.channels) == 1
                # a pending order changing still counts
                backend.emit("orders", "UPDATE", {"id": "41", "status": "processing"})
                backend.insert("orders", make_order("60", "pending", "2024-05-04T00:00:00+00:00"))
                backend.emit("orders", "DELETE", {"id": "45"})
                assert changes.qsize() == 3
            return changes

        run(scenario())
        assert fake_client.channels == {}

    def test_unsubscribes_on_error(self, fake_client):
        async def scenario():
            view = OrderListView(fake_client)
            async with view.live(RealtimeFeed(fake_client)):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError):
            run(scenario())
        assert fake_client.channels == {}
