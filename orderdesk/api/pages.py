import asyncio
import logging
from dataclasses import asdict
from typing import NamedTuple, Optional

from fastapi import APIRouter, Depends, Form, Request, WebSocket
from fastapi.responses import HTMLResponse, RedirectResponse
from starlette.requests import HTTPConnection

from orderdesk.api.deps import get_context, get_session_store
from orderdesk.context import AppContext
from orderdesk.models.schemas import OrderStatus
from orderdesk.services.realtime import RealtimeFeed
from orderdesk.services.session import SessionStore
from orderdesk.views.layout import ProtectedLayout
from orderdesk.views.orders import OrderListView
from orderdesk.views.templates import render_order_list, render_page
from orderdesk.views.toasts import dump_flash, load_flash

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])


class OrderRoute(NamedTuple):
    status: Optional[OrderStatus]
    show_actions: bool
    title: str


ORDER_ROUTES = {
    "/": OrderRoute(None, True, "New Orders"),
    "/processing": OrderRoute(OrderStatus.PROCESSING, True, "Processing"),
    "/completed": OrderRoute(OrderStatus.COMPLETED, False, "Completed"),
}


def set_flash(response, ctx: AppContext, value: str):
    response.set_cookie(ctx.settings.FLASH_COOKIE, value, httponly=True, samesite="lax",
                        secure=ctx.settings.COOKIE_SECURE)


def clear_flash(response, ctx: AppContext):
    response.delete_cookie(ctx.settings.FLASH_COOKIE, httponly=True, samesite="lax",
                           secure=ctx.settings.COOKIE_SECURE)


async def drop_stale_session(conn: HTTPConnection, ctx: AppContext, store: Optional[SessionStore]):
    """Release the client of a cookie whose Supabase session has ended."""
    if store is not None:
        await ctx.sessions.drop(conn.cookies.get(ctx.settings.SESSION_COOKIE))


async def to_login(conn: HTTPConnection, ctx: AppContext, store: Optional[SessionStore]):
    await drop_stale_session(conn, ctx, store)
    response = RedirectResponse("/login", status_code=303)
    if store is not None:
        response.delete_cookie(ctx.settings.SESSION_COOKIE, httponly=True, samesite="lax",
                               secure=ctx.settings.COOKIE_SECURE)
    return response


async def orders_page(path: str, request: Request, ctx: AppContext, store: Optional[SessionStore]):
    route = ORDER_ROUTES[path]
    async with ProtectedLayout(store) as layout:
        if layout.authenticated:
            view = OrderListView(store.client, route.status, route.show_actions)
            await view.fetch()
    if not layout.authenticated:
        return await to_login(request, ctx, store)

    flash = request.cookies.get(ctx.settings.FLASH_COOKIE)
    toasts = load_flash(flash) + view.toaster.drain()
    content = render_order_list(view, path, ctx.settings.DISPLAY_TIMEZONE)
    push_key = ctx.notifier.public_key if ctx.notifier.supported else None
    response = HTMLResponse(render_page(
        route.title,
        content,
        app_name=ctx.settings.APP_NAME,
        active=path,
        toasts=toasts,
        vapid_public_key=push_key,
    ))
    if flash:
        clear_flash(response, ctx)
    return response


@router.get("/", response_class=HTMLResponse)
async def pending_orders(request: Request, ctx: AppContext = Depends(get_context),
                         store: Optional[SessionStore] = Depends(get_session_store)):
    return await orders_page("/", request, ctx, store)


@router.get("/processing", response_class=HTMLResponse)
async def processing_orders(request: Request, ctx: AppContext = Depends(get_context),
                            store: Optional[SessionStore] = Depends(get_session_store)):
    return await orders_page("/processing", request, ctx, store)


@router.get("/completed", response_class=HTMLResponse)
async def completed_orders(request: Request, ctx: AppContext = Depends(get_context),
                           store: Optional[SessionStore] = Depends(get_session_store)):
    return await orders_page("/completed", request, ctx, store)


@router.post("/orders/{order_id}/status")
async def change_status(
    request: Request,
    order_id: str,
    status: OrderStatus = Form(...),
    current: Optional[OrderStatus] = Form(None),
    next: str = Form("/"),
    ctx: AppContext = Depends(get_context),
    store: Optional[SessionStore] = Depends(get_session_store),
):
    return_to = next if next in ORDER_ROUTES else "/"
    route = ORDER_ROUTES[return_to]
    async with ProtectedLayout(store) as layout:
        if layout.authenticated:
            view = OrderListView(store.client, route.status, route.show_actions)
            # the redirected GET renders the list, so no re-fetch here
            await view.update_status(order_id, status, current, refresh=False)
    if not layout.authenticated:
        return await to_login(request, ctx, store)

    response = RedirectResponse(return_to, status_code=303)
    set_flash(response, ctx, dump_flash(view.toaster.drain()))
    return response


async def run_live_feed(websocket: WebSocket, view: OrderListView, layout: ProtectedLayout,
                        path: str, tz: str):
    """Accept the socket, push the current list, then a fresh one for every
    change until the socket or the session ends."""

    async def push_updates():
        while True:
            await view.fetch()
            await websocket.send_json({
                "type": "orders",
                "html": render_order_list(view, path, tz),
                "toasts": [asdict(t) for t in view.toaster.drain()],
            })
            await changes.get()

    async def wait_disconnect():
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                return

    async with view.live(RealtimeFeed(view.client)) as changes:
        await websocket.accept()
        pusher = asyncio.create_task(push_updates())
        receiver = asyncio.create_task(wait_disconnect())
        signed_out = asyncio.create_task(layout.signed_out.wait())
        tasks = (pusher, receiver, signed_out)
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
        finally:
            for task in tasks:
                task.cancel()

        if pusher in done and pusher.exception() is not None:
            logger.info(f"Live feed for {path} stopped: {pusher.exception()}")
        if signed_out in done:
            await websocket.send_json({"type": "redirect", "url": "/login"})
            await websocket.close()


@router.websocket("/ws/orders")
async def live_orders(websocket: WebSocket, path: str = "/", ctx: AppContext = Depends(get_context),
                      store: Optional[SessionStore] = Depends(get_session_store)):
    route = ORDER_ROUTES.get(path)
    async with ProtectedLayout(store) as layout:
        if route is not None and layout.authenticated:
            view = OrderListView(store.client, route.status, route.show_actions)
            await run_live_feed(websocket, view, layout, path, ctx.settings.DISPLAY_TIMEZONE)
            return
    if not layout.authenticated:
        await drop_stale_session(websocket, ctx, store)
    await websocket.close(code=4401)
