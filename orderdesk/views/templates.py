# orderdesk/views/templates.py
# Server-rendered HTML for the staff pages.

from html import escape
from typing import Iterable, Optional

from orderdesk.models.schemas import Order, OrderItem
from orderdesk.utils import format_money, format_timestamp
from orderdesk.views.toasts import Toast

NAV_LINKS = (
    ("/", "New Orders"),
    ("/processing", "Processing"),
    ("/completed", "Completed"),
)

STYLE = """
    * { box-sizing: border-box; }
    body { margin: 0; font-family: system-ui, sans-serif; background: #f3f4f6; color: #111827; }
    header { background: #fff; box-shadow: 0 1px 2px rgba(0,0,0,.08); }
    .bar, main { max-width: 80rem; margin: 0 auto; padding: 1rem 2rem; }
    .bar { display: flex; align-items: center; justify-content: space-between; }
    .brand { font-size: 1.25rem; font-weight: 700; color: #16a34a; }
    nav { display: flex; align-items: center; gap: 1.5rem; }
    nav a, nav button { color: #4b5563; text-decoration: none; background: none; border: 0; font: inherit; cursor: pointer; }
    nav a.active, nav a:hover, nav button:hover { color: #111827; }
    .list-head { display: flex; justify-content: space-between; align-items: center; }
    .card { background: #fff; border-radius: .5rem; box-shadow: 0 2px 6px rgba(0,0,0,.08); padding: 1.5rem; margin-bottom: 1rem; }
    .card-head { display: flex; justify-content: space-between; align-items: flex-start; margin-bottom: 1rem; }
    .muted { color: #6b7280; font-size: .875rem; margin: .15rem 0; }
    .item { display: flex; align-items: center; gap: 1rem; padding: .75rem; background: #f9fafb; border-radius: .5rem; margin-bottom: .5rem; }
    .item img { width: 3rem; height: 3rem; object-fit: cover; border-radius: .375rem; }
    .item .name { flex: 1; }
    .actions { display: flex; gap: .5rem; }
    .btn { padding: .25rem .75rem; border-radius: 9999px; border: 0; font-size: .875rem; cursor: pointer; }
    .btn-processing { background: #dbeafe; color: #1d4ed8; }
    .btn-cancelled { background: #fee2e2; color: #b91c1c; }
    .btn-completed { background: #dcfce7; color: #15803d; }
    .refresh { padding: .5rem 1rem; background: #e5e7eb; border-radius: .5rem; color: inherit; text-decoration: none; }
    .empty { text-align: center; color: #6b7280; }
    .spinner { margin: 2rem auto; width: 2rem; height: 2rem; border-radius: 50%; border-bottom: 2px solid #111827; animation: spin 1s linear infinite; }
    @keyframes spin { to { transform: rotate(360deg); } }
    #toasts { position: fixed; top: 1rem; right: 1rem; display: flex; flex-direction: column; gap: .5rem; }
    .toast { padding: .75rem 1rem; border-radius: .5rem; background: #fff; box-shadow: 0 4px 12px rgba(0,0,0,.15); }
    .toast-error { border-left: 4px solid #dc2626; }
    .toast-success { border-left: 4px solid #16a34a; }
    .login { max-width: 24rem; margin: 6rem auto; }
    .login input { display: block; width: 100%; padding: .5rem; margin: .25rem 0 1rem; }
    .login .error { color: #b91c1c; }
"""


def render_toasts(toasts: Iterable[Toast]) -> str:
    items = "".join(
        f'<div class="toast toast-{escape(t.kind)}" role="status">{escape(t.message)}</div>'
        for t in toasts
    )
    return f'<div id="toasts">{items}</div>'


def render_page(title: str, content: str, *, app_name: str, active: Optional[str] = None,
                toasts: Iterable[Toast] = (), vapid_public_key: Optional[str] = None) -> str:
    """Wrap authenticated content in the navigation chrome."""
    links = "".join(
        f'<a href="{href}" class="{"active" if href == active else ""}">{label}</a>'
        for href, label in NAV_LINKS
    )
    push_key = f' data-vapid-key="{escape(vapid_public_key)}"' if vapid_public_key else ""
    live_path = f' data-live-path="{escape(active)}"' if active else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>{escape(title)} · {escape(app_name)}</title>
    <style>{STYLE}</style>
</head>
<body{push_key}{live_path}>
    <header>
        <div class="bar">
            <span class="brand">{escape(app_name)}</span>
            <nav>
                {links}
                <form method="post" action="/logout"><button type="submit">Sign out</button></form>
            </nav>
        </div>
    </header>
    <main><section id="orders">{content}</section></main>
    {render_toasts(toasts)}
    <script src="/static/app.js" defer></script>
</body>
</html>"""


def render_login(app_name: str, error: Optional[str] = None, email: str = "") -> str:
    error_html = f'<p class="error" role="alert">{escape(error)}</p>' if error else ""
    return f"""<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta name="viewport" content="width=device-width, initial-scale=1.0">
    <title>Sign in · {escape(app_name)}</title>
    <style>{STYLE}</style>
</head>
<body>
    <main class="login card">
        <h1 class="brand">{escape(app_name)}</h1>
        {error_html}
        <form method="post" action="/login">
            <label>Email <input type="email" name="email" value="{escape(email)}" required autofocus></label>
            <label>Password <input type="password" name="password" required></label>
            <button class="btn btn-completed" type="submit">Sign in</button>
        </form>
    </main>
</body>
</html>"""


def render_line_item(item: OrderItem) -> str:
    product = item.product
    return f"""
        <div class="item">
            <img src="{escape(product.image_url or '')}" alt="{escape(product.name)}">
            <div class="name">
                <p><strong>{escape(product.name)}</strong></p>
                <p class="muted">{item.quantity} × {format_money(product.price)}</p>
            </div>
            <p><strong>{format_money(item.line_total)}</strong></p>
        </div>"""


def render_order_card(order: Order, actions, return_to: str, tz: str = "UTC") -> str:
    buttons = "".join(
        f"""
            <form method="post" action="/orders/{escape(order.id)}/status">
                <input type="hidden" name="status" value="{action.target.value}">
                <input type="hidden" name="current" value="{order.status.value}">
                <input type="hidden" name="next" value="{escape(return_to)}">
                <button class="btn btn-{action.target.value}" type="submit">{action.label}</button>
            </form>"""
        for action in actions
    )
    if order.order_items:
        items = "".join(render_line_item(item) for item in order.order_items)
    else:
        items = '<p class="muted">No items in this order.</p>'
    return f"""
    <div class="card" id="order-{escape(order.id)}">
        <div class="card-head">
            <div>
                <h3>Order #{escape(order.id)}</h3>
                <p class="muted">{format_timestamp(order.created_at, tz)}</p>
                <p><strong>{escape(order.customer_name)}</strong></p>
                <p class="muted">{escape(order.phone_number)}</p>
                <p class="muted">{escape(order.delivery_address)}</p>
            </div>
            <div class="actions">{buttons}</div>
        </div>
        <div>{items}</div>
    </div>"""


def render_order_list(view, return_to: str, tz: str = "UTC") -> str:
    """The order list fragment; also what the live feed pushes."""
    if view.loading:
        body = '<div class="spinner"></div>'
    elif view.orders:
        body = "".join(render_order_card(o, view.actions_for(o), return_to, tz) for o in view.orders)
    else:
        body = '<p class="empty">No orders found.</p>'
    return f"""
    <div class="list-head">
        <h2>Orders</h2>
        <a class="refresh" href="{escape(return_to)}">Refresh</a>
    </div>
    <div id="order-list">{body}</div>"""
