from typing import List

from orderdesk.models.schemas import Order, OrderStatus

ORDERS_TABLE = "orders"

ORDER_COLUMNS = ",".join([
    "id",
    "status",
    "total_amount",
    "delivery_address",
    "created_at",
    "phone_number",
    "customer_name",
    "order_items(id,quantity,product:products!inner(id,price,name,image_url))",
])


async def fetch_orders(client, status: OrderStatus = OrderStatus.PENDING) -> List[Order]:
    res = await (
        client.table(ORDERS_TABLE)
        .select(ORDER_COLUMNS)
        .eq("status", status.value)
        .order("created_at", desc=True)
        .execute()
    )
    return [Order(**row) for row in res.data or []]


async def update_order_status(client, order_id: str, status: OrderStatus):
    res = await client.table(ORDERS_TABLE).update({"status": status.value}).eq("id", order_id).execute()
    return res.data
