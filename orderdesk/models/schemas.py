from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field, field_validator


class OrderStatus(str, Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


# completed and cancelled are terminal
ALLOWED_TRANSITIONS = {
    OrderStatus.PENDING: (OrderStatus.PROCESSING, OrderStatus.CANCELLED),
    OrderStatus.PROCESSING: (OrderStatus.COMPLETED,),
}


def can_transition(source: OrderStatus, target: OrderStatus) -> bool:
    return target in ALLOWED_TRANSITIONS.get(source, ())


class Product(BaseModel):
    id: str
    name: str
    image_url: Optional[str] = None
    price: Decimal

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value


class OrderItem(BaseModel):
    id: str
    quantity: int = Field(..., gt=0)
    product: Product

    @field_validator("id", mode="before")
    @classmethod
    def _id_as_str(cls, value):
        return str(value) if isinstance(value, int) else value

    @property
    def line_total(self) -> Decimal:
        return self.product.price * self.quantity


class Order(BaseModel):
    id: str
    status: OrderStatus
    total_amount: Decimal
    delivery_address: str = ""
    created_at: datetime
    phone_number: str = ""
    customer_name: str = ""
    order_items: List[OrderItem] = []

    @field_validator("id", "phone_number", mode="before")
    @classmethod
    def _as_str(cls, value):
        return str(value) if isinstance(value, int) else value

    @field_validator("delivery_address", "customer_name", "phone_number", mode="before")
    @classmethod
    def _blank_if_null(cls, value):
        return "" if value is None else value

    @field_validator("order_items", mode="before")
    @classmethod
    def _no_items_if_null(cls, value):
        return value or []


class StatusUpdate(BaseModel):
    status: OrderStatus


class PushSubscription(BaseModel):
    endpoint: str
    keys: Dict[str, str]
    expirationTime: Optional[float] = None
