# storefront/models.py
from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Optional, Union

from sqlmodel import SQLModel, Field

# chiavi primarie INTEGER di SQLite: interi con segno a 64 bit
MAX_ID = 2 ** 63 - 1


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_id(value: Union[int, str, None]) -> Optional[int]:
    """Id numerico valido per la tabella, altrimenti None (mai eccezioni)."""
    try:
        n = int(str(value).strip())
    except (TypeError, ValueError):
        return None
    if n < 1 or n > MAX_ID:
        return None
    return n


class OrderStatus(str, Enum):
    pending = "pending"
    accepted = "accepted"
    preparing = "preparing"
    out_for_delivery = "out_for_delivery"
    delivered = "delivered"
    rejected = "rejected"
    cancelled = "cancelled"


class PaymentMethod(str, Enum):
    cash = "cash"
    card = "card"
    pix = "pix"


class Role(str, Enum):
    customer = "customer"
    admin = "admin"


class Product(SQLModel, table=True):
    __tablename__ = "products"
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    description: Optional[str] = None
    price_cents: int = 0
    original_price_cents: Optional[int] = None  # prezzo barrato (sconto)
    image_url: Optional[str] = None
    active: bool = Field(default=True, index=True)
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class Profile(SQLModel, table=True):
    __tablename__ = "profiles"
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True, unique=True, max_length=320)
    password_hash: str
    full_name: str
    phone: Optional[str] = None
    role: Role = Role.customer
    created_at: datetime = Field(default_factory=utcnow, nullable=False)


class Order(SQLModel, table=True):
    __tablename__ = "orders"
    id: Optional[int] = Field(default=None, primary_key=True)
    customer_id: Optional[int] = Field(default=None, index=True)
    # snapshot: non segue il profilo
    customer_name: str
    customer_phone: str
    status: OrderStatus = Field(default=OrderStatus.pending, index=True)
    payment_method: PaymentMethod = PaymentMethod.cash
    is_delivery: bool = True
    delivery_address: Optional[str] = None
    delivery_lat: Optional[float] = None
    delivery_lng: Optional[float] = None
    delivery_notes: Optional[str] = None
    change_for_cents: Optional[int] = None
    notes: Optional[str] = None
    subtotal_cents: int = Field(default=0, nullable=False)
    delivery_fee_cents: int = Field(default=0, nullable=False)
    total_cents: int = Field(default=0, nullable=False)
    idempotency_key: Optional[str] = Field(default=None, unique=True, index=True, max_length=128)
    created_at: datetime = Field(default_factory=utcnow, nullable=False, index=True)


class OrderItem(SQLModel, table=True):
    __tablename__ = "order_items"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    product_id: int
    product_name: str
    unit_price_cents: int = 0
    quantity: int = 1
    item_notes: Optional[str] = None
    # (base + opzioni) x quantità
    subtotal_cents: int = 0
    # niente relationship: le opzioni si leggono per order_item_id


class OrderStatusHistory(SQLModel, table=True):
    __tablename__ = "order_status_history"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_id: int = Field(foreign_key="orders.id", index=True)
    status: OrderStatus
    note: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow, nullable=False)
