# storefront/schemas.py
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, EmailStr, Field

from .models import OrderStatus, PaymentMethod, Role


class CheckoutData(BaseModel):
    """Dati contatto/consegna/pagamento inviati dal checkout."""
    customer_name: str = Field(min_length=2, max_length=120)
    customer_phone: str = Field(min_length=10, max_length=32)
    is_delivery: bool = True
    delivery_address: Optional[str] = None
    delivery_lat: Optional[float] = Field(default=None, ge=-90, le=90)
    delivery_lng: Optional[float] = Field(default=None, ge=-180, le=180)
    delivery_notes: Optional[str] = None
    payment_method: PaymentMethod = PaymentMethod.cash
    change_for_cents: Optional[int] = Field(default=None, ge=0)
    notes: Optional[str] = None
    # generata una volta per tentativo di checkout, riusata nei retry
    idempotency_key: Optional[str] = Field(default=None, min_length=1, max_length=128)


class CheckoutRequest(CheckoutData):
    cart_id: str = Field(min_length=1, max_length=120)


class CartAddRequest(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1, le=99)
    option_ids: List[int] = Field(default_factory=list)
    note: Optional[str] = Field(default=None, max_length=280)


class CartQuantityRequest(BaseModel):
    product_id: int
    line_key: str
    quantity: int


class CartRemoveRequest(BaseModel):
    product_id: int
    line_key: str


class TransitionRequest(BaseModel):
    note: Optional[str] = Field(default=None, max_length=500)
    # stato visto dall'operatore: la transizione parte solo se è ancora quello
    expected_status: Optional[OrderStatus] = None


class UserCreate(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    full_name: str = Field(min_length=2)
    phone: Optional[str] = None
    role: Role = Role.customer
