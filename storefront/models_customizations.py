# storefront/models_customizations.py
from __future__ import annotations

from typing import Optional
from sqlmodel import SQLModel, Field


class OptionGroup(SQLModel, table=True):
    __tablename__ = "option_group"
    id: Optional[int] = Field(default=None, primary_key=True)
    product_id: int = Field(foreign_key="products.id", index=True)
    name: str                      # es. "Adicionais"
    required: bool = False
    min_select: int = 0
    max_select: int = 1
    position: int = 0


class ProductOption(SQLModel, table=True):
    __tablename__ = "product_option"
    id: Optional[int] = Field(default=None, primary_key=True)
    group_id: int = Field(foreign_key="option_group.id", index=True)
    name: str
    price_cents: int = 0
    position: int = 0


class OrderItemOption(SQLModel, table=True):
    __tablename__ = "order_item_options"
    id: Optional[int] = Field(default=None, primary_key=True)
    order_item_id: int = Field(foreign_key="order_items.id", index=True)
    option_id: int
    option_name: str
    unit_price_cents: int = 0
    quantity: int = 1
