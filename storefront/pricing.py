# storefront/pricing.py
"""
Calcolo prezzi del carrello/ordine.
Funzioni pure, solo interi (centesimi): niente float, niente I/O.
Accettano qualsiasi oggetto con gli attributi di CartItem/SelectedOption.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

# Tabella consegna: (soglia esclusiva sul subtotale, tariffa). Prima soglia superata vince.
DELIVERY_FEE_TIERS: tuple[tuple[int, int], ...] = (
    (2500, 499),
)
DEFAULT_DELIVERY_FEE_CENTS = 599


@dataclass(frozen=True)
class PriceBreakdown:
    subtotal_cents: int
    delivery_fee_cents: int
    total_cents: int


def effective_unit_price(item) -> int:
    extra = sum(int(o.unit_price_cents) * int(o.quantity) for o in (item.selected_options or []))
    return int(item.unit_price_cents) + extra


def line_total(item) -> int:
    return effective_unit_price(item) * int(item.quantity)


def cart_subtotal(items: Iterable) -> int:
    return sum(line_total(it) for it in items)


def delivery_fee(subtotal_cents: int, tiers=DELIVERY_FEE_TIERS, default: int = DEFAULT_DELIVERY_FEE_CENTS) -> int:
    for threshold, fee in tiers:
        if subtotal_cents > threshold:
            return fee
    return default


def price_breakdown(items: Iterable, delivery: bool = True) -> PriceBreakdown:
    subtotal = cart_subtotal(items)
    fee = delivery_fee(subtotal) if delivery else 0
    return PriceBreakdown(subtotal_cents=subtotal, delivery_fee_cents=fee, total_cents=subtotal + fee)


def order_total(items: Iterable, delivery: bool = True) -> int:
    return price_breakdown(items, delivery=delivery).total_cents
