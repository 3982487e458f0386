# storefront/orders/submission.py
"""
Checkout: snapshot del carrello -> ordine + righe + opzioni, in UNA transazione.

Idempotenza: con idempotency_key uguale si ottiene sempre lo stesso ordine;
la corsa tra lookup e insert è chiusa dal vincolo UNIQUE (IntegrityError ->
rilettura per chiave).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlmodel import Session, select

from ..errors import CheckoutValidationError, OrderPersistenceError
from ..models import Order, OrderItem, OrderStatus, OrderStatusHistory, PaymentMethod, utcnow
from ..models_customizations import OrderItemOption
from ..pricing import PriceBreakdown, line_total, price_breakdown
from ..schemas import CheckoutData

log = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    order_id: int
    created: bool


def find_order_id_by_key(session: Session, key: str) -> Optional[int]:
    return session.exec(select(Order.id).where(Order.idempotency_key == key)).first()


def validate_checkout(data: CheckoutData, items: Sequence) -> PriceBreakdown:
    if not items:
        raise CheckoutValidationError("cart is empty", field="items")
    if any(int(it.quantity) < 1 for it in items):
        raise CheckoutValidationError("cart lines need a quantity of at least 1", field="items")

    if (data.delivery_lat is None) != (data.delivery_lng is None):
        raise CheckoutValidationError("latitude and longitude go together", field="delivery_lat")
    if data.is_delivery:
        has_address = bool((data.delivery_address or "").strip())
        if not has_address and data.delivery_lat is None:
            raise CheckoutValidationError("delivery needs an address or a location", field="delivery_address")

    prices = price_breakdown(items, delivery=data.is_delivery)

    if data.change_for_cents is not None:
        if data.payment_method != PaymentMethod.cash:
            raise CheckoutValidationError("change is only for cash payments", field="change_for_cents")
        if data.change_for_cents < prices.total_cents:
            raise CheckoutValidationError("change amount is below the order total", field="change_for_cents")
    return prices


def _insert_order(
    session: Session,
    data: CheckoutData,
    items: Sequence,
    prices: PriceBreakdown,
    customer_id: Optional[int],
) -> int:
    now = utcnow()
    order = Order(
        customer_id=customer_id,
        customer_name=data.customer_name.strip(),
        customer_phone=data.customer_phone.strip(),
        status=OrderStatus.pending,
        payment_method=data.payment_method,
        is_delivery=data.is_delivery,
        delivery_address=(data.delivery_address or "").strip() or None,
        delivery_lat=data.delivery_lat,
        delivery_lng=data.delivery_lng,
        delivery_notes=data.delivery_notes,
        change_for_cents=data.change_for_cents,
        notes=data.notes,
        subtotal_cents=prices.subtotal_cents,
        delivery_fee_cents=prices.delivery_fee_cents,
        total_cents=prices.total_cents,
        idempotency_key=data.idempotency_key,
        created_at=now,
    )
    session.add(order)
    session.flush()  # ottieni order.id (e fa scattare il UNIQUE sulla chiave)
    order_id = int(order.id)

    # snapshot dal carrello, mai riletto dal catalogo
    rows = [
        OrderItem(
            order_id=order_id,
            product_id=it.product_id,
            product_name=it.product_name,
            unit_price_cents=int(it.unit_price_cents),
            quantity=int(it.quantity),
            item_notes=getattr(it, "note", None),
            subtotal_cents=line_total(it),
        )
        for it in items
    ]
    session.add_all(rows)
    session.flush()

    # righe appena inserite <-> righe carrello: per posizione
    for row, original in zip(rows, items):
        for opt in original.selected_options or []:
            session.add(OrderItemOption(
                order_item_id=row.id,
                option_id=opt.option_id,
                option_name=opt.option_name,
                unit_price_cents=int(opt.unit_price_cents),
                quantity=int(opt.quantity),
            ))

    session.add(OrderStatusHistory(order_id=order_id, status=OrderStatus.pending, created_at=now))
    session.flush()
    return order_id


def submit_order(
    session: Session,
    data: CheckoutData,
    items: Sequence,
    customer_id: Optional[int] = None,
) -> SubmissionResult:
    key = data.idempotency_key
    if key:
        existing = find_order_id_by_key(session, key)
        if existing is not None:
            log.info("checkout replay for key %s -> order %s", key, existing)
            return SubmissionResult(order_id=int(existing), created=False)

    items = tuple(items)
    prices = validate_checkout(data, items)

    try:
        order_id = _insert_order(session, data, items, prices, customer_id)
        session.commit()
    except IntegrityError as e:
        session.rollback()
        if key:
            existing = find_order_id_by_key(session, key)
            if existing is not None:
                log.info("concurrent checkout for key %s converged on order %s", key, existing)
                return SubmissionResult(order_id=int(existing), created=False)
        log.exception("order insert failed (integrity)")
        raise OrderPersistenceError("order could not be saved") from e
    except SQLAlchemyError as e:
        session.rollback()
        log.exception("order insert failed")
        raise OrderPersistenceError("order could not be saved") from e

    log.info(
        "order %s created: %d line(s), total %d cents, payment %s",
        order_id, len(items), prices.total_cents, data.payment_method.value,
    )
    return SubmissionResult(order_id=order_id, created=True)
