# storefront/orders/query.py
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, List, Optional, Union

from sqlalchemy import desc
from sqlmodel import Session, select

from ..models import Order, OrderItem, OrderStatus, OrderStatusHistory, PaymentMethod, Role, parse_id
from ..models_customizations import OrderItemOption
from .status_machine import available_actions


@dataclass
class OrderItemView:
    item: OrderItem
    options: List[OrderItemOption] = field(default_factory=list)


@dataclass
class OrderView:
    order: Order
    items: List[OrderItemView]
    history: List[OrderStatusHistory]

    def to_dict(self, role: Optional[Role] = None) -> Dict[str, Any]:
        o = self.order
        out = {
            "id": o.id,
            "customer_id": o.customer_id,
            "customer_name": o.customer_name,
            "customer_phone": o.customer_phone,
            "status": OrderStatus(o.status).value,
            "payment_method": PaymentMethod(o.payment_method).value,
            "is_delivery": bool(o.is_delivery),
            "delivery_address": o.delivery_address,
            "delivery_lat": o.delivery_lat,
            "delivery_lng": o.delivery_lng,
            "delivery_notes": o.delivery_notes,
            "change_for_cents": o.change_for_cents,
            "notes": o.notes,
            "subtotal_cents": int(o.subtotal_cents or 0),
            "delivery_fee_cents": int(o.delivery_fee_cents or 0),
            "total_cents": int(o.total_cents or 0),
            "created_at": o.created_at.isoformat() if o.created_at else None,
            "items": [
                {
                    "id": iv.item.id,
                    "product_id": iv.item.product_id,
                    "product_name": iv.item.product_name,
                    "unit_price_cents": int(iv.item.unit_price_cents or 0),
                    "quantity": int(iv.item.quantity or 0),
                    "item_notes": iv.item.item_notes,
                    "subtotal_cents": int(iv.item.subtotal_cents or 0),
                    "options": [
                        {
                            "option_id": op.option_id,
                            "option_name": op.option_name,
                            "unit_price_cents": int(op.unit_price_cents or 0),
                            "quantity": int(op.quantity or 0),
                        }
                        for op in iv.options
                    ],
                }
                for iv in self.items
            ],
            "history": [
                {
                    "status": OrderStatus(h.status).value,
                    "note": h.note,
                    "created_at": h.created_at.isoformat() if h.created_at else None,
                }
                for h in self.history
            ],
        }
        if role is not None:
            out["available_actions"] = available_actions(o.status, role)
        return out


def get_order_view(session: Session, order_id: Union[int, str]) -> Optional[OrderView]:
    """Ordine + righe + opzioni + storico stati. None se non esiste (mai eccezioni)."""
    oid = parse_id(order_id)
    if oid is None:
        return None

    order = session.get(Order, oid)
    if not order:
        return None

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == oid).order_by(OrderItem.id)
    ).all()

    opts_by_item: Dict[int, List[OrderItemOption]] = {}
    item_ids = [it.id for it in items]
    if item_ids:
        for op in session.exec(
            select(OrderItemOption)
            .where(OrderItemOption.order_item_id.in_(item_ids))
            .order_by(OrderItemOption.id)
        ).all():
            opts_by_item.setdefault(op.order_item_id, []).append(op)

    history = session.exec(
        select(OrderStatusHistory)
        .where(OrderStatusHistory.order_id == oid)
        .order_by(OrderStatusHistory.created_at.asc(), OrderStatusHistory.id.asc())
    ).all()

    return OrderView(
        order=order,
        items=[OrderItemView(item=it, options=opts_by_item.get(it.id, [])) for it in items],
        history=list(history),
    )


def list_orders(
    session: Session,
    customer_id: Optional[int] = None,
    status: Optional[OrderStatus] = None,
    payment_method: Optional[PaymentMethod] = None,
    day: Optional[date] = None,
    limit: int = 100,
) -> List[Order]:
    """Elenco ordini, più recenti prima (board operatore / "i miei ordini")."""
    stmt = select(Order)
    if customer_id is not None:
        stmt = stmt.where(Order.customer_id == customer_id)
    if status is not None:
        stmt = stmt.where(Order.status == status)
    if payment_method is not None:
        stmt = stmt.where(Order.payment_method == payment_method)
    if day is not None:
        dt_from = datetime.combine(day, time(0, 0, 0), tzinfo=timezone.utc)
        stmt = stmt.where(Order.created_at >= dt_from, Order.created_at < dt_from + timedelta(days=1))
    stmt = stmt.order_by(desc(Order.created_at), desc(Order.id)).limit(max(1, min(limit, 500)))
    return list(session.exec(stmt).all())


def order_summary(order: Order, role: Optional[Role] = None) -> Dict[str, Any]:
    out = {
        "id": order.id,
        "status": OrderStatus(order.status).value,
        "customer_name": order.customer_name,
        "payment_method": PaymentMethod(order.payment_method).value,
        "total_cents": int(order.total_cents or 0),
        "created_at": order.created_at.strftime("%d/%m/%Y %H:%M:%S") if order.created_at else "",
    }
    if role is not None:
        out["available_actions"] = available_actions(order.status, role)
    return out
