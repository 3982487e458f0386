# storefront/orders/status_machine.py
from __future__ import annotations

import logging
from typing import Dict, FrozenSet, List, Optional

from sqlalchemy import update
from sqlmodel import Session

from ..errors import ForbiddenActionError, InvalidTransitionError, OrderNotFoundError
from ..models import Order, OrderStatus, OrderStatusHistory, Role, parse_id, utcnow

log = logging.getLogger(__name__)

S = OrderStatus

TRANSITIONS: Dict[OrderStatus, FrozenSet[OrderStatus]] = {
    S.pending: frozenset({S.accepted, S.rejected, S.cancelled}),
    S.accepted: frozenset({S.preparing}),
    S.preparing: frozenset({S.out_for_delivery}),
    S.out_for_delivery: frozenset({S.delivered}),
    S.delivered: frozenset(),
    S.rejected: frozenset(),
    S.cancelled: frozenset(),
}

TERMINAL: FrozenSet[OrderStatus] = frozenset(s for s, nxt in TRANSITIONS.items() if not nxt)

# azione (bottone) -> stato di arrivo
ACTIONS: Dict[str, OrderStatus] = {
    "accept": S.accepted,
    "reject": S.rejected,
    "preparing": S.preparing,
    "out_for_delivery": S.out_for_delivery,
    "delivered": S.delivered,
    "cancel": S.cancelled,
}

ROLE_ACTIONS: Dict[Role, FrozenSet[str]] = {
    Role.admin: frozenset(ACTIONS),
    Role.customer: frozenset({"cancel"}),
}


def can_transition(current: OrderStatus, target: OrderStatus) -> bool:
    return OrderStatus(target) in TRANSITIONS.get(OrderStatus(current), frozenset())


def available_actions(status: OrderStatus, role: Role) -> List[str]:
    allowed = ROLE_ACTIONS.get(Role(role), frozenset())
    return [a for a, target in ACTIONS.items() if a in allowed and can_transition(status, target)]


def transition(
    session: Session,
    order_id: int,
    action: str,
    role: Role = Role.admin,
    note: Optional[str] = None,
    expected_status: Optional[OrderStatus] = None,
    actor_id: Optional[int] = None,
) -> OrderStatusHistory:
    """
    Applica un'azione all'ordine.
    L'UPDATE è condizionato allo stato di partenza: se nel frattempo un altro
    operatore l'ha cambiato, non si tocca nulla e si solleva InvalidTransitionError.
    """
    target = ACTIONS.get(action)
    if target is None:
        raise InvalidTransitionError(f"unknown action {action!r}")
    if action not in ROLE_ACTIONS.get(Role(role), frozenset()):
        raise ForbiddenActionError(f"role {Role(role).value} cannot {action}")

    oid = parse_id(order_id)
    order = session.get(Order, oid) if oid is not None else None
    if not order:
        raise OrderNotFoundError(f"order {order_id} not found")
    order_id = oid
    if role == Role.customer and (actor_id is None or order.customer_id != actor_id):
        raise ForbiddenActionError("customers can only act on their own orders")

    source = OrderStatus(expected_status or order.status)
    if not can_transition(source, target):
        raise InvalidTransitionError(
            f"cannot go from {source.value} to {target.value}",
            current=OrderStatus(order.status).value,
            target=target.value,
        )

    res = session.exec(
        update(Order)
        .where(Order.id == order_id, Order.status == source)
        .values(status=target)
        .execution_options(synchronize_session=False)
    )
    if res.rowcount != 1:
        session.rollback()
        fresh = session.get(Order, order_id)
        current = OrderStatus(fresh.status).value if fresh else None
        log.warning("stale transition on order %s: expected %s, found %s", order_id, source.value, current)
        raise InvalidTransitionError(
            f"order {order_id} is no longer {source.value}",
            current=current,
            target=target.value,
        )

    entry = OrderStatusHistory(order_id=order_id, status=target, note=note, created_at=utcnow())
    session.add(entry)
    session.commit()
    session.refresh(order)
    log.info("order %s: %s -> %s (%s)", order_id, source.value, target.value, Role(role).value)
    return entry
