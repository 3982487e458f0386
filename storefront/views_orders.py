# storefront/views_orders.py
from __future__ import annotations

from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .actors import ActorDep
from .db import get_session_dep
from .errors import ForbiddenActionError, InvalidTransitionError, OrderNotFoundError
from .models import Role
from .orders.query import get_order_view, list_orders, order_summary
from .orders.status_machine import transition
from .schemas import TransitionRequest

router = APIRouter(prefix="/api/orders", tags=["orders"])

SessionDep = Annotated[Session, Depends(get_session_dep)]

NO_STORE = {"Cache-Control": "no-store, max-age=0"}


def _not_found(order_id) -> JSONResponse:
    return JSONResponse(
        {"ok": False, "error": "not_found", "order_id": str(order_id)},
        status_code=404,
        headers=NO_STORE,
    )


@router.get("")
def my_orders(session: SessionDep, actor: ActorDep, limit: int = 50):
    if actor.id is None:
        raise HTTPException(status_code=401, detail="Login required")
    orders = list_orders(session, customer_id=actor.id, limit=limit)
    return JSONResponse(
        {"ok": True, "orders": [order_summary(o, Role.customer) for o in orders]},
        headers=NO_STORE,
    )


@router.get("/{order_id}")
def order_detail(order_id: str, session: SessionDep, actor: ActorDep):
    """Conferma/tracking: il client ripete la richiesta per vedere lo stato aggiornato."""
    view = get_order_view(session, order_id)
    if view is None:
        return _not_found(order_id)
    if actor.role != Role.admin and view.order.customer_id != actor.id:
        # ordini altrui: indistinguibili da inesistenti
        return _not_found(order_id)
    return JSONResponse({"ok": True, "order": view.to_dict(actor.role)}, headers=NO_STORE)


@router.post("/{order_id}/cancel")
def order_cancel(order_id: int, session: SessionDep, actor: ActorDep, body: Optional[TransitionRequest] = None):
    body = body or TransitionRequest()
    try:
        transition(
            session, order_id, "cancel",
            role=actor.role, note=body.note, expected_status=body.expected_status, actor_id=actor.id,
        )
    except OrderNotFoundError:
        return _not_found(order_id)
    except ForbiddenActionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidTransitionError as e:
        return JSONResponse({"ok": False, "error": str(e), "status": e.current}, status_code=409)
    view = get_order_view(session, order_id)
    return JSONResponse({"ok": True, "order": view.to_dict(actor.role)})
