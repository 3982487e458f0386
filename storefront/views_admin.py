# storefront/views_admin.py
from __future__ import annotations

from datetime import date, datetime
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .accounts import DuplicateEmailError, provision_user, public_profile
from .actors import AdminDep, require_service_key
from .db import get_session_dep
from .errors import ForbiddenActionError, InvalidTransitionError, OrderNotFoundError
from .models import OrderStatus, PaymentMethod, Role
from .orders.query import get_order_view, list_orders, order_summary
from .orders.status_machine import ACTIONS, transition
from .schemas import TransitionRequest, UserCreate

# Dipendenza tipizzata per chiarezza
SessionDep = Annotated[Session, Depends(get_session_dep)]

router = APIRouter(prefix="/admin/api", tags=["admin"])

NO_STORE = {"Cache-Control": "no-store, max-age=0"}

# ---------------------------------------------------------------------------
# Board ordini (operatore)
# ---------------------------------------------------------------------------

@router.get("/orders")
def admin_orders(
    session: SessionDep,
    actor: AdminDep,
    status: Optional[OrderStatus] = Query(None),
    payment: Optional[PaymentMethod] = Query(None),
    day: Optional[str] = Query(None, alias="date", description="YYYY-MM-DD"),
    limit: int = Query(200, ge=1, le=500),
):
    """Ordini filtrati per stato / pagamento / giorno, raggruppati per colonna della board."""
    day_d: Optional[date] = None
    if day:
        try:
            day_d = datetime.strptime(day, "%Y-%m-%d").date()
        except ValueError:
            raise HTTPException(status_code=400, detail="date must be YYYY-MM-DD")

    orders = list_orders(session, status=status, payment_method=payment, day=day_d, limit=limit)
    columns = {s.value: [] for s in OrderStatus}
    for o in orders:
        columns[OrderStatus(o.status).value].append(order_summary(o, Role.admin))
    return JSONResponse({"ok": True, "total_count": len(orders), "columns": columns}, headers=NO_STORE)


@router.get("/orders/{order_id}")
def admin_order_detail(order_id: str, session: SessionDep, actor: AdminDep):
    view = get_order_view(session, order_id)
    if view is None:
        return JSONResponse({"ok": False, "error": "not_found", "order_id": order_id}, status_code=404)
    return JSONResponse({"ok": True, "order": view.to_dict(Role.admin)}, headers=NO_STORE)


@router.post("/orders/{order_id}/{action}")
def admin_order_action(
    order_id: int,
    action: str,
    session: SessionDep,
    actor: AdminDep,
    body: Optional[TransitionRequest] = None,
):
    if action not in ACTIONS:
        raise HTTPException(status_code=400, detail="Invalid action")
    body = body or TransitionRequest()
    try:
        entry = transition(
            session, order_id, action,
            role=Role.admin, note=body.note, expected_status=body.expected_status, actor_id=actor.id,
        )
    except OrderNotFoundError:
        return JSONResponse({"ok": False, "error": "not_found", "order_id": str(order_id)}, status_code=404)
    except ForbiddenActionError as e:
        raise HTTPException(status_code=403, detail=str(e))
    except InvalidTransitionError as e:
        return JSONResponse(
            {"ok": False, "error": str(e), "status": e.current, "target": e.target},
            status_code=409,
        )
    return JSONResponse({"ok": True, "order_id": order_id, "status": OrderStatus(entry.status).value})

# ---------------------------------------------------------------------------
# Provisioning utenti (confine fidato: chiave di servizio)
# ---------------------------------------------------------------------------

@router.post("/users", dependencies=[Depends(require_service_key)])
def admin_create_user(body: UserCreate, session: SessionDep):
    try:
        user = provision_user(session, body)
    except DuplicateEmailError as e:
        return JSONResponse({"ok": False, "error": str(e)}, status_code=409)
    return JSONResponse({"ok": True, "data": public_profile(user)}, status_code=201)
