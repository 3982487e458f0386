# storefront/views_checkout.py
from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .actors import ActorDep
from .db import get_session_dep
from .errors import CheckoutValidationError, OrderPersistenceError
from .orders.submission import submit_order
from .schemas import CheckoutRequest
from .views_cart import StorageDep, open_cart

log = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["checkout"])

SessionDep = Annotated[Session, Depends(get_session_dep)]


@router.post("/checkout")
def checkout(body: CheckoutRequest, session: SessionDep, storage: StorageDep, actor: ActorDep):
    if actor.id is None:
        raise HTTPException(status_code=401, detail="Login required")

    cart = open_cart(storage, body.cart_id)
    try:
        result = submit_order(session, body, cart.snapshot(), customer_id=actor.id)
    except CheckoutValidationError as e:
        return JSONResponse({"ok": False, "error": str(e), "field": e.field}, status_code=400)
    except OrderPersistenceError:
        # già loggato con traceback: al cliente solo un errore generico
        return JSONResponse(
            {"ok": False, "error": "Order could not be placed, please try again"},
            status_code=500,
        )

    cart.clear()
    return JSONResponse(
        {"ok": True, "order_id": result.order_id, "created": result.created},
        status_code=201 if result.created else 200,
    )
