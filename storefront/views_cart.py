# storefront/views_cart.py
from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from sqlmodel import Session

from .cart.storage import CartStorage, JsonFileCartStorage
from .cart.store import CartStore
from .config import CONFIG
from .db import get_session_dep
from .errors import CartValidationError
from .menu import build_cart_item
from .schemas import CartAddRequest, CartQuantityRequest, CartRemoveRequest

router = APIRouter(prefix="/api/cart", tags=["cart"])

SessionDep = Annotated[Session, Depends(get_session_dep)]


def get_cart_storage() -> CartStorage:
    return JsonFileCartStorage(CONFIG.cart.directory)


StorageDep = Annotated[CartStorage, Depends(get_cart_storage)]


def open_cart(storage: CartStorage, cart_id: str) -> CartStore:
    return CartStore(storage, key=f"cart-{cart_id}")


@router.get("/{cart_id}")
def cart_show(cart_id: str, storage: StorageDep):
    cart = open_cart(storage, cart_id)
    return JSONResponse({"ok": True, "cart": cart.to_dict()})


@router.post("/{cart_id}/items")
def cart_add(cart_id: str, body: CartAddRequest, session: SessionDep, storage: StorageDep):
    try:
        item = build_cart_item(session, body.product_id, body.quantity, body.option_ids, body.note)
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    cart = open_cart(storage, cart_id)
    cart.add(item)
    return JSONResponse({"ok": True, "line_key": item.line_key, "cart": cart.to_dict()})


@router.post("/{cart_id}/items/quantity")
def cart_update_quantity(cart_id: str, body: CartQuantityRequest, storage: StorageDep):
    cart = open_cart(storage, cart_id)
    if cart.find(body.line_key) is None:
        raise HTTPException(status_code=404, detail="Cart line not found")
    try:
        cart.update_quantity(body.product_id, body.quantity, body.line_key)
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse({"ok": True, "cart": cart.to_dict()})


@router.post("/{cart_id}/items/remove")
def cart_remove(cart_id: str, body: CartRemoveRequest, storage: StorageDep):
    cart = open_cart(storage, cart_id)
    if cart.find(body.line_key) is None:
        raise HTTPException(status_code=404, detail="Cart line not found")
    try:
        cart.remove(body.product_id, body.line_key)
    except CartValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return JSONResponse({"ok": True, "cart": cart.to_dict()})


@router.delete("/{cart_id}")
def cart_clear(cart_id: str, storage: StorageDep):
    cart = open_cart(storage, cart_id)
    cart.clear()
    return JSONResponse({"ok": True, "cart": cart.to_dict()})
