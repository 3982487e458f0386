# storefront/cart/reducer.py
"""Azioni carrello + funzione di transizione pura (state, action) -> state."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple, Union

from .models_cart import CartItem

CartState = Tuple[CartItem, ...]


@dataclass(frozen=True)
class Add:
    item: CartItem


@dataclass(frozen=True)
class Remove:
    line_key: str


@dataclass(frozen=True)
class UpdateQuantity:
    line_key: str
    quantity: int


@dataclass(frozen=True)
class Clear:
    pass


@dataclass(frozen=True)
class Load:
    items: Tuple[CartItem, ...]


CartAction = Union[Add, Remove, UpdateQuantity, Clear, Load]


def reduce(state: CartState, action: CartAction) -> CartState:
    if isinstance(action, Add):
        incoming = action.item
        key = incoming.line_key
        for idx, existing in enumerate(state):
            if existing.line_key == key:
                merged = existing.model_copy(update={
                    "quantity": existing.quantity + incoming.quantity,
                    "note": existing.note or incoming.note,
                })
                return state[:idx] + (merged,) + state[idx + 1:]
        return state + (incoming,)

    if isinstance(action, UpdateQuantity):
        if action.quantity <= 0:
            return tuple(it for it in state if it.line_key != action.line_key)
        return tuple(
            it.model_copy(update={"quantity": int(action.quantity)}) if it.line_key == action.line_key else it
            for it in state
        )

    if isinstance(action, Remove):
        return tuple(it for it in state if it.line_key != action.line_key)

    if isinstance(action, Clear):
        return ()

    if isinstance(action, Load):
        return tuple(action.items)

    raise TypeError(f"azione carrello sconosciuta: {action!r}")
