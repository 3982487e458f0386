# storefront/cart/store.py
from __future__ import annotations

import json
import logging
from typing import Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from .. import pricing
from ..errors import CartValidationError
from .models_cart import CartItem
from .reducer import Add, CartAction, CartState, Clear, Load, Remove, UpdateQuantity, reduce
from .storage import CartStorage

log = logging.getLogger(__name__)

DEFAULT_CART_KEY = "cart"

_ITEMS = TypeAdapter(Tuple[CartItem, ...])


class CartStore:
    """
    Carrello di una sessione di navigazione.
    Creato e iniettato dal chiamante (niente singleton globale); ogni mutazione
    passa dal reducer e riscrive l'intero carrello sullo storage.
    """

    def __init__(self, storage: CartStorage, key: str = DEFAULT_CART_KEY) -> None:
        self.storage = storage
        self.key = key
        self._state: CartState = ()
        self._state = reduce(self._state, Load(self._load()))

    # ---- persistenza ----
    def _load(self) -> CartState:
        try:
            blob = self.storage.read(self.key)
        except (OSError, UnicodeDecodeError) as e:
            log.warning("cart %s unreadable, starting empty: %s", self.key, e)
            return ()
        if not blob:
            return ()
        try:
            return _ITEMS.validate_python(json.loads(blob))
        except (ValueError, ValidationError) as e:
            # dati corrotti = carrello vuoto, mai fatale
            log.warning("cart %s corrupt, starting empty: %s", self.key, e)
            return ()

    def _persist(self) -> None:
        blob = json.dumps([it.model_dump() for it in self._state], ensure_ascii=False)
        self.storage.write(self.key, blob)

    def dispatch(self, action: CartAction) -> CartState:
        self._state = reduce(self._state, action)
        self._persist()
        return self._state

    # ---- operazioni ----
    def add(self, item: CartItem) -> CartState:
        return self.dispatch(Add(item))

    def _check_line(self, product_id: int, key: str) -> None:
        # la chiave riga comanda; product_id deve essere coerente con essa
        if not key.startswith(f"{int(product_id)}::"):
            raise CartValidationError(f"line {key!r} does not belong to product {product_id}")

    def update_quantity(self, product_id: int, quantity: int, key: str) -> CartState:
        self._check_line(product_id, key)
        return self.dispatch(UpdateQuantity(line_key=key, quantity=int(quantity)))

    def remove(self, product_id: int, key: str) -> CartState:
        self._check_line(product_id, key)
        return self.dispatch(Remove(line_key=key))

    def clear(self) -> CartState:
        return self.dispatch(Clear())

    # ---- letture ----
    @property
    def items(self) -> CartState:
        return self._state

    def find(self, key: str) -> Optional[CartItem]:
        return next((it for it in self._state if it.line_key == key), None)

    @property
    def item_count(self) -> int:
        return sum(it.quantity for it in self._state)

    @property
    def total_cents(self) -> int:
        return pricing.cart_subtotal(self._state)

    def snapshot(self) -> CartState:
        return tuple(self._state)

    def to_dict(self, delivery: bool = True) -> dict:
        prices = pricing.price_breakdown(self._state, delivery=delivery)
        return {
            "items": [
                {
                    **it.model_dump(),
                    "line_key": it.line_key,
                    "effective_unit_price_cents": pricing.effective_unit_price(it),
                    "line_total_cents": pricing.line_total(it),
                }
                for it in self._state
            ],
            "item_count": self.item_count,
            "subtotal_cents": prices.subtotal_cents,
            "delivery_fee_cents": prices.delivery_fee_cents,
            "total_cents": prices.total_cents,
        }
