# storefront/cart/models_cart.py
from __future__ import annotations

import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field


class SelectedOption(BaseModel):
    model_config = ConfigDict(frozen=True)

    option_id: int
    option_name: str
    unit_price_cents: int = Field(ge=0)
    quantity: int = Field(default=1, ge=1)


class CartItem(BaseModel):
    """Riga carrello. Nome e prezzo sono snapshot presi al momento dell'aggiunta."""
    model_config = ConfigDict(frozen=True)

    product_id: int
    product_name: str
    unit_price_cents: int = Field(ge=0)
    quantity: int = Field(default=1, ge=1)
    note: Optional[str] = None
    selected_options: List[SelectedOption] = Field(default_factory=list)

    @property
    def line_key(self) -> str:
        return line_key(self.product_id, self.selected_options)


def line_key(product_id: int, options) -> str:
    """
    Chiave di identità riga: prodotto + insieme ESATTO delle opzioni.
    L'insieme è ordinato per option_id: stessa scelta in ordine diverso = stessa riga.
    """
    canon = sorted(
        ([int(o.option_id), int(o.quantity)] for o in (options or [])),
        key=lambda pair: pair[0],
    )
    return f"{int(product_id)}::{json.dumps(canon, separators=(',', ':'))}"
