# storefront/menu.py
from __future__ import annotations

from typing import Any, Dict, List, Optional, Sequence

from sqlmodel import Session, select

from .cart.models_cart import CartItem, SelectedOption
from .errors import CartValidationError
from .models import Product
from .models_customizations import OptionGroup, ProductOption


def _groups_for(session: Session, product_ids: Sequence[int]) -> Dict[int, List[dict]]:
    if not product_ids:
        return {}
    groups = session.exec(
        select(OptionGroup)
        .where(OptionGroup.product_id.in_(list(product_ids)))
        .order_by(OptionGroup.position, OptionGroup.id)
    ).all()
    gids = [g.id for g in groups]
    opts_by_group: Dict[int, List[ProductOption]] = {}
    if gids:
        for o in session.exec(
            select(ProductOption)
            .where(ProductOption.group_id.in_(gids))
            .order_by(ProductOption.position, ProductOption.id)
        ).all():
            opts_by_group.setdefault(o.group_id, []).append(o)

    out: Dict[int, List[dict]] = {}
    for g in groups:
        out.setdefault(g.product_id, []).append({
            "id": g.id,
            "name": g.name,
            "required": bool(g.required),
            "min_select": int(g.min_select or 0),
            "max_select": int(g.max_select or 0),
            "options": [
                {"id": o.id, "name": o.name, "price_cents": int(o.price_cents or 0)}
                for o in opts_by_group.get(g.id, [])
            ],
        })
    return out


def list_menu(session: Session) -> List[Dict[str, Any]]:
    products = session.exec(
        select(Product).where(Product.active == True).order_by(Product.id)  # noqa: E712
    ).all()
    groups = _groups_for(session, [p.id for p in products])
    return [
        {
            "id": p.id,
            "name": p.name,
            "description": p.description,
            "price_cents": int(p.price_cents or 0),
            "original_price_cents": p.original_price_cents,
            "image_url": p.image_url,
            "option_groups": groups.get(p.id, []),
        }
        for p in products
    ]


def build_cart_item(
    session: Session,
    product_id: int,
    quantity: int = 1,
    option_ids: Optional[Sequence[int]] = None,
    note: Optional[str] = None,
) -> CartItem:
    """
    Costruisce una riga carrello dal catalogo: nome/prezzo del prodotto e delle
    opzioni sono snapshot letti ora, la selezione è validata gruppo per gruppo.
    """
    if quantity < 1:
        raise CartValidationError("quantity must be at least 1")

    p = session.get(Product, product_id)
    if not p or not p.active:
        raise CartValidationError(f"product {product_id} not available")

    groups = _groups_for(session, [p.id]).get(p.id, [])
    by_id = {o["id"]: (g, o) for g in groups for o in g["options"]}

    # stessa opzione ripetuta = quantità dell'opzione
    counts: Dict[int, int] = {}
    for oid in option_ids or []:
        oid = int(oid)
        if oid not in by_id:
            raise CartValidationError(f"option {oid} does not belong to product {product_id}")
        counts[oid] = counts.get(oid, 0) + 1

    for g in groups:
        chosen = sum(n for oid, n in counts.items() if by_id[oid][0]["id"] == g["id"])
        lower = max(g["min_select"], 1 if g["required"] else 0)
        if chosen < lower:
            raise CartValidationError(f"'{g['name']}' needs at least {lower} choice(s)")
        if g["max_select"] and chosen > g["max_select"]:
            raise CartValidationError(f"'{g['name']}' allows at most {g['max_select']} choice(s)")

    selected = [
        SelectedOption(
            option_id=oid,
            option_name=by_id[oid][1]["name"],
            unit_price_cents=by_id[oid][1]["price_cents"],
            quantity=n,
        )
        for oid, n in sorted(counts.items())
    ]
    return CartItem(
        product_id=p.id,
        product_name=p.name,
        unit_price_cents=int(p.price_cents or 0),
        quantity=int(quantity),
        note=(note or "").strip() or None,
        selected_options=selected,
    )
