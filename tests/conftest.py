import os

# prima di importare storefront: niente DB/config su disco durante i test
os.environ["STOREFRONT_DB_URL"] = "sqlite://"
os.environ["STOREFRONT_CONFIG"] = os.path.join(os.path.dirname(__file__), "no-config.json")

import pytest
from fastapi.testclient import TestClient
from sqlmodel import Session

from storefront.cart.models_cart import CartItem, SelectedOption
from storefront.cart.storage import MemoryCartStorage
from storefront.db import create_db_and_tables, get_session_dep, make_engine, seed_if_empty
from storefront.main import app
from storefront.schemas import CheckoutData
from storefront.views_cart import get_cart_storage


@pytest.fixture
def engine():
    eng = make_engine("sqlite://")
    create_db_and_tables(eng)
    seed_if_empty(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def session(engine):
    with Session(engine, expire_on_commit=False) as s:
        yield s


@pytest.fixture
def cart_storage():
    return MemoryCartStorage()


@pytest.fixture
def client(engine, cart_storage):
    def _session_override():
        with Session(engine, expire_on_commit=False) as s:
            yield s

    app.dependency_overrides[get_session_dep] = _session_override
    app.dependency_overrides[get_cart_storage] = lambda: cart_storage
    yield TestClient(app)
    app.dependency_overrides.clear()


def make_item(product_id=1, name="Bacon Bull", price=1000, quantity=1, options=(), note=None):
    return CartItem(
        product_id=product_id,
        product_name=name,
        unit_price_cents=price,
        quantity=quantity,
        note=note,
        selected_options=[
            SelectedOption(option_id=oid, option_name=oname, unit_price_cents=oprice, quantity=oqty)
            for oid, oname, oprice, oqty in options
        ],
    )


def make_checkout(**overrides):
    data = {
        "customer_name": "Maria Souza",
        "customer_phone": "11987654321",
        "is_delivery": True,
        "delivery_address": "Rua das Flores, 100",
        "payment_method": "card",
    }
    data.update(overrides)
    return CheckoutData(**data)
