import pytest

from storefront.config import CONFIG

CUSTOMER = {"X-User-Id": "7", "X-User-Role": "customer"}
OTHER = {"X-User-Id": "8", "X-User-Role": "customer"}
ADMIN = {"X-User-Id": "1", "X-User-Role": "admin"}

CHECKOUT = {
    "cart_id": "c1",
    "customer_name": "Maria Souza",
    "customer_phone": "11987654321",
    "delivery_address": "Rua das Flores, 100",
    "payment_method": "card",
}


def _menu(client):
    return {p["name"]: p for p in client.get("/api/menu").json()["products"]}


def _option_id(product, name):
    return next(o["id"] for g in product["option_groups"] for o in g["options"] if o["name"] == name)


def _fill_cart(client, cart_id="c1"):
    bull = _menu(client)["Bacon Bull"]
    bacon = _option_id(bull, "Bacon extra")
    client.post(f"/api/cart/{cart_id}/items", json={"product_id": bull["id"], "option_ids": [bacon]})
    r = client.post(f"/api/cart/{cart_id}/items", json={"product_id": bull["id"], "quantity": 1})
    return r.json()["cart"]


def _place(client, **extra):
    _fill_cart(client, CHECKOUT["cart_id"])
    r = client.post("/api/checkout", json={**CHECKOUT, **extra}, headers=CUSTOMER)
    assert r.status_code in (200, 201), r.text
    return r.json()["order_id"]


def test_run_serves_app_with_uvicorn(monkeypatch):
    import uvicorn

    from storefront import main

    calls = []
    monkeypatch.setattr(uvicorn, "run", lambda app, **kw: calls.append((app, kw)))
    monkeypatch.setenv("PORT", "9100")
    main.run()
    assert calls[0][0] is main.app
    assert calls[0][1]["port"] == 9100


def test_health(client):
    assert client.get("/health").text == "OK"


def test_menu_lists_products_with_groups(client):
    menu = _menu(client)
    assert menu["Bacon Bull"]["price_cents"] == 2900
    assert menu["Chicken"]["option_groups"][0]["required"] is True
    assert menu["Big Black Taurus Bacon"]["original_price_cents"] == 4900


def test_cart_lines_are_split_by_options(client):
    cart = _fill_cart(client)
    assert len(cart["items"]) == 2
    assert cart["item_count"] == 2
    assert cart["subtotal_cents"] == (2900 + 500) + 2900
    assert cart["delivery_fee_cents"] == 499


def test_cart_update_and_remove_use_line_key(client):
    cart = _fill_cart(client)
    with_bacon, plain = cart["items"]

    r = client.post("/api/cart/c1/items/quantity", json={
        "product_id": plain["product_id"], "line_key": plain["line_key"], "quantity": 3,
    })
    quantities = {it["line_key"]: it["quantity"] for it in r.json()["cart"]["items"]}
    assert quantities == {with_bacon["line_key"]: 1, plain["line_key"]: 3}

    r = client.post("/api/cart/c1/items/quantity", json={
        "product_id": plain["product_id"], "line_key": plain["line_key"], "quantity": 0,
    })
    assert [it["line_key"] for it in r.json()["cart"]["items"]] == [with_bacon["line_key"]]

    r = client.post("/api/cart/c1/items/remove", json={
        "product_id": with_bacon["product_id"], "line_key": with_bacon["line_key"],
    })
    assert r.json()["cart"]["items"] == []

    r = client.post("/api/cart/c1/items/remove", json={
        "product_id": with_bacon["product_id"], "line_key": with_bacon["line_key"],
    })
    assert r.status_code == 404


def test_cart_rejects_bad_option_selection(client):
    menu = _menu(client)
    chicken = menu["Chicken"]
    # "Ponto do pão" è obbligatorio
    r = client.post("/api/cart/c2/items", json={"product_id": chicken["id"]})
    assert r.status_code == 400

    foreign = _option_id(menu["Bacon Bull"], "Ovo")
    r = client.post("/api/cart/c2/items", json={"product_id": chicken["id"], "option_ids": [foreign]})
    assert r.status_code == 400

    r = client.post("/api/cart/c2/items", json={"product_id": 999})
    assert r.status_code == 400
    assert client.get("/api/cart/c2").json()["cart"]["items"] == []


def test_checkout_clears_cart_and_order_is_trackable(client):
    oid = _place(client, idempotency_key="k-1")
    assert client.get("/api/cart/c1").json()["cart"]["item_count"] == 0

    r = client.get(f"/api/orders/{oid}", headers=CUSTOMER)
    order = r.json()["order"]
    assert order["status"] == "pending"
    assert order["available_actions"] == ["cancel"]
    assert [len(it["options"]) for it in order["items"]] == [1, 0]
    assert order["total_cents"] == 6300 + 499
    assert r.headers["cache-control"].startswith("no-store")


def test_checkout_retry_with_same_key_returns_same_order(client):
    first = _place(client, idempotency_key="k-2")
    r = client.post("/api/checkout", json={**CHECKOUT, "idempotency_key": "k-2"}, headers=CUSTOMER)
    assert r.status_code == 200
    assert r.json() == {"ok": True, "order_id": first, "created": False}
    assert len(client.get("/api/orders", headers=CUSTOMER).json()["orders"]) == 1


def test_checkout_validation_errors(client):
    r = client.post("/api/checkout", json=CHECKOUT, headers=CUSTOMER)
    assert r.status_code == 400
    assert r.json()["field"] == "items"

    _fill_cart(client)
    r = client.post("/api/checkout", json={**CHECKOUT, "customer_phone": "123"}, headers=CUSTOMER)
    assert r.status_code == 422

    r = client.post("/api/checkout", json={**CHECKOUT, "payment_method": "bitcoin"}, headers=CUSTOMER)
    assert r.status_code == 422

    r = client.post("/api/checkout", json=CHECKOUT)
    assert r.status_code == 401
    # il carrello resta intatto dopo un rifiuto
    assert client.get("/api/cart/c1").json()["cart"]["item_count"] == 2


def test_missing_and_foreign_orders_are_not_found(client):
    r = client.get("/api/orders/424242", headers=CUSTOMER)
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"
    assert client.get("/api/orders/nope", headers=CUSTOMER).status_code == 404
    huge = "99999999999999999999999"
    assert client.get(f"/api/orders/{huge}", headers=CUSTOMER).status_code == 404
    assert client.get(f"/admin/api/orders/{huge}", headers=ADMIN).status_code == 404
    assert client.post(f"/api/orders/{huge}/cancel", headers=CUSTOMER).status_code == 404
    assert client.post(f"/admin/api/orders/{huge}/accept", headers=ADMIN).status_code == 404

    oid = _place(client)
    assert client.get(f"/api/orders/{oid}", headers=OTHER).status_code == 404
    assert client.get(f"/api/orders/{oid}", headers=ADMIN).status_code == 200


def test_operator_workflow(client):
    oid = _place(client)

    board = client.get("/admin/api/orders", headers=ADMIN).json()
    assert [o["id"] for o in board["columns"]["pending"]] == [oid]
    assert board["columns"]["pending"][0]["available_actions"] == ["accept", "reject", "cancel"]

    for action, status in [("accept", "accepted"), ("preparing", "preparing"),
                           ("out_for_delivery", "out_for_delivery"), ("delivered", "delivered")]:
        r = client.post(f"/admin/api/orders/{oid}/{action}", headers=ADMIN)
        assert r.status_code == 200, r.text
        assert r.json()["status"] == status

    r = client.post(f"/admin/api/orders/{oid}/cancel", headers=ADMIN)
    assert r.status_code == 409
    assert r.json()["status"] == "delivered"

    history = client.get(f"/api/orders/{oid}", headers=CUSTOMER).json()["order"]["history"]
    assert [h["status"] for h in history] == ["pending", "accepted", "preparing", "out_for_delivery", "delivered"]


def test_operator_stale_action_conflicts(client):
    oid = _place(client)
    client.post(f"/admin/api/orders/{oid}/reject", headers=ADMIN, json={"note": "sem entregador"})
    r = client.post(f"/admin/api/orders/{oid}/accept", headers=ADMIN, json={"expected_status": "pending"})
    assert r.status_code == 409
    assert r.json()["status"] == "rejected"


def test_board_filters_and_access(client):
    _place(client)
    assert client.get("/admin/api/orders", headers=CUSTOMER).status_code == 403
    assert client.get("/admin/api/orders?status=delivered", headers=ADMIN).json()["total_count"] == 0
    assert client.get("/admin/api/orders?payment=card", headers=ADMIN).json()["total_count"] == 1
    assert client.get("/admin/api/orders?date=31-12-2024", headers=ADMIN).status_code == 400
    assert client.post("/admin/api/orders/1/teleport", headers=ADMIN).status_code == 400


def test_customer_cancel(client):
    oid = _place(client)
    assert client.post(f"/api/orders/{oid}/cancel", headers=OTHER).status_code == 403
    r = client.post(f"/api/orders/{oid}/cancel", headers=CUSTOMER)
    assert r.status_code == 200
    assert r.json()["order"]["status"] == "cancelled"
    assert client.post(f"/api/orders/{oid}/cancel", headers=CUSTOMER).status_code == 409


@pytest.fixture
def service_key(monkeypatch):
    monkeypatch.setattr(CONFIG, "service_key", "s3cret")
    return {"X-Service-Key": "s3cret"}


def test_provision_user(client, service_key):
    body = {"email": "Ana@Example.com", "password": "hunter22", "full_name": "Ana Lima"}
    r = client.post("/admin/api/users", json=body, headers=service_key)
    assert r.status_code == 201
    data = r.json()["data"]
    assert data["email"] == "ana@example.com"
    assert data["role"] == "customer"
    assert "password" not in data and "password_hash" not in data

    assert client.post("/admin/api/users", json=body, headers=service_key).status_code == 409
    bad = {**body, "email": "not-an-email"}
    assert client.post("/admin/api/users", json=bad, headers=service_key).status_code == 422
    admin = {**body, "email": "ops@example.com", "role": "admin"}
    assert client.post("/admin/api/users", json=admin, headers=service_key).json()["data"]["role"] == "admin"


def test_provision_requires_service_key(client, monkeypatch):
    body = {"email": "x@example.com", "password": "hunter22", "full_name": "Xavier"}
    monkeypatch.setattr(CONFIG, "service_key", "")
    assert client.post("/admin/api/users", json=body).status_code == 500

    monkeypatch.setattr(CONFIG, "service_key", "s3cret")
    assert client.post("/admin/api/users", json=body).status_code == 401
    assert client.post("/admin/api/users", json=body, headers={"X-Service-Key": "wrong"}).status_code == 401
