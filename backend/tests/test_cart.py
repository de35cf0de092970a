from decimal import Decimal

import pytest

from conftest import auth_headers
from services import cart_service
from services.exceptions import CartItemNotFound, InsufficientStock, ProductNotFound


def test_cart_is_created_on_first_access(client, customer):
    r = client.get("/api/Cart", headers=auth_headers(customer))
    assert r.status_code == 200
    body = r.json()
    assert body["userId"] == customer.id
    assert body["items"] == []
    assert body["totalAmount"] == 0


def test_add_accumulates_quantity(client, customer, make_product):
    product = make_product(price="12.50", stock=10)
    headers = auth_headers(customer)

    client.post("/api/Cart/add", json={"productId": product.id, "quantity": 2}, headers=headers)
    r = client.post("/api/Cart/add", json={"productId": product.id, "quantity": 3}, headers=headers)

    assert r.status_code == 200
    body = r.json()
    assert len(body["items"]) == 1
    assert body["items"][0]["quantity"] == 5
    assert body["items"][0]["subtotal"] == 62.5
    assert body["totalAmount"] == 62.5


def test_add_defaults_to_one(client, customer, make_product):
    product = make_product()
    r = client.post("/api/Cart/add", json={"productId": product.id}, headers=auth_headers(customer))
    assert r.json()["items"][0]["quantity"] == 1


def test_add_beyond_stock_is_400(client, customer, make_product):
    product = make_product(stock=2)
    r = client.post("/api/Cart/add", json={"productId": product.id, "quantity": 3}, headers=auth_headers(customer))
    assert r.status_code == 400


def test_add_unknown_product_is_404(client, customer):
    r = client.post("/api/Cart/add", json={"productId": 404, "quantity": 1}, headers=auth_headers(customer))
    assert r.status_code == 404


def test_update_sets_quantity_and_zero_removes(client, customer, make_product):
    product = make_product(stock=10)
    headers = auth_headers(customer)
    client.post("/api/Cart/add", json={"productId": product.id, "quantity": 1}, headers=headers)

    r = client.put(f"/api/Cart/update/{product.id}", json=4, headers=headers)
    assert r.status_code == 200
    assert r.json()["items"][0]["quantity"] == 4

    r = client.put(f"/api/Cart/update/{product.id}", json=0, headers=headers)
    assert r.status_code == 200
    assert r.json()["items"] == []


def test_update_missing_line_is_404(client, customer, make_product):
    product = make_product()
    r = client.put(f"/api/Cart/update/{product.id}", json=2, headers=auth_headers(customer))
    assert r.status_code == 404


def test_remove_and_clear(client, customer, make_product):
    a = make_product(name="A")
    b = make_product(name="B")
    headers = auth_headers(customer)
    client.post("/api/Cart/add", json={"productId": a.id}, headers=headers)
    client.post("/api/Cart/add", json={"productId": b.id}, headers=headers)

    r = client.delete(f"/api/Cart/remove/{a.id}", headers=headers)
    assert [i["productId"] for i in r.json()["items"]] == [b.id]

    assert client.delete(f"/api/Cart/remove/{a.id}", headers=headers).status_code == 404

    r = client.delete("/api/Cart/clear", headers=headers)
    assert r.status_code == 200
    assert r.json()["items"] == []


def test_carts_are_per_user(client, customer, other_customer, make_product):
    product = make_product()
    client.post("/api/Cart/add", json={"productId": product.id}, headers=auth_headers(customer))

    assert client.get("/api/Cart", headers=auth_headers(other_customer)).json()["items"] == []


def test_cart_requires_authentication(client):
    assert client.get("/api/Cart").status_code == 401


# Service level

def test_service_total_and_lines(db_session, customer, make_product):
    mug = make_product(name="Mug", price="10.00", stock=5)
    poster = make_product(name="Poster", price="15.50", stock=5)
    cart_service.add_item(db_session, customer.id, mug.id, 2)
    cart = cart_service.add_item(db_session, customer.id, poster.id, 1)

    assert cart_service.cart_total(cart) == Decimal("35.50")
    assert cart_service.get_lines(db_session, customer.id) == [(mug.id, 2), (poster.id, 1)]


def test_service_errors(db_session, customer, make_product):
    product = make_product(stock=1)

    with pytest.raises(ProductNotFound):
        cart_service.add_item(db_session, customer.id, 999, 1)
    with pytest.raises(InsufficientStock):
        cart_service.add_item(db_session, customer.id, product.id, 2)
    with pytest.raises(CartItemNotFound):
        cart_service.remove_item(db_session, customer.id, product.id)
