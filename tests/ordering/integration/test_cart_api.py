"""Integration tests for the cart endpoints via TestClient."""

import pytest
from fastapi.testclient import TestClient
from ordering.api.app import create_app

USER = {"X-User-Id": "user-1"}


@pytest.fixture()
def client(cart_store):
    return TestClient(create_app())


def _add_pizza(client, pizza, **body):
    response = client.post("/cart/items", json={"menu_item_id": str(pizza.id), **body}, headers=USER)
    assert response.status_code == 201
    return response.json()


class TestAuthentication:
    def test_missing_user_header(self, client):
        response = client.get("/cart")
        assert response.status_code == 401
        assert response.json()["error_code"] == "UNAUTHENTICATED"

    def test_blank_user_header(self, client):
        response = client.get("/cart", headers={"X-User-Id": "  "})
        assert response.status_code == 401


class TestViewCart:
    def test_empty_cart(self, client):
        response = client.get("/cart", headers=USER)
        assert response.status_code == 200
        body = response.json()
        assert body["items"] == []
        assert body["restaurant_id"] is None
        assert body["totals"]["grand_total"] == 0.0

    def test_carts_are_per_user(self, client, pizza):
        _add_pizza(client, pizza)
        response = client.get("/cart", headers={"X-User-Id": "user-2"})
        assert response.json()["items"] == []


class TestCartItems:
    def test_add_item_returns_totals(self, client, pizza, restaurant):
        body = _add_pizza(client, pizza, quantity=2, size="Large", addons=["Extra cheese"])

        assert body["restaurant_id"] == str(restaurant.id)
        assert body["items"][0]["item_total_price"] == 34.98
        assert body["totals"]["subtotal"] == 34.98
        assert body["totals"]["delivery_fee"] == 4.99

    def test_add_unknown_item(self, client):
        response = client.post("/cart/items", json={"menu_item_id": "missing"}, headers=USER)
        assert response.status_code == 404
        assert response.json()["error_code"] == "ITEM_NOT_FOUND"

    def test_add_unavailable_item(self, client, restaurant, make_menu_item):
        soldout = make_menu_item(restaurant, is_available=False)
        response = client.post("/cart/items", json={"menu_item_id": str(soldout.id)}, headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "ITEM_UNAVAILABLE"

    def test_zero_quantity_is_rejected(self, client, pizza):
        response = client.post("/cart/items", json={"menu_item_id": str(pizza.id), "quantity": 0}, headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_update_item(self, client, pizza):
        line_id = _add_pizza(client, pizza)["items"][0]["line_id"]

        response = client.patch(f"/cart/items/{line_id}", json={"quantity": 3}, headers=USER)

        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 3

    def test_update_missing_line(self, client, pizza):
        _add_pizza(client, pizza)
        response = client.patch("/cart/items/nope", json={"quantity": 3}, headers=USER)
        assert response.status_code == 404
        assert response.json()["error_code"] == "ITEM_NOT_IN_CART"

    def test_remove_last_item_unbinds_restaurant(self, client, pizza):
        line_id = _add_pizza(client, pizza)["items"][0]["line_id"]

        response = client.delete(f"/cart/items/{line_id}", headers=USER)

        assert response.status_code == 200
        assert response.json()["items"] == []
        assert response.json()["restaurant_id"] is None

    def test_clear_cart(self, client, pizza, cart_store):
        _add_pizza(client, pizza)
        response = client.delete("/cart", headers=USER)
        assert response.status_code == 200
        assert cart_store.get("user-1") is None


class TestTipAndDiscount:
    def test_set_tip(self, client, pizza):
        _add_pizza(client, pizza)
        response = client.patch("/cart", json={"tip": 2}, headers=USER)
        assert response.status_code == 200
        assert response.json()["totals"]["grand_total"] == 21.51

    def test_negative_tip(self, client):
        response = client.patch("/cart", json={"tip": -1}, headers=USER)
        assert response.status_code == 400

    def test_apply_and_remove_discount(self, client, pizza, restaurant, make_discount):
        make_discount(restaurant)
        _add_pizza(client, pizza)

        applied = client.post("/cart/discount", json={"coupon_code": "save20"}, headers=USER)
        assert applied.status_code == 200
        assert applied.json()["totals"]["discount_amount"] == 2.60

        removed = client.delete("/cart/discount", headers=USER)
        assert removed.json()["applied_discount"] is None
        assert removed.json()["totals"]["discount_amount"] == 0.0

    def test_invalid_coupon(self, client, pizza):
        _add_pizza(client, pizza)
        response = client.post("/cart/discount", json={"coupon_code": "NOPE"}, headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_COUPON"


class TestHealth:
    def test_health(self, client):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"
