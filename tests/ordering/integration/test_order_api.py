"""Integration tests for the order endpoints via TestClient."""

import asyncio

import pytest
from fastapi.testclient import TestClient
from ordering.api.app import create_app
from ordering.checkout.coordinator import CheckoutCoordinator
from ordering.discount.discount import Discount
from ordering.order.order import Order
from ordering.restaurant.restaurant import Restaurant
from protean import current_domain

USER = {"X-User-Id": "user-1"}
ADDRESS = {"street_address": "1 Elm St", "city": "Springfield", "state": "IL", "zip_code": "62701"}


@pytest.fixture()
def client(cart_store, gateway, email):
    return TestClient(create_app())


def _fill_cart(client, pizza, quantity=1, headers=USER):
    response = client.post(
        "/cart/items", json={"menu_item_id": str(pizza.id), "quantity": quantity}, headers=headers
    )
    assert response.status_code == 201


def _checkout(client, restaurant, headers=USER, **overrides):
    body = {
        "restaurant_id": str(restaurant.id),
        "order_type": "delivery",
        "payment_method_id": "pm-visa",
        "delivery_address": ADDRESS,
    }
    body.update(overrides)
    return client.post("/orders", json=body, headers=headers)


@pytest.fixture()
def placed(client, pizza, restaurant):
    _fill_cart(client, pizza)
    response = _checkout(client, restaurant)
    assert response.status_code == 201
    return response.json()


class TestPlaceOrder:
    def test_places_and_clears_cart(self, client, pizza, restaurant, cart_store):
        _fill_cart(client, pizza)

        response = _checkout(client, restaurant, tip=2)

        assert response.status_code == 201
        body = response.json()
        assert body["order"]["order_status"] == "order_received"
        assert body["order"]["grand_total"] == 21.51
        assert body["order"]["payment_status"] == "completed"
        assert body["order"]["estimated_delivery_time"] is not None
        assert body["items"][0]["item_name"] == "Margherita Pizza"
        assert body["restaurant"]["restaurant_name"] == "Luigi's Trattoria"
        assert cart_store.get("user-1") is None

    def test_counters_and_redemption(self, client, pizza, restaurant, make_discount):
        discount = make_discount(restaurant)
        _fill_cart(client, pizza)
        client.post("/cart/discount", json={"coupon_code": "SAVE20"}, headers=USER)

        response = _checkout(client, restaurant)

        assert response.status_code == 201
        assert response.json()["order"]["discount_id"] == str(discount.id)
        assert current_domain.repository_for(Discount).get(discount.id).current_redemption_count == 1
        assert current_domain.repository_for(Restaurant).get(restaurant.id).total_order_count == 1

    def test_sends_confirmation_when_email_given(self, client, pizza, restaurant, email):
        _fill_cart(client, pizza)
        _checkout(client, restaurant, headers={**USER, "X-User-Email": "ann@example.com"})
        assert email.sent_emails[0]["to"] == "ann@example.com"

    def test_empty_cart(self, client, restaurant):
        response = _checkout(client, restaurant)
        assert response.status_code == 400
        assert response.json()["error_code"] == "CART_EMPTY"

    def test_incomplete_address(self, client, pizza, restaurant):
        _fill_cart(client, pizza)
        response = _checkout(client, restaurant, delivery_address={"street_address": "1 Elm St"})
        assert response.status_code == 400
        body = response.json()
        assert body["error_code"] == "MISSING_ADDRESS"
        assert set(body["details"]["missing_fields"]) == {"city", "state", "zip_code"}

    def test_unknown_order_type(self, client, pizza, restaurant):
        _fill_cart(client, pizza)
        response = _checkout(client, restaurant, order_type="drone")
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"

    def test_payment_declined(self, client, pizza, restaurant, gateway, cart_store):
        gateway.configure(should_succeed=False, failure_reason="Insufficient funds")
        _fill_cart(client, pizza)

        response = _checkout(client, restaurant)

        assert response.status_code == 402
        assert response.json()["error_code"] == "PAYMENT_FAILED"
        assert response.json()["message"] == "Insufficient funds"
        assert len(cart_store.get("user-1").items) == 1
        assert current_domain.repository_for(Order)._dao.query.all().total == 0

    def test_closed_restaurant(self, client, make_restaurant, make_menu_item):
        closed = make_restaurant(is_active=False)
        client.post("/cart/items", json={"menu_item_id": str(make_menu_item(closed).id)}, headers=USER)

        response = _checkout(client, closed)

        assert response.status_code == 404
        assert response.json()["error_code"] == "RESTAURANT_NOT_FOUND"

    def test_checkout_runs_off_the_event_loop(self, client, pizza, restaurant, monkeypatch):
        seen = {}
        original = CheckoutCoordinator.checkout

        def _checkout_in_worker(self, *args, **kwargs):
            try:
                asyncio.get_running_loop()
                seen["on_loop"] = True
            except RuntimeError:
                seen["on_loop"] = False
            return original(self, *args, **kwargs)

        monkeypatch.setattr(CheckoutCoordinator, "checkout", _checkout_in_worker)
        _fill_cart(client, pizza)

        assert _checkout(client, restaurant).status_code == 201
        assert seen == {"on_loop": False}


class TestOrderHistory:
    def test_lists_own_orders(self, client, pizza, restaurant, placed):
        _fill_cart(client, pizza, headers={"X-User-Id": "user-2"})
        _checkout(client, restaurant, headers={"X-User-Id": "user-2"})

        response = client.get("/orders", headers=USER)

        assert response.status_code == 200
        assert response.json()["total_count"] == 1
        assert response.json()["orders"][0]["order_id"] == placed["order"]["order_id"]

    def test_filters(self, client, placed):
        assert client.get("/orders?order_type=pickup", headers=USER).json()["total_count"] == 0
        assert client.get("/orders?order_status=order_received", headers=USER).json()["total_count"] == 1

    def test_limit_out_of_range(self, client):
        response = client.get("/orders?limit=500", headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_INPUT"


class TestOrderDetail:
    def test_owner_sees_detail(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.get(f"/orders/{order_id}", headers=USER)
        assert response.status_code == 200
        assert response.json()["items"][0]["quantity"] == 1

    def test_other_user_gets_not_found(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.get(f"/orders/{order_id}", headers={"X-User-Id": "user-2"})
        assert response.status_code == 404
        assert response.json()["error_code"] == "ORDER_NOT_FOUND"


class TestUpdateOrder:
    def test_update_tip(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.patch(f"/orders/{order_id}", json={"tip": 5}, headers=USER)
        assert response.status_code == 200
        assert response.json()["order"]["tip"] == 5.0
        assert response.json()["order"]["grand_total"] == 24.51

    def test_no_updates(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.patch(f"/orders/{order_id}", json={}, headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "NO_UPDATES"


class TestCancelOrder:
    def test_cancel_with_reason(self, client, placed):
        order_id = placed["order"]["order_id"]

        response = client.request(
            "DELETE", f"/orders/{order_id}", json={"cancellation_reason": "Changed my mind"}, headers=USER
        )

        assert response.status_code == 200
        body = response.json()
        assert body["order"]["order_status"] == "cancelled"
        assert body["order"]["cancellation_reason"] == "Changed my mind"
        assert body["order"]["payment_status"] == "refund_pending"
        assert "Refund" in body["message"]

    def test_cancel_without_body_uses_default_reason(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.delete(f"/orders/{order_id}", headers=USER)
        assert response.json()["order"]["cancellation_reason"] == "User cancelled"

    def test_too_late(self, client, placed):
        order_id = placed["order"]["order_id"]
        for status in ("preparing", "ready"):
            client.put(f"/orders/{order_id}/status", json={"order_status": status}, headers=USER)

        response = client.delete(f"/orders/{order_id}", headers=USER)

        assert response.status_code == 400
        assert response.json()["error_code"] == "TOO_LATE_TO_CANCEL"


class TestAdvanceStatus:
    def test_advance(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"order_status": "preparing"}, headers=USER)
        assert response.status_code == 200
        assert response.json()["order"]["order_status"] == "preparing"
        assert response.json()["order"]["preparing_at"] is not None

    def test_illegal_transition(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"order_status": "delivered"}, headers=USER)
        assert response.status_code == 400
        assert response.json()["error_code"] == "INVALID_STATUS_TRANSITION"

    def test_unknown_status_value(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.put(f"/orders/{order_id}/status", json={"order_status": "teleported"}, headers=USER)
        assert response.status_code == 400


class TestReorder:
    def test_reorder_fills_cart(self, client, placed):
        order_id = placed["order"]["order_id"]
        response = client.post(f"/orders/{order_id}/reorder", headers=USER)
        assert response.status_code == 200
        body = response.json()
        assert body["skipped_items"] == []
        assert body["cart"]["items"][0]["item_name"] == "Margherita Pizza"
        assert body["cart"]["totals"]["subtotal"] == 12.99


class TestErrorBody:
    def test_unexpected_errors_are_wrapped(self, cart_store, gateway, email, monkeypatch):
        def _boom(*args, **kwargs):
            raise RuntimeError("database on fire")

        monkeypatch.setattr("ordering.api.routes.get_order", _boom)
        client = TestClient(create_app(), raise_server_exceptions=False)

        response = client.get("/orders/any", headers=USER)

        assert response.status_code == 500
        body = response.json()
        assert body["success"] is False
        assert body["error_code"] == "INTERNAL_ERROR"
        assert "timestamp" in body
        assert "details" not in body
