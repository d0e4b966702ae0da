from datetime import UTC, datetime, timedelta

import pytest
from notifications.channel import reset_channels, set_email_channel
from notifications.channel.fake_email import FakeEmailAdapter
from ordering.cart.store import InMemoryCartStore, reset_cart_store, set_cart_store
from ordering.discount.discount import Discount
from ordering.restaurant.restaurant import MenuItem, MenuItemAddon, MenuItemSize, Restaurant
from ordering.settings import reset_settings
from payments.gateway import reset_gateway, set_gateway
from payments.gateway.fake_adapter import FakeGateway
from protean import current_domain
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def ordering_bed():
    from ordering.domain import ordering

    bed = DomainFixture(ordering)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(ordering_bed):
    with ordering_bed.domain_context():
        yield

        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()

    reset_gateway()
    reset_channels()
    reset_cart_store()
    reset_settings()


# ---------------------------------------------------------------------------
# Collaborators
# ---------------------------------------------------------------------------
@pytest.fixture()
def gateway():
    fake = FakeGateway()
    set_gateway(fake)
    return fake


@pytest.fixture()
def email():
    fake = FakeEmailAdapter()
    set_email_channel(fake)
    return fake


@pytest.fixture()
def cart_store():
    store = InMemoryCartStore(ttl_seconds=3600)
    set_cart_store(store)
    return store


# ---------------------------------------------------------------------------
# Catalog and discount factories
# ---------------------------------------------------------------------------
@pytest.fixture()
def make_restaurant():
    def _make(**overrides):
        attrs = {
            "restaurant_name": "Luigi's Trattoria",
            "cuisine_types": ["Italian"],
            "phone_number": "555-0100",
            "street_address": "10 Market St",
            "city": "Springfield",
            "state": "IL",
            "zip_code": "62701",
            "accepts_delivery": True,
            "accepts_pickup": True,
            "delivery_fee": 4.99,
            "minimum_order_amount": 10.0,
            "estimated_prep_time_minutes": 20,
            "estimated_delivery_time_minutes": 40,
        }
        attrs.update(overrides)
        restaurant = Restaurant.register(**attrs)
        current_domain.repository_for(Restaurant).add(restaurant)
        return restaurant

    return _make


@pytest.fixture()
def make_menu_item():
    def _make(restaurant, **overrides):
        attrs = {
            "restaurant_id": str(restaurant.id),
            "item_name": "Margherita Pizza",
            "base_price": 12.99,
            "is_available": True,
            "sizes": [
                MenuItemSize(size_name="Regular", price_adjustment=0.0),
                MenuItemSize(size_name="Large", price_adjustment=3.0),
            ],
            "addons": [
                MenuItemAddon(addon_name="Extra cheese", price=1.5),
                MenuItemAddon(addon_name="Olives", price=0.75),
            ],
        }
        attrs.update(overrides)
        item = MenuItem(**attrs)
        current_domain.repository_for(MenuItem).add(item)
        return item

    return _make


@pytest.fixture()
def make_discount():
    def _make(restaurant, **overrides):
        now = datetime.now(UTC)
        attrs = {
            "discount_type": "percentage",
            "discount_value": 20.0,
            "coupon_code": "save20",
            "start_date": now - timedelta(days=1),
            "end_date": now + timedelta(days=1),
        }
        attrs.update(overrides)
        discount = Discount.create(restaurant_id=str(restaurant.id), **attrs)
        current_domain.repository_for(Discount).add(discount)
        return discount

    return _make


@pytest.fixture()
def restaurant(make_restaurant):
    return make_restaurant()


@pytest.fixture()
def pizza(restaurant, make_menu_item):
    return make_menu_item(restaurant)
