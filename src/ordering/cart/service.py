"""Cart operations for one user at a time.

Every mutation loads the cart from the store, changes it, and writes it
back. Totals are recomputed on every read, never stored.
"""

from decimal import Decimal

from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.utils.globals import current_domain

from ordering.cart.cart import AppliedDiscount, Cart, CartLineItem, PricedOption
from ordering.cart.store import CartStore, get_cart_store
from ordering.discount.ledger import RedemptionLedger, find_coupon
from ordering.errors import CartEmpty, InvalidInput, ItemNotFound, ItemNotInCart, ItemUnavailable
from ordering.pricing import engine
from ordering.restaurant.restaurant import MenuItem, Restaurant
from ordering.settings import get_settings
from ordering.utils.logging import get_logger

logger = get_logger(__name__)

_UPDATABLE = {"quantity", "size", "addons", "modifications", "special_instructions"}


def _load_menu_item(menu_item_id) -> MenuItem:
    try:
        return current_domain.repository_for(MenuItem).get(menu_item_id)
    except ObjectNotFoundError as exc:
        raise ItemNotFound() from exc


def _priced_addons(menu_item: MenuItem, names) -> list[PricedOption]:
    return [PricedOption(name=name, price=engine.to_money(menu_item.addon_price(name))) for name in names or []]


def _priced_modifications(modifications) -> list[PricedOption]:
    options = []
    for mod in modifications or []:
        if isinstance(mod, str):
            options.append(PricedOption(name=mod))
            continue
        price = engine.to_money(mod.get("price", 0))
        if price < 0:
            raise InvalidInput("Modification price cannot be negative")
        options.append(PricedOption(name=mod["name"], price=price))
    return options


class CartService:
    def __init__(self, store: CartStore | None = None, ledger: RedemptionLedger | None = None) -> None:
        self.store = store or get_cart_store()
        self.ledger = ledger or RedemptionLedger()

    # -------------------------------------------------------------------
    # Reads
    # -------------------------------------------------------------------
    def get(self, user_id) -> Cart:
        return self.store.get(str(user_id)) or Cart()

    def totals(self, cart: Cart, pickup: bool = False, tip=None) -> engine.PriceBreakdown:
        """Price the cart; the restaurant's delivery fee applies unless ``pickup``."""
        delivery_fee = engine.ZERO
        if cart.restaurant_id and not pickup:
            try:
                restaurant = current_domain.repository_for(Restaurant).get(cart.restaurant_id)
                delivery_fee = engine.to_money(restaurant.delivery_fee)
            except ObjectNotFoundError:
                logger.warning("cart_restaurant_missing", restaurant_id=cart.restaurant_id)

        return engine.price(
            cart.line_totals(),
            delivery_fee=delivery_fee,
            discount=cart.applied_discount.terms if cart.applied_discount else None,
            tip=cart.tip if tip is None else tip,
            tax_rate=get_settings().tax_rate,
            pickup=pickup,
        )

    def view(self, user_id) -> dict:
        cart = self.get(user_id)
        return {"cart": cart.to_dict(), "totals": self.totals(cart).as_floats()}

    # -------------------------------------------------------------------
    # Items
    # -------------------------------------------------------------------
    def add_item(
        self,
        user_id,
        menu_item_id,
        quantity: int = 1,
        size=None,
        addons=(),
        modifications=(),
        special_instructions=None,
    ) -> Cart:
        if quantity < 1:
            raise InvalidInput("Quantity must be at least 1")

        menu_item = _load_menu_item(menu_item_id)
        if not menu_item.is_available:
            raise ItemUnavailable(f"{menu_item.item_name} is currently unavailable")

        try:
            line = CartLineItem(
                menu_item_id=str(menu_item.id),
                item_name=menu_item.item_name,
                base_price=engine.to_money(menu_item.base_price),
                quantity=quantity,
                size=size,
                size_price_delta=engine.to_money(menu_item.size_adjustment(size)),
                addons=_priced_addons(menu_item, addons),
                modifications=_priced_modifications(modifications),
                special_instructions=special_instructions,
            )
        except ValidationError as exc:
            raise InvalidInput("Invalid item customization", **exc.messages) from exc

        cart = self.get(user_id)
        previous_restaurant = cart.restaurant_id
        if cart.add(menu_item.restaurant_id, line):
            logger.info(
                "cart_restaurant_switched",
                user_id=str(user_id),
                from_restaurant=previous_restaurant,
                to_restaurant=str(menu_item.restaurant_id),
            )
        self.store.set(str(user_id), cart)
        return cart

    def update_item(self, user_id, item_ref, **changes) -> Cart:
        unknown = set(changes) - _UPDATABLE
        if unknown:
            raise InvalidInput(f"Cannot update {', '.join(sorted(unknown))}")

        cart = self.get(user_id)
        line = cart.find(item_ref)
        if line is None:
            raise ItemNotInCart()

        if "quantity" in changes:
            if changes["quantity"] is None or changes["quantity"] < 1:
                raise InvalidInput("Quantity must be at least 1")
            line.quantity = changes["quantity"]
        if "special_instructions" in changes:
            line.special_instructions = changes["special_instructions"]
        if "modifications" in changes:
            line.modifications = _priced_modifications(changes["modifications"])

        if "size" in changes or "addons" in changes:
            menu_item = _load_menu_item(line.menu_item_id)
            try:
                if "size" in changes:
                    line.size = changes["size"]
                    line.size_price_delta = engine.to_money(menu_item.size_adjustment(line.size))
                if "addons" in changes:
                    line.addons = _priced_addons(menu_item, changes["addons"])
            except ValidationError as exc:
                raise InvalidInput("Invalid item customization", **exc.messages) from exc

        self.store.set(str(user_id), cart)
        return cart

    def remove_item(self, user_id, item_ref) -> Cart:
        cart = self.get(user_id)
        if cart.remove(item_ref):
            self.store.set(str(user_id), cart)
        return cart

    def replace(self, user_id, cart: Cart) -> Cart:
        self.store.set(str(user_id), cart)
        return cart

    def clear(self, user_id) -> None:
        self.store.delete(str(user_id))

    # -------------------------------------------------------------------
    # Discount and tip
    # -------------------------------------------------------------------
    def apply_discount(self, user_id, code) -> Cart:
        cart = self.get(user_id)
        if cart.is_empty:
            raise CartEmpty()

        discount = find_coupon(cart.restaurant_id, code)
        subtotal = engine.to_money(sum(cart.line_totals(), Decimal(0)))
        self.ledger.validate(discount, subtotal, user_id)

        cart.applied_discount = AppliedDiscount.from_dict(discount.snapshot())
        self.store.set(str(user_id), cart)
        return cart

    def remove_discount(self, user_id) -> Cart:
        cart = self.get(user_id)
        if cart.applied_discount is not None:
            cart.applied_discount = None
            self.store.set(str(user_id), cart)
        return cart

    def set_tip(self, user_id, tip) -> Cart:
        tip = engine.to_money(tip)
        if tip < 0:
            raise InvalidInput("Tip cannot be negative")
        cart = self.get(user_id)
        cart.tip = tip
        self.store.set(str(user_id), cart)
        return cart
