"""Per-user ordering counters, updated inside the order transaction."""

import json

from protean.exceptions import ObjectNotFoundError
from protean.fields import Identifier, Integer, Text
from protean.utils.globals import current_domain

from ordering.domain import ordering


@ordering.aggregate
class UserStatistics:
    user_id = Identifier(identifier=True)
    total_orders_placed = Integer(default=0, min_value=0)
    total_restaurants_visited = Integer(default=0, min_value=0)
    total_discounts_redeemed = Integer(default=0, min_value=0)
    unique_cuisines_tried = Text()  # JSON array
    restaurants_ordered_from = Text()  # JSON array of restaurant ids

    @property
    def cuisines(self) -> list[str]:
        return json.loads(self.unique_cuisines_tried) if self.unique_cuisines_tried else []

    @property
    def restaurant_ids(self) -> list[str]:
        return json.loads(self.restaurants_ordered_from) if self.restaurants_ordered_from else []

    def record_order(self, restaurant_id, cuisines=()):
        """Count an order; first orders from a restaurant or cuisine widen the sets."""
        self.total_orders_placed = (self.total_orders_placed or 0) + 1

        restaurants = self.restaurant_ids
        if str(restaurant_id) not in restaurants:
            restaurants.append(str(restaurant_id))
            self.restaurants_ordered_from = json.dumps(restaurants)
            self.total_restaurants_visited = len(restaurants)

        tried = self.cuisines
        new = [c for c in cuisines if c not in tried]
        if new:
            self.unique_cuisines_tried = json.dumps(tried + new)

    def record_discount_redeemed(self):
        self.total_discounts_redeemed = (self.total_discounts_redeemed or 0) + 1


def statistics_for(user_id) -> UserStatistics:
    repo = current_domain.repository_for(UserStatistics)
    try:
        return repo.get(str(user_id))
    except ObjectNotFoundError:
        return UserStatistics(
            user_id=str(user_id),
            unique_cuisines_tried=json.dumps([]),
            restaurants_ordered_from=json.dumps([]),
        )
