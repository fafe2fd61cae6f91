from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from routeplanner.domain.delivery import Coordinate, DeliveryLeg
from routeplanner.domain.geometry import distance_meters


@dataclass(slots=True)
class LegOrdering:
    restaurant_legs: list[DeliveryLeg]
    customer_legs: list[DeliveryLeg]
    skipped_leg_ids: list[str] = field(default_factory=list)


def order_restaurants(
    driver: Coordinate, legs: Sequence[DeliveryLeg]
) -> list[DeliveryLeg]:
    """
    Order pickups by descending span: driver → restaurant plus restaurant → own
    customer. Orders whose whole trip is longest are picked up first so their
    clock starts earliest. Ties keep their input order.
    """
    if len(legs) <= 1:
        return list(legs)

    def span(leg: DeliveryLeg) -> float:
        restaurant, customer = leg.coordinates()
        return distance_meters(driver, restaurant) + distance_meters(restaurant, customer)

    return sorted(legs, key=span, reverse=True)


def order_customers(restaurant_order: Sequence[DeliveryLeg]) -> list[DeliveryLeg]:
    """
    Nearest-neighbour drop-off order starting at the last restaurant visited.

    Ties go to the leg scanned first.
    """
    if len(restaurant_order) <= 1:
        return list(restaurant_order)

    current, _ = restaurant_order[-1].coordinates()
    remaining = list(restaurant_order)
    ordered: list[DeliveryLeg] = []

    while remaining:
        nearest_index = 0
        nearest_distance = float("inf")
        for index, leg in enumerate(remaining):
            distance = distance_meters(current, leg.coordinates()[1])
            if distance < nearest_distance:
                nearest_distance = distance
                nearest_index = index
        nearest = remaining.pop(nearest_index)
        ordered.append(nearest)
        current = nearest.coordinates()[1]

    return ordered


def order_legs(driver: Coordinate, legs: Sequence[DeliveryLeg]) -> LegOrdering:
    """Run both ordering phases, setting aside legs that lack a coordinate."""

    routable: list[DeliveryLeg] = []
    skipped: list[str] = []
    for leg in legs:
        if leg.is_routable:
            routable.append(leg)
        else:
            skipped.append(leg.id)

    restaurant_legs = order_restaurants(driver, routable)
    customer_legs = order_customers(restaurant_legs)
    return LegOrdering(restaurant_legs, customer_legs, skipped)
