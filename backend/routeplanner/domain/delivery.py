from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from math import isfinite


@dataclass(frozen=True, slots=True)
class Coordinate:
    latitude: float
    longitude: float

    @property
    def is_valid(self) -> bool:
        return (
            isfinite(self.latitude)
            and isfinite(self.longitude)
            and -90.0 <= self.latitude <= 90.0
            and -180.0 <= self.longitude <= 180.0
        )


@dataclass(frozen=True, slots=True)
class Stop:
    """A restaurant or customer location; ``coordinate`` may be unknown."""

    name: str
    coordinate: Coordinate | None = None


@dataclass(frozen=True, slots=True)
class DeliveryLeg:
    """One order: pick up at ``restaurant``, drop off at ``customer``."""

    id: str
    restaurant: Stop
    customer: Stop
    order_number: str | None = None

    @property
    def is_routable(self) -> bool:
        return self.restaurant.coordinate is not None and self.customer.coordinate is not None

    def coordinates(self) -> tuple[Coordinate, Coordinate]:
        """Return the restaurant and customer coordinates of a routable leg."""
        restaurant = self.restaurant.coordinate
        customer = self.customer.coordinate
        if restaurant is None or customer is None:
            raise ValueError(f"Leg {self.id!r} is missing a restaurant or customer coordinate")
        return restaurant, customer


class WaypointRole(str, Enum):
    DRIVER = "driver"
    RESTAURANT = "restaurant"
    CUSTOMER = "customer"


@dataclass(frozen=True, slots=True)
class Waypoint:
    coordinate: Coordinate
    role: WaypointRole
    leg_id: str | None = None

    @property
    def label(self) -> str:
        if self.leg_id is None:
            return self.role.value
        return f"{self.role.value}:{self.leg_id}"


def build_waypoints(
    driver: Coordinate,
    restaurant_legs: list[DeliveryLeg],
    customer_legs: list[DeliveryLeg],
) -> list[Waypoint]:
    """Flatten ordered legs into the driver → restaurants → customers sequence."""

    waypoints = [Waypoint(driver, WaypointRole.DRIVER)]
    for leg in restaurant_legs:
        restaurant, _ = leg.coordinates()
        waypoints.append(Waypoint(restaurant, WaypointRole.RESTAURANT, leg.id))
    for leg in customer_legs:
        _, customer = leg.coordinates()
        waypoints.append(Waypoint(customer, WaypointRole.CUSTOMER, leg.id))
    return waypoints
