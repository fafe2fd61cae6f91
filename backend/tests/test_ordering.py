import pytest

from routeplanner.domain.delivery import Coordinate, DeliveryLeg, Stop
from routeplanner.domain.ordering import order_customers, order_legs, order_restaurants


DRIVER = Coordinate(8.50, 81.19)


def _leg(leg_id, restaurant, customer):
    return DeliveryLeg(
        id=leg_id,
        restaurant=Stop(f"Restaurant {leg_id}", Coordinate(*restaurant) if restaurant else None),
        customer=Stop(f"Customer {leg_id}", Coordinate(*customer) if customer else None),
        order_number=f"#{leg_id}",
    )


LEG_A = _leg("A", (8.55, 81.20), (8.60, 81.25))
LEG_B = _leg("B", (8.40, 81.10), (8.42, 81.12))


def test_two_leg_scenario_orders_by_span_then_nearest_customer():
    # Span B: ~14.9 km to restaurant + ~3.1 km to customer, about 18.0 km.
    # Span A: ~5.7 km + ~7.8 km, about 13.5 km. B is picked up first.
    ordering = order_legs(DRIVER, [LEG_A, LEG_B])

    assert [leg.id for leg in ordering.restaurant_legs] == ["B", "A"]
    # From restaurant A, customer A (~7.8 km) is nearer than customer B (~16.9 km)
    assert [leg.id for leg in ordering.customer_legs] == ["A", "B"]
    assert ordering.skipped_leg_ids == []


def test_input_order_does_not_change_result():
    first = order_legs(DRIVER, [LEG_A, LEG_B])
    second = order_legs(DRIVER, [LEG_B, LEG_A])

    assert first.restaurant_legs == second.restaurant_legs
    assert first.customer_legs == second.customer_legs


def test_single_leg_is_returned_unchanged():
    for driver in (DRIVER, Coordinate(-33.0, 151.0), Coordinate(8.55, 81.20)):
        ordering = order_legs(driver, [LEG_A])

        assert ordering.restaurant_legs == [LEG_A]
        assert ordering.customer_legs == [LEG_A]


def test_empty_batch():
    assert order_restaurants(DRIVER, []) == []
    assert order_customers([]) == []


def test_equal_spans_keep_input_order():
    # Two orders from the same restaurant to the same building
    first = _leg("first", (8.55, 81.20), (8.60, 81.25))
    second = _leg("second", (8.55, 81.20), (8.60, 81.25))

    assert [leg.id for leg in order_restaurants(DRIVER, [first, second])] == ["first", "second"]
    assert [leg.id for leg in order_restaurants(DRIVER, [second, first])] == ["second", "first"]


def test_customers_follow_nearest_neighbour_chain():
    far = _leg("far", (8.80, 81.50), (8.49, 81.21))
    near = _leg("near", (8.60, 81.20), (8.40, 81.10))
    mid = _leg("mid", (8.45, 81.15), (8.47, 81.17))

    restaurants = order_restaurants(DRIVER, [near, far, mid])
    customers = order_customers(restaurants)

    assert [leg.id for leg in restaurants] == ["far", "near", "mid"]
    # Start at mid's restaurant. Mid's customer is nearest, and from there
    # far's customer (~4.9 km) beats near's (~11 km) even though near's is
    # closer to the starting restaurant.
    assert [leg.id for leg in customers] == ["mid", "far", "near"]


def test_legs_without_coordinates_are_skipped():
    missing_customer = _leg("C", (8.45, 81.15), None)
    missing_restaurant = _leg("D", None, (8.45, 81.15))

    ordering = order_legs(DRIVER, [LEG_A, missing_customer, LEG_B, missing_restaurant])

    assert ordering.skipped_leg_ids == ["C", "D"]
    assert [leg.id for leg in ordering.restaurant_legs] == ["B", "A"]
    assert [leg.id for leg in ordering.customer_legs] == ["A", "B"]


def test_ordering_does_not_mutate_input():
    legs = [LEG_A, LEG_B]

    order_legs(DRIVER, legs)

    assert legs == [LEG_A, LEG_B]


def test_equal_customer_distances_take_first_scanned():
    first = _leg("first", (8.55, 81.20), (8.60, 81.25))
    second = _leg("second", (8.55, 81.20), (8.60, 81.25))

    assert [leg.id for leg in order_customers([first, second])] == ["first", "second"]


def test_phases_reject_legs_without_coordinates():
    missing = _leg("C", (8.45, 81.15), None)

    with pytest.raises(ValueError, match="'C'"):
        order_restaurants(DRIVER, [LEG_A, missing])
    with pytest.raises(ValueError, match="'C'"):
        order_customers([LEG_A, missing])
