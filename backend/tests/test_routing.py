from __future__ import annotations

import httpx
import pytest

from routeplanner.core.config import Settings
from routeplanner.domain.delivery import Coordinate, DeliveryLeg, Stop, WaypointRole
from routeplanner.services.osrm import RoutedSegment, SegmentRoutingError
from routeplanner.services.routing import (
    RouteValidationError,
    compute_route,
    estimate_route,
)


DRIVER = Coordinate(8.50, 81.19)


def _leg(leg_id, restaurant, customer):
    return DeliveryLeg(
        id=leg_id,
        restaurant=Stop(f"Restaurant {leg_id}", Coordinate(*restaurant) if restaurant else None),
        customer=Stop(f"Customer {leg_id}", Coordinate(*customer) if customer else None),
    )


LEGS = [
    _leg("A", (8.55, 81.20), (8.60, 81.25)),
    _leg("B", (8.40, 81.10), (8.42, 81.12)),
]
SETTINGS = Settings(routing_request_delay=0.0, routing_fallback_speed_kmh=30.0)


async def _stub_fetch(origin: Coordinate, destination: Coordinate) -> RoutedSegment:
    midpoint = Coordinate(
        (origin.latitude + destination.latitude) / 2,
        (origin.longitude + destination.longitude) / 2,
    )
    return RoutedSegment([origin, midpoint, destination], 2500.0, 200.0)


async def _failing_fetch(origin: Coordinate, destination: Coordinate) -> RoutedSegment:
    raise SegmentRoutingError("unreachable")


@pytest.mark.asyncio
async def test_compute_route_orders_and_stitches():
    result = await compute_route(DRIVER, LEGS, fetch_segment=_stub_fetch, settings=SETTINGS)

    assert [leg.id for leg in result.ordered_restaurant_legs] == ["B", "A"]
    assert [leg.id for leg in result.ordered_customer_legs] == ["A", "B"]
    assert [(w.role, w.leg_id) for w in result.waypoints] == [
        (WaypointRole.DRIVER, None),
        (WaypointRole.RESTAURANT, "B"),
        (WaypointRole.RESTAURANT, "A"),
        (WaypointRole.CUSTOMER, "A"),
        (WaypointRole.CUSTOMER, "B"),
    ]
    # Four segments of three points, shared endpoints kept once
    assert len(result.path) == 9
    assert result.path[0] == DRIVER
    assert result.path[-1] == Coordinate(8.42, 81.12)
    assert result.total_distance_km == 10.0
    assert result.total_duration_min == 14
    assert result.any_degraded is False
    assert result.skipped_leg_ids == []


@pytest.mark.asyncio
async def test_compute_route_is_deterministic():
    first = await compute_route(DRIVER, LEGS, fetch_segment=_stub_fetch, settings=SETTINGS)
    second = await compute_route(DRIVER, LEGS, fetch_segment=_stub_fetch, settings=SETTINGS)

    assert first.ordered_restaurant_legs == second.ordered_restaurant_legs
    assert first.ordered_customer_legs == second.ordered_customer_legs
    assert first.path == second.path


@pytest.mark.asyncio
async def test_compute_route_survives_total_routing_outage():
    result = await compute_route(DRIVER, LEGS, fetch_segment=_failing_fetch, settings=SETTINGS)

    assert result.any_degraded is True
    assert result.path == [
        DRIVER,
        Coordinate(8.40, 81.10),
        Coordinate(8.55, 81.20),
        Coordinate(8.60, 81.25),
        Coordinate(8.42, 81.12),
    ]
    assert result.total_distance_km > 0
    assert result.total_duration_min > 0


@pytest.mark.asyncio
async def test_compute_route_reports_skipped_legs():
    legs = [*LEGS, _leg("C", (8.45, 81.15), None)]

    result = await compute_route(DRIVER, legs, fetch_segment=_stub_fetch, settings=SETTINGS)

    assert result.skipped_leg_ids == ["C"]
    assert len(result.waypoints) == 5


@pytest.mark.asyncio
async def test_compute_route_uses_osrm_client_by_default(monkeypatch):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(503, text="unavailable")

    transport = httpx.MockTransport(handler)
    real_async_client = httpx.AsyncClient

    def _mock_async_client(*args, **kwargs):
        kwargs["transport"] = transport
        return real_async_client(*args, **kwargs)

    monkeypatch.setattr("routeplanner.services.osrm.httpx.AsyncClient", _mock_async_client)
    settings = Settings(
        routing_request_delay=0.0,
        routing_max_retries=0,
        routing_cache_ttl=0,
    )

    result = await compute_route(DRIVER, LEGS[:1], settings=settings)

    assert result.any_degraded is True
    assert len(result.segments) == 2


@pytest.mark.asyncio
@pytest.mark.parametrize(
    ("driver", "legs", "message"),
    [
        (None, LEGS, "Driver location"),
        (Coordinate(91.0, 0.0), LEGS, "out of range"),
        (Coordinate(float("nan"), 0.0), LEGS, "out of range"),
        (DRIVER, [], "At least one"),
        (DRIVER, [LEGS[0], LEGS[0]], "Duplicate"),
        (DRIVER, [_leg("C", None, (8.4, 81.1))], "No delivery leg"),
    ],
)
async def test_compute_route_rejects_invalid_input(driver, legs, message):
    calls = 0

    async def fetch(origin, destination):
        nonlocal calls
        calls += 1
        return await _stub_fetch(origin, destination)

    with pytest.raises(RouteValidationError, match=message):
        await compute_route(driver, legs, fetch_segment=fetch, settings=SETTINGS)
    assert calls == 0


def test_estimate_route_uses_straight_lines_and_stop_dwell():
    settings = Settings(routing_fallback_speed_kmh=30.0, estimate_stop_minutes=5.0)

    estimate = estimate_route(DRIVER, LEGS, settings=settings)

    assert [leg.id for leg in estimate.ordered_restaurant_legs] == ["B", "A"]
    assert len(estimate.path) == 5
    travel_minutes = estimate.total_distance_km / 30.0 * 60
    assert estimate.total_duration_min == pytest.approx(travel_minutes + 20, abs=1)
    assert estimate.total_duration_min >= travel_minutes + 20


def test_estimate_route_validates_input():
    with pytest.raises(RouteValidationError):
        estimate_route(DRIVER, [], settings=SETTINGS)


@pytest.mark.asyncio
async def test_orders_from_one_restaurant_leave_no_repeated_points():
    legs = [
        _leg("A", (8.55, 81.20), (8.60, 81.25)),
        _leg("B", (8.55, 81.20), (8.42, 81.12)),
    ]

    result = await compute_route(DRIVER, legs, fetch_segment=_failing_fetch, settings=SETTINGS)

    for previous, current in zip(result.path, result.path[1:]):
        assert previous != current
    assert result.path.count(Coordinate(8.55, 81.20)) == 1
    assert len(result.waypoints) == 5
