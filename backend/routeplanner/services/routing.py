from __future__ import annotations

import math
from collections import Counter
from dataclasses import dataclass, field
from typing import Sequence

from routeplanner.core.config import Settings, get_settings
from routeplanner.core.logging import get_logger, route_context
from routeplanner.domain.delivery import (
    Coordinate,
    DeliveryLeg,
    Waypoint,
    build_waypoints,
)
from routeplanner.domain.geometry import path_length_meters
from routeplanner.domain.ordering import LegOrdering, order_legs
from routeplanner.services.osrm import OSRMClient, SegmentFetcher
from routeplanner.services.segments import RouteSegmentResult, SegmentRouter


_logger = get_logger(__name__)


class RouteValidationError(ValueError):
    """Raised when the driver position or the leg batch cannot be routed."""


@dataclass(slots=True)
class RouteResult:
    ordered_restaurant_legs: list[DeliveryLeg]
    ordered_customer_legs: list[DeliveryLeg]
    path: list[Coordinate]
    total_distance_km: float
    total_duration_min: int
    any_degraded: bool
    segments: list[RouteSegmentResult] = field(default_factory=list)
    waypoints: list[Waypoint] = field(default_factory=list)
    skipped_leg_ids: list[str] = field(default_factory=list)


@dataclass(slots=True)
class RouteEstimate:
    ordered_restaurant_legs: list[DeliveryLeg]
    ordered_customer_legs: list[DeliveryLeg]
    path: list[Coordinate]
    total_distance_km: float
    total_duration_min: int
    skipped_leg_ids: list[str] = field(default_factory=list)


async def compute_route(
    driver: Coordinate | None,
    legs: Sequence[DeliveryLeg],
    *,
    fetch_segment: SegmentFetcher | None = None,
    settings: Settings | None = None,
) -> RouteResult:
    """Order the pending legs and route driver → restaurants → customers.

    Routing failures never raise; they show up as degraded segments. Without an
    explicit ``fetch_segment`` a fresh OSRM client is opened for this call only.
    """

    settings = settings or get_settings()
    driver, ordering = _plan(driver, legs)
    waypoints = build_waypoints(
        driver, ordering.restaurant_legs, ordering.customer_legs
    )

    with route_context(legs=len(legs), waypoints=len(waypoints)):
        _logger.info(
            "Route computation started",
            restaurants=[leg.id for leg in ordering.restaurant_legs],
            customers=[leg.id for leg in ordering.customer_legs],
            skipped=ordering.skipped_leg_ids,
        )

        if fetch_segment is None:
            async with OSRMClient.from_settings(settings) as client:
                stitched = await _router(client.fetch_segment, settings).route(waypoints)
        else:
            stitched = await _router(fetch_segment, settings).route(waypoints)

        if stitched.segments and all(segment.degraded for segment in stitched.segments):
            _logger.warning(
                "Routing service unavailable, returning straight-line route",
                segments=len(stitched.segments),
            )

        _logger.info(
            "Route computation finished",
            distance_km=round(stitched.total_distance_km, 2),
            duration_min=stitched.total_duration_min,
            degraded=stitched.any_degraded,
        )

    return RouteResult(
        ordered_restaurant_legs=ordering.restaurant_legs,
        ordered_customer_legs=ordering.customer_legs,
        path=stitched.path,
        total_distance_km=stitched.total_distance_km,
        total_duration_min=stitched.total_duration_min,
        any_degraded=stitched.any_degraded,
        segments=stitched.segments,
        waypoints=waypoints,
        skipped_leg_ids=ordering.skipped_leg_ids,
    )


def estimate_route(
    driver: Coordinate | None,
    legs: Sequence[DeliveryLeg],
    *,
    settings: Settings | None = None,
) -> RouteEstimate:
    """Straight-line plan with a fixed dwell per stop; no network access."""

    settings = settings or get_settings()
    driver, ordering = _plan(driver, legs)
    path = [
        waypoint.coordinate
        for waypoint in build_waypoints(
            driver, ordering.restaurant_legs, ordering.customer_legs
        )
    ]
    distance_km = path_length_meters(path) / 1000
    stops = len(ordering.restaurant_legs) + len(ordering.customer_legs)
    minutes = (
        distance_km / settings.routing_fallback_speed_kmh * 60
        + stops * settings.estimate_stop_minutes
    )
    return RouteEstimate(
        ordered_restaurant_legs=ordering.restaurant_legs,
        ordered_customer_legs=ordering.customer_legs,
        path=path,
        total_distance_km=distance_km,
        total_duration_min=math.ceil(minutes),
        skipped_leg_ids=ordering.skipped_leg_ids,
    )


def _router(fetch_segment: SegmentFetcher, settings: Settings) -> SegmentRouter:
    return SegmentRouter(
        fetch_segment,
        request_delay=settings.routing_request_delay,
        fallback_speed_kmh=settings.routing_fallback_speed_kmh,
    )


def _plan(
    driver: Coordinate | None, legs: Sequence[DeliveryLeg]
) -> tuple[Coordinate, LegOrdering]:
    if driver is None:
        raise RouteValidationError("Driver location is required")
    if not driver.is_valid:
        raise RouteValidationError(
            f"Driver location is out of range: {driver.latitude}, {driver.longitude}"
        )
    if not legs:
        raise RouteValidationError("At least one delivery leg is required")

    duplicates = sorted(
        leg_id for leg_id, count in Counter(leg.id for leg in legs).items() if count > 1
    )
    if duplicates:
        raise RouteValidationError(f"Duplicate leg ids: {', '.join(duplicates)}")

    ordering = order_legs(driver, legs)
    if ordering.skipped_leg_ids:
        _logger.warning("Legs skipped, missing coordinates", legs=ordering.skipped_leg_ids)
    if not ordering.restaurant_legs:
        raise RouteValidationError("No delivery leg has both restaurant and customer coordinates")
    return driver, ordering
