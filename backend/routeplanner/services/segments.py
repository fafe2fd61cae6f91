from __future__ import annotations

import asyncio
import math
from dataclasses import dataclass, field
from typing import Sequence

from routeplanner.core.logging import get_logger
from routeplanner.domain.delivery import Coordinate, Waypoint
from routeplanner.domain.geometry import distance_meters
from routeplanner.services.osrm import SegmentFetcher


_logger = get_logger(__name__)


@dataclass(slots=True)
class RouteSegmentResult:
    origin: Waypoint
    destination: Waypoint
    path: list[Coordinate]
    distance_meters: float
    duration_seconds: float
    degraded: bool = False


@dataclass(slots=True)
class StitchedRoute:
    segments: list[RouteSegmentResult] = field(default_factory=list)
    path: list[Coordinate] = field(default_factory=list)

    @property
    def total_distance_meters(self) -> float:
        return sum(segment.distance_meters for segment in self.segments)

    @property
    def total_duration_seconds(self) -> float:
        return sum(segment.duration_seconds for segment in self.segments)

    @property
    def total_distance_km(self) -> float:
        return self.total_distance_meters / 1000

    @property
    def total_duration_min(self) -> int:
        return math.ceil(self.total_duration_seconds / 60)

    @property
    def any_degraded(self) -> bool:
        return any(segment.degraded for segment in self.segments)


class SegmentRouter:
    """Routes consecutive waypoint pairs one at a time and stitches the paths.

    A segment the fetcher cannot route becomes a straight line between its two
    waypoints and is flagged as degraded. Unlike a failed fetch in the mobile
    client, which added nothing to the totals, a straight-line segment counts
    its Haversine length and the time to drive it at ``fallback_speed_kmh``, so
    route totals include these estimated legs. Consecutive waypoints at the
    same spot yield a zero-length segment without a request.
    """

    def __init__(
        self,
        fetch_segment: SegmentFetcher,
        *,
        request_delay: float = 0.1,
        fallback_speed_kmh: float = 30.0,
    ) -> None:
        self._fetch_segment = fetch_segment
        self._request_delay = request_delay
        self._fallback_speed_mps = fallback_speed_kmh * 1000 / 3600

    async def route(self, waypoints: Sequence[Waypoint]) -> StitchedRoute:
        stitched = StitchedRoute()
        total = len(waypoints) - 1
        if total < 1:
            return stitched

        requested = False
        for index in range(total):
            origin, destination = waypoints[index], waypoints[index + 1]
            if origin.coordinate == destination.coordinate:
                # e.g. two orders from one restaurant; nothing to route
                segment = RouteSegmentResult(
                    origin=origin,
                    destination=destination,
                    path=[origin.coordinate],
                    distance_meters=0.0,
                    duration_seconds=0.0,
                )
            else:
                if requested and self._request_delay:
                    await asyncio.sleep(self._request_delay)
                segment = await self._route_segment(
                    origin, destination, index + 1, total
                )
                requested = True
            stitched.segments.append(segment)
            _append_path(stitched.path, segment.path)

        _logger.info(
            "Segment routing finished",
            segments=total,
            degraded=sum(1 for segment in stitched.segments if segment.degraded),
            distance_km=round(stitched.total_distance_km, 2),
            duration_min=stitched.total_duration_min,
        )
        return stitched

    async def _route_segment(
        self, origin: Waypoint, destination: Waypoint, position: int, total: int
    ) -> RouteSegmentResult:
        try:
            routed = await self._fetch_segment(origin.coordinate, destination.coordinate)
        except Exception as exc:
            _logger.warning(
                "Segment routing failed, using straight line",
                segment=f"{position}/{total}",
                origin=origin.label,
                destination=destination.label,
                error=str(exc),
            )
            return self._straight_line(origin, destination)

        _logger.debug(
            "Segment routed",
            segment=f"{position}/{total}",
            distance_m=round(routed.distance_meters, 1),
            duration_s=round(routed.duration_seconds, 1),
        )
        return RouteSegmentResult(
            origin=origin,
            destination=destination,
            path=list(routed.path),
            distance_meters=routed.distance_meters,
            duration_seconds=routed.duration_seconds,
        )

    def _straight_line(self, origin: Waypoint, destination: Waypoint) -> RouteSegmentResult:
        distance = distance_meters(origin.coordinate, destination.coordinate)
        return RouteSegmentResult(
            origin=origin,
            destination=destination,
            path=[origin.coordinate, destination.coordinate],
            distance_meters=distance,
            duration_seconds=distance / self._fallback_speed_mps,
            degraded=True,
        )


def _append_path(path: list[Coordinate], segment_path: Sequence[Coordinate]) -> None:
    # Consecutive segments share a waypoint; keep it once
    start = 0
    if path:
        while start < len(segment_path) and segment_path[start] == path[-1]:
            start += 1
    path.extend(segment_path[start:])
