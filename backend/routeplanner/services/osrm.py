from __future__ import annotations

import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Literal

import httpx
from cachetools import TTLCache

from routeplanner.core.config import Settings, get_settings
from routeplanner.core.logging import get_logger
from routeplanner.domain.delivery import Coordinate
from routeplanner.domain.polyline import decode_polyline


_logger = get_logger(__name__)


class SegmentRoutingError(RuntimeError):
    """Raised when the routing service cannot produce a path for a segment."""


@dataclass(slots=True)
class RoutedSegment:
    path: list[Coordinate]
    distance_meters: float
    duration_seconds: float


SegmentFetcher = Callable[[Coordinate, Coordinate], Awaitable[RoutedSegment]]


class OSRMClient:
    """Fetches one driving route per origin/destination pair from OSRM."""

    def __init__(
        self,
        base_url: str,
        *,
        profile: str = "driving",
        geometries: Literal["geojson", "polyline"] = "geojson",
        timeout: float = 8.0,
        max_retries: int = 1,
        backoff_seconds: float = 0.25,
        cache: TTLCache | None = None,
        http_client: httpx.AsyncClient | None = None,
    ) -> None:
        if not base_url:
            raise ValueError("OSRM base URL is not configured.")
        self.base_url = base_url.rstrip("/")
        self.profile = profile
        self.geometries = geometries
        self.timeout = timeout
        self.max_retries = max_retries
        self.backoff_seconds = backoff_seconds
        self._cache = cache
        self._owns_client = http_client is None
        self._client = http_client or httpx.AsyncClient(timeout=httpx.Timeout(timeout))

    @classmethod
    def from_settings(
        cls,
        settings: Settings | None = None,
        *,
        http_client: httpx.AsyncClient | None = None,
    ) -> OSRMClient:
        settings = settings or get_settings()
        cache: TTLCache | None = None
        if settings.routing_cache_ttl > 0:
            cache = TTLCache(
                maxsize=settings.routing_cache_size, ttl=settings.routing_cache_ttl
            )
        return cls(
            settings.osrm_base_url,
            profile=settings.osrm_profile,
            geometries=settings.osrm_geometries,
            timeout=settings.routing_segment_timeout,
            max_retries=settings.routing_max_retries,
            backoff_seconds=settings.routing_backoff_seconds,
            cache=cache,
            http_client=http_client,
        )

    async def __aenter__(self) -> OSRMClient:
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def fetch_segment(
        self, origin: Coordinate, destination: Coordinate
    ) -> RoutedSegment:
        key = _cache_key(origin, destination)
        if self._cache is not None:
            cached = self._cache.get(key)
            if cached is not None:
                _logger.debug("Segment cache hit", segment=key)
                return cached

        coordinates = (
            f"{origin.longitude},{origin.latitude};"
            f"{destination.longitude},{destination.latitude}"
        )
        url = f"{self.base_url}/route/v1/{self.profile}/{coordinates}"
        params = {"overview": "full", "geometries": self.geometries, "steps": "false"}

        try:
            segment = await asyncio.wait_for(
                self._request(url, params), timeout=self.timeout
            )
        except asyncio.TimeoutError as exc:
            raise SegmentRoutingError(
                f"OSRM route request exceeded {self.timeout:g}s deadline"
            ) from exc

        if self._cache is not None:
            self._cache[key] = segment
        return segment

    async def _request(self, url: str, params: dict[str, str]) -> RoutedSegment:
        attempt = 0
        while True:
            try:
                response = await self._client.get(url, params=params)
                if response.status_code >= 500:
                    response.raise_for_status()
            except httpx.HTTPError as exc:
                attempt += 1
                if attempt > self.max_retries:
                    raise SegmentRoutingError(f"OSRM request failed: {exc}") from exc
                _logger.debug(
                    "OSRM request retry",
                    attempt=attempt,
                    max_retries=self.max_retries,
                    error=str(exc),
                )
                await asyncio.sleep(self.backoff_seconds * attempt)
                continue
            return _parse_route_response(response, self.geometries)


def _parse_route_response(
    response: httpx.Response, geometries: str
) -> RoutedSegment:
    try:
        data = response.json()
    except ValueError as exc:
        raise SegmentRoutingError(
            f"OSRM returned non-JSON body (HTTP {response.status_code})"
        ) from exc

    if not isinstance(data, dict):
        raise SegmentRoutingError("OSRM response is not an object")

    code = data.get("code")
    if response.status_code >= 400 or code != "Ok":
        message = data.get("message") or "No route found"
        raise SegmentRoutingError(
            f"OSRM error {code} (HTTP {response.status_code}): {message}"
        )

    routes = data.get("routes")
    if not isinstance(routes, list) or not routes or not isinstance(routes[0], dict):
        raise SegmentRoutingError("OSRM response contains no routes")

    route = routes[0]
    path = _parse_geometry(route.get("geometry"), geometries)
    if not path:
        raise SegmentRoutingError("OSRM route geometry is empty")

    return RoutedSegment(
        path=path,
        distance_meters=_parse_number(route.get("distance"), "distance"),
        duration_seconds=_parse_number(route.get("duration"), "duration"),
    )


def _parse_geometry(geometry: Any, geometries: str) -> list[Coordinate]:
    if isinstance(geometry, str):
        try:
            return decode_polyline(geometry)
        except ValueError as exc:
            raise SegmentRoutingError(f"Invalid encoded polyline: {exc}") from exc

    if isinstance(geometry, dict):
        raw = geometry.get("coordinates")
        if not isinstance(raw, list):
            raise SegmentRoutingError("GeoJSON geometry has no coordinates")
        path: list[Coordinate] = []
        for pair in raw:
            if (
                not isinstance(pair, (list, tuple))
                or len(pair) < 2
                or not all(_is_number(value) for value in pair[:2])
            ):
                raise SegmentRoutingError(f"Malformed GeoJSON position: {pair!r}")
            # GeoJSON positions are [longitude, latitude]
            path.append(Coordinate(float(pair[1]), float(pair[0])))
        return path

    raise SegmentRoutingError(
        f"Unsupported geometry for {geometries!r}: {type(geometry).__name__}"
    )


def _parse_number(value: Any, field: str) -> float:
    if not _is_number(value):
        raise SegmentRoutingError(f"OSRM route missing {field}")
    return float(value)


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _cache_key(origin: Coordinate, destination: Coordinate) -> str:
    return (
        f"{origin.latitude:.5f},{origin.longitude:.5f}->"
        f"{destination.latitude:.5f},{destination.longitude:.5f}"
    )
