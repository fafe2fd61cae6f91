from __future__ import annotations

from fastapi import APIRouter, HTTPException, Request, status

from routeplanner.schemas.routes import (
    RouteEstimateResponse,
    RouteRequest,
    RouteResponse,
)
from routeplanner.services.osrm import OSRMClient
from routeplanner.services.routing import (
    RouteValidationError,
    compute_route,
    estimate_route,
)


router = APIRouter()


@router.post(
    "/",
    response_model=RouteResponse,
    status_code=status.HTTP_200_OK,
)
async def create_route(payload: RouteRequest, request: Request) -> RouteResponse:
    driver, legs = payload.to_domain()

    # Shared client from the app lifespan keeps the segment cache warm
    client: OSRMClient | None = getattr(request.app.state, "osrm_client", None)
    try:
        result = await compute_route(
            driver,
            legs,
            fetch_segment=client.fetch_segment if client is not None else None,
        )
    except RouteValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc

    return RouteResponse.from_result(result)


@router.post(
    "/estimate",
    response_model=RouteEstimateResponse,
    status_code=status.HTTP_200_OK,
)
async def create_estimate(payload: RouteRequest) -> RouteEstimateResponse:
    driver, legs = payload.to_domain()
    try:
        estimate = estimate_route(driver, legs)
    except RouteValidationError as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, str(exc)) from exc
    return RouteEstimateResponse.from_estimate(estimate)
