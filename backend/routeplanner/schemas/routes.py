from __future__ import annotations

from pydantic import BaseModel, Field, field_validator, model_validator

from routeplanner.domain.delivery import Coordinate, DeliveryLeg, Stop
from routeplanner.services.routing import RouteEstimate, RouteResult
from routeplanner.services.segments import RouteSegmentResult


class CoordinateModel(BaseModel):
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)

    def to_domain(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)

    @classmethod
    def from_domain(cls, coordinate: Coordinate) -> CoordinateModel:
        return cls(latitude=coordinate.latitude, longitude=coordinate.longitude)


class StopModel(BaseModel):
    name: str = ""
    latitude: float | None = Field(default=None, ge=-90.0, le=90.0)
    longitude: float | None = Field(default=None, ge=-180.0, le=180.0)

    @field_validator("name", mode="before")
    def _normalize_name(cls, value: str | None) -> str:
        if value is None:
            return ""
        return str(value).strip()

    @model_validator(mode="after")
    def _both_or_neither(self) -> StopModel:
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError("latitude and longitude must be provided together")
        return self

    def to_domain(self) -> Stop:
        coordinate = None
        if self.latitude is not None and self.longitude is not None:
            coordinate = Coordinate(self.latitude, self.longitude)
        return Stop(self.name, coordinate)


class DeliveryLegModel(BaseModel):
    id: str = Field(..., min_length=1)
    order_number: str | None = None
    restaurant: StopModel
    customer: StopModel

    @field_validator("id", "order_number", mode="before")
    def _coerce_identifier(cls, value: str | int | None) -> str | None:
        if value is None:
            return None
        return str(value).strip()

    def to_domain(self) -> DeliveryLeg:
        return DeliveryLeg(
            id=self.id,
            restaurant=self.restaurant.to_domain(),
            customer=self.customer.to_domain(),
            order_number=self.order_number,
        )


class RouteRequest(BaseModel):
    driver: CoordinateModel
    legs: list[DeliveryLegModel] = Field(default_factory=list)

    def to_domain(self) -> tuple[Coordinate, list[DeliveryLeg]]:
        return self.driver.to_domain(), [leg.to_domain() for leg in self.legs]


class LegSummary(BaseModel):
    id: str
    order_number: str | None = None
    restaurant_name: str
    customer_name: str

    @classmethod
    def from_domain(cls, leg: DeliveryLeg) -> LegSummary:
        return cls(
            id=leg.id,
            order_number=leg.order_number,
            restaurant_name=leg.restaurant.name,
            customer_name=leg.customer.name,
        )


class SegmentSummary(BaseModel):
    origin: str
    destination: str
    distance_meters: float
    duration_seconds: float
    degraded: bool

    @classmethod
    def from_domain(cls, segment: RouteSegmentResult) -> SegmentSummary:
        return cls(
            origin=segment.origin.label,
            destination=segment.destination.label,
            distance_meters=segment.distance_meters,
            duration_seconds=segment.duration_seconds,
            degraded=segment.degraded,
        )


class RouteResponse(BaseModel):
    restaurant_order: list[LegSummary] = Field(default_factory=list)
    customer_order: list[LegSummary] = Field(default_factory=list)
    path: list[CoordinateModel] = Field(default_factory=list)
    total_distance_km: float = 0.0
    total_duration_min: int = 0
    any_degraded: bool = False
    segments: list[SegmentSummary] = Field(default_factory=list)
    skipped_leg_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_result(cls, result: RouteResult) -> RouteResponse:
        return cls(
            restaurant_order=[
                LegSummary.from_domain(leg) for leg in result.ordered_restaurant_legs
            ],
            customer_order=[
                LegSummary.from_domain(leg) for leg in result.ordered_customer_legs
            ],
            path=[CoordinateModel.from_domain(point) for point in result.path],
            total_distance_km=result.total_distance_km,
            total_duration_min=result.total_duration_min,
            any_degraded=result.any_degraded,
            segments=[SegmentSummary.from_domain(segment) for segment in result.segments],
            skipped_leg_ids=result.skipped_leg_ids,
        )


class RouteEstimateResponse(BaseModel):
    restaurant_order: list[LegSummary] = Field(default_factory=list)
    customer_order: list[LegSummary] = Field(default_factory=list)
    path: list[CoordinateModel] = Field(default_factory=list)
    total_distance_km: float = 0.0
    total_duration_min: int = 0
    skipped_leg_ids: list[str] = Field(default_factory=list)

    @classmethod
    def from_estimate(cls, estimate: RouteEstimate) -> RouteEstimateResponse:
        return cls(
            restaurant_order=[
                LegSummary.from_domain(leg) for leg in estimate.ordered_restaurant_legs
            ],
            customer_order=[
                LegSummary.from_domain(leg) for leg in estimate.ordered_customer_legs
            ],
            path=[CoordinateModel.from_domain(point) for point in estimate.path],
            total_distance_km=estimate.total_distance_km,
            total_duration_min=estimate.total_duration_min,
            skipped_leg_ids=estimate.skipped_leg_ids,
        )
