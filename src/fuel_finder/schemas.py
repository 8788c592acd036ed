from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from fuel_finder.services.pipeline import PipelineState
from fuel_finder.services.types import FuelType, PlaceCandidate, ResolvedPlace, StationRecord

NOT_DISTRIBUTED_LABEL = "not distributed in this area"


class NearbyStationsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    radius_km: int | None = None


class PlaceStationsRequest(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str = Field(min_length=1, max_length=200)
    postal_code: str = Field(pattern=r"^\d{5}$")
    radius_km: int | None = None


class Coordinate(BaseModel):
    latitude: float
    longitude: float


class PlaceResponse(BaseModel):
    name: str
    postal_code: str
    coordinates: Coordinate

    @classmethod
    def from_place(cls, place: ResolvedPlace) -> PlaceResponse:
        return cls(
            name=place.name,
            postal_code=place.postal_code,
            coordinates=Coordinate(
                latitude=place.coordinates.latitude,
                longitude=place.coordinates.longitude,
            ),
        )


class PlaceCandidateResponse(BaseModel):
    name: str
    postal_codes: list[str]

    @classmethod
    def from_candidate(cls, candidate: PlaceCandidate) -> PlaceCandidateResponse:
        return cls(name=candidate.name, postal_codes=list(candidate.postal_codes))


class FuelPriceResponse(BaseModel):
    fuel_type: str
    label: str
    price: float | None
    stock_status: str
    updated_at: str | None = None


class StationResponse(BaseModel):
    station_id: str | None
    address: str
    city: str
    postal_code: str
    department: str
    coordinates: Coordinate | None
    fuels: list[FuelPriceResponse]

    @classmethod
    def from_record(cls, station: StationRecord) -> StationResponse:
        coordinates = None
        if station.coordinates is not None:
            coordinates = Coordinate(
                latitude=station.coordinates.latitude,
                longitude=station.coordinates.longitude,
            )
        return cls(
            station_id=station.station_id,
            address=station.address,
            city=station.city,
            postal_code=station.postal_code,
            department=station.department,
            coordinates=coordinates,
            fuels=[
                FuelPriceResponse(
                    fuel_type=fuel_type.value,
                    label=fuel_type.label,
                    price=fuel.price,
                    stock_status=fuel.stock_status.value,
                    updated_at=fuel.updated_at,
                )
                for fuel_type, fuel in station.fuels.items()
            ],
        )


class BestPriceResponse(BaseModel):
    fuel_type: str
    label: str
    available: bool
    price: float | None = None
    station: StationResponse | None = None
    message: str | None = None


class ErrorResponse(BaseModel):
    code: str
    message: str


class PipelineSnapshot(BaseModel):
    phase: str
    radius_km: int
    place: PlaceResponse | None
    result_place: PlaceResponse | None
    stations: list[StationResponse]
    best_prices: list[BestPriceResponse]
    error: ErrorResponse | None

    @classmethod
    def from_state(cls, state: PipelineState) -> PipelineSnapshot:
        # place follows the latest trigger, result_place the stations shown.
        place = PlaceResponse.from_place(state.place) if state.place is not None else None
        result_place = None
        stations: list[StationResponse] = []
        best_prices: list[BestPriceResponse] = []
        if state.result is not None:
            result_place = PlaceResponse.from_place(state.result.place)
            stations = [StationResponse.from_record(item) for item in state.result.stations]
            for fuel_type in FuelType:
                best = state.result.best_prices.get(fuel_type)
                if best is None:
                    best_prices.append(
                        BestPriceResponse(
                            fuel_type=fuel_type.value,
                            label=fuel_type.label,
                            available=False,
                            message=NOT_DISTRIBUTED_LABEL,
                        )
                    )
                    continue
                fuel = best.fuel(fuel_type)
                best_prices.append(
                    BestPriceResponse(
                        fuel_type=fuel_type.value,
                        label=fuel_type.label,
                        available=True,
                        price=fuel.price if fuel is not None else None,
                        station=StationResponse.from_record(best),
                    )
                )

        error = None
        if state.error is not None:
            error = ErrorResponse(code=state.error.kind, message=state.error.message)

        return cls(
            phase=state.phase.value,
            radius_km=state.radius_km,
            place=place,
            result_place=result_place,
            stations=stations,
            best_prices=best_prices,
            error=error,
        )
