from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import Mapping

from fuel_finder.exceptions import InvalidCoordinatesError


@dataclass(slots=True, frozen=True)
class Coordinates:
    latitude: float
    longitude: float

    def __post_init__(self) -> None:
        if not -90.0 <= self.latitude <= 90.0:
            raise InvalidCoordinatesError(f"Latitude out of range: {self.latitude}")
        if not -180.0 <= self.longitude <= 180.0:
            raise InvalidCoordinatesError(f"Longitude out of range: {self.longitude}")


@dataclass(slots=True, frozen=True)
class ResolvedPlace:
    name: str
    postal_code: str
    coordinates: Coordinates


@dataclass(slots=True, frozen=True)
class PlaceCandidate:
    name: str
    postal_codes: tuple[str, ...]


@dataclass(slots=True, frozen=True)
class AreaMatch:
    place_name: str
    postal_code: str
    department: str


class FuelType(enum.Enum):
    DIESEL = "diesel"
    PETROL95 = "petrol95"
    PETROL98 = "petrol98"
    E10 = "e10"
    E85 = "e85"
    LPG = "lpg"

    @property
    def field_prefix(self) -> str:
        return _FIELD_PREFIXES[self]

    @property
    def label(self) -> str:
        return _LABELS[self]


_FIELD_PREFIXES = {
    FuelType.DIESEL: "gazole",
    FuelType.PETROL95: "sp95",
    FuelType.PETROL98: "sp98",
    FuelType.E10: "e10",
    FuelType.E85: "e85",
    FuelType.LPG: "gplc",
}

_LABELS = {
    FuelType.DIESEL: "Gazole",
    FuelType.PETROL95: "SP95",
    FuelType.PETROL98: "SP98",
    FuelType.E10: "E10",
    FuelType.E85: "E85",
    FuelType.LPG: "GPLc",
}


class StockStatus(enum.Enum):
    AVAILABLE = "available"
    LOW = "low"
    DISCONTINUED = "discontinued"


@dataclass(slots=True, frozen=True)
class FuelPrice:
    price: float | None
    stock_status: StockStatus = StockStatus.AVAILABLE
    updated_at: str | None = None


@dataclass(slots=True, frozen=True)
class StationRecord:
    station_id: str | None
    address: str
    city: str
    postal_code: str
    department: str
    coordinates: Coordinates | None
    fuels: Mapping[FuelType, FuelPrice] = field(default_factory=dict)

    def fuel(self, fuel_type: FuelType) -> FuelPrice | None:
        return self.fuels.get(fuel_type)


BestPriceResult = dict[FuelType, StationRecord | None]
