from __future__ import annotations

import logging
from typing import Any, Iterable

import httpx
from django.conf import settings

from fuel_finder.exceptions import DatasetUnavailableError, FuelFinderError
from fuel_finder.services.areas import distinct_departments, normalize_department
from fuel_finder.services.types import (
    AreaMatch,
    Coordinates,
    FuelPrice,
    FuelType,
    StationRecord,
    StockStatus,
)

_LOGGER = logging.getLogger(__name__)

RUPTURE_STATUSES = {
    "temporaire": StockStatus.LOW,
    "definitive": StockStatus.DISCONTINUED,
}


class StationQuery:
    """Query the French instant fuel price dataset for stations in a set of areas."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client
        self.url = settings.FUEL_DATASET_URL
        self.timeout = settings.FUEL_DATASET_TIMEOUT_SECONDS
        self.limit = settings.FUEL_DATASET_LIMIT

    async def fetch(
        self, areas: list[AreaMatch], *, match_postal_codes: bool = True
    ) -> list[StationRecord]:
        departments = set(distinct_departments(areas))
        if not departments:
            return []

        params = {
            "where": build_where_clause(areas, match_postal_codes=match_postal_codes),
            "limit": self.limit,
            "offset": 0,
        }
        _LOGGER.debug("Querying fuel dataset for %d areas", len(areas))
        try:
            response = await self.http_client.get(self.url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            _LOGGER.warning("Fuel dataset request failed: %s", exc)
            raise DatasetUnavailableError("Fuel dataset request failed") from exc
        except ValueError as exc:
            raise DatasetUnavailableError("Fuel dataset response is not valid JSON") from exc

        if not isinstance(payload, dict) or not isinstance(payload.get("results"), list):
            raise DatasetUnavailableError("Malformed fuel dataset response")

        stations = [parse_station(item) for item in payload["results"]]
        nearby = [station for station in stations if station.department in departments]
        if len(nearby) < len(stations):
            _LOGGER.debug(
                "Dropped %d stations outside departments %s",
                len(stations) - len(nearby),
                sorted(departments),
            )
        return dedupe_stations(nearby)


def build_where_clause(areas: Iterable[AreaMatch], *, match_postal_codes: bool) -> str:
    if match_postal_codes:
        clauses = [
            f'(ville="{_quote(area.place_name)}" AND cp="{_quote(area.postal_code)}")'
            for area in areas
        ]
    else:
        names = dict.fromkeys(area.place_name for area in areas)
        clauses = [f'ville="{_quote(name)}"' for name in names]
    return " OR ".join(clauses)


def _quote(value: str) -> str:
    return value.replace("\\", "\\\\").replace('"', '\\"')


def parse_station(item: Any) -> StationRecord:
    if not isinstance(item, dict):
        raise DatasetUnavailableError("Malformed station record")

    geom = item.get("geom") or {}
    try:
        coordinates = Coordinates(latitude=float(geom["lat"]), longitude=float(geom["lon"]))
    except (KeyError, TypeError, ValueError, FuelFinderError):
        coordinates = None

    fuels: dict[FuelType, FuelPrice] = {}
    for fuel_type in FuelType:
        prefix = fuel_type.field_prefix
        price = item.get(f"{prefix}_prix")
        rupture = item.get(f"{prefix}_rupture_type")
        updated_at = item.get(f"{prefix}_maj")
        if price is None and rupture is None:
            continue
        try:
            price_value = float(price) if price is not None else None
        except (TypeError, ValueError) as exc:
            raise DatasetUnavailableError(f"Invalid {prefix} price: {price!r}") from exc
        fuels[fuel_type] = FuelPrice(
            price=price_value,
            stock_status=RUPTURE_STATUSES.get(str(rupture).lower(), StockStatus.AVAILABLE),
            updated_at=str(updated_at) if updated_at else None,
        )

    station_id = item.get("id")
    return StationRecord(
        station_id=str(station_id) if station_id is not None else None,
        address=str(item.get("adresse") or ""),
        city=str(item.get("ville") or ""),
        postal_code=str(item.get("cp") or ""),
        department=normalize_department(item.get("code_departement") or ""),
        coordinates=coordinates,
        fuels=fuels,
    )


def dedupe_stations(stations: list[StationRecord]) -> list[StationRecord]:
    seen: set[tuple[str, ...]] = set()
    unique: list[StationRecord] = []
    for station in stations:
        if station.station_id:
            key: tuple[str, ...] = ("id", station.station_id)
        else:
            key = ("address", station.address.strip().lower(), station.postal_code)
        if key in seen:
            continue
        seen.add(key)
        unique.append(station)
    return unique
