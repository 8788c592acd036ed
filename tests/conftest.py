from __future__ import annotations

from typing import Any, Callable

import httpx
import pytest
from django.test import Client

from fuel_finder.services.types import (
    AreaMatch,
    Coordinates,
    FuelPrice,
    FuelType,
    StationRecord,
    StockStatus,
)

LYON = Coordinates(latitude=45.764043, longitude=4.835659)
LYON_CENTER = Coordinates(latitude=45.7578137, longitude=4.8320114)


@pytest.fixture
def api_client() -> Client:
    return Client()


@pytest.fixture
def sent_requests() -> list[httpx.Request]:
    return []


@pytest.fixture
async def make_http_client(
    sent_requests: list[httpx.Request],
) -> Any:
    clients: list[httpx.AsyncClient] = []

    def factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        def recording_handler(request: httpx.Request) -> httpx.Response:
            sent_requests.append(request)
            return handler(request)

        client = httpx.AsyncClient(transport=httpx.MockTransport(recording_handler))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


def station_payload(
    station_id: int,
    *,
    city: str = "Lyon",
    postal_code: str = "69003",
    department: str = "69",
    address: str | None = None,
    **fuels: Any,
) -> dict[str, Any]:
    """Build a dataset record; fuel kwargs look like ``gazole=(1.85, None)``."""
    payload: dict[str, Any] = {
        "id": station_id,
        "adresse": address or f"{station_id} rue de la Republique",
        "ville": city,
        "cp": postal_code,
        "code_departement": department,
        "geom": {"lat": 45.76, "lon": 4.84},
    }
    for prefix, (price, rupture) in fuels.items():
        payload[f"{prefix}_prix"] = price
        payload[f"{prefix}_rupture_type"] = rupture
        payload[f"{prefix}_maj"] = "2024-05-02T10:00:00+00:00"
    return payload


def make_station(
    station_id: str,
    *,
    city: str = "Lyon",
    department: str = "69",
    **fuels: tuple[float | None, StockStatus],
) -> StationRecord:
    """Build a station record; fuel kwargs use FuelType values as keys."""
    return StationRecord(
        station_id=station_id,
        address=f"{station_id} avenue Jean Jaures",
        city=city,
        postal_code="69007",
        department=department,
        coordinates=LYON,
        fuels={
            FuelType(name): FuelPrice(price=price, stock_status=status)
            for name, (price, status) in fuels.items()
        },
    )


def make_area(place_name: str, postal_code: str, department: str) -> AreaMatch:
    return AreaMatch(place_name=place_name, postal_code=postal_code, department=department)
