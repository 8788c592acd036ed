from __future__ import annotations

import json
from dataclasses import replace

import pytest

from fuel_finder.services.pipeline import (
    AggregatedResult,
    Phase,
    PipelineError,
    PipelineState,
)
from fuel_finder.services.pricing import reduce_best_prices
from fuel_finder.services.types import Coordinates, PlaceCandidate, ResolvedPlace, StockStatus

from .conftest import LYON_CENTER, make_area, make_station

LYON_PLACE = ResolvedPlace(name="Lyon", postal_code="69003", coordinates=LYON_CENTER)


def _aggregated_state() -> PipelineState:
    stations = (
        make_station("1", diesel=(1.85, StockStatus.AVAILABLE)),
        make_station("2", diesel=(1.79, StockStatus.AVAILABLE)),
    )
    return PipelineState(
        radius_km=10,
        phase=Phase.AGGREGATED,
        generation=1,
        place=LYON_PLACE,
        result=AggregatedResult(
            place=LYON_PLACE,
            radius_km=10,
            areas=(make_area("Lyon", "69003", "69"),),
            stations=stations,
            best_prices=reduce_best_prices(stations),
        ),
    )


@pytest.fixture
def pipeline(mocker):
    pipeline = mocker.Mock()
    pipeline.locate = mocker.AsyncMock(return_value=_aggregated_state())
    pipeline.select_place = mocker.AsyncMock(return_value=_aggregated_state())
    pipeline.search_places = mocker.AsyncMock(return_value=[])
    pipeline.state = PipelineState(radius_km=5)
    mocker.patch("fuel_finder.views.build_pipeline", return_value=pipeline)
    return pipeline


def test_health_endpoint_lists_radii(api_client) -> None:
    response = api_client.get("/api/v1/health")

    assert response.status_code == 200
    payload = response.json()
    assert payload["status"] == "ok"
    assert payload["radii_km"] == [5, 10, 15, 20]
    assert payload["default_radius_km"] == 5
    assert payload["default_center"] == {"latitude": 48.864716, "longitude": 2.349014}


def test_nearby_stations_returns_snapshot(api_client, pipeline) -> None:
    response = api_client.post(
        "/api/v1/stations/nearby",
        data=json.dumps({"latitude": 45.764, "longitude": 4.8357, "radius_km": 10}),
        content_type="application/json",
    )

    assert response.status_code == 200
    payload = response.json()
    assert payload["phase"] == "aggregated"
    assert payload["place"]["name"] == "Lyon"
    assert payload["result_place"]["name"] == "Lyon"
    assert payload["radius_km"] == 10
    assert [station["station_id"] for station in payload["stations"]] == ["1", "2"]
    best = {entry["fuel_type"]: entry for entry in payload["best_prices"]}
    assert best["diesel"]["available"] is True
    assert best["diesel"]["price"] == 1.79
    assert best["diesel"]["station"]["station_id"] == "2"
    assert best["lpg"]["available"] is False
    assert best["lpg"]["message"] == "not distributed in this area"
    assert payload["error"] is None
    coordinates = pipeline.locate.call_args.args[0]
    assert coordinates.latitude == 45.764


def test_nearby_stations_validation_error_returns_400(api_client, pipeline) -> None:
    response = api_client.post(
        "/api/v1/stations/nearby",
        data=json.dumps({"latitude": 123.0, "longitude": 4.8}),
        content_type="application/json",
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "validation_error"
    pipeline.locate.assert_not_called()


def test_invalid_json_returns_400(api_client) -> None:
    response = api_client.post(
        "/api/v1/stations/nearby", data="{not json", content_type="application/json"
    )

    assert response.status_code == 400
    assert response.json()["error"]["code"] == "invalid_json"


@pytest.mark.parametrize(
    ("kind", "status"),
    [
        ("dataset_unavailable", 502),
        ("geocode_unavailable", 502),
        ("no_place_found", 404),
        ("invalid_radius", 400),
    ],
)
def test_pipeline_error_maps_to_status(api_client, pipeline, kind, status) -> None:
    pipeline.locate.return_value = PipelineState(
        radius_km=5,
        phase=Phase.ERROR,
        generation=1,
        error=PipelineError(kind=kind, message="upstream said no"),
    )

    response = api_client.post(
        "/api/v1/stations/nearby",
        data=json.dumps({"latitude": 45.764, "longitude": 4.8357}),
        content_type="application/json",
    )

    assert response.status_code == status
    payload = response.json()
    assert payload["error"] == {"code": kind, "message": "upstream said no"}
    assert payload["best_prices"] == []


def test_failed_cycle_shows_place_of_kept_result(api_client, pipeline) -> None:
    grenoble = ResolvedPlace(
        name="Grenoble",
        postal_code="38000",
        coordinates=Coordinates(latitude=45.188529, longitude=5.724524),
    )
    pipeline.locate.return_value = replace(
        _aggregated_state(),
        phase=Phase.ERROR,
        generation=2,
        place=grenoble,
        error=PipelineError(kind="dataset_unavailable", message="Fuel dataset request failed"),
    )

    response = api_client.post(
        "/api/v1/stations/nearby",
        data=json.dumps({"latitude": 45.188529, "longitude": 5.724524}),
        content_type="application/json",
    )

    assert response.status_code == 502
    payload = response.json()
    assert payload["place"]["name"] == "Grenoble"
    assert payload["result_place"]["name"] == "Lyon"
    assert payload["result_place"]["postal_code"] == "69003"
    assert [station["station_id"] for station in payload["stations"]] == ["1", "2"]


def test_place_stations_runs_candidate_cycle(api_client, pipeline) -> None:
    response = api_client.post(
        "/api/v1/stations/by-place",
        data=json.dumps({"name": "Lyon", "postal_code": "69003"}),
        content_type="application/json",
    )

    assert response.status_code == 200
    pipeline.select_place.assert_awaited_once_with("Lyon", "69003")


def test_place_stations_rejects_bad_postal_code(api_client, pipeline) -> None:
    response = api_client.post(
        "/api/v1/stations/by-place",
        data=json.dumps({"name": "Lyon", "postal_code": "6900"}),
        content_type="application/json",
    )

    assert response.status_code == 400
    pipeline.select_place.assert_not_called()


def test_place_search_returns_candidates(api_client, pipeline) -> None:
    pipeline.search_places.return_value = [
        PlaceCandidate(name="Grenoble", postal_codes=("38000", "38100"))
    ]

    response = api_client.get("/api/v1/places", {"q": "Greno"})

    assert response.status_code == 200
    assert response.json() == {
        "candidates": [{"name": "Grenoble", "postal_codes": ["38000", "38100"]}]
    }
    pipeline.search_places.assert_awaited_once_with("Greno")


def test_place_search_upstream_error_returns_502(api_client, pipeline) -> None:
    pipeline.state = PipelineState(
        radius_km=5,
        error=PipelineError(kind="geocode_unavailable", message="Geocoding request failed"),
    )

    response = api_client.get("/api/v1/places", {"q": "Grenoble"})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "geocode_unavailable"


def test_get_on_post_endpoint_is_rejected(api_client) -> None:
    response = api_client.get("/api/v1/stations/nearby")

    assert response.status_code == 405
