from __future__ import annotations

import json
from typing import Any

import httpx
from django.conf import settings
from django.http import HttpRequest, HttpResponse, JsonResponse
from django.views.decorators.csrf import csrf_exempt
from django.views.decorators.http import require_GET, require_POST
from pydantic import ValidationError

from fuel_finder.schemas import (
    NearbyStationsRequest,
    PipelineSnapshot,
    PlaceCandidateResponse,
    PlaceStationsRequest,
)
from fuel_finder.services.pipeline import PipelineState, build_pipeline
from fuel_finder.services.types import Coordinates

ERROR_STATUS = {
    "location_unavailable": 400,
    "invalid_coordinates": 400,
    "invalid_radius": 400,
    "no_place_found": 404,
    "geocode_unavailable": 502,
    "dataset_unavailable": 502,
}


@require_GET
def health_view(_: HttpRequest) -> HttpResponse:
    return JsonResponse(
        {
            "status": "ok",
            "radii_km": list(settings.ALLOWED_RADII_KM),
            "default_radius_km": settings.DEFAULT_RADIUS_KM,
            "default_center": {
                "latitude": settings.DEFAULT_CENTER_LATITUDE,
                "longitude": settings.DEFAULT_CENTER_LONGITUDE,
            },
        }
    )


@require_GET
async def place_search_view(request: HttpRequest) -> HttpResponse:
    fragment = request.GET.get("q", "")
    async with httpx.AsyncClient() as http_client:
        pipeline = build_pipeline(http_client)
        candidates = await pipeline.search_places(fragment)

    if pipeline.state.error is not None:
        error = pipeline.state.error
        return _error_response(error.kind, error.message, status=ERROR_STATUS.get(error.kind, 502))

    return JsonResponse(
        {
            "candidates": [
                PlaceCandidateResponse.from_candidate(candidate).model_dump(mode="json")
                for candidate in candidates
            ]
        }
    )


@csrf_exempt
@require_POST
async def nearby_stations_view(request: HttpRequest) -> HttpResponse:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        stations_request = NearbyStationsRequest.model_validate(payload)
    except ValidationError as exc:
        return _validation_error_response(exc)

    async with httpx.AsyncClient() as http_client:
        pipeline = build_pipeline(http_client, radius_km=stations_request.radius_km)
        state = await pipeline.locate(
            Coordinates(
                latitude=stations_request.latitude,
                longitude=stations_request.longitude,
            )
        )
    return _snapshot_response(state)


@csrf_exempt
@require_POST
async def place_stations_view(request: HttpRequest) -> HttpResponse:
    payload = _parse_json_payload(request)
    if isinstance(payload, JsonResponse):
        return payload

    try:
        stations_request = PlaceStationsRequest.model_validate(payload)
    except ValidationError as exc:
        return _validation_error_response(exc)

    async with httpx.AsyncClient() as http_client:
        pipeline = build_pipeline(http_client, radius_km=stations_request.radius_km)
        state = await pipeline.select_place(stations_request.name, stations_request.postal_code)
    return _snapshot_response(state)


def _snapshot_response(state: PipelineState) -> JsonResponse:
    snapshot = PipelineSnapshot.from_state(state)
    status = 200
    if snapshot.error is not None:
        status = ERROR_STATUS.get(snapshot.error.code, 502)
    return JsonResponse(snapshot.model_dump(mode="json"), status=status)


def _parse_json_payload(request: HttpRequest) -> dict[str, Any] | JsonResponse:
    if not request.body:
        return {}

    try:
        payload = json.loads(request.body)
    except json.JSONDecodeError:
        return _error_response("invalid_json", "Request body must be valid JSON", status=400)

    if not isinstance(payload, dict):
        return _error_response("invalid_json", "JSON body must be an object", status=400)

    return payload


def _validation_error_response(exc: ValidationError) -> JsonResponse:
    return JsonResponse(
        {
            "error": {
                "code": "validation_error",
                "message": "Invalid request payload",
                "details": exc.errors(include_url=False, include_context=False),
            }
        },
        status=400,
    )


def _error_response(code: str, message: str, status: int) -> JsonResponse:
    return JsonResponse({"error": {"code": code, "message": message}}, status=status)
