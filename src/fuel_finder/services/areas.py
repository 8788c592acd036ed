from __future__ import annotations

import logging
from typing import Any

import httpx
from django.conf import settings

from fuel_finder.exceptions import GeocodeUnavailableError, InvalidRadiusError
from fuel_finder.services.types import AreaMatch, Coordinates

_LOGGER = logging.getLogger(__name__)


class AreaExpander:
    """Expand a center point and radius into nearby postal areas via GeoNames."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client
        self.base_url = settings.GEONAMES_BASE_URL.rstrip("/")
        self.username = settings.GEONAMES_USERNAME
        self.country = settings.GEONAMES_COUNTRY
        self.timeout = settings.GEONAMES_TIMEOUT_SECONDS
        self.max_rows = settings.AREA_MAX_ROWS
        self.allowed_radii_km = tuple(settings.ALLOWED_RADII_KM)

    def check_radius(self, radius_km: float) -> int:
        if isinstance(radius_km, bool) or radius_km not in self.allowed_radii_km:
            allowed = ", ".join(str(value) for value in self.allowed_radii_km)
            raise InvalidRadiusError(f"Radius must be one of {allowed} km, got {radius_km}")
        return int(radius_km)

    async def expand(self, center: Coordinates, radius_km: float) -> list[AreaMatch]:
        radius = self.check_radius(radius_km)
        params = {
            "lat": center.latitude,
            "lng": center.longitude,
            "radius": radius,
            "country": self.country,
            "maxRows": self.max_rows,
            "style": "full",
            "username": self.username,
        }
        url = f"{self.base_url}/findNearbyPostalCodesJSON"
        _LOGGER.debug("Expanding %s km around %s", radius, center)
        try:
            response = await self.http_client.get(url, params=params, timeout=self.timeout)
            response.raise_for_status()
            payload = response.json()
        except httpx.HTTPError as exc:
            _LOGGER.warning("Nearby postal code request failed: %s", exc)
            raise GeocodeUnavailableError("Nearby postal code request failed") from exc
        except ValueError as exc:
            raise GeocodeUnavailableError("Nearby postal code response is not valid JSON") from exc

        return self._parse_areas(payload)[: self.max_rows]

    @staticmethod
    def _parse_areas(payload: Any) -> list[AreaMatch]:
        if not isinstance(payload, dict):
            raise GeocodeUnavailableError("Invalid nearby postal code response")
        # GeoNames reports quota and credential errors in a 200 response body.
        if "status" in payload:
            status = payload["status"]
            message = status
            if isinstance(status, dict):
                message = status.get("message", "unknown error")
            raise GeocodeUnavailableError(f"GeoNames error: {message}")

        postal_codes = payload.get("postalCodes") or []
        if not isinstance(postal_codes, list):
            raise GeocodeUnavailableError("Invalid nearby postal code list")

        areas: list[AreaMatch] = []
        for item in postal_codes:
            if not isinstance(item, dict):
                raise GeocodeUnavailableError("Invalid nearby postal code entry")
            place_name = item.get("placeName")
            postal_code = item.get("postalCode")
            department = item.get("adminCode2")
            if not place_name or not postal_code or not department:
                continue
            areas.append(
                AreaMatch(
                    place_name=str(place_name),
                    postal_code=str(postal_code),
                    department=normalize_department(department),
                )
            )
        return areas


def normalize_department(value: Any) -> str:
    return str(value).strip().upper()


def distinct_departments(areas: list[AreaMatch]) -> list[str]:
    seen: dict[str, None] = {}
    for area in areas:
        seen.setdefault(area.department, None)
    return list(seen)
