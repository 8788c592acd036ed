from __future__ import annotations

import logging
from typing import Any

import httpx
from django.conf import settings

from fuel_finder.exceptions import GeocodeUnavailableError, NoPlaceFoundError
from fuel_finder.services.types import Coordinates, PlaceCandidate, ResolvedPlace

_LOGGER = logging.getLogger(__name__)

MIN_SEARCH_LETTERS = 4
PLACE_ADDRESS_KEYS = ("city", "town", "village", "municipality")


class GeocodeClient:
    """Reverse lookup, place suggestions and name geocoding for French places."""

    def __init__(self, http_client: httpx.AsyncClient) -> None:
        self.http_client = http_client
        self.base_url = settings.GEOCODING_BASE_URL.rstrip("/")
        self.search_base_url = settings.PLACE_SEARCH_BASE_URL.rstrip("/")
        self.search_limit = settings.PLACE_SEARCH_LIMIT
        self.timeout = settings.GEOCODING_TIMEOUT_SECONDS
        self.user_agent = settings.GEOCODING_USER_AGENT

    async def reverse_lookup(self, coordinates: Coordinates) -> ResolvedPlace:
        params = {
            "lat": coordinates.latitude,
            "lon": coordinates.longitude,
            "format": "jsonv2",
            "zoom": 10,
            "addressdetails": 1,
        }
        payload = await self._get_json(f"{self.base_url}/reverse", params)
        return self._parse_reverse(payload, coordinates)

    async def forward_search(self, fragment: str) -> list[PlaceCandidate]:
        letters = "".join(char for char in fragment if char.isalpha())
        if len(letters) < MIN_SEARCH_LETTERS:
            return []

        params = {
            "nom": fragment.strip(),
            "fields": "nom,codesPostaux",
            "boost": "population",
            "limit": self.search_limit,
        }
        payload = await self._get_json(f"{self.search_base_url}/communes", params)
        if not isinstance(payload, list):
            raise GeocodeUnavailableError("Invalid place search response")

        candidates: list[PlaceCandidate] = []
        for item in payload:
            if not isinstance(item, dict) or not item.get("nom"):
                continue
            codes = item.get("codesPostaux") or []
            if not isinstance(codes, list):
                raise GeocodeUnavailableError("Invalid postal codes in place search response")
            postal_codes = tuple(str(code) for code in codes)
            candidates.append(PlaceCandidate(name=str(item["nom"]), postal_codes=postal_codes))
        return candidates

    async def geocode_by_name(self, name: str, postal_code: str) -> Coordinates:
        params = {
            "city": name,
            "postalcode": postal_code,
            "countrycodes": "fr",
            "format": "jsonv2",
            "limit": 1,
        }
        payload = await self._get_json(f"{self.base_url}/search", params)
        if not isinstance(payload, list) or not payload:
            raise NoPlaceFoundError(f"No place found for {name} ({postal_code})")

        first = payload[0]
        try:
            return Coordinates(latitude=float(first["lat"]), longitude=float(first["lon"]))
        except (KeyError, TypeError, ValueError) as exc:
            raise NoPlaceFoundError("Invalid geocoding response") from exc

    async def _get_json(self, url: str, params: dict[str, Any]) -> Any:
        _LOGGER.debug("Requesting %s with params=%s", url, params)
        try:
            response = await self.http_client.get(
                url,
                params=params,
                timeout=self.timeout,
                headers={
                    "Accept": "application/json",
                    "User-Agent": self.user_agent,
                },
            )
            response.raise_for_status()
            return response.json()
        except httpx.HTTPError as exc:
            _LOGGER.warning("Geocoding request to %s failed: %s", url, exc)
            raise GeocodeUnavailableError("Geocoding request failed") from exc
        except ValueError as exc:
            raise GeocodeUnavailableError("Geocoding response is not valid JSON") from exc

    @staticmethod
    def _parse_reverse(payload: Any, queried: Coordinates) -> ResolvedPlace:
        if not isinstance(payload, dict) or "error" in payload:
            raise NoPlaceFoundError("Location could not be resolved")

        address = payload.get("address") or {}
        if not isinstance(address, dict):
            raise NoPlaceFoundError("Invalid address in geocoding response")
        name = next((address[key] for key in PLACE_ADDRESS_KEYS if address.get(key)), None)
        name = name or payload.get("name")
        postal_code = address.get("postcode")
        if not name or not postal_code:
            raise NoPlaceFoundError("No place name or postal code at this location")

        try:
            coordinates = Coordinates(
                latitude=float(payload["lat"]), longitude=float(payload["lon"])
            )
        except (KeyError, TypeError, ValueError):
            coordinates = queried

        return ResolvedPlace(name=str(name), postal_code=str(postal_code), coordinates=coordinates)
