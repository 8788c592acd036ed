"""Location to cheapest-fuel resolution pipeline.

A resolution cycle runs four stages in order: geocoding, area expansion,
dataset query and price aggregation. Every trigger (new location, selected
place, radius change) starts a new cycle with a higher generation number.
Stage results are only committed while their generation is still the latest,
so a slow response from a superseded cycle is dropped on arrival.

``ResolutionPipeline`` is the only writer of ``PipelineState``. Each commit
replaces the whole state value, and a failed cycle keeps the last aggregated
result next to the error. ``Phase.ERROR`` only means the current cycle
failed. A rejected radius or a failed place search records the error but
leaves the phase of the running or finished cycle alone.
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Mapping
from dataclasses import dataclass, replace
from types import MappingProxyType

import httpx
from django.conf import settings

from fuel_finder.exceptions import FuelFinderError, LocationUnavailableError
from fuel_finder.services.areas import AreaExpander
from fuel_finder.services.geocoding import GeocodeClient
from fuel_finder.services.pricing import reduce_best_prices
from fuel_finder.services.stations import StationQuery
from fuel_finder.services.types import (
    AreaMatch,
    Coordinates,
    FuelType,
    PlaceCandidate,
    ResolvedPlace,
    StationRecord,
)

_LOGGER = logging.getLogger(__name__)


class Phase(enum.Enum):
    IDLE = "idle"
    LOCATING = "locating"
    AREA_RESOLVED = "area_resolved"
    STATIONS_FETCHED = "stations_fetched"
    AGGREGATED = "aggregated"
    ERROR = "error"


class ResolutionSource(enum.Enum):
    DEVICE = "device"
    CANDIDATE = "candidate"


@dataclass(slots=True, frozen=True)
class PipelineError:
    kind: str
    message: str


@dataclass(slots=True, frozen=True)
class AggregatedResult:
    place: ResolvedPlace
    radius_km: int
    areas: tuple[AreaMatch, ...]
    stations: tuple[StationRecord, ...]
    best_prices: Mapping[FuelType, StationRecord | None]


@dataclass(slots=True, frozen=True)
class PipelineState:
    radius_km: int
    phase: Phase = Phase.IDLE
    generation: int = 0
    place: ResolvedPlace | None = None
    source: ResolutionSource | None = None
    result: AggregatedResult | None = None
    error: PipelineError | None = None


class ResolutionPipeline:
    def __init__(
        self,
        geocode_client: GeocodeClient,
        area_expander: AreaExpander,
        station_query: StationQuery,
        *,
        radius_km: int | None = None,
    ) -> None:
        self.geocode_client = geocode_client
        self.area_expander = area_expander
        self.station_query = station_query
        self._generation = 0
        self._state = PipelineState(
            radius_km=radius_km if radius_km is not None else settings.DEFAULT_RADIUS_KM
        )

    @property
    def state(self) -> PipelineState:
        return self._state

    async def locate(self, coordinates: Coordinates) -> PipelineState:
        """Resolve the device position and run a full cycle."""
        generation = self._begin_cycle()
        try:
            self.area_expander.check_radius(self._state.radius_km)
            place = await self.geocode_client.reverse_lookup(coordinates)
        except FuelFinderError as exc:
            self._fail(generation, exc)
            return self._state

        await self._resolve_stations(generation, place, ResolutionSource.DEVICE)
        return self._state

    async def select_place(self, name: str, postal_code: str) -> PipelineState:
        """Run a full cycle for a place picked from the search suggestions."""
        generation = self._begin_cycle()
        try:
            self.area_expander.check_radius(self._state.radius_km)
            coordinates = await self.geocode_client.geocode_by_name(name, postal_code)
        except FuelFinderError as exc:
            self._fail(generation, exc)
            return self._state

        place = ResolvedPlace(name=name, postal_code=postal_code, coordinates=coordinates)
        await self._resolve_stations(generation, place, ResolutionSource.CANDIDATE)
        return self._state

    async def set_radius(self, radius_km: int) -> PipelineState:
        """Change the radius and re-run from area expansion with the last place."""
        try:
            radius = self.area_expander.check_radius(radius_km)
        except FuelFinderError as exc:
            self._state = replace(self._state, error=PipelineError(exc.error_kind, str(exc)))
            return self._state

        place = self._state.place
        source = self._state.source or ResolutionSource.DEVICE
        self._state = replace(self._state, radius_km=radius)
        if place is None:
            return self._state

        generation = self._begin_cycle()
        await self._resolve_stations(generation, place, source)
        return self._state

    async def search_places(self, fragment: str) -> list[PlaceCandidate]:
        """Place suggestions; independent of any running cycle."""
        try:
            return await self.geocode_client.forward_search(fragment)
        except FuelFinderError as exc:
            self._state = replace(self._state, error=PipelineError(exc.error_kind, str(exc)))
            return []

    def report_location_unavailable(self, reason: str) -> PipelineState:
        generation = self._begin_cycle()
        self._fail(generation, LocationUnavailableError(reason))
        return self._state

    def dismiss_error(self) -> PipelineState:
        if self._state.error is not None:
            phase = self._state.phase
            if phase is Phase.ERROR:
                phase = Phase.AGGREGATED if self._state.result is not None else Phase.IDLE
            self._state = replace(self._state, phase=phase, error=None)
        return self._state

    def _begin_cycle(self) -> int:
        self._generation += 1
        self._state = replace(
            self._state, phase=Phase.LOCATING, generation=self._generation, error=None
        )
        _LOGGER.debug("Starting resolution cycle %d", self._generation)
        return self._generation

    def _is_stale(self, generation: int) -> bool:
        if generation == self._generation:
            return False
        _LOGGER.info(
            "Discarding result of cycle %d, cycle %d is current", generation, self._generation
        )
        return True

    def _commit(self, generation: int, **changes: object) -> bool:
        if self._is_stale(generation):
            return False
        self._state = replace(self._state, **changes)
        _LOGGER.debug("Cycle %d entered phase %s", generation, self._state.phase.value)
        return True

    def _fail(self, generation: int, exc: FuelFinderError) -> None:
        _LOGGER.warning("Cycle %d failed: %s", generation, exc)
        self._commit(
            generation, phase=Phase.ERROR, error=PipelineError(exc.error_kind, str(exc))
        )

    async def _resolve_stations(
        self, generation: int, place: ResolvedPlace, source: ResolutionSource
    ) -> None:
        if not self._commit(generation, phase=Phase.AREA_RESOLVED, place=place, source=source):
            return

        radius = self._state.radius_km
        try:
            areas = await self.area_expander.expand(place.coordinates, radius)
            if self._is_stale(generation):
                return
            stations = await self.station_query.fetch(
                areas, match_postal_codes=source is ResolutionSource.DEVICE
            )
        except FuelFinderError as exc:
            self._fail(generation, exc)
            return

        if not self._commit(generation, phase=Phase.STATIONS_FETCHED):
            return

        result = AggregatedResult(
            place=place,
            radius_km=radius,
            areas=tuple(areas),
            stations=tuple(stations),
            best_prices=MappingProxyType(reduce_best_prices(stations)),
        )
        self._commit(generation, phase=Phase.AGGREGATED, result=result)


def build_pipeline(
    http_client: httpx.AsyncClient, *, radius_km: int | None = None
) -> ResolutionPipeline:
    return ResolutionPipeline(
        geocode_client=GeocodeClient(http_client),
        area_expander=AreaExpander(http_client),
        station_query=StationQuery(http_client),
        radius_km=radius_km,
    )
