from __future__ import annotations

import asyncio
from typing import Any

import httpx
from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from fuel_finder.exceptions import FuelFinderError
from fuel_finder.schemas import NOT_DISTRIBUTED_LABEL
from fuel_finder.services.pipeline import PipelineState, build_pipeline
from fuel_finder.services.types import Coordinates, FuelType


class Command(BaseCommand):
    help = "Find the cheapest station per fuel type around a position or a named place."

    def add_arguments(self, parser: Any) -> None:
        parser.add_argument("--latitude", type=float, help="Latitude of the search center")
        parser.add_argument("--longitude", type=float, help="Longitude of the search center")
        parser.add_argument("--place", type=str, help="Place name, used with --postal-code")
        parser.add_argument("--postal-code", type=str, help="Postal code of --place")
        parser.add_argument(
            "--radius",
            type=int,
            default=settings.DEFAULT_RADIUS_KM,
            help="Search radius in km",
        )

    def handle(self, *_: Any, **options: Any) -> None:
        has_position = options["latitude"] is not None and options["longitude"] is not None
        has_place = bool(options["place"] and options["postal_code"])
        if has_position == has_place:
            raise CommandError(
                "Provide either --latitude and --longitude, or --place and --postal-code"
            )

        state = asyncio.run(self._run(options, has_position))
        if state.error is not None:
            raise CommandError(f"{state.error.kind}: {state.error.message}")

        result = state.result
        if result is None:
            raise CommandError("Lookup finished without a result")

        self.stdout.write(
            f"{result.place.name} ({result.place.postal_code}), "
            f"{len(result.stations)} stations within {result.radius_km} km"
        )
        for fuel_type in FuelType:
            station = result.best_prices.get(fuel_type)
            if station is None:
                self.stdout.write(f"{fuel_type.label}: {NOT_DISTRIBUTED_LABEL}")
                continue
            fuel = station.fuel(fuel_type)
            price = fuel.price if fuel is not None else None
            self.stdout.write(
                self.style.SUCCESS(
                    f"{fuel_type.label}: {price:.3f} EUR at {station.address} - {station.city}"
                )
            )

    @staticmethod
    async def _run(options: dict[str, Any], has_position: bool) -> PipelineState:
        async with httpx.AsyncClient() as http_client:
            pipeline = build_pipeline(http_client, radius_km=options["radius"])
            if not has_position:
                return await pipeline.select_place(options["place"], options["postal_code"])
            try:
                coordinates = Coordinates(
                    latitude=options["latitude"], longitude=options["longitude"]
                )
            except FuelFinderError as exc:
                raise CommandError(str(exc)) from exc
            return await pipeline.locate(coordinates)
