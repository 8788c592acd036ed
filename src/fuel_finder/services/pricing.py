from __future__ import annotations

from typing import Iterable, Sequence

from fuel_finder.services.types import BestPriceResult, FuelType, StationRecord, StockStatus


def reduce_best_prices(
    stations: Sequence[StationRecord],
    fuel_types: Iterable[FuelType] = tuple(FuelType),
) -> BestPriceResult:
    """Pick the cheapest station still selling each fuel type.

    Stations without a price or with the fuel discontinued are skipped. Ties
    keep the first station in input order; a fuel nobody sells maps to None.
    """
    return {fuel_type: cheapest_station(stations, fuel_type) for fuel_type in fuel_types}


def cheapest_station(
    stations: Sequence[StationRecord], fuel_type: FuelType
) -> StationRecord | None:
    best: StationRecord | None = None
    best_price = 0.0
    for station in stations:
        fuel = station.fuel(fuel_type)
        if fuel is None or fuel.price is None:
            continue
        if fuel.stock_status is StockStatus.DISCONTINUED:
            continue
        if best is None or fuel.price < best_price:
            best = station
            best_price = fuel.price
    return best
