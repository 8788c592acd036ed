class FuelFinderError(Exception):
    """Base exception for fuel lookup errors."""

    error_kind = "fuel_finder_error"


class LocationUnavailableError(FuelFinderError):
    """Raised when the device position was refused or is unsupported."""

    error_kind = "location_unavailable"


class InvalidCoordinatesError(FuelFinderError):
    """Raised when a latitude or longitude is out of range."""

    error_kind = "invalid_coordinates"


class GeocodeUnavailableError(FuelFinderError):
    """Raised when a geocoding call fails at the network or HTTP level."""

    error_kind = "geocode_unavailable"


class NoPlaceFoundError(FuelFinderError):
    """Raised when geocoding returns no usable place name or postal code."""

    error_kind = "no_place_found"


class InvalidRadiusError(FuelFinderError):
    """Raised when a search radius is not one of the allowed values."""

    error_kind = "invalid_radius"


class DatasetUnavailableError(FuelFinderError):
    """Raised when the fuel price dataset query fails or is malformed."""

    error_kind = "dataset_unavailable"
