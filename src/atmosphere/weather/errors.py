"""Errors that cross the weather pipeline boundary."""


class WeatherError(Exception):
    """Base class for fatal weather pipeline errors."""
    pass


class DataSyncFailure(WeatherError):
    """Raised when a primary provider (forecast, air quality, forward geocoding) fails."""
    pass


class LocationNotFound(WeatherError):
    """Raised when forward geocoding returns no candidates."""
    pass
