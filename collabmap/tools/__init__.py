"""
CollabMap Engine Tools Package.

External location providers consumed by the Location Resolver:

- geocoder: Free-text address geocoding (Nominatim)
- ip_locator: IP-approximate fallback
- device: Device geolocation sources
"""

from .geocoder import GeocoderClient, first_candidate, get_geocoder
from .ip_locator import IPLocatorClient, get_ip_locator
from .device import (
    DevicePositionError,
    DevicePositionSource,
    ReportedPosition,
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
)

__all__ = [
    "GeocoderClient",
    "first_candidate",
    "get_geocoder",
    "IPLocatorClient",
    "get_ip_locator",
    "DevicePositionError",
    "DevicePositionSource",
    "ReportedPosition",
    "PERMISSION_DENIED",
    "POSITION_UNAVAILABLE",
    "TIMEOUT",
]
