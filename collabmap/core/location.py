"""
Location Resolver: multi-tier reference point acquisition.

Tiers, in order of preference:
    1. Device geolocation (precise, needs user permission)
    2. Address geocode (free text + regional bias)
    3. IP-approximate (last resort, only after a device failure and an
       explicit user confirmation)

Each call makes exactly one attempt; repeating is always a new user action.
Coordinates from every provider pass through the Coordinate Normalizer
before they become a ReferencePoint.
"""

import asyncio
import logging
from enum import Enum
from typing import Any, Optional

from .coordinates import RegionPolicy, normalize_coordinates
from .errors import (
    CoordinateError,
    FallbackNotOffered,
    LocationError,
    LocationNotFound,
    LocationServiceError,
    LocationTimeout,
    LocationUnavailable,
    PermissionDenied,
)
from .models import LocationTier, ReferencePoint
from ..config import settings
from ..tools.device import (
    DevicePositionError,
    DevicePositionSource,
    PERMISSION_DENIED,
    POSITION_UNAVAILABLE,
    TIMEOUT,
)
from ..tools.geocoder import GeocoderClient, first_candidate, get_geocoder
from ..tools.ip_locator import IPLocatorClient, get_ip_locator

logger = logging.getLogger(__name__)


class ResolutionMode(str, Enum):
    ADDRESS = "address"
    DEVICE = "device"
    IP_APPROXIMATE = "ip"


def classify_device_error(error: BaseException) -> LocationError:
    """Map a platform failure onto the LocationError taxonomy."""
    if isinstance(error, LocationError):
        return error
    if isinstance(error, DevicePositionError):
        if error.code == PERMISSION_DENIED:
            return PermissionDenied()
        if error.code == POSITION_UNAVAILABLE:
            return LocationUnavailable()
        if error.code == TIMEOUT:
            return LocationTimeout()
        return LocationServiceError(f"Device location failed: {error.message or error.code}")
    if isinstance(error, asyncio.TimeoutError):
        return LocationTimeout()
    if isinstance(error, PermissionError):
        return PermissionDenied()
    return LocationServiceError()


class LocationResolver:
    """
    Resolve a ReferencePoint from one of the location tiers.

    Attributes:
        policy: Regional policy used for normalization and address bias
        geocoder: Free-text geocoding client
        ip_locator: IP-approximate client
        device_timeout: Seconds allowed for a device reading

    Example:
        >>> resolver = LocationResolver()
        >>> ref = await resolver.resolve(ResolutionMode.ADDRESS, query="1 S Main St")
    """

    def __init__(
        self,
        policy: Optional[RegionPolicy] = None,
        geocoder: Optional[GeocoderClient] = None,
        ip_locator: Optional[IPLocatorClient] = None,
        device_timeout: Optional[float] = None
    ):
        self.policy = policy or RegionPolicy.from_settings()
        self.geocoder = geocoder or get_geocoder()
        self.ip_locator = ip_locator or get_ip_locator()
        self.device_timeout = device_timeout or settings.DEVICE_TIMEOUT_SECONDS

    def _to_reference(self, raw_lat: Any, raw_lng: Any, tier: LocationTier) -> ReferencePoint:
        try:
            normalized = normalize_coordinates(raw_lat, raw_lng, self.policy)
        except CoordinateError as e:
            logger.error(f"{tier.value} provider returned unusable coordinates: {e}")
            raise LocationServiceError("The location service returned invalid coordinates.")

        if normalized.far_from_region:
            logger.info(
                f"{tier.value} location ({normalized.point.latitude}, "
                f"{normalized.point.longitude}) is far from the served region"
            )
        return ReferencePoint(point=normalized.point, tier=tier)

    async def geocode_address(self, query: Optional[str]) -> ReferencePoint:
        """
        Resolve a free-text address.

        Raises:
            LocationNotFound: Empty query, no candidates, or malformed payload
            LocationServiceError: Provider unreachable or invalid coordinates
        """
        text = (query or "").strip()
        if not text:
            raise LocationNotFound("Enter an address to search.")

        biased = f"{text}{self.policy.geocode_suffix}"
        candidates = await self.geocoder.search(biased, limit=1)
        best = first_candidate(candidates)

        logger.info(f"Geocoded {text!r} -> ({best['lat']}, {best['lon']})")
        return self._to_reference(best["lat"], best["lon"], LocationTier.ADDRESS_GEOCODE)

    async def locate_device(self, source: DevicePositionSource) -> ReferencePoint:
        """
        Read the device position with a fixed timeout and no cached reading.

        Raises:
            PermissionDenied, LocationUnavailable, LocationTimeout,
            LocationServiceError
        """
        try:
            lat, lng = await asyncio.wait_for(
                source.get_position(timeout=self.device_timeout, maximum_age=0),
                timeout=self.device_timeout,
            )
        except Exception as e:
            error = classify_device_error(e)
            logger.warning(f"Device location failed ({error.code}): {e}")
            raise error

        return self._to_reference(lat, lng, LocationTier.DEVICE)

    async def locate_by_ip(self) -> ReferencePoint:
        """
        Approximate the location from the caller's IP address.

        Raises:
            LocationServiceError: Provider failed or gave invalid coordinates
        """
        lat, lng = await self.ip_locator.locate()
        logger.info(f"IP-approximate location ({lat}, {lng})")
        return self._to_reference(lat, lng, LocationTier.IP_APPROXIMATE)

    async def resolve(
        self,
        mode: ResolutionMode,
        query: Optional[str] = None,
        device: Optional[DevicePositionSource] = None,
        confirmed: bool = False,
        device_failed: bool = False
    ) -> ReferencePoint:
        """
        Resolve a reference point with one attempt of the requested tier.

        Args:
            mode: Tier to use
            query: Address text (ADDRESS)
            device: Position source (DEVICE)
            confirmed: User confirmed the approximate fallback (IP_APPROXIMATE)
            device_failed: A device attempt failed earlier in this session

        Returns:
            ReferencePoint tagged with its tier

        Raises:
            LocationError: Any tier failure
            FallbackNotOffered: IP lookup without a device failure and
                explicit confirmation
        """
        if mode == ResolutionMode.ADDRESS:
            return await self.geocode_address(query)

        if mode == ResolutionMode.DEVICE:
            if device is None:
                raise LocationUnavailable("Geolocation is not supported on this device.")
            return await self.locate_device(device)

        if mode == ResolutionMode.IP_APPROXIMATE:
            if not (device_failed and confirmed):
                raise FallbackNotOffered()
            return await self.locate_by_ip()

        raise ValueError(f"Unknown resolution mode: {mode!r}")


# Singleton instance
_resolver: Optional[LocationResolver] = None


def get_resolver() -> LocationResolver:
    """Get or create the LocationResolver singleton."""
    global _resolver
    if _resolver is None:
        _resolver = LocationResolver()
    return _resolver
