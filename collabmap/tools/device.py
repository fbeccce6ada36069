"""
Device Geolocation Sources.

The device position is read by the client platform (the browser's
Geolocation API) and reported to the engine. Sources follow the W3C
GeolocationPositionError codes so failures can be classified.
"""

from abc import ABC, abstractmethod
from typing import Optional, Tuple

# W3C GeolocationPositionError codes
PERMISSION_DENIED = 1
POSITION_UNAVAILABLE = 2
TIMEOUT = 3


class DevicePositionError(Exception):
    """Failure reported by the platform's location capability."""

    def __init__(self, code: int, message: str = ""):
        self.code = code
        self.message = message
        super().__init__(f"device position error {code}: {message}")


class DevicePositionSource(ABC):
    """Abstract platform location capability."""

    @abstractmethod
    async def get_position(self, timeout: float, maximum_age: float = 0) -> Tuple[float, float]:
        """
        Read the current position.

        Args:
            timeout: Seconds before giving up
            maximum_age: Oldest acceptable cached reading, 0 for a fresh one

        Returns:
            Raw (latitude, longitude)

        Raises:
            DevicePositionError: Platform reported a failure
        """
        pass


class ReportedPosition(DevicePositionSource):
    """A reading (or failure) the client already obtained and posted."""

    def __init__(
        self,
        latitude: Optional[float] = None,
        longitude: Optional[float] = None,
        error_code: Optional[int] = None,
        error_message: str = ""
    ):
        self.latitude = latitude
        self.longitude = longitude
        self.error_code = error_code
        self.error_message = error_message

    async def get_position(self, timeout: float, maximum_age: float = 0) -> Tuple[float, float]:
        if self.error_code is not None:
            raise DevicePositionError(self.error_code, self.error_message)
        if self.latitude is None or self.longitude is None:
            raise DevicePositionError(POSITION_UNAVAILABLE, "no position reported")
        return self.latitude, self.longitude
