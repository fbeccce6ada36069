"""
IP-approximate Locator Tool.

Last-resort location source: asks an IP geolocation service where the
request appears to come from. City-level accuracy at best.
"""

import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..config import settings
from ..core.errors import LocationServiceError

logger = logging.getLogger(__name__)


class IPLocatorClient:
    """Client for an ipapi.co-style JSON endpoint"""

    def __init__(
        self,
        url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url or settings.IP_LOCATOR_URL
        self.timeout = timeout or settings.IP_LOCATOR_TIMEOUT_SECONDS
        self._transport = transport

    async def _make_request(self) -> Dict[str, Any]:
        """Make API request with error handling"""
        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(self.url)
                response.raise_for_status()
                return response.json()
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 429:
                    raise LocationServiceError("Approximate location is rate limited. Try again later.")
                raise LocationServiceError(f"Approximate location failed ({e.response.status_code}).")
            except httpx.TimeoutException:
                raise LocationServiceError("Approximate location timed out.")
            except httpx.HTTPError as e:
                raise LocationServiceError(f"Approximate location failed: {e}")
            except ValueError:
                raise LocationServiceError("Approximate location returned an unreadable response.")

    async def locate(self) -> Tuple[Any, Any]:
        """
        Get the approximate coordinates of the caller.

        Returns:
            Raw (latitude, longitude) as provided, not yet validated

        Raises:
            LocationServiceError: Request failed or payload has no coordinates
        """
        data = await self._make_request()

        if not isinstance(data, dict) or data.get("error"):
            reason = data.get("reason", "unknown") if isinstance(data, dict) else "unexpected payload"
            logger.error(f"IP locator reported an error: {reason}")
            raise LocationServiceError("Approximate location is unavailable.")

        lat = data.get("latitude", data.get("lat"))
        lng = data.get("longitude", data.get("lon"))
        if lat is None or lng is None:
            logger.error(f"IP locator payload missing coordinates: {sorted(data.keys())}")
            raise LocationServiceError("Approximate location is unavailable.")

        return lat, lng


# Singleton instance
_ip_locator: Optional[IPLocatorClient] = None


def get_ip_locator() -> IPLocatorClient:
    """Get or create the IPLocatorClient singleton."""
    global _ip_locator
    if _ip_locator is None:
        _ip_locator = IPLocatorClient()
    return _ip_locator
