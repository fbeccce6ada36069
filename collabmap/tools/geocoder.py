"""
Free-text Geocoder Tool.

Resolves an address typed by the user into candidate coordinates using a
Nominatim-compatible search API. The caller appends the regional bias
(e.g. ", Dayton, Ohio") and uses only the first candidate.
"""

import logging
from typing import Any, Dict, List, Optional

import httpx

from ..config import settings
from ..core.errors import LocationNotFound, LocationServiceError

logger = logging.getLogger(__name__)


class GeocoderClient:
    """Client for the Nominatim search API with error handling"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        user_agent: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.base_url = (base_url or settings.GEOCODER_BASE_URL).rstrip("/")
        self.timeout = timeout or settings.GEOCODER_TIMEOUT_SECONDS
        self.user_agent = user_agent or settings.GEOCODER_USER_AGENT
        self._transport = transport

    async def search(self, query: str, limit: int = 1) -> List[Dict[str, Any]]:
        """
        Search for a free-text address.

        Args:
            query: Full query string, regional bias included
            limit: Maximum candidates requested

        Returns:
            Candidate list as returned by the provider (best first)

        Raises:
            LocationNotFound: Payload is not a candidate list
            LocationServiceError: Transport or HTTP failure
        """
        params = {"q": query, "format": "json", "limit": limit}
        headers = {"User-Agent": self.user_agent}

        async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
            try:
                response = await client.get(f"{self.base_url}/search", params=params, headers=headers)
                response.raise_for_status()
                data = response.json()
            except httpx.HTTPStatusError as e:
                logger.error(f"Geocoder returned HTTP {e.response.status_code} for {query!r}")
                raise LocationServiceError("Geocoding failed. Try again.")
            except httpx.TimeoutException:
                logger.error(f"Geocoder request timed out for {query!r}")
                raise LocationServiceError("Geocoding timed out. Try again.")
            except httpx.HTTPError as e:
                logger.error(f"Geocoder request failed: {e}")
                raise LocationServiceError("Geocoding failed. Try again.")
            except ValueError:
                logger.warning(f"Geocoder returned a non-JSON body for {query!r}")
                raise LocationNotFound()

        if not isinstance(data, list):
            logger.warning(f"Geocoder returned unexpected payload type {type(data).__name__}")
            raise LocationNotFound()

        return data


def first_candidate(candidates: List[Dict[str, Any]]) -> Dict[str, Any]:
    """
    Pick the first candidate and check it carries coordinates.

    Raises:
        LocationNotFound: Empty list or malformed first entry
    """
    if not candidates:
        raise LocationNotFound()

    best = candidates[0]
    if not isinstance(best, dict) or "lat" not in best or "lon" not in best:
        raise LocationNotFound()

    return best


# Singleton instance
_geocoder: Optional[GeocoderClient] = None


def get_geocoder() -> GeocoderClient:
    """Get or create the GeocoderClient singleton."""
    global _geocoder
    if _geocoder is None:
        _geocoder = GeocoderClient()
    return _geocoder
