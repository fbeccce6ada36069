"""
Coordinate validation and regional repair.

Raw latitude/longitude text typed into the partner editor is parsed,
range-checked and then repaired with two regional heuristics:

    1. Hemisphere sign correction: a longitude whose sign disagrees with the
       deployment region is negated (western hemisphere by default, where a
       positive longitude is almost always a dropped minus sign).
    2. Swap detection: a "latitude" beyond the swap threshold paired with a
       "longitude" inside it is taken to be transposed.

These rules are a data-entry policy for one region, not geodesy. They are
carried by RegionPolicy so another deployment can supply its own center,
hemisphere and thresholds.
"""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Optional

from .errors import InvalidFormat, OutOfRange
from .models import GeoPoint

logger = logging.getLogger(__name__)

MAX_LATITUDE = 90.0
MAX_LONGITUDE = 180.0


@dataclass(frozen=True)
class RegionPolicy:
    """
    Regional assumptions applied when repairing coordinates.

    Attributes:
        center: Center of the deployment region
        expected_longitude_sign: -1 (west), 1 (east) or 0 to disable the
            sign correction
        swap_threshold_deg: |lat| above and |lng| below this means swapped
        far_threshold_deg: Offset on both axes that flags a point as far
            from the region
        geocode_suffix: Text appended to free-text address queries
    """
    center: GeoPoint
    expected_longitude_sign: int = -1
    swap_threshold_deg: float = 60.0
    far_threshold_deg: float = 10.0
    geocode_suffix: str = ""

    @classmethod
    def from_settings(cls, settings=None) -> "RegionPolicy":
        """Build the deployment policy from application settings."""
        if settings is None:
            from ..config import settings
        return cls(
            center=GeoPoint(settings.REGION_CENTER_LAT, settings.REGION_CENTER_LNG),
            expected_longitude_sign=settings.REGION_LONGITUDE_SIGN,
            swap_threshold_deg=settings.REGION_SWAP_THRESHOLD_DEG,
            far_threshold_deg=settings.REGION_FAR_THRESHOLD_DEG,
            geocode_suffix=settings.GEOCODE_REGION_SUFFIX,
        )


@dataclass
class NormalizedCoordinates:
    """
    Result of normalization.

    Attributes:
        point: Valid, repaired coordinates
        far_from_region: Advisory flag for a human to confirm intent
        corrections: Repairs applied, in order ("sign", "swap")
    """
    point: GeoPoint
    far_from_region: bool = False
    corrections: List[str] = field(default_factory=list)


def _parse_degrees(raw: Any, label: str) -> float:
    if raw is None:
        raise InvalidFormat(f"{label} is required.")
    try:
        value = float(str(raw).strip())
    except ValueError:
        raise InvalidFormat(f"{label} must be a number, got {raw!r}.")
    if not math.isfinite(value):
        raise InvalidFormat(f"{label} must be a finite number, got {raw!r}.")
    return value


def _correct_sign(lng: float, expected_sign: int) -> float:
    if expected_sign == 0 or lng == 0:
        return lng
    if math.copysign(1, lng) != math.copysign(1, expected_sign):
        return -lng
    return lng


def is_valid_coordinate(lat: Any, lng: Any) -> bool:
    """True when both values are finite numbers within the declared ranges."""
    for value in (lat, lng):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return False
        if not math.isfinite(value):
            return False
    return abs(lat) <= MAX_LATITUDE and abs(lng) <= MAX_LONGITUDE


def is_far_from_region(point: GeoPoint, policy: RegionPolicy) -> bool:
    """Both axes offset from the region center by more than the threshold."""
    threshold = policy.far_threshold_deg
    return (
        abs(point.latitude - policy.center.latitude) > threshold
        and abs(point.longitude - policy.center.longitude) > threshold
    )


def normalize_coordinates(
    raw_lat: Any,
    raw_lng: Any,
    policy: Optional[RegionPolicy] = None
) -> NormalizedCoordinates:
    """
    Parse, validate and regionally repair a latitude/longitude pair.

    Algorithm:
        1. Strip and parse both values (InvalidFormat)
        2. Range check |lat| <= 90, |lng| <= 180 (OutOfRange)
        3. Hemisphere sign correction on the longitude
        4. Swap detection, then sign correction again
        5. Far-from-region check (advisory only)

    Args:
        raw_lat: Latitude text (numbers are accepted too)
        raw_lng: Longitude text
        policy: Regional policy, defaults to the configured region

    Returns:
        NormalizedCoordinates

    Raises:
        InvalidFormat: Either value is not a finite number
        OutOfRange: Either value is outside its range

    Example:
        >>> normalize_coordinates("-84.2", "40.0").point
        GeoPoint(latitude=40.0, longitude=-84.2)
    """
    if policy is None:
        policy = RegionPolicy.from_settings()

    lat = _parse_degrees(raw_lat, "Latitude")
    lng = _parse_degrees(raw_lng, "Longitude")

    if abs(lat) > MAX_LATITUDE or abs(lng) > MAX_LONGITUDE:
        raise OutOfRange(
            f"Coordinates ({lat}, {lng}) out of range: "
            f"latitude must be within ±90 and longitude within ±180."
        )

    entered_lat, entered_lng = lat, lng
    corrections = []

    corrected = _correct_sign(lng, policy.expected_longitude_sign)
    if corrected != lng:
        corrections.append("sign")
        lng = corrected

    # Magnitudes are unaffected by the sign step; the swap exchanges the
    # values as entered so the transposed latitude keeps its own sign.
    if abs(lat) > policy.swap_threshold_deg and abs(lng) < policy.swap_threshold_deg:
        lat, lng = entered_lng, entered_lat
        corrections = ["swap"]
        corrected = _correct_sign(lng, policy.expected_longitude_sign)
        if corrected != lng:
            corrections.append("sign")
            lng = corrected

    point = GeoPoint(latitude=lat, longitude=lng)
    far = is_far_from_region(point, policy)

    if corrections or far:
        logger.debug(
            f"Normalized ({raw_lat}, {raw_lng}) -> ({lat}, {lng}) "
            f"corrections={corrections} far_from_region={far}"
        )

    return NormalizedCoordinates(point=point, far_from_region=far, corrections=corrections)
