"""
Shared fixtures for the CollabMap Engine tests.

Partners are placed due north of the Dayton reference point so their
distances are exact multiples of the Earth radius.
"""

import math
import sys
from pathlib import Path

import httpx
import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from collabmap.core.coordinates import RegionPolicy
from collabmap.core.distance import EARTH_RADIUS_MILES
from collabmap.core.location import LocationResolver
from collabmap.core.models import (
    Collaboration,
    CollaborationStatus,
    GeoPoint,
    LocationTier,
    Membership,
    Partner,
    ReferencePoint,
)
from collabmap.repository import InMemoryDirectory
from collabmap.tools.geocoder import GeocoderClient
from collabmap.tools.ip_locator import IPLocatorClient

DAYTON = GeoPoint(39.7589, -84.1916)


def north_of(origin: GeoPoint, miles: float) -> GeoPoint:
    """Point `miles` due north of `origin`."""
    return GeoPoint(origin.latitude + math.degrees(miles / EARTH_RADIUS_MILES), origin.longitude)


def make_partner(pid: str, point: GeoPoint, **kwargs) -> Partner:
    return Partner(
        id=pid,
        name=kwargs.pop("name", f"Partner {pid}"),
        latitude=point.latitude,
        longitude=point.longitude,
        **kwargs,
    )


@pytest.fixture
def dayton_policy():
    return RegionPolicy(
        center=DAYTON,
        expected_longitude_sign=-1,
        swap_threshold_deg=60.0,
        far_threshold_deg=10.0,
        geocode_suffix=", Dayton, Ohio",
    )


@pytest.fixture
def dayton_reference():
    return ReferencePoint(point=DAYTON, tier=LocationTier.ADDRESS_GEOCODE)


@pytest.fixture
def directory():
    """Three active-collab partners nearby, one far, one hidden, one broken."""
    partners = [
        make_partner("a", north_of(DAYTON, 1.0), name="Alpha Coffee", status="active"),
        make_partner("b", north_of(DAYTON, 2.0), name="Bravo Books", status="active"),
        make_partner("c", north_of(DAYTON, 3.0), name="Charlie Bakery", status="paused"),
        make_partner("d", north_of(DAYTON, 12.0), name="Delta Cycles", status="ended"),
        make_partner("e", north_of(DAYTON, 0.5), name="Echo Studio", is_public=False),
        Partner(id="f", name="Foxtrot Deli", latitude=float("nan"), longitude=-84.19),
    ]
    collaborations = [
        Collaboration(id="loop", name="Downtown Loop", status=CollaborationStatus.ACTIVE,
                      color="#2563eb", link="https://example.com/loop"),
        Collaboration(id="ride", name="Ride and Read", status=CollaborationStatus.ACTIVE),
        Collaboration(id="summer", name="Summer Market", status=CollaborationStatus.ENDED),
    ]
    memberships = [
        Membership("loop", "a"),
        Membership("loop", "b"),
        Membership("loop", "c"),
        Membership("ride", "b"),
        Membership("ride", "d"),
        Membership("summer", "a"),
        Membership("summer", "c"),
    ]
    return InMemoryDirectory(partners, collaborations, memberships)


def make_resolver(policy, geocode_handler=None, ip_handler=None, device_timeout=None):
    """Resolver whose providers answer from in-process handlers."""
    def unreachable(request):
        raise httpx.ConnectError("no network in tests", request=request)

    geocoder = GeocoderClient(
        base_url="https://geocoder.test",
        timeout=1.0,
        transport=httpx.MockTransport(geocode_handler or unreachable),
    )
    ip_locator = IPLocatorClient(
        url="https://ip.test/json/",
        timeout=1.0,
        transport=httpx.MockTransport(ip_handler or unreachable),
    )
    return LocationResolver(
        policy=policy,
        geocoder=geocoder,
        ip_locator=ip_locator,
        device_timeout=device_timeout,
    )
