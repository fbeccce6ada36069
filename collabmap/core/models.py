"""
Domain records shared by the map engine.

All records are read-only snapshots: partners, collaborations and
memberships come from the directory repository, reference points are
replaced wholesale whenever the user relocates.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class LocationTier(str, Enum):
    """Provenance of a reference point, most to least precise."""
    DEVICE = "device"
    ADDRESS_GEOCODE = "address-geocode"
    IP_APPROXIMATE = "ip-approximate"


class CollaborationStatus(str, Enum):
    """Lifecycle of a collaboration."""
    ACTIVE = "active"
    PAUSED = "paused"
    ENDED = "ended"


@dataclass(frozen=True)
class GeoPoint:
    """
    Latitude/longitude pair in decimal degrees.

    Attributes:
        latitude: -90 to 90
        longitude: -180 to 180
    """
    latitude: float
    longitude: float

    def to_dict(self) -> Dict[str, float]:
        return {"latitude": self.latitude, "longitude": self.longitude}


@dataclass(frozen=True)
class ReferencePoint:
    """The user's current location and how it was obtained."""
    point: GeoPoint
    tier: LocationTier

    @property
    def latitude(self) -> float:
        return self.point.latitude

    @property
    def longitude(self) -> float:
        return self.point.longitude

    def to_dict(self) -> Dict[str, Any]:
        return {**self.point.to_dict(), "tier": self.tier.value}


@dataclass(frozen=True)
class Partner:
    """
    A directory entry shown on the map.

    Attributes:
        id: Unique, stable identifier
        name: Display name
        latitude: Raw latitude as stored (may be invalid)
        longitude: Raw longitude as stored (may be invalid)
        is_public: Visibility flag
        status: Collaboration status tag of the partner
        website: Optional website URL
        address: Optional street address
        pop_rule: Optional proof-of-purchase rule text
    """
    id: str
    name: str
    latitude: float
    longitude: float
    is_public: bool = True
    status: Optional[str] = None
    website: Optional[str] = None
    address: Optional[str] = None
    pop_rule: Optional[str] = None


@dataclass(frozen=True)
class Collaboration:
    """A named collaboration between partners."""
    id: str
    name: str
    status: CollaborationStatus = CollaborationStatus.ACTIVE
    color: Optional[str] = None
    link: Optional[str] = None
    tag: Optional[str] = None
    description: Optional[str] = None


@dataclass(frozen=True)
class Membership:
    collaboration_id: str
    partner_id: str


@dataclass(frozen=True)
class VisiblePartner:
    """A partner that passed filtering, with its distance when ranked."""
    partner: Partner
    distance: Optional[float] = None


@dataclass(frozen=True)
class Edge:
    """
    Derived link between two partners of one collaboration.

    Never persisted. The id is canonical so that recomputing from the same
    inputs yields the same id.
    """
    id: str
    collaboration_id: str
    partner_a: str
    partner_b: str
    color: str
    payload: Dict[str, Any] = field(default_factory=dict, hash=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "id": self.id,
            "collaboration_id": self.collaboration_id,
            "partner_a": self.partner_a,
            "partner_b": self.partner_b,
            "color": self.color,
            "payload": self.payload,
        }
