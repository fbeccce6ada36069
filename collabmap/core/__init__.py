"""
Core module for the CollabMap Engine.

Contains the mathematical and graph logic for:
- Haversine Distance (proximity filtering)
- Coordinate normalization (regional data-entry repair)
- Visibility filtering and distance ranking
- Collaboration graph edges

The Location Resolver (core.location) and session state (core.session)
are imported from their modules directly.
"""

from .models import (
    GeoPoint,
    ReferencePoint,
    LocationTier,
    Partner,
    Collaboration,
    CollaborationStatus,
    Membership,
    VisiblePartner,
    Edge,
)
from .distance import DistanceUnit, haversine_distance, vectorized_haversine
from .coordinates import (
    RegionPolicy,
    NormalizedCoordinates,
    normalize_coordinates,
    is_valid_coordinate,
)
from .visibility import compute_visible
from .collab_graph import (
    AllCollaborations,
    ActiveOnly,
    Specific,
    NoneSelected,
    EligibilityMode,
    build_edges,
    parse_eligibility,
)

__all__ = [
    "GeoPoint",
    "ReferencePoint",
    "LocationTier",
    "Partner",
    "Collaboration",
    "CollaborationStatus",
    "Membership",
    "VisiblePartner",
    "Edge",
    "DistanceUnit",
    "haversine_distance",
    "vectorized_haversine",
    "RegionPolicy",
    "NormalizedCoordinates",
    "normalize_coordinates",
    "is_valid_coordinate",
    "compute_visible",
    "AllCollaborations",
    "ActiveOnly",
    "Specific",
    "NoneSelected",
    "EligibilityMode",
    "build_edges",
    "parse_eligibility",
]
