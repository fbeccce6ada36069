"""
Visibility Filter & Ranker.

Selects the partners shown on the map and orders them relative to the
user's reference point:

    1. Drop partners that are not public or whose stored coordinates are
       not finite / out of range (never an error, just excluded)
    2. Without a usable reference point: keep directory order, no distances
    3. With a reference point: haversine distance for every partner at
       once, keep distance <= radius, stable ascending sort
"""

import logging
from typing import Iterable, List, Optional, Union

import numpy as np

from .coordinates import is_valid_coordinate
from .distance import DistanceUnit, vectorized_haversine
from .models import GeoPoint, Partner, ReferencePoint, VisiblePartner

logger = logging.getLogger(__name__)


def is_displayable(partner: Partner) -> bool:
    """Public and carrying usable coordinates."""
    return bool(partner.is_public) and is_valid_coordinate(partner.latitude, partner.longitude)


def compute_visible(
    partners: Iterable[Partner],
    reference: Optional[Union[ReferencePoint, GeoPoint]] = None,
    radius: Optional[float] = None,
    unit: DistanceUnit = DistanceUnit.MILES
) -> List[VisiblePartner]:
    """
    Compute the visible, distance-ranked partner list.

    Args:
        partners: Directory snapshot, in directory order
        reference: User's reference point (or a bare GeoPoint), if any
        radius: Inclusive radius in `unit`; None keeps every valid partner
        unit: Unit of `radius` and of the reported distances

    Returns:
        List of VisiblePartner, nearest first when a reference is given
    """
    base = [p for p in partners if is_displayable(p)]

    if reference is None:
        return [VisiblePartner(partner=p) for p in base]

    if not base:
        return []

    origin = reference.point if isinstance(reference, ReferencePoint) else reference
    if not is_valid_coordinate(origin.latitude, origin.longitude):
        logger.warning(
            f"Ignoring unusable reference point ({origin.latitude}, {origin.longitude})"
        )
        return [VisiblePartner(partner=p) for p in base]

    lats = np.array([p.latitude for p in base], dtype=np.float64)
    lngs = np.array([p.longitude for p in base], dtype=np.float64)
    distances = vectorized_haversine(origin, lats, lngs, unit)

    if radius is not None:
        within = np.flatnonzero(distances <= radius)
    else:
        within = np.arange(len(base))

    # Stable sort keeps directory order for equal distances
    order = within[np.argsort(distances[within], kind="stable")]

    visible = [
        VisiblePartner(partner=base[i], distance=float(distances[i]))
        for i in order
    ]

    logger.debug(
        f"{len(visible)} of {len(base)} partners within {radius} {unit.value} "
        f"of ({origin.latitude:.4f}, {origin.longitude:.4f})"
    )

    return visible
