"""
Collaboration Graph Builder.

Turns collaboration membership into map edges between visible partners.
Every member of a collaboration is linked to every other visible member
(complete graph), so a collaboration with n visible members yields
n * (n - 1) / 2 edges.

Edge ids are "{collaboration_id}:{a}-{b}" with a < b lexicographically,
which makes recomputation from identical inputs reproduce identical ids.
Any "%", ":" or "-" inside the ids is percent-escaped so that distinct
pairs never share an id.
"""

import logging
from collections import defaultdict
from dataclasses import dataclass
from itertools import combinations
from typing import Dict, Iterable, List, Optional, Sequence, Union

from .models import (
    Collaboration,
    CollaborationStatus,
    Edge,
    Membership,
    Partner,
    VisiblePartner,
)

logger = logging.getLogger(__name__)

DEFAULT_EDGE_COLOR = "#ef4444"


# =============================================================================
# ELIGIBILITY MODES
# =============================================================================

@dataclass(frozen=True)
class AllCollaborations:
    """Every collaboration regardless of status."""


@dataclass(frozen=True)
class ActiveOnly:
    """Only collaborations with status active."""


@dataclass(frozen=True)
class Specific:
    """A single collaboration."""
    collaboration_id: str


@dataclass(frozen=True)
class NoneSelected:
    """No collaboration contributes edges."""


EligibilityMode = Union[AllCollaborations, ActiveOnly, Specific, NoneSelected]


def parse_eligibility(value: Optional[str]) -> EligibilityMode:
    """
    Parse the filter value used by the map UI.

    "all", "active" and "none" select the matching mode; anything else is
    taken as a collaboration id.
    """
    if value is None or value == "active":
        return ActiveOnly()
    if value == "all":
        return AllCollaborations()
    if value == "none":
        return NoneSelected()
    return Specific(collaboration_id=value)


def eligibility_label(mode: EligibilityMode) -> str:
    """Inverse of parse_eligibility."""
    if isinstance(mode, AllCollaborations):
        return "all"
    if isinstance(mode, ActiveOnly):
        return "active"
    if isinstance(mode, NoneSelected):
        return "none"
    if isinstance(mode, Specific):
        return mode.collaboration_id
    raise TypeError(f"Unknown eligibility mode: {mode!r}")


def is_eligible(collaboration: Collaboration, mode: EligibilityMode) -> bool:
    if isinstance(mode, AllCollaborations):
        return True
    if isinstance(mode, ActiveOnly):
        return collaboration.status == CollaborationStatus.ACTIVE
    if isinstance(mode, Specific):
        return collaboration.id == mode.collaboration_id
    if isinstance(mode, NoneSelected):
        return False
    raise TypeError(f"Unknown eligibility mode: {mode!r}")


# =============================================================================
# EDGE CONSTRUCTION
# =============================================================================

_ID_ESCAPES = str.maketrans({"%": "%25", ":": "%3A", "-": "%2D"})


def _escape_id(value: str) -> str:
    return value.translate(_ID_ESCAPES)


def edge_id(collaboration_id: str, partner_a: str, partner_b: str) -> str:
    """Canonical edge id, independent of argument order."""
    first, second = sorted((partner_a, partner_b))
    return f"{_escape_id(collaboration_id)}:{_escape_id(first)}-{_escape_id(second)}"


def _status_value(status) -> str:
    return status.value if isinstance(status, CollaborationStatus) else str(status)


def _members_by_collaboration(memberships: Iterable[Membership]) -> Dict[str, List[str]]:
    members = defaultdict(list)
    for m in memberships:
        if m.partner_id not in members[m.collaboration_id]:
            members[m.collaboration_id].append(m.partner_id)
    return members


def build_edges(
    mode: EligibilityMode,
    collaborations: Sequence[Collaboration],
    memberships: Iterable[Membership],
    visible: Iterable[Union[VisiblePartner, Partner]],
    default_color: str = DEFAULT_EDGE_COLOR,
    warn_members: Optional[int] = None
) -> List[Edge]:
    """
    Build the collaboration edges among visible partners.

    Algorithm:
        1. Select eligible collaborations for `mode`
        2. Restrict each collaboration's members to visible partner ids
        3. Skip collaborations with fewer than 2 visible members
        4. Emit one edge per unordered member pair
        5. Color from the collaboration, else `default_color`

    Args:
        mode: Eligibility mode
        collaborations: Collaborations in directory order
        memberships: (collaboration, partner) pairs
        visible: Visible partners (VisiblePartner or Partner)
        default_color: Color for collaborations without one
        warn_members: Log a warning above this many visible members

    Returns:
        Edges in collaboration order, then member-pair order
    """
    if isinstance(mode, NoneSelected):
        return []

    eligible = [c for c in collaborations if is_eligible(c, mode)]
    if not eligible:
        return []

    partner_map: Dict[str, Partner] = {}
    for entry in visible:
        partner = entry.partner if isinstance(entry, VisiblePartner) else entry
        partner_map[partner.id] = partner

    members = _members_by_collaboration(memberships)

    edges = []
    for collab in eligible:
        ids = [pid for pid in members.get(collab.id, []) if pid in partner_map]
        if len(ids) < 2:
            continue

        if warn_members is not None and len(ids) > warn_members:
            logger.warning(
                f"Collaboration {collab.id} has {len(ids)} visible members, "
                f"drawing {len(ids) * (len(ids) - 1) // 2} edges"
            )

        status = _status_value(collab.status)
        for a_id, b_id in combinations(ids, 2):
            first, second = sorted((a_id, b_id))
            a = partner_map[first]
            b = partner_map[second]
            edges.append(Edge(
                id=edge_id(collab.id, first, second),
                collaboration_id=collab.id,
                partner_a=first,
                partner_b=second,
                color=collab.color or default_color,
                payload={
                    "collaboration_name": collab.name,
                    "partner_a_name": a.name,
                    "partner_b_name": b.name,
                    "status": status,
                    "link": collab.link,
                },
            ))

    logger.debug(f"Built {len(edges)} edges from {len(eligible)} eligible collaborations")

    return edges
