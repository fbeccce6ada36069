"""
Map session state.

A session owns one immutable MapContext (reference point, radius, unit,
eligibility mode, collaboration toggle). Every user action replaces the
context wholesale and advances a generation counter. Location lookups take
a generation token when they start and are applied only if no other action
happened in the meantime, so a slow response can never overwrite newer
state (latest wins).
"""

import logging
import uuid
from collections import OrderedDict
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Optional
from urllib.parse import quote

from .collab_graph import (
    ActiveOnly,
    EligibilityMode,
    build_edges,
    eligibility_label,
)
from .distance import DistanceUnit
from .models import Edge, GeoPoint, LocationTier, Partner, ReferencePoint, VisiblePartner
from .visibility import compute_visible
from ..config import settings

logger = logging.getLogger(__name__)

STATUS_COLORS = {
    "active": "#16a34a",
    "paused": "#ca8a04",
    "ended": "#991b1b",
}
FALLBACK_STATUS_COLOR = "#334155"


def status_color(status: Optional[str]) -> str:
    """Marker color for a partner's collaboration status."""
    return STATUS_COLORS.get(status or "", FALLBACK_STATUS_COLOR)


def directions_url(partner: Partner) -> str:
    destination = quote(f"{partner.latitude},{partner.longitude}", safe="")
    return f"https://www.google.com/maps/dir/?api=1&destination={destination}"


def partner_to_dict(visible: VisiblePartner) -> Dict[str, Any]:
    """Renderer view of a visible partner."""
    p = visible.partner
    return {
        "id": p.id,
        "name": p.name,
        "latitude": p.latitude,
        "longitude": p.longitude,
        "address": p.address,
        "website": p.website,
        "status": p.status,
        "pop_rule": p.pop_rule,
        "distance": round(visible.distance, 2) if visible.distance is not None else None,
        "marker_color": status_color(p.status),
        "directions_url": directions_url(p),
    }


@dataclass(frozen=True)
class MapContext:
    """Everything the visible set and edges depend on besides the directory."""
    reference: Optional[ReferencePoint] = None
    radius: float = settings.DEFAULT_RADIUS_MILES
    unit: DistanceUnit = DistanceUnit.MILES
    mode: EligibilityMode = field(default_factory=ActiveOnly)
    show_collaborations: bool = False


@dataclass
class MapSnapshot:
    """
    Declarative view handed to the renderer.

    Attributes:
        generation: Session generation the snapshot was computed at
        context: Context the snapshot was computed from
        visible: Visible partners, nearest first when located
        edges: Collaboration edges among visible partners
        map_center: Reference point, else the region center
    """
    generation: int
    context: MapContext
    visible: List[VisiblePartner]
    edges: List[Edge]
    map_center: GeoPoint

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        ctx = self.context
        return {
            "generation": self.generation,
            "reference_point": ctx.reference.to_dict() if ctx.reference else None,
            "radius": ctx.radius if ctx.reference else None,
            "unit": ctx.unit.value,
            "collaboration_filter": eligibility_label(ctx.mode),
            "show_collaborations": ctx.show_collaborations,
            "map_center": self.map_center.to_dict(),
            "partners": [partner_to_dict(v) for v in self.visible],
            "edges": [e.to_dict() for e in self.edges],
            "counts": {
                "visible_partners": len(self.visible),
                "edges": len(self.edges),
            },
        }


class MapSession:
    """
    One user's map state.

    Example:
        >>> session = MapSession()
        >>> token = session.begin_resolution()
        >>> ref = await resolver.resolve(ResolutionMode.ADDRESS, query="...")
        >>> session.apply_resolution(token, ref)
        True
    """

    def __init__(self, session_id: Optional[str] = None, context: Optional[MapContext] = None):
        self.session_id = session_id or uuid.uuid4().hex
        self._context = context or MapContext()
        self._generation = 0
        self.device_failed = False

    @property
    def context(self) -> MapContext:
        return self._context

    @property
    def generation(self) -> int:
        return self._generation

    def _replace(self, **changes) -> MapContext:
        self._context = replace(self._context, **changes)
        self._generation += 1
        return self._context

    # -- location ---------------------------------------------------------

    def begin_resolution(self) -> int:
        """Start a location lookup; returns the token to apply it with."""
        self._generation += 1
        return self._generation

    def apply_resolution(self, token: int, reference: ReferencePoint) -> bool:
        """
        Apply a resolved reference point if the lookup is still current.

        Returns:
            False when a newer action superseded the lookup
        """
        if token != self._generation:
            logger.info(
                f"Session {self.session_id}: discarding stale {reference.tier.value} "
                f"location (token {token}, current {self._generation})"
            )
            return False
        self._replace(reference=reference)
        if reference.tier == LocationTier.DEVICE:
            self.device_failed = False
        return True

    def record_device_failure(self, token: int) -> None:
        """Remember a device failure so the approximate fallback can be offered."""
        if token == self._generation:
            self.device_failed = True

    def clear(self) -> MapContext:
        """Drop the reference point; in-flight lookups become stale."""
        self.device_failed = False
        return self._replace(reference=None)

    # -- view controls ----------------------------------------------------

    def set_radius(self, radius: float) -> MapContext:
        return self._replace(radius=radius)

    def set_collaboration_filter(
        self,
        mode: Optional[EligibilityMode] = None,
        show: Optional[bool] = None
    ) -> MapContext:
        changes = {}
        if mode is not None:
            changes["mode"] = mode
        if show is not None:
            changes["show_collaborations"] = show
        return self._replace(**changes)

    # -- derived view -----------------------------------------------------

    def snapshot(self, directory, default_center: Optional[GeoPoint] = None) -> MapSnapshot:
        """
        Compute visible partners and edges from one context object.

        Args:
            directory: PartnerDirectory providing the read-only snapshot
            default_center: Map center when no reference point is set
        """
        ctx = self._context
        generation = self._generation

        visible = compute_visible(
            directory.get_partners(),
            reference=ctx.reference,
            radius=ctx.radius,
            unit=ctx.unit,
        )

        edges = []
        if ctx.show_collaborations:
            edges = build_edges(
                ctx.mode,
                directory.get_collaborations(),
                directory.get_memberships(),
                visible,
                default_color=settings.DEFAULT_EDGE_COLOR,
                warn_members=settings.COLLAB_EDGE_WARN_MEMBERS,
            )

        if ctx.reference is not None:
            center = ctx.reference.point
        else:
            center = default_center or GeoPoint(settings.REGION_CENTER_LAT, settings.REGION_CENTER_LNG)

        return MapSnapshot(
            generation=generation,
            context=ctx,
            visible=visible,
            edges=edges,
            map_center=center,
        )


class SessionStore:
    """In-memory sessions by id, oldest evicted first beyond `max_sessions`."""

    def __init__(self, max_sessions: Optional[int] = None):
        self.max_sessions = max_sessions or settings.MAX_SESSIONS
        self._sessions: "OrderedDict[str, MapSession]" = OrderedDict()

    def create(self) -> MapSession:
        session = MapSession()
        self._sessions[session.session_id] = session
        while len(self._sessions) > self.max_sessions:
            evicted, _ = self._sessions.popitem(last=False)
            logger.info(f"Evicted session {evicted}")
        return session

    def get(self, session_id: str) -> Optional[MapSession]:
        session = self._sessions.get(session_id)
        if session is not None:
            self._sessions.move_to_end(session_id)
        return session

    def __len__(self) -> int:
        return len(self._sessions)


# Singleton instance
_store: Optional[SessionStore] = None


def get_session_store() -> SessionStore:
    """Get or create the SessionStore singleton."""
    global _store
    if _store is None:
        _store = SessionStore()
    return _store
