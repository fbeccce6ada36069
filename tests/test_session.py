"""
Tests for map session state and snapshots.
"""

import pytest

from collabmap.core.collab_graph import AllCollaborations, NoneSelected, Specific
from collabmap.core.models import GeoPoint, LocationTier, ReferencePoint
from collabmap.core.session import (
    FALLBACK_STATUS_COLOR,
    MapContext,
    MapSession,
    SessionStore,
    directions_url,
    status_color,
)

from conftest import DAYTON, make_partner, north_of


def reference(point=DAYTON, tier=LocationTier.ADDRESS_GEOCODE):
    return ReferencePoint(point=point, tier=tier)


class TestLatestWins:
    """Only the most recent action may change the reference point."""

    def test_current_token_applies(self):
        session = MapSession()
        token = session.begin_resolution()
        assert session.apply_resolution(token, reference()) is True
        assert session.context.reference == reference()

    def test_apply_advances_generation(self, directory):
        """Snapshots with different reference points never share a generation."""
        session = MapSession()
        before = session.snapshot(directory)
        token = session.begin_resolution()
        session.apply_resolution(token, reference())
        after = session.snapshot(directory)
        assert session.generation == token + 1
        assert after.generation != before.generation
        assert after.context.reference != before.context.reference

    def test_applied_lookup_token_goes_stale(self):
        session = MapSession()
        token = session.begin_resolution()
        assert session.apply_resolution(token, reference()) is True
        assert session.apply_resolution(token, reference(north_of(DAYTON, 1.0))) is False
        assert session.context.reference == reference()

    def test_clear_discards_in_flight_lookup(self):
        session = MapSession()
        token = session.begin_resolution()
        session.clear()
        assert session.apply_resolution(token, reference()) is False
        assert session.context.reference is None

    def test_newer_lookup_wins(self):
        session = MapSession()
        first = session.begin_resolution()
        second = session.begin_resolution()
        newer = reference(north_of(DAYTON, 1.0))
        assert session.apply_resolution(second, newer) is True
        assert session.apply_resolution(first, reference()) is False
        assert session.context.reference == newer

    def test_view_change_supersedes_lookup(self):
        session = MapSession()
        token = session.begin_resolution()
        session.set_radius(10)
        assert session.apply_resolution(token, reference()) is False
        assert session.context.radius == 10

    def test_device_failure_recorded_only_when_current(self):
        session = MapSession()
        stale = session.begin_resolution()
        session.clear()
        session.record_device_failure(stale)
        assert session.device_failed is False

        token = session.begin_resolution()
        session.record_device_failure(token)
        assert session.device_failed is True

    def test_device_success_resets_failure(self):
        session = MapSession()
        session.record_device_failure(session.begin_resolution())
        token = session.begin_resolution()
        session.apply_resolution(token, reference(tier=LocationTier.DEVICE))
        assert session.device_failed is False

    def test_clear_resets_failure(self):
        session = MapSession()
        session.record_device_failure(session.begin_resolution())
        session.clear()
        assert session.device_failed is False


class TestContext:
    """The context is replaced wholesale on every action."""

    def test_defaults(self):
        ctx = MapContext()
        assert ctx.reference is None
        assert ctx.radius == 5
        assert ctx.show_collaborations is False

    def test_context_is_immutable(self):
        ctx = MapContext()
        with pytest.raises(Exception):
            ctx.radius = 10

    def test_actions_replace_context(self):
        session = MapSession()
        before = session.context
        session.set_collaboration_filter(mode=AllCollaborations(), show=True)
        after = session.context
        assert before is not after
        assert before.show_collaborations is False
        assert after.show_collaborations is True
        assert after.mode == AllCollaborations()

    def test_partial_filter_update(self):
        session = MapSession()
        session.set_collaboration_filter(show=True)
        session.set_collaboration_filter(mode=Specific("loop"))
        assert session.context.show_collaborations is True
        assert session.context.mode == Specific("loop")

    def test_generation_advances(self):
        session = MapSession()
        start = session.generation
        session.set_radius(3)
        session.clear()
        assert session.generation == start + 2


class TestSnapshot:
    """Visible partners and edges computed from one context."""

    def test_unlocated_snapshot(self, directory):
        snap = MapSession().snapshot(directory)
        data = snap.to_dict()
        assert [p["id"] for p in data["partners"]] == ["a", "b", "c", "d"]
        assert data["reference_point"] is None
        assert data["radius"] is None
        assert data["edges"] == []
        assert data["map_center"] == {"latitude": 39.7589, "longitude": -84.1916}

    def test_located_snapshot(self, directory):
        session = MapSession()
        session.apply_resolution(session.begin_resolution(), reference())
        session.set_radius(2.5)

        data = session.snapshot(directory).to_dict()
        assert [p["id"] for p in data["partners"]] == ["a", "b"]
        assert data["partners"][0]["distance"] == pytest.approx(1.0, abs=0.01)
        assert data["reference_point"]["tier"] == "address-geocode"
        assert data["radius"] == 2.5
        assert data["counts"] == {"visible_partners": 2, "edges": 0}

    def test_edges_only_when_shown(self, directory):
        session = MapSession()
        session.set_collaboration_filter(mode=AllCollaborations())
        assert session.snapshot(directory).edges == []

        session.set_collaboration_filter(show=True)
        edges = session.snapshot(directory).edges
        assert len(edges) == 5

    def test_edges_follow_visible_set(self, directory):
        session = MapSession()
        session.apply_resolution(session.begin_resolution(), reference())
        session.set_radius(2.5)
        session.set_collaboration_filter(mode=AllCollaborations(), show=True)

        data = session.snapshot(directory).to_dict()
        visible_ids = {p["id"] for p in data["partners"]}
        assert [e["id"] for e in data["edges"]] == ["loop:a-b"]
        for e in data["edges"]:
            assert {e["partner_a"], e["partner_b"]} <= visible_ids

    def test_none_selected(self, directory):
        session = MapSession()
        session.set_collaboration_filter(mode=NoneSelected(), show=True)
        data = session.snapshot(directory).to_dict()
        assert data["edges"] == []
        assert data["collaboration_filter"] == "none"

    def test_snapshot_generation(self, directory):
        session = MapSession()
        session.set_radius(7)
        assert session.snapshot(directory).generation == session.generation

    def test_partner_view(self, directory):
        data = MapSession().snapshot(directory).to_dict()
        first = data["partners"][0]
        assert first["marker_color"] == "#16a34a"
        assert first["directions_url"].startswith("https://www.google.com/maps/dir/?api=1&destination=")
        assert first["distance"] is None


class TestPresentationHelpers:

    @pytest.mark.parametrize("status,color", [
        ("active", "#16a34a"),
        ("paused", "#ca8a04"),
        ("ended", "#991b1b"),
        (None, FALLBACK_STATUS_COLOR),
        ("mystery", FALLBACK_STATUS_COLOR),
    ])
    def test_status_color(self, status, color):
        assert status_color(status) == color

    def test_directions_url(self):
        partner = make_partner("a", GeoPoint(39.75, -84.19))
        assert directions_url(partner) == "https://www.google.com/maps/dir/?api=1&destination=39.75%2C-84.19"


class TestSessionStore:

    def test_create_and_get(self):
        store = SessionStore(max_sessions=5)
        session = store.create()
        assert store.get(session.session_id) is session
        assert store.get("missing") is None

    def test_oldest_evicted(self):
        store = SessionStore(max_sessions=2)
        first = store.create()
        second = store.create()
        store.get(first.session_id)  # refresh
        store.create()
        assert len(store) == 2
        assert store.get(first.session_id) is first
        assert store.get(second.session_id) is None
