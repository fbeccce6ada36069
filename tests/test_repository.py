"""
Tests for the directory repository.
"""

import json
import math

import pytest

from collabmap.core.models import CollaborationStatus, Membership
from collabmap.core.visibility import compute_visible
from collabmap.repository import (
    DEFAULT_DATA_DIR,
    InMemoryDirectory,
    JSONDirectory,
    get_directory,
    set_directory,
)


def write_snapshot(path, partners, collaborations=None, memberships=None):
    (path / "partners.json").write_text(json.dumps(partners))
    if collaborations is not None:
        (path / "collaborations.json").write_text(json.dumps(collaborations))
    if memberships is not None:
        (path / "collab_members.json").write_text(json.dumps(memberships))


@pytest.fixture(autouse=True)
def no_data_dir_env(monkeypatch):
    monkeypatch.delenv("DATA_DIR", raising=False)


class TestBundledSnapshot:
    """The sample data shipped with the service."""

    @pytest.fixture
    def bundled(self):
        return JSONDirectory(str(DEFAULT_DATA_DIR))

    def test_counts(self, bundled):
        assert len(bundled.get_partners()) == 8
        assert len(bundled.get_collaborations()) == 3
        assert len(bundled.get_memberships()) == 8

    def test_text_coordinates_parsed(self, bundled):
        partner = next(p for p in bundled.get_partners() if p.id == "p-006")
        assert partner.latitude == pytest.approx(39.8209)
        assert partner.longitude == pytest.approx(-84.0194)

    def test_unusable_coordinates_kept_but_hidden(self, bundled):
        partner = next(p for p in bundled.get_partners() if p.id == "p-008")
        assert math.isnan(partner.latitude)
        visible_ids = [v.partner.id for v in compute_visible(bundled.get_partners())]
        assert "p-008" not in visible_ids
        assert "p-007" not in visible_ids
        assert len(visible_ids) == 6

    def test_nested_collab_fields(self, bundled):
        partner = bundled.get_partners()[0]
        assert partner.status == "active"
        assert partner.pop_rule == "Show a receipt from any partner"
        assert partner.website == "https://example.com/fifth-street-coffee"

    def test_missing_values_are_none(self, bundled):
        partner = next(p for p in bundled.get_partners() if p.id == "p-004")
        assert partner.website is None
        assert partner.pop_rule is None

    def test_collaborations(self, bundled):
        collabs = {c.id: c for c in bundled.get_collaborations()}
        assert collabs["c-summer"].status == CollaborationStatus.ENDED
        assert collabs["c-ride"].color is None
        assert collabs["c-oregon"].color == "#2563eb"

    def test_memberships(self, bundled):
        assert Membership("c-ride", "p-004") in bundled.get_memberships()


class TestJSONDirectory:

    def test_missing_collaboration_files(self, tmp_path):
        write_snapshot(tmp_path, [{"id": 1, "name": "Solo", "lat": 39.7, "lng": -84.2}])
        directory = JSONDirectory(str(tmp_path))
        assert directory.get_partners()[0].id == "1"
        assert directory.get_partners()[0].is_public is True
        assert directory.get_collaborations() == []
        assert directory.get_memberships() == []

    def test_missing_columns(self, tmp_path):
        write_snapshot(tmp_path, [{"id": "a", "name": "No coords"}])
        with pytest.raises(ValueError, match="Missing columns"):
            JSONDirectory(str(tmp_path))

    def test_unknown_status_treated_as_ended(self, tmp_path):
        write_snapshot(
            tmp_path,
            [{"id": "a", "name": "A", "lat": 39.7, "lng": -84.2}],
            collaborations=[{"id": "x", "name": "X", "status": "archived"}],
        )
        directory = JSONDirectory(str(tmp_path))
        assert directory.get_collaborations()[0].status == CollaborationStatus.ENDED

    def test_env_overrides_argument(self, tmp_path, monkeypatch):
        write_snapshot(tmp_path, [{"id": "env", "name": "Env", "lat": 39.7, "lng": -84.2}])
        monkeypatch.setenv("DATA_DIR", str(tmp_path))
        directory = JSONDirectory(str(DEFAULT_DATA_DIR))
        assert [p.id for p in directory.get_partners()] == ["env"]

    def test_falls_back_to_bundled(self, tmp_path):
        directory = JSONDirectory(str(tmp_path / "missing"))
        assert directory.data_dir == DEFAULT_DATA_DIR


class TestDirectorySingleton:

    def test_set_directory(self):
        custom = InMemoryDirectory()
        set_directory(custom)
        try:
            assert get_directory() is custom
        finally:
            set_directory(None)

    def test_in_memory_returns_copies(self):
        directory = InMemoryDirectory(memberships=[Membership("x", "a")])
        directory.get_memberships().clear()
        assert len(directory.get_memberships()) == 1
