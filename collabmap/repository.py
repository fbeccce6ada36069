"""
Partner directory repository.

Read-only snapshot access to partners, collaborations and collaboration
memberships. The engine never writes to the directory; editing and storage
belong to the directory's owner.
"""

import logging
import math
import os
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, List, Optional, Sequence

import pandas as pd

from .core.coordinates import is_valid_coordinate
from .core.models import Collaboration, CollaborationStatus, Membership, Partner

logger = logging.getLogger(__name__)

# Default directory of the bundled snapshot
DEFAULT_DATA_DIR = Path(__file__).parent.parent / "data"

PARTNERS_FILE = "partners.json"
COLLABORATIONS_FILE = "collaborations.json"
MEMBERSHIPS_FILE = "collab_members.json"


class PartnerDirectory(ABC):
    """Abstract base class for directory access."""

    @abstractmethod
    def get_partners(self) -> List[Partner]:
        """Fetch all partners in directory order."""
        pass

    @abstractmethod
    def get_collaborations(self) -> List[Collaboration]:
        """Fetch all collaborations in directory order."""
        pass

    @abstractmethod
    def get_memberships(self) -> List[Membership]:
        """Fetch all (collaboration, partner) memberships."""
        pass


class InMemoryDirectory(PartnerDirectory):
    """Directory held in memory (tests, embedding)."""

    def __init__(
        self,
        partners: Sequence[Partner] = (),
        collaborations: Sequence[Collaboration] = (),
        memberships: Sequence[Membership] = ()
    ):
        self._partners = list(partners)
        self._collaborations = list(collaborations)
        self._memberships = list(memberships)

    def get_partners(self) -> List[Partner]:
        return list(self._partners)

    def get_collaborations(self) -> List[Collaboration]:
        return list(self._collaborations)

    def get_memberships(self) -> List[Membership]:
        return list(self._memberships)


def _clean(value: Any) -> Optional[Any]:
    """Normalize pandas missing values to None."""
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _as_text(value: Any) -> Optional[str]:
    value = _clean(value)
    return None if value is None else str(value)


def _as_bool(value: Any, default: bool) -> bool:
    value = _clean(value)
    if value is None:
        return default
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes")
    return bool(value)


def _parse_status(value: Any) -> CollaborationStatus:
    try:
        return CollaborationStatus(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown collaboration status {value!r}, treating as ended")
        return CollaborationStatus.ENDED


class JSONDirectory(PartnerDirectory):
    """
    JSON-file directory snapshot (for development and small deployments).

    Expects three files in `data_dir`:
        partners.json: [{id, name, address, lat, lng, website, is_public,
                         collab: {status, popRule}}]
        collaborations.json: [{id, name, tag, description, link, status, color}]
        collab_members.json: [{collab_id, partner_id}]
    Missing collaboration files simply mean no collaborations.
    """

    def __init__(self, data_dir: Optional[str] = None):
        self.data_dir = self._resolve_path(data_dir)

        # Load once at init
        self._partners = self._load_partners(self.data_dir / PARTNERS_FILE)
        self._collaborations = self._load_collaborations(self.data_dir / COLLABORATIONS_FILE)
        self._memberships = self._load_memberships(self.data_dir / MEMBERSHIPS_FILE)

        logger.info(
            f"Directory loaded from {self.data_dir}: {len(self._partners)} partners, "
            f"{len(self._collaborations)} collaborations, {len(self._memberships)} memberships"
        )

    def _resolve_path(self, data_dir: Optional[str]) -> Path:
        """Resolve data directory from multiple candidates."""
        candidates = []

        env_path = os.getenv("DATA_DIR")
        if env_path:
            candidates.append(Path(env_path))
        if data_dir:
            candidates.append(Path(data_dir))
        candidates.append(DEFAULT_DATA_DIR)

        for p in candidates:
            if (p / PARTNERS_FILE).exists():
                return p

        raise FileNotFoundError(f"Could not locate {PARTNERS_FILE} in: {[str(c) for c in candidates]}")

    @staticmethod
    def _read(path: Path) -> pd.DataFrame:
        if not path.exists():
            logger.warning(f"Directory file not found: {path}")
            return pd.DataFrame()
        return pd.read_json(path, orient="records", dtype=False)

    def _load_partners(self, path: Path) -> List[Partner]:
        """Load partners with coordinate validation."""
        df = self._read(path)
        if df.empty:
            return []

        missing = {"id", "name", "lat", "lng"} - set(df.columns)
        if missing:
            raise ValueError(f"Missing columns in {path.name}: {missing}")

        # Coordinates may be stored as text
        df["lat"] = pd.to_numeric(df["lat"], errors="coerce")
        df["lng"] = pd.to_numeric(df["lng"], errors="coerce")

        validation_issues = []
        partners = []
        for _, row in df.iterrows():
            collab = row.get("collab")
            collab = collab if isinstance(collab, dict) else {}

            partner = Partner(
                id=str(row["id"]),
                name=str(row["name"]),
                latitude=float(row["lat"]),
                longitude=float(row["lng"]),
                is_public=_as_bool(row.get("is_public"), default=True),
                status=_as_text(collab.get("status")),
                website=_as_text(row.get("website")),
                address=_as_text(row.get("address")),
                pop_rule=_as_text(collab.get("popRule")),
            )

            if not is_valid_coordinate(partner.latitude, partner.longitude):
                validation_issues.append(
                    f"{partner.name}: unusable coordinates ({row['lat']}, {row['lng']})"
                )
            partners.append(partner)

        if validation_issues:
            logger.warning(f"Partner data validation found {len(validation_issues)} issues")
            for issue in validation_issues[:10]:  # Log first 10 issues
                logger.warning(f"  - {issue}")

        return partners

    def _load_collaborations(self, path: Path) -> List[Collaboration]:
        df = self._read(path)
        if df.empty:
            return []

        return [
            Collaboration(
                id=str(row["id"]),
                name=str(row["name"]),
                status=_parse_status(row.get("status", "active")),
                color=_as_text(row.get("color")),
                link=_as_text(row.get("link")),
                tag=_as_text(row.get("tag")),
                description=_as_text(row.get("description")),
            )
            for _, row in df.iterrows()
        ]

    def _load_memberships(self, path: Path) -> List[Membership]:
        df = self._read(path)
        if df.empty:
            return []

        return [
            Membership(collaboration_id=str(row["collab_id"]), partner_id=str(row["partner_id"]))
            for _, row in df.iterrows()
        ]

    def get_partners(self) -> List[Partner]:
        return list(self._partners)

    def get_collaborations(self) -> List[Collaboration]:
        return list(self._collaborations)

    def get_memberships(self) -> List[Membership]:
        return list(self._memberships)


# Singleton instance
_directory: Optional[PartnerDirectory] = None


def get_directory() -> PartnerDirectory:
    """Get or create the directory singleton."""
    global _directory
    if _directory is None:
        from .config import settings
        _directory = JSONDirectory(settings.DATA_DIR)
    return _directory


def set_directory(directory: Optional[PartnerDirectory]) -> None:
    """Replace the directory singleton (None resets it)."""
    global _directory
    _directory = directory
