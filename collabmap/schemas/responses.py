"""
Response Schemas for CollabMap Engine API.

This module defines Pydantic models for API responses.
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional


class GeoLocation(BaseModel):
    """Geographic coordinates with validation."""
    latitude: float = Field(..., ge=-90.0, le=90.0)
    longitude: float = Field(..., ge=-180.0, le=180.0)


class ReferencePointResponse(GeoLocation):
    """Reference point with its provenance tier."""
    tier: str


class PartnerResponse(BaseModel):
    """A visible partner as drawn on the map and in the list."""
    id: str
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    website: Optional[str] = None
    status: Optional[str] = None
    pop_rule: Optional[str] = None
    distance: Optional[float] = Field(None, description="Distance from the reference point")
    marker_color: str
    directions_url: str


class EdgeResponse(BaseModel):
    """A collaboration line between two visible partners."""
    id: str
    collaboration_id: str
    partner_a: str
    partner_b: str
    color: str
    payload: Dict[str, Any] = Field(default_factory=dict)


class SnapshotResponse(BaseModel):
    """
    Declarative map view for the renderer.

    Attributes:
        session_id: Owning session
        generation: Session generation the snapshot reflects
        reference_point: Current reference point, if located
        radius: Radius in `unit` when located
        partners: Visible partners, nearest first when located
        edges: Collaboration edges among visible partners
    """
    session_id: str
    generation: int
    reference_point: Optional[ReferencePointResponse] = None
    radius: Optional[float] = None
    unit: str = "mi"
    collaboration_filter: str
    show_collaborations: bool
    map_center: GeoLocation
    partners: List[PartnerResponse] = Field(default_factory=list)
    edges: List[EdgeResponse] = Field(default_factory=list)
    counts: Dict[str, int] = Field(default_factory=dict)


class SessionResponse(BaseModel):
    session_id: str
    generation: int


class LocateResponse(BaseModel):
    """
    Response model for location requests.

    Attributes:
        applied: False when a newer action superseded this lookup
        reference_point: The resolved point (even when not applied)
        snapshot: Current map view after the request
    """
    applied: bool
    reference_point: ReferencePointResponse
    snapshot: SnapshotResponse


class NormalizeResponse(BaseModel):
    """Normalized coordinates with the advisory far-from-region flag."""
    latitude: float
    longitude: float
    far_from_region: bool
    corrections: List[str] = Field(default_factory=list)


class NearbyPartnersResponse(BaseModel):
    reference_point: GeoLocation
    radius: float
    unit: str = "mi"
    partners: List[PartnerResponse] = Field(default_factory=list)


class HealthResponse(BaseModel):
    """
    Response model for health check endpoint.

    Attributes:
        status: Service health status
        version: API version
        components: Status of individual components
    """
    status: str = Field(default="healthy")
    version: str
    components: Dict[str, str] = Field(default_factory=dict)

    class Config:
        json_schema_extra = {
            "example": {
                "status": "healthy",
                "version": "1.0.0",
                "components": {
                    "directory": "available (12 partners)",
                    "geocoder": "configured",
                    "ip_locator": "configured",
                    "sessions": "3 active"
                }
            }
        }


class ErrorResponse(BaseModel):
    """
    Response model for error responses.

    Attributes:
        error: Error type
        message: Human-readable error message
        details: Additional error details
    """
    error: str
    message: str
    details: Optional[Dict[str, Any]] = None
