"""
Pydantic Schemas Package for CollabMap Engine.

This package contains all request and response models for the API.
"""

from .requests import (
    AddressLocateRequest,
    DeviceLocateRequest,
    IPLocateRequest,
    RadiusRequest,
    CollaborationFilterRequest,
    NormalizeRequest,
)
from .responses import (
    GeoLocation,
    ReferencePointResponse,
    PartnerResponse,
    EdgeResponse,
    SnapshotResponse,
    SessionResponse,
    LocateResponse,
    NormalizeResponse,
    NearbyPartnersResponse,
    HealthResponse,
    ErrorResponse,
)

__all__ = [
    # Requests
    "AddressLocateRequest",
    "DeviceLocateRequest",
    "IPLocateRequest",
    "RadiusRequest",
    "CollaborationFilterRequest",
    "NormalizeRequest",
    # Responses
    "GeoLocation",
    "ReferencePointResponse",
    "PartnerResponse",
    "EdgeResponse",
    "SnapshotResponse",
    "SessionResponse",
    "LocateResponse",
    "NormalizeResponse",
    "NearbyPartnersResponse",
    "HealthResponse",
    "ErrorResponse",
]
