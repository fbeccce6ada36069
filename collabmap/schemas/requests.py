"""
Request Schemas for CollabMap Engine API.

This module defines Pydantic models for API request validation.
All requests are validated before they reach the session or resolver.
"""

from pydantic import BaseModel, Field, model_validator
from typing import Optional

from ..config import settings


class AddressLocateRequest(BaseModel):
    """
    Request model for address geocoding.

    Attributes:
        query: Free-text address; the regional bias is appended server-side
    """
    query: str = Field(
        ...,
        max_length=500,
        description="Address as typed by the user",
        examples=["1 S Main St", "Oregon District"]
    )


class DeviceLocateRequest(BaseModel):
    """
    Request model for a device geolocation report.

    The browser reads its position with a 10 second timeout and no cached
    reading, then posts either the coordinates or the
    GeolocationPositionError code (1 denied, 2 unavailable, 3 timeout).
    """
    latitude: Optional[float] = Field(None, description="Reported latitude")
    longitude: Optional[float] = Field(None, description="Reported longitude")
    error_code: Optional[int] = Field(
        None,
        ge=0,
        description="GeolocationPositionError code when the reading failed"
    )
    error_message: str = Field("", max_length=500)

    @model_validator(mode="after")
    def _position_or_error(self):
        if self.error_code is None and (self.latitude is None or self.longitude is None):
            raise ValueError("Provide latitude and longitude, or an error_code")
        return self

    class Config:
        json_schema_extra = {
            "example": {
                "latitude": 39.7589,
                "longitude": -84.1916
            }
        }


class IPLocateRequest(BaseModel):
    """
    Request model for the approximate IP fallback.

    Attributes:
        confirmed: The user explicitly accepted a low-accuracy location
    """
    confirmed: bool = Field(False, description="User confirmed the approximate fallback")


class RadiusRequest(BaseModel):
    """Request model for the radius slider."""
    radius: float = Field(
        ...,
        ge=settings.MIN_RADIUS_MILES,
        le=settings.MAX_RADIUS_MILES,
        description="Radius in miles"
    )


class CollaborationFilterRequest(BaseModel):
    """
    Request model for collaboration line controls.

    Attributes:
        mode: "active", "all", "none", or a collaboration id
        show: Draw collaboration lines at all
    """
    mode: Optional[str] = Field(
        None,
        min_length=1,
        description="'active', 'all', 'none' or a collaboration id",
        examples=["active", "all", "none"]
    )
    show: Optional[bool] = Field(None, description="Toggle collaboration lines")


class NormalizeRequest(BaseModel):
    """
    Request model for coordinate normalization (partner editor).

    Values are kept as text so the engine sees exactly what was typed.
    """
    latitude: str = Field(..., max_length=64, examples=["39.7589"])
    longitude: str = Field(..., max_length=64, examples=["84.1916"])
