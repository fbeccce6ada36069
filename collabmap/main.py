"""
CollabMap Engine: FastAPI Application Entry Point.

This module defines the FastAPI application that locates a user, filters
the partner directory around them and derives the collaboration lines drawn
between visible partners.

Architecture:
    Each browser tab owns a map session. Every user action (locate, clear,
    radius change, collaboration filter) replaces the session context
    wholesale and returns a fresh declarative snapshot for the renderer.

Endpoints:
    - POST /api/v1/sessions: Start a map session
    - GET  /api/v1/sessions/{id}/snapshot: Current map view
    - POST /api/v1/sessions/{id}/locate/address: Geocode an address
    - POST /api/v1/sessions/{id}/locate/device: Device position report
    - POST /api/v1/sessions/{id}/locate/ip: Approximate IP fallback
    - POST /api/v1/sessions/{id}/clear: Forget the reference point
    - PUT  /api/v1/sessions/{id}/radius: Radius slider
    - PUT  /api/v1/sessions/{id}/collaborations: Collaboration lines
    - POST /api/v1/coordinates/normalize: Partner editor coordinate check
    - GET  /api/v1/partners/nearby: Stateless proximity query
    - GET  /api/v1/health: Service health check
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Query
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from .config import settings
from .schemas import (
    AddressLocateRequest,
    DeviceLocateRequest,
    IPLocateRequest,
    RadiusRequest,
    CollaborationFilterRequest,
    NormalizeRequest,
    SnapshotResponse,
    SessionResponse,
    LocateResponse,
    NormalizeResponse,
    NearbyPartnersResponse,
    PartnerResponse,
    GeoLocation,
    HealthResponse,
    ErrorResponse,
)
from .core.collab_graph import parse_eligibility
from .core.coordinates import RegionPolicy, normalize_coordinates
from .core.errors import CoordinateError, FallbackNotOffered, LocationError
from .core.location import ResolutionMode, get_resolver
from .core.models import GeoPoint, ReferencePoint
from .core.session import MapSession, MapSnapshot, get_session_store, partner_to_dict
from .core.visibility import compute_visible
from .repository import get_directory
from .tools.device import ReportedPosition

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

LOCATION_ERROR_STATUS = {
    "permission_denied": 403,
    "not_found": 404,
    "unavailable": 503,
    "timeout": 504,
    "service_error": 502,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager for startup/shutdown events.

    Startup:
        - Load the partner directory snapshot
        - Build the location resolver

    Shutdown:
        - Nothing to release; sessions live in memory
    """
    logger.info("Starting CollabMap Engine...")

    try:
        directory = get_directory()
        logger.info(f"Directory ready: {len(directory.get_partners())} partners")
    except Exception as e:
        logger.error(f"Failed to load partner directory: {e}")

    try:
        get_resolver()
        logger.info("Location resolver initialized")
    except Exception as e:
        logger.warning(f"Location resolver failed to initialize: {e}")

    logger.info(f"CollabMap Engine ready on port {settings.PORT}")

    yield

    logger.info("Shutting down CollabMap Engine...")


# Create FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="""
    ## CollabMap Engine

    Finds directory partners near a user and the collaborations between them:

    - **Location tiers**: device geolocation, address geocoding, approximate IP fallback
    - **Proximity**: Haversine distance filtering with an inclusive radius
    - **Data hygiene**: regional coordinate repair for the partner editor
    - **Collaboration lines**: complete graph among visible members
    """,
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],  # Configure for production
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# =============================================================================
# HELPERS
# =============================================================================

def _get_session(session_id: str) -> MapSession:
    session = get_session_store().get(session_id)
    if session is None:
        raise HTTPException(
            status_code=404,
            detail={"error": "unknown_session", "message": "Map session not found."}
        )
    return session


def _snapshot_response(session: MapSession) -> SnapshotResponse:
    snapshot: MapSnapshot = session.snapshot(get_directory())
    return SnapshotResponse(session_id=session.session_id, **snapshot.to_dict())


def _location_http_error(error: LocationError, **extra) -> HTTPException:
    detail = {"error": error.code, "message": error.user_message, **extra}
    return HTTPException(status_code=LOCATION_ERROR_STATUS.get(error.code, 502), detail=detail)


def _locate_response(session: MapSession, token: int, reference: ReferencePoint) -> LocateResponse:
    applied = session.apply_resolution(token, reference)
    return LocateResponse(
        applied=applied,
        reference_point=reference.to_dict(),
        snapshot=_snapshot_response(session),
    )


# =============================================================================
# SESSION ENDPOINTS
# =============================================================================

@app.post(
    f"{settings.API_V1_PREFIX}/sessions",
    response_model=SessionResponse,
    status_code=201,
    tags=["Sessions"],
    summary="Start a map session"
)
async def create_session():
    """Create a new map session with the default radius and filters."""
    session = get_session_store().create()
    logger.info(f"Created session {session.session_id}")
    return SessionResponse(session_id=session.session_id, generation=session.generation)


@app.get(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/snapshot",
    response_model=SnapshotResponse,
    tags=["Sessions"],
    summary="Current map view"
)
async def get_snapshot(session_id: str):
    """Return the visible partners and collaboration edges for a session."""
    session = _get_session(session_id)
    try:
        return _snapshot_response(session)
    except Exception as e:
        logger.error(f"Snapshot error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# LOCATION ENDPOINTS
# =============================================================================

@app.post(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/address",
    response_model=LocateResponse,
    tags=["Location"],
    summary="Locate by address",
    description="""
    Geocode a free-text address. The regional bias is appended before the
    query is sent and only the first candidate is used.
    """
)
async def locate_address(session_id: str, request: AddressLocateRequest):
    session = _get_session(session_id)
    token = session.begin_resolution()

    try:
        reference = await get_resolver().resolve(ResolutionMode.ADDRESS, query=request.query)
    except LocationError as e:
        logger.warning(f"Address lookup failed for session {session_id}: {e.code}")
        raise _location_http_error(e)

    return _locate_response(session, token, reference)


@app.post(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/device",
    response_model=LocateResponse,
    tags=["Location"],
    summary="Locate from a device reading",
    description="""
    Accept the position (or failure) the browser obtained. On failure the
    response says whether the approximate IP fallback may be offered.
    """
)
async def locate_device(session_id: str, request: DeviceLocateRequest):
    session = _get_session(session_id)
    token = session.begin_resolution()

    source = ReportedPosition(
        latitude=request.latitude,
        longitude=request.longitude,
        error_code=request.error_code,
        error_message=request.error_message,
    )

    try:
        reference = await get_resolver().resolve(ResolutionMode.DEVICE, device=source)
    except LocationError as e:
        session.record_device_failure(token)
        raise _location_http_error(e, fallback_available=session.device_failed)

    return _locate_response(session, token, reference)


@app.post(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/ip",
    response_model=LocateResponse,
    tags=["Location"],
    summary="Approximate location fallback",
    description="""
    Only available after a device failure in this session and with explicit
    user confirmation. Accuracy is city-level at best.
    """
)
async def locate_ip(session_id: str, request: IPLocateRequest):
    session = _get_session(session_id)
    device_failed = session.device_failed
    token = session.begin_resolution()

    try:
        reference = await get_resolver().resolve(
            ResolutionMode.IP_APPROXIMATE,
            confirmed=request.confirmed,
            device_failed=device_failed,
        )
    except FallbackNotOffered as e:
        raise HTTPException(status_code=409, detail={"error": e.code, "message": e.user_message})
    except LocationError as e:
        raise _location_http_error(e)

    return _locate_response(session, token, reference)


@app.post(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/clear",
    response_model=SnapshotResponse,
    tags=["Location"],
    summary="Forget the reference point"
)
async def clear_location(session_id: str):
    """Drop the reference point; lookups still in flight are discarded."""
    session = _get_session(session_id)
    session.clear()
    return _snapshot_response(session)


# =============================================================================
# VIEW CONTROL ENDPOINTS
# =============================================================================

@app.put(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/radius",
    response_model=SnapshotResponse,
    tags=["View"],
    summary="Set the search radius"
)
async def set_radius(session_id: str, request: RadiusRequest):
    session = _get_session(session_id)
    session.set_radius(request.radius)
    return _snapshot_response(session)


@app.put(
    f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/collaborations",
    response_model=SnapshotResponse,
    tags=["View"],
    summary="Collaboration line controls",
    description="""
    `mode` selects which collaborations draw lines: `active`, `all`, `none`,
    or a specific collaboration id. `show` toggles the lines entirely.
    """
)
async def set_collaborations(session_id: str, request: CollaborationFilterRequest):
    session = _get_session(session_id)
    mode = parse_eligibility(request.mode) if request.mode is not None else None
    session.set_collaboration_filter(mode=mode, show=request.show)
    return _snapshot_response(session)


# =============================================================================
# STATELESS ENDPOINTS
# =============================================================================

@app.post(
    f"{settings.API_V1_PREFIX}/coordinates/normalize",
    response_model=NormalizeResponse,
    tags=["Coordinates"],
    summary="Validate and repair coordinates",
    description="""
    Used by the partner editor. Fixes a dropped minus sign and swapped
    latitude/longitude for the served region, and flags points far from it
    so a human can confirm.
    """
)
async def normalize(request: NormalizeRequest):
    try:
        result = normalize_coordinates(request.latitude, request.longitude, RegionPolicy.from_settings())
    except CoordinateError as e:
        raise HTTPException(status_code=422, detail={"error": e.code, "message": e.user_message})

    return NormalizeResponse(
        latitude=result.point.latitude,
        longitude=result.point.longitude,
        far_from_region=result.far_from_region,
        corrections=result.corrections,
    )


@app.get(
    f"{settings.API_V1_PREFIX}/partners/nearby",
    response_model=NearbyPartnersResponse,
    tags=["Partners"],
    summary="Partners near a point"
)
async def nearby_partners(
    latitude: float = Query(..., ge=-90.0, le=90.0),
    longitude: float = Query(..., ge=-180.0, le=180.0),
    radius: float = Query(settings.DEFAULT_RADIUS_MILES, gt=0, le=settings.MAX_RADIUS_MILES),
):
    """Distance-ranked public partners within `radius` miles of a point."""
    try:
        origin = GeoPoint(latitude, longitude)
        visible = compute_visible(get_directory().get_partners(), reference=origin, radius=radius)
        return NearbyPartnersResponse(
            reference_point=GeoLocation(latitude=latitude, longitude=longitude),
            radius=radius,
            partners=[PartnerResponse(**partner_to_dict(v)) for v in visible],
        )
    except Exception as e:
        logger.error(f"Nearby partners error: {e}")
        raise HTTPException(status_code=500, detail=str(e))


# =============================================================================
# SYSTEM ENDPOINTS
# =============================================================================

@app.get(
    f"{settings.API_V1_PREFIX}/health",
    response_model=HealthResponse,
    tags=["System"],
    summary="Health check",
    description="Check the health of all system components."
)
async def health_check():
    """Health check endpoint."""
    components = {}

    try:
        directory = get_directory()
        components["directory"] = f"available ({len(directory.get_partners())} partners)"
    except Exception as e:
        components["directory"] = f"error: {str(e)}"

    try:
        resolver = get_resolver()
        components["geocoder"] = "configured" if resolver.geocoder.base_url else "not_configured"
        components["ip_locator"] = "configured" if resolver.ip_locator.url else "not_configured"
    except Exception:
        components["geocoder"] = "error"
        components["ip_locator"] = "error"

    components["sessions"] = f"{len(get_session_store())} active"

    # Overall status
    errors = [v for v in components.values() if "error" in str(v).lower()]
    status = "healthy" if not errors else "degraded"

    return HealthResponse(
        status=status,
        version=settings.APP_VERSION,
        components=components
    )


# =============================================================================
# ROOT ENDPOINT
# =============================================================================

@app.get("/", tags=["Root"])
async def root():
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "region": settings.REGION_NAME,
        "endpoints": {
            "health": f"{settings.API_V1_PREFIX}/health",
            "sessions": f"{settings.API_V1_PREFIX}/sessions",
            "snapshot": f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/snapshot",
            "locate": {
                "address": f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/address",
                "device": f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/device",
                "ip": f"{settings.API_V1_PREFIX}/sessions/{{session_id}}/locate/ip",
            },
            "normalize": f"{settings.API_V1_PREFIX}/coordinates/normalize",
            "nearby": f"{settings.API_V1_PREFIX}/partners/nearby",
        }
    }


# =============================================================================
# ERROR HANDLERS
# =============================================================================

@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler for unhandled errors."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content=ErrorResponse(
            error="internal_error",
            message="An unexpected error occurred",
            details={"exception": str(exc)} if settings.DEBUG else None
        ).model_dump()
    )
