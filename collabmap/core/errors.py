"""
Error taxonomy for location resolution and coordinate validation.

Every error carries a short machine code and a human-readable message the
API returns to the user as-is.
"""


class LocationError(Exception):
    """Base class for failures to obtain a reference point."""

    code = "location_error"
    default_message = "Unable to determine your location."

    def __init__(self, message: str = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class PermissionDenied(LocationError):
    code = "permission_denied"
    default_message = "Location access was denied. Allow location access or enter an address."


class LocationUnavailable(LocationError):
    code = "unavailable"
    default_message = "Your location is currently unavailable."


class LocationTimeout(LocationError):
    code = "timeout"
    default_message = "Locating you took too long. Try again."


class LocationNotFound(LocationError):
    code = "not_found"
    default_message = "Address not found. Try refining it."


class LocationServiceError(LocationError):
    code = "service_error"
    default_message = "The location service failed. Try again."


class FallbackNotOffered(Exception):
    """IP-approximate lookup requested without a confirmed device failure."""

    code = "fallback_not_offered"

    def __init__(self, message: str = None):
        self.user_message = message or (
            "Approximate location is only available after device location "
            "fails and you confirm the fallback."
        )
        super().__init__(self.user_message)


class CoordinateError(ValueError):
    """Base class for rejected coordinate input."""

    code = "coordinate_error"
    default_message = "Invalid coordinates."

    def __init__(self, message: str = None):
        self.user_message = message or self.default_message
        super().__init__(self.user_message)


class InvalidFormat(CoordinateError):
    code = "invalid_format"
    default_message = "Latitude and longitude must be numbers."


class OutOfRange(CoordinateError):
    code = "out_of_range"
    default_message = "Latitude must be within ±90 and longitude within ±180."
