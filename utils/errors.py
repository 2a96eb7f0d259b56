"""
Domain exceptions for the hotel back office.

Every error raised by the booking core derives from HotelError, which carries
the HTTP status and a machine-readable code so routes can convert it with
api_error() without a per-route mapping table.

    ValidationError   400  malformed input (dates, prices, methods, due dates)
    NotFoundError     404  referenced room, booking or guest does not exist
    ConflictError     409  identifier collision, forbidden deletion/transition
    UnavailableError  409  room outside its sale window or out of units
"""

from typing import Any, Dict, Optional


class HotelError(Exception):
    """Base class for all booking-core errors."""

    status_code = 500
    code = 'INTERNAL_ERROR'

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to the error part of the API envelope."""
        data = {'error': self.message, 'code': self.code}
        if self.details:
            data['details'] = self.details
        return data

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message='{self.message}')"


class ValidationError(HotelError, ValueError):
    """Raised when input data fails validation."""

    status_code = 400
    code = 'VALIDATION_ERROR'


class NotFoundError(HotelError):
    """Raised when a referenced entity does not exist."""

    status_code = 404
    code = 'NOT_FOUND'

    def __init__(self, entity_type: str, entity_id: Any = None, message: str = None):
        if not message:
            message = f'{entity_type} not found'
            if entity_id is not None:
                message += f' (ID: {entity_id})'
        super().__init__(message, {'entity_type': entity_type, 'entity_id': entity_id})


class ConflictError(HotelError):
    """Raised when an operation conflicts with the current state of the data."""

    status_code = 409
    code = 'CONFLICT'


class UnavailableError(HotelError):
    """Raised when a room cannot take the requested units for the requested dates."""

    status_code = 409
    code = 'ROOM_UNAVAILABLE'
