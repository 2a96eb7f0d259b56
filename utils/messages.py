"""
Centralized user-facing messages.
All API success/error text in one place for consistency.
"""

MESSAGES = {
    # Success messages
    'login_success': 'Welcome {name}',
    'logout_success': 'Signed out successfully',
    'booking_created': 'Booking created successfully',
    'booking_updated': 'Booking updated successfully',
    'booking_cancelled': 'Booking cancelled successfully',
    'booking_deleted': 'Booking deleted successfully',
    'booking_status_changed': 'Booking status changed to {status}',
    'slots_updated': 'Availability slots updated',

    # Error messages
    'authentication_required': 'Authentication required',
    'invalid_credentials': 'Invalid username or password',
    'account_disabled': 'Your account has been disabled. Contact the administrator.',
    'permission_denied': 'You do not have permission for this action',
    'missing_fields': 'Missing required fields',
    'json_required': 'JSON body required',
    'invalid_action': 'Invalid action, expected cancel or delete',
    'booking_not_found': 'Booking not found',
    'room_not_found': 'Room not found',
    'guest_not_found': 'Guest not found',
    'not_found': 'Resource not found',
    'method_not_allowed': 'Method not allowed',
    'bad_request': 'Bad request',
    'internal_error': 'Internal server error',
}


def get_message(key: str, **kwargs) -> str:
    """
    Get message with optional formatting.

    Args:
        key: Message key
        **kwargs: Format parameters

    Returns:
        Formatted message or key if not found
    """
    message = MESSAGES.get(key, key)
    if kwargs:
        return message.format(**kwargs)
    return message
