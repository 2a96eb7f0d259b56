"""
Audit logging utility functions.
Provides manual audit logging for tracking user actions on bookings and slots.
"""

import logging
from flask import request
from flask_login import current_user

# Configure logger for audit operations
logger = logging.getLogger(__name__)


def booking_snapshot(booking: dict) -> dict:
    """Fields of a booking worth keeping in the audit trail."""
    if not booking:
        return None
    return {
        'id': booking.get('id'),
        'res_id': booking.get('res_id'),
        'room_id': booking.get('room_id'),
        'guest_id': booking.get('guest_id'),
        'check_in_date': booking.get('check_in_date'),
        'check_out_date': booking.get('check_out_date'),
        'number_of_rooms': booking.get('number_of_rooms'),
        'room_rate': booking.get('room_rate'),
        'total_amount': booking.get('total_amount'),
        'status': booking.get('status'),
        'version': booking.get('version')
    }


def log_audit(
    action: str,
    entity_type: str,
    entity_id: int = None,
    before: dict = None,
    after: dict = None,
    user_id: int = None
) -> int:
    """
    Log an audit entry manually.

    Captures the current user, IP address, and user agent automatically
    from the Flask request context.

    Args:
        action: Action type (CREATE, UPDATE, CANCEL, DELETE, STATUS)
        entity_type: Entity type (booking, room_slots)
        entity_id: ID of the affected entity
        before: Dictionary with entity state before the change
        after: Dictionary with entity state after the change
        user_id: Override user ID (defaults to current_user.id)

    Returns:
        New audit log ID, or None if logging failed

    Example:
        log_audit(
            action='UPDATE',
            entity_type='booking',
            entity_id=123,
            before={'status': 'PENDING'},
            after={'status': 'CONFIRMED'}
        )
    """
    try:
        from models.audit_log import create_audit_log

        # Get user ID from current_user if not provided
        if user_id is None:
            if hasattr(current_user, 'is_authenticated') and current_user.is_authenticated:
                user_id = current_user.id

        # Extract request context (IP, user agent)
        ip_address = None
        user_agent = None

        try:
            if request:
                # Get client IP, considering proxies
                ip_address = request.headers.get('X-Forwarded-For', request.remote_addr)
                if ip_address and ',' in ip_address:
                    ip_address = ip_address.split(',')[0].strip()
                user_agent = request.headers.get('User-Agent', '')[:255]
        except RuntimeError:
            # Outside request context (e.g., CLI commands)
            pass

        changes = None
        if before is not None or after is not None:
            changes = {
                'before': before,
                'after': after
            }

        return create_audit_log(
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            user_id=user_id,
            changes=changes,
            ip_address=ip_address,
            user_agent=user_agent
        )

    except Exception as e:
        # Audit logging should never fail the main operation
        logger.error(f"Failed to log audit entry: {e}", exc_info=True)
        return None


__all__ = ['booking_snapshot', 'log_audit']
