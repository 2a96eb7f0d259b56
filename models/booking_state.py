"""
Booking status transitions.
Forward-only lifecycle: PENDING -> CONFIRMED -> CHECKED_IN -> CHECKED_OUT,
with CANCELLED reachable from every other status.
"""

import logging

from flask import current_app

from database import get_db
from .booking_availability import check_room_availability
from .booking_queries import get_booking_by_id
from utils.errors import ConflictError, NotFoundError, UnavailableError, ValidationError

logger = logging.getLogger(__name__)


BOOKING_STATUSES = ('PENDING', 'CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED')

ALLOWED_TRANSITIONS = {
    'PENDING': ('CONFIRMED', 'CANCELLED'),
    'CONFIRMED': ('CHECKED_IN', 'CANCELLED'),
    'CHECKED_IN': ('CHECKED_OUT', 'CANCELLED'),
    'CHECKED_OUT': ('CANCELLED',),
    'CANCELLED': (),
}


def normalize_status(status: str) -> str:
    """
    Upper-case and validate a booking status.

    Raises:
        ValidationError: If the status is unknown
    """
    normalized = str(status or '').strip().upper()
    if normalized not in BOOKING_STATUSES:
        raise ValidationError(
            f"Invalid status: {status}. Must be one of: {', '.join(BOOKING_STATUSES)}"
        )
    return normalized


def validate_transition(current_status: str, new_status: str) -> None:
    """
    Raises:
        ConflictError: If the lifecycle does not allow current -> new
    """
    if new_status not in ALLOWED_TRANSITIONS.get(current_status, ()):
        raise ConflictError(
            f'Cannot change booking status from {current_status} to {new_status}',
            {'current_status': current_status, 'requested_status': new_status}
        )


def apply_status_transition(cursor, booking: dict, new_status: str) -> bool:
    """
    Move a booking to new_status inside the caller's transaction.

    Confirming re-checks capacity for the booking's own units; checking in
    and out stamp check_in_time / check_out_time. A transition to the
    current status is a no-op.

    Args:
        cursor: Active transaction cursor
        booking: Booking row (id, room_id, status, dates, number_of_rooms)
        new_status: Target status (already normalized)

    Returns:
        bool: True if the row was changed

    Raises:
        ConflictError: If the transition is not allowed
        UnavailableError: If confirming would overbook the room
    """
    current_status = booking['status']
    if new_status == current_status:
        return False

    validate_transition(current_status, new_status)

    if new_status == 'CONFIRMED' and current_app.config.get('ENFORCE_AVAILABILITY_ON_WRITE', True):
        availability = check_room_availability(
            booking['room_id'], booking['check_in_date'], booking['check_out_date'],
            booking['number_of_rooms'], exclude_booking_id=booking['id'], cursor=cursor
        )
        if not availability['is_available']:
            raise UnavailableError(
                'Not enough rooms available to confirm this booking',
                {
                    'total_available': availability['total_available'],
                    'requested_rooms': availability['requested_rooms']
                }
            )

    stamp = ''
    if new_status == 'CHECKED_IN':
        stamp = ', check_in_time = CURRENT_TIMESTAMP'
    elif new_status == 'CHECKED_OUT':
        stamp = ', check_out_time = CURRENT_TIMESTAMP'

    cursor.execute(f'''
        UPDATE bookings
        SET status = ?{stamp}, version = version + 1, updated_at = CURRENT_TIMESTAMP
        WHERE id = ?
    ''', (new_status, booking['id']))

    logger.info(f"Booking {booking['res_id']} status {current_status} -> {new_status}")
    return True


def change_booking_status(
    booking_id: int,
    new_status: str,
    changed_by: int = None,
    expected_version: int = None
) -> dict:
    """
    Change the status of a booking in its own transaction.

    Args:
        booking_id: Booking ID
        new_status: Target status (case-insensitive)
        changed_by: User ID performing the change
        expected_version: Version the caller last read (optional)

    Returns:
        dict: Updated booking

    Raises:
        ValidationError: Unknown status
        NotFoundError: Booking does not exist
        ConflictError: Transition not allowed or version mismatch
        UnavailableError: Confirming would overbook the room
    """
    new_status = normalize_status(new_status)

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT * FROM bookings WHERE id = ?', (booking_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFoundError('Booking', booking_id)
        booking = dict(row)

        check_version(booking, expected_version)
        apply_status_transition(cursor, booking, new_status)

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.debug(f"Status change on booking {booking_id} by user {changed_by}")
    return get_booking_by_id(booking_id)


def check_version(booking: dict, expected_version) -> None:
    """
    Raises:
        ConflictError: If expected_version is given and differs from the row
    """
    if expected_version is None or expected_version == '':
        return
    try:
        expected = int(expected_version)
    except (ValueError, TypeError):
        raise ValidationError('version must be an integer')
    if expected != booking['version']:
        raise ConflictError(
            'Booking was modified by another user. Reload and try again',
            {'current_version': booking['version'], 'expected_version': expected}
        )
