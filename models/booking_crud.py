"""
Booking CRUD operations.
Handles create, update, cancel and delete of bookings together with their
guest and payment rows, each as a single all-or-nothing transaction.
"""

import json
import time
import logging

from flask import current_app

from database import get_db
from .booking_availability import check_room_availability
from .booking_queries import get_booking_by_id, get_bookings_filtered
from .booking_state import (
    apply_status_transition, check_version, normalize_status, validate_transition
)
from .guest import resolve_guest
from .payment import (
    calculate_payment, delete_booking_payments, get_latest_payment,
    merge_payment_data, save_payment
)
from .pricing import calculate_total_amount, select_room_rate
from .room import get_room_by_id
from utils.datetime_helpers import count_nights, get_now, get_today
from utils.errors import ConflictError, NotFoundError, UnavailableError, ValidationError
from utils.validators import (
    parse_bool, parse_date, parse_date_range, parse_positive_integer, sanitize_input
)

logger = logging.getLogger(__name__)


# Statuses whose inventory is no longer in play; date edits skip the capacity check
CLOSED_STATUSES = ('CANCELLED', 'CHECKED_OUT')


# =============================================================================
# RESERVATION ID GENERATION
# =============================================================================

def generate_res_id(cursor, max_retries: int = None) -> str:
    """
    Generate a unique reservation id.

    Format: RES-YYYY-NNNNNN where NNNNNN are the last six digits of the
    current epoch milliseconds.
    Example: RES-2026-481516

    Args:
        cursor: Active transaction cursor
        max_retries: Max attempts on collision (default RES_ID_MAX_RETRIES)

    Returns:
        str: Unique reservation id

    Raises:
        ConflictError: If unable to generate a unique id
    """
    prefix = current_app.config.get('RES_ID_PREFIX', 'RES')
    if max_retries is None:
        max_retries = current_app.config.get('RES_ID_MAX_RETRIES', 5)

    for attempt in range(max_retries):
        millis = str(int(time.time() * 1000))
        res_id = f"{prefix}-{get_now().year}-{millis[-6:]}"

        # Verify uniqueness
        cursor.execute('SELECT id FROM bookings WHERE res_id = ?', (res_id,))
        if not cursor.fetchone():
            return res_id

        logger.warning(f"Reservation id collision: {res_id} (attempt {attempt + 1})")
        time.sleep(0.001)

    raise ConflictError('Could not generate a unique reservation ID')


# =============================================================================
# HELPERS
# =============================================================================

def _load_room(cursor, room_id: int, hotel_id: int = None) -> dict:
    """
    Load a bookable room.

    Raises:
        NotFoundError: If the room does not exist
        ValidationError: If the room is inactive or belongs to another hotel
    """
    room = get_room_by_id(room_id, cursor)
    if not room:
        raise NotFoundError('Room', room_id)
    if not room['is_active']:
        raise ValidationError('Room is not available')
    if hotel_id is not None and str(room['hotel_id']) != str(hotel_id):
        raise ValidationError('Room does not belong to the selected hotel')
    return room


def _ensure_available(cursor, room: dict, check_in, check_out, number_of_rooms: int,
                      exclude_booking_id: int = None) -> None:
    """
    Raises:
        UnavailableError: If the room cannot take the units for the stay
    """
    if not current_app.config.get('ENFORCE_AVAILABILITY_ON_WRITE', True):
        return

    availability = check_room_availability(
        room['id'], check_in, check_out, number_of_rooms,
        exclude_booking_id=exclude_booking_id, cursor=cursor, room=room
    )
    if availability['is_available']:
        return

    if not availability['is_within_availability_period']:
        message = 'Room is not available for sale on the selected dates'
    else:
        message = (f"Only {availability['total_available']} room(s) available, "
                   f"{availability['requested_rooms']} requested")

    raise UnavailableError(message, {
        'total_available': availability['total_available'],
        'requested_rooms': availability['requested_rooms'],
        'booked_rooms': availability['booked_rooms'],
        'is_within_availability_period': availability['is_within_availability_period']
    })


def _rate_snapshot(*candidates):
    """First provided rate, rounded to cents."""
    for value in candidates:
        if value is not None and value != '':
            return round(float(value), 2)
    return None


def _encode_special_requests(value) -> str:
    if value is None or value == '':
        return '[]'
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list):
        raise ValidationError('special_requests must be a list')
    return json.dumps([sanitize_input(str(item), 500) for item in value])


def _payment_date(payment_data: dict):
    value = payment_data.get('date') or payment_data.get('payment_date')
    return parse_date(value, 'payment_date').isoformat() if value else None


# =============================================================================
# CREATE
# =============================================================================

def create_booking(booking_data: dict, created_by: int = None) -> dict:
    """
    Create a booking with its guest and optional payment row.

    Args:
        booking_data: {
            'hotel_id', 'room_id', 'guest_data', 'check_in_date',
            'check_out_date' (required),
            'number_of_rooms', 'room_rate', 'alternative_rate',
            'use_alternative_rate', 'rate_code', 'special_requests', 'notes',
            'payment_data': {'method', 'paid_amount', 'remaining_due_date', 'date'}
        }
        created_by: User ID creating the booking

    Returns:
        dict: Created booking with hotel, room, guest and payments

    Raises:
        ValidationError: Missing fields, bad dates, bad rate or payment
        NotFoundError: Room or referenced guest does not exist
        UnavailableError: Not enough units for the stay
        ConflictError: Identifier generation exhausted
    """
    data = booking_data or {}

    required = ('hotel_id', 'room_id', 'guest_data', 'check_in_date', 'check_out_date')
    missing = [field for field in required if not data.get(field)]
    if missing:
        raise ValidationError('Missing required fields', {'missing_fields': missing})

    check_in, check_out = parse_date_range(data['check_in_date'], data['check_out_date'])
    number_of_nights = count_nights(check_in, check_out)
    number_of_rooms = parse_positive_integer(
        data['number_of_rooms'] if data.get('number_of_rooms') is not None else 1,
        'number_of_rooms'
    )
    use_alternative_rate = parse_bool(data.get('use_alternative_rate', False))
    special_requests = _encode_special_requests(data.get('special_requests'))
    if not isinstance(data['guest_data'], dict):
        raise ValidationError('guest_data must be an object')
    payment_data = data.get('payment_data')
    if payment_data is not None and not isinstance(payment_data, dict):
        raise ValidationError('payment_data must be an object')

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        room = _load_room(cursor, data['room_id'], data['hotel_id'])

        room_rate = select_room_rate(
            room['base_price'], room['alternative_price'],
            data.get('room_rate'), data.get('alternative_rate'), use_alternative_rate
        )
        alternative_rate = _rate_snapshot(data.get('alternative_rate'), room['alternative_price'])
        total_amount = calculate_total_amount(room_rate, number_of_nights, number_of_rooms)

        ledger = None
        if payment_data is not None:
            ledger = calculate_payment(
                payment_data.get('method'), total_amount,
                payment_data.get('paid_amount'), payment_data.get('remaining_due_date')
            )

        # Re-checked under the write lock
        _ensure_available(cursor, room, check_in, check_out, number_of_rooms)

        guest_id = resolve_guest(data['guest_data'], cursor)
        res_id = generate_res_id(cursor)

        cursor.execute('''
            INSERT INTO bookings (
                res_id, hotel_id, room_id, guest_id, number_of_rooms,
                check_in_date, check_out_date, number_of_nights,
                room_rate, alternative_rate, use_alternative_rate, total_amount,
                rate_code, status, assigned_room_no, special_requests, notes, created_by
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, 'PENDING', ?, ?, ?, ?)
        ''', (
            res_id, room['hotel_id'], room['id'], guest_id, number_of_rooms,
            check_in.isoformat(), check_out.isoformat(), number_of_nights,
            room_rate, alternative_rate, 1 if use_alternative_rate else 0, total_amount,
            data.get('rate_code') or 'STANDARD',
            data['guest_data'].get('room_no') or data.get('assigned_room_no'),
            special_requests, data.get('notes'), created_by
        ))
        booking_id = cursor.lastrowid

        if ledger:
            save_payment(
                cursor, booking_id, ledger,
                _payment_date(payment_data) or get_today().isoformat()
            )

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(
        f"Booking created: {res_id} room={room['id']} {check_in}..{check_out} "
        f"units={number_of_rooms} total={total_amount}"
    )
    return get_booking_by_id(booking_id)


# =============================================================================
# UPDATE
# =============================================================================

def update_booking(booking_id: int, update_data: dict, updated_by: int = None) -> dict:
    """
    Update a booking, its guest and its payment row.

    Nights and total are recomputed only when dates, rate fields, the rate
    preference or the unit count change. Availability is re-checked,
    excluding the booking itself, when dates or units change.

    Args:
        booking_id: Booking ID
        update_data: Partial payload; accepts the create fields plus
            'status', 'assigned_room_no' and 'version'
        updated_by: User ID performing the update

    Returns:
        dict: Updated booking

    Raises:
        NotFoundError: Booking does not exist
        ConflictError: Version mismatch or status transition not allowed
        ValidationError: Bad dates, rate, status or payment
        UnavailableError: New dates or units do not fit
    """
    data = update_data or {}
    payment_data = data.get('payment_data')
    if payment_data is not None and not isinstance(payment_data, dict):
        raise ValidationError('payment_data must be an object')
    guest_data = data.get('guest_data')
    if guest_data is not None and not isinstance(guest_data, dict):
        raise ValidationError('guest_data must be an object')

    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT * FROM bookings WHERE id = ?', (booking_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFoundError('Booking', booking_id)
        booking = dict(row)

        check_version(booking, data.get('version'))

        new_status = None
        if data.get('status'):
            new_status = normalize_status(data['status'])
            if new_status != booking['status']:
                validate_transition(booking['status'], new_status)

        check_in = parse_date(data.get('check_in_date') or booking['check_in_date'], 'check_in_date')
        check_out = parse_date(data.get('check_out_date') or booking['check_out_date'], 'check_out_date')
        check_in, check_out = parse_date_range(check_in, check_out)

        if data.get('number_of_rooms') is not None:
            number_of_rooms = parse_positive_integer(data['number_of_rooms'], 'number_of_rooms')
        else:
            number_of_rooms = booking['number_of_rooms']

        dates_changed = (check_in.isoformat() != booking['check_in_date']
                         or check_out.isoformat() != booking['check_out_date'])
        units_changed = number_of_rooms != booking['number_of_rooms']
        rate_changed = any(
            field in data for field in ('room_rate', 'alternative_rate', 'use_alternative_rate')
        )

        updates = {}

        if dates_changed or units_changed or rate_changed:
            room = get_room_by_id(booking['room_id'], cursor)

            if 'use_alternative_rate' in data:
                use_alternative_rate = parse_bool(data['use_alternative_rate'])
            else:
                use_alternative_rate = bool(booking['use_alternative_rate'])

            # Stored room_rate is the charged rate; only reuse it as base when it was the base
            base_rate = room['base_price'] if booking['use_alternative_rate'] else booking['room_rate']
            alternative_rate = data.get('alternative_rate') or booking['alternative_rate'] \
                or room['alternative_price']

            room_rate = select_room_rate(
                base_rate, alternative_rate, data.get('room_rate'), None, use_alternative_rate
            )
            alternative_rate = _rate_snapshot(alternative_rate)
            number_of_nights = count_nights(check_in, check_out)

            updates.update({
                'check_in_date': check_in.isoformat(),
                'check_out_date': check_out.isoformat(),
                'number_of_nights': number_of_nights,
                'number_of_rooms': number_of_rooms,
                'room_rate': room_rate,
                'alternative_rate': alternative_rate,
                'use_alternative_rate': 1 if use_alternative_rate else 0,
                'total_amount': calculate_total_amount(room_rate, number_of_nights, number_of_rooms)
            })

            if (dates_changed or units_changed) and booking['status'] not in CLOSED_STATUSES:
                _ensure_available(cursor, room, check_in, check_out, number_of_rooms,
                                  exclude_booking_id=booking_id)

        if 'rate_code' in data:
            updates['rate_code'] = data['rate_code'] or 'STANDARD'
        if 'assigned_room_no' in data:
            updates['assigned_room_no'] = data['assigned_room_no']
        if 'notes' in data:
            updates['notes'] = data['notes']
        if 'special_requests' in data:
            updates['special_requests'] = _encode_special_requests(data['special_requests'])

        # Payment follows the (possibly new) total
        total_amount = updates.get('total_amount', booking['total_amount'])
        existing_payment = get_latest_payment(booking_id, cursor)
        ledger = None
        if payment_data is not None:
            ledger = merge_payment_data(existing_payment, payment_data, total_amount)
        elif existing_payment and total_amount != booking['total_amount']:
            ledger = merge_payment_data(existing_payment, {}, total_amount)

        # Writes
        if guest_data:
            resolve_guest(dict(guest_data, id=booking['guest_id']), cursor)

        if updates:
            assignments = ', '.join(f'{column} = ?' for column in updates)
            cursor.execute(f'''
                UPDATE bookings
                SET {assignments}, version = version + 1, updated_at = CURRENT_TIMESTAMP
                WHERE id = ?
            ''', list(updates.values()) + [booking_id])

        if ledger:
            payment_date = _payment_date(payment_data or {})
            if not existing_payment and not payment_date:
                payment_date = get_today().isoformat()
            save_payment(cursor, booking_id, ledger, payment_date)

        if new_status:
            booking.update(updates)
            apply_status_transition(cursor, booking, new_status)

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f"Booking updated: {booking['res_id']} by user {updated_by} fields={sorted(updates)}")
    return get_booking_by_id(booking_id)


# =============================================================================
# CANCEL / DELETE
# =============================================================================

def cancel_booking(booking_id: int, cancelled_by: int = None) -> dict:
    """
    Cancel a booking (soft delete). Cancelling a cancelled booking is a no-op.

    Args:
        booking_id: Booking ID
        cancelled_by: User ID performing the cancellation

    Returns:
        dict: Cancelled booking

    Raises:
        NotFoundError: Booking does not exist
    """
    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT * FROM bookings WHERE id = ?', (booking_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFoundError('Booking', booking_id)
        booking = dict(row)

        apply_status_transition(cursor, booking, 'CANCELLED')

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f"Booking cancelled: {booking['res_id']} by user {cancelled_by}")
    return get_booking_by_id(booking_id)


def delete_booking(booking_id: int, deleted_by: int = None) -> dict:
    """
    Permanently delete a booking and its payment rows.

    Args:
        booking_id: Booking ID
        deleted_by: User ID performing the deletion

    Returns:
        dict: {'id', 'res_id', 'payments_deleted'}

    Raises:
        NotFoundError: Booking does not exist
        ConflictError: Booking is checked in
    """
    db = get_db()
    cursor = db.cursor()

    try:
        cursor.execute('BEGIN IMMEDIATE')

        cursor.execute('SELECT id, res_id, status FROM bookings WHERE id = ?', (booking_id,))
        row = cursor.fetchone()
        if not row:
            raise NotFoundError('Booking', booking_id)

        if row['status'] == 'CHECKED_IN':
            raise ConflictError('Cannot delete a booking that is checked in')

        payments_deleted = delete_booking_payments(cursor, booking_id)
        cursor.execute('DELETE FROM bookings WHERE id = ?', (booking_id,))

        db.commit()

    except Exception:
        db.rollback()
        raise

    logger.info(f"Booking deleted: {row['res_id']} ({payments_deleted} payments) by user {deleted_by}")
    return {
        'id': booking_id,
        'res_id': row['res_id'],
        'payments_deleted': payments_deleted
    }


__all__ = [
    'generate_res_id',
    'create_booking',
    'update_booking',
    'cancel_booking',
    'delete_booking',
    'get_booking_by_id',
    'get_bookings_filtered',
]
