"""
Room availability calculation.
Reconciles room quantity, per-date availability slots and overlapping
bookings into the number of units a room can still sell for a stay, and
evaluates that decision across many rooms and date ranges.

Stays are half-open [check_in, check_out): the check-out day is not an
occupied night, so back-to-back stays never conflict.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed

from flask import current_app

from database import get_db
from .room import get_room_by_id, get_rooms
from utils.errors import NotFoundError, ValidationError
from utils.validators import parse_date, parse_date_range, parse_positive_integer

logger = logging.getLogger(__name__)


ACTIVE_BOOKING_STATUSES = ('CONFIRMED', 'CHECKED_IN')


# =============================================================================
# PURE CALCULATION
# =============================================================================

def bookings_overlap(existing_check_in, existing_check_out, check_in, check_out) -> bool:
    """Half-open overlap test between an existing stay and a requested stay."""
    return (parse_date(existing_check_in) < parse_date(check_out)
            and parse_date(existing_check_out) > parse_date(check_in))


def calculate_availability(
    room: dict,
    check_in,
    check_out,
    number_of_rooms: int = 1,
    bookings: list = None,
    slots: list = None,
    blocking_statuses=ACTIVE_BOOKING_STATUSES
) -> dict:
    """
    Decide whether a room can take number_of_rooms units for a stay.

    Args:
        room: Room dict (quantity, available_from, available_to)
        check_in: Check-in date (YYYY-MM-DD or date)
        check_out: Check-out date (YYYY-MM-DD or date)
        number_of_rooms: Units requested
        bookings: Candidate bookings of the room (check_in_date,
            check_out_date, number_of_rooms, status)
        slots: Availability slot rows of the room (date, available_count)
        blocking_statuses: Statuses that consume inventory; bookings
            without a status key are taken as already filtered

    Returns:
        dict: is_available, total_available, requested_rooms, booked_rooms,
              is_within_availability_period, availability_slots,
              conflicting_bookings

    Raises:
        ValidationError: If the dates are not chronological or the unit
            count is not positive
    """
    start, end = parse_date_range(check_in, check_out)
    requested = parse_positive_integer(number_of_rooms, 'number_of_rooms')

    # Declared sale window
    is_within_period = True
    if room.get('available_from') and start < parse_date(room['available_from']):
        is_within_period = False
    if room.get('available_to') and end > parse_date(room['available_to']):
        is_within_period = False

    conflicting = [
        booking for booking in (bookings or [])
        if ('status' not in booking or booking['status'] in blocking_statuses)
        and bookings_overlap(booking['check_in_date'], booking['check_out_date'], start, end)
    ]
    booked_rooms = sum(booking.get('number_of_rooms') or 1 for booking in conflicting)

    # Slots only matter for occupied nights
    night_slots = [
        slot for slot in (slots or [])
        if start <= parse_date(slot['date']) < end
    ]

    if night_slots:
        total_available = min(slot['available_count'] for slot in night_slots)
    else:
        total_available = max(0, room['quantity'] - booked_rooms)

    return {
        'is_available': is_within_period and total_available >= requested,
        'total_available': total_available,
        'requested_rooms': requested,
        'booked_rooms': booked_rooms,
        'is_within_availability_period': is_within_period,
        'availability_slots': night_slots,
        'conflicting_bookings': conflicting
    }


# =============================================================================
# DATABASE-BACKED CHECKS
# =============================================================================

def get_blocking_statuses() -> tuple:
    """Booking statuses that consume inventory under the current configuration."""
    if current_app.config.get('PENDING_HOLDS_INVENTORY'):
        return ('PENDING',) + ACTIVE_BOOKING_STATUSES
    return ACTIVE_BOOKING_STATUSES


def get_conflicting_bookings(
    room_id: int,
    check_in,
    check_out,
    exclude_booking_id: int = None,
    cursor=None
) -> list:
    """
    Get inventory-consuming bookings of a room overlapping a stay.

    Args:
        room_id: Room ID
        check_in: Check-in date
        check_out: Check-out date
        exclude_booking_id: Booking ID to exclude (for updates)
        cursor: Active transaction cursor (optional)

    Returns:
        list: Booking dicts (id, res_id, check_in_date, check_out_date,
              status, number_of_rooms)
    """
    cur = cursor or get_db().cursor()
    statuses = get_blocking_statuses()
    placeholders = ','.join('?' * len(statuses))

    query = f'''
        SELECT id, res_id, check_in_date, check_out_date, status, number_of_rooms
        FROM bookings
        WHERE room_id = ?
          AND check_in_date < ?
          AND check_out_date > ?
          AND status IN ({placeholders})
    '''
    params = [room_id, parse_date(check_out).isoformat(), parse_date(check_in).isoformat()]
    params.extend(statuses)

    # Exclude specific booking (for updates)
    if exclude_booking_id:
        query += ' AND id != ?'
        params.append(exclude_booking_id)

    query += ' ORDER BY check_in_date, id'

    cur.execute(query, params)
    return [dict(row) for row in cur.fetchall()]


def get_stay_slots(room_id: int, check_in, check_out, cursor=None) -> list:
    """Get availability slots of a room for the occupied nights of a stay."""
    cur = cursor or get_db().cursor()
    cur.execute('''
        SELECT id, date, available_count, blocked_count
        FROM availability_slots
        WHERE room_id = ? AND date >= ? AND date < ?
        ORDER BY date
    ''', (room_id, parse_date(check_in).isoformat(), parse_date(check_out).isoformat()))
    return [dict(row) for row in cur.fetchall()]


def check_room_availability(
    room_id: int,
    check_in,
    check_out,
    number_of_rooms: int = 1,
    exclude_booking_id: int = None,
    cursor=None,
    room: dict = None
) -> dict:
    """
    Check whether a stored room can take number_of_rooms units for a stay.

    Args:
        room_id: Room ID
        check_in: Check-in date
        check_out: Check-out date
        number_of_rooms: Units requested
        exclude_booking_id: Booking ID to exclude (for updates of that booking)
        cursor: Active transaction cursor (optional)
        room: Preloaded room dict (optional)

    Returns:
        dict: Same shape as calculate_availability

    Raises:
        NotFoundError: If the room does not exist
        ValidationError: If the dates or unit count are invalid
    """
    start, end = parse_date_range(check_in, check_out)

    if room is None:
        room = get_room_by_id(room_id, cursor)
        if not room:
            raise NotFoundError('Room', room_id)

    bookings = get_conflicting_bookings(room_id, start, end, exclude_booking_id, cursor)
    slots = get_stay_slots(room_id, start, end, cursor)

    result = calculate_availability(
        room, start, end, number_of_rooms, bookings, slots,
        blocking_statuses=get_blocking_statuses()
    )

    logger.debug(
        f"Availability room={room_id} {start}..{end} requested={result['requested_rooms']} "
        f"booked={result['booked_rooms']} available={result['total_available']} "
        f"decision={result['is_available']}"
    )
    return result


# =============================================================================
# BULK PLANNING
# =============================================================================

def _room_projection(room: dict) -> dict:
    return {
        'id': room['id'],
        'room_type': room['room_type'],
        'room_type_description': room.get('room_type_description'),
        'alt_description': room.get('alt_description'),
        'board_type': room['board_type'],
        'base_price': room['base_price'],
        'alternative_price': room.get('alternative_price'),
        'available_from': room.get('available_from'),
        'available_to': room.get('available_to'),
        'quantity': room['quantity'],
        'capacity': room.get('capacity'),
        'hotel': room.get('hotel'),
        'room_amenities': room.get('room_amenities', [])
    }


def _map_in_app_context(func, items: list) -> list:
    """
    Apply func to every item, on a thread pool when AVAILABILITY_MAX_WORKERS > 1.

    Each worker pushes its own app context and therefore opens its own
    database connection. Results keep input order.
    """
    max_workers = current_app.config.get('AVAILABILITY_MAX_WORKERS', 1) or 1
    if max_workers <= 1 or len(items) <= 1:
        return [func(item) for item in items]

    app = current_app._get_current_object()

    def run(item):
        with app.app_context():
            return func(item)

    results = [None] * len(items)
    with ThreadPoolExecutor(max_workers=min(max_workers, len(items))) as executor:
        future_to_index = {executor.submit(run, item): index for index, item in enumerate(items)}
        for future in as_completed(future_to_index):
            results[future_to_index[future]] = future.result()
    return results


def _evaluate_room(room: dict, check_in, check_out, number_of_rooms: int) -> dict:
    availability = check_room_availability(
        room['id'], check_in, check_out, number_of_rooms, room=room
    )
    conflicting = availability.pop('conflicting_bookings')
    return {
        'room': _room_projection(room),
        'availability': availability,
        'conflicting_bookings': conflicting
    }


def _summarize(results: list) -> dict:
    available = sum(1 for r in results if r['availability']['is_available'])
    return {
        'total_rooms': len(results),
        'available_rooms': available,
        'unavailable_rooms': len(results) - available
    }


def _parse_filters(number_of_rooms, capacity) -> tuple:
    requested = parse_positive_integer(number_of_rooms, 'number_of_rooms')
    try:
        min_capacity = int(capacity or 0)
    except (ValueError, TypeError):
        raise ValidationError('capacity must be an integer')
    return requested, min_capacity


def check_availability_for_rooms(
    check_in,
    check_out,
    number_of_rooms: int = 1,
    hotel_id: int = None,
    room_id: int = None,
    board_type: str = None,
    capacity: int = 0,
    available_only: bool = False
) -> dict:
    """
    Evaluate availability of every active room matching a filter set for
    one stay.

    Args:
        check_in: Check-in date
        check_out: Check-out date
        number_of_rooms: Units requested per room
        hotel_id: Filter by hotel
        room_id: Filter by room
        board_type: Filter by board type (case-insensitive)
        capacity: Minimum occupants per unit (ignored when <= 0)
        available_only: Only list available rooms in results

    Returns:
        dict: {
            'check_in_date': str,
            'check_out_date': str,
            'number_of_rooms': int,
            'results': [{'room', 'availability', 'conflicting_bookings'}],
            'summary': {'total_rooms', 'available_rooms', 'unavailable_rooms'}
        }
        The summary always covers every matched room, even when
        available_only filters the results.
    """
    start, end = parse_date_range(check_in, check_out)
    requested, min_capacity = _parse_filters(number_of_rooms, capacity)

    rooms = get_rooms(
        hotel_id=hotel_id, room_id=room_id,
        board_type=board_type, min_capacity=min_capacity
    )

    results = _map_in_app_context(
        lambda room: _evaluate_room(room, start, end, requested), rooms
    )
    summary = _summarize(results)

    if available_only:
        results = [r for r in results if r['availability']['is_available']]

    return {
        'check_in_date': start.isoformat(),
        'check_out_date': end.isoformat(),
        'number_of_rooms': requested,
        'results': results,
        'summary': summary
    }


def check_availability_for_ranges(
    date_ranges: list,
    number_of_rooms: int = 1,
    hotel_id: int = None,
    room_id: int = None,
    board_type: str = None,
    capacity: int = 0,
    available_only: bool = False
) -> dict:
    """
    Evaluate availability of the matching rooms for several stays at once.

    Every range is validated before any evaluation starts; ranges are then
    evaluated independently.

    Args:
        date_ranges: List of {'check_in_date', 'check_out_date'}
        number_of_rooms: Units requested per room
        hotel_id, room_id, board_type, capacity: Room filters
        available_only: Only list available rooms per range

    Returns:
        dict: {
            'number_of_rooms': int,
            'results': [{'date_range', 'rooms', 'summary'}],
            'overall_summary': {'total_date_ranges', 'fully_available_ranges',
                                'unavailable_ranges'}
        }

    Raises:
        ValidationError: If the list is empty or any range is incomplete or
            not chronological
    """
    if not isinstance(date_ranges, list) or not date_ranges:
        raise ValidationError('Date ranges array is required')

    ranges = []
    for date_range in date_ranges:
        if not isinstance(date_range, dict) or not date_range.get('check_in_date') \
                or not date_range.get('check_out_date'):
            raise ValidationError('Each date range must have check_in_date and check_out_date')
        ranges.append(parse_date_range(date_range['check_in_date'], date_range['check_out_date']))

    requested, min_capacity = _parse_filters(number_of_rooms, capacity)

    rooms = get_rooms(
        hotel_id=hotel_id, room_id=room_id,
        board_type=board_type, min_capacity=min_capacity
    )

    def evaluate_range(stay):
        start, end = stay
        room_results = []
        for room in rooms:
            availability = check_room_availability(
                room['id'], start, end, requested, room=room
            )
            room_results.append({
                'room_id': room['id'],
                'room_type': room['room_type'],
                'board_type': room['board_type'],
                'base_price': room['base_price'],
                'capacity': room.get('capacity'),
                'hotel': room.get('hotel'),
                'is_available': availability['is_available'],
                'total_available': availability['total_available'],
                'booked_rooms': availability['booked_rooms'],
                'is_within_availability_period': availability['is_within_availability_period']
            })

        available = sum(1 for r in room_results if r['is_available'])
        if available_only:
            room_results = [r for r in room_results if r['is_available']]

        return {
            'date_range': {
                'check_in_date': start.isoformat(),
                'check_out_date': end.isoformat()
            },
            'rooms': room_results,
            'summary': {
                'total_rooms': len(rooms),
                'available_rooms': available,
                'unavailable_rooms': len(rooms) - available
            }
        }

    results = _map_in_app_context(evaluate_range, ranges)
    fully_available = sum(1 for r in results if r['summary']['available_rooms'] > 0)

    return {
        'number_of_rooms': requested,
        'results': results,
        'overall_summary': {
            'total_date_ranges': len(results),
            'fully_available_ranges': fully_available,
            'unavailable_ranges': len(results) - fully_available
        }
    }
