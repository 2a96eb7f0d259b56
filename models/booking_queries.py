"""
Booking query functions.
Joined booking projections and filtered, paginated listings.
"""

import json
import math

from database import get_db
from .payment import get_booking_payments


_BOOKING_SELECT = '''
    SELECT b.*,
           h.name as hotel_name, h.code as hotel_code,
           r.room_type, r.room_type_description, r.board_type,
           r.base_price as room_base_price, r.capacity as room_capacity,
           g.profile_id as guest_profile_id, g.first_name as guest_first_name,
           g.last_name as guest_last_name, g.full_name as guest_full_name,
           g.email as guest_email, g.phone as guest_phone,
           g.nationality as guest_nationality,
           g.guest_classification as guest_classification,
           g.travel_agent as guest_travel_agent, g.company as guest_company,
           g.source as guest_source, g.guest_group as guest_group,
           g.is_vip as guest_is_vip
    FROM bookings b
    JOIN hotels h ON b.hotel_id = h.id
    JOIN rooms r ON b.room_id = r.id
    JOIN guests g ON b.guest_id = g.id
'''


def _parse_special_requests(value) -> list:
    if not value:
        return []
    try:
        parsed = json.loads(value)
    except (ValueError, TypeError):
        return [value]
    return parsed if isinstance(parsed, list) else [parsed]


def _shape_booking(row) -> dict:
    """Nest the joined hotel / room / guest columns of a booking row."""
    data = dict(row)

    booking = {
        key: value for key, value in data.items()
        if not key.startswith(('hotel_', 'room_', 'guest_'))
        and key not in ('room_type', 'room_type_description', 'board_type')
    }
    booking['hotel_id'] = data['hotel_id']
    booking['room_id'] = data['room_id']
    booking['guest_id'] = data['guest_id']
    booking['room_rate'] = data['room_rate']
    booking['use_alternative_rate'] = bool(data['use_alternative_rate'])
    booking['special_requests'] = _parse_special_requests(data['special_requests'])

    booking['hotel'] = {
        'id': data['hotel_id'],
        'name': data['hotel_name'],
        'code': data['hotel_code']
    }
    booking['room'] = {
        'id': data['room_id'],
        'room_type': data['room_type'],
        'room_type_description': data['room_type_description'],
        'board_type': data['board_type'],
        'base_price': data['room_base_price'],
        'capacity': data['room_capacity']
    }
    booking['guest'] = {
        'id': data['guest_id'],
        'profile_id': data['guest_profile_id'],
        'first_name': data['guest_first_name'],
        'last_name': data['guest_last_name'],
        'full_name': data['guest_full_name'],
        'email': data['guest_email'],
        'phone': data['guest_phone'],
        'nationality': data['guest_nationality'],
        'guest_classification': data['guest_classification'],
        'travel_agent': data['guest_travel_agent'],
        'company': data['guest_company'],
        'source': data['guest_source'],
        'group': data['guest_group'],
        'is_vip': bool(data['guest_is_vip'])
    }
    return booking


def get_booking_by_id(booking_id: int, cursor=None) -> dict:
    """
    Get booking by ID with hotel, room, guest and payments.

    Args:
        booking_id: Booking ID
        cursor: Active transaction cursor (optional)

    Returns:
        dict: Booking or None
    """
    cur = cursor or get_db().cursor()
    cur.execute(_BOOKING_SELECT + ' WHERE b.id = ?', (booking_id,))
    row = cur.fetchone()
    if not row:
        return None

    booking = _shape_booking(row)
    booking['payments'] = get_booking_payments(booking_id, cur)
    return booking


def get_bookings_filtered(
    search: str = None,
    status: str = None,
    hotel_id: int = None,
    start_date: str = None,
    end_date: str = None,
    page: int = 1,
    limit: int = 10
) -> dict:
    """
    Get bookings with search, filters and pagination.

    Args:
        search: Text matched against res id, guest name/email/phone,
            hotel name and room type
        status: Booking status (case-insensitive)
        hotel_id: Filter by hotel
        start_date: Bookings checking in on or after this date
        end_date: Bookings checking out on or before this date
        page: Page number (1-based)
        limit: Page size

    Returns:
        dict: {'items': list, 'total': int, 'page': int, 'pages': int}
    """
    db = get_db()
    cursor = db.cursor()

    where = ' WHERE 1=1'
    params = []

    if search:
        term = f'%{search.strip()}%'
        where += '''
            AND (b.res_id LIKE ? COLLATE NOCASE
                 OR g.full_name LIKE ? COLLATE NOCASE
                 OR g.email LIKE ? COLLATE NOCASE
                 OR g.phone LIKE ?
                 OR h.name LIKE ? COLLATE NOCASE
                 OR r.room_type LIKE ? COLLATE NOCASE)
        '''
        params.extend([term] * 6)

    if status:
        where += ' AND b.status = ?'
        params.append(status.strip().upper())

    if hotel_id:
        where += ' AND b.hotel_id = ?'
        params.append(hotel_id)

    if start_date:
        where += ' AND b.check_in_date >= ?'
        params.append(start_date)

    if end_date:
        where += ' AND b.check_out_date <= ?'
        params.append(end_date)

    page = max(1, page or 1)
    limit = max(1, limit or 10)

    cursor.execute('''
        SELECT COUNT(*) as total
        FROM bookings b
        JOIN hotels h ON b.hotel_id = h.id
        JOIN rooms r ON b.room_id = r.id
        JOIN guests g ON b.guest_id = g.id
    ''' + where, params)
    total = cursor.fetchone()['total']

    cursor.execute(
        _BOOKING_SELECT + where + ' ORDER BY b.created_at DESC, b.id DESC LIMIT ? OFFSET ?',
        params + [limit, (page - 1) * limit]
    )
    items = [_shape_booking(row) for row in cursor.fetchall()]

    for item in items:
        item['payments'] = get_booking_payments(item['id'], cursor)

    return {
        'items': items,
        'total': total,
        'page': page,
        'pages': math.ceil(total / limit) if total else 0
    }
