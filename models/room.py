"""
Room catalog data access.
Room lookups with hotel and amenity projection, and availability slot
maintenance.
"""

from database import get_db
from utils.datetime_helpers import iter_nights
from utils.errors import NotFoundError, ValidationError
from utils.validators import parse_date, parse_date_range


BOARD_TYPES = ('ROOM_ONLY', 'BED_BREAKFAST', 'HALF_BOARD', 'FULL_BOARD')


# =============================================================================
# HELPERS
# =============================================================================

def normalize_board_type(board_type: str) -> str:
    """
    Upper-case and validate a board type.

    Raises:
        ValidationError: If the board type is unknown
    """
    normalized = str(board_type).strip().upper()
    if normalized not in BOARD_TYPES:
        raise ValidationError(
            f"Invalid board type: {board_type}. Must be one of: {', '.join(BOARD_TYPES)}"
        )
    return normalized


def _attach_relations(cursor, rooms: list) -> list:
    """Attach hotel summary and amenities to room dicts."""
    if not rooms:
        return rooms

    room_ids = [room['id'] for room in rooms]
    placeholders = ','.join('?' * len(room_ids))
    cursor.execute(f'''
        SELECT id, room_id, name, icon
        FROM room_amenities
        WHERE room_id IN ({placeholders})
        ORDER BY id
    ''', room_ids)

    amenities = {}
    for row in cursor.fetchall():
        amenities.setdefault(row['room_id'], []).append(
            {'id': row['id'], 'name': row['name'], 'icon': row['icon']}
        )

    for room in rooms:
        room['hotel'] = {
            'id': room.pop('hotel_ref_id'),
            'name': room.pop('hotel_name'),
            'alt_name': room.pop('hotel_alt_name')
        }
        room['room_amenities'] = amenities.get(room['id'], [])

    return rooms


_ROOM_SELECT = '''
    SELECT r.*,
           h.id as hotel_ref_id,
           h.name as hotel_name,
           h.alt_name as hotel_alt_name
    FROM rooms r
    JOIN hotels h ON r.hotel_id = h.id
'''


# =============================================================================
# READ
# =============================================================================

def get_room_by_id(room_id: int, cursor=None) -> dict:
    """
    Get room by ID with hotel and amenities.

    Args:
        room_id: Room ID
        cursor: Active transaction cursor (optional)

    Returns:
        dict: Room or None
    """
    cur = cursor or get_db().cursor()
    cur.execute(_ROOM_SELECT + ' WHERE r.id = ?', (room_id,))
    row = cur.fetchone()
    if not row:
        return None
    return _attach_relations(cur, [dict(row)])[0]


def get_rooms(
    hotel_id: int = None,
    room_id: int = None,
    board_type: str = None,
    min_capacity: int = 0,
    active_only: bool = True
) -> list:
    """
    Get rooms matching a filter set.

    Args:
        hotel_id: Filter by hotel
        room_id: Filter by room
        board_type: Filter by board type (case-insensitive)
        min_capacity: Minimum occupants per unit (ignored when <= 0)
        active_only: Only active rooms

    Returns:
        list: Room dicts with hotel and amenities, ordered by hotel then room type
    """
    db = get_db()
    cursor = db.cursor()

    query = _ROOM_SELECT + ' WHERE 1=1'
    params = []

    if active_only:
        query += ' AND r.is_active = 1'

    if hotel_id:
        query += ' AND r.hotel_id = ?'
        params.append(hotel_id)

    if room_id:
        query += ' AND r.id = ?'
        params.append(room_id)

    if board_type:
        query += ' AND r.board_type = ?'
        params.append(normalize_board_type(board_type))

    if min_capacity and min_capacity > 0:
        query += ' AND r.capacity >= ?'
        params.append(min_capacity)

    query += ' ORDER BY h.name, r.room_type, r.id'

    cursor.execute(query, params)
    rooms = [dict(row) for row in cursor.fetchall()]
    return _attach_relations(cursor, rooms)


# =============================================================================
# AVAILABILITY SLOTS
# =============================================================================

def get_room_slots(room_id: int, start_date=None, end_date=None) -> list:
    """
    Get availability slot overrides of a room.

    Args:
        room_id: Room ID
        start_date: First date included (optional)
        end_date: Last date excluded (optional)

    Returns:
        list: Slot dicts ordered by date
    """
    db = get_db()
    cursor = db.cursor()

    query = '''
        SELECT id, room_id, date, available_count, blocked_count
        FROM availability_slots
        WHERE room_id = ?
    '''
    params = [room_id]

    if start_date:
        query += ' AND date >= ?'
        params.append(parse_date(start_date, 'start_date').isoformat())

    if end_date:
        query += ' AND date < ?'
        params.append(parse_date(end_date, 'end_date').isoformat())

    query += ' ORDER BY date'

    cursor.execute(query, params)
    return [dict(row) for row in cursor.fetchall()]


def upsert_room_slots(room_id: int, slots: list) -> int:
    """
    Create or replace availability slots of a room.

    Each slot is either a single date {'date', 'available_count',
    'blocked_count'} or a range {'start_date', 'end_date', ...} covering
    every night in [start_date, end_date).

    Args:
        room_id: Room ID
        slots: List of slot payloads

    Returns:
        int: Number of slot rows written

    Raises:
        NotFoundError: If the room does not exist
        ValidationError: If a slot payload is invalid
    """
    db = get_db()
    cursor = db.cursor()

    cursor.execute('SELECT id FROM rooms WHERE id = ?', (room_id,))
    if not cursor.fetchone():
        raise NotFoundError('Room', room_id)

    if not isinstance(slots, list) or not slots:
        raise ValidationError('slots must be a non-empty list')

    rows = []
    for slot in slots:
        if not isinstance(slot, dict):
            raise ValidationError('Each slot must be an object')

        available = slot.get('available_count')
        blocked = slot.get('blocked_count', 0) or 0
        if available is None:
            raise ValidationError('available_count is required')
        try:
            available = int(available)
            blocked = int(blocked)
        except (ValueError, TypeError):
            raise ValidationError('Slot counts must be integers')
        if available < 0 or blocked < 0:
            raise ValidationError('Slot counts cannot be negative')

        if slot.get('start_date') or slot.get('end_date'):
            start, end = parse_date_range(slot.get('start_date'), slot.get('end_date'))
            dates = list(iter_nights(start, end))
        else:
            dates = [parse_date(slot.get('date'), 'date')]

        rows.extend((room_id, d.isoformat(), available, blocked) for d in dates)

    try:
        cursor.execute('BEGIN IMMEDIATE')
        for row in rows:
            cursor.execute('''
                INSERT INTO availability_slots (room_id, date, available_count, blocked_count)
                VALUES (?, ?, ?, ?)
                ON CONFLICT(room_id, date) DO UPDATE SET
                    available_count = excluded.available_count,
                    blocked_count = excluded.blocked_count,
                    updated_at = CURRENT_TIMESTAMP
            ''', row)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return len(rows)


def delete_room_slots(room_id: int, start_date, end_date) -> int:
    """Remove slot overrides in [start_date, end_date) so the room default applies again."""
    start, end = parse_date_range(start_date, end_date)
    db = get_db()
    cursor = db.cursor()
    cursor.execute('''
        DELETE FROM availability_slots
        WHERE room_id = ? AND date >= ? AND date < ?
    ''', (room_id, start.isoformat(), end.isoformat()))
    db.commit()
    return cursor.rowcount
