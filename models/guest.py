"""
Guest profile data access.
Resolves the guest of a booking (update in place or create with a generated
profile id) and provides the guest lookups used by the front desk.
"""

import random
import time
import logging

from flask import current_app

from database import get_db
from utils.errors import ConflictError, NotFoundError, ValidationError
from utils.validators import parse_date, parse_bool, sanitize_input, validate_email

logger = logging.getLogger(__name__)


GUEST_COLUMNS = (
    'first_name',
    'last_name',
    'full_name',
    'email',
    'phone',
    'telephone',
    'nationality',
    'passport_number',
    'date_of_birth',
    'gender',
    'address',
    'city',
    'country',
    'company',
    'guest_classification',
    'travel_agent',
    'source',
    'guest_group',
    'is_vip',
    'notes',
)


# =============================================================================
# PROFILE ID
# =============================================================================

def generate_profile_id(random_upper: int = 999) -> str:
    """
    Generate a guest profile id.

    Format: PROF-<epoch milliseconds>-<random 0..random_upper>
    Example: PROF-1767225600000-42
    """
    prefix = current_app.config.get('PROFILE_ID_PREFIX', 'PROF')
    millis = int(time.time() * 1000)
    return f"{prefix}-{millis}-{random.randint(0, random_upper)}"


def _profile_id_exists(cursor, profile_id: str) -> bool:
    cursor.execute('SELECT 1 FROM guests WHERE profile_id = ?', (profile_id,))
    return cursor.fetchone() is not None


# =============================================================================
# NORMALIZATION
# =============================================================================

def _normalize_guest_data(guest_data: dict) -> dict:
    """
    Map a guest payload to column values, keeping only the keys present.

    Accepts 'group' and 'vip' as aliases of guest_group and is_vip.
    """
    data = dict(guest_data)
    if 'group' in data and 'guest_group' not in data:
        data['guest_group'] = data.pop('group')
    if 'vip' in data and 'is_vip' not in data:
        data['is_vip'] = data.pop('vip')

    values = {}
    for column in GUEST_COLUMNS:
        if column not in data:
            continue
        value = data[column]

        if column == 'gender':
            value = str(value).strip().upper() if value else None
        elif column == 'date_of_birth':
            value = parse_date(value, 'date_of_birth').isoformat() if value else None
        elif column == 'is_vip':
            value = 1 if parse_bool(value) else 0
        elif column == 'email' and value:
            value = sanitize_input(value, 255)
            if not validate_email(value):
                raise ValidationError(f'Invalid email format: {value}')
        elif isinstance(value, str):
            value = sanitize_input(value, 500)

        values[column] = value

    return values


def _derive_names(values: dict) -> dict:
    """Fill first/last name from full_name (and the reverse) when absent."""
    full_name = values.get('full_name') or ''
    parts = full_name.split()

    if not values.get('first_name'):
        values['first_name'] = parts[0] if parts else ''
    if not values.get('last_name'):
        values['last_name'] = ' '.join(parts[1:]) if len(parts) > 1 else ''
    if not full_name:
        values['full_name'] = f"{values['first_name']} {values['last_name']}".strip()

    return values


# =============================================================================
# RESOLUTION
# =============================================================================

def resolve_guest(guest_data: dict, cursor) -> int:
    """
    Resolve the guest of a booking inside the caller's transaction.

    With guest_data['id'] the existing row is updated with the fields
    present in the payload and the same id is returned, so repeating the
    call is idempotent. Without an id a new guest is created.

    Args:
        guest_data: Guest payload
        cursor: Active transaction cursor

    Returns:
        int: Guest ID

    Raises:
        ValidationError: If the payload is not an object
        NotFoundError: If guest_data['id'] does not exist
        ConflictError: If no unique profile id could be assigned
    """
    if not isinstance(guest_data, dict):
        raise ValidationError('guest_data must be an object')

    guest_id = guest_data.get('id')
    values = _normalize_guest_data(guest_data)

    if guest_id:
        cursor.execute('SELECT id FROM guests WHERE id = ?', (guest_id,))
        if not cursor.fetchone():
            raise NotFoundError('Guest', guest_id)

        if 'full_name' in values:
            parts = (values['full_name'] or '').split()
            values.setdefault('first_name', parts[0] if parts else '')
            values.setdefault('last_name', ' '.join(parts[1:]))

        if values:
            assignments = ', '.join(f'{column} = ?' for column in values)
            cursor.execute(
                f'UPDATE guests SET {assignments}, updated_at = CURRENT_TIMESTAMP WHERE id = ?',
                list(values.values()) + [guest_id]
            )
        return guest_id

    values = _derive_names(values)
    if not values['full_name']:
        raise ValidationError('Guest name is required')

    return _insert_guest(cursor, values, guest_data.get('profile_id'))


def _insert_guest(cursor, values: dict, profile_id: str = None) -> int:
    """Insert a guest, generating the profile id and retrying once on collision."""
    first = profile_id or generate_profile_id()
    # Retry widens the random suffix
    candidates = [first, generate_profile_id(random_upper=9999)]

    for candidate in candidates:
        if _profile_id_exists(cursor, candidate):
            logger.warning(f"Profile id collision: {candidate}")
            continue

        row = dict(values, profile_id=candidate)
        columns = ', '.join(row)
        placeholders = ', '.join('?' * len(row))
        cursor.execute(
            f'INSERT INTO guests ({columns}) VALUES ({placeholders})',
            list(row.values())
        )

        logger.info(f"Guest created: {candidate} ({row.get('full_name')})")
        return cursor.lastrowid

    raise ConflictError('Could not generate a unique guest profile id')


# =============================================================================
# READ
# =============================================================================

def get_guest_by_id(guest_id: int) -> dict:
    """
    Get guest by ID with booking statistics.

    Args:
        guest_id: Guest ID

    Returns:
        dict: Guest or None
    """
    db = get_db()
    cursor = db.cursor()

    cursor.execute('''
        SELECT g.*,
               COUNT(b.id) as total_bookings,
               MAX(b.check_out_date) as last_stay
        FROM guests g
        LEFT JOIN bookings b ON b.guest_id = g.id AND b.status != 'CANCELLED'
        WHERE g.id = ?
        GROUP BY g.id
    ''', (guest_id,))

    row = cursor.fetchone()
    return dict(row) if row else None


def search_guests(query: str, limit: int = 20) -> list:
    """
    Search guests by name, email, phone or profile id.

    Args:
        query: Search text (case-insensitive, partial match)
        limit: Maximum results

    Returns:
        list: Guest dicts ordered by name
    """
    db = get_db()
    cursor = db.cursor()

    term = f'%{sanitize_input(query, 100)}%'
    cursor.execute('''
        SELECT id, profile_id, full_name, first_name, last_name, email, phone,
               nationality, is_vip
        FROM guests
        WHERE full_name LIKE ? COLLATE NOCASE
           OR email LIKE ? COLLATE NOCASE
           OR phone LIKE ?
           OR profile_id LIKE ?
        ORDER BY full_name
        LIMIT ?
    ''', (term, term, term, term, limit))

    return [dict(row) for row in cursor.fetchall()]
