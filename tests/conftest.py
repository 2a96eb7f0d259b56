"""
Pytest configuration and fixtures.
Ensures tests use an isolated test database, not the production database.
"""

import itertools
import os
import pytest
import tempfile

# Set test database path BEFORE importing app
# This ensures all tests use an isolated database
TEST_DB_PATH = os.path.join(tempfile.gettempdir(), 'hotel_backoffice_test.db')
os.environ['DATABASE_PATH'] = TEST_DB_PATH

_sequence = itertools.count(1)


@pytest.fixture(scope='session', autouse=True)
def setup_test_environment():
    """Set up test environment before any tests run."""
    os.environ['DATABASE_PATH'] = TEST_DB_PATH
    os.environ['FLASK_ENV'] = 'test'

    yield

    # Cleanup: remove test database after all tests
    for suffix in ('', '-wal', '-shm'):
        path = TEST_DB_PATH + suffix
        if os.path.exists(path):
            try:
                os.remove(path)
            except PermissionError:
                pass  # Windows may have file locked


@pytest.fixture
def app():
    """
    Create test application with a freshly initialized database.

    The app is yielded outside any app context so every request (and every
    `with app.app_context()` block in a test) gets its own g and connection.
    """
    from app import create_app
    from database import init_db

    app = create_app('test')
    app.config['TESTING'] = True
    app.config['WTF_CSRF_ENABLED'] = False
    app.config['DATABASE_PATH'] = TEST_DB_PATH

    with app.app_context():
        init_db()

    yield app


@pytest.fixture
def client(app):
    """Create test client."""
    return app.test_client()


def _login(client, username, password):
    response = client.post('/login', json={'username': username, 'password': password})
    assert response.status_code == 200, response.get_json()
    return client


@pytest.fixture
def authenticated_client(app, client):
    """Test client logged in as the owner (admin)."""
    return _login(client, 'admin', 'admin123')


@pytest.fixture
def staff_client(app):
    """Test client logged in as front desk staff."""
    return _login(app.test_client(), 'frontdesk', 'frontdesk123')


# =============================================================================
# DATA FACTORIES
# =============================================================================

@pytest.fixture
def make_hotel(app):
    """Factory inserting a hotel; returns its id."""
    from database import get_db

    def _make_hotel(name='Test Hotel', alt_name=None):
        with app.app_context():
            db = get_db()
            cursor = db.execute(
                'INSERT INTO hotels (name, code, alt_name) VALUES (?, ?, ?)',
                (name, f'H{next(_sequence)}', alt_name)
            )
            db.commit()
            return cursor.lastrowid

    return _make_hotel


@pytest.fixture
def make_room(app, make_hotel):
    """Factory inserting a room (and a hotel when none is given); returns the room dict."""
    from database import get_db
    from models.room import get_room_by_id

    def _make_room(hotel_id=None, room_type='STD', board_type='ROOM_ONLY', quantity=5,
                   capacity=2, base_price=100.0, alternative_price=None,
                   available_from=None, available_to=None, is_active=1, amenities=()):
        if hotel_id is None:
            hotel_id = make_hotel()
        with app.app_context():
            db = get_db()
            cursor = db.execute('''
                INSERT INTO rooms (hotel_id, room_type, room_type_description, board_type,
                                   quantity, capacity, base_price, alternative_price,
                                   available_from, available_to, is_active)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            ''', (hotel_id, room_type, f'{room_type} room', board_type, quantity, capacity,
                  base_price, alternative_price, available_from, available_to, is_active))
            room_id = cursor.lastrowid
            for amenity in amenities:
                db.execute('INSERT INTO room_amenities (room_id, name) VALUES (?, ?)',
                           (room_id, amenity))
            db.commit()
            return get_room_by_id(room_id)

    return _make_room


@pytest.fixture
def make_booking(app):
    """
    Factory inserting a booking row directly (bypassing admission checks);
    returns its id.
    """
    from database import get_db

    def _make_booking(room, check_in, check_out, number_of_rooms=1, status='CONFIRMED',
                      guest_name='Existing Guest'):
        n = next(_sequence)
        with app.app_context():
            db = get_db()
            guest_id = db.execute(
                'INSERT INTO guests (profile_id, full_name) VALUES (?, ?)',
                (f'PROF-TEST-{n}', guest_name)
            ).lastrowid
            cursor = db.execute('''
                INSERT INTO bookings (res_id, hotel_id, room_id, guest_id, number_of_rooms,
                                      check_in_date, check_out_date, number_of_nights,
                                      room_rate, total_amount, status)
                VALUES (?, ?, ?, ?, ?, ?, ?, 1, ?, ?, ?)
            ''', (f'RES-TEST-{n}', room['hotel_id'], room['id'], guest_id, number_of_rooms,
                  check_in, check_out, room['base_price'], room['base_price'], status))
            db.commit()
            return cursor.lastrowid

    return _make_booking


@pytest.fixture
def booking_payload():
    """Factory building a create-booking payload for a room."""

    def _payload(room, check_in='2030-07-01', check_out='2030-07-04', **overrides):
        payload = {
            'hotel_id': room['hotel_id'],
            'room_id': room['id'],
            'check_in_date': check_in,
            'check_out_date': check_out,
            'number_of_rooms': 1,
            'guest_data': {
                'full_name': 'Ada Lovelace',
                'email': 'ada@example.com',
                'phone': '+44 20 7946 0000'
            }
        }
        payload.update(overrides)
        return payload

    return _payload
