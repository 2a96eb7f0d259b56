"""
Tests for guest resolution and lookups.
"""

import re

import pytest

from database import get_db
from models import guest as guest_model
from models.guest import resolve_guest, generate_profile_id, get_guest_by_id, search_guests
from utils.errors import ConflictError, NotFoundError, ValidationError


def _resolve(guest_data):
    db = get_db()
    cursor = db.cursor()
    guest_id = resolve_guest(guest_data, cursor)
    db.commit()
    return guest_id


class TestGenerateProfileId:
    """Test profile id format."""

    def test_format(self, app):
        """PROF-<epoch ms>-<random>."""
        with app.app_context():
            profile_id = generate_profile_id()
        assert re.fullmatch(r'PROF-\d{13}-\d{1,3}', profile_id)

    def test_wider_suffix(self, app):
        """The retry suffix goes up to 9999."""
        with app.app_context():
            profile_id = generate_profile_id(random_upper=9999)
        assert re.fullmatch(r'PROF-\d{13}-\d{1,4}', profile_id)


class TestResolveGuest:
    """Test create-or-update of the booking guest."""

    def test_creates_guest_with_derived_names(self, app):
        """First and last name come from full_name."""
        with app.app_context():
            guest_id = _resolve({'full_name': 'Grace Brewster Hopper', 'email': 'grace@example.com'})
            guest = get_guest_by_id(guest_id)

        assert guest['first_name'] == 'Grace'
        assert guest['last_name'] == 'Brewster Hopper'
        assert guest['profile_id'].startswith('PROF-')

    def test_full_name_from_parts(self, app):
        """Without full_name it is built from first and last name."""
        with app.app_context():
            guest = get_guest_by_id(_resolve({'first_name': 'Alan', 'last_name': 'Turing'}))

        assert guest['full_name'] == 'Alan Turing'

    def test_aliases_and_normalization(self, app):
        """group / vip aliases, upper-cased gender, vip flag stored as 1."""
        with app.app_context():
            guest = get_guest_by_id(_resolve({
                'full_name': 'Edsger Dijkstra', 'group': 'Conference', 'vip': 'true',
                'gender': 'm', 'date_of_birth': '1930-05-11'
            }))

        assert guest['guest_group'] == 'Conference'
        assert guest['is_vip'] == 1
        assert guest['gender'] == 'M'
        assert guest['date_of_birth'] == '1930-05-11'

    def test_invalid_email(self, app):
        """Malformed emails are rejected."""
        with app.app_context():
            with pytest.raises(ValidationError):
                _resolve({'full_name': 'Bad Mail', 'email': 'not-an-email'})

    def test_name_required(self, app):
        """A new guest needs a name."""
        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                _resolve({'email': 'anonymous@example.com'})
            assert 'name is required' in str(exc_info.value)

    def test_update_with_id_is_idempotent(self, app):
        """Resolving twice with the same id updates in place and returns the id."""
        with app.app_context():
            guest_id = _resolve({'full_name': 'Barbara Liskov'})

            payload = {'id': guest_id, 'phone': '+1 555 0100', 'nationality': 'US'}
            assert _resolve(payload) == guest_id
            assert _resolve(payload) == guest_id

            guest = get_guest_by_id(guest_id)
            count = get_db().execute('SELECT COUNT(*) FROM guests').fetchone()[0]

        assert guest['phone'] == '+1 555 0100'
        assert guest['full_name'] == 'Barbara Liskov'
        assert count == 1

    def test_update_full_name_rederives_parts(self, app):
        """Changing full_name on an existing guest refreshes first/last name."""
        with app.app_context():
            guest_id = _resolve({'full_name': 'Ken Thompson'})
            _resolve({'id': guest_id, 'full_name': 'Dennis MacAlistair Ritchie'})
            guest = get_guest_by_id(guest_id)

        assert guest['first_name'] == 'Dennis'
        assert guest['last_name'] == 'MacAlistair Ritchie'

    def test_update_unknown_id(self, app):
        """Unknown guest id raises NotFoundError."""
        with app.app_context():
            with pytest.raises(NotFoundError):
                _resolve({'id': 424242, 'full_name': 'Nobody'})

    def test_payload_must_be_object(self, app):
        """Non-dict payloads are rejected."""
        with app.app_context():
            with pytest.raises(ValidationError):
                resolve_guest('Ada', get_db().cursor())

    def test_supplied_profile_id_kept(self, app):
        """A free caller profile id is stored as given."""
        with app.app_context():
            guest = get_guest_by_id(_resolve({'full_name': 'Donald Knuth',
                                              'profile_id': 'PROF-TAOCP'}))
        assert guest['profile_id'] == 'PROF-TAOCP'

    def test_duplicate_supplied_profile_id_regenerated(self, app):
        """A caller profile id already in use is replaced by a generated one."""
        with app.app_context():
            first_id = _resolve({'full_name': 'Donald Knuth', 'profile_id': 'PROF-TAOCP'})
            second_id = _resolve({'full_name': 'Someone Else', 'profile_id': 'PROF-TAOCP'})
            second = get_guest_by_id(second_id)

        assert second_id != first_id
        assert second['full_name'] == 'Someone Else'
        assert re.fullmatch(r'PROF-\d{13}-\d{1,4}', second['profile_id'])


class TestProfileIdCollision:
    """Test the single retry on generated profile id collisions."""

    def test_retry_with_wider_suffix(self, app, monkeypatch):
        """First candidate taken: the 0..9999 candidate is used."""
        candidates = {999: 'PROF-1-1', 9999: 'PROF-1-1234'}
        monkeypatch.setattr(guest_model, 'generate_profile_id',
                            lambda random_upper=999: candidates[random_upper])

        with app.app_context():
            _resolve({'full_name': 'First Taker', 'profile_id': 'PROF-1-1'})
            guest = get_guest_by_id(_resolve({'full_name': 'Second Guest'}))

        assert guest['profile_id'] == 'PROF-1-1234'

    def test_second_collision_raises(self, app, monkeypatch):
        """Both candidates taken: ConflictError."""
        monkeypatch.setattr(guest_model, 'generate_profile_id',
                            lambda random_upper=999: 'PROF-1-1')

        with app.app_context():
            _resolve({'full_name': 'First Taker', 'profile_id': 'PROF-1-1'})
            with pytest.raises(ConflictError):
                _resolve({'full_name': 'Second Guest'})


class TestGuestLookups:
    """Test guest read helpers."""

    def test_search(self, app):
        """Search matches name, email and profile id case-insensitively."""
        with app.app_context():
            _resolve({'full_name': 'Margaret Hamilton', 'email': 'mh@apollo.example'})
            _resolve({'full_name': 'John Backus', 'email': 'jb@fortran.example'})

            assert [g['full_name'] for g in search_guests('hamil')] == ['Margaret Hamilton']
            assert [g['full_name'] for g in search_guests('FORTRAN')] == ['John Backus']
            assert len(search_guests('PROF-')) == 2

    def test_guest_stats(self, app, make_room, make_booking):
        """Guest detail counts non-cancelled bookings."""
        room = make_room()
        make_booking(room, '2030-07-01', '2030-07-03', guest_name='Counted Guest')

        with app.app_context():
            guest_id = get_db().execute(
                "SELECT id FROM guests WHERE full_name = 'Counted Guest'"
            ).fetchone()[0]
            guest = get_guest_by_id(guest_id)

        assert guest['total_bookings'] == 1
        assert guest['last_stay'] == '2030-07-03'

    def test_missing_guest(self, app):
        """Unknown ids return None."""
        with app.app_context():
            assert get_guest_by_id(999) is None
