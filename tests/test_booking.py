"""
Tests for booking create / update / status / cancel / delete transactions.
"""

import re

import pytest

from database import get_db
from models.booking import (
    create_booking, update_booking, change_booking_status, cancel_booking,
    delete_booking, generate_res_id, get_booking_by_id, get_bookings_filtered,
    get_latest_payment
)
from utils.datetime_helpers import get_now
from utils.errors import ConflictError, NotFoundError, UnavailableError, ValidationError


def _count(table):
    return get_db().execute(f'SELECT COUNT(*) FROM {table}').fetchone()[0]


class TestGenerateResId:
    """Test reservation id generation."""

    def test_format(self, app):
        """RES-<year>-<6 digits>."""
        with app.app_context():
            res_id = generate_res_id(get_db().cursor())
        assert re.fullmatch(r'RES-\d{4}-\d{6}', res_id)

    def test_exhausted_retries(self, app, make_room, make_booking, monkeypatch):
        """A permanently colliding id raises ConflictError."""
        from models import booking_crud

        room = make_room()
        booking_id = make_booking(room, '2030-01-01', '2030-01-02')
        monkeypatch.setattr(booking_crud.time, 'time', lambda: 1900000000.5)

        with app.app_context():
            db = get_db()
            db.execute('UPDATE bookings SET res_id = ? WHERE id = ?',
                       (f'RES-{get_now().year}-000500', booking_id))
            db.commit()

            with pytest.raises(ConflictError):
                generate_res_id(db.cursor(), max_retries=2)


class TestCreateBooking:
    """Test booking creation."""

    def test_create_minimal(self, app, make_room, booking_payload):
        """A PENDING booking with derived nights, rate and total."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, number_of_rooms=2), created_by=1)

        assert re.fullmatch(r'RES-\d{4}-\d{6}', booking['res_id'])
        assert booking['status'] == 'PENDING'
        assert booking['number_of_nights'] == 3
        assert booking['room_rate'] == 100.0
        assert booking['total_amount'] == 600.0
        assert booking['version'] == 1
        assert booking['created_by'] == 1
        assert booking['hotel']['id'] == room['hotel_id']
        assert booking['room']['room_type'] == 'STD'
        assert booking['guest']['first_name'] == 'Ada'
        assert booking['guest']['last_name'] == 'Lovelace'
        assert booking['payments'] == []

    def test_create_with_cash_payment(self, app, make_room, booking_payload):
        """CASH payment is settled in full for the booking total."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={'method': 'cash'}))

        payment = booking['payments'][0]
        assert payment['method'] == 'CASH'
        assert payment['total_amount'] == 300.0
        assert payment['paid_amount'] == 300.0
        assert payment['remaining_amount'] == 0.0
        assert payment['status'] == 'COMPLETED'
        assert payment['payment_date'] is not None

    def test_create_with_empty_payment(self, app, make_room, booking_payload):
        """An empty payment object records a CASH payment."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={}))

        assert len(booking['payments']) == 1
        assert booking['payments'][0]['method'] == 'CASH'
        assert booking['payments'][0]['paid_amount'] == 300.0

    def test_create_with_credit_payment(self, app, make_room, booking_payload):
        """CREDIT keeps the balance and its due date."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={
                'method': 'CREDIT', 'paid_amount': 100,
                'remaining_due_date': '2030-06-30', 'date': '2030-05-01'
            }))

        payment = booking['payments'][0]
        assert payment['remaining_amount'] == 200.0
        assert payment['remaining_due_date'] == '2030-06-30'
        assert payment['payment_date'] == '2030-05-01'
        assert payment['status'] == 'PARTIALLY_PAID'

    def test_invalid_payment_writes_nothing(self, app, make_room, booking_payload):
        """CREDIT without due date fails and leaves no booking, guest or payment."""
        room = make_room()

        with app.app_context():
            with pytest.raises(ValidationError):
                create_booking(booking_payload(room, payment_data={
                    'method': 'CREDIT', 'paid_amount': 100
                }))

            assert _count('bookings') == 0
            assert _count('guests') == 0
            assert _count('payments') == 0

    def test_missing_fields(self, app):
        """Required fields are reported together."""
        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                create_booking({'hotel_id': 1, 'check_in_date': '2030-07-01'})

        assert exc_info.value.details['missing_fields'] == [
            'room_id', 'guest_data', 'check_out_date'
        ]

    def test_checkout_before_checkin(self, app, make_room, booking_payload):
        """Check-out must be after check-in."""
        room = make_room()
        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                create_booking(booking_payload(room, '2030-07-04', '2030-07-01'))
        assert 'after check-in' in str(exc_info.value)

    def test_unknown_room(self, app, make_room, booking_payload):
        """Missing room raises NotFoundError."""
        room = make_room()
        with app.app_context():
            with pytest.raises(NotFoundError):
                create_booking(booking_payload(dict(room, id=9999)))

    def test_inactive_room(self, app, make_room, booking_payload):
        """Inactive rooms cannot be booked."""
        room = make_room(is_active=0)
        with app.app_context():
            with pytest.raises(ValidationError):
                create_booking(booking_payload(room))

    def test_room_of_another_hotel(self, app, make_hotel, make_room, booking_payload):
        """Room and hotel must match."""
        room = make_room()
        other_hotel = make_hotel('Elsewhere')
        with app.app_context():
            with pytest.raises(ValidationError) as exc_info:
                create_booking(booking_payload(room, hotel_id=other_hotel))
        assert 'does not belong' in str(exc_info.value)

    def test_alternative_rate(self, app, make_room, booking_payload):
        """Preferring the alternative rate charges it."""
        room = make_room(base_price=100.0, alternative_price=80.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, use_alternative_rate=True))

        assert booking['room_rate'] == 80.0
        assert booking['alternative_rate'] == 80.0
        assert booking['use_alternative_rate'] is True
        assert booking['total_amount'] == 240.0

    def test_existing_guest_reused(self, app, make_room, booking_payload):
        """guest_data with an id links the existing guest."""
        room = make_room()

        with app.app_context():
            first = create_booking(booking_payload(room))
            second = create_booking(booking_payload(
                room, '2030-08-01', '2030-08-02',
                guest_data={'id': first['guest_id'], 'room_no': '214'}
            ))

            assert second['guest_id'] == first['guest_id']
            assert second['assigned_room_no'] == '214'
            assert _count('guests') == 1

    def test_special_requests(self, app, make_room, booking_payload):
        """Special requests are stored as a list."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(
                room, special_requests=['Late check-in', 'High floor']
            ))

        assert booking['special_requests'] == ['Late check-in', 'High floor']


class TestUpdateBooking:
    """Test booking updates."""

    def test_dates_recompute_total(self, app, make_room, booking_payload):
        """New dates recompute nights and total and bump the version."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room))
            updated = update_booking(booking['id'], {
                'check_out_date': '2030-07-06', 'version': 1
            })

        assert updated['number_of_nights'] == 5
        assert updated['total_amount'] == 500.0
        assert updated['version'] == 2

    def test_units_rechecked_excluding_self(self, app, make_room, make_booking, booking_payload):
        """Growing the booking beyond free units is refused."""
        room = make_room(quantity=2)
        make_booking(room, '2030-07-01', '2030-07-04', 1)

        with app.app_context():
            booking = create_booking(booking_payload(room))
            with pytest.raises(UnavailableError):
                update_booking(booking['id'], {'number_of_rooms': 2})

            assert get_booking_by_id(booking['id'])['number_of_rooms'] == 1

    def test_shifting_confirmed_booking_ignores_itself(self, app, make_room, booking_payload):
        """A confirmed booking in a single-unit room can move over its own nights."""
        room = make_room(quantity=1)

        with app.app_context():
            booking = create_booking(booking_payload(room))
            change_booking_status(booking['id'], 'CONFIRMED')
            updated = update_booking(booking['id'], {
                'check_in_date': '2030-07-02', 'check_out_date': '2030-07-05'
            })

        assert updated['check_in_date'] == '2030-07-02'

    def test_version_mismatch(self, app, make_room, booking_payload):
        """A stale version is a conflict."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            update_booking(booking['id'], {'notes': 'first edit'})
            with pytest.raises(ConflictError) as exc_info:
                update_booking(booking['id'], {'notes': 'stale edit', 'version': 1})

        assert exc_info.value.details == {'current_version': 2, 'expected_version': 1}

    def test_cash_payment_follows_total(self, app, make_room, booking_payload):
        """A CASH row is re-derived when the total changes."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={'method': 'CASH'}))
            update_booking(booking['id'], {'number_of_rooms': 2})
            payment = get_latest_payment(booking['id'])
            rows = _count('payments')

        assert payment['total_amount'] == 600.0
        assert payment['paid_amount'] == 600.0
        assert payment['remaining_amount'] == 0.0
        assert rows == 1

    def test_credit_overpaid_after_shrink(self, app, make_room, booking_payload):
        """Shrinking below the paid amount of a CREDIT row is rejected and rolled back."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={
                'method': 'CREDIT', 'paid_amount': 250, 'remaining_due_date': '2030-06-30'
            }))
            with pytest.raises(ValidationError):
                update_booking(booking['id'], {'check_out_date': '2030-07-02'})

            assert get_booking_by_id(booking['id'])['total_amount'] == 300.0

    def test_partial_payment_update_keeps_prior_values(self, app, make_room, booking_payload):
        """Omitted payment fields keep their stored values."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={
                'method': 'CREDIT', 'paid_amount': 100, 'remaining_due_date': '2030-06-30'
            }))
            update_booking(booking['id'], {'payment_data': {'paid_amount': 300}})
            payment = get_latest_payment(booking['id'])

        assert payment['method'] == 'CREDIT'
        assert payment['remaining_amount'] == 0.0
        assert payment['status'] == 'COMPLETED'

    def test_switch_off_alternative_rate(self, app, make_room, booking_payload):
        """Dropping the alternative rate falls back to the room base price."""
        room = make_room(base_price=100.0, alternative_price=80.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, use_alternative_rate=True))
            updated = update_booking(booking['id'], {'use_alternative_rate': False})

        assert updated['room_rate'] == 100.0
        assert updated['total_amount'] == 300.0

    def test_custom_rate_kept_on_date_change(self, app, make_room, booking_payload):
        """A negotiated room rate survives date edits."""
        room = make_room(base_price=100.0)

        with app.app_context():
            booking = create_booking(booking_payload(room, room_rate=120))
            updated = update_booking(booking['id'], {'check_out_date': '2030-07-02'})

        assert updated['room_rate'] == 120.0
        assert updated['total_amount'] == 120.0

    def test_status_and_guest_in_one_update(self, app, make_room, booking_payload):
        """Status goes through the lifecycle and the guest is updated in place."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            updated = update_booking(booking['id'], {
                'status': 'confirmed',
                'guest_data': {'phone': '+44 1234'}
            })

        assert updated['status'] == 'CONFIRMED'
        assert updated['guest']['phone'] == '+44 1234'
        assert updated['guest']['full_name'] == 'Ada Lovelace'

    def test_invalid_status_transition(self, app, make_room, booking_payload):
        """Skipping a lifecycle step is a conflict."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            with pytest.raises(ConflictError):
                update_booking(booking['id'], {'status': 'CHECKED_OUT'})

    def test_unknown_booking(self, app):
        """Missing booking raises NotFoundError."""
        with app.app_context():
            with pytest.raises(NotFoundError):
                update_booking(9999, {'notes': 'x'})


class TestChangeBookingStatus:
    """Test lifecycle transitions."""

    def test_full_lifecycle(self, app, make_room, booking_payload):
        """PENDING -> CONFIRMED -> CHECKED_IN -> CHECKED_OUT with time stamps."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            change_booking_status(booking['id'], 'CONFIRMED')
            checked_in = change_booking_status(booking['id'], 'checked_in')
            assert checked_in['check_in_time'] is not None
            checked_out = change_booking_status(booking['id'], 'CHECKED_OUT', expected_version=3)

        assert checked_out['status'] == 'CHECKED_OUT'
        assert checked_out['check_out_time'] is not None
        assert checked_out['version'] == 4

    def test_same_status_is_noop(self, app, make_room, booking_payload):
        """Re-applying the current status changes nothing."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            result = change_booking_status(booking['id'], 'PENDING')

        assert result['version'] == 1

    def test_invalid_transition(self, app, make_room, booking_payload):
        """PENDING cannot jump to CHECKED_IN."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            with pytest.raises(ConflictError):
                change_booking_status(booking['id'], 'CHECKED_IN')

    def test_unknown_status(self, app, make_room, booking_payload):
        """Unknown statuses are validation errors."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            with pytest.raises(ValidationError):
                change_booking_status(booking['id'], 'NO_SHOW')

    def test_confirm_rechecks_capacity(self, app, make_room, booking_payload):
        """Two pending bookings for the last unit: only the first can confirm."""
        room = make_room(quantity=1)

        with app.app_context():
            first = create_booking(booking_payload(room))
            second = create_booking(booking_payload(room))
            change_booking_status(first['id'], 'CONFIRMED')

            with pytest.raises(UnavailableError):
                change_booking_status(second['id'], 'CONFIRMED')

            assert get_booking_by_id(second['id'])['status'] == 'PENDING'


class TestCancelBooking:
    """Test soft cancellation."""

    def test_cancel_frees_inventory(self, app, make_room, booking_payload):
        """A cancelled booking no longer blocks its units."""
        room = make_room(quantity=1)

        with app.app_context():
            booking = create_booking(booking_payload(room))
            change_booking_status(booking['id'], 'CONFIRMED')
            cancelled = cancel_booking(booking['id'])
            assert cancelled['status'] == 'CANCELLED'

            replacement = create_booking(booking_payload(room))
            change_booking_status(replacement['id'], 'CONFIRMED')

    def test_cancel_twice_is_idempotent(self, app, make_room, booking_payload):
        """Cancelling a cancelled booking is a no-op."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room))
            first = cancel_booking(booking['id'])
            second = cancel_booking(booking['id'])

        assert second['status'] == 'CANCELLED'
        assert second['version'] == first['version']

    def test_cancel_checked_out(self, app, make_room, make_booking):
        """Any existing booking can be cancelled."""
        room = make_room()
        booking_id = make_booking(room, '2030-07-01', '2030-07-02', status='CHECKED_OUT')

        with app.app_context():
            booking = cancel_booking(booking_id)

        assert booking['status'] == 'CANCELLED'

    def test_cancelled_is_terminal(self, app, make_room, make_booking):
        """A cancelled booking cannot be moved forward again."""
        room = make_room()
        booking_id = make_booking(room, '2030-07-01', '2030-07-02', status='CANCELLED')

        with app.app_context():
            with pytest.raises(ConflictError):
                change_booking_status(booking_id, 'CONFIRMED')

    def test_cancel_checked_in(self, app, make_room, make_booking):
        """Checked-in bookings leave the stay by cancellation."""
        room = make_room()
        booking_id = make_booking(room, '2030-07-01', '2030-07-02', status='CHECKED_IN')

        with app.app_context():
            booking = cancel_booking(booking_id)

        assert booking['status'] == 'CANCELLED'

    def test_cancel_unknown(self, app):
        """Missing booking raises NotFoundError."""
        with app.app_context():
            with pytest.raises(NotFoundError):
                cancel_booking(9999)


class TestDeleteBooking:
    """Test hard deletion."""

    def test_delete_removes_payments(self, app, make_room, booking_payload):
        """Booking and its payments are removed together."""
        room = make_room()

        with app.app_context():
            booking = create_booking(booking_payload(room, payment_data={'method': 'CASH'}))
            result = delete_booking(booking['id'])

            assert result == {'id': booking['id'], 'res_id': booking['res_id'], 'payments_deleted': 1}
            assert get_booking_by_id(booking['id']) is None
            assert _count('payments') == 0

    def test_cannot_delete_checked_in(self, app, make_room, make_booking):
        """CHECKED_IN bookings are protected."""
        room = make_room()
        booking_id = make_booking(room, '2030-07-01', '2030-07-02', status='CHECKED_IN')

        with app.app_context():
            with pytest.raises(ConflictError):
                delete_booking(booking_id)
            assert get_booking_by_id(booking_id) is not None

    def test_delete_cancelled(self, app, make_room, make_booking):
        """Other statuses can be deleted."""
        room = make_room()
        booking_id = make_booking(room, '2030-07-01', '2030-07-02', status='CANCELLED')

        with app.app_context():
            assert delete_booking(booking_id)['payments_deleted'] == 0

    def test_delete_unknown(self, app):
        """Missing booking raises NotFoundError."""
        with app.app_context():
            with pytest.raises(NotFoundError):
                delete_booking(9999)


class TestBookingQueries:
    """Test filtered listing."""

    def test_search_filter_and_paginate(self, app, make_room, booking_payload):
        """Search by guest, filter by status, page through results."""
        room = make_room()

        with app.app_context():
            ada = create_booking(booking_payload(room))
            create_booking(booking_payload(
                room, '2030-08-01', '2030-08-03', guest_data={'full_name': 'Linus Torvalds'}
            ))
            change_booking_status(ada['id'], 'CONFIRMED')

            found = get_bookings_filtered(search='lovelace')
            assert [b['id'] for b in found['items']] == [ada['id']]

            confirmed = get_bookings_filtered(status='confirmed')
            assert confirmed['total'] == 1

            dated = get_bookings_filtered(start_date='2030-07-15')
            assert dated['items'][0]['guest']['full_name'] == 'Linus Torvalds'

            page = get_bookings_filtered(page=2, limit=1)
            assert page['total'] == 2
            assert page['pages'] == 2
            assert len(page['items']) == 1
