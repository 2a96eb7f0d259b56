"""
Booking API routes: list, create, detail, update, status, cancel/delete.
"""

from flask import request, current_app, abort
from flask_login import login_required, current_user

from models.booking import (
    get_booking_by_id, get_bookings_filtered, create_booking, update_booking,
    change_booking_status, cancel_booking, delete_booking
)
from utils.api_response import api_success, api_error
from utils.audit import booking_snapshot, log_audit
from utils.decorators import permission_required
from utils.messages import get_message
from utils.permissions import has_permission


def _json_body():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        abort(400, description=get_message('json_required'))
    return data


def register_routes(bp):
    """Register booking API routes on the blueprint."""

    # ============================================================================
    # BOOKING LIST / DETAIL
    # ============================================================================

    @bp.route('/bookings', methods=['GET'])
    @login_required
    @permission_required('hotel.bookings.view')
    def bookings_list():
        """
        Search bookings.

        Query params:
            search, status, hotel_id, start_date, end_date, page, limit
        """
        result = get_bookings_filtered(
            search=request.args.get('search'),
            status=request.args.get('status'),
            hotel_id=request.args.get('hotel_id', type=int),
            start_date=request.args.get('start_date'),
            end_date=request.args.get('end_date'),
            page=request.args.get('page', 1, type=int),
            limit=request.args.get('limit', current_app.config['ITEMS_PER_PAGE'], type=int)
        )

        return api_success(
            data=result['items'],
            pagination={
                'total': result['total'],
                'page': result['page'],
                'pages': result['pages']
            }
        )

    @bp.route('/bookings/<int:booking_id>', methods=['GET'])
    @login_required
    @permission_required('hotel.bookings.view')
    def booking_detail(booking_id):
        """Get booking with hotel, room, guest and payments."""
        booking = get_booking_by_id(booking_id)
        if not booking:
            return api_error(get_message('booking_not_found'), status=404)
        return api_success(data=booking)

    # ============================================================================
    # BOOKING MUTATIONS
    # ============================================================================

    @bp.route('/bookings', methods=['POST'])
    @login_required
    @permission_required('hotel.bookings.create')
    def booking_create():
        """
        Create a booking.

        Request body:
            {
                "hotel_id": 1, "room_id": 2,
                "check_in_date": "2026-07-01", "check_out_date": "2026-07-04",
                "number_of_rooms": 1,
                "guest_data": {"id": null, "full_name": "...", "email": "..."},
                "room_rate": null, "alternative_rate": null,
                "use_alternative_rate": false,
                "payment_data": {"method": "CREDIT", "paid_amount": 100,
                                 "remaining_due_date": "2026-06-30"}
            }
        """
        booking = create_booking(_json_body(), created_by=current_user.id)

        log_audit('CREATE', 'booking', booking['id'], after=booking_snapshot(booking))

        return api_success(
            data=booking,
            message=get_message('booking_created'),
            status=201
        )

    @bp.route('/bookings/<int:booking_id>', methods=['PUT'])
    @login_required
    @permission_required('hotel.bookings.edit')
    def booking_update(booking_id):
        """Update dates, units, rates, guest, payment or status of a booking."""
        before = booking_snapshot(get_booking_by_id(booking_id))

        booking = update_booking(booking_id, _json_body(), updated_by=current_user.id)

        log_audit('UPDATE', 'booking', booking_id, before=before, after=booking_snapshot(booking))

        return api_success(data=booking, message=get_message('booking_updated'))

    @bp.route('/bookings/<int:booking_id>/status', methods=['POST'])
    @login_required
    @permission_required('hotel.bookings.edit')
    def booking_status(booking_id):
        """
        Move a booking through its lifecycle.

        Request body:
            {"status": "CONFIRMED", "version": 1}
        """
        data = _json_body()
        if not data.get('status'):
            return api_error(get_message('missing_fields'), status=400, missing_fields=['status'])

        before = booking_snapshot(get_booking_by_id(booking_id))

        booking = change_booking_status(
            booking_id, data['status'],
            changed_by=current_user.id,
            expected_version=data.get('version')
        )

        log_audit('STATUS', 'booking', booking_id, before=before, after=booking_snapshot(booking))

        return api_success(
            data=booking,
            message=get_message('booking_status_changed', status=booking['status'])
        )

    @bp.route('/bookings/<int:booking_id>', methods=['DELETE'])
    @login_required
    def booking_delete(booking_id):
        """
        Cancel (default) or permanently delete a booking.

        Query params:
            action: 'cancel' (soft) or 'delete' (hard)
        """
        action = request.args.get('action', 'cancel').lower()
        if action not in ('cancel', 'delete'):
            return api_error(get_message('invalid_action'), status=400)

        permission = 'hotel.bookings.cancel' if action == 'cancel' else 'hotel.bookings.delete'
        if not has_permission(current_user, permission):
            abort(403)

        before = booking_snapshot(get_booking_by_id(booking_id))

        if action == 'cancel':
            booking = cancel_booking(booking_id, cancelled_by=current_user.id)
            log_audit('CANCEL', 'booking', booking_id, before=before, after=booking_snapshot(booking))
            return api_success(data=booking, message=get_message('booking_cancelled'))

        result = delete_booking(booking_id, deleted_by=current_user.id)
        log_audit('DELETE', 'booking', booking_id, before=before)
        return api_success(data=result, message=get_message('booking_deleted'))
