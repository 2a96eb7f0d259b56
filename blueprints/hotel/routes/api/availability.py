"""
Availability API routes: single stay and multi-range planning.
"""

from flask import request
from flask_login import login_required

from models.booking_availability import (
    check_availability_for_rooms, check_availability_for_ranges
)
from utils.api_response import api_success, api_error
from utils.decorators import permission_required
from utils.messages import get_message
from utils.validators import parse_bool


def _room_filters(source) -> dict:
    return {
        'number_of_rooms': source.get('number_of_rooms') or 1,
        'hotel_id': source.get('hotel_id') or None,
        'room_id': source.get('room_id') or None,
        'board_type': source.get('board_type') or None,
        'capacity': source.get('capacity') or 0,
        'available_only': parse_bool(source.get('available_only', False))
    }


def register_routes(bp):
    """Register availability API routes on the blueprint."""

    # ============================================================================
    # AVAILABILITY API ROUTES
    # ============================================================================

    @bp.route('/bookings/availability', methods=['GET'])
    @login_required
    @permission_required('hotel.availability.view')
    def bookings_availability():
        """
        Availability of every matching room for one stay.

        Query params:
            check_in_date, check_out_date: Stay (required)
            number_of_rooms: Units requested (default 1)
            hotel_id, room_id, board_type, capacity: Room filters
            available_only: Only list available rooms
        """
        check_in = request.args.get('check_in_date')
        check_out = request.args.get('check_out_date')

        if not check_in or not check_out:
            return api_error(
                get_message('missing_fields'), status=400,
                missing_fields=[f for f, v in (('check_in_date', check_in),
                                               ('check_out_date', check_out)) if not v]
            )

        filters = _room_filters(request.args)
        filters['hotel_id'] = request.args.get('hotel_id', type=int)
        filters['room_id'] = request.args.get('room_id', type=int)

        result = check_availability_for_rooms(check_in, check_out, **filters)
        return api_success(data=result)

    @bp.route('/bookings/availability', methods=['POST'])
    @login_required
    @permission_required('hotel.availability.view')
    def bookings_availability_bulk():
        """
        Availability of every matching room for several stays.

        Request body:
            {
                "date_ranges": [{"check_in_date": "...", "check_out_date": "..."}],
                "number_of_rooms": 1,
                "hotel_id": 1, "room_id": null, "board_type": null,
                "capacity": 0, "available_only": false
            }
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('json_required'), status=400)

        result = check_availability_for_ranges(data.get('date_ranges'), **_room_filters(data))
        return api_success(data=result)
