"""
Room API routes: catalog lookups and availability slot management.
"""

from flask import request
from flask_login import login_required

from models.room import (
    get_rooms, get_room_by_id, get_room_slots, upsert_room_slots, delete_room_slots
)
from utils.api_response import api_success, api_error
from utils.audit import log_audit
from utils.decorators import permission_required
from utils.messages import get_message
from utils.validators import parse_bool


def register_routes(bp):
    """Register room API routes on the blueprint."""

    # ============================================================================
    # ROOM CATALOG
    # ============================================================================

    @bp.route('/rooms', methods=['GET'])
    @login_required
    @permission_required('hotel.rooms.view')
    def rooms_list():
        """
        List rooms.

        Query params:
            hotel_id, board_type, capacity, active (default true)
        """
        rooms = get_rooms(
            hotel_id=request.args.get('hotel_id', type=int),
            board_type=request.args.get('board_type') or None,
            min_capacity=request.args.get('capacity', 0, type=int),
            active_only=parse_bool(request.args.get('active', 'true'))
        )
        return api_success(data=rooms, count=len(rooms))

    @bp.route('/rooms/<int:room_id>', methods=['GET'])
    @login_required
    @permission_required('hotel.rooms.view')
    def room_detail(room_id):
        """Get room with hotel and amenities."""
        room = get_room_by_id(room_id)
        if not room:
            return api_error(get_message('room_not_found'), status=404)
        return api_success(data=room)

    # ============================================================================
    # AVAILABILITY SLOTS
    # ============================================================================

    @bp.route('/rooms/<int:room_id>/slots', methods=['GET'])
    @login_required
    @permission_required('hotel.rooms.view')
    def room_slots(room_id):
        """List slot overrides, optionally within [start_date, end_date)."""
        if not get_room_by_id(room_id):
            return api_error(get_message('room_not_found'), status=404)

        slots = get_room_slots(
            room_id,
            request.args.get('start_date'),
            request.args.get('end_date')
        )
        return api_success(data=slots)

    @bp.route('/rooms/<int:room_id>/slots', methods=['PUT'])
    @login_required
    @permission_required('hotel.rooms.manage')
    def room_slots_upsert(room_id):
        """
        Create or replace slot overrides.

        Request body:
            {"slots": [{"date": "2026-07-01", "available_count": 3, "blocked_count": 2},
                       {"start_date": "...", "end_date": "...", "available_count": 0}]}
        """
        data = request.get_json(silent=True)
        if not isinstance(data, dict):
            return api_error(get_message('json_required'), status=400)

        written = upsert_room_slots(room_id, data.get('slots'))

        log_audit('UPDATE', 'room_slots', room_id, after={'slots': data.get('slots')})

        return api_success(
            data={'room_id': room_id, 'slots_written': written},
            message=get_message('slots_updated')
        )

    @bp.route('/rooms/<int:room_id>/slots', methods=['DELETE'])
    @login_required
    @permission_required('hotel.rooms.manage')
    def room_slots_delete(room_id):
        """Remove slot overrides in [start_date, end_date)."""
        if not get_room_by_id(room_id):
            return api_error(get_message('room_not_found'), status=404)

        removed = delete_room_slots(
            room_id,
            request.args.get('start_date'),
            request.args.get('end_date')
        )

        log_audit('DELETE', 'room_slots', room_id, before={
            'start_date': request.args.get('start_date'),
            'end_date': request.args.get('end_date'),
            'removed': removed
        })

        return api_success(data={'room_id': room_id, 'slots_removed': removed})
