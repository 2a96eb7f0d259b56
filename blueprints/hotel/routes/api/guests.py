"""
Guest API routes.
"""

from flask import request, current_app
from flask_login import login_required

from models.guest import get_guest_by_id, search_guests
from utils.api_response import api_success, api_error
from utils.decorators import permission_required
from utils.messages import get_message


def register_routes(bp):
    """Register guest API routes on the blueprint."""

    @bp.route('/guests/search', methods=['GET'])
    @login_required
    @permission_required('hotel.guests.view')
    def guests_search():
        """Search guests by name, email, phone or profile id (?q=)."""
        query = request.args.get('q', '').strip()
        if len(query) < 2:
            return api_success(data=[])

        limit = request.args.get('limit', current_app.config['ITEMS_PER_PAGE'], type=int)
        return api_success(data=search_guests(query, limit=limit))

    @bp.route('/guests/<int:guest_id>', methods=['GET'])
    @login_required
    @permission_required('hotel.guests.view')
    def guest_detail(guest_id):
        """Get guest profile with booking statistics."""
        guest = get_guest_by_id(guest_id)
        if not guest:
            return api_error(get_message('guest_not_found'), status=404)
        return api_success(data=guest)
