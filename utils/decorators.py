"""
Permission guard for hotel API routes.
"""

import logging
from functools import wraps
from flask import abort, request
from flask_login import current_user

from utils.permissions import has_permission

logger = logging.getLogger(__name__)


def permission_required(permission_code: str):
    """
    Reject the request with 403 unless the session user's role grants
    permission_code. Stack it under @login_required:

        @bp.route('/rooms/<int:room_id>/slots', methods=['PUT'])
        @login_required
        @permission_required('hotel.rooms.manage')
        def room_slots_upsert(room_id):
            ...
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            if not has_permission(current_user, permission_code):
                logger.info(f'Denied {request.method} {request.path}: '
                            f'user {current_user.id} lacks {permission_code}')
                abort(403)

            return func(*args, **kwargs)
        return wrapper
    return decorator

