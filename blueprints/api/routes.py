"""
Service-level API routes: health check and CSRF token.
"""

from flask import Blueprint, current_app
from flask_wtf.csrf import generate_csrf

from utils.api_response import api_success

api_bp = Blueprint('api', __name__)


@api_bp.route('/health')
def health_check():
    """
    Health check endpoint (no authentication required).

    Returns:
        JSON with status and version
    """
    return api_success(data={
        'status': 'ok',
        'version': current_app.config.get('APP_VERSION'),
        'app': current_app.config.get('APP_NAME')
    })


@api_bp.route('/csrf-token')
def csrf_token():
    """Token to send as X-CSRFToken on state-changing requests."""
    return api_success(data={'csrf_token': generate_csrf()})
