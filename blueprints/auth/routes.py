"""
Authentication routes: login, logout, current user.
Session authentication for the back office API.
"""

import logging
from flask import Blueprint
from flask_login import login_user, logout_user, login_required, current_user

from blueprints.auth.forms import LoginForm
from models.user import User, get_user_by_username, update_last_login, check_password
from utils.api_response import api_success, api_error
from utils.messages import get_message
from utils.permissions import get_user_permissions

logger = logging.getLogger(__name__)

auth_bp = Blueprint('auth', __name__)


@auth_bp.route('/login', methods=['POST'])
def login():
    """
    Authenticate with username and password.

    Body (form or JSON): username, password, remember_me
    """
    form = LoginForm()

    if not form.validate_on_submit():
        return api_error(get_message('missing_fields'), status=400, details=form.errors)

    # Get user by username
    user_dict = get_user_by_username(form.username.data)

    # Check credentials
    if user_dict is None or not check_password(user_dict, form.password.data):
        logger.warning(f'Failed login for {form.username.data}')
        return api_error(get_message('invalid_credentials'), status=401)

    # Check if user is active
    if not user_dict.get('active'):
        return api_error(get_message('account_disabled'), status=403)

    user = User(user_dict)
    login_user(user, remember=form.remember_me.data)

    # Update last login timestamp
    update_last_login(user.id)

    return api_success(
        data=user.to_dict(),
        message=get_message('login_success', name=user.full_name or user.username)
    )


@auth_bp.route('/logout')
@login_required
def logout():
    """Logout current user."""
    logout_user()
    return api_success(message=get_message('logout_success'))


@auth_bp.route('/me')
@login_required
def me():
    """Current user with the permission codes of their role."""
    data = current_user.to_dict()
    data['permissions'] = sorted(get_user_permissions(current_user))
    return api_success(data=data)
