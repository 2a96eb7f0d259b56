"""
Shared extension instances, bound to the app in create_app().
"""

from flask_login import LoginManager
from flask_wtf.csrf import CSRFProtect

from utils.api_response import api_error
from utils.messages import get_message

login_manager = LoginManager()

csrf = CSRFProtect()


@login_manager.user_loader
def load_user(user_id):
    """Rebuild the session user; unknown or malformed ids end the session."""
    from models.user import get_user_by_id, User

    try:
        user_dict = get_user_by_id(int(user_id))
    except (TypeError, ValueError):
        return None
    return User(user_dict) if user_dict else None


@login_manager.unauthorized_handler
def unauthorized():
    # No login page to redirect to: API clients get the JSON envelope
    return api_error(get_message('authentication_required'), status=401)
