"""
Hotel Back Office - booking, availability and payment API
Flask application factory and initialization
"""

import os
import click
import logging
from flask import Flask, g
from dotenv import load_dotenv

# Load environment variables
load_dotenv()

# Import configuration
from config import config

# Import extensions
from extensions import login_manager, csrf

# Import database functions
from database import close_db, init_db, get_db

from utils.api_response import api_success, api_error, api_exception
from utils.errors import HotelError
from utils.messages import get_message


def create_app(config_name=None):
    """
    Application factory for Flask app.

    Args:
        config_name: Configuration name ('development', 'production', 'test')

    Returns:
        Flask application instance
    """
    # Determine config
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'development')

    # Create Flask app
    app = Flask(__name__)

    # Load configuration
    app.config.from_object(config[config_name])

    # Initialize extensions
    initialize_extensions(app)

    # Register blueprints
    register_blueprints(app)

    # Register error handlers
    register_error_handlers(app)

    # Register CLI commands
    register_cli_commands(app)

    # Register teardown handlers
    register_teardown_handlers(app)

    # Configure logging
    configure_logging(app)

    return app


def initialize_extensions(app):
    """Initialize Flask extensions."""
    # Initialize Flask-Login
    login_manager.init_app(app)
    # Initialize CSRF Protection
    csrf.init_app(app)


def register_blueprints(app):
    """Register Flask blueprints."""
    # Import blueprints
    from blueprints.auth.routes import auth_bp
    from blueprints.api.routes import api_bp
    from blueprints.hotel import hotel_bp

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp, url_prefix='/api')
    app.register_blueprint(hotel_bp, url_prefix='/hotel')

    # Set default route
    @app.route('/')
    def index():
        """Describe the service."""
        return api_success(data={
            'app': app.config.get('APP_NAME'),
            'version': app.config.get('APP_VERSION')
        })


def register_error_handlers(app):
    """Register error handlers returning the JSON envelope."""

    @app.errorhandler(HotelError)
    def hotel_error(error):
        """Handle domain errors raised by the booking core."""
        app.logger.info(f'{error.__class__.__name__}: {error.message}')
        return api_exception(error)

    @app.errorhandler(400)
    def bad_request_error(error):
        """Handle 400 errors (malformed JSON, CSRF failures)."""
        description = getattr(error, 'description', None)
        return api_error(description or get_message('bad_request'), status=400)

    @app.errorhandler(401)
    def unauthorized_error(error):
        """Handle 401 errors."""
        return api_error(get_message('authentication_required'), status=401)

    @app.errorhandler(403)
    def forbidden_error(error):
        """Handle 403 errors."""
        return api_error(get_message('permission_denied'), status=403)

    @app.errorhandler(404)
    def not_found_error(error):
        """Handle 404 errors."""
        return api_error(get_message('not_found'), status=404)

    @app.errorhandler(405)
    def method_not_allowed_error(error):
        """Handle 405 errors."""
        return api_error(get_message('method_not_allowed'), status=405)

    @app.errorhandler(500)
    def internal_error(error):
        """Handle 500 errors."""
        # Rollback database on error
        db = g.get('db')
        if db:
            db.rollback()
        app.logger.error(f'Unhandled error: {error}', exc_info=True)
        return api_error(get_message('internal_error'), status=500)


def register_cli_commands(app):
    """Register Flask CLI commands."""

    @app.cli.command('init-db')
    def init_db_command():
        """Initialize database with schema and seed data."""
        click.echo('Initializing database...')
        with app.app_context():
            init_db()
        click.echo('Database initialized successfully!')

    @app.cli.command('seed-demo')
    def seed_demo_command():
        """Load a demo hotel with rooms, amenities and slots."""
        from database.seed import seed_demo_data

        with app.app_context():
            db = get_db()
            hotel_id = seed_demo_data(db)
            db.commit()
        click.echo(f'Demo data loaded! Hotel ID: {hotel_id}')

    @app.cli.command('create-user')
    @click.argument('username')
    @click.argument('email')
    @click.option('--role', default='owner', type=click.Choice(['owner', 'staff']),
                  help='Role to assign')
    @click.password_option()
    def create_user_command(username, email, role, password):
        """Create a new back office user."""
        from models.user import create_user
        from models.role import get_role_by_name

        with app.app_context():
            role_row = get_role_by_name(role)
            if not role_row:
                click.echo(f'Role {role} not found, run init-db first', err=True)
                return

            try:
                user_id = create_user(
                    username=username,
                    email=email,
                    password=password,
                    role_id=role_row['id']
                )
                click.echo(f'User created successfully! ID: {user_id}')
            except Exception as e:
                click.echo(f'Error creating user: {str(e)}', err=True)


def register_teardown_handlers(app):
    """Register teardown handlers."""

    @app.teardown_appcontext
    def teardown_db(error):
        """Close database connection at end of request."""
        close_db(error)


def configure_logging(app):
    """Configure application logging."""
    if not app.debug and not app.testing:
        # Production logging
        if not os.path.exists('logs'):
            os.mkdir('logs')

        file_handler = logging.FileHandler('logs/hotel_backoffice.log')
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s %(levelname)s: %(message)s [in %(pathname)s:%(lineno)d]'
        ))
        file_handler.setLevel(logging.INFO)
        app.logger.addHandler(file_handler)
        logging.getLogger('models').addHandler(file_handler)

        app.logger.setLevel(logging.INFO)
        app.logger.info(f"{app.config.get('APP_NAME')} startup")
    else:
        # Development logging
        app.logger.setLevel(logging.DEBUG)


# Create application instance for development server
if __name__ == '__main__':
    app = create_app()
    # host='0.0.0.0' allows access from other devices on the network
    app.run(host='0.0.0.0', debug=True)
