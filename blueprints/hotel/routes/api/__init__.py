"""
Hotel API routes package.
Split into smaller modules by entity for maintainability.
"""

from flask import Blueprint

# Create the API blueprint
api_bp = Blueprint('api', __name__)

# Import and register routes from submodules
from blueprints.hotel.routes.api import availability
from blueprints.hotel.routes.api import bookings
from blueprints.hotel.routes.api import rooms
from blueprints.hotel.routes.api import guests

# Register all route functions on the blueprint
availability.register_routes(api_bp)
bookings.register_routes(api_bp)
rooms.register_routes(api_bp)
guests.register_routes(api_bp)
