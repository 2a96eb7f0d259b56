"""
Hotel blueprint initialization.
Mounts the hotel back office API (availability, bookings, rooms, guests).

Route logic lives in routes/api/:
- availability.py - Single and multi-range availability planning
- bookings.py - Booking CRUD and status transitions
- rooms.py - Room catalog and availability slots
- guests.py - Guest profile lookups
"""

from flask import Blueprint

# Create main hotel blueprint
hotel_bp = Blueprint('hotel', __name__)

# =============================================================================
# REGISTER SUB-BLUEPRINTS
# =============================================================================

# API routes (all REST endpoints)
from blueprints.hotel.routes.api import api_bp
hotel_bp.register_blueprint(api_bp, url_prefix='/api')
