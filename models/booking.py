"""
Booking data access functions.
Handles booking CRUD, status lifecycle, availability and payments.

This module re-exports all functions from the split modules:
- booking_state.py: Status validation and transitions
- booking_crud.py: Create, update, cancel, delete operations
- booking_queries.py: Joined projections and filtered listings
- booking_availability.py: Single-room and bulk availability
- payment.py: Payment ledger calculation and persistence
"""

# =============================================================================
# RE-EXPORTS
# =============================================================================

# Status management
from .booking_state import (
    # Constants
    BOOKING_STATUSES,
    ALLOWED_TRANSITIONS,
    # Validation
    normalize_status,
    validate_transition,
    check_version,
    # Transitions
    apply_status_transition,
    change_booking_status,
)

# CRUD operations
from .booking_crud import (
    generate_res_id,
    create_booking,
    update_booking,
    cancel_booking,
    delete_booking,
)

# Queries
from .booking_queries import (
    get_booking_by_id,
    get_bookings_filtered,
)

# Availability
from .booking_availability import (
    ACTIVE_BOOKING_STATUSES,
    bookings_overlap,
    calculate_availability,
    check_room_availability,
    check_availability_for_rooms,
    check_availability_for_ranges,
)

# Payments
from .payment import (
    calculate_payment,
    get_latest_payment,
    get_booking_payments,
)


__all__ = [
    # State
    'BOOKING_STATUSES',
    'ALLOWED_TRANSITIONS',
    'normalize_status',
    'validate_transition',
    'check_version',
    'apply_status_transition',
    'change_booking_status',
    # CRUD
    'generate_res_id',
    'create_booking',
    'update_booking',
    'cancel_booking',
    'delete_booking',
    # Queries
    'get_booking_by_id',
    'get_bookings_filtered',
    # Availability
    'ACTIVE_BOOKING_STATUSES',
    'bookings_overlap',
    'calculate_availability',
    'check_room_availability',
    'check_availability_for_rooms',
    'check_availability_for_ranges',
    # Payments
    'calculate_payment',
    'get_latest_payment',
    'get_booking_payments',
]
