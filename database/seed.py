"""
Database seed data.
Initial data population for fresh database installations.
"""

import os
from datetime import date, timedelta

from flask import current_app
from werkzeug.security import generate_password_hash


def seed_database(db):
    """Insert initial seed data (roles, permissions, default users)."""

    # 1. Create Roles
    roles_data = [
        ('owner', 'Owner', 'Full access to the back office', 1),
        ('staff', 'Staff', 'Daily front desk operations', 1)
    ]

    for name, display_name, description, is_system in roles_data:
        db.execute('''
            INSERT INTO roles (name, display_name, description, is_system)
            VALUES (?, ?, ?, ?)
        ''', (name, display_name, description, is_system))

    # 2. Create Permissions
    permissions_data = [
        ('hotel.availability.view', 'Check availability', 'bookings'),
        ('hotel.bookings.view', 'View bookings', 'bookings'),
        ('hotel.bookings.create', 'Create bookings', 'bookings'),
        ('hotel.bookings.edit', 'Edit bookings', 'bookings'),
        ('hotel.bookings.cancel', 'Cancel bookings', 'bookings'),
        ('hotel.bookings.delete', 'Delete bookings', 'bookings'),
        ('hotel.rooms.view', 'View rooms', 'catalog'),
        ('hotel.rooms.manage', 'Manage availability slots', 'catalog'),
        ('hotel.guests.view', 'View guests', 'guests'),
    ]

    for code, name, module in permissions_data:
        db.execute('''
            INSERT INTO permissions (code, name, module)
            VALUES (?, ?, ?)
        ''', (code, name, module))

    # 3. Assign Permissions to Roles
    owner_role_id = db.execute("SELECT id FROM roles WHERE name = 'owner'").fetchone()[0]
    staff_role_id = db.execute("SELECT id FROM roles WHERE name = 'staff'").fetchone()[0]

    # Owner gets all permissions
    for perm in db.execute('SELECT id FROM permissions').fetchall():
        db.execute('INSERT INTO role_permissions (role_id, permission_id) VALUES (?, ?)',
                   (owner_role_id, perm[0]))

    # Staff gets everything except hard delete and slot management
    staff_perms = db.execute('''
        SELECT id FROM permissions
        WHERE code NOT IN ('hotel.bookings.delete', 'hotel.rooms.manage')
    ''').fetchall()
    for perm in staff_perms:
        db.execute('INSERT INTO role_permissions (role_id, permission_id) VALUES (?, ?)',
                   (staff_role_id, perm[0]))

    # 4. Create Default Users
    admin_password = current_app.config.get('ADMIN_PASSWORD', 'admin123')
    db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role_id, active)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', ('admin', 'admin@hotel-backoffice.local', generate_password_hash(admin_password),
          'System Administrator', owner_role_id, 1))

    db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role_id, active)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', ('frontdesk', 'frontdesk@hotel-backoffice.local',
          generate_password_hash(os.environ.get('STAFF_PASSWORD', 'frontdesk123')),
          'Front Desk', staff_role_id, 1))


def seed_demo_data(db):
    """
    Insert a demo hotel catalog for local development.

    Creates one hotel with three room types, amenities, and a maintenance
    block expressed as availability slots for next week.
    """
    cursor = db.execute('''
        INSERT INTO hotels (name, code, alt_name, address)
        VALUES (?, ?, ?, ?)
    ''', ('Seaside Grand', 'SSG', 'Grand Hotel del Mar', '1 Ocean Drive'))
    hotel_id = cursor.lastrowid

    rooms_data = [
        ('STD', 'Standard Double', 'ROOM_ONLY', 10, 2, 100.0, 85.0),
        ('DLX', 'Deluxe Sea View', 'BED_BREAKFAST', 5, 2, 180.0, 150.0),
        ('FAM', 'Family Suite', 'HALF_BOARD', 3, 4, 260.0, None),
    ]

    room_ids = []
    for room_type, description, board_type, quantity, capacity, base, alternative in rooms_data:
        cursor = db.execute('''
            INSERT INTO rooms (hotel_id, room_type, room_type_description, board_type,
                               quantity, capacity, base_price, alternative_price)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?)
        ''', (hotel_id, room_type, description, board_type, quantity, capacity, base, alternative))
        room_ids.append(cursor.lastrowid)

    for room_id in room_ids:
        for name, icon in (('Wi-Fi', 'fa-wifi'), ('Air conditioning', 'fa-snowflake')):
            db.execute('INSERT INTO room_amenities (room_id, name, icon) VALUES (?, ?, ?)',
                       (room_id, name, icon))

    # Two deluxe units out of service next week
    start = date.today() + timedelta(days=7)
    for offset in range(3):
        db.execute('''
            INSERT INTO availability_slots (room_id, date, available_count, blocked_count)
            VALUES (?, ?, ?, ?)
        ''', (room_ids[1], (start + timedelta(days=offset)).isoformat(), 3, 2))

    return hotel_id
