"""
Database schema definitions.
Table creation, indexes, and structure management.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'audit_log',
        'payments',
        'bookings',
        'guests',
        'availability_slots',
        'room_amenities',
        'rooms',
        'hotels',
        'role_permissions',
        'permissions',
        'roles',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Users & Auth Tables
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role_id INTEGER REFERENCES roles(id),
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            last_login TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE roles (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            display_name TEXT NOT NULL,
            description TEXT,
            is_system INTEGER DEFAULT 0,
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE permissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            code TEXT UNIQUE NOT NULL,
            name TEXT NOT NULL,
            description TEXT,
            module TEXT NOT NULL,
            active INTEGER DEFAULT 1
        )
    ''')

    db.execute('''
        CREATE TABLE role_permissions (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            role_id INTEGER NOT NULL REFERENCES roles(id) ON DELETE CASCADE,
            permission_id INTEGER NOT NULL REFERENCES permissions(id) ON DELETE CASCADE,
            granted_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(role_id, permission_id)
        )
    ''')

    # 2. Catalog Tables
    db.execute('''
        CREATE TABLE hotels (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            code TEXT UNIQUE NOT NULL,
            alt_name TEXT,
            address TEXT,
            active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    db.execute('''
        CREATE TABLE rooms (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            hotel_id INTEGER NOT NULL REFERENCES hotels(id),
            room_type TEXT NOT NULL,
            room_type_description TEXT,
            alt_description TEXT,
            board_type TEXT NOT NULL DEFAULT 'ROOM_ONLY'
                CHECK(board_type IN ('ROOM_ONLY', 'BED_BREAKFAST', 'HALF_BOARD', 'FULL_BOARD')),
            quantity INTEGER NOT NULL CHECK(quantity > 0),
            capacity INTEGER DEFAULT 2,
            base_price REAL NOT NULL CHECK(base_price > 0),
            alternative_price REAL CHECK(alternative_price IS NULL OR alternative_price > 0),
            available_from TEXT,
            available_to TEXT,
            is_active INTEGER DEFAULT 1,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK(available_from IS NULL OR available_to IS NULL OR available_from < available_to)
        )
    ''')

    db.execute('''
        CREATE TABLE room_amenities (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            room_id INTEGER NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
            name TEXT NOT NULL,
            icon TEXT
        )
    ''')

    db.execute('''
        CREATE TABLE availability_slots (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            room_id INTEGER NOT NULL REFERENCES rooms(id) ON DELETE CASCADE,
            date TEXT NOT NULL,
            available_count INTEGER NOT NULL DEFAULT 0 CHECK(available_count >= 0),
            blocked_count INTEGER NOT NULL DEFAULT 0 CHECK(blocked_count >= 0),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            UNIQUE(room_id, date)
        )
    ''')

    # 3. Guests
    db.execute('''
        CREATE TABLE guests (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            profile_id TEXT UNIQUE NOT NULL,
            first_name TEXT DEFAULT '',
            last_name TEXT DEFAULT '',
            full_name TEXT DEFAULT '',
            email TEXT,
            phone TEXT,
            telephone TEXT,
            nationality TEXT,
            passport_number TEXT,
            date_of_birth TEXT,
            gender TEXT,
            address TEXT,
            city TEXT,
            country TEXT,
            company TEXT,
            guest_classification TEXT,
            travel_agent TEXT,
            source TEXT,
            guest_group TEXT,
            is_vip INTEGER DEFAULT 0,
            notes TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 4. Bookings & Payments
    db.execute('''
        CREATE TABLE bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            res_id TEXT UNIQUE NOT NULL,
            hotel_id INTEGER NOT NULL REFERENCES hotels(id),
            room_id INTEGER NOT NULL REFERENCES rooms(id),
            guest_id INTEGER NOT NULL REFERENCES guests(id),
            number_of_rooms INTEGER NOT NULL DEFAULT 1 CHECK(number_of_rooms > 0),
            check_in_date TEXT NOT NULL,
            check_out_date TEXT NOT NULL,
            number_of_nights INTEGER NOT NULL,
            room_rate REAL NOT NULL,
            alternative_rate REAL,
            use_alternative_rate INTEGER DEFAULT 0,
            total_amount REAL NOT NULL,
            rate_code TEXT DEFAULT 'STANDARD',
            status TEXT NOT NULL DEFAULT 'PENDING'
                CHECK(status IN ('PENDING', 'CONFIRMED', 'CHECKED_IN', 'CHECKED_OUT', 'CANCELLED')),
            check_in_time TIMESTAMP,
            check_out_time TIMESTAMP,
            assigned_room_no TEXT,
            special_requests TEXT DEFAULT '[]',
            notes TEXT,
            version INTEGER NOT NULL DEFAULT 1,
            created_by INTEGER REFERENCES users(id),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            CHECK(check_in_date < check_out_date)
        )
    ''')

    db.execute('''
        CREATE TABLE payments (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL REFERENCES bookings(id),
            method TEXT NOT NULL CHECK(method IN ('CASH', 'CREDIT')),
            total_amount REAL NOT NULL,
            paid_amount REAL NOT NULL DEFAULT 0,
            remaining_amount REAL NOT NULL DEFAULT 0,
            payment_date TEXT,
            remaining_due_date TEXT,
            status TEXT NOT NULL CHECK(status IN ('COMPLETED', 'PARTIALLY_PAID')),
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP,
            updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')

    # 5. Audit
    db.execute('''
        CREATE TABLE audit_log (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            user_id INTEGER,
            action TEXT NOT NULL,
            entity_type TEXT,
            entity_id INTEGER,
            changes TEXT,
            ip_address TEXT,
            user_agent TEXT,
            created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
        )
    ''')


def create_indexes(db):
    """Create performance indexes."""

    # Catalog indexes
    db.execute('CREATE INDEX idx_rooms_hotel ON rooms(hotel_id, is_active)')
    db.execute('CREATE INDEX idx_slots_room_date ON availability_slots(room_id, date)')

    # Guest indexes
    db.execute('CREATE INDEX idx_guests_name ON guests(full_name)')
    db.execute('CREATE INDEX idx_guests_email ON guests(email)')

    # Booking indexes (overlap queries filter on room + status + dates)
    db.execute('CREATE INDEX idx_bookings_room_dates ON bookings(room_id, status, check_in_date, check_out_date)')
    db.execute('CREATE INDEX idx_bookings_guest ON bookings(guest_id)')
    db.execute('CREATE INDEX idx_bookings_hotel ON bookings(hotel_id)')
    db.execute('CREATE INDEX idx_payments_booking ON payments(booking_id, created_at)')

    # Permission indexes
    db.execute('CREATE INDEX idx_permissions_code ON permissions(code)')
    db.execute('CREATE INDEX idx_role_perms ON role_permissions(role_id, permission_id)')

    # Audit indexes
    db.execute('CREATE INDEX idx_audit_entity ON audit_log(entity_type, entity_id)')
