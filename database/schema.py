"""
Database schema definitions.
Table creation, indexes, and structure management.

Timestamps are stored as TEXT holding UTC ISO-8601 values, so ordering and
range comparisons can be done with plain string comparison.
"""


def drop_tables(db):
    """Drop all existing tables."""
    # Disable foreign key constraints before dropping
    db.execute('PRAGMA foreign_keys = OFF')

    tables = [
        'turf_booking_status_history',
        'turf_blocked_slots',
        'turf_bookings',
        'turf_grounds',
        'users'
    ]

    for table in tables:
        db.execute(f'DROP TABLE IF EXISTS {table}')

    # Re-enable foreign key constraints
    db.execute('PRAGMA foreign_keys = ON')


def create_tables(db):
    """Create all database tables."""

    # 1. Operator users
    db.execute('''
        CREATE TABLE users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT UNIQUE NOT NULL,
            email TEXT UNIQUE NOT NULL,
            password_hash TEXT NOT NULL,
            full_name TEXT,
            role TEXT NOT NULL DEFAULT 'admin',
            active INTEGER DEFAULT 1,
            created_at TEXT NOT NULL,
            last_login TEXT
        )
    ''')

    # 2. Grounds (pricing is a JSON object keyed by day type and half)
    db.execute('''
        CREATE TABLE turf_grounds (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT UNIQUE NOT NULL,
            description TEXT,
            pricing TEXT NOT NULL DEFAULT '{}',
            display_order INTEGER DEFAULT 0,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    ''')

    # 3. Bookings
    db.execute('''
        CREATE TABLE turf_bookings (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            customer_name TEXT NOT NULL,
            phone TEXT NOT NULL,
            email TEXT NOT NULL,
            ground_id INTEGER NOT NULL REFERENCES turf_grounds(id),
            booking_date TEXT NOT NULL,
            start_time TEXT NOT NULL,
            end_time TEXT NOT NULL,
            duration INTEGER NOT NULL CHECK(duration >= 1),
            total_amount INTEGER NOT NULL DEFAULT 0,
            payment_status TEXT NOT NULL DEFAULT 'pending'
                CHECK(payment_status IN ('pending', 'processing', 'paid', 'failed', 'refunded')),
            booking_type TEXT NOT NULL DEFAULT 'online'
                CHECK(booking_type IN ('online', 'offline')),
            gateway_order_id TEXT UNIQUE,
            gateway_payment_id TEXT UNIQUE,
            gateway_signature TEXT,
            payment_method TEXT,
            payment_attempts INTEGER NOT NULL DEFAULT 0,
            payment_failure_reason TEXT,
            payment_completed_at TEXT,
            created_by INTEGER REFERENCES users(id),
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL,
            CHECK(end_time > start_time)
        )
    ''')

    # 4. Admin blocked slots (ground_id NULL blocks every ground)
    db.execute('''
        CREATE TABLE turf_blocked_slots (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            block_date TEXT NOT NULL,
            time_slot TEXT NOT NULL,
            ground_id INTEGER REFERENCES turf_grounds(id),
            reason TEXT NOT NULL DEFAULT 'Blocked by admin',
            blocked_by INTEGER REFERENCES users(id),
            is_active INTEGER NOT NULL DEFAULT 1,
            created_at TEXT NOT NULL,
            updated_at TEXT NOT NULL
        )
    ''')

    # 5. Booking status history
    db.execute('''
        CREATE TABLE turf_booking_status_history (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            booking_id INTEGER NOT NULL REFERENCES turf_bookings(id) ON DELETE CASCADE,
            from_status TEXT,
            to_status TEXT NOT NULL,
            reason TEXT,
            changed_by INTEGER REFERENCES users(id),
            created_at TEXT NOT NULL
        )
    ''')


def create_indexes(db):
    """Create database indexes for performance."""
    db.execute('CREATE INDEX idx_bookings_ground_date ON turf_bookings(ground_id, booking_date)')
    db.execute('CREATE INDEX idx_bookings_status ON turf_bookings(payment_status)')
    db.execute('CREATE INDEX idx_bookings_interval ON turf_bookings(start_time, end_time)')
    db.execute('CREATE INDEX idx_bookings_phone ON turf_bookings(phone)')
    db.execute('CREATE INDEX idx_bookings_email ON turf_bookings(email)')
    db.execute('CREATE INDEX idx_bookings_created ON turf_bookings(created_at)')
    db.execute('CREATE INDEX idx_blocked_date ON turf_blocked_slots(block_date, is_active)')
    db.execute('CREATE INDEX idx_history_booking ON turf_booking_status_history(booking_id)')
