"""
Database seed data.
Initial data population for fresh database installations.
"""

import json

from werkzeug.security import generate_password_hash

from utils.datetime_helpers import get_now, to_storage


GROUNDS_SEED = [
    (
        'G1',
        'Individual ground 1',
        {'Weekday_first_half': 1000, 'Weekday_second_half': 1200,
         'Weekend_first_half': 1500, 'Weekend_second_half': 1800},
        1
    ),
    (
        'G2',
        'Individual ground 2',
        {'Weekday_first_half': 1000, 'Weekday_second_half': 1200,
         'Weekend_first_half': 1500, 'Weekend_second_half': 1800},
        2
    ),
    (
        'Mega_Ground',
        'Combined ground covering G1 and G2',
        {'Weekday_first_half': 1800, 'Weekday_second_half': 2200,
         'Weekend_first_half': 2800, 'Weekend_second_half': 3400},
        3
    ),
]


def seed_database(db):
    """Insert initial seed data."""
    now = to_storage(get_now())

    # 1. Grounds with default pricing
    for name, description, pricing, display_order in GROUNDS_SEED:
        db.execute('''
            INSERT INTO turf_grounds (name, description, pricing, display_order, created_at, updated_at)
            VALUES (?, ?, ?, ?, ?, ?)
        ''', (name, description, json.dumps(pricing), display_order, now, now))

    # 2. Default operator account (password must be changed after first login)
    db.execute('''
        INSERT INTO users (username, email, password_hash, full_name, role, created_at)
        VALUES (?, ?, ?, ?, ?, ?)
    ''', ('admin', 'admin@turfbook.local', generate_password_hash('admin123'),
          'Administrator', 'admin', now))
