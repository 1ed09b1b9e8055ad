"""
Database connection management.
Handles per-request connections, write transactions, initialization and teardown.
"""

import logging
import sqlite3
from contextlib import contextmanager

from flask import g, current_app

from utils.errors import StorageError

logger = logging.getLogger(__name__)


def get_db():
    """
    Get the request's database connection with row factory.

    Returns:
        sqlite3.Connection: Database connection object
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/turfbook.db')
        g.db = sqlite3.connect(
            db_path,
            timeout=current_app.config.get('DATABASE_TIMEOUT', 10)
        )
        g.db.row_factory = sqlite3.Row
        # Enable foreign key constraints
        g.db.execute('PRAGMA foreign_keys = ON')
        # Enable WAL mode for better concurrency
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """
    Close database connection.

    Args:
        e: Exception if any (from Flask teardown context)
    """
    db = g.pop('db', None)
    if db is not None:
        db.close()


@contextmanager
def immediate_transaction():
    """
    Run a block inside a BEGIN IMMEDIATE transaction.

    The write lock is taken before the block runs, so a conflict check made
    inside it cannot be invalidated by a concurrent writer before commit.
    Commits on normal exit, rolls back on any exception. sqlite3 errors are
    logged and re-raised as StorageError.

    Usage:
        with immediate_transaction() as db:
            ...check...
            db.execute('INSERT ...')

    Yields:
        sqlite3.Connection
    """
    db = get_db()
    if db.in_transaction:
        db.commit()

    try:
        db.execute('BEGIN IMMEDIATE')
    except sqlite3.Error as e:
        logger.exception('Could not acquire database write lock')
        raise StorageError('Database is busy, please retry') from e

    try:
        yield db
        db.commit()
    except sqlite3.Error as e:
        db.rollback()
        logger.exception('Transaction failed')
        raise StorageError('Database error') from e
    except Exception:
        db.rollback()
        raise


def init_db():
    """
    Initialize database: drop existing tables, create new schema, insert seed data.
    WARNING: This will delete all existing data!
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    db = get_db()

    # Drop existing tables (in reverse order of dependencies)
    drop_tables(db)

    # Create all tables
    create_tables(db)

    # Create indexes
    create_indexes(db)

    # Insert seed data
    seed_database(db)

    db.commit()
    logger.info('Database initialized')
