"""
SQLite access for the back office.

Every app context (one request, one CLI command or one availability worker)
gets its own connection in `g`; booking writes open their own
BEGIN IMMEDIATE transaction on it.
"""

import sqlite3
import logging
from flask import g, current_app

logger = logging.getLogger(__name__)


def get_db():
    """
    Return the context's connection, opening it on first use.

    Rows come back as sqlite3.Row; foreign keys are enforced and the
    database runs in WAL mode so availability reads do not block writers.
    """
    if 'db' not in g:
        db_path = current_app.config.get('DATABASE_PATH', 'instance/hotel_backoffice.db')
        g.db = sqlite3.connect(
            db_path,
            detect_types=sqlite3.PARSE_DECLTYPES,
            timeout=current_app.config.get('DATABASE_TIMEOUT', 10)
        )
        g.db.row_factory = sqlite3.Row
        g.db.execute('PRAGMA foreign_keys = ON')
        g.db.execute('PRAGMA journal_mode = WAL')
    return g.db


def close_db(e=None):
    """Teardown hook: close the context's connection if one was opened."""
    db = g.pop('db', None)
    if db is not None:
        db.close()


def init_db():
    """
    Rebuild the schema and load roles, permissions and the default users.

    Destroys all hotels, rooms, bookings, guests and payments. Demo
    inventory is loaded separately with `flask seed-demo`.
    """
    from database.schema import drop_tables, create_tables, create_indexes
    from database.seed import seed_database

    db = get_db()

    drop_tables(db)
    create_tables(db)
    create_indexes(db)
    seed_database(db)

    db.commit()
    logger.info('Database initialized at %s', current_app.config.get('DATABASE_PATH'))
