import logging
import sqlite3
from contextlib import contextmanager

from config import get_settings

logger = logging.getLogger(__name__)


def _resolve_db_name(db_name=None):
    return db_name or get_settings().DATABASE_PATH


def init_db(db_name=None):
    conn = sqlite3.connect(_resolve_db_name(db_name))
    cursor = conn.cursor()

    cursor.execute('''
        CREATE TABLE IF NOT EXISTS Contact (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            phoneNumber TEXT,
            email TEXT,
            linkedId INTEGER,
            linkPrecedence TEXT NOT NULL CHECK(linkPrecedence IN ('secondary', 'primary')),
            createdAt DATETIME DEFAULT CURRENT_TIMESTAMP,
            updatedAt DATETIME DEFAULT CURRENT_TIMESTAMP,
            deletedAt DATETIME,
            FOREIGN KEY (linkedId) REFERENCES Contact (id)
        )
    ''')
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_contact_email ON Contact (email)")
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_contact_phone ON Contact (phoneNumber)")
    cursor.execute("CREATE INDEX IF NOT EXISTS ix_contact_linked ON Contact (linkedId)")
    conn.commit()

    conn.close()
    logger.debug("Contact schema ready in %s", _resolve_db_name(db_name))


def get_db_connection(db_name=None):
    settings = get_settings()
    # isolation_level=None: transactions are opened explicitly in transaction()
    conn = sqlite3.connect(
        _resolve_db_name(db_name),
        timeout=settings.DB_TIMEOUT,
        isolation_level=None,
    )
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


@contextmanager
def transaction(db_name=None):
    """Yield a connection inside a write-locked transaction; commit or roll back on exit."""
    conn = get_db_connection(db_name)
    try:
        # IMMEDIATE takes the write lock up front so lookup-then-insert cannot race
        conn.execute("BEGIN IMMEDIATE")
        try:
            yield conn
        except BaseException:
            conn.rollback()
            logger.debug("Transaction rolled back")
            raise
        conn.commit()
    finally:
        conn.close()
