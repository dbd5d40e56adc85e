"""
Pytest configuration and shared fixtures.
"""

import sqlite3
from typing import Any, Dict, List

import pytest

from config import get_settings
from db_setup import init_db


@pytest.fixture
def db_path(tmp_path) -> str:
    """Fresh SQLite database with the Contact schema."""
    path = str(tmp_path / "contacts.db")
    init_db(path)
    return path


@pytest.fixture
def seed(db_path):
    """Insert a contact row directly, bypassing the reconciler."""

    def _seed(
        email=None,
        phone=None,
        precedence="primary",
        linked_id=None,
        created_at="2023-04-01T00:00:00",
        deleted_at=None,
    ) -> int:
        conn = sqlite3.connect(db_path)
        cursor = conn.execute(
            "INSERT INTO Contact (email, phoneNumber, linkedId, linkPrecedence, createdAt, updatedAt, deletedAt) "
            "VALUES (?, ?, ?, ?, ?, ?, ?)",
            (email, phone, linked_id, precedence, created_at, created_at, deleted_at),
        )
        conn.commit()
        contact_id = cursor.lastrowid
        conn.close()
        return contact_id

    return _seed


@pytest.fixture
def rows(db_path):
    """Read back every Contact row ordered by id."""

    def _rows() -> List[Dict[str, Any]]:
        conn = sqlite3.connect(db_path)
        conn.row_factory = sqlite3.Row
        result = [dict(r) for r in conn.execute("SELECT * FROM Contact ORDER BY id")]
        conn.close()
        return result

    return _rows


@pytest.fixture
def settings_env(db_path, monkeypatch):
    """Point the cached settings at the temporary database."""
    monkeypatch.setenv("DATABASE_PATH", db_path)
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    get_settings.cache_clear()
    yield get_settings()
    get_settings.cache_clear()
