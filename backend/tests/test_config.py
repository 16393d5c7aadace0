"""
Tests for settings assembly and domain error mapping.
"""

import pytest
from sqlalchemy.engine import make_url

from ticketing.core.config import Settings
from ticketing.core.errors import (
    ErrorCode,
    InsufficientInventoryError,
    StorageError,
    TicketNotFoundError,
    ValidationError,
)


def make_settings(**overrides) -> Settings:
    values = {"DATABASE_URL": None}
    values.update(overrides)
    return Settings(_env_file=None, **values)


def test_database_url_from_parts():
    settings = make_settings(
        DB_HOST="db.internal", DB_PORT=6543, DB_USER="svc", DB_PASSWORD="pw", DB_NAME="inventory"
    )
    assert settings.database_url == "postgresql+asyncpg://svc:pw@db.internal:6543/inventory"
    assert settings.database_url_sync == "postgresql://svc:pw@db.internal:6543/inventory"


def test_database_url_wins_over_parts():
    settings = make_settings(DATABASE_URL="sqlite+aiosqlite:///./tickets.db", DB_HOST="ignored")
    assert settings.database_url == "sqlite+aiosqlite:///./tickets.db"
    assert settings.database_url_sync == "sqlite:///./tickets.db"


def test_lock_mode_is_validated():
    assert make_settings(TICKET_LOCK_MODE="local").TICKET_LOCK_MODE == "local"
    with pytest.raises(ValueError):
        make_settings(TICKET_LOCK_MODE="optimistic")


@pytest.mark.parametrize(
    "error,code,status",
    [
        (ValidationError("quantity must be an integer >= 1"), ErrorCode.VALIDATION_ERROR, 400),
        (TicketNotFoundError(7), ErrorCode.TICKET_NOT_FOUND, 404),
        (InsufficientInventoryError(7, 3, 1), ErrorCode.INSUFFICIENT_INVENTORY, 400),
        (StorageError("Failed to commit transaction", operation="commit"), ErrorCode.STORAGE_ERROR, 500),
    ],
)
def test_error_taxonomy(error, code, status):
    assert error.code is code
    assert error.status_code == status
    assert str(error).startswith(code.value)


def test_database_url_escapes_password():
    settings = make_settings(DB_USER="svc", DB_PASSWORD="p@ss:w/rd", DB_HOST="db.internal", DB_NAME="inventory")

    url = make_url(settings.database_url)
    assert url.password == "p@ss:w/rd"
    assert url.host == "db.internal"
    assert url.database == "inventory"

    sync_url = make_url(settings.database_url_sync)
    assert sync_url.drivername == "postgresql"
    assert sync_url.password == "p@ss:w/rd"
