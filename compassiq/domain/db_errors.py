from __future__ import annotations

from typing import Any


DEFAULT_ERROR_MESSAGE = "An unexpected error occurred"

PG_UNIQUE_VIOLATION = "23505"
PG_FOREIGN_KEY_VIOLATION = "23503"
PG_NOT_NULL_VIOLATION = "23502"
PG_RAISE_EXCEPTION = "P0001"
PG_INSUFFICIENT_PRIVILEGE = "42501"
POSTGREST_NO_ROWS = "PGRST116"

_MESSAGES_BY_CODE = {
    PG_UNIQUE_VIOLATION: "This record already exists. Please use a different value.",
    PG_FOREIGN_KEY_VIOLATION: "Cannot delete this record because it is referenced by other records.",
    PG_NOT_NULL_VIOLATION: "Required fields are missing.",
    PG_INSUFFICIENT_PRIVILEGE: "You do not have permission to perform this action.",
    POSTGREST_NO_ROWS: "Record not found.",
}


def db_error_code(error: Any) -> str | None:
    code = getattr(error, "code", None)
    if code is None and isinstance(error, dict):
        code = error.get("code")
    return str(code) if code else None


def _db_error_message(error: Any) -> str | None:
    message = getattr(error, "message", None)
    if message is None and isinstance(error, dict):
        message = error.get("message")
    return str(message) if message else None


def normalize_db_error(error: Any) -> str:
    """Turn a PostgREST/Postgres error into a message safe to show a user."""
    if not error:
        return DEFAULT_ERROR_MESSAGE
    if isinstance(error, str):
        return error

    code = db_error_code(error)
    message = _db_error_message(error)
    if code:
        if code == PG_RAISE_EXCEPTION:
            return message or "Operation failed"
        if code in _MESSAGES_BY_CODE:
            return _MESSAGES_BY_CODE[code]
        return message or f"Error: {code}"
    return message or DEFAULT_ERROR_MESSAGE


def is_read_only_violation(error: Any) -> bool:
    """True when the store rejected a write against a demo/read-only org."""
    if not error:
        return False
    if db_error_code(error) == PG_INSUFFICIENT_PRIVILEGE:
        return True
    message = (_db_error_message(error) or "").lower()
    return "demo" in message or "read-only" in message
