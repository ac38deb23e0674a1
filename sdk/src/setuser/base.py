"""Errors and shared database plumbing for setuser.

Provides the exception hierarchy raised by the identity-switch guard and the
command interceptor, plus the cursor helpers used by the PostgreSQL adapters.
"""

from __future__ import annotations

from typing import Any

import psycopg
from psycopg.rows import dict_row, kwargs_row

# Known row factories that return dict-like objects (iteration yields keys, not values)
_DICT_LIKE_FACTORIES = frozenset({dict_row, kwargs_row})

# SQLSTATE to exception class mapping
# Reference: https://www.postgresql.org/docs/current/errcodes-appendix.html
_SQLSTATE_EXCEPTIONS: dict[
    str, type[SetUserError]
] = {}  # Populated after class definitions


class SetUserError(Exception):
    """Base exception for setuser operations."""

    def __init__(self, message: str, sqlstate: str | None = None):
        super().__init__(message)
        self.sqlstate = sqlstate


class AlreadySwitchedError(SetUserError):
    """Raised when switching while a previous switch has not been reset."""

    def __init__(self, message: str = "must reset previous user prior to setting again"):
        super().__init__(message)


class NotSwitchedError(SetUserError):
    """Raised when resetting a session that never switched."""

    def __init__(self, message: str = "must set user prior to resetting"):
        super().__init__(message)


class UnknownPrincipalError(SetUserError):
    """Raised when the target role cannot be found."""

    def __init__(self, name: str):
        super().__init__(f'role "{name}" does not exist', sqlstate="42704")
        self.name = name


class PolicyBlockedError(SetUserError):
    """Raised when a command is blocked while a switch is active.

    ``command_kind`` names the blocked class ("alter-system-class" or
    "copy-program").
    """

    def __init__(self, command_kind: str, message: str):
        super().__init__(message, sqlstate="42501")
        self.command_kind = command_kind


class InvalidInvocationError(SetUserError):
    """Raised when set_user is called with an unsupported argument shape."""

    def __init__(self, message: str = "unexpected argument combination"):
        super().__init__(message)


class InvalidSettingError(SetUserError):
    """Raised when a setting holds a value of the wrong type."""

    def __init__(self, message: str, sqlstate: str | None = "22023"):
        super().__init__(message, sqlstate)


# Populate SQLSTATE mapping after classes are defined
_SQLSTATE_EXCEPTIONS.update(
    {
        "22023": InvalidSettingError,  # invalid_parameter_value
    }
)


class PgClient:
    """Shared cursor helpers for the PostgreSQL adapters.

    Provides:
    - Database helper methods (_scalar, _fetchone, _execute)
    - Error handling with SQLSTATE preservation
    """

    _error_class: type[SetUserError] = SetUserError

    def __init__(self, cursor: psycopg.Cursor[tuple[Any, ...]]) -> None:
        """Initialize the client.

        Args:
            cursor: A psycopg3 cursor with default (tuple) row factory.

        Raises:
            ValueError: If cursor has a dict-returning row factory.
        """
        if (
            hasattr(cursor, "row_factory")
            and cursor.row_factory in _DICT_LIKE_FACTORIES
        ):
            raise ValueError(
                "setuser requires tuple row factory (the default). "
                "Remove row_factory=dict_row or kwargs_row from your cursor/connection."
            )

        self.cursor = cursor

    def _handle_error(self, e: psycopg.Error) -> None:
        """Convert psycopg errors to setuser exceptions, preserving SQLSTATE."""
        sqlstate = getattr(e, "sqlstate", None)
        message = str(e)

        # Use specific exception class if we have one for this SQLSTATE
        exc_class = _SQLSTATE_EXCEPTIONS.get(sqlstate, self._error_class)

        raise exc_class(message, sqlstate) from e

    def _execute(self, sql: Any, params: tuple[Any, ...] = ()) -> None:
        """Execute SQL, discarding any result."""
        try:
            self.cursor.execute(sql, params)
        except psycopg.Error as e:
            self._handle_error(e)

    def _scalar(self, sql: Any, params: tuple[Any, ...]) -> Any:
        """Execute SQL and return single scalar value."""
        try:
            self.cursor.execute(sql, params)
            result = self.cursor.fetchone()
            return result[0] if result else None
        except psycopg.Error as e:
            self._handle_error(e)

    def _fetchone(self, sql: Any, params: tuple[Any, ...]) -> tuple[Any, ...] | None:
        """Execute SQL and return the first row as a tuple."""
        try:
            self.cursor.execute(sql, params)
            return self.cursor.fetchone()
        except psycopg.Error as e:
            self._handle_error(e)
