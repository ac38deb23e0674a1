"""
setuser.postgres - psycopg adapters.

Runs set_user against a live PostgreSQL connection: roles come from
pg_roles, settings from current_setting()/set_config(), and the active role
is changed with SET ROLE.

Example:
    conn = psycopg.connect(dsn, autocommit=True)
    pipeline = CommandPipeline(standard_execute)

    setuser = SetUser(PgSettings(conn.cursor()))
    setuser.load(pipeline)

    session = setuser.open_session(
        directory=PgRoleDirectory(conn.cursor()),
        settings=PgSettings(conn.cursor()),
        session_class=PgSession,
        connection=conn,
    )
    session.set_user("alice")
    session.execute("SELECT current_user")
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import Any, Iterator

import psycopg
from psycopg import sql

from setuser.base import PgClient, SetUserError
from setuser.models import Command, ExecutionContext, Identity, SettingScope
from setuser.pipeline import CommandPipeline
from setuser.ports import AuditSink, ConfigurationStore, PrincipalDirectory
from setuser.session import Session

__all__ = [
    "PgRoleDirectory",
    "PgSession",
    "PgSettings",
    "standard_execute",
]

log = logging.getLogger(__name__)


def standard_execute(command: Command, context: ExecutionContext) -> Any:
    """Default executor: run the statement on the context's cursor.

    Driver errors propagate unchanged.
    """
    cursor = context.destination
    if cursor is None:
        raise SetUserError("no destination cursor to execute on")
    cursor.execute(command.query, context.params)
    context.completion_tag = cursor.statusmessage
    return cursor


class PgRoleDirectory(PgClient, PrincipalDirectory):
    """Role lookup in pg_catalog.pg_roles."""

    def resolve(self, name: str) -> Identity | None:
        row = self._fetchone(
            "SELECT rolname, rolsuper FROM pg_catalog.pg_roles WHERE rolname = %s",
            (name,),
        )
        if row is None:
            return None
        return Identity(row[0], bool(row[1]))


class PgSettings(PgClient, ConfigurationStore):
    """Settings read with current_setting() and written with set_config().

    Writes run as the session user, so superuser-only parameters such as
    log_statement can be changed while a less privileged role is active.
    """

    def get(self, key: str, missing_ok: bool = False) -> str | None:
        return self._scalar("SELECT current_setting(%s, %s)", (key, missing_ok))

    def set(self, key: str, value: str, scope: SettingScope) -> None:
        with self._as_session_user():
            self._scalar(
                "SELECT set_config(%s, %s, %s)",
                (key, value, scope is SettingScope.TRANSACTION),
            )

    @contextmanager
    def _as_session_user(self) -> Iterator[None]:
        row = self._fetchone("SELECT current_user, session_user", ())
        current, session = row
        if current == session:
            yield
            return

        self._execute("RESET ROLE")
        try:
            yield
        finally:
            self._execute(sql.SQL("SET ROLE {}").format(sql.Identifier(current)))


class PgSession(Session):
    """Session bound to a psycopg connection.

    The starting identity is the connection's current_user. Commands default
    to running on the session's own cursor.
    """

    def __init__(
        self,
        connection: psycopg.Connection,
        *,
        directory: PrincipalDirectory,
        settings: ConfigurationStore,
        pipeline: CommandPipeline,
        audit: AuditSink | None = None,
        identity: Identity | None = None,
    ):
        self.connection = connection
        self.cursor = connection.cursor()
        self._client = PgClient(self.cursor)
        if identity is None:
            identity = self._current_identity()
        super().__init__(
            identity,
            directory=directory,
            settings=settings,
            pipeline=pipeline,
            audit=audit,
        )

    @classmethod
    def session_settings(
        cls,
        shared: ConfigurationStore,
        *,
        connection: psycopg.Connection,
        **kwargs: Any,
    ) -> ConfigurationStore:
        """Settings on the session's own connection, not the installation's."""
        return PgSettings(connection.cursor())

    def _current_identity(self) -> Identity:
        row = self._client._fetchone(
            "SELECT rolname, rolsuper FROM pg_catalog.pg_roles "
            "WHERE rolname = current_user",
            (),
        )
        return Identity(row[0], bool(row[1]))

    def assume(self, identity: Identity) -> None:
        log.debug("SET ROLE %s", identity.name)
        self._client._execute(
            sql.SQL("SET ROLE {}").format(sql.Identifier(identity.name))
        )
        super().assume(identity)

    def submit(
        self,
        command: Command,
        params: Any = None,
        destination: Any = None,
    ) -> Any:
        return super().submit(command, params, destination or self.cursor)

    def close(self) -> None:
        try:
            super().close()
        finally:
            self.cursor.close()
