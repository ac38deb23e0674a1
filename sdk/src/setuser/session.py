"""
setuser.session - Session context and process-wide installation.

This module provides:
- Session: per-session switch state, active identity and command submission
- SetUser: policy flags and the interceptor, installed once per process
"""

from __future__ import annotations

import logging
from typing import Any

from setuser.audit import LoggingAuditSink
from setuser.base import SetUserError
from setuser.guard import IdentitySwitchGuard
from setuser.memory import SessionSettings
from setuser.models import Command, ExecutionContext, Identity, PolicyFlags, SwitchState
from setuser.pipeline import CommandInterceptor, CommandPipeline
from setuser.ports import AuditSink, ConfigurationStore, PrincipalDirectory
from setuser.settings import DEFINITIONS, reload_flags
from setuser.statements import classify

__all__ = [
    "Session",
    "SetUser",
]

log = logging.getLogger(__name__)


class Session:
    """
    One client session: who it is acting as and whether it has switched.

    Example:
        with Session(admin, directory=d, settings=s, pipeline=p) as session:
            session.set_user("alice")
            session.execute("SELECT 1")
            session.set_user()
    """

    def __init__(
        self,
        identity: Identity,
        *,
        directory: PrincipalDirectory,
        settings: ConfigurationStore,
        pipeline: CommandPipeline,
        audit: AuditSink | None = None,
    ):
        self.identity = identity
        self.settings = settings
        self.pipeline = pipeline
        self.state = SwitchState()
        self.guard = IdentitySwitchGuard(
            self, directory, settings, audit or LoggingAuditSink()
        )
        self.closed = False

    def set_user(self, *args: object) -> str:
        """set_user('name') switches, set_user() or set_user(None) resets."""
        return self.guard(*args)

    def assume(self, identity: Identity) -> None:
        """Make ``identity`` the active role for subsequent commands."""
        self.identity = identity

    def submit(
        self,
        command: Command,
        params: Any = None,
        destination: Any = None,
    ) -> Any:
        """Run one classified command through the pipeline."""
        context = ExecutionContext(self, params, destination)
        return self.pipeline.run(command, context)

    def execute(
        self,
        query: str,
        params: Any = None,
        destination: Any = None,
    ) -> Any:
        """Classify SQL text and submit each statement in order.

        Args:
            query: One or more SQL statements
            params: Query parameters (single-statement text only)
            destination: Passed to the executor (e.g. a cursor)

        Returns:
            The executor's result for the last statement, or None for empty text

        Raises:
            ValueError: If params are given for multi-statement text
        """
        commands = classify(query, params)

        result = None
        for command in commands:
            result = self.submit(command, params, destination)
        return result

    @classmethod
    def session_settings(
        cls, shared: ConfigurationStore, **kwargs: Any
    ) -> ConfigurationStore:
        """Settings for a new session when none are given: a private view of
        ``shared``."""
        return SessionSettings(shared)

    def close(self) -> None:
        """End the session, resetting any switch still in effect.

        The session counts as closed even if the implicit reset fails; the
        reset error propagates.
        """
        if self.closed:
            return
        self.closed = True
        if self.state.active:
            log.warning(
                "Session for %s closing while switched; resetting to %s",
                self.identity.name,
                self.state.original_identity.name,
            )
            self.guard.reset()

    def __enter__(self) -> Session:
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


class SetUser:
    """
    Process-wide set_user installation.

    Owns the policy flags and the interceptor shared by every session.

    Example:
        setuser = SetUser(settings)
        setuser.load(pipeline)

        session = setuser.open_session(admin, directory=directory)
        session.set_user("alice")

        settings.set("set_user.block_copy_program", "on", SettingScope.SESSION)
        setuser.reload()

        setuser.unload()
    """

    def __init__(self, settings: ConfigurationStore, audit: AuditSink | None = None):
        self.settings = settings
        self.audit = audit or LoggingAuditSink()
        self.flags = PolicyFlags()
        self.interceptor = CommandInterceptor(self.flags, self.audit)
        self.pipeline: CommandPipeline | None = None

    def load(self, pipeline: CommandPipeline) -> None:
        """Define the set_user settings, read them, and mount the interceptor."""
        for definition in DEFINITIONS:
            self.settings.define(definition)
        self.reload()
        self.interceptor.install(pipeline)
        self.pipeline = pipeline
        log.info("set_user loaded")

    def unload(self) -> None:
        """Unmount the interceptor, restoring the previous hook."""
        self.interceptor.uninstall()
        self.pipeline = None
        log.info("set_user unloaded")

    def reload(self) -> PolicyFlags:
        """Re-read the policy flags; takes effect from the next command."""
        return reload_flags(self.flags, self.settings)

    def open_session(
        self,
        identity: Identity | None = None,
        *,
        directory: PrincipalDirectory,
        settings: ConfigurationStore | None = None,
        session_class: type[Session] = Session,
        **kwargs: Any,
    ) -> Session:
        """Create a session attached to this installation's pipeline.

        Args:
            identity: Role the session starts as (omit for session classes
                that discover it themselves)
            directory: Role lookup for set_user()
            settings: Session settings (default: session_class.session_settings,
                which keeps session-scoped writes private to the session)
            session_class: Session subclass to construct
            **kwargs: Extra arguments for session_class
        """
        if self.pipeline is None:
            raise SetUserError("set_user is not loaded")
        if settings is None:
            settings = session_class.session_settings(self.settings, **kwargs)
        if identity is not None:
            kwargs["identity"] = identity
        return session_class(
            directory=directory,
            settings=settings,
            pipeline=self.pipeline,
            audit=self.audit,
            **kwargs,
        )
