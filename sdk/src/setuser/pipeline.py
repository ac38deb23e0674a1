"""Command pipeline mount point and the policy-enforcing interceptor."""

from __future__ import annotations

import logging
from typing import Any, Callable

from setuser.base import PolicyBlockedError, SetUserError
from setuser.models import Command, CommandKind, ExecutionContext, PolicyFlags
from setuser.ports import AuditSink

__all__ = [
    "CommandInterceptor",
    "CommandPipeline",
    "Executor",
]

log = logging.getLogger(__name__)

Executor = Callable[[Command, ExecutionContext], Any]


class CommandPipeline:
    """Runs commands through at most one mounted hook, else the standard executor.

    A hook that wants to chain remembers the previous value of ``hook`` when
    it is installed and calls it (or ``standard``) itself.
    """

    def __init__(self, standard: Executor):
        self.standard = standard
        self.hook: Executor | None = None

    def run(self, command: Command, context: ExecutionContext) -> Any:
        if self.hook is not None:
            return self.hook(command, context)
        return self.standard(command, context)


class CommandInterceptor:
    """Blocks configured command classes while the session is switched.

    Example:
        flags = PolicyFlags(block_alter_system=True)
        interceptor = CommandInterceptor(flags, audit)
        interceptor.install(pipeline)
        ...
        interceptor.uninstall()
    """

    # Command kind -> (flag attribute, blocked label, message)
    _RULES = {
        CommandKind.ALTER_SYSTEM: (
            "block_alter_system",
            "alter-system-class",
            "ALTER SYSTEM blocked by set_user config",
        ),
        CommandKind.COPY_PROGRAM: (
            "block_copy_program",
            "copy-program",
            "COPY PROGRAM blocked by set_user config",
        ),
    }

    def __init__(self, flags: PolicyFlags, audit: AuditSink):
        self.flags = flags
        self.audit = audit
        self._pipeline: CommandPipeline | None = None
        self._previous: Executor | None = None

    @property
    def installed(self) -> bool:
        return self._pipeline is not None

    def install(self, pipeline: CommandPipeline) -> None:
        """Mount on the pipeline, remembering the hook it replaces."""
        if self._pipeline is not None:
            raise SetUserError("interceptor is already installed")
        self._previous = pipeline.hook
        pipeline.hook = self
        self._pipeline = pipeline
        log.debug("Interceptor installed (previous hook: %r)", self._previous)

    def uninstall(self) -> None:
        """Put back exactly the hook that was mounted before install()."""
        if self._pipeline is None:
            raise SetUserError("interceptor is not installed")
        if self._pipeline.hook is not self:
            raise SetUserError(
                "interceptor is not the mounted hook; uninstall later hooks first"
            )
        self._pipeline.hook = self._previous
        self._pipeline = None
        self._previous = None
        log.debug("Interceptor uninstalled")

    def check(self, command: Command) -> None:
        """Raise PolicyBlockedError if the flags block this command."""
        rule = self._RULES.get(command.kind)
        if rule is None:
            return
        attr, label, message = rule
        if getattr(self.flags, attr):
            self.audit.log(logging.ERROR, message)
            raise PolicyBlockedError(label, message)

    def __call__(self, command: Command, context: ExecutionContext) -> Any:
        if context.session.state.active:
            self.check(command)
        return self.delegate(command, context)

    def delegate(self, command: Command, context: ExecutionContext) -> Any:
        if self._previous is not None:
            return self._previous(command, context)
        if self._pipeline is None:
            raise SetUserError("interceptor is not installed")
        return self._pipeline.standard(command, context)
