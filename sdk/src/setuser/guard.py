"""
setuser.guard - The identity-switch state machine.

IdentitySwitchGuard owns nothing but behaviour: the state it drives lives on
the Session it was created for.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from setuser.audit import AuditLoggingPolicy
from setuser.base import (
    AlreadySwitchedError,
    InvalidInvocationError,
    NotSwitchedError,
    UnknownPrincipalError,
)
from setuser.models import Identity
from setuser.ports import AuditSink, ConfigurationStore, PrincipalDirectory

if TYPE_CHECKING:
    from setuser.session import Session

__all__ = ["IdentitySwitchGuard", "OK"]

log = logging.getLogger(__name__)

OK = "OK"


class IdentitySwitchGuard:
    """
    Switches a session to another role and back, with audit logging.

    Example:
        guard = IdentitySwitchGuard(session, directory, settings, audit)

        guard("alice")  # switch to alice, returns "OK"
        guard()         # back to the original role, returns "OK"
    """

    def __init__(
        self,
        session: Session,
        directory: PrincipalDirectory,
        settings: ConfigurationStore,
        audit: AuditSink,
    ):
        self.session = session
        self.directory = directory
        self.logging = AuditLoggingPolicy(settings)
        self.audit = audit

    def __call__(self, *args: object) -> str:
        """Dispatch on argument shape: one name switches, none (or None) resets."""
        if len(args) == 1 and args[0] is not None:
            if not isinstance(args[0], str):
                raise InvalidInvocationError()
            return self.switch_to(args[0])
        if not args or (len(args) == 1 and args[0] is None):
            return self.reset()
        raise InvalidInvocationError()

    def switch_to(self, name: str) -> str:
        """
        Make ``name`` the active role of the session.

        Statement logging is forced to 'all' until reset().

        Args:
            name: Role to switch to

        Returns:
            "OK"

        Raises:
            AlreadySwitchedError: If the session is already switched
            UnknownPrincipalError: If the role does not exist
        """
        state = self.session.state
        if state.active:
            raise AlreadySwitchedError()

        target = self.directory.resolve(name)
        if target is None:
            raise UnknownPrincipalError(name)

        source = self.session.identity
        saved = self.logging.capture()

        self.logging.escalate()
        try:
            state.populate(source, saved)
            self._transition(source, target)
        except Exception:
            log.warning("Switch to %s failed; rolling back", name)
            # No partial switch: undo what was applied, then re-raise
            if state.active:
                state.clear()
            try:
                self.logging.restore(saved)
            except Exception:
                log.exception("Could not restore log_statement to %r", saved)
            self._failed(target, source)
            raise
        return OK

    def reset(self) -> str:
        """
        Return the session to the role it had before switch_to().

        Returns:
            "OK"

        Raises:
            NotSwitchedError: If the session is not switched
        """
        state = self.session.state
        if not state.active:
            raise NotSwitchedError()

        source = self.session.identity
        original = state.original_identity
        saved = state.saved_log_statement

        self.logging.restore(saved)
        try:
            state.clear()
            self._transition(source, original)
        except Exception:
            log.warning("Reset to %s failed; staying switched", original.name)
            if not state.active:
                state.populate(original, saved)
            try:
                self.logging.escalate()
            except Exception:
                log.exception("Could not escalate log_statement again")
            self._failed(original, source)
            raise
        return OK

    def _transition(self, source: Identity, target: Identity) -> None:
        self.audit.log(
            logging.INFO,
            f"{source.label}Role {source.name} transitioning to "
            f"{target.label}Role {target.name}",
        )
        self.session.assume(target)

    def _failed(self, target: Identity, active: Identity) -> None:
        self.audit.log(
            logging.ERROR,
            f"Transition to {target.label}Role {target.name} failed; "
            f"{active.label}Role {active.name} remains active",
        )
