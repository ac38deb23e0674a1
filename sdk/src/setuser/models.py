"""Data models for identity switching and command interception."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any

from setuser.base import AlreadySwitchedError, NotSwitchedError

if TYPE_CHECKING:
    from setuser.session import Session

SUPERUSER_LABEL = "Superuser "


@dataclass(frozen=True)
class Identity:
    """A resolved role."""

    name: str
    is_superuser: bool = False

    @property
    def label(self) -> str:
        """Prefix used in transition audit records."""
        return SUPERUSER_LABEL if self.is_superuser else ""


@dataclass
class SwitchState:
    """Single-slot record of an active switch.

    Both fields are None together or set together.
    """

    original_identity: Identity | None = None
    saved_log_statement: str | None = None

    @property
    def active(self) -> bool:
        return self.original_identity is not None

    def populate(self, identity: Identity, log_statement: str) -> None:
        if self.active:
            raise AlreadySwitchedError()
        self.original_identity = identity
        self.saved_log_statement = log_statement

    def clear(self) -> tuple[Identity, str]:
        """Empty the state, returning what it held."""
        if not self.active:
            raise NotSwitchedError()
        held = (self.original_identity, self.saved_log_statement)
        self.original_identity = None
        self.saved_log_statement = None
        return held


class CommandKind(str, Enum):
    """Closed classification of submitted commands."""

    ALTER_SYSTEM = "alter-system-class"
    COPY_PROGRAM = "copy-with-program-invocation"
    OTHER = "other"


@dataclass(frozen=True)
class Command:
    """One statement on its way through the pipeline."""

    kind: CommandKind
    query: str
    statement: Any = None  # pglast node when parsed from SQL text


@dataclass
class ExecutionContext:
    """Everything the executor needs besides the command itself."""

    session: Session
    params: Any = None
    destination: Any = None  # e.g. a psycopg cursor
    completion_tag: str | None = None  # filled in by the executor


class SettingScope(Enum):
    """How far a settings write propagates."""

    SESSION = "session"
    TRANSACTION = "transaction"  # SET LOCAL


@dataclass(frozen=True)
class SettingDefinition:
    """A custom boolean setting and its reload context."""

    name: str
    description: str
    default: bool = False
    context: str = "sighup"


@dataclass
class PolicyFlags:
    """Command classes blocked while a switch is active.

    Shared by reference; reloads mutate this object in place.
    """

    block_alter_system: bool = False
    block_copy_program: bool = False
