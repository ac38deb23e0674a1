"""setuser - SET ROLE with audit logging and guardrails while switched."""

from setuser.audit import AuditLoggingPolicy, LoggingAuditSink
from setuser.base import (
    AlreadySwitchedError,
    InvalidInvocationError,
    InvalidSettingError,
    NotSwitchedError,
    PolicyBlockedError,
    SetUserError,
    UnknownPrincipalError,
)
from setuser.guard import OK, IdentitySwitchGuard
from setuser.memory import MemoryDirectory, MemorySettings, SessionSettings
from setuser.models import (
    Command,
    CommandKind,
    ExecutionContext,
    Identity,
    PolicyFlags,
    SettingDefinition,
    SettingScope,
    SwitchState,
)
from setuser.pipeline import CommandInterceptor, CommandPipeline
from setuser.ports import AuditSink, ConfigurationStore, PrincipalDirectory
from setuser.session import Session, SetUser
from setuser.statements import classify

__all__ = [
    "OK",
    "AlreadySwitchedError",
    "AuditLoggingPolicy",
    "AuditSink",
    "Command",
    "CommandInterceptor",
    "CommandKind",
    "CommandPipeline",
    "ConfigurationStore",
    "ExecutionContext",
    "Identity",
    "IdentitySwitchGuard",
    "InvalidInvocationError",
    "InvalidSettingError",
    "LoggingAuditSink",
    "MemoryDirectory",
    "MemorySettings",
    "NotSwitchedError",
    "PolicyBlockedError",
    "PolicyFlags",
    "PrincipalDirectory",
    "Session",
    "SessionSettings",
    "SetUser",
    "SetUserError",
    "SettingDefinition",
    "SettingScope",
    "SwitchState",
    "UnknownPrincipalError",
    "classify",
]
