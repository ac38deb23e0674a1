"""Audit sink and the statement-logging policy applied around a switch."""

from __future__ import annotations

import logging

from setuser.models import SettingScope
from setuser.ports import AuditSink, ConfigurationStore
from setuser.settings import LOG_STATEMENT, LOG_STATEMENT_ALL


class LoggingAuditSink(AuditSink):
    """Writes audit records to a stdlib logger (``setuser.audit`` by default)."""

    def __init__(self, logger: logging.Logger | None = None):
        self.logger = logger or logging.getLogger("setuser.audit")

    def log(self, severity: int, message: str) -> None:
        self.logger.log(severity, message)


class AuditLoggingPolicy:
    """Saves, escalates and restores ``log_statement`` for one session.

    While switched, every statement is logged; on reset the session gets back
    exactly the value it had before.
    """

    def __init__(self, settings: ConfigurationStore):
        self.settings = settings

    def capture(self) -> str:
        return self.settings.get(LOG_STATEMENT)

    def escalate(self) -> None:
        self.settings.set(LOG_STATEMENT, LOG_STATEMENT_ALL, SettingScope.SESSION)

    def restore(self, saved: str) -> None:
        self.settings.set(LOG_STATEMENT, saved, SettingScope.SESSION)
