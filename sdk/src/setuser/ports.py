"""Interfaces for the collaborators setuser depends on.

The guard and interceptor only talk to these; ``setuser.memory`` and
``setuser.postgres`` provide implementations.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from setuser.models import Identity, SettingDefinition, SettingScope


class PrincipalDirectory(ABC):
    """Resolves role names."""

    @abstractmethod
    def resolve(self, name: str) -> Identity | None:
        """Look up a role by name.

        Returns:
            The resolved Identity, or None if no such role exists
        """
        ...


class ConfigurationStore(ABC):
    """Named string settings with a write scope."""

    @abstractmethod
    def get(self, key: str, missing_ok: bool = False) -> str | None:
        """Get the current value of a setting.

        Args:
            key: Setting name (e.g. 'log_statement')
            missing_ok: Return None instead of raising for unknown settings

        Raises:
            SetUserError: If the setting does not exist and missing_ok is False
        """
        ...

    @abstractmethod
    def set(self, key: str, value: str, scope: SettingScope) -> None:
        """Set a setting for the given scope."""
        ...

    def define(self, definition: SettingDefinition) -> None:
        """Register a custom setting. Stores without a registry ignore this."""


class AuditSink(ABC):
    """Destination for audit records."""

    @abstractmethod
    def log(self, severity: int, message: str) -> None:
        """Write one record. ``severity`` is a ``logging`` level."""
        ...
