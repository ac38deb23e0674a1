"""In-process implementations of the directory and settings ports.

Useful for hosts that keep roles and settings in application memory, and as
the backing store in tests.
"""

from __future__ import annotations

from setuser.base import SetUserError
from setuser.models import Identity, SettingDefinition, SettingScope
from setuser.ports import ConfigurationStore, PrincipalDirectory


class MemoryDirectory(PrincipalDirectory):
    """Role directory backed by a dict.

    Example:
        directory = MemoryDirectory({"admin": True, "alice": False})
        directory.resolve("admin")  # Identity("admin", is_superuser=True)
    """

    def __init__(self, roles: dict[str, bool] | None = None):
        self._roles: dict[str, Identity] = {}
        for name, is_superuser in (roles or {}).items():
            self.add(name, is_superuser)

    def add(self, name: str, is_superuser: bool = False) -> Identity:
        identity = Identity(name, is_superuser)
        self._roles[name] = identity
        return identity

    def drop(self, name: str) -> None:
        self._roles.pop(name, None)

    def resolve(self, name: str) -> Identity | None:
        return self._roles.get(name)


class MemorySettings(ConfigurationStore):
    """Settings backed by a dict.

    Transaction-scoped writes are kept in an overlay that ``end_transaction``
    discards, mirroring SET LOCAL.
    """

    def __init__(self, values: dict[str, str] | None = None):
        self._values: dict[str, str] = dict(values or {})
        self._local: dict[str, str] = {}
        self.definitions: dict[str, SettingDefinition] = {}

    def define(self, definition: SettingDefinition) -> None:
        self.definitions[definition.name] = definition
        self._values.setdefault(definition.name, "on" if definition.default else "off")

    def get(self, key: str, missing_ok: bool = False) -> str | None:
        if key in self._local:
            return self._local[key]
        if key in self._values:
            return self._values[key]
        if missing_ok:
            return None
        raise SetUserError(
            f'unrecognized configuration parameter "{key}"', sqlstate="42704"
        )

    def set(self, key: str, value: str, scope: SettingScope) -> None:
        if scope is SettingScope.TRANSACTION:
            self._local[key] = value
        else:
            self._local.pop(key, None)
            self._values[key] = value

    def end_transaction(self) -> None:
        """Drop transaction-scoped values."""
        self._local.clear()


class SessionSettings(ConfigurationStore):
    """Per-session view over a shared store.

    Reads fall through to ``shared`` until the session writes its own value;
    writes never reach ``shared``, so one session's log_statement cannot leak
    into another's.

    Example:
        view = SessionSettings(installation_settings)
        view.set("log_statement", "all", SettingScope.SESSION)
        installation_settings.get("log_statement")  # unchanged
    """

    def __init__(self, shared: ConfigurationStore):
        self.shared = shared
        self._own = MemorySettings()

    def get(self, key: str, missing_ok: bool = False) -> str | None:
        value = self._own.get(key, missing_ok=True)
        if value is not None:
            return value
        return self.shared.get(key, missing_ok)

    def set(self, key: str, value: str, scope: SettingScope) -> None:
        self._own.set(key, value, scope)

    def end_transaction(self) -> None:
        self._own.end_transaction()
