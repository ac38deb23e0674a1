"""Custom settings and policy flag reloading."""

from __future__ import annotations

import logging

from setuser.base import InvalidSettingError
from setuser.models import PolicyFlags, SettingDefinition
from setuser.ports import ConfigurationStore

log = logging.getLogger(__name__)

LOG_STATEMENT = "log_statement"
LOG_STATEMENT_ALL = "all"

BLOCK_ALTER_SYSTEM = "set_user.block_alter_system"
BLOCK_COPY_PROGRAM = "set_user.block_copy_program"

DEFINITIONS = (
    SettingDefinition(BLOCK_ALTER_SYSTEM, "Block ALTER SYSTEM commands"),
    SettingDefinition(BLOCK_COPY_PROGRAM, "Blocks COPY PROGRAM commands"),
)

# Setting name -> PolicyFlags attribute
_FLAG_ATTRS = {
    BLOCK_ALTER_SYSTEM: "block_alter_system",
    BLOCK_COPY_PROGRAM: "block_copy_program",
}

_TRUE = ("on", "true", "yes", "1")
_FALSE = ("off", "false", "no", "0")


def parse_bool(value: str, name: str = "setting") -> bool:
    """Parse a boolean the way PostgreSQL does.

    Accepts on/off, true/false, yes/no, 1/0 and unambiguous prefixes of
    true/false/yes/no, case-insensitively.

    Raises:
        InvalidSettingError: If value is not a recognizable boolean
    """
    text = value.strip().lower()
    if text in _TRUE:
        return True
    if text in _FALSE:
        return False
    if text:
        if "true".startswith(text) or "yes".startswith(text):
            return True
        if "false".startswith(text) or "no".startswith(text):
            return False
        # "o" alone is ambiguous between on and off
        if len(text) >= 2 and "off".startswith(text):
            return False
    raise InvalidSettingError(f'parameter "{name}" requires a Boolean value')


def reload_flags(flags: PolicyFlags, store: ConfigurationStore) -> PolicyFlags:
    """Refresh policy flags in place from the store.

    Missing settings fall back to their definition default. A value that does
    not parse is logged and the flag keeps its previous value.
    """
    for definition in DEFINITIONS:
        attr = _FLAG_ATTRS[definition.name]
        raw = store.get(definition.name, missing_ok=True)
        if raw is None or raw == "":
            setattr(flags, attr, definition.default)
            continue
        try:
            setattr(flags, attr, parse_bool(raw, definition.name))
        except InvalidSettingError as e:
            log.error("%s; keeping %s = %s", e, definition.name, getattr(flags, attr))

    log.debug(
        "Policy flags reloaded: block_alter_system=%s block_copy_program=%s",
        flags.block_alter_system,
        flags.block_copy_program,
    )
    return flags
