"""Classify SQL text into tagged commands using pglast."""

from __future__ import annotations

import logging
import re
from typing import Any

import pglast

from setuser.models import Command, CommandKind

log = logging.getLogger(__name__)

# psycopg placeholders: %s, %b, %t, %(name)s and the %% escape
_PLACEHOLDER = re.compile(r"%\(\w+\)[sbt]|%[sbt]|%%")

# Used only for text pglast cannot parse, so that a block still applies
_ALTER_SYSTEM = re.compile(r"\balter\s+system\b", re.IGNORECASE)
_COPY_PROGRAM = re.compile(r"\bcopy\b.*\bprogram\b", re.IGNORECASE | re.DOTALL)


def kind_of(node) -> CommandKind:
    """Map a parsed statement node to its command class."""
    if isinstance(node, pglast.ast.AlterSystemStmt):
        return CommandKind.ALTER_SYSTEM
    if isinstance(node, pglast.ast.CopyStmt) and node.is_program:
        return CommandKind.COPY_PROGRAM
    return CommandKind.OTHER


def guess_kind(sql: str) -> CommandKind:
    """Keyword-based classification for text the parser rejected."""
    if _ALTER_SYSTEM.search(sql):
        return CommandKind.ALTER_SYSTEM
    if _COPY_PROGRAM.search(sql):
        return CommandKind.COPY_PROGRAM
    return CommandKind.OTHER


def _positional(sql: str) -> str:
    """Rewrite psycopg placeholders as $n so the parser accepts them."""
    counter = 0

    def replace(match: re.Match) -> str:
        nonlocal counter
        if match.group(0) == "%%":
            return "%"
        counter += 1
        return f"${counter}"

    return _PLACEHOLDER.sub(replace, sql)


def classify(sql: str, params: Any = None) -> list[Command]:
    """Split SQL text into one Command per statement.

    With params, the text must hold a single statement and may use psycopg
    placeholders. Text that pglast cannot parse is returned whole as a single
    command, classified by keywords, so the server reports the syntax error.

    Raises:
        ValueError: If params are given for multi-statement text
    """
    if not sql.strip():
        return []

    if params is not None:
        try:
            stmts = pglast.parse_sql(_positional(sql))
        except pglast.Error as e:
            log.debug("Could not parse statement, classifying by keywords: %s", e)
            return [Command(guess_kind(sql), sql)]
        if len(stmts) > 1:
            raise ValueError("parameters are only supported for a single statement")
        return [Command(kind_of(raw.stmt), sql, raw.stmt) for raw in stmts]

    try:
        pieces = pglast.split(sql)
    except pglast.Error as e:
        log.debug("Could not parse statement, classifying by keywords: %s", e)
        return [Command(guess_kind(sql), sql)]

    commands = []
    for piece in pieces:
        for raw in pglast.parse_sql(piece):
            commands.append(Command(kind_of(raw.stmt), piece, raw.stmt))
    return commands
