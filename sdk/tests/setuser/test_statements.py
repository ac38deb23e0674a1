"""Tests for classifying SQL text into commands."""

import pglast
import pytest
from setuser import CommandKind, classify


@pytest.mark.parametrize(
    "sql",
    [
        "ALTER SYSTEM SET work_mem = '64MB'",
        "ALTER SYSTEM RESET ALL",
        "alter system set log_statement to 'none'",
    ],
)
def test_alter_system(sql):
    (command,) = classify(sql)
    assert command.kind is CommandKind.ALTER_SYSTEM
    assert isinstance(command.statement, pglast.ast.AlterSystemStmt)


@pytest.mark.parametrize(
    "sql",
    [
        "COPY accounts FROM PROGRAM 'gzip -dc /tmp/accounts.gz'",
        "COPY (SELECT * FROM accounts) TO PROGRAM 'cat > /tmp/out'",
    ],
)
def test_copy_program(sql):
    (command,) = classify(sql)
    assert command.kind is CommandKind.COPY_PROGRAM


@pytest.mark.parametrize(
    "sql",
    [
        "COPY accounts FROM STDIN",
        "COPY accounts TO '/tmp/accounts.csv'",
        "ALTER TABLE accounts ADD COLUMN note text",
        "ALTER ROLE alice SET work_mem = '8MB'",
        "SELECT 'ALTER SYSTEM RESET ALL'",
        "SET log_statement = 'none'",
    ],
)
def test_other(sql):
    (command,) = classify(sql)
    assert command.kind is CommandKind.OTHER


def test_multiple_statements_keep_order():
    commands = classify("SELECT 1; ALTER SYSTEM RESET ALL; COPY t FROM PROGRAM 'x'")

    assert [c.kind for c in commands] == [
        CommandKind.OTHER,
        CommandKind.ALTER_SYSTEM,
        CommandKind.COPY_PROGRAM,
    ]
    assert "ALTER SYSTEM" in commands[1].query
    assert "ALTER" not in commands[0].query


def test_blank_text_has_no_commands():
    assert classify("") == []
    assert classify("   \n") == []


def test_unparseable_text_passes_through_whole():
    sql = "SELEKT nonsense FROM"

    (command,) = classify(sql)

    assert command.kind is CommandKind.OTHER
    assert command.query == sql
    assert command.statement is None


def test_unparseable_text_still_classified_by_keywords():
    """Text the parser rejects is classified conservatively."""
    (command,) = classify("ALTER SYSTEM SET work_mem = ")

    assert command.kind is CommandKind.ALTER_SYSTEM
    assert command.statement is None


class TestParameterized:
    def test_alter_system_with_placeholder(self):
        """Placeholders never hide an ALTER SYSTEM."""
        (command,) = classify("ALTER SYSTEM SET work_mem = %s", ("64MB",))

        assert command.kind is CommandKind.ALTER_SYSTEM
        assert command.query == "ALTER SYSTEM SET work_mem = %s"

    def test_named_placeholders(self):
        (command,) = classify(
            "SELECT * FROM accounts WHERE id = %(id)s AND name LIKE 'a%%'",
            {"id": 1},
        )

        assert command.kind is CommandKind.OTHER
        assert command.statement is not None

    def test_copy_program_with_params(self):
        (command,) = classify(
            "COPY (SELECT * FROM accounts WHERE id = %s) TO PROGRAM 'cat'", (1,)
        )

        assert command.kind is CommandKind.COPY_PROGRAM

    def test_multiple_statements_rejected(self):
        with pytest.raises(ValueError, match="single statement"):
            classify("SELECT %s; SELECT %s", (1, 2))
