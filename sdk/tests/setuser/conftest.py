"""Pytest fixtures for setuser tests.

These use the in-process directory and settings; the PostgreSQL tests in
test_postgres.py bring their own connection fixtures.
"""

import pytest
from setuser import (
    CommandPipeline,
    MemoryDirectory,
    MemorySettings,
    SetUser,
)

from tests.setuser.helpers import ADMIN, RecordingAuditSink, RecordingExecutor


@pytest.fixture
def directory():
    """Roles: admin and postgres are superusers, alice and bob are not."""
    return MemoryDirectory(
        {"admin": True, "postgres": True, "alice": False, "bob": False}
    )


@pytest.fixture
def settings():
    return MemorySettings({"log_statement": "ddl"})


@pytest.fixture
def audit():
    return RecordingAuditSink()


@pytest.fixture
def executor():
    return RecordingExecutor()


@pytest.fixture
def pipeline(executor):
    return CommandPipeline(executor)


@pytest.fixture
def setuser(settings, audit, pipeline):
    """
    Loaded SetUser installation.

    Unloaded after the test if it is still mounted.

    Example:
        def test_reload(setuser, settings):
            settings.set("set_user.block_alter_system", "on", SettingScope.SESSION)
            assert setuser.reload().block_alter_system
    """
    installation = SetUser(settings, audit)
    installation.load(pipeline)

    yield installation

    if installation.interceptor.installed:
        installation.unload()


@pytest.fixture
def session(setuser, directory):
    """Session started as the superuser 'admin'."""
    with setuser.open_session(ADMIN, directory=directory) as session:
        yield session


@pytest.fixture
def make_session(setuser, directory):
    """
    Factory fixture for additional sessions on the same installation.

    Example:
        def test_two_sessions(make_session):
            a = make_session(Identity("admin", True))
            b = make_session(Identity("bob"))
    """

    def _make(identity, **kwargs):
        return setuser.open_session(identity, directory=directory, **kwargs)

    return _make
