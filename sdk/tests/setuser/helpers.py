"""Test helpers for setuser - recording fakes for the ports and the executor."""

from setuser import Identity, MemorySettings, Session
from setuser.ports import AuditSink

ADMIN = Identity("admin", is_superuser=True)


class RecordingAuditSink(AuditSink):
    """Keeps every audit record as a (severity, message) tuple."""

    def __init__(self):
        self.records = []

    def log(self, severity: int, message: str) -> None:
        self.records.append((severity, message))

    @property
    def messages(self) -> list:
        return [message for _, message in self.records]


class RecordingExecutor:
    """Standard executor stand-in that records what reached it.

    Each call is one side effect: the command and context are appended to
    ``calls`` and a completion tag is reported.
    """

    def __init__(self):
        self.calls = []

    def __call__(self, command, context):
        self.calls.append((command, context))
        context.completion_tag = command.kind.value
        return len(self.calls)

    @property
    def commands(self) -> list:
        return [command for command, _ in self.calls]


class RecordingHook:
    """A previously mounted hook that records and passes through."""

    def __init__(self, pipeline):
        self.pipeline = pipeline
        self.seen = []

    def __call__(self, command, context):
        self.seen.append(command)
        return self.pipeline.standard(command, context)


class FlakySession(Session):
    """Session whose assume() fails for selected role names."""

    def __init__(self, *args, fail_on=(), **kwargs):
        self.fail_on = set(fail_on)
        super().__init__(*args, **kwargs)

    def assume(self, identity):
        if identity.name in self.fail_on:
            raise RuntimeError(f"cannot assume {identity.name}")
        super().assume(identity)


class FailingSettings(MemorySettings):
    """Settings whose set() fails when writing selected values."""

    def __init__(self, values=None, fail_on=()):
        super().__init__(values)
        self.fail_on = set(fail_on)

    def set(self, key, value, scope):
        if value in self.fail_on:
            raise RuntimeError(f"cannot set {key} to {value}")
        super().set(key, value, scope)
