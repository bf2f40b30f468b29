"""Pytest configuration and shared fixtures."""

from collections.abc import Sequence
from typing import Any, Optional

import pytest

from rigup.adapters.command import CommandResult
from rigup.core.spec import ValueKind
from rigup.exceptions import CommandError, NotFoundError, UserAbortedError


class FakeRegistry:
    """In-memory RegistryStore keyed by (path, value name)."""

    def __init__(self, values: Optional[dict[tuple[str, str], Any]] = None):
        self.values = dict(values or {})
        self.writes: list[tuple[str, str, Any, ValueKind]] = []

    def get_value(self, path: str, value_name: str) -> Any:
        try:
            return self.values[(path, value_name)]
        except KeyError:
            raise NotFoundError(value_name, path) from None

    def set_value(self, path: str, value_name: str, value: Any, kind: ValueKind) -> None:
        self.writes.append((path, value_name, value, kind))
        self.values[(path, value_name)] = value


class RecordingRunner:
    """CommandRunner fake returning scripted results per command prefix.

    Responses are matched on the longest registered argv prefix; unmatched
    commands succeed with empty output.
    """

    def __init__(self):
        self.calls: list[list[str]] = []
        self.responses: dict[tuple[str, ...], tuple[int, str, str]] = {}

    def respond(self, prefix: Sequence[str], returncode: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses[tuple(prefix)] = (returncode, stdout, stderr)

    def __call__(self, argv, *, check=True, timeout=None, input_text=None) -> CommandResult:
        argv = list(argv)
        self.calls.append(argv)
        returncode, stdout, stderr = 0, "", ""
        best = -1
        for prefix, response in self.responses.items():
            if tuple(argv[: len(prefix)]) == prefix and len(prefix) > best:
                best = len(prefix)
                returncode, stdout, stderr = response
        result = CommandResult(argv=argv, returncode=returncode, stdout=stdout, stderr=stderr)
        if check and returncode != 0:
            raise CommandError(argv, returncode, stderr)
        return result


class ScriptedPrompter:
    """Prompter fake answering from a queue; an exhausted queue aborts."""

    def __init__(self, answers: Optional[list[Any]] = None):
        self.answers = list(answers or [])
        self.questions: list[str] = []

    def _next(self, question: str, default: Any) -> Any:
        self.questions.append(question)
        if not self.answers:
            raise UserAbortedError("no scripted answer left")
        answer = self.answers.pop(0)
        return default if answer is None else answer

    def ask(self, question: str, default: Optional[str] = None) -> str:
        return self._next(question, default or "")

    def choose(self, question: str, options: Sequence[str], default_index: int = 0) -> int:
        return self._next(question, default_index)

    def confirm(self, question: str, default: bool = True) -> bool:
        return self._next(question, default)


class FakePackageManager:
    def __init__(self, installed: Optional[set[str]] = None, fail: bool = False):
        self.installed = set(installed or ())
        self.fail = fail
        self.install_calls: list[str] = []

    def query(self, package_id: str) -> bool:
        return package_id in self.installed

    def install(self, package_id: str) -> None:
        self.install_calls.append(package_id)
        if self.fail:
            raise CommandError(["winget", "install", package_id], 1, "download failed")
        self.installed.add(package_id)


@pytest.fixture
def registry():
    """Empty in-memory registry."""
    return FakeRegistry()


@pytest.fixture
def runner():
    """Recording command runner."""
    return RecordingRunner()


@pytest.fixture
def packages():
    """Package manager with nothing installed."""
    return FakePackageManager()


@pytest.fixture
def memory_store():
    """Factory for a dict-backed read/write pair that counts writes."""

    def _create(initial: Optional[dict[str, Any]] = None):
        store = dict(initial or {})
        writes: list[tuple[str, Any]] = []

        def reader(key):
            return lambda: store.get(key)

        def writer(key):
            def write(value):
                writes.append((key, value))
                store[key] = value

            return write

        return store, writes, reader, writer

    return _create


@pytest.fixture
def failing_packages():
    """Package manager whose installs fail."""
    return FakePackageManager(fail=True)


@pytest.fixture
def scripted_prompter():
    """Factory for a prompter answering from a list (None = accept default)."""
    return ScriptedPrompter
