"""Shared test fixtures."""

from __future__ import annotations

import shutil
import sys
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any

import pytest

from fsrunners.operations import FileSystemOperations
from fsrunners.runners import NativeRunner
from fsrunners.types import InvocationResult

HAS_BASH = shutil.which("bash") is not None and sys.platform != "win32"

requires_bash = pytest.mark.skipif(not HAS_BASH, reason="bash is not available")
posix_only = pytest.mark.skipif(sys.platform == "win32", reason="POSIX semantics")


@dataclass
class RecordedCall:
    """One call captured by RecordingInvoker."""

    executable: str
    arguments: Sequence[str] | str
    working_directory: str | None
    stdin: Any
    env: Mapping[str, str] | None
    timeout: float | None


@dataclass
class RecordingInvoker:
    """Invoker double that records calls and replays queued results."""

    results: list[InvocationResult] = field(default_factory=list)
    calls: list[RecordedCall] = field(default_factory=list)

    def queue(self, exit_code: int = 0, stdout: str = "", stderr: str = "", **kwargs: Any) -> None:
        self.results.append(InvocationResult(exit_code, stdout, stderr, **kwargs))

    def invoke(
        self,
        executable: str,
        arguments: Sequence[str] | str = (),
        working_directory: str | None = None,
        stdin: Any = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> InvocationResult:
        self.calls.append(
            RecordedCall(executable, arguments, working_directory, stdin, env, timeout)
        )
        if self.results:
            return self.results.pop(0)
        return InvocationResult(0)

    @property
    def last(self) -> RecordedCall:
        return self.calls[-1]


@pytest.fixture
def recording_invoker() -> RecordingInvoker:
    """Create an invoker that records calls instead of running processes."""
    return RecordingInvoker()


@pytest.fixture
def native_fs() -> FileSystemOperations:
    """Create a façade over the native runner."""
    return FileSystemOperations(NativeRunner())


@pytest.fixture(params=["native", "bash"])
def fs(request: pytest.FixtureRequest) -> FileSystemOperations:
    """Create a façade for each runner that can run on this system."""
    if request.param == "bash" and not HAS_BASH:
        pytest.skip("bash is not available")
    return FileSystemOperations.create(request.param)
