"""Runner (backend) implementations."""

from __future__ import annotations

from fsrunners.protocols import Invoker, Runner

from .base import BaseRunner, Command, ShellRunner
from .bash import BashRunner
from .cmd import CmdRunner
from .native import NativeRunner
from .powershell import PowerShellRunner

__all__ = [
    "BaseRunner",
    "BashRunner",
    "CmdRunner",
    "Command",
    "NativeRunner",
    "PowerShellRunner",
    "Runner",
    "ShellRunner",
    "get_runner",
    "get_available_runners",
]


RUNNERS: dict[str, type[BaseRunner]] = {
    "native": NativeRunner,
    "bash": BashRunner,
    "cmd": CmdRunner,
    "powershell": PowerShellRunner,
}


def get_runner(name: str, invoker: Invoker | None = None) -> Runner:
    """Get a runner instance by name.

    Args:
        name: Runner name (native, bash, cmd, powershell).
        invoker: Process invoker for shell runners. Ignored by the native runner.

    Returns:
        Runner instance.

    Raises:
        ValueError: If the runner is not known.
    """
    if name not in RUNNERS:
        raise ValueError(f"Unknown runner: {name}. Supported: {list(RUNNERS.keys())}")

    runner_class = RUNNERS[name]
    if issubclass(runner_class, ShellRunner):
        return runner_class(invoker=invoker)
    return runner_class()


def get_available_runners() -> list[str]:
    """Get the names of runners usable on the current system.

    Returns:
        Runner names whose executables can be found.
    """
    return [name for name in RUNNERS if get_runner(name).is_available()]
