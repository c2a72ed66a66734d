"""Cmd runner: operations rendered as ``cmd.exe /C`` command lines."""

from __future__ import annotations

import ntpath

from fsrunners.runners.base import ALL_OPERATIONS, Command, ShellRunner
from fsrunners.types import Operation, OperationKind


def quote(path: str) -> str:
    """Wrap a path in double quotes for cmd.exe.

    Raises:
        ValueError: If the path contains a double quote, which cmd cannot escape.
    """
    if '"' in path:
        raise ValueError(f"cmd cannot quote a path containing '\"': {path}")
    return f'"{path}"'


def _set_text(text: str) -> str:
    # set /p prints its prompt without a trailing newline
    if '"' in text or "\n" in text or "\r" in text:
        raise ValueError("cmd can only write single-line text without double quotes")
    return f'echo|set /p ="{text}"'


class CmdRunner(ShellRunner):
    """Runner that executes operations through ``cmd.exe``.

    cmd has no way to change permission bits, so CHMOD is unsupported.
    """

    name = "cmd"
    executable = "cmd.exe"
    supported_operations = ALL_OPERATIONS - {OperationKind.CHMOD}
    path_module = ntpath

    def build_command(self, operation: Operation) -> Command:
        """Render an operation as a ``/C`` command line.

        Args:
            operation: Supported operation.

        Returns:
            Command with a pre-rendered argument string.
        """
        return Command(
            executable=self.executable,
            arguments=f"/C {self.build_command_line(operation)}",
            working_directory=operation.working_directory,
        )

    def build_command_line(self, operation: Operation) -> str:
        """Render the cmd command for an operation."""
        kind = operation.kind
        q = [quote(p) for p in operation.paths]
        path = q[0]

        if kind in (OperationKind.FILE_EXISTS, OperationKind.DIRECTORY_EXISTS):
            parent = quote(self.listing_directory(operation.path))
            attributes = "-D" if kind is OperationKind.FILE_EXISTS else "D"
            # "if exist" on a trailing backslash is only true for directories
            return (
                f"if exist {parent} (dir /A:{attributes} /B {parent}) "
                "else (echo The system cannot find the path specified. 1>&2 & exit /b 1)"
            )
        if kind is OperationKind.CREATE_FILE:
            return f"type NUL > {path}"
        if kind is OperationKind.CREATE_DIRECTORY:
            return f"mkdir {path}"
        if kind is OperationKind.DELETE_FILE:
            return f"del {path}"
        if kind is OperationKind.DELETE_DIRECTORY:
            return f"rmdir /q /s {path}"
        if kind is OperationKind.MOVE:
            return f"move /-Y {q[0]} {q[1]}"
        if kind is OperationKind.REPLACE:
            return f"move /Y {q[0]} {q[1]}"
        if kind is OperationKind.RENAME_DIRECTORY:
            return f"ren {q[0]} {q[1]}"
        if kind is OperationKind.READ:
            return f"type {path}"
        if kind is OperationKind.WRITE:
            return f"{_set_text(operation.content or '')} > {path}"
        if kind is OperationKind.APPEND:
            return f"{_set_text(operation.content or '')} >> {path}"
        if kind is OperationKind.HARD_LINK:
            return f"mklink /H {q[0]} {q[1]}"
        if kind is OperationKind.ENUMERATE:
            return f"dir {path}"
        if kind is OperationKind.SIZE:
            return f"for %I in ({path}) do @if exist %I (echo %~zI) else (echo File Not Found 1>&2)"
        raise ValueError(f"Unhandled operation kind: {kind.value}")
