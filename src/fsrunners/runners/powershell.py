"""PowerShell runner: operations rendered as cmdlet pipelines."""

from __future__ import annotations

import sys

from fsrunners.runners.base import ALL_OPERATIONS, Command, ShellRunner
from fsrunners.types import Operation, OperationKind

# Windows PowerShell ships with Windows; elsewhere only PowerShell 7 exists
DEFAULT_EXECUTABLE = "powershell.exe" if sys.platform == "win32" else "pwsh"

PREAMBLE = "$ErrorActionPreference = 'Stop'; "


def quote(value: str) -> str:
    """Single-quote a string literal, doubling embedded quotes."""
    return "'" + value.replace("'", "''") + "'"


class PowerShellRunner(ShellRunner):
    """Runner that executes operations through PowerShell.

    Errors are made terminating so every failure produces a non-zero exit
    and an error record on stderr. Output of ``Get-Content -Raw`` ends with
    a line terminator added by the host, which the façade strips.
    """

    name = "powershell"
    executable = DEFAULT_EXECUTABLE
    supported_operations = ALL_OPERATIONS - {OperationKind.CHMOD}
    trailing_read_terminators = ("\r\n", "\n")

    def build_command(self, operation: Operation) -> Command:
        """Render an operation as a PowerShell ``-Command`` invocation.

        Args:
            operation: Supported operation.

        Returns:
            Command invoking PowerShell with the rendered script.
        """
        return Command(
            executable=self.executable,
            arguments=(
                "-NoProfile",
                "-NonInteractive",
                "-Command",
                PREAMBLE + self.build_script(operation),
            ),
            working_directory=operation.working_directory,
        )

    def build_script(self, operation: Operation) -> str:
        """Render the script body for an operation."""
        kind = operation.kind
        q = [quote(p) for p in operation.paths]
        path = q[0]

        if kind in (OperationKind.FILE_EXISTS, OperationKind.DIRECTORY_EXISTS):
            parent, _ = self.split_target(operation.path)
            test = "$_.PSIsContainer"
            if kind is OperationKind.FILE_EXISTS:
                test = f"-not {test}"
            return (
                f"$parent = {quote(parent)}; "
                "if (-not (Test-Path -LiteralPath $parent -PathType Container)) "
                "{ throw ('Cannot find path ''' + $parent + ''' because it is not a directory.') }; "
                "Get-ChildItem -Force -LiteralPath $parent "
                f"| Where-Object {{ {test} }} | ForEach-Object {{ $_.Name }}"
            )
        if kind is OperationKind.CREATE_FILE:
            return f"Set-Content -LiteralPath {path} -Value '' -NoNewline"
        if kind is OperationKind.CREATE_DIRECTORY:
            return f"New-Item -ItemType Directory -Path {path} | Out-Null"
        if kind is OperationKind.DELETE_FILE:
            return f"Remove-Item -LiteralPath {path}"
        if kind is OperationKind.DELETE_DIRECTORY:
            return f"Remove-Item -LiteralPath {path} -Force -Recurse"
        if kind is OperationKind.MOVE:
            return f"Move-Item -LiteralPath {q[0]} -Destination {q[1]}"
        if kind is OperationKind.REPLACE:
            return f"Move-Item -LiteralPath {q[0]} -Destination {q[1]} -Force"
        if kind is OperationKind.RENAME_DIRECTORY:
            return f"Rename-Item -LiteralPath {q[0]} -NewName {q[1]}"
        if kind is OperationKind.READ:
            return f"Get-Content -Raw -LiteralPath {path}"
        if kind in (OperationKind.WRITE, OperationKind.APPEND):
            script = (
                f"Out-File -LiteralPath {path} -InputObject {quote(operation.content or '')} "
                "-Encoding ascii -NoNewline"
            )
            if kind is OperationKind.APPEND:
                script += " -Append"
            return script
        if kind is OperationKind.HARD_LINK:
            return f"New-Item -ItemType HardLink -Path {q[0]} -Value {q[1]} | Out-Null"
        if kind is OperationKind.ENUMERATE:
            return f"Get-ChildItem -Force -LiteralPath {path}"
        if kind is OperationKind.SIZE:
            return f"(Get-Item -LiteralPath {path}).Length"
        raise ValueError(f"Unhandled operation kind: {kind.value}")
