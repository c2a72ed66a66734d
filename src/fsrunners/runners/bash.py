"""Bash runner: operations rendered as POSIX shell scripts."""

from __future__ import annotations

import shlex

from fsrunners.runners.base import Command, ShellRunner
from fsrunners.types import Operation, OperationKind


def _guarded_move(source: str, destination: str) -> str:
    """Script that moves like ``mv`` but refuses to overwrite."""
    src, dst = shlex.quote(source), shlex.quote(destination)
    return (
        f"if [ -e {dst} ] || [ -L {dst} ]; then "
        f"printf 'mv: cannot overwrite %s: File exists\\n' {dst} >&2; exit 1; "
        f"fi; mv -- {src} {dst}"
    )


class BashRunner(ShellRunner):
    """Runner that executes operations through ``bash -c``.

    Messages are forced to the C locale so the rule table can match them.
    """

    name = "bash"
    executable = "bash"
    env = {"LC_ALL": "C"}

    def build_command(self, operation: Operation) -> Command:
        """Render an operation as a bash script.

        Args:
            operation: Supported operation.

        Returns:
            Command invoking bash with the rendered script.
        """
        script = self.build_script(operation)
        return Command(
            executable=self.executable,
            arguments=("--noprofile", "--norc", "-c", script),
            working_directory=operation.working_directory,
            env=self.env,
        )

    def build_script(self, operation: Operation) -> str:
        """Render the script body for an operation."""
        kind = operation.kind
        q = [shlex.quote(p) for p in operation.paths]
        path = q[0]

        if kind in (OperationKind.FILE_EXISTS, OperationKind.DIRECTORY_EXISTS):
            parent = self.listing_directory(operation.path, sep="/")
            return f"ls -1Ap -- {shlex.quote(parent)}"
        if kind is OperationKind.CREATE_FILE:
            return f": > {path}"
        if kind is OperationKind.CREATE_DIRECTORY:
            return f"mkdir -- {path}"
        if kind is OperationKind.DELETE_FILE:
            return f"rm -- {path}"
        if kind is OperationKind.DELETE_DIRECTORY:
            return f"chmod -R u+w -- {path} && rm -rf -- {path}"
        if kind in (OperationKind.MOVE, OperationKind.RENAME_DIRECTORY):
            return _guarded_move(*operation.paths)
        if kind is OperationKind.REPLACE:
            return f"mv -f -- {q[0]} {q[1]}"
        if kind is OperationKind.READ:
            return f"cat -- {path}"
        if kind is OperationKind.WRITE:
            return f"printf '%s' {shlex.quote(operation.content or '')} > {path}"
        if kind is OperationKind.APPEND:
            return f"printf '%s' {shlex.quote(operation.content or '')} >> {path}"
        if kind is OperationKind.HARD_LINK:
            # paths are (new, existing); ln takes the target first
            return f"ln -- {q[1]} {q[0]}"
        if kind is OperationKind.ENUMERATE:
            return f"ls -la -- {path}"
        if kind is OperationKind.SIZE:
            return f"wc -c < {path}"
        if kind is OperationKind.CHMOD:
            return f"chmod {operation.mode:o} -- {path}"
        raise ValueError(f"Unhandled operation kind: {kind.value}")

    def entry_names(self, operation: Operation, output: str) -> list[str]:
        """Parse ``ls -1Ap`` output, where directories carry a ``/`` suffix."""
        want_directories = operation.kind is OperationKind.DIRECTORY_EXISTS
        names = []
        for line in output.splitlines():
            if not line:
                continue
            is_directory = line.endswith("/")
            if is_directory == want_directories:
                names.append(line.rstrip("/") if is_directory else line)
        return names
