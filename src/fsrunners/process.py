"""Synchronous external process invocation."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess  # nosec: B404
import sys
from collections.abc import Mapping, Sequence
from typing import BinaryIO

from fsrunners.errors import ProcessLaunchError
from fsrunners.types import InvocationResult

logger = logging.getLogger(__name__)

# Default per-invocation timeout in seconds
DEFAULT_TIMEOUT = 60.0

StdinData = str | bytes | BinaryIO


class ProcessInvoker:
    """Runs one external process per call and captures its streams.

    Output is captured as bytes and decoded without newline translation,
    so backend line terminators reach the caller untouched.
    """

    def __init__(self, timeout: float = DEFAULT_TIMEOUT, encoding: str = "utf-8") -> None:
        """Initialize the invoker.

        Args:
            timeout: Default timeout in seconds for each invocation.
            encoding: Encoding used for stdin text and decoding output.
        """
        self.timeout = timeout
        self.encoding = encoding

    def invoke(
        self,
        executable: str,
        arguments: Sequence[str] | str = (),
        working_directory: str | None = None,
        stdin: StdinData | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> InvocationResult:
        """Run a process to completion.

        Args:
            executable: Program to run (name on PATH or full path).
            arguments: Argument list, or a pre-rendered command line using
                Windows quoting conventions (as ``cmd.exe`` expects).
            working_directory: Directory to run in. Defaults to the current one.
            stdin: Data to feed on standard input. Without it the child
                gets an empty standard input.
            env: Variables added to a copy of the current environment for
                the child only.
            timeout: Override for the default timeout.

        Returns:
            InvocationResult with the exit status and both streams.

        Raises:
            ProcessLaunchError: If the process cannot be started.
        """
        command = self._build_command(executable, arguments)
        effective_timeout = self.timeout if timeout is None else timeout
        child_env = {**os.environ, **env} if env else None
        input_data = self._read_stdin(stdin)

        logger.debug("Running %s (cwd=%s)", command, working_directory)
        try:
            completed = subprocess.run(  # nosec B603
                command,
                input=input_data,
                stdin=subprocess.DEVNULL if input_data is None else None,
                capture_output=True,
                cwd=working_directory,
                env=child_env,
                timeout=effective_timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            logger.warning(
                "Process %s timed out after %.1f seconds", executable, effective_timeout
            )
            return InvocationResult(
                exit_code=-1,
                stdout=self._decode(e.stdout),
                stderr=self._decode(e.stderr),
                timed_out=True,
            )
        except OSError as e:
            raise ProcessLaunchError(executable, str(e)) from e

        logger.debug("Process %s exited with %d", executable, completed.returncode)
        return InvocationResult(
            exit_code=completed.returncode,
            stdout=self._decode(completed.stdout),
            stderr=self._decode(completed.stderr),
        )

    def _build_command(self, executable: str, arguments: Sequence[str] | str) -> list[str] | str:
        """Combine the executable with its arguments.

        A string of arguments is a Windows command line: it is passed through
        verbatim on Windows and split with POSIX rules elsewhere.
        """
        if isinstance(arguments, str):
            if sys.platform == "win32":  # pragma: no cover
                return f'"{executable}" {arguments}'
            return [executable, *shlex.split(arguments)]
        return [executable, *arguments]

    def _read_stdin(self, stdin: StdinData | None) -> bytes | None:
        if stdin is None:
            return None
        if isinstance(stdin, str):
            return stdin.encode(self.encoding)
        if isinstance(stdin, bytes):
            return stdin
        return stdin.read()

    def _decode(self, data: bytes | str | None) -> str:
        if data is None:
            return ""
        if isinstance(data, str):
            return data
        return data.decode(self.encoding, errors="replace")
