"""Protocol definitions for core abstractions.

This module defines abstract interfaces (Protocols) for the services the
façade, the retrying deleter and the git tool depend on. Designing to
interfaces lets tests substitute recording doubles for real processes.

All concrete implementations satisfy these protocols structurally (duck typing).
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Protocol, runtime_checkable

from fsrunners.process import StdinData
from fsrunners.types import ClassifiedOutcome, InvocationResult, Operation, OperationKind


@runtime_checkable
class Invoker(Protocol):
    """Protocol for synchronous external process invocation."""

    def invoke(
        self,
        executable: str,
        arguments: Sequence[str] | str = (),
        working_directory: str | None = None,
        stdin: StdinData | None = None,
        env: Mapping[str, str] | None = None,
        timeout: float | None = None,
    ) -> InvocationResult:
        """Run a process to completion and capture its streams.

        Args:
            executable: Program to run.
            arguments: Argument list or pre-rendered command line.
            working_directory: Directory to run in.
            stdin: Optional data for standard input.
            env: Environment overrides for the child only.
            timeout: Optional timeout override in seconds.

        Returns:
            InvocationResult for the process.

        Raises:
            ProcessLaunchError: If the process cannot be started.
        """
        ...


@runtime_checkable
class Runner(Protocol):
    """Protocol for a backend that executes file-system operations.

    Implementations declare the operation kinds they support and classify
    every result into the shared outcome taxonomy.
    """

    name: str
    trailing_read_terminators: tuple[str, ...]

    def supports(self, kind: OperationKind) -> bool:
        """Check whether the backend implements an operation kind.

        Args:
            kind: Operation kind to check.

        Returns:
            True if supported.
        """
        ...

    def unsupported_operations(self) -> frozenset[OperationKind]:
        """Get the operation kinds this backend rejects.

        Returns:
            Set of unsupported kinds.
        """
        ...

    def is_available(self) -> bool:
        """Check if the backend can run on the current system.

        Returns:
            True if the backend's executable (if any) can be found.
        """
        ...

    def execute(self, operation: Operation) -> ClassifiedOutcome:
        """Execute an operation exactly once.

        Args:
            operation: Operation to execute.

        Returns:
            ClassifiedOutcome. Unsupported kinds yield UNSUPPORTED without
            running anything.
        """
        ...

    def contains_entry(self, operation: Operation, output: str) -> bool:
        """Check a parent listing for an existence operation's target.

        Args:
            operation: FILE_EXISTS or DIRECTORY_EXISTS operation.
            output: Output of the successful listing.

        Returns:
            True if the target name appears among entries of the right type.
        """
        ...
