"""Exceptions raised by file-system runners.

Expected failure modes (not found, busy, ...) are reported as classified
outcomes, not exceptions. These types cover misuse, capability mismatches,
and callers that ask for a value from a failed outcome.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from fsrunners.retry import DeletionResult
    from fsrunners.types import ClassifiedOutcome, OperationKind


class FsRunnersError(Exception):
    """Base class for fs-runners errors."""

    pass


class CapabilityError(FsRunnersError):
    """Operation is not supported by the active backend."""

    def __init__(self, runner: str, kind: OperationKind) -> None:
        self.runner = runner
        self.kind = kind
        super().__init__(f"Runner '{runner}' does not support {kind.value}")


class OperationFailedError(FsRunnersError):
    """A value was requested from an operation that did not succeed."""

    def __init__(self, outcome: ClassifiedOutcome) -> None:
        self.outcome = outcome
        message = (
            f"[{outcome.runner}] {outcome.operation.describe()} failed: "
            f"{outcome.category.value}"
        )
        if outcome.raw_text:
            message += f"\n--- backend output ---\n{outcome.raw_text}"
        super().__init__(message)


class ProcessLaunchError(FsRunnersError):
    """The external process could not be started."""

    def __init__(self, executable: str, reason: str) -> None:
        self.executable = executable
        self.reason = reason
        super().__init__(f"Could not start '{executable}': {reason}")


class DirectoryDeletionError(FsRunnersError):
    """Directory still exists after the retry budget was spent."""

    def __init__(self, result: DeletionResult) -> None:
        self.result = result
        message = f"Failed to delete '{result.path}' after {result.attempts} attempt(s)"
        if result.last_outcome is not None and result.last_outcome.raw_text:
            message += f"\n--- backend output ---\n{result.last_outcome.raw_text}"
        super().__init__(message)
