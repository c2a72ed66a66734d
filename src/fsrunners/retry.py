"""Bounded-retry directory deletion.

Deleting a directory races with anything still holding files inside it
(virus scanners, indexers, a process that has not quite exited). The deleter
repeats delete-then-check rounds with a fixed delay until the directory is
gone or the budget is spent.
"""

from __future__ import annotations

import logging
import os
import time
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from fsrunners.errors import DirectoryDeletionError
from fsrunners.operations import FileSystemOperations, PathArg
from fsrunners.runners import NativeRunner
from fsrunners.types import ClassifiedOutcome, RetryPolicy

logger = logging.getLogger(__name__)

EscalationHook = Callable[[str, int], None]


class DirectoryObserver(Protocol):
    """Anything that can report whether a directory exists."""

    def directory_exists(self, path: PathArg) -> bool: ...


class DeletionState(str, Enum):
    """Terminal state of a retrying deletion."""

    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class DeletionResult:
    """Result of a retrying deletion.

    Attributes:
        path: Directory that was deleted.
        state: Terminal state.
        attempts: Number of delete rounds performed (0 if already absent).
        last_outcome: Outcome of the final delete attempt, if any.
    """

    path: str
    state: DeletionState
    attempts: int
    last_outcome: ClassifiedOutcome | None = None

    @property
    def succeeded(self) -> bool:
        return self.state is DeletionState.SUCCEEDED

    def raise_for_failure(self) -> DeletionResult:
        """Return self if the directory is gone.

        Raises:
            DirectoryDeletionError: If the deletion failed.
        """
        if not self.succeeded:
            raise DirectoryDeletionError(self)
        return self


class RetryingDirectoryDeleter:
    """Deletes a directory with bounded fixed-delay retries.

    Each round deletes through ``filesystem`` and then re-checks existence
    through ``observer``. After ``escalation_threshold`` consecutive failed
    rounds a warning is logged and ``on_escalation`` is called, then the
    count starts over.
    """

    def __init__(
        self,
        filesystem: FileSystemOperations,
        policy: RetryPolicy | None = None,
        observer: DirectoryObserver | None = None,
        on_escalation: EscalationHook | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        """Initialize the deleter.

        Args:
            filesystem: Façade used to delete.
            policy: Retry budget. Defaults to RetryPolicy().
            observer: Existence checker. Defaults to filesystem.
            on_escalation: Called with (path, consecutive_failures).
            sleep: Delay function, replaceable in tests.
        """
        self.filesystem = filesystem
        self.policy = policy or RetryPolicy()
        self.observer = observer or filesystem
        self.on_escalation = on_escalation
        self.sleep = sleep

    def delete(self, path: PathArg) -> DeletionResult:
        """Delete a directory, retrying until it is gone or the budget runs out.

        Args:
            path: Directory to delete.

        Returns:
            DeletionResult. FAILED after exactly ``max_attempts`` rounds.
        """
        path = os.fspath(path)
        if not self.observer.directory_exists(path):
            return DeletionResult(path, DeletionState.SUCCEEDED, attempts=0)

        attempts = 0
        consecutive_failures = 0
        last_outcome = None
        while attempts < self.policy.max_attempts:
            attempts += 1
            last_outcome = self.filesystem.delete_directory(path)
            if not self.observer.directory_exists(path):
                logger.debug("Deleted %s after %d attempt(s)", path, attempts)
                return DeletionResult(path, DeletionState.SUCCEEDED, attempts, last_outcome)

            consecutive_failures += 1
            logger.debug(
                "Directory %s still exists after attempt %d (%s)",
                path,
                attempts,
                last_outcome.category.value,
            )
            if consecutive_failures >= self.policy.escalation_threshold:
                self._escalate(path, consecutive_failures)
                consecutive_failures = 0
            if attempts < self.policy.max_attempts:
                self.sleep(self.policy.delay)

        logger.warning("Giving up on deleting %s after %d attempt(s)", path, attempts)
        return DeletionResult(path, DeletionState.FAILED, attempts, last_outcome)

    def _escalate(self, path: str, failures: int) -> None:
        logger.warning(
            "Directory %s survived %d consecutive delete attempts", path, failures
        )
        if self.on_escalation is not None:
            self.on_escalation(path, failures)


def delete_directory_with_limited_retries(
    path: PathArg, max_retries: int = 10
) -> DeletionResult:
    """Delete a directory natively with the default half-second delay.

    Args:
        path: Directory to delete.
        max_retries: Number of delete rounds.

    Returns:
        DeletionResult of the deletion.
    """
    deleter = RetryingDirectoryDeleter(
        FileSystemOperations(NativeRunner()),
        RetryPolicy(max_attempts=max_retries),
    )
    return deleter.delete(path)
