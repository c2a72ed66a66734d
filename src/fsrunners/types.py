"""Shared data types for file-system runners."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum

__all__ = [
    "ClassifiedOutcome",
    "InvocationResult",
    "Operation",
    "OperationKind",
    "OutcomeCategory",
    "RetryPolicy",
]


class OperationKind(str, Enum):
    """Logical file-system operations a runner can be asked to perform."""

    FILE_EXISTS = "file_exists"
    DIRECTORY_EXISTS = "directory_exists"
    CREATE_FILE = "create_file"
    CREATE_DIRECTORY = "create_directory"
    DELETE_FILE = "delete_file"
    DELETE_DIRECTORY = "delete_directory"
    MOVE = "move"
    REPLACE = "replace"
    RENAME_DIRECTORY = "rename_directory"
    READ = "read"
    WRITE = "write"
    APPEND = "append"
    HARD_LINK = "hard_link"
    ENUMERATE = "enumerate"
    SIZE = "size"
    CHMOD = "chmod"


class OutcomeCategory(str, Enum):
    """Structured result of classifying one operation."""

    SUCCESS = "success"
    NOT_FOUND = "not_found"
    ALREADY_EXISTS = "already_exists"
    BUSY = "busy"
    PERMISSION_DENIED = "permission_denied"
    UNSUPPORTED = "unsupported"
    UNKNOWN = "unknown"


# Number of paths each kind takes. Two-path kinds are (source, target),
# except HARD_LINK which is (new_path, existing_path).
_PATH_ARITY: dict[OperationKind, int] = {
    OperationKind.MOVE: 2,
    OperationKind.REPLACE: 2,
    OperationKind.RENAME_DIRECTORY: 2,
    OperationKind.HARD_LINK: 2,
}

_CONTENT_KINDS = frozenset({OperationKind.WRITE, OperationKind.APPEND})


@dataclass(frozen=True)
class Operation:
    """A single logical operation handed to a runner.

    Attributes:
        kind: What to do.
        paths: Target path(s); see ``OperationKind`` for arity.
        content: Text for WRITE and APPEND.
        mode: Permission bits for CHMOD.
        working_directory: Directory the backend runs in. Required for
            RENAME_DIRECTORY, where both paths are names relative to it.
    """

    kind: OperationKind
    paths: tuple[str, ...]
    content: str | None = None
    mode: int | None = None
    working_directory: str | None = None

    def __post_init__(self) -> None:
        """Normalize paths and validate arguments for the kind."""
        paths = tuple(os.fspath(p) for p in self.paths)
        object.__setattr__(self, "paths", paths)
        if self.working_directory is not None:
            object.__setattr__(self, "working_directory", os.fspath(self.working_directory))

        expected = _PATH_ARITY.get(self.kind, 1)
        if len(paths) != expected:
            raise ValueError(
                f"{self.kind.value} takes {expected} path(s), got {len(paths)}"
            )
        if any(not p for p in paths):
            raise ValueError("paths cannot be empty")
        if self.kind in _CONTENT_KINDS and self.content is None:
            raise ValueError(f"{self.kind.value} requires content")
        if self.kind not in _CONTENT_KINDS and self.content is not None:
            raise ValueError(f"{self.kind.value} does not take content")
        if self.kind is OperationKind.CHMOD:
            if self.mode is None or not 0 <= self.mode <= 0o7777:
                raise ValueError("chmod requires a mode between 0 and 0o7777")
        elif self.mode is not None:
            raise ValueError(f"{self.kind.value} does not take a mode")
        if self.kind is OperationKind.RENAME_DIRECTORY and not self.working_directory:
            raise ValueError("rename_directory requires a working directory")

    @property
    def path(self) -> str:
        """First (or only) path of the operation."""
        return self.paths[0]

    def describe(self) -> str:
        """Short human-readable form used in logs and error messages."""
        return f"{self.kind.value}({', '.join(self.paths)})"


@dataclass(frozen=True)
class InvocationResult:
    """Captured result of one external process invocation.

    Attributes:
        exit_code: Process exit status (-1 when killed on timeout).
        stdout: Decoded standard output, newlines untranslated.
        stderr: Decoded standard error.
        timed_out: True if the process was killed for exceeding its timeout.
    """

    exit_code: int
    stdout: str = ""
    stderr: str = ""
    timed_out: bool = False

    @property
    def succeeded(self) -> bool:
        """True if the process ran to completion with exit status 0."""
        return self.exit_code == 0 and not self.timed_out

    @property
    def combined_text(self) -> str:
        """Standard error followed by standard output."""
        return "\n".join(part for part in (self.stderr, self.stdout) if part)


@dataclass(frozen=True)
class ClassifiedOutcome:
    """Classification of an operation's result.

    Attributes:
        operation: The operation that was performed.
        category: Outcome category.
        raw_text: Unparsed backend output kept for diagnostics.
        output: Standard output (or native equivalent) used to derive values.
        runner: Name of the backend that produced the outcome.
    """

    operation: Operation
    category: OutcomeCategory
    raw_text: str = ""
    output: str = ""
    runner: str = ""

    @property
    def succeeded(self) -> bool:
        """True if the category is SUCCESS."""
        return self.category is OutcomeCategory.SUCCESS

    def check(self) -> ClassifiedOutcome:
        """Return self if succeeded, otherwise raise.

        Raises:
            CapabilityError: Category is UNSUPPORTED.
            OperationFailedError: Any other failure category.
        """
        from fsrunners.errors import CapabilityError, OperationFailedError

        if self.succeeded:
            return self
        if self.category is OutcomeCategory.UNSUPPORTED:
            raise CapabilityError(self.runner, self.operation.kind)
        raise OperationFailedError(self)


@dataclass(frozen=True)
class RetryPolicy:
    """Bounded fixed-delay retry budget.

    Attributes:
        max_attempts: Number of rounds before giving up.
        delay: Seconds to wait between rounds.
        escalation_threshold: Consecutive failed rounds before the
            diagnostic hook fires.
    """

    max_attempts: int = 10
    delay: float = 0.5
    escalation_threshold: int = 10

    def __post_init__(self) -> None:
        """Validate invariants."""
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.delay < 0:
            raise ValueError("delay cannot be negative")
        if self.escalation_threshold < 1:
            raise ValueError("escalation_threshold must be at least 1")
