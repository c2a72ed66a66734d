"""Uniform file-system operations over a selectable backend.

``FileSystemOperations`` is what test code talks to. It builds an
``Operation``, hands it to the configured runner and either returns the
classified outcome or, for methods that produce a value, derives that value
from the runner's output.
"""

from __future__ import annotations

import logging
import os

from fsrunners.errors import OperationFailedError
from fsrunners.protocols import Invoker, Runner
from fsrunners.runners import get_runner
from fsrunners.types import ClassifiedOutcome, Operation, OperationKind, OutcomeCategory

logger = logging.getLogger(__name__)

PathArg = str | os.PathLike[str]


class FileSystemOperations:
    """File-system façade bound to one runner.

    Methods returning a ``ClassifiedOutcome`` never raise for expected
    failures. Methods returning a value raise ``OperationFailedError`` or
    ``CapabilityError`` instead.
    """

    def __init__(self, runner: Runner) -> None:
        """Initialize with a runner.

        Args:
            runner: Backend that executes operations.
        """
        self.runner = runner

    @classmethod
    def create(cls, name: str = "native", invoker: Invoker | None = None) -> FileSystemOperations:
        """Create a façade for a named runner.

        Args:
            name: Runner name (native, bash, cmd, powershell).
            invoker: Process invoker for shell runners.

        Returns:
            FileSystemOperations instance.

        Raises:
            ValueError: If the runner is not known.
        """
        return cls(get_runner(name, invoker=invoker))

    @property
    def name(self) -> str:
        """Name of the underlying runner."""
        return self.runner.name

    def __repr__(self) -> str:
        return f"FileSystemOperations({self.name!r})"

    def run(self, operation: Operation) -> ClassifiedOutcome:
        """Execute an arbitrary operation once.

        Args:
            operation: Operation to execute.

        Returns:
            ClassifiedOutcome from the runner.
        """
        outcome = self.runner.execute(operation)
        if not outcome.succeeded:
            logger.debug(
                "[%s] %s: %s", self.name, operation.describe(), outcome.category.value
            )
        return outcome

    def _run(self, kind: OperationKind, *paths: PathArg, **kwargs) -> ClassifiedOutcome:
        return self.run(Operation(kind, tuple(os.fspath(p) for p in paths), **kwargs))

    def _exists(self, kind: OperationKind, path: PathArg) -> bool:
        operation = Operation(kind, (os.fspath(path),))
        outcome = self.run(operation)
        # A missing parent means the target cannot exist
        if outcome.category is OutcomeCategory.NOT_FOUND:
            return False
        outcome.check()
        return self.runner.contains_entry(operation, outcome.output)

    def file_exists(self, path: PathArg) -> bool:
        """Check whether a regular file exists at path.

        Returns:
            True only for files, never for directories.

        Raises:
            OperationFailedError: If the parent could not be listed for a
                reason other than it being absent.
        """
        return self._exists(OperationKind.FILE_EXISTS, path)

    def directory_exists(self, path: PathArg) -> bool:
        """Check whether a directory exists at path.

        Returns:
            True only for directories, never for files.

        Raises:
            OperationFailedError: If the parent could not be listed for a
                reason other than it being absent.
        """
        return self._exists(OperationKind.DIRECTORY_EXISTS, path)

    def create_empty_file(self, path: PathArg) -> ClassifiedOutcome:
        """Create a zero-length file, truncating an existing one."""
        return self._run(OperationKind.CREATE_FILE, path)

    def create_directory(self, path: PathArg) -> ClassifiedOutcome:
        """Create one directory. The parent must exist."""
        return self._run(OperationKind.CREATE_DIRECTORY, path)

    def delete_file(self, path: PathArg) -> ClassifiedOutcome:
        return self._run(OperationKind.DELETE_FILE, path)

    def delete_directory(self, path: PathArg) -> ClassifiedOutcome:
        """Delete a directory and everything below it, read-only entries included."""
        return self._run(OperationKind.DELETE_DIRECTORY, path)

    def move_file(self, source: PathArg, destination: PathArg) -> ClassifiedOutcome:
        """Move source to destination. Fails if destination exists."""
        return self._run(OperationKind.MOVE, source, destination)

    def replace_file(self, source: PathArg, destination: PathArg) -> ClassifiedOutcome:
        """Move source to destination, overwriting it."""
        return self._run(OperationKind.REPLACE, source, destination)

    def move_directory(self, source: PathArg, destination: PathArg) -> ClassifiedOutcome:
        return self._run(OperationKind.MOVE, source, destination)

    def rename_directory(
        self, working_directory: PathArg, source: str, target: str
    ) -> ClassifiedOutcome:
        """Rename a directory from inside its parent.

        Args:
            working_directory: Directory the backend runs in.
            source: Current name, relative to working_directory.
            target: New name, relative to working_directory.

        Returns:
            ClassifiedOutcome of the rename.
        """
        return self._run(
            OperationKind.RENAME_DIRECTORY,
            source,
            target,
            working_directory=os.fspath(working_directory),
        )

    def read_all_text(self, path: PathArg) -> str:
        """Read a file's full contents.

        One trailing line terminator added by the backend itself is removed.

        Raises:
            OperationFailedError: If the file could not be read.
            CapabilityError: If the runner cannot read files.
        """
        text = self._run(OperationKind.READ, path).check().output
        for terminator in self.runner.trailing_read_terminators:
            if text.endswith(terminator):
                return text[: -len(terminator)]
        return text

    def write_all_text(self, path: PathArg, text: str) -> ClassifiedOutcome:
        """Write text exactly, creating or truncating the file."""
        return self._run(OperationKind.WRITE, path, content=text)

    def append_all_text(self, path: PathArg, text: str) -> ClassifiedOutcome:
        return self._run(OperationKind.APPEND, path, content=text)

    def enumerate_directory(self, path: PathArg) -> str:
        """Get a human-readable listing of a directory, for diagnostics."""
        return self._run(OperationKind.ENUMERATE, path).check().output

    def create_hard_link(self, new_path: PathArg, existing_path: PathArg) -> ClassifiedOutcome:
        """Create new_path as a hard link to existing_path."""
        return self._run(OperationKind.HARD_LINK, new_path, existing_path)

    def file_size(self, path: PathArg) -> int:
        """Get a file's size in bytes.

        Raises:
            OperationFailedError: If the size could not be determined.
        """
        outcome = self._run(OperationKind.SIZE, path).check()
        try:
            return int(outcome.output.strip())
        except ValueError as e:
            raise OperationFailedError(outcome) from e

    def change_mode(self, path: PathArg, mode: int) -> ClassifiedOutcome:
        """Set permission bits on a path."""
        return self._run(OperationKind.CHMOD, path, mode=mode)
