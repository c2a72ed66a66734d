"""Base runner implementations with shared behavior.

All runners share the same execution skeleton: consult the capability table,
then perform the operation and classify the result. Shell runners vary only in
how an operation is rendered as a command and in their rule tables.

Pattern: Template Method - base classes define the algorithm skeleton,
subclasses provide the backend-specific steps.
"""

from __future__ import annotations

import logging
import os
import shutil
from abc import ABC, abstractmethod
from collections.abc import Mapping
from dataclasses import dataclass, field
from types import ModuleType

from fsrunners.classification import OutputClassifier
from fsrunners.errors import CapabilityError
from fsrunners.process import ProcessInvoker, StdinData
from fsrunners.protocols import Invoker
from fsrunners.types import ClassifiedOutcome, Operation, OperationKind, OutcomeCategory

logger = logging.getLogger(__name__)

ALL_OPERATIONS = frozenset(OperationKind)

EXISTENCE_CHECKS = frozenset({OperationKind.FILE_EXISTS, OperationKind.DIRECTORY_EXISTS})


@dataclass(frozen=True)
class Command:
    """A fully rendered backend command.

    Attributes:
        executable: Program to run.
        arguments: Argument list, or a pre-rendered Windows command line.
        working_directory: Directory to run in.
        stdin: Data for standard input.
        env: Environment overrides for the child.
    """

    executable: str
    arguments: tuple[str, ...] | str
    working_directory: str | None = None
    stdin: StdinData | None = None
    env: Mapping[str, str] = field(default_factory=dict)


class BaseRunner(ABC):
    """Base class for runner implementations.

    Subclasses set ``name`` and ``supported_operations`` and implement
    ``_perform()``. The capability check happens here, before anything
    touches the file system.
    """

    name: str
    supported_operations: frozenset[OperationKind] = ALL_OPERATIONS
    trailing_read_terminators: tuple[str, ...] = ()
    path_module: ModuleType = os.path

    def supports(self, kind: OperationKind) -> bool:
        """Check whether this runner implements an operation kind."""
        return kind in self.supported_operations

    def unsupported_operations(self) -> frozenset[OperationKind]:
        """Get the operation kinds this runner rejects."""
        return ALL_OPERATIONS - self.supported_operations

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this runner can run on the current system."""
        ...

    @abstractmethod
    def _perform(self, operation: Operation) -> ClassifiedOutcome:
        """Perform a supported operation and classify the result."""
        ...

    def execute(self, operation: Operation) -> ClassifiedOutcome:
        """Execute an operation exactly once.

        Template Method: rejects unsupported kinds with an UNSUPPORTED
        outcome, then delegates to ``_perform()``.

        Args:
            operation: Operation to execute.

        Returns:
            ClassifiedOutcome for the operation.
        """
        if not self.supports(operation.kind):
            logger.debug("[%s] %s is unsupported", self.name, operation.describe())
            return ClassifiedOutcome(
                operation=operation,
                category=OutcomeCategory.UNSUPPORTED,
                raw_text=f"Runner '{self.name}' does not support {operation.kind.value}",
                runner=self.name,
            )
        return self._perform(operation)

    def split_target(self, path: str) -> tuple[str, str]:
        """Split a path into its parent directory and entry name.

        Args:
            path: Path to split. Trailing separators are ignored.

        Returns:
            Tuple of (parent, name). Parent is "." for bare names.
        """
        trimmed = path.rstrip("/\\") or path
        parent, name = self.path_module.split(trimmed)
        return parent or ".", name

    def listing_directory(self, path: str, sep: str | None = None) -> str:
        """Get the parent of path with a trailing separator.

        Listing ``parent/`` fails when the parent is a regular file, where
        listing ``parent`` would print the file itself.
        """
        parent, _ = self.split_target(path)
        return parent.rstrip("/\\") + (sep or self.path_module.sep)

    def entry_names(self, operation: Operation, output: str) -> list[str]:
        """Extract entry names from an existence-check listing.

        The default expects one name per line, already filtered to the
        right entry type.
        """
        return [line.strip() for line in output.splitlines() if line.strip()]

    def contains_entry(self, operation: Operation, output: str) -> bool:
        """Check a parent listing for an existence operation's target.

        Args:
            operation: FILE_EXISTS or DIRECTORY_EXISTS operation.
            output: Output of the successful listing.

        Returns:
            True if the target name is listed.
        """
        _, name = self.split_target(operation.path)
        wanted = self.path_module.normcase(name)
        return any(
            self.path_module.normcase(entry) == wanted
            for entry in self.entry_names(operation, output)
        )


class ShellRunner(BaseRunner):
    """Runner that renders operations as commands for an external shell.

    Subclasses set ``executable`` and implement ``build_command()``. The
    classifier is loaded from the packaged rule table named after the runner.
    """

    executable: str

    def __init__(
        self,
        invoker: Invoker | None = None,
        classifier: OutputClassifier | None = None,
    ) -> None:
        """Initialize the runner.

        Args:
            invoker: Process invoker. Defaults to a ProcessInvoker.
            classifier: Output classifier. Defaults to this runner's rule table.
        """
        self.invoker = invoker or ProcessInvoker()
        self.classifier = classifier or OutputClassifier.for_backend(self.name)

    def is_available(self) -> bool:
        """Check if the shell executable is on PATH."""
        return shutil.which(self.executable) is not None

    @abstractmethod
    def build_command(self, operation: Operation) -> Command:
        """Render a supported operation as a backend command."""
        ...

    def format_command(self, operation: Operation) -> Command:
        """Render an operation as a backend command.

        Args:
            operation: Operation to render.

        Returns:
            Command ready for invocation.

        Raises:
            CapabilityError: If the operation is unsupported by this backend.
        """
        if not self.supports(operation.kind):
            raise CapabilityError(self.name, operation.kind)
        return self.build_command(operation)

    def _perform(self, operation: Operation) -> ClassifiedOutcome:
        command = self.format_command(operation)
        result = self.invoker.invoke(
            command.executable,
            command.arguments,
            working_directory=command.working_directory,
            stdin=command.stdin,
            env=dict(command.env) or None,
        )
        return self.classifier.classify(operation, result)
