"""Native runner: direct OS calls through ``os`` and ``shutil``.

Failures surface as ``OSError`` and are classified by error code rather than
by parsing text, using the table in ``rules/native.yaml``.
"""

from __future__ import annotations

import errno
import logging
import os
import shutil
import stat
import sys
from collections.abc import Callable

from fsrunners.classification import ErrorCodeClassifier
from fsrunners.runners.base import ALL_OPERATIONS, BaseRunner
from fsrunners.types import ClassifiedOutcome, Operation, OperationKind, OutcomeCategory

logger = logging.getLogger(__name__)

Handler = Callable[[Operation], str]


def _add_write_permission(path: str) -> None:
    if os.path.islink(path):
        return
    os.chmod(path, os.stat(path).st_mode | stat.S_IWRITE)


def _make_tree_writable(path: str) -> None:
    """Clear read-only bits below a directory so it can be removed."""
    if not os.path.isdir(path) or os.path.islink(path):
        return
    _add_write_permission(path)
    for root, dirs, files in os.walk(path):
        for name in dirs + files:
            _add_write_permission(os.path.join(root, name))


class NativeRunner(BaseRunner):
    """Runner that performs operations in-process with OS calls.

    Satisfies the Runner protocol structurally. Permission bits are not
    meaningful on Windows, so CHMOD is unsupported there.
    """

    name = "native"
    supported_operations = (
        ALL_OPERATIONS - {OperationKind.CHMOD} if sys.platform == "win32" else ALL_OPERATIONS
    )

    def __init__(self, classifier: ErrorCodeClassifier | None = None) -> None:
        """Initialize the runner.

        Args:
            classifier: Error-code classifier. Defaults to the packaged table.
        """
        self.classifier = classifier or ErrorCodeClassifier.for_backend(self.name)
        self._handlers: dict[OperationKind, Handler] = {
            OperationKind.FILE_EXISTS: self._list_files,
            OperationKind.DIRECTORY_EXISTS: self._list_directories,
            OperationKind.CREATE_FILE: self._create_file,
            OperationKind.CREATE_DIRECTORY: self._create_directory,
            OperationKind.DELETE_FILE: self._delete_file,
            OperationKind.DELETE_DIRECTORY: self._delete_directory,
            OperationKind.MOVE: self._move,
            OperationKind.REPLACE: self._replace,
            OperationKind.RENAME_DIRECTORY: self._rename_directory,
            OperationKind.READ: self._read,
            OperationKind.WRITE: self._write,
            OperationKind.APPEND: self._append,
            OperationKind.HARD_LINK: self._hard_link,
            OperationKind.ENUMERATE: self._enumerate,
            OperationKind.SIZE: self._size,
            OperationKind.CHMOD: self._chmod,
        }

    def is_available(self) -> bool:
        """The native runner is always available."""
        return True

    def _perform(self, operation: Operation) -> ClassifiedOutcome:
        handler = self._handlers[operation.kind]
        try:
            output = handler(operation)
        except OSError as e:
            category = self.classifier.category_for(e)
            logger.debug("[%s] %s -> %s (%s)", self.name, operation.describe(), category.value, e)
            return ClassifiedOutcome(
                operation=operation,
                category=category,
                raw_text=str(e),
                runner=self.name,
            )
        logger.debug("[%s] %s -> success", self.name, operation.describe())
        return ClassifiedOutcome(
            operation=operation,
            category=OutcomeCategory.SUCCESS,
            output=output,
            runner=self.name,
        )

    def _list_entries(self, operation: Operation, directories: bool) -> str:
        parent, _ = self.split_target(operation.path)
        with os.scandir(parent) as entries:
            names = [
                entry.name
                for entry in entries
                if entry.is_dir(follow_symlinks=False) == directories
            ]
        return "\n".join(sorted(names))

    def _list_files(self, operation: Operation) -> str:
        return self._list_entries(operation, directories=False)

    def _list_directories(self, operation: Operation) -> str:
        return self._list_entries(operation, directories=True)

    def _create_file(self, operation: Operation) -> str:
        with open(operation.path, "wb"):
            pass
        return ""

    def _create_directory(self, operation: Operation) -> str:
        os.mkdir(operation.path)
        return ""

    def _delete_file(self, operation: Operation) -> str:
        os.remove(operation.path)
        return ""

    def _delete_directory(self, operation: Operation) -> str:
        _make_tree_writable(operation.path)
        shutil.rmtree(operation.path)
        return ""

    def _move(self, operation: Operation) -> str:
        source, destination = operation.paths
        # os.rename silently overwrites files on POSIX
        if os.path.lexists(destination):
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), destination)
        os.rename(source, destination)
        return ""

    def _replace(self, operation: Operation) -> str:
        source, destination = operation.paths
        os.replace(source, destination)
        return ""

    def _rename_directory(self, operation: Operation) -> str:
        assert operation.working_directory is not None
        source, target = (os.path.join(operation.working_directory, p) for p in operation.paths)
        if os.path.lexists(target):
            raise FileExistsError(errno.EEXIST, os.strerror(errno.EEXIST), target)
        os.rename(source, target)
        return ""

    def _read(self, operation: Operation) -> str:
        # undecodable bytes are replaced, as in shell output
        with open(operation.path, encoding="utf-8", errors="replace", newline="") as f:
            return f.read()

    def _write(self, operation: Operation) -> str:
        with open(operation.path, "w", encoding="utf-8", newline="") as f:
            f.write(operation.content or "")
        return ""

    def _append(self, operation: Operation) -> str:
        with open(operation.path, "a", encoding="utf-8", newline="") as f:
            f.write(operation.content or "")
        return ""

    def _hard_link(self, operation: Operation) -> str:
        new_path, existing_path = operation.paths
        os.link(existing_path, new_path)
        return ""

    def _enumerate(self, operation: Operation) -> str:
        with os.scandir(operation.path) as entries:
            names = [
                f"{entry.name}/" if entry.is_dir(follow_symlinks=False) else entry.name
                for entry in entries
            ]
        return "\n".join(sorted(names))

    def _size(self, operation: Operation) -> str:
        st = os.stat(operation.path)
        if stat.S_ISDIR(st.st_mode):
            raise IsADirectoryError(errno.EISDIR, os.strerror(errno.EISDIR), operation.path)
        return str(st.st_size)

    def _chmod(self, operation: Operation) -> str:
        assert operation.mode is not None
        os.chmod(operation.path, operation.mode)
        return ""
