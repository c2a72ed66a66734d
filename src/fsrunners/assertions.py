"""Assertions on on-disk state, checked through a runner.

Checking through a runner rather than the code under test gives an
independent view of the file system. Failure messages carry the runner name
and, where there is one, a listing of the parent directory.
"""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

from rich.console import Console
from rich.markup import escape

from fsrunners.errors import FsRunnersError
from fsrunners.operations import FileSystemOperations, PathArg


def _parent_listing(path: str, fs: FileSystemOperations) -> str:
    parent = os.path.dirname(path.rstrip("/\\")) or "."
    try:
        return fs.enumerate_directory(parent)
    except FsRunnersError as e:
        return f"(could not list {parent}: {e})"


def _fail(message: str, path: str, fs: FileSystemOperations) -> None:
    raise AssertionError(
        f"[{fs.name}] {message}\n--- listing of parent ---\n{_parent_listing(path, fs)}"
    )


def should_be_a_file(
    path: PathArg, fs: FileSystemOperations, content: str | None = None
) -> str:
    """Assert that path is a file, optionally with exact content.

    Args:
        path: Path to check.
        fs: Runner façade to check through.
        content: Expected content, if any.

    Returns:
        The file's content.

    Raises:
        AssertionError: If path is not a file or its content differs.
    """
    path = os.fspath(path)
    if fs.directory_exists(path):
        _fail(f"{path} is a directory, expected a file", path, fs)
    if not fs.file_exists(path):
        _fail(f"{path} does not exist, expected a file", path, fs)

    actual = fs.read_all_text(path)
    if content is not None and actual != content:
        raise AssertionError(
            f"[{fs.name}] Content of {path} differs\n"
            f"expected: {content!r}\nactual:   {actual!r}"
        )
    return actual


def should_be_a_directory(path: PathArg, fs: FileSystemOperations) -> None:
    """Assert that path is a directory.

    Raises:
        AssertionError: If path is missing or is a file.
    """
    path = os.fspath(path)
    if fs.file_exists(path):
        _fail(f"{path} is a file, expected a directory", path, fs)
    if not fs.directory_exists(path):
        _fail(f"{path} does not exist, expected a directory", path, fs)


def should_not_exist_on_disk(path: PathArg, fs: FileSystemOperations) -> None:
    """Assert that nothing exists at path.

    Raises:
        AssertionError: If a file or directory exists at path.
    """
    path = os.fspath(path)
    if fs.file_exists(path):
        _fail(f"{path} exists as a file, expected nothing", path, fs)
    if fs.directory_exists(path):
        _fail(f"{path} exists as a directory, expected nothing", path, fs)


def output_file_contents(
    path: PathArg,
    validator: Callable[[str], None] | None = None,
    console: Console | None = None,
) -> str | None:
    """Print a file's contents under a header, for test diagnostics.

    The file is read while writers may still hold it open. Read errors are
    printed rather than raised; errors raised by the validator propagate.

    Args:
        path: File to print.
        validator: Called with the contents before printing.
        console: Console to print to.

    Returns:
        The contents, or None if the file could not be read.
    """
    console = console or Console()
    path = os.fspath(path)
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            contents = f.read()
    except OSError as e:
        console.print(f"Unable to read file at {escape(path)}: {escape(str(e))}")
        return None

    console.print(f"----- {escape(path)} -----")
    if validator is not None:
        validator(contents)
    console.print(escape(contents) + "\n\n")
    return contents


def all_files_in_directory(path: PathArg) -> list[Path]:
    """List the files directly inside a directory.

    Returns:
        Sorted file paths, empty if the directory does not exist.
    """
    directory = Path(path)
    if not directory.is_dir():
        return []
    return sorted(p for p in directory.iterdir() if p.is_file())
