"""Advisory lock probing for lock files.

Producers such as ``git`` keep a lock file open while they work. The probe
tries to take an exclusive lock on the same file without blocking: if any
holder has it, in shared or exclusive mode, the probe fails.

On Windows ``msvcrt`` offers only byte-range locks with no shared mode, so
both modes map to an exclusive lock on the first byte there.
"""

from __future__ import annotations

import logging
import os
import sys
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from enum import Enum

from fsrunners.operations import PathArg
from fsrunners.types import RetryPolicy

if sys.platform == "win32":  # pragma: no cover
    import msvcrt as _msvcrt
else:
    import fcntl as _fcntl

logger = logging.getLogger(__name__)


class LockMode(str, Enum):
    """Mode a lock holder takes."""

    SHARED = "shared"
    EXCLUSIVE = "exclusive"


@dataclass(frozen=True)
class LockProbeResult:
    """Result of one lock probe.

    Attributes:
        path: Lock file that was probed.
        acquired: True if the exclusive lock could be taken.
        detail: Error text when it could not.
    """

    path: str
    acquired: bool
    detail: str = ""


def _lock(fd: int, mode: LockMode, blocking: bool) -> None:
    if sys.platform == "win32":  # pragma: no cover
        _msvcrt.locking(fd, _msvcrt.LK_LOCK if blocking else _msvcrt.LK_NBLCK, 1)
    else:
        flags = _fcntl.LOCK_SH if mode is LockMode.SHARED else _fcntl.LOCK_EX
        if not blocking:
            flags |= _fcntl.LOCK_NB
        _fcntl.flock(fd, flags)


def _unlock(fd: int) -> None:
    if sys.platform == "win32":  # pragma: no cover
        os.lseek(fd, 0, os.SEEK_SET)
        _msvcrt.locking(fd, _msvcrt.LK_UNLCK, 1)
    else:
        _fcntl.flock(fd, _fcntl.LOCK_UN)


def _open_lock_file(path: str) -> int:
    return os.open(path, os.O_RDWR | os.O_CREAT, 0o644)


class ExclusiveLockProbe:
    """Checks whether a lock file is currently free.

    Satisfies a simple ``probe(path)`` interface so tests can swap in fakes.
    """

    def probe(self, path: PathArg) -> LockProbeResult:
        """Try to take and immediately release an exclusive lock.

        The file is created if it does not exist.

        Args:
            path: Lock file to probe.

        Returns:
            LockProbeResult. ``acquired`` is False while any holder has the lock.
        """
        path = os.fspath(path)
        try:
            fd = _open_lock_file(path)
        except OSError as e:
            # A holder that denies sharing makes the open itself fail
            logger.debug("Could not open %s for probing: %s", path, e)
            return LockProbeResult(path, acquired=False, detail=str(e))

        try:
            _lock(fd, LockMode.EXCLUSIVE, blocking=False)
        except OSError as e:
            logger.debug("Lock on %s is held: %s", path, e)
            return LockProbeResult(path, acquired=False, detail=str(e))
        else:
            _unlock(fd)
            return LockProbeResult(path, acquired=True)
        finally:
            os.close(fd)


@contextmanager
def hold_lock(path: PathArg, mode: LockMode = LockMode.EXCLUSIVE) -> Iterator[int]:
    """Hold a lock on a file for the duration of the block.

    Blocks until the lock is available.

    Args:
        path: Lock file, created if missing.
        mode: Shared or exclusive.

    Yields:
        The open file descriptor.
    """
    fd = _open_lock_file(os.fspath(path))
    try:
        _lock(fd, mode, blocking=True)
        try:
            yield fd
        finally:
            _unlock(fd)
    finally:
        os.close(fd)


def wait_for_release(
    path: PathArg,
    policy: RetryPolicy | None = None,
    sleep: Callable[[float], None] = time.sleep,
    probe: ExclusiveLockProbe | None = None,
) -> LockProbeResult:
    """Poll a lock file until it is free or the budget runs out.

    Args:
        path: Lock file to poll.
        policy: Retry budget. Defaults to RetryPolicy().
        sleep: Delay function, replaceable in tests.
        probe: Probe to use.

    Returns:
        The first acquired result, or the last failed one.
    """
    policy = policy or RetryPolicy()
    probe = probe or ExclusiveLockProbe()
    result = probe.probe(path)
    attempts = 1
    while not result.acquired and attempts < policy.max_attempts:
        sleep(policy.delay)
        result = probe.probe(path)
        attempts += 1
    if not result.acquired:
        logger.warning("Lock %s still held after %d probe(s)", result.path, attempts)
    return result
