"""Tests for retry module."""

from __future__ import annotations

import logging
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from fsrunners.errors import DirectoryDeletionError
from fsrunners.operations import FileSystemOperations
from fsrunners.retry import (
    DeletionResult,
    DeletionState,
    RetryingDirectoryDeleter,
    delete_directory_with_limited_retries,
)
from fsrunners.types import ClassifiedOutcome, Operation, OperationKind, OutcomeCategory, RetryPolicy


def busy_outcome(path: str) -> ClassifiedOutcome:
    return ClassifiedOutcome(
        Operation(OperationKind.DELETE_DIRECTORY, (path,)),
        OutcomeCategory.BUSY,
        raw_text="The process cannot access the file because it is being used by another process.",
        runner="fake",
    )


class StubbornFileSystem:
    """Façade double whose directory survives a number of delete attempts."""

    def __init__(self, survive: int) -> None:
        self.survive = survive
        self.deletes = 0
        self.present = True

    def directory_exists(self, path: str) -> bool:
        return self.present

    def delete_directory(self, path: str) -> ClassifiedOutcome:
        self.deletes += 1
        if self.deletes > self.survive:
            self.present = False
            return ClassifiedOutcome(
                Operation(OperationKind.DELETE_DIRECTORY, (path,)), OutcomeCategory.SUCCESS
            )
        return busy_outcome(path)


class TestRetryingDirectoryDeleter:
    """Tests for RetryingDirectoryDeleter."""

    @pytest.fixture
    def sleep(self) -> MagicMock:
        return MagicMock()

    def test_absent_directory_succeeds_without_attempts(self, sleep: MagicMock) -> None:
        fs = StubbornFileSystem(survive=0)
        fs.present = False
        deleter = RetryingDirectoryDeleter(fs, RetryPolicy(), sleep=sleep)  # type: ignore[arg-type]

        result = deleter.delete("/r/d")

        assert result.state is DeletionState.SUCCEEDED
        assert result.attempts == 0
        assert fs.deletes == 0

    def test_succeeds_on_first_attempt(self, sleep: MagicMock) -> None:
        fs = StubbornFileSystem(survive=0)
        deleter = RetryingDirectoryDeleter(fs, RetryPolicy(), sleep=sleep)  # type: ignore[arg-type]

        result = deleter.delete("/r/d")

        assert result.succeeded
        assert result.attempts == 1
        sleep.assert_not_called()

    def test_succeeds_within_budget(self, sleep: MagicMock) -> None:
        """Test the directory is deleted once whatever held it lets go."""
        fs = StubbornFileSystem(survive=3)
        deleter = RetryingDirectoryDeleter(
            fs, RetryPolicy(max_attempts=5, delay=0.25), sleep=sleep  # type: ignore[arg-type]
        )

        result = deleter.delete("/r/d")

        assert result.succeeded
        assert result.attempts == 4
        assert sleep.call_count == 3
        sleep.assert_called_with(0.25)

    def test_fails_after_exactly_max_attempts(self, sleep: MagicMock) -> None:
        fs = StubbornFileSystem(survive=100)
        deleter = RetryingDirectoryDeleter(
            fs, RetryPolicy(max_attempts=4, delay=0.5), sleep=sleep  # type: ignore[arg-type]
        )

        result = deleter.delete("/r/d")

        assert result.state is DeletionState.FAILED
        assert result.attempts == 4
        assert fs.deletes == 4
        # no sleep after the final round
        assert sleep.call_count == 3
        assert result.last_outcome is not None
        assert result.last_outcome.category is OutcomeCategory.BUSY

    def test_escalation_fires_and_resets(
        self, sleep: MagicMock, caplog: pytest.LogCaptureFixture
    ) -> None:
        """Test escalation fires every threshold failures and the loop continues."""
        fs = StubbornFileSystem(survive=100)
        hook = MagicMock()
        deleter = RetryingDirectoryDeleter(
            fs,  # type: ignore[arg-type]
            RetryPolicy(max_attempts=7, delay=0, escalation_threshold=3),
            on_escalation=hook,
            sleep=sleep,
        )

        with caplog.at_level(logging.WARNING, logger="fsrunners.retry"):
            result = deleter.delete("/r/d")

        assert result.attempts == 7
        assert hook.call_count == 2
        hook.assert_called_with("/r/d", 3)
        assert "survived 3 consecutive delete attempts" in caplog.text

    def test_observer_used_for_checks(self, sleep: MagicMock) -> None:
        """Test a separate observer decides whether the directory is gone."""
        fs = StubbornFileSystem(survive=0)
        observer = MagicMock()
        observer.directory_exists.side_effect = [True, True, False]
        deleter = RetryingDirectoryDeleter(
            fs, RetryPolicy(max_attempts=5, delay=0), observer=observer, sleep=sleep  # type: ignore[arg-type]
        )

        result = deleter.delete("/r/d")

        assert result.attempts == 2
        assert observer.directory_exists.call_count == 3

    def test_real_directory(self, native_fs: FileSystemOperations, tmp_path: Path) -> None:
        target = tmp_path / "d"
        (target / "sub").mkdir(parents=True)

        result = RetryingDirectoryDeleter(native_fs).delete(target)

        assert result.succeeded
        assert not target.exists()


class TestDeletionResult:
    """Tests for DeletionResult."""

    def test_raise_for_failure_passes_success(self) -> None:
        result = DeletionResult("/r/d", DeletionState.SUCCEEDED, 1)
        assert result.raise_for_failure() is result

    def test_raise_for_failure_includes_backend_output(self) -> None:
        result = DeletionResult("/r/d", DeletionState.FAILED, 10, busy_outcome("/r/d"))

        with pytest.raises(DirectoryDeletionError) as exc_info:
            result.raise_for_failure()

        message = str(exc_info.value)
        assert "after 10 attempt(s)" in message
        assert "being used by another process" in message


class TestDeleteDirectoryWithLimitedRetries:
    """Tests for the module-level helper."""

    def test_deletes(self, tmp_path: Path) -> None:
        target = tmp_path / "d"
        target.mkdir()
        (target / "f.txt").write_text("x")

        result = delete_directory_with_limited_retries(target)

        assert result.succeeded
        assert not target.exists()

    def test_missing_is_success(self, tmp_path: Path) -> None:
        result = delete_directory_with_limited_retries(tmp_path / "missing", max_retries=2)
        assert result.succeeded
        assert result.attempts == 0
