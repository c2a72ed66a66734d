"""Tests for CLI commands using context injection.

Commands accept a _context parameter for dependency injection, so they can be
called directly with a recording invoker instead of real shells.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest
import typer

from fsrunners import __version__, cli
from fsrunners.config import RetrySettings, Settings
from fsrunners.context import AppContext
from fsrunners.locking import LockProbeResult
from fsrunners.types import OperationKind


@pytest.fixture
def mock_context(recording_invoker: Any) -> AppContext:
    """Create an AppContext with default settings and a recording invoker."""
    return AppContext(
        settings=Settings(retry=RetrySettings(max_attempts=2, delay_seconds=0)),
        invoker=recording_invoker,
    )


class TestVersion:
    def test_version_callback(self, capsys: pytest.CaptureFixture[str]) -> None:
        with pytest.raises(typer.Exit):
            cli.version_callback(True)
        assert __version__ in capsys.readouterr().out

    def test_version_callback_noop(self) -> None:
        cli.version_callback(False)


class TestRunnersCommand:
    """Tests for the runners command."""

    def test_lists_all_runners(
        self, mock_context: AppContext, capsys: pytest.CaptureFixture[str]
    ) -> None:
        cli.list_runners(_context=mock_context)

        out = capsys.readouterr().out
        for name in ("native", "bash", "cmd", "powershell"):
            assert name in out
        assert "chmod" in out


class TestRunCommand:
    """Tests for the run command."""

    def test_native_success(
        self, mock_context: AppContext, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        target = tmp_path / "a.txt"

        cli.run_operation(OperationKind.CREATE_FILE, str(target), _context=mock_context)

        assert target.exists()
        assert "success" in capsys.readouterr().out

    def test_native_failure_exits_1(
        self, mock_context: AppContext, tmp_path: Path, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            cli.run_operation(
                OperationKind.DELETE_FILE, str(tmp_path / "missing"), _context=mock_context
            )

        assert exc_info.value.exit_code == 1
        assert "not_found" in capsys.readouterr().out

    def test_write_with_content(self, mock_context: AppContext, tmp_path: Path) -> None:
        target = tmp_path / "a.txt"

        cli.run_operation(
            OperationKind.WRITE, str(target), content="hello", _context=mock_context
        )

        assert target.read_text() == "hello"

    def test_shell_runner_uses_context_invoker(
        self, mock_context: AppContext, recording_invoker: Any
    ) -> None:
        cli.run_operation(
            OperationKind.DELETE_FILE, "C:\\a.txt", runner="cmd", _context=mock_context
        )

        assert recording_invoker.last.executable == "cmd.exe"
        assert recording_invoker.last.arguments == '/C del "C:\\a.txt"'

    def test_chmod_mode_parsed_as_octal(
        self, mock_context: AppContext, recording_invoker: Any
    ) -> None:
        cli.run_operation(
            OperationKind.CHMOD, "/r/a", runner="bash", mode="640", _context=mock_context
        )
        assert recording_invoker.last.arguments[-1] == "chmod 640 -- /r/a"

    def test_invalid_mode(self, mock_context: AppContext) -> None:
        with pytest.raises(typer.Exit) as exc_info:
            cli.run_operation(OperationKind.CHMOD, "/r/a", mode="9x", _context=mock_context)
        assert exc_info.value.exit_code == 1

    def test_unsupported_exits_1(
        self, mock_context: AppContext, capsys: pytest.CaptureFixture[str]
    ) -> None:
        with pytest.raises(typer.Exit):
            cli.run_operation(
                OperationKind.CHMOD, "C:\\a", runner="cmd", mode="644", _context=mock_context
            )
        assert "unsupported" in capsys.readouterr().out

    def test_missing_second_path(self, mock_context: AppContext) -> None:
        """Test invalid operation arguments exit with an error."""
        with pytest.raises(typer.Exit) as exc_info:
            cli.run_operation(OperationKind.MOVE, "/r/a", _context=mock_context)
        assert exc_info.value.exit_code == 1

    def test_unknown_runner(self, mock_context: AppContext) -> None:
        with pytest.raises(typer.Exit):
            cli.run_operation(OperationKind.READ, "/r/a", runner="zsh", _context=mock_context)


class TestRmdirCommand:
    """Tests for the rmdir command."""

    def test_deletes_directory(self, mock_context: AppContext, tmp_path: Path) -> None:
        target = tmp_path / "d"
        (target / "sub").mkdir(parents=True)

        cli.remove_directory(str(target), _context=mock_context)

        assert not target.exists()

    def test_failure_exits_1(self, recording_invoker: Any) -> None:
        """Test a directory that survives every round fails the command."""
        # every listing shows the directory; every delete reports busy
        listing = "d/\n"
        for _ in range(5):
            recording_invoker.queue(0, stdout=listing)
            recording_invoker.queue(1, stderr="rm: cannot remove 'd': Device or resource busy")
        ctx = AppContext(
            settings=Settings(retry=RetrySettings(max_attempts=2, delay_seconds=0)),
            invoker=recording_invoker,
        )

        with pytest.raises(typer.Exit) as exc_info:
            cli.remove_directory("/r/d", runner="bash", _context=ctx)

        assert exc_info.value.exit_code == 1

    def test_attempts_override(self, mock_context: AppContext, tmp_path: Path) -> None:
        cli.remove_directory(
            str(tmp_path / "missing"), attempts=1, delay=0, _context=mock_context
        )


class TestProbeLockCommand:
    """Tests for the probe-lock command."""

    def test_free(self, mock_context: AppContext, capsys: pytest.CaptureFixture[str]) -> None:
        mock_context.probe = MagicMock()
        mock_context.probe.probe.return_value = LockProbeResult("x.lock", True)

        cli.probe_lock("x.lock", _context=mock_context)

        assert "free" in capsys.readouterr().out

    def test_held_exits_1(self, mock_context: AppContext) -> None:
        mock_context.probe = MagicMock()
        mock_context.probe.probe.return_value = LockProbeResult("x.lock", False, "busy")

        with pytest.raises(typer.Exit) as exc_info:
            cli.probe_lock("x.lock", _context=mock_context)

        assert exc_info.value.exit_code == 1
