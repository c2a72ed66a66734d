"""Tests for process module."""

from __future__ import annotations

import io
import os
from pathlib import Path
from unittest.mock import patch

import pytest
from conftest import requires_bash

from fsrunners.errors import ProcessLaunchError
from fsrunners.process import ProcessInvoker


@requires_bash
class TestProcessInvoker:
    """Tests for ProcessInvoker against a real shell."""

    @pytest.fixture
    def invoker(self) -> ProcessInvoker:
        return ProcessInvoker(timeout=10)

    def test_captures_streams_separately(self, invoker: ProcessInvoker) -> None:
        """Test stdout and stderr are captured apart."""
        result = invoker.invoke("bash", ["-c", "printf out; printf err >&2; exit 3"])

        assert result.exit_code == 3
        assert result.stdout == "out"
        assert result.stderr == "err"
        assert result.timed_out is False

    def test_newlines_untranslated(self, invoker: ProcessInvoker) -> None:
        """Test carriage returns in output survive decoding."""
        result = invoker.invoke("bash", ["-c", "printf 'a\\r\\n'"])
        assert result.stdout == "a\r\n"

    def test_working_directory(self, invoker: ProcessInvoker, tmp_path: Path) -> None:
        """Test the child runs in the requested directory."""
        result = invoker.invoke("bash", ["-c", "pwd -P"], working_directory=str(tmp_path))
        assert result.stdout.strip() == str(tmp_path.resolve())

    def test_stdin_text(self, invoker: ProcessInvoker) -> None:
        """Test text is fed on standard input."""
        result = invoker.invoke("bash", ["-c", "cat"], stdin="hello")
        assert result.stdout == "hello"

    def test_stdin_stream(self, invoker: ProcessInvoker) -> None:
        """Test a binary stream is fed on standard input."""
        result = invoker.invoke("bash", ["-c", "wc -c"], stdin=io.BytesIO(b"12345"))
        assert result.stdout.strip() == "5"

    def test_empty_stdin_by_default(self, invoker: ProcessInvoker) -> None:
        """Test a read from stdin sees end of input instead of hanging."""
        result = invoker.invoke("bash", ["-c", "cat; echo done"])
        assert result.stdout == "done\n"

    def test_env_applies_to_child_only(self, invoker: ProcessInvoker) -> None:
        """Test environment overrides reach the child without leaking."""
        result = invoker.invoke(
            "bash", ["-c", 'printf "%s" "$FSRUNNERS_TEST_VAR"'], env={"FSRUNNERS_TEST_VAR": "x1"}
        )
        assert result.stdout == "x1"
        assert "FSRUNNERS_TEST_VAR" not in os.environ

    def test_env_keeps_inherited_variables(self, invoker: ProcessInvoker) -> None:
        """Test overrides are merged onto the current environment."""
        result = invoker.invoke("bash", ["-c", 'printf "%s" "$PATH"'], env={"OTHER": "1"})
        assert result.stdout == os.environ["PATH"]

    def test_timeout(self) -> None:
        """Test a slow child is killed and reported as timed out."""
        invoker = ProcessInvoker(timeout=0.2)
        result = invoker.invoke("bash", ["-c", "sleep 5"])

        assert result.timed_out is True
        assert result.exit_code == -1
        assert result.succeeded is False

    def test_timeout_override(self, invoker: ProcessInvoker) -> None:
        """Test a per-call timeout overrides the default."""
        result = invoker.invoke("bash", ["-c", "sleep 5"], timeout=0.2)
        assert result.timed_out is True

    def test_string_arguments_split(self, invoker: ProcessInvoker) -> None:
        """Test a pre-rendered command line is split into arguments."""
        result = invoker.invoke("bash", '-c "printf split"')
        assert result.stdout == "split"


class TestProcessLaunchFailure:
    """Tests for launch failures."""

    def test_missing_executable(self) -> None:
        """Test a missing executable raises ProcessLaunchError."""
        invoker = ProcessInvoker()
        with pytest.raises(ProcessLaunchError) as exc_info:
            invoker.invoke("definitely-not-a-real-program-fsrunners")
        assert exc_info.value.executable == "definitely-not-a-real-program-fsrunners"

    def test_missing_working_directory(self, tmp_path: Path) -> None:
        """Test a missing working directory raises ProcessLaunchError."""
        invoker = ProcessInvoker()
        with patch("fsrunners.process.subprocess.run", side_effect=FileNotFoundError("gone")):
            with pytest.raises(ProcessLaunchError, match="gone"):
                invoker.invoke("bash", [], working_directory=str(tmp_path / "missing"))
