"""Application context for dependency injection.

This module separates object creation from object use, so CLI commands can
be exercised with a recording invoker instead of real processes.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from fsrunners.config import Settings, load_settings
from fsrunners.locking import ExclusiveLockProbe
from fsrunners.operations import FileSystemOperations
from fsrunners.process import ProcessInvoker
from fsrunners.protocols import Invoker
from fsrunners.retry import EscalationHook, RetryingDirectoryDeleter
from fsrunners.types import RetryPolicy


@dataclass
class AppContext:
    """Container for application dependencies.

    The invoker is typed by its Protocol, so test doubles can be injected
    without inheritance.
    """

    settings: Settings
    invoker: Invoker
    probe: ExclusiveLockProbe = field(default_factory=ExclusiveLockProbe)

    def filesystem(self, runner: str) -> FileSystemOperations:
        """Build a façade for a named runner sharing this context's invoker.

        Raises:
            ValueError: If the runner is not known.
        """
        return FileSystemOperations.create(runner, invoker=self.invoker)

    def deleter(
        self,
        runner: str,
        policy: RetryPolicy | None = None,
        on_escalation: EscalationHook | None = None,
    ) -> RetryingDirectoryDeleter:
        """Build a retrying deleter for a named runner.

        Args:
            runner: Runner used for deletion.
            policy: Retry budget. Defaults to the configured one.
            on_escalation: Escalation callback.

        Returns:
            RetryingDirectoryDeleter instance.
        """
        return RetryingDirectoryDeleter(
            self.filesystem(runner),
            policy or self.settings.retry.to_policy(),
            on_escalation=on_escalation,
        )


def create_context(config_path: Path | None = None) -> AppContext:
    """Factory for application dependencies.

    Use this in production code. For tests, construct AppContext directly
    with test doubles.

    Args:
        config_path: Explicit config file.

    Returns:
        Configured AppContext.

    Raises:
        ConfigError: If the config file is invalid.
    """
    settings = load_settings(config_path)
    return AppContext(
        settings=settings,
        invoker=ProcessInvoker(timeout=settings.timeout_seconds),
    )
