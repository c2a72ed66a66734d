"""CLI commands using Typer."""

from __future__ import annotations

from pathlib import Path
from typing import TYPE_CHECKING, Annotated

if TYPE_CHECKING:
    from fsrunners.context import AppContext

import typer

from fsrunners import __version__
from fsrunners.config import ConfigError
from fsrunners.console import Reporter
from fsrunners.context import create_context
from fsrunners.errors import FsRunnersError
from fsrunners.runners import RUNNERS, get_runner
from fsrunners.types import Operation, OperationKind, RetryPolicy

app = typer.Typer(
    name="fsrunners",
    help="Run file-system operations through native calls or command shells",
    no_args_is_help=True,
)

reporter = Reporter()


def version_callback(value: bool) -> None:
    """Show version and exit."""
    if value:
        reporter.console.print(f"fs-runners v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Annotated[
        bool,
        typer.Option(
            "--version",
            "-v",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit",
        ),
    ] = False,
) -> None:
    """Run file-system operations through native calls or command shells."""
    pass


ConfigOption = Annotated[
    Path | None, typer.Option("--config", help="Config file (YAML)")
]
RunnerOption = Annotated[
    str, typer.Option("--runner", "-r", help="Runner: native, bash, cmd, powershell")
]


def _load_context(context: AppContext | None, config: Path | None) -> AppContext:
    """Use the injected context or build one from config."""
    if context is not None:
        return context
    try:
        return create_context(config)
    except ConfigError as e:
        reporter.show_error(str(e))
        raise typer.Exit(1) from e


def _parse_mode(mode: str | None) -> int | None:
    """Parse an octal permission string such as ``644``."""
    if mode is None:
        return None
    try:
        return int(mode, 8)
    except ValueError as e:
        reporter.show_error(f"Invalid mode '{mode}': expected octal digits")
        raise typer.Exit(1) from e


@app.command("runners")
def list_runners(
    config: ConfigOption = None,
    _context=None,
) -> None:
    """List runners, their availability and unsupported operations."""
    ctx = _load_context(_context, config)
    selected = set(ctx.settings.runner_names())
    rows = []
    for name in RUNNERS:
        runner = get_runner(name, invoker=ctx.invoker)
        rows.append((name, runner.is_available(), name in selected, runner.unsupported_operations()))
    reporter.show_runners(rows)


@app.command("run")
def run_operation(
    kind: Annotated[OperationKind, typer.Argument(help="Operation to perform")],
    path: Annotated[str, typer.Argument(help="Target path")],
    second_path: Annotated[
        str | None,
        typer.Argument(help="Destination (move, replace, rename) or existing file (hard_link)"),
    ] = None,
    runner: RunnerOption = "native",
    content: Annotated[
        str | None, typer.Option("--content", "-c", help="Text for write and append")
    ] = None,
    mode: Annotated[str | None, typer.Option("--mode", "-m", help="Octal mode for chmod")] = None,
    cwd: Annotated[
        str | None, typer.Option("--cwd", help="Working directory for rename_directory")
    ] = None,
    config: ConfigOption = None,
    _context=None,
) -> None:
    """Run one operation and print its classified outcome."""
    ctx = _load_context(_context, config)
    paths = (path,) if second_path is None else (path, second_path)

    try:
        operation = Operation(
            kind,
            paths,
            content=content,
            mode=_parse_mode(mode),
            working_directory=cwd,
        )
        filesystem = ctx.filesystem(runner)
        outcome = filesystem.run(operation)
    except ValueError as e:
        reporter.show_error(str(e))
        raise typer.Exit(1) from e
    except FsRunnersError as e:
        reporter.show_error(str(e))
        raise typer.Exit(1) from e

    reporter.show_outcome(outcome)
    if not outcome.succeeded:
        raise typer.Exit(1)


@app.command("rmdir")
def remove_directory(
    path: Annotated[str, typer.Argument(help="Directory to delete")],
    runner: RunnerOption = "native",
    attempts: Annotated[
        int | None, typer.Option("--attempts", "-n", min=1, help="Maximum delete rounds")
    ] = None,
    delay: Annotated[
        float | None, typer.Option("--delay", "-d", min=0, help="Seconds between rounds")
    ] = None,
    config: ConfigOption = None,
    _context=None,
) -> None:
    """Delete a directory, retrying while something holds it open."""
    ctx = _load_context(_context, config)
    configured = ctx.settings.retry.to_policy()
    policy = RetryPolicy(
        max_attempts=attempts if attempts is not None else configured.max_attempts,
        delay=delay if delay is not None else configured.delay,
        escalation_threshold=configured.escalation_threshold,
    )

    try:
        result = ctx.deleter(runner, policy).delete(path)
    except ValueError as e:
        reporter.show_error(str(e))
        raise typer.Exit(1) from e
    except FsRunnersError as e:
        reporter.show_error(str(e))
        raise typer.Exit(1) from e

    reporter.show_deletion(result)
    if not result.succeeded:
        raise typer.Exit(1)


@app.command("probe-lock")
def probe_lock(
    path: Annotated[str, typer.Argument(help="Lock file to probe")],
    config: ConfigOption = None,
    _context=None,
) -> None:
    """Check whether a lock file can be locked exclusively right now."""
    ctx = _load_context(_context, config)
    result = ctx.probe.probe(path)
    reporter.show_lock(result)
    if not result.acquired:
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
