"""Git collaborator for maintenance-step tests.

Repository layout queries go through GitPython. Commands whose exit status
and streams the caller inspects (maintenance tasks, ``unpack-objects`` fed
from a pack stream) run through the process invoker like every other backend.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from pathlib import Path

from git import Git, Repo
from git.exc import GitCommandError, InvalidGitRepositoryError, NoSuchPathError

from fsrunners.process import ProcessInvoker, StdinData
from fsrunners.protocols import Invoker
from fsrunners.types import InvocationResult

logger = logging.getLogger(__name__)

# Loose objects live in objects/<2 hex>/<38 hex>
LOOSE_OBJECT_DIR = re.compile(r"^[0-9a-f]{2}$")


class GitToolError(Exception):
    """Error resolving repository layout or running git."""

    pass


class GitTool:
    """Runs git against one repository and inspects its object store."""

    def __init__(self, repo_root: Path, invoker: Invoker | None = None) -> None:
        """Initialize the tool.

        Args:
            repo_root: Working tree root of the repository.
            invoker: Process invoker. Defaults to a ProcessInvoker.

        Note:
            Prefer using the factory method `create()` for construction.
        """
        self.repo_root = Path(repo_root)
        self.invoker = invoker or ProcessInvoker()
        self._objects_root: Path | None = None

    @classmethod
    def create(cls, repo_root: Path, timeout: float | None = None) -> GitTool:
        """Create a tool for a repository.

        Args:
            repo_root: Working tree root of the repository.
            timeout: Per-command timeout in seconds.

        Returns:
            Configured GitTool instance.
        """
        invoker = ProcessInvoker() if timeout is None else ProcessInvoker(timeout=timeout)
        return cls(repo_root, invoker=invoker)

    @property
    def executable(self) -> str:
        """Git executable as resolved by GitPython."""
        return Git.GIT_PYTHON_GIT_EXECUTABLE or "git"

    @property
    def objects_root(self) -> Path:
        """Object directory of the repository.

        Raises:
            GitToolError: If repo_root is not a git repository.
        """
        if self._objects_root is None:
            try:
                repo = Repo(self.repo_root)
                relative = repo.git.rev_parse("--git-path", "objects")
            except (InvalidGitRepositoryError, NoSuchPathError, GitCommandError) as e:
                raise GitToolError(f"Cannot resolve objects directory: {e}") from e
            self._objects_root = (self.repo_root / relative).resolve()
        return self._objects_root

    @property
    def pack_root(self) -> Path:
        """Pack directory of the repository."""
        return self.objects_root / "pack"

    def invoke(
        self,
        *args: str,
        env: Mapping[str, str] | None = None,
        stdin: StdinData | None = None,
    ) -> InvocationResult:
        """Run git in the repository root.

        Args:
            *args: Git arguments.
            env: Environment overrides for the git process only.
            stdin: Data for standard input.

        Returns:
            InvocationResult of the git process.
        """
        logger.debug("git %s", " ".join(args))
        return self.invoker.invoke(
            self.executable,
            list(args),
            working_directory=str(self.repo_root),
            stdin=stdin,
            env=env,
        )

    def run_maintenance_task(
        self, task: str, config: Mapping[str, str] | None = None
    ) -> InvocationResult:
        """Run one ``git maintenance`` task.

        Args:
            task: Task name (loose-objects, incremental-repack, ...).
            config: Configuration passed as ``-c key=value`` for this run.

        Returns:
            InvocationResult of the maintenance run.
        """
        args: list[str] = []
        for key, value in (config or {}).items():
            args.extend(["-c", f"{key}={value}"])
        args.extend(["maintenance", "run", f"--task={task}"])
        return self.invoke(*args)

    def unpack_objects(self, pack_stream: StdinData, object_directory: Path) -> InvocationResult:
        """Explode a pack into loose objects in another object directory.

        Args:
            pack_stream: Pack data, as bytes or a readable binary stream.
            object_directory: Object directory to write into.

        Returns:
            InvocationResult of ``git unpack-objects``.
        """
        return self.invoke(
            "unpack-objects",
            env={"GIT_OBJECT_DIRECTORY": str(object_directory)},
            stdin=pack_stream,
        )

    def loose_object_files(self) -> list[Path]:
        """List loose object files in the objects root."""
        return sorted(
            path
            for directory in self._iter_dirs(self.objects_root)
            if LOOSE_OBJECT_DIR.match(directory.name)
            for path in directory.iterdir()
            if path.is_file()
        )

    def pack_files(self) -> list[Path]:
        """List ``*.pack`` files in the pack root."""
        if not self.pack_root.is_dir():
            return []
        return sorted(self.pack_root.glob("*.pack"))

    @staticmethod
    def _iter_dirs(root: Path) -> Iterable[Path]:
        if not root.is_dir():
            return []
        return (p for p in root.iterdir() if p.is_dir())
