"""Git-backed snapshot provider via the git CLI."""

import subprocess
from pathlib import Path
from typing import Optional

from ..config import AnalysisConfig
from ..exceptions import FileAccessError, GitCommandError, InvalidRefError
from ..logging_config import get_logger
from .provider import (
    WORKING_TREE,
    SnapshotProvider,
    new_workspace_dir,
    read_text,
    remove_workspace_dir,
    walk_source_files,
    write_workspace_file,
)

logger = get_logger(__name__)


class GitSnapshotProvider(SnapshotProvider):
    """Files of a git repository at any commit-ish, plus ``WORKTREE``.

    ``WORKTREE`` is the checked-out files on disk, including uncommitted
    changes, so a diff can compare a commit against work in progress.
    """

    def __init__(self, repo_path: str, config: Optional[AnalysisConfig] = None):
        self.root = Path(repo_path).resolve()
        self.config = config or AnalysisConfig()
        self.timeout = self.config.git_timeout_seconds

    def _run(self, *args: str) -> subprocess.CompletedProcess:
        cmd = ["git", "-C", str(self.root), *args]
        try:
            return subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise GitCommandError(args[0], "git executable not found")
        except subprocess.TimeoutExpired:
            raise GitCommandError(args[0], f"timed out after {self.timeout}s")

    def _git(self, *args: str) -> str:
        result = self._run(*args)
        if result.returncode != 0:
            raise GitCommandError(args[0], result.stderr.strip())
        return result.stdout

    def is_repository(self) -> bool:
        try:
            return self._run("rev-parse", "--git-dir").returncode == 0
        except GitCommandError:
            return False

    def resolve_ref(self, ref: str) -> str:
        if ref == WORKING_TREE:
            if not self.root.is_dir():
                raise InvalidRefError(ref, f"not a directory: {self.root}")
            return WORKING_TREE
        try:
            result = self._run("rev-parse", "--verify", "--quiet", f"{ref}^{{commit}}")
        except GitCommandError as e:
            raise InvalidRefError(ref, e.reason)
        if result.returncode != 0:
            raise InvalidRefError(ref, "not a commit in this repository")
        sha = result.stdout.strip()
        logger.debug("Resolved %s to %s", ref, sha)
        return sha

    def list_files(self, ref: str) -> list[str]:
        if ref == WORKING_TREE:
            return walk_source_files(self.root, self.config)
        revision = self.resolve_ref(ref)
        output = self._git("ls-tree", "-r", "-z", "--name-only", revision)
        files = [p for p in output.split("\0") if p and self.config.is_source_file(p)]
        return sorted(files)

    def read_file_at(self, path: str, ref: str) -> str:
        if ref == WORKING_TREE:
            return read_text(self.root / path)
        try:
            # "./" keeps the path relative to the -C directory, matching ls-tree
            return self._git("show", f"{ref}:./{path}")
        except GitCommandError as e:
            raise FileAccessError(path, f"at {ref}: {e.reason}")

    def materialize_workspace(self, ref: str) -> Path:
        revision = self.resolve_ref(ref)
        files = self.list_files(revision)
        workspace = new_workspace_dir(ref)
        try:
            for relative in files:
                write_workspace_file(
                    workspace, relative, self.read_file_at(relative, revision), ref
                )
        except Exception:
            remove_workspace_dir(workspace)
            raise
        logger.info("Materialized %d files of %s", len(files), ref)
        return workspace

    def cleanup(self, path: Path) -> None:
        remove_workspace_dir(path)
