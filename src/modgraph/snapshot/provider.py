"""Snapshot providers: where the files of a ref come from.

A provider answers four questions about a ref (what it resolves to, which
files it has, what a file contains, and a directory holding its files) and
hides how. The core never spawns processes; version control lives behind
this interface.
"""

import os
import shutil
import tempfile
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Optional, Protocol

from ..config import AnalysisConfig
from ..exceptions import FileAccessError, InvalidRefError, WorkspaceError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Ref naming the files currently on disk
WORKING_TREE = "WORKTREE"

# Directories never walked, whatever the exclude patterns say
_PRUNED_DIRECTORIES = frozenset({".git", "node_modules", ".hg", ".svn"})


class SnapshotProvider(Protocol):
    """Access to the files of a codebase at a given ref.

    File paths are POSIX-style and relative to ``root``.
    """

    root: Path

    def resolve_ref(self, ref: str) -> str:
        """Resolve ``ref`` to a stable identifier. Raises ``InvalidRefError``."""
        ...

    def list_files(self, ref: str) -> list[str]:
        """Source files present at ``ref``, sorted."""
        ...

    def read_file_at(self, path: str, ref: str) -> str:
        """Content of ``path`` at ``ref``. Raises ``FileAccessError``."""
        ...

    def materialize_workspace(self, ref: str) -> Path:
        """Write the source files of ``ref`` into a new temporary directory."""
        ...

    def cleanup(self, path: Path) -> None:
        """Remove a directory returned by ``materialize_workspace``."""
        ...

    @contextmanager
    def workspace(self, ref: str) -> Iterator[Path]:
        """Temporary workspace for ``ref``, removed on every exit path."""
        path = self.materialize_workspace(ref)
        logger.debug("Workspace for %s at %s", ref, path)
        try:
            yield path
        finally:
            try:
                self.cleanup(path)
            except OSError as e:
                logger.warning("Failed to remove workspace %s: %s", path, e)


def new_workspace_dir(ref: str) -> Path:
    """Create an empty temporary directory for a workspace of ``ref``."""
    safe_ref = "".join(c if c.isalnum() else "-" for c in ref)[:40]
    try:
        return Path(tempfile.mkdtemp(prefix=f"modgraph-{safe_ref}-"))
    except OSError as e:
        raise WorkspaceError(ref, str(e))


def remove_workspace_dir(path: Path) -> None:
    if path.exists():
        shutil.rmtree(path)
        logger.debug("Removed workspace %s", path)


def write_workspace_file(workspace: Path, relative_path: str, content: str, ref: str) -> None:
    target = workspace / relative_path
    try:
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(content, encoding="utf-8")
    except OSError as e:
        raise WorkspaceError(ref, f"{relative_path}: {e}")


def walk_source_files(root: Path, config: AnalysisConfig) -> list[str]:
    """Source files under ``root`` as sorted relative POSIX paths."""
    found: list[str] = []
    for dirpath, dirnames, filenames in os.walk(root):
        dirnames[:] = sorted(d for d in dirnames if d not in _PRUNED_DIRECTORIES)
        for filename in filenames:
            full = Path(dirpath) / filename
            relative = full.relative_to(root).as_posix()
            if not config.is_source_file(relative):
                continue
            try:
                if full.stat().st_size > config.max_file_size_bytes:
                    logger.info(
                        "Skipping %s: larger than %.1f MB", relative, config.max_file_size_mb
                    )
                    continue
            except OSError as e:
                logger.warning("Cannot stat %s: %s", relative, e)
                continue
            found.append(relative)
    return sorted(found)


def read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        raise FileAccessError(str(path), str(e))


class WorkingTreeProvider(SnapshotProvider):
    """The files on disk under ``root``; the only ref is ``WORKTREE``."""

    def __init__(self, root: str, config: Optional[AnalysisConfig] = None):
        self.root = Path(root).resolve()
        self.config = config or AnalysisConfig()

    def resolve_ref(self, ref: str) -> str:
        if ref != WORKING_TREE:
            raise InvalidRefError(ref, f"only {WORKING_TREE} is available without version control")
        if not self.root.is_dir():
            raise InvalidRefError(ref, f"not a directory: {self.root}")
        return WORKING_TREE

    def list_files(self, ref: str) -> list[str]:
        self.resolve_ref(ref)
        return walk_source_files(self.root, self.config)

    def read_file_at(self, path: str, ref: str) -> str:
        return read_text(self.root / path)

    def materialize_workspace(self, ref: str) -> Path:
        files = self.list_files(ref)
        workspace = new_workspace_dir(ref)
        try:
            for relative in files:
                write_workspace_file(workspace, relative, self.read_file_at(relative, ref), ref)
        except Exception:
            remove_workspace_dir(workspace)
            raise
        return workspace

    def cleanup(self, path: Path) -> None:
        remove_workspace_dir(path)
