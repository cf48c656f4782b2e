"""Shared test fixtures for modgraph tests."""

import shutil
import subprocess
import sys
from pathlib import Path

import pytest

sys.path.insert(0, "src")

from modgraph.exceptions import FileAccessError, InvalidRefError  # noqa: E402
from modgraph.facts.cache import DiskFactCache  # noqa: E402
from modgraph.snapshot.provider import (  # noqa: E402
    SnapshotProvider,
    new_workspace_dir,
    remove_workspace_dir,
    write_workspace_file,
)


class MemoryProvider(SnapshotProvider):
    """In-memory snapshot provider: ``{ref: {relative_path: content}}``."""

    def __init__(self, refs: dict, root: str = "/repo"):
        self.root = Path(root)
        self.refs = refs
        self.workspaces: list[Path] = []
        self.reads: list[tuple[str, str]] = []

    def resolve_ref(self, ref: str) -> str:
        if ref not in self.refs:
            raise InvalidRefError(ref, "unknown ref")
        return ref

    def list_files(self, ref: str) -> list[str]:
        return sorted(self.refs[self.resolve_ref(ref)])

    def read_file_at(self, path: str, ref: str) -> str:
        self.reads.append((ref, path))
        try:
            return self.refs[ref][path]
        except KeyError:
            raise FileAccessError(path, f"not present at {ref}")

    def materialize_workspace(self, ref: str) -> Path:
        workspace = new_workspace_dir(ref)
        for relative in self.list_files(ref):
            write_workspace_file(workspace, relative, self.refs[ref][relative], ref)
        self.workspaces.append(workspace)
        return workspace

    def cleanup(self, path: Path) -> None:
        remove_workspace_dir(path)


@pytest.fixture
def memory_provider():
    """Factory for in-memory providers."""
    return MemoryProvider


@pytest.fixture
def closed_disk_caches(monkeypatch):
    """Records every ``DiskFactCache.close()`` call, in order."""
    closed = []
    original = DiskFactCache.close

    def close(self):
        closed.append(self)
        original(self)

    monkeypatch.setattr(DiskFactCache, "close", close)
    return closed


@pytest.fixture
def cycle_refs():
    """Two refs of a tiny project; ``cycle`` adds b -> a."""
    return {
        "base": {
            "src/a.ts": "import { b } from './b';\nexport const a = b + 1;\n",
            "src/b.ts": "export const b = 1;\n",
        },
        "cycle": {
            "src/a.ts": "import { b } from './b';\nexport const a = b + 1;\n",
            "src/b.ts": "import { a } from './a';\nexport const b = 1;\nexport const c = a;\n",
        },
    }


def _git(repo: Path, *args: str) -> str:
    result = subprocess.run(
        ["git", "-C", str(repo), *args], capture_output=True, text=True, check=True
    )
    return result.stdout.strip()


@pytest.fixture
def git_repo(tmp_path):
    """Git repository with tag ``v1`` (a -> b) and HEAD (a -> b -> a)."""
    if shutil.which("git") is None:
        pytest.skip("git not found")
    repo = tmp_path / "repo"
    (repo / "src").mkdir(parents=True)
    _git(repo, "init", "-q")
    _git(repo, "config", "user.email", "test@test.com")
    _git(repo, "config", "user.name", "Test")
    _git(repo, "config", "commit.gpgsign", "false")

    (repo / "src" / "a.ts").write_text("import { b } from './b';\nexport const a = b + 1;\n")
    (repo / "src" / "b.ts").write_text("export const b = 1;\n")
    (repo / "README.md").write_text("# demo\n")
    _git(repo, "add", ".")
    _git(repo, "commit", "-q", "-m", "init")
    _git(repo, "tag", "v1")

    (repo / "src" / "b.ts").write_text(
        "import { a } from './a';\nexport const b = 1;\nexport const c = a;\n"
    )
    _git(repo, "commit", "-q", "-am", "add cycle")
    return repo
