"""Graph snapshots of a codebase at a ref, and where their files come from."""

from .git import GitSnapshotProvider
from .manager import SnapshotManager, default_cache
from .models import GraphSnapshot
from .provider import WORKING_TREE, SnapshotProvider, WorkingTreeProvider

__all__ = [
    "GitSnapshotProvider",
    "GraphSnapshot",
    "SnapshotManager",
    "SnapshotProvider",
    "WORKING_TREE",
    "WorkingTreeProvider",
    "default_cache",
]
