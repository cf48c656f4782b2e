"""Exception hierarchy for modgraph."""

from .analysis import AnalysisError, FileAccessError, ParsingError
from .base import ModgraphError
from .config import ConfigurationError, InvalidConfigError
from .snapshot import GitCommandError, InvalidRefError, SnapshotError, WorkspaceError

__all__ = [
    "ModgraphError",
    "AnalysisError",
    "FileAccessError",
    "ParsingError",
    "SnapshotError",
    "InvalidRefError",
    "GitCommandError",
    "WorkspaceError",
    "ConfigurationError",
    "InvalidConfigError",
]
