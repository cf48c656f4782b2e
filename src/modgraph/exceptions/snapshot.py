"""Snapshot-related exceptions: revision references and temporary workspaces."""

from .base import ModgraphError


class SnapshotError(ModgraphError):
    """Base class for errors while acquiring a snapshot of the codebase."""
    pass


class InvalidRefError(SnapshotError):
    """Raised when a revision reference cannot be resolved.

    Fatal for a diff: there is nothing to compare without both snapshots.
    """

    def __init__(self, ref: str, reason: str):
        super().__init__(f"Invalid reference: {ref}", details={"ref": ref, "reason": reason})
        self.ref = ref
        self.reason = reason


class WorkspaceError(SnapshotError):
    """Raised when a temporary workspace cannot be materialized."""

    def __init__(self, ref: str, reason: str):
        super().__init__(
            f"Failed to create workspace for {ref}", details={"ref": ref, "reason": reason}
        )
        self.ref = ref
        self.reason = reason


class GitCommandError(SnapshotError):
    """Raised when a git invocation fails, times out or git is missing."""

    def __init__(self, command: str, reason: str):
        super().__init__(f"git {command} failed", details={"reason": reason})
        self.command = command
        self.reason = reason
