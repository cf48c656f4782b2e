"""Analysis-related exceptions: file access and fact extraction."""

from .base import ModgraphError


class AnalysisError(ModgraphError):
    """Base class for analysis-related errors."""
    pass


class FileAccessError(AnalysisError):
    """Raised when a file cannot be accessed or read."""

    def __init__(self, filepath: str, reason: str):
        super().__init__(
            f"Cannot access file: {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason


class ParsingError(AnalysisError):
    """Raised when import/export facts cannot be extracted from a file."""

    def __init__(self, filepath: str, reason: str):
        super().__init__(
            f"Failed to extract module facts from {filepath}",
            details={"filepath": str(filepath), "reason": reason},
        )
        self.filepath = filepath
        self.reason = reason
