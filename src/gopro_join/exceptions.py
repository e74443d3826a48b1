"""
Custom exceptions for chapter merging
"""

from pathlib import Path
from typing import Optional


class GoProJoinError(Exception):
    """Base exception for all chapter merging errors"""
    pass


class ClassificationError(GoProJoinError):
    """Raised when a group of chapters cannot be turned into a merge job"""

    def __init__(self, group_id: str, message: str):
        super().__init__(f"Group {group_id}: {message}")
        self.group_id = group_id
        self.reason = message


class InspectionError(GoProJoinError):
    """Raised when the duration of a chapter cannot be probed"""

    def __init__(self, path: Path, message: str):
        super().__init__(f"Failed to inspect {path}: {message}")
        self.path = Path(path)


class MergeError(GoProJoinError):
    """Raised when the external merge fails or cannot be started"""

    def __init__(self, message: str, diagnostic: Optional[str] = None):
        super().__init__(message)
        self.diagnostic = diagnostic


class ConfigurationError(GoProJoinError):
    """Raised when configuration is invalid"""
    pass
