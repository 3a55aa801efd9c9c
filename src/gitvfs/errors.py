"""Exceptions raised by the versioning layer."""

from typing import List, Optional


class VersioningError(Exception):
    """Base exception for versioning errors"""
    pass


class RepositoryError(VersioningError):
    """Raised when a repository primitive fails"""
    def __init__(self, message: str, command: Optional[List[str]] = None, stderr: str = ""):
        self.command = command or []
        self.stderr = stderr
        super().__init__(message)


class RepositoryUnavailableError(RepositoryError):
    """Raised when no repository can be detected or initialized at the root"""
    pass


class BranchExistsError(RepositoryError):
    """Raised when creating a branch whose name is already taken"""
    pass


class MergeConflictError(RepositoryError):
    """Raised when a merge cannot be completed automatically"""
    pass


class TaskConflictError(VersioningError):
    """Raised when starting a task while another one is active"""
    def __init__(self, active_task_id: str):
        self.active_task_id = active_task_id
        super().__init__(
            f"Task {active_task_id} is already active. Complete it before starting a new task."
        )


class UnknownTaskError(VersioningError):
    """Raised when completing or aborting a task that is not active"""
    def __init__(self, task_id: str):
        self.task_id = task_id
        super().__init__(f"Task {task_id} not found")


class VersioningDisabledError(VersioningError):
    """Raised when a version-control operation is used with versioning off"""
    def __init__(self, message: str = "Git versioning is not enabled"):
        super().__init__(message)
