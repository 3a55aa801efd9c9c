"""Data models for the versioned filesystem."""

from gitvfs.models.config import UserInfo, VersioningConfig
from gitvfs.models.content import (
    ContentUpdateIntent,
    ContentUpdateResult,
    OrganizationIntent,
    OrganizationResult,
    RemovalIntent,
    RemovalResult,
)
from gitvfs.models.repository import CommitRecord, CommitResult, HistoryResult, RepositoryState
from gitvfs.models.task import (
    CompleteTaskOptions,
    MergeOptions,
    MergeStrategy,
    Task,
    TaskConfig,
    TaskResult,
)

__all__ = [
    "UserInfo",
    "VersioningConfig",
    "ContentUpdateIntent",
    "ContentUpdateResult",
    "OrganizationIntent",
    "OrganizationResult",
    "RemovalIntent",
    "RemovalResult",
    "CommitRecord",
    "CommitResult",
    "HistoryResult",
    "RepositoryState",
    "CompleteTaskOptions",
    "MergeOptions",
    "MergeStrategy",
    "Task",
    "TaskConfig",
    "TaskResult",
]
