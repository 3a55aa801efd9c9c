"""gitvfs - a versioned virtual filesystem for LLM agents."""

from gitvfs.backends import ContentSource, DiskBackend
from gitvfs.models import CompleteTaskOptions, MergeOptions, TaskConfig, UserInfo, VersioningConfig
from gitvfs.repository import RepositoryDriver
from gitvfs.versioning import (
    CommitMessageBuilder,
    TaskManager,
    VersioningOverlay,
    create_versioned_filesystem,
)

__version__ = "0.1.0"

__all__ = [
    "ContentSource",
    "DiskBackend",
    "CompleteTaskOptions",
    "MergeOptions",
    "TaskConfig",
    "UserInfo",
    "VersioningConfig",
    "RepositoryDriver",
    "CommitMessageBuilder",
    "TaskManager",
    "VersioningOverlay",
    "create_versioned_filesystem",
]
