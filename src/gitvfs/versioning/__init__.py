"""Git versioning for content sources.

Wraps a content source so that every successful mutation becomes a commit,
and maps units of work (tasks) onto branches that can be merged or dropped.
"""

from gitvfs.versioning.messages import CommitMessageBuilder, MessageContext
from gitvfs.versioning.overlay import VersioningOverlay, create_versioned_filesystem
from gitvfs.versioning.state import TaskRegistryState, TaskStore
from gitvfs.versioning.tasks import TaskManager

__all__ = [
    "CommitMessageBuilder",
    "MessageContext",
    "VersioningOverlay",
    "create_versioned_filesystem",
    "TaskRegistryState",
    "TaskStore",
    "TaskManager",
]
