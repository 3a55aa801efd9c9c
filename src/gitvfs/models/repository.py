"""Data models for repository state and version-control results."""

from typing import List, Optional, Set

from pydantic import BaseModel, ConfigDict, Field


class RepositoryState(BaseModel):
    """Snapshot of the working tree, computed on demand and never cached."""

    is_repository: bool = Field(..., description="Whether the root is a git repository")
    current_branch: Optional[str] = Field(None, description="Checked-out branch")
    has_uncommitted_changes: bool = Field(False, description="Whether anything differs from HEAD")
    untracked_paths: Set[str] = Field(default_factory=set, description="New files git does not track")
    modified_paths: Set[str] = Field(
        default_factory=set,
        description="Tracked files that were modified, deleted, or staged",
    )


class CommitRecord(BaseModel):
    """A single commit as reported by history queries."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Full commit SHA")
    message: str = Field(..., description="Commit message")
    author_name: str = Field(..., description="Author name")
    timestamp: str = Field(..., description="Commit time, ISO 8601")

    @property
    def short_id(self) -> str:
        """Short commit SHA (7 chars)."""
        return self.id[:7]


class CommitResult(BaseModel):
    """Result of a manual commit."""

    success: bool
    hash: Optional[str] = Field(None, description="Commit SHA, None when nothing was staged")
    message: Optional[str] = None
    error: Optional[str] = None


class HistoryResult(BaseModel):
    """Result of a history query."""

    success: bool
    commits: List[CommitRecord] = Field(default_factory=list, description="Most recent first")
    error: Optional[str] = None
