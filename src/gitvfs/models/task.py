"""Data models for task-scoped branches."""

from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

MergeStrategy = Literal["ours", "theirs", "manual"]


class TaskConfig(BaseModel):
    """Caller-supplied description of a unit of work."""

    id: str = Field(..., description="Task identifier, unique among active tasks")
    description: Optional[str] = Field(None, description="Human-readable description")
    branch: Optional[str] = Field(None, description="Branch name (default: task-{id})")
    base_branch: Optional[str] = Field(
        None, description="Branch to fork from (default: the branch checked out at start)"
    )
    auto_merge: bool = Field(False, description="Merge into the base branch on completion")

    class Config:
        """Pydantic config."""
        json_schema_extra = {
            "example": {
                "id": "add-auth",
                "description": "Implement user authentication",
                "branch": "feature/auth",
                "base_branch": "main",
                "auto_merge": False,
            }
        }


class MergeOptions(BaseModel):
    """Options for the merge performed when a task completes."""

    strategy: Optional[MergeStrategy] = Field(None, description="Conflict handling: ours, theirs, manual")
    message: Optional[str] = Field(None, description="Merge commit message")


class CompleteTaskOptions(BaseModel):
    """Options for completing a task."""

    merge: bool = Field(False, description="Merge the task branch into its base branch")
    create_summary: bool = Field(False, description="Commit pending changes with a summary message first")
    summary_message: Optional[str] = Field(None, description="Message for the summary commit")
    merge_options: MergeOptions = Field(default_factory=MergeOptions)


class Task(BaseModel):
    """An active task and the commits produced while it runs."""

    config: TaskConfig
    branch_name: str = Field(..., description="Branch the task works on")
    base_branch: str = Field(..., description="Branch the task forked from")
    started_at: datetime = Field(..., description="When the task started")
    commit_ids: List[str] = Field(default_factory=list, description="Commits in commit order")

    @property
    def id(self) -> str:
        return self.config.id


class TaskResult(BaseModel):
    """Result of a task lifecycle operation."""

    success: bool
    task_id: str
    branch: Optional[str] = None
    commits: Optional[List[str]] = None
    merged: Optional[bool] = None
    error: Optional[str] = None
