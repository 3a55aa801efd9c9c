"""Sidecar persistence for the active task.

Task bookkeeping normally lives only in memory. When persistence is enabled,
the active task record is mirrored to a JSON file inside the repository's
.git directory so that a new process can pick the task up again.
"""

import json
import os
import tempfile
from pathlib import Path
from typing import Optional

import structlog
from pydantic import BaseModel, Field

from gitvfs.models import Task

logger = structlog.get_logger(__name__)


class TaskRegistryState(BaseModel):
    """Root object of the task state file."""

    version: str = Field("1.0", description="State file format version")
    active_task: Optional[Task] = Field(None, description="Task active when last saved")


class TaskStore:
    """Reads and writes the task state file.

    The state is stored in <repo>/.git/gitvfs/tasks.json, which git never
    tracks, so saving it does not dirty the working tree.
    """

    def __init__(self, state_dir: Path):
        """Initialize the task store.

        Args:
            state_dir: Directory holding tasks.json
        """
        self.state_dir = Path(state_dir)
        self.state_file = self.state_dir / "tasks.json"

    @classmethod
    def for_repository(cls, root: Path) -> "TaskStore":
        return cls(Path(root) / ".git" / "gitvfs")

    def load(self) -> Optional[Task]:
        """Load the persisted active task.

        Returns:
            The saved Task, or None if nothing was saved or the file is unreadable
        """
        if not self.state_file.exists():
            return None

        try:
            with open(self.state_file, "r") as f:
                data = json.load(f)
            return TaskRegistryState(**data).active_task
        except (json.JSONDecodeError, ValueError) as e:
            logger.warning("task_state_unreadable", path=str(self.state_file), error=str(e))
            return None

    def save(self, task: Optional[Task]) -> None:
        """Save the active task using an atomic write.

        Args:
            task: Active task, or None to record that no task is active
        """
        self.state_dir.mkdir(parents=True, exist_ok=True)
        state = TaskRegistryState(active_task=task)

        fd, temp_path = tempfile.mkstemp(
            dir=self.state_dir, prefix=".tasks_", suffix=".json.tmp"
        )
        try:
            with os.fdopen(fd, "w") as f:
                json.dump(state.model_dump(mode="json"), f, indent=2)

            os.replace(temp_path, self.state_file)
        except Exception:
            try:
                os.unlink(temp_path)
            except OSError:
                pass
            raise

    def clear(self) -> None:
        """Delete the state file if it exists."""
        try:
            self.state_file.unlink()
        except FileNotFoundError:
            pass
