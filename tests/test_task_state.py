"""Tests for active task persistence."""

import json
import tempfile
from datetime import datetime, timezone
from pathlib import Path

from gitvfs.models import Task, TaskConfig
from gitvfs.versioning.state import TaskRegistryState, TaskStore


def make_task(task_id: str = "feat", commits=None) -> Task:
    return Task(
        config=TaskConfig(id=task_id, description="Persisted task"),
        branch_name=f"task-{task_id}",
        base_branch="main",
        started_at=datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc),
        commit_ids=commits or [],
    )


class TestStateModels:
    """Test Pydantic state models."""

    def test_registry_state_defaults(self):
        """Test creating an empty TaskRegistryState."""
        state = TaskRegistryState()
        assert state.version == "1.0"
        assert state.active_task is None

    def test_registry_state_serialization(self):
        """Test serializing state to JSON-compatible dict."""
        state = TaskRegistryState(active_task=make_task(commits=["abc123"]))

        data = state.model_dump(mode="json")
        assert data["version"] == "1.0"
        assert data["active_task"]["config"]["id"] == "feat"
        assert data["active_task"]["commit_ids"] == ["abc123"]
        assert isinstance(data["active_task"]["started_at"], str)


class TestTaskStore:
    """Test TaskStore functionality."""

    def test_for_repository(self):
        """Test that the state lives inside the .git directory."""
        store = TaskStore.for_repository(Path("/work/project"))
        assert store.state_dir == Path("/work/project/.git/gitvfs")
        assert store.state_file == store.state_dir / "tasks.json"

    def test_load_missing_file(self):
        """Test loading when no state was saved."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir) / "state")
            assert store.load() is None

    def test_save_and_load(self):
        """Test saving and reloading the active task."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir) / "state")
            store.save(make_task(commits=["c1", "c2"]))

            assert store.state_file.exists()
            loaded = store.load()
            assert loaded.id == "feat"
            assert loaded.branch_name == "task-feat"
            assert loaded.commit_ids == ["c1", "c2"]
            assert loaded.started_at == datetime(2024, 1, 15, 10, 30, tzinfo=timezone.utc)

    def test_save_none(self):
        """Test saving with no active task."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir))
            store.save(None)

            with open(store.state_file) as f:
                data = json.load(f)
            assert data["active_task"] is None
            assert store.load() is None

    def test_atomic_write_leaves_no_temp_files(self):
        """Test that repeated saves leave only the state file behind."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir))
            store.save(make_task())
            store.save(make_task(commits=["c1"]))

            assert [p.name for p in Path(tmpdir).iterdir()] == ["tasks.json"]
            assert store.load().commit_ids == ["c1"]

    def test_load_corrupted_file(self):
        """Test that a corrupted state file is treated as empty."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir))
            store.state_file.write_text("{ not json")

            assert store.load() is None

    def test_load_invalid_schema(self):
        """Test that a state file with the wrong shape is treated as empty."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir))
            store.state_file.write_text(json.dumps({"active_task": {"branch_name": 3}}))

            assert store.load() is None

    def test_clear(self):
        """Test clearing the saved state."""
        with tempfile.TemporaryDirectory() as tmpdir:
            store = TaskStore(Path(tmpdir))
            store.save(make_task())

            store.clear()
            assert not store.state_file.exists()

            # Clearing twice is harmless
            store.clear()
