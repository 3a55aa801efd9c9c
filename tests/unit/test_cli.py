"""Tests for the command-line interface."""

import git
import pytest
from typer.testing import CliRunner

from gitvfs.cli import app

runner = CliRunner()


@pytest.fixture
def root(tmp_path, monkeypatch):
    """Create a filesystem root and keep GITVFS_ settings out of the test."""
    for name in ("GITVFS_ENABLED", "GITVFS_AUTO_COMMIT", "GITVFS_COMMIT_MESSAGE_TEMPLATE"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    path = tmp_path / "fs"
    result = runner.invoke(
        app, ["init", "--root", str(path), "--user-name", "Test User", "--user-email", "test@example.com"]
    )
    assert result.exit_code == 0, result.output
    return path


def test_init_creates_repository(root):
    """Test that init sets up the repository."""
    assert (root / ".git").is_dir()


def test_write_and_history(root):
    """Test writing a file and listing the commit."""
    result = runner.invoke(app, ["write", "notes.md", "hello", "--purpose", "create", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "Wrote 5 bytes" in result.output
    assert (root / "notes.md").read_text() == "hello"

    result = runner.invoke(app, ["history", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "Create notes.md" in result.output


def test_write_create_existing_fails(root):
    """Test that a rejected write exits with an error."""
    runner.invoke(app, ["write", "a.txt", "one", "--root", str(root)])

    result = runner.invoke(app, ["write", "a.txt", "two", "--purpose", "create", "--root", str(root)])

    assert result.exit_code == 1
    assert "already exists" in result.output


def test_status_reports_clean_tree(root):
    """Test status after an auto-committed write."""
    runner.invoke(app, ["write", "a.txt", "a", "--root", str(root)])

    result = runner.invoke(app, ["status", "--root", str(root)])

    assert result.exit_code == 0, result.output
    assert "main" in result.output
    assert "Working tree clean" in result.output


def test_task_lifecycle_across_invocations(root):
    """Test that a task started in one command is completed by another."""
    runner.invoke(app, ["write", "a.txt", "a", "--root", str(root)])

    result = runner.invoke(app, ["task-start", "feat", "-d", "New feature", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "task-feat" in result.output

    runner.invoke(app, ["write", "feature.txt", "feature", "--root", str(root)])

    result = runner.invoke(app, ["task-current", "--root", str(root)])
    assert "feat" in result.output
    assert "New feature" in result.output

    result = runner.invoke(app, ["task-complete", "feat", "--merge", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "Merged: True" in result.output
    assert (root / "feature.txt").exists()

    result = runner.invoke(app, ["task-current", "--root", str(root)])
    assert "No active task" in result.output


def test_task_start_conflict(root):
    """Test that starting a second task fails."""
    runner.invoke(app, ["write", "a.txt", "a", "--root", str(root)])
    runner.invoke(app, ["task-start", "first", "--root", str(root)])

    result = runner.invoke(app, ["task-start", "second", "--root", str(root)])

    assert result.exit_code == 1
    assert "already active" in result.output


def test_manual_commit(root):
    """Test committing changes made outside the tool."""
    (root / "outside.txt").write_text("x")

    result = runner.invoke(app, ["commit", "Add outside file", "--root", str(root)])
    assert result.exit_code == 0, result.output
    assert "Add outside file" in result.output

    result = runner.invoke(app, ["commit", "Again", "--root", str(root)])
    assert "Nothing to commit" in result.output


def test_init_identity_used_by_later_commands(root):
    """Test that the identity given to init authors later commits."""
    result = runner.invoke(app, ["write", "a.txt", "hi", "--purpose", "create", "--root", str(root)])
    assert result.exit_code == 0, result.output

    latest = git.Repo(root).head.commit
    assert latest.author.name == "Test User"
    assert latest.author.email == "test@example.com"


def test_invalid_merge_strategy_reports_error(root):
    """Test that a bad --strategy value exits cleanly."""
    runner.invoke(app, ["write", "a.txt", "a", "--root", str(root)])
    runner.invoke(app, ["task-start", "feat", "--root", str(root)])

    result = runner.invoke(app, ["task-complete", "feat", "--merge", "--strategy", "bogus", "--root", str(root)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Error" in result.output


@pytest.mark.parametrize("command", [["status"], ["history"], ["commit", "msg"], ["task-current"]])
def test_unusable_root_reports_error(tmp_path, command):
    """Test that commands fail cleanly when the root cannot be opened."""
    blocker = tmp_path / "not-a-directory"
    blocker.write_text("x")

    result = runner.invoke(app, [*command, "--root", str(blocker)])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "Error" in result.output
