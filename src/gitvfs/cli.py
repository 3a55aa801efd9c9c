"""Command-line interface for gitvfs."""

import asyncio
import logging
from pathlib import Path
from typing import Awaitable, Callable, List, Optional, TypeVar

import structlog
import typer
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from gitvfs.models import (
    CompleteTaskOptions,
    ContentUpdateIntent,
    MergeOptions,
    OrganizationIntent,
    RemovalIntent,
    TaskConfig,
    TaskResult,
    UserInfo,
    VersioningConfig,
)
from gitvfs.versioning import VersioningOverlay, create_versioned_filesystem

app = typer.Typer(
    name="gitvfs",
    help="Versioned virtual filesystem for LLM agents - every change is a git commit",
    add_completion=False,
)
console = Console()

T = TypeVar("T")

RootOption = typer.Option(Path("."), "--root", "-r", help="Filesystem root directory")


def configure_logging(level: str) -> None:
    """Route structlog output through a level filter."""
    structlog.configure(
        wrapper_class=structlog.make_filtering_bound_logger(
            logging.getLevelName(level.upper())
        ),
    )


def _overlay(root: Path, **overrides) -> VersioningOverlay:
    config = VersioningConfig(enabled=True, persist_tasks=True, **overrides)
    configure_logging(config.log_level)
    return create_versioned_filesystem(root, config)


def _execute(run: Callable[[], Awaitable[T]]) -> T:
    """Run a command coroutine, turning any failure into an error message and exit code 1."""
    try:
        return asyncio.run(run())
    except Exception as e:
        console.print(f"[bold red]Error:[/bold red] {escape(str(e))}")
        raise typer.Exit(1)


def _print_task_result(result: TaskResult, action: str) -> None:
    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.error}")
        raise typer.Exit(1)

    console.print(f"[bold green]✓[/bold green] {action} task [cyan]{result.task_id}[/cyan]")
    if result.branch:
        console.print(f"[bold blue]Branch:[/bold blue] {result.branch}")
    if result.commits is not None:
        console.print(f"[bold blue]Commits:[/bold blue] {len(result.commits)}")
    if result.merged is not None:
        console.print(f"[bold blue]Merged:[/bold blue] {result.merged}")


@app.command()
def init(
    root: Path = RootOption,
    branch: str = typer.Option("main", "--branch", "-b", help="Default branch name"),
    user_name: Optional[str] = typer.Option(None, "--user-name", help="Commit author name"),
    user_email: Optional[str] = typer.Option(None, "--user-email", help="Commit author email"),
) -> None:
    """Initialize a versioned filesystem, committing any existing files."""
    async def run():
        user_info = None
        if user_name and user_email:
            user_info = UserInfo(name=user_name, email=user_email)
        overlay = _overlay(root, default_branch=branch, user_info=user_info)
        await overlay.initialize()

    _execute(run)
    console.print(f"[bold green]✓[/bold green] Versioned filesystem ready at {root}")


@app.command()
def write(
    path: str = typer.Argument(..., help="File path relative to the root"),
    content: str = typer.Argument(..., help="Content to write"),
    purpose: str = typer.Option("update", "--purpose", "-p", help="create, update, overwrite or append"),
    root: Path = RootOption,
) -> None:
    """Write a file and commit it."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.update_content(
            ContentUpdateIntent(path=path, content=content, purpose=purpose)
        )

    result = _execute(run)

    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]✓[/bold green] Wrote {result.bytes_written} bytes to {path}")


def _organize(root: Path, intent: OrganizationIntent) -> None:
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.organize_files(intent)

    result = _execute(run)

    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]✓[/bold green] {intent.purpose}: {', '.join(result.files_affected)}")


@app.command()
def move(
    source: str = typer.Argument(..., help="Source path"),
    destination: str = typer.Argument(..., help="Destination path"),
    root: Path = RootOption,
) -> None:
    """Move a file or directory and commit."""
    _organize(root, OrganizationIntent(purpose="move", source=source, destination=destination))


@app.command()
def copy(
    source: str = typer.Argument(..., help="Source path"),
    destination: str = typer.Argument(..., help="Destination path"),
    root: Path = RootOption,
) -> None:
    """Copy a file or directory and commit."""
    _organize(root, OrganizationIntent(purpose="copy", source=source, destination=destination))


@app.command()
def mkdir(
    path: str = typer.Argument(..., help="Directory path"),
    root: Path = RootOption,
) -> None:
    """Create a directory."""
    _organize(root, OrganizationIntent(purpose="create_directory", destination=path))


@app.command()
def remove(
    path: str = typer.Argument(..., help="Path to remove"),
    root: Path = RootOption,
) -> None:
    """Remove a file or directory and commit."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.remove_files(RemovalIntent(path=path))

    result = _execute(run)

    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.message}")
        raise typer.Exit(1)
    console.print(f"[bold green]✓[/bold green] Removed {len(result.files_deleted)} file(s)")


@app.command()
def commit(
    message: str = typer.Argument(..., help="Commit message"),
    paths: Optional[List[str]] = typer.Option(None, "--path", "-p", help="Paths to commit (default: all)"),
    root: Path = RootOption,
) -> None:
    """Commit pending changes manually."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.commit(message, paths or None)

    result = _execute(run)
    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.error}")
        raise typer.Exit(1)
    if result.hash:
        console.print(f"[bold green]✓[/bold green] Committed [cyan]{result.hash[:7]}[/cyan] {message}")
    else:
        console.print("[yellow]Nothing to commit.[/yellow]")


@app.command()
def history(
    max_count: int = typer.Option(10, "--max", "-n", help="Maximum commits to show"),
    root: Path = RootOption,
) -> None:
    """List recent commits on the checked-out branch."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.get_history(max_count)

    result = _execute(run)
    if not result.success:
        console.print(f"[bold red]Error:[/bold red] {result.error}")
        raise typer.Exit(1)

    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Hash", style="cyan", width=10)
    table.add_column("Author", style="green")
    table.add_column("Date", style="blue")
    table.add_column("Message", style="white")

    for record in result.commits:
        table.add_row(
            record.short_id,
            record.author_name[:20],
            record.timestamp[:16].replace("T", " "),
            record.message.split("\n")[0][:60],
        )

    console.print(table)


@app.command()
def status(root: Path = RootOption) -> None:
    """Show the branch, active task and uncommitted changes."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.get_status(), overlay.get_current_task()

    state, task = _execute(run)
    console.print(f"[bold blue]Branch:[/bold blue] {state.current_branch}")
    console.print(f"[bold blue]Task:[/bold blue] {task.id if task else '-'}")

    if not state.has_uncommitted_changes:
        console.print("[green]Working tree clean.[/green]")
        return
    for path in sorted(state.modified_paths):
        console.print(f"  [yellow]M[/yellow] {path}")
    for path in sorted(state.untracked_paths):
        console.print(f"  [red]?[/red] {path}")


@app.command("task-start")
def task_start(
    task_id: str = typer.Argument(..., help="Task identifier"),
    description: Optional[str] = typer.Option(None, "--description", "-d", help="Task description"),
    branch: Optional[str] = typer.Option(None, "--branch", "-b", help="Branch name (default: task-<id>)"),
    base_branch: Optional[str] = typer.Option(None, "--base", help="Branch to fork from"),
    auto_merge: bool = typer.Option(False, "--auto-merge", help="Merge when the task completes"),
    root: Path = RootOption,
) -> None:
    """Start a task on its own branch."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.start_task(
            TaskConfig(
                id=task_id,
                description=description,
                branch=branch,
                base_branch=base_branch,
                auto_merge=auto_merge,
            )
        )

    _print_task_result(_execute(run), "Started")


@app.command("task-complete")
def task_complete(
    task_id: str = typer.Argument(..., help="Task identifier"),
    merge: bool = typer.Option(False, "--merge", "-m", help="Merge into the base branch"),
    strategy: Optional[str] = typer.Option(None, "--strategy", "-s", help="ours, theirs or manual"),
    summary: Optional[str] = typer.Option(None, "--summary", help="Commit pending changes with this message first"),
    root: Path = RootOption,
) -> None:
    """Complete the active task."""
    async def run():
        options = CompleteTaskOptions(
            merge=merge,
            create_summary=summary is not None,
            summary_message=summary,
            merge_options=MergeOptions(strategy=strategy),
        )
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.complete_task(task_id, options)

    _print_task_result(_execute(run), "Completed")


@app.command("task-abort")
def task_abort(
    task_id: str = typer.Argument(..., help="Task identifier"),
    root: Path = RootOption,
) -> None:
    """Abandon the active task; its branch is kept."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return await overlay.abort_task(task_id)

    _print_task_result(_execute(run), "Aborted")


@app.command("task-current")
def task_current(root: Path = RootOption) -> None:
    """Show the active task."""
    async def run():
        overlay = _overlay(root)
        await overlay.initialize()
        return overlay.get_current_task()

    task = _execute(run)
    if task is None:
        console.print("[dim]No active task.[/dim]")
        return
    console.print(f"[bold]Task:[/bold] [cyan]{task.id}[/cyan]")
    if task.description:
        console.print(f"[bold]Description:[/bold] {task.description}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
