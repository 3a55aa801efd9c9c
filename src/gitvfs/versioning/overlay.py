"""Versioning overlay that commits every successful filesystem mutation."""

import asyncio
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional

import structlog

from gitvfs.backends import ContentSource, DiskBackend
from gitvfs.errors import RepositoryUnavailableError, VersioningDisabledError, VersioningError
from gitvfs.models import (
    CommitResult,
    CompleteTaskOptions,
    ContentUpdateIntent,
    ContentUpdateResult,
    HistoryResult,
    OrganizationIntent,
    OrganizationResult,
    RemovalIntent,
    RemovalResult,
    RepositoryState,
    Task,
    TaskConfig,
    TaskResult,
    VersioningConfig,
)
from gitvfs.repository import RepositoryDriver
from gitvfs.versioning.messages import CommitMessageBuilder, MessageContext
from gitvfs.versioning.state import TaskStore
from gitvfs.versioning.tasks import TaskManager

logger = structlog.get_logger(__name__)


class VersioningOverlay:
    """Wraps a content source and versions its mutations with git.

    Each mutation is forwarded to the wrapped source first. Only when the
    source reports success are the affected paths staged and committed, and a
    failed commit is logged rather than turned into a failed mutation. Commits
    made while a task is active are recorded against that task.

    All public operations of one instance run one at a time behind a lock, so
    stage, commit, and checkout steps of different calls never interleave.
    """

    def __init__(
        self,
        source: ContentSource,
        config: Optional[VersioningConfig] = None,
        driver: Optional[RepositoryDriver] = None,
        task_manager: Optional[TaskManager] = None,
        message_builder: Optional[CommitMessageBuilder] = None,
    ) -> None:
        """Initialize the overlay.

        Args:
            source: Content source to wrap
            config: Versioning configuration. If None, loads from environment.
            driver: Optional pre-configured RepositoryDriver
            task_manager: Optional pre-configured TaskManager
            message_builder: Optional pre-configured CommitMessageBuilder
        """
        self.source = source
        self.config = config or VersioningConfig()
        self.driver = driver or RepositoryDriver(
            source.root,
            default_branch=self.config.default_branch,
            user_info=self.config.user_info,
            timeout=self.config.command_timeout,
        )
        store = TaskStore.for_repository(source.root) if self.config.persist_tasks else None
        self.tasks = task_manager or TaskManager(self.driver, store)
        self.messages = message_builder or CommitMessageBuilder(self.config.commit_message_template)
        self._lock = asyncio.Lock()

    @property
    def enabled(self) -> bool:
        return self.config.enabled

    # ============================================================================
    # Lifecycle
    # ============================================================================

    async def initialize(self) -> None:
        """Initialize the wrapped source, then the repository if versioning is on.

        Raises:
            RepositoryUnavailableError: If the repository cannot be set up
        """
        async with self._lock:
            await self.source.initialize()
            if not self.enabled:
                return

            logger.info("initializing_versioning", root=str(self.source.root))
            try:
                await self.driver.ensure_repository(self.config.default_branch)
            except Exception as e:
                logger.error("repository_initialization_failed", root=str(self.source.root), error=str(e))
                raise RepositoryUnavailableError(
                    f"Could not initialize git repository at {self.source.root}: {e}"
                ) from e

            await self.tasks.restore()

    async def cleanup(self) -> None:
        async with self._lock:
            await self.source.cleanup()

    # ============================================================================
    # Content operations
    # ============================================================================

    async def read_content(self, path: str) -> str:
        async with self._lock:
            return await self.source.read_content(path)

    async def update_content(self, intent: ContentUpdateIntent) -> ContentUpdateResult:
        """Write a file through the wrapped source and commit it."""
        async with self._lock:
            result = await self.source.update_content(intent)
            if result.success:
                await self._auto_commit(
                    [intent.path], intent.purpose, self._context(path=intent.path)
                )
            return result

    async def organize_files(self, intent: OrganizationIntent) -> OrganizationResult:
        """Move, copy, or create paths through the wrapped source and commit."""
        async with self._lock:
            result = await self.source.organize_files(intent)
            if result.success:
                paths = [path for path in (intent.source, intent.destination) if path]
                if intent.purpose == "create_directory":
                    context = self._context(path=intent.destination or intent.source)
                else:
                    context = self._context(
                        source_path=intent.source, destination_path=intent.destination
                    )
                await self._auto_commit(paths, intent.purpose, context)
            return result

    async def remove_files(self, intent: RemovalIntent) -> RemovalResult:
        """Remove a path through the wrapped source and commit the deletion."""
        async with self._lock:
            result = await self.source.remove_files(intent)
            if result.success:
                await self._auto_commit(
                    [intent.path], intent.purpose, self._context(path=intent.path)
                )
            return result

    # ============================================================================
    # Task operations
    # ============================================================================

    async def start_task(self, config: TaskConfig) -> TaskResult:
        async with self._lock:
            if not self.enabled:
                return self._disabled_task_result(config.id)
            try:
                return await self.tasks.start(config)
            except VersioningError as e:
                logger.warning("task_start_failed", task_id=config.id, error=str(e))
                return TaskResult(success=False, task_id=config.id, error=str(e))

    async def complete_task(
        self, task_id: str, options: Optional[CompleteTaskOptions] = None
    ) -> TaskResult:
        async with self._lock:
            if not self.enabled:
                return self._disabled_task_result(task_id)
            try:
                return await self.tasks.complete(task_id, options, summary_commit=self._summary_commit)
            except VersioningError as e:
                logger.warning("task_complete_failed", task_id=task_id, error=str(e))
                return TaskResult(success=False, task_id=task_id, error=str(e))

    async def abort_task(self, task_id: str) -> TaskResult:
        async with self._lock:
            if not self.enabled:
                return self._disabled_task_result(task_id)
            try:
                return await self.tasks.abort(task_id)
            except VersioningError as e:
                logger.warning("task_abort_failed", task_id=task_id, error=str(e))
                return TaskResult(success=False, task_id=task_id, error=str(e))

    def get_current_task(self) -> Optional[TaskConfig]:
        """Get the active task's configuration.

        Raises:
            VersioningDisabledError: If versioning is not enabled
        """
        if not self.enabled:
            raise VersioningDisabledError()
        return self.tasks.current_task()

    # ============================================================================
    # Version control operations
    # ============================================================================

    async def commit(self, message: str, paths: Optional[List[str]] = None) -> CommitResult:
        """Commit changes directly, bypassing the auto-commit settings.

        Args:
            message: Commit message
            paths: Paths to stage (default: everything that changed)

        Returns:
            CommitResult; hash is None when there was nothing to commit
        """
        async with self._lock:
            if not self.enabled:
                return CommitResult(success=False, error=str(VersioningDisabledError()))
            try:
                commit_id = await self.driver.stage_and_commit(paths or ["."], message)
            except VersioningError as e:
                logger.error("manual_commit_failed", error=str(e))
                return CommitResult(success=False, error=str(e))

            if commit_id:
                self.tasks.record_commit(commit_id)
            return CommitResult(success=True, hash=commit_id, message=message)

    async def get_history(self, limit: int = 10) -> HistoryResult:
        async with self._lock:
            if not self.enabled:
                return HistoryResult(success=False, error=str(VersioningDisabledError()))
            try:
                commits = await self.driver.log(limit)
            except VersioningError as e:
                return HistoryResult(success=False, error=str(e))
            return HistoryResult(success=True, commits=commits)

    async def get_status(self) -> RepositoryState:
        """Get the repository state of the working tree.

        Raises:
            VersioningDisabledError: If versioning is not enabled
        """
        async with self._lock:
            if not self.enabled:
                raise VersioningDisabledError()
            return await self.driver.status()

    # ============================================================================
    # Internals
    # ============================================================================

    async def _auto_commit(self, paths: List[str], operation: str, context: MessageContext) -> None:
        if not self.enabled or not self.config.auto_commit:
            return

        message = self.messages.build(operation, context)
        try:
            commit_id = await self.driver.stage_and_commit(paths, message)
            if commit_id:
                self.tasks.record_commit(commit_id)
                logger.debug("auto_committed", commit=commit_id[:7], message=message)
        except Exception as e:
            # The mutation already succeeded; the change stays uncommitted
            logger.error("auto_commit_failed", operation=operation, paths=paths, error=str(e))

    async def _summary_commit(self, task: Task, options: CompleteTaskOptions) -> Optional[str]:
        message = options.summary_message or self.messages.build(
            "task-complete", self._context(description=task.config.description)
        )
        return await self.driver.stage_and_commit(["."], message)

    def _context(
        self,
        path: Optional[str] = None,
        source_path: Optional[str] = None,
        destination_path: Optional[str] = None,
        description: Optional[str] = None,
    ) -> MessageContext:
        active = self.tasks.active_task
        return MessageContext(
            path=path,
            source_path=source_path,
            destination_path=destination_path,
            task_id=active.id if active else None,
            description=description or (active.config.description if active else None),
            timestamp=datetime.now(timezone.utc).isoformat(),
        )

    @staticmethod
    def _disabled_task_result(task_id: str) -> TaskResult:
        return TaskResult(success=False, task_id=task_id, error=str(VersioningDisabledError()))


def create_versioned_filesystem(
    root: Path, config: Optional[VersioningConfig] = None
) -> VersioningOverlay:
    """Create a disk-backed filesystem wrapped in a versioning overlay.

    Args:
        root: Directory holding the files and the repository
        config: Versioning configuration. If None, loads from environment.

    Returns:
        VersioningOverlay; call initialize() before use
    """
    return VersioningOverlay(DiskBackend(Path(root)), config)
