"""Task lifecycle management on top of git branches."""

from datetime import datetime, timezone
from typing import Awaitable, Callable, Optional

import structlog

from gitvfs.errors import RepositoryError, TaskConflictError, UnknownTaskError
from gitvfs.models import CompleteTaskOptions, Task, TaskConfig, TaskResult
from gitvfs.repository import RepositoryDriver
from gitvfs.versioning.state import TaskStore

logger = structlog.get_logger(__name__)

SummaryCommit = Callable[[Task, CompleteTaskOptions], Awaitable[Optional[str]]]


class TaskManager:
    """Maps tasks onto branches and tracks the commits made during each one.

    A task moves from ABSENT to ACTIVE on start() and leaves ACTIVE on
    complete() or abort(). At most one task is active at a time; starting a
    second one fails instead of queueing or preempting the first.
    """

    def __init__(self, driver: RepositoryDriver, store: Optional[TaskStore] = None):
        """Initialize the task manager.

        Args:
            driver: Repository driver used for branch operations
            store: Optional store mirroring the active task to disk
        """
        self.driver = driver
        self.store = store
        self._active: Optional[Task] = None

    @property
    def active_task(self) -> Optional[Task]:
        return self._active

    async def start(self, config: TaskConfig) -> TaskResult:
        """Create the task branch, check it out, and register the task.

        Args:
            config: Task configuration

        Returns:
            TaskResult with the branch name

        Raises:
            TaskConflictError: If another task is active
            RepositoryError: If the base branch has no commits or the branch
                cannot be created; no task is registered
        """
        if self._active is not None:
            raise TaskConflictError(self._active.id)

        branch_name = config.branch or f"task-{config.id}"
        base_branch = config.base_branch or await self.driver.current_branch()
        if not await self.driver.branch_exists(base_branch):
            raise RepositoryError(
                f"Base branch {base_branch} has no commits yet; commit something before starting task {config.id}"
            )

        await self.driver.create_branch(branch_name, config.base_branch)

        self._active = Task(
            config=config.model_copy(),
            branch_name=branch_name,
            base_branch=base_branch,
            started_at=datetime.now(timezone.utc),
        )
        self._persist()

        logger.info("task_started", task_id=config.id, branch=branch_name, base=base_branch)
        return TaskResult(success=True, task_id=config.id, branch=branch_name)

    def record_commit(self, commit_id: str) -> None:
        """Append a commit to the active task. Does nothing without one."""
        if self._active is None:
            return
        self._active.commit_ids.append(commit_id)
        self._persist()

    async def complete(
        self,
        task_id: str,
        options: Optional[CompleteTaskOptions] = None,
        summary_commit: Optional[SummaryCommit] = None,
    ) -> TaskResult:
        """Finish a task, optionally merging its branch into the base branch.

        Args:
            task_id: Id of the active task
            options: Completion options
            summary_commit: Coroutine used for the summary commit when
                options.create_summary is set; the commit id it returns is
                recorded against the task

        Returns:
            TaskResult with the task's commits and whether it was merged

        Raises:
            UnknownTaskError: If task_id is not the active task
            MergeConflictError: If the merge fails and the strategy is not
                "manual"; the task stays active and its branch is checked out
        """
        task = self._require(task_id)
        options = options or CompleteTaskOptions()

        if options.create_summary and summary_commit is not None:
            commit_id = await summary_commit(task, options)
            if commit_id:
                self.record_commit(commit_id)

        await self.driver.checkout(task.base_branch)

        merged = False
        if task.config.auto_merge or options.merge:
            strategy = options.merge_options.strategy
            message = options.merge_options.message or (
                f"Merge task {task_id}: {task.config.description or 'No description'}"
            )
            try:
                await self.driver.merge(task.branch_name, message, strategy)
                merged = True
                logger.info("task_merged", task_id=task_id, into=task.base_branch)
            except RepositoryError as e:
                logger.error("task_merge_failed", task_id=task_id, strategy=strategy, error=str(e))
                if strategy != "manual":
                    await self._return_to_task_branch(task)
                    raise

        self._deregister()
        logger.info("task_completed", task_id=task_id, commits=len(task.commit_ids), merged=merged)
        return TaskResult(
            success=True,
            task_id=task_id,
            branch=task.branch_name,
            commits=list(task.commit_ids),
            merged=merged,
        )

    async def abort(self, task_id: str) -> TaskResult:
        """Leave a task without merging. The task branch is kept.

        Args:
            task_id: Id of the active task

        Returns:
            TaskResult with the commits made on the abandoned branch

        Raises:
            UnknownTaskError: If task_id is not the active task
        """
        task = self._require(task_id)
        await self.driver.checkout(task.base_branch)

        self._deregister()
        logger.info("task_aborted", task_id=task_id, branch=task.branch_name)
        return TaskResult(
            success=True,
            task_id=task_id,
            branch=task.branch_name,
            commits=list(task.commit_ids),
        )

    def current_task(self) -> Optional[TaskConfig]:
        """Get a copy of the active task's configuration."""
        if self._active is None:
            return None
        return self._active.config.model_copy()

    async def restore(self) -> Optional[Task]:
        """Reload the active task from the store.

        Returns:
            The restored task, or None if there was nothing to restore
        """
        if self.store is None:
            return None

        task = self.store.load()
        if task is None:
            return None

        if not await self.driver.branch_exists(task.branch_name):
            logger.warning("task_branch_missing", task_id=task.id, branch=task.branch_name)
            self.store.clear()
            return None

        current = await self.driver.current_branch()
        if current != task.branch_name:
            logger.warning(
                "task_branch_not_checked_out",
                task_id=task.id,
                branch=task.branch_name,
                current=current,
            )

        self._active = task
        logger.info("task_restored", task_id=task.id, commits=len(task.commit_ids))
        return task

    def _require(self, task_id: str) -> Task:
        if self._active is None or self._active.id != task_id:
            raise UnknownTaskError(task_id)
        return self._active

    def _deregister(self) -> None:
        self._active = None
        if self.store is not None:
            self.store.clear()

    def _persist(self) -> None:
        if self.store is not None:
            self.store.save(self._active)

    async def _return_to_task_branch(self, task: Task) -> None:
        try:
            await self.driver.checkout(task.branch_name)
        except RepositoryError as e:
            logger.error("task_branch_checkout_failed", task_id=task.id, error=str(e))
