"""Git repository primitives for the versioning layer."""

import asyncio
from functools import partial
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

import git
import structlog
from git import Actor, Repo

from gitvfs.errors import BranchExistsError, MergeConflictError, RepositoryError
from gitvfs.models import CommitRecord, MergeStrategy, RepositoryState, UserInfo
from gitvfs.models.config import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME

logger = structlog.get_logger(__name__)

T = TypeVar("T")

INITIAL_COMMIT_MESSAGE = "Initial commit"


class RepositoryDriver:
    """Runs version-control primitives against a working tree.

    Every call opens the repository afresh, so nothing about the working tree
    is remembered between calls. GitPython is synchronous; each primitive runs
    in the default executor and is awaited by the caller. Calls are not safe to
    run concurrently against the same working tree.
    """

    def __init__(
        self,
        root: Path,
        default_branch: str = "main",
        user_info: Optional[UserInfo] = None,
        timeout: Optional[float] = None,
    ) -> None:
        """Initialize the driver.

        Args:
            root: Working tree root
            default_branch: Branch checked out by initialize()
            user_info: Commit identity. If None, the repository's user.name and
                user.email are used, then gitvfs <gitvfs@localhost>.
            timeout: Seconds before a primitive is treated as failed
        """
        self.root = Path(root)
        self.default_branch = default_branch
        self.user_info = user_info
        self.timeout = timeout

    # ============================================================================
    # Detection and bootstrap
    # ============================================================================

    async def is_repository(self) -> bool:
        """Check whether the root is a git repository. Never raises."""
        try:
            return await self._run(self._is_repository_sync)
        except Exception as e:
            logger.warning("repository_detection_failed", root=str(self.root), error=str(e))
            return False

    async def initialize(self, default_branch: Optional[str] = None) -> None:
        """Create an empty repository and point HEAD at the default branch.

        Args:
            default_branch: Branch name (default: the driver's default branch)
        """
        await self._run(self._initialize_sync, default_branch or self.default_branch)

    async def ensure_repository(self, default_branch: Optional[str] = None) -> None:
        """Initialize the repository if needed and commit pre-existing files.

        Does nothing when the root is already a repository, so repeated calls
        never create a second initial commit.

        Args:
            default_branch: Branch name for a new repository
        """
        if await self.is_repository():
            logger.debug("repository_exists", root=str(self.root))
            return

        await self.initialize(default_branch)

        has_files = any(entry.name != ".git" for entry in self.root.iterdir())
        if has_files:
            commit_id = await self.stage_and_commit(["."], INITIAL_COMMIT_MESSAGE)
            logger.info("initial_commit_created", root=str(self.root), commit=commit_id)

    # ============================================================================
    # Staging and committing
    # ============================================================================

    async def stage(self, paths: List[str]) -> None:
        """Stage paths relative to the root, skipping any that cannot be staged.

        Args:
            paths: Paths to stage; deletions are staged as well
        """
        if not paths:
            return
        await self._run(self._stage_sync, list(paths))

    async def commit(self, message: str) -> Optional[str]:
        """Commit the staged changes.

        Args:
            message: Commit message

        Returns:
            Commit SHA, or None when nothing is staged
        """
        return await self._run(self._commit_sync, message)

    async def stage_and_commit(self, paths: List[str], message: str) -> Optional[str]:
        """Stage paths and commit them.

        Args:
            paths: Paths to stage
            message: Commit message

        Returns:
            Commit SHA, or None when nothing ended up staged
        """
        await self.stage(paths)
        return await self.commit(message)

    # ============================================================================
    # Branches
    # ============================================================================

    async def current_branch(self) -> str:
        """Get the checked-out branch name, or the default branch if unknown."""
        try:
            return await self._run(self._current_branch_sync)
        except (RepositoryError, TypeError, ValueError) as e:
            logger.debug("current_branch_unknown", error=str(e))
            return self.default_branch

    async def branch_exists(self, name: str) -> bool:
        return await self._run(lambda: name in [head.name for head in self._open().heads])

    async def create_branch(self, name: str, from_branch: Optional[str] = None) -> None:
        """Create a branch and check it out.

        Args:
            name: New branch name
            from_branch: Branch to check out first (optional)

        Raises:
            BranchExistsError: If the branch already exists
            RepositoryError: If checkout or branch creation fails
        """
        if from_branch:
            await self.checkout(from_branch)
        await self._run(self._create_branch_sync, name)

    async def checkout(self, ref: str) -> None:
        """Switch the working tree to a branch or ref.

        Raises:
            RepositoryError: If git refuses, e.g. because of conflicting changes
        """
        await self._run(self._git_sync, ["checkout", ref])

    async def merge(
        self,
        branch: str,
        message: Optional[str] = None,
        strategy: Optional[MergeStrategy] = None,
    ) -> None:
        """Merge a branch into the checked-out branch.

        Args:
            branch: Branch to merge
            message: Merge commit message (optional)
            strategy: "ours" or "theirs" resolves conflicting hunks in that
                side's favour; "manual" or None leaves conflicts to the caller

        Raises:
            MergeConflictError: If the merge fails; the half-done merge is aborted
        """
        await self._run(self._merge_sync, branch, message, strategy)

    # ============================================================================
    # Inspection
    # ============================================================================

    async def status(self) -> RepositoryState:
        """Compute the repository state from the working tree."""
        if not await self.is_repository():
            return RepositoryState(is_repository=False)

        branch = await self.current_branch()
        untracked, modified = await self._run(self._status_sync)
        return RepositoryState(
            is_repository=True,
            current_branch=branch,
            has_uncommitted_changes=bool(untracked or modified),
            untracked_paths=untracked,
            modified_paths=modified,
        )

    async def log(self, limit: int = 10) -> List[CommitRecord]:
        """Get commit history of the checked-out branch.

        Args:
            limit: Maximum number of commits

        Returns:
            CommitRecord objects, most recent first
        """
        return await self._run(self._log_sync, limit)

    # ============================================================================
    # Synchronous implementations
    # ============================================================================

    def _open(self) -> Repo:
        try:
            return Repo(self.root)
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError) as e:
            raise RepositoryError(f"Not a git repository: {self.root}") from e

    def _is_repository_sync(self) -> bool:
        if not self.root.is_dir():
            return False
        try:
            Repo(self.root)
            return True
        except (git.exc.InvalidGitRepositoryError, git.exc.NoSuchPathError):
            return False

    def _initialize_sync(self, default_branch: str) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        repo = Repo.init(self.root)
        repo.git.symbolic_ref("HEAD", f"refs/heads/{default_branch}")
        if self.user_info is not None:
            with repo.config_writer() as writer:
                writer.set_value("user", "name", self.user_info.name)
                writer.set_value("user", "email", self.user_info.email)
        logger.info("repository_initialized", root=str(self.root), branch=default_branch)

    def _stage_sync(self, paths: List[str]) -> None:
        repo = self._open()
        root = self.root.resolve()
        for path in paths:
            try:
                relative = (root / path).resolve().relative_to(root)
            except ValueError:
                logger.warning("stage_skipped_outside_tree", path=path)
                continue
            try:
                repo.git.add("-A", "--", relative.as_posix(), kill_after_timeout=self.timeout)
            except git.GitCommandError as e:
                logger.warning("stage_skipped", path=path, error=e.stderr.strip())

    def _commit_sync(self, message: str) -> Optional[str]:
        repo = self._open()
        if not repo.is_dirty(index=True, working_tree=False, untracked_files=False):
            logger.debug("nothing_to_commit", message=message)
            return None

        identity = self._identity(repo)
        actor = Actor(identity.name, identity.email)
        commit = repo.index.commit(message, author=actor, committer=actor)
        logger.debug("committed", commit=commit.hexsha[:7], message=message)
        return commit.hexsha

    def _current_branch_sync(self) -> str:
        return self._open().active_branch.name

    def _create_branch_sync(self, name: str) -> None:
        repo = self._open()
        if name in [head.name for head in repo.heads]:
            raise BranchExistsError(f"Branch already exists: {name}", command=["checkout", "-b", name])
        self._git_sync(["checkout", "-b", name])

    def _merge_sync(self, branch: str, message: Optional[str], strategy: Optional[MergeStrategy]) -> None:
        args = ["merge", "--no-edit"]
        if strategy in ("ours", "theirs"):
            args.extend(["-X", strategy])
        if message:
            args.extend(["-m", message])
        args.append(branch)

        try:
            self._git_sync(args)
        except RepositoryError as e:
            repo = self._open()
            if (Path(repo.git_dir) / "MERGE_HEAD").exists():
                try:
                    repo.git.merge("--abort", kill_after_timeout=self.timeout)
                except git.GitCommandError as abort_error:
                    logger.error("merge_abort_failed", branch=branch, error=abort_error.stderr.strip())
            raise MergeConflictError(
                f"Merge of {branch} failed: {e.stderr or e}", command=e.command, stderr=e.stderr
            ) from e

    def _status_sync(self) -> tuple[set[str], set[str]]:
        output = self._git_sync(["status", "--porcelain", "-z", "--untracked-files=all"])
        entries = [entry for entry in output.split("\0") if entry]

        untracked: set[str] = set()
        modified: set[str] = set()
        index = 0
        while index < len(entries):
            entry = entries[index]
            code, path = entry[:2], entry[3:]
            if code == "??":
                untracked.add(path)
            elif code != "!!":
                modified.add(path)
            # Renames and copies carry the original path as an extra entry
            if code[0] in ("R", "C"):
                index += 1
            index += 1
        return untracked, modified

    def _log_sync(self, limit: int) -> List[CommitRecord]:
        repo = self._open()
        try:
            commits = list(repo.iter_commits(max_count=limit))
        except (ValueError, git.GitCommandError):
            # Unborn HEAD has no history
            return []

        return [
            CommitRecord(
                id=commit.hexsha,
                message=commit.message.strip(),
                author_name=commit.author.name,
                timestamp=commit.committed_datetime.isoformat(),
            )
            for commit in commits
        ]

    def _git_sync(self, args: List[str]) -> str:
        repo = self._open()
        try:
            with repo.git.custom_environment(**self._identity_env(repo)):
                return repo.git.execute(["git", *args], kill_after_timeout=self.timeout)
        except git.GitCommandError as e:
            stderr = (e.stderr or "").strip()
            raise RepositoryError(
                f"Git command failed: git {' '.join(args)}: {stderr}", command=args, stderr=stderr
            ) from e

    def _identity(self, repo: Repo) -> UserInfo:
        """Get the commit identity: configured, then repository config, then built-in."""
        if self.user_info is not None:
            return self.user_info

        reader = repo.config_reader("repository")
        name = reader.get_value("user", "name", "")
        email = reader.get_value("user", "email", "")
        if name and email:
            return UserInfo(name=str(name), email=str(email))
        return UserInfo(name=DEFAULT_AUTHOR_NAME, email=DEFAULT_AUTHOR_EMAIL)

    def _identity_env(self, repo: Repo) -> Dict[str, str]:
        identity = self._identity(repo)
        return {
            "GIT_AUTHOR_NAME": identity.name,
            "GIT_AUTHOR_EMAIL": identity.email,
            "GIT_COMMITTER_NAME": identity.name,
            "GIT_COMMITTER_EMAIL": identity.email,
            "GIT_TERMINAL_PROMPT": "0",
        }

    async def _run(self, func: Callable[..., T], *args: Any) -> T:
        """Run a synchronous primitive in the default executor.

        When the timeout expires the primitive is still waited for before the
        error is raised, so the caller never moves on while it runs. Git
        subprocesses are killed once they exceed the same timeout.

        Raises:
            RepositoryError: If the primitive exceeds the configured timeout
        """
        loop = asyncio.get_event_loop()
        future = loop.run_in_executor(None, partial(func, *args))
        if self.timeout is None:
            return await future

        done, _ = await asyncio.wait({future}, timeout=self.timeout)
        if future in done:
            return future.result()

        logger.warning(
            "repository_operation_timed_out",
            operation=getattr(func, "__name__", repr(func)),
            timeout=self.timeout,
        )
        await asyncio.wait({future})
        raise RepositoryError(
            f"Repository operation timed out after {self.timeout}s"
        ) from future.exception()
