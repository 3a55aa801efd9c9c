"""Base class for content-mutation sources."""

from abc import ABC, abstractmethod
from pathlib import Path

from gitvfs.models import (
    ContentUpdateIntent,
    ContentUpdateResult,
    OrganizationIntent,
    OrganizationResult,
    RemovalIntent,
    RemovalResult,
)


class ContentSource(ABC):
    """Abstract base class for filesystems the versioning overlay can wrap.

    Mutations report failure through the result's success flag rather than by
    raising; the overlay only commits after a successful result.
    """

    def __init__(self, root: Path) -> None:
        """Initialize the source.

        Args:
            root: Directory the source stores its files in
        """
        self.root = Path(root)

    @abstractmethod
    async def initialize(self) -> None:
        """Prepare the source for use."""
        pass

    @abstractmethod
    async def cleanup(self) -> None:
        """Release any resources held by the source."""
        pass

    @abstractmethod
    async def read_content(self, path: str) -> str:
        """Read a file.

        Args:
            path: Path relative to the root

        Returns:
            File content

        Raises:
            FileNotFoundError: If the file does not exist
        """
        pass

    @abstractmethod
    async def update_content(self, intent: ContentUpdateIntent) -> ContentUpdateResult:
        """Create, overwrite, or append to a file.

        Args:
            intent: What to write and how

        Returns:
            ContentUpdateResult
        """
        pass

    @abstractmethod
    async def organize_files(self, intent: OrganizationIntent) -> OrganizationResult:
        """Move, copy, or create paths.

        Args:
            intent: Organization request

        Returns:
            OrganizationResult listing the affected paths
        """
        pass

    @abstractmethod
    async def remove_files(self, intent: RemovalIntent) -> RemovalResult:
        """Remove a file or directory.

        Args:
            intent: Removal request

        Returns:
            RemovalResult listing the deleted paths
        """
        pass
