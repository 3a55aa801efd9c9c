"""Local disk content source."""

import shutil
from pathlib import Path
from typing import Optional

import structlog

from gitvfs.backends.base import ContentSource
from gitvfs.models import (
    ContentUpdateIntent,
    ContentUpdateResult,
    OrganizationIntent,
    OrganizationResult,
    RemovalIntent,
    RemovalResult,
)

logger = structlog.get_logger(__name__)


class DiskBackend(ContentSource):
    """Stores files under a root directory on the local disk."""

    async def initialize(self) -> None:
        self.root.mkdir(parents=True, exist_ok=True)

    async def cleanup(self) -> None:
        pass

    async def read_content(self, path: str) -> str:
        resolved = self._resolve(path)
        if resolved is None or not resolved.is_file():
            raise FileNotFoundError(f"File not found: {path}")
        return resolved.read_text(encoding="utf-8")

    async def update_content(self, intent: ContentUpdateIntent) -> ContentUpdateResult:
        resolved = self._resolve(intent.path)
        if resolved is None:
            return ContentUpdateResult(success=False, path=intent.path, message="Path escapes the root")
        if resolved.is_dir():
            return ContentUpdateResult(success=False, path=intent.path, message="Path is a directory")

        existed = resolved.exists()
        if intent.purpose == "create" and existed:
            return ContentUpdateResult(success=False, path=intent.path, message="File already exists")

        try:
            resolved.parent.mkdir(parents=True, exist_ok=True)
            mode = "a" if intent.purpose == "append" else "w"
            with open(resolved, mode, encoding="utf-8") as f:
                f.write(intent.content)
        except OSError as e:
            logger.error("write_failed", path=intent.path, error=str(e))
            return ContentUpdateResult(success=False, path=intent.path, message=str(e))

        return ContentUpdateResult(
            success=True,
            path=intent.path,
            bytes_written=len(intent.content.encode("utf-8")),
            created=not existed,
        )

    async def organize_files(self, intent: OrganizationIntent) -> OrganizationResult:
        if intent.purpose == "create_directory":
            directory = intent.destination or intent.source
            if not directory:
                return OrganizationResult(success=False, message="A directory path is required")
            target = self._resolve(directory)
            if target is None:
                return OrganizationResult(success=False, message="Path escapes the root")
            target.mkdir(parents=True, exist_ok=True)
            return OrganizationResult(success=True, files_affected=[directory])

        if intent.purpose not in ("move", "copy"):
            return OrganizationResult(success=False, message=f"Unsupported operation: {intent.purpose}")

        if not intent.source or not intent.destination:
            return OrganizationResult(success=False, message="Source and destination are required")

        source = self._resolve(intent.source)
        destination = self._resolve(intent.destination)
        if source is None or destination is None:
            return OrganizationResult(success=False, message="Path escapes the root")
        if not source.exists():
            return OrganizationResult(success=False, message=f"Source not found: {intent.source}")

        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            if intent.purpose == "move":
                shutil.move(str(source), str(destination))
            elif source.is_dir():
                shutil.copytree(source, destination)
            else:
                shutil.copy2(source, destination)
        except OSError as e:
            logger.error("organize_failed", operation=intent.purpose, error=str(e))
            return OrganizationResult(success=False, message=str(e))

        return OrganizationResult(success=True, files_affected=[intent.source, intent.destination])

    async def remove_files(self, intent: RemovalIntent) -> RemovalResult:
        resolved = self._resolve(intent.path)
        if resolved is None or resolved == self.root.resolve():
            return RemovalResult(success=False, message="Refusing to remove that path")
        if not resolved.exists():
            return RemovalResult(success=False, message=f"Path not found: {intent.path}")

        if resolved.is_dir():
            if intent.purpose == "delete_file":
                return RemovalResult(success=False, message=f"Path is a directory: {intent.path}")
            deleted = [
                item.relative_to(self.root.resolve()).as_posix()
                for item in resolved.rglob("*")
                if item.is_file()
            ]
            shutil.rmtree(resolved)
        else:
            if intent.purpose == "delete_directory":
                return RemovalResult(success=False, message=f"Path is not a directory: {intent.path}")
            deleted = [intent.path]
            resolved.unlink()

        return RemovalResult(success=True, files_deleted=deleted)

    def _resolve(self, path: str) -> Optional[Path]:
        root = self.root.resolve()
        resolved = (root / path).resolve()
        try:
            resolved.relative_to(root)
        except ValueError:
            return None
        if ".git" in resolved.relative_to(root).parts:
            return None
        return resolved
