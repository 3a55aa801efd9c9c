"""Content-mutation sources the versioning overlay can wrap."""

from gitvfs.backends.base import ContentSource
from gitvfs.backends.disk import DiskBackend

__all__ = ["ContentSource", "DiskBackend"]
