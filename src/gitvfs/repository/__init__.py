"""Version-control primitives."""

from gitvfs.repository.driver import INITIAL_COMMIT_MESSAGE, RepositoryDriver

__all__ = ["RepositoryDriver", "INITIAL_COMMIT_MESSAGE"]
