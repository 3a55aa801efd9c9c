"""Configuration models."""

from typing import Optional

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_AUTHOR_NAME = "gitvfs"
DEFAULT_AUTHOR_EMAIL = "gitvfs@localhost"


class UserInfo(BaseModel):
    """Author identity written into commits."""

    name: str = Field(..., description="Author name")
    email: str = Field(..., description="Author email")


class VersioningConfig(BaseSettings):
    """Configuration for git versioning of a filesystem.

    Settings can be loaded from environment variables or .env file.
    All settings are prefixed with GITVFS_ (e.g., GITVFS_ENABLED).
    """

    model_config = SettingsConfigDict(
        env_prefix="GITVFS_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    enabled: bool = Field(
        default=False,
        description="Enable git versioning for this filesystem",
    )

    auto_commit: bool = Field(
        default=True,
        description="Commit automatically after each successful mutation",
    )

    # Variables: {{operation}}, {{path}}, {{sourcePath}}, {{destinationPath}},
    # {{targetPath}}, {{taskId}}, {{description}}, {{timestamp}}
    commit_message_template: Optional[str] = Field(
        default=None,
        description="Template replacing the default commit messages",
    )

    default_branch: str = Field(
        default="main",
        description="Default branch name for new repositories",
    )

    user_info: Optional[UserInfo] = Field(
        default=None,
        description="Author identity for commits (default: the repository's user.name and user.email)",
    )

    persist_tasks: bool = Field(
        default=False,
        description="Keep the active task record in a sidecar file under .git/",
    )

    command_timeout: Optional[float] = Field(
        default=None,
        description="Seconds before a repository primitive is treated as failed",
    )

    log_level: str = Field(default="INFO", description="Logging level")

