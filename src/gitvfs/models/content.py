"""Intents and results exchanged with content-mutation sources."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

UpdatePurpose = Literal["create", "update", "overwrite", "append"]
OrganizePurpose = Literal["move", "copy", "create_directory", "organize"]
RemovalPurpose = Literal["delete", "delete_file", "delete_directory"]


class ContentUpdateIntent(BaseModel):
    """Write content to a single file."""

    path: str = Field(..., description="Path relative to the filesystem root")
    content: str = Field(..., description="Text to write")
    purpose: UpdatePurpose = Field("update", description="create, update, overwrite or append")


class ContentUpdateResult(BaseModel):
    success: bool
    path: str
    bytes_written: int = 0
    created: bool = False
    message: Optional[str] = None


class OrganizationIntent(BaseModel):
    """Move, copy, or create paths."""

    purpose: OrganizePurpose = Field(..., description="move, copy, create_directory or organize")
    source: Optional[str] = Field(None, description="Source path")
    destination: Optional[str] = Field(None, description="Destination path")


class OrganizationResult(BaseModel):
    success: bool
    files_affected: List[str] = Field(default_factory=list)
    message: Optional[str] = None


class RemovalIntent(BaseModel):
    """Remove a file or directory."""

    path: str = Field(..., description="Path relative to the filesystem root")
    purpose: RemovalPurpose = Field("delete", description="delete, delete_file or delete_directory")


class RemovalResult(BaseModel):
    success: bool
    files_deleted: List[str] = Field(default_factory=list)
    message: Optional[str] = None
