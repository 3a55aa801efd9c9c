"""Commit message generation for versioned operations."""

import re
from dataclasses import dataclass
from typing import Dict, Optional

PLACEHOLDER_PATTERN = re.compile(r"\{\{(\w+)\}\}")

DEFAULT_TEMPLATES: Dict[str, str] = {
    "create": "Create {path}",
    "update": "Update {path}",
    "overwrite": "Overwrite {path}",
    "append": "Append to {path}",
    "delete": "Delete {path}",
    "delete_file": "Delete {path}",
    "delete_directory": "Delete {path}",
    "move": "Move {source} to {destination}",
    "copy": "Copy {source} to {destination}",
    "create_directory": "Create directory {path}",
    "task-complete": "Complete task {task_id}",
}


@dataclass(frozen=True)
class MessageContext:
    """Values available to commit messages for one operation."""

    path: Optional[str] = None
    source_path: Optional[str] = None
    destination_path: Optional[str] = None
    task_id: Optional[str] = None
    description: Optional[str] = None
    timestamp: Optional[str] = None


class CommitMessageBuilder:
    """Builds commit messages from an operation kind and its context.

    Without a template, messages come from DEFAULT_TEMPLATES and are prefixed
    with "[task-id] " while a task is active. A template replaces the defaults
    entirely; its {{name}} placeholders are filled from the context and any
    placeholder it does not know is left as written.
    """

    def __init__(self, template: Optional[str] = None) -> None:
        self.template = template

    def build(self, operation: str, context: MessageContext) -> str:
        if self.template:
            return self._render_template(operation, context)

        default = DEFAULT_TEMPLATES.get(operation)
        if default is None:
            message = f"{operation} operation"
        else:
            message = default.format(
                path=context.path or context.destination_path or context.source_path or "",
                source=context.source_path or "",
                destination=context.destination_path or "",
                task_id=context.task_id or "",
            )

        if context.task_id:
            return f"[{context.task_id}] {message}"
        return message

    def _render_template(self, operation: str, context: MessageContext) -> str:
        values = {
            "operation": operation,
            "path": context.path or context.source_path or "",
            "sourcePath": context.source_path or "",
            "destinationPath": context.destination_path or "",
            "targetPath": context.destination_path or "",
            "taskId": context.task_id or "",
            "description": context.description or "",
            "timestamp": context.timestamp or "",
        }
        return PLACEHOLDER_PATTERN.sub(
            lambda match: values.get(match.group(1), match.group(0)),
            self.template,
        )
