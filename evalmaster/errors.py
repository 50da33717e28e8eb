from __future__ import annotations


class RecordImportError(ValueError):
    """The uploaded file is not a JSON array of objects."""


class ValidationError(ValueError):
    """A task cannot be created; the message names the violated rule."""


class StorageDecodeError(ValueError):
    """A stored collection could not be decoded. Never leaves the repository."""


class TaskNotFound(LookupError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"task not found: {task_id}")
        self.task_id = task_id
