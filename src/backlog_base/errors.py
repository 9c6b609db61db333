from __future__ import annotations

from typing import List


class BacklogError(ValueError):
    """Base class for every error raised by backlog-base."""


class EmptyInputError(BacklogError):
    def __init__(self) -> None:
        super().__init__("Empty response from LLM")


class StructuralParseError(BacklogError):
    """No recovered candidate could be parsed into a Backlog."""

    def __init__(self, detail: str) -> None:
        self.detail = detail
        super().__init__(f"Failed to parse YAML: {detail}")


class BacklogValidationError(BacklogError):
    """The document parsed, but its dependency graph is inconsistent."""


class DuplicateTaskIdError(BacklogValidationError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Duplicate task id {task_id!r} found")


class DanglingDependencyError(BacklogValidationError):
    def __init__(self, task_id: str, missing_id: str) -> None:
        self.task_id = task_id
        self.missing_id = missing_id
        super().__init__(f"Task {task_id} depends on non-existent task {missing_id}")


class CycleDetectedError(BacklogValidationError):
    def __init__(self, path: List[str]) -> None:
        self.path = list(path)
        super().__init__(f"Dependency cycle detected: {' -> '.join(self.path)}")


class TaskNotFoundError(BacklogError, LookupError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task with ID '{task_id}' not found in the backlog.")


class GenerationError(BacklogError):
    """The model could not be called or returned nothing usable."""
