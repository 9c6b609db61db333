from .model import TaskState, Task, Epic, Backlog
from .errors import (
    BacklogError,
    EmptyInputError,
    StructuralParseError,
    BacklogValidationError,
    DuplicateTaskIdError,
    DanglingDependencyError,
    CycleDetectedError,
    TaskNotFoundError,
    GenerationError,
)
from .graph import validate_backlog, compute_ready_tasks
from .recovery import extract_document, recover_and_parse
from .io import load_backlog, save_backlog, dump_backlog, mark_task_done

__all__ = [
    "TaskState",
    "Task",
    "Epic",
    "Backlog",
    "BacklogError",
    "EmptyInputError",
    "StructuralParseError",
    "BacklogValidationError",
    "DuplicateTaskIdError",
    "DanglingDependencyError",
    "CycleDetectedError",
    "TaskNotFoundError",
    "GenerationError",
    "validate_backlog",
    "compute_ready_tasks",
    "extract_document",
    "recover_and_parse",
    "load_backlog",
    "save_backlog",
    "dump_backlog",
    "mark_task_done",
]
