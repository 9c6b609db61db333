from __future__ import annotations

from enum import Enum
from typing import Any, Dict, List, Optional, Union

from pydantic import BaseModel, Field, field_validator

from .errors import TaskNotFoundError


class TaskState(str, Enum):
    Todo = "Todo"
    Done = "Done"


Deliverable = Union[str, List[str]]


class Task(BaseModel):
    id: str
    title: str
    depends: List[str] = Field(default_factory=list)
    state: TaskState = TaskState.Todo
    description: Optional[str] = None
    # A single path or a non-empty list of paths
    deliverable: Optional[Deliverable] = None
    done_when: List[str] = Field(default_factory=list)

    @field_validator("deliverable")
    @classmethod
    def nonempty_deliverable(cls, v: Optional[Deliverable]) -> Optional[Deliverable]:
        if isinstance(v, list) and not v:
            raise ValueError("deliverable list must not be empty")
        return v

    @property
    def is_done(self) -> bool:
        return self.state == TaskState.Done

    def deliverables(self) -> List[str]:
        if self.deliverable is None:
            return []
        if isinstance(self.deliverable, str):
            return [self.deliverable]
        return list(self.deliverable)


class Epic(BaseModel):
    id: str
    title: str
    tasks: List[Task] = Field(default_factory=list)


class Backlog(BaseModel):
    project: str
    rust_version: Optional[str] = None
    success_criteria: List[str] = Field(default_factory=list)
    environment: Dict[str, Any] = Field(default_factory=dict)
    epics: List[Epic] = Field(default_factory=list)
    tasks: List[Task] = Field(default_factory=list)

    def all_tasks(self) -> List[Task]:
        """
        The effective task set: top-level tasks first, then the tasks of
        each epic, epic by epic.
        """
        result: List[Task] = list(self.tasks)
        for epic in self.epics:
            result.extend(epic.tasks)
        return result

    def task_index(self) -> Dict[str, Task]:
        return {t.id: t for t in self.all_tasks()}

    def task_by_id(self, task_id: str) -> Optional[Task]:
        for t in self.all_tasks():
            if t.id == task_id:
                return t
        return None

    def mark_done(self, task_id: str) -> Task:
        t = self.task_by_id(task_id)
        if t is None:
            raise TaskNotFoundError(task_id)
        t.state = TaskState.Done
        return t
