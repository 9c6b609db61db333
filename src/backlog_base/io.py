from __future__ import annotations

from pathlib import Path
from typing import Any, Dict, Union

import yaml

from .model import Backlog, Task
from .recovery import parse_backlog


PathLike = Union[str, Path]

# Collections left out of the document when empty
_OMIT_EMPTY_BACKLOG = ("success_criteria", "environment", "epics", "tasks")
_OMIT_EMPTY_TASK = ("done_when",)


def _prune(data: Dict[str, Any], omit_empty: tuple[str, ...]) -> Dict[str, Any]:
    return {
        k: v
        for k, v in data.items()
        if v is not None and not (k in omit_empty and not v)
    }


def _task_to_dict(task: Task) -> Dict[str, Any]:
    return _prune(task.model_dump(mode="json"), _OMIT_EMPTY_TASK)


def backlog_to_dict(backlog: Backlog) -> Dict[str, Any]:
    data = _prune(backlog.model_dump(mode="json"), _OMIT_EMPTY_BACKLOG)
    if "epics" in data:
        data["epics"] = [
            {"id": e.id, "title": e.title, "tasks": [_task_to_dict(t) for t in e.tasks]}
            for e in backlog.epics
        ]
    if "tasks" in data:
        data["tasks"] = [_task_to_dict(t) for t in backlog.tasks]
    return data


def dump_backlog(backlog: Backlog) -> str:
    return yaml.safe_dump(backlog_to_dict(backlog), sort_keys=False, allow_unicode=True)


def load_backlog(path: PathLike) -> Backlog:
    """Strictly parse a persisted backlog file (no recovery heuristics)."""
    path = Path(path)
    return parse_backlog(path.read_text(encoding="utf-8"))


def save_backlog(backlog: Backlog, path: PathLike) -> None:
    path = Path(path)
    path.write_text(dump_backlog(backlog), encoding="utf-8")


def mark_task_done(path: PathLike, task_id: str) -> Task:
    """
    Load the backlog at `path`, flip `task_id` to Done and write it back.
    Nothing is written when the task does not exist.
    """
    backlog = load_backlog(path)
    task = backlog.mark_done(task_id)
    save_backlog(backlog, path)
    return task
