from __future__ import annotations

from typing import Iterable, Iterator, List, Optional, Set

from .errors import CycleDetectedError, DanglingDependencyError, DuplicateTaskIdError
from .model import Backlog, Task


def iter_edges(backlog: Backlog) -> Iterable[tuple[str, str]]:
    """
    Yield (task_id, dep_id) for each dependency edge task -> dep.
    """
    for t in backlog.all_tasks():
        for dep in t.depends:
            yield t.id, dep


# ---------------------- validation ----------------------


def find_duplicate_id(backlog: Backlog) -> Optional[str]:
    seen: Set[str] = set()
    for t in backlog.all_tasks():
        if t.id in seen:
            return t.id
        seen.add(t.id)
    return None


def find_dangling_dependency(backlog: Backlog) -> Optional[tuple[str, str]]:
    """Return the first (task_id, missing_id) pair, in effective-task order."""
    ids = {t.id for t in backlog.all_tasks()}
    for task_id, dep in iter_edges(backlog):
        if dep not in ids:
            return task_id, dep
    return None


def find_cycle(backlog: Backlog) -> Optional[List[str]]:
    """
    Depth-first search from every task in effective order.

    The walk uses an explicit stack of (task, remaining deps) so long
    dependency chains do not hit the recursion limit. Reaching a task that is
    on the current path ends the search; the returned path runs from the
    search root to the repeated id, e.g. ["a", "b", "c", "b"]. Tasks fully
    explored from an earlier root cannot reach a cycle and are skipped.
    """
    idx = backlog.task_index()
    finished: Set[str] = set()

    for root in backlog.all_tasks():
        if root.id in finished:
            continue
        path: List[str] = [root.id]
        on_path: Set[str] = {root.id}
        stack: List[tuple[Task, Iterator[str]]] = [(root, iter(root.depends))]

        while stack:
            task, deps = stack[-1]
            for dep in deps:
                if dep in on_path:
                    path.append(dep)
                    return path
                dep_task = idx.get(dep)
                if dep_task is None or dep in finished:
                    continue
                on_path.add(dep)
                path.append(dep)
                stack.append((dep_task, iter(dep_task.depends)))
                break
            else:
                stack.pop()
                path.pop()
                on_path.discard(task.id)
                finished.add(task.id)
    return None


def validate_backlog(backlog: Backlog) -> None:
    """
    Raise a BacklogValidationError subclass for the first problem found.

    Checks run in a fixed order: duplicate ids, then dangling dependencies,
    then cycles. Cycle search over dangling edges is meaningless, so a
    backlog with both problems always reports the dangling dependency.
    """
    dup = find_duplicate_id(backlog)
    if dup is not None:
        raise DuplicateTaskIdError(dup)

    dangling = find_dangling_dependency(backlog)
    if dangling is not None:
        raise DanglingDependencyError(*dangling)

    cycle = find_cycle(backlog)
    if cycle is not None:
        raise CycleDetectedError(cycle)


# ---------------------- readiness ----------------------


def compute_ready_tasks(backlog: Backlog) -> List[Task]:
    """
    Tasks in state Todo whose dependencies are all Done, in effective order.

    A dependency id that matches no task counts as satisfied here; run
    validate_backlog first if unknown ids should be an error.
    """
    idx = backlog.task_index()

    def is_satisfied(tid: str) -> bool:
        t = idx.get(tid)
        return t is None or t.is_done

    ready: List[Task] = []
    for t in backlog.all_tasks():
        if t.is_done:
            continue
        if all(is_satisfied(d) for d in t.depends):
            ready.append(t)
    return ready
