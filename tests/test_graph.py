# tests/test_graph.py

import pytest

from backlog_base.model import Backlog, Epic, Task, TaskState
from backlog_base.errors import (
    BacklogValidationError,
    CycleDetectedError,
    DanglingDependencyError,
    DuplicateTaskIdError,
)
from backlog_base.graph import (
    compute_ready_tasks,
    find_cycle,
    iter_edges,
    validate_backlog,
)


def _make_backlog(*tasks: Task, epics=()) -> Backlog:
    return Backlog(project="graph-demo", tasks=list(tasks), epics=list(epics))


def _make_chain_backlog() -> Backlog:
    """
    T-1 is done; T-2 depends on T-1; T-3 depends on T-1 and T-2.
    """
    return _make_backlog(
        Task(id="T-1", title="Task 1", state=TaskState.Done),
        Task(id="T-2", title="Task 2", depends=["T-1"]),
        Task(id="T-3", title="Task 3", depends=["T-1", "T-2"]),
    )


# ---------------------- readiness ----------------------


def test_compute_ready_tasks():
    """Only T-2 is ready: T-1 is done and T-3 still waits for T-2."""
    ready = compute_ready_tasks(_make_chain_backlog())
    assert [t.id for t in ready] == ["T-2"]


def test_ready_tasks_include_epic_tasks_in_order():
    backlog = _make_backlog(
        Task(id="a", title="A", state=TaskState.Done),
        Task(id="b", title="B"),
        epics=[
            Epic(
                id="E",
                title="Epic",
                tasks=[
                    Task(id="e1", title="E1", depends=["a"]),
                    Task(id="e2", title="E2", depends=["b"]),
                    Task(id="e3", title="E3"),
                ],
            )
        ],
    )
    assert [t.id for t in compute_ready_tasks(backlog)] == ["b", "e1", "e3"]


def test_ready_tasks_returns_backlog_objects():
    backlog = _make_chain_backlog()
    ready = compute_ready_tasks(backlog)
    assert ready[0] is backlog.tasks[1]


def test_ready_tasks_treats_unknown_dependency_as_satisfied():
    backlog = _make_backlog(Task(id="a", title="A", depends=["ghost"]))
    assert [t.id for t in compute_ready_tasks(backlog)] == ["a"]


def test_ready_tasks_is_idempotent():
    backlog = _make_chain_backlog()
    first = [t.id for t in compute_ready_tasks(backlog)]
    second = [t.id for t in compute_ready_tasks(backlog)]
    assert first == second


def test_no_ready_tasks_when_everything_done():
    backlog = _make_backlog(
        Task(id="a", title="A", state=TaskState.Done),
        Task(id="b", title="B", state=TaskState.Done, depends=["a"]),
    )
    assert compute_ready_tasks(backlog) == []


# ---------------------- validation ----------------------


def test_valid_backlog_passes():
    backlog = _make_chain_backlog()
    assert validate_backlog(backlog) is None
    # and again, unchanged
    assert validate_backlog(backlog) is None


def test_two_task_cycle():
    backlog = _make_backlog(
        Task(id="X", title="X", depends=["Y"]),
        Task(id="Y", title="Y", depends=["X"]),
    )
    with pytest.raises(CycleDetectedError) as exc:
        validate_backlog(backlog)

    assert exc.value.path == ["X", "Y", "X"]
    assert "X" in str(exc.value) and "Y" in str(exc.value)
    assert str(exc.value) == "Dependency cycle detected: X -> Y -> X"


def test_cycle_path_runs_from_search_root():
    backlog = _make_backlog(
        Task(id="a", title="A", depends=["b"]),
        Task(id="b", title="B", depends=["c"]),
        Task(id="c", title="C", depends=["b"]),
    )
    assert find_cycle(backlog) == ["a", "b", "c", "b"]


def test_self_dependency_is_a_cycle():
    backlog = _make_backlog(Task(id="a", title="A", depends=["a"]))
    with pytest.raises(CycleDetectedError) as exc:
        validate_backlog(backlog)
    assert exc.value.path == ["a", "a"]


def test_cycle_across_epics():
    backlog = _make_backlog(
        Task(id="top", title="Top", depends=["e2"]),
        epics=[
            Epic(id="E1", title="One", tasks=[Task(id="e1", title="E1", depends=["top"])]),
            Epic(id="E2", title="Two", tasks=[Task(id="e2", title="E2", depends=["e1"])]),
        ],
    )
    with pytest.raises(CycleDetectedError) as exc:
        validate_backlog(backlog)
    assert exc.value.path == ["top", "e2", "e1", "top"]


def test_diamond_is_not_a_cycle():
    backlog = _make_backlog(
        Task(id="a", title="A"),
        Task(id="b", title="B", depends=["a"]),
        Task(id="c", title="C", depends=["a"]),
        Task(id="d", title="D", depends=["b", "c"]),
    )
    assert find_cycle(backlog) is None
    validate_backlog(backlog)


def test_dangling_dependency():
    backlog = _make_backlog(Task(id="A", title="A", depends=["Z"]))
    with pytest.raises(DanglingDependencyError) as exc:
        validate_backlog(backlog)

    assert exc.value.task_id == "A"
    assert exc.value.missing_id == "Z"
    assert str(exc.value) == "Task A depends on non-existent task Z"


def test_first_dangling_dependency_is_reported():
    backlog = _make_backlog(
        Task(id="a", title="A", depends=["m1"]),
        Task(id="b", title="B", depends=["m2"]),
    )
    with pytest.raises(DanglingDependencyError) as exc:
        validate_backlog(backlog)
    assert (exc.value.task_id, exc.value.missing_id) == ("a", "m1")


def test_dangling_reported_before_cycle():
    backlog = _make_backlog(
        Task(id="X", title="X", depends=["Y"]),
        Task(id="Y", title="Y", depends=["X"]),
        Task(id="Z", title="Z", depends=["nowhere"]),
    )
    with pytest.raises(DanglingDependencyError):
        validate_backlog(backlog)


def test_duplicate_ids_across_epics():
    backlog = _make_backlog(
        Task(id="a", title="A"),
        epics=[Epic(id="E", title="Epic", tasks=[Task(id="a", title="A again")])],
    )
    with pytest.raises(DuplicateTaskIdError) as exc:
        validate_backlog(backlog)
    assert exc.value.task_id == "a"
    assert isinstance(exc.value, BacklogValidationError)


def test_iter_edges():
    edges = set(iter_edges(_make_chain_backlog()))
    assert edges == {("T-2", "T-1"), ("T-3", "T-1"), ("T-3", "T-2")}


# ---------------------- long chains ----------------------


def _make_long_chain(n: int) -> Backlog:
    """T-0 <- T-1 <- ... <- T-(n-1): each task depends on the previous one."""
    tasks = [Task(id="T-0", title="Task 0")]
    for i in range(1, n):
        tasks.append(Task(id=f"T-{i}", title=f"Task {i}", depends=[f"T-{i - 1}"]))
    return _make_backlog(*tasks)


def test_long_chain_validates():
    """Chains deeper than the interpreter's recursion limit are still fine."""
    backlog = _make_long_chain(2500)
    validate_backlog(backlog)
    assert find_cycle(backlog) is None
    assert [t.id for t in compute_ready_tasks(backlog)] == ["T-0"]


def test_cycle_at_end_of_long_chain():
    # T-0 -> T-1 -> ... -> T-1999, and T-1999 -> T-1998 closes a loop.
    n = 2000
    tasks = [Task(id=f"T-{i}", title=f"Task {i}", depends=[f"T-{i + 1}"]) for i in range(n - 1)]
    tasks.append(Task(id=f"T-{n - 1}", title="Last", depends=[f"T-{n - 2}"]))
    backlog = _make_backlog(*tasks)

    with pytest.raises(CycleDetectedError) as exc:
        validate_backlog(backlog)

    path = exc.value.path
    assert path[0] == "T-0"
    assert path[-2:] == [f"T-{n - 1}", f"T-{n - 2}"]
    assert len(path) == n + 1
