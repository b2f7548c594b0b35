from __future__ import annotations

from eyetracktask.domain.board import DragLocation, apply_drop
from eyetracktask.domain.entities import Task
from eyetracktask.domain.enums import TaskStatus

TODO = TaskStatus.TODO
DONE = TaskStatus.DONE

TASKS = [
    Task(id="a", title="A"),
    Task(id="b", title="B"),
    Task(id="c", title="C", status=DONE),
]


def _column(tasks, status: TaskStatus) -> list[str]:
    return [task.id for task in tasks if task.status == status]


def test_drop_into_another_column_changes_status() -> None:
    result = apply_drop(TASKS, "a", DragLocation(TODO, 0), DragLocation(DONE, 0))

    assert _column(result, DONE) == ["a", "c"]
    assert _column(result, TODO) == ["b"]
    assert len(result) == len(TASKS)


def test_drop_within_a_column_reorders() -> None:
    result = apply_drop(TASKS, "a", DragLocation(TODO, 0), DragLocation(TODO, 1))

    assert _column(result, TODO) == ["b", "a"]


def test_drop_index_is_clamped() -> None:
    result = apply_drop(TASKS, "a", DragLocation(TODO, 0), DragLocation(DONE, 99))

    assert _column(result, DONE) == ["c", "a"]


def test_cancelled_and_unchanged_drops() -> None:
    assert apply_drop(TASKS, "a", DragLocation(TODO, 0), None) is None
    assert apply_drop(TASKS, "a", DragLocation(TODO, 0), DragLocation(TODO, 0)) is None
    assert apply_drop(TASKS, "zzz", DragLocation(TODO, 0), DragLocation(DONE, 0)) is None
