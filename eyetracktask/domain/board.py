from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Iterable, Optional

from .entities import Task
from .enums import TaskStatus


@dataclass(frozen=True)
class DragLocation:
    status: TaskStatus
    index: int


def apply_drop(
    tasks: Iterable[Task],
    task_id: str,
    source: DragLocation,
    destination: Optional[DragLocation],
) -> list[Task] | None:
    """Return the task list after a drop, or None when nothing moves.

    The destination column is rebuilt with the moved task spliced in at the
    drop index and placed after the other columns, which keep their order.
    """
    if destination is None or destination == source:
        return None

    remaining = list(tasks)
    position = next((i for i, task in enumerate(remaining) if task.id == task_id), None)
    if position is None:
        return None

    moved = replace(remaining.pop(position), status=destination.status)
    destination_tasks = [task for task in remaining if task.status == destination.status]
    other_tasks = [task for task in remaining if task.status != destination.status]
    index = max(0, min(destination.index, len(destination_tasks)))
    destination_tasks.insert(index, moved)
    return other_tasks + destination_tasks
