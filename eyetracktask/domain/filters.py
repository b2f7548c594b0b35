from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from .entities import Task
from .enums import TaskStatus


@dataclass(frozen=True)
class TaskFilters:
    search: str | None = None
    status: Optional[TaskStatus] = None


def matches_search(task: Task, search: str | None) -> bool:
    if not search or not search.strip():
        return True
    needle = search.strip().lower()
    if needle in task.title.lower():
        return True
    return bool(task.description) and needle in task.description.lower()


def filter_tasks(tasks: Iterable[Task], status: TaskStatus, filters: TaskFilters) -> list[Task]:
    if filters.status and filters.status != status:
        return []
    return [
        task
        for task in tasks
        if task.status == status and matches_search(task, filters.search)
    ]
