from __future__ import annotations

from eyetracktask.domain.entities import Task
from eyetracktask.domain.enums import TaskStatus
from eyetracktask.domain.filters import TaskFilters, filter_tasks, matches_search

TASKS = [
    Task(id="1", title="Write docs"),
    Task(id="2", title="Fix bug", description="Crash on start"),
    Task(id="3", title="Deploy", status=TaskStatus.DONE),
]


def test_search_matches_title_case_insensitively() -> None:
    result = filter_tasks(TASKS, TaskStatus.TODO, TaskFilters(search="doc"))

    assert [task.title for task in result] == ["Write docs"]


def test_search_matches_description() -> None:
    assert matches_search(TASKS[1], "CRASH")
    assert not matches_search(TASKS[0], "crash")


def test_blank_search_matches_everything() -> None:
    assert matches_search(TASKS[0], "   ")
    assert len(filter_tasks(TASKS, TaskStatus.TODO, TaskFilters())) == 2


def test_status_filter_hides_other_columns() -> None:
    filters = TaskFilters(status=TaskStatus.DONE)

    assert filter_tasks(TASKS, TaskStatus.TODO, filters) == []
    assert [task.title for task in filter_tasks(TASKS, TaskStatus.DONE, filters)] == ["Deploy"]
