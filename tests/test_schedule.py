from __future__ import annotations

from datetime import date, timedelta

from eyetracktask.domain.entities import Project, Task
from eyetracktask.domain.enums import DueDateStatus, TaskStatus
from eyetracktask.domain.rules import format_due_date, get_category_color, get_due_date_status
from eyetracktask.services.schedule import calendar_events, events_by_day, scheduled_tasks


def _projects(today: date) -> list[Project]:
    return [
        Project(
            id="p1",
            name="Launch",
            tasks=(
                Task(id="t1", title="Design mockups", category="Design", due_date=today + timedelta(days=1)),
                Task(id="t2", title="Old bug", due_date=today - timedelta(days=2)),
                Task(id="t3", title="Shipped", status=TaskStatus.DONE, due_date=today),
                Task(id="t4", title="Someday"),
            ),
        ),
        Project(
            id="p2",
            name="Research",
            tasks=(Task(id="t5", title="Interview", status=TaskStatus.REVIEW, due_date=today),),
        ),
    ]


def test_scheduled_tasks_skip_done_and_undated_and_sort_by_due() -> None:
    today = date.today()

    items = scheduled_tasks(_projects(today))

    assert [item.task.title for item in items] == ["Old bug", "Interview", "Design mockups"]
    assert [item.project_name for item in items] == ["Launch", "Research", "Launch"]


def test_tomorrow_task_reads_as_upcoming_in_design_color() -> None:
    today = date.today()
    item = scheduled_tasks(_projects(today))[-1]

    assert item.task.title == "Design mockups"
    assert get_due_date_status(item.task.due_date) == DueDateStatus.UPCOMING
    assert format_due_date(item.task.due_date) == "Tomorrow"
    assert get_category_color(item.task.category) == "#F59E0B"


def test_calendar_includes_done_tasks_colored_by_status() -> None:
    today = date(2024, 3, 15)

    events = calendar_events(_projects(today))

    shipped = next(event for event in events if event.title == "Shipped")
    assert shipped.color == "#10b981"
    assert shipped.project_name == "Launch"
    assert "Someday" not in [event.title for event in events]


def test_calendar_can_be_limited_to_a_month() -> None:
    today = date(2024, 3, 31)

    events = calendar_events(_projects(today), month=(2024, 3))

    assert "Design mockups" not in [event.title for event in events]
    assert {event.day.month for event in events} == {3}


def test_events_grouped_by_day() -> None:
    today = date(2024, 3, 15)
    events = calendar_events(_projects(today))

    grouped = events_by_day(events)

    assert sorted(event.title for event in grouped[today]) == ["Interview", "Shipped"]
    assert [event.title for event in grouped[today - timedelta(days=2)]] == ["Old bug"]
