from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from typing import Iterable, Optional

from eyetracktask.domain.entities import Project, ScheduledTask, Task
from eyetracktask.domain.enums import TaskStatus
from eyetracktask.domain.rules import get_status_color


@dataclass(frozen=True)
class CalendarEvent:
    title: str
    day: date
    status: TaskStatus
    color: str
    project_name: str
    task: Task


def scheduled_tasks(projects: Iterable[Project]) -> list[ScheduledTask]:
    items = [
        ScheduledTask(task=task, project_id=project.id, project_name=project.name)
        for project in projects
        for task in project.tasks
        if task.due_date and task.status != TaskStatus.DONE
    ]
    return sorted(items, key=lambda item: item.task.due_date)


def calendar_events(
    projects: Iterable[Project],
    month: Optional[tuple[int, int]] = None,
) -> list[CalendarEvent]:
    events = []
    for project in projects:
        for task in project.tasks:
            if not task.due_date:
                continue
            if month and (task.due_date.year, task.due_date.month) != month:
                continue
            events.append(
                CalendarEvent(
                    title=task.title,
                    day=task.due_date,
                    status=task.status,
                    color=get_status_color(task.status),
                    project_name=project.name,
                    task=task,
                )
            )
    return sorted(events, key=lambda event: event.day)


def events_by_day(events: Iterable[CalendarEvent]) -> dict[date, list[CalendarEvent]]:
    grouped: dict[date, list[CalendarEvent]] = defaultdict(list)
    for event in events:
        grouped[event.day].append(event)
    return dict(grouped)
