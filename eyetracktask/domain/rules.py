from __future__ import annotations

import math
from datetime import date, datetime
from typing import Iterable, Optional

from .entities import SubTask
from .enums import DueDateStatus, TaskStatus

CATEGORY_COLORS = {
    "Design": "#F59E0B",
    "Dev": "#3B82F6",
    "Development": "#3B82F6",
    "Marketing": "#8B5CF6",
    "Research": "#EF4444",
    "Testing": "#10B981",
    "Other": "#9CA3AF",
}
DEFAULT_CATEGORY_COLOR = "#6B7280"

STATUS_COLORS = {
    TaskStatus.TODO: "#3b82f6",
    TaskStatus.IN_PROGRESS: "#f59e0b",
    TaskStatus.REVIEW: "#8b5cf6",
    TaskStatus.DONE: "#10b981",
}


def get_progress_percentage(sub_tasks: Optional[Iterable[SubTask]]) -> int:
    items = list(sub_tasks or [])
    if not items:
        return 0
    completed = sum(1 for sub_task in items if sub_task.is_completed)
    # half-up, so 1 of 8 reads as 13%
    return int(math.floor(completed * 100 / len(items) + 0.5))


def get_category_color(category: str | None) -> str:
    return CATEGORY_COLORS.get(category or "", DEFAULT_CATEGORY_COLOR)


def get_status_color(status: TaskStatus | str) -> str:
    try:
        return STATUS_COLORS[TaskStatus(status)]
    except ValueError:
        return STATUS_COLORS[TaskStatus.TODO]


def parse_due_date(value: date | str | None) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value[:10])


def get_due_date_status(
    due_date: date | str | None,
    today: Optional[date] = None,
) -> Optional[DueDateStatus]:
    due = parse_due_date(due_date)
    if due is None:
        return None
    today = today or date.today()
    if due < today:
        return DueDateStatus.OVERDUE
    if due == today:
        return DueDateStatus.TODAY
    return DueDateStatus.UPCOMING


def format_due_date(due_date: date | str, today: Optional[date] = None) -> str:
    due = parse_due_date(due_date)
    today = today or date.today()
    delta = (due - today).days
    if delta == 0:
        return "Today"
    if delta == 1:
        return "Tomorrow"
    if delta == -1:
        return "Yesterday"
    return f"{due.strftime('%b')} {due.day}"


def format_long_date(value: date) -> str:
    return f"{value.strftime('%B')} {value.day}, {value.year}"


def project_initials(name: str) -> str:
    letters = [word[0] for word in name.split() if word]
    return "".join(letters).upper()[:2]


def is_image_reference(icon: str | None) -> bool:
    if not icon:
        return False
    return icon.startswith(("data:", "http://", "https://"))
