from __future__ import annotations

from datetime import date, datetime

import pytest

from eyetracktask.domain.entities import SubTask
from eyetracktask.domain.enums import DueDateStatus, TaskStatus
from eyetracktask.domain.rules import (
    DEFAULT_CATEGORY_COLOR,
    format_due_date,
    format_long_date,
    get_category_color,
    get_due_date_status,
    get_progress_percentage,
    get_status_color,
    is_image_reference,
    parse_due_date,
    project_initials,
)

TODAY = date(2024, 3, 4)


def _subs(done: int, total: int) -> list[SubTask]:
    return [SubTask(id=str(i), title=f"s{i}", is_completed=i < done) for i in range(total)]


@pytest.mark.parametrize(
    ("done", "total", "expected"),
    [(0, 0, 0), (0, 3, 0), (1, 3, 33), (2, 3, 67), (1, 8, 13), (1, 2, 50), (4, 4, 100)],
)
def test_progress_percentage(done: int, total: int, expected: int) -> None:
    assert get_progress_percentage(_subs(done, total)) == expected


def test_progress_without_sub_tasks() -> None:
    assert get_progress_percentage(None) == 0


def test_category_colors() -> None:
    assert get_category_color("Design") == "#F59E0B"
    assert get_category_color("Dev") == "#3B82F6"
    assert get_category_color("Cooking") == DEFAULT_CATEGORY_COLOR
    assert get_category_color(None) == DEFAULT_CATEGORY_COLOR


def test_status_colors_follow_the_column() -> None:
    assert get_status_color(TaskStatus.DONE) == "#10b981"
    assert get_status_color("Review") == "#8b5cf6"


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        (date(2024, 3, 3), DueDateStatus.OVERDUE),
        (date(2024, 3, 4), DueDateStatus.TODAY),
        (date(2024, 3, 5), DueDateStatus.UPCOMING),
        ("2024-03-04T09:30:00", DueDateStatus.TODAY),
        (None, None),
    ],
)
def test_due_date_status(due, expected) -> None:
    assert get_due_date_status(due, today=TODAY) == expected


@pytest.mark.parametrize(
    ("due", "expected"),
    [
        (date(2024, 3, 4), "Today"),
        (date(2024, 3, 5), "Tomorrow"),
        (date(2024, 3, 3), "Yesterday"),
        (date(2024, 3, 20), "Mar 20"),
        (date(2024, 1, 2), "Jan 2"),
    ],
)
def test_format_due_date(due: date, expected: str) -> None:
    assert format_due_date(due, today=TODAY) == expected


def test_format_long_date() -> None:
    assert format_long_date(date(2024, 3, 4)) == "March 4, 2024"


def test_parse_due_date_accepts_several_shapes() -> None:
    assert parse_due_date("2024-03-04") == TODAY
    assert parse_due_date(datetime(2024, 3, 4, 12, 0)) == TODAY
    assert parse_due_date("") is None


def test_project_initials() -> None:
    assert project_initials("Launch plan") == "LP"
    assert project_initials("research") == "R"
    assert project_initials("a b c") == "AB"


def test_image_reference_detection() -> None:
    assert is_image_reference("https://cdn.example/icon.jpg")
    assert is_image_reference("data:image/jpeg;base64,AAAA")
    assert not is_image_reference("🚀")
    assert not is_image_reference(None)
