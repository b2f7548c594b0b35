from __future__ import annotations

from enum import StrEnum


class TaskStatus(StrEnum):
    TODO = "TODO"
    IN_PROGRESS = "IN_PROGRESS"
    REVIEW = "Review"
    DONE = "DONE"


class DueDateStatus(StrEnum):
    OVERDUE = "overdue"
    TODAY = "today"
    UPCOMING = "upcoming"


STATUS_LABELS = {
    TaskStatus.TODO: "To Do",
    TaskStatus.IN_PROGRESS: "In Work",
    TaskStatus.REVIEW: "Review",
    TaskStatus.DONE: "Done",
}

CATEGORIES = ["Design", "Dev", "Marketing", "Research", "Testing"]

DEFAULT_CATEGORY = "Dev"
