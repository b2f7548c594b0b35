from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import date, datetime
from typing import Optional

from .enums import TaskStatus

TEMP_ID_PREFIX = "temp-"


def new_temporary_id() -> str:
    return f"{TEMP_ID_PREFIX}{uuid.uuid4().hex}"


def is_temporary_id(value: str | None) -> bool:
    return bool(value) and value.startswith(TEMP_ID_PREFIX)


@dataclass(frozen=True)
class SubTask:
    id: str
    title: str
    is_completed: bool = False


@dataclass(frozen=True)
class Task:
    id: str
    title: str
    description: Optional[str] = None
    status: TaskStatus = TaskStatus.TODO
    due_date: Optional[date] = None
    category: str = "Dev"
    sub_tasks: tuple[SubTask, ...] = ()


@dataclass(frozen=True)
class Project:
    id: str
    name: str
    icon: Optional[str] = None
    tasks: tuple[Task, ...] = ()


@dataclass(frozen=True)
class UserProfile:
    id: str
    username: str
    email: str
    profile_picture: Optional[str]
    created_at: datetime


@dataclass(frozen=True)
class ScheduledTask:
    task: Task
    project_id: str
    project_name: str
