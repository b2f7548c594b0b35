from __future__ import annotations

from collections import defaultdict
from datetime import date, datetime

from eyetracktask.domain.entities import Project, SubTask, Task, UserProfile
from eyetracktask.domain.enums import DEFAULT_CATEGORY, TaskStatus
from eyetracktask.domain.rules import parse_due_date

from .repository import PROJECT_FIELDS, SUB_TASK_FIELDS, TASK_FIELDS
from .supabase import SupabaseClient, eq, in_


def _row_values(data: dict, allowed: set[str]) -> dict:
    values = {}
    for key, value in data.items():
        if key not in allowed:
            continue
        if isinstance(value, TaskStatus):
            value = value.value
        elif isinstance(value, date):
            value = value.isoformat()
        values[key] = value
    return values


def _to_sub_task(row: dict) -> SubTask:
    return SubTask(id=row["id"], title=row["title"], is_completed=bool(row.get("is_completed")))


def _to_task(row: dict, sub_tasks: list[SubTask]) -> Task:
    return Task(
        id=row["id"],
        title=row["title"],
        description=row.get("description") or None,
        status=TaskStatus(row.get("status") or TaskStatus.TODO.value),
        due_date=parse_due_date(row.get("due_date")),
        category=row.get("category") or DEFAULT_CATEGORY,
        sub_tasks=tuple(sub_tasks),
    )


def _parse_timestamp(value: str | None) -> datetime:
    if not value:
        return datetime.now()
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class RemoteProjectRepository:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def fetch_projects(self) -> list[Project]:
        user = self._client.require_user()
        projects = self._client.select(
            "projects",
            {"user_id": eq(user["id"])},
            order="sort_order.asc,created_at.asc",
        )
        project_ids = [row["id"] for row in projects]
        tasks = (
            self._client.select("tasks", {"project_id": in_(project_ids)}, order="created_at.asc")
            if project_ids
            else []
        )
        task_ids = [row["id"] for row in tasks]
        sub_tasks = (
            self._client.select("sub_tasks", {"task_id": in_(task_ids)}, order="created_at.asc")
            if task_ids
            else []
        )

        sub_tasks_by_task: dict[str, list[SubTask]] = defaultdict(list)
        for row in sub_tasks:
            sub_tasks_by_task[row["task_id"]].append(_to_sub_task(row))

        tasks_by_project: dict[str, list[Task]] = defaultdict(list)
        for row in tasks:
            tasks_by_project[row["project_id"]].append(_to_task(row, sub_tasks_by_task[row["id"]]))

        return [
            Project(
                id=row["id"],
                name=row["name"],
                icon=row.get("icon") or None,
                tasks=tuple(tasks_by_project[row["id"]]),
            )
            for row in projects
        ]

    def create_project(self, name: str, icon: str | None = None) -> Project:
        user = self._client.require_user()
        rows = self._client.insert(
            "projects",
            [{"user_id": user["id"], "name": name, "icon": icon or None}],
        )
        row = rows[0]
        return Project(id=row["id"], name=row["name"], icon=row.get("icon") or None)

    def update_project(self, project_id: str, data: dict) -> None:
        self._client.update("projects", _row_values(data, PROJECT_FIELDS), {"id": eq(project_id)})

    def delete_project(self, project_id: str) -> None:
        tasks = self._client.select("tasks", {"project_id": eq(project_id)})
        task_ids = [row["id"] for row in tasks]
        if task_ids:
            self._client.delete("sub_tasks", {"task_id": in_(task_ids)})
            self._client.delete("tasks", {"project_id": eq(project_id)})
        self._client.delete("projects", {"id": eq(project_id)})

    def create_task(self, project_id: str, data: dict) -> Task:
        values = _row_values(data, TASK_FIELDS)
        values.setdefault("status", TaskStatus.TODO.value)
        values["category"] = values.get("category") or DEFAULT_CATEGORY
        rows = self._client.insert("tasks", [{"project_id": project_id, **values}])
        return _to_task(rows[0], [])

    def update_task(self, task_id: str, data: dict) -> None:
        self._client.update("tasks", _row_values(data, TASK_FIELDS), {"id": eq(task_id)})

    def delete_task(self, task_id: str) -> None:
        self._client.delete("sub_tasks", {"task_id": eq(task_id)})
        self._client.delete("tasks", {"id": eq(task_id)})

    def create_sub_task(self, task_id: str, title: str) -> SubTask:
        rows = self._client.insert(
            "sub_tasks",
            [{"task_id": task_id, "title": title, "is_completed": False}],
        )
        return _to_sub_task(rows[0])

    def update_sub_task(self, sub_task_id: str, data: dict) -> None:
        self._client.update("sub_tasks", _row_values(data, SUB_TASK_FIELDS), {"id": eq(sub_task_id)})

    def delete_sub_task(self, sub_task_id: str) -> None:
        self._client.delete("sub_tasks", {"id": eq(sub_task_id)})


class RemoteProfileRepository:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    @property
    def user_id(self) -> str:
        return self._client.require_user()["id"]

    def get_profile(self) -> UserProfile:
        user = self._client.require_user()
        rows = self._client.select("profiles", {"id": eq(user["id"])})
        row = rows[0] if rows else {}
        email = user.get("email") or ""
        return UserProfile(
            id=row.get("id") or user["id"],
            username=row.get("username") or (email.split("@")[0] if email else "") or "User",
            email=row.get("email") or email,
            profile_picture=row.get("avatar_url") or None,
            created_at=_parse_timestamp(row.get("created_at") or user.get("created_at")),
        )

    def update_profile(self, data: dict) -> None:
        values = {key: data[key] for key in ("username", "email", "avatar_url") if key in data}
        self._client.update("profiles", values, {"id": eq(self.user_id)})


class RemoteImageStorage:
    def __init__(self, client: SupabaseClient) -> None:
        self._client = client

    def upload(self, bucket: str, path: str, data: bytes, content_type: str = "image/jpeg") -> str:
        return self._client.upload(bucket, path, data, content_type)
