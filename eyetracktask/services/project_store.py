from __future__ import annotations

import logging
from dataclasses import replace
from typing import Any, Callable, Optional

from eyetracktask.domain.board import DragLocation, apply_drop
from eyetracktask.domain.entities import (
    Project,
    ScheduledTask,
    Task,
    is_temporary_id,
    new_temporary_id,
)
from eyetracktask.domain.enums import DEFAULT_CATEGORY, TaskStatus
from eyetracktask.domain.filters import TaskFilters, filter_tasks
from eyetracktask.domain.rules import parse_due_date

logger = logging.getLogger(__name__)

DEFAULT_PROJECT_NAME = "My Project"
LAST_PROJECT_MESSAGE = "Cannot delete the last project"
PENDING_MESSAGE = "This item is still being saved. Try again in a moment."

EDITABLE_TASK_FIELDS = ("title", "description", "status", "due_date", "category")

Listener = Callable[[], None]
ErrorListener = Callable[[str], None]
Settled = Optional[Callable[[bool], None]]


class InlineExecutor:
    def submit(
        self,
        fn: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        try:
            result = fn()
        except Exception as exc:  # noqa: BLE001
            on_error(exc)
            return
        on_success(result)


def _settle(callback: Settled, ok: bool) -> None:
    if callback is not None:
        callback(ok)


def _normalize_task_fields(fields: dict) -> dict:
    values = {key: value for key, value in fields.items() if key in EDITABLE_TASK_FIELDS}
    if "status" in values:
        values["status"] = TaskStatus(values["status"])
    if "due_date" in values:
        values["due_date"] = parse_due_date(values["due_date"])
    if "description" in values:
        values["description"] = values["description"] or None
    if "category" in values:
        values["category"] = values["category"] or DEFAULT_CATEGORY
    return values


class ProjectStore:
    """Client-side view of the user's projects, kept in sync with a repository.

    Reads come from the last fetched list, or from the single optimistic
    overlay while a create or a task update is in flight. Every mutation
    runs the remote call plus a full refetch as one background job; when the
    job settles the overlay is dropped if that mutation still owns it.
    """

    def __init__(self, repo, executor=None) -> None:
        self._repo = repo
        self._executor = executor or InlineExecutor()
        self._projects: list[Project] = []
        self._overlay: list[Project] | None = None
        self._overlay_token = 0
        self._token = 0
        self._task_order: dict[str, list[str]] = {}
        self._current_project_id: str | None = None
        self._bootstrapping = False
        self._listeners: list[Listener] = []
        self._error_listeners: list[ErrorListener] = []
        self.loading = False
        self.error: str | None = None

    # subscriptions

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        self._listeners.append(listener)
        return lambda: self._listeners.remove(listener)

    def subscribe_errors(self, listener: ErrorListener) -> Callable[[], None]:
        self._error_listeners.append(listener)
        return lambda: self._error_listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            listener()

    def _publish_error(self, message: str) -> None:
        self.error = message
        for listener in list(self._error_listeners):
            listener(message)
        self._notify()

    # read side

    @property
    def has_overlay(self) -> bool:
        return self._overlay is not None

    @property
    def projects(self) -> list[Project]:
        source = self._overlay if self._overlay is not None else self._projects
        return [self._ordered(project) for project in source]

    @property
    def current_project(self) -> Project | None:
        projects = self.projects
        for project in projects:
            if project.id == self._current_project_id:
                return project
        return projects[0] if projects else None

    @property
    def current_project_id(self) -> str | None:
        project = self.current_project
        return project.id if project else None

    def switch_project(self, project_id: str) -> None:
        if any(project.id == project_id for project in self.projects):
            self._current_project_id = project_id
            self._notify()

    def get_tasks_by_status(
        self,
        status: TaskStatus | str,
        search_query: str | None = None,
        status_filter: TaskStatus | str | None = None,
    ) -> list[Task]:
        project = self.current_project
        if project is None:
            return []
        filters = TaskFilters(
            search=search_query or None,
            status=TaskStatus(status_filter) if status_filter else None,
        )
        return filter_tasks(project.tasks, TaskStatus(status), filters)

    def all_tasks(self) -> list[ScheduledTask]:
        return [
            ScheduledTask(task=task, project_id=project.id, project_name=project.name)
            for project in self.projects
            for task in project.tasks
        ]

    def find_task(self, task_id: str) -> ScheduledTask | None:
        return next((item for item in self.all_tasks() if item.task.id == task_id), None)

    def _ordered(self, project: Project) -> Project:
        order = self._task_order.get(project.id)
        if not order:
            return project
        rank = {task_id: index for index, task_id in enumerate(order)}
        tasks = sorted(project.tasks, key=lambda task: rank.get(task.id, len(rank)))
        return replace(project, tasks=tuple(tasks))

    # reconciliation

    def refresh(self, on_settled: Settled = None) -> None:
        self.loading = True
        self._notify()

        def succeeded(projects: list[Project]) -> None:
            self.loading = False
            self._apply_fetch(projects)
            self._notify()
            _settle(on_settled, True)

        def failed(exc: Exception) -> None:
            self.loading = False
            self._fail("Failed to load projects", exc)
            _settle(on_settled, False)

        self._executor.submit(self._repo.fetch_projects, succeeded, failed)

    def _apply_fetch(self, projects: list[Project]) -> None:
        self._projects = list(projects)
        self.error = None
        if self._projects:
            self._bootstrapping = False
            return
        if not self._bootstrapping:
            self._bootstrapping = True
            self.create_project(DEFAULT_PROJECT_NAME, on_settled=self._bootstrap_settled)

    def _bootstrap_settled(self, ok: bool) -> None:
        if not ok:
            self._bootstrapping = False

    def _release_overlay(self, token: int) -> None:
        if self._overlay_token == token:
            self._overlay = None

    def _fail(self, message: str, exc: Exception) -> None:
        logger.error("%s: %s", message, exc, exc_info=exc)
        self._publish_error(f"{message}: {exc}")

    def _reject(self, message: str) -> None:
        logger.info("Rejected: %s", message)
        self._publish_error(message)

    def _mutate(
        self,
        action: str,
        call: Callable[[], Any],
        overlay: list[Project] | None = None,
        on_success: Callable[[Any], None] | None = None,
        on_failure: Callable[[], None] | None = None,
        on_settled: Settled = None,
    ) -> None:
        self._token += 1
        token = self._token
        self._overlay = overlay
        self._overlay_token = token
        self._notify()

        def job() -> tuple[Any, list[Project]]:
            result = call()
            return result, self._repo.fetch_projects()

        def succeeded(outcome: tuple[Any, list[Project]]) -> None:
            result, projects = outcome
            self._release_overlay(token)
            self._apply_fetch(projects)
            if on_success is not None:
                on_success(result)
            self._notify()
            _settle(on_settled, True)

        def failed(exc: Exception) -> None:
            self._release_overlay(token)
            if on_failure is not None:
                on_failure()
            self._fail(f"Failed to {action}", exc)
            _settle(on_settled, False)

        self._executor.submit(job, succeeded, failed)

    # projects

    def create_project(self, name: str, icon: str | None = None, on_settled: Settled = None) -> Project | None:
        name = (name or "").strip()
        if not name:
            return None
        icon = icon or None
        temp = Project(id=new_temporary_id(), name=name, icon=icon)
        previous_id = self._current_project_id
        self._current_project_id = temp.id

        def select_created(created: Project) -> None:
            if self._current_project_id == temp.id:
                self._current_project_id = created.id

        def restore_selection() -> None:
            if self._current_project_id == temp.id:
                self._current_project_id = previous_id

        self._mutate(
            "create project",
            lambda: self._repo.create_project(name, icon),
            overlay=self._projects + [temp],
            on_success=select_created,
            on_failure=restore_selection,
            on_settled=on_settled,
        )
        return temp

    def update_project(self, project_id: str, fields: dict, on_settled: Settled = None) -> bool:
        values = dict(fields)
        if "name" in values:
            values["name"] = (values["name"] or "").strip()
            if not values["name"]:
                return False
        if is_temporary_id(project_id):
            self._reject(PENDING_MESSAGE)
            return False
        self._mutate(
            "update project",
            lambda: self._repo.update_project(project_id, values),
            on_settled=on_settled,
        )
        return True

    def delete_project(self, project_id: str, on_settled: Settled = None) -> bool:
        if len(self.projects) <= 1:
            self._reject(LAST_PROJECT_MESSAGE)
            return False
        if is_temporary_id(project_id):
            self._reject(PENDING_MESSAGE)
            return False

        def reselect(_result: Any) -> None:
            remaining = [project.id for project in self._projects]
            if self._current_project_id == project_id or self._current_project_id not in remaining:
                self._current_project_id = remaining[0] if remaining else None

        self._mutate(
            "delete project",
            lambda: self._repo.delete_project(project_id),
            on_success=reselect,
            on_settled=on_settled,
        )
        return True

    # tasks

    def add_task(
        self,
        project_id: str,
        title: str,
        description: str | None = None,
        due_date=None,
        category: str | None = None,
        status: TaskStatus | str = TaskStatus.TODO,
        on_settled: Settled = None,
    ) -> Task | None:
        title = (title or "").strip()
        if not title:
            return None
        if is_temporary_id(project_id):
            self._reject(PENDING_MESSAGE)
            return None
        if not any(project.id == project_id for project in self._projects):
            self._reject("Project not found")
            return None

        task = Task(
            id=new_temporary_id(),
            title=title,
            description=description or None,
            status=TaskStatus(status),
            due_date=parse_due_date(due_date),
            category=category or DEFAULT_CATEGORY,
        )
        overlay = [
            replace(project, tasks=project.tasks + (task,)) if project.id == project_id else project
            for project in self._projects
        ]
        data = {
            "title": task.title,
            "description": task.description,
            "status": task.status,
            "due_date": task.due_date,
            "category": task.category,
        }
        self._mutate(
            "add task",
            lambda: self._repo.create_task(project_id, data),
            overlay=overlay,
            on_settled=on_settled,
        )
        return task

    def update_task(
        self,
        task_id: str,
        fields: dict,
        on_settled: Settled = None,
        on_failure: Callable[[], None] | None = None,
    ) -> bool:
        values = _normalize_task_fields(fields)
        if "title" in values:
            values["title"] = (values["title"] or "").strip()
            if not values["title"]:
                return False
        if is_temporary_id(task_id):
            self._reject(PENDING_MESSAGE)
            return False

        overlay = []
        found = False
        for project in self._projects:
            tasks = []
            for task in project.tasks:
                if task.id == task_id:
                    task = replace(task, **values)
                    found = True
                tasks.append(task)
            overlay.append(replace(project, tasks=tuple(tasks)))
        if not found:
            self._reject("Task not found")
            return False

        self._mutate(
            "update task",
            lambda: self._repo.update_task(task_id, values),
            overlay=overlay,
            on_failure=on_failure,
            on_settled=on_settled,
        )
        return True

    def move_task(
        self,
        task_id: str,
        source: DragLocation,
        destination: Optional[DragLocation],
        on_settled: Settled = None,
    ) -> bool:
        project = self.current_project
        if project is None:
            return False
        reordered = apply_drop(project.tasks, task_id, source, destination)
        if reordered is None:
            return False
        if destination.status != source.status and is_temporary_id(task_id):
            self._reject(PENDING_MESSAGE)
            return False

        previous_order = self._task_order.get(project.id)

        def restore_order() -> None:
            if previous_order is None:
                self._task_order.pop(project.id, None)
            else:
                self._task_order[project.id] = previous_order

        self._task_order[project.id] = [task.id for task in reordered]
        if destination.status == source.status:
            self._notify()
            return True
        moved = self.update_task(
            task_id,
            {"status": destination.status},
            on_settled=on_settled,
            on_failure=restore_order,
        )
        if not moved:
            restore_order()
        return moved

    def delete_task(self, task_id: str, on_settled: Settled = None) -> bool:
        if is_temporary_id(task_id):
            self._reject(PENDING_MESSAGE)
            return False
        self._mutate(
            "delete task",
            lambda: self._repo.delete_task(task_id),
            on_settled=on_settled,
        )
        return True

    # sub-tasks

    def add_sub_task(self, task_id: str, title: str, on_settled: Settled = None) -> bool:
        title = (title or "").strip()
        if not title:
            return False
        if is_temporary_id(task_id):
            self._reject(PENDING_MESSAGE)
            return False
        self._mutate(
            "add subtask",
            lambda: self._repo.create_sub_task(task_id, title),
            on_settled=on_settled,
        )
        return True

    def update_sub_task(self, sub_task_id: str, fields: dict, on_settled: Settled = None) -> bool:
        values = dict(fields)
        if "title" in values:
            values["title"] = (values["title"] or "").strip()
            if not values["title"]:
                return False
        self._mutate(
            "update subtask",
            lambda: self._repo.update_sub_task(sub_task_id, values),
            on_settled=on_settled,
        )
        return True

    def delete_sub_task(self, sub_task_id: str, on_settled: Settled = None) -> bool:
        self._mutate(
            "delete subtask",
            lambda: self._repo.delete_sub_task(sub_task_id),
            on_settled=on_settled,
        )
        return True
