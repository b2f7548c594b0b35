from __future__ import annotations

from collections import defaultdict

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from eyetracktask.domain.entities import Project, SubTask, Task, UserProfile
from eyetracktask.domain.enums import DEFAULT_CATEGORY, TaskStatus

from .db import SessionLocal
from .errors import RecordNotFoundError
from .models import ProfileModel, ProjectModel, SubTaskModel, TaskModel

LOCAL_USER_ID = "local"

PROJECT_FIELDS = {"name", "icon"}
TASK_FIELDS = {"title", "description", "status", "due_date", "category"}
SUB_TASK_FIELDS = {"title", "is_completed"}


def _to_sub_task(model: SubTaskModel) -> SubTask:
    return SubTask(id=model.id, title=model.title, is_completed=model.is_completed)


def _to_task(model: TaskModel, sub_tasks: list[SubTask]) -> Task:
    return Task(
        id=model.id,
        title=model.title,
        description=model.description,
        status=TaskStatus(model.status),
        due_date=model.due_date,
        category=model.category or DEFAULT_CATEGORY,
        sub_tasks=tuple(sub_tasks),
    )


def _to_project(model: ProjectModel, tasks: list[Task]) -> Project:
    return Project(id=model.id, name=model.name, icon=model.icon, tasks=tuple(tasks))


def _pick(data: dict, allowed: set[str]) -> dict:
    values = {key: value for key, value in data.items() if key in allowed}
    if "status" in values and isinstance(values["status"], TaskStatus):
        values["status"] = values["status"].value
    return values


class LocalProjectRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal, user_id: str = LOCAL_USER_ID) -> None:
        self._session_factory = session_factory
        self._user_id = user_id

    def fetch_projects(self) -> list[Project]:
        with self._session_factory() as session:
            projects = session.scalars(
                select(ProjectModel)
                .where(ProjectModel.user_id == self._user_id)
                .order_by(ProjectModel.sort_order.asc(), ProjectModel.created_at.asc())
            ).all()
            project_ids = [project.id for project in projects]

            tasks = session.scalars(
                select(TaskModel)
                .where(TaskModel.project_id.in_(project_ids))
                .order_by(TaskModel.sort_order.asc(), TaskModel.created_at.asc())
            ).all() if project_ids else []
            task_ids = [task.id for task in tasks]

            sub_tasks = session.scalars(
                select(SubTaskModel)
                .where(SubTaskModel.task_id.in_(task_ids))
                .order_by(SubTaskModel.sort_order.asc(), SubTaskModel.created_at.asc())
            ).all() if task_ids else []

            sub_tasks_by_task: dict[str, list[SubTask]] = defaultdict(list)
            for sub_task in sub_tasks:
                sub_tasks_by_task[sub_task.task_id].append(_to_sub_task(sub_task))

            tasks_by_project: dict[str, list[Task]] = defaultdict(list)
            for task in tasks:
                tasks_by_project[task.project_id].append(_to_task(task, sub_tasks_by_task[task.id]))

            return [_to_project(project, tasks_by_project[project.id]) for project in projects]

    def create_project(self, name: str, icon: str | None = None) -> Project:
        with self._session_factory() as session:
            project = ProjectModel(
                user_id=self._user_id,
                name=name,
                icon=icon or None,
                sort_order=self._next_sort_order(
                    session, ProjectModel, ProjectModel.user_id == self._user_id
                ),
            )
            session.add(project)
            session.commit()
            session.refresh(project)
            return _to_project(project, [])

    def update_project(self, project_id: str, data: dict) -> None:
        with self._session_factory() as session:
            project = self._get(session, ProjectModel, project_id)
            for key, value in _pick(data, PROJECT_FIELDS).items():
                setattr(project, key, value)
            session.commit()

    def delete_project(self, project_id: str) -> None:
        with self._session_factory() as session:
            project = self._get(session, ProjectModel, project_id)
            session.delete(project)
            session.commit()

    def create_task(self, project_id: str, data: dict) -> Task:
        with self._session_factory() as session:
            self._get(session, ProjectModel, project_id)
            values = _pick(data, TASK_FIELDS)
            values.setdefault("status", TaskStatus.TODO.value)
            values["category"] = values.get("category") or DEFAULT_CATEGORY
            task = TaskModel(
                project_id=project_id,
                sort_order=self._next_sort_order(
                    session, TaskModel, TaskModel.project_id == project_id
                ),
                **values,
            )
            session.add(task)
            session.commit()
            session.refresh(task)
            return _to_task(task, [])

    def update_task(self, task_id: str, data: dict) -> None:
        with self._session_factory() as session:
            task = self._get(session, TaskModel, task_id)
            for key, value in _pick(data, TASK_FIELDS).items():
                setattr(task, key, value)
            session.commit()

    def delete_task(self, task_id: str) -> None:
        with self._session_factory() as session:
            task = self._get(session, TaskModel, task_id)
            session.delete(task)
            session.commit()

    def create_sub_task(self, task_id: str, title: str) -> SubTask:
        with self._session_factory() as session:
            self._get(session, TaskModel, task_id)
            sub_task = SubTaskModel(
                task_id=task_id,
                title=title,
                is_completed=False,
                sort_order=self._next_sort_order(
                    session, SubTaskModel, SubTaskModel.task_id == task_id
                ),
            )
            session.add(sub_task)
            session.commit()
            session.refresh(sub_task)
            return _to_sub_task(sub_task)

    def update_sub_task(self, sub_task_id: str, data: dict) -> None:
        with self._session_factory() as session:
            sub_task = self._get(session, SubTaskModel, sub_task_id)
            for key, value in _pick(data, SUB_TASK_FIELDS).items():
                setattr(sub_task, key, value)
            session.commit()

    def delete_sub_task(self, sub_task_id: str) -> None:
        with self._session_factory() as session:
            sub_task = self._get(session, SubTaskModel, sub_task_id)
            session.delete(sub_task)
            session.commit()

    @staticmethod
    def _get(session: Session, model, record_id: str):
        record = session.get(model, record_id)
        if record is None:
            raise RecordNotFoundError(f"{model.__tablename__} row {record_id} not found")
        return record

    @staticmethod
    def _next_sort_order(session: Session, model, condition) -> int:
        max_order = session.scalar(select(func.max(model.sort_order)).where(condition))
        return (max_order or 0) + 1


class LocalProfileRepository:
    def __init__(self, session_factory: sessionmaker = SessionLocal, user_id: str = LOCAL_USER_ID) -> None:
        self._session_factory = session_factory
        self._user_id = user_id

    @property
    def user_id(self) -> str:
        return self._user_id

    def get_profile(self) -> UserProfile:
        with self._session_factory() as session:
            profile = session.get(ProfileModel, self._user_id)
            if profile is None:
                profile = ProfileModel(
                    id=self._user_id,
                    username="User",
                    email="user@example.com",
                )
                session.add(profile)
                session.commit()
                session.refresh(profile)
            return UserProfile(
                id=profile.id,
                username=profile.username or "User",
                email=profile.email or "",
                profile_picture=profile.avatar_url,
                created_at=profile.created_at,
            )

    def update_profile(self, data: dict) -> None:
        self.get_profile()
        with self._session_factory() as session:
            profile = session.get(ProfileModel, self._user_id)
            for key in ("username", "email", "avatar_url"):
                if key in data:
                    setattr(profile, key, data[key])
            session.commit()
