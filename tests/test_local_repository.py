from __future__ import annotations

from datetime import date

import pytest
from sqlalchemy import func, select
from sqlalchemy.orm import sessionmaker

from eyetracktask.domain.enums import TaskStatus
from eyetracktask.infra.db import create_schema, make_engine
from eyetracktask.infra.errors import RecordNotFoundError
from eyetracktask.infra.models import SubTaskModel, TaskModel
from eyetracktask.infra.repository import LocalProfileRepository, LocalProjectRepository


@pytest.fixture()
def session_factory():
    engine = make_engine("sqlite://")
    create_schema(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def repo(session_factory) -> LocalProjectRepository:
    return LocalProjectRepository(session_factory)


def test_projects_round_trip_with_tasks_and_sub_tasks(repo: LocalProjectRepository) -> None:
    project = repo.create_project("Launch", "🚀")
    task = repo.create_task(
        project.id,
        {"title": "Design mockups", "status": TaskStatus.REVIEW, "due_date": date(2024, 3, 4), "category": "Design"},
    )
    repo.create_sub_task(task.id, "Wireframes")
    repo.create_sub_task(task.id, "Palette")

    [loaded] = repo.fetch_projects()

    assert loaded.name == "Launch"
    assert loaded.icon == "🚀"
    assert loaded.tasks[0].status == TaskStatus.REVIEW
    assert loaded.tasks[0].due_date == date(2024, 3, 4)
    assert [sub.title for sub in loaded.tasks[0].sub_tasks] == ["Wireframes", "Palette"]


def test_new_tasks_default_to_todo_and_dev(repo: LocalProjectRepository) -> None:
    project = repo.create_project("Launch")

    task = repo.create_task(project.id, {"title": "Plain"})

    assert task.status == TaskStatus.TODO
    assert task.category == "Dev"
    assert task.description is None


def test_projects_keep_creation_order(repo: LocalProjectRepository) -> None:
    for name in ("One", "Two", "Three"):
        repo.create_project(name)

    assert [project.name for project in repo.fetch_projects()] == ["One", "Two", "Three"]


def test_updates_only_touch_known_fields(repo: LocalProjectRepository) -> None:
    project = repo.create_project("Launch")
    task = repo.create_task(project.id, {"title": "Ship"})
    sub_task = repo.create_sub_task(task.id, "Tag release")

    repo.update_project(project.id, {"name": "Launch v2", "user_id": "someone-else"})
    repo.update_task(task.id, {"status": TaskStatus.DONE, "project_id": "nope"})
    repo.update_sub_task(sub_task.id, {"is_completed": True})

    [loaded] = repo.fetch_projects()
    assert loaded.name == "Launch v2"
    assert loaded.tasks[0].status == TaskStatus.DONE
    assert loaded.tasks[0].sub_tasks[0].is_completed is True


def test_deleting_a_project_removes_its_tasks(repo: LocalProjectRepository, session_factory) -> None:
    keep = repo.create_project("Keep")
    doomed = repo.create_project("Doomed")
    task = repo.create_task(doomed.id, {"title": "Gone"})
    repo.create_sub_task(task.id, "Also gone")
    repo.create_task(keep.id, {"title": "Stays"})

    repo.delete_project(doomed.id)

    with session_factory() as session:
        assert session.scalar(select(func.count()).select_from(TaskModel)) == 1
        assert session.scalar(select(func.count()).select_from(SubTaskModel)) == 0
    assert [project.name for project in repo.fetch_projects()] == ["Keep"]


def test_missing_rows_raise(repo: LocalProjectRepository) -> None:
    with pytest.raises(RecordNotFoundError):
        repo.update_task("missing", {"title": "x"})
    with pytest.raises(RecordNotFoundError):
        repo.create_task("missing", {"title": "x"})


def test_projects_are_scoped_to_their_owner(session_factory) -> None:
    LocalProjectRepository(session_factory, user_id="alice").create_project("Alice's")

    assert LocalProjectRepository(session_factory, user_id="bob").fetch_projects() == []


def test_profile_is_created_on_first_read(session_factory) -> None:
    profiles = LocalProfileRepository(session_factory)

    profile = profiles.get_profile()
    profiles.update_profile({"username": "ada", "avatar_url": "data:image/jpeg;base64,AAAA"})
    updated = profiles.get_profile()

    assert profile.username == "User"
    assert updated.username == "ada"
    assert updated.email == "user@example.com"
    assert updated.profile_picture == "data:image/jpeg;base64,AAAA"
