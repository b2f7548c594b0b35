from __future__ import annotations

from pathlib import Path

import pytest
from PIL import Image
from sqlalchemy.orm import sessionmaker

from eyetracktask.config import Settings
from eyetracktask.infra.db import create_schema, make_engine
from eyetracktask.services.backend import build_backend, build_local_backend
from eyetracktask.services.project_store import ProjectStore


@pytest.fixture()
def backend():
    engine = make_engine("sqlite://")
    create_schema(engine)
    factory = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    return build_local_backend(Settings(database_url="sqlite://"), session_factory=factory)


def test_local_backend_has_no_auth(backend) -> None:
    assert backend.mode == "local"
    assert not backend.is_remote
    assert backend.auth is None


def test_remote_mode_needs_url_and_key(tmp_path: Path) -> None:
    settings = Settings(
        database_url="sqlite://",
        supabase_url="https://demo.supabase.co",
        supabase_anon_key="anon",
        session_file=str(tmp_path / "session.json"),
    )

    remote = build_backend(settings)

    assert remote.is_remote
    assert remote.auth is not None
    assert not Settings(database_url="sqlite://", supabase_url="https://demo.supabase.co").remote_enabled


def test_store_bootstraps_a_project_in_a_fresh_database(backend) -> None:
    store = ProjectStore(backend.project_repo)

    store.refresh()
    store.add_task(store.current_project_id, "First task", due_date="2024-03-04")

    [project] = store.projects
    assert project.name == "My Project"
    assert [task.title for task in project.tasks] == ["First task"]


def test_profile_updates_keep_blank_fields(backend, tmp_path: Path) -> None:
    picture = tmp_path / "me.png"
    Image.new("RGB", (600, 300), (10, 120, 200)).save(picture)

    backend.profiles.update_profile(username="ada", email="  ")
    profile = backend.profiles.update_profile_picture(picture)

    assert profile.username == "ada"
    assert profile.email == "user@example.com"
    assert profile.profile_picture.startswith("data:image/jpeg;base64,")
