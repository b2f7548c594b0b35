from __future__ import annotations

import time
from datetime import date

from test_supabase_client import ANON_KEY, BASE_URL, FakeHttp, FakeResponse

from eyetracktask.domain.enums import TaskStatus
from eyetracktask.infra.remote_repository import RemoteProfileRepository, RemoteProjectRepository
from eyetracktask.infra.session_store import AuthSession, SessionStore
from eyetracktask.infra.supabase import SupabaseClient, eq, in_


def _client(tmp_path, *responses, user: dict | None = None) -> tuple[SupabaseClient, FakeHttp]:
    store = SessionStore(tmp_path / "session.json")
    store.save(
        AuthSession(
            access_token="access-1",
            refresh_token="refresh-1",
            expires_at=time.time() + 3600,
            user=user if user is not None else {"id": "user-1", "email": "ada@example.com"},
        )
    )
    http = FakeHttp(*responses)
    return SupabaseClient(BASE_URL, ANON_KEY, store, timeout=5, http=http), http


def _table(sent: dict) -> str:
    return sent["url"].rsplit("/", 1)[-1]


def test_fetch_projects_stitches_tasks_and_sub_tasks(tmp_path) -> None:
    client, http = _client(
        tmp_path,
        FakeResponse(200, [{"id": "p1", "name": "Launch", "icon": "🚀"}, {"id": "p2", "name": "Empty"}]),
        FakeResponse(
            200,
            [
                {
                    "id": "t1",
                    "project_id": "p1",
                    "title": "Write docs",
                    "status": "IN_PROGRESS",
                    "due_date": "2026-10-20",
                    "category": None,
                }
            ],
        ),
        FakeResponse(200, [{"id": "s1", "task_id": "t1", "title": "Outline", "is_completed": True}]),
    )

    projects = RemoteProjectRepository(client).fetch_projects()

    assert [_table(sent) for sent in http.requests] == ["projects", "tasks", "sub_tasks"]
    assert http.requests[0]["params"]["user_id"] == eq("user-1")
    assert http.requests[1]["params"]["project_id"] == in_(["p1", "p2"])
    assert http.requests[2]["params"]["task_id"] == in_(["t1"])
    launch, empty = projects
    assert launch.icon == "🚀"
    assert empty.tasks == ()
    task = launch.tasks[0]
    assert task.status == TaskStatus.IN_PROGRESS
    assert task.due_date == date(2026, 10, 20)
    assert task.category == "Dev"
    assert task.sub_tasks[0].is_completed


def test_fetch_without_projects_skips_child_queries(tmp_path) -> None:
    client, http = _client(tmp_path, FakeResponse(200, []))

    assert RemoteProjectRepository(client).fetch_projects() == []
    assert len(http.requests) == 1


def test_fetch_without_tasks_skips_sub_task_query(tmp_path) -> None:
    client, http = _client(tmp_path, FakeResponse(200, [{"id": "p1", "name": "Launch"}]), FakeResponse(200, []))

    projects = RemoteProjectRepository(client).fetch_projects()

    assert [_table(sent) for sent in http.requests] == ["projects", "tasks"]
    assert projects[0].tasks == ()


def test_delete_project_removes_children_first(tmp_path) -> None:
    client, http = _client(
        tmp_path,
        FakeResponse(200, [{"id": "t1"}, {"id": "t2"}]),
        FakeResponse(204),
        FakeResponse(204),
        FakeResponse(204),
    )

    RemoteProjectRepository(client).delete_project("p1")

    assert [(sent["method"], _table(sent)) for sent in http.requests] == [
        ("GET", "tasks"),
        ("DELETE", "sub_tasks"),
        ("DELETE", "tasks"),
        ("DELETE", "projects"),
    ]
    assert http.requests[1]["params"] == {"task_id": in_(["t1", "t2"])}
    assert http.requests[3]["params"] == {"id": eq("p1")}


def test_delete_empty_project_skips_task_deletes(tmp_path) -> None:
    client, http = _client(tmp_path, FakeResponse(200, []), FakeResponse(204))

    RemoteProjectRepository(client).delete_project("p1")

    assert [(sent["method"], _table(sent)) for sent in http.requests] == [("GET", "tasks"), ("DELETE", "projects")]


def test_create_task_fills_status_and_category(tmp_path) -> None:
    client, http = _client(
        tmp_path,
        FakeResponse(200, [{"id": "t9", "project_id": "p1", "title": "Plan", "status": "TODO", "category": "Dev"}]),
    )

    task = RemoteProjectRepository(client).create_task("p1", {"title": "Plan", "category": None, "priority": 3})

    row = http.requests[0]["json"][0]
    assert row == {"project_id": "p1", "title": "Plan", "status": "TODO", "category": "Dev"}
    assert http.requests[0]["headers"]["Prefer"] == "return=representation"
    assert task.id == "t9"
    assert task.status == TaskStatus.TODO


def test_update_task_serialises_enums_and_dates(tmp_path) -> None:
    client, http = _client(tmp_path, FakeResponse(200, []))

    RemoteProjectRepository(client).update_task(
        "t1", {"status": TaskStatus.DONE, "due_date": date(2026, 11, 2), "id": "ignored"}
    )

    sent = http.requests[0]
    assert sent["method"] == "PATCH"
    assert sent["json"] == {"status": "DONE", "due_date": "2026-11-02"}
    assert sent["params"] == {"id": eq("t1")}


def test_profile_uses_row_values(tmp_path) -> None:
    client, _ = _client(
        tmp_path,
        FakeResponse(
            200,
            [
                {
                    "id": "user-1",
                    "username": "ada",
                    "email": "ada@work.example",
                    "avatar_url": "https://cdn.example/a.jpg",
                    "created_at": "2026-01-05T10:00:00Z",
                }
            ],
        ),
    )

    profile = RemoteProfileRepository(client).get_profile()

    assert profile.username == "ada"
    assert profile.email == "ada@work.example"
    assert profile.profile_picture == "https://cdn.example/a.jpg"
    assert profile.created_at.year == 2026


def test_profile_falls_back_to_auth_email(tmp_path) -> None:
    client, _ = _client(tmp_path, FakeResponse(200, [{"id": "user-1", "username": None, "email": None}]))

    profile = RemoteProfileRepository(client).get_profile()

    assert profile.username == "ada"
    assert profile.email == "ada@example.com"
    assert profile.profile_picture is None


def test_profile_without_any_email_is_named_user(tmp_path) -> None:
    client, _ = _client(tmp_path, FakeResponse(200, []), user={"id": "user-1"})

    profile = RemoteProfileRepository(client).get_profile()

    assert profile.id == "user-1"
    assert profile.username == "User"
    assert profile.email == ""


def test_update_profile_only_sends_known_columns(tmp_path) -> None:
    client, http = _client(tmp_path, FakeResponse(200, []))

    RemoteProfileRepository(client).update_profile({"username": "ada", "role": "admin"})

    sent = http.requests[0]
    assert sent["json"] == {"username": "ada"}
    assert sent["params"] == {"id": eq("user-1")}
