from __future__ import annotations

import os

import pytest

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

from PySide6.QtWidgets import QApplication  # noqa: E402
from test_project_store import _loaded_store  # noqa: E402

from eyetracktask.ui.dialogs import LoginDialog, ProjectDialog, TaskDialog  # noqa: E402


class RecordingExecutor:
    def __init__(self) -> None:
        self.jobs: list = []

    def submit(self, fn, on_success, on_error) -> None:
        self.jobs.append(fn)


@pytest.fixture(scope="module", autouse=True)
def qt_app():
    return QApplication.instance() or QApplication([])


def test_blank_project_name_is_ignored_quietly() -> None:
    store, repo = _loaded_store()
    dialog = ProjectDialog(store, media=None, executor=RecordingExecutor())
    dialog.name_input.setText("   ")

    dialog.save()

    assert repo.calls == []
    assert dialog.error_label.isHidden()
    assert dialog.result() == 0


def test_blank_task_title_is_ignored_quietly() -> None:
    store, repo = _loaded_store()
    dialog = TaskDialog(store, "p1")

    dialog.save_task()

    assert repo.calls == []
    assert dialog.error_label.isHidden()
    assert len(store.get_tasks_by_status("TODO")) == 2


def test_login_without_password_is_ignored_quietly() -> None:
    executor = RecordingExecutor()
    dialog = LoginDialog(auth=None, executor=executor)
    dialog.email_input.setText("ada@example.com")

    dialog.submit()

    assert executor.jobs == []
    assert dialog.error_label.isHidden()
