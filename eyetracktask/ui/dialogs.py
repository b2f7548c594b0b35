from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import QDate, Qt
from PySide6.QtWidgets import (
    QComboBox,
    QDateEdit,
    QDialog,
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QMessageBox,
    QPushButton,
    QScrollArea,
    QTextEdit,
    QVBoxLayout,
    QWidget,
)

from eyetracktask.domain.entities import Task, is_temporary_id
from eyetracktask.domain.enums import CATEGORIES, DEFAULT_CATEGORY, STATUS_LABELS, TaskStatus
from eyetracktask.domain.rules import get_progress_percentage, is_image_reference
from eyetracktask.infra.images import ImageValidationError
from eyetracktask.services.auth_service import AuthService
from eyetracktask.services.media_service import MediaService
from eyetracktask.services.project_store import ProjectStore

from .widgets import SubtaskItemWidget

logger = logging.getLogger(__name__)

IMAGE_FILTER = "Images (*.png *.jpg *.jpeg *.gif *.bmp *.webp)"


def _error_label() -> QLabel:
    label = QLabel()
    label.setObjectName("InlineError")
    label.setWordWrap(True)
    label.hide()
    return label


def _show_error(label: QLabel, message: str) -> None:
    label.setText(message)
    label.setVisible(bool(message))


class ProjectDialog(QDialog):
    def __init__(self, store: ProjectStore, media: MediaService, executor, project_id: str | None = None, parent=None):
        super().__init__(parent)
        self.store = store
        self.media = media
        self.executor = executor
        self.project = next((p for p in store.projects if p.id == project_id), None) if project_id else None
        self.icon_value: str | None = self.project.icon if self.project else None

        self.setWindowTitle("Edit Project" if self.project else "New Project")
        self.setMinimumWidth(380)

        self.name_input = QLineEdit(self.project.name if self.project else "")
        self.name_input.setPlaceholderText("Project name")

        self.emoji_input = QLineEdit()
        self.emoji_input.setPlaceholderText("Emoji or short text, e.g. 🚀")
        self.emoji_input.setMaxLength(4)
        if self.icon_value and not is_image_reference(self.icon_value):
            self.emoji_input.setText(self.icon_value)
        self.emoji_input.textChanged.connect(self._on_emoji_changed)

        self.icon_status = QLabel(self._icon_caption())
        self.icon_status.setProperty("class", "task-meta")

        self.upload_button = QPushButton("Upload image")
        self.upload_button.setProperty("variant", "secondary")
        self.upload_button.clicked.connect(self.upload_icon)

        self.error_label = _error_label()

        self.save_button = QPushButton("Save" if self.project else "Create")
        self.save_button.clicked.connect(self.save)
        cancel_button = QPushButton("Cancel")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)

        icon_row = QHBoxLayout()
        icon_row.addWidget(self.emoji_input, 1)
        icon_row.addWidget(self.upload_button)

        buttons = QHBoxLayout()
        self.delete_button = None
        if self.project:
            self.delete_button = QPushButton("Delete")
            self.delete_button.setProperty("variant", "danger")
            self.delete_button.clicked.connect(self.delete)
            buttons.addWidget(self.delete_button)
        buttons.addStretch()
        buttons.addWidget(cancel_button)
        buttons.addWidget(self.save_button)

        layout = QVBoxLayout(self)
        layout.addWidget(QLabel("Name"))
        layout.addWidget(self.name_input)
        layout.addWidget(QLabel("Icon"))
        layout.addLayout(icon_row)
        layout.addWidget(self.icon_status)
        layout.addWidget(self.error_label)
        layout.addLayout(buttons)

    def _icon_caption(self) -> str:
        if is_image_reference(self.icon_value):
            return "Image icon selected"
        return "Initials are used when no icon is set"

    def _on_emoji_changed(self, text: str) -> None:
        self.icon_value = text.strip() or None
        self.icon_status.setText(self._icon_caption())

    def _set_busy(self, busy: bool) -> None:
        self.save_button.setEnabled(not busy)
        self.upload_button.setEnabled(not busy)
        if self.delete_button:
            self.delete_button.setEnabled(not busy)

    def upload_icon(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose icon", str(Path.home()), IMAGE_FILTER)
        if not path:
            return
        self._set_busy(True)
        self.icon_status.setText("Uploading…")

        def uploaded(url: str) -> None:
            self._set_busy(False)
            self.emoji_input.blockSignals(True)
            self.emoji_input.clear()
            self.emoji_input.blockSignals(False)
            self.icon_value = url
            self.icon_status.setText(self._icon_caption())

        def failed(exc: Exception) -> None:
            self._set_busy(False)
            self.icon_status.setText(self._icon_caption())
            if not isinstance(exc, ImageValidationError):
                logger.error("Icon upload failed: %s", exc, exc_info=exc)
            _show_error(self.error_label, str(exc))

        self.executor.submit(lambda: self.media.upload_project_icon(Path(path)), uploaded, failed)

    def save(self) -> None:
        name = self.name_input.text().strip()
        if not name:
            return
        if self.project is None:
            self.store.create_project(name, self.icon_value)
            self.accept()
            return
        self._set_busy(True)
        if not self.store.update_project(
            self.project.id,
            {"name": name, "icon": self.icon_value},
            on_settled=self._settled,
        ):
            self._set_busy(False)

    def delete(self) -> None:
        confirm = QMessageBox.question(
            self,
            "Delete project",
            f"Delete “{self.project.name}” and all of its tasks?",
        )
        if confirm != QMessageBox.Yes:
            return
        self._set_busy(True)
        if not self.store.delete_project(self.project.id, on_settled=self._settled):
            self._set_busy(False)
            _show_error(self.error_label, self.store.error or "")

    def _settled(self, ok: bool) -> None:
        self._set_busy(False)
        if ok:
            self.accept()
        else:
            _show_error(self.error_label, self.store.error or "")


class TaskDialog(QDialog):
    def __init__(self, store: ProjectStore, project_id: str | None, task_id: str | None = None, parent=None):
        super().__init__(parent)
        self.store = store
        self.project_id = project_id
        self.task_id = task_id
        found = store.find_task(task_id) if task_id else None
        task = found.task if found else None

        self.setWindowTitle("Edit Task" if task else "New Task")
        self.setMinimumWidth(440)

        self.title_input = QLineEdit()
        self.title_input.setPlaceholderText("Task title")

        self.description_input = QTextEdit()
        self.description_input.setObjectName("DescriptionInput")
        self.description_input.setPlaceholderText("Description")
        self.description_input.setMaximumHeight(120)

        self.status_combo = QComboBox()
        for status, label in STATUS_LABELS.items():
            self.status_combo.addItem(label, status.value)

        self.category_combo = QComboBox()
        for category in CATEGORIES:
            self.category_combo.addItem(category, category)

        self.due_toggle = QPushButton("No due date")
        self.due_toggle.setCheckable(True)
        self.due_toggle.setProperty("variant", "secondary")
        self.due_toggle.setObjectName("DueToggle")
        self.due_toggle.toggled.connect(self.on_due_toggled)

        self.due_input = QDateEdit()
        self.due_input.setCalendarPopup(True)
        self.due_input.setDate(QDate.currentDate())
        self.due_input.setEnabled(False)

        self.error_label = _error_label()

        layout = QVBoxLayout(self)
        layout.addWidget(self.title_input)
        layout.addWidget(self.description_input)

        row = QHBoxLayout()
        row.addWidget(QLabel("Status"))
        row.addWidget(self.status_combo, 1)
        row.addWidget(QLabel("Category"))
        row.addWidget(self.category_combo, 1)
        layout.addLayout(row)

        due_row = QHBoxLayout()
        due_row.addWidget(self.due_toggle)
        due_row.addWidget(self.due_input, 1)
        layout.addLayout(due_row)

        self.subtasks_section = self._build_subtasks_section()
        layout.addWidget(self.subtasks_section)
        self.subtasks_section.setVisible(task is not None)

        layout.addWidget(self.error_label)

        buttons = QHBoxLayout()
        self.delete_button = None
        if task:
            self.delete_button = QPushButton("Delete")
            self.delete_button.setProperty("variant", "danger")
            self.delete_button.clicked.connect(self.delete_task)
            buttons.addWidget(self.delete_button)
        buttons.addStretch()
        cancel_button = QPushButton("Cancel")
        cancel_button.setProperty("variant", "ghost")
        cancel_button.clicked.connect(self.reject)
        self.save_button = QPushButton("Save" if task else "Create")
        self.save_button.clicked.connect(self.save_task)
        buttons.addWidget(cancel_button)
        buttons.addWidget(self.save_button)
        layout.addLayout(buttons)

        if task:
            self.populate_form(task)
        else:
            self.category_combo.setCurrentIndex(self.category_combo.findData(DEFAULT_CATEGORY))

        self._unsubscribe = store.subscribe(self._on_store_changed)
        self.finished.connect(lambda _result: self._unsubscribe())

    def _build_subtasks_section(self) -> QWidget:
        section = QFrame()
        section.setObjectName("SubtasksSection")
        layout = QVBoxLayout(section)
        layout.setContentsMargins(0, 6, 0, 0)
        layout.setSpacing(6)

        label = QLabel("Subtasks")
        label.setProperty("class", "section-title")
        self.subtasks_summary = QLabel("0/0")
        self.subtasks_summary.setProperty("class", "stats")
        header = QHBoxLayout()
        header.addWidget(label)
        header.addStretch()
        header.addWidget(self.subtasks_summary)

        self.subtask_input = QLineEdit()
        self.subtask_input.setPlaceholderText("Add a subtask")
        self.subtask_input.returnPressed.connect(self.add_subtask)
        self.subtask_add_button = QPushButton("Add")
        self.subtask_add_button.setProperty("variant", "secondary")
        self.subtask_add_button.clicked.connect(self.add_subtask)
        add_row = QHBoxLayout()
        add_row.addWidget(self.subtask_input, 1)
        add_row.addWidget(self.subtask_add_button)

        self.subtasks_scroll = QScrollArea()
        self.subtasks_scroll.setWidgetResizable(True)
        self.subtasks_scroll.setFrameShape(QFrame.NoFrame)
        self.subtasks_scroll.setObjectName("SubtasksScroll")
        self.subtasks_scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.subtasks_container = QWidget()
        self.subtasks_layout = QVBoxLayout(self.subtasks_container)
        self.subtasks_layout.setContentsMargins(0, 0, 0, 0)
        self.subtasks_layout.setSpacing(6)
        self.subtasks_layout.addStretch()
        self.subtasks_scroll.setWidget(self.subtasks_container)
        self.subtasks_scroll.setMinimumHeight(110)

        layout.addLayout(header)
        layout.addLayout(add_row)
        layout.addWidget(self.subtasks_scroll)
        return section

    def populate_form(self, task: Task) -> None:
        self.title_input.setText(task.title)
        self.description_input.setPlainText(task.description or "")
        self.status_combo.setCurrentIndex(max(0, self.status_combo.findData(task.status.value)))
        category_index = self.category_combo.findData(task.category)
        if category_index < 0:
            self.category_combo.addItem(task.category, task.category)
            category_index = self.category_combo.count() - 1
        self.category_combo.setCurrentIndex(category_index)
        if task.due_date:
            self.due_toggle.setChecked(True)
            self.due_input.setDate(QDate(task.due_date.year, task.due_date.month, task.due_date.day))
        self._render_subtasks(task)

    def _current_task(self) -> Task | None:
        found = self.store.find_task(self.task_id) if self.task_id else None
        return found.task if found else None

    def _on_store_changed(self) -> None:
        task = self._current_task()
        if task is not None:
            self._render_subtasks(task)

    def _render_subtasks(self, task: Task) -> None:
        while self.subtasks_layout.count() > 1:
            item = self.subtasks_layout.takeAt(0)
            widget = item.widget()
            if widget:
                widget.deleteLater()
        for sub_task in task.sub_tasks:
            widget = SubtaskItemWidget(
                sub_task,
                self.on_subtask_toggle,
                self.on_subtask_title_update,
                self.on_subtask_delete,
            )
            self.subtasks_layout.insertWidget(self.subtasks_layout.count() - 1, widget)
        done = sum(1 for sub_task in task.sub_tasks if sub_task.is_completed)
        self.subtasks_summary.setText(
            f"{done}/{len(task.sub_tasks)} · {get_progress_percentage(task.sub_tasks)}%"
        )
        editable = not is_temporary_id(task.id)
        self.subtask_input.setEnabled(editable)
        self.subtask_add_button.setEnabled(editable)

    def on_due_toggled(self, checked: bool) -> None:
        self.due_input.setEnabled(checked)
        self.due_toggle.setText("Due date" if checked else "No due date")

    def _form_fields(self) -> dict:
        return {
            "title": self.title_input.text().strip(),
            "description": self.description_input.toPlainText().strip() or None,
            "status": TaskStatus(self.status_combo.currentData()),
            "category": self.category_combo.currentData(),
            "due_date": self.due_input.date().toPython() if self.due_toggle.isChecked() else None,
        }

    def save_task(self) -> None:
        fields = self._form_fields()
        if not fields["title"]:
            return
        if self.task_id is None:
            if not self.project_id:
                _show_error(self.error_label, "Select a project first")
                return
            created = self.store.add_task(self.project_id, **fields)
            if created is None:
                _show_error(self.error_label, self.store.error or "")
                return
            self.accept()
            return
        if self.store.update_task(self.task_id, fields):
            self.accept()
        else:
            _show_error(self.error_label, self.store.error or "")

    def delete_task(self) -> None:
        confirm = QMessageBox.question(self, "Delete task", "Delete this task?")
        if confirm != QMessageBox.Yes:
            return
        if self.store.delete_task(self.task_id):
            self.accept()
        else:
            _show_error(self.error_label, self.store.error or "")

    def add_subtask(self) -> None:
        title = self.subtask_input.text().strip()
        if not title or self.task_id is None:
            return
        self.subtask_add_button.setEnabled(False)

        def settled(ok: bool) -> None:
            self.subtask_add_button.setEnabled(True)
            if ok:
                self.subtask_input.clear()
            else:
                _show_error(self.error_label, self.store.error or "")

        self.store.add_sub_task(self.task_id, title, on_settled=settled)

    def on_subtask_toggle(self, sub_task_id: str, checked: bool) -> None:
        self.store.update_sub_task(sub_task_id, {"is_completed": checked})

    def on_subtask_title_update(self, sub_task_id: str, title: str) -> None:
        self.store.update_sub_task(sub_task_id, {"title": title})

    def on_subtask_delete(self, sub_task_id: str) -> None:
        self.store.delete_sub_task(sub_task_id)


class LoginDialog(QDialog):
    def __init__(self, auth: AuthService, executor, parent=None):
        super().__init__(parent)
        self.auth = auth
        self.executor = executor
        self.sign_up_mode = False

        self.setWindowTitle("Sign in")
        self.setObjectName("LoginDialog")
        self.setMinimumWidth(360)

        self.heading = QLabel("Welcome back")
        self.heading.setProperty("class", "panel-title")

        self.email_input = QLineEdit()
        self.email_input.setPlaceholderText("Email")
        self.password_input = QLineEdit()
        self.password_input.setPlaceholderText("Password")
        self.password_input.setEchoMode(QLineEdit.Password)
        self.password_input.returnPressed.connect(self.submit)

        self.error_label = _error_label()
        self.info_label = QLabel()
        self.info_label.setObjectName("InlineInfo")
        self.info_label.setWordWrap(True)
        self.info_label.hide()

        self.submit_button = QPushButton("Sign in")
        self.submit_button.clicked.connect(self.submit)
        self.toggle_button = QPushButton("Don't have an account? Sign up")
        self.toggle_button.setProperty("variant", "ghost")
        self.toggle_button.clicked.connect(self.toggle_mode)

        layout = QVBoxLayout(self)
        layout.addWidget(self.heading)
        layout.addWidget(self.email_input)
        layout.addWidget(self.password_input)
        layout.addWidget(self.error_label)
        layout.addWidget(self.info_label)
        layout.addWidget(self.submit_button)
        layout.addWidget(self.toggle_button)

    def toggle_mode(self) -> None:
        self.sign_up_mode = not self.sign_up_mode
        self.heading.setText("Create an account" if self.sign_up_mode else "Welcome back")
        self.submit_button.setText("Sign up" if self.sign_up_mode else "Sign in")
        self.toggle_button.setText(
            "Already have an account? Sign in" if self.sign_up_mode else "Don't have an account? Sign up"
        )
        _show_error(self.error_label, "")
        self.info_label.hide()

    def _set_busy(self, busy: bool) -> None:
        self.submit_button.setEnabled(not busy)
        self.toggle_button.setEnabled(not busy)
        if busy:
            self.submit_button.setText("Please wait…")
        else:
            self.submit_button.setText("Sign up" if self.sign_up_mode else "Sign in")

    def submit(self) -> None:
        email = self.email_input.text().strip()
        password = self.password_input.text()
        if not email or not password:
            return
        _show_error(self.error_label, "")
        self.info_label.hide()
        self._set_busy(True)

        if self.sign_up_mode:
            self.executor.submit(lambda: self.auth.sign_up(email, password), self._signed_up, self._failed)
        else:
            self.executor.submit(lambda: self.auth.sign_in(email, password), self._signed_in, self._failed)

    def _signed_in(self, _session) -> None:
        self._set_busy(False)
        self.accept()

    def _signed_up(self, message: str) -> None:
        self._set_busy(False)
        self.info_label.setText(message)
        self.info_label.show()

    def _failed(self, exc: Exception) -> None:
        self._set_busy(False)
        logger.warning("Authentication failed: %s", exc)
        _show_error(self.error_label, str(exc))
