from __future__ import annotations

import logging

from PySide6.QtCore import Qt, Signal
from PySide6.QtGui import QKeySequence, QShortcut
from PySide6.QtWidgets import (
    QButtonGroup,
    QComboBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QScrollArea,
    QSplitter,
    QStackedWidget,
    QVBoxLayout,
    QWidget,
)

from eyetracktask.domain.entities import UserProfile
from eyetracktask.domain.enums import STATUS_LABELS, TaskStatus
from eyetracktask.services.auth_service import BOARD_ROUTE
from eyetracktask.services.backend import Backend
from eyetracktask.services.project_store import ProjectStore
from eyetracktask.services.schedule import scheduled_tasks

from .calendar_view import CalendarPage
from .dialogs import ProjectDialog, TaskDialog
from .kanban import KanbanBoard
from .profile_page import ProfilePage
from .widgets import AvatarLabel, ErrorBanner, ProjectButton, ScheduledTaskWidget

logger = logging.getLogger(__name__)

CALENDAR_ROUTE = "calendar"
PROFILE_ROUTE = "profile"

NAVIGATION = [
    ("Board", BOARD_ROUTE),
    ("Calendar", CALENDAR_ROUTE),
    ("Profile", PROFILE_ROUTE),
]


class MainWindow(QWidget):
    signed_out = Signal()

    def __init__(self, backend: Backend, executor):
        super().__init__()
        self.backend = backend
        self.executor = executor
        self.store = ProjectStore(backend.project_repo, executor)
        self.route = BOARD_ROUTE

        self.setWindowTitle("EyeTrackTask")
        self.resize(1440, 860)

        main_layout = QHBoxLayout(self)
        main_layout.setContentsMargins(12, 12, 12, 12)
        main_layout.setSpacing(12)

        self.sidebar = self._build_sidebar()
        main_layout.addWidget(self.sidebar)

        splitter = QSplitter(Qt.Horizontal)
        splitter.addWidget(self._build_center())
        splitter.addWidget(self._build_right_panel())
        splitter.setStretchFactor(0, 3)
        splitter.setStretchFactor(1, 1)
        splitter.setSizes([1060, 320])
        main_layout.addWidget(splitter, 1)

        self.store.subscribe(self.render)
        self.store.subscribe_errors(self.error_banner.show_message)

        QShortcut(QKeySequence("Ctrl+N"), self, self.new_task)
        QShortcut(QKeySequence("Ctrl+F"), self, self.search_input.setFocus)

    def start(self) -> None:
        self.store.refresh()
        self.profile_page.load()

    # layout

    def _build_sidebar(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("Sidebar")
        frame.setFixedWidth(72)
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(8)

        self.projects_layout = QVBoxLayout()
        self.projects_layout.setSpacing(8)
        layout.addLayout(self.projects_layout)

        add_project = QPushButton("+")
        add_project.setObjectName("AddProjectButton")
        add_project.setToolTip("New project")
        add_project.setFixedSize(44, 44)
        add_project.clicked.connect(self.new_project)
        layout.addWidget(add_project)
        layout.addStretch()

        self.avatar = AvatarLabel(40)
        self.avatar.setCursor(Qt.PointingHandCursor)
        self.avatar.clicked.connect(lambda: self.navigate(PROFILE_ROUTE))
        layout.addWidget(self.avatar, 0, Qt.AlignHCenter)
        return frame

    def _build_center(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("CenterPanel")
        layout = QVBoxLayout(frame)
        layout.setContentsMargins(12, 12, 12, 12)
        layout.setSpacing(12)

        header = QHBoxLayout()
        self.project_title = QLabel("")
        self.project_title.setProperty("class", "panel-title")
        self.edit_project_button = QPushButton("Edit")
        self.edit_project_button.setProperty("variant", "ghost")
        self.edit_project_button.clicked.connect(lambda: self.edit_project(self.store.current_project_id))
        self.sync_label = QLabel("")
        self.sync_label.setProperty("class", "stats-badge")
        header.addWidget(self.project_title)
        header.addWidget(self.edit_project_button)
        header.addStretch()
        header.addWidget(self.sync_label)

        self.nav_group = QButtonGroup(self)
        self.nav_group.setExclusive(True)
        for label, route in NAVIGATION:
            button = QPushButton(label)
            button.setCheckable(True)
            button.setProperty("variant", "secondary")
            button.setChecked(route == self.route)
            button.clicked.connect(lambda _checked=False, r=route: self.navigate(r))
            self.nav_group.addButton(button)
            header.addWidget(button)

        action_bar = QFrame()
        action_bar.setObjectName("ActionBar")
        action_layout = QHBoxLayout(action_bar)
        action_layout.setContentsMargins(12, 10, 12, 10)
        action_layout.setSpacing(8)

        self.search_input = QLineEdit()
        self.search_input.setPlaceholderText("Search tasks by title or description")
        self.search_input.setMinimumWidth(220)
        self.search_input.textChanged.connect(self.apply_filters)

        self.status_filter = QComboBox()
        self.status_filter.addItem("All statuses", None)
        for status, label in STATUS_LABELS.items():
            self.status_filter.addItem(label, status.value)
        self.status_filter.currentIndexChanged.connect(self.apply_filters)

        add_button = QPushButton("New task")
        add_button.clicked.connect(self.new_task)

        action_layout.addWidget(self.search_input, 1)
        action_layout.addWidget(self.status_filter)
        action_layout.addWidget(add_button)
        self.action_bar = action_bar

        self.error_banner = ErrorBanner()

        self.board = KanbanBoard(self.store, self.open_task)
        self.calendar_page = CalendarPage(self.store, self.open_task)
        sign_out = self.sign_out if self.backend.is_remote else None
        self.profile_page = ProfilePage(self.backend.profiles, self.executor, self.on_profile_changed, sign_out)

        self.pages = QStackedWidget()
        self.pages.addWidget(self.board)
        self.pages.addWidget(self.calendar_page)
        self.pages.addWidget(self.profile_page)
        self._page_index = {BOARD_ROUTE: 0, CALENDAR_ROUTE: 1, PROFILE_ROUTE: 2}

        layout.addLayout(header)
        layout.addWidget(action_bar)
        layout.addWidget(self.error_banner)
        layout.addWidget(self.pages, 1)
        return frame

    def _build_right_panel(self) -> QWidget:
        frame = QFrame()
        frame.setObjectName("RightPanel")
        frame_layout = QVBoxLayout(frame)
        frame_layout.setContentsMargins(12, 12, 12, 12)
        frame_layout.setSpacing(8)

        title = QLabel("Scheduled")
        title.setProperty("class", "panel-title")
        self.scheduled_count = QLabel("0")
        self.scheduled_count.setProperty("class", "stats-badge")
        header = QHBoxLayout()
        header.addWidget(title)
        header.addStretch()
        header.addWidget(self.scheduled_count)

        scroll = QScrollArea()
        scroll.setWidgetResizable(True)
        scroll.setFrameShape(QFrame.NoFrame)
        scroll.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        container = QWidget()
        self.scheduled_layout = QVBoxLayout(container)
        self.scheduled_layout.setContentsMargins(0, 0, 0, 0)
        self.scheduled_layout.setSpacing(8)
        self.scheduled_layout.addStretch()
        scroll.setWidget(container)

        self.scheduled_empty = QLabel("No upcoming tasks")
        self.scheduled_empty.setProperty("class", "task-meta")

        frame_layout.addLayout(header)
        frame_layout.addWidget(self.scheduled_empty)
        frame_layout.addWidget(scroll, 1)
        return frame

    # rendering

    def render(self) -> None:
        project = self.store.current_project
        self.project_title.setText(project.name if project else "")
        self.edit_project_button.setEnabled(project is not None)
        if self.store.loading and not self.store.projects:
            self.sync_label.setText("Loading…")
        elif self.store.loading or self.store.has_overlay:
            self.sync_label.setText("Saving…")
        else:
            self.sync_label.setText("")
        self._render_projects()
        self.board.refresh()
        if self.route == CALENDAR_ROUTE:
            self.calendar_page.refresh()
        self._render_scheduled()

    def _render_projects(self) -> None:
        while self.projects_layout.count():
            item = self.projects_layout.takeAt(0)
            widget = item.widget()
            if widget:
                widget.deleteLater()
        current_id = self.store.current_project_id
        for project in self.store.projects:
            button = ProjectButton(project, self.executor, self.select_project, self.edit_project)
            button.setChecked(project.id == current_id)
            self.projects_layout.addWidget(button, 0, Qt.AlignHCenter)

    def _render_scheduled(self) -> None:
        while self.scheduled_layout.count() > 1:
            item = self.scheduled_layout.takeAt(0)
            widget = item.widget()
            if widget:
                widget.deleteLater()
        items = scheduled_tasks(self.store.projects)
        for item in items:
            widget = ScheduledTaskWidget(item, self.open_task)
            self.scheduled_layout.insertWidget(self.scheduled_layout.count() - 1, widget)
        self.scheduled_count.setText(str(len(items)))
        self.scheduled_empty.setVisible(not items)

    def on_profile_changed(self, profile: UserProfile) -> None:
        self.avatar.show_profile(profile.username, profile.profile_picture, self.executor)
        self.avatar.setToolTip(f"{profile.username}\n{profile.email}")

    # navigation

    def navigate(self, route: str) -> None:
        if route not in self._page_index:
            route = BOARD_ROUTE
        self.route = route
        self.pages.setCurrentIndex(self._page_index[route])
        self.action_bar.setVisible(route == BOARD_ROUTE)
        for button, (_label, nav_route) in zip(self.nav_group.buttons(), NAVIGATION):
            button.setChecked(nav_route == route)
        if route == CALENDAR_ROUTE:
            self.calendar_page.refresh()
        elif route == PROFILE_ROUTE:
            self.profile_page.load()

    def apply_filters(self) -> None:
        status = self.status_filter.currentData()
        self.board.set_filters(self.search_input.text().strip(), TaskStatus(status) if status else None)

    # actions

    def select_project(self, project_id: str) -> None:
        self.store.switch_project(project_id)
        self.navigate(BOARD_ROUTE)

    def new_project(self) -> None:
        ProjectDialog(self.store, self.backend.media, self.executor, parent=self).exec()

    def edit_project(self, project_id: str | None) -> None:
        if not project_id:
            return
        ProjectDialog(self.store, self.backend.media, self.executor, project_id, parent=self).exec()

    def new_task(self) -> None:
        TaskDialog(self.store, self.store.current_project_id, parent=self).exec()

    def open_task(self, task_id: str) -> None:
        found = self.store.find_task(task_id)
        if found is None:
            return
        if found.project_id != self.store.current_project_id:
            self.store.switch_project(found.project_id)
        TaskDialog(self.store, found.project_id, task_id, parent=self).exec()

    def sign_out(self) -> None:
        auth = self.backend.auth
        if auth is None:
            return

        def done(_result) -> None:
            self.signed_out.emit()

        def failed(exc: Exception) -> None:
            logger.warning("Sign out did not reach the server: %s", exc)
            self.signed_out.emit()

        self.executor.submit(auth.sign_out, done, failed)
