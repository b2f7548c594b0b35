from __future__ import annotations

from PySide6.QtCore import QMimeData, QSize, Qt, QTimer, Signal
from PySide6.QtGui import QDrag, QPixmap
from PySide6.QtWidgets import (
    QAbstractItemView,
    QCheckBox,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QListWidget,
    QProgressBar,
    QPushButton,
    QSizePolicy,
    QVBoxLayout,
    QWidget,
)

from eyetracktask.domain.board import DragLocation
from eyetracktask.domain.entities import Project, ScheduledTask, SubTask, Task, is_temporary_id
from eyetracktask.domain.enums import DueDateStatus, TaskStatus
from eyetracktask.domain.rules import (
    format_due_date,
    format_long_date,
    get_category_color,
    get_due_date_status,
    get_progress_percentage,
    is_image_reference,
    project_initials,
)

from .images import load_pixmap, rounded

DUE_STATUS_LABELS = {
    DueDateStatus.OVERDUE: "Overdue",
    DueDateStatus.TODAY: "Today",
    DueDateStatus.UPCOMING: "Upcoming",
}

DUE_STATUS_COLORS = {
    DueDateStatus.OVERDUE: "#EF4444",
    DueDateStatus.TODAY: "#F59E0B",
    DueDateStatus.UPCOMING: "#3B82F6",
}

ERROR_BANNER_TIMEOUT_MS = 5000


def _drag_payload(mime: QMimeData) -> tuple[str, DragLocation] | None:
    if not mime.hasText():
        return None
    text = mime.text()
    if not text.startswith("task:"):
        return None
    try:
        task_id, status, index = text.split(":", 1)[1].split("|")
        return task_id, DragLocation(TaskStatus(status), int(index))
    except ValueError:
        return None


def _repolish(widget: QWidget) -> None:
    widget.style().unpolish(widget)
    widget.style().polish(widget)


def _progress_bar(value: int, color: str) -> QProgressBar:
    bar = QProgressBar()
    bar.setObjectName("TaskProgress")
    bar.setRange(0, 100)
    bar.setValue(value)
    bar.setTextVisible(False)
    bar.setFixedHeight(6)
    bar.setStyleSheet(f"QProgressBar::chunk {{ background-color: {color}; border-radius: 3px; }}")
    return bar


class TaskCardWidget(QWidget):
    def __init__(self, task: Task, parent=None):
        super().__init__(parent)
        self.task = task

        self.setObjectName("TaskCard")
        self.setAttribute(Qt.WA_StyledBackground, True)
        self.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Fixed)
        self.setProperty("pending", is_temporary_id(task.id))

        layout = QVBoxLayout(self)
        layout.setContentsMargins(12, 10, 12, 10)
        layout.setSpacing(6)

        color = get_category_color(task.category)
        dot = QLabel()
        dot.setFixedSize(8, 8)
        dot.setStyleSheet(f"background-color: {color}; border-radius: 4px;")
        category = QLabel(task.category)
        category.setProperty("class", "task-category")

        header = QHBoxLayout()
        header.setSpacing(6)
        header.addWidget(dot, 0, Qt.AlignVCenter)
        header.addWidget(category)
        header.addStretch()
        layout.addLayout(header)

        title = QLabel(task.title)
        title.setProperty("class", "task-title")
        title.setWordWrap(True)
        title.setMinimumWidth(0)
        title.setSizePolicy(QSizePolicy.Expanding, QSizePolicy.Preferred)
        layout.addWidget(title)

        if task.due_date:
            due = QLabel(format_long_date(task.due_date))
            due.setProperty("class", "task-meta")
            layout.addWidget(due)

        if task.sub_tasks:
            done = sum(1 for sub_task in task.sub_tasks if sub_task.is_completed)
            percent = get_progress_percentage(task.sub_tasks)
            progress_row = QHBoxLayout()
            progress_row.setSpacing(8)
            progress_row.addWidget(_progress_bar(percent, color), 1)
            counter = QLabel(f"{done}/{len(task.sub_tasks)}")
            counter.setProperty("class", "task-meta")
            progress_row.addWidget(counter)
            layout.addLayout(progress_row)


class ColumnHeader(QWidget):
    def __init__(self, title: str, color: str, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        layout.setContentsMargins(4, 0, 4, 0)
        layout.setSpacing(8)

        marker = QLabel()
        marker.setFixedSize(10, 10)
        marker.setStyleSheet(f"background-color: {color}; border-radius: 5px;")
        label = QLabel(title)
        label.setProperty("class", "panel-title")
        self.count_label = QLabel("0")
        self.count_label.setProperty("class", "stats-badge")

        layout.addWidget(marker)
        layout.addWidget(label)
        layout.addStretch()
        layout.addWidget(self.count_label)

    def set_count(self, count: int) -> None:
        self.count_label.setText(str(count))


class KanbanListWidget(QListWidget):
    """One board column; drops are reported as (task id, source, destination)."""

    def __init__(self, status: TaskStatus, on_drop, parent=None):
        super().__init__(parent)
        self.status = status
        self._on_drop = on_drop
        self._h_margin = 8
        self._v_margin = 8
        self.setAcceptDrops(True)
        self.setDragEnabled(True)
        self.setDropIndicatorShown(True)
        self.setDragDropMode(QAbstractItemView.DragDrop)
        self.setDefaultDropAction(Qt.MoveAction)
        self.setEditTriggers(QAbstractItemView.NoEditTriggers)
        self.setHorizontalScrollBarPolicy(Qt.ScrollBarAlwaysOff)
        self.setSpacing(6)
        self._update_viewport_margins()

    def resizeEvent(self, event) -> None:  # type: ignore[override]
        super().resizeEvent(event)
        self.sync_item_sizes()

    def _update_viewport_margins(self) -> None:
        scrollbar_width = self.verticalScrollBar().width() or self.verticalScrollBar().sizeHint().width()
        right_margin = self._h_margin + (scrollbar_width if self.verticalScrollBar().isVisible() else 0)
        self.setViewportMargins(self._h_margin, self._v_margin, right_margin, self._v_margin)

    def sync_item_sizes(self) -> None:
        self._update_viewport_margins()
        viewport_width = self.viewport().width()
        for index in range(self.count()):
            item = self.item(index)
            widget = self.itemWidget(item)
            if widget:
                widget.setMinimumWidth(viewport_width)
                widget.setMaximumWidth(viewport_width)
                widget.adjustSize()
                hint = widget.sizeHint()
                item.setSizeHint(QSize(viewport_width, hint.height()))
                widget.resize(viewport_width, hint.height())

    def startDrag(self, supportedActions: Qt.DropActions) -> None:  # type: ignore[name-defined]
        item = self.currentItem()
        if not item:
            return
        task_id = item.data(Qt.UserRole)
        if not task_id:
            return
        mime = QMimeData()
        mime.setText(f"task:{task_id}|{self.status.value}|{self.row(item)}")
        drag = QDrag(self)
        drag.setMimeData(mime)
        widget = self.itemWidget(item)
        if widget:
            drag.setPixmap(widget.grab())
        drag.exec(Qt.MoveAction)

    def dragEnterEvent(self, event) -> None:  # type: ignore[override]
        if _drag_payload(event.mimeData()) is not None:
            event.acceptProposedAction()

    def dragMoveEvent(self, event) -> None:  # type: ignore[override]
        if _drag_payload(event.mimeData()) is not None:
            event.acceptProposedAction()

    def dropEvent(self, event) -> None:  # type: ignore[override]
        payload = _drag_payload(event.mimeData())
        if payload is None:
            return
        task_id, source = payload
        pos = event.position().toPoint() if hasattr(event, "position") else event.pos()
        # rows count visible cards only; under a search or status filter the
        # store applies them to the full column, so the position is approximate
        index = self._insertion_row(pos)
        # index counts the dragged card itself while it is still in this column
        if source.status == self.status and index > source.index:
            index -= 1
        event.acceptProposedAction()
        self._on_drop(task_id, source, DragLocation(self.status, index))

    def _insertion_row(self, pos) -> int:
        item = self.itemAt(pos)
        if item is None:
            return self.count()
        row = self.row(item)
        if pos.y() > self.visualItemRect(item).center().y():
            row += 1
        return row


class SubtaskItemWidget(QWidget):
    def __init__(self, sub_task: SubTask, on_toggle, on_title_update, on_delete, parent=None):
        super().__init__(parent)
        self.sub_task_id = sub_task.id
        self._title_value = sub_task.title
        self._on_toggle = on_toggle
        self._on_title_update = on_title_update
        self._on_delete = on_delete

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(8)

        self.done_check = QCheckBox()
        self.done_check.setChecked(sub_task.is_completed)
        self.done_check.toggled.connect(self._handle_toggle)

        self.title_input = QLineEdit(sub_task.title)
        self.title_input.setPlaceholderText("Subtask title")
        self.title_input.setProperty("completed", sub_task.is_completed)
        self.title_input.editingFinished.connect(self._handle_title_commit)

        self.delete_button = QPushButton("Remove")
        self.delete_button.setProperty("variant", "ghost")
        self.delete_button.clicked.connect(self._handle_delete)

        layout.addWidget(self.done_check)
        layout.addWidget(self.title_input, 1)
        layout.addWidget(self.delete_button)

    def _handle_toggle(self, checked: bool) -> None:
        self._on_toggle(self.sub_task_id, checked)

    def _handle_title_commit(self) -> None:
        title = self.title_input.text().strip()
        if not title:
            self.title_input.setText(self._title_value)
            return
        if title != self._title_value:
            self._title_value = title
            self._on_title_update(self.sub_task_id, title)

    def _handle_delete(self) -> None:
        self._on_delete(self.sub_task_id)


class ScheduledTaskWidget(QFrame):
    def __init__(self, item: ScheduledTask, on_open, parent=None):
        super().__init__(parent)
        self.item = item
        self._on_open = on_open
        task = item.task

        self.setObjectName("ScheduledTask")
        self.setCursor(Qt.PointingHandCursor)

        layout = QVBoxLayout(self)
        layout.setContentsMargins(10, 8, 10, 8)
        layout.setSpacing(4)

        due_status = get_due_date_status(task.due_date)
        badge = QLabel(f"{DUE_STATUS_LABELS[due_status]} · {format_due_date(task.due_date)}")
        badge.setProperty("class", "due-badge")
        badge.setStyleSheet(f"color: {DUE_STATUS_COLORS[due_status]};")

        title = QLabel(task.title)
        title.setProperty("class", "task-title")
        title.setWordWrap(True)

        color = get_category_color(task.category)
        meta = QLabel(f"{item.project_name} · <span style='color: {color}'>{task.category}</span>")
        meta.setTextFormat(Qt.RichText)
        meta.setProperty("class", "task-meta")

        layout.addWidget(badge)
        layout.addWidget(title)
        layout.addWidget(meta)

        if task.sub_tasks:
            done = sum(1 for sub_task in task.sub_tasks if sub_task.is_completed)
            layout.addWidget(_progress_bar(get_progress_percentage(task.sub_tasks), color))
            counter = QLabel(f"{done}/{len(task.sub_tasks)} subtasks")
            counter.setProperty("class", "task-meta")
            layout.addWidget(counter)

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self._on_open(self.item.task.id)
        super().mouseReleaseEvent(event)


class ProjectButton(QPushButton):
    ICON_SIZE = 28

    def __init__(self, project: Project, executor, on_select, on_edit, parent=None):
        super().__init__(parent)
        self.project = project
        self.setObjectName("ProjectButton")
        self.setCheckable(True)
        self.setToolTip(project.name)
        self.setFixedSize(44, 44)
        self.setProperty("pending", is_temporary_id(project.id))
        self.setContextMenuPolicy(Qt.CustomContextMenu)
        self.clicked.connect(lambda: on_select(project.id))
        self.customContextMenuRequested.connect(lambda _pos: on_edit(project.id))

        if is_image_reference(project.icon):
            self.setText(project_initials(project.name))
            load_pixmap(project.icon, executor, self._set_pixmap)
        else:
            self.setText(project.icon or project_initials(project.name))

    def _set_pixmap(self, pixmap: QPixmap) -> None:
        self.setText("")
        self.setIcon(rounded(pixmap, self.ICON_SIZE))
        self.setIconSize(QSize(self.ICON_SIZE, self.ICON_SIZE))


class AvatarLabel(QLabel):
    clicked = Signal()

    def __init__(self, size: int = 36, parent=None):
        super().__init__(parent)
        self._size = size
        self.setObjectName("Avatar")
        self.setFixedSize(size, size)
        self.setAlignment(Qt.AlignCenter)

    def show_profile(self, username: str, picture: str | None, executor) -> None:
        self.setPixmap(QPixmap())
        self.setText(project_initials(username) or "?")
        if picture and is_image_reference(picture):
            load_pixmap(picture, executor, self._set_pixmap)

    def _set_pixmap(self, pixmap: QPixmap) -> None:
        self.setText("")
        self.setPixmap(rounded(pixmap, self._size))

    def mouseReleaseEvent(self, event) -> None:  # type: ignore[override]
        if event.button() == Qt.LeftButton:
            self.clicked.emit()
        super().mouseReleaseEvent(event)


class ErrorBanner(QLabel):
    def __init__(self, parent=None):
        super().__init__(parent)
        self.setObjectName("ErrorBanner")
        self.setWordWrap(True)
        self.hide()
        self._timer = QTimer(self)
        self._timer.setSingleShot(True)
        self._timer.timeout.connect(self.hide)

    def show_message(self, message: str) -> None:
        self.setText(message)
        self.show()
        _repolish(self)
        self._timer.start(ERROR_BANNER_TIMEOUT_MS)
