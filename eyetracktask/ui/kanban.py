from __future__ import annotations

from PySide6.QtCore import Qt
from PySide6.QtWidgets import QFrame, QHBoxLayout, QListWidgetItem, QVBoxLayout, QWidget

from eyetracktask.domain.board import DragLocation
from eyetracktask.domain.enums import STATUS_LABELS, TaskStatus
from eyetracktask.domain.rules import get_status_color
from eyetracktask.services.project_store import ProjectStore

from .widgets import ColumnHeader, KanbanListWidget, TaskCardWidget


class KanbanBoard(QWidget):
    def __init__(self, store: ProjectStore, on_open_task, parent=None):
        super().__init__(parent)
        self.store = store
        self._on_open_task = on_open_task
        self.search_query = ""
        self.status_filter: TaskStatus | None = None

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(12)

        self.columns: dict[TaskStatus, KanbanListWidget] = {}
        self.headers: dict[TaskStatus, ColumnHeader] = {}
        for status in TaskStatus:
            frame = QFrame()
            frame.setObjectName("KanbanColumn")
            column = QVBoxLayout(frame)
            column.setContentsMargins(8, 10, 8, 8)
            column.setSpacing(8)

            header = ColumnHeader(STATUS_LABELS[status], get_status_color(status))
            list_widget = KanbanListWidget(status, self.on_drop)
            list_widget.setObjectName("KanbanList")
            list_widget.itemClicked.connect(self._handle_item_clicked)

            column.addWidget(header)
            column.addWidget(list_widget, 1)
            layout.addWidget(frame, 1)
            self.columns[status] = list_widget
            self.headers[status] = header

    def set_filters(self, search_query: str, status_filter: TaskStatus | None) -> None:
        self.search_query = search_query
        self.status_filter = status_filter
        self.refresh()

    def refresh(self) -> None:
        for status, list_widget in self.columns.items():
            tasks = self.store.get_tasks_by_status(status, self.search_query, self.status_filter)
            list_widget.clear()
            for task in tasks:
                item = QListWidgetItem()
                list_widget.addItem(item)
                item.setData(Qt.UserRole, task.id)
                widget = TaskCardWidget(task)
                item.setSizeHint(widget.sizeHint())
                list_widget.setItemWidget(item, widget)
            list_widget.sync_item_sizes()
            self.headers[status].set_count(len(tasks))

    def on_drop(self, task_id: str, source: DragLocation, destination: DragLocation) -> None:
        self.store.move_task(task_id, source, destination)

    def _handle_item_clicked(self, item: QListWidgetItem) -> None:
        task_id = item.data(Qt.UserRole)
        if task_id:
            self._on_open_task(task_id)
