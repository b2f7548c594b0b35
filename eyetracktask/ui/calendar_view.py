from __future__ import annotations

from datetime import date

from PySide6.QtCore import QDate, Qt
from PySide6.QtGui import QBrush, QColor, QTextCharFormat
from PySide6.QtWidgets import (
    QCalendarWidget,
    QFrame,
    QHBoxLayout,
    QLabel,
    QListWidget,
    QListWidgetItem,
    QVBoxLayout,
    QWidget,
)

from eyetracktask.domain.enums import STATUS_LABELS
from eyetracktask.domain.rules import format_long_date
from eyetracktask.services.project_store import ProjectStore
from eyetracktask.services.schedule import CalendarEvent, calendar_events, events_by_day


class CalendarPage(QWidget):
    """Month view of every dated task, tinted by status."""

    def __init__(self, store: ProjectStore, on_open_task, parent=None):
        super().__init__(parent)
        self.store = store
        self._on_open_task = on_open_task
        self._events: dict[date, list[CalendarEvent]] = {}

        layout = QHBoxLayout(self)
        layout.setContentsMargins(0, 0, 0, 0)
        layout.setSpacing(12)

        self.calendar = QCalendarWidget()
        self.calendar.setGridVisible(True)
        self.calendar.setVerticalHeaderFormat(QCalendarWidget.NoVerticalHeader)
        self.calendar.selectionChanged.connect(self._show_selected_day)
        self.calendar.currentPageChanged.connect(lambda _year, _month: self.refresh())

        details = QFrame()
        details.setObjectName("CalendarDetails")
        details_layout = QVBoxLayout(details)
        details_layout.setContentsMargins(12, 12, 12, 12)
        self.day_label = QLabel()
        self.day_label.setProperty("class", "panel-title")
        self.event_list = QListWidget()
        self.event_list.setObjectName("CalendarEvents")
        self.event_list.itemClicked.connect(self._handle_item_clicked)
        self.empty_label = QLabel("No tasks due on this day")
        self.empty_label.setProperty("class", "task-meta")
        details_layout.addWidget(self.day_label)
        details_layout.addWidget(self.event_list, 1)
        details_layout.addWidget(self.empty_label)

        layout.addWidget(self.calendar, 2)
        layout.addWidget(details, 1)

    def refresh(self) -> None:
        self.calendar.setDateTextFormat(QDate(), QTextCharFormat())
        month = (self.calendar.yearShown(), self.calendar.monthShown())
        self._events = events_by_day(calendar_events(self.store.projects, month))
        for day, events in self._events.items():
            text_format = QTextCharFormat()
            text_format.setBackground(QBrush(QColor(events[0].color)))
            text_format.setForeground(QBrush(QColor("#FFFFFF")))
            text_format.setToolTip("\n".join(event.title for event in events))
            self.calendar.setDateTextFormat(QDate(day.year, day.month, day.day), text_format)
        self._show_selected_day()

    def _show_selected_day(self) -> None:
        day = self.calendar.selectedDate().toPython()
        self.day_label.setText(format_long_date(day))
        self.event_list.clear()
        events = self._events.get(day, [])
        for event in events:
            label = f"{event.title}  ·  {STATUS_LABELS[event.status]}  ·  {event.project_name}"
            item = QListWidgetItem(label)
            item.setData(Qt.UserRole, event.task.id)
            item.setForeground(QBrush(QColor(event.color)))
            self.event_list.addItem(item)
        self.empty_label.setVisible(not events)

    def _handle_item_clicked(self, item: QListWidgetItem) -> None:
        task_id = item.data(Qt.UserRole)
        if task_id:
            self._on_open_task(task_id)
