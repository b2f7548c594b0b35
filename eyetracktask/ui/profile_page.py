from __future__ import annotations

import logging
from pathlib import Path

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QFileDialog,
    QFrame,
    QHBoxLayout,
    QLabel,
    QLineEdit,
    QPushButton,
    QVBoxLayout,
    QWidget,
)

from eyetracktask.domain.entities import UserProfile
from eyetracktask.domain.rules import format_long_date
from eyetracktask.infra.images import ImageValidationError
from eyetracktask.services.profile_service import ProfileService

from .dialogs import IMAGE_FILTER
from .widgets import AvatarLabel

logger = logging.getLogger(__name__)


class ProfilePage(QWidget):
    def __init__(self, profiles: ProfileService, executor, on_profile_changed, on_sign_out=None, parent=None):
        super().__init__(parent)
        self.profiles = profiles
        self.executor = executor
        self._on_profile_changed = on_profile_changed
        self.profile: UserProfile | None = None

        card = QFrame()
        card.setObjectName("ProfileCard")
        card.setMaximumWidth(520)
        card_layout = QVBoxLayout(card)
        card_layout.setContentsMargins(20, 20, 20, 20)
        card_layout.setSpacing(10)

        self.avatar = AvatarLabel(96)
        self.picture_button = QPushButton("Change picture")
        self.picture_button.setProperty("variant", "secondary")
        self.picture_button.clicked.connect(self.change_picture)

        avatar_row = QHBoxLayout()
        avatar_row.addWidget(self.avatar)
        avatar_row.addWidget(self.picture_button, 0, Qt.AlignVCenter)
        avatar_row.addStretch()

        self.username_input = QLineEdit()
        self.username_input.setPlaceholderText("Username")
        self.email_input = QLineEdit()
        self.email_input.setPlaceholderText("Email")
        self.member_since = QLabel()
        self.member_since.setProperty("class", "task-meta")

        self.status_label = QLabel()
        self.status_label.setObjectName("InlineInfo")
        self.status_label.setWordWrap(True)

        self.save_button = QPushButton("Save changes")
        self.save_button.clicked.connect(self.save)

        buttons = QHBoxLayout()
        buttons.addStretch()
        if on_sign_out is not None:
            sign_out_button = QPushButton("Sign out")
            sign_out_button.setProperty("variant", "ghost")
            sign_out_button.clicked.connect(on_sign_out)
            buttons.addWidget(sign_out_button)
        buttons.addWidget(self.save_button)

        title = QLabel("Profile")
        title.setProperty("class", "panel-title")
        card_layout.addWidget(title)
        card_layout.addLayout(avatar_row)
        card_layout.addWidget(QLabel("Username"))
        card_layout.addWidget(self.username_input)
        card_layout.addWidget(QLabel("Email"))
        card_layout.addWidget(self.email_input)
        card_layout.addWidget(self.member_since)
        card_layout.addWidget(self.status_label)
        card_layout.addLayout(buttons)

        layout = QVBoxLayout(self)
        layout.addWidget(card, 0, Qt.AlignHCenter | Qt.AlignTop)
        layout.addStretch()

    def _set_busy(self, busy: bool) -> None:
        self.save_button.setEnabled(not busy)
        self.picture_button.setEnabled(not busy)

    def _report(self, message: str) -> None:
        self.status_label.setText(message)

    def load(self) -> None:
        self._set_busy(True)
        self.executor.submit(self.profiles.get_profile, self._show_profile, self._failed)

    def _show_profile(self, profile: UserProfile) -> None:
        self._set_busy(False)
        self.profile = profile
        self.username_input.setText(profile.username)
        self.email_input.setText(profile.email)
        self.member_since.setText(
            f"Member since {format_long_date(profile.created_at.date())}" if profile.created_at else ""
        )
        self.avatar.show_profile(profile.username, profile.profile_picture, self.executor)
        self._on_profile_changed(profile)

    def _failed(self, exc: Exception) -> None:
        self._set_busy(False)
        if not isinstance(exc, ImageValidationError):
            logger.error("Profile request failed: %s", exc, exc_info=exc)
        self._report(str(exc))

    def save(self) -> None:
        username = self.username_input.text()
        email = self.email_input.text()
        self._set_busy(True)
        self._report("")

        def saved(profile: UserProfile) -> None:
            self._show_profile(profile)
            self._report("Profile updated")

        self.executor.submit(lambda: self.profiles.update_profile(username, email), saved, self._failed)

    def change_picture(self) -> None:
        path, _ = QFileDialog.getOpenFileName(self, "Choose picture", str(Path.home()), IMAGE_FILTER)
        if not path:
            return
        self._set_busy(True)
        self._report("Uploading…")

        def saved(profile: UserProfile) -> None:
            self._show_profile(profile)
            self._report("Profile picture updated")

        self.executor.submit(lambda: self.profiles.update_profile_picture(Path(path)), saved, self._failed)
