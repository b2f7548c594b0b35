from __future__ import annotations

import logging
from pathlib import Path

from eyetracktask.domain.entities import UserProfile

from .media_service import MediaService

logger = logging.getLogger(__name__)


class ProfileService:
    def __init__(self, repo, media: MediaService) -> None:
        self._repo = repo
        self._media = media

    def get_profile(self) -> UserProfile:
        return self._repo.get_profile()

    def update_profile(self, username: str | None = None, email: str | None = None) -> UserProfile:
        current = self._repo.get_profile()
        self._repo.update_profile(
            {
                "username": (username or "").strip() or current.username,
                "email": (email or "").strip() or current.email,
            }
        )
        return self._repo.get_profile()

    def update_profile_picture(self, path: Path) -> UserProfile:
        url = self._media.upload_avatar(path)
        self._repo.update_profile({"avatar_url": url})
        logger.info("Profile picture updated")
        return self._repo.get_profile()
