from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from eyetracktask.config import SETTINGS, Settings
from eyetracktask.infra.images import compress_image

logger = logging.getLogger(__name__)


class MediaService:
    def __init__(self, storage, user_id: Callable[[], str], settings: Settings = SETTINGS) -> None:
        self._storage = storage
        self._user_id = user_id
        self._settings = settings

    def prepare(self, path: Path) -> bytes:
        return compress_image(
            Path(path).read_bytes(),
            max_dimension=self._settings.image_max_dimension,
            quality=self._settings.image_quality,
        )

    def _object_path(self, prefix: str) -> str:
        return f"{self._user_id()}/{prefix}-{int(time.time() * 1000)}.jpg"

    def upload_avatar(self, path: Path) -> str:
        data = self.prepare(path)
        object_path = self._object_path("profile")
        logger.info("Uploading avatar %s (%d bytes)", object_path, len(data))
        return self._storage.upload(self._settings.avatar_bucket, object_path, data, "image/jpeg")

    def upload_project_icon(self, path: Path) -> str:
        data = self.prepare(path)
        object_path = self._object_path("project")
        logger.info("Uploading project icon %s (%d bytes)", object_path, len(data))
        return self._storage.upload(self._settings.icon_bucket, object_path, data, "image/jpeg")
