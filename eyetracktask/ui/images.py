from __future__ import annotations

import logging
from typing import Callable

import requests
from PySide6.QtCore import Qt
from PySide6.QtGui import QPixmap

from eyetracktask.config import SETTINGS
from eyetracktask.infra.images import decode_data_url

logger = logging.getLogger(__name__)

_CACHE: dict[str, QPixmap] = {}


def _pixmap_from_bytes(data: bytes) -> QPixmap | None:
    pixmap = QPixmap()
    if not pixmap.loadFromData(data):
        return None
    return pixmap


def _fetch(url: str) -> bytes:
    response = requests.get(url, timeout=SETTINGS.http_timeout)
    response.raise_for_status()
    return response.content


def rounded(pixmap: QPixmap, size: int) -> QPixmap:
    return pixmap.scaled(size, size, Qt.KeepAspectRatioByExpanding, Qt.SmoothTransformation)


def load_pixmap(reference: str, executor, callback: Callable[[QPixmap], None]) -> None:
    """Resolve a data: or http(s) image reference and hand the pixmap to callback."""
    if reference in _CACHE:
        callback(_CACHE[reference])
        return

    if reference.startswith("data:"):
        pixmap = _pixmap_from_bytes(decode_data_url(reference))
        if pixmap is not None:
            _CACHE[reference] = pixmap
            callback(pixmap)
        return

    def loaded(data: bytes) -> None:
        pixmap = _pixmap_from_bytes(data)
        if pixmap is None:
            logger.warning("Unsupported image data at %s", reference)
            return
        _CACHE[reference] = pixmap
        callback(pixmap)

    def failed(exc: Exception) -> None:
        logger.warning("Could not load image %s: %s", reference, exc)

    executor.submit(lambda: _fetch(reference), loaded, failed)
