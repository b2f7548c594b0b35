from __future__ import annotations

import logging
from pathlib import Path

from eyetracktask.config import Settings
from eyetracktask.infra import logging as app_logging


def test_setup_logging_is_idempotent(tmp_path: Path, monkeypatch) -> None:
    monkeypatch.setattr(app_logging, "SETTINGS", Settings(database_url="sqlite://", log_dir=str(tmp_path / "logs")))
    monkeypatch.setattr(app_logging, "_log_file", None)

    first = app_logging.setup_logging()
    second = app_logging.setup_logging("debug")

    assert first == tmp_path / "logs" / "eyetracktask.log"
    assert second == first
    assert first.parent.is_dir()
    assert logging.getLogger("urllib3").level == logging.WARNING
