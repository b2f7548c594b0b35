from __future__ import annotations

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path

from eyetracktask.config import PROJECT_ROOT, SETTINGS

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
NOISY_LOGGERS = ("urllib3", "PIL")

_log_file: Path | None = None


def setup_logging(level: str | None = None) -> Path:
    """Route app logs to a rotating file and the console. Safe to call twice."""
    global _log_file
    if _log_file is not None:
        return _log_file

    log_dir = Path(SETTINGS.log_dir)
    if not log_dir.is_absolute():
        log_dir = PROJECT_ROOT / log_dir
    log_dir.mkdir(parents=True, exist_ok=True)
    log_file = log_dir / "eyetracktask.log"

    formatter = logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")
    file_handler = RotatingFileHandler(log_file, maxBytes=2_000_000, backupCount=3, encoding="utf-8")
    file_handler.setFormatter(formatter)
    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)

    logging.basicConfig(
        level=(level or SETTINGS.log_level).upper(),
        handlers=[file_handler, console_handler],
    )
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _log_file = log_file
    return log_file
