from __future__ import annotations

import logging
import sys
from pathlib import Path

from PySide6.QtGui import QColor, QFont, QPalette
from PySide6.QtWidgets import QApplication, QDialog, QMessageBox, QStyleFactory

from eyetracktask.config import PROJECT_ROOT, SETTINGS
from eyetracktask.infra.db import init_db
from eyetracktask.infra.logging import setup_logging
from eyetracktask.services.auth_service import (
    AUTH_CODE_ERROR_ROUTE,
    BOARD_ROUTE,
    LOGIN_ROUTE,
    AuthService,
    resolve_route,
)
from eyetracktask.services.backend import build_backend
from eyetracktask.ui.dialogs import LoginDialog
from eyetracktask.ui.main_window import MainWindow
from eyetracktask.ui.workers import QtExecutor

logger = logging.getLogger(__name__)

CALLBACK_SCHEME = "eyetracktask://"


def _apply_dark_palette(app: QApplication) -> None:
    palette = QPalette()
    palette.setColor(QPalette.Window, QColor("#0F1115"))
    palette.setColor(QPalette.WindowText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Base, QColor("#16181D"))
    palette.setColor(QPalette.AlternateBase, QColor("#1C1F26"))
    palette.setColor(QPalette.Text, QColor("#E6EDF3"))
    palette.setColor(QPalette.Button, QColor("#1F232B"))
    palette.setColor(QPalette.ButtonText, QColor("#E6EDF3"))
    palette.setColor(QPalette.ToolTipBase, QColor("#1C1F26"))
    palette.setColor(QPalette.ToolTipText, QColor("#E6EDF3"))
    palette.setColor(QPalette.Highlight, QColor("#3B82F6"))
    palette.setColor(QPalette.HighlightedText, QColor("#FFFFFF"))
    app.setPalette(palette)


def _find_qss_path() -> Path | None:
    candidates = [
        Path(__file__).resolve().parent / "ui" / "styles.qss",
        PROJECT_ROOT / "eyetracktask" / "ui" / "styles.qss",
    ]
    if getattr(sys, "frozen", False):
        meipass = getattr(sys, "_MEIPASS", None)
        if meipass:
            candidates.append(Path(meipass) / "eyetracktask" / "ui" / "styles.qss")

    for path in candidates:
        if path.exists():
            return path
    return None


def load_styles(app: QApplication) -> None:
    qss_path = _find_qss_path()
    if not qss_path:
        return
    app.setStyleSheet(qss_path.read_text(encoding="utf-8"))


def _callback_url(argv: list[str]) -> str | None:
    return next((arg for arg in argv[1:] if arg.startswith(CALLBACK_SCHEME)), None)


def _sign_in(auth: AuthService, executor) -> bool:
    return LoginDialog(auth, executor).exec() == QDialog.Accepted


def _initial_route(auth: AuthService, executor, argv: list[str]) -> str | None:
    route = BOARD_ROUTE
    url = _callback_url(argv)
    if url:
        route = auth.handle_callback(url)
        if route == AUTH_CODE_ERROR_ROUTE:
            QMessageBox.warning(
                None,
                "Confirmation failed",
                "The confirmation link is invalid or has expired. Please sign in again.",
            )
            route = LOGIN_ROUTE

    route = resolve_route(route, auth.is_authenticated())
    while route == LOGIN_ROUTE:
        if not _sign_in(auth, executor):
            return None
        route = resolve_route(BOARD_ROUTE, auth.is_authenticated())
    return route


def main() -> None:
    log_file = setup_logging()
    logger.info("Logging to %s", log_file)
    app = QApplication(sys.argv)
    backend = build_backend(SETTINGS)

    if not backend.is_remote:
        try:
            init_db()
        except Exception as exc:  # noqa: BLE001
            logger.exception("Database initialisation failed")
            QMessageBox.critical(None, "DB error", str(exc))
            return

    app.setStyle(QStyleFactory.create("Fusion"))
    _apply_dark_palette(app)
    app.setFont(QFont("Inter", 10))
    load_styles(app)

    executor = QtExecutor()
    route = BOARD_ROUTE
    if backend.auth is not None:
        route = _initial_route(backend.auth, executor, sys.argv)
        if route is None:
            return

    window = MainWindow(backend, executor)

    def on_signed_out() -> None:
        window.hide()
        if _sign_in(backend.auth, executor):
            window.start()
            window.navigate(BOARD_ROUTE)
            window.show()
        else:
            app.quit()

    window.signed_out.connect(on_signed_out)
    window.navigate(route)
    window.start()
    window.show()
    logger.info("Started in %s mode", backend.mode)
    sys.exit(app.exec())


if __name__ == "__main__":
    main()
