from __future__ import annotations

import logging
from typing import Any, Callable

from PySide6.QtCore import QObject, QRunnable, QThreadPool, Signal, Slot

logger = logging.getLogger(__name__)


class _Relay(QObject):
    succeeded = Signal(object)
    failed = Signal(object)

    def __init__(self, on_success, on_error, on_finished) -> None:
        super().__init__()
        self._on_success = on_success
        self._on_error = on_error
        self._on_finished = on_finished
        self.succeeded.connect(self._deliver_success)
        self.failed.connect(self._deliver_error)

    @Slot(object)
    def _deliver_success(self, result: Any) -> None:
        self._on_finished(self)
        self._on_success(result)

    @Slot(object)
    def _deliver_error(self, exc: Exception) -> None:
        self._on_finished(self)
        self._on_error(exc)


class _Job(QRunnable):
    def __init__(self, fn: Callable[[], Any], relay: _Relay) -> None:
        super().__init__()
        self._fn = fn
        self._relay = relay

    def run(self) -> None:
        try:
            result = self._fn()
        except Exception as exc:  # noqa: BLE001
            self._relay.failed.emit(exc)
            return
        self._relay.succeeded.emit(result)


class QtExecutor:
    """Runs blocking calls on a thread pool and delivers results on the GUI thread.

    The relay objects are created on the GUI thread, so their queued slots run
    there no matter which pool thread emits.
    """

    def __init__(self, pool: QThreadPool | None = None) -> None:
        self._pool = pool or QThreadPool.globalInstance()
        self._pending: set[_Relay] = set()

    @property
    def pending(self) -> int:
        return len(self._pending)

    def submit(
        self,
        fn: Callable[[], Any],
        on_success: Callable[[Any], None],
        on_error: Callable[[Exception], None],
    ) -> None:
        relay = _Relay(on_success, on_error, self._pending.discard)
        self._pending.add(relay)
        self._pool.start(_Job(fn, relay))
