from __future__ import annotations

from PySide6.QtCore import QObject, QThread


class WorkerLauncher(QObject):
    """Runs each worker on its own QThread until it emits ``finished``.

    The launcher holds the only strong reference to each worker until its
    thread has finished.
    """

    def __init__(self) -> None:
        super().__init__()
        self._workers: dict[QThread, QObject] = {}

    def start(self, worker: QObject) -> None:
        thread = QThread(self)
        worker.moveToThread(thread)

        thread.started.connect(worker.run)
        worker.finished.connect(thread.quit)
        thread.finished.connect(worker.deleteLater)
        thread.finished.connect(thread.deleteLater)
        thread.finished.connect(lambda finished_thread=thread: self._on_thread_closed(finished_thread))

        self._workers[thread] = worker
        thread.start()

    def active_count(self) -> int:
        return len(self._workers)

    def wait_all(self, timeout_ms: int = 5000) -> None:
        for thread in list(self._workers):
            thread.quit()
            thread.wait(timeout_ms)

    def _on_thread_closed(self, thread: QThread) -> None:
        self._workers.pop(thread, None)
