from __future__ import annotations

from core.transfers.transfer_models import TransferStatus, TransferTask


class TransferQueue:
    """Ordered list of transfer tasks, mutated in place as workers report back."""

    def __init__(self) -> None:
        self._tasks: list[TransferTask] = []

    def __len__(self) -> int:
        return len(self._tasks)

    def tasks(self) -> list[TransferTask]:
        return list(self._tasks)

    def get(self, task_id: str) -> TransferTask | None:
        for task in self._tasks:
            if task.id == task_id:
                return task
        return None

    def enqueue(self, task: TransferTask) -> TransferTask:
        task.status = TransferStatus.PENDING
        self._tasks.append(task)
        return task

    def mark_in_progress(self, task_id: str) -> bool:
        task = self.get(task_id)
        if task is None or task.status != TransferStatus.PENDING:
            return False
        task.status = TransferStatus.IN_PROGRESS
        return True

    def mark_completed(self, task_id: str) -> bool:
        task = self._active(task_id)
        if task is None:
            return False
        task.status = TransferStatus.COMPLETED
        task.transferred_bytes = task.total_bytes
        task.error = None
        return True

    def mark_failed(self, task_id: str, message: str) -> bool:
        task = self._active(task_id)
        if task is None:
            return False
        task.status = TransferStatus.FAILED
        task.error = message
        return True

    def clear_completed(self) -> int:
        remaining = [task for task in self._tasks if not task.status.is_terminal]
        removed = len(self._tasks) - len(remaining)
        self._tasks = remaining
        return removed

    def _active(self, task_id: str) -> TransferTask | None:
        task = self.get(task_id)
        if task is None or task.status.is_terminal:
            return None
        return task
