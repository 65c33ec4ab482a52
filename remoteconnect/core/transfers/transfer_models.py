from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
import uuid


class TransferDirection(str, Enum):
    UPLOAD = "upload"
    DOWNLOAD = "download"


class TransferStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (TransferStatus.COMPLETED, TransferStatus.FAILED, TransferStatus.CANCELLED)


@dataclass(slots=True)
class TransferTask:
    source_path: str
    destination_path: str
    file_name: str
    direction: TransferDirection
    server_id: str
    total_bytes: int
    transferred_bytes: int = 0
    status: TransferStatus = TransferStatus.PENDING
    error: str | None = None
    id: str = field(default_factory=lambda: uuid.uuid4().hex)

    @property
    def progress(self) -> float:
        if self.total_bytes <= 0:
            return 0.0
        return min(1.0, self.transferred_bytes / self.total_bytes)


@dataclass(slots=True)
class TransferOutcome:
    task_id: str
    success: bool
    bytes_copied: int
    message: str
