from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from pathlib import PurePosixPath


@dataclass(slots=True, frozen=True)
class RemoteFileEntry:
    name: str
    path: str
    is_directory: bool
    size_bytes: int
    modified_at: datetime
    is_hidden: bool

    @property
    def extension(self) -> str:
        if self.is_directory:
            return ""
        return PurePosixPath(self.name).suffix.lstrip(".").lower()
