from __future__ import annotations

from datetime import datetime
import os
from pathlib import Path
import stat

from core.remote.models import RemoteFileEntry

_UF_HIDDEN = getattr(stat, "UF_HIDDEN", 0)


def list_local_directory(mount_root: Path, current_path: str) -> list[RemoteFileEntry]:
    """List a directory of a mounted share.

    Raises ``OSError`` when the directory itself cannot be read; entries that
    vanish or cannot be stat'ed while iterating are skipped.
    """
    directory = Path(mount_root) / current_path.lstrip("/")
    entries: list[RemoteFileEntry] = []

    with os.scandir(directory) as iterator:
        for item in iterator:
            try:
                is_directory = item.is_dir()
                info = item.stat()
            except OSError:
                continue

            flags = getattr(info, "st_flags", 0)
            entries.append(
                RemoteFileEntry(
                    name=item.name,
                    path=item.path,
                    is_directory=is_directory,
                    size_bytes=0 if is_directory else int(info.st_size),
                    modified_at=datetime.fromtimestamp(info.st_mtime),
                    is_hidden=item.name.startswith(".") or bool(flags & _UF_HIDDEN),
                )
            )

    return entries
