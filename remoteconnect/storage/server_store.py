from __future__ import annotations

import json
import logging
import os
from pathlib import Path
import threading
import uuid

from core.paths import get_servers_path
from core.profiles.models import ServerProfile


class ServerProfileStore:
    """Whole-file JSON snapshot of all saved server profiles.

    Every save rewrites the file through a sibling temporary file and
    ``os.replace`` so a killed process leaves either the old or the new
    snapshot on disk.
    """

    def __init__(self, path: Path | None = None, logger: logging.Logger | None = None) -> None:
        self._path = path or get_servers_path()
        self._logger = logger or logging.getLogger("remoteconnect.storage")
        self._write_lock = threading.Lock()

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> list[ServerProfile]:
        if not self._path.exists():
            return []

        try:
            payload = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as error:
            self._logger.warning("Could not read server list %s: %s", self._path, error)
            return []

        if not isinstance(payload, list):
            self._logger.warning("Ignoring server list %s: expected a JSON array", self._path)
            return []

        profiles: list[ServerProfile] = []
        for item in payload:
            if not isinstance(item, dict):
                continue
            try:
                profiles.append(ServerProfile.from_dict(item))
            except (KeyError, TypeError, ValueError) as error:
                self._logger.warning("Skipping malformed server entry: %s", error)
        return profiles

    def save(self, profiles: list[ServerProfile]) -> None:
        content = json.dumps([profile.to_dict() for profile in profiles], indent=2, ensure_ascii=False)

        with self._write_lock:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            temp_path = self._path.with_name(f"{self._path.name}.tmp-{uuid.uuid4().hex}")
            try:
                temp_path.write_text(content, encoding="utf-8")
                os.replace(temp_path, self._path)
            finally:
                if temp_path.exists():
                    try:
                        temp_path.unlink()
                    except OSError:
                        pass
