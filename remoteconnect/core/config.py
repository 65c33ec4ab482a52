from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from core.paths import get_config_path, get_default_download_dir, get_default_mount_root


class AppConfig:
    _SUPPORTED_SORT_KEYS = {"name", "size", "date", "type"}

    _DEFAULTS: dict[str, Any] = {
        "language": "en",
        "sort_by": "name",
        "sort_ascending": True,
        "show_hidden_files": False,
        "smb_mount_root": str(get_default_mount_root()),
        "download_dir": str(get_default_download_dir()),
    }

    def __init__(self, config_path: Path | None = None) -> None:
        self._config_path = config_path or get_config_path()
        self._data: dict[str, Any] = {}
        self._load_or_create()

    def _load_or_create(self) -> None:
        if not self._config_path.exists():
            self._data = dict(self._DEFAULTS)
            self.save()
            return

        try:
            content = self._config_path.read_text(encoding="utf-8")
            loaded = json.loads(content)
            if not isinstance(loaded, dict):
                loaded = {}
        except (json.JSONDecodeError, OSError):
            loaded = {}

        self._data = dict(self._DEFAULTS)
        self._data.update(loaded)

        sort_value = str(self._data.get("sort_by", self._DEFAULTS["sort_by"])).strip().lower()
        if sort_value not in self._SUPPORTED_SORT_KEYS:
            sort_value = self._DEFAULTS["sort_by"]
        self._data["sort_by"] = sort_value

        for key in ("smb_mount_root", "download_dir"):
            if str(self._data.get(key) or "").strip() == "":
                self._data[key] = self._DEFAULTS[key]

        self.save()

    def save(self) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        self._config_path.write_text(
            json.dumps(self._data, indent=2, ensure_ascii=False),
            encoding="utf-8",
        )

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value
        self.save()

    def get_language(self) -> str:
        return str(self._data.get("language", self._DEFAULTS["language"]))

    def set_language(self, language: str) -> None:
        self._data["language"] = language
        self.save()

    def get_sort_by(self) -> str:
        return str(self._data.get("sort_by", self._DEFAULTS["sort_by"]))

    def set_sort_by(self, sort_by: str) -> None:
        value = sort_by.strip().lower()
        if value not in self._SUPPORTED_SORT_KEYS:
            raise ValueError(f"Unsupported sort key: {sort_by}")
        self._data["sort_by"] = value
        self.save()

    def get_sort_ascending(self) -> bool:
        return bool(self._data.get("sort_ascending", self._DEFAULTS["sort_ascending"]))

    def set_sort_ascending(self, ascending: bool) -> None:
        self._data["sort_ascending"] = bool(ascending)
        self.save()

    def get_show_hidden_files(self) -> bool:
        return bool(self._data.get("show_hidden_files", self._DEFAULTS["show_hidden_files"]))

    def set_show_hidden_files(self, enabled: bool) -> None:
        self._data["show_hidden_files"] = bool(enabled)
        self.save()

    def get_smb_mount_root(self) -> str:
        return str(self._data.get("smb_mount_root", self._DEFAULTS["smb_mount_root"]))

    def set_smb_mount_root(self, root_path: str) -> None:
        self._data["smb_mount_root"] = str(root_path)
        self.save()

    def get_download_dir(self) -> str:
        return str(self._data.get("download_dir", self._DEFAULTS["download_dir"]))

    def set_download_dir(self, root_path: str) -> None:
        self._data["download_dir"] = str(root_path)
        self.save()
