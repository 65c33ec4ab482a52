from __future__ import annotations

import json
from pathlib import Path

from PySide6.QtCore import QObject, Signal

from core.resources import get_translations_dir


class I18nManager(QObject):
    """Message catalog lookup for status and error texts shown by the UI."""

    language_changed = Signal(str)

    def __init__(self, language: str = "en", fallback_language: str = "en") -> None:
        super().__init__()
        self._language = language
        self._fallback_language = fallback_language
        self._catalogs: dict[str, dict[str, str]] = {}

    @property
    def current_language(self) -> str:
        return self._language

    def load_catalogs(self, translations_dir: Path | None = None) -> None:
        source_dir = translations_dir or get_translations_dir()
        self._catalogs = {}
        if not source_dir.is_dir():
            return

        for catalog_path in sorted(source_dir.glob("*.json")):
            try:
                payload = json.loads(catalog_path.read_text(encoding="utf-8"))
            except (OSError, json.JSONDecodeError):
                continue
            if isinstance(payload, dict):
                self._catalogs[catalog_path.stem] = {str(key): str(value) for key, value in payload.items()}

        if self._language not in self._catalogs:
            self._language = self._fallback_language

    def available_languages(self) -> list[str]:
        return sorted(self._catalogs)

    def set_language(self, language: str, emit_signal: bool = True) -> None:
        target = language if language in self._catalogs else self._fallback_language
        if target == self._language:
            return

        self._language = target
        if emit_signal:
            self.language_changed.emit(target)

    def translate(self, key: str, **kwargs: object) -> str:
        template = (
            self._catalogs.get(self._language, {}).get(key)
            or self._catalogs.get(self._fallback_language, {}).get(key)
            or key
        )
        try:
            return template.format(**kwargs)
        except (KeyError, IndexError, ValueError):
            return template


_i18n = I18nManager()


def initialize_i18n(language: str, translations_dir: Path | None = None) -> None:
    _i18n.load_catalogs(translations_dir)
    _i18n.set_language(language, emit_signal=False)


def get_i18n() -> I18nManager:
    return _i18n


def tr(key: str, **kwargs: object) -> str:
    return _i18n.translate(key, **kwargs)
