from __future__ import annotations


class NavigationHistory:
    def __init__(self) -> None:
        self._entries: list[str] = []
        self._index = -1

    @property
    def entries(self) -> list[str]:
        return list(self._entries)

    @property
    def index(self) -> int:
        return self._index

    @property
    def current(self) -> str | None:
        if self._index < 0:
            return None
        return self._entries[self._index]

    @property
    def can_go_back(self) -> bool:
        return self._index > 0

    @property
    def can_go_forward(self) -> bool:
        return self._index < len(self._entries) - 1

    def reset(self, path: str | None = None) -> None:
        self._entries = [] if path is None else [path]
        self._index = -1 if path is None else 0

    def push(self, path: str) -> None:
        del self._entries[self._index + 1 :]
        self._entries.append(path)
        self._index = len(self._entries) - 1

    def back(self) -> str | None:
        if not self.can_go_back:
            return None
        self._index -= 1
        return self._entries[self._index]

    def forward(self) -> str | None:
        if not self.can_go_forward:
            return None
        self._index += 1
        return self._entries[self._index]
