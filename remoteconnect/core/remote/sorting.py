from __future__ import annotations

from enum import Enum
from typing import Callable, Iterable

from core.remote.models import RemoteFileEntry


class SortOption(str, Enum):
    NAME = "name"
    SIZE = "size"
    DATE = "date"
    TYPE = "type"


_SORT_KEYS: dict[SortOption, Callable[[RemoteFileEntry], object]] = {
    SortOption.NAME: lambda entry: entry.name.casefold(),
    SortOption.SIZE: lambda entry: entry.size_bytes,
    SortOption.DATE: lambda entry: entry.modified_at,
    SortOption.TYPE: lambda entry: entry.extension.casefold(),
}


def sort_entries(
    entries: Iterable[RemoteFileEntry],
    sort_by: SortOption | str = SortOption.NAME,
    ascending: bool = True,
    show_hidden: bool = False,
) -> list[RemoteFileEntry]:
    key = _SORT_KEYS[SortOption(sort_by)]
    visible = [entry for entry in entries if show_hidden or not entry.is_hidden]

    directories = sorted((entry for entry in visible if entry.is_directory), key=key, reverse=not ascending)
    files = sorted((entry for entry in visible if not entry.is_directory), key=key, reverse=not ascending)
    return directories + files
