from __future__ import annotations

from datetime import datetime

from core.remote.models import RemoteFileEntry
from core.remote.paths import join_remote

_MONTHS = {
    name: index
    for index, name in enumerate(
        ("jan", "feb", "mar", "apr", "may", "jun", "jul", "aug", "sep", "oct", "nov", "dec"),
        start=1,
    )
}


def parse_ftp_listing(output: str, base_path: str, now: datetime | None = None) -> list[RemoteFileEntry]:
    """Parse a raw ``LIST``/``NLST`` response into entries.

    Lines in ``ls -l`` form (more than 10 characters, at least 9 fields) use
    the permission string, size and name columns. Anything else is taken as a
    bare name. Unparseable columns fall back to defaults instead of failing,
    so a partially odd listing still shows what it can.
    """
    reference = now or datetime.now()
    entries: list[RemoteFileEntry] = []

    for line in output.splitlines():
        trimmed = line.strip()
        if trimmed == "" or _is_total_line(trimmed):
            continue

        fields = trimmed.split()
        if len(trimmed) > 10 and len(fields) >= 9:
            entry = _parse_long_line(fields, base_path, reference)
        else:
            entry = _parse_bare_name(trimmed, base_path, reference)

        if entry is not None:
            entries.append(entry)

    entries.sort(key=lambda item: (not item.is_directory, item.name.lower()))
    return entries


def _parse_long_line(fields: list[str], base_path: str, reference: datetime) -> RemoteFileEntry | None:
    permissions = fields[0]
    name = " ".join(fields[8:])
    if permissions.startswith("l") and " -> " in name:
        name = name.split(" -> ", 1)[0]
    if name in (".", ".."):
        return None

    try:
        size_bytes = int(fields[4])
    except ValueError:
        size_bytes = 0

    return RemoteFileEntry(
        name=name,
        path=join_remote(base_path, name),
        is_directory=permissions.startswith("d"),
        size_bytes=size_bytes,
        modified_at=_parse_listing_date(fields[5], fields[6], fields[7], reference),
        is_hidden=name.startswith("."),
    )


def _parse_bare_name(trimmed: str, base_path: str, reference: datetime) -> RemoteFileEntry | None:
    if trimmed in (".", ".."):
        return None

    is_directory = trimmed.endswith("/") or "." not in trimmed
    name = trimmed.strip("/")
    if name == "":
        return None

    return RemoteFileEntry(
        name=name,
        path=join_remote(base_path, name),
        is_directory=is_directory,
        size_bytes=0,
        modified_at=reference,
        is_hidden=name.startswith("."),
    )


def _parse_listing_date(month: str, day: str, time_or_year: str, reference: datetime) -> datetime:
    month_number = _MONTHS.get(month[:3].lower())
    if month_number is None:
        return reference

    try:
        day_number = int(day)
        if ":" in time_or_year:
            hour_text, minute_text = time_or_year.split(":", 1)
            candidate = datetime(reference.year, month_number, day_number, int(hour_text), int(minute_text))
            # Listings omit the year for the last six months; a future date means last year.
            if candidate > reference:
                candidate = candidate.replace(year=reference.year - 1)
            return candidate
        return datetime(int(time_or_year), month_number, day_number)
    except ValueError:
        return reference


def _is_total_line(trimmed: str) -> bool:
    parts = trimmed.split()
    return len(parts) == 2 and parts[0].lower() == "total" and parts[1].isdigit()
