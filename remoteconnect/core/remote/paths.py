from __future__ import annotations

import posixpath
import re

_REPEATED_SLASHES = re.compile(r"/{2,}")


def collapse_slashes(path: str) -> str:
    return _REPEATED_SLASHES.sub("/", path)


def join_remote(base_path: str, name: str) -> str:
    if base_path == "":
        return collapse_slashes(name)
    return collapse_slashes(f"{base_path}/{name}")


def normalize_remote_path(remote_path: str) -> str:
    """Absolute FTP path with a single leading slash and no trailing slash."""
    return "/" + "/".join(part for part in remote_path.strip().split("/") if part)


def parent_path(path: str) -> str:
    """Parent of a browsed path; relative SMB paths climb to the mount root ``""``."""
    stripped = path.rstrip("/")
    if stripped == "":
        return "/" if path.startswith("/") else ""
    if "/" not in stripped:
        return ""
    parent = posixpath.dirname(stripped)
    return parent if parent != "" else "/"


def is_root_path(path: str) -> bool:
    return path in ("", "/")
