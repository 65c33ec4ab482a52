from __future__ import annotations

import logging
import os
from pathlib import Path
import subprocess
import sys
from urllib.parse import quote

from core.profiles.models import ServerProfile, ServerType
from core.redaction import redact_secret

MOUNT_TIMEOUT_SECONDS = 60
UNMOUNT_TIMEOUT_SECONDS = 30


class SmbMounter:
    """Mounts SMB shares with the operating system's own tools.

    macOS uses ``mount_smbfs`` with an ``smb://`` URL and ``diskutil unmount``;
    other POSIX systems use ``mount -t cifs`` and ``umount``.
    """

    def __init__(self, mount_root: Path, logger: logging.Logger, platform: str | None = None) -> None:
        self._mount_root = Path(mount_root)
        self._logger = logger
        self._platform = platform or sys.platform

    @property
    def mount_root(self) -> Path:
        return self._mount_root

    def mount_path_for(self, profile: ServerProfile) -> Path:
        folder = f"{profile.name.replace(' ', '_')}_{profile.share_name}"
        return self._mount_root / folder

    def share_url(self, profile: ServerProfile, password: str) -> str:
        url = "smb://"
        if profile.domain:
            url += f"{profile.domain};"
        url += f"{quote(profile.username, safe='')}:{quote(password, safe='')}@{profile.host}"
        if profile.port != ServerType.SMB.default_port:
            url += f":{profile.port}"
        return url + f"/{profile.share_name}"

    def mount(self, profile: ServerProfile, password: str) -> tuple[bool, str, Path]:
        target = self.mount_path_for(profile)
        if os.path.ismount(target):
            self._logger.info("Unmounting stale mount at %s", target)
            self.unmount(target)

        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as error:
            return False, str(error), target

        command = self._mount_command(profile, password, target)
        try:
            completed = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=MOUNT_TIMEOUT_SECONDS,
            )
        except subprocess.TimeoutExpired:
            return False, "mount timed out", target
        except OSError as error:
            return False, redact_secret(str(error), password), target

        if completed.returncode != 0:
            detail = (completed.stderr or completed.stdout or "").strip()
            if detail == "":
                detail = f"exit status {completed.returncode}"
            return False, redact_secret(detail, password), target

        self._logger.info("Mounted //%s/%s at %s", profile.host, profile.share_name, target)
        return True, "ok", target

    def unmount(self, mount_path: Path) -> bool:
        command = self._unmount_command(Path(mount_path))
        try:
            completed = subprocess.run(
                command,
                check=False,
                capture_output=True,
                text=True,
                timeout=UNMOUNT_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.TimeoutExpired) as error:
            self._logger.warning("Unmount of %s failed: %s", mount_path, error)
            return False

        if completed.returncode != 0:
            self._logger.warning("Unmount of %s failed: %s", mount_path, (completed.stderr or "").strip())
            return False

        self._logger.info("Unmounted %s", mount_path)
        return True

    def _mount_command(self, profile: ServerProfile, password: str, target: Path) -> list[str]:
        if self._platform == "darwin":
            return ["/sbin/mount_smbfs", self.share_url(profile, password), str(target)]

        options = [f"username={profile.username}", f"password={password}"]
        if profile.domain:
            options.append(f"domain={profile.domain}")
        if profile.port != ServerType.SMB.default_port:
            options.append(f"port={profile.port}")
        return [
            "mount",
            "-t",
            "cifs",
            f"//{profile.host}/{profile.share_name}",
            str(target),
            "-o",
            ",".join(options),
        ]

    def _unmount_command(self, mount_path: Path) -> list[str]:
        if self._platform == "darwin":
            return ["/usr/sbin/diskutil", "unmount", str(mount_path)]
        return ["umount", str(mount_path)]
