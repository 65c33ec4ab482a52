from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Sequence

from PySide6.QtCore import QObject, QProcess, Signal

from core.profiles.models import ServerProfile, ServerType

RDP_CLIENT_CANDIDATES = (
    "/opt/homebrew/bin/sdl-freerdp",
    "/usr/local/bin/sdl-freerdp",
    "/usr/bin/sdl-freerdp",
    "/usr/bin/xfreerdp3",
    "/usr/bin/xfreerdp",
)

START_TIMEOUT_MS = 5000
STOP_TIMEOUT_MS = 3000


def find_rdp_client(candidates: Sequence[str] = RDP_CLIENT_CANDIDATES) -> str | None:
    for candidate in candidates:
        path = Path(candidate)
        if path.is_file() and os.access(path, os.X_OK):
            return str(path)
    return None


def build_rdp_arguments(profile: ServerProfile, password: str) -> list[str]:
    arguments = [f"/v:{profile.host}"]
    if profile.port != ServerType.RDP.default_port:
        arguments.append(f"/port:{profile.port}")
    arguments.append(f"/u:{profile.username}")
    arguments.append(f"/p:{password}")
    if profile.domain:
        arguments.append(f"/d:{profile.domain}")
    arguments.extend(["/cert:ignore", "-wallpaper", "-themes", f"/t:{profile.name}"])
    return arguments


class RdpProcess(QObject):
    """One running FreeRDP client bound to a server key."""

    terminated = Signal(object)

    def __init__(self, server_key: str, logger: logging.Logger) -> None:
        super().__init__()
        self.server_key = server_key
        self._logger = logger
        self._process = QProcess(self)
        self._process.setProcessChannelMode(QProcess.ProcessChannelMode.MergedChannels)
        self._process.finished.connect(self._on_finished)
        self._process.errorOccurred.connect(self._on_error)
        self._process.readyReadStandardOutput.connect(self._drain_output)
        self._reported = False

    def start(self, program: str, arguments: list[str]) -> None:
        self._process.start(program, arguments)
        if not self._process.waitForStarted(START_TIMEOUT_MS):
            raise OSError(self._process.errorString())

    def terminate(self) -> None:
        if self._process.state() != QProcess.ProcessState.NotRunning:
            self._process.terminate()

    def wait_for_exit(self, timeout_ms: int) -> bool:
        if self._process.state() == QProcess.ProcessState.NotRunning:
            return True
        return self._process.waitForFinished(timeout_ms)

    def _drain_output(self) -> None:
        # Client output may echo the command line; discard it unread.
        self._process.readAllStandardOutput()

    def _on_finished(self, exit_code: int, _exit_status: QProcess.ExitStatus) -> None:
        self._logger.info("RDP client for %s exited with code %s", self.server_key, exit_code)
        self._report_terminated()

    def _on_error(self, error: QProcess.ProcessError) -> None:
        if error == QProcess.ProcessError.FailedToStart:
            return
        if self._process.state() == QProcess.ProcessState.NotRunning:
            self._report_terminated()

    def _report_terminated(self) -> None:
        if self._reported:
            return
        self._reported = True
        self.terminated.emit(self)


class RdpLauncher:
    def __init__(self, logger: logging.Logger) -> None:
        self._logger = logger

    def launch(self, server_key: str, program: str, arguments: list[str]) -> RdpProcess:
        process = RdpProcess(server_key=server_key, logger=self._logger)
        process.start(program, arguments)
        return process
