from __future__ import annotations

import logging
from pathlib import Path
import time
from typing import Callable

import keyring
from keyring.backend import KeyringBackend
import keyring.errors
import pytest
from PySide6.QtCore import QCoreApplication, QObject, Signal

from core.config import AppConfig
from core.profiles.credentials import CredentialService
from core.profiles.models import ServerProfile, ServerType
from core.profiles.registry import ServerRegistry
from core.session.controller import SessionController
from i18n.i18n import initialize_i18n
from storage.server_store import ServerProfileStore


class MemoryKeyring(KeyringBackend):
    priority = 1

    def __init__(self) -> None:
        super().__init__()
        self.entries: dict[tuple[str, str], str] = {}

    def get_password(self, service: str, username: str) -> str | None:
        return self.entries.get((service, username))

    def set_password(self, service: str, username: str, password: str) -> None:
        self.entries[(service, username)] = password

    def delete_password(self, service: str, username: str) -> None:
        try:
            del self.entries[(service, username)]
        except KeyError:
            raise keyring.errors.PasswordDeleteError(username) from None


class InlineLauncher:
    def start(self, worker: QObject) -> None:
        worker.run()

    def wait_all(self, timeout_ms: int = 5000) -> None:
        pass


class ManualLauncher:
    """Holds workers until a test runs them, to observe in-flight states."""

    def __init__(self) -> None:
        self.pending: list[QObject] = []

    def start(self, worker: QObject) -> None:
        self.pending.append(worker)

    def run_next(self) -> None:
        self.pending.pop(0).run()

    def run_all(self) -> None:
        while self.pending:
            self.run_next()

    def wait_all(self, timeout_ms: int = 5000) -> None:
        pass


class FakeFtpClient:
    def __init__(self, server: FakeFtpServer, password: str) -> None:
        self.server = server
        self.password = password

    async def test_connection(self) -> tuple[bool, str]:
        if self.password != self.server.password:
            return False, f"530 Login incorrect for password {self.password}"
        return True, "ok"

    async def list_raw(self, remote_path: str) -> tuple[bool, str, str]:
        self.server.listed.append(remote_path)
        if remote_path not in self.server.listings:
            return False, "550 No such directory", ""
        return True, "ok", self.server.listings[remote_path]

    async def download_file(self, remote_path: str, local_path: Path) -> tuple[bool, str, int]:
        if remote_path not in self.server.files:
            return False, "550 No such file", 0
        payload = self.server.files[remote_path]
        local_path.parent.mkdir(parents=True, exist_ok=True)
        local_path.write_bytes(payload)
        return True, "ok", len(payload)

    async def upload_file(self, local_path: Path, remote_path: str) -> tuple[bool, str, int]:
        payload = local_path.read_bytes()
        self.server.files[remote_path] = payload
        return True, "ok", len(payload)


class FakeFtpServer:
    def __init__(self, password: str = "secret") -> None:
        self.password = password
        self.listings: dict[str, str] = {"/": ""}
        self.files: dict[str, bytes] = {}
        self.listed: list[str] = []

    def client_factory(self, profile: ServerProfile, password: str) -> FakeFtpClient:
        return FakeFtpClient(self, password)


class FakeMounter:
    def __init__(self, mount_root: Path) -> None:
        self.mount_root = mount_root
        self.fail_with: str | None = None
        self.mounted: list[Path] = []
        self.unmounted: list[Path] = []

    def mount_path_for(self, profile: ServerProfile) -> Path:
        return self.mount_root / f"{profile.name.replace(' ', '_')}_{profile.share_name}"

    def mount(self, profile: ServerProfile, password: str) -> tuple[bool, str, Path]:
        target = self.mount_path_for(profile)
        if self.fail_with is not None:
            return False, self.fail_with, target
        target.mkdir(parents=True, exist_ok=True)
        self.mounted.append(target)
        return True, "ok", target

    def unmount(self, mount_path: Path) -> bool:
        self.unmounted.append(mount_path)
        return True


class FakeRdpProcess(QObject):
    terminated = Signal(object)

    def __init__(self, server_key: str, program: str, arguments: list[str], exit_on_terminate: bool = True) -> None:
        super().__init__()
        self.server_key = server_key
        self.program = program
        self.arguments = arguments
        self.exit_on_terminate = exit_on_terminate
        self.terminate_calls = 0
        self.wait_calls = 0

    def terminate(self) -> None:
        self.terminate_calls += 1
        if self.exit_on_terminate:
            self.exit()

    def wait_for_exit(self, timeout_ms: int) -> bool:
        self.wait_calls += 1
        self.exit()
        return True

    def exit(self) -> None:
        self.terminated.emit(self)


class FakeRdpLauncher:
    def __init__(self) -> None:
        self.launched: list[FakeRdpProcess] = []
        self.fail_with: str | None = None
        self.exit_on_terminate = True

    def launch(self, server_key: str, program: str, arguments: list[str]) -> FakeRdpProcess:
        if self.fail_with is not None:
            raise OSError(self.fail_with)
        process = FakeRdpProcess(server_key, program, arguments, exit_on_terminate=self.exit_on_terminate)
        self.launched.append(process)
        return process


def wait_until(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Pump the Qt event loop until ``predicate`` holds or ``timeout`` expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        QCoreApplication.processEvents()
        if predicate():
            return True
        time.sleep(0.01)
    QCoreApplication.processEvents()
    return predicate()


@pytest.fixture(scope="session", autouse=True)
def qt_app() -> QCoreApplication:
    app = QCoreApplication.instance() or QCoreApplication([])
    initialize_i18n("en")
    return app


@pytest.fixture(autouse=True)
def memory_keyring() -> MemoryKeyring:
    previous = keyring.get_keyring()
    backend = MemoryKeyring()
    keyring.set_keyring(backend)
    yield backend
    keyring.set_keyring(previous)


@pytest.fixture
def logger() -> logging.Logger:
    return logging.getLogger("remoteconnect.tests")


@pytest.fixture
def credentials() -> CredentialService:
    return CredentialService()


@pytest.fixture
def store(tmp_path: Path, logger: logging.Logger) -> ServerProfileStore:
    return ServerProfileStore(path=tmp_path / "servers.json", logger=logger)


@pytest.fixture
def registry(store: ServerProfileStore, credentials: CredentialService, logger: logging.Logger) -> ServerRegistry:
    return ServerRegistry(store=store, credentials=credentials, logger=logger)


@pytest.fixture
def config(tmp_path: Path) -> AppConfig:
    app_config = AppConfig(config_path=tmp_path / "config.json")
    app_config.set_download_dir(str(tmp_path / "downloads"))
    app_config.set_smb_mount_root(str(tmp_path / "mounts"))
    return app_config


@pytest.fixture
def ftp_server() -> FakeFtpServer:
    return FakeFtpServer()


@pytest.fixture
def mounter(tmp_path: Path) -> FakeMounter:
    return FakeMounter(tmp_path / "mounts")


@pytest.fixture
def rdp_launcher() -> FakeRdpLauncher:
    return FakeRdpLauncher()


@pytest.fixture
def make_controller(registry, credentials, config, logger, ftp_server, mounter, rdp_launcher):
    def factory(launcher=None, rdp_client: str | None = "/usr/bin/xfreerdp") -> SessionController:
        return SessionController(
            registry=registry,
            credentials=credentials,
            config=config,
            logger=logger,
            ftp_client_factory=ftp_server.client_factory,
            mounter=mounter,
            rdp_launcher=rdp_launcher,
            rdp_client_locator=lambda: rdp_client,
            launcher=launcher or InlineLauncher(),
        )

    return factory


def ftp_profile(**overrides) -> ServerProfile:
    values = {"name": "Files", "server_type": ServerType.FTP, "host": "ftp.example.com", "username": "alice"}
    values.update(overrides)
    return ServerProfile(**values)


def smb_profile(**overrides) -> ServerProfile:
    values = {
        "name": "Office NAS",
        "server_type": ServerType.SMB,
        "host": "nas.local",
        "username": "bob",
        "share_name": "public",
    }
    values.update(overrides)
    return ServerProfile(**values)


def rdp_profile(**overrides) -> ServerProfile:
    values = {"name": "Build box", "server_type": ServerType.RDP, "host": "10.0.0.5", "username": "admin"}
    values.update(overrides)
    return ServerProfile(**values)
