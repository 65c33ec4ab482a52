from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable

from PySide6.QtCore import QObject, Signal, Slot

from core.config import AppConfig
from core.profiles.credentials import CredentialService
from core.profiles.models import ServerProfile, ServerType
from core.profiles.registry import ServerRegistry
from core.redaction import redact_secret
from core.remote.ftp_client import create_ftp_client
from core.remote.models import RemoteFileEntry
from core.remote.paths import is_root_path, join_remote, parent_path
from core.remote.rdp_client import STOP_TIMEOUT_MS, RdpLauncher, RdpProcess, build_rdp_arguments, find_rdp_client
from core.remote.smb_mount import SmbMounter
from core.remote.sorting import sort_entries
from core.session.errors import (
    AlreadyActive,
    ConnectionFailed,
    CredentialsMissing,
    SessionError,
    ToolNotInstalled,
    TransferFailed,
)
from core.session.history import NavigationHistory
from core.session.launcher import WorkerLauncher
from core.session.workers import (
    ConnectOutcome,
    FtpListingWorker,
    FtpLoginWorker,
    FtpTransferWorker,
    ListingOutcome,
    SmbListingWorker,
    SmbMountWorker,
    UnmountWorker,
)
from core.transfers.transfer_models import TransferDirection, TransferOutcome, TransferTask
from core.transfers.transfer_queue import TransferQueue
from i18n.i18n import tr


class SessionController(QObject):
    """Owns the primary FTP/SMB session, the RDP sessions and the transfer queue.

    All state lives on the thread that created the controller. Blocking work
    runs in workers started through ``WorkerLauncher``; their ``finished``
    signals are delivered back to the slots below, which are the only places
    that apply results. Observers re-read the public properties whenever
    ``state_changed`` fires.
    """

    state_changed = Signal()
    connection_changed = Signal(bool)
    error_raised = Signal(object)
    open_path_requested = Signal(str)
    reveal_path_requested = Signal(str)

    def __init__(
        self,
        registry: ServerRegistry,
        credentials: CredentialService,
        config: AppConfig,
        logger: logging.Logger,
        ftp_client_factory: Callable[[ServerProfile, str], object] = create_ftp_client,
        mounter: SmbMounter | None = None,
        rdp_launcher: RdpLauncher | None = None,
        rdp_client_locator: Callable[[], str | None] = find_rdp_client,
        launcher: WorkerLauncher | None = None,
    ) -> None:
        super().__init__()
        self._registry = registry
        self._credentials = credentials
        self._config = config
        self._logger = logger
        self._ftp_client_factory = ftp_client_factory
        self._mounter = mounter or SmbMounter(Path(config.get_smb_mount_root()), logger)
        self._rdp_launcher = rdp_launcher or RdpLauncher(logger)
        self._rdp_client_locator = rdp_client_locator
        self._launcher = launcher or WorkerLauncher()

        self._connected_server_id: str | None = None
        self._current_path = ""
        self._files: list[RemoteFileEntry] = []
        self._is_connecting = False
        self._is_loading = False
        self._status_message: str | None = None
        self._error_message: str | None = None
        self._last_error: SessionError | None = None
        self._history = NavigationHistory()
        self._transfers = TransferQueue()
        self._rdp_sessions: dict[str, RdpProcess] = {}
        # Terminated clients stay referenced until their exit is reported.
        self._stopping_rdp: set[RdpProcess] = set()
        self._mount_path: Path | None = None
        self._pending_unmounts: set[Path] = set()
        self._deferred_smb_connect: tuple[ServerProfile, str] | None = None
        self._listing_generation = 0

        self._registry.set_teardown(self._teardown_server)

    # Projections

    @property
    def servers(self) -> list[ServerProfile]:
        return self._registry.list_servers()

    @property
    def connected_server(self) -> ServerProfile | None:
        return self._registry.get_server(self._connected_server_id)

    @property
    def is_connected(self) -> bool:
        return self._connected_server_id is not None

    @property
    def current_path(self) -> str:
        return self._current_path

    @property
    def files(self) -> list[RemoteFileEntry]:
        return list(self._files)

    @property
    def sorted_files(self) -> list[RemoteFileEntry]:
        return sort_entries(
            self._files,
            sort_by=self._config.get_sort_by(),
            ascending=self._config.get_sort_ascending(),
            show_hidden=self._config.get_show_hidden_files(),
        )

    @property
    def is_connecting(self) -> bool:
        return self._is_connecting

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def status_message(self) -> str | None:
        return self._status_message

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def last_error(self) -> SessionError | None:
        return self._last_error

    @property
    def history(self) -> list[str]:
        return self._history.entries

    @property
    def transfers(self) -> list[TransferTask]:
        return self._transfers.tasks()

    @property
    def active_rdp_sessions(self) -> frozenset[str]:
        return frozenset(self._rdp_sessions)

    @property
    def stopping_rdp_sessions(self) -> frozenset[str]:
        return frozenset(process.server_key for process in self._stopping_rdp)

    @property
    def mount_path(self) -> Path | None:
        return self._mount_path

    @property
    def can_go_back(self) -> bool:
        return self._history.can_go_back

    @property
    def can_go_forward(self) -> bool:
        return self._history.can_go_forward

    @property
    def can_go_up(self) -> bool:
        return self.is_connected and not is_root_path(self._current_path)

    def is_rdp_active(self, profile: ServerProfile) -> bool:
        return profile.server_key in self._rdp_sessions

    # Connection lifecycle

    def connect(self, profile: ServerProfile) -> None:
        self._begin_action()

        if profile.server_type == ServerType.RDP:
            self._connect_rdp(profile)
            return

        if self._is_connecting:
            self._fail(AlreadyActive(tr("session.error.connect_in_progress")))
            return

        password = self._credentials.get_password(profile)
        if password is None:
            self._fail(CredentialsMissing(tr("session.error.credentials_missing", name=profile.name)))
            return

        if self._connected_server_id is not None:
            self._close_primary()

        self._is_connecting = True
        self._status_message = tr("session.status.connecting", protocol=profile.server_type.value)
        self._logger.info("Connecting to %s server '%s' (%s)", profile.server_type.value, profile.name, profile.display_host)

        if profile.server_type == ServerType.FTP:
            worker = FtpLoginWorker(
                profile=profile,
                client=self._ftp_client_factory(profile, password),
                logger=self._logger,
            )
            worker.finished.connect(self._on_connect_finished)
            self._launcher.start(worker)
        elif self._mounter.mount_path_for(profile) in self._pending_unmounts:
            self._logger.info("Waiting for the previous unmount of '%s' before mounting", profile.name)
            self._deferred_smb_connect = (profile, password)
        else:
            self._start_smb_mount(profile, password)

        self._emit_state()

    def disconnect(self) -> None:
        self._begin_action()
        self._close_primary()
        self._emit_state()

    def disconnect_rdp(self, profile: ServerProfile) -> None:
        self._begin_action()
        if self._stop_rdp(profile.server_key):
            self._status_message = tr("session.status.rdp_stopped", name=profile.name)
        self._emit_state()

    def shutdown(self) -> None:
        for server_key in list(self._rdp_sessions):
            self._stop_rdp(server_key)
        for process in list(self._stopping_rdp):
            if not process.wait_for_exit(STOP_TIMEOUT_MS):
                self._logger.warning("RDP client for %s did not exit in time", process.server_key)

        if self._mount_path is not None:
            self._mounter.unmount(self._mount_path)
            self._mount_path = None

        self._launcher.wait_all()

    def _start_smb_mount(self, profile: ServerProfile, password: str) -> None:
        worker = SmbMountWorker(profile=profile, password=password, mounter=self._mounter, logger=self._logger)
        worker.finished.connect(self._on_connect_finished)
        self._launcher.start(worker)

    @Slot(object)
    def _on_connect_finished(self, outcome: ConnectOutcome) -> None:
        self._is_connecting = False

        if not outcome.success:
            self._fail(outcome.error)
            return

        server = self._registry.get_server(outcome.server_id)
        if server is None:
            # Profile deleted while connecting.
            if outcome.mount_path is not None:
                self._start_unmount(outcome.mount_path)
            self._emit_state()
            return

        self._connected_server_id = server.id
        self._mount_path = outcome.mount_path
        self._current_path = (server.default_path or "/") if server.server_type == ServerType.FTP else ""
        self._history.reset(self._current_path)
        self._status_message = tr("session.status.connected", name=server.name)
        self._logger.info("Connected to '%s'", server.name)

        self._registry.touch_last_connected(server.id)
        self.connection_changed.emit(True)
        self._start_listing()
        self._emit_state()

    def _close_primary(self) -> None:
        if self._connected_server_id is None:
            return

        server = self.connected_server
        if self._mount_path is not None:
            self._start_unmount(self._mount_path)
            self._mount_path = None

        self._connected_server_id = None
        self._files = []
        self._current_path = ""
        self._history.reset()
        self._listing_generation += 1
        self._is_loading = False
        self._logger.info("Disconnected from '%s'", server.name if server else "server")
        self.connection_changed.emit(False)

    def _start_unmount(self, mount_path: Path) -> None:
        self._pending_unmounts.add(mount_path)
        worker = UnmountWorker(mount_path=mount_path, mounter=self._mounter)
        worker.finished.connect(self._on_unmount_finished)
        self._launcher.start(worker)

    @Slot(object)
    def _on_unmount_finished(self, mount_path: Path) -> None:
        self._pending_unmounts.discard(mount_path)

        deferred = self._deferred_smb_connect
        if deferred is not None and self._mounter.mount_path_for(deferred[0]) == mount_path:
            self._deferred_smb_connect = None
            self._start_smb_mount(*deferred)

    def _connect_rdp(self, profile: ServerProfile) -> None:
        password = self._credentials.get_password(profile)
        if password is None:
            self._fail(CredentialsMissing(tr("session.error.credentials_missing", name=profile.name)))
            return

        server_key = profile.server_key
        if server_key in self._rdp_sessions:
            self._fail(AlreadyActive(tr("session.error.rdp_already_connected", host=profile.host)))
            return

        program = self._rdp_client_locator()
        if program is None:
            self._fail(ToolNotInstalled(tr("session.error.rdp_client_missing")))
            return

        if profile.id is not None:
            self._registry.touch_last_connected(profile.id)

        try:
            process = self._rdp_launcher.launch(server_key, program, build_rdp_arguments(profile, password))
        except OSError as error:
            self._fail(ConnectionFailed(tr("session.error.rdp_launch_failed", error=redact_secret(str(error), password))))
            return

        process.terminated.connect(self._on_rdp_terminated)
        self._rdp_sessions[server_key] = process
        self._status_message = tr("session.status.rdp_started", name=profile.name)
        self._logger.info("RDP session started for '%s' (%s)", profile.name, profile.display_host)
        self._emit_state()

    def _stop_rdp(self, server_key: str) -> bool:
        process = self._rdp_sessions.pop(server_key, None)
        if process is None:
            return False
        self._stopping_rdp.add(process)
        process.terminate()
        return True

    @Slot(object)
    def _on_rdp_terminated(self, process: RdpProcess) -> None:
        self._stopping_rdp.discard(process)
        if self._rdp_sessions.get(process.server_key) is process:
            del self._rdp_sessions[process.server_key]
            self._logger.info("RDP session for %s ended", process.server_key)
        self._emit_state()
        process.deleteLater()

    def _teardown_server(self, profile: ServerProfile) -> None:
        if self._connected_server_id == profile.id:
            self._close_primary()
        if profile.server_type == ServerType.RDP:
            self._stop_rdp(profile.server_key)
        self._emit_state()

    # Listing and navigation

    def load_files(self) -> None:
        self._begin_action()
        self._start_listing()
        self._emit_state()

    def navigate_to(self, path: str) -> None:
        self._begin_action()
        if not self.is_connected:
            self._emit_state()
            return
        self._history.push(path)
        self._current_path = path
        self._start_listing()
        self._emit_state()

    def go_back(self) -> None:
        self._begin_action()
        path = self._history.back()
        if path is None:
            self._status_message = tr("session.status.cannot_go_back")
        else:
            self._current_path = path
            self._start_listing()
        self._emit_state()

    def go_forward(self) -> None:
        self._begin_action()
        path = self._history.forward()
        if path is None:
            self._status_message = tr("session.status.cannot_go_forward")
        else:
            self._current_path = path
            self._start_listing()
        self._emit_state()

    def go_up(self) -> None:
        if not self.can_go_up:
            self._begin_action()
            self._emit_state()
            return
        self.navigate_to(parent_path(self._current_path))

    def open_item(self, entry: RemoteFileEntry) -> None:
        if entry.is_directory:
            self.navigate_to(join_remote(self._current_path, entry.name))
            return

        self._begin_action()
        server = self.connected_server
        if server is not None and server.server_type == ServerType.SMB:
            self.open_path_requested.emit(entry.path)
        self._emit_state()

    def _start_listing(self) -> None:
        server = self.connected_server
        if server is None or not server.server_type.has_file_browser:
            return

        # Any listing still in flight is for a path that is no longer current.
        self._listing_generation += 1
        if server.server_type == ServerType.FTP:
            password = self._credentials.get_password(server)
            if password is None:
                self._is_loading = False
                self._fail(CredentialsMissing(tr("session.error.credentials_missing", name=server.name)))
                return
            worker = FtpListingWorker(
                generation=self._listing_generation,
                path=self._current_path,
                client=self._ftp_client_factory(server, password),
                logger=self._logger,
            )
        else:
            if self._mount_path is None:
                self._is_loading = False
                return
            worker = SmbListingWorker(
                generation=self._listing_generation,
                path=self._current_path,
                mount_root=self._mount_path,
                logger=self._logger,
            )

        self._is_loading = True
        worker.finished.connect(self._on_listing_finished)
        self._launcher.start(worker)

    @Slot(object)
    def _on_listing_finished(self, outcome: ListingOutcome) -> None:
        if outcome.generation != self._listing_generation:
            return

        self._is_loading = False
        if outcome.error is not None:
            self._files = []
            self._fail(outcome.error)
            return

        self._files = outcome.entries
        self._emit_state()

    # Transfers

    def download_file(self, entry: RemoteFileEntry) -> None:
        self._begin_action()
        server = self.connected_server
        if server is None or entry.is_directory:
            self._emit_state()
            return

        if server.server_type == ServerType.SMB:
            self.reveal_path_requested.emit(entry.path)
            self._emit_state()
            return

        password = self._credentials.get_password(server)
        if password is None:
            self._fail(CredentialsMissing(tr("session.error.credentials_missing", name=server.name)))
            return

        destination = Path(self._config.get_download_dir()) / entry.name
        task = TransferTask(
            source_path=entry.path,
            destination_path=str(destination),
            file_name=entry.name,
            direction=TransferDirection.DOWNLOAD,
            server_id=server.id,
            total_bytes=entry.size_bytes,
        )
        self._start_transfer(task, self._ftp_client_factory(server, password))

    def upload_file(self, local_path: Path | str) -> None:
        self._begin_action()
        server = self.connected_server
        if server is None or server.server_type != ServerType.FTP:
            self._emit_state()
            return

        password = self._credentials.get_password(server)
        if password is None:
            self._fail(CredentialsMissing(tr("session.error.credentials_missing", name=server.name)))
            return

        source = Path(local_path)
        try:
            size = source.stat().st_size
        except OSError:
            size = 0

        task = TransferTask(
            source_path=str(source),
            destination_path=join_remote(self._current_path or "/", source.name),
            file_name=source.name,
            direction=TransferDirection.UPLOAD,
            server_id=server.id,
            total_bytes=size,
        )

        if not source.is_file():
            self._transfers.enqueue(task)
            self._transfers.mark_in_progress(task.id)
            self._transfers.mark_failed(task.id, tr("transfers.error.upload_failed"))
            self._fail(TransferFailed(tr("transfers.error.source_missing", path=str(source))))
            return

        self._start_transfer(task, self._ftp_client_factory(server, password))

    def clear_completed_transfers(self) -> None:
        self._begin_action()
        removed = self._transfers.clear_completed()
        if removed:
            self._logger.info("Cleared %s finished transfer(s)", removed)
        self._emit_state()

    def _start_transfer(self, task: TransferTask, client) -> None:
        self._transfers.enqueue(task)
        self._transfers.mark_in_progress(task.id)
        self._logger.info("Starting %s of %s", task.direction.value, task.file_name)

        worker = FtpTransferWorker(
            task_id=task.id,
            direction=task.direction,
            source=task.source_path,
            destination=task.destination_path,
            client=client,
            logger=self._logger,
        )
        worker.finished.connect(self._on_transfer_finished)
        self._emit_state()
        self._launcher.start(worker)

    @Slot(object)
    def _on_transfer_finished(self, outcome: TransferOutcome) -> None:
        task = self._transfers.get(outcome.task_id)
        if task is None:
            return

        if not outcome.success:
            self._transfers.mark_failed(task.id, outcome.message)
            self._fail(TransferFailed(tr("transfers.error.task_failed", name=task.file_name, error=outcome.message)))
            return

        self._transfers.mark_completed(task.id)
        self._logger.info("Finished %s of %s", task.direction.value, task.file_name)

        if task.direction == TransferDirection.DOWNLOAD:
            self.open_path_requested.emit(task.destination_path)
        elif task.server_id == self._connected_server_id:
            self._start_listing()
        self._emit_state()

    # Messages

    def _begin_action(self) -> None:
        self._status_message = None
        self._error_message = None
        self._last_error = None

    def _fail(self, error: SessionError | None) -> None:
        if error is None:
            error = SessionError(tr("session.error.unknown"))
        self._last_error = error
        self._error_message = str(error)
        self._logger.warning("%s: %s", type(error).__name__, error)
        self.error_raised.emit(error)
        self._emit_state()

    def _emit_state(self) -> None:
        self.state_changed.emit()
