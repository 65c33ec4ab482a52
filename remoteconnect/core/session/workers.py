from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
import logging
from pathlib import Path

from PySide6.QtCore import QObject, Signal, Slot

from core.profiles.models import ServerProfile
from core.redaction import redact_secret
from core.remote.ftp_listing import parse_ftp_listing
from core.remote.models import RemoteFileEntry
from core.remote.smb_listing import list_local_directory
from core.remote.smb_mount import SmbMounter
from core.session.errors import ConnectionFailed, ListingFailed, MountFailed, SessionError
from core.transfers.transfer_models import TransferDirection, TransferOutcome
from i18n.i18n import tr


@dataclass(slots=True)
class ConnectOutcome:
    server_id: str
    error: SessionError | None = None
    mount_path: Path | None = None

    @property
    def success(self) -> bool:
        return self.error is None


@dataclass(slots=True)
class ListingOutcome:
    generation: int
    path: str
    entries: list[RemoteFileEntry] = field(default_factory=list)
    error: SessionError | None = None


class FtpLoginWorker(QObject):
    finished = Signal(object)

    def __init__(self, profile: ServerProfile, client, logger: logging.Logger) -> None:
        super().__init__()
        self._profile = profile
        self._client = client
        self._logger = logger

    @Slot()
    def run(self) -> None:
        try:
            success, message = asyncio.run(self._client.test_connection())
        except Exception as error:
            success, message = False, str(error)

        if success:
            self.finished.emit(ConnectOutcome(server_id=self._profile.id))
            return

        self._logger.warning(
            "FTP login check for %s failed: %s",
            self._profile.display_host,
            redact_secret(message, self._client.password),
        )
        self.finished.emit(
            ConnectOutcome(server_id=self._profile.id, error=ConnectionFailed(tr("session.error.ftp_failed")))
        )


class SmbMountWorker(QObject):
    finished = Signal(object)

    def __init__(self, profile: ServerProfile, password: str, mounter: SmbMounter, logger: logging.Logger) -> None:
        super().__init__()
        self._profile = profile
        self._password = password
        self._mounter = mounter
        self._logger = logger

    @Slot()
    def run(self) -> None:
        try:
            success, message, mount_path = self._mounter.mount(self._profile, self._password)
        except Exception as error:
            success, message, mount_path = False, redact_secret(str(error), self._password), None

        if success:
            self.finished.emit(ConnectOutcome(server_id=self._profile.id, mount_path=mount_path))
            return

        self._logger.warning("SMB mount for %s failed: %s", self._profile.display_host, message)
        self.finished.emit(
            ConnectOutcome(
                server_id=self._profile.id,
                error=MountFailed(tr("session.error.smb_failed", error=message)),
            )
        )


class UnmountWorker(QObject):
    finished = Signal(object)

    def __init__(self, mount_path: Path, mounter: SmbMounter) -> None:
        super().__init__()
        self._mount_path = mount_path
        self._mounter = mounter

    @Slot()
    def run(self) -> None:
        try:
            self._mounter.unmount(self._mount_path)
        finally:
            self.finished.emit(self._mount_path)


class FtpListingWorker(QObject):
    finished = Signal(object)

    def __init__(self, generation: int, path: str, client, logger: logging.Logger) -> None:
        super().__init__()
        self._generation = generation
        self._path = path
        self._client = client
        self._logger = logger

    @Slot()
    def run(self) -> None:
        base_path = self._path if self._path.startswith("/") else f"/{self._path}"
        try:
            success, message, output = asyncio.run(self._client.list_raw(base_path))
        except Exception as error:
            success, message, output = False, str(error), ""

        if not success:
            self._logger.warning("FTP listing of %s failed: %s", base_path, redact_secret(message, self._client.password))
            self.finished.emit(
                ListingOutcome(
                    generation=self._generation,
                    path=self._path,
                    error=ListingFailed(tr("session.error.listing_failed", error=tr("session.error.ftp_listing"))),
                )
            )
            return

        entries = parse_ftp_listing(output, base_path.rstrip("/") or "/")
        self.finished.emit(ListingOutcome(generation=self._generation, path=self._path, entries=entries))


class SmbListingWorker(QObject):
    finished = Signal(object)

    def __init__(self, generation: int, path: str, mount_root: Path, logger: logging.Logger) -> None:
        super().__init__()
        self._generation = generation
        self._path = path
        self._mount_root = mount_root
        self._logger = logger

    @Slot()
    def run(self) -> None:
        try:
            entries = list_local_directory(self._mount_root, self._path)
        except OSError as error:
            self._logger.warning("Listing of %s failed: %s", self._mount_root / self._path, error)
            self.finished.emit(
                ListingOutcome(
                    generation=self._generation,
                    path=self._path,
                    error=ListingFailed(tr("session.error.listing_failed", error=error.strerror or str(error))),
                )
            )
            return

        self.finished.emit(ListingOutcome(generation=self._generation, path=self._path, entries=entries))


class FtpTransferWorker(QObject):
    finished = Signal(object)

    def __init__(
        self,
        task_id: str,
        direction: TransferDirection,
        source: str,
        destination: str,
        client,
        logger: logging.Logger,
    ) -> None:
        super().__init__()
        self._task_id = task_id
        self._direction = direction
        self._source = source
        self._destination = destination
        self._client = client
        self._logger = logger

    @Slot()
    def run(self) -> None:
        try:
            success, message, copied = asyncio.run(self._execute())
        except Exception as error:
            success, message, copied = False, str(error), 0

        if success:
            self.finished.emit(TransferOutcome(task_id=self._task_id, success=True, bytes_copied=copied, message="ok"))
            return

        self._logger.warning(
            "FTP %s of %s failed: %s",
            self._direction.value,
            self._source,
            redact_secret(message, self._client.password),
        )
        generic_key = "transfers.error.upload_failed" if self._direction == TransferDirection.UPLOAD else "transfers.error.download_failed"
        self.finished.emit(TransferOutcome(task_id=self._task_id, success=False, bytes_copied=0, message=tr(generic_key)))

    async def _execute(self) -> tuple[bool, str, int]:
        if self._direction == TransferDirection.UPLOAD:
            return await self._client.upload_file(Path(self._source), self._destination)
        return await self._client.download_file(self._source, Path(self._destination))
