from __future__ import annotations

from dataclasses import replace
from datetime import datetime, timezone
import logging
from typing import Callable
import uuid

from PySide6.QtCore import QObject, Signal

from core.profiles.credentials import CredentialService
from core.profiles.models import ServerProfile
from storage.server_store import ServerProfileStore


class ServerRegistry(QObject):
    servers_changed = Signal()

    def __init__(
        self,
        store: ServerProfileStore,
        credentials: CredentialService,
        logger: logging.Logger,
    ) -> None:
        super().__init__()
        self._store = store
        self._credentials = credentials
        self._logger = logger
        self._teardown: Callable[[ServerProfile], None] | None = None
        self._servers: list[ServerProfile] = store.load()
        self._logger.info("Loaded %s saved server(s)", len(self._servers))

    def set_teardown(self, callback: Callable[[ServerProfile], None] | None) -> None:
        self._teardown = callback

    def list_servers(self) -> list[ServerProfile]:
        return list(self._servers)

    def get_server(self, server_id: str | None) -> ServerProfile | None:
        if server_id is None:
            return None
        for server in self._servers:
            if server.id == server_id:
                return server
        return None

    def find_by_name(self, name: str) -> ServerProfile | None:
        wanted = name.strip().casefold()
        for server in self._servers:
            if server.name.casefold() == wanted:
                return server
        return None

    def add_server(self, profile: ServerProfile, password: str) -> ServerProfile:
        new_server = replace(profile, id=uuid.uuid4().hex)
        self._servers.append(new_server)
        self._persist()
        self._credentials.set_password(new_server, password)
        self._logger.info("Added %s server '%s' (%s)", new_server.server_type.value, new_server.name, new_server.display_host)
        self.servers_changed.emit()
        return new_server

    def update_server(self, profile: ServerProfile, password: str | None = None) -> bool:
        index = self._index_of(profile.id)
        if index is None:
            self._logger.warning("Ignoring update for unknown server id %s", profile.id)
            return False

        previous = self._servers[index]
        self._servers[index] = profile
        self._persist()

        if password:
            self._credentials.set_password(profile, password)
            if previous.account_key != profile.account_key:
                self._credentials.delete_password(previous)
        elif self._credentials.move_password(previous, profile):
            self._logger.info("Moved stored credentials for '%s' to its new account", profile.name)

        self.servers_changed.emit()
        return True

    def delete_server(self, profile: ServerProfile) -> bool:
        index = self._index_of(profile.id)
        if index is None:
            return False

        stored = self._servers[index]
        if self._teardown is not None:
            self._teardown(stored)

        del self._servers[index]
        self._credentials.delete_password(stored)
        self._persist()
        self._logger.info("Deleted server '%s'", stored.name)
        self.servers_changed.emit()
        return True

    def touch_last_connected(self, server_id: str) -> None:
        index = self._index_of(server_id)
        if index is None:
            return
        self._servers[index] = replace(self._servers[index], last_connected_at=datetime.now(timezone.utc))
        self._persist()
        self.servers_changed.emit()

    def _index_of(self, server_id: str | None) -> int | None:
        if server_id is None:
            return None
        for index, server in enumerate(self._servers):
            if server.id == server_id:
                return index
        return None

    def _persist(self) -> None:
        self._store.save(self._servers)
