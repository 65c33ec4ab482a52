from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any


class ServerType(str, Enum):
    FTP = "FTP"
    SMB = "SMB"
    RDP = "RDP"

    @property
    def default_port(self) -> int:
        return _DEFAULT_PORTS[self]

    @property
    def has_file_browser(self) -> bool:
        return self is not ServerType.RDP


_DEFAULT_PORTS = {
    ServerType.FTP: 21,
    ServerType.SMB: 445,
    ServerType.RDP: 3389,
}


@dataclass(slots=True)
class ServerProfile:
    name: str
    server_type: ServerType
    host: str
    username: str
    port: int | None = None
    share_name: str = ""
    domain: str = ""
    default_path: str = "/"
    auto_connect: bool = False
    last_connected_at: datetime | None = None
    id: str | None = None

    def __post_init__(self) -> None:
        self.server_type = ServerType(self.server_type)
        if self.port is None:
            self.port = self.server_type.default_port

    @property
    def display_host(self) -> str:
        if self.port == self.server_type.default_port:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def server_key(self) -> str:
        return f"{self.server_type.value}:{self.host}:{self.port}"

    @property
    def account_key(self) -> str:
        return f"{self.server_type.value}:{self.username}@{self.host}:{self.port}"

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "server_type": self.server_type.value,
            "host": self.host,
            "port": self.port,
            "username": self.username,
            "share_name": self.share_name,
            "domain": self.domain,
            "default_path": self.default_path,
            "auto_connect": self.auto_connect,
            "last_connected_at": self.last_connected_at.isoformat() if self.last_connected_at else None,
        }

    @classmethod
    def from_dict(cls, payload: dict[str, Any]) -> ServerProfile:
        last_connected_raw = payload.get("last_connected_at")
        last_connected_at: datetime | None = None
        if isinstance(last_connected_raw, str) and last_connected_raw.strip() != "":
            try:
                last_connected_at = datetime.fromisoformat(last_connected_raw)
            except ValueError:
                last_connected_at = None

        port_raw = payload.get("port")
        return cls(
            id=str(payload["id"]) if payload.get("id") is not None else None,
            name=str(payload["name"]),
            server_type=ServerType(str(payload["server_type"]).upper()),
            host=str(payload["host"]),
            port=int(port_raw) if port_raw is not None else None,
            username=str(payload.get("username", "")),
            share_name=str(payload.get("share_name", "")),
            domain=str(payload.get("domain", "")),
            default_path=str(payload.get("default_path", "/")),
            auto_connect=bool(payload.get("auto_connect", False)),
            last_connected_at=last_connected_at,
        )
