from __future__ import annotations

import asyncio
from dataclasses import dataclass
import os
from pathlib import Path
import uuid

import aioftp

from core.profiles.models import ServerProfile
from core.remote.paths import normalize_remote_path

CONNECT_TIMEOUT_SECONDS = 10.0
LOGIN_TIMEOUT_SECONDS = 15.0
LIST_TIMEOUT_SECONDS = 30.0
DOWNLOAD_TIMEOUT_SECONDS = 120.0
UPLOAD_TIMEOUT_SECONDS = 300.0


@dataclass(slots=True)
class FTPClient:
    profile: ServerProfile
    password: str

    async def test_connection(self) -> tuple[bool, str]:
        try:
            await asyncio.wait_for(self._login_only(), timeout=LOGIN_TIMEOUT_SECONDS)
            return True, "ok"
        except asyncio.TimeoutError:
            return False, "timed out"
        except Exception as error:
            return False, _describe(error)

    async def list_raw(self, remote_path: str) -> tuple[bool, str, str]:
        target = normalize_remote_path(remote_path)
        try:
            output = await asyncio.wait_for(self._list_raw(target), timeout=LIST_TIMEOUT_SECONDS)
            return True, "ok", output
        except asyncio.TimeoutError:
            return False, "timed out", ""
        except Exception as error:
            return False, _describe(error), ""

    async def download_file(self, remote_path: str, local_path: Path) -> tuple[bool, str, int]:
        source = normalize_remote_path(remote_path)
        target = Path(local_path)
        target.parent.mkdir(parents=True, exist_ok=True)
        temp_path = target.with_name(f"{target.name}.tmp-{uuid.uuid4().hex}")

        try:
            copied = await asyncio.wait_for(self._download(source, temp_path), timeout=DOWNLOAD_TIMEOUT_SECONDS)
            os.replace(temp_path, target)
            return True, "ok", copied
        except asyncio.TimeoutError:
            return False, "timed out", 0
        except Exception as error:
            return False, _describe(error), 0
        finally:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    pass

    async def upload_file(self, local_path: Path, remote_path: str) -> tuple[bool, str, int]:
        source = Path(local_path)
        if not source.exists() or not source.is_file():
            return False, "source file missing", 0

        target = normalize_remote_path(remote_path)
        try:
            copied = await asyncio.wait_for(self._upload(source, target), timeout=UPLOAD_TIMEOUT_SECONDS)
            return True, "ok", copied
        except asyncio.TimeoutError:
            return False, "timed out", 0
        except Exception as error:
            return False, _describe(error), 0

    async def _login_only(self) -> None:
        async with self._open_client():
            pass

    async def _list_raw(self, target: str) -> str:
        async with self._open_client() as client:
            stream = await client.get_stream("LIST " + target, "1xx", conn_type="A")
            payload = await stream.read()
            await stream.finish()
        return payload.decode("utf-8", errors="replace")

    async def _download(self, source: str, temp_path: Path) -> int:
        total = 0
        async with self._open_client() as client:
            async with client.download_stream(source) as stream:
                with temp_path.open("wb") as handle:
                    async for chunk in stream.iter_by_block():
                        total += len(chunk)
                        handle.write(chunk)
        return total

    async def _upload(self, source: Path, target: str) -> int:
        total = 0
        async with self._open_client() as client:
            async with client.upload_stream(target) as stream:
                with source.open("rb") as handle:
                    while True:
                        chunk = handle.read(65536)
                        if chunk == b"":
                            break
                        total += len(chunk)
                        await stream.write(chunk)
        return total

    def _open_client(self):
        return aioftp.Client.context(
            host=self.profile.host,
            port=self.profile.port,
            user=self.profile.username,
            password=self.password,
            connection_timeout=CONNECT_TIMEOUT_SECONDS,
            socket_timeout=CONNECT_TIMEOUT_SECONDS,
            path_timeout=CONNECT_TIMEOUT_SECONDS,
        )


def create_ftp_client(profile: ServerProfile, password: str) -> FTPClient:
    return FTPClient(profile=profile, password=password)


def _describe(error: Exception) -> str:
    message = str(error).strip()
    return f"{type(error).__name__}: {message}" if message else type(error).__name__
