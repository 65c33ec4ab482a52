from __future__ import annotations

from dataclasses import replace
import json
import logging

from core.profiles.credentials import CredentialService
from core.profiles.registry import ServerRegistry
from storage.server_store import ServerProfileStore

from conftest import ftp_profile, rdp_profile, smb_profile


def _reload(store: ServerProfileStore, credentials: CredentialService, logger: logging.Logger) -> ServerRegistry:
    return ServerRegistry(store=ServerProfileStore(path=store.path, logger=logger), credentials=credentials, logger=logger)


def test_add_assigns_identity_and_stores_secret(registry: ServerRegistry, credentials: CredentialService) -> None:
    added = registry.add_server(ftp_profile(id="ignored"), "pw")

    assert added.id is not None and added.id != "ignored"
    assert registry.list_servers() == [added]
    assert credentials.get_password(added) == "pw"


def test_mutations_survive_reload(registry, store, credentials, logger) -> None:
    first = registry.add_server(ftp_profile(), "pw1")
    second = registry.add_server(smb_profile(), "pw2")
    third = registry.add_server(rdp_profile(), "pw3")
    registry.update_server(replace(second, default_path="/data", domain="CORP"))
    registry.delete_server(first)

    reloaded = _reload(store, credentials, logger)

    assert reloaded.list_servers() == registry.list_servers()
    assert [server.id for server in reloaded.list_servers()] == [second.id, third.id]


def test_snapshot_is_a_json_array_without_secrets(registry: ServerRegistry, store: ServerProfileStore) -> None:
    registry.add_server(ftp_profile(), "very-secret")

    content = store.path.read_text(encoding="utf-8")
    assert isinstance(json.loads(content), list)
    assert "very-secret" not in content
    assert not list(store.path.parent.glob("servers.json.tmp-*"))


def test_update_without_password_keeps_existing(registry: ServerRegistry, credentials: CredentialService) -> None:
    added = registry.add_server(ftp_profile(), "pw")
    registry.update_server(replace(added, name="Renamed"), "")

    assert registry.get_server(added.id).name == "Renamed"
    assert credentials.get_password(added) == "pw"


def test_update_with_password_replaces_it(registry: ServerRegistry, credentials: CredentialService) -> None:
    added = registry.add_server(ftp_profile(), "pw")
    registry.update_server(added, "new-pw")

    assert credentials.get_password(added) == "new-pw"


def test_update_moves_secret_when_account_changes(registry: ServerRegistry, credentials: CredentialService) -> None:
    added = registry.add_server(ftp_profile(), "pw")
    moved = replace(added, host="ftp2.example.com")
    registry.update_server(moved)

    assert credentials.get_password(moved) == "pw"
    assert credentials.get_password(added) is None


def test_update_unknown_server_is_ignored(registry: ServerRegistry) -> None:
    assert registry.update_server(ftp_profile(id="missing")) is False
    assert registry.list_servers() == []


def test_delete_runs_teardown_before_removal(registry: ServerRegistry, credentials: CredentialService) -> None:
    added = registry.add_server(ftp_profile(), "pw")
    seen: list[int] = []
    registry.set_teardown(lambda profile: seen.append(len(registry.list_servers())))

    assert registry.delete_server(added) is True
    assert seen == [1]
    assert registry.list_servers() == []
    assert credentials.get_password(added) is None


def test_malformed_file_loads_empty(store: ServerProfileStore, credentials, logger) -> None:
    store.path.write_text("{not json", encoding="utf-8")
    assert ServerRegistry(store=store, credentials=credentials, logger=logger).list_servers() == []


def test_touch_last_connected_persists(registry, store, credentials, logger) -> None:
    added = registry.add_server(ftp_profile(), "pw")
    registry.touch_last_connected(added.id)

    stamped = _reload(store, credentials, logger).get_server(added.id)
    assert stamped.last_connected_at is not None
    assert stamped.last_connected_at.tzinfo is not None


def test_find_by_name_ignores_case_and_spaces(registry) -> None:
    server = registry.add_server(ftp_profile(), "secret")

    assert registry.find_by_name("  files ") == server
    assert registry.find_by_name("nope") is None
