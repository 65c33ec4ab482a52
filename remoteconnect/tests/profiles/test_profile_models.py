from __future__ import annotations

from datetime import datetime, timezone

from core.profiles.models import ServerProfile, ServerType


def test_port_defaults_per_protocol() -> None:
    assert ServerProfile(name="a", server_type=ServerType.FTP, host="h", username="u").port == 21
    assert ServerProfile(name="a", server_type=ServerType.SMB, host="h", username="u").port == 445
    assert ServerProfile(name="a", server_type=ServerType.RDP, host="h", username="u").port == 3389


def test_display_host_hides_default_port() -> None:
    profile = ServerProfile(name="a", server_type=ServerType.SMB, host="nas.local", username="u")
    assert profile.display_host == "nas.local"


def test_display_host_shows_custom_port() -> None:
    profile = ServerProfile(name="a", server_type=ServerType.FTP, host="ftp.example.com", port=2121, username="u")
    assert profile.display_host == "ftp.example.com:2121"


def test_server_key_ignores_profile_identity() -> None:
    first = ServerProfile(name="a", server_type=ServerType.RDP, host="10.0.0.5", username="u", id="1")
    second = ServerProfile(name="b", server_type=ServerType.RDP, host="10.0.0.5", username="other", id="2")
    assert first.server_key == second.server_key == "RDP:10.0.0.5:3389"


def test_account_key_includes_username() -> None:
    profile = ServerProfile(name="a", server_type=ServerType.FTP, host="ftp.example.com", username="alice")
    assert profile.account_key == "FTP:alice@ftp.example.com:21"


def test_dict_round_trip_keeps_all_fields() -> None:
    profile = ServerProfile(
        id="abc",
        name="Office",
        server_type=ServerType.SMB,
        host="nas.local",
        port=4455,
        username="bob",
        share_name="public",
        domain="WORKGROUP",
        auto_connect=True,
        last_connected_at=datetime(2024, 5, 1, 8, 30, tzinfo=timezone.utc),
    )
    assert ServerProfile.from_dict(profile.to_dict()) == profile


def test_from_dict_accepts_missing_optional_fields() -> None:
    profile = ServerProfile.from_dict(
        {"id": "x", "name": "Box", "server_type": "rdp", "host": "h", "username": "u"}
    )
    assert profile.server_type == ServerType.RDP
    assert profile.port == 3389
    assert profile.last_connected_at is None
