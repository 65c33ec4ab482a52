from __future__ import annotations

import argparse
import logging
import sys

from PySide6.QtCore import QCoreApplication, QTimer

from core.config import AppConfig
from core.logging import setup_logging
from core.paths import ensure_runtime_directories
from core.profiles.credentials import CredentialService
from core.profiles.models import ServerType
from core.profiles.registry import ServerRegistry
from core.session.controller import SessionController
from i18n.i18n import initialize_i18n, tr
from storage.server_store import ServerProfileStore


def build_services(config: AppConfig, logger: logging.Logger) -> tuple[ServerRegistry, SessionController]:
    credentials = CredentialService()
    registry = ServerRegistry(store=ServerProfileStore(logger=logger), credentials=credentials, logger=logger)
    controller = SessionController(registry=registry, credentials=credentials, config=config, logger=logger)
    return registry, controller


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="remoteconnect", description="Saved FTP, SMB and RDP connections.")
    parser.add_argument("-v", "--verbose", action="store_true", help="echo log records to stderr")
    subcommands = parser.add_subparsers(dest="command", required=True)

    subcommands.add_parser("list", help="show saved servers")

    browse = subcommands.add_parser("browse", help="connect to an FTP or SMB server and list a directory")
    browse.add_argument("name")
    browse.add_argument("path", nargs="?")

    rdp = subcommands.add_parser("rdp", help="open an RDP session and wait until it ends")
    rdp.add_argument("name")
    return parser


def _print_servers(controller: SessionController) -> int:
    for server in controller.servers:
        last = server.last_connected_at.strftime("%Y-%m-%d %H:%M") if server.last_connected_at else "-"
        print(f"{server.server_type.value:<4} {server.name:<24} {server.username}@{server.display_host:<28} {last}")
    return 0


def _run_browse(app: QCoreApplication, controller: SessionController, path: str | None) -> None:
    pending_path = [path]

    def on_state_changed() -> None:
        if controller.is_connecting or controller.is_loading:
            return
        if controller.error_message:
            print(controller.error_message, file=sys.stderr)
            app.exit(1)
            return
        if not controller.is_connected:
            return
        if pending_path[0] is not None:
            target, pending_path[0] = pending_path[0], None
            controller.navigate_to(target)
            return

        for entry in controller.sorted_files:
            marker = "d" if entry.is_directory else "-"
            print(f"{marker} {entry.size_bytes:>12} {entry.modified_at:%Y-%m-%d %H:%M} {entry.name}")
        app.exit(0)

    controller.state_changed.connect(on_state_changed)


def _run_rdp(app: QCoreApplication, controller: SessionController) -> None:
    def on_state_changed() -> None:
        if controller.error_message:
            print(controller.error_message, file=sys.stderr)
            app.exit(1)
        elif not controller.active_rdp_sessions:
            app.exit(0)

    controller.state_changed.connect(on_state_changed)


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    ensure_runtime_directories()

    app = QCoreApplication(sys.argv[:1])
    config = AppConfig()
    initialize_i18n(config.get_language())

    logger, _log_emitter = setup_logging(echo_to_stderr=args.verbose)

    registry, controller = build_services(config, logger)
    app.aboutToQuit.connect(controller.shutdown)

    if args.command == "list":
        return _print_servers(controller)

    server = registry.find_by_name(args.name)
    if server is None:
        print(tr("app.error.unknown_server", name=args.name), file=sys.stderr)
        return 2

    if args.command == "browse":
        if not server.server_type.has_file_browser:
            print(tr("app.error.no_file_browser", name=server.name), file=sys.stderr)
            return 2
        _run_browse(app, controller, args.path)
    else:
        if server.server_type != ServerType.RDP:
            print(tr("app.error.not_rdp", name=server.name), file=sys.stderr)
            return 2
        _run_rdp(app, controller)

    QTimer.singleShot(0, lambda: controller.connect(server))
    logger.info(tr("app.ready"))
    return app.exec()


if __name__ == "__main__":
    raise SystemExit(main())
