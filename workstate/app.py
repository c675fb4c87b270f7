"""Workstate CLI: main application entry point."""

from __future__ import annotations

import asyncio
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path

import yaml

from workstate.engine.config import StateConfig
from workstate.engine.yaml_config import ServerConfig, WorkstateYamlConfig, load_yaml_config

logger = logging.getLogger(__name__)

_LOG_FORMAT = "%(asctime)s %(name)s %(levelname)s %(message)s"


def _load_config(path: str | None) -> WorkstateYamlConfig:
    if path:
        return load_yaml_config(path)
    return WorkstateYamlConfig(state=StateConfig.from_env(), server=ServerConfig())


def _configure_logging(verbose: bool, level_name: str) -> None:
    level = logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    logging.basicConfig(level=level, format=_LOG_FORMAT, datefmt="%H:%M:%S")


def _configure_file_logging(log_file: Path, verbose: bool, level_name: str) -> None:
    """Route all logging to a rotating file so the terminal UI stays clean."""
    log_file.parent.mkdir(parents=True, exist_ok=True)
    root = logging.getLogger()
    root.setLevel(
        logging.DEBUG if verbose else getattr(logging, level_name.upper(), logging.INFO)
    )
    root.handlers.clear()
    handler = RotatingFileHandler(
        log_file, maxBytes=2_000_000, backupCount=5, encoding="utf-8"
    )
    handler.setFormatter(
        logging.Formatter("%(asctime)s %(levelname)s %(name)s [pid=%(process)d] %(message)s")
    )
    root.addHandler(handler)


def _cmd_serve(args, config: WorkstateYamlConfig) -> None:
    from workstate.server.workspaces import WorkspaceServer

    server_config = config.server
    host = args.host or server_config.host
    port = args.port if args.port is not None else server_config.port
    root = Path(args.root).expanduser() if args.root else server_config.root_path
    logger.info("Starting workspace server host=%s port=%s root=%s", host, port, root)
    server = WorkspaceServer(root, host=host, port=port)
    asyncio.run(server.start())


async def _list_workspaces(config: StateConfig) -> list[str]:
    from workstate.adapters.workspace_client import WorkspaceClient

    async with WorkspaceClient(
        config.server_url, timeout=config.request_timeout_seconds
    ) as client:
        return await client.list()


def _cmd_list(args, config: WorkstateYamlConfig) -> None:
    ids = asyncio.run(_list_workspaces(config.state))
    if not ids:
        print("No saved workspaces.")
        return
    for workspace_id in ids:
        print(f"  {workspace_id}")


def _cmd_open(args, config: WorkstateYamlConfig) -> None:
    from workstate.tui.app import WorkstateApp

    state = config.state
    _configure_file_logging(state.log_path, args.verbose, state.log_level)
    url: str | None = args.url or state.default_workspace
    while url:
        logger.info("Opening window at %s", url)
        app = WorkstateApp(url, state)
        url = app.run()
    logger.info("Window closed")


def main() -> None:
    import argparse

    parser = argparse.ArgumentParser(
        prog="workstate",
        description="Workstate: per-window workspace state that survives restarts",
    )
    parser.add_argument(
        "--config", metavar="PATH",
        help="YAML config file (state and server sections)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable debug logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the workspace HTTP service")
    serve.add_argument("--host", help="Bind address (default from config)")
    serve.add_argument(
        "--port", type=int, default=None,
        help="Port (default from config, 0=random available port)",
    )
    serve.add_argument("--root", metavar="DIR", help="Directory holding workspace records")

    sub.add_parser("list", help="List workspaces saved on the server and exit")

    open_ = sub.add_parser("open", help="Open a window in the terminal UI")
    open_.add_argument(
        "url", nargs="?", default=None,
        help="Location to open, e.g. /lab/workspaces/foo?clone=bar (default: the default workspace)",
    )

    args = parser.parse_args()
    _configure_logging(args.verbose, "INFO")
    try:
        config = _load_config(args.config)
    except (OSError, ValueError, yaml.YAMLError) as exc:
        print(f"Invalid config: {exc}", file=sys.stderr)
        sys.exit(2)
    if not args.verbose:
        logging.getLogger().setLevel(
            getattr(logging, config.state.log_level.upper(), logging.INFO)
        )

    handlers = {
        "serve": _cmd_serve,
        "list": _cmd_list,
        "open": _cmd_open,
    }
    handlers[args.command](args, config)


if __name__ == "__main__":
    main()
