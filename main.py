"""Command-line interface for the user mirror."""

from __future__ import annotations
import argparse
import logging
import os
import sys
from dataclasses import replace
from pathlib import Path
from typing import Sequence


def _running_in_virtualenv() -> bool:
    """Return ``True`` when the current interpreter is executing inside a venv."""

    base_prefix = getattr(sys, "base_prefix", sys.prefix)
    return sys.prefix != base_prefix


def _bootstrap_virtualenv() -> None:
    """Re-exec the script using the bundled virtualenv interpreter when available."""

    if _running_in_virtualenv():
        return

    root = Path(__file__).resolve().parent
    venv_dir = root / ".venv"
    if not venv_dir.is_dir():
        return

    candidates = (
        venv_dir / "bin" / "python",
        venv_dir / "bin" / "python3",
        venv_dir / "Scripts" / "python.exe",
        venv_dir / "Scripts" / "python",
    )

    script = str(Path(__file__).resolve())
    for candidate in candidates:
        if candidate.exists():
            os.execv(str(candidate), [str(candidate), script, *sys.argv[1:]])


if __name__ == "__main__":
    _bootstrap_virtualenv()

try:
    import yaml  # noqa: F401
except ImportError as exc:  # pragma: no cover - exercised in environments missing deps
    raise SystemExit(
        "The 'PyYAML' package is required. Execute `pip install -e .` to install dependencies."
    ) from exc

from usermirror.config import Settings, load_settings, resolve_config_path
from usermirror.database import MirrorStore, resolve_database_path

logger = logging.getLogger("usermirror.main")

_COMMANDS = {"init-db", "sync", "auto-disable", "run", "serve"}


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Directory mirror and suspicious-account utilities")
    parser.add_argument(
        "--config",
        default=None,
        help="Path to the YAML configuration file (default: USERMIRROR_CONFIG or config/usermirror.yaml)",
    )
    parser.add_argument(
        "--db",
        dest="db_path",
        default=None,
        help="Override the SQLite mirror path",
    )
    subparsers = parser.add_subparsers(dest="command")

    parser.set_defaults(command="run")

    subparsers.add_parser("init-db", help="Initialise the mirror database")
    subparsers.add_parser("sync", help="Mirror the remote directory into the local database")
    subparsers.add_parser("auto-disable", help="Disable accounts flagged as suspicious")
    subparsers.add_parser("run", help="Sync, then auto-disable suspicious accounts")

    serve_parser = subparsers.add_parser("serve", help="Start the HTTP trigger service")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Bind address for the service")
    serve_parser.add_argument(
        "--port",
        type=int,
        default=3001,
        help="Port for the HTTP service (default: 3001)",
    )

    args_list = list(argv) if argv is not None else sys.argv[1:]
    if not any(arg in _COMMANDS for arg in args_list) and not any(
        flag in args_list for flag in ("-h", "--help")
    ):
        args_list = [*args_list, "run"]

    return parser.parse_args(args_list)


def _load_settings(args: argparse.Namespace) -> Settings:
    config_path = resolve_config_path(args.config or os.getenv("USERMIRROR_CONFIG"))
    settings = load_settings(config_path)
    if args.db_path:
        settings = replace(settings, database_path=resolve_database_path(args.db_path))
    return settings


def _initialise_database(settings: Settings) -> MirrorStore:
    store = MirrorStore(settings.database_path)
    store.initialize()
    logger.info("Database initialised at %s", settings.database_path)
    return store


def _serve(settings: Settings, *, host: str, port: int) -> None:
    from usermirror.service import create_app
    import uvicorn

    logger.info("Starting user mirror service on http://%s:%s", host, port)
    uvicorn.run(create_app(settings=settings), host=host, port=port, log_level="info")


def main(argv: Sequence[str] | None = None) -> int:
    """Entry point for CLI usage."""

    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(message)s")

    args = _parse_args(argv)
    try:
        settings = _load_settings(args)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    if args.command == "init-db":
        _initialise_database(settings)
        print("Database initialisation complete.")
        return 0

    if args.command == "serve":
        _serve(settings, host=args.host, port=args.port)
        return 0

    from usermirror.engine import build_engine
    from usermirror.errors import UserMirrorError

    try:
        engine = build_engine(settings)
    except UserMirrorError as exc:
        logger.error("Unable to start: %s", exc)
        return 1

    if args.command == "sync":
        result = engine.sync()
        print(f"Synced {result.total} users." if result.success else f"Sync failed: {result.error}")
        return 0 if result.success else 1

    if args.command == "auto-disable":
        remediation = engine.auto_disable_suspicious()
        if not remediation.success:
            print(f"Auto-disable failed: {remediation.error}")
            return 1
        print(f"Disabled {remediation.disabled_count} suspicious users.")
        return 0

    outcome = engine.run_scheduled()
    if not outcome.success:
        logger.error("Scheduled task failed.")
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
