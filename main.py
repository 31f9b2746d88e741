#!/usr/bin/env python3
"""
TaskVault -- user authentication and per-user task management API.

Usage:
  python main.py serve
  python main.py serve --port 8000 --reload
  python main.py check-store
  python main.py reset-store
  python main.py reset-store --yes

Environment variables (see core/config.py for the full list):
  SECRET_KEY     JWT signing key, 32+ chars. Required unless DEBUG=true.
  STORE_URL      Base URL of the record store (default http://localhost:3001).
  PORT           Listen port for `serve` (default 3000).

Fatal errors are logged and the process exits non-zero. Restarting is the
job of whatever supervises the process (systemd, docker, k8s).
"""

import argparse
import logging
import sys

from core.config import get_settings
from store.client import RecordStoreClient

logger = logging.getLogger("taskvault.cli")

# Collections owned by this service. reset-store empties exactly these.
_COLLECTIONS = ("users", "tasks")


def _log_uncaught(exc_type, exc, tb) -> None:
    """sys.excepthook: log any uncaught exception, then let the process die."""
    if issubclass(exc_type, KeyboardInterrupt):
        sys.__excepthook__(exc_type, exc, tb)
        return
    logger.critical("Uncaught exception -- shutting down", exc_info=(exc_type, exc, tb))


def cmd_serve(args: argparse.Namespace) -> int:
    import uvicorn

    settings = get_settings()
    host = args.host or settings.host
    port = args.port or settings.port
    print(f"  TaskVault running in {settings.environment} mode on port {port}")
    print(f"  API:          http://localhost:{port}/api")
    print(f"  Health check: http://localhost:{port}/health")
    try:
        uvicorn.run("asgi:app", host=host, port=port, reload=args.reload, log_level=settings.log_level.lower())
    except Exception:
        logger.exception("Server terminated by a fatal error")
        return 1
    return 0


def cmd_check_store(args: argparse.Namespace) -> int:
    settings = get_settings()
    store = RecordStoreClient(settings.store_url, timeout=settings.store_timeout_seconds)
    try:
        ok = store.ping()
    finally:
        store.close()
    print(f"  Record store {settings.store_url}: {'ok' if ok else 'UNREACHABLE'}")
    return 0 if ok else 1


def reset_store(store: RecordStoreClient, collections=_COLLECTIONS) -> dict[str, int]:
    """Delete every record in each collection. Returns the count removed per collection.

    json-server has no bulk delete, so this lists ids and deletes one by one.
    A record already gone (404) simply is not counted.
    """
    removed: dict[str, int] = {}
    for resource in collections:
        count = 0
        for record in store.find_all(resource):
            if store.delete(resource, record["id"]):
                count += 1
        removed[resource] = count
    return removed


def cmd_reset_store(args: argparse.Namespace) -> int:
    settings = get_settings()
    if not args.yes:
        answer = input(f"  Delete ALL users and tasks at {settings.store_url}? [y/N] ")
        if answer.strip().lower() not in ("y", "yes"):
            print("  Aborted.")
            return 1

    store = RecordStoreClient(settings.store_url, timeout=settings.store_timeout_seconds)
    try:
        removed = reset_store(store)
    finally:
        store.close()
    for resource, count in removed.items():
        print(f"  {resource}: {count} record(s) deleted")
    print("  Record store reset.")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskvault",
        description="TaskVault -- authentication and task management API",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the HTTP API with uvicorn")
    serve.add_argument("--host", default=None, help="Bind address (default: HOST setting)")
    serve.add_argument("--port", type=int, default=None, help="Listen port (default: PORT setting)")
    serve.add_argument("--reload", action="store_true", help="Auto-reload on code changes (development)")
    serve.set_defaults(func=cmd_serve)

    check = sub.add_parser("check-store", help="Check that the record store is reachable")
    check.set_defaults(func=cmd_check_store)

    reset = sub.add_parser("reset-store", help="Delete every user and task in the record store")
    reset.add_argument("--yes", action="store_true", help="Skip the confirmation prompt")
    reset.set_defaults(func=cmd_reset_store)

    return parser


def main(argv=None) -> int:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)-5s %(name)s %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )
    sys.excepthook = _log_uncaught
    args = build_parser().parse_args(argv)
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
