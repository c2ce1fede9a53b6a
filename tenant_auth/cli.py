#!/usr/bin/env python3
"""
Maintenance commands.

    tenant-auth init-db
    tenant-auth cleanup-sessions      # run from cron
    tenant-auth serve --port 8000
"""
from __future__ import annotations

import argparse
from typing import Optional, Sequence

from tenant_auth.config import get_settings
from tenant_auth.database import Database
from tenant_auth.main import configure_logging
from tenant_auth.sessions import SessionStore


def _init_db(args: argparse.Namespace) -> int:
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        database.create_all()
    finally:
        database.dispose()
    print(f"OK -> {settings.database_url}")
    return 0


def _cleanup_sessions(args: argparse.Namespace) -> int:
    settings = get_settings()
    database = Database(settings.database_url)
    try:
        removed = SessionStore(database, ttl=settings.session_ttl).cleanup_expired()
    finally:
        database.dispose()
    print(f"Removed {removed} expired session(s)")
    return 0


def _serve(args: argparse.Namespace) -> int:
    import uvicorn

    uvicorn.run(
        "tenant_auth.main:create_app",
        factory=True,
        host=args.host,
        port=args.port,
        reload=args.reload,
    )
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="tenant-auth")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("init-db", help="create missing tables")
    p.set_defaults(func=_init_db)

    p = sub.add_parser("cleanup-sessions", help="delete expired sessions")
    p.set_defaults(func=_cleanup_sessions)

    p = sub.add_parser("serve", help="run the API with uvicorn")
    p.add_argument("--host", default="0.0.0.0")
    p.add_argument("--port", type=int, default=8000)
    p.add_argument("--reload", action="store_true")
    p.set_defaults(func=_serve)

    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    configure_logging(get_settings().log_level)
    return args.func(args)


if __name__ == "__main__":
    raise SystemExit(main())
