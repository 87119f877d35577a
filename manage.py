#!/usr/bin/env python3
"""
Retail sales API management CLI.

Usage:
    python manage.py serve       Run the API server with uvicorn
    python manage.py migrate     Apply pending database migrations
    python manage.py status      Show applied and pending migrations
    python manage.py verify      Run schema integrity checks
"""

import argparse
import asyncio
import sys
from pathlib import Path

from src.config import configure_logging, get_settings
from src.infrastructure.storage.sqlite.migrations import (
    get_migration_status,
    run_migrations,
    verify_schema_integrity,
)


def _db_path(args: argparse.Namespace) -> Path:
    return Path(args.db) if args.db else get_settings().storage.db_path


def cmd_serve(args: argparse.Namespace) -> None:
    """Start the API server."""
    import uvicorn

    settings = get_settings()
    host = args.host or settings.api.host
    port = args.port or settings.api.port

    print(f"Starting server on {host}:{port}...")
    uvicorn.run(
        "src.api.main:app",
        host=host,
        port=port,
        reload=args.reload,
    )


def cmd_migrate(args: argparse.Namespace) -> None:
    """Apply pending migrations."""
    db_path = _db_path(args)
    results = asyncio.run(run_migrations(db_path, create_backup_before=not args.no_backup))

    if not results:
        print(f"Database is up to date ({db_path}).")
        return

    for result in results:
        state = "OK" if result.success else "FAILED"
        print(f"  v{result.version} {result.name}: {state} ({result.execution_time_ms}ms)")
        if result.error:
            print(f"    {result.error}")

    if not all(r.success for r in results):
        sys.exit(1)


def cmd_status(args: argparse.Namespace) -> None:
    """Print migration status."""
    status = asyncio.run(get_migration_status(_db_path(args)))

    if not status["exists"]:
        print("Database does not exist yet.")
    else:
        print(f"Current version: {status['current_version'] or 'none'}")
        print(f"Applied: {', '.join(status['applied_migrations']) or 'none'}")
    print(f"Pending: {', '.join(status['pending_migrations']) or 'none'}")


def cmd_verify(args: argparse.Namespace) -> None:
    """Run schema integrity checks."""
    db_path = _db_path(args)
    if not db_path.exists():
        print(f"Database not found: {db_path}")
        sys.exit(1)

    checks = asyncio.run(verify_schema_integrity(db_path))
    for check in checks:
        print(f"  {check['check']}: {check['status']}")

    if any(c["status"] != "PASS" for c in checks):
        sys.exit(1)


def main() -> None:
    configure_logging()

    parser = argparse.ArgumentParser(
        description="Retail sales API management CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    sub = parser.add_subparsers(dest="command", required=True)

    # serve
    p_serve = sub.add_parser("serve", help="Run the API server")
    p_serve.add_argument("--host", default=None, help="Bind host (default: from settings)")
    p_serve.add_argument("--port", type=int, default=None, help="Bind port (default: from settings)")
    p_serve.add_argument("--reload", action="store_true", help="Reload on code changes")
    p_serve.set_defaults(func=cmd_serve)

    # migrate
    p_migrate = sub.add_parser("migrate", help="Apply pending migrations")
    p_migrate.add_argument("--db", default=None, help="Database file (default: from settings)")
    p_migrate.add_argument("--no-backup", action="store_true", help="Skip the pre-migration backup")
    p_migrate.set_defaults(func=cmd_migrate)

    # status
    p_status = sub.add_parser("status", help="Show migration status")
    p_status.add_argument("--db", default=None, help="Database file (default: from settings)")
    p_status.set_defaults(func=cmd_status)

    # verify
    p_verify = sub.add_parser("verify", help="Verify schema integrity")
    p_verify.add_argument("--db", default=None, help="Database file (default: from settings)")
    p_verify.set_defaults(func=cmd_verify)

    args = parser.parse_args()
    args.func(args)


if __name__ == "__main__":
    main()
