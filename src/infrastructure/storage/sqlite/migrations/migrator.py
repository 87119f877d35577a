"""
Versioned schema migrations for the sales database.

Migration files live next to this module and are named vNNN_<name>.sql.
Applied versions are tracked in schema_migrations together with a
checksum of the file, so an edited migration is detected and re-run.
Each migration runs in its own transaction. An existing database file
is copied aside before migrating and put back if a migration fails.
"""

import hashlib
import re
import shutil
import time
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any

import aiosqlite

from src.config import get_logger, get_settings

logger = get_logger(__name__)

MIGRATIONS_DIR = Path(__file__).parent

REQUIRED_TABLES = ("sales_data", "schema_migrations")
REQUIRED_INDEXES = {"composite_key_unique": "ux_sales_data_invoice_stock"}

_FILENAME_PATTERN = re.compile(r"v(\d+)_(.+)\.sql")

_TRACKING_TABLE_SQL = """
    CREATE TABLE IF NOT EXISTS schema_migrations (
        version TEXT PRIMARY KEY,
        name TEXT NOT NULL,
        checksum TEXT,
        applied_at TEXT DEFAULT (datetime('now')),
        execution_time_ms INTEGER
    )
"""


@dataclass
class MigrationInfo:
    """A migration file on disk."""

    version: str
    name: str
    path: Path
    checksum: str

    @classmethod
    def from_file(cls, path: Path) -> "MigrationInfo":
        match = _FILENAME_PATTERN.fullmatch(path.name)
        if not match:
            raise ValueError(f"Invalid migration filename: {path.name}")

        sql = path.read_text(encoding="utf-8")
        return cls(
            version=match.group(1),
            name=match.group(2),
            path=path,
            checksum=hashlib.sha256(sql.encode()).hexdigest()[:16],
        )


@dataclass
class MigrationResult:
    """Outcome of applying one migration."""

    version: str
    name: str
    success: bool
    execution_time_ms: int
    error: str | None = None
    checks: list[dict[str, Any]] = field(default_factory=list)


def discover_migrations(directory: Path = MIGRATIONS_DIR) -> list[MigrationInfo]:
    """Migration files in version order; badly named files are skipped."""
    found = []
    for path in sorted(directory.glob("v*.sql")):
        try:
            found.append(MigrationInfo.from_file(path))
        except ValueError as e:
            logger.warning("skipping_invalid_migration", path=str(path), error=str(e))
    return found


async def get_applied_migrations(conn: aiosqlite.Connection) -> dict[str, str]:
    """Applied version -> checksum; empty before the tracking table exists."""
    try:
        cursor = await conn.execute(
            "SELECT version, checksum FROM schema_migrations ORDER BY version"
        )
    except aiosqlite.OperationalError:
        return {}
    return {version: checksum for version, checksum in await cursor.fetchall()}


async def get_current_version(conn: aiosqlite.Connection) -> str | None:
    """Highest applied version, or None."""
    applied = await get_applied_migrations(conn)
    return max(applied) if applied else None


def create_backup(db_path: Path) -> Path:
    """Copy the database file aside and return the copy's path."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    backup_path = db_path.with_name(f"{db_path.stem}.backup_{stamp}{db_path.suffix}")
    shutil.copy2(db_path, backup_path)
    logger.info("database_backup_created", backup_path=str(backup_path))
    return backup_path


async def checkpoint_wal(db_path: Path) -> None:
    """Fold the write-ahead log into the main file so a file copy is complete."""
    async with aiosqlite.connect(db_path) as conn:
        await conn.execute("PRAGMA wal_checkpoint(TRUNCATE)")


def restore_backup(db_path: Path, backup_path: Path) -> None:
    # A leftover WAL would be replayed over the restored file
    for suffix in ("-wal", "-shm"):
        db_path.with_name(db_path.name + suffix).unlink(missing_ok=True)
    shutil.copy2(backup_path, db_path)
    logger.info("database_restored_from_backup", backup_path=str(backup_path))


class SchemaMigrator:
    """Applies pending migrations to one database file."""

    def __init__(self, db_path: Path, migrations_dir: Path = MIGRATIONS_DIR):
        self.db_path = db_path
        self.migrations_dir = migrations_dir

    async def _apply(self, conn: aiosqlite.Connection, migration: MigrationInfo) -> MigrationResult:
        logger.info("applying_migration", version=migration.version, name=migration.name)
        started = time.perf_counter()

        def elapsed_ms() -> int:
            return int((time.perf_counter() - started) * 1000)

        try:
            # executescript commits as it goes unless the script opens a transaction
            await conn.executescript("BEGIN;\n" + migration.path.read_text(encoding="utf-8"))
            await conn.execute(
                "INSERT OR REPLACE INTO schema_migrations "
                "(version, name, checksum, execution_time_ms) VALUES (?, ?, ?, ?)",
                (migration.version, migration.name, migration.checksum, elapsed_ms()),
            )
            await conn.commit()
        except aiosqlite.Error as e:
            await conn.rollback()
            logger.error("migration_failed", version=migration.version, error=str(e))
            return MigrationResult(
                version=migration.version,
                name=migration.name,
                success=False,
                execution_time_ms=elapsed_ms(),
                error=str(e),
            )

        result = MigrationResult(
            version=migration.version,
            name=migration.name,
            success=True,
            execution_time_ms=elapsed_ms(),
            checks=await self._post_checks(conn, migration),
        )
        logger.info(
            "migration_applied",
            version=migration.version,
            execution_time_ms=result.execution_time_ms,
        )
        return result

    @staticmethod
    async def _post_checks(conn: aiosqlite.Connection, migration: MigrationInfo) -> list[dict[str, Any]]:
        """Failed checks after a migration; empty when all is well."""
        failures = []

        applied = await get_applied_migrations(conn)
        if migration.version not in applied:
            failures.append({
                "check": "migration_recorded",
                "status": "FAILED",
                "message": f"Migration {migration.version} not found in schema_migrations",
            })

        cursor = await conn.execute("PRAGMA quick_check")
        row = await cursor.fetchone()
        if row is None or row[0] != "ok":
            failures.append({
                "check": "quick_check",
                "status": "FAILED",
                "message": f"Integrity check failed: {row[0] if row else 'no result'}",
            })

        return failures

    async def migrate(self) -> list[MigrationResult]:
        """Apply every pending or changed migration, stopping at the first failure."""
        results: list[MigrationResult] = []
        migrations = discover_migrations(self.migrations_dir)
        if not migrations:
            logger.warning("no_migrations_found", directory=str(self.migrations_dir))
            return results

        async with aiosqlite.connect(self.db_path) as conn:
            await conn.execute("PRAGMA journal_mode=WAL")
            await conn.execute(_TRACKING_TABLE_SQL)
            await conn.commit()

            applied = await get_applied_migrations(conn)
            for migration in migrations:
                previous = applied.get(migration.version)
                if previous == migration.checksum:
                    continue
                if previous is not None:
                    logger.warning("migration_checksum_changed", version=migration.version)

                result = await self._apply(conn, migration)
                results.append(result)
                if not result.success or result.checks:
                    logger.error(
                        "migration_stopped",
                        version=migration.version,
                        checks=result.checks,
                    )
                    break

        return results

    async def status(self) -> dict[str, Any]:
        discovered = discover_migrations(self.migrations_dir)

        if not self.db_path.exists():
            return {
                "exists": False,
                "current_version": None,
                "applied_migrations": [],
                "pending_migrations": [m.version for m in discovered],
                "total_migrations": len(discovered),
            }

        async with aiosqlite.connect(self.db_path) as conn:
            applied = await get_applied_migrations(conn)

        return {
            "exists": True,
            "current_version": max(applied) if applied else None,
            "applied_migrations": list(applied),
            "pending_migrations": [m.version for m in discovered if m.version not in applied],
            "total_migrations": len(discovered),
        }

    async def verify(self) -> list[dict[str, Any]]:
        """Integrity, required tables and the composite key index."""
        checks: list[dict[str, Any]] = []

        async with aiosqlite.connect(self.db_path) as conn:
            cursor = await conn.execute("PRAGMA integrity_check")
            (integrity,) = await cursor.fetchone()
            checks.append({
                "check": "integrity",
                "status": "PASS" if integrity == "ok" else "FAIL",
                "result": integrity,
            })

            cursor = await conn.execute("SELECT type, name FROM sqlite_master")
            objects = {(kind, name) for kind, name in await cursor.fetchall()}

        missing = [t for t in REQUIRED_TABLES if ("table", t) not in objects]
        checks.append({
            "check": "required_tables",
            "status": "PASS" if not missing else "FAIL",
            "missing": missing,
        })

        for check, index in REQUIRED_INDEXES.items():
            checks.append({
                "check": check,
                "status": "PASS" if ("index", index) in objects else "FAIL",
                "index": index,
            })

        return checks


async def initialize_database(
    db_path: Path | None = None,
    create_backup_before: bool = True,
    migrations_dir: Path = MIGRATIONS_DIR,
) -> list[MigrationResult]:
    """
    Bring the database schema up to date.

    Args:
        db_path: Database file (default from settings)
        create_backup_before: Copy an existing file aside first
        migrations_dir: Directory holding vNNN_*.sql files

    Returns:
        One result per migration that was attempted
    """
    db_path = db_path or get_settings().storage.db_path
    db_path.parent.mkdir(parents=True, exist_ok=True)
    logger.info("initializing_database", db_path=str(db_path))

    backup_path = None
    if create_backup_before and db_path.exists():
        await checkpoint_wal(db_path)
        backup_path = create_backup(db_path)

    try:
        results = await SchemaMigrator(db_path, migrations_dir).migrate()
    except Exception as e:
        logger.error("database_initialization_failed", error=str(e))
        if backup_path is not None:
            restore_backup(db_path, backup_path)
            backup_path.unlink()
        raise

    if backup_path is not None:
        if any(not r.success or r.checks for r in results):
            restore_backup(db_path, backup_path)
        backup_path.unlink()
        logger.info("backup_cleaned_up")

    return results


run_migrations = initialize_database


async def get_migration_status(db_path: Path | None = None) -> dict[str, Any]:
    """Applied and pending versions of a database file."""
    return await SchemaMigrator(db_path or get_settings().storage.db_path).status()


async def verify_schema_integrity(db_path: Path | None = None) -> list[dict[str, Any]]:
    """Run integrity checks; every entry has a PASS or FAIL status."""
    return await SchemaMigrator(db_path or get_settings().storage.db_path).verify()
