"""Command-line entrypoint: run, force, dry-run, rollback <id>, validate."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from tracker.config import Settings, get_settings
from tracker.exceptions import AppError
from tracker.migrations.runner import MigrationRunner, create_backup
from tracker.models.database import StoreConnection

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="tracker-migrate",
        description="Run application data migrations",
    )
    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("run", help="Run all pending migrations, then validate")
    commands.add_parser("force", help="Re-run every migration regardless of the ledger, then validate")
    commands.add_parser("dry-run", help="Simulate all migrations without writing anything")
    rollback = commands.add_parser("rollback", help="Roll back one migration")
    rollback.add_argument("migration_id", help="Migration id, e.g. 006")
    commands.add_parser("validate", help="Validate current data")
    return parser


async def execute_command(args: argparse.Namespace, runner: MigrationRunner, settings: Settings) -> int:
    """Dispatch one parsed command against *runner*; returns the process exit code."""
    command = args.command

    if command in ("run", "force"):
        create_backup("pre_migration", settings.backup_dir)
        await runner.run_migrations(force=command == "force")
        await runner.validate_data()
        return EXIT_OK

    if command == "dry-run":
        await runner.run_migrations(dry_run=True)
        return EXIT_OK

    if command == "rollback":
        create_backup("pre_rollback", settings.backup_dir)
        result = await runner.rollback_migration(args.migration_id)
        return EXIT_OK if result.success else EXIT_FAILED

    if command == "validate":
        await runner.validate_data()
        return EXIT_OK

    raise ValueError(f"Unknown command: {command}")


async def _main(args: argparse.Namespace, settings: Settings) -> int:
    connection = StoreConnection(settings)
    try:
        await connection.connect()
        async with connection.session() as db:
            runner = MigrationRunner.for_session(db)
            return await execute_command(args, runner, settings)
    except AppError as exc:
        logger.error("Migration failed: %s", exc.detail)
        return exc.exit_code
    finally:
        await connection.close()


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        settings = get_settings()
    except ValidationError as exc:
        logger.error("Invalid configuration: %s", exc)
        sys.exit(EXIT_USAGE)
    logging.getLogger().setLevel(settings.log_level.upper())

    sys.exit(asyncio.run(_main(args, settings)))


if __name__ == "__main__":
    main()
