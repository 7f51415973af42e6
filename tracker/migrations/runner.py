"""Migration runner: ordering, ledger bookkeeping, dry-run/force, rollback, validation."""

from __future__ import annotations

import logging
from datetime import date, datetime
from pathlib import Path

from sqlalchemy.ext.asyncio import AsyncSession

from tracker.exceptions import MigrationFailedError, MigrationNotFoundError
from tracker.migrations.base import Irreversible, Migration, MigrationContext
from tracker.migrations.registry import get_all_migrations
from tracker.schemas.pydantic import MigrationResult, ValidationReport
from tracker.services.events import classify_events
from tracker.services.ledger import MigrationLedger, SqlMigrationLedger
from tracker.services.record_store import RecordStore, SqlRecordStore
from tracker.services.status_dates import STATUS_DATE_FIELDS

logger = logging.getLogger(__name__)


class MigrationRunner:
    """Runs migration units one at a time, in ascending id order.

    The runner never opens its own connection: the store and ledger it is given
    decide where reads and writes go, so tests can hand in in-memory ones.
    """

    def __init__(
        self,
        store: RecordStore,
        ledger: MigrationLedger,
        migrations: list[Migration] | None = None,
        run_date: date | None = None,
    ) -> None:
        self.store = store
        self.ledger = ledger
        self.migrations = sorted(
            migrations if migrations is not None else get_all_migrations(),
            key=lambda m: m.id,
        )
        self.run_date = run_date

    @classmethod
    def for_session(cls, db: AsyncSession, **kwargs) -> "MigrationRunner":
        """Build a runner whose store and ledger share one database session."""
        return cls(SqlRecordStore(db), SqlMigrationLedger(db), **kwargs)

    def _context(self) -> MigrationContext:
        return MigrationContext(store=self.store, run_date=self.run_date or date.today())

    def _find(self, migration_id: str) -> Migration:
        for migration in self.migrations:
            if migration.id == migration_id:
                return migration
        raise MigrationNotFoundError(f"Migration {migration_id} not found")

    async def pending_migrations(self) -> list[Migration]:
        return [m for m in self.migrations if not await self.ledger.has_run(m.id)]

    async def run_migrations(self, dry_run: bool = False, force: bool = False) -> list[MigrationResult]:
        """Execute every pending unit. Raises MigrationFailedError on the first failure.

        ``force`` re-executes units already in the ledger without removing their
        entries. ``dry_run`` executes every unit in simulation mode and writes
        nothing, ledger included.
        """
        mode = " (DRY RUN)" if dry_run else " (FORCE)" if force else ""
        logger.info("Running migrations%s", mode)
        ctx = self._context()
        results: list[MigrationResult] = []

        for migration in self.migrations:
            already_run = await self.ledger.has_run(migration.id)
            if already_run and not dry_run and not force:
                logger.info("%s: %s (already run)", migration.id, migration.name)
                results.append(MigrationResult(
                    migration_id=migration.id,
                    success=True,
                    message="Already run",
                    skipped=True,
                ))
                continue

            logger.info("Running: %s - %s", migration.id, migration.name)
            logger.info("  %s", migration.description)
            try:
                result = await migration.execute(ctx, dry_run)
            except Exception as exc:
                logger.exception("Error in migration %s", migration.id)
                result = MigrationResult(
                    migration_id=migration.id,
                    success=False,
                    message=f"Migration {migration.id} raised {type(exc).__name__}: {exc}",
                    errors=[str(exc)],
                    dry_run=dry_run,
                )
                results.append(result)
                log_result(migration, result)
                raise MigrationFailedError(
                    f"Migration {migration.id} failed: {result.message}", results=results,
                ) from exc

            results.append(result)
            log_result(migration, result)
            if not result.success:
                raise MigrationFailedError(
                    f"Migration {migration.id} failed: {result.message}", results=results,
                )

            if not dry_run and not already_run:
                await self.ledger.mark_run(migration.id)

        logger.info("All migrations completed successfully%s", mode)
        return results

    async def rollback_migration(self, migration_id: str) -> MigrationResult:
        """Roll one unit back and drop its ledger entry on success.

        Irreversible units return a failure result and touch nothing.
        """
        migration = self._find(migration_id)
        logger.info("Rolling back: %s - %s", migration.id, migration.name)

        if isinstance(migration.reversibility, Irreversible):
            result = MigrationResult(
                migration_id=migration.id,
                success=False,
                message=migration.reversibility.reason,
                errors=["Rollback not supported for this migration"],
            )
            log_result(migration, result)
            return result

        try:
            result = await migration.reversibility.rollback(self._context())
        except Exception as exc:
            logger.exception("Error rolling back migration %s", migration.id)
            result = MigrationResult(
                migration_id=migration.id,
                success=False,
                message=f"Rollback of {migration.id} raised {type(exc).__name__}: {exc}",
                errors=[str(exc)],
            )

        log_result(migration, result)
        if result.success:
            await self.ledger.unmark(migration.id)
        return result

    async def validate_data(self) -> ValidationReport:
        """Report event-shape and status-date coverage. Read-only, never raises on findings."""
        logger.info("Validating migrated data")
        applications = await self.store.list_applications()
        statuses = await self.store.list_statuses()

        report = ValidationReport(
            total_applications=len(applications),
            total_statuses=len(statuses),
        )
        for app in applications:
            kind = classify_events(app.get("events"))
            if kind == "legacy":
                report.legacy_records += 1
            elif kind == "canonical":
                report.canonical_records += 1
            elif kind == "mixed":
                report.mixed_records += 1
                report.mixed_record_ids.append(str(app["id"]))
            else:
                report.records_without_events += 1

        report.status_date_coverage = {
            field: sum(1 for app in applications if app.get(field))
            for field in STATUS_DATE_FIELDS
        }
        if applications:
            sample = applications[0]
            report.sample_record_id = str(sample["id"])
            report.sample_status_dates = [f for f in STATUS_DATE_FIELDS if sample.get(f)]

        log_report(report)
        return report


def log_result(migration: Migration, result: MigrationResult) -> None:
    if result.success:
        logger.info("%s %s: %s", "Success" if not result.skipped else "Skipped", migration.id, result.message)
    else:
        logger.error("Failed %s: %s", migration.id, result.message)
    logger.info("  Documents modified: %d", result.documents_modified)
    for error in result.errors:
        logger.error("  - %s", error)
    for warning in result.warnings:
        logger.warning("  - %s", warning)


def log_report(report: ValidationReport) -> None:
    logger.info(
        "Found %d applications and %d statuses",
        report.total_applications, report.total_statuses,
    )
    logger.info(
        "Event shapes: %d canonical, %d legacy, %d mixed, %d without events",
        report.canonical_records, report.legacy_records,
        report.mixed_records, report.records_without_events,
    )
    if report.mixed_records:
        logger.error(
            "%d applications mix legacy and canonical events: %s",
            report.mixed_records, ", ".join(report.mixed_record_ids),
        )
    for field, count in report.status_date_coverage.items():
        logger.info("  %s: %d/%d", field, count, report.total_applications)
    if report.sample_record_id is not None:
        logger.info(
            "Sample application %s status dates: %s",
            report.sample_record_id, ", ".join(report.sample_status_dates) or "none",
        )
    logger.info("Data validation completed")


def create_backup(backup_name: str, backup_dir: str = "backups") -> str:
    """Log how to take a backup. Advisory only; nothing is verified."""
    stamp = datetime.now().strftime("%Y%m%d_%H%M%S")
    target = Path(backup_dir) / f"{backup_name}_{stamp}.dump"
    logger.warning("Creating backup: %s", backup_name)
    logger.warning("Please ensure you have a PostgreSQL backup strategy in place")
    logger.warning("  pg_dump --format=custom \"$DATABASE_URL\" --file %s", target)
    return str(target)
