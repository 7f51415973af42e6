"""002: derive status dates from existing events.

Adds applied_date, phone_screen_date, round1_date, round2_date, accepted_date
and declined_date where they are absent. Populated fields are never touched.
"""

from __future__ import annotations

import logging

from tracker.migrations.base import Migration, MigrationContext, Reversible, note_dry_run
from tracker.schemas.pydantic import MigrationResult
from tracker.services.status_dates import STATUS_DATE_FIELDS, infer_status_dates, missing_status_dates

logger = logging.getLogger(__name__)

MIGRATION_ID = "002"


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    details: list[str] = []
    documents_modified = 0

    applications = await ctx.store.list_applications()
    logger.info("Found %d applications to process", len(applications))

    for app in applications:
        to_add = missing_status_dates(app, infer_status_dates(app.get("events")))
        if not to_add:
            continue

        if dry_run:
            note_dry_run(
                details, "Would add status dates for application %s: %s",
                app["id"], ", ".join(to_add),
            )
        else:
            await ctx.store.update_application(app["id"], to_add)
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message="Successfully added status dates",
        documents_modified=documents_modified,
        details=details,
        dry_run=dry_run,
    )


async def rollback(ctx: MigrationContext) -> MigrationResult:
    # Clears every status date, including ones set by users after this migration ran.
    cleared = dict.fromkeys(STATUS_DATE_FIELDS)
    documents_modified = 0

    for app in await ctx.store.list_applications():
        if not any(app.get(field) for field in STATUS_DATE_FIELDS):
            continue
        await ctx.store.update_application(app["id"], cleared)
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Removed status dates from {documents_modified} applications",
        documents_modified=documents_modified,
        warnings=["All status dates were removed, not only the inferred ones"],
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Add Status Dates",
    description="Derive status dates from existing events and add date-based status tracking fields",
    execute=execute,
    reversibility=Reversible(rollback),
)
