"""006: backfill "Application created" and status lifecycle events on legacy applications.

Synthetic events carry the migration date; the historical status date only
appears in the event description.
"""

from __future__ import annotations

import logging

from tracker.migrations.base import Migration, MigrationContext, Reversible, note_dry_run
from tracker.schemas.pydantic import MigrationResult
from tracker.services.lifecycle_events import build_lifecycle_events, is_synthetic_event

logger = logging.getLogger(__name__)

MIGRATION_ID = "006"


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    details: list[str] = []
    documents_modified = 0
    events_added = 0
    migration_date = ctx.run_date.isoformat()

    applications = await ctx.store.list_applications()
    logger.info("Processing %d applications", len(applications))

    for app in applications:
        new_events = build_lifecycle_events(app, migration_date)
        if not new_events:
            continue

        if dry_run:
            note_dry_run(
                details, "Would add %d events to application %s (%s - %s): %s",
                len(new_events), app["id"], app.get("company_name"), app.get("role_name"),
                "; ".join(f"{e['title']}: {e['description']}" for e in new_events),
            )
        else:
            await ctx.store.update_application(
                app["id"], {"events": new_events + list(app.get("events") or [])}
            )
        events_added += len(new_events)
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Added {events_added} lifecycle events to {documents_modified} applications",
        documents_modified=documents_modified,
        details=details,
        dry_run=dry_run,
    )


async def rollback(ctx: MigrationContext) -> MigrationResult:
    documents_modified = 0

    for app in await ctx.store.list_applications():
        events = app.get("events") or []
        kept = [e for e in events if not is_synthetic_event(e)]
        if len(kept) == len(events):
            continue
        await ctx.store.update_application(app["id"], {"events": kept})
        documents_modified += 1

    logger.info("Removed migration-created events from %d applications", documents_modified)
    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Removed migration-created events from {documents_modified} applications",
        documents_modified=documents_modified,
        warnings=[
            "User-authored events with the same title and description pattern were removed too",
        ],
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Add 'Application created' Events and Status Events to Legacy Applications",
    description="Add missing lifecycle events to existing applications based on their current status dates",
    execute=execute,
    reversibility=Reversible(rollback),
)
