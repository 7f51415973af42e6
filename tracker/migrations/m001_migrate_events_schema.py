"""001: convert events from {event_type, status_id, status_name, notes} to {title, description}.

Removes the coupling between events and status changes. Records whose events
are all canonical already are left alone.
"""

from __future__ import annotations

import logging

from tracker.migrations.base import Migration, MigrationContext, Reversible, note_dry_run
from tracker.schemas.pydantic import MigrationResult
from tracker.services.events import has_legacy_events, to_canonical_event, to_legacy_event

logger = logging.getLogger(__name__)

MIGRATION_ID = "001"


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    details: list[str] = []
    documents_modified = 0

    applications = [a for a in await ctx.store.list_applications() if a.get("events")]
    logger.info("Found %d applications with events", len(applications))

    for app in applications:
        if not has_legacy_events(app["events"]):
            continue

        migrated = [to_canonical_event(e) for e in app["events"]]
        if dry_run:
            note_dry_run(details, "Would migrate %d events for application %s", len(migrated), app["id"])
        else:
            await ctx.store.update_application(app["id"], {"events": migrated})
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message="Successfully migrated events schema",
        documents_modified=documents_modified,
        details=details,
        dry_run=dry_run,
    )


async def rollback(ctx: MigrationContext) -> MigrationResult:
    logger.warning(
        "Events schema rollback restores structure but cannot recover original status ids"
    )
    documents_modified = 0

    for app in await ctx.store.list_applications():
        if not app.get("events"):
            continue
        await ctx.store.update_application(
            app["id"], {"events": [to_legacy_event(e) for e in app["events"]]}
        )
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Rolled back events schema for {documents_modified} applications",
        documents_modified=documents_modified,
        warnings=['Original status_id values could not be recovered; set to "unknown"'],
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Migrate Events Schema",
    description="Convert event format from event_type/notes to title/description and remove status coupling",
    execute=execute,
    reversibility=Reversible(rollback),
)
