"""005: replace empty or whitespace-only event titles with "Event"."""

from __future__ import annotations

import logging

from tracker.migrations.base import Irreversible, Migration, MigrationContext, note_dry_run
from tracker.schemas.pydantic import MigrationResult
from tracker.services.events import DEFAULT_EVENT_TITLE

logger = logging.getLogger(__name__)

MIGRATION_ID = "005"


def _has_empty_title(event: dict) -> bool:
    title = event.get("title")
    return not title or (isinstance(title, str) and not title.strip())


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    details: list[str] = []
    documents_modified = 0
    events_fixed = 0

    applications = [a for a in await ctx.store.list_applications() if a.get("events")]
    logger.info("Found %d applications with events", len(applications))

    for app in applications:
        empty = sum(1 for e in app["events"] if _has_empty_title(e))
        if not empty:
            continue

        fixed = [
            {**e, "title": DEFAULT_EVENT_TITLE} if _has_empty_title(e) else e
            for e in app["events"]
        ]
        if dry_run:
            note_dry_run(details, "Would fix %d empty titles for application %s", empty, app["id"])
        else:
            await ctx.store.update_application(app["id"], {"events": fixed})
        events_fixed += empty
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Fixed {events_fixed} empty event titles across {documents_modified} applications",
        documents_modified=documents_modified,
        details=details,
        dry_run=dry_run,
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Fix Empty Event Titles",
    description='Replace empty or whitespace-only event titles with "Event"',
    execute=execute,
    reversibility=Irreversible(
        'Cannot rollback this migration - original empty titles cannot be distinguished '
        'from intentional "Event" titles'
    ),
)
