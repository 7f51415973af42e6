"""004: recalculate current_status from status dates.

current_status was not kept in step with status date edits, so cards showed
e.g. "Applied" while a phone_screen_date existed. One-shot corrective pass.
"""

from __future__ import annotations

import logging

from tracker.migrations.base import Irreversible, Migration, MigrationContext
from tracker.schemas.pydantic import MigrationResult

logger = logging.getLogger(__name__)

MIGRATION_ID = "004"


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    updated = await ctx.status_service.recalculate_all_current_statuses(dry_run=dry_run)
    if updated == 0:
        logger.info("No applications needed status updates")

    verb = "Would recalculate" if dry_run else "Recalculated"
    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"{verb} current_status for {updated} applications",
        documents_modified=updated,
        dry_run=dry_run,
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Recalculate Current Statuses",
    description="Recalculate current_status based on status dates for all applications",
    execute=execute,
    reversibility=Irreversible(
        "Cannot rollback current status recalculation - this migration only fixes incorrect data"
    ),
)
