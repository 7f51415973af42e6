"""003: give every user the default workflow statuses and re-point current_status ids.

Workflow: Not Applied → Applied → Phone Screen → Round 1 → Round 2 → Accepted/Declined
"""

from __future__ import annotations

import logging

from tracker.migrations.base import Migration, MigrationContext, Reversible, note_dry_run
from tracker.schemas.pydantic import MigrationResult
from tracker.services.default_workflow import default_status_names, get_default_statuses

logger = logging.getLogger(__name__)

MIGRATION_ID = "003"


def _distinct_user_ids(applications: list[dict]) -> list:
    seen: dict = {}
    for app in applications:
        seen.setdefault(app["user_id"], None)
    return list(seen)


async def _create_missing_statuses(ctx: MigrationContext, user_id, dry_run: bool, details: list[str]) -> int:
    existing_names = {s["name"] for s in await ctx.store.list_statuses(user_id)}
    to_create = [
        {"user_id": user_id, **status.model_dump()}
        for status in get_default_statuses()
        if status.name not in existing_names
    ]
    if not to_create:
        return 0

    if dry_run:
        note_dry_run(details, "Would create %d statuses for user %s", len(to_create), user_id)
    else:
        await ctx.store.insert_statuses(to_create)
    return len(to_create)


async def execute(ctx: MigrationContext, dry_run: bool) -> MigrationResult:
    details: list[str] = []
    documents_modified = 0

    applications = await ctx.store.list_applications()
    user_ids = _distinct_user_ids(applications)
    logger.info("Found %d unique users", len(user_ids))

    for user_id in user_ids:
        documents_modified += await _create_missing_statuses(ctx, user_id, dry_run, details)

    status_ids = {
        (str(s["user_id"]), s["name"]): str(s["id"])
        for s in await ctx.store.list_statuses()
    }

    for app in applications:
        current = app.get("current_status")
        if not current:
            continue

        status_id = status_ids.get((str(app["user_id"]), current.get("name")))
        if status_id is None or current.get("id") == status_id:
            continue

        if dry_run:
            note_dry_run(details, "Would update current_status.id for application %s", app["id"])
        else:
            await ctx.store.update_application(app["id"], {"current_status": {**current, "id": status_id}})
        documents_modified += 1

    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message="Successfully updated application statuses workflow",
        documents_modified=documents_modified,
        details=details,
        dry_run=dry_run,
    )


async def rollback(ctx: MigrationContext) -> MigrationResult:
    # Also removes user-created statuses that share a default name.
    deleted = await ctx.store.delete_statuses_by_name(default_status_names())
    return MigrationResult(
        migration_id=MIGRATION_ID,
        success=True,
        message=f"Removed {deleted} default workflow statuses",
        documents_modified=deleted,
        warnings=[
            "Default workflow statuses were removed. Applications may have invalid status references.",
        ],
    )


migration = Migration(
    id=MIGRATION_ID,
    name="Update Application Statuses",
    description="Migrate to the default status workflow and create default statuses for all users",
    execute=execute,
    reversibility=Reversible(rollback),
)
