"""All available migrations, in execution order."""

from __future__ import annotations

from tracker.migrations import (
    m001_migrate_events_schema,
    m002_add_status_dates,
    m003_update_application_statuses,
    m004_recalculate_current_statuses,
    m005_fix_empty_event_titles,
    m006_add_application_created_events,
)
from tracker.migrations.base import Migration


def get_all_migrations() -> list[Migration]:
    """Every unit, in declaration order. The runner sorts by id."""
    return [
        m001_migrate_events_schema.migration,
        m002_add_status_dates.migration,
        m003_update_application_statuses.migration,
        m004_recalculate_current_statuses.migration,
        m005_fix_empty_event_titles.migration,
        m006_add_application_created_events.migration,
    ]


def get_migration(migration_id: str) -> Migration | None:
    return next((m for m in get_all_migrations() if m.id == migration_id), None)
