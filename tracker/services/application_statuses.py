"""Current-status resolution: derive an application's stage from its status dates."""

from __future__ import annotations

import logging
from datetime import date

from tracker.schemas.pydantic import CurrentStatus
from tracker.services.record_store import RecordStore

logger = logging.getLogger(__name__)

NOT_APPLIED = CurrentStatus(id="not_applied", name="Not Applied")

# (field, slug, name) in stage order. The last two are both terminal.
STAGES = (
    ("applied_date", "applied", "Applied"),
    ("phone_screen_date", "phone_screen", "Phone Screen"),
    ("round1_date", "round_1", "Round 1"),
    ("round2_date", "round_2", "Round 2"),
    ("accepted_date", "accepted", "Accepted"),
    ("declined_date", "declined", "Declined"),
)


def _parse_date(value) -> date | None:
    if not value:
        return None
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError:
        return None


def calculate_current_status(record: dict) -> CurrentStatus:
    """Return the furthest stage whose date is set and parseable.

    Unparseable dates are skipped. If both terminal dates are set the later one
    wins, and Declined wins a tie.
    """
    reached = [
        (slug, name)
        for field, slug, name in STAGES
        if _parse_date(record.get(field)) is not None
    ]
    if not reached:
        return NOT_APPLIED

    accepted = _parse_date(record.get("accepted_date"))
    declined = _parse_date(record.get("declined_date"))
    if accepted and declined and accepted > declined:
        return CurrentStatus(id="accepted", name="Accepted")

    slug, name = reached[-1]
    return CurrentStatus(id=slug, name=name)


class ApplicationStatusService:
    """Recomputes the cached ``current_status`` snapshot across the store."""

    def __init__(self, store: RecordStore) -> None:
        self.store = store

    async def _status_ids_by_user(self) -> dict[tuple[str, str], str]:
        statuses = await self.store.list_statuses()
        return {(str(s["user_id"]), s["name"]): str(s["id"]) for s in statuses}

    async def recalculate_all_current_statuses(self, dry_run: bool = False) -> int:
        """Rewrite ``current_status`` where it differs from the computed one.

        The status id is the user's matching status definition id when one
        exists, else the stage slug. Returns the number of records changed
        (or that would change, in dry-run).
        """
        status_ids = await self._status_ids_by_user()
        updated = 0

        for record in await self.store.list_applications():
            computed = calculate_current_status(record)
            status_id = status_ids.get((str(record.get("user_id")), computed.name), computed.id)
            new_status = {"id": status_id, "name": computed.name}

            current = record.get("current_status") or {}
            if current.get("id") == new_status["id"] and current.get("name") == new_status["name"]:
                continue

            if dry_run:
                logger.info(
                    "[DRY RUN] Would set current status of application %s to %s",
                    record["id"], computed.name,
                )
            else:
                await self.store.update_application(record["id"], {"current_status": new_status})
            updated += 1

        return updated
