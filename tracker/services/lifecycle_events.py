"""Lifecycle-event backfill: synthesize timeline events from known status dates.

Duplicate detection and rollback recognition both use exact title plus
description-pattern matching. A user-authored event with identical text is
indistinguishable from a synthetic one.
"""

from __future__ import annotations

import secrets
import string
import time
from dataclasses import dataclass

CREATED_TITLE = "Application created"
CREATED_DESCRIPTION = "Application tracking started"

_BASE36 = string.digits + string.ascii_lowercase


@dataclass(frozen=True)
class StageEvent:
    field: str
    title: str
    description_prefix: str

    def description(self, status_date: str) -> str:
        return f"{self.description_prefix} {status_date}"


# Workflow order. Accepted and declined are both terminal.
STAGE_EVENTS = (
    StageEvent("applied_date", "Application submitted", "Applied to position on"),
    StageEvent("phone_screen_date", "Phone screen scheduled", "Phone screening interview scheduled for"),
    StageEvent("round1_date", "First interview scheduled", "First round interview scheduled for"),
    StageEvent("round2_date", "Second interview scheduled", "Second round interview scheduled for"),
    StageEvent("accepted_date", "Offer accepted", "Job offer accepted on"),
    StageEvent("declined_date", "Application declined", "Application declined on"),
)


def generate_event_id() -> str:
    """``event_<epoch ms>_<9 base36 chars>``, the id format the web client uses."""
    suffix = "".join(secrets.choice(_BASE36) for _ in range(9))
    return f"event_{int(time.time() * 1000)}_{suffix}"


def build_lifecycle_events(record: dict, event_date: str) -> list[dict]:
    """Return the synthetic events *record* is missing, in workflow order.

    Every synthetic event is dated *event_date*; the historical status date
    only appears in the description.
    """
    existing_titles = {e.get("title") for e in record.get("events") or []}
    new_events: list[dict] = []

    if CREATED_TITLE not in existing_titles:
        new_events.append({
            "id": generate_event_id(),
            "title": CREATED_TITLE,
            "description": CREATED_DESCRIPTION,
            "date": event_date,
        })

    for stage in STAGE_EVENTS:
        status_date = record.get(stage.field)
        if not status_date or stage.title in existing_titles:
            continue
        new_events.append({
            "id": generate_event_id(),
            "title": stage.title,
            "description": stage.description(status_date),
            "date": event_date,
        })

    return new_events


def is_synthetic_event(event: dict) -> bool:
    """True if *event* matches one of the exact patterns build_lifecycle_events produces."""
    title = event.get("title")
    description = event.get("description") or ""
    if title == CREATED_TITLE:
        return description == CREATED_DESCRIPTION
    return any(
        title == stage.title and stage.description_prefix in description
        for stage in STAGE_EVENTS
    )
