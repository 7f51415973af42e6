"""Event-shape helpers shared by the normalization, inference and validation code."""

from __future__ import annotations

from tracker.schemas.pydantic import Event, LegacyEvent

LEGACY_EVENT_KEYS = ("event_type", "status_id", "status_name", "notes")
DEFAULT_EVENT_TITLE = "Event"
UNKNOWN_STATUS_ID = "unknown"


def _first_present(*values):
    for value in values:
        if value is not None:
            return value
    return None


def is_legacy_event(event: dict) -> bool:
    """True if any legacy-only key carries a value."""
    return any(event.get(key) for key in LEGACY_EVENT_KEYS)


def has_legacy_events(events: list[dict] | None) -> bool:
    return any(is_legacy_event(e) for e in events or [])


def event_title(event: dict) -> str:
    """Best-effort title for an event in either shape."""
    return event.get("title") or event.get("event_type") or ""


def to_canonical_event(event: dict) -> dict:
    """Map an event from whichever shape it is in to {id, title, description, date}.

    Canonical input maps to itself. Absent values are omitted rather than stored as null.
    """
    canonical = Event(
        id=event.get("id"),
        title=_first_present(
            event.get("title"), event.get("event_type"), event.get("status_name"), DEFAULT_EVENT_TITLE,
        ),
        description=_first_present(event.get("description"), event.get("notes")),
        date=event.get("date"),
    )
    return canonical.model_dump(exclude_none=True)


def to_legacy_event(event: dict) -> dict:
    """Rebuild the legacy shape. The original status id is gone, so it becomes "unknown"."""
    title = _first_present(event.get("title"), event.get("event_type"))
    legacy = LegacyEvent(
        id=event.get("id"),
        event_type=title,
        status_id=UNKNOWN_STATUS_ID,
        status_name=title,
        notes=_first_present(event.get("description"), event.get("notes")),
        date=event.get("date"),
    )
    return legacy.model_dump(exclude_none=True)


def classify_events(events: list[dict] | None) -> str:
    """Return "empty", "legacy", "canonical" or "mixed" for one record's event list."""
    if not events:
        return "empty"
    legacy = sum(1 for e in events if is_legacy_event(e))
    if legacy == 0:
        return "canonical"
    if legacy == len(events):
        return "legacy"
    return "mixed"
