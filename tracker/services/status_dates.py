"""Status-date inference: derive status dates from free-text event titles.

The keyword sets are loose substring matches. "screening" could
describe a technical screen rather than a phone screen; the mapping is kept
as-is because reclassifying it needs product input.
"""

from __future__ import annotations

from dataclasses import dataclass

from tracker.services.events import event_title
from tracker.services.lifecycle_events import is_synthetic_event

STATUS_DATE_FIELDS = (
    "applied_date",
    "phone_screen_date",
    "round1_date",
    "round2_date",
    "accepted_date",
    "declined_date",
)


@dataclass(frozen=True)
class KeywordRule:
    field: str
    keywords: tuple[str, ...]
    prefer_earliest: bool = False

    def matches(self, title: str) -> bool:
        return any(keyword in title for keyword in self.keywords)


KEYWORD_RULES = (
    KeywordRule("applied_date", ("applied", "application"), prefer_earliest=True),
    KeywordRule("phone_screen_date", ("phone screen", "phone call", "screening")),
    KeywordRule("round1_date", ("interview", "round 1", "first round", "technical")),
    KeywordRule("round2_date", ("round 2", "second round", "final round", "onsite")),
    KeywordRule("accepted_date", ("accepted", "offer", "hired")),
    KeywordRule("declined_date", ("rejected", "declined", "rejection", "not selected", "passed")),
)


def infer_status_dates(events: list[dict] | None) -> dict[str, str]:
    """Return the status dates implied by *events*.

    One event may feed several fields. Undated events and events written by the
    lifecycle backfill are ignored. If nothing matched the applied keywords,
    the earliest dated event stands in for ``applied_date``. Dates are
    compared as ISO strings.
    """
    inferred: dict[str, str] = {}
    dated = [e for e in events or [] if e.get("date") and not is_synthetic_event(e)]

    for event in dated:
        title = event_title(event).lower()
        event_date = event["date"]
        for rule in KEYWORD_RULES:
            if not rule.matches(title):
                continue
            current = inferred.get(rule.field)
            if current is None:
                inferred[rule.field] = event_date
            elif rule.prefer_earliest and event_date < current:
                inferred[rule.field] = event_date
            elif not rule.prefer_earliest and event_date > current:
                inferred[rule.field] = event_date

    if "applied_date" not in inferred and dated:
        inferred["applied_date"] = min(e["date"] for e in dated)

    return inferred


def missing_status_dates(record: dict, inferred: dict[str, str]) -> dict[str, str]:
    """Keep only the inferred fields the record does not already have."""
    return {
        field: value
        for field, value in inferred.items()
        if value and not record.get(field)
    }
