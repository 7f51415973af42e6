"""Default application workflow: the single source of status definitions."""

from __future__ import annotations

from tracker.schemas.pydantic import StatusDefinition

_DEFAULT_STATUSES = (
    ("Not Applied", "Application not yet submitted", False),
    ("Applied", "Application has been submitted", False),
    ("Phone Screen", "Initial phone screening interview", False),
    ("Round 1", "First round interview", False),
    ("Round 2", "Second round interview", False),
    ("Accepted", "Job offer accepted", True),
    ("Declined", "Application was declined or withdrawn", True),
)


def get_default_statuses() -> list[StatusDefinition]:
    """Return the default workflow statuses in stage order."""
    return [
        StatusDefinition(name=name, description=description, is_terminal=is_terminal, order=order)
        for order, (name, description, is_terminal) in enumerate(_DEFAULT_STATUSES, start=1)
    ]


def default_status_names() -> list[str]:
    return [status.name for status in get_default_statuses()]
