"""Migration unit contract."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Awaitable, Callable

from tracker.schemas.pydantic import MigrationResult
from tracker.services.application_statuses import ApplicationStatusService
from tracker.services.record_store import RecordStore

logger = logging.getLogger(__name__)


@dataclass
class MigrationContext:
    """Everything a unit may touch. ``run_date`` stamps synthetic events."""

    store: RecordStore
    run_date: date = field(default_factory=date.today)
    status_service: ApplicationStatusService | None = None

    def __post_init__(self) -> None:
        if self.status_service is None:
            self.status_service = ApplicationStatusService(self.store)


ExecuteFn = Callable[[MigrationContext, bool], Awaitable[MigrationResult]]
RollbackFn = Callable[[MigrationContext], Awaitable[MigrationResult]]


@dataclass(frozen=True)
class Reversible:
    rollback: RollbackFn


@dataclass(frozen=True)
class Irreversible:
    reason: str


Reversibility = Reversible | Irreversible


@dataclass(frozen=True)
class Migration:
    id: str
    name: str
    description: str
    execute: ExecuteFn
    reversibility: Reversibility

    @property
    def reversible(self) -> bool:
        return isinstance(self.reversibility, Reversible)


def note_dry_run(details: list[str], message: str, *args) -> None:
    """Log a simulated change and keep the line for the unit's result."""
    line = "[DRY RUN] " + (message % args if args else message)
    logger.info("%s", line)
    details.append(line)
