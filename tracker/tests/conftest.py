"""Shared fixtures for migration tests: in-memory store and ledger, no database needed."""

from __future__ import annotations

import copy
from datetime import date, datetime, timezone

import pytest

from tracker.migrations.base import MigrationContext
from tracker.schemas.pydantic import LedgerEntry
from tracker.services.ledger import MigrationLedger
from tracker.services.record_store import RecordStore

RUN_DATE = date(2025, 6, 1)


class InMemoryRecordStore(RecordStore):
    """Dict-backed RecordStore. ``writes`` counts every mutating call."""

    def __init__(self, applications: list[dict] | None = None, statuses: list[dict] | None = None) -> None:
        self.applications = copy.deepcopy(applications or [])
        self.statuses = copy.deepcopy(statuses or [])
        self.writes = 0
        self._next_status = len(self.statuses) + 1

    def snapshot(self) -> tuple[list[dict], list[dict]]:
        return copy.deepcopy(self.applications), copy.deepcopy(self.statuses)

    def get(self, app_id) -> dict:
        return next(a for a in self.applications if a["id"] == app_id)

    async def list_applications(self) -> list[dict]:
        return copy.deepcopy(self.applications)

    async def update_application(self, app_id, values: dict) -> None:
        record = self.get(app_id)
        for field, value in values.items():
            if value is None:
                record.pop(field, None)
            else:
                record[field] = copy.deepcopy(value)
        self.writes += 1

    async def list_statuses(self, user_id=None) -> list[dict]:
        return [
            copy.deepcopy(s) for s in self.statuses
            if user_id is None or s["user_id"] == user_id
        ]

    async def insert_statuses(self, statuses: list[dict]) -> int:
        for status in statuses:
            self.statuses.append({
                "id": f"status-{self._next_status}",
                "user_id": status["user_id"],
                "name": status["name"],
                "description": status.get("description"),
                "is_terminal": status.get("is_terminal", False),
                "sort_order": status.get("order"),
            })
            self._next_status += 1
        self.writes += 1
        return len(statuses)

    async def delete_statuses_by_name(self, names: list[str]) -> int:
        before = len(self.statuses)
        self.statuses = [s for s in self.statuses if s["name"] not in names]
        self.writes += 1
        return before - len(self.statuses)


class InMemoryMigrationLedger(MigrationLedger):
    def __init__(self, completed: list[str] | None = None) -> None:
        self._entries: dict[str, LedgerEntry] = {}
        self.writes = 0
        for migration_id in completed or []:
            self._entries[migration_id] = LedgerEntry(
                migration_id=migration_id, run_at=datetime.now(timezone.utc),
            )

    async def has_run(self, migration_id: str) -> bool:
        entry = self._entries.get(migration_id)
        return entry is not None and entry.success

    async def mark_run(self, migration_id: str) -> None:
        if migration_id in self._entries:
            raise AssertionError(f"Ledger entry {migration_id} written twice")
        self._entries[migration_id] = LedgerEntry(
            migration_id=migration_id, run_at=datetime.now(timezone.utc),
        )
        self.writes += 1

    async def unmark(self, migration_id: str) -> None:
        self._entries.pop(migration_id, None)
        self.writes += 1

    async def entries(self) -> list[LedgerEntry]:
        return [self._entries[k] for k in sorted(self._entries)]

    def ids(self) -> list[str]:
        return sorted(self._entries)


@pytest.fixture
def run_date() -> date:
    return RUN_DATE


@pytest.fixture
def legacy_application() -> dict:
    """An application still carrying pre-migration events."""
    return {
        "id": "app-1",
        "user_id": "user-1",
        "company_name": "Acme Corp",
        "role_name": "Backend Engineer",
        "events": [
            {"id": "e1", "event_type": "Phone Call", "notes": "went well", "date": "2025-03-01"},
        ],
        "current_status": {"id": "old-applied", "name": "Applied"},
    }


@pytest.fixture
def canonical_application() -> dict:
    """An application already in canonical shape with one status date set."""
    return {
        "id": "app-2",
        "user_id": "user-2",
        "company_name": "StartupXYZ",
        "role_name": "Full Stack Developer",
        "events": [
            {"id": "e2", "title": "Applied online", "description": "Via careers page", "date": "2025-01-10"},
            {"id": "e3", "title": "Technical interview", "date": "2025-02-01"},
        ],
        "applied_date": "2025-01-08",
    }


@pytest.fixture
def store(legacy_application, canonical_application) -> InMemoryRecordStore:
    return InMemoryRecordStore([legacy_application, canonical_application])


@pytest.fixture
def ledger() -> InMemoryMigrationLedger:
    return InMemoryMigrationLedger()


@pytest.fixture
def ctx(store, run_date) -> MigrationContext:
    return MigrationContext(store=store, run_date=run_date)


@pytest.fixture
def make_store():
    """Factory for stores built from ad-hoc records."""
    return InMemoryRecordStore


@pytest.fixture
def make_ledger():
    return InMemoryMigrationLedger
