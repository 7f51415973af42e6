"""Pydantic v2 models for event shapes, statuses and migration reports."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

# Shared config for schemas that may be built from ORM rows
_ORM_CONFIG = ConfigDict(from_attributes=True)


# ── Events ─────────────────────────────────────────────────────────────
class Event(BaseModel):
    """Canonical event shape."""

    id: str | int | None = None
    title: str
    description: str | None = None
    date: str | None = None


class LegacyEvent(BaseModel):
    """Pre-migration event shape, coupled to a status."""

    id: str | int | None = None
    event_type: str | None = None
    status_id: str | None = None
    status_name: str | None = None
    notes: str | None = None
    date: str | None = None


# ── Statuses ───────────────────────────────────────────────────────────
class CurrentStatus(BaseModel):
    id: str
    name: str


class StatusDefinition(BaseModel):
    model_config = _ORM_CONFIG
    name: str
    description: str | None = None
    is_terminal: bool = False
    order: int = 0


# ── Ledger ─────────────────────────────────────────────────────────────
class LedgerEntry(BaseModel):
    model_config = _ORM_CONFIG
    migration_id: str
    run_at: datetime
    success: bool = True


# ── Migration reports ──────────────────────────────────────────────────
class MigrationResult(BaseModel):
    """Outcome of one execute() or rollback() call."""

    migration_id: str = ""
    success: bool
    message: str
    documents_modified: int = 0
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    details: list[str] = Field(default_factory=list)
    dry_run: bool = False
    skipped: bool = False


class ValidationReport(BaseModel):
    """Diagnostic snapshot of the store. Never used to fail a run."""

    total_applications: int = 0
    total_statuses: int = 0
    legacy_records: int = 0
    canonical_records: int = 0
    mixed_records: int = 0
    records_without_events: int = 0
    mixed_record_ids: list[str] = Field(default_factory=list)
    status_date_coverage: dict[str, int] = Field(default_factory=dict)
    sample_record_id: str | None = None
    sample_status_dates: list[str] = Field(default_factory=list)

    @property
    def has_errors(self) -> bool:
        return self.mixed_records > 0
