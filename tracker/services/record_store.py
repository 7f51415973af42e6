"""Record store adapter. The only code that talks to the applications tables.

Records cross this boundary as plain dicts. Status dates are ISO ``YYYY-MM-DD``
strings on the dict side and ``Date`` columns on the table side.
"""

from __future__ import annotations

import abc
import uuid
from datetime import date, datetime, timezone
from typing import Any

from sqlalchemy import delete, insert, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.exceptions import StoreError
from tracker.models.tables import Application, ApplicationStatus
from tracker.services.status_dates import STATUS_DATE_FIELDS

DATE_COLUMNS = STATUS_DATE_FIELDS


class RecordStore(abc.ABC):
    """Scan / point-update / bulk-insert contract the migrations are written against."""

    @abc.abstractmethod
    async def list_applications(self) -> list[dict]:
        """All application records, in stable store-iteration order."""

    @abc.abstractmethod
    async def update_application(self, app_id: Any, values: dict) -> None:
        """Set *values* on one record. A ``None`` value clears the field."""

    @abc.abstractmethod
    async def list_statuses(self, user_id: Any = None) -> list[dict]:
        """Status definitions, optionally for one user only."""

    @abc.abstractmethod
    async def insert_statuses(self, statuses: list[dict]) -> int:
        """Bulk-insert status definitions; returns the number inserted."""

    @abc.abstractmethod
    async def delete_statuses_by_name(self, names: list[str]) -> int:
        """Delete every status definition (any user) whose name is in *names*."""


def _to_date(field: str, value: Any) -> date | None:
    if value is None or isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value)[:10])
    except ValueError as exc:
        raise StoreError(f"Invalid date for {field}: {value!r}") from exc


def _row_to_record(row) -> dict:
    record = dict(row)
    for field in DATE_COLUMNS:
        if record.get(field) is not None:
            record[field] = record[field].isoformat()
    record["events"] = list(record.get("events") or [])
    return record


class SqlRecordStore(RecordStore):
    """RecordStore over an AsyncSession. Every write is committed on its own."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def list_applications(self) -> list[dict]:
        result = await self.db.execute(
            select(*Application.__table__.c).order_by(Application.created_at, Application.id)
        )
        return [_row_to_record(row) for row in result.mappings().all()]

    async def update_application(self, app_id: Any, values: dict) -> None:
        data = {
            field: _to_date(field, value) if field in DATE_COLUMNS else value
            for field, value in values.items()
        }
        data["updated_at"] = datetime.now(timezone.utc)
        await self.db.execute(
            update(Application).where(Application.id == app_id).values(**data)
        )
        await self.db.commit()

    async def list_statuses(self, user_id: Any = None) -> list[dict]:
        stmt = select(*ApplicationStatus.__table__.c).order_by(
            ApplicationStatus.user_id, ApplicationStatus.sort_order, ApplicationStatus.created_at
        )
        if user_id is not None:
            stmt = stmt.where(ApplicationStatus.user_id == user_id)
        result = await self.db.execute(stmt)
        return [dict(row) for row in result.mappings().all()]

    async def insert_statuses(self, statuses: list[dict]) -> int:
        if not statuses:
            return 0
        now = datetime.now(timezone.utc)
        rows = [
            {
                "id": uuid.uuid4(),
                "user_id": s["user_id"],
                "name": s["name"],
                "description": s.get("description"),
                "is_terminal": s.get("is_terminal", False),
                "sort_order": s.get("order"),
                "created_at": now,
            }
            for s in statuses
        ]
        await self.db.execute(insert(ApplicationStatus), rows)
        await self.db.commit()
        return len(rows)

    async def delete_statuses_by_name(self, names: list[str]) -> int:
        result = await self.db.execute(
            delete(ApplicationStatus).where(ApplicationStatus.name.in_(names))
        )
        await self.db.commit()
        return result.rowcount or 0
