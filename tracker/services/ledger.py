"""Migration ledger: which migration ids have completed successfully."""

from __future__ import annotations

import abc
from datetime import datetime, timezone

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from tracker.models.tables import MigrationLedgerEntry
from tracker.schemas.pydantic import LedgerEntry


class MigrationLedger(abc.ABC):
    """Insert-only log keyed by migration id. Entries are removed only on rollback."""

    @abc.abstractmethod
    async def has_run(self, migration_id: str) -> bool: ...

    @abc.abstractmethod
    async def mark_run(self, migration_id: str) -> None: ...

    @abc.abstractmethod
    async def unmark(self, migration_id: str) -> None: ...

    @abc.abstractmethod
    async def entries(self) -> list[LedgerEntry]: ...


class SqlMigrationLedger(MigrationLedger):
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def has_run(self, migration_id: str) -> bool:
        result = await self.db.execute(
            select(MigrationLedgerEntry.migration_id).where(
                MigrationLedgerEntry.migration_id == migration_id,
                MigrationLedgerEntry.success.is_(True),
            )
        )
        return result.scalar_one_or_none() is not None

    async def mark_run(self, migration_id: str) -> None:
        self.db.add(
            MigrationLedgerEntry(
                migration_id=migration_id,
                run_at=datetime.now(timezone.utc),
                success=True,
            )
        )
        await self.db.commit()

    async def unmark(self, migration_id: str) -> None:
        await self.db.execute(
            delete(MigrationLedgerEntry).where(MigrationLedgerEntry.migration_id == migration_id)
        )
        await self.db.commit()

    async def entries(self) -> list[LedgerEntry]:
        result = await self.db.execute(
            select(MigrationLedgerEntry).order_by(MigrationLedgerEntry.migration_id)
        )
        return [LedgerEntry.model_validate(row) for row in result.scalars().all()]
