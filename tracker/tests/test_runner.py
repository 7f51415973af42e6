"""Tests for MigrationRunner: ordering, ledger, force, dry-run, rollback and validation."""

from __future__ import annotations

import pytest

from tracker.exceptions import MigrationFailedError, MigrationNotFoundError
from tracker.migrations.base import Irreversible, Migration, Reversible
from tracker.migrations.registry import get_all_migrations, get_migration
from tracker.migrations.runner import MigrationRunner, create_backup
from tracker.schemas.pydantic import MigrationResult

ALL_IDS = ["001", "002", "003", "004", "005", "006"]


def _recording_migration(migration_id: str, calls: list[str], fail: bool = False, raises: bool = False) -> Migration:
    async def execute(ctx, dry_run):
        calls.append(migration_id)
        if raises:
            raise RuntimeError("store went away")
        return MigrationResult(migration_id=migration_id, success=not fail, message="done", dry_run=dry_run)

    async def rollback(ctx):
        if raises:
            raise RuntimeError("rollback exploded")
        return MigrationResult(migration_id=migration_id, success=True, message="undone")

    return Migration(
        id=migration_id,
        name=f"Unit {migration_id}",
        description="test unit",
        execute=execute,
        reversibility=Reversible(rollback),
    )


@pytest.fixture
def runner(store, ledger, run_date) -> MigrationRunner:
    return MigrationRunner(store, ledger, run_date=run_date)


class TestRegistry:
    def test_declared_in_id_order(self):
        ids = [m.id for m in get_all_migrations()]
        assert ids == ALL_IDS

    def test_reversibility(self):
        reversible = {m.id for m in get_all_migrations() if m.reversible}
        assert reversible == {"001", "002", "003", "006"}

    def test_get_migration(self):
        assert get_migration("004").name == "Recalculate Current Statuses"
        assert get_migration("999") is None


class TestRunMigrations:
    @pytest.mark.asyncio
    async def test_runs_in_ascending_id_order(self, store, ledger):
        calls: list[str] = []
        units = [_recording_migration(i, calls) for i in ("003", "001", "002")]
        await MigrationRunner(store, ledger, migrations=units).run_migrations()
        assert calls == ["001", "002", "003"]
        assert ledger.ids() == ["001", "002", "003"]

    @pytest.mark.asyncio
    async def test_full_run_marks_every_unit(self, runner, ledger):
        results = await runner.run_migrations()
        assert [r.migration_id for r in results] == ALL_IDS
        assert all(r.success for r in results)
        assert ledger.ids() == ALL_IDS

    @pytest.mark.asyncio
    async def test_second_run_skips_everything(self, runner, store, ledger):
        await runner.run_migrations()
        store_writes, ledger_writes = store.writes, ledger.writes

        results = await runner.run_migrations()
        assert all(r.skipped for r in results)
        assert store.writes == store_writes
        assert ledger.writes == ledger_writes

    @pytest.mark.asyncio
    async def test_only_pending_units_execute(self, store, make_ledger):
        calls: list[str] = []
        units = [_recording_migration(i, calls) for i in ("001", "002")]
        ledger = make_ledger(completed=["001"])
        runner = MigrationRunner(store, ledger, migrations=units)
        assert [m.id for m in await runner.pending_migrations()] == ["002"]
        await runner.run_migrations()
        assert calls == ["002"]

    @pytest.mark.asyncio
    async def test_force_reruns_without_duplicating_ledger(self, store, make_ledger):
        calls: list[str] = []
        units = [_recording_migration(i, calls) for i in ("001", "002")]
        ledger = make_ledger(completed=["001"])
        await MigrationRunner(store, ledger, migrations=units).run_migrations(force=True)
        assert calls == ["001", "002"]
        assert ledger.ids() == ["001", "002"]
        assert ledger.writes == 1

    @pytest.mark.asyncio
    async def test_force_over_migrated_data_is_a_no_op(self, runner, store, ledger):
        await runner.run_migrations()
        before = store.snapshot()
        store_writes, ledger_writes = store.writes, ledger.writes

        results = await runner.run_migrations(force=True)
        assert all(r.documents_modified == 0 for r in results)
        assert store.snapshot() == before
        assert store.writes == store_writes
        assert ledger.writes == ledger_writes

    @pytest.mark.asyncio
    async def test_force_does_not_infer_dates_from_backfilled_events(self, make_store, ledger, run_date):
        store = make_store([{
            "id": "app-9", "user_id": "user-9", "events": [],
            "applied_date": "2025-01-01", "round2_date": "2025-02-01",
        }])
        runner = MigrationRunner(store, ledger, run_date=run_date)
        await runner.run_migrations()
        titles = [e["title"] for e in store.get("app-9")["events"]]
        assert "Second interview scheduled" in titles
        before = store.snapshot()

        await runner.run_migrations(force=True)
        assert store.snapshot() == before
        assert "round1_date" not in store.get("app-9")

    @pytest.mark.asyncio
    async def test_failure_result_stops_the_run(self, store, ledger):
        calls: list[str] = []
        units = [
            _recording_migration("001", calls),
            _recording_migration("002", calls, fail=True),
            _recording_migration("003", calls),
        ]
        with pytest.raises(MigrationFailedError) as exc_info:
            await MigrationRunner(store, ledger, migrations=units).run_migrations()

        assert calls == ["001", "002"]
        assert ledger.ids() == ["001"]
        assert [r.migration_id for r in exc_info.value.results] == ["001", "002"]
        assert exc_info.value.exit_code == 1

    @pytest.mark.asyncio
    async def test_exception_becomes_failure(self, store, ledger):
        calls: list[str] = []
        units = [_recording_migration("001", calls, raises=True), _recording_migration("002", calls)]
        with pytest.raises(MigrationFailedError) as exc_info:
            await MigrationRunner(store, ledger, migrations=units).run_migrations()

        failed = exc_info.value.results[-1]
        assert not failed.success
        assert failed.errors == ["store went away"]
        assert calls == ["001"]
        assert ledger.ids() == []


class TestDryRun:
    @pytest.mark.asyncio
    async def test_writes_nothing(self, runner, store, ledger):
        before = store.snapshot()
        results = await runner.run_migrations(dry_run=True)

        assert store.snapshot() == before
        assert store.writes == 0
        assert ledger.ids() == []
        assert ledger.writes == 0
        assert all(r.dry_run for r in results)

    @pytest.mark.asyncio
    async def test_runs_units_already_in_ledger(self, store, make_ledger):
        calls: list[str] = []
        units = [_recording_migration(i, calls) for i in ("001", "002")]
        ledger = make_ledger(completed=["001", "002"])
        await MigrationRunner(store, ledger, migrations=units).run_migrations(dry_run=True)
        assert calls == ["001", "002"]
        assert ledger.writes == 0

    @pytest.mark.asyncio
    async def test_reports_would_be_changes(self, runner):
        results = await runner.run_migrations(dry_run=True)
        by_id = {r.migration_id: r for r in results}
        assert by_id["001"].documents_modified == 1
        assert any("app-1" in line for line in by_id["001"].details)


class TestRollback:
    @pytest.mark.asyncio
    async def test_rollback_removes_ledger_entry(self, runner, store, ledger):
        await runner.run_migrations()
        result = await runner.rollback_migration("006")

        assert result.success
        assert "006" not in ledger.ids()
        for app in store.applications:
            assert all(e["title"] != "Application created" for e in app["events"])

    @pytest.mark.asyncio
    async def test_rolled_back_unit_runs_again(self, runner, ledger):
        await runner.run_migrations()
        await runner.rollback_migration("006")
        results = await runner.run_migrations()
        executed = [r.migration_id for r in results if not r.skipped]
        assert executed == ["006"]
        assert ledger.ids() == ALL_IDS

    @pytest.mark.asyncio
    @pytest.mark.parametrize("migration_id", ["004", "005"])
    async def test_irreversible_units_refuse(self, runner, store, ledger, migration_id):
        await runner.run_migrations()
        before = store.snapshot()

        result = await runner.rollback_migration(migration_id)
        assert not result.success
        assert result.errors == ["Rollback not supported for this migration"]
        assert migration_id in ledger.ids()
        assert store.snapshot() == before

    @pytest.mark.asyncio
    async def test_irreversible_reason_is_the_message(self, store, ledger):
        async def execute(ctx, dry_run):
            return MigrationResult(success=True)

        unit = Migration(
            id="009", name="One way", description="", execute=execute,
            reversibility=Irreversible("Cannot undo"),
        )
        result = await MigrationRunner(store, ledger, migrations=[unit]).rollback_migration("009")
        assert result.message == "Cannot undo"

    @pytest.mark.asyncio
    async def test_rollback_exception_keeps_ledger_entry(self, store, make_ledger):
        ledger = make_ledger(completed=["001"])
        units = [_recording_migration("001", [], raises=True)]
        result = await MigrationRunner(store, ledger, migrations=units).rollback_migration("001")
        assert not result.success
        assert result.errors == ["rollback exploded"]
        assert ledger.ids() == ["001"]

    @pytest.mark.asyncio
    async def test_unknown_id(self, runner):
        with pytest.raises(MigrationNotFoundError):
            await runner.rollback_migration("999")


class TestValidateData:
    @pytest.mark.asyncio
    async def test_counts_event_shapes(self, make_store, make_ledger, legacy_application, canonical_application):
        mixed = {
            "id": "app-3", "user_id": "user-1",
            "events": [{"title": "Applied"}, {"event_type": "Phone Call"}],
        }
        empty = {"id": "app-4", "user_id": "user-1", "events": []}
        store = make_store(
            [legacy_application, canonical_application, mixed, empty],
            statuses=[{"id": "s1", "user_id": "user-1", "name": "Applied"}],
        )
        report = await MigrationRunner(store, make_ledger()).validate_data()

        assert report.total_applications == 4
        assert report.total_statuses == 1
        assert report.legacy_records == 1
        assert report.canonical_records == 1
        assert report.mixed_records == 1
        assert report.records_without_events == 1
        assert report.mixed_record_ids == ["app-3"]
        assert report.has_errors
        assert report.status_date_coverage["applied_date"] == 1
        assert report.sample_record_id == "app-1"
        assert report.sample_status_dates == []

    @pytest.mark.asyncio
    async def test_empty_store(self, make_store, make_ledger):
        report = await MigrationRunner(make_store(), make_ledger()).validate_data()
        assert report.total_applications == 0
        assert report.sample_record_id is None
        assert not report.has_errors

    @pytest.mark.asyncio
    async def test_read_only(self, runner, store, ledger):
        before = store.snapshot()
        await runner.validate_data()
        assert store.snapshot() == before
        assert store.writes == 0
        assert ledger.writes == 0


class TestLegacyRecordScenario:
    """A single legacy record carried through the whole pipeline."""

    @pytest.mark.asyncio
    async def test_full_pipeline(self, make_store, make_ledger, legacy_application, run_date):
        store = make_store([legacy_application])
        ledger = make_ledger()
        runner = MigrationRunner(store, ledger, run_date=run_date)

        await runner.run_migrations()
        app = store.get("app-1")

        assert app["phone_screen_date"] == "2025-03-01"
        # No applied keyword, so the earliest event date stands in.
        assert app["applied_date"] == "2025-03-01"
        assert [e["title"] for e in app["events"]] == [
            "Application created",
            "Application submitted",
            "Phone screen scheduled",
            "Phone Call",
        ]
        synthetic = app["events"][:3]
        assert all(e["date"] == "2025-06-01" for e in synthetic)
        assert "2025-03-01" in synthetic[1]["description"]
        assert "2025-03-01" in synthetic[2]["description"]
        assert app["events"][3] == {
            "id": "e1", "title": "Phone Call", "description": "went well", "date": "2025-03-01",
        }

        phone_screen = next(s for s in store.statuses if s["name"] == "Phone Screen")
        assert app["current_status"] == {"id": phone_screen["id"], "name": "Phone Screen"}
        assert ledger.ids() == ALL_IDS

        before = store.snapshot()
        await runner.run_migrations(force=True)
        assert store.snapshot() == before


class TestCreateBackup:
    def test_returns_target_path(self, tmp_path):
        target = create_backup("pre_migration", str(tmp_path))
        assert target.startswith(str(tmp_path))
        assert target.endswith(".dump")
        assert "pre_migration_" in target
