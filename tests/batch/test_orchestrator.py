"""Tests for the batch orchestrator: grouping, ordering and failure handling."""

import io
import json
import logging
import threading
import time

import pytest
from rich.console import Console

from capsule_migrate.batch import (
    BatchMigrationConfig,
    BatchMigrationOrchestrator,
    find_capsule_dirs,
    partition,
    run_batch_migration,
)
from capsule_migrate.exceptions import (
    DuplicateCapsuleError,
    ErrorCode,
    OrchestrationError,
    ParserError,
)
from capsule_migrate.models import MigrationMode, MigrationStatus
from capsule_migrate.reporter import BATCH_JSON, BATCH_MARKDOWN, INDIVIDUAL_DIR


def quiet_console():
    return Console(file=io.StringIO(), width=100)


@pytest.fixture
def ten_capsules(tmp_path, make_capsule):
    """Ten capsule directories; the fifth one holds no sources and fails to parse."""
    base = tmp_path / "capsules"
    paths = []
    for i in range(10):
        if i == 4:
            path = base / f"cap-{i:02d}"
            path.mkdir(parents=True)
        else:
            path = make_capsule(f"cap-{i:02d}", base=base)
        paths.append(path)
    return paths


class FakeMigrate:
    """Stand-in for migrate_capsule that records start/end events."""

    def __init__(self, report_factory, fail=(), delays=None):
        self.report_factory = report_factory
        self.fail = set(fail)
        self.delays = delays or {}
        self.events = []
        self._lock = threading.Lock()

    def __call__(self, path, output_root, options, reporter):
        with self._lock:
            self.events.append(("start", path.name))
        time.sleep(self.delays.get(path.name, 0.0))
        with self._lock:
            self.events.append(("end", path.name))
        if path.name in self.fail:
            raise ParserError("No Python source files found", details={"path": str(path)})
        return self.report_factory(path.name)


class TestPartition:
    def test_ten_by_three(self):
        assert [len(g) for g in partition(list(range(10)), 3)] == [3, 3, 3, 1]

    def test_order_kept(self):
        assert partition(["a", "b", "c"], 2) == [["a", "b"], ["c"]]

    def test_empty(self):
        assert partition([], 3) == []

    def test_invalid_size(self):
        with pytest.raises(ValueError):
            partition([1, 2], 0)


class TestBatchMigrationConfig:
    def test_coercion(self, tmp_path):
        config = BatchMigrationConfig(input_dirs=[str(tmp_path / "a")], output_base_dir=str(tmp_path), mode="semi")
        assert config.input_dirs == (tmp_path / "a",)
        assert config.mode == MigrationMode.SEMI
        assert config.reports_dir == tmp_path / "reports"

    def test_parallel_must_be_positive(self, tmp_path):
        with pytest.raises(ValueError):
            BatchMigrationConfig(input_dirs=[], output_base_dir=tmp_path, parallel=0)


class TestGrouping:
    """Groups run one after another; members of a group overlap."""

    def test_groups_are_sequential(self, tmp_path, report_factory):
        names = [f"cap-{i}" for i in range(7)]
        fake = FakeMigrate(report_factory, delays={name: 0.02 for name in names})
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / n for n in names],
            output_base_dir=tmp_path / "out",
            parallel=3,
            generate_reports=False,
        )
        BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake).run()

        groups = partition(names, 3)
        position = {event: i for i, event in enumerate(fake.events)}
        for earlier, later in zip(groups, groups[1:]):
            last_end = max(position[("end", n)] for n in earlier)
            first_start = min(position[("start", n)] for n in later)
            assert last_end < first_start

    def test_report_order_follows_input_order(self, tmp_path, report_factory):
        names = ["slow", "medium", "fast"]
        fake = FakeMigrate(report_factory, delays={"slow": 0.15, "medium": 0.08, "fast": 0.0})
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / n for n in names],
            output_base_dir=tmp_path / "out",
            parallel=3,
            generate_reports=False,
        )
        batch = BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake).run()
        assert [r.capsule.id for r in batch.reports] == names


class TestFailureHandling:
    def test_failures_are_excluded_and_counted(self, tmp_path, report_factory, caplog):
        names = [f"cap-{i}" for i in range(5)]
        fake = FakeMigrate(report_factory, fail={"cap-1", "cap-3"})
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / n for n in names],
            output_base_dir=tmp_path / "out",
            parallel=2,
            generate_reports=False,
        )
        orchestrator = BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake)
        with caplog.at_level(logging.INFO, logger="capsule_migrate"):
            batch = orchestrator.run()

        assert [r.capsule.id for r in batch.reports] == ["cap-0", "cap-2", "cap-4"]
        assert batch.total_capsules == 5
        assert batch.successful_migrations == 3
        assert batch.failed_migrations == 2
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("✗ cap-1:") for m in messages)
        assert any(m.startswith("✓ cap-0:") for m in messages)
        dashboard = orchestrator.progress_dashboard()
        assert dashboard.processed_capsules == 5
        assert dashboard.failed_count == 2

    def test_stop_on_error(self, tmp_path, report_factory):
        names = [f"cap-{i}" for i in range(6)]
        fake = FakeMigrate(report_factory, fail={"cap-1", "cap-2"})
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / n for n in names],
            output_base_dir=tmp_path / "out",
            parallel=3,
            stop_on_error=True,
        )
        orchestrator = BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake)
        with pytest.raises(OrchestrationError) as exc_info:
            orchestrator.run()

        error = exc_info.value
        assert error.capsule == "cap-1"
        assert error.code == ErrorCode.ORCHESTRATION_ERROR
        assert isinstance(error.cause, ParserError)
        started = {name for kind, name in fake.events if kind == "start"}
        assert started == {"cap-0", "cap-1", "cap-2"}
        assert not (tmp_path / "out" / "reports").exists()


class TestRepeatedRuns:
    def test_second_run_starts_from_zero(self, tmp_path, report_factory):
        names = [f"cap-{i}" for i in range(4)]
        fake = FakeMigrate(report_factory, fail={"cap-2"})
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / n for n in names],
            output_base_dir=tmp_path / "out",
            parallel=2,
            generate_reports=False,
        )
        orchestrator = BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake)

        first = orchestrator.run()
        second = orchestrator.run()

        for batch in (first, second):
            assert batch.total_capsules == 4
            assert batch.successful_migrations == 3
            assert batch.failed_migrations == 1
            assert [r.capsule.id for r in batch.reports] == ["cap-0", "cap-1", "cap-3"]
        dashboard = orchestrator.progress_dashboard()
        assert dashboard.processed_capsules == 4
        assert dashboard.failed_count == 1


class TestDuplicateCapsuleIds:
    """Inputs resolving to an id already taken are failed, not written twice."""

    def test_later_input_is_rejected(self, tmp_path, report_factory, caplog):
        first, second = tmp_path / "a" / "cache", tmp_path / "b" / "capsule-cache"
        fake = FakeMigrate(report_factory)
        config = BatchMigrationConfig(
            input_dirs=[first, second],
            output_base_dir=tmp_path / "out",
            parallel=2,
            generate_reports=False,
        )
        with caplog.at_level(logging.INFO, logger="capsule_migrate"):
            batch = BatchMigrationOrchestrator(config, console=quiet_console(), migrate=fake).run()

        assert [name for kind, name in fake.events if kind == "start"] == ["cache"]
        assert len(batch.reports) == 1
        assert batch.successful_migrations == 1
        assert batch.failed_migrations == 1
        messages = [r.getMessage() for r in caplog.records]
        assert any(m.startswith("✗ capsule-cache: Duplicate capsule id 'cache'") for m in messages)

    def test_stop_on_error_raises_for_the_duplicate(self, tmp_path, report_factory):
        config = BatchMigrationConfig(
            input_dirs=[tmp_path / "cache", tmp_path / "other" / "cache"],
            output_base_dir=tmp_path / "out",
            parallel=1,
            stop_on_error=True,
            generate_reports=False,
        )
        orchestrator = BatchMigrationOrchestrator(
            config, console=quiet_console(), migrate=FakeMigrate(report_factory)
        )
        with pytest.raises(OrchestrationError) as exc_info:
            orchestrator.run()
        assert isinstance(exc_info.value.cause, DuplicateCapsuleError)
        assert exc_info.value.cause.details["capsule_id"] == "cache"

    def test_real_migration_keeps_the_first_capsule(self, tmp_path, make_capsule):
        first = make_capsule("cache", base=tmp_path / "a")
        second = make_capsule(
            "capsule-cache",
            {"other.py": '"""Other capsule."""\n\nOTHER = 1\n'},
            base=tmp_path / "b",
        )
        output = tmp_path / "migrated"
        config = BatchMigrationConfig(
            input_dirs=[first, second], output_base_dir=output, parallel=2
        )
        batch = run_batch_migration(config, console=quiet_console())

        assert [r.capsule.id for r in batch.reports] == ["cache"]
        assert batch.failed_migrations == 1
        constants = (output / "cache" / "constants.py").read_text(encoding="utf-8")
        assert "GREETING" in constants
        assert "OTHER" not in constants


class TestRealBatch:
    """End-to-end batch over generated capsule directories."""

    def test_ten_capsules_one_empty(self, ten_capsules, tmp_path):
        output = tmp_path / "migrated"
        config = BatchMigrationConfig(input_dirs=ten_capsules, output_base_dir=output, parallel=3)
        batch = run_batch_migration(config, console=quiet_console())

        assert batch.total_capsules == 10
        assert len(batch.reports) == 9
        assert batch.successful_migrations == 9
        assert batch.failed_migrations == 1
        assert [r.capsule.id for r in batch.reports] == [
            p.name for i, p in enumerate(ten_capsules) if i != 4
        ]
        assert all(r.status == MigrationStatus.COMPLETE for r in batch.reports)
        assert all(r.quality_score == 100.0 for r in batch.reports)
        for report in batch.reports:
            assert (output / report.capsule.id / "service.py").is_file()

        reports_dir = output / "reports"
        assert (reports_dir / BATCH_MARKDOWN).is_file()
        data = json.loads((reports_dir / BATCH_JSON).read_text(encoding="utf-8"))
        assert data["failed_migrations"] == 1
        assert len(list((reports_dir / INDIVIDUAL_DIR).glob("*.md"))) == 9

    def test_discovery_skips_the_empty_directory(self, ten_capsules):
        found = find_capsule_dirs(ten_capsules[0].parent)
        assert [p.name for p in found] == [p.name for i, p in enumerate(ten_capsules) if i != 4]
