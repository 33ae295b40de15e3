"""Tests for the single-capsule pipeline."""

import pytest

from capsule_migrate import PipelineOptions, migrate_capsule
from capsule_migrate.config import ModeThresholds
from capsule_migrate.exceptions import ParserError
from capsule_migrate.generator import REQUIRED_FILES
from capsule_migrate.models import MigrationMode, MigrationStatus


class TestMigrateCapsule:
    """End-to-end migration of one capsule."""

    def test_cache_capsule_migrates_cleanly(self, cache_capsule, output_root):
        """The cache fixture migrates automatically with a perfect score."""
        report = migrate_capsule(cache_capsule, output_root)

        assert report.status == MigrationStatus.COMPLETE
        assert report.mode == MigrationMode.AUTO
        assert report.quality_score == 100.0
        assert report.validation.is_valid
        assert report.capsule.id == "cache"

    def test_output_goes_under_capsule_id(self, cache_capsule, output_root):
        """Generated files land in <output_root>/<id>."""
        migrate_capsule(cache_capsule, output_root)

        capsule_dir = output_root / "cache"
        for filename in REQUIRED_FILES:
            assert (capsule_dir / filename).is_file()

    def test_time_taken_is_recorded_in_hours(self, cache_capsule, output_root):
        """A quick run takes a small positive fraction of an hour."""
        report = migrate_capsule(cache_capsule, output_root)
        assert 0 < report.time_taken < 1

    def test_requested_manual_mode_is_kept(self, cache_capsule, output_root):
        """A manual request on a capsule over the manual thresholds stays manual."""
        thresholds = ModeThresholds(
            auto_max_lines=1,
            auto_max_complexity=1,
            manual_min_lines=1,
            manual_min_complexity=1,
        )
        report = migrate_capsule(
            cache_capsule,
            output_root,
            PipelineOptions(mode=MigrationMode.MANUAL, thresholds=thresholds),
        )
        assert report.mode == MigrationMode.MANUAL

    def test_auto_downgraded_by_thresholds(self, cache_capsule, output_root):
        """Tight thresholds push an automatic request to semi."""
        thresholds = ModeThresholds(
            auto_max_lines=1,
            auto_max_complexity=1,
            manual_min_lines=100_000,
            manual_min_complexity=100_000,
        )
        report = migrate_capsule(
            cache_capsule, output_root, PipelineOptions(thresholds=thresholds)
        )
        assert report.mode == MigrationMode.SEMI

    def test_pinned_generation_time(self, cache_capsule, output_root):
        """generated_at pins the header of every generated module."""
        migrate_capsule(
            cache_capsule, output_root, PipelineOptions(generated_at="2024-01-01T00:00:00Z")
        )
        assert "2024-01-01T00:00:00Z" in (output_root / "cache" / "types.py").read_text()

    def test_missing_capsule_raises_parser_error(self, tmp_path, output_root):
        """Parser errors propagate to the caller."""
        with pytest.raises(ParserError):
            migrate_capsule(tmp_path / "missing", output_root)
        assert list(output_root.iterdir()) == []

    def test_empty_capsule_raises_parser_error(self, make_capsule, output_root):
        """A directory without sources is rejected before generation."""
        empty = make_capsule("empty", files={"notes.txt": "nothing here"})
        with pytest.raises(ParserError, match="No Python source files"):
            migrate_capsule(empty, output_root)
