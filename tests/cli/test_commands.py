"""Tests for the migrate, analyze and batch commands."""

import json

import pytest
from typer.testing import CliRunner

from capsule_migrate import __version__
from capsule_migrate.cli import app
from capsule_migrate.config import MigrateConfig
from capsule_migrate.generator import REQUIRED_FILES
from capsule_migrate.reporter import BATCH_JSON, BATCH_MARKDOWN

runner = CliRunner()


@pytest.fixture(autouse=True)
def isolated_config(tmp_path, monkeypatch):
    """Keep user and project config files and env vars out of the commands."""
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    monkeypatch.chdir(tmp_path)
    for name in MigrateConfig.__dataclass_fields__:
        monkeypatch.delenv(f"CAPSULE_MIGRATE_{name.upper()}", raising=False)


class TestApp:
    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"version {__version__}" in result.output

    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("migrate", "analyze", "batch"):
            assert command in result.output


class TestMigrateCommand:
    def test_migrates_and_saves_report(self, cache_capsule, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(app, ["migrate", str(cache_capsule), str(out)])

        assert result.exit_code == 0, result.output
        assert "Migration complete" in result.output
        for filename in REQUIRED_FILES:
            assert (out / "cache" / filename).is_file()
        assert (out / "reports" / "cache-migration-report.md").is_file()
        assert (out / "reports" / "cache-migration-report.json").is_file()

    def test_default_output_is_sibling_directory(self, cache_capsule):
        result = runner.invoke(app, ["migrate", str(cache_capsule)])

        assert result.exit_code == 0, result.output
        sibling = cache_capsule.parent / "cache-migrated"
        assert (sibling / "cache" / "service.py").is_file()

    def test_no_report(self, cache_capsule, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(app, ["migrate", str(cache_capsule), str(out), "--no-report"])

        assert result.exit_code == 0, result.output
        assert not (out / "reports").exists()

    def test_dry_run_writes_nothing(self, cache_capsule, tmp_path):
        out = tmp_path / "out"
        result = runner.invoke(app, ["migrate", str(cache_capsule), str(out), "--dry-run"])

        assert result.exit_code == 0, result.output
        assert "Migration plan ready" in result.output
        assert not out.exists()

    def test_missing_input(self, tmp_path):
        result = runner.invoke(app, ["migrate", str(tmp_path / "missing")])
        assert result.exit_code == 1
        assert "does not exist" in result.output

    def test_file_input(self, tmp_path):
        path = tmp_path / "module.py"
        path.write_text("X = 1\n")
        result = runner.invoke(app, ["migrate", str(path)])
        assert result.exit_code == 1

    def test_capsule_without_sources_fails(self, make_capsule, tmp_path):
        empty = make_capsule("empty", files={"README.md": "# empty\n"})
        result = runner.invoke(app, ["migrate", str(empty), str(tmp_path / "out")])
        assert result.exit_code == 1

    def test_unknown_mode_is_rejected(self, cache_capsule):
        result = runner.invoke(app, ["migrate", str(cache_capsule), "--mode", "turbo"])
        assert result.exit_code != 0
        assert "is not one of" in result.output


class TestAnalyzeCommand:
    def test_json_output(self, cache_capsule):
        result = runner.invoke(app, ["analyze", str(cache_capsule), "--json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["metadata"]["id"] == "cache"
        assert data["recommended_mode"] == "auto"
        assert data["complexity"]["lines_of_code"] > 0
        assert set(data["elements"]) == {
            "types",
            "interfaces",
            "classes",
            "functions",
            "constants",
            "errors",
        }
        assert "redis" in data["dependencies"]

    def test_rich_output(self, cache_capsule):
        result = runner.invoke(app, ["analyze", str(cache_capsule)])

        assert result.exit_code == 0, result.output
        assert "Recommended mode: auto" in result.output
        assert "Cyclomatic complexity" in result.output

    def test_analyze_writes_nothing(self, cache_capsule):
        before = sorted(p.name for p in cache_capsule.parent.iterdir())
        runner.invoke(app, ["analyze", str(cache_capsule)])
        assert sorted(p.name for p in cache_capsule.parent.iterdir()) == before

    def test_missing_capsule(self, tmp_path):
        result = runner.invoke(app, ["analyze", str(tmp_path / "missing")])
        assert result.exit_code == 1


class TestBatchCommand:
    def test_all_capsules_succeed(self, tmp_path, make_capsule):
        base = tmp_path / "capsules"
        make_capsule("alpha", base=base)
        make_capsule("beta", base=base)
        out = tmp_path / "out"

        result = runner.invoke(app, ["batch", str(base), str(out), "-p", "2"])

        assert result.exit_code == 0, result.output
        assert "BATCH MIGRATION COMPLETE" in result.output
        assert (out / "alpha" / "service.py").is_file()
        assert (out / "beta" / "service.py").is_file()
        batch = json.loads((out / "reports" / BATCH_JSON).read_text())
        assert batch["total_capsules"] == 2
        assert batch["successful_migrations"] == 2
        assert (out / "reports" / BATCH_MARKDOWN).is_file()

    def test_log_file_records_worker_threads(self, tmp_path, make_capsule):
        base = tmp_path / "capsules"
        make_capsule("alpha", base=base)
        make_capsule("beta", base=base)
        log_file = tmp_path / "logs" / "batch.log"

        result = runner.invoke(
            app, ["batch", str(base), str(tmp_path / "out"), "--no-reports", "--log-file", str(log_file)]
        )

        assert result.exit_code == 0, result.output
        text = log_file.read_text(encoding="utf-8")
        assert "✓ alpha" in text
        assert "[ThreadPoolExecutor-" in text
        assert "capsule_migrate.pipeline: alpha: migrating in auto mode" in text

    def test_failure_exits_nonzero(self, tmp_path, make_capsule):
        base = tmp_path / "capsules"
        make_capsule("alpha", base=base)
        make_capsule("manifest-only", files={"pyproject.toml": '[project]\nname = "x"\n'}, base=base)

        result = runner.invoke(app, ["batch", str(base), str(tmp_path / "out"), "--no-reports"])

        assert result.exit_code == 1
        assert not (tmp_path / "out" / "reports").exists()

    def test_stop_on_error(self, tmp_path, make_capsule):
        base = tmp_path / "capsules"
        make_capsule("manifest-only", files={"pyproject.toml": '[project]\nname = "x"\n'}, base=base)
        make_capsule("zeta", base=base)

        result = runner.invoke(
            app, ["batch", str(base), str(tmp_path / "out"), "-p", "1", "--stop-on-error"]
        )

        assert result.exit_code == 1
        assert "Batch aborted" in result.output
        assert not (tmp_path / "out" / "zeta").exists()

    def test_no_capsules(self, tmp_path):
        empty = tmp_path / "empty"
        empty.mkdir()
        result = runner.invoke(app, ["batch", str(empty)])
        assert result.exit_code == 1
        assert "No capsules found" in result.output
