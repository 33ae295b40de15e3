"""Shared test fixtures for capsule-migrate tests."""

import importlib.util
import shutil
import sys
import uuid
from datetime import datetime, timezone
from pathlib import Path

import pytest

from capsule_migrate.models import (
    CapsuleMetadata,
    FileCounts,
    MigrationMode,
    MigrationReport,
    MigrationStatus,
    ValidationResult,
)

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "capsules"

# Fixture capsules are inputs to the parser, not test modules
collect_ignore_glob = ["fixtures/*"]


def pytest_addoption(parser):
    """Add --run-slow option for slow tests."""
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="run slow tests",
    )


def pytest_configure(config):
    """Configure slow marker."""
    config.addinivalue_line("markers", "slow: mark test as slow to run")


def pytest_collection_modifyitems(config, items):
    """Skip slow tests unless --run-slow is given."""
    if config.getoption("--run-slow"):
        return
    skip_slow = pytest.mark.skip(reason="need --run-slow option to run")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture
def capsules_dir():
    """Directory holding the fixture capsules."""
    return FIXTURES_DIR


@pytest.fixture
def cache_capsule(tmp_path):
    """Copy of the multi-platform cache capsule (manifest, enum, TypedDict, errors)."""
    target = tmp_path / "capsules" / "cache"
    shutil.copytree(FIXTURES_DIR / "cache", target)
    return target


@pytest.fixture
def http_capsule(tmp_path):
    """Copy of the manifest-less http-client capsule (network and file system imports)."""
    target = tmp_path / "capsules" / "http-client"
    shutil.copytree(FIXTURES_DIR / "http-client", target)
    return target


@pytest.fixture
def output_root(tmp_path):
    """Empty directory for generated output."""
    path = tmp_path / "out"
    path.mkdir()
    return path


@pytest.fixture
def make_capsule(tmp_path):
    """Factory writing a small capsule: make_capsule("name", {"mod.py": "..."})."""

    def _make(name, files=None, base=None):
        root = (base or tmp_path / "capsules") / name
        root.mkdir(parents=True, exist_ok=True)
        if files is None:
            files = {"core.py": f'"""{name} capsule."""\n\nGREETING = "hello"\n\n\ndef run(value):\n    return value\n'}
        for relative, content in files.items():
            path = root / relative
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(content, encoding="utf-8")
        return root

    return _make


@pytest.fixture
def import_package():
    """Import a generated package directory under a unique module name."""
    loaded = []

    def _import(package_dir):
        name = f"generated_{uuid.uuid4().hex}"
        spec = importlib.util.spec_from_file_location(
            name,
            Path(package_dir) / "__init__.py",
            submodule_search_locations=[str(package_dir)],
        )
        module = importlib.util.module_from_spec(spec)
        sys.modules[name] = module
        loaded.append(name)
        spec.loader.exec_module(module)
        return module

    yield _import

    for name in loaded:
        for key in [k for k in sys.modules if k == name or k.startswith(name + ".")]:
            del sys.modules[key]


@pytest.fixture
def report_factory():
    """Build a MigrationReport without running the pipeline."""

    def _report(
        capsule_id="sample",
        status=MigrationStatus.COMPLETE,
        time_taken=0.1,
        quality=90.0,
        files=8,
        lines=400,
        notes=None,
    ):
        return MigrationReport(
            capsule=CapsuleMetadata(
                id=capsule_id,
                name=capsule_id.replace("-", " ").title(),
                category="Utilities",
                description=f"{capsule_id} capsule",
                version="1.0.0",
            ),
            status=status,
            mode=MigrationMode.AUTO,
            time_taken=time_taken,
            before=FileCounts(files=2, lines=150),
            after=FileCounts(files=files, lines=lines),
            quality_score=quality,
            file_breakdown=[],
            validation=ValidationResult(
                is_valid=status == MigrationStatus.COMPLETE, quality_score=quality
            ),
            manual_actions_required=[],
            notes=list(notes or []),
            generated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        )

    return _report
