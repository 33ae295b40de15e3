"""Tests for CapsuleGenerator output on disk."""

import pytest

from capsule_migrate.exceptions import GeneratorError
from capsule_migrate.generator import REQUIRED_FILES, CapsuleGenerator, GeneratorOptions, generate_capsule
from capsule_migrate.generator import engine
from capsule_migrate.models import MigrationMode
from capsule_migrate.parser import parse_capsule
from capsule_migrate.validator import validate_capsule

PINNED = "2024-01-01T00:00:00+00:00"

EXPECTED_FILES = [
    "types.py",
    "errors.py",
    "constants.py",
    "utils.py",
    "adapters.py",
    "service.py",
    "__init__.py",
    "README.md",
]


def read_all(directory):
    return {name: (directory / name).read_text(encoding="utf-8") for name in EXPECTED_FILES}


def without_timestamps(files):
    return {
        name: "\n".join(line for line in content.split("\n") if "Generated:" not in line)
        for name, content in files.items()
    }


@pytest.fixture
def parsed_cache(cache_capsule):
    return parse_capsule(cache_capsule)


@pytest.fixture
def generated_cache(parsed_cache, output_root):
    target = output_root / "cache"
    result = generate_capsule(parsed_cache, target, GeneratorOptions(generated_at=PINNED))
    return target, result


class TestGeneratedFileSet:
    """The eight-file layout."""

    def test_required_files_constant(self):
        assert list(REQUIRED_FILES) == EXPECTED_FILES

    def test_all_files_written(self, generated_cache):
        target, result = generated_cache
        assert result.success is True
        assert result.errors == []
        assert [f.path.rsplit("/", 1)[-1] for f in result.files] == EXPECTED_FILES
        for name in EXPECTED_FILES:
            assert (target / name).is_file()

    def test_file_records_match_disk(self, generated_cache):
        target, result = generated_cache
        for generated in result.files:
            on_disk = (target / generated.path.rsplit("/", 1)[-1]).read_text(encoding="utf-8")
            assert generated.content == on_disk
            assert generated.size == len(on_disk.encode("utf-8"))
            assert generated.lines == len(on_disk.split("\n"))

    def test_migration_notes_are_warnings(self, generated_cache):
        _, result = generated_cache
        assert any("STARTED" in w for w in result.warnings)

    def test_output_is_valid(self, generated_cache):
        target, _ = generated_cache
        validation = validate_capsule(target)
        assert validation.is_valid is True
        assert validation.errors == []
        assert validation.warnings == []
        assert validation.quality_score == 100.0


class TestDeterminism:
    def test_same_timestamp_same_bytes(self, parsed_cache, output_root):
        options = GeneratorOptions(generated_at=PINNED)
        generate_capsule(parsed_cache, output_root / "a", options)
        generate_capsule(parsed_cache, output_root / "b", options)
        assert read_all(output_root / "a") == read_all(output_root / "b")

    def test_only_timestamp_lines_differ(self, parsed_cache, output_root):
        generate_capsule(parsed_cache, output_root / "a", GeneratorOptions(generated_at=PINNED))
        generate_capsule(parsed_cache, output_root / "b", GeneratorOptions(generated_at="2030-06-01T12:00:00+00:00"))
        first, second = read_all(output_root / "a"), read_all(output_root / "b")
        assert first != second
        assert without_timestamps(first) == without_timestamps(second)

    def test_unpinned_runs_match_without_timestamps(self, parsed_cache, output_root):
        generate_capsule(parsed_cache, output_root / "a")
        generate_capsule(parsed_cache, output_root / "b")
        assert without_timestamps(read_all(output_root / "a")) == without_timestamps(read_all(output_root / "b"))


class TestGeneratedContent:
    """Capability-dependent parts of the rendered files."""

    def test_errors_file(self, generated_cache):
        errors = (generated_cache[0] / "errors.py").read_text()
        assert "class CacheErrorType(str, Enum):" in errors
        assert "class CacheError(Exception):" in errors
        assert "class OperationTimeoutError(CacheError):" in errors
        assert "class DatabaseError(CacheError):" in errors
        assert "class NetworkError(" not in errors

    def test_multi_platform_adapters(self, generated_cache):
        adapters = (generated_cache[0] / "adapters.py").read_text()
        assert "class ServerAdapter" in adapters
        assert "class BrowserAdapter" in adapters
        assert "def detect_platform" in adapters

    def test_carried_declarations(self, generated_cache):
        target = generated_cache[0]
        types = (target / "types.py").read_text()
        assert 'EvictionPolicy = Literal["lru", "lfu", "fifo"]' in types
        assert "class CacheLevel(str, Enum):" in types
        assert "class CacheEntry(TypedDict):" in types
        assert "ttl: Optional[int] = None" in types
        constants = (target / "constants.py").read_text()
        assert "DEFAULT_TTL = 300" in constants
        assert "MAX_ENTRIES = 1_000" in constants
        assert "STARTED" not in constants

    def test_function_stubs(self, generated_cache):
        utils = (generated_cache[0] / "utils.py").read_text()
        assert "def make_key(namespace: Any = None, *parts: Any, sep: Any = None) -> Any:" in utils
        assert "async def warm_up(store: Any = None, keys: Any = None, **options: Any) -> Any:" in utils
        assert "NotImplementedError" in utils

    def test_index_and_readme(self, generated_cache):
        target = generated_cache[0]
        index = (target / "__init__.py").read_text()
        assert "CACHE_CAPSULE = CapsuleDescriptor(" in index
        assert "from .service import *" in index
        readme = (target / "README.md").read_text()
        assert readme.startswith("# Cache")
        assert "pip install capsule-cache" in readme
        assert "## Migration Notes" in readme
        assert f"_Generated: {PINNED} by capsule-migrate_" in readme

    def test_single_platform_capsule(self, http_capsule, output_root):
        result = generate_capsule(parse_capsule(http_capsule), output_root / "http-client")
        assert result.success
        adapters = (output_root / "http-client" / "adapters.py").read_text()
        assert "class ServerAdapter" not in adapters
        errors = (output_root / "http-client" / "errors.py").read_text()
        assert "class NetworkError(HttpClientError):" in errors
        assert "class FileSystemError(HttpClientError):" in errors
        assert validate_capsule(output_root / "http-client").is_valid

    def test_manual_mode_banner(self, parsed_cache, output_root):
        generate_capsule(parsed_cache, output_root / "m", GeneratorOptions(mode=MigrationMode.MANUAL))
        readme = (output_root / "m" / "README.md").read_text()
        assert "> **Migration guide.**" in readme
        assert "Migrated in **manual** mode." in readme

    def test_without_tidy_still_valid(self, parsed_cache, output_root):
        generate_capsule(parsed_cache, output_root / "raw", GeneratorOptions(tidy=False))
        assert validate_capsule(output_root / "raw").is_valid


class TestFailures:
    def test_failing_template_is_isolated(self, parsed_cache, output_root, monkeypatch):
        """One template raising leaves the other seven files in place."""

        def boom(ctx):
            raise RuntimeError("boom")

        templates = [(name, boom if name == "utils.py" else render) for name, render in engine.FILE_TEMPLATES]
        monkeypatch.setattr(engine, "FILE_TEMPLATES", templates)

        result = CapsuleGenerator().generate(parsed_cache, output_root / "cache")
        assert result.success is False
        assert result.errors == ["Failed to generate utils.py: boom"]
        assert len(result.files) == 7
        assert not (output_root / "cache" / "utils.py").exists()

    def test_output_directory_cannot_be_created(self, parsed_cache, tmp_path):
        blocker = tmp_path / "file"
        blocker.write_text("not a directory")
        with pytest.raises(GeneratorError) as exc_info:
            generate_capsule(parsed_cache, blocker)
        assert exc_info.value.capsule_id == "cache"
        assert exc_info.value.details["capsule"] == "cache"
