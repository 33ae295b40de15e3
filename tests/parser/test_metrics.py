"""Tests for complexity counting, effort estimates and mode selection."""

import logging

import pytest

from capsule_migrate.config import ModeThresholds
from capsule_migrate.models import MigrationMode
from capsule_migrate.parser import (
    calculate_maintainability,
    estimate_migration_hours,
    select_migration_mode,
)
from capsule_migrate.parser.metrics import ComplexityVisitor, count_lines
from capsule_migrate.parser.treesitter import PythonSourceParser


def complexity_of(source):
    tree = PythonSourceParser().parse(source.encode("utf-8"))
    return ComplexityVisitor().visit(tree.root_node)


class TestComplexityVisitor:
    """Decision points on top of a base of 1 per file."""

    def test_straight_line_code(self):
        assert complexity_of("x = 1\ny = x + 2\n") == 1

    def test_branches_loops_and_boolean_operators(self):
        source = (
            "if a and b:\n"
            "    pass\n"
            "elif c:\n"
            "    pass\n"
            "for x in y:\n"
            "    pass\n"
            "while z:\n"
            "    break\n"
        )
        # if, and, elif, for, while
        assert complexity_of(source) == 6

    def test_comprehensions_conditionals_and_handlers(self):
        source = (
            "values = [v for v in items]\n"
            "label = 'big' if n > 10 else 'small'\n"
            "try:\n"
            "    run()\n"
            "except ValueError:\n"
            "    pass\n"
            "except KeyError:\n"
            "    pass\n"
        )
        # for_in_clause, conditional_expression, two except clauses
        assert complexity_of(source) == 5

    def test_nested_functions_are_counted(self):
        source = "def outer():\n    def inner(v):\n        return v or 0\n    return inner\n"
        assert complexity_of(source) == 2


class TestCountLines:
    def test_trailing_newline_counts_as_line(self):
        assert count_lines("a\nb\n") == 3

    def test_empty_text(self):
        assert count_lines("") == 1


class TestMaintainability:
    """Maintainability index stays within [0, 100]."""

    def test_small_code_is_maintainable(self):
        assert calculate_maintainability(10, 1) > 80.0

    def test_decreases_with_size_and_complexity(self):
        assert calculate_maintainability(1000, 20) < calculate_maintainability(100, 20)
        assert calculate_maintainability(100, 200) < calculate_maintainability(100, 2)

    @pytest.mark.parametrize("loc,cc", [(0, 0), (1, 1), (10**9, 10**6), (0, 500)])
    def test_bounds(self, loc, cc):
        assert 0.0 <= calculate_maintainability(loc, cc) <= 100.0


class TestEstimateMigrationHours:
    """Step function over lines of code and complexity bands."""

    @pytest.mark.parametrize(
        "loc,cc,expected",
        [
            (150, 4, 2.0),
            (199, 9, 2.0),
            (200, 10, 3.0),
            (499, 29, 3.0),
            (500, 30, 5.0),
            (999, 5, 3.5),
            (2500, 35, 7.0),
        ],
    )
    def test_bands(self, loc, cc, expected):
        assert estimate_migration_hours(loc, cc) == expected

    def test_monotonic(self):
        assert estimate_migration_hours(100, 5) <= estimate_migration_hours(800, 5)
        assert estimate_migration_hours(100, 5) <= estimate_migration_hours(100, 50)


class TestSelectMigrationMode:
    """Effective mode from size, complexity and the requested mode."""

    def test_small_capsule_is_auto(self):
        assert select_migration_mode(150, 4) == MigrationMode.AUTO

    def test_small_capsule_stays_auto_whatever_is_requested(self):
        assert select_migration_mode(150, 4, MigrationMode.MANUAL) == MigrationMode.AUTO

    def test_medium_capsule_is_semi(self):
        assert select_migration_mode(800, 12) == MigrationMode.SEMI
        assert select_migration_mode(800, 12, MigrationMode.MANUAL) == MigrationMode.SEMI

    def test_large_capsule_downgrades_auto_with_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="capsule_migrate"):
            mode = select_migration_mode(2500, 35, MigrationMode.AUTO, capsule="big")
        assert mode == MigrationMode.SEMI
        assert any("downgrading" in r.getMessage() for r in caplog.records)

    def test_large_capsule_honours_manual_request(self):
        assert select_migration_mode(2500, 35, MigrationMode.MANUAL) == MigrationMode.MANUAL

    def test_large_capsule_semi_request(self):
        assert select_migration_mode(100, 31, MigrationMode.SEMI) == MigrationMode.SEMI

    def test_boundaries_are_strict(self):
        assert select_migration_mode(499, 9) == MigrationMode.AUTO
        assert select_migration_mode(500, 9) == MigrationMode.SEMI
        assert select_migration_mode(2000, 30, MigrationMode.MANUAL) == MigrationMode.SEMI

    def test_custom_thresholds(self):
        thresholds = ModeThresholds(auto_max_lines=50, auto_max_complexity=3)
        assert select_migration_mode(60, 2, thresholds=thresholds) == MigrationMode.SEMI
