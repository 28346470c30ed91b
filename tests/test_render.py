"""Tests for layerguard.render: text, JSON and porcelain output."""

from __future__ import annotations

import json

from layerguard.graph.analyzer import AnalysisResult, AnalysisStats
from layerguard.graph.model import FileError
from layerguard.graph.report import aggregate
from layerguard.graph.rule_engine import RuleKind, Severity, Violation
from layerguard.render import format_json, format_porcelain, format_rich


def _result(
    violations: list[Violation],
    errors: list[FileError] | None = None,
    skipped_dirs: list[str] | None = None,
) -> AnalysisResult:
    return AnalysisResult(
        violations=violations,
        stats=AnalysisStats(files_scanned=3, edges=5, resolved_edges=4, modules=2),
        errors=errors or [],
        skipped_dirs=skipped_dirs or [],
        report=aggregate(violations),
    )


CYCLE = Violation(
    RuleKind.CYCLE,
    Severity.HIGH,
    None,
    "Circular module dependency detected: a → b → a",
    cycle=("a", "b"),
)
MISSING_ROOT = Violation(RuleKind.STRUCTURAL, Severity.LOW, "src/core", "Missing core layer")


class TestFormatRich:
    def test_pass(self) -> None:
        output = format_rich(_result([]))
        assert "Files: 3 scanned, 5 references (4 resolved), 2 modules" in output
        assert "PASS: no violations found" in output

    def test_grouped_with_summary(self) -> None:
        output = format_rich(_result([MISSING_ROOT, CYCLE]))
        assert "<project>" in output
        assert "src/core" in output
        assert "FAIL: 2 violations (1 high, 0 medium, 1 low)" in output

    def test_errors_listed(self) -> None:
        output = format_rich(_result([], [FileError("src/x.ts", "Cannot read")]))
        assert "[ERR] src/x.ts: Cannot read" in output


class TestFormatJson:
    def test_structure(self) -> None:
        data = json.loads(format_json(_result([CYCLE])))
        assert data["verdict"] == "fail"
        assert data["violations"] == [
            {
                "rule": "cycle",
                "severity": "high",
                "file": None,
                "line": None,
                "target": None,
                "type_only": None,
                "cycle": ["a", "b"],
                "message": CYCLE.message,
            }
        ]
        assert data["stats"]["by_rule"]["cycle"] == 1
        assert data["errors"] == []
        assert data["skipped_dirs"] == []

    def test_errors_and_skipped_dirs(self) -> None:
        result = _result([], [FileError("src/x.ts", "Cannot read")], ["src/locked"])
        data = json.loads(format_json(result))
        assert data["errors"] == [{"file": "src/x.ts", "message": "Cannot read"}]
        assert data["skipped_dirs"] == ["src/locked"]


class TestFormatPorcelain:
    def test_lines(self) -> None:
        output = format_porcelain(_result([MISSING_ROOT, CYCLE]))
        assert output.splitlines() == [
            "low:structural:src/core::",
            "high:cycle:::a b",
        ]

    def test_errors_and_skipped_dirs_follow_violations(self) -> None:
        result = _result([CYCLE], [FileError("src/x.ts", "Cannot read")], ["src/locked"])
        assert format_porcelain(result).splitlines() == [
            "high:cycle:::a b",
            "error:extraction:src/x.ts::Cannot read",
            "warn:skipped:src/locked::",
        ]

    def test_empty(self) -> None:
        assert format_porcelain(_result([])) == ""
