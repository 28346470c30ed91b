"""Tests for layerguard.graph.report: aggregation and verdict."""

from __future__ import annotations

from layerguard.graph.report import PROJECT_KEY, Verdict, aggregate, count_high, verdict_for
from layerguard.graph.rule_engine import RuleKind, Severity, Violation


def _v(kind: RuleKind, severity: Severity, file: str | None = "src/a.ts") -> Violation:
    return Violation(rule_kind=kind, severity=severity, file=file, message=f"{kind.value} {file}")


class TestVerdict:
    def test_pass_when_empty(self) -> None:
        assert verdict_for([]) is Verdict.PASS

    def test_warn_for_medium_and_low(self) -> None:
        items = [
            _v(RuleKind.RESPONSIBILITY, Severity.MEDIUM),
            _v(RuleKind.STRUCTURAL, Severity.LOW),
        ]
        assert verdict_for(items) is Verdict.WARN

    def test_fail_for_any_high(self) -> None:
        items = [_v(RuleKind.STRUCTURAL, Severity.LOW), _v(RuleKind.CYCLE, Severity.HIGH, None)]
        assert verdict_for(items) is Verdict.FAIL


class TestAggregate:
    def test_counts(self) -> None:
        report = aggregate(
            [
                _v(RuleKind.ISOLATION, Severity.HIGH),
                _v(RuleKind.HIERARCHY, Severity.HIGH, "src/b.ts"),
                _v(RuleKind.STRUCTURAL, Severity.LOW),
            ]
        )
        assert report.total_count == 3
        assert report.high_count == 2
        assert report.counts_by_severity[Severity.LOW] == 1
        assert report.counts_by_severity[Severity.MEDIUM] == 0
        assert report.counts_by_rule[RuleKind.ISOLATION] == 1
        assert report.counts_by_rule[RuleKind.CYCLE] == 0
        assert report.verdict is Verdict.FAIL

    def test_grouping_sorted_and_project_key(self) -> None:
        report = aggregate(
            [
                _v(RuleKind.HIERARCHY, Severity.HIGH, "src/z.ts"),
                _v(RuleKind.CYCLE, Severity.HIGH, None),
                _v(RuleKind.HIERARCHY, Severity.HIGH, "src/a.ts"),
            ]
        )
        assert list(report.grouped_by_file) == sorted([PROJECT_KEY, "src/a.ts", "src/z.ts"])
        assert len(report.grouped_by_file[PROJECT_KEY]) == 1

    def test_empty(self) -> None:
        report = aggregate([])
        assert report.total_count == 0
        assert report.grouped_by_file == {}
        assert report.verdict is Verdict.PASS

    def test_count_high(self) -> None:
        items = [_v(RuleKind.HIERARCHY, Severity.HIGH), _v(RuleKind.STRUCTURAL, Severity.LOW)]
        assert count_high(items) == 1
