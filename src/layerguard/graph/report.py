"""Violation aggregation: counts, grouping and the pass/warn/fail verdict."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from layerguard.graph.rule_engine import RuleKind, Severity

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.graph.rule_engine import Violation


class Verdict(enum.Enum):
    """Overall outcome of an analysis run."""

    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"


# Key used in ``grouped_by_file`` for violations not tied to a file (cycles).
PROJECT_KEY = "<project>"


@dataclass(frozen=True)
class Report:
    """Render-agnostic summary of a set of violations."""

    total_count: int
    counts_by_severity: dict[Severity, int] = field(default_factory=dict)
    counts_by_rule: dict[RuleKind, int] = field(default_factory=dict)
    grouped_by_file: dict[str, list[Violation]] = field(default_factory=dict)
    verdict: Verdict = Verdict.PASS

    @property
    def high_count(self) -> int:
        return self.counts_by_severity.get(Severity.HIGH, 0)


def verdict_for(violations: Iterable[Violation]) -> Verdict:
    """FAIL if any HIGH violation exists, WARN if any other, otherwise PASS."""
    verdict = Verdict.PASS
    for v in violations:
        if v.severity is Severity.HIGH:
            return Verdict.FAIL
        verdict = Verdict.WARN
    return verdict


def aggregate(violations: Iterable[Violation]) -> Report:
    """Summarize *violations*; performs no I/O."""
    items = list(violations)
    by_severity = {severity: 0 for severity in Severity}
    by_rule = {kind: 0 for kind in RuleKind}
    grouped: dict[str, list[Violation]] = {}

    for v in items:
        by_severity[v.severity] += 1
        by_rule[v.rule_kind] += 1
        grouped.setdefault(v.file or PROJECT_KEY, []).append(v)

    return Report(
        total_count=len(items),
        counts_by_severity=by_severity,
        counts_by_rule=by_rule,
        grouped_by_file=dict(sorted(grouped.items())),
        verdict=verdict_for(items),
    )


def count_high(violations: Iterable[Violation]) -> int:
    return sum(1 for v in violations if v.severity is Severity.HIGH)
