"""Renderers: turn an AnalysisResult into text. They build strings and never print."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from layerguard.graph.rule_engine import Severity

if TYPE_CHECKING:
    from layerguard.graph.analyzer import AnalysisResult
    from layerguard.graph.rule_engine import Violation

_SEVERITY_MARK: dict[Severity, str] = {
    Severity.HIGH: "✗",
    Severity.MEDIUM: "!",
    Severity.LOW: "·",
}


def format_rich(result: AnalysisResult) -> str:
    """Format a result as human-readable text grouped by file.

    Example output::

        Files: 25 scanned, 142 references (120 resolved), 4 modules

        src/modules/orders/ui.tsx
          ✗ isolation   :3  Isolation violation: module 'orders' references ...

        FAIL: 1 violations (1 high, 0 medium, 0 low) in 0.1s
    """
    stats = result.stats
    report = result.report
    lines: list[str] = [
        f"Files: {stats.files_scanned} scanned, {stats.edges} references "
        f"({stats.resolved_edges} resolved), {stats.modules} modules",
        "",
    ]

    for file_key, items in report.grouped_by_file.items():
        lines.append(file_key)
        for v in items:
            line = f":{v.line_number}" if v.line_number is not None else ""
            lines.append(
                f"  {_SEVERITY_MARK[v.severity]} {v.rule_kind.value:<14s}{line:<6s}{v.message}"
            )
        lines.append("")

    if result.errors:
        lines.append("Errors:")
        for err in result.errors:
            lines.append(f"  [ERR] {err.relative_path}: {err.message}")
        lines.append("")
    if result.skipped_dirs:
        lines.append("Skipped directories:")
        for skipped in result.skipped_dirs:
            lines.append(f"  [warn] {skipped}")
        lines.append("")

    counts = report.counts_by_severity
    elapsed = f"{stats.elapsed_ms / 1000:.1f}s"
    if report.total_count:
        lines.append(
            f"{report.verdict.value.upper()}: {report.total_count} violations "
            f"({counts.get(Severity.HIGH, 0)} high, {counts.get(Severity.MEDIUM, 0)} medium, "
            f"{counts.get(Severity.LOW, 0)} low) in {elapsed}"
        )
    else:
        lines.append(f"✓ PASS: no violations found in {elapsed}")
    return "\n".join(lines)


def violation_to_dict(v: Violation) -> dict[str, object]:
    return {
        "rule": v.rule_kind.value,
        "severity": v.severity.value,
        "file": v.file,
        "line": v.line_number,
        "target": v.target,
        "type_only": v.edge.is_type_only if v.edge is not None else None,
        "cycle": list(v.cycle) if v.cycle is not None else None,
        "message": v.message,
    }


def format_json(result: AnalysisResult) -> str:
    """Format a result as JSON.

    Top-level keys: ``verdict``, ``violations``, ``errors``, ``skipped_dirs``
    and ``stats``.
    """
    report = result.report
    output: dict[str, object] = {
        "verdict": report.verdict.value,
        "violations": [violation_to_dict(v) for v in result.violations],
        "errors": [{"file": e.relative_path, "message": e.message} for e in result.errors],
        "skipped_dirs": list(result.skipped_dirs),
        "stats": {
            "total": report.total_count,
            "by_severity": {k.value: n for k, n in report.counts_by_severity.items()},
            "by_rule": {k.value: n for k, n in report.counts_by_rule.items()},
            "files_scanned": result.stats.files_scanned,
            "edges": result.stats.edges,
            "resolved_edges": result.stats.resolved_edges,
            "modules": result.stats.modules,
            "extraction_errors": result.stats.extraction_errors,
        },
    }
    return json.dumps(output, indent=2, ensure_ascii=False)


def format_porcelain(result: AnalysisResult) -> str:
    """One line per violation: ``severity:rule:file:line:target``.

    Missing fields are empty strings.  Extraction errors follow as
    ``error:extraction:file::message`` and skipped directories as
    ``warn:skipped:dir::``.  Returns an empty string when there is nothing
    to report.
    """
    lines: list[str] = []
    for v in result.violations:
        line = str(v.line_number) if v.line_number is not None else ""
        target = v.target or (" ".join(v.cycle) if v.cycle else "")
        lines.append(f"{v.severity.value}:{v.rule_kind.value}:{v.file or ''}:{line}:{target}")
    for err in result.errors:
        lines.append(f"error:extraction:{err.relative_path}::{err.message}")
    for skipped in result.skipped_dirs:
        lines.append(f"warn:skipped:{skipped}::")
    return "\n".join(lines)
