"""Analysis orchestrator: discover, build the graph, evaluate rules, aggregate."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from layerguard.graph.builder import build_graph
from layerguard.graph.cycles import detect_cycles
from layerguard.graph.model import DependencyGraph, FileError
from layerguard.graph.report import Report, Verdict, aggregate
from layerguard.graph.rule_engine import Violation, evaluate_edges
from layerguard.graph.structure import check_structure
from layerguard.infrastructure.discovery import discover_files

if TYPE_CHECKING:
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisStats:
    """Counters describing one analysis run."""

    files_scanned: int = 0
    edges: int = 0
    resolved_edges: int = 0
    modules: int = 0
    extraction_errors: int = 0
    elapsed_ms: float = 0.0


@dataclass
class AnalysisResult:
    """Result of an analysis run: verdict, violations, stats and per-file errors."""

    violations: list[Violation] = field(default_factory=list)
    stats: AnalysisStats = field(default_factory=AnalysisStats)
    errors: list[FileError] = field(default_factory=list)
    skipped_dirs: list[str] = field(default_factory=list)
    graph: DependencyGraph = field(default_factory=DependencyGraph)
    report: Report = field(default_factory=lambda: aggregate([]))

    @property
    def verdict(self) -> Verdict:
        return self.report.verdict


def evaluate_graph(graph: DependencyGraph, config: ArchitectureConfig) -> list[Violation]:
    """Run rule evaluation, cycle detection and structural checks over *graph*.

    Rules and cycle detection only read the graph, so they run side by side.
    """
    with ThreadPoolExecutor(max_workers=2) as pool:
        rules_future = pool.submit(evaluate_edges, graph.edges, config)
        cycles_future = pool.submit(detect_cycles, graph.edges)
        violations = rules_future.result() + cycles_future.result()

    violations += check_structure(config, graph)
    violations.sort(key=Violation.sort_key)
    return violations


def analyze(config: ArchitectureConfig) -> AnalysisResult:
    """Analyze the project described by *config*.

    Returns
    -------
    AnalysisResult
        Violations in a stable order, the aggregated report, stats and the
        per-file extraction errors.

    Raises
    ------
    DiscoveryError
        When a scan root is missing; nothing else aborts the run.
    """
    start = time.monotonic()

    discovery = discover_files(config)
    graph = build_graph(discovery.files, config)
    violations = evaluate_graph(graph, config)
    report = aggregate(violations)

    elapsed = (time.monotonic() - start) * 1000
    stats = AnalysisStats(
        files_scanned=len(graph.files),
        edges=len(graph.edges),
        resolved_edges=sum(1 for e in graph.edges if e.is_resolved),
        modules=len(graph.module_names),
        extraction_errors=len(graph.errors),
        elapsed_ms=elapsed,
    )
    logger.info(
        "Analysis finished: %d violations, verdict %s (%.0f ms)",
        report.total_count,
        report.verdict.value,
        elapsed,
    )
    return AnalysisResult(
        violations=violations,
        stats=stats,
        errors=list(graph.errors),
        skipped_dirs=list(discovery.skipped_dirs),
        graph=graph,
        report=report,
    )
