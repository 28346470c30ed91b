"""Dependency graph builder: extract and classify every file on a worker pool."""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import TYPE_CHECKING

from layerguard.graph.classifier import PathClassifier
from layerguard.graph.extractor import ExtractionError, Reference, extract_file, extract_references
from layerguard.graph.model import DependencyGraph, FileError, ReferenceEdge, SourceFile

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class _FileOutcome:
    source: SourceFile
    edges: tuple[ReferenceEdge, ...]
    error: FileError | None


def relative_posix(path: Path, project_root: Path) -> str:
    """Return *path* relative to *project_root* as a posix string."""
    return path.resolve().relative_to(project_root.resolve()).as_posix()


def build_edges(
    source: SourceFile,
    references: Iterable[Reference],
    classifier: PathClassifier,
) -> list[ReferenceEdge]:
    """Resolve and classify the targets of *references* made by *source*."""
    edges: list[ReferenceEdge] = []
    for ref in references:
        resolved, target = classifier.resolve(source.relative_path, ref.target)
        edges.append(
            ReferenceEdge(source=source, reference=ref, resolved_file=resolved, target=target)
        )
    return edges


def edges_for_text(
    source: SourceFile, text: str, classifier: PathClassifier
) -> list[ReferenceEdge]:
    """Build the outgoing edges *source* would have if its content were *text*."""
    return build_edges(source, extract_references(text), classifier)


def _process_file(
    path: Path, project_root: Path, classifier: PathClassifier
) -> _FileOutcome:
    relative = relative_posix(path, project_root)
    source = SourceFile(
        path=path, relative_path=relative, classification=classifier.classify_path(relative)
    )
    try:
        references = extract_file(path)
    except ExtractionError as exc:
        logger.warning("Extraction failed for %s: %s", relative, exc)
        return _FileOutcome(source, (), FileError(relative, str(exc)))
    return _FileOutcome(source, tuple(build_edges(source, references, classifier)), None)


def build_graph(files: list[Path], config: ArchitectureConfig) -> DependencyGraph:
    """Build the dependency graph for *files*.

    Per-file extraction and classification run on a bounded thread pool.
    The merge waits for every task and sorts its output, so the graph does
    not depend on completion order.  Unreadable files are recorded in
    ``graph.errors`` and still appear as nodes without edges.
    """
    project_root = config.project_root.resolve()
    known = [relative_posix(p, project_root) for p in files]
    classifier = PathClassifier(config, known)

    with ThreadPoolExecutor(max_workers=config.workers) as pool:
        outcomes = list(pool.map(lambda p: _process_file(p, project_root, classifier), files))

    graph = DependencyGraph()
    for outcome in outcomes:
        graph.files.append(outcome.source)
        graph.edges.extend(outcome.edges)
        if outcome.error is not None:
            graph.errors.append(outcome.error)

    graph.files.sort(key=lambda f: f.relative_path)
    graph.edges.sort(key=lambda e: e.sort_key())
    graph.errors.sort(key=lambda e: e.relative_path)

    logger.info(
        "Built graph: %d files, %d edges, %d errors",
        len(graph.files),
        len(graph.edges),
        len(graph.errors),
    )
    return graph
