"""Structural checks: missing layer roots, missing module artifacts, stray files."""

from __future__ import annotations

import fnmatch
import logging
from typing import TYPE_CHECKING

from layerguard.graph.model import ROOTED_LAYERS, Layer
from layerguard.graph.rule_engine import MissingArtifact, RuleKind, Severity, Violation

if TYPE_CHECKING:
    from layerguard.graph.model import DependencyGraph
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


def check_layer_roots(config: ArchitectureConfig) -> list[Violation]:
    """Report configured layer root directories that do not exist."""
    violations: list[Violation] = []
    for layer in ROOTED_LAYERS:
        root = config.layer_root(layer)
        if not (config.project_root / root).is_dir():
            violations.append(
                Violation(
                    rule_kind=RuleKind.STRUCTURAL,
                    severity=Severity.LOW,
                    file=root,
                    message=f"Missing {layer.value} layer directory: {root}",
                )
            )
    return violations


def module_directories(config: ArchitectureConfig) -> list[str]:
    """Return the names of module directories under the Module root."""
    modules_root = config.project_root / config.layer_root(Layer.MODULE)
    if not modules_root.is_dir():
        return []
    names: list[str] = []
    for child in modules_root.iterdir():
        if not child.is_dir():
            continue
        if any(fnmatch.fnmatchcase(child.name, p) for p in config.exclude_dirs):
            continue
        names.append(child.name)
    return sorted(names)


def find_missing_artifacts(config: ArchitectureConfig) -> list[MissingArtifact]:
    """Find modules lacking a required file (any configured extension satisfies it)."""
    modules_root = config.layer_root(Layer.MODULE)
    missing: list[MissingArtifact] = []
    for module in module_directories(config):
        directory = f"{modules_root}/{module}"
        base = config.project_root / directory
        for artifact in config.module_required_files:
            if not any((base / f"{artifact}{ext}").is_file() for ext in config.extensions):
                missing.append(MissingArtifact(module, artifact, directory))
    return missing


def check_module_artifacts(config: ArchitectureConfig) -> list[Violation]:
    """Report every missing required module artifact."""
    return [
        Violation(
            rule_kind=RuleKind.STRUCTURAL,
            severity=Severity.LOW,
            file=item.directory,
            message=f"Module '{item.module_name}' is missing required artifact '{item.artifact}'",
            artifact=item,
        )
        for item in find_missing_artifacts(config)
    ]


def check_unclassified_files(graph: DependencyGraph) -> list[Violation]:
    """Report discovered files that lie under no layer root."""
    return [
        Violation(
            rule_kind=RuleKind.STRUCTURAL,
            severity=Severity.LOW,
            file=source.relative_path,
            message=f"File {source.relative_path} is not under any layer root",
        )
        for source in graph.files
        if source.layer is Layer.UNKNOWN
    ]


def check_structure(config: ArchitectureConfig, graph: DependencyGraph) -> list[Violation]:
    """Run all structural checks."""
    violations = check_layer_roots(config) + check_module_artifacts(config)
    if config.report_unclassified_files:
        violations += check_unclassified_files(graph)
    logger.debug("Structural checks produced %d findings", len(violations))
    return violations
