"""Graph domain: extraction, classification, graph building, rules, cycles, reports."""

from layerguard.graph.builder import build_graph
from layerguard.graph.classifier import PathClassifier, role_for_name
from layerguard.graph.cycles import detect_cycles, find_cycles, normalize_cycle
from layerguard.graph.extractor import (
    ExtractionError,
    Reference,
    ReferenceForm,
    TypeReference,
    ValueReference,
    extract_file,
    extract_references,
)
from layerguard.graph.model import (
    Classification,
    DependencyGraph,
    FileError,
    FileRole,
    Layer,
    ReferenceEdge,
    SourceFile,
)
from layerguard.graph.report import Report, Verdict, aggregate
from layerguard.graph.rule_engine import (
    MissingArtifact,
    RuleKind,
    Severity,
    Violation,
    evaluate_edge,
    evaluate_edges,
)

__all__ = [
    "Classification",
    "DependencyGraph",
    "ExtractionError",
    "FileError",
    "FileRole",
    "Layer",
    "MissingArtifact",
    "PathClassifier",
    "Reference",
    "ReferenceEdge",
    "ReferenceForm",
    "Report",
    "RuleKind",
    "Severity",
    "SourceFile",
    "TypeReference",
    "ValueReference",
    "Verdict",
    "Violation",
    "aggregate",
    "build_graph",
    "detect_cycles",
    "evaluate_edge",
    "evaluate_edges",
    "extract_file",
    "extract_references",
    "find_cycles",
    "normalize_cycle",
    "role_for_name",
]
