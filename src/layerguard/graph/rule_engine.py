"""Rule engine: evaluate Hierarchy, Isolation and Responsibility rules per edge."""

from __future__ import annotations

import enum
import fnmatch
from dataclasses import dataclass
from typing import TYPE_CHECKING

from layerguard.graph.model import FileRole, Layer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.graph.model import ReferenceEdge
    from layerguard.infrastructure.config import ArchitectureConfig, ResponsibilityContract

# ---------------------------------------------------------------------------
# Enums and data classes
# ---------------------------------------------------------------------------


class Severity(enum.Enum):
    """How serious a violation is; any HIGH fails the run."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 2, "medium": 1, "low": 0}[self.value]


class RuleKind(enum.Enum):
    """Which rule produced a violation."""

    HIERARCHY = "hierarchy"
    ISOLATION = "isolation"
    RESPONSIBILITY = "responsibility"
    CYCLE = "cycle"
    STRUCTURAL = "structural"


_RULE_ORDER: dict[RuleKind, int] = {kind: idx for idx, kind in enumerate(RuleKind)}

# Rules whose appearance makes a proposed fix unsafe.
ARCHITECTURE_RULES: frozenset[RuleKind] = frozenset(
    {RuleKind.HIERARCHY, RuleKind.ISOLATION, RuleKind.RESPONSIBILITY}
)


@dataclass(frozen=True)
class MissingArtifact:
    """A file every module must contain but this one does not."""

    module_name: str
    artifact: str  # file stem, e.g. "index"
    directory: str  # project-relative module directory


@dataclass(frozen=True)
class Violation:
    """A single rule violation."""

    rule_kind: RuleKind
    severity: Severity
    file: str | None  # project-relative source file (None for cycles)
    message: str
    edge: ReferenceEdge | None = None
    cycle: tuple[str, ...] | None = None
    artifact: MissingArtifact | None = None

    @property
    def line_number(self) -> int | None:
        return self.edge.line_number if self.edge is not None else None

    @property
    def target(self) -> str | None:
        return self.edge.raw_target if self.edge is not None else None

    def sort_key(self) -> tuple[str, int, int, str]:
        return (self.file or "", self.line_number or 0, _RULE_ORDER[self.rule_kind], self.message)

    def signature(self) -> tuple[RuleKind, str, str | None, bool]:
        """Identity of the violation independent of line numbers."""
        if self.edge is None:
            return (self.rule_kind, self.message, None, False)
        return (self.rule_kind, self.edge.target.key, self.file, self.edge.is_type_only)


# ---------------------------------------------------------------------------
# Pattern matching
# ---------------------------------------------------------------------------


def _split_kind(pattern: str) -> tuple[str | None, str]:
    for prefix in ("value:", "type:"):
        if pattern.startswith(prefix):
            return prefix[:-1], pattern[len(prefix) :]
    return None, pattern


# Placeholders that stand for a configured list of patterns.
_PATTERN_GROUPS: tuple[tuple[str, str], ...] = (
    ("transport", "transport_patterns"),
    ("ui_framework", "ui_framework_patterns"),
)


def expand_pattern(
    pattern: str, config: ArchitectureConfig, module_name: str | None
) -> list[tuple[str | None, str]]:
    """Expand placeholders in *pattern* into ``(kind, glob)`` pairs.

    ``{transport}`` and ``{ui_framework}`` fan out into every configured
    pattern of that group.  Patterns that mention ``{module}`` expand to
    nothing when the source has no module.
    """
    kind, body = _split_kind(pattern)
    bodies = [body]
    for group, members in _PATTERN_GROUPS:
        placeholder = "{" + group + "}"
        if placeholder in body:
            bodies = [
                b.replace(placeholder, m) for b in bodies for m in getattr(config, members)
            ]

    expanded: list[tuple[str | None, str]] = []
    for item in bodies:
        if "{module}" in item:
            if module_name is None:
                continue
            item = item.replace("{module}", module_name)
        for name, root in config.placeholders.items():
            item = item.replace("{" + name + "}", root)
        expanded.append((kind, item))
    return expanded


def edge_matches(
    edge: ReferenceEdge, pattern: str, config: ArchitectureConfig
) -> bool:
    """Return True if *edge* matches a responsibility *pattern*."""
    for kind, glob in expand_pattern(pattern, config, edge.source.module_name):
        if kind == "value" and edge.is_type_only:
            continue
        if kind == "type" and not edge.is_type_only:
            continue
        if fnmatch.fnmatchcase(edge.target.key, glob):
            return True
    return False


def is_transport_target(edge: ReferenceEdge, config: ArchitectureConfig) -> bool:
    """Return True if *edge* points into Core's transport layer."""
    return any(edge_matches(edge, pattern, config) for pattern in config.transport_patterns)


# ---------------------------------------------------------------------------
# Per-edge rules
# ---------------------------------------------------------------------------


def check_hierarchy(edge: ReferenceEdge) -> Violation | None:
    """Flag a reference from a lower layer up into a higher one."""
    if not edge.is_resolved:
        return None
    src_rank = edge.source.layer.rank
    dst_rank = edge.target.layer.rank
    if src_rank is None or dst_rank is None or dst_rank <= src_rank:
        return None
    src_layer = edge.source.layer.value
    dst_layer = edge.target.layer.value
    return Violation(
        rule_kind=RuleKind.HIERARCHY,
        severity=Severity.HIGH,
        file=edge.source.relative_path,
        edge=edge,
        message=(
            f"Hierarchy violation: {src_layer} file references '{edge.raw_target}' "
            f"in the {dst_layer} layer. Lower layers must not depend on upper layers."
        ),
    )


def check_isolation(edge: ReferenceEdge) -> Violation | None:
    """Flag a value-level reference from one module into another."""
    if not edge.is_resolved or edge.is_type_only:
        return None
    if edge.source.layer is not Layer.MODULE or edge.target.layer is not Layer.MODULE:
        return None
    src_module = edge.source.module_name
    dst_module = edge.target.module_name
    if src_module is None or dst_module is None or src_module == dst_module:
        return None
    return Violation(
        rule_kind=RuleKind.ISOLATION,
        severity=Severity.HIGH,
        file=edge.source.relative_path,
        edge=edge,
        message=(
            f"Isolation violation: module '{src_module}' references module "
            f"'{dst_module}' at runtime via '{edge.raw_target}'. Share types with a "
            f"type-only reference or move shared logic to core/shared."
        ),
    )


def _contract_for(
    edge: ReferenceEdge, config: ArchitectureConfig
) -> ResponsibilityContract | None:
    role = edge.source.role
    if role is None or role is FileRole.OTHER or not edge.source.layer.is_ordered:
        return None
    return config.responsibility.get(role)


def check_responsibility(edge: ReferenceEdge, config: ArchitectureConfig) -> Violation | None:
    """Check *edge* against the responsibility contract of its source role."""
    contract = _contract_for(edge, config)
    role = edge.source.role
    if contract is None or role is None:
        return None

    kind = "type-only" if edge.is_type_only else "value"
    scoped = edge.source.layer in config.responsibility_layers

    patterns = contract.always_forbidden
    if scoped:
        patterns = (*contract.forbidden, *patterns)
    forbidden = next((p for p in patterns if edge_matches(edge, p, config)), None)
    if forbidden is not None:
        reason = f"matches forbidden pattern '{forbidden}'"
    elif scoped and contract.exhaustive and not any(
        edge_matches(edge, p, config) for p in contract.permitted
    ):
        reason = "matches no permitted pattern"
    else:
        return None

    severity = Severity.MEDIUM
    if role in (FileRole.UI, FileRole.STORE) and is_transport_target(edge, config):
        severity = Severity.HIGH

    return Violation(
        rule_kind=RuleKind.RESPONSIBILITY,
        severity=severity,
        file=edge.source.relative_path,
        edge=edge,
        message=(
            f"Responsibility violation: {role.value} file has a {kind} reference to "
            f"'{edge.raw_target}' which {reason}."
        ),
    )


def check_unresolved(edge: ReferenceEdge) -> Violation | None:
    """Report a local reference that maps to no file under a layer root."""
    if edge.target.layer is not Layer.UNKNOWN:
        return None
    return Violation(
        rule_kind=RuleKind.STRUCTURAL,
        severity=Severity.LOW,
        file=edge.source.relative_path,
        edge=edge,
        message=(
            f"Unresolved reference '{edge.raw_target}': no file found under a layer root."
        ),
    )


def evaluate_edge(edge: ReferenceEdge, config: ArchitectureConfig) -> list[Violation]:
    """Run every per-edge rule; an edge may yield zero, one or several violations."""
    found = [
        check_hierarchy(edge),
        check_isolation(edge),
        check_responsibility(edge, config),
        check_unresolved(edge),
    ]
    return [v for v in found if v is not None]


def evaluate_edges(
    edges: Iterable[ReferenceEdge], config: ArchitectureConfig
) -> list[Violation]:
    """Evaluate every edge and return violations in a stable order."""
    violations: list[Violation] = []
    for edge in edges:
        violations.extend(evaluate_edge(edge, config))
    violations.sort(key=Violation.sort_key)
    return violations
