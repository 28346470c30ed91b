"""Safety decision: does a fix's post-fix text introduce an architecture violation?"""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import dataclass
from typing import TYPE_CHECKING

from layerguard.graph.builder import edges_for_text
from layerguard.graph.model import SourceFile
from layerguard.graph.rule_engine import ARCHITECTURE_RULES, Violation, evaluate_edges
from layerguard.remediation.fixes import REJECT_UNSAFE

if TYPE_CHECKING:
    from layerguard.graph.classifier import PathClassifier
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SafetyDecision:
    """Outcome of simulating a fix."""

    safe: bool
    reason: str | None = None
    introduced: tuple[Violation, ...] = ()


def simulate_violations(
    relative_path: str,
    text: str,
    classifier: PathClassifier,
    config: ArchitectureConfig,
) -> list[Violation]:
    """Architecture violations the file at *relative_path* would have with *text*."""
    source = SourceFile(
        path=config.project_root / relative_path,
        relative_path=relative_path,
        classification=classifier.classify_path(relative_path),
    )
    edges = edges_for_text(source, text, classifier)
    return [v for v in evaluate_edges(edges, config) if v.rule_kind in ARCHITECTURE_RULES]


def check_fix_safety(
    relative_path: str,
    before: str | None,
    after: str,
    classifier: PathClassifier,
    config: ArchitectureConfig,
) -> SafetyDecision:
    """Compare the file's violations before and after a fix.

    The fix is unsafe when *after* carries any Hierarchy, Isolation or
    Responsibility violation that *before* did not already have.
    Violations are compared by rule, target and reference kind, so moving
    an existing statement to another line is not a new violation.
    """
    existing = Counter(
        v.signature()
        for v in (simulate_violations(relative_path, before, classifier, config) if before else [])
    )
    introduced: list[Violation] = []
    for violation in simulate_violations(relative_path, after, classifier, config):
        sig = violation.signature()
        if existing[sig] > 0:
            existing[sig] -= 1
        else:
            introduced.append(violation)

    if introduced:
        logger.info(
            "Fix for %s rejected: introduces %d violation(s)", relative_path, len(introduced)
        )
        return SafetyDecision(safe=False, reason=REJECT_UNSAFE, introduced=tuple(introduced))
    return SafetyDecision(safe=True)
