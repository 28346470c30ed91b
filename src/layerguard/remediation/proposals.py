"""Turn violations into candidate fixes."""

from __future__ import annotations

import logging
from collections import Counter
from dataclasses import replace
from typing import TYPE_CHECKING

from layerguard.graph.classifier import role_for_name
from layerguard.graph.extractor import (
    ExtractionError,
    ReferenceForm,
    TypeReference,
    ValueReference,
    read_source,
    to_type_only_statement,
)
from layerguard.graph.rule_engine import RuleKind, check_isolation, check_responsibility
from layerguard.remediation.fixes import CreateFile, Fix, ReplaceContent

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.graph.model import ReferenceEdge
    from layerguard.graph.rule_engine import MissingArtifact, Violation
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


def _type_only_clears(edge: ReferenceEdge, config: ArchitectureConfig) -> bool:
    """Return True if the same edge, marked type-only, breaks no rule."""
    ref = edge.reference
    as_type = replace(
        edge,
        reference=TypeReference(
            target=ref.target,
            line_number=ref.line_number,
            form=ref.form,
            statement=ref.statement,
            offset=ref.offset,
        ),
    )
    return check_isolation(as_type) is None and check_responsibility(as_type, config) is None


def _rewrite_candidates(
    violations: Iterable[Violation], config: ArchitectureConfig
) -> dict[str, list[tuple[int, str, str]]]:
    """Collect ``file -> [(offset, statement, type-only statement)]`` rewrites."""
    rewrites: dict[str, list[tuple[int, str, str]]] = {}
    seen: set[tuple[str, int, str]] = set()
    for v in violations:
        if v.rule_kind not in (RuleKind.ISOLATION, RuleKind.RESPONSIBILITY) or v.edge is None:
            continue
        ref = v.edge.reference
        if not isinstance(ref, ValueReference) or ref.form is not ReferenceForm.STATIC:
            continue
        key = (v.edge.source.relative_path, ref.line_number, ref.target)
        if key in seen:
            continue
        seen.add(key)
        rewritten = to_type_only_statement(ref.statement)
        if rewritten is None or not _type_only_clears(v.edge, config):
            continue
        rewrites.setdefault(v.edge.source.relative_path, []).append(
            (ref.offset, ref.statement, rewritten)
        )
    return rewrites


def _splice(text: str, rewrites: list[tuple[int, str, str]], relative: str) -> str:
    """Replace each statement at its recorded offset, last one first."""
    for offset, statement, rewritten in sorted(rewrites, reverse=True):
        if offset < 0 or text[offset : offset + len(statement)] != statement:
            logger.warning("Statement moved in %s, skipping rewrite of %r", relative, statement)
            continue
        text = text[:offset] + rewritten + text[offset + len(statement) :]
    return text


def _module_extension(directory: str, config: ArchitectureConfig) -> str:
    """Pick the extension most used in *directory*, else the first configured one."""
    base = config.project_root / directory
    counts: Counter[str] = Counter()
    if base.is_dir():
        for child in base.iterdir():
            for ext in config.extensions:
                if child.name.endswith(ext):
                    counts[ext] += 1
                    break
    if counts:
        return sorted(counts.items(), key=lambda item: (-item[1], item[0]))[0][0]
    return config.extensions[0]


def artifact_fix(item: MissingArtifact, config: ArchitectureConfig) -> CreateFile:
    """Build the CreateFile fix for a missing module artifact."""
    ext = _module_extension(item.directory, config)
    return CreateFile(
        path=config.project_root / item.directory / f"{item.artifact}{ext}",
        role=role_for_name(f"{item.artifact}{ext}"),
        context_name=item.module_name,
        description=f"Create missing {item.artifact}{ext} for module '{item.module_name}'",
    )


def propose_fixes(violations: Iterable[Violation], config: ArchitectureConfig) -> list[Fix]:
    """Propose fixes for *violations*.

    - Value-level static imports that would be legal as type-only imports
      (cross-module types, a UI or store reading its service's types) are
      rewritten to ``import type``; one ReplaceContent per file.
    - Missing module artifacts become CreateFile fixes.

    Everything else needs a human and yields no fix.
    """
    items = list(violations)
    fixes: list[Fix] = []

    for relative, pairs in sorted(_rewrite_candidates(items, config).items()):
        path = config.project_root / relative
        try:
            text = read_source(path)
        except ExtractionError as exc:
            logger.warning("Cannot propose rewrite for %s: %s", relative, exc)
            continue
        new_text = _splice(text, pairs, relative)
        if new_text != text:
            fixes.append(
                ReplaceContent(
                    path=path,
                    text=new_text,
                    description=f"Mark {len(pairs)} reference(s) type-only",
                )
            )

    for v in items:
        if v.artifact is not None:
            fixes.append(artifact_fix(v.artifact, config))

    logger.info("Proposed %d fixes for %d violations", len(fixes), len(items))
    return fixes
