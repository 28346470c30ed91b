"""Reference extractor: find dependency statements in source text by pattern."""

from __future__ import annotations

import bisect
import enum
import logging
import re
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from pathlib import Path

logger = logging.getLogger(__name__)


class ExtractionError(Exception):
    """Raised when a single file cannot be read or decoded."""


class ReferenceForm(enum.Enum):
    """Syntactic shape of a reference statement."""

    STATIC = "static"
    DYNAMIC = "dynamic"
    REEXPORT = "reexport"


@dataclass(frozen=True)
class ValueReference:
    """A reference that creates runtime coupling."""

    target: str
    line_number: int  # 1-based
    form: ReferenceForm = ReferenceForm.STATIC
    statement: str = field(default="", compare=False)
    offset: int = field(default=-1, compare=False)  # start of statement in the file text

    is_type_only: ClassVar[bool] = False


@dataclass(frozen=True)
class TypeReference:
    """A reference that imports compile-time type information only."""

    target: str
    line_number: int  # 1-based
    form: ReferenceForm = ReferenceForm.STATIC
    statement: str = field(default="", compare=False)
    offset: int = field(default=-1, compare=False)  # start of statement in the file text

    is_type_only: ClassVar[bool] = True


Reference = ValueReference | TypeReference

# ---------------------------------------------------------------------------
# Patterns
# ---------------------------------------------------------------------------

# import X from 'p' / import {a, type B} from 'p' / import type {A} from 'p'
_STATIC_IMPORT_RE = re.compile(
    r"""\bimport\s+(?P<type>type\s+)?(?P<clause>[\w*$,{}\s]*?)\s*\bfrom\s*"""
    r"""(?P<q>['"])(?P<target>[^'"\n]+)(?P=q)""",
)

# import 'p'  (side-effect only)
_SIDE_EFFECT_IMPORT_RE = re.compile(r"""\bimport\s*(?P<q>['"])(?P<target>[^'"\n]+)(?P=q)""")

# import('p') / require('p')
_DYNAMIC_RE = re.compile(
    r"""\b(?:import|require)\s*\(\s*(?P<q>['"`])(?P<target>[^'"`\n]+)(?P=q)\s*\)""",
)

# export * from 'p' / export {a} from 'p' / export type {A} from 'p'
_REEXPORT_RE = re.compile(
    r"""\bexport\s+(?P<type>type\s+)?(?P<clause>\*(?:\s+as\s+[\w$]+)?|\{[^}]*\})\s*"""
    r"""from\s*(?P<q>['"])(?P<target>[^'"\n]+)(?P=q)""",
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def strip_comments(text: str) -> str:
    """Blank out ``//`` and ``/* */`` comments, keeping offsets and newlines.

    String literals are skipped so that ``'http://host'`` survives intact.
    """
    out = list(text)
    i = 0
    n = len(text)
    quote: str | None = None
    while i < n:
        ch = text[i]
        if quote is not None:
            if ch == "\\":
                i += 2
                continue
            if ch == quote or (ch == "\n" and quote != "`"):
                quote = None
            i += 1
            continue
        if ch in "'\"`":
            quote = ch
            i += 1
            continue
        if ch == "/" and i + 1 < n and text[i + 1] == "/":
            while i < n and text[i] != "\n":
                out[i] = " "
                i += 1
            continue
        if ch == "/" and i + 1 < n and text[i + 1] == "*":
            end = text.find("*/", i + 2)
            stop = n if end == -1 else end + 2
            for j in range(i, stop):
                if out[j] != "\n":
                    out[j] = " "
            i = stop
            continue
        i += 1
    return "".join(out)


def _is_type_only_clause(clause: str) -> bool:
    """Return True when a ``{...}`` clause names only ``type``-marked specifiers."""
    clause = clause.strip()
    if not (clause.startswith("{") and clause.endswith("}")):
        return False
    specifiers = [s.strip() for s in clause[1:-1].split(",") if s.strip()]
    if not specifiers:
        return False
    return all(re.match(r"type\s+", s) for s in specifiers)


def _make(
    *, type_only: bool, target: str, line: int, form: ReferenceForm, statement: str, offset: int
) -> Reference:
    cls = TypeReference if type_only else ValueReference
    return cls(target=target, line_number=line, form=form, statement=statement, offset=offset)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def extract_references(text: str) -> list[Reference]:
    """Extract every reference statement from *text*, ordered by position.

    One statement yields one reference.  A target referenced twice (for
    example once type-only and once by value) yields two references.
    """
    cleaned = strip_comments(text)
    newlines = [m.start() for m in re.finditer("\n", cleaned)]

    def line_of(offset: int) -> int:
        return bisect.bisect_right(newlines, offset) + 1

    found: list[tuple[int, Reference]] = []
    claimed: set[int] = set()

    for m in _STATIC_IMPORT_RE.finditer(cleaned):
        type_only = bool(m.group("type")) or _is_type_only_clause(m.group("clause"))
        claimed.add(m.start())
        found.append(
            (
                m.start(),
                _make(
                    type_only=type_only,
                    target=m.group("target"),
                    line=line_of(m.start()),
                    form=ReferenceForm.STATIC,
                    statement=text[m.start() : m.end()],
                    offset=m.start(),
                ),
            )
        )

    for m in _SIDE_EFFECT_IMPORT_RE.finditer(cleaned):
        if m.start() in claimed:
            continue
        found.append(
            (
                m.start(),
                _make(
                    type_only=False,
                    target=m.group("target"),
                    line=line_of(m.start()),
                    form=ReferenceForm.STATIC,
                    statement=text[m.start() : m.end()],
                    offset=m.start(),
                ),
            )
        )

    for m in _DYNAMIC_RE.finditer(cleaned):
        found.append(
            (
                m.start(),
                _make(
                    type_only=False,
                    target=m.group("target"),
                    line=line_of(m.start()),
                    form=ReferenceForm.DYNAMIC,
                    statement=text[m.start() : m.end()],
                    offset=m.start(),
                ),
            )
        )

    for m in _REEXPORT_RE.finditer(cleaned):
        type_only = bool(m.group("type")) or _is_type_only_clause(m.group("clause"))
        found.append(
            (
                m.start(),
                _make(
                    type_only=type_only,
                    target=m.group("target"),
                    line=line_of(m.start()),
                    form=ReferenceForm.REEXPORT,
                    statement=text[m.start() : m.end()],
                    offset=m.start(),
                ),
            )
        )

    found.sort(key=lambda item: item[0])
    return [ref for _, ref in found]


def import_block_end(text: str) -> int:
    """Return the offset just past the line holding the last static import.

    Returns 0 when the text has no static import, so inserted statements
    go to the top of the file.
    """
    cleaned = strip_comments(text)
    end = 0
    for pattern in (_STATIC_IMPORT_RE, _SIDE_EFFECT_IMPORT_RE):
        for m in pattern.finditer(cleaned):
            end = max(end, m.end())
    if end == 0:
        return 0
    newline = text.find("\n", end)
    return len(text) if newline == -1 else newline + 1


def to_type_only_statement(statement: str) -> str | None:
    """Rewrite a static value import as ``import type``.

    Returns None when the statement cannot be expressed type-only (a
    side-effect import, or a default import combined with named ones).
    """
    m = _STATIC_IMPORT_RE.match(statement)
    if m is None or m.group("type"):
        return None
    clause = m.group("clause").strip()
    if not clause:
        return None
    head = clause.split("{", 1)[0]
    if "," in head:
        return None
    rewritten = re.sub(r"^import\s+", "import type ", statement, count=1)
    # Inline `type` markers are redundant (and invalid) inside `import type {...}`.
    return re.sub(r"([{,]\s*)type\s+", r"\1", rewritten)


def read_source(path: Path) -> str:
    """Read a source file as UTF-8, raising :class:`ExtractionError` on failure."""
    try:
        return path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        msg = f"Cannot read {path}: {exc}"
        raise ExtractionError(msg) from exc


def extract_file(path: Path) -> list[Reference]:
    """Read *path* and extract its references."""
    references = extract_references(read_source(path))
    logger.debug("Extracted %d references from %s", len(references), path)
    return references
