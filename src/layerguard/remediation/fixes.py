"""Fix variants and the per-fix state machine."""

from __future__ import annotations

import enum
from collections.abc import Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from layerguard.graph.model import FileRole
    from layerguard.graph.rule_engine import Violation

# (role, context_name) -> file text; supplied by the scaffolding side.
TemplateProvider = Callable[["FileRole", str], str]


class FixMode(enum.Enum):
    """How a remediation batch treats the file system."""

    DRY_RUN = "dry-run"  # report only
    APPLY = "apply"  # write accepted fixes
    FORCE = "force"  # write, and let CreateFile overwrite existing files


class FixState(enum.Enum):
    """Lifecycle of a single fix."""

    PROPOSED = "proposed"
    SAFETY_CHECKED = "safety_checked"
    APPLIED = "applied"
    REJECTED = "rejected"
    FAILED = "failed"  # accepted, but the write raised


_TRANSITIONS: dict[FixState, frozenset[FixState]] = {
    FixState.PROPOSED: frozenset({FixState.SAFETY_CHECKED, FixState.REJECTED}),
    FixState.SAFETY_CHECKED: frozenset({FixState.APPLIED, FixState.REJECTED, FixState.FAILED}),
    FixState.APPLIED: frozenset(),
    FixState.REJECTED: frozenset(),
    FixState.FAILED: frozenset(),
}

REJECT_UNSAFE = "would violate architecture"


@dataclass(frozen=True)
class ReplaceContent:
    """Replace a file's whole text."""

    path: Path
    text: str
    description: str = ""


@dataclass(frozen=True)
class InsertReference:
    """Insert a reference statement after the file's leading import block."""

    path: Path
    statement: str
    description: str = ""


@dataclass(frozen=True)
class CreateFile:
    """Create a missing file from the template provider."""

    path: Path
    role: FileRole
    context_name: str
    description: str = ""


Fix = ReplaceContent | InsertReference | CreateFile


def fix_kind(fix: Fix) -> str:
    if isinstance(fix, ReplaceContent):
        return "replace"
    if isinstance(fix, InsertReference):
        return "insert_reference"
    return "create_file"


@dataclass
class FixRecord:
    """A fix and everything decided about it."""

    fix: Fix
    state: FixState = FixState.PROPOSED
    reason: str | None = None
    introduced: list[Violation] = field(default_factory=list)
    post_text: str | None = None

    def transition(self, state: FixState, reason: str | None = None) -> None:
        """Move to *state*, refusing transitions the lifecycle does not allow."""
        if state not in _TRANSITIONS[self.state]:
            msg = f"Illegal fix transition {self.state.value} -> {state.value}"
            raise ValueError(msg)
        self.state = state
        if reason is not None:
            self.reason = reason
