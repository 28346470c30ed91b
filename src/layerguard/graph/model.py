"""Graph data model: layers, roles, classified files and reference edges."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path

    from layerguard.graph.extractor import Reference


class Layer(enum.Enum):
    """Architectural tier of a file or reference target."""

    APPLICATION = "application"
    MODULE = "module"
    CORE = "core"
    SHARED = "shared"
    EXTERNAL = "external"
    UNKNOWN = "unknown"

    @property
    def rank(self) -> int | None:
        """Position in the ordering (higher = outer); None for unordered layers."""
        return _LAYER_RANKS.get(self)

    @property
    def is_ordered(self) -> bool:
        return self in _LAYER_RANKS


_LAYER_RANKS: dict[Layer, int] = {
    Layer.APPLICATION: 3,
    Layer.MODULE: 2,
    Layer.CORE: 1,
    Layer.SHARED: 0,
}

# Layers that own a configurable root directory, in declaration order.
ROOTED_LAYERS: tuple[Layer, ...] = (Layer.APPLICATION, Layer.MODULE, Layer.CORE, Layer.SHARED)


class FileRole(enum.Enum):
    """Responsibility of a file, derived from its naming convention."""

    UI = "ui"
    STORE = "store"
    SERVICE = "service"
    INDEX = "index"
    OTHER = "other"


@dataclass(frozen=True)
class Classification:
    """Where a file or target sits in the architecture.

    ``key`` is the project-relative posix path without extension for
    internal targets (``src/modules/orders/store``) and the raw specifier
    for external ones (``react``).  Responsibility patterns match on it.
    """

    layer: Layer
    module_name: str | None
    role: FileRole | None
    key: str

    @property
    def is_internal(self) -> bool:
        return self.layer.is_ordered


@dataclass(frozen=True)
class SourceFile:
    """A discovered file; identity is its absolute path."""

    path: Path
    relative_path: str
    classification: Classification

    @property
    def layer(self) -> Layer:
        return self.classification.layer

    @property
    def module_name(self) -> str | None:
        return self.classification.module_name

    @property
    def role(self) -> FileRole | None:
        return self.classification.role


@dataclass(frozen=True)
class ReferenceEdge:
    """A directed dependency from one source file to a target."""

    source: SourceFile
    reference: Reference
    resolved_file: str | None  # project-relative path of the target file
    target: Classification

    @property
    def raw_target(self) -> str:
        return self.reference.target

    @property
    def is_type_only(self) -> bool:
        return self.reference.is_type_only

    @property
    def line_number(self) -> int:
        return self.reference.line_number

    @property
    def is_resolved(self) -> bool:
        return self.resolved_file is not None and self.target.is_internal

    def sort_key(self) -> tuple[str, int, str, bool]:
        return (self.source.relative_path, self.line_number, self.raw_target, self.is_type_only)


@dataclass(frozen=True)
class FileError:
    """A per-file failure recorded during graph construction."""

    relative_path: str
    message: str


@dataclass
class DependencyGraph:
    """All files and edges for one analysis run."""

    files: list[SourceFile] = field(default_factory=list)
    edges: list[ReferenceEdge] = field(default_factory=list)
    errors: list[FileError] = field(default_factory=list)

    def file_by_relative_path(self, relative_path: str) -> SourceFile | None:
        for source in self.files:
            if source.relative_path == relative_path:
                return source
        return None

    def edges_from(self, relative_path: str) -> list[ReferenceEdge]:
        return [e for e in self.edges if e.source.relative_path == relative_path]

    @property
    def module_names(self) -> list[str]:
        names = {f.module_name for f in self.files if f.module_name is not None}
        return sorted(names)
