"""Path classifier: map files and reference targets to layer, module and role."""

from __future__ import annotations

import posixpath
from dataclasses import replace
from typing import TYPE_CHECKING

from layerguard.graph.model import ROOTED_LAYERS, Classification, FileRole, Layer

if TYPE_CHECKING:
    from collections.abc import Iterable

    from layerguard.infrastructure.config import ArchitectureConfig

_ROLE_BY_SEGMENT: dict[str, FileRole] = {
    "ui": FileRole.UI,
    "store": FileRole.STORE,
    "service": FileRole.SERVICE,
    "index": FileRole.INDEX,
}


def role_for_name(file_name: str) -> FileRole:
    """Derive a file's role from its name.

    The last dot-separated segment of the stem decides: ``ui.tsx`` and
    ``orders.ui.tsx`` are both UI files, ``cart.store.ts`` is a store.
    """
    stem = file_name.split("/")[-1]
    if "." in stem:
        stem = stem.rsplit(".", 1)[0]
    segment = stem.rsplit(".", 1)[-1].lower()
    return _ROLE_BY_SEGMENT.get(segment, FileRole.OTHER)


def _strip_extension(relative_path: str, extensions: Iterable[str]) -> str:
    for ext in sorted(extensions, key=len, reverse=True):
        if relative_path.endswith(ext):
            return relative_path[: -len(ext)]
    return relative_path


class PathClassifier:
    """Classify project-relative posix paths against configured layer roots.

    Layer is decided by longest-prefix match.  The module name of a file
    under the Module root is the first path segment beneath it.
    """

    def __init__(self, config: ArchitectureConfig, known_files: Iterable[str] = ()) -> None:
        self._config = config
        self._roots: list[tuple[str, Layer]] = sorted(
            ((config.layer_root(layer), layer) for layer in ROOTED_LAYERS),
            key=lambda item: len(item[0]),
            reverse=True,
        )
        self._known: frozenset[str] = frozenset(known_files)

    @property
    def known_files(self) -> frozenset[str]:
        return self._known

    def with_known_files(self, extra: Iterable[str]) -> PathClassifier:
        """Return a classifier that also knows about *extra* files."""
        return PathClassifier(self._config, self._known | frozenset(extra))

    # -- layers ---------------------------------------------------------

    def layer_of(self, relative_path: str) -> tuple[Layer, str | None]:
        """Return the layer and the path remainder beneath its root."""
        for root, layer in self._roots:
            if relative_path == root:
                return layer, ""
            if relative_path.startswith(root + "/"):
                return layer, relative_path[len(root) + 1 :]
        return Layer.UNKNOWN, None

    def classify_path(self, relative_path: str) -> Classification:
        """Classify a project-relative file path."""
        layer, remainder = self.layer_of(relative_path)
        module_name: str | None = None
        if layer is Layer.MODULE and remainder:
            head = remainder.split("/", 1)[0]
            # A file directly in the module root belongs to no module.
            module_name = head if "/" in remainder else None
        return Classification(
            layer=layer,
            module_name=module_name,
            role=role_for_name(relative_path),
            key=_strip_extension(relative_path, self._config.extensions),
        )

    # -- references -----------------------------------------------------

    def _expand_target(self, from_relative: str, target: str) -> str | None:
        """Turn a raw target into a normalized project path, or None if external."""
        if target.startswith(("./", "../")) or target in (".", ".."):
            base = posixpath.dirname(from_relative)
            return posixpath.normpath(posixpath.join(base, target))
        for prefix, replacement in sorted(
            self._config.aliases.items(), key=lambda item: len(item[0]), reverse=True
        ):
            if target.startswith(prefix):
                return posixpath.normpath(replacement + target[len(prefix) :])
        return None

    def _find_file(self, candidate: str) -> str | None:
        if candidate in self._known:
            return candidate
        for ext in self._config.extensions:
            if candidate + ext in self._known:
                return candidate + ext
        for ext in self._config.extensions:
            index_path = f"{candidate}/index{ext}"
            if index_path in self._known:
                return index_path
        return None

    def _is_asset(self, candidate: str) -> bool:
        if candidate.endswith(tuple(self._config.extensions)):
            return False
        return (self._config.project_root / candidate).is_file()

    def resolve(self, from_relative: str, target: str) -> tuple[str | None, Classification]:
        """Resolve *target* referenced from *from_relative*.

        Returns ``(resolved_file, classification)``.  Non-relative, non-alias
        targets are External, and so are local assets (stylesheets, images)
        that exist on disk but are not source files.  A local target that
        escapes the project, lies under no layer root, or names no file
        classifies Unknown.
        """
        expanded = self._expand_target(from_relative, target)
        if expanded is None:
            return None, Classification(Layer.EXTERNAL, None, None, target)
        if expanded.startswith("../") or expanded == "..":
            return None, Classification(Layer.UNKNOWN, None, None, expanded)

        resolved = self._find_file(expanded)
        if resolved is None:
            if self._is_asset(expanded):
                return None, Classification(Layer.EXTERNAL, None, None, target)
            return None, Classification(Layer.UNKNOWN, None, None, expanded)

        classification = self.classify_path(resolved)
        if classification.layer is Layer.UNKNOWN:
            return None, classification
        if resolved.startswith(expanded + "/index"):
            # Directory import: patterns see the directory, not its index file.
            classification = replace(classification, key=expanded)
        return resolved, classification
