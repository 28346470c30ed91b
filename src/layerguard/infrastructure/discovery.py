"""File discovery: enumerate candidate source files under the scan roots."""

from __future__ import annotations

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from layerguard.infrastructure.config import ArchitectureConfig

logger = logging.getLogger(__name__)


class DiscoveryError(Exception):
    """Raised when a scan root is missing or unreadable; aborts the run."""


@dataclass
class DiscoveryResult:
    """Files found under the scan roots, plus sub-directories that could not be read."""

    files: list[Path] = field(default_factory=list)
    skipped_dirs: list[str] = field(default_factory=list)


def _matches_any(name: str, patterns: tuple[str, ...]) -> bool:
    return any(fnmatch.fnmatchcase(name, pattern) for pattern in patterns)


def is_candidate_file(name: str, config: ArchitectureConfig) -> bool:
    """Return True if a file name passes the extension and exclusion filters."""
    if not name.endswith(tuple(config.extensions)):
        return False
    return not _matches_any(name, config.exclude_files)


def discover_files(config: ArchitectureConfig) -> DiscoveryResult:
    """Walk every scan root and collect candidate files, sorted by path.

    Directories whose name matches an ``exclude_dirs`` glob are pruned
    before descending.

    Raises
    ------
    DiscoveryError
        When a scan root does not exist or is not a directory.
    """
    result = DiscoveryResult()
    seen: set[Path] = set()

    for root_name in config.scan_roots:
        root = (config.project_root / root_name).resolve()
        if not root.is_dir():
            msg = f"Scan root does not exist or is not a directory: {root}"
            raise DiscoveryError(msg)

        def _on_error(exc: OSError, _root: Path = root) -> None:
            if exc.filename and Path(exc.filename) == _root:
                msg = f"Cannot read scan root {_root}: {exc}"
                raise DiscoveryError(msg) from exc
            logger.warning("Skipping unreadable directory %s: %s", exc.filename, exc)
            result.skipped_dirs.append(str(exc.filename))

        for dirpath, dirnames, filenames in os.walk(root, onerror=_on_error):
            dirnames[:] = sorted(d for d in dirnames if not _matches_any(d, config.exclude_dirs))
            for name in filenames:
                if not is_candidate_file(name, config):
                    continue
                path = Path(dirpath) / name
                if path not in seen:
                    seen.add(path)
                    result.files.append(path)

    result.files.sort()
    logger.info("Discovered %d files under %s", len(result.files), ", ".join(config.scan_roots))
    return result
