"""Backup bundles: capture original file text before a write batch and restore it."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable

logger = logging.getLogger(__name__)

BUNDLE_PREFIX = "backup-"
BUNDLE_SUFFIX = ".json"


class BackupFailure(Exception):
    """Raised when a backup bundle cannot be captured; the batch must not write."""


@dataclass(frozen=True)
class BackupBundle:
    """Original text of every file a batch touches.

    ``entries`` maps an absolute path to its original text, or to ``None``
    when the file did not exist (restoring then deletes it).
    """

    path: Path
    created_at: str
    entries: dict[str, str | None] = field(default_factory=dict)


@dataclass
class RestoreResult:
    """Outcome of restoring a bundle."""

    restored: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    failed: list[tuple[str, str]] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed


def capture_bundle(paths: Iterable[Path], backup_dir: Path) -> BackupBundle:
    """Record the current text of *paths* in a timestamped bundle under *backup_dir*.

    Raises
    ------
    BackupFailure
        When any existing file cannot be read or the bundle cannot be written.
    """
    now = datetime.now(timezone.utc)
    entries: dict[str, str | None] = {}

    for path in sorted({Path(p).resolve() for p in paths}):
        if not path.exists():
            entries[str(path)] = None
            continue
        try:
            entries[str(path)] = path.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            msg = f"Cannot back up {path}: {exc}"
            raise BackupFailure(msg) from exc

    bundle_path = backup_dir / f"{BUNDLE_PREFIX}{now.strftime('%Y%m%dT%H%M%S%fZ')}{BUNDLE_SUFFIX}"
    payload = {"created_at": now.isoformat(), "files": entries}
    try:
        backup_dir.mkdir(parents=True, exist_ok=True)
        bundle_path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    except OSError as exc:
        msg = f"Cannot write backup bundle {bundle_path}: {exc}"
        raise BackupFailure(msg) from exc

    logger.info("Backed up %d files to %s", len(entries), bundle_path)
    return BackupBundle(path=bundle_path, created_at=payload["created_at"], entries=entries)


def load_bundle(bundle_path: Path) -> BackupBundle:
    """Read a bundle written by :func:`capture_bundle`."""
    try:
        data = json.loads(bundle_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        msg = f"Cannot read backup bundle {bundle_path}: {exc}"
        raise BackupFailure(msg) from exc
    files = data.get("files")
    if not isinstance(files, dict):
        msg = f"Malformed backup bundle {bundle_path}: missing 'files' mapping"
        raise BackupFailure(msg)
    return BackupBundle(
        path=bundle_path,
        created_at=str(data.get("created_at", "")),
        entries={str(k): (None if v is None else str(v)) for k, v in files.items()},
    )


def latest_bundle(backup_dir: Path) -> Path | None:
    """Return the newest bundle in *backup_dir*, or None."""
    if not backup_dir.is_dir():
        return None
    bundles = sorted(backup_dir.glob(f"{BUNDLE_PREFIX}*{BUNDLE_SUFFIX}"))
    return bundles[-1] if bundles else None


def restore_bundle(bundle: BackupBundle) -> RestoreResult:
    """Write every file in *bundle* back to its original state.

    Files that did not exist at capture time are deleted.  A failure on one
    file is recorded and the rest are still restored.
    """
    result = RestoreResult()
    for raw_path, original in sorted(bundle.entries.items()):
        path = Path(raw_path)
        try:
            if original is None:
                if path.exists():
                    path.unlink()
                    result.removed.append(raw_path)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(original, encoding="utf-8")
                result.restored.append(raw_path)
        except OSError as exc:
            logger.error("Failed to restore %s: %s", raw_path, exc)
            result.failed.append((raw_path, str(exc)))
    logger.info(
        "Restored %d files, removed %d from %s", len(result.restored), len(result.removed), bundle.path
    )
    return result
