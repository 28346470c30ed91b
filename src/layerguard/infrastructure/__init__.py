"""Infrastructure: configuration, file discovery and backup bundles."""

from layerguard.infrastructure.backup import (
    BackupBundle,
    BackupFailure,
    RestoreResult,
    capture_bundle,
    latest_bundle,
    load_bundle,
    restore_bundle,
)
from layerguard.infrastructure.config import (
    ArchitectureConfig,
    ConfigError,
    ResponsibilityContract,
    load_config,
)
from layerguard.infrastructure.discovery import DiscoveryError, DiscoveryResult, discover_files

__all__ = [
    "ArchitectureConfig",
    "BackupBundle",
    "BackupFailure",
    "ConfigError",
    "DiscoveryError",
    "DiscoveryResult",
    "ResponsibilityContract",
    "RestoreResult",
    "capture_bundle",
    "discover_files",
    "latest_bundle",
    "load_bundle",
    "load_config",
    "restore_bundle",
]
