"""Configuration: layer roots, discovery filters and responsibility contracts."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import yaml

from layerguard.graph.model import FileRole, Layer

logger = logging.getLogger(__name__)

CONFIG_RELATIVE_PATH = Path(".layerguard") / "config.yml"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_SCAN_ROOTS: tuple[str, ...] = ("src",)

DEFAULT_LAYER_ROOTS: dict[Layer, str] = {
    Layer.APPLICATION: "src/app",
    Layer.MODULE: "src/modules",
    Layer.CORE: "src/core",
    Layer.SHARED: "src/shared",
}

DEFAULT_ALIASES: dict[str, str] = {"@/": "src/", "~/": "src/"}

DEFAULT_EXTENSIONS: tuple[str, ...] = (".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs")

DEFAULT_EXCLUDE_DIRS: tuple[str, ...] = (
    "node_modules",
    "dist",
    "build",
    "coverage",
    ".*",
    "__*",
)

DEFAULT_EXCLUDE_FILES: tuple[str, ...] = ("*.test.*", "*.spec.*", "*.stories.*", "*.d.ts")

DEFAULT_TRANSPORT_PATTERNS: tuple[str, ...] = ("{core}/transport", "{core}/transport/*")

DEFAULT_UI_FRAMEWORK_PATTERNS: tuple[str, ...] = ("react", "react/*", "react-dom*")

DEFAULT_BACKUP_DIR = ".layerguard/backups"


@dataclass(frozen=True)
class ResponsibilityContract:
    """What a file of a given role may and may not reference.

    Patterns are ``fnmatch`` globs over the target key, optionally prefixed
    with ``value:`` or ``type:`` to restrict them to one reference kind.
    When *exhaustive* is set, a target matching no permitted pattern is a
    violation too.  ``permitted``, ``forbidden`` and ``exhaustive`` apply in
    the configured responsibility layers only; ``always_forbidden`` applies
    to files of the role in every layer.
    """

    permitted: tuple[str, ...] = ()
    forbidden: tuple[str, ...] = ()
    exhaustive: bool = False
    always_forbidden: tuple[str, ...] = ()


_OWN_SERVICE = ("{modules}/{module}/service", "{modules}/{module}/*.service")
_OWN_STORE = ("{modules}/{module}/store", "{modules}/{module}/*.store")
_OWN_UI = ("{modules}/{module}/ui", "{modules}/{module}/*.ui")
# Value references to a Service-role file under any layer root.
_ANY_SERVICE_VALUE = tuple(
    f"value:{{{root}}}/{glob}"
    for root in ("app", "modules", "core", "shared")
    for glob in ("service", "*/service", "*.service")
)

DEFAULT_RESPONSIBILITY: dict[FileRole, ResponsibilityContract] = {
    FileRole.UI: ResponsibilityContract(
        permitted=(
            *_OWN_STORE,
            *(f"type:{p}" for p in _OWN_SERVICE),
            "{modules}/{module}/types",
            "{shared}/*",
        ),
        forbidden=("{transport}",),
        always_forbidden=_ANY_SERVICE_VALUE,
    ),
    FileRole.STORE: ResponsibilityContract(
        permitted=(*(f"type:{p}" for p in _OWN_SERVICE), "{modules}/{module}/types", "{shared}/*"),
        forbidden=(
            "{transport}",
            "{ui_framework}",
            *(f"value:{p}" for p in _OWN_SERVICE),
            *_OWN_UI,
        ),
    ),
    FileRole.SERVICE: ResponsibilityContract(
        permitted=("{transport}", "{modules}/{module}/types", "{shared}/*"),
        forbidden=("{ui_framework}", *_OWN_UI, *_OWN_STORE),
    ),
    FileRole.INDEX: ResponsibilityContract(
        permitted=("{modules}/{module}/*",),
        forbidden=("{transport}",),
    ),
}


class ConfigError(Exception):
    """Raised when a config file exists but is invalid."""


@dataclass(frozen=True)
class ArchitectureConfig:
    """Everything one analysis or remediation run needs to know."""

    project_root: Path
    scan_roots: tuple[str, ...] = DEFAULT_SCAN_ROOTS
    layer_roots: dict[Layer, str] = field(default_factory=lambda: dict(DEFAULT_LAYER_ROOTS))
    aliases: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_ALIASES))
    extensions: tuple[str, ...] = DEFAULT_EXTENSIONS
    exclude_dirs: tuple[str, ...] = DEFAULT_EXCLUDE_DIRS
    exclude_files: tuple[str, ...] = DEFAULT_EXCLUDE_FILES
    transport_patterns: tuple[str, ...] = DEFAULT_TRANSPORT_PATTERNS
    ui_framework_patterns: tuple[str, ...] = DEFAULT_UI_FRAMEWORK_PATTERNS
    responsibility: dict[FileRole, ResponsibilityContract] = field(
        default_factory=lambda: dict(DEFAULT_RESPONSIBILITY)
    )
    responsibility_layers: tuple[Layer, ...] = (Layer.MODULE,)
    module_required_files: tuple[str, ...] = ("index",)
    report_unclassified_files: bool = False
    workers: int = 8
    regression_factor: float = 1.5
    backup_dir: str = DEFAULT_BACKUP_DIR

    def with_overrides(self, **changes: Any) -> ArchitectureConfig:
        """Return a copy with *changes* applied."""
        return replace(self, **changes)

    def layer_root(self, layer: Layer) -> str:
        return self.layer_roots[layer].strip("/")

    @property
    def placeholders(self) -> dict[str, str]:
        """Root placeholders available to responsibility patterns."""
        return {
            "app": self.layer_root(Layer.APPLICATION),
            "modules": self.layer_root(Layer.MODULE),
            "core": self.layer_root(Layer.CORE),
            "shared": self.layer_root(Layer.SHARED),
        }

    def resolve_backup_dir(self) -> Path:
        backup = Path(self.backup_dir)
        return backup if backup.is_absolute() else self.project_root / backup


# ---------------------------------------------------------------------------
# YAML parsing
# ---------------------------------------------------------------------------

_KNOWN_KEYS: frozenset[str] = frozenset(
    {
        "scan_roots",
        "layers",
        "aliases",
        "extensions",
        "exclude_dirs",
        "exclude_files",
        "transport",
        "ui_framework",
        "responsibility",
        "responsibility_layers",
        "module_required_files",
        "report_unclassified_files",
        "workers",
        "remediation",
    }
)


def _str_tuple(value: object, key: str) -> tuple[str, ...]:
    if isinstance(value, str):
        return (value,)
    if not isinstance(value, list):
        msg = f"'{key}' must be a string or a list of strings"
        raise ConfigError(msg)
    return tuple(str(item) for item in value)


def _str_mapping(value: object, key: str) -> dict[str, str]:
    if not isinstance(value, dict):
        msg = f"'{key}' must be a mapping"
        raise ConfigError(msg)
    return {str(k): str(v) for k, v in value.items()}


def _parse_layer(name: object, key: str) -> Layer:
    try:
        layer = Layer(str(name).lower())
    except ValueError as exc:
        msg = f"'{key}': unknown layer '{name}'"
        raise ConfigError(msg) from exc
    if not layer.is_ordered:
        msg = f"'{key}': layer '{name}' cannot be configured"
        raise ConfigError(msg)
    return layer


def _parse_role(name: object) -> FileRole:
    try:
        return FileRole(str(name).lower())
    except ValueError as exc:
        msg = f"'responsibility': unknown role '{name}', must be one of {[r.value for r in FileRole]}"
        raise ConfigError(msg) from exc


def _parse_contract(role: FileRole, data: object) -> ResponsibilityContract:
    context = f"responsibility.{role.value}"
    if not isinstance(data, dict):
        msg = f"'{context}' must be a mapping"
        raise ConfigError(msg)
    unknown = set(data) - {"permitted", "forbidden", "exhaustive", "always_forbidden"}
    if unknown:
        msg = f"'{context}': unknown keys {sorted(unknown)}"
        raise ConfigError(msg)
    exhaustive = data.get("exhaustive", False)
    if not isinstance(exhaustive, bool):
        msg = f"'{context}.exhaustive' must be a boolean"
        raise ConfigError(msg)
    return ResponsibilityContract(
        permitted=_str_tuple(data.get("permitted", []), f"{context}.permitted"),
        forbidden=_str_tuple(data.get("forbidden", []), f"{context}.forbidden"),
        exhaustive=exhaustive,
        always_forbidden=_str_tuple(
            data.get("always_forbidden", []), f"{context}.always_forbidden"
        ),
    )


def _parse_responsibility(data: object) -> dict[FileRole, ResponsibilityContract]:
    if not isinstance(data, dict):
        msg = "'responsibility' must be a mapping of role -> contract"
        raise ConfigError(msg)
    table = dict(DEFAULT_RESPONSIBILITY)
    for raw_role, contract in data.items():
        role = _parse_role(raw_role)
        if contract is None:
            table.pop(role, None)
        else:
            table[role] = _parse_contract(role, contract)
    return table


def _positive_int(value: object, key: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        msg = f"'{key}' must be a positive integer"
        raise ConfigError(msg)
    return value


def config_from_mapping(project_root: Path, data: dict[str, Any]) -> ArchitectureConfig:
    """Build an :class:`ArchitectureConfig` from parsed YAML data.

    Keys that are absent keep their defaults.  Unknown top-level keys are
    rejected so that typos do not silently disable a rule.
    """
    unknown = set(data) - _KNOWN_KEYS
    if unknown:
        msg = f"Unknown config keys: {sorted(unknown)}"
        raise ConfigError(msg)

    changes: dict[str, Any] = {}

    if "scan_roots" in data:
        changes["scan_roots"] = _str_tuple(data["scan_roots"], "scan_roots")
    if "layers" in data:
        layers = dict(DEFAULT_LAYER_ROOTS)
        for name, root in _str_mapping(data["layers"], "layers").items():
            layers[_parse_layer(name, "layers")] = root
        changes["layer_roots"] = layers
    if "aliases" in data:
        changes["aliases"] = _str_mapping(data["aliases"], "aliases")
    if "extensions" in data:
        exts = _str_tuple(data["extensions"], "extensions")
        changes["extensions"] = tuple(e if e.startswith(".") else f".{e}" for e in exts)
    if "exclude_dirs" in data:
        changes["exclude_dirs"] = _str_tuple(data["exclude_dirs"], "exclude_dirs")
    if "exclude_files" in data:
        changes["exclude_files"] = _str_tuple(data["exclude_files"], "exclude_files")
    if "transport" in data:
        changes["transport_patterns"] = _str_tuple(data["transport"], "transport")
    if "ui_framework" in data:
        changes["ui_framework_patterns"] = _str_tuple(data["ui_framework"], "ui_framework")
    if "responsibility" in data:
        changes["responsibility"] = _parse_responsibility(data["responsibility"])
    if "responsibility_layers" in data:
        names = _str_tuple(data["responsibility_layers"], "responsibility_layers")
        changes["responsibility_layers"] = tuple(
            _parse_layer(n, "responsibility_layers") for n in names
        )
    if "module_required_files" in data:
        changes["module_required_files"] = _str_tuple(
            data["module_required_files"], "module_required_files"
        )
    if "report_unclassified_files" in data:
        flag = data["report_unclassified_files"]
        if not isinstance(flag, bool):
            msg = "'report_unclassified_files' must be a boolean"
            raise ConfigError(msg)
        changes["report_unclassified_files"] = flag
    if "workers" in data:
        changes["workers"] = _positive_int(data["workers"], "workers")

    remediation = data.get("remediation")
    if remediation is not None:
        if not isinstance(remediation, dict):
            msg = "'remediation' must be a mapping"
            raise ConfigError(msg)
        if "regression_factor" in remediation:
            factor = remediation["regression_factor"]
            if isinstance(factor, bool) or not isinstance(factor, (int, float)) or factor < 1:
                msg = "'remediation.regression_factor' must be a number >= 1"
                raise ConfigError(msg)
            changes["regression_factor"] = float(factor)
        if "backup_dir" in remediation:
            changes["backup_dir"] = str(remediation["backup_dir"])

    return ArchitectureConfig(project_root=project_root, **changes)


def load_config(project_root: Path, config_path: Path | None = None) -> ArchitectureConfig:
    """Load configuration for *project_root*.

    Reads *config_path* when given (it must exist), otherwise
    ``<project_root>/.layerguard/config.yml`` when present.  Falls back to
    defaults when no file exists.
    """
    project_root = project_root.resolve()
    explicit = config_path is not None
    path = config_path if config_path is not None else project_root / CONFIG_RELATIVE_PATH

    if not path.is_file():
        if explicit:
            msg = f"Config file not found: {path}"
            raise ConfigError(msg)
        logger.debug("No config at %s, using defaults", path)
        return ArchitectureConfig(project_root=project_root)

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as exc:
        msg = f"Invalid YAML in {path}: {exc}"
        raise ConfigError(msg) from exc

    if not isinstance(data, dict):
        msg = f"{path}: top level must be a mapping"
        raise ConfigError(msg)

    logger.info("Loaded config from %s", path)
    return config_from_mapping(project_root, data)
