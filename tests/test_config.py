"""Tests for layerguard.infrastructure.config: YAML configuration loading."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from layerguard.graph.model import FileRole, Layer
from layerguard.infrastructure.config import (
    DEFAULT_RESPONSIBILITY,
    ArchitectureConfig,
    ConfigError,
    config_from_mapping,
    load_config,
)

if TYPE_CHECKING:
    from pathlib import Path


def _write_config(root: Path, text: str) -> Path:
    path = root / ".layerguard" / "config.yml"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestLoadConfig:
    def test_defaults_without_file(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config == ArchitectureConfig(project_root=tmp_path.resolve())
        assert config.layer_root(Layer.MODULE) == "src/modules"
        assert config.regression_factor == 1.5

    def test_reads_default_location(self, tmp_path: Path) -> None:
        _write_config(
            tmp_path,
            "scan_roots: [app]\n"
            "layers:\n"
            "  module: app/features\n"
            "  shared: app/lib\n"
            "aliases:\n"
            "  '#/': 'app/'\n"
            "extensions: [ts, .tsx]\n"
            "workers: 2\n"
            "remediation:\n"
            "  regression_factor: 2\n"
            "  backup_dir: /tmp/lg-backups\n",
        )
        config = load_config(tmp_path)
        assert config.scan_roots == ("app",)
        assert config.layer_root(Layer.MODULE) == "app/features"
        assert config.layer_root(Layer.SHARED) == "app/lib"
        assert config.layer_root(Layer.CORE) == "src/core"
        assert config.aliases == {"#/": "app/"}
        assert config.extensions == (".ts", ".tsx")
        assert config.workers == 2
        assert config.regression_factor == 2.0
        assert str(config.resolve_backup_dir()) == "/tmp/lg-backups"

    def test_explicit_path(self, tmp_path: Path) -> None:
        path = tmp_path / "custom.yml"
        path.write_text("report_unclassified_files: true\n", encoding="utf-8")
        assert load_config(tmp_path, path).report_unclassified_files is True

    def test_explicit_missing_path(self, tmp_path: Path) -> None:
        with pytest.raises(ConfigError, match="not found"):
            load_config(tmp_path, tmp_path / "missing.yml")

    def test_empty_file_gives_defaults(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "")
        assert load_config(tmp_path) == ArchitectureConfig(project_root=tmp_path.resolve())

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "layers: [unclosed\n")
        with pytest.raises(ConfigError, match="Invalid YAML"):
            load_config(tmp_path)

    def test_top_level_must_be_mapping(self, tmp_path: Path) -> None:
        _write_config(tmp_path, "- a\n- b\n")
        with pytest.raises(ConfigError, match="mapping"):
            load_config(tmp_path)

    def test_relative_backup_dir(self, tmp_path: Path) -> None:
        config = load_config(tmp_path)
        assert config.resolve_backup_dir() == tmp_path.resolve() / ".layerguard" / "backups"


class TestConfigValidation:
    @pytest.mark.parametrize(
        ("data", "fragment"),
        [
            ({"layrs": {}}, "Unknown config keys"),
            ({"layers": {"external": "x"}}, "cannot be configured"),
            ({"layers": {"domain": "x"}}, "unknown layer"),
            ({"layers": ["src"]}, "must be a mapping"),
            ({"workers": 0}, "positive integer"),
            ({"workers": True}, "positive integer"),
            ({"remediation": {"regression_factor": 0.5}}, "regression_factor"),
            ({"remediation": "yes"}, "must be a mapping"),
            ({"report_unclassified_files": "yes"}, "boolean"),
            ({"responsibility": {"widget": {}}}, "unknown role"),
            ({"responsibility": {"ui": {"allowed": []}}}, "unknown keys"),
            ({"responsibility": {"ui": {"exhaustive": "no"}}}, "exhaustive"),
            ({"scan_roots": 3}, "scan_roots"),
        ],
    )
    def test_rejected(self, tmp_path: Path, data: dict[str, object], fragment: str) -> None:
        with pytest.raises(ConfigError, match=fragment):
            config_from_mapping(tmp_path, data)


class TestResponsibilityOverrides:
    def test_override_one_role(self, tmp_path: Path) -> None:
        config = config_from_mapping(
            tmp_path,
            {
                "responsibility": {
                    "service": {"forbidden": ["{shared}/legacy/*"], "exhaustive": True},
                }
            },
        )
        contract = config.responsibility[FileRole.SERVICE]
        assert contract.forbidden == ("{shared}/legacy/*",)
        assert contract.exhaustive is True
        assert config.responsibility[FileRole.UI] == DEFAULT_RESPONSIBILITY[FileRole.UI]

    def test_always_forbidden(self, tmp_path: Path) -> None:
        config = config_from_mapping(
            tmp_path,
            {"responsibility": {"store": {"always_forbidden": "value:*/legacy/*"}}},
        )
        contract = config.responsibility[FileRole.STORE]
        assert contract.always_forbidden == ("value:*/legacy/*",)
        assert contract.forbidden == ()

    def test_ui_framework_patterns(self, tmp_path: Path) -> None:
        assert ArchitectureConfig(project_root=tmp_path).ui_framework_patterns == (
            "react",
            "react/*",
            "react-dom*",
        )
        config = config_from_mapping(tmp_path, {"ui_framework": ["vue", "vue/*"]})
        assert config.ui_framework_patterns == ("vue", "vue/*")

    def test_null_removes_role(self, tmp_path: Path) -> None:
        config = config_from_mapping(tmp_path, {"responsibility": {"index": None}})
        assert FileRole.INDEX not in config.responsibility

    def test_responsibility_layers(self, tmp_path: Path) -> None:
        config = config_from_mapping(tmp_path, {"responsibility_layers": ["module", "Application"]})
        assert config.responsibility_layers == (Layer.MODULE, Layer.APPLICATION)

    def test_with_overrides_returns_copy(self, tmp_path: Path) -> None:
        config = ArchitectureConfig(project_root=tmp_path)
        changed = config.with_overrides(workers=1)
        assert changed.workers == 1
        assert config.workers == 8
