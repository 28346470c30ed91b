"""Tests for the `layerguard` CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING

from click.testing import CliRunner

from layerguard import __version__
from layerguard.cli import main

if TYPE_CHECKING:
    from pathlib import Path

    from conftest import ProjectFactory


def _isolation_project(make_project: ProjectFactory, files: dict[str, str]) -> Path:
    files["src/modules/billing/index.ts"] = "export type Invoice = { id: string };\n"
    files["src/modules/orders/store.ts"] = "import { Invoice } from '@/modules/billing';\n"
    return make_project(files)


class TestGroup:
    def test_version(self) -> None:
        result = CliRunner().invoke(main, ["--version"])
        assert result.exit_code == 0
        assert __version__ in result.output

    def test_help_lists_commands(self) -> None:
        result = CliRunner().invoke(main, ["--help"])
        for name in ("check", "fix", "rollback", "graph"):
            assert name in result.output


class TestCheck:
    def test_clean_project_passes(self, clean_project: Path) -> None:
        result = CliRunner().invoke(
            main, ["check", "--project", str(clean_project), "--format", "rich"]
        )
        assert result.exit_code == 0, result.output
        assert "PASS" in result.output

    def test_violation_fails(
        self, make_project: ProjectFactory, clean_files: dict[str, str]
    ) -> None:
        root = _isolation_project(make_project, clean_files)
        result = CliRunner().invoke(
            main, ["check", "--project", str(root), "--format", "porcelain"]
        )
        assert result.exit_code == 1
        assert result.output.strip() == (
            "high:isolation:src/modules/orders/store.ts:1:@/modules/billing"
        )

    def test_json_output(self, make_project: ProjectFactory, clean_files: dict[str, str]) -> None:
        root = _isolation_project(make_project, clean_files)
        result = CliRunner().invoke(main, ["check", "--project", str(root), "--format", "json"])
        data = json.loads(result.output)
        assert data["verdict"] == "fail"
        assert data["stats"]["by_severity"]["high"] == 1
        assert data["violations"][0]["rule"] == "isolation"
        assert data["violations"][0]["type_only"] is False

    def test_warnings_exit_zero(
        self, make_project: ProjectFactory, clean_files: dict[str, str]
    ) -> None:
        clean_files["src/shared/format.ts"] = "import x from './missing';\n"
        root = make_project(clean_files)
        result = CliRunner().invoke(main, ["check", "--project", str(root)])
        assert result.exit_code == 0
        assert "low:structural:src/shared/format.ts:1:./missing" in result.output

    def test_missing_config_file(self, clean_project: Path) -> None:
        result = CliRunner().invoke(
            main,
            ["check", "--project", str(clean_project), "--config", str(clean_project / "no.yml")],
        )
        assert result.exit_code == 2
        assert "Error:" in result.output

    def test_invalid_config(self, clean_project: Path) -> None:
        config_dir = clean_project / ".layerguard"
        config_dir.mkdir()
        (config_dir / "config.yml").write_text("bogus: 1\n", encoding="utf-8")
        result = CliRunner().invoke(main, ["check", "--project", str(clean_project)])
        assert result.exit_code == 2

    def test_missing_scan_root(self, tmp_path: Path) -> None:
        result = CliRunner().invoke(main, ["check", "--project", str(tmp_path)])
        assert result.exit_code == 2
        assert "Scan root" in result.output


class TestFix:
    def test_dry_run_is_default(
        self, make_project: ProjectFactory, clean_files: dict[str, str]
    ) -> None:
        root = _isolation_project(make_project, clean_files)
        store = root / "src/modules/orders/store.ts"
        before = store.read_text(encoding="utf-8")

        result = CliRunner().invoke(main, ["fix", "--project", str(root)])

        assert result.exit_code == 0, result.output
        assert store.read_text(encoding="utf-8") == before
        assert not (root / ".layerguard" / "backups").exists()

    def test_apply_then_rollback(
        self, make_project: ProjectFactory, clean_files: dict[str, str]
    ) -> None:
        root = _isolation_project(make_project, clean_files)
        store = root / "src/modules/orders/store.ts"
        before = store.read_text(encoding="utf-8")
        runner = CliRunner()

        applied = runner.invoke(main, ["fix", "--apply", "--project", str(root)])
        assert applied.exit_code == 0, applied.output
        assert store.read_text(encoding="utf-8").startswith("import type { Invoice }")
        assert list((root / ".layerguard" / "backups").glob("backup-*.json"))

        checked = runner.invoke(main, ["check", "--project", str(root), "--format", "porcelain"])
        assert checked.exit_code == 0

        rolled = runner.invoke(main, ["rollback", "--project", str(root)])
        assert rolled.exit_code == 0, rolled.output
        assert "restored" in rolled.output
        assert store.read_text(encoding="utf-8") == before

    def test_nothing_to_fix(self, clean_project: Path) -> None:
        result = CliRunner().invoke(main, ["fix", "--apply", "--project", str(clean_project)])
        assert result.exit_code == 0
        assert "No fixes" in result.output

    def test_rollback_without_bundle(self, clean_project: Path) -> None:
        result = CliRunner().invoke(main, ["rollback", "--project", str(clean_project)])
        assert result.exit_code == 2
        assert "No backup bundle" in result.output


class TestGraph:
    def test_module_edges(self, make_project: ProjectFactory, clean_files: dict[str, str]) -> None:
        root = _isolation_project(make_project, clean_files)
        result = CliRunner().invoke(main, ["graph", "--project", str(root)])
        assert result.exit_code == 0
        assert result.output.strip() == "orders -> billing"

    def test_no_edges(self, clean_project: Path) -> None:
        result = CliRunner().invoke(main, ["graph", "--project", str(clean_project)])
        assert "No module dependencies." in result.output
