"""Tests for layerguard.infrastructure.discovery."""

from __future__ import annotations

from typing import TYPE_CHECKING

import pytest

from layerguard.infrastructure.discovery import DiscoveryError, discover_files, is_candidate_file

if TYPE_CHECKING:
    from collections.abc import Callable
    from pathlib import Path

    from layerguard.infrastructure.config import ArchitectureConfig

    from conftest import ProjectFactory


def _relative(paths: list[Path], root: Path) -> list[str]:
    return [p.relative_to(root.resolve()).as_posix() for p in paths]


class TestIsCandidateFile:
    @pytest.mark.parametrize(
        ("name", "expected"),
        [
            ("a.ts", True),
            ("a.tsx", True),
            ("a.mjs", True),
            ("a.py", False),
            ("a.css", False),
            ("a.test.ts", False),
            ("a.spec.tsx", False),
            ("a.stories.tsx", False),
            ("types.d.ts", False),
        ],
    )
    def test_filters(
        self,
        config_for: Callable[[Path], ArchitectureConfig],
        tmp_path: Path,
        name: str,
        expected: bool,
    ) -> None:
        assert is_candidate_file(name, config_for(tmp_path)) is expected


class TestDiscoverFiles:
    def test_collects_sorted(
        self, make_project: ProjectFactory, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        root = make_project(
            {
                "src/modules/b/index.ts": "",
                "src/app/main.tsx": "",
                "src/modules/a/ui.tsx": "",
            }
        )
        result = discover_files(config_for(root))
        assert _relative(result.files, root) == [
            "src/app/main.tsx",
            "src/modules/a/ui.tsx",
            "src/modules/b/index.ts",
        ]
        assert result.skipped_dirs == []

    def test_excluded_dirs_pruned(
        self, make_project: ProjectFactory, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        root = make_project(
            {
                "src/app/main.tsx": "",
                "src/node_modules/lib/index.js": "",
                "src/.cache/x.ts": "",
                "src/__mocks__/api.ts": "",
                "src/dist/bundle.js": "",
            }
        )
        assert _relative(discover_files(config_for(root)).files, root) == ["src/app/main.tsx"]

    def test_test_files_skipped(
        self, make_project: ProjectFactory, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        root = make_project({"src/app/a.ts": "", "src/app/a.test.ts": "", "src/app/README.md": ""})
        assert _relative(discover_files(config_for(root)).files, root) == ["src/app/a.ts"]

    def test_outside_scan_roots_ignored(
        self, make_project: ProjectFactory, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        root = make_project({"src/app/a.ts": "", "scripts/build.js": ""})
        assert _relative(discover_files(config_for(root)).files, root) == ["src/app/a.ts"]

    def test_multiple_scan_roots_deduplicated(
        self, make_project: ProjectFactory, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        root = make_project({"src/app/a.ts": "", "lib/b.ts": ""})
        config = config_for(root).with_overrides(scan_roots=("src", "lib", "src/app"))
        assert _relative(discover_files(config).files, root) == ["lib/b.ts", "src/app/a.ts"]

    def test_missing_scan_root_raises(
        self, tmp_path: Path, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        with pytest.raises(DiscoveryError, match="Scan root"):
            discover_files(config_for(tmp_path))

    def test_scan_root_is_a_file(
        self, tmp_path: Path, config_for: Callable[[Path], ArchitectureConfig]
    ) -> None:
        (tmp_path / "src").write_text("", encoding="utf-8")
        with pytest.raises(DiscoveryError):
            discover_files(config_for(tmp_path))
