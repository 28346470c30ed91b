"""Shared test fixtures for layerguard."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

from layerguard.infrastructure.config import ArchitectureConfig

ProjectFactory = Callable[[dict[str, str]], Path]

# A small project that breaks no rule: every layer root exists, the module
# has its index, and every reference points downwards.
CLEAN_FILES: dict[str, str] = {
    "src/app/main.tsx": "import { OrdersPage } from '@/modules/orders';\n",
    "src/modules/orders/index.ts": "export { OrdersPage } from './ui';\n",
    "src/modules/orders/ui.tsx": (
        "import { useOrders } from './store';\n"
        "import type { Order } from './service';\n"
        "export const OrdersPage = () => useOrders();\n"
    ),
    "src/modules/orders/store.ts": "import { formatDate } from '@/shared/format';\n",
    "src/modules/orders/service.ts": "import { http } from '@/core/transport';\n",
    "src/core/transport/index.ts": "import axios from 'axios';\nexport const http = axios;\n",
    "src/shared/format.ts": "export const formatDate = (d: Date) => d.toISOString();\n",
}


def write_files(root: Path, files: dict[str, str]) -> None:
    for relative, text in files.items():
        path = root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")


@pytest.fixture()
def make_project(tmp_path: Path) -> ProjectFactory:
    """Return a factory that writes ``{relative_path: text}`` into a fresh project."""
    counter = 0

    def _make(files: dict[str, str]) -> Path:
        nonlocal counter
        counter += 1
        root = tmp_path / f"proj{counter}"
        root.mkdir()
        write_files(root, files)
        return root

    return _make


@pytest.fixture()
def clean_project(make_project: ProjectFactory) -> Path:
    """A project with no violations at all."""
    return make_project(CLEAN_FILES)


@pytest.fixture()
def config_for() -> Callable[[Path], ArchitectureConfig]:
    """Default configuration rooted at a given project."""

    def _config(root: Path) -> ArchitectureConfig:
        return ArchitectureConfig(project_root=root.resolve(), workers=4)

    return _config


@pytest.fixture()
def clean_files() -> dict[str, str]:
    """A fresh copy of the clean project's files, for tests that add to it."""
    return dict(CLEAN_FILES)
