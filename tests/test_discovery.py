"""Tests for module discovery."""

from __future__ import annotations

from pathlib import Path

import pytest

from storydoc.discovery import ModuleDiscovery, module_identifier
from storydoc.errors import DiscoveryError


def test_discovery_collects_sorted_jsx_modules(project) -> None:
    project.write(
        {
            "src/components/Zeta.jsx": "",
            "src/components/Alpha.jsx": "",
            "src/App.jsx": "",
            "src/index.js": "",
            "src/Button_Button.stories.js": "",
            "src/Card_Card.stories.jsx": "",
            "node_modules/lib/Thing.jsx": "",
            ".git/hooks/Hook.jsx": "",
        }
    )

    modules = ModuleDiscovery().discover(project.root)

    assert [module_identifier(project.root, path) for path in modules] == [
        "src/App.jsx",
        "src/components/Alpha.jsx",
        "src/components/Zeta.jsx",
    ]
    assert all(path.is_absolute() for path in modules)


def test_discovery_honours_extensions_and_excludes(project) -> None:
    project.write(
        {
            "src/App.jsx": "",
            "src/Widget.tsx": "",
            "legacy/Old.jsx": "",
            "src/generated/Auto.jsx": "",
        }
    )

    discovery = ModuleDiscovery(
        extensions=[".jsx", ".tsx"], exclude_paths=["legacy/", "src/generated"]
    )
    modules = discovery.discover(project.root)

    assert [module_identifier(project.root, path) for path in modules] == [
        "src/App.jsx",
        "src/Widget.tsx",
    ]


def test_discovery_rejects_missing_root(tmp_path: Path) -> None:
    with pytest.raises(DiscoveryError):
        ModuleDiscovery().discover(tmp_path / "missing")


def test_discovery_rejects_file_root(tmp_path: Path) -> None:
    file_root = tmp_path / "App.jsx"
    file_root.write_text("", encoding="utf-8")

    with pytest.raises(DiscoveryError):
        ModuleDiscovery().discover(file_root)
