"""Pytest configuration and fixtures."""

from __future__ import annotations

import json
import tempfile
from pathlib import Path

import pytest


def write_package(install_root: Path, name: str, version: str = "1.0.0", size: int = 100, **manifest) -> Path:
    """Create a package directory with a manifest and one payload file."""
    package = install_root / name
    package.mkdir(parents=True)
    (package / "package.json").write_text(json.dumps({"name": name, "version": version, **manifest}))
    (package / "index.js").write_bytes(b"x" * size)
    return package


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def mock_workspace(temp_dir: Path):
    """
    Create two projects sharing a package.

    root/
      projA/package.json          (name: project-a)
      projA/node_modules/lodash   (4.17.21)
      projA/node_modules/@types/node
      projB/node_modules/lodash   (4.17.20)
      projB/node_modules/react
      projB/src/main.js
    """
    proj_a = temp_dir / "projA"
    proj_a.mkdir()
    (proj_a / "package.json").write_text(json.dumps({"name": "project-a"}))
    write_package(proj_a / "node_modules", "lodash", "4.17.21", size=1000)
    write_package(proj_a / "node_modules", "@types/node", "20.0.0", size=200)

    proj_b = temp_dir / "projB"
    (proj_b / "src").mkdir(parents=True)
    (proj_b / "src" / "main.js").write_text("console.log('hi')")
    write_package(
        proj_b / "node_modules",
        "lodash",
        "4.17.20",
        size=3000,
        dependencies={"a": "1"},
        devDependencies={"b": "1", "c": "1"},
    )
    write_package(proj_b / "node_modules", "react", "18.2.0", size=500)

    yield temp_dir


@pytest.fixture
def nested_workspace(temp_dir: Path):
    """Create install roots at increasing depths below the root."""
    write_package(temp_dir / "node_modules", "top")
    write_package(temp_dir / "a" / "node_modules", "one")
    write_package(temp_dir / "a" / "b" / "node_modules", "two")
    write_package(temp_dir / "a" / "b" / "c" / "node_modules", "three")
    yield temp_dir


@pytest.fixture
def make_package():
    """Factory fixture exposing write_package to tests."""
    return write_package
