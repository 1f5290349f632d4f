"""Pytest configuration and shared fixtures for roochdeploy tests."""

import copy
import os
import shutil
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
import yaml

REPO_ROOT = Path(__file__).resolve().parent.parent
MAINNET_MANIFEST = (
    REPO_ROOT / "kube" / "mainnet" / "roochbot" / "mainnet-roochbot-deployment.yaml"
)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test file operations.

    Yields:
        Path to temporary directory

    Cleanup:
        Automatically removes directory after test
    """
    tmp = Path(tempfile.mkdtemp())
    yield tmp
    shutil.rmtree(tmp, ignore_errors=True)


@pytest.fixture
def isolated_env() -> Generator[dict[str, str], None, None]:
    """Provide isolated environment variables for testing.

    Saves current environment and restores after test.
    """
    original_env = os.environ.copy()
    yield original_env
    os.environ.clear()
    os.environ.update(original_env)


@pytest.fixture
def manifest_path() -> Path:
    """Path to the shipped mainnet roochbot manifest."""
    return MAINNET_MANIFEST


@pytest.fixture
def manifest_dict() -> dict[str, Any]:
    """Fresh, mutable copy of the shipped manifest as a dictionary."""
    return copy.deepcopy(yaml.safe_load(MAINNET_MANIFEST.read_text(encoding="utf-8")))


@pytest.fixture
def manifest_file(temp_dir: Path) -> Callable[..., Path]:
    """Return a helper that writes a manifest dict to a YAML file."""

    def _write(document: dict[str, Any], name: str = "deployment.yaml") -> Path:
        path = temp_dir / name
        path.write_text(yaml.safe_dump(document, sort_keys=False), encoding="utf-8")
        return path

    return _write
