"""Pytest configuration and fixtures."""

import sys
import zipfile
from pathlib import Path

import pytest

# Add src to path (for 'jarsmith.*' imports without installing)
repo_root = Path(__file__).parent.parent
sys.path.insert(0, str(repo_root / "src"))


@pytest.fixture(autouse=True)
def _reset_logging():
    """Keep global verbosity and LogBus subscriptions from leaking between tests."""
    from jarsmith.core.log_bus import get_log_bus
    from jarsmith.core.logging import VerbosityLevel, set_colors, set_verbosity

    set_verbosity(VerbosityLevel.NORMAL)
    set_colors(False)
    yield
    set_verbosity(VerbosityLevel.NORMAL)
    get_log_bus().clear()


def make_jar(path: Path, members: dict[str, bytes], manifest: bytes | None = None) -> Path:
    """Write a plain zip with the given members (and optional raw manifest)."""
    with zipfile.ZipFile(path, "w") as zf:
        if manifest is not None:
            zf.writestr("META-INF/MANIFEST.MF", manifest)
        for name, data in members.items():
            zf.writestr(name, data)
    return path


def read_jar(path: Path) -> dict[str, bytes]:
    """All members of a jar, directory records included, in archive order."""
    with zipfile.ZipFile(path) as zf:
        return {name: zf.read(name) for name in zf.namelist()}


def jar_names(path: Path) -> list[str]:
    with zipfile.ZipFile(path) as zf:
        return zf.namelist()


@pytest.fixture
def jar_factory(tmp_path):
    """Create small input jars under tmp_path/inputs."""
    inputs = tmp_path / "inputs"
    inputs.mkdir()

    def _make(name: str, members: dict[str, bytes], manifest: bytes | None = None) -> Path:
        return make_jar(inputs / name, members, manifest)

    return _make


@pytest.fixture
def target(tmp_path) -> Path:
    """Path of the jar under test (not created)."""
    return tmp_path / "out" / "out.jar"
