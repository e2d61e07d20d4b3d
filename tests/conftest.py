"""Pytest configuration and fixtures."""

import os
import shutil
import tempfile
from pathlib import Path

import pytest

BASE_MTIME = 1_600_000_000


def write_file(path: Path, content: str = "content", mtime: float = BASE_MTIME) -> Path:
    """Create a file with the given content and modification time."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content)
    os.utime(path, (mtime, mtime))
    return path


@pytest.fixture
def make_file():
    """Return a helper that creates files with a fixed modification time."""
    return write_file


@pytest.fixture
def temp_dirs():
    """Create temporary stall and remote directories for testing."""
    temp_root = Path(tempfile.mkdtemp())
    stall_dir = temp_root / "stall"
    remote_dir = temp_root / "remote"
    stall_dir.mkdir()
    remote_dir.mkdir()

    yield stall_dir, remote_dir

    # Cleanup
    shutil.rmtree(temp_root, ignore_errors=True)


@pytest.fixture
def sample_config(tmp_path):
    """Create a sample config file for testing."""
    config_path = tmp_path / ".stall-config"
    config_content = """
stall_file: .stall
stall_format: auto

logging:
  level: INFO
  file_path: logs/stall.log
  max_size_mb: 5
  backup_count: 2

sync:
  mtime_tolerance: 0.5
  promote_warnings_to_errors: true
  short_names: true
"""
    config_path.write_text(config_content)
    return config_path


@pytest.fixture(autouse=True)
def clear_config_env(monkeypatch):
    """Keep a developer's STALL_CONFIG from leaking into tests."""
    monkeypatch.delenv("STALL_CONFIG", raising=False)
