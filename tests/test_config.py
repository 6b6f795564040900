"""Tests for the sync configuration."""

from pathlib import Path

import pytest

from gitops_generator.config import SyncConfig, read_config
from gitops_generator.exceptions import InputException


def test_defaults() -> None:
    """Test the default sync config."""
    config = SyncConfig()
    assert config.branch == "main"
    assert config.context == "/"
    assert config.do_push


def test_read_config(tmp_path: Path) -> None:
    """Test reading a sync config file."""
    path = tmp_path / "config.yaml"
    path.write_text("branch: staging\ncontext: clusters/dev\ndoPush: false\n")
    assert read_config(path) == SyncConfig(
        branch="staging", context="clusters/dev", do_push=False
    )


def test_read_empty_config(tmp_path: Path) -> None:
    """Test an empty file has the default sync config."""
    path = tmp_path / "config.yaml"
    path.write_text("")
    assert read_config(path) == SyncConfig()


@pytest.mark.parametrize(
    ("content", "match"),
    [
        ("- main\n", "expected a mapping"),
        ("branch: ''\n", "branch must not be empty"),
        ("branch: [\n", "Unable to parse config"),
    ],
)
def test_invalid_config(tmp_path: Path, content: str, match: str) -> None:
    """Test config files that can't be used."""
    path = tmp_path / "config.yaml"
    path.write_text(content)
    with pytest.raises(InputException, match=match):
        read_config(path)


def test_missing_config(tmp_path: Path) -> None:
    """Test reading a config file that does not exist."""
    with pytest.raises(InputException, match="Unable to read config"):
        read_config(tmp_path / "missing.yaml")
