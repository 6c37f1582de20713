"""Test atomic filesystem operations.

Tests for stylus_calibration.utils.fs:
    - Atomic writes leave no temp file behind and replace existing files
    - Failed writes leave the previous file intact
    - YAML roundtrip preserves structure and key order
    - ensure_dir creates parents and is idempotent

Run:
    pytest tests/test_fs.py -v
"""

import pytest
import yaml

from stylus_calibration.utils import fs


# ============================================================================
# DIRECTORIES
# ============================================================================

def test_ensure_dir_creates_directory(tmp_path):
    """Test ensure_dir creates nested directories."""
    new_dir = tmp_path / "new" / "nested" / "dir"
    assert fs.ensure_dir(new_dir) == new_dir
    assert new_dir.is_dir()


def test_ensure_dir_idempotent(tmp_path):
    """Test ensure_dir is idempotent."""
    new_dir = tmp_path / "test_dir"
    fs.ensure_dir(new_dir)
    fs.ensure_dir(new_dir)
    assert new_dir.is_dir()


# ============================================================================
# ATOMIC WRITES
# ============================================================================

def test_atomic_write_bytes(tmp_path):
    """Test bytes land in the target and no temp file remains."""
    target = tmp_path / "sub" / "data.bin"
    fs.atomic_write_bytes(target, b"\x00\x01\x02")
    assert target.read_bytes() == b"\x00\x01\x02"
    assert list(target.parent.iterdir()) == [target]


def test_atomic_write_overwrites(tmp_path):
    """Test a second write replaces the first."""
    target = tmp_path / "store.yaml"
    fs.atomic_write_text(target, "first")
    fs.atomic_write_text(target, "second")
    assert target.read_text() == "second"


def test_atomic_write_failure_keeps_previous(tmp_path):
    """Test a failed rename leaves the old file and removes the temp file."""
    target = tmp_path / "store.yaml"
    target.mkdir()  # a directory cannot be replaced by a file

    with pytest.raises(RuntimeError, match="atomically"):
        fs.atomic_write_text(target, "new")

    assert target.is_dir()
    assert not (tmp_path / "store.yaml.tmp").exists()


# ============================================================================
# YAML
# ============================================================================

def test_atomic_yaml(tmp_path):
    """Test atomic YAML write and load."""
    fs.atomic_yaml_dump({'schema': 'curve_store.v1', 'power': 1.5}, tmp_path / 'test.yaml')
    loaded = fs.load_yaml(tmp_path / 'test.yaml')
    assert loaded['power'] == 1.5


def test_atomic_yaml_preserves_key_order(tmp_path):
    """Test keys are written in insertion order, not sorted."""
    yaml_file = tmp_path / "ordered.yaml"
    fs.atomic_yaml_dump({'schema': 'x', 'enabled': True, 'brushes': []}, yaml_file)
    content = yaml_file.read_text()
    assert content.index('schema') < content.index('enabled') < content.index('brushes')


def test_load_yaml_missing(tmp_path):
    """Test missing file raises FileNotFoundError."""
    with pytest.raises(FileNotFoundError):
        fs.load_yaml(tmp_path / "absent.yaml")


def test_load_yaml_invalid(tmp_path):
    """Test parse errors surface as yaml.YAMLError naming the file."""
    bad = tmp_path / "bad.yaml"
    bad.write_text("points: [[0, 0], [1, 1]\n")
    with pytest.raises(yaml.YAMLError, match="bad.yaml"):
        fs.load_yaml(bad)


def test_load_yaml_empty_file(tmp_path):
    """Test an empty document loads as None."""
    empty = tmp_path / "empty.yaml"
    empty.write_text("")
    assert fs.load_yaml(empty) is None


# ============================================================================
# REMOVAL
# ============================================================================

def test_safe_remove(tmp_path):
    """Test safe_remove reports whether a file was removed."""
    target = tmp_path / "curves.yaml"
    target.write_text("x")
    assert fs.safe_remove(target) is True
    assert fs.safe_remove(target) is False
