"""
Shared fixtures for the FsBridge tests.
"""

import sys
from pathlib import Path

import pytest

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from core.logger import AuditLogger
from modules.fs_bridge import LocalFilesystem


def make_tree(root: Path, files: dict) -> Path:
    """Create ``files`` (relative path -> bytes) under ``root``."""
    for rel, data in files.items():
        target = root / rel
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
    return root


def snapshot(root: Path) -> dict:
    """Map of relative path to bytes for every file under ``root``."""
    return {
        p.relative_to(root).as_posix(): p.read_bytes()
        for p in sorted(root.rglob("*"))
        if p.is_file()
    }


SAMPLE_TREE = {
    "a": b"alpha\n",
    "b": b"bravo bravo\n",
    "c/d": b"delta" * 2000,
}


@pytest.fixture
def local_fs():
    return LocalFilesystem()


@pytest.fixture
def audit_logger(tmp_path):
    """Create a logger writing into the test's temp directory."""
    return AuditLogger(log_path=str(tmp_path / "audit" / "audit_log.jsonl"))


@pytest.fixture
def sample_tree(tmp_path):
    """A source tree with files a, b and c/d."""
    return make_tree(tmp_path / "src", SAMPLE_TREE)
