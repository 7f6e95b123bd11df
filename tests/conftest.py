"""Pytest configuration and fixtures."""

import logging
import sys
from pathlib import Path
from typing import Dict

import pytest

# Add the project root to the Python path
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))


@pytest.fixture
def class_tree(tmp_path: Path):
    """Create a directory of class files from a {relative_path: size} mapping."""

    def _create(files: Dict[str, int], root_name: str = "classes") -> Path:
        root = tmp_path / root_name
        root.mkdir(parents=True, exist_ok=True)
        for rel, size in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_bytes(b"c" * size)
        return root

    return _create


@pytest.fixture
def restore_root_logging():
    """Undo handler changes made by setup_logging()."""
    root = logging.getLogger()
    handlers = root.handlers[:]
    level = root.level
    yield
    for handler in root.handlers[:]:
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)
