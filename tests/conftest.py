"""Shared fixtures for the rename engine tests."""

import logging
from pathlib import Path
from typing import Callable, Iterator, Sequence, Tuple

import pytest

from fuzzy_core import NameEntry, make_source_entries


@pytest.fixture
def make_files(tmp_path: Path) -> Callable[..., Tuple[NameEntry, ...]]:
    """Create files holding their own name and return them as source entries."""

    def _make(names: Sequence[str]) -> Tuple[NameEntry, ...]:
        paths = []
        for name in names:
            path = tmp_path / name
            path.write_text(name, encoding="utf-8")
            paths.append(path)
        return make_source_entries(paths)

    return _make


@pytest.fixture(autouse=True)
def reset_logging() -> Iterator[None]:
    """Drop the handlers setup_logging installed during a test."""
    yield
    root = logging.getLogger()
    for handler in list(root.handlers):
        if getattr(handler, "_fuzzy_rename", False):
            root.removeHandler(handler)
            handler.close()
