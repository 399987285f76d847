"""
scan_files.py - Input Loading Module

Turns folders, name files and path lists into NameEntry lists, and checks
them before scoring
"""

from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple
import os

from .errors import InputError
from .models_fs import FileItem, NameEntry, SortKey, normalize_for_comparison
from .sort_rules import sort_files
from .logger_helper import get_logger

logger = get_logger(__name__)


def scan_directory(
    directory: Path,
    suffix_filter: Optional[str] = None,
    include_hidden: bool = False,
    sort_by: SortKey = SortKey.NAME
) -> List[FileItem]:
    """
    Scan single directory (non-recursive)

    Args:
        directory: Target directory
        suffix_filter: Suffix filter (e.g., ".jpg", must include dot)
        include_hidden: Whether to include hidden files
        sort_by: Order of the returned files

    Returns:
        File list
    """
    directory = Path(directory).resolve()
    if not directory.is_dir():
        raise InputError(f"Directory does not exist: {directory}")

    results: List[FileItem] = []

    for item in directory.iterdir():
        # Only process files, not directories
        if not item.is_file():
            continue

        # Skip hidden files
        if not include_hidden and item.name.startswith('.'):
            continue

        # Suffix filter
        if suffix_filter and item.suffix.lower() != suffix_filter.lower():
            continue

        try:
            results.append(FileItem.from_path(item))
        except OSError as e:
            logger.warning("Skipping inaccessible file %s: %s", item, e)

    return sort_files(results, sort_by)


def get_existing_names(directory: Path) -> FrozenSet[str]:
    """
    Get set of existing filenames in directory (for conflict detection)

    Args:
        directory: Target directory

    Returns:
        Filename set
    """
    directory = Path(directory)
    if not directory.is_dir():
        return frozenset()
    return frozenset(item.name for item in directory.iterdir())


def snapshot_existing_names(sources: Iterable[NameEntry]) -> Dict[Path, FrozenSet[str]]:
    """Existing filenames of every directory holding a source"""
    directories = {s.path.parent for s in sources if s.path is not None}
    return {d: get_existing_names(d) for d in sorted(directories)}


def make_source_entries(paths: Iterable[Path]) -> Tuple[NameEntry, ...]:
    """
    Build source entries from file paths

    Args:
        paths: File paths, in the order that defines their indices

    Returns:
        Source entries with absolute paths
    """
    entries = []
    for i, p in enumerate(paths):
        path = Path(os.path.abspath(p))
        entries.append(NameEntry(index=i, text=path.name, path=path))
    return tuple(entries)


def make_target_entries(names: Iterable[str]) -> Tuple[NameEntry, ...]:
    """Build target entries from target names"""
    return tuple(NameEntry(index=i, text=name) for i, name in enumerate(names))


def load_target_names(file_path: Path) -> List[str]:
    """
    Read target names from a text file, one per line

    Blank lines are skipped; surrounding whitespace is kept only inside names.

    Args:
        file_path: UTF-8 text file

    Returns:
        Target names
    """
    file_path = Path(file_path)
    if not file_path.is_file():
        raise InputError(f"Target list does not exist: {file_path}")

    with open(file_path, 'r', encoding='utf-8') as f:
        return [line.strip() for line in f if line.strip()]


def target_names_from_directory(directory: Path, include_hidden: bool = False) -> List[str]:
    """Names of the files of a reference folder, sorted by name"""
    return [f.name for f in scan_directory(directory, include_hidden=include_hidden)]


def check_entries(
    sources: Sequence[NameEntry],
    targets: Sequence[NameEntry],
    case_insensitive: bool = False
) -> None:
    """
    Reject malformed or duplicate entries before scoring

    Args:
        sources: Source entries
        targets: Target entries
        case_insensitive: Whether paths differing only in case are the same

    Raises:
        InputError: Listing every problem found
    """
    problems: List[str] = []

    for expected, entry in enumerate(sources):
        if entry.index != expected:
            problems.append(f"Source '{entry.text}' has index {entry.index}, expected {expected}")
        if not entry.text:
            problems.append(f"Source {entry.index} has an empty name")
        if entry.path is None:
            problems.append(f"Source '{entry.text}' has no path")
        elif not entry.path.is_absolute():
            problems.append(f"Source path is not absolute: {entry.path}")
        elif entry.path.name != entry.text:
            problems.append(f"Source name '{entry.text}' does not match its path {entry.path}")

    seen_paths: Dict[str, int] = {}
    for entry in sources:
        if entry.path is None:
            continue
        key = normalize_for_comparison(str(entry.path), case_insensitive)
        if key in seen_paths:
            problems.append(f"Duplicate source: {entry.path} (indices {seen_paths[key]} and {entry.index})")
        else:
            seen_paths[key] = entry.index

    seen_names: Dict[str, int] = {}
    for expected, entry in enumerate(targets):
        if entry.index != expected:
            problems.append(f"Target '{entry.text}' has index {entry.index}, expected {expected}")
        if not entry.text.strip():
            problems.append(f"Target {entry.index} has an empty name")
            continue
        if "/" in entry.text or "\\" in entry.text:
            problems.append(f"Target name contains a path separator: {entry.text}")
        if entry.text in seen_names:
            problems.append(f"Duplicate target: {entry.text} (indices {seen_names[entry.text]} and {entry.index})")
        else:
            seen_names[entry.text] = entry.index

    if problems:
        raise InputError(problems)
