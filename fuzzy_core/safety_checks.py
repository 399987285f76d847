"""
safety_checks.py - Safety Check Module

Provides conflict detection on a resolved assignment, and the filesystem
checks run before file operations
"""

from collections import defaultdict
from pathlib import Path
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Set, Tuple
import os
import platform

from .models_fs import (
    Assignment, Diagnostic, DiagnosticKind, MappedPair, NameEntry,
    ValidatedAssignment, normalize_for_comparison
)
from .text_match import build_new_name, is_valid_filename
from .logger_helper import get_logger

logger = get_logger(__name__)


def path_key(path: Path, case_insensitive: bool) -> str:
    """Normalize a path for comparison"""
    return normalize_for_comparison(str(path), case_insensitive)


def validate(
    assignment: Assignment,
    sources: Sequence[NameEntry],
    targets: Sequence[NameEntry],
    keep_extension: bool = False,
    case_insensitive: bool = False,
    existing_names: Optional[Mapping[Path, Iterable[str]]] = None
) -> ValidatedAssignment:
    """
    Check a resolved assignment for naming conflicts

    Pairs whose new name is invalid, that collide with another pair, or whose
    destination is held by a file that stays in place are excluded. Pairs
    whose destination is their own path are left out of the plan. Every
    finding is returned as a Diagnostic; nothing is raised.

    Args:
        assignment: Resolved assignment
        sources: Source entries (with absolute paths)
        targets: Target entries
        keep_extension: Keep the target's extension when building new names
        case_insensitive: Whether paths differing only in case are the same
        existing_names: Snapshot {directory: filenames on disk} of the
            directories involved

    Returns:
        Validated assignment
    """
    diagnostics: List[Diagnostic] = []
    excluded: List[MappedPair] = []
    unchanged: List[MappedPair] = []
    by_source = {s.index: s for s in sources}
    by_target = {t.index: t for t in targets}

    def key(path: Path) -> str:
        return path_key(path, case_insensitive)

    # Unmapped sources and targets
    for source in sources:
        if source.index in assignment.mapping:
            continue
        if source.index in assignment.declined:
            message = f"{source.text}: marked as having no match"
        else:
            message = f"{source.text}: no target reached the similarity threshold"
        diagnostics.append(Diagnostic(DiagnosticKind.UNMAPPED_SOURCE, message,
                                      source_index=source.index, path=source.path))

    chosen = set(assignment.mapping.values())
    for target in targets:
        if target.index not in chosen:
            diagnostics.append(Diagnostic(DiagnosticKind.UNMAPPED_TARGET,
                                          f"{target.text}: not chosen by any source",
                                          target_index=target.index))

    # Build destinations
    active: List[MappedPair] = []
    for s, t in assignment.items():
        source = by_source[s]
        target = by_target[t]
        new_name = build_new_name(source.text, target.text, keep_extension)
        dest = source.path.parent / new_name
        pair = MappedPair(source=source, target=target, dest=dest,
                          score=None if s in assignment.pinned else assignment.scores.get(s))

        valid, error = is_valid_filename(new_name)
        if not valid:
            excluded.append(pair)
            diagnostics.append(Diagnostic(DiagnosticKind.INVALID_NAME,
                                          f"{source.text} -> {new_name}: {error}",
                                          source_index=s, target_index=t, path=dest))
            continue

        if dest == source.path:
            unchanged.append(pair)
            diagnostics.append(Diagnostic(DiagnosticKind.NO_OP_RENAME,
                                          f"{source.text}: already named {new_name}",
                                          source_index=s, target_index=t, path=dest))
            continue

        active.append(pair)

    # Destination collisions between pairs
    groups: Dict[str, List[MappedPair]] = defaultdict(list)
    for pair in active:
        groups[key(pair.dest)].append(pair)

    colliding: Set[int] = set()
    for group in groups.values():
        if len(group) < 2:
            continue
        names = ", ".join(p.source.text for p in group)
        for pair in group:
            colliding.add(pair.source.index)
            excluded.append(pair)
            diagnostics.append(Diagnostic(DiagnosticKind.DESTINATION_COLLISION,
                                          f"{pair.source.text} -> {pair.dest.name}: same destination as {names}",
                                          source_index=pair.source.index,
                                          target_index=pair.target.index, path=pair.dest))
    active = [p for p in active if p.source.index not in colliding]

    # Destinations held by files that do not move
    source_keys = {key(s.path) for s in sources}
    occupied: Set[str] = set()
    all_names: Set[str] = {s.text for s in sources}
    for directory, names in (existing_names or {}).items():
        for name in names:
            all_names.add(name)
            k = key(Path(directory) / name)
            if k not in source_keys:
                occupied.add(k)
    moving = {key(p.source.path) for p in active}
    occupied |= source_keys - moving

    changed = True
    while changed:
        changed = False
        still_active = []
        for pair in active:
            dest_key = key(pair.dest)
            if dest_key in occupied and dest_key != key(pair.source.path):
                excluded.append(pair)
                occupied.add(key(pair.source.path))
                diagnostics.append(Diagnostic(DiagnosticKind.DESTINATION_OCCUPIED,
                                              f"{pair.source.text} -> {pair.dest.name}: name is taken by a file that is not renamed",
                                              source_index=pair.source.index,
                                              target_index=pair.target.index, path=pair.dest))
                changed = True
            else:
                still_active.append(pair)
        active = still_active

    all_names.update(p.dest.name for p in active)
    all_names.update(p.dest.name for p in excluded)

    for d in diagnostics:
        if d.fatal:
            logger.warning("Excluded: %s", d.message)

    return ValidatedAssignment(
        pairs=tuple(sorted(active, key=lambda p: p.source.index)),
        excluded=tuple(sorted(excluded, key=lambda p: p.source.index)),
        unchanged=tuple(unchanged),
        diagnostics=tuple(diagnostics),
        case_insensitive=case_insensitive,
        occupied_names=frozenset(all_names),
    )


def check_writable(path: Path) -> Tuple[bool, Optional[str]]:
    """
    Check if the directory holding path is writable (renaming needs it)

    Args:
        path: Path to check

    Returns:
        (is_writable, error_reason)
    """
    parent = path.parent
    if not parent.exists():
        return False, f"Parent directory does not exist: {parent}"
    if not os.access(parent, os.W_OK):
        return False, f"Directory is not writable: {parent}"
    return True, None


def check_path_length(path: Path, max_length: int = 260) -> Tuple[bool, Optional[str]]:
    """
    Check if path length exceeds limit (mainly for Windows)

    Args:
        path: Path to check
        max_length: Maximum length

    Returns:
        (is_valid, error_reason)
    """
    path_str = str(path)
    if len(path_str) > max_length:
        return False, f"Path length ({len(path_str)}) exceeds limit ({max_length}): {path}"
    return True, None


def check_rename_op(src: Path, dst: Path) -> Tuple[bool, Optional[str]]:
    """
    Check if a single rename operation is safe

    Args:
        src: Source path
        dst: Destination path

    Returns:
        (is_safe, error_reason)
    """
    # Check if source file exists
    if not src.exists():
        return False, f"Source file does not exist: {src}"

    # Check if source is a file
    if not src.is_file():
        return False, f"Source path is not a file: {src}"

    # Check path length
    if platform.system() == "Windows":
        valid, error = check_path_length(dst)
        if not valid:
            return False, error

    # Check writability
    valid, error = check_writable(src)
    if not valid:
        return False, error

    return True, None
