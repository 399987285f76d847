"""
plan_rename.py - Rename Plan Generation Module

Responsibilities:
- Order renames so no destination is taken while its file is still there
- Detect rename cycles (A -> B, B -> A) and break them with temporary names
- Run the whole matching pipeline and output a PlanPreview
"""

from pathlib import Path
from typing import Dict, FrozenSet, Iterable, List, Mapping, Optional, Sequence, Set
import uuid

from .models_fs import (
    MappedPair, MatchOptions, NameEntry, OpKind, PlanPreview, RenameOp,
    RenamePlan, ValidatedAssignment
)
from .text_match import build_score_matrix
from .assign_match import resolve
from .safety_checks import validate, path_key
from .scan_files import check_entries
from .logger_helper import get_logger

logger = get_logger(__name__)

TEMP_PREFIX = ".__tmp_rename__"

# DFS node colors
_WHITE, _GREY, _BLACK = 0, 1, 2


def generate_temp_marker(names: Iterable[str]) -> str:
    """
    Generate a temporary-name marker that appears in none of the given names

    Args:
        names: Every name involved in the batch

    Returns:
        Marker of the form .__tmp_rename__<token>__
    """
    names = list(names)
    while True:
        marker = f"{TEMP_PREFIX}{uuid.uuid4().hex[:8]}__"
        if not any(marker in name for name in names):
            return marker


def is_temp_name(name: str) -> bool:
    """Check if it's a temporary filename"""
    return name.startswith(TEMP_PREFIX)


def original_name_of_temp(name: str) -> Optional[str]:
    """Original filename encoded in a temporary filename"""
    if not is_temp_name(name):
        return None
    # Temporary name format: .__tmp_rename__{token}__{original_name}
    rest = name[len(TEMP_PREFIX):]
    token, sep, original = rest.partition("__")
    if not sep or not token or not original:
        return None
    return original


def find_cycles(pairs: Sequence[MappedPair], case_insensitive: bool = False) -> List[List[MappedPair]]:
    """
    Find rename cycles

    Each pair is an edge source path -> destination path. A pair depends on
    the pair that moves its destination away. Depth-first search with
    grey (on stack) / black (done) marking reports every cycle.

    Args:
        pairs: Validated pairs
        case_insensitive: Whether paths differing only in case are the same

    Returns:
        Cycles, each a list of pairs in dependency order
    """
    order, cycles = _walk(pairs, case_insensitive)
    return cycles


def _walk(pairs: Sequence[MappedPair], case_insensitive: bool):
    """
    Depth-first walk over the dependency graph

    Returns:
        (acyclic pairs in execution order, cycles)
    """
    by_source: Dict[str, MappedPair] = {path_key(p.source.path, case_insensitive): p for p in pairs}

    def successor(pair: MappedPair) -> Optional[MappedPair]:
        return by_source.get(path_key(pair.dest, case_insensitive))

    color: Dict[int, int] = {p.source.index: _WHITE for p in pairs}
    order: List[MappedPair] = []
    cycles: List[List[MappedPair]] = []

    for start in pairs:
        if color[start.source.index] != _WHITE:
            continue

        # Follow dependencies, keeping the current path as the recursion stack
        stack: List[MappedPair] = []
        node: Optional[MappedPair] = start
        while node is not None and color[node.source.index] == _WHITE:
            color[node.source.index] = _GREY
            stack.append(node)
            node = successor(node)

        cyclic: Set[int] = set()
        if node is not None and color[node.source.index] == _GREY:
            at = next(i for i, p in enumerate(stack) if p.source.index == node.source.index)
            cycle = stack[at:]
            cycles.append(cycle)
            cyclic = {p.source.index for p in cycle}
            logger.debug("Rename cycle: %s", " -> ".join(p.source.text for p in cycle))

        # Post-order: a pair is emitted after the pair it depends on
        for pair in reversed(stack):
            color[pair.source.index] = _BLACK
            if pair.source.index not in cyclic:
                order.append(pair)

    return order, cycles


def plan(validated: ValidatedAssignment) -> RenamePlan:
    """
    Turn a validated assignment into ordered rename operations

    Pairs on a cycle are first moved to temporary names, then the remaining
    pairs are renamed directly (each after the pair that frees its
    destination), then the temporaries are moved to their destinations.

    Args:
        validated: Validated assignment

    Returns:
        Rename plan
    """
    order, cycles = _walk(validated.pairs, validated.case_insensitive)

    ops: List[RenameOp] = []
    if cycles:
        marker = generate_temp_marker(validated.occupied_names)
        cyclic = sorted((p for cycle in cycles for p in cycle), key=lambda p: p.source.index)
        temps = {p.source.index: p.source.path.parent / f"{marker}{p.source.path.name}" for p in cyclic}

        for pair in cyclic:
            ops.append(RenameOp(pair.source.path, temps[pair.source.index], OpKind.TO_TEMP,
                                pair.source.index, note=f"cycle: {pair.source.text} -> temp"))
        for pair in order:
            ops.append(RenameOp(pair.source.path, pair.dest, OpKind.DIRECT, pair.source.index))
        for pair in cyclic:
            ops.append(RenameOp(temps[pair.source.index], pair.dest, OpKind.FROM_TEMP,
                                pair.source.index, note=f"cycle: temp -> {pair.dest.name}"))
    else:
        for pair in order:
            ops.append(RenameOp(pair.source.path, pair.dest, OpKind.DIRECT, pair.source.index))

    logger.info("Planned %d operations for %d renames (%d cycles)", len(ops), len(validated.pairs), len(cycles))
    return RenamePlan(ops=tuple(ops), validated=validated)


def plan_fuzzy_rename(
    sources: Sequence[NameEntry],
    targets: Sequence[NameEntry],
    options: Optional[MatchOptions] = None,
    overrides: Optional[Mapping[int, Optional[int]]] = None,
    existing_names: Optional[Mapping[Path, FrozenSet[str]]] = None
) -> PlanPreview:
    """
    Score, match, validate and plan in one call

    Args:
        sources: Source entries (absolute paths)
        targets: Target entries
        options: Matching options
        overrides: Manual choices {source_index: target_index or None}
        existing_names: Snapshot {directory: filenames on disk}

    Returns:
        Plan preview for review before execution

    Raises:
        InputError: Malformed or duplicate entries, or invalid overrides
    """
    if options is None:
        options = MatchOptions()

    check_entries(sources, targets, case_insensitive=options.case_insensitive_detect)

    matrix = build_score_matrix(sources, targets, options)
    assignment = resolve(
        sources, targets, matrix,
        min_score=options.min_score,
        allow_many_to_one=options.allow_many_to_one,
        overrides=overrides,
    )
    validated = validate(
        assignment, sources, targets,
        keep_extension=options.keep_extension,
        case_insensitive=options.case_insensitive_detect,
        existing_names=existing_names,
    )
    rename_plan = plan(validated)

    return PlanPreview(
        sources=tuple(sources),
        targets=tuple(targets),
        matrix=matrix,
        assignment=assignment,
        validated=validated,
        plan=rename_plan,
    )
