"""
assign_match.py - Assignment Resolution Module

Responsibilities:
- Greedy best-first pairing of sources with targets
- Deterministic tie-breaking (lowest source index, then lowest target index)
- Manual choices pinned before matching
"""

from array import array
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple
import heapq

from .errors import InputError
from .models_fs import Assignment, NameEntry, ScoreMatrix
from .logger_helper import get_logger

logger = get_logger(__name__)


def _check_overrides(
    overrides: Mapping[int, Optional[int]],
    source_count: int,
    target_count: int,
    allow_many_to_one: bool
) -> None:
    """Reject overrides naming unknown indices or reusing a target"""
    problems: List[str] = []
    pinned_by: Dict[int, int] = {}

    for s, t in sorted(overrides.items()):
        if not 0 <= s < source_count:
            problems.append(f"Manual choice for unknown source index {s}")
            continue
        if t is None:
            continue
        if not 0 <= t < target_count:
            problems.append(f"Manual choice of source {s} names unknown target index {t}")
            continue
        if not allow_many_to_one and t in pinned_by:
            problems.append(f"Target {t} chosen manually for both source {pinned_by[t]} and source {s}")
            continue
        pinned_by[t] = s

    if problems:
        raise InputError(problems)


def resolve(
    sources: Sequence[NameEntry],
    targets: Sequence[NameEntry],
    matrix: ScoreMatrix,
    min_score: float = 0.0,
    allow_many_to_one: bool = False,
    overrides: Optional[Mapping[int, Optional[int]]] = None
) -> Assignment:
    """
    Pair sources with targets, best score first

    Every candidate pair scoring at least min_score is considered in order of
    descending score, ties broken by source index and then target index. A
    pair is committed when its source is still free and its target is still
    free (targets may be reused when allow_many_to_one is set). Each source's
    row is sorted once and the rows are merged lazily through a heap, so the
    full list of n x m candidates is never built.

    Args:
        sources: Source entries
        targets: Target entries
        matrix: Score matrix of sources x targets
        min_score: Lowest acceptable score
        allow_many_to_one: Whether a target may be used by several sources
        overrides: Manual choices {source_index: target_index or None};
            None pins the source to "no match"

    Returns:
        Assignment
    """
    if matrix.source_count != len(sources) or matrix.target_count != len(targets):
        raise InputError(
            f"Score matrix is {matrix.source_count}x{matrix.target_count}, "
            f"expected {len(sources)}x{len(targets)}"
        )

    overrides = dict(overrides or {})
    _check_overrides(overrides, len(sources), len(targets), allow_many_to_one)

    mapping: Dict[int, int] = {}
    scores: Dict[int, float] = {}
    used_sources: Set[int] = set(overrides)
    used_targets: Set[int] = set()

    # Manual choices first, regardless of threshold
    for s, t in overrides.items():
        if t is None:
            continue
        mapping[s] = t
        used_targets.add(t)

    # Each free source offers its best remaining target; the heap top is the
    # globally best live candidate, ordered by (-score, source, target)
    ranked: Dict[int, array] = {}
    position: Dict[int, int] = {}
    heap: List[Tuple[float, int, int]] = []
    for s in range(len(sources)):
        if s in used_sources:
            continue
        order = matrix.ranked_targets(s, min_score)
        if not order:
            continue
        ranked[s] = array("l", order)
        position[s] = 0
        heap.append((-matrix.get(s, order[0]), s, order[0]))
    heapq.heapify(heap)

    while heap:
        if not allow_many_to_one and len(used_targets) == len(targets):
            break
        neg_value, s, t = heapq.heappop(heap)
        if t in used_targets and not allow_many_to_one:
            # Target taken, offer this source's next candidate
            position[s] += 1
            if position[s] < len(ranked[s]):
                t = ranked[s][position[s]]
                heapq.heappush(heap, (-matrix.get(s, t), s, t))
            continue
        mapping[s] = t
        scores[s] = -neg_value
        used_sources.add(s)
        used_targets.add(t)
        del ranked[s]

    logger.debug("Resolved %d of %d sources (%d manual)", len(mapping), len(sources),
                 sum(1 for t in overrides.values() if t is not None))

    return Assignment(
        mapping=mapping,
        scores=scores,
        pinned=frozenset(s for s, t in overrides.items() if t is not None),
        declined=frozenset(s for s, t in overrides.items() if t is None),
        allow_many_to_one=allow_many_to_one,
    )
