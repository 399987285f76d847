"""Tests for greedy assignment resolution."""

import random

import pytest

from fuzzy_core import (
    InputError,
    NameEntry,
    ScoreMatrix,
    build_score_matrix,
    make_target_entries,
    resolve,
)


def entries(count: int, prefix: str = "n"):
    return tuple(NameEntry(index=i, text=f"{prefix}{i}") for i in range(count))


def matrix_of(*rows):
    return ScoreMatrix(rows=tuple(tuple(r) for r in rows), target_count=len(rows[0]) if rows else 0)


def test_resolve_takes_best_pair_first() -> None:
    """The highest score is committed before lower ones."""
    matrix = matrix_of(
        [0.9, 0.8],
        [0.95, 0.1],
    )
    assignment = resolve(entries(2), entries(2), matrix)
    assert assignment.mapping == {1: 0, 0: 1}
    assert assignment.scores == {1: 0.95, 0: 0.8}


def test_resolve_ties_by_source_then_target_index() -> None:
    """Equal scores are broken by lowest source index, then lowest target index."""
    matrix = matrix_of(
        [0.5, 0.5],
        [0.5, 0.5],
    )
    assignment = resolve(entries(2), entries(2), matrix)
    assert assignment.mapping == {0: 0, 1: 1}


def test_resolve_is_deterministic() -> None:
    """Resolving the same input twice gives the same assignment."""
    matrix = matrix_of([0.3, 0.3, 0.7], [0.7, 0.3, 0.3], [0.3, 0.7, 0.7])
    first = resolve(entries(3), entries(3), matrix)
    second = resolve(entries(3), entries(3), matrix)
    assert first == second


def test_resolve_threshold_leaves_sources_unmapped() -> None:
    """Pairs below min_score are never committed."""
    matrix = matrix_of([0.2, 0.9], [0.25, 0.95])
    assignment = resolve(entries(2), entries(2), matrix, min_score=0.5)
    assert assignment.mapping == {1: 1}
    assert assignment.target_of(0) is None
    assert all(v >= 0.5 for v in assignment.scores.values())


def test_resolve_zero_threshold_maps_every_source() -> None:
    """With min_score 0 and enough targets, every source is mapped."""
    matrix = matrix_of([0.0, 0.0, 0.1], [0.0, 0.0, 0.0], [0.2, 0.0, 0.0])
    assignment = resolve(entries(3), entries(3), matrix, min_score=0.0)
    assert len(assignment) == 3
    assert assignment.is_bijective()


def test_resolve_one_to_one_with_fewer_targets() -> None:
    """Without many-to-one, surplus sources stay unmapped."""
    matrix = matrix_of([0.9], [0.8], [0.7])
    assignment = resolve(entries(3), entries(1), matrix)
    assert assignment.mapping == {0: 0}
    assert assignment.is_bijective()


def test_resolve_many_to_one_reuses_targets() -> None:
    """With many-to-one, each source takes its best target."""
    matrix = matrix_of([0.9, 0.1], [0.8, 0.2], [0.1, 0.7])
    assignment = resolve(entries(3), entries(2), matrix, allow_many_to_one=True)
    assert assignment.mapping == {0: 0, 1: 0, 2: 1}
    assert not assignment.is_bijective()
    assert assignment.allow_many_to_one


def test_resolve_example_photos(make_files) -> None:
    """Positional similarity maps img1 to vacation_01 and img2 to vacation_02."""
    sources = make_files(["img1.jpg", "img2.jpg"])
    targets = make_target_entries(["vacation_01", "vacation_02"])
    matrix = build_score_matrix(sources, targets)

    assignment = resolve(sources, targets, matrix, min_score=0.3)

    assert assignment.mapping == {0: 0, 1: 1}


def test_resolve_overrides_pin_and_decline() -> None:
    """Manual choices are pinned regardless of score; None declines a source."""
    matrix = matrix_of([0.9, 0.1], [0.8, 0.2], [0.7, 0.3])
    assignment = resolve(entries(3), entries(2), matrix, min_score=0.5, overrides={1: 1, 0: None})

    assert assignment.mapping == {1: 1, 2: 0}
    assert assignment.pinned == frozenset({1})
    assert assignment.declined == frozenset({0})
    assert 1 not in assignment.scores


def test_resolve_rejects_bad_overrides() -> None:
    """Unknown indices and a target pinned twice are input errors."""
    matrix = matrix_of([0.5, 0.5], [0.5, 0.5])
    with pytest.raises(InputError):
        resolve(entries(2), entries(2), matrix, overrides={5: 0})
    with pytest.raises(InputError):
        resolve(entries(2), entries(2), matrix, overrides={0: 7})
    with pytest.raises(InputError) as excinfo:
        resolve(entries(2), entries(2), matrix, overrides={0: 1, 1: 1})
    assert "both source 0 and source 1" in excinfo.value.problems[0]


def test_resolve_allows_shared_override_with_many_to_one() -> None:
    """A target may be pinned for several sources in many-to-one mode."""
    matrix = matrix_of([0.5, 0.5], [0.5, 0.5])
    assignment = resolve(entries(2), entries(2), matrix, allow_many_to_one=True, overrides={0: 1, 1: 1})
    assert assignment.mapping == {0: 1, 1: 1}


def test_resolve_rejects_mismatched_matrix() -> None:
    """A matrix that does not fit the entries is an input error."""
    with pytest.raises(InputError):
        resolve(entries(3), entries(2), matrix_of([0.5, 0.5]))


def test_resolve_empty_inputs() -> None:
    """No sources or no targets gives an empty assignment."""
    assert len(resolve((), entries(2), ScoreMatrix(rows=(), target_count=2))) == 0
    assert len(resolve(entries(2), (), ScoreMatrix(rows=((), ()), target_count=0))) == 0


def test_resolve_falls_back_to_next_best_target() -> None:
    """A source whose best target is taken moves on to its next candidate above the threshold."""
    matrix = matrix_of(
        [0.9, 0.2, 0.1],
        [0.8, 0.7, 0.3],
        [0.85, 0.6, 0.65],
    )
    assert resolve(entries(3), entries(3), matrix).mapping == {0: 0, 1: 1, 2: 2}

    assignment = resolve(entries(3), entries(3), matrix, min_score=0.68)
    assert assignment.mapping == {0: 0, 1: 1}
    assert assignment.scores == {0: 0.9, 1: 0.7}


def greedy_reference(matrix: ScoreMatrix, min_score: float):
    """Commit every candidate in (-score, source, target) order."""
    candidates = sorted(
        (-matrix.get(s, t), s, t)
        for s in range(matrix.source_count)
        for t in range(matrix.target_count)
        if matrix.get(s, t) >= min_score
    )
    mapping, used = {}, set()
    for _, s, t in candidates:
        if s not in mapping and t not in used:
            mapping[s] = t
            used.add(t)
    return mapping


@pytest.mark.parametrize("seed", [1, 2, 3])
@pytest.mark.parametrize("min_score", [0.0, 0.4])
def test_resolve_matches_full_candidate_sort(seed: int, min_score: float) -> None:
    """The lazy merge commits the same pairs as sorting every candidate."""
    rng = random.Random(seed)
    # One decimal keeps plenty of ties
    rows = [[round(rng.random(), 1) for _ in range(30)] for _ in range(40)]
    matrix = matrix_of(*rows)

    assignment = resolve(entries(40), entries(30), matrix, min_score=min_score)

    assert assignment.mapping == greedy_reference(matrix, min_score)


def test_resolve_large_batch() -> None:
    """Hundreds of files are scored and paired one to one."""
    sources = tuple(NameEntry(index=i, text=f"IMG_{i:04d}.jpg") for i in range(300))
    targets = make_target_entries([f"trip_{i:04d}" for i in range(300)])
    matrix = build_score_matrix(sources, targets)

    assignment = resolve(sources, targets, matrix)

    assert len(assignment) == 300
    assert assignment.is_bijective()
    assert assignment.mapping[42] == 42
