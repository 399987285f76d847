"""Tests for conflict detection on resolved assignments."""

from pathlib import Path

from fuzzy_core import (
    Assignment,
    DiagnosticKind,
    check_rename_op,
    make_target_entries,
    snapshot_existing_names,
    validate,
)


def kinds(validated):
    return [d.kind for d in validated.diagnostics]


def test_unmapped_sources_and_targets_are_reported(make_files) -> None:
    """Sources without a target and targets nobody chose get diagnostics."""
    sources = make_files(["a.txt", "b.txt"])
    targets = make_target_entries(["x", "y", "z"])

    validated = validate(Assignment(mapping={0: 0}, scores={0: 0.5}), sources, targets)

    unmapped_sources = validated.diagnostics_of(DiagnosticKind.UNMAPPED_SOURCE)
    unmapped_targets = validated.diagnostics_of(DiagnosticKind.UNMAPPED_TARGET)
    assert [d.source_index for d in unmapped_sources] == [1]
    assert [d.target_index for d in unmapped_targets] == [1, 2]
    assert not any(d.fatal for d in validated.diagnostics)
    assert [p.dest.name for p in validated.pairs] == ["x.txt"]
    assert validated.pairs[0].score == 0.5


def test_declined_source_has_its_own_message(make_files) -> None:
    """A source set to no match by hand says so."""
    sources = make_files(["a.txt"])
    validated = validate(Assignment(declined=frozenset({0})), sources, make_target_entries(["x"]))
    (diagnostic,) = validated.diagnostics_of(DiagnosticKind.UNMAPPED_SOURCE)
    assert "no match" in diagnostic.message


def test_no_op_rename_is_left_out_of_pairs(make_files) -> None:
    """A source that already has its new name is reported but not renamed."""
    sources = make_files(["a.txt"])
    validated = validate(Assignment(mapping={0: 0}), sources, make_target_entries(["a"]))

    assert validated.pairs == ()
    assert [p.source.text for p in validated.unchanged] == ["a.txt"]
    assert kinds(validated) == [DiagnosticKind.NO_OP_RENAME]
    assert not validated.fatal_diagnostics


def test_destination_collision_excludes_every_pair(make_files) -> None:
    """All pairs sharing a destination are excluded."""
    sources = make_files(["a.txt", "b.txt", "c.jpg"])
    targets = make_target_entries(["new"])
    assignment = Assignment(mapping={0: 0, 1: 0, 2: 0}, allow_many_to_one=True)

    validated = validate(assignment, sources, targets)

    collisions = validated.diagnostics_of(DiagnosticKind.DESTINATION_COLLISION)
    assert sorted(d.source_index for d in collisions) == [0, 1]
    assert [p.source.text for p in validated.excluded] == ["a.txt", "b.txt"]
    assert [p.dest.name for p in validated.pairs] == ["new.jpg"]


def test_collision_respects_case_sensitivity(make_files) -> None:
    """Names differing only in case collide on a case-insensitive filesystem."""
    sources = make_files(["a.txt", "b.txt"])
    targets = make_target_entries(["Report", "report"])
    assignment = Assignment(mapping={0: 0, 1: 1})

    sensitive = validate(assignment, sources, targets, case_insensitive=False)
    insensitive = validate(assignment, sources, targets, case_insensitive=True)

    assert len(sensitive.pairs) == 2
    assert insensitive.pairs == ()
    assert len(insensitive.diagnostics_of(DiagnosticKind.DESTINATION_COLLISION)) == 2


def test_invalid_name_is_excluded(make_files) -> None:
    """A new name that is not a valid filename is excluded."""
    sources = make_files(["a.txt"])
    validated = validate(Assignment(mapping={0: 0}), sources, make_target_entries(["bad:name"]))

    assert validated.pairs == ()
    assert kinds(validated) == [DiagnosticKind.INVALID_NAME]
    assert validated.fatal_diagnostics


def test_destination_taken_by_unrelated_file(make_files, tmp_path: Path) -> None:
    """A destination held by a file outside the batch is excluded."""
    sources = make_files(["a.txt"])
    (tmp_path / "taken.txt").write_text("keep me", encoding="utf-8")

    validated = validate(Assignment(mapping={0: 0}), sources, make_target_entries(["taken"]),
                         existing_names=snapshot_existing_names(sources))

    assert validated.pairs == ()
    assert kinds(validated) == [DiagnosticKind.DESTINATION_OCCUPIED]
    assert "taken.txt" in validated.occupied_names


def test_destination_taken_by_staying_source(make_files) -> None:
    """A source that is not renamed keeps its name occupied."""
    sources = make_files(["a.txt", "b.txt"])
    validated = validate(Assignment(mapping={0: 0}), sources, make_target_entries(["b"]))

    assert validated.pairs == ()
    assert validated.diagnostics_of(DiagnosticKind.DESTINATION_OCCUPIED)


def test_occupancy_propagates_along_chain(make_files) -> None:
    """Excluding one pair keeps its source in place, blocking the pair behind it."""
    sources = make_files(["a.txt", "b.txt", "c.txt"])
    targets = make_target_entries(["b", "c"])

    validated = validate(Assignment(mapping={0: 0, 1: 1}), sources, targets)

    assert validated.pairs == ()
    occupied = validated.diagnostics_of(DiagnosticKind.DESTINATION_OCCUPIED)
    assert sorted(d.source_index for d in occupied) == [0, 1]


def test_chain_into_free_name_is_kept(make_files) -> None:
    """a -> b, b -> c is valid when c is free."""
    sources = make_files(["a.txt", "b.txt"])
    targets = make_target_entries(["b", "c"])

    validated = validate(Assignment(mapping={0: 0, 1: 1}), sources, targets,
                         existing_names=snapshot_existing_names(sources))

    assert [(p.source.text, p.dest.name) for p in validated.pairs] == [("a.txt", "b.txt"), ("b.txt", "c.txt")]
    assert not validated.fatal_diagnostics


def test_case_only_rename_is_kept_when_case_insensitive(make_files) -> None:
    """A case-only rename does not count as taking its own name."""
    sources = make_files(["photo.jpg"])
    validated = validate(Assignment(mapping={0: 0}), sources, make_target_entries(["Photo"]),
                         case_insensitive=True, existing_names=snapshot_existing_names(sources))

    assert [p.dest.name for p in validated.pairs] == ["Photo.jpg"]


def test_check_rename_op(tmp_path: Path) -> None:
    """A rename needs an existing source file."""
    src = tmp_path / "a.txt"
    assert not check_rename_op(src, tmp_path / "b.txt")[0]
    src.write_text("a", encoding="utf-8")
    assert check_rename_op(src, tmp_path / "b.txt") == (True, None)
    assert not check_rename_op(tmp_path, tmp_path / "c")[0]
