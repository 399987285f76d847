"""End-to-end tests for the command-line interface."""

import os
from pathlib import Path

import pytest

from fuzzy_cli import main
from fuzzy_cli.cli_entry import EXIT_ERROR, EXIT_MANUAL_CLEANUP, EXIT_OK
from fuzzy_core import exec_rename


@pytest.fixture
def photos(tmp_path: Path) -> Path:
    directory = tmp_path / "photos"
    directory.mkdir()
    for name in ("img1.jpg", "img2.jpg"):
        (directory / name).write_text(name, encoding="utf-8")
    return directory


@pytest.fixture
def names_file(tmp_path: Path) -> Path:
    path = tmp_path / "names.txt"
    path.write_text("vacation_01\n\nvacation_02\n", encoding="utf-8")
    return path


def listing(directory: Path):
    return sorted(p.name for p in directory.iterdir())


def test_match_renames_with_yes(photos: Path, names_file: Path) -> None:
    """match --yes renames every file to its closest target."""
    code = main(["match", str(photos), "-f", str(names_file), "-m", "0.3", "--yes"])

    assert code == EXIT_OK
    assert listing(photos) == ["vacation_01.jpg", "vacation_02.jpg"]
    assert (photos / "vacation_01.jpg").read_text(encoding="utf-8") == "img1.jpg"


def test_match_dry_run_changes_nothing(photos: Path, names_file: Path, capsys) -> None:
    """--dry-run prints the preview and leaves the folder alone."""
    code = main(["match", str(photos), "-f", str(names_file), "--dry-run"])

    assert code == EXIT_OK
    assert listing(photos) == ["img1.jpg", "img2.jpg"]
    out = capsys.readouterr().out
    assert "vacation_01.jpg" in out
    assert "Preview mode" in out


def test_match_with_template(photos: Path) -> None:
    """Targets can be generated from a numbering template."""
    code = main(["match", str(photos), "--template", "vacation_{n}", "--padding", "2", "--yes"])

    assert code == EXIT_OK
    assert listing(photos) == ["vacation_01.jpg", "vacation_02.jpg"]


def test_match_with_reference_folder(tmp_path: Path, photos: Path) -> None:
    """Targets can be the filenames of another folder."""
    reference = tmp_path / "reference"
    reference.mkdir()
    for name in ("vacation_01.png", "vacation_02.png"):
        (reference / name).write_text("", encoding="utf-8")

    code = main(["match", str(photos), "-t", str(reference), "--yes"])

    assert code == EXIT_OK
    assert listing(photos) == ["vacation_01.jpg", "vacation_02.jpg"]


def test_match_declined_confirmation(photos: Path, names_file: Path, monkeypatch) -> None:
    """Answering no at the prompt leaves the folder alone."""
    monkeypatch.setattr("builtins.input", lambda prompt="": "n")

    code = main(["match", str(photos), "-f", str(names_file)])

    assert code == EXIT_OK
    assert listing(photos) == ["img1.jpg", "img2.jpg"]


def test_match_rejects_duplicate_targets(photos: Path, tmp_path: Path, capsys) -> None:
    """Duplicate target names are reported and nothing is renamed."""
    names = tmp_path / "dupes.txt"
    names.write_text("same\nsame\n", encoding="utf-8")

    code = main(["match", str(photos), "-f", str(names), "--yes"])

    assert code == EXIT_ERROR
    assert "Duplicate target" in capsys.readouterr().out
    assert listing(photos) == ["img1.jpg", "img2.jpg"]


def test_match_rejects_bad_threshold(photos: Path, names_file: Path) -> None:
    """A threshold outside [0, 1] is an input error."""
    assert main(["match", str(photos), "-f", str(names_file), "-m", "1.5"]) == EXIT_ERROR


def test_match_missing_directory(tmp_path: Path, names_file: Path) -> None:
    """A missing source folder is an input error."""
    assert main(["match", str(tmp_path / "nope"), "-f", str(names_file)]) == EXIT_ERROR


def test_match_failure_rolls_back(photos: Path, names_file: Path, monkeypatch) -> None:
    """A failed rename exits with an error and restores the folder."""
    real_rename = os.rename

    def rename(src, dst):
        if Path(src).name == "img2.jpg":
            raise PermissionError(13, "Permission denied", str(src))
        real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", rename)

    code = main(["match", str(photos), "-f", str(names_file), "--yes"])

    assert code == EXIT_ERROR
    assert listing(photos) == ["img1.jpg", "img2.jpg"]


def test_match_rollback_failure_needs_cleanup(photos: Path, names_file: Path, monkeypatch, capsys) -> None:
    """A rollback that cannot finish exits with the manual-cleanup code."""
    real_rename = os.rename

    def rename(src, dst):
        if Path(src).name in ("img2.jpg", "vacation_01.jpg"):
            raise PermissionError(13, "Permission denied", str(src))
        real_rename(src, dst)

    monkeypatch.setattr(exec_rename.os, "rename", rename)

    code = main(["match", str(photos), "-f", str(names_file), "--yes"])

    assert code == EXIT_MANUAL_CLEANUP
    assert "Manual cleanup required" in capsys.readouterr().out


def test_candidates_lists_best_targets(photos: Path, names_file: Path, capsys) -> None:
    """candidates prints every file with its ranked targets."""
    code = main(["candidates", str(photos), "-f", str(names_file), "-n", "1"])

    assert code == EXIT_OK
    lines = capsys.readouterr().out.splitlines()
    assert lines[0] == "img1.jpg"
    assert lines[1].strip().startswith(">")
    assert lines[1].endswith("vacation_01")
    assert lines[2] == "img2.jpg"
    assert listing(photos) == ["img1.jpg", "img2.jpg"]


def test_recover_restores_temp_files(tmp_path: Path, capsys) -> None:
    """recover gives leftover temp files their names back."""
    (tmp_path / ".__tmp_rename__0123abcd__a.txt").write_text("a", encoding="utf-8")

    code = main(["recover", str(tmp_path)])

    assert code == EXIT_OK
    assert listing(tmp_path) == ["a.txt"]
    assert "Restored 1 files" in capsys.readouterr().out


def test_log_dir_receives_json_logs(photos: Path, names_file: Path, tmp_path: Path) -> None:
    """--log-dir keeps the plan and the result."""
    log_dir = tmp_path / "logs"

    assert main(["match", str(photos), "-f", str(names_file), "--yes", "--log-dir", str(log_dir)]) == EXIT_OK
    assert len(list(log_dir.glob("*.json"))) == 2
