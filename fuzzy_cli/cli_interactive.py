"""
cli_interactive.py - Interactive CLI

Provides a menu-style interactive interface
"""

import os
from pathlib import Path
from typing import Optional, List, Tuple

from fuzzy_core import (
    scan_directory, make_source_entries, make_target_entries, load_target_names,
    target_names_from_directory, expand_template, snapshot_existing_names,
    plan_fuzzy_rename, execute_rename, cleanup_temp_files,
    MatchOptions, SearchAlgorithm, NameEntry, PlanPreview, DiagnosticKind,
    InputError, PlanPreconditionError
)


def clear_screen():
    """Clear screen"""
    os.system('cls' if os.name == 'nt' else 'clear')


def print_header(title: str):
    """Print header"""
    print()
    print("=" * 60)
    print(f"  {title}")
    print("=" * 60)
    print()


def format_score(value: Optional[float]) -> str:
    return "manual" if value is None else f"{100.0 * value:5.1f}%"


def print_preview(preview: PlanPreview, limit: int = 50) -> None:
    """Print the plan preview and its diagnostics"""
    rows = preview.rows()
    print(f"{'Source':<40} {'Score':>7}  {'New name':<40} Status")
    print("-" * 100)
    for i, (source, target, value, new_name, status) in enumerate(rows):
        if i >= limit:
            print(f"  ... and {len(rows) - limit} more files")
            break
        shown = format_score(value) if target is not None else "-"
        print(f"{source.text:<40} {shown:>7}  {new_name:<40} {status}")
    print("-" * 100)

    fatal = [d for d in preview.diagnostics if d.fatal]
    if fatal:
        print("Excluded pairs:")
        for d in fatal:
            print(f"  - [{d.kind.value}] {d.message}")

    unmapped_targets = [d for d in preview.diagnostics if d.kind == DiagnosticKind.UNMAPPED_TARGET]
    if unmapped_targets:
        print(f"Unused targets: {len(unmapped_targets)}")

    cycle_files = len(preview.plan.temp_ops)
    if cycle_files:
        print(f"Note: {cycle_files} files pass through a temporary name (rename cycles)")


def input_directory(prompt: str = "Please enter directory path") -> Optional[Path]:
    """Input and validate directory"""
    while True:
        path_str = input(f"{prompt} (q to return): ").strip()
        if path_str.lower() == 'q':
            return None

        path = Path(path_str).expanduser().resolve()
        if path.is_dir():
            return path
        else:
            print(f"Error: Directory does not exist: {path}")


def input_choice(prompt: str, choices: List[str], default: Optional[str] = None) -> Optional[str]:
    """Input choice"""
    choices_str = "/".join(choices)
    default_str = f" [{default}]" if default else ""

    while True:
        value = input(f"{prompt} ({choices_str}){default_str}: ").strip()
        if not value and default:
            return default
        if value.lower() == 'q':
            return None
        if value in choices:
            return value
        print(f"Invalid choice, please enter: {choices_str}")


def input_bool(prompt: str, default: bool = False) -> bool:
    """Input boolean value"""
    default_str = "Y/n" if default else "y/N"
    value = input(f"{prompt} ({default_str}): ").strip().lower()
    if not value:
        return default
    return value == 'y'


def input_float(prompt: str, default: float = 0.0, min_val: float = 0.0, max_val: float = 1.0) -> float:
    """Input float within a range"""
    while True:
        value = input(f"{prompt} [{default}]: ").strip()
        if not value:
            return default
        try:
            num = float(value)
        except ValueError:
            print("Please enter a valid number")
            continue
        if not min_val <= num <= max_val:
            print(f"Value must be between {min_val} and {max_val}")
            continue
        return num


def input_inputs(options: MatchOptions) -> Optional[Tuple[Tuple[NameEntry, ...], Tuple[NameEntry, ...]]]:
    """Ask for the source folder and the targets"""
    directory = input_directory("Folder of the files to rename")
    if directory is None:
        return None

    files = scan_directory(directory, include_hidden=options.include_hidden)
    if not files:
        print("No files found in directory")
        return None
    sources = make_source_entries(f.path for f in files)
    print(f"Found {len(sources)} files")

    print("\nTarget names from:")
    print("  1. Text file (one name per line)")
    print("  2. Reference folder (its filenames)")
    print("  3. Numbering template")
    choice = input_choice("Select", ["1", "2", "3"], "1")
    if choice is None:
        return None

    if choice == "1":
        path_str = input("Text file path: ").strip()
        names = load_target_names(Path(path_str).expanduser())
    elif choice == "2":
        folder = input_directory("Reference folder")
        if folder is None:
            return None
        names = target_names_from_directory(folder, include_hidden=options.include_hidden)
    else:
        template = input('Template (e.g., vacation_{n}): ').strip()
        names = expand_template(template, len(sources))

    return sources, make_target_entries(names)


def input_options() -> MatchOptions:
    """Ask for the matching options"""
    algorithms = [a.value for a in SearchAlgorithm]
    print("\nSimilarity metric:")
    for i, name in enumerate(algorithms, 1):
        print(f"  {i}. {name}")
    choice = input_choice("Select metric", [str(i) for i in range(1, len(algorithms) + 1)], "3")
    algorithm = SearchAlgorithm(algorithms[int(choice or "3") - 1])

    return MatchOptions(
        min_score=input_float("Similarity threshold (0-1)", default=0.0),
        case_sensitive=not input_bool("Ignore case when comparing", default=False),
        allow_many_to_one=input_bool("Allow several files per target", default=False),
        algorithm=algorithm,
    )


def menu_fuzzy_rename():
    """Fuzzy match and rename menu"""
    print_header("Fuzzy Match Rename")

    try:
        options = input_options()
        inputs = input_inputs(options)
        if inputs is None:
            return
        sources, targets = inputs

        print("\nGenerating rename plan...")
        preview = plan_fuzzy_rename(sources, targets, options,
                                    existing_names=snapshot_existing_names(sources))
    except InputError as e:
        print("\nErrors:")
        for problem in e.problems:
            print(f"  - {problem}")
        input("Press Enter to return...")
        return

    print()
    print_preview(preview, limit=15)

    if not preview.plan.ops:
        print("No files need renaming")
        input("Press Enter to return...")
        return

    # Confirm execution
    print()
    if not input_bool(f"Rename {preview.plan.total_count} files", default=False):
        print("Cancelled")
        input("Press Enter to return...")
        return

    # Execute
    print("\nExecuting...")
    try:
        result = execute_rename(preview.plan)
    except PlanPreconditionError as e:
        print("\nCannot execute, nothing was changed:")
        for problem in e.problems:
            print(f"  - {problem}")
        input("Press Enter to return...")
        return

    print()
    print(result.summary())

    input("\nPress Enter to return...")


def menu_candidates():
    """Candidate listing menu"""
    print_header("Show Candidates")

    try:
        options = input_options()
        inputs = input_inputs(options)
        if inputs is None:
            return
        sources, targets = inputs
        preview = plan_fuzzy_rename(sources, targets, options)
    except InputError as e:
        print("\nErrors:")
        for problem in e.problems:
            print(f"  - {problem}")
        input("Press Enter to return...")
        return

    for source in sources:
        print(source.text)
        for t, value in preview.matrix.top_choices(source.index, options.choice_preview_count):
            print(f"    [{100.0 * value:5.1f}%] {targets[t].text}")

    input("\nPress Enter to return...")


def menu_recover():
    """Temporary file recovery menu"""
    print_header("Recover Temporary Files")

    directory = input_directory("Folder to clean up")
    if directory is None:
        return

    count = cleanup_temp_files(directory)
    print(f"Restored {count} files")
    input("\nPress Enter to return...")


def interactive_mode() -> int:
    """Interactive mode main loop"""
    while True:
        clear_screen()
        print_header("Fuzzy Rename Tool")

        print("Please select function:")
        print()
        print("  1. Fuzzy match and rename")
        print("  2. Show candidates")
        print("  3. Recover temporary files")
        print()
        print("  q. Exit")
        print()

        choice = input("Please select (1/2/3/q): ").strip().lower()

        if choice == 'q':
            print("Goodbye!")
            return 0
        elif choice == '1':
            menu_fuzzy_rename()
        elif choice == '2':
            menu_candidates()
        elif choice == '3':
            menu_recover()
        else:
            print("Invalid choice")
            input("Press Enter to continue...")
