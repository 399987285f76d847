"""
cli_entry.py - CLI Entry Point

Supports:
- Command-line argument mode
- Interactive mode
"""

import argparse
import sys
from pathlib import Path
from typing import List, Tuple

from fuzzy_core import (
    scan_directory, make_source_entries, make_target_entries, load_target_names,
    target_names_from_directory, expand_template, snapshot_existing_names,
    plan_fuzzy_rename, execute_rename, cleanup_temp_files, setup_logging,
    MatchOptions, SearchAlgorithm, NameEntry, PlanStatus,
    InputError, PlanPreconditionError
)

from .cli_interactive import interactive_mode, print_preview

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_MANUAL_CLEANUP = 2

ALGORITHMS = {a.value: a for a in SearchAlgorithm}


def create_parser() -> argparse.ArgumentParser:
    """Create command-line argument parser"""
    parser = argparse.ArgumentParser(
        prog="fuzzy-rename",
        description="Fuzzy Batch Rename Tool",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Interactive mode
  fuzzy-rename

  # Match files against a list of names
  fuzzy-rename match ./photos --targets-file names.txt --min-score 0.3

  # Match files against the names of a reference folder
  fuzzy-rename match ./subtitles --targets-dir ./videos --yes

  # Show the best candidates of every file
  fuzzy-rename candidates ./photos --template "vacation_{n}" --padding 2

  # Restore files left under temporary names by an interrupted run
  fuzzy-rename recover ./photos
"""
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Verbose logging")
    parser.add_argument("--log-file", type=str, help="Also write logs to this file")

    subparsers = parser.add_subparsers(dest="command", help="Subcommands")

    def add_matching_args(sub: argparse.ArgumentParser) -> None:
        sub.add_argument("directory", type=str, help="Directory of the files to rename")
        targets = sub.add_mutually_exclusive_group(required=True)
        targets.add_argument("--targets-file", "-f", type=str, help="Text file with one target name per line")
        targets.add_argument("--targets-dir", "-t", type=str, help="Use the filenames of this folder as targets")
        targets.add_argument("--template", type=str, help='Numbering template, e.g. "vacation_{n}"')
        sub.add_argument("--start", type=int, default=1, help="Template starting number")
        sub.add_argument("--padding", type=int, default=0, help="Template zero-padding digits")
        sub.add_argument("--suffix", "-s", type=str, help="Only files with this suffix (e.g., .jpg)")
        sub.add_argument("--include-hidden", action="store_true", help="Include hidden files")
        sub.add_argument("--min-score", "-m", type=float, default=0.0, help="Similarity threshold (0-1)")
        sub.add_argument("--algorithm", "-a", type=str, default=SearchAlgorithm.LEVENSHTEIN.value,
                         choices=sorted(ALGORITHMS), help="Similarity metric")
        sub.add_argument("--ignore-case", "-i", action="store_true", help="Case-insensitive scoring")
        sub.add_argument("--many-to-one", action="store_true", help="Allow several files to match one target")
        sub.add_argument("--keep-extension", action="store_true", help="Keep the target's extension in the new name")
        sub.add_argument("--match-stems", action="store_true", help="Compare names without extensions")

    # match subcommand
    match_parser = subparsers.add_parser("match", help="Fuzzy match and rename")
    add_matching_args(match_parser)
    match_parser.add_argument("--dry-run", "-d", action="store_true", help="Preview only, do not execute")
    match_parser.add_argument("--yes", "-y", action="store_true", help="Skip confirmation")
    match_parser.add_argument("--log-dir", type=str, help="Save JSON plan and result logs here")

    # candidates subcommand
    cand_parser = subparsers.add_parser("candidates", help="Show the best candidates of every file")
    add_matching_args(cand_parser)
    cand_parser.add_argument("--limit", "-n", type=int, default=10, help="Candidates per file")

    # recover subcommand
    recover_parser = subparsers.add_parser("recover", help="Restore leftover temporary files")
    recover_parser.add_argument("directory", type=str, help="Directory to clean up")

    return parser


def build_options(args) -> MatchOptions:
    """MatchOptions from parsed arguments"""
    return MatchOptions(
        min_score=args.min_score,
        case_sensitive=not args.ignore_case,
        allow_many_to_one=args.many_to_one,
        algorithm=ALGORITHMS[args.algorithm],
        keep_extension=args.keep_extension,
        match_stems=args.match_stems,
        include_hidden=args.include_hidden,
        choice_preview_count=getattr(args, "limit", 10),
    )


def gather_inputs(args, options: MatchOptions) -> Tuple[Path, Tuple[NameEntry, ...], Tuple[NameEntry, ...]]:
    """Scan the directory and load target names"""
    directory = Path(args.directory).resolve()
    files = scan_directory(directory, suffix_filter=args.suffix, include_hidden=options.include_hidden)
    sources = make_source_entries(f.path for f in files)

    if args.targets_file:
        names = load_target_names(Path(args.targets_file))
    elif args.targets_dir:
        names = target_names_from_directory(Path(args.targets_dir), include_hidden=options.include_hidden)
    else:
        names = expand_template(args.template, len(sources), start=args.start, padding=args.padding)

    return directory, sources, make_target_entries(names)


def cmd_match(args) -> int:
    """Handle match command"""
    options = build_options(args)
    directory, sources, targets = gather_inputs(args, options)

    print(f"Directory: {directory}")
    print(f"Files: {len(sources)}, targets: {len(targets)}")

    if not sources:
        print("No matching files found")
        return EXIT_OK

    preview = plan_fuzzy_rename(sources, targets, options,
                                existing_names=snapshot_existing_names(sources))
    print()
    print_preview(preview)
    print()
    print(preview.plan.summary())

    if not preview.plan.ops:
        print("No files need renaming")
        return EXIT_OK

    # Confirmation
    if args.dry_run:
        result = execute_rename(preview.plan, dry_run=True)
        print("\n[Preview mode] Will not actually execute")
        print(result.summary())
        return EXIT_OK

    if not args.yes:
        confirm = input("\nConfirm execution? (y/N): ").strip().lower()
        if confirm != 'y':
            print("Cancelled")
            return EXIT_OK

    # Execute
    print("\nExecuting...")
    log_dir = Path(args.log_dir) if args.log_dir else None
    result = execute_rename(preview.plan, log_dir=log_dir)
    print(result.summary())

    if result.status == PlanStatus.COMPLETED:
        return EXIT_OK
    if result.needs_manual_cleanup:
        return EXIT_MANUAL_CLEANUP
    return EXIT_ERROR


def cmd_candidates(args) -> int:
    """Handle candidates command"""
    options = build_options(args)
    directory, sources, targets = gather_inputs(args, options)

    if not sources or not targets:
        print("Nothing to compare")
        return EXIT_OK

    preview = plan_fuzzy_rename(sources, targets, options)
    for source in sources:
        print(source.text)
        for t, value in preview.matrix.top_choices(source.index, options.choice_preview_count):
            marker = ">" if preview.assignment.target_of(source.index) == t else " "
            print(f"  {marker} [{100.0 * value:5.1f}%] {targets[t].text}")
    return EXIT_OK


def cmd_recover(args) -> int:
    """Handle recover command"""
    directory = Path(args.directory).resolve()
    if not directory.is_dir():
        print(f"Error: Directory does not exist: {directory}")
        return EXIT_ERROR

    count = cleanup_temp_files(directory)
    print(f"Restored {count} files")
    return EXIT_OK


def main(argv: List[str] = None) -> int:
    """Main entry point"""
    parser = create_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=Path(args.log_file) if args.log_file else None)

    if args.command is None:
        # No subcommand, enter interactive mode
        return interactive_mode()

    try:
        if args.command == "match":
            return cmd_match(args)
        elif args.command == "candidates":
            return cmd_candidates(args)
        elif args.command == "recover":
            return cmd_recover(args)
    except InputError as e:
        print("Errors:")
        for problem in e.problems:
            print(f"  - {problem}")
        return EXIT_ERROR
    except PlanPreconditionError as e:
        print("Cannot execute, nothing was changed:")
        for problem in e.problems:
            print(f"  - {problem}")
        return EXIT_ERROR

    parser.print_help()
    return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
