"""
fuzzy_core - Fuzzy Rename Core Module

Provides similarity scoring, assignment resolution, conflict detection,
rename planning and execution
"""

from .errors import (
    RenameToolError,
    InputError,
    FilesystemError,
    PlanPreconditionError,
    RollbackError,
)

from .models_fs import (
    NameEntry,
    FileItem,
    SortKey,
    SearchAlgorithm,
    ScoreMatrix,
    Assignment,
    Diagnostic,
    DiagnosticKind,
    MappedPair,
    ValidatedAssignment,
    OpKind,
    RenameOp,
    RenamePlan,
    PlanPreview,
    OpStatus,
    OpOutcome,
    RollbackStep,
    PlanStatus,
    PlanResult,
    MatchOptions,
)

from .text_match import (
    score,
    build_score_matrix,
    build_new_name,
    remove_extension,
    expand_template,
    is_valid_filename,
)

from .assign_match import resolve

from .safety_checks import (
    validate,
    check_writable,
    check_path_length,
    check_rename_op,
)

from .scan_files import (
    scan_directory,
    get_existing_names,
    snapshot_existing_names,
    make_source_entries,
    make_target_entries,
    load_target_names,
    target_names_from_directory,
    check_entries,
)

from .sort_rules import sort_files

from .plan_rename import (
    plan,
    plan_fuzzy_rename,
    find_cycles,
    is_temp_name,
)

from .exec_rename import (
    execute_rename,
    check_plan,
    cleanup_temp_files,
)

from .logger_helper import get_logger, setup_logging

__all__ = [
    # Errors
    "RenameToolError",
    "InputError",
    "FilesystemError",
    "PlanPreconditionError",
    "RollbackError",

    # Data models
    "NameEntry",
    "FileItem",
    "SortKey",
    "SearchAlgorithm",
    "ScoreMatrix",
    "Assignment",
    "Diagnostic",
    "DiagnosticKind",
    "MappedPair",
    "ValidatedAssignment",
    "OpKind",
    "RenameOp",
    "RenamePlan",
    "PlanPreview",
    "OpStatus",
    "OpOutcome",
    "RollbackStep",
    "PlanStatus",
    "PlanResult",
    "MatchOptions",

    # Scoring
    "score",
    "build_score_matrix",
    "build_new_name",
    "remove_extension",
    "expand_template",
    "is_valid_filename",

    # Matching
    "resolve",

    # Conflict detection and safety checks
    "validate",
    "check_writable",
    "check_path_length",
    "check_rename_op",

    # Input loading
    "scan_directory",
    "get_existing_names",
    "snapshot_existing_names",
    "make_source_entries",
    "make_target_entries",
    "load_target_names",
    "target_names_from_directory",
    "check_entries",
    "sort_files",

    # Planning
    "plan",
    "plan_fuzzy_rename",
    "find_cycles",
    "is_temp_name",

    # Execution
    "execute_rename",
    "check_plan",
    "cleanup_temp_files",

    # Logging
    "get_logger",
    "setup_logging",
]
