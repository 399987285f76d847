"""
models_fs.py - Core Data Structure Definitions

Contains:
- NameEntry: A source filename or a target name, indexed
- FileItem: Scanned file information
- ScoreMatrix: Pairwise similarity scores
- Assignment: Resolved source -> target pairing
- Diagnostic / ValidatedAssignment: Conflict detection output
- RenameOp / RenamePlan: Ordered filesystem operations
- PlanPreview: Everything shown to the user before execution
- OpOutcome / RollbackStep / PlanResult: Execution report
- MatchOptions: Matching and planning options
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional, List, Dict, Tuple, FrozenSet, Sequence
from enum import Enum
import platform

from .errors import InputError, RollbackError, FilesystemError


class SearchAlgorithm(Enum):
    """Similarity metric enumeration"""
    JARO = "jaro"
    JARO_WINKLER = "jaro_winkler"
    LEVENSHTEIN = "levenshtein"
    DAMERAU_LEVENSHTEIN = "damerau_levenshtein"


class DiagnosticKind(Enum):
    """Kinds of findings reported by the conflict detector"""
    UNMAPPED_SOURCE = "unmapped_source"              # No target above threshold
    UNMAPPED_TARGET = "unmapped_target"              # Target never chosen
    DESTINATION_COLLISION = "destination_collision"  # Two pairs, same destination
    NO_OP_RENAME = "no_op_rename"                    # Source already has the name
    INVALID_NAME = "invalid_name"                    # New filename is not valid
    DESTINATION_OCCUPIED = "destination_occupied"    # A staying file holds the name


FATAL_KINDS = frozenset({
    DiagnosticKind.DESTINATION_COLLISION,
    DiagnosticKind.INVALID_NAME,
    DiagnosticKind.DESTINATION_OCCUPIED,
})


class OpKind(Enum):
    """Rename operation kind"""
    DIRECT = "direct"          # src -> final destination
    TO_TEMP = "to_temp"        # src -> temporary name
    FROM_TEMP = "from_temp"    # temporary name -> final destination


class OpStatus(Enum):
    """Outcome of a single operation"""
    SUCCESS = "success"
    FAILED = "failed"
    SKIPPED = "skipped"        # Not attempted because the run stopped earlier


class PlanStatus(Enum):
    """Overall outcome of an executed plan"""
    COMPLETED = "completed"
    ROLLED_BACK = "rolled_back"
    PARTIALLY_FAILED = "partially_failed"


@dataclass(frozen=True)
class NameEntry:
    """A source filename or target name with its stable index"""
    index: int                      # Position in the input list
    text: str                       # Filename or resolved target name
    path: Optional[Path] = None     # Absolute path (sources only)


@dataclass
class FileItem:
    """File information data class"""
    path: Path                      # Full path
    name: str                       # Filename (with suffix)
    stem: str                       # Filename (without suffix)
    suffix: str                     # Suffix (e.g., .png)
    size: int                       # File size (bytes)
    mtime: float                    # Modification time (timestamp)
    ctime: float                    # Creation/change time (timestamp)

    @classmethod
    def from_path(cls, p: Path) -> "FileItem":
        """Create FileItem from Path object"""
        stat = p.stat()
        return cls(
            path=p,
            name=p.name,
            stem=p.stem,
            suffix=p.suffix,
            size=stat.st_size,
            mtime=stat.st_mtime,
            ctime=stat.st_ctime,
        )


class SortKey(Enum):
    """Sort key enumeration"""
    NAME = "name"        # Filename
    MTIME = "mtime"      # Modification time
    SIZE = "size"        # File size


@dataclass(frozen=True)
class ScoreMatrix:
    """
    Dense, read-only similarity matrix

    rows[s][t] is the score of source s against target t. Rows are any float
    sequence (build_score_matrix stores compact array('d') rows).
    """
    rows: Tuple[Sequence[float], ...]
    target_count: int

    @property
    def source_count(self) -> int:
        return len(self.rows)

    def get(self, source_index: int, target_index: int) -> float:
        return self.rows[source_index][target_index]

    def row(self, source_index: int) -> Sequence[float]:
        return self.rows[source_index]

    def ranked_targets(self, source_index: int, min_score: float = 0.0) -> List[int]:
        """Target indices scoring at least min_score, best first, ties by target index"""
        row = self.row(source_index)
        # Stable sort: reverse=True keeps equal scores in target order
        ranked = sorted(range(len(row)), key=row.__getitem__, reverse=True)
        end = len(ranked)
        while end and row[ranked[end - 1]] < min_score:
            end -= 1
        return ranked[:end]

    def top_choices(self, source_index: int, limit: int = 10) -> List[Tuple[int, float]]:
        """
        Best candidate targets of one source

        Args:
            source_index: Source row
            limit: Maximum number of candidates

        Returns:
            [(target_index, score), ...] best first, ties by target index
        """
        row = self.row(source_index)
        return [(t, row[t]) for t in self.ranked_targets(source_index)[:limit]]


@dataclass(frozen=True)
class Assignment:
    """Resolved pairing of source indices to target indices"""
    mapping: Dict[int, int] = field(default_factory=dict)
    scores: Dict[int, float] = field(default_factory=dict)   # source_index -> score
    pinned: FrozenSet[int] = frozenset()                     # Sources set by override
    declined: FrozenSet[int] = frozenset()                   # Sources set to "no match" by override
    allow_many_to_one: bool = False

    def __len__(self) -> int:
        return len(self.mapping)

    def target_of(self, source_index: int) -> Optional[int]:
        return self.mapping.get(source_index)

    def items(self) -> List[Tuple[int, int]]:
        return sorted(self.mapping.items())

    def is_bijective(self) -> bool:
        """Whether no target index is used twice"""
        values = list(self.mapping.values())
        return len(values) == len(set(values))


@dataclass(frozen=True)
class Diagnostic:
    """A finding about the assignment"""
    kind: DiagnosticKind
    message: str
    source_index: Optional[int] = None
    target_index: Optional[int] = None
    path: Optional[Path] = None

    @property
    def fatal(self) -> bool:
        """Whether the affected pair is excluded from the plan"""
        return self.kind in FATAL_KINDS


@dataclass(frozen=True)
class MappedPair:
    """A source matched to a target, with its resolved destination"""
    source: NameEntry
    target: NameEntry
    dest: Path
    score: Optional[float] = None   # None for manual choices


@dataclass(frozen=True)
class ValidatedAssignment:
    """Pairs that passed conflict detection, plus everything found on the way"""
    pairs: Tuple[MappedPair, ...] = ()
    excluded: Tuple[MappedPair, ...] = ()          # Dropped by a fatal diagnostic
    unchanged: Tuple[MappedPair, ...] = ()         # Already carry their new name
    diagnostics: Tuple[Diagnostic, ...] = ()
    case_insensitive: bool = False
    occupied_names: FrozenSet[str] = frozenset()   # Every name seen in the batch directories

    def diagnostics_of(self, kind: DiagnosticKind) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.kind == kind]

    @property
    def fatal_diagnostics(self) -> List[Diagnostic]:
        return [d for d in self.diagnostics if d.fatal]


@dataclass(frozen=True)
class RenameOp:
    """Single rename operation"""
    src: Path                       # Source path
    dst: Path                       # Destination path
    kind: OpKind = OpKind.DIRECT
    source_index: Optional[int] = None
    note: str = ""

    @property
    def is_case_only_change(self) -> bool:
        """Whether it's only a case change"""
        return (self.src.parent == self.dst.parent and
                self.src.name.lower() == self.dst.name.lower() and
                self.src.name != self.dst.name)


@dataclass(frozen=True)
class RenamePlan:
    """Ordered sequence of rename operations"""
    ops: Tuple[RenameOp, ...] = ()
    validated: ValidatedAssignment = field(default_factory=ValidatedAssignment)

    def __len__(self) -> int:
        return len(self.ops)

    @property
    def total_count(self) -> int:
        """Number of files renamed"""
        return sum(1 for op in self.ops if op.kind != OpKind.TO_TEMP)

    @property
    def temp_ops(self) -> List[RenameOp]:
        """Operations parking a cycle member under a temporary name"""
        return [op for op in self.ops if op.kind == OpKind.TO_TEMP]

    @property
    def direct_ops(self) -> List[RenameOp]:
        return [op for op in self.ops if op.kind == OpKind.DIRECT]

    def final_mapping(self) -> Dict[Path, Path]:
        """Intended original path -> final path of every renamed file"""
        return {pair.source.path: pair.dest for pair in self.validated.pairs}

    def summary(self) -> str:
        """Generate summary"""
        lines = [
            f"Rename Plan Summary:",
            f"  - Files to rename: {self.total_count}",
            f"  - Operations: {len(self.ops)}",
            f"  - Temp-stage operations: {len(self.temp_ops)}",
            f"  - Excluded pairs: {len(self.validated.excluded)}",
        ]
        return "\n".join(lines)


@dataclass(frozen=True)
class PlanPreview:
    """Result of the planning pipeline, shown for review before execution"""
    sources: Tuple[NameEntry, ...]
    targets: Tuple[NameEntry, ...]
    matrix: ScoreMatrix
    assignment: Assignment
    validated: ValidatedAssignment
    plan: RenamePlan

    @property
    def diagnostics(self) -> Tuple[Diagnostic, ...]:
        return self.validated.diagnostics

    @property
    def excluded(self) -> Tuple[MappedPair, ...]:
        return self.validated.excluded

    @property
    def has_exclusions(self) -> bool:
        return bool(self.validated.excluded)

    def rows(self) -> List[Tuple[NameEntry, Optional[NameEntry], Optional[float], str, str]]:
        """
        One display row per source

        Returns:
            [(source, target or None, score or None, new name, status), ...]
        """
        accepted = {p.source.index: p for p in self.validated.pairs}
        excluded = {p.source.index: p for p in self.validated.excluded + self.validated.unchanged}
        reasons: Dict[int, str] = {}
        for d in self.validated.diagnostics:
            if d.source_index is not None and d.source_index not in reasons:
                reasons[d.source_index] = d.kind.value

        rows = []
        for source in self.sources:
            pair = accepted.get(source.index) or excluded.get(source.index)
            if pair is None:
                rows.append((source, None, None, "", reasons.get(source.index, "unmapped_source")))
            elif source.index in accepted:
                rows.append((source, pair.target, pair.score, pair.dest.name, "rename"))
            else:
                rows.append((source, pair.target, pair.score, pair.dest.name,
                             reasons.get(source.index, "excluded")))
        return rows


@dataclass(frozen=True)
class OpOutcome:
    """Outcome of one executed operation"""
    op: RenameOp
    status: OpStatus
    reason: Optional[str] = None


@dataclass(frozen=True)
class RollbackStep:
    """Reversal of one completed operation"""
    op: RenameOp
    ok: bool
    reason: Optional[str] = None


@dataclass
class PlanResult:
    """Rename execution result"""
    outcomes: List[OpOutcome] = field(default_factory=list)
    rollback: List[RollbackStep] = field(default_factory=list)
    status: PlanStatus = PlanStatus.COMPLETED
    cancelled: bool = False
    dry_run: bool = False

    @property
    def succeeded(self) -> List[RenameOp]:
        return [o.op for o in self.outcomes if o.status == OpStatus.SUCCESS]

    @property
    def failed(self) -> List[OpOutcome]:
        return [o for o in self.outcomes if o.status == OpStatus.FAILED]

    @property
    def skipped(self) -> List[RenameOp]:
        return [o.op for o in self.outcomes if o.status == OpStatus.SKIPPED]

    @property
    def rollback_failures(self) -> List[RollbackStep]:
        return [step for step in self.rollback if not step.ok]

    @property
    def needs_manual_cleanup(self) -> bool:
        return self.status == PlanStatus.PARTIALLY_FAILED

    def raise_for_status(self) -> None:
        """Raise if the plan did not complete"""
        if self.status == PlanStatus.PARTIALLY_FAILED:
            details = "; ".join(f"{s.op.dst} -> {s.op.src}: {s.reason}" for s in self.rollback_failures)
            raise RollbackError(f"Rollback incomplete, manual cleanup needed: {details}")
        if self.status == PlanStatus.ROLLED_BACK:
            if self.cancelled:
                raise FilesystemError("Execution cancelled, completed operations were rolled back")
            reason = self.failed[0].reason if self.failed else "unknown error"
            raise FilesystemError(f"Execution failed and was rolled back: {reason}")

    def summary(self) -> str:
        """Generate summary"""
        lines = [
            f"Execution Result: {self.status.value}{' (dry run)' if self.dry_run else ''}",
            f"  - Success: {len(self.succeeded)}",
            f"  - Failed: {len(self.failed)}",
            f"  - Skipped: {len(self.skipped)}",
        ]
        if self.cancelled:
            lines.append("  - Cancelled by user")
        if self.failed:
            lines.append("Failure Details:")
            for outcome in self.failed:
                lines.append(f"  - {outcome.op.src.name} -> {outcome.op.dst.name}: {outcome.reason}")
        if self.rollback:
            lines.append(f"Rollback: {len(self.rollback) - len(self.rollback_failures)}/{len(self.rollback)} restored")
            for step in self.rollback_failures:
                lines.append(f"  - could not restore {step.op.dst} -> {step.op.src}: {step.reason}")
        if self.needs_manual_cleanup:
            lines.append("Manual cleanup required!")
        return "\n".join(lines)


@dataclass(frozen=True)
class MatchOptions:
    """Matching and planning options"""
    min_score: float = 0.0
    case_sensitive: bool = True
    allow_many_to_one: bool = False
    algorithm: SearchAlgorithm = SearchAlgorithm.LEVENSHTEIN

    # New name building
    keep_extension: bool = False    # Keep the target's own extension before the source's
    match_stems: bool = False       # Compare stems instead of current name vs new name

    # Case-insensitive path detection (Windows/macOS default to insensitive)
    case_insensitive_detect: bool = field(default_factory=lambda: is_case_insensitive_fs())

    # Scanning
    include_hidden: bool = False

    # Candidates listed per source
    choice_preview_count: int = 10

    def __post_init__(self):
        problems = []
        if not 0.0 <= self.min_score <= 1.0:
            problems.append(f"min_score must be within [0, 1], got {self.min_score}")
        if self.choice_preview_count < 1:
            problems.append(f"choice_preview_count must be positive, got {self.choice_preview_count}")
        if problems:
            raise InputError(problems)


def is_case_insensitive_fs() -> bool:
    """Detect if current filesystem is case-insensitive"""
    return platform.system() in ("Windows", "Darwin")


def normalize_for_comparison(name: str, case_insensitive: bool) -> str:
    """Normalize filename for comparison"""
    if case_insensitive:
        return name.casefold()
    return name
