"""
exec_rename.py - Rename Execution Module

Responsibilities:
- Precondition check before touching the disk
- Strictly ordered execution with rollback on failure or cancellation
- dry_run support
- JSON execution logs and recovery of leftover temporary files
"""

from pathlib import Path
from typing import Callable, List, Optional, Set
from datetime import datetime
import errno
import json
import os

from .errors import PlanPreconditionError
from .models_fs import (
    OpKind, OpOutcome, OpStatus, PlanResult, PlanStatus, RenameOp, RenamePlan, RollbackStep
)
from .plan_rename import is_temp_name, original_name_of_temp
from .safety_checks import check_rename_op, path_key
from .logger_helper import get_logger

logger = get_logger(__name__)


def _exists(path: Path) -> bool:
    return os.path.lexists(path)


def _same_file(a: Path, b: Path) -> bool:
    """Whether two existing paths name the same file (case-only rename on a case-insensitive fs)"""
    try:
        return os.path.samefile(a, b)
    except OSError:
        return False


def check_plan(plan: RenamePlan) -> List[str]:
    """
    Check the plan against the disk without changing anything

    Every source must exist, temporary names must be free, and every final
    destination must be free, be freed earlier in the plan, or be the op's
    own file.

    Args:
        plan: Rename plan

    Returns:
        Problem list (empty if the plan can run)
    """
    problems: List[str] = []
    ci = plan.validated.case_insensitive
    vacated: Set[str] = set()

    for op in plan.ops:
        if op.kind in (OpKind.DIRECT, OpKind.TO_TEMP):
            ok, error = check_rename_op(op.src, op.dst)
            if not ok:
                problems.append(error)

        if op.kind == OpKind.TO_TEMP:
            if _exists(op.dst):
                problems.append(f"Temporary name already exists: {op.dst}")
        elif _exists(op.dst):
            freed = path_key(op.dst, ci) in vacated
            own = op.kind == OpKind.DIRECT and _same_file(op.src, op.dst)
            if not (freed or own):
                problems.append(f"Destination already exists: {op.dst}")

        vacated.add(path_key(op.src, ci))

    return problems


def _rename(op: RenameOp) -> None:
    """Rename one file, refusing to replace another file"""
    if _exists(op.dst) and not _same_file(op.src, op.dst):
        raise FileExistsError(errno.EEXIST, "Destination already exists", str(op.dst))
    os.rename(op.src, op.dst)


def _undo(op: RenameOp) -> RollbackStep:
    """Move a completed operation's file back to its original path"""
    try:
        if _exists(op.src) and not _same_file(op.dst, op.src):
            raise FileExistsError(errno.EEXIST, "Original path is occupied", str(op.src))
        os.rename(op.dst, op.src)
        logger.debug("Rolled back %s -> %s", op.dst, op.src)
        return RollbackStep(op, ok=True)
    except OSError as e:
        logger.error("Rollback failed for %s -> %s: %s", op.dst, op.src, e)
        return RollbackStep(op, ok=False, reason=str(e))


def execute_rename(
    plan: RenamePlan,
    dry_run: bool = False,
    progress_callback: Optional[Callable[[int, int, str], None]] = None,
    cancel_check: Optional[Callable[[], bool]] = None,
    log_dir: Optional[Path] = None
) -> PlanResult:
    """
    Execute rename plan in order

    Stops at the first failed operation (or when cancel_check returns True)
    and moves every completed operation back, last first.

    Args:
        plan: Rename plan
        dry_run: Whether to preview only
        progress_callback: Progress callback (current, total, message)
        cancel_check: Polled before each operation; True requests cancellation
        log_dir: Log directory (for saving execution logs)

    Returns:
        Execution result

    Raises:
        PlanPreconditionError: The disk does not match the plan (nothing touched)
    """
    result = PlanResult(dry_run=dry_run)
    ops = list(plan.ops)
    total = len(ops)

    if total == 0:
        return result

    problems = check_plan(plan)
    if problems:
        for problem in problems:
            logger.error("Precondition failed: %s", problem)
        raise PlanPreconditionError(problems)

    if dry_run:
        # Preview mode only
        for i, op in enumerate(ops):
            if progress_callback:
                progress_callback(i + 1, total, f"[Preview] {op.src.name} -> {op.dst.name}")
            result.outcomes.append(OpOutcome(op, OpStatus.SUCCESS))
        return result

    # Save execution plan log
    if log_dir:
        save_plan_log(plan, log_dir)

    completed: List[RenameOp] = []
    stopped_at: Optional[int] = None

    try:
        for i, op in enumerate(ops):
            if cancel_check and cancel_check():
                logger.warning("Cancelled before operation %d of %d", i + 1, total)
                result.cancelled = True
                stopped_at = i
                break

            if progress_callback:
                progress_callback(i + 1, total, f"[{op.kind.value}] {op.src.name} -> {op.dst.name}")

            try:
                _rename(op)
            except OSError as e:
                logger.warning("Operation %d of %d failed (%s -> %s): %s", i + 1, total, op.src, op.dst, e)
                result.outcomes.append(OpOutcome(op, OpStatus.FAILED, reason=str(e)))
                stopped_at = i + 1
                break

            logger.debug("Renamed %s -> %s", op.src, op.dst)
            result.outcomes.append(OpOutcome(op, OpStatus.SUCCESS))
            completed.append(op)
    except KeyboardInterrupt:
        logger.warning("Interrupted after %d of %d operations", len(completed), total)
        result.cancelled = True
        stopped_at = len(result.outcomes)

    if stopped_at is not None:
        for op in ops[stopped_at:]:
            result.outcomes.append(OpOutcome(op, OpStatus.SKIPPED))

        for op in reversed(completed):
            result.rollback.append(_undo(op))

        if result.rollback_failures:
            result.status = PlanStatus.PARTIALLY_FAILED
            logger.error("%d operations could not be rolled back", len(result.rollback_failures))
        else:
            result.status = PlanStatus.ROLLED_BACK

    # Save execution result log; the renames have already happened
    if log_dir:
        try:
            save_result_log(result, log_dir)
        except OSError as e:
            logger.error("Could not write result log to %s: %s", log_dir, e)

    return result


def save_plan_log(plan: RenamePlan, log_dir: Path) -> Path:
    """Save execution plan log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    log_file = log_dir / f"rename_plan_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "total_ops": len(plan.ops),
        "operations": [
            {
                "src": str(op.src),
                "dst": str(op.dst),
                "kind": op.kind.value,
                "note": op.note
            }
            for op in plan.ops
        ],
        "excluded": [
            {"src": str(pair.source.path), "dst": str(pair.dest)}
            for pair in plan.validated.excluded
        ],
        "diagnostics": [
            {"kind": d.kind.value, "message": d.message}
            for d in plan.validated.diagnostics
        ]
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def save_result_log(result: PlanResult, log_dir: Path) -> Path:
    """Save execution result log"""
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y%m%d_%H%M%S_%f")
    log_file = log_dir / f"rename_result_{timestamp}.json"

    data = {
        "timestamp": timestamp,
        "status": result.status.value,
        "cancelled": result.cancelled,
        "outcomes": [
            {"src": str(o.op.src), "dst": str(o.op.dst), "status": o.status.value, "reason": o.reason}
            for o in result.outcomes
        ],
        "rollback": [
            {"src": str(step.op.dst), "dst": str(step.op.src), "ok": step.ok, "reason": step.reason}
            for step in result.rollback
        ]
    }

    with open(log_file, 'w', encoding='utf-8') as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return log_file


def cleanup_temp_files(directory: Path) -> int:
    """
    Restore temporary files left in the directory (for exception recovery)

    Args:
        directory: Directory

    Returns:
        Number of restored files
    """
    count = 0
    for item in sorted(Path(directory).iterdir()):
        if not (item.is_file() and is_temp_name(item.name)):
            continue
        original_name = original_name_of_temp(item.name)
        if original_name is None:
            continue
        original_path = item.parent / original_name
        if _exists(original_path):
            logger.warning("Cannot restore %s: %s already exists", item.name, original_name)
            continue
        try:
            os.rename(item, original_path)
            count += 1
        except OSError as e:
            logger.warning("Cannot restore %s: %s", item.name, e)
    return count
