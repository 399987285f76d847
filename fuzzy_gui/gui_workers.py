"""
gui_workers.py - GUI Worker Threads

Provides background execution of long tasks to avoid blocking UI
"""

from pathlib import Path
from typing import Dict, Optional, Sequence

from PySide6.QtCore import QThread, Signal, QObject

from fuzzy_core import (
    plan_fuzzy_rename, execute_rename, snapshot_existing_names,
    MatchOptions, NameEntry, RenamePlan, InputError, get_logger
)

logger = get_logger(__name__)


class PlanWorker(QThread):
    """Matching and plan generation worker thread"""

    # Signals
    progress = Signal(str)              # Progress message
    finished = Signal(object)           # PlanPreview
    error = Signal(str)                 # Error message

    def __init__(
        self,
        sources: Sequence[NameEntry],
        targets: Sequence[NameEntry],
        options: MatchOptions,
        overrides: Optional[Dict[int, Optional[int]]] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.sources = tuple(sources)
        self.targets = tuple(targets)
        self.options = options
        self.overrides = dict(overrides or {})

    def run(self):
        try:
            self.progress.emit("Generating rename plan...")
            preview = plan_fuzzy_rename(
                self.sources,
                self.targets,
                self.options,
                overrides=self.overrides,
                existing_names=snapshot_existing_names(self.sources),
            )
            self.finished.emit(preview)
        except InputError as e:
            self.error.emit("\n".join(e.problems))
        except Exception as e:
            logger.exception("Plan generation failed")
            self.error.emit(str(e))


class RenameWorker(QThread):
    """Rename execution worker thread"""

    # Signals
    progress = Signal(int, int, str)    # current, total, message
    finished = Signal(object)           # PlanResult
    error = Signal(str)                 # Error message

    def __init__(
        self,
        plan: RenamePlan,
        dry_run: bool = False,
        log_dir: Optional[Path] = None,
        parent: Optional[QObject] = None
    ):
        super().__init__(parent)
        self.plan = plan
        self.dry_run = dry_run
        self.log_dir = log_dir
        self._cancelled = False

    def cancel(self):
        """Request cancellation; completed operations are rolled back"""
        self._cancelled = True

    def run(self):
        try:
            def progress_callback(current: int, total: int, msg: str):
                self.progress.emit(current, total, msg)

            result = execute_rename(
                self.plan,
                dry_run=self.dry_run,
                progress_callback=progress_callback,
                cancel_check=lambda: self._cancelled,
                log_dir=self.log_dir,
            )

            self.finished.emit(result)
        except Exception as e:
            logger.exception("Execution failed")
            self.error.emit(str(e))
