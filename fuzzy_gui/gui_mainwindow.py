"""
gui_mainwindow.py - GUI Main Window

Single tab: fuzzy match a folder of files against target names, review the
pairs, then rename
"""

from pathlib import Path
from typing import Dict, List, Optional

from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QLineEdit, QPushButton, QCheckBox, QComboBox, QDoubleSpinBox,
    QSpinBox, QTableWidget, QTableWidgetItem, QPlainTextEdit, QProgressBar,
    QFileDialog, QMessageBox, QHeaderView, QGroupBox, QSplitter, QMenu
)
from PySide6.QtCore import Qt, Slot
from PySide6.QtGui import QColor

from fuzzy_core import (
    scan_directory, make_source_entries, make_target_entries, load_target_names,
    target_names_from_directory, expand_template,
    MatchOptions, SearchAlgorithm, NameEntry, PlanPreview, PlanResult, PlanStatus,
    InputError
)
from .gui_workers import PlanWorker, RenameWorker

ALGORITHM_LABELS = [
    ("Levenshtein", SearchAlgorithm.LEVENSHTEIN),
    ("Damerau Levenshtein", SearchAlgorithm.DAMERAU_LEVENSHTEIN),
    ("Jaro", SearchAlgorithm.JARO),
    ("Jaro Winkler", SearchAlgorithm.JARO_WINKLER),
]

STATUS_COLORS = {
    "rename": QColor(0, 150, 0),
    "no_op_rename": QColor(150, 150, 150),
    "unmapped_source": QColor(150, 150, 150),
}
EXCLUDED_COLOR = QColor(200, 60, 0)


class FuzzyRenameTab(QWidget):
    """Fuzzy Match Rename Tab"""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.sources: List[NameEntry] = []
        self.preview: Optional[PlanPreview] = None
        self.overrides: Dict[int, Optional[int]] = {}
        self.plan_worker: Optional[PlanWorker] = None
        self.rename_worker: Optional[RenameWorker] = None

        self._init_ui()

    def _init_ui(self):
        layout = QVBoxLayout(self)

        # Sources group
        source_group = QGroupBox("Files to Rename")
        source_layout = QGridLayout(source_group)

        source_layout.addWidget(QLabel("Directory:"), 0, 0)
        self.dir_edit = QLineEdit()
        self.dir_edit.setPlaceholderText("Select the folder of the files to rename...")
        source_layout.addWidget(self.dir_edit, 0, 1)
        self.browse_btn = QPushButton("Browse...")
        self.browse_btn.clicked.connect(self._browse_directory)
        source_layout.addWidget(self.browse_btn, 0, 2)

        source_layout.addWidget(QLabel("Suffix Filter:"), 1, 0)
        self.suffix_edit = QLineEdit()
        self.suffix_edit.setPlaceholderText("e.g., .jpg (leave empty for all files)")
        source_layout.addWidget(self.suffix_edit, 1, 1)
        self.hidden_check = QCheckBox("Include Hidden Files")
        source_layout.addWidget(self.hidden_check, 1, 2)

        # Targets group
        target_group = QGroupBox("Target Names (one per line)")
        target_layout = QVBoxLayout(target_group)
        self.targets_edit = QPlainTextEdit()
        target_layout.addWidget(self.targets_edit)

        target_buttons = QHBoxLayout()
        self.load_file_btn = QPushButton("Load File...")
        self.load_file_btn.clicked.connect(self._load_targets_file)
        target_buttons.addWidget(self.load_file_btn)
        self.load_dir_btn = QPushButton("From Folder...")
        self.load_dir_btn.clicked.connect(self._load_targets_folder)
        target_buttons.addWidget(self.load_dir_btn)
        self.template_edit = QLineEdit()
        self.template_edit.setPlaceholderText("Template, e.g., vacation_{n}")
        target_buttons.addWidget(self.template_edit, 1)
        self.padding_spin = QSpinBox()
        self.padding_spin.setRange(0, 10)
        self.padding_spin.setSpecialValueText("No Padding")
        target_buttons.addWidget(self.padding_spin)
        self.template_btn = QPushButton("Generate")
        self.template_btn.clicked.connect(self._generate_targets)
        target_buttons.addWidget(self.template_btn)
        target_layout.addLayout(target_buttons)

        # Options group
        options_group = QGroupBox("Matching Options")
        options_layout = QGridLayout(options_group)

        options_layout.addWidget(QLabel("Algorithm:"), 0, 0)
        self.algorithm_combo = QComboBox()
        self.algorithm_combo.addItems([label for label, _ in ALGORITHM_LABELS])
        options_layout.addWidget(self.algorithm_combo, 0, 1)

        options_layout.addWidget(QLabel("Similarity Threshold:"), 0, 2)
        self.threshold_spin = QDoubleSpinBox()
        self.threshold_spin.setRange(0.0, 1.0)
        self.threshold_spin.setSingleStep(0.05)
        self.threshold_spin.setDecimals(2)
        options_layout.addWidget(self.threshold_spin, 0, 3)

        self.ignore_case_check = QCheckBox("Ignore Case")
        self.many_check = QCheckBox("Several Files per Target")
        self.keep_ext_check = QCheckBox("Keep Target Extension")
        self.stems_check = QCheckBox("Compare Without Extensions")
        options_layout.addWidget(self.ignore_case_check, 1, 0)
        options_layout.addWidget(self.many_check, 1, 1)
        options_layout.addWidget(self.keep_ext_check, 1, 2)
        options_layout.addWidget(self.stems_check, 1, 3)

        self.preview_btn = QPushButton("Preview")
        self.preview_btn.clicked.connect(self._do_preview)
        options_layout.addWidget(self.preview_btn, 2, 0, 1, 4)

        top = QWidget()
        top_layout = QHBoxLayout(top)
        top_layout.setContentsMargins(0, 0, 0, 0)
        left = QVBoxLayout()
        left.addWidget(source_group)
        left.addWidget(options_group)
        top_layout.addLayout(left, 1)
        top_layout.addWidget(target_group, 1)

        # Results table
        self.table = QTableWidget()
        self.table.setColumnCount(5)
        self.table.setHorizontalHeaderLabels(["Source Name", "Similarity", "Closest Match", "New Name", "Status"])
        header = self.table.horizontalHeader()
        header.setSectionResizeMode(0, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(1, QHeaderView.ResizeMode.ResizeToContents)
        header.setSectionResizeMode(2, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(3, QHeaderView.ResizeMode.Stretch)
        header.setSectionResizeMode(4, QHeaderView.ResizeMode.ResizeToContents)
        self.table.setSelectionBehavior(QTableWidget.SelectionBehavior.SelectRows)
        self.table.setContextMenuPolicy(Qt.ContextMenuPolicy.CustomContextMenu)
        self.table.customContextMenuRequested.connect(self._show_choice_menu)

        self.diagnostics_view = QPlainTextEdit()
        self.diagnostics_view.setReadOnly(True)
        self.diagnostics_view.setPlaceholderText("Diagnostics")

        splitter = QSplitter(Qt.Orientation.Vertical)
        splitter.addWidget(top)
        splitter.addWidget(self.table)
        splitter.addWidget(self.diagnostics_view)
        splitter.setStretchFactor(1, 3)
        layout.addWidget(splitter, 1)

        # Progress and execution
        bottom_layout = QHBoxLayout()

        self.progress_bar = QProgressBar()
        self.progress_bar.setVisible(False)
        bottom_layout.addWidget(self.progress_bar, 1)

        self.cancel_btn = QPushButton("Cancel")
        self.cancel_btn.clicked.connect(self._do_cancel)
        self.cancel_btn.setVisible(False)
        bottom_layout.addWidget(self.cancel_btn)

        self.execute_btn = QPushButton("Execute Rename")
        self.execute_btn.clicked.connect(self._do_execute)
        self.execute_btn.setEnabled(False)
        self.execute_btn.setStyleSheet("QPushButton { background-color: #4CAF50; color: white; font-weight: bold; padding: 8px 16px; }")
        bottom_layout.addWidget(self.execute_btn)

        layout.addLayout(bottom_layout)

        # Status label
        self.status_label = QLabel("")
        layout.addWidget(self.status_label)

    def _browse_directory(self):
        """Browse and select directory"""
        directory = QFileDialog.getExistingDirectory(self, "Select Directory")
        if directory:
            self.dir_edit.setText(directory)

    def _load_targets_file(self):
        """Fill target names from a text file"""
        file_path, _ = QFileDialog.getOpenFileName(self, "Select Target List", "", "Text Files (*.txt);;All Files (*)")
        if not file_path:
            return
        try:
            names = load_target_names(Path(file_path))
        except (InputError, OSError, UnicodeDecodeError) as e:
            QMessageBox.warning(self, "Warning", f"Cannot read target list: {e}")
            return
        self.targets_edit.setPlainText("\n".join(names))

    def _load_targets_folder(self):
        """Fill target names from the filenames of a reference folder"""
        directory = QFileDialog.getExistingDirectory(self, "Select Reference Folder")
        if not directory:
            return
        try:
            names = target_names_from_directory(Path(directory), include_hidden=self.hidden_check.isChecked())
        except InputError as e:
            QMessageBox.warning(self, "Warning", str(e))
            return
        self.targets_edit.setPlainText("\n".join(names))

    def _generate_targets(self):
        """Fill target names from the numbering template"""
        template = self.template_edit.text().strip()
        if not template:
            QMessageBox.warning(self, "Warning", "Please enter a template first")
            return
        count = len(self._scan_sources() or [])
        if count == 0:
            return
        names = expand_template(template, count, padding=self.padding_spin.value())
        self.targets_edit.setPlainText("\n".join(names))

    def _scan_sources(self) -> Optional[List[NameEntry]]:
        """Scan the source directory"""
        directory = self.dir_edit.text().strip()
        if not directory:
            QMessageBox.warning(self, "Warning", "Please select a directory first")
            return None

        try:
            files = scan_directory(
                Path(directory),
                suffix_filter=self.suffix_edit.text().strip() or None,
                include_hidden=self.hidden_check.isChecked(),
            )
        except InputError as e:
            QMessageBox.warning(self, "Warning", str(e))
            return None

        if not files:
            self.status_label.setText("No files found")
            return None
        return list(make_source_entries(f.path for f in files))

    def _options(self) -> MatchOptions:
        return MatchOptions(
            min_score=self.threshold_spin.value(),
            case_sensitive=not self.ignore_case_check.isChecked(),
            allow_many_to_one=self.many_check.isChecked(),
            algorithm=ALGORITHM_LABELS[self.algorithm_combo.currentIndex()][1],
            keep_extension=self.keep_ext_check.isChecked(),
            match_stems=self.stems_check.isChecked(),
            include_hidden=self.hidden_check.isChecked(),
        )

    def _do_preview(self, keep_overrides: bool = False):
        """Generate preview"""
        sources = self._scan_sources()
        if not sources:
            return

        names = [line.strip() for line in self.targets_edit.toPlainText().splitlines() if line.strip()]
        if not names:
            QMessageBox.warning(self, "Warning", "Please enter target names")
            return

        if not keep_overrides or [s.path for s in sources] != [s.path for s in self.sources]:
            self.overrides = {}
        self.sources = sources

        self.preview_btn.setEnabled(False)
        self.preview_btn.setText("Generating...")
        self.execute_btn.setEnabled(False)

        # Start plan generation thread
        self.plan_worker = PlanWorker(
            sources,
            make_target_entries(names),
            self._options(),
            overrides=self.overrides,
        )
        self.plan_worker.finished.connect(self._on_plan_finished)
        self.plan_worker.error.connect(self._on_plan_error)
        self.plan_worker.start()

    @Slot(object)
    def _on_plan_finished(self, preview: PlanPreview):
        """Plan generation complete"""
        self.preview = preview
        self.preview_btn.setEnabled(True)
        self.preview_btn.setText("Preview")

        self._update_table_preview()
        self._update_diagnostics()

        plan = preview.plan
        if plan.ops:
            self.execute_btn.setEnabled(True)
            self.status_label.setText(
                f"Will rename {plan.total_count} files "
                f"(excluded: {len(preview.excluded)}, temp-stage operations: {len(plan.temp_ops)})"
            )
        else:
            self.status_label.setText("No files need renaming")

    @Slot(str)
    def _on_plan_error(self, error: str):
        """Plan generation error"""
        self.preview_btn.setEnabled(True)
        self.preview_btn.setText("Preview")
        QMessageBox.critical(self, "Error", f"Failed to generate preview:\n{error}")

    def _update_table_preview(self):
        """Update table to display preview results"""
        if not self.preview:
            return

        rows = self.preview.rows()
        self.table.setRowCount(len(rows))
        for i, (source, target, value, new_name, status) in enumerate(rows):
            self.table.setItem(i, 0, QTableWidgetItem(source.text))
            if target is None:
                similarity = ""
            elif value is None:
                similarity = "Manual"
            else:
                similarity = f"{100.0 * value:.0f}%"
            self.table.setItem(i, 1, QTableWidgetItem(similarity))
            self.table.setItem(i, 2, QTableWidgetItem(target.text if target else ""))
            self.table.setItem(i, 3, QTableWidgetItem(new_name))

            status_item = QTableWidgetItem(status.replace("_", " ").title())
            status_item.setForeground(STATUS_COLORS.get(status, EXCLUDED_COLOR))
            self.table.setItem(i, 4, status_item)

    def _update_diagnostics(self):
        """List every diagnostic of the preview"""
        if not self.preview:
            self.diagnostics_view.clear()
            return
        lines = [f"[{d.kind.value}] {d.message}" for d in self.preview.diagnostics]
        self.diagnostics_view.setPlainText("\n".join(lines))

    def _show_choice_menu(self, pos):
        """Pick a different match for one source"""
        if not self.preview:
            return
        row = self.table.rowAt(pos.y())
        if row < 0 or row >= len(self.preview.sources):
            return
        source = self.preview.sources[row]

        menu = QMenu(self)
        if source.index in self.overrides:
            action = menu.addAction("Restore default")
            action.triggered.connect(lambda: self._set_override(source.index, None, clear=True))
            menu.addSeparator()

        count = self._options().choice_preview_count
        for t, value in self.preview.matrix.top_choices(source.index, count):
            action = menu.addAction(f"[{100.0 * value:.2f}%] {self.preview.targets[t].text}")
            action.triggered.connect(lambda checked=False, t=t: self._set_override(source.index, t))
        action = menu.addAction("[No match]")
        action.triggered.connect(lambda: self._set_override(source.index, None))

        menu.exec(self.table.viewport().mapToGlobal(pos))

    def _set_override(self, source_index: int, target_index: Optional[int], clear: bool = False):
        """Store a manual choice and regenerate the preview"""
        if clear:
            self.overrides.pop(source_index, None)
        else:
            self.overrides[source_index] = target_index
        self._do_preview(keep_overrides=True)

    def _do_execute(self):
        """Execute rename"""
        if not self.preview or not self.preview.plan.ops:
            return
        plan = self.preview.plan

        message = f"Are you sure you want to rename {plan.total_count} files?"
        if self.preview.has_exclusions:
            message += f"\n\n{len(self.preview.excluded)} pairs are excluded and will not be renamed."
        reply = QMessageBox.question(
            self, "Confirm", message,
            QMessageBox.StandardButton.Yes | QMessageBox.StandardButton.No
        )
        if reply != QMessageBox.StandardButton.Yes:
            return

        self.execute_btn.setEnabled(False)
        self.execute_btn.setText("Executing...")
        self.preview_btn.setEnabled(False)
        self.cancel_btn.setVisible(True)
        self.progress_bar.setVisible(True)
        self.progress_bar.setRange(0, len(plan.ops))

        # Start execution thread
        self.rename_worker = RenameWorker(plan, dry_run=False)
        self.rename_worker.progress.connect(self._on_rename_progress)
        self.rename_worker.finished.connect(self._on_rename_finished)
        self.rename_worker.error.connect(self._on_rename_error)
        self.rename_worker.start()

    def _do_cancel(self):
        """Cancel the running execution"""
        if self.rename_worker:
            self.rename_worker.cancel()
            self.status_label.setText("Cancelling, rolling back...")

    @Slot(int, int, str)
    def _on_rename_progress(self, current: int, total: int, msg: str):
        """Execution progress update"""
        self.progress_bar.setValue(current)
        self.status_label.setText(msg)

    @Slot(object)
    def _on_rename_finished(self, result: PlanResult):
        """Execution complete"""
        self._reset_execution_ui()

        if result.status == PlanStatus.COMPLETED:
            QMessageBox.information(self, "Complete", result.summary())
        elif result.needs_manual_cleanup:
            QMessageBox.critical(self, "Manual Cleanup Needed", result.summary())
        else:
            QMessageBox.warning(self, "Rolled Back", result.summary())

        # Clear state
        self.preview = None
        self.overrides = {}
        self.table.setRowCount(0)
        self.diagnostics_view.clear()
        self.status_label.setText(result.status.value.replace("_", " ").capitalize())

    @Slot(str)
    def _on_rename_error(self, error: str):
        """Execution error"""
        self._reset_execution_ui()
        self.execute_btn.setEnabled(True)
        QMessageBox.critical(self, "Error", f"Execution failed: {error}")

    def _reset_execution_ui(self):
        self.execute_btn.setEnabled(False)
        self.execute_btn.setText("Execute Rename")
        self.preview_btn.setEnabled(True)
        self.cancel_btn.setVisible(False)
        self.progress_bar.setVisible(False)


class MainWindow(QMainWindow):
    """Main window"""

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Fuzzy Rename Tool")
        self.setMinimumSize(900, 700)

        self.rename_tab = FuzzyRenameTab()
        self.setCentralWidget(self.rename_tab)

        # Status bar
        self.statusBar().showMessage("Ready")
