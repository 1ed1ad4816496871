import sys
from PySide6.QtCore import QObject, Qt, QTimer, Signal
from PySide6.QtWidgets import (
    QApplication,
    QGroupBox,
    QHBoxLayout,
    QInputDialog,
    QListWidget,
    QListWidgetItem,
    QMainWindow,
    QMessageBox,
    QPushButton,
    QVBoxLayout,
    QWidget,
)
from stimer.common.logger import log
from stimer.core import config
from stimer.core.engine import EngineMode
from stimer.core.history import HistoryStore
from stimer.core.suite import TimerSuite
from stimer.ui.mini import MiniWindow
from stimer.ui.theme import build_stylesheet
from stimer.ui.widgets import build_engine_panel, history_row_text, refresh_engine_panel

_REFRESH_MS = 100

_DISPLAY_MODE_KEYS = {
    EngineMode.STOPWATCH: "stopwatch_display_mode",
    EngineMode.COUNTDOWN: "countdown_display_mode",
}


# Carries record-writer callbacks (fired on the writer thread) over to the GUI thread.
class _HistoryBridge(QObject):
    record_saved = Signal(object)
    save_failed = Signal(object, str)


# ---------------------------------------------------------------------------
# Main window
# ---------------------------------------------------------------------------

# Main window of the app. Shows the stopwatch and countdown panels side by side, with the history list below.
class MainWindow(QMainWindow):

    def __init__(self):
        super().__init__()
        self.setWindowTitle("Session Timer")

        # -- Settings --
        self.settings = config.load_settings()
        if self.settings["always_on_top"]:
            self.setWindowFlags(self.windowFlags() | Qt.WindowStaysOnTopHint)

        # -- Core --
        self._bridge = _HistoryBridge()
        self._bridge.record_saved.connect(self._on_record_saved)
        self._bridge.save_failed.connect(self._on_save_failed)
        self.store = HistoryStore(config.HISTORY_PATH, max_records=self.settings["max_history_records"])
        self.suite = TimerSuite(
            self.store,
            tick_interval=self.settings["tick_interval_ms"] / 1000,
            countdown_target=config.countdown_target_setting(self.settings),
            stopwatch_display_mode=config.display_mode_setting(self.settings, "stopwatch_display_mode"),
            countdown_display_mode=config.display_mode_setting(self.settings, "countdown_display_mode"),
            on_saved=self._bridge.record_saved.emit,
            on_error=lambda record, e: self._bridge.save_failed.emit(record, str(e)),
        )
        self._mini = None
        self._records = []

        # -- Build UI --
        central = QWidget()
        self.setCentralWidget(central)
        main_lay = QVBoxLayout(central)

        panels = QHBoxLayout()
        self._panels = {}
        for mode in EngineMode:
            engine = self.suite.engine(mode)
            box, widgets = build_engine_panel(
                engine,
                on_toggle=lambda _=False, m=mode: self._on_toggle(m),
                on_stop=lambda _=False, m=mode: self._on_stop(m),
                on_mini=lambda _=False, m=mode: self._enter_mini(m),
                on_mode_changed=lambda display_mode, m=mode: self._on_display_mode_changed(m, display_mode),
                on_set_target=self._on_set_target if engine.is_countdown else None,
            )
            panels.addWidget(box)
            self._panels[mode] = widgets
        main_lay.addLayout(panels)
        main_lay.addWidget(self._build_history_box())

        self.setStyleSheet(build_stylesheet(self.settings["theme"]))
        self._reload_history()

        # -- Refresh timer, the engines tick on their own threads --
        self._timer = QTimer(self)
        self._timer.timeout.connect(self._refresh_panels)
        self._timer.start(_REFRESH_MS)
        self.suite.start()

    def _build_history_box(self):
        box = QGroupBox("History")
        lay = QVBoxLayout(box)
        self._history_list = QListWidget()
        self._history_list.itemDoubleClicked.connect(lambda _item: self._on_rename())
        lay.addWidget(self._history_list)

        row = QHBoxLayout()
        for label, handler, name in (
                ("Rename", self._on_rename, None),
                ("Notes", self._on_edit_notes, None),
                ("Tags", self._on_edit_tags, None),
                ("Delete", self._on_delete, "danger"),
                ("Clear All", self._on_clear, "danger"),
        ):
            btn = QPushButton(label)
            if name:
                btn.setObjectName(name)
            btn.clicked.connect(handler)
            row.addWidget(btn)
        lay.addLayout(row)
        return box

    # ------------------------------------------------------------------ #
    #  Engine handlers                                                     #
    # ------------------------------------------------------------------ #

    def _on_toggle(self, mode):
        self.suite.engine(mode).toggle_start_pause()
        self._refresh_panels()

    def _on_stop(self, mode):
        self.suite.engine(mode).stop()
        self._refresh_panels()

    def _on_display_mode_changed(self, mode, display_mode):
        self.suite.engine(mode).display_mode = display_mode
        self.settings[_DISPLAY_MODE_KEYS[mode]] = display_mode.value
        self._save_settings()
        self._refresh_panels()

    def _on_set_target(self, hours, minutes, seconds):
        engine = self.suite.countdown
        if not engine.set_target_hms(hours, minutes, seconds):
            QMessageBox.information(self, "Countdown", "Stop the countdown before changing its length.")
            return
        self.settings["countdown_target_seconds"] = int(engine.target.total_seconds())
        self._save_settings()
        self._refresh_panels()

    def _refresh_panels(self):
        for mode, widgets in self._panels.items():
            refresh_engine_panel(self.suite.engine(mode), widgets)

    # ------------------------------------------------------------------ #
    #  Mini mode                                                           #
    # ------------------------------------------------------------------ #

    def _enter_mini(self, mode):
        if self._mini is not None:
            self._leave_mini()
        interval_ms = self.settings["mirror_interval_ms"]
        mirror = self.suite.mirror(mode, interval=interval_ms / 1000)
        self._mini = MiniWindow(mirror, interval_ms=interval_ms,
                                always_on_top=self.settings["mini_always_on_top"])
        self._mini.setStyleSheet(build_stylesheet(self.settings["theme"]))
        self._mini.return_requested.connect(self._leave_mini)
        self._mini.exit_requested.connect(self.close)
        self.hide()
        self._mini.show()

    def _leave_mini(self):
        if self._mini is not None:
            self._mini.close()
            self._mini.deleteLater()
            self._mini = None
        self.show()
        self._refresh_panels()

    # ------------------------------------------------------------------ #
    #  History                                                             #
    # ------------------------------------------------------------------ #

    def _reload_history(self):
        self._records = self.store.list()
        self._history_list.clear()
        for record in self._records:
            item = QListWidgetItem(history_row_text(record))
            item.setData(Qt.UserRole, record.id)
            self._history_list.addItem(item)

    def _selected_record(self):
        row = self._history_list.currentRow()
        if 0 <= row < len(self._records):
            return self._records[row]
        return None

    def _save_record(self, record):
        try:
            self.store.save(record)
        except (OSError, ValueError) as e:
            log.error(f"Failed to save edits to record {record.id}", exc_info=True)
            QMessageBox.warning(self, "Save Error", f"Failed to save record:\n{e}")
        self._reload_history()

    def _on_rename(self):
        record = self._selected_record()
        if record is None:
            return
        text, ok = QInputDialog.getText(self, "Rename", "Name:", text=record.name)
        if not ok or not text.strip() or text == record.name:
            return
        try:
            record.name = text.strip()
        except ValueError as e:
            QMessageBox.warning(self, "Rename", str(e))
            return
        self._save_record(record)

    def _on_edit_notes(self):
        record = self._selected_record()
        if record is None:
            return
        text, ok = QInputDialog.getMultiLineText(self, "Notes", "Notes:", record.notes)
        if not ok:
            return
        try:
            record.update_notes(text)
        except ValueError as e:
            QMessageBox.warning(self, "Notes", str(e))
            return
        self._save_record(record)

    def _on_edit_tags(self):
        record = self._selected_record()
        if record is None:
            return
        text, ok = QInputDialog.getText(self, "Tags", "Tags (comma separated):", text=", ".join(record.tags))
        if not ok:
            return
        wanted = [t.strip() for t in text.split(",") if t.strip()]
        wanted_keys = {t.casefold() for t in wanted}
        for tag in record.tags:
            if tag.casefold() not in wanted_keys:
                record.remove_tag(tag)
        for tag in wanted:
            record.add_tag(tag)
        self._save_record(record)

    def _on_delete(self):
        record = self._selected_record()
        if record is None:
            return
        try:
            self.store.delete(record.id)
        except OSError as e:
            log.error(f"Failed to delete record {record.id}", exc_info=True)
            QMessageBox.warning(self, "Delete Error", f"Failed to delete record:\n{e}")
        self._reload_history()

    def _on_clear(self):
        if self.settings["confirm_clear_history"] and QMessageBox.question(
                self, "Confirm", "Delete all history records?"
        ) != QMessageBox.Yes:
            return
        try:
            self.store.clear()
        except OSError as e:
            log.error("Failed to clear history", exc_info=True)
            QMessageBox.warning(self, "Clear Error", f"Failed to clear history:\n{e}")
        self._reload_history()

    def _on_record_saved(self, record):
        self._reload_history()

    def _on_save_failed(self, record, message):
        QMessageBox.warning(self, "Save Error", f"Session '{record.name}' could not be saved:\n{message}")

    # ------------------------------------------------------------------ #
    #  Settings / window close                                             #
    # ------------------------------------------------------------------ #

    def _save_settings(self):
        try:
            config.save_settings(self.settings)
        except OSError:
            log.warning("Failed to save settings", exc_info=True)

    # Safe to call more than once, closeEvent and aboutToQuit both end up here.
    def shutdown(self):
        if self._mini is not None:
            self._mini.close()
            self._mini = None
        self._timer.stop()
        self.suite.shutdown()
        self._save_settings()

    def closeEvent(self, event):
        self.shutdown()
        event.accept()
        QApplication.instance().quit()


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------

def main():
    app = QApplication(sys.argv)
    window = MainWindow()
    app.aboutToQuit.connect(window.shutdown)
    window.show()
    sys.exit(app.exec())
