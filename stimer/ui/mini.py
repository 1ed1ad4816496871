"""Compact always-on-top window that mirrors one engine."""

from PySide6.QtCore import Qt, QTimer, Signal
from PySide6.QtWidgets import QHBoxLayout, QLabel, QPushButton, QVBoxLayout, QWidget

from stimer.common.logger import log
from stimer.core.engine import EngineMode
from stimer.core.mirror import Mirror


class MiniWindow(QWidget):
    """Frameless mini view. Drag anywhere on it to move it.

    Display and button text come from a Mirror polled on a QTimer, so all
    widget updates happen on the GUI thread. Play/pause and stop go through the
    mirror to the same engine the main window drives.
    """

    return_requested = Signal()
    exit_requested = Signal()

    def __init__(self, mirror: Mirror, interval_ms=50, always_on_top=True):
        super().__init__()
        self.mirror = mirror
        self._drag_offset = None

        flags = Qt.FramelessWindowHint | Qt.Tool
        if always_on_top:
            flags |= Qt.WindowStaysOnTopHint
        self.setWindowFlags(flags)
        self.setWindowTitle("Countdown" if mirror.mode is EngineMode.COUNTDOWN else "Stopwatch")

        lay = QVBoxLayout(self)
        self._face = QLabel(mirror.display_time)
        self._face.setObjectName("miniFace")
        self._face.setAlignment(Qt.AlignCenter)
        lay.addWidget(self._face)

        row = QHBoxLayout()
        self._toggle_btn = QPushButton(mirror.start_button_label)
        self._toggle_btn.setObjectName("primary")
        self._toggle_btn.clicked.connect(self._on_toggle)
        stop_btn = QPushButton("Stop")
        stop_btn.setObjectName("danger")
        stop_btn.clicked.connect(self._on_stop)
        return_btn = QPushButton("Back")
        return_btn.clicked.connect(self.return_requested.emit)
        exit_btn = QPushButton("Exit")
        exit_btn.clicked.connect(self.exit_requested.emit)
        for btn in (self._toggle_btn, stop_btn, return_btn, exit_btn):
            row.addWidget(btn)
        lay.addLayout(row)

        self._timer = QTimer(self)
        self._timer.timeout.connect(self._sync)
        self._timer.start(interval_ms)
        log.debug(f"Opened mini window for the {mirror.mode.value} engine")

    def _sync(self):
        if self.mirror.poll():
            self._face.setText(self.mirror.display_time)
            self._toggle_btn.setText(self.mirror.start_button_label)

    def _on_toggle(self):
        self.mirror.toggle_start_pause()
        self._sync_now()

    def _on_stop(self):
        self.mirror.stop()
        self._sync_now()

    def _sync_now(self):
        self._face.setText(self.mirror.display_time)
        self._toggle_btn.setText(self.mirror.start_button_label)

    # ------------------------------------------------------------------ #
    #  Dragging                                                            #
    # ------------------------------------------------------------------ #

    def mousePressEvent(self, event):
        if event.button() == Qt.LeftButton:
            self._drag_offset = event.globalPosition().toPoint() - self.frameGeometry().topLeft()
            event.accept()
        else:
            super().mousePressEvent(event)

    def mouseMoveEvent(self, event):
        if self._drag_offset is not None and event.buttons() & Qt.LeftButton:
            self.move(event.globalPosition().toPoint() - self._drag_offset)
            event.accept()
        else:
            super().mouseMoveEvent(event)

    def mouseReleaseEvent(self, event):
        self._drag_offset = None
        super().mouseReleaseEvent(event)

    def closeEvent(self, event):
        self._timer.stop()
        log.debug(f"Closed mini window for the {self.mirror.mode.value} engine")
        super().closeEvent(event)
