"""Widget builders for the engine panels and history rows.

Each panel builder returns a (container, widget_dict) tuple. The widget_dict
maps logical names to sub-widgets so the window can refresh them on its tick.
"""

from PySide6.QtCore import Qt
from PySide6.QtWidgets import (
    QComboBox,
    QGroupBox,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QSpinBox,
    QVBoxLayout,
)

from stimer.core.engine import EngineState, SessionEngine
from stimer.core.formatting import DisplayMode, format_duration, relative_time
from stimer.core.record import SessionRecord

DISPLAY_MODE_LABELS = {
    DisplayMode.HOUR_MIN_SEC: "HH:MM:SS",
    DisplayMode.MIN_SEC: "MM:SS",
    DisplayMode.SEC_ONLY: "Seconds",
}


def build_engine_panel(engine: SessionEngine, on_toggle, on_stop, on_mini, on_mode_changed, on_set_target=None):
    """Build the face, buttons and display-mode picker for one engine.

    Countdown panels also get hour/minute/second inputs and a Set button,
    wired to ``on_set_target(hours, minutes, seconds)``.
    """
    box = QGroupBox("Countdown" if engine.is_countdown else "Stopwatch")
    lay = QVBoxLayout(box)

    face = QLabel(engine.display_time)
    face.setObjectName("timeFace")
    face.setAlignment(Qt.AlignCenter)
    lay.addWidget(face)

    mode_box = QComboBox()
    for mode, label in DISPLAY_MODE_LABELS.items():
        mode_box.addItem(label, mode)
    mode_box.setCurrentIndex(list(DISPLAY_MODE_LABELS).index(engine.display_mode))
    mode_box.currentIndexChanged.connect(lambda i: on_mode_changed(mode_box.itemData(i)))
    lay.addWidget(mode_box)

    widgets = {"face": face, "mode": mode_box}

    if engine.is_countdown and on_set_target is not None:
        target_row = QHBoxLayout()
        total = int(engine.target.total_seconds())
        spins = []
        for suffix, maximum, value in (("h", 23, total // 3600), ("m", 59, total % 3600 // 60), ("s", 59, total % 60)):
            spin = QSpinBox()
            spin.setRange(0, maximum)
            spin.setValue(value)
            spin.setSuffix(f" {suffix}")
            target_row.addWidget(spin)
            spins.append(spin)
        set_btn = QPushButton("Set")
        set_btn.clicked.connect(lambda: on_set_target(*(s.value() for s in spins)))
        target_row.addWidget(set_btn)
        lay.addLayout(target_row)
        widgets["target_spins"] = spins
        widgets["set"] = set_btn

    btn_row = QHBoxLayout()
    toggle_btn = QPushButton(engine.start_button_label)
    toggle_btn.setObjectName("primary")
    toggle_btn.clicked.connect(on_toggle)
    stop_btn = QPushButton("Stop")
    stop_btn.setObjectName("danger")
    stop_btn.clicked.connect(on_stop)
    mini_btn = QPushButton("Mini")
    mini_btn.clicked.connect(on_mini)
    for btn in (toggle_btn, stop_btn, mini_btn):
        btn_row.addWidget(btn)
    lay.addLayout(btn_row)

    widgets.update(toggle=toggle_btn, stop=stop_btn, mini=mini_btn)
    return box, widgets


def refresh_engine_panel(engine: SessionEngine, widgets):
    widgets["face"].setText(engine.display_time)
    widgets["toggle"].setText(engine.start_button_label)
    if "set" in widgets:
        # Target can only change while idle
        idle = engine.state is EngineState.IDLE
        widgets["set"].setEnabled(idle)
        for spin in widgets["target_spins"]:
            spin.setEnabled(idle)


def history_row_text(record: SessionRecord, now=None):
    """One-line summary shown in the history list."""
    parts = [f"[{record.type_display}]", record.name, format_duration(record.duration)]
    if record.is_countdown and record.countdown_target is not None:
        parts.append(f"of {format_duration(record.countdown_target)}")
        efficiency = record.efficiency_percentage()
        if efficiency is not None:
            parts.append(f"({efficiency:.0f}%)")
    parts.append(f"· {relative_time(record.start_time, now)}")
    if record.tags:
        parts.append("#" + " #".join(record.tags))
    if record.notes:
        parts.append(f"| {record.notes}")
    return " ".join(parts)
