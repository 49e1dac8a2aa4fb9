import argparse
import logging
import sys

from PyQt5.QtCore import QMetaObject, Qt
from PyQt5.QtWidgets import (
    QWidget,
    QMainWindow,
    QVBoxLayout,
    QHBoxLayout,
    QLabel,
    QPushButton,
    QApplication,
)

from .bindings import InputAdapter, KeyBindings
from .config import Config, ConfigError
from .engine import TapEngine
from .remote_control import ControlServer, ControlState
from .utils import monotonic_ms

logger = logging.getLogger(__name__)

PLACEHOLDER = "Tap to the beat"

KEY_LABELS = {"Space": "SPACEBAR", "Escape": "ESC"}


def key_label(names) -> str:
    return " / ".join(KEY_LABELS.get(n, n.upper()) for n in names)

STYLESHEET = """
QMainWindow, QWidget {
    background-color: #2b2b2b;
    color: #f0f0f0;
    font-family: "Segoe UI", "Arial", sans-serif;
    font-size: 10pt;
}

QPushButton {
    background-color: #0d6efd;
    border: none;
    border-radius: 6px;
    padding: 8px 16px;
    color: white;
    font-weight: bold;
}
QPushButton:hover {
    background-color: #0b5ed7;
}
QPushButton:pressed {
    background-color: #0a58ca;
}

QPushButton#tapButton {
    min-width: 180px;
    min-height: 180px;
    border-radius: 90px;
    font-size: 28pt;
}
QPushButton#tapButton[active="true"] {
    background-color: #ff5a5a;
}

QPushButton#resetButton {
    background-color: #444;
}

QLabel {
    color: #e0e0e0;
}
QLabel#bpmNumber {
    font-size: 64pt;
    font-weight: bold;
}
QLabel#instruction, QLabel#help {
    color: #999;
}
"""


class BpmDisplay(QWidget):
    """BPM number with its label, or the placeholder while no tempo is known."""

    def __init__(self, parent=None):
        super().__init__(parent)
        layout = QHBoxLayout(self)
        self.lbl_number = QLabel("")
        self.lbl_number.setObjectName("bpmNumber")
        self.lbl_unit = QLabel("BPM")
        self.lbl_instruction = QLabel(PLACEHOLDER)
        self.lbl_instruction.setObjectName("instruction")
        f = self.lbl_instruction.font()
        f.setPointSize(18)
        self.lbl_instruction.setFont(f)
        layout.addStretch(1)
        layout.addWidget(self.lbl_number, 0, Qt.AlignBottom)
        layout.addWidget(self.lbl_unit, 0, Qt.AlignBottom)
        layout.addWidget(self.lbl_instruction, 0, Qt.AlignCenter)
        layout.addStretch(1)
        self.setMinimumHeight(120)
        self.set_bpm(None)

    def set_bpm(self, bpm):
        has_bpm = bpm is not None
        self.lbl_number.setText(str(bpm) if has_bpm else "")
        self.lbl_number.setVisible(has_bpm)
        self.lbl_unit.setVisible(has_bpm)
        self.lbl_instruction.setVisible(not has_bpm)

    def text(self) -> str:
        if self.lbl_number.isVisibleTo(self):
            return f"{self.lbl_number.text()} BPM"
        return self.lbl_instruction.text()


class MainWindow(QMainWindow):
    def __init__(self, config: Config = None, clock=monotonic_ms):
        super().__init__()
        self.config = config or Config()
        self.setWindowTitle("BPM Counter")
        self.setStyleSheet(STYLESHEET)

        # Core
        self.engine = TapEngine(
            self,
            clock=clock,
            window_size=self.config.get("tap", "window_size"),
            reset_timeout_ms=self.config.get("tap", "reset_timeout_ms"),
        )
        bindings = KeyBindings.from_names(
            tap=self.config.get("keys", "tap"),
            reset=self.config.get("keys", "reset"),
            ignore_auto_repeat=self.config.get("keys", "ignore_auto_repeat"),
        )
        self.input = InputAdapter(self.engine.tap, self.engine.reset, bindings)

        # UI
        root = QWidget()
        layout = QVBoxLayout(root)

        title = QLabel("BPM Counter")
        f = title.font()
        f.setPointSize(20)
        f.setBold(True)
        title.setFont(f)
        title.setAlignment(Qt.AlignCenter)
        layout.addWidget(title)

        self.display = BpmDisplay()
        layout.addWidget(self.display)

        tap_row = QHBoxLayout()
        self.btn_tap = QPushButton("TAP")
        self.btn_tap.setObjectName("tapButton")
        self.btn_tap.setProperty("active", False)
        self.btn_tap.setFocusPolicy(Qt.NoFocus)
        tap_row.addStretch(1)
        tap_row.addWidget(self.btn_tap)
        tap_row.addStretch(1)
        layout.addLayout(tap_row)

        controls = QHBoxLayout()
        self.btn_reset = QPushButton("Reset")
        self.btn_reset.setObjectName("resetButton")
        self.btn_reset.setFocusPolicy(Qt.NoFocus)
        controls.addStretch(1)
        controls.addWidget(self.btn_reset)
        controls.addStretch(1)
        layout.addLayout(controls)

        seconds = self.engine.reset_timeout_ms / 1000
        tap_keys = key_label(self.config.get("keys", "tap"))
        reset_keys = key_label(self.config.get("keys", "reset"))
        self.lbl_help_tap = QLabel(f"Tap the button or press {tap_keys} to the beat")
        self.lbl_help_reset = QLabel(f"Press {reset_keys} to reset • Auto-resets after {seconds:g}s")
        for lbl in (self.lbl_help_tap, self.lbl_help_reset):
            lbl.setObjectName("help")
            lbl.setAlignment(Qt.AlignCenter)
            layout.addWidget(lbl)

        self.setCentralWidget(root)
        self.setFocusPolicy(Qt.StrongFocus)

        # Connections
        self.btn_tap.clicked.connect(self.input.clicked)
        self.btn_reset.clicked.connect(self.input.reset_clicked)

        self.engine.bpmChanged.connect(self._on_bpm_changed)
        self.engine.activeChanged.connect(self._on_active_changed)

        self.control_state = ControlState()
        self.engine.stateChanged.connect(self.control_state.update)
        self.remote = None

    # Remote control
    def start_remote(self, host: str, port: int):
        self.remote = ControlServer(
            self.control_state,
            on_tap=lambda: self._invoke_from_remote("tap"),
            on_reset=lambda: self._invoke_from_remote("reset"),
        )
        self.remote.start(host=host, http_port=port)

    def _invoke_from_remote(self, slot: str):
        # Runs on an HTTP thread; wait until the GUI thread has applied the call
        # so the response carries the updated state.
        QMetaObject.invokeMethod(self.engine, slot, Qt.BlockingQueuedConnection)

    # Qt events
    def keyPressEvent(self, e):
        if self.input.key_pressed(e.key(), e.isAutoRepeat()):
            e.accept()
            return
        super().keyPressEvent(e)

    def closeEvent(self, e):
        if self.remote is not None:
            self.remote.stop()
            self.remote = None
        self.engine.shutdown()
        super().closeEvent(e)

    # Slots / handlers
    def _on_bpm_changed(self, bpm):
        self.display.set_bpm(bpm)

    def _on_active_changed(self, active: bool):
        self.btn_tap.setProperty("active", active)
        # dynamic property selectors need a re-polish
        self.btn_tap.style().unpolish(self.btn_tap)
        self.btn_tap.style().polish(self.btn_tap)
        self.btn_tap.update()


def _parse_args(argv):
    parser = argparse.ArgumentParser(prog="tapbpm", description="Tap along to find the tempo.")
    parser.add_argument("--config", help="Path to a tapbpm.toml file")
    parser.add_argument("--remote", action="store_true", help="Enable the HTTP remote control")
    parser.add_argument("--port", type=int, help="Remote control port")
    parser.add_argument("--log-level", help="DEBUG, INFO, WARNING, ...")
    return parser.parse_known_args(argv)


def main(argv=None):
    if argv is None:
        argv = sys.argv[1:]
    args, qt_args = _parse_args(argv)

    try:
        config = Config.load(args.config)
        if args.remote:
            config.set("remote", "enabled", True)
        if args.port is not None:
            config.set("remote", "port", args.port)
        if args.log_level:
            config.set("logging", "level", args.log_level.upper())
    except ConfigError as e:
        print(f"tapbpm: {e}", file=sys.stderr)
        return 2

    logging.basicConfig(
        level=config.get("logging", "level").upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    app = QApplication([sys.argv[0]] + qt_args)
    try:
        w = MainWindow(config)
    except ValueError as e:
        print(f"tapbpm: {e}", file=sys.stderr)
        return 2
    if config.get("remote", "enabled"):
        w.start_remote(config.get("remote", "host"), config.get("remote", "port"))
    w.show()
    return app.exec_()


if __name__ == "__main__":
    sys.exit(main())
