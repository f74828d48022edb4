"""
Radar-IP - Desktop GUI.

Small PyQt6 front end: pick a device profile, type a MAC address, press
Scan. The profile fills in the IP range and SSH user; the private key is
read from the profile's environment variable (see .env) and SSH_PASSWORD
is its passphrase.

The scan runs on a QThread with its own asyncio event loop, with a 3s
per-host timeout and a 15s overall deadline.
"""

import asyncio
import copy
import logging
import os
import sys
import time
from typing import Optional

from PyQt6.QtCore import QObject, Qt, QThread, pyqtSignal
from PyQt6.QtGui import QFont
from PyQt6.QtWidgets import (
    QApplication, QButtonGroup, QFormLayout, QFrame, QHBoxLayout, QLabel,
    QLineEdit, QMainWindow, QProgressBar, QPushButton, QRadioButton,
    QVBoxLayout, QWidget,
)

from . import __version__
from .cli import setup_logging
from .config import DEFAULT_PORT, DeviceProfile, load_env, profile_auth
from .engine import MAX_CONCURRENT, ScanEngine
from .errors import ConfigError
from .events import EventEmitter
from .models import ConnectionConfig, ScanOutcome

logger = logging.getLogger(__name__)

HOST_TIMEOUT = 3.0
SCAN_DEADLINE = 15.0

STYLESHEET = """
QWidget { background-color: #1e1e1e; color: #dcdcdc; font-size: 14px; }
QLineEdit { background-color: #2b2b2b; border: 1px solid #444; border-radius: 4px;
            padding: 4px; font-family: monospace; }
QPushButton#scanButton { background-color: #1e78c8; color: white; border-radius: 6px;
                         font-size: 17px; padding: 10px; }
QPushButton#scanButton:disabled { background-color: #3a3a3a; color: #b4b4b4; }
QLabel#title { color: #64c8ff; font-size: 26px; font-weight: bold; }
QLabel#subtitle { color: #a0a0a0; }
QLabel[class="fieldLabel"] { color: #b4dcff; }
QFrame#resultFrame { background-color: #1e321e; border-radius: 8px; }
QLabel#resultIp { color: #64ff82; font-size: 30px; font-weight: bold; font-family: monospace; }
QLabel#errorTitle { color: #ff5a5a; font-size: 17px; font-weight: bold; }
QLabel#errorText { color: #ffa0a0; }
QLabel#footer { color: #505050; font-size: 11px; }
"""


class ScanSignalBridge(QObject):
    """
    Turns engine events into Qt signals.

    handle_event is called on the worker thread; Qt queues the signal
    to the UI thread.
    """

    stats_updated = pyqtSignal(dict)

    def __init__(self, parent=None):
        super().__init__(parent)
        self._last_stats_time = 0.0
        self._throttle_ms = 100

    def handle_event(self, event) -> None:
        if event.event_type.value != 'stats_updated':
            return

        now = time.time() * 1000
        if now - self._last_stats_time < self._throttle_ms and event.data.get('status') == 'Scanning':
            return
        self._last_stats_time = now
        self.stats_updated.emit(copy.deepcopy(event.data))


class ScanWorker(QThread):
    """
    Background thread for running one async scan.
    """

    finished = pyqtSignal(object)  # Emits ScanOutcome
    error = pyqtSignal(str)

    def __init__(
        self,
        config: ConnectionConfig,
        target_mac: str,
        cidr: str,
        deadline: float = SCAN_DEADLINE,
        event_handler=None,
        parent=None
    ):
        super().__init__(parent)
        self.config = config
        self.target_mac = target_mac
        self.cidr = cidr
        self.deadline = deadline
        self.event_handler = event_handler

    def run(self):
        """Run the scan in this thread's own event loop."""
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)

        try:
            emitter = EventEmitter()
            if self.event_handler:
                emitter.subscribe(self.event_handler)

            engine = ScanEngine(
                self.config,
                max_concurrent=MAX_CONCURRENT,
                event_emitter=emitter,
            )
            outcome = loop.run_until_complete(
                engine.scan_with_deadline(self.target_mac, self.cidr, self.deadline)
            )
            self.finished.emit(outcome)

        except Exception as e:
            logger.exception("Scan worker failed")
            self.error.emit(str(e))
        finally:
            loop.close()


class RadarWindow(QMainWindow):
    """Main window: profile, MAC and range inputs, scan button, result."""

    def __init__(self, parent=None):
        super().__init__(parent)
        self.setWindowTitle("Radar-IP Scanner")
        self.setMinimumSize(400, 400)
        self.resize(480, 480)

        self.profile = DeviceProfile.HC
        self._worker: Optional[ScanWorker] = None
        self._found_ip = ""

        self.bridge = ScanSignalBridge(self)
        self.bridge.stats_updated.connect(self._on_stats_updated)

        self._build_ui()
        self._apply_profile(self.profile)
        self._show_idle()

    # =========================================================================
    # Layout
    # =========================================================================

    def _build_ui(self):
        central = QWidget()
        self.setCentralWidget(central)
        layout = QVBoxLayout(central)
        layout.setContentsMargins(24, 20, 24, 12)
        layout.setSpacing(12)

        title = QLabel("Radar-IP Scanner")
        title.setObjectName("title")
        title.setAlignment(Qt.AlignmentFlag.AlignCenter)
        subtitle = QLabel("Find a device IP address by its MAC")
        subtitle.setObjectName("subtitle")
        subtitle.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(title)
        layout.addWidget(subtitle)

        form = QFormLayout()
        form.setHorizontalSpacing(12)
        form.setVerticalSpacing(10)

        # Device profile
        profile_row = QHBoxLayout()
        self.profile_group = QButtonGroup(self)
        self.profile_buttons = {}
        for profile in DeviceProfile:
            button = QRadioButton(profile.label)
            button.setChecked(profile == self.profile)
            button.toggled.connect(
                lambda checked, p=profile: checked and self._apply_profile(p)
            )
            self.profile_group.addButton(button)
            self.profile_buttons[profile] = button
            profile_row.addWidget(button)
        profile_row.addStretch()
        form.addRow(self._field_label("Device Type"), profile_row)

        # Read-only, follows the profile
        self.user_label = QLabel()
        self.user_label.setFont(QFont("monospace"))
        form.addRow(self._field_label("SSH User"), self.user_label)

        self.mac_input = QLineEdit()
        self.mac_input.setPlaceholderText("aa:bb:cc:dd:ee:ff")
        self.mac_input.returnPressed.connect(self.start_scan)
        form.addRow(self._field_label("MAC Address"), self.mac_input)

        self.range_input = QLineEdit()
        self.range_input.setPlaceholderText("192.168.1.0/24")
        form.addRow(self._field_label("IP Range"), self.range_input)

        layout.addLayout(form)

        self.scan_button = QPushButton("Scan Now")
        self.scan_button.setObjectName("scanButton")
        self.scan_button.setFixedWidth(200)
        self.scan_button.clicked.connect(self.start_scan)
        layout.addWidget(self.scan_button, alignment=Qt.AlignmentFlag.AlignCenter)

        # Result area
        self.status_label = QLabel()
        self.status_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.status_label.setWordWrap(True)
        layout.addWidget(self.status_label)

        self.progress_bar = QProgressBar()
        self.progress_bar.setTextVisible(False)
        self.progress_bar.setMaximumHeight(6)
        layout.addWidget(self.progress_bar)

        self.result_frame = QFrame()
        self.result_frame.setObjectName("resultFrame")
        result_layout = QHBoxLayout(self.result_frame)
        result_layout.setContentsMargins(16, 16, 16, 16)
        self.result_ip = QLabel()
        self.result_ip.setObjectName("resultIp")
        self.result_ip.setTextInteractionFlags(Qt.TextInteractionFlag.TextSelectableByMouse)
        self.copy_button = QPushButton("Copy")
        self.copy_button.clicked.connect(self.copy_result)
        result_layout.addWidget(self.result_ip)
        result_layout.addStretch()
        result_layout.addWidget(self.copy_button)
        layout.addWidget(self.result_frame)

        self.error_label = QLabel()
        self.error_label.setObjectName("errorText")
        self.error_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.error_label.setWordWrap(True)
        layout.addWidget(self.error_label)

        layout.addStretch()

        footer = QLabel(f"radar-ip v{__version__}")
        footer.setObjectName("footer")
        footer.setAlignment(Qt.AlignmentFlag.AlignCenter)
        layout.addWidget(footer)

    def _field_label(self, text: str) -> QLabel:
        label = QLabel(text)
        label.setProperty("class", "fieldLabel")
        return label

    # =========================================================================
    # State
    # =========================================================================

    def _apply_profile(self, profile: DeviceProfile):
        """Switching profile resets range and user to its defaults."""
        self.profile = profile
        self.range_input.setText(profile.default_range)
        self.user_label.setText(profile.default_user)

    @property
    def is_scanning(self) -> bool:
        return self._worker is not None and self._worker.isRunning()

    def _show_idle(self):
        self.status_label.setStyleSheet("color: #787878;")
        self.status_label.setText("Enter a MAC address and press Scan")
        self.progress_bar.hide()
        self.result_frame.hide()
        self.error_label.hide()

    def _show_scanning(self):
        self.scan_button.setEnabled(False)
        self.scan_button.setText("Scanning...")
        self.status_label.setStyleSheet("color: #ffc850;")
        self.status_label.setText("Scanning network, please wait...")
        self.progress_bar.setValue(0)
        self.progress_bar.show()
        self.result_frame.hide()
        self.error_label.hide()

    def _show_found(self, ip_address: str):
        self._found_ip = ip_address
        self.status_label.setStyleSheet("color: #50dc64; font-size: 17px; font-weight: bold;")
        self.status_label.setText("Device Found!")
        self.result_ip.setText(ip_address)
        self.progress_bar.hide()
        self.result_frame.show()
        self.error_label.hide()

    def _show_error(self, message: str):
        self.status_label.setStyleSheet("color: #ff5a5a; font-size: 17px; font-weight: bold;")
        self.status_label.setText("Scan Failed")
        self.error_label.setText(message)
        self.progress_bar.hide()
        self.result_frame.hide()
        self.error_label.show()

    def _reset_button(self):
        self.scan_button.setEnabled(True)
        self.scan_button.setText("Scan Now")

    # =========================================================================
    # Actions
    # =========================================================================

    def start_scan(self):
        mac = self.mac_input.text().strip()
        if self.is_scanning or not mac:
            return

        try:
            auth = profile_auth(self.profile, os.environ)
            config = ConnectionConfig(
                username=self.profile.default_user,
                auth=auth,
                port=DEFAULT_PORT,
                timeout=HOST_TIMEOUT,
            )
        except ConfigError as e:
            self._show_error(str(e))
            return

        self._show_scanning()
        self._worker = ScanWorker(
            config,
            target_mac=mac,
            cidr=self.range_input.text().strip(),
            deadline=SCAN_DEADLINE,
            event_handler=self.bridge.handle_event,
            parent=self,
        )
        self._worker.finished.connect(self._on_scan_finished)
        self._worker.error.connect(self._on_scan_error)
        self._worker.start()

    def copy_result(self):
        if self._found_ip:
            QApplication.clipboard().setText(self._found_ip)

    def _on_stats_updated(self, stats: dict):
        self.progress_bar.setValue(int(stats.get('progress', 0.0) * 100))

    def _on_scan_finished(self, outcome: ScanOutcome):
        self._reset_button()
        if outcome.success:
            self._show_found(outcome.ip_address)
        else:
            self._show_error(outcome.message)

    def _on_scan_error(self, message: str):
        self._reset_button()
        self._show_error(message)

    def closeEvent(self, event):
        if self.is_scanning:
            # Probe threads are bounded by the scan deadline
            self._worker.wait(int((SCAN_DEADLINE + HOST_TIMEOUT) * 1000))
        super().closeEvent(event)


def main():
    load_env()
    setup_logging('-v' in sys.argv or '--verbose' in sys.argv)

    app = QApplication(sys.argv)
    app.setApplicationName("Radar-IP")
    app.setStyleSheet(STYLESHEET)

    window = RadarWindow()
    window.show()
    return app.exec()


if __name__ == '__main__':
    sys.exit(main())
