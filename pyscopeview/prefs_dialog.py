from __future__ import annotations

import sys
from PyQt6.QtWidgets import (QDialog, QDialogButtonBox, QComboBox, QFormLayout, QHBoxLayout,
                             QPushButton, QSpinBox, QWidget)
from serial.tools import list_ports
from pyscopeview.app_settings import AppSettings


class PrefsDialog(QDialog):
    # FTDI link of the GDS-820C; 1200 is what the scope ships with
    BAUDS = [1200, 2400, 4800, 9600, 19200, 38400]

    def __init__(self, parent, tty: str, baud: int, cyclic_ms: int, scale: int):
        super().__init__(parent)
        self.setWindowTitle("Preferences")
        self.setModal(True)

        self.cb_tty = QComboBox()
        self.cb_tty.setEditable(True)
        self.btn_refresh = QPushButton("Refresh")
        tty_row = QHBoxLayout()
        tty_row.setContentsMargins(0, 0, 0, 0)
        tty_row.addWidget(self.cb_tty, 1)
        tty_row.addWidget(self.btn_refresh)
        tty_box = QWidget()
        tty_box.setLayout(tty_row)

        self.cb_baud = QComboBox()
        self.sb_interval = QSpinBox()
        self.sb_scale = QSpinBox()
        self.buttonBox = QDialogButtonBox(QDialogButtonBox.StandardButton.Ok |
                                          QDialogButtonBox.StandardButton.Cancel)

        form = QFormLayout(self)
        form.addRow("Serial port", tty_box)
        form.addRow("Baud", self.cb_baud)
        form.addRow("Refresh interval", self.sb_interval)
        form.addRow("Scale", self.sb_scale)
        form.addRow(self.buttonBox)

        # Wire signals
        self.btn_refresh.clicked.connect(lambda: self._populate_ports(prefer=self._current_device()))
        self.buttonBox.accepted.connect(self.accept)
        self.buttonBox.rejected.connect(self.reject)

        # Populate port list
        self._populate_ports(prefer=tty)

        # Baud
        for b in self.BAUDS:
            self.cb_baud.addItem(str(b), b)
        idx = self.cb_baud.findData(int(baud))
        self.cb_baud.setCurrentIndex(idx if idx >= 0 else self.cb_baud.findData(AppSettings.DEFAULT_BAUD))

        # Interval in ms; acquisition is skipped while one is still running
        self.sb_interval.setRange(100, 10000)
        self.sb_interval.setSingleStep(50)
        self.sb_interval.setSuffix(" ms")
        self.sb_interval.setValue(int(cyclic_ms))

        self.sb_scale.setRange(1, 4)
        self.sb_scale.setSuffix("x")
        self.sb_scale.setValue(int(scale))

    # ---- Helpers ----
    def _current_device(self) -> str:
        # editable combo: typed text wins over the item data
        return self.cb_tty.currentText().split(" — ")[0].strip()

    def _populate_ports(self, prefer: str | None = None):
        self.cb_tty.blockSignals(True)
        self.cb_tty.clear()

        selected_index = -1
        for i, p in enumerate(list_ports.comports()):
            self.cb_tty.addItem(f"{p.device} — {p.description or 'Serial'}", p.device)
            if prefer and p.device == prefer:
                selected_index = i

        if selected_index >= 0:
            self.cb_tty.setCurrentIndex(selected_index)
        else:
            if not prefer:
                prefer = "COM3" if sys.platform.startswith("win") else "/dev/ttyUSB0"
            self.cb_tty.insertItem(0, prefer, prefer)
            self.cb_tty.setCurrentIndex(0)
            if self.cb_tty.count() == 1:
                self.cb_tty.setToolTip("No serial ports were detected. You can still type a device path manually.")

        self.cb_tty.blockSignals(False)

    def values(self):
        tty = self._current_device()
        baud = int(self.cb_baud.currentData())
        cyclic_ms = int(self.sb_interval.value())
        scale = int(self.sb_scale.value())
        return tty, baud, cyclic_ms, scale
