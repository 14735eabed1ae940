# app_settings.py
from __future__ import annotations
import sys
from PyQt6.QtCore import QSettings

class AppSettings:
    """
    Typed wrapper for QSettings.
    Stores user config in an INI file (per-user).
      Linux:   ~/.config/PyScopeView/GDS820C.ini
      Windows: %APPDATA%\\PyScopeView\\GDS820C.ini
    The selected color theme is deliberately not stored.
    """
    ORG = "PyScopeView"
    APP = "GDS820C"

    DEFAULT_PORT = "COM3" if sys.platform.startswith("win") else "/dev/ttyUSB0"
    DEFAULT_BAUD = 1200
    DEFAULT_CYCLIC_MS = 250
    DEFAULT_SCALE = 2

    def __init__(self):
        self._s = QSettings(QSettings.Format.IniFormat,
                            QSettings.Scope.UserScope,
                            self.ORG, self.APP)

    # ---- serial ----
    @property
    def port(self) -> str:
        return self._s.value("serial/port", self.DEFAULT_PORT, str)

    @port.setter
    def port(self, v: str):
        self._s.setValue("serial/port", v)

    @property
    def baud(self) -> int:
        return int(self._s.value("serial/baud", self.DEFAULT_BAUD))

    @baud.setter
    def baud(self, v: int):
        self._s.setValue("serial/baud", int(v))

    # ---- cyclic ----
    @property
    def cyclic_interval_ms(self) -> int:
        return int(self._s.value("cyclic/interval_ms", self.DEFAULT_CYCLIC_MS))

    @cyclic_interval_ms.setter
    def cyclic_interval_ms(self, v: int):
        self._s.setValue("cyclic/interval_ms", int(v))

    # ---- view ----
    @property
    def scale(self) -> int:
        return int(self._s.value("view/scale", self.DEFAULT_SCALE))

    @scale.setter
    def scale(self, v: int):
        self._s.setValue("view/scale", int(v))

    # ---- misc ----
    def sync(self):
        self._s.sync()

    def file_path(self) -> str:
        return self._s.fileName()
