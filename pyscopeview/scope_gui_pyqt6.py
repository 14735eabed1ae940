#!/usr/bin/env python3
from __future__ import annotations

import os
import logging

# Qt6 (PyQt6)
from PyQt6.QtCore import Qt, QThread, QTimer, pyqtSignal as Signal, pyqtSlot as Slot
from PyQt6.QtGui import QAction, QImage, QPixmap
from PyQt6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QPushButton, QLabel,
    QFileDialog, QMessageBox, QStatusBar, QFrame, QSizePolicy
)

from pyscopeview.app_settings import AppSettings
from pyscopeview.byte_reader import ByteReader
from pyscopeview.palettes import PaletteRegistry
from pyscopeview.prefs_dialog import PrefsDialog
from pyscopeview.raster import WIDTH, HEIGHT, decode, frame_to_image, new_output_image
from pyscopeview.scope_grabber import AcquisitionError, ScopeGrabber, RX_TIMEOUT


# ------------------------------- Worker -------------------------------------
class GrabWorker(QThread):
    """Runs one acquisition off the UI thread. Decoding stays on the UI thread."""
    captured = Signal(bytes)      # raw 40960 byte screen dump
    skipped = Signal(str)         # recoverable, just no frame this tick
    error = Signal(str)

    def __init__(self, grabber: ScopeGrabber, logger: logging.Logger | None = None):
        super().__init__()
        self.grabber = grabber
        self.logger = logger or logging.getLogger("PyScopeView")

    def run(self):
        try:
            self.grabber.initialize_port()  # no-op once open
            data = self.grabber.acquire()
        except AcquisitionError as e:
            self.logger.warning("frame skipped: %s", e)
            self.skipped.emit(str(e))
        except Exception as e:
            self.logger.error("grab failed: %s", e)
            self.error.emit(str(e))
        else:
            self.captured.emit(data)


# ------------------------------- Main Window --------------------------------
class MainWindow(QMainWindow):
    def __init__(self, tty: str | None = None, baud: int | None = None, theme: str | None = None,
                 replay: str | None = None, rx_timeout: float = RX_TIMEOUT):
        super().__init__()
        self.setWindowTitle("PyScopeView – GDS-820C")
        self.LOG = logging.getLogger("PyScopeView")

        # Settings (CLI values override if provided explicitly)
        self.settings = AppSettings()
        self.tty = tty or self.settings.port
        self.baud = int(baud or self.settings.baud)
        self.cyclic_interval_ms = self.settings.cyclic_interval_ms
        self.scale = self.settings.scale
        self.replay = replay
        self.rx_timeout = rx_timeout

        self.registry = PaletteRegistry()
        if theme:
            self.registry.select(theme)

        self._frame = new_output_image()
        self._last_capture: bytes | None = None
        self._grabber: ScopeGrabber | None = None
        self._worker: GrabWorker | None = None
        self.last_save_dir: str = os.getcwd()

        # central image view
        self.image_label = QLabel()
        self.image_label.setAlignment(Qt.AlignmentFlag.AlignCenter)
        self.image_label.setMinimumSize(WIDTH, HEIGHT)
        self.image_label.setSizePolicy(QSizePolicy.Policy.Expanding, QSizePolicy.Policy.Expanding)
        self.image_label.setStyleSheet("background-color: black;")

        # buttons
        self.btn_pause = QPushButton("Pause")
        self.btn_pause.setCheckable(True)
        self.btn_pause.toggled.connect(self.on_pause_toggled)

        self.btn_theme = QPushButton("Theme")
        self.btn_theme.clicked.connect(self.on_next_theme)

        self.btn_exit = QPushButton("Exit")
        self.btn_exit.clicked.connect(self.close)

        for b in (self.btn_pause, self.btn_theme, self.btn_exit):
            b.setFocusPolicy(Qt.FocusPolicy.NoFocus)  # keep space for the theme key

        button_row = QHBoxLayout()
        button_row.addWidget(self.btn_pause)
        button_row.addWidget(self.btn_theme)
        button_row.addStretch(1)
        button_row.addWidget(self.btn_exit)

        central = QWidget()
        lay = QVBoxLayout(central)
        lay.addWidget(self.image_label, 1)
        lay.addLayout(button_row)
        lay.setContentsMargins(8, 8, 8, 8)
        self.setCentralWidget(central)

        # redraw timer; one acquisition in flight at most
        self._timer = QTimer(self)
        self._timer.setInterval(self.cyclic_interval_ms)
        self._timer.timeout.connect(self.on_tick)

        # status bar (port left, action right, with separator)
        self.statusbar = QStatusBar()
        self.setStatusBar(self.statusbar)

        self.lbl_port = QLabel(self._port_text())
        self.lbl_port.setFrameShape(QFrame.Shape.Panel)
        self.lbl_port.setFrameShadow(QFrame.Shadow.Sunken)
        self.statusbar.addWidget(self.lbl_port)

        sep = QFrame()
        sep.setFrameShape(QFrame.Shape.VLine)
        sep.setFrameShadow(QFrame.Shadow.Sunken)
        self.statusbar.addWidget(sep)

        self.lbl_action = QLabel("Idle")
        self.lbl_action.setFrameShape(QFrame.Shape.Panel)
        self.lbl_action.setFrameShadow(QFrame.Shadow.Sunken)
        self.statusbar.addPermanentWidget(self.lbl_action, 1)

        self._make_menus()

        self.resize(WIDTH * self.scale + 16, HEIGHT * self.scale + 80)
        self._timer.start()

    def _port_text(self) -> str:
        return f"Replay: {self.replay}" if self.replay else f"Port: {self.tty} @ {self.baud}"

    def _make_menus(self):
        m_file = self.menuBar().addMenu("&File")
        act_prefs = QAction("&Preferences…", self)
        act_prefs.triggered.connect(self.on_prefs)
        m_file.addAction(act_prefs)
        act_save = QAction("&Save As…", self)
        act_save.triggered.connect(self.on_save)
        m_file.addAction(act_save)
        m_file.addSeparator()
        act_exit = QAction("E&xit", self)
        act_exit.triggered.connect(self.close)
        m_file.addAction(act_exit)

        m_help = self.menuBar().addMenu("&Help")
        act_about = QAction("&About", self)
        act_about.triggered.connect(self.on_about)
        m_help.addAction(act_about)

    def _update_status(self, msg: str | None = None):
        self.lbl_action.setText("Idle" if msg is None else msg)

    def _make_grabber(self) -> ScopeGrabber:
        port = ByteReader(self.replay) if self.replay else None
        return ScopeGrabber(tty=self.tty, baud=self.baud, port=port,
                            rx_timeout=self.rx_timeout, logger=self.LOG)

    def _drop_grabber(self):
        if self._worker and self._worker.isRunning():
            self._worker.wait()
        if self._grabber is not None:
            self._grabber.close()
            self._grabber = None

    # ---------------------- acquisition cycle ---------------------------------
    @Slot()
    def on_tick(self):
        if self._worker and self._worker.isRunning():
            return  # previous transfer still busy, skip this tick
        if self._grabber is None:
            try:
                self._grabber = self._make_grabber()
            except (OSError, ValueError) as e:
                self.LOG.error("cannot replay %s: %s", self.replay, e)
                self._on_error(str(e))
                return
        self._worker = GrabWorker(self._grabber, self.LOG)
        self._worker.captured.connect(self.on_captured)
        self._worker.skipped.connect(self._update_status)
        self._worker.error.connect(self._on_error)
        self._worker.start()

    @Slot(bytes)
    def on_captured(self, data: bytes):
        self._last_capture = data
        self._render()
        self._update_status(f"Live ({self.registry.current().name})")

    def _render(self):
        if self._last_capture is None:
            return
        decode(self._last_capture, self.registry.current(), self._frame)
        qimg = QImage(bytes(self._frame), WIDTH, HEIGHT, WIDTH * 3, QImage.Format.Format_RGB888).copy()
        self._orig_pixmap = QPixmap.fromImage(qimg)
        self._update_preview_pixmap()

    def _update_preview_pixmap(self):
        """Scale the frame to the label, nearest neighbour to keep the LCD pixels sharp."""
        pm = getattr(self, "_orig_pixmap", None)
        if not pm or pm.isNull():
            return
        scaled = pm.scaled(
            self.image_label.contentsRect().size(),
            Qt.AspectRatioMode.KeepAspectRatio,
            Qt.TransformationMode.FastTransformation,
        )
        self.image_label.setPixmap(scaled)

    def resizeEvent(self, ev):
        super().resizeEvent(ev)
        self._update_preview_pixmap()

    def keyPressEvent(self, ev):
        if ev.key() == Qt.Key.Key_Space:
            self.on_next_theme()
            return
        super().keyPressEvent(ev)

    # ---------------------- actions -------------------------------------------
    @Slot()
    def on_next_theme(self):
        theme = self.registry.advance()
        self.LOG.debug("theme: %s", theme.name)
        self._render()  # recolor the last frame, useful while paused
        self._update_status(f"Theme: {theme.name}")

    @Slot(bool)
    def on_pause_toggled(self, checked: bool):
        if checked:
            self._timer.stop()
            self.btn_pause.setText("Resume")
            self._update_status("Paused")
        else:
            self._timer.setInterval(self.cyclic_interval_ms)
            self._timer.start()
            self.btn_pause.setText("Pause")
            self._update_status()

    @Slot()
    def on_prefs(self):
        dlg = PrefsDialog(self,
                          tty=self.tty,
                          baud=self.baud,
                          cyclic_ms=self.cyclic_interval_ms,
                          scale=self.scale)
        if dlg.exec():
            tty, baud, self.cyclic_interval_ms, self.scale = dlg.values()
            if (tty, baud) != (self.tty, self.baud):
                self.tty, self.baud = tty, baud
                self.replay = None
                self._drop_grabber()  # reopened on the next tick

            self._save_settings()

            # Apply live
            self.lbl_port.setText(self._port_text())
            self._timer.setInterval(self.cyclic_interval_ms)
            self.resize(WIDTH * self.scale + 16, HEIGHT * self.scale + 80)
            self._update_status()

    def _save_settings(self):
        if not self.replay:
            self.settings.port = self.tty
            self.settings.baud = self.baud
        self.settings.cyclic_interval_ms = self.cyclic_interval_ms
        self.settings.scale = self.scale
        self.settings.sync()

    def closeEvent(self, ev):
        self._timer.stop()
        self._save_settings()
        self._drop_grabber()
        super().closeEvent(ev)

    @Slot()
    def on_save(self):
        if self._last_capture is None:
            QMessageBox.information(self, "Save", "No image yet.")
            return
        fn, _ = QFileDialog.getSaveFileName(self, "Save PNG", os.path.join(self.last_save_dir, "screenshot.png"),
                                            "PNG Images (*.png)")
        if not fn:
            return
        self.last_save_dir = os.path.dirname(fn)
        self.save_current(fn)
        self._update_status(f"Saved {fn}")

    def save_current(self, path: str):
        theme = self.registry.current()
        img = ScopeGrabber.tag_image(frame_to_image(self._frame), theme)
        img.save(path, "PNG", pnginfo=ScopeGrabber.make_pnginfo(img))

    @Slot()
    def on_about(self):
        QMessageBox.about(
            self, "About PyScopeView",
            "PyScopeView\n\nLive screen view (PyQt6) for the Instek GDS-820C.\n"
            "Space or the Theme button cycles the color theme."
        )

    @Slot(str)
    def _on_error(self, msg: str):
        # Stop refreshing on hard errors, no message box spam
        if not self.btn_pause.isChecked():
            self.btn_pause.setChecked(True)
        self._drop_grabber()
        QMessageBox.critical(self, "Error", msg)
        self._update_status("Error")
