import os
import sys
import tempfile
import unittest
from pathlib import Path
from unittest import mock

os.environ.setdefault("QT_QPA_PLATFORM", "offscreen")

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

try:
    from PyQt6.QtWidgets import QApplication
    from pyscopeview.scope_gui_pyqt6 import MainWindow
except ImportError:  # pragma: no cover
    QApplication = None


class BusyWorker:
    def isRunning(self):
        return True


class MainWindowTickTests(unittest.TestCase):
    def setUp(self):
        if QApplication is None:
            self.skipTest("PyQt6 not installed")
        self.app = QApplication.instance() or QApplication([])
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    def _window(self, replay):
        w = MainWindow(tty="/dev/null", baud=1200, replay=replay)
        w._timer.stop()
        self.addCleanup(w.deleteLater)
        return w

    def test_tick_skipped_while_transfer_running(self):
        w = self._window(os.path.join(self.tmp.name, "frame.bin"))
        busy = BusyWorker()
        w._worker = busy
        w.on_tick()
        self.assertIs(w._worker, busy)
        self.assertIsNone(w._grabber)

    def test_missing_replay_file_pauses_view(self):
        w = self._window(os.path.join(self.tmp.name, "missing.bin"))
        with mock.patch("pyscopeview.scope_gui_pyqt6.QMessageBox.critical") as critical:
            w.on_tick()
        critical.assert_called_once()
        self.assertTrue(w.btn_pause.isChecked())
        self.assertIsNone(w._grabber)
        self.assertIsNone(w._worker)


if __name__ == "__main__":
    unittest.main()
