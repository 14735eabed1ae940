# scope_grabber.py
from __future__ import annotations

import time
import logging
from typing import List

import serial
from serial.tools import list_ports
from PIL import Image, PngImagePlugin

from pyscopeview.palettes import ColorTheme
from pyscopeview.raster import SCREEN_DUMP_SIZE, decode_image

# ---- Typed exceptions for protocol/transport errors ----
class ScopeError(Exception):
    """Base error for ScopeGrabber."""

class PortNotOpen(ScopeError):
    pass

class AcquisitionError(ScopeError):
    """A single screen transfer failed; the next attempt starts from scratch."""

class AcqTimeout(AcquisitionError):
    def __init__(self, received: int, message: str = ""):
        self.received = received
        super().__init__(message or f"no data within timeout after {received} of {SCREEN_DUMP_SIZE} bytes")

class Overflow(AcquisitionError):
    def __init__(self, received: int, message: str = ""):
        self.received = received
        super().__init__(message or f"received {received} bytes, expected {SCREEN_DUMP_SIZE}")

class IoFailure(AcquisitionError):
    pass


CAPTURE_REQUEST = bytes([0x57, 0x00, 0x00, 0x0A])
CHUNK_SIZE = 64
RX_TIMEOUT = 0.2      # seconds per readiness wait (200000 us)
POLL_INTERVAL = 0.002
DEFAULT_BAUD = 1200


def list_serial_ports() -> List[str]:
    return [p.device for p in list_ports.comports()]


class ScopeGrabber:
    """
    Instek GDS-820C screen grabber (transport + decoding).
    OS-independent: uses pyserial and Pillow only.

    Usage:
        grab = ScopeGrabber(tty="/dev/ttyUSB0", logger=logging.getLogger(__name__))
        grab.initialize_port()             # open once, 8N1, no flow control
        data = grab.acquire()              # 40960 raw bytes or AcquisitionError
        img = grab.get_screenshot_image(theme)
        grab.close()

    Any object with write/read/in_waiting/reset_input_buffer/close/is_open
    can be passed as ``port`` instead of opening a tty (see ByteReader).
    """

    def __init__(self, tty: str | None = None, baud: int = DEFAULT_BAUD, *,
                 port=None, rx_timeout: float = RX_TIMEOUT,
                 logger: logging.Logger | None = None):
        self.tty = tty
        self.baud = baud
        self.port = port
        self.rx_timeout = rx_timeout
        self.poll_interval = POLL_INTERVAL
        self.LOG = logger or logging.getLogger(__name__)

    # -----------------------
    # Serial lifecycle
    # -----------------------
    def initialize_port(self):
        """Open the tty raw 8N1 without flow control.

        The scope does not negotiate anything; settings are fixed for the
        lifetime of the connection. Returns the port object.
        """
        if self.port is not None:
            return self.port
        if not self.tty:
            raise PortNotOpen("no serial device given")
        self.LOG.info('Opening %s at %d baud (8N1)...', self.tty, self.baud)
        try:
            self.port = serial.Serial(
                self.tty,
                self.baud,
                bytesize=serial.EIGHTBITS,
                parity=serial.PARITY_NONE,
                stopbits=serial.STOPBITS_ONE,
                xonxoff=False,
                rtscts=False,
                dsrdtr=False,
                timeout=0,
            )
        except (serial.SerialException, OSError) as e:
            raise PortNotOpen(f"cannot open {self.tty}: {e}") from e
        return self.port

    def close(self):
        if self.port is not None and self.port.is_open:
            self.port.close()

    @property
    def is_open(self) -> bool:
        return bool(self.port is not None and self.port.is_open)

    # -----------------------
    # Protocol
    # -----------------------
    def _wait_readable(self) -> int:
        """Wait up to rx_timeout for pending input.
        Returns the number of bytes waiting, 0 on timeout.
        """
        deadline = time.monotonic() + self.rx_timeout
        while True:
            try:
                waiting = self.port.in_waiting
            except (serial.SerialException, OSError) as e:
                raise IoFailure(f"readiness check failed: {e}") from e
            if waiting:
                return waiting
            if time.monotonic() >= deadline:
                return 0
            time.sleep(self.poll_interval)

    def acquire(self) -> bytes:
        """Request one screen dump and return exactly SCREEN_DUMP_SIZE bytes.

        Transfer layout:
          -> 57 00 00 0A
          <- 40960 bytes, no header, no checksum; done when the count matches.

        Raises AcqTimeout when a wait runs out with nothing pending, Overflow
        when the scope sends more than a frame, IoFailure on port errors.
        A partial buffer is never returned.
        """
        if not self.is_open:
            raise PortNotOpen("communication port not initialized")

        buffer = bytearray(SCREEN_DUMP_SIZE)
        total = 0
        started = time.monotonic()

        try:
            self.port.write(CAPTURE_REQUEST)
        except (serial.SerialException, OSError) as e:
            raise IoFailure(f"sending capture request failed: {e}") from e

        while total < SCREEN_DUMP_SIZE:
            if not self._wait_readable():
                self.LOG.warning('timeout: %d of %d bytes received', total, SCREEN_DUMP_SIZE)
                raise AcqTimeout(total)
            try:
                chunk = self.port.read(CHUNK_SIZE)
            except (serial.SerialException, OSError) as e:
                raise IoFailure(f"read failed: {e}") from e
            if not chunk:
                continue
            n = len(chunk)
            if total + n > SCREEN_DUMP_SIZE:
                self.LOG.warning('overflow: last read=%d, bytes total=%d', n, total + n)
                self._discard_input()
                raise Overflow(total + n)
            buffer[total:total + n] = chunk
            total += n

        self.LOG.debug('%d bytes in %.3f s', total, time.monotonic() - started)
        return bytes(buffer)

    def _discard_input(self):
        # stale bytes would shift the next frame
        try:
            self.port.reset_input_buffer()
        except (serial.SerialException, OSError) as e:
            self.LOG.debug('reset_input_buffer failed: %s', e)

    def get_screenshot_image(self, theme: ColorTheme, *, comment: str = "") -> Image.Image:
        """Grab one frame and return it as a Pillow Image (320x240 RGB)."""
        self.LOG.info('Downloading screenshot from scope...')
        data = self.acquire()
        return self.tag_image(decode_image(data, theme), theme, comment)

    @staticmethod
    def tag_image(img: Image.Image, theme: ColorTheme, comment: str = "") -> Image.Image:
        # Stash intended PNG text in a conventional place so callers can use it when saving
        img.info.setdefault("png_text", {
            "Generator": "PyScopeView V0.1",
            "Description": "Exported from Instek GDS-820C",
            "Theme": theme.name,
            "Extra text": comment or "",
        })
        return img

    # Helper the CLI can use when saving to PNG
    @staticmethod
    def make_pnginfo(img: Image.Image) -> PngImagePlugin.PngInfo:
        pi = PngImagePlugin.PngInfo()
        for k, v in img.info.get("png_text", {}).items():
            pi.add_text(k, v)
        return pi
