#!/usr/bin/env python3
"""
PyScopeView - Serial screen capture & PNG export for the Instek GDS-820C.

This script:
  - Opens the scope's USB serial port (FTDI, raw 8N1, no flow control)
  - Sends the 4-byte screen dump request 57 00 00 0A
  - Reads exactly 40960 bytes of 4 bpp indexed pixels
  - Renders a 320x240 PNG in one of several color themes, or shows a live view

Protocol notes:
  - No ACK, no length header, no checksum: the frame is complete when 40960
    bytes have arrived. Silence for longer than the timeout aborts the grab.
  - Pixels come in 128-byte vertical strips, right-most column first; the last
    8 bytes of every strip are padding.
"""

from __future__ import annotations

import sys
import os
import argparse
import logging

from pyscopeview.app_settings import AppSettings
from pyscopeview.byte_reader import ByteReader
from pyscopeview.palettes import PaletteRegistry
from pyscopeview.raster import decode_image
from pyscopeview.scope_grabber import ScopeGrabber, ScopeError, RX_TIMEOUT, list_serial_ports


def init_logger(opt):
    """
    Attach two handlers to the same logger, a console handler (to stderr) that shows only
    INFO and above (DEBUG with -v), and a file handler that captures everything with rich formatting.

    LOG.info("...") for user-facing progress/status (console + file).
    LOG.debug("...") for transfer details (file only unless -v).
    LOG.warning(...) / LOG.error(...) for problems (both console + file).
    """
    logger = logging.getLogger("PyScopeView")
    logger.handlers.clear()
    logger.propagate = False   # don't double-log via root

    # Master level: keep at DEBUG so handlers decide what to show/store
    logger.setLevel(logging.DEBUG)

    # -------- Console handler (to terminal) --------
    if not getattr(opt, "quiet", False):
        ch = logging.StreamHandler(sys.stderr)   # safe when piping stdout
        ch.setLevel(logging.DEBUG if getattr(opt, "verbose", False) else logging.INFO)
        ch.setFormatter(logging.Formatter("%(message)s"))
        logger.addHandler(ch)

    # -------- File handler (full detail) --------
    if getattr(opt, "logging", False):
        log_path = getattr(opt, "log_file", None) or "pyscopeview.log"
        os.makedirs(os.path.dirname(log_path) or ".", exist_ok=True)
        fh = logging.FileHandler(log_path, encoding="utf-8", mode="w")
        fh.setLevel(logging.DEBUG)  # capture everything to file
        fh.setFormatter(logging.Formatter(
            "%(asctime)s %(name)s %(levelname)s [%(filename)s:%(lineno)d %(funcName)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S"
        ))
        logger.addHandler(fh)

    return logger

# --- Defaults & settings resolution ------------------------------------------
def apply_settings(args, settings, use_saved: bool = True) -> None:
    """
    Fill missing CLI args from either saved QSettings (use_saved=True)
    or from AppSettings' compile-time defaults (use_saved=False).
    Persists tty/baud back when --save-settings was given.
    """
    if use_saved:
        defaults = {
            "tty": settings.port,
            "baud": settings.baud,
        }
    else:
        defaults = {
            "tty": AppSettings.DEFAULT_PORT,
            "baud": AppSettings.DEFAULT_BAUD,
        }

    # Fill only when user did not pass a value
    for key, val in defaults.items():
        if getattr(args, key, None) is None:
            setattr(args, key, val)
    args.baud = int(args.baud)

    if getattr(args, "save_settings", False):
        settings.port = args.tty
        settings.baud = args.baud
        settings.sync()


def process_arguments(argv=None):
    """Parse CLI flags."""
    registry = PaletteRegistry()
    p = argparse.ArgumentParser(
        prog='PyScopeView',
        description='Screen capture for the Instek GDS-820C (CLI or --withgui)'
    )
    # Communication
    p.add_argument('-t', '--tty', dest='tty', help='serial port to use', default=None)
    p.add_argument('-b', '--baud', dest='baud', type=int, help=f'baudrate [default: {AppSettings.DEFAULT_BAUD}]', default=None)
    p.add_argument('--timeout', type=float, default=RX_TIMEOUT,
                   help=f'seconds to wait for the next data chunk [default: {RX_TIMEOUT}]')
    p.add_argument('--replay', metavar='FILE', default=None,
                   help='read the screen dump from FILE instead of the serial port')

    # Output
    p.add_argument('-o', '--out',  dest='out',  help='output-file')
    p.add_argument('-a', '--auto', dest='auto', help='open the grabbed image with the system viewer', action='store_true')
    p.add_argument('--dump', metavar='FILE', default=None, help='also write the raw 40960 byte screen dump to FILE')
    p.add_argument('--theme', choices=registry.names(), default=registry.current().name,
                   help=f'color theme [default: {registry.current().name}]')
    p.add_argument('-c', '--comment', help='add extra comment to picture', default='')

    # Misc
    p.add_argument('-v', '--verbose', help='increase output verbosity', action='store_true')
    p.add_argument('-l', '--logging', help='enable logging to file', action='store_true')
    p.add_argument('--log-file', help='log file path (used with --logging)', default=None)
    p.add_argument('--quiet', help='suppress console log output', action='store_true')

    p.add_argument('--no-settings', help='ignore config file defaults', action='store_true')
    p.add_argument('--save-settings', help='save provided options to the user config', action='store_true')

    act = p.add_mutually_exclusive_group()
    act.add_argument('-g', '--grab', action='store_true', help='grab screen now (default)')
    act.add_argument('--withgui', help='launch live view (PyQt6)', action='store_true')
    act.add_argument('--decode', metavar='FILE', default=None, help='convert a saved raw screen dump, no scope needed')
    act.add_argument('--list-ports', action='store_true', help='print the serial ports found and exit')
    return p.parse_args(argv)

# -----------------
# GUI launcher (only when --withgui)
# -----------------
def run_gui_from_separate_file(args, LOG):
    # Lazy import so CLI users don't need a display
    try:
        from PyQt6.QtWidgets import QApplication
        from pyscopeview.scope_gui_pyqt6 import MainWindow
    except ImportError as e:
        LOG.error("GUI dependencies are missing (PyQt6).")
        LOG.info(f"Details: {e}")
        return 1

    app = QApplication(sys.argv)
    w = MainWindow(
        tty=args.tty,
        baud=args.baud,
        theme=args.theme,
        replay=args.replay,
        rx_timeout=args.timeout,
    )
    w.show()
    return app.exec()


def make_grabber_from_args(args, LOG) -> ScopeGrabber:
    # Single place to build a configured ScopeGrabber
    port = ByteReader(args.replay) if args.replay else None
    return ScopeGrabber(tty=args.tty, baud=args.baud, port=port,
                        rx_timeout=args.timeout, logger=LOG)


def save_or_show(img, args, LOG) -> None:
    if args.out:
        pnginfo = ScopeGrabber.make_pnginfo(img)
        img.save(args.out, "PNG", pnginfo=pnginfo)
        LOG.info(args.out + " saved")
    elif args.auto:
        img.show()
    else:
        LOG.warning("nothing to do with the image, use -o FILE or -a")


# -----------------
# Main
# -----------------
def main(argv=None) -> int:
    args = process_arguments(argv)
    LOG = init_logger(args)
    LOG.info('PyScopeView')

    if args.list_ports:
        for dev in list_serial_ports():
            print(dev)
        return 0

    settings = AppSettings()
    apply_settings(args, settings, use_saved=not args.no_settings)

    registry = PaletteRegistry()
    theme = registry.select(args.theme)

    if args.withgui:
        return run_gui_from_separate_file(args, LOG)

    if args.decode:
        try:
            data = bytes(ByteReader(args.decode).byte_array)
            img = ScopeGrabber.tag_image(decode_image(data, theme), theme, args.comment)
        except (OSError, ValueError) as e:
            LOG.error("%s: %s", args.decode, e)
            return 1
        save_or_show(img, args, LOG)
        return 0

    try:
        grab = make_grabber_from_args(args, LOG)
    except (OSError, ValueError) as e:
        LOG.error("Cannot replay %s: %s", args.replay, e)
        return 1
    try:
        grab.initialize_port()
        data = grab.acquire()
    except ScopeError as e:
        LOG.error("Grab failed: %s", e)
        return 1
    finally:
        grab.close()

    if args.dump:
        with open(args.dump, "wb") as f:
            f.write(data)
        LOG.info(args.dump + " saved")

    img = ScopeGrabber.tag_image(decode_image(data, theme), theme, args.comment)
    save_or_show(img, args, LOG)
    return 0

if __name__ == '__main__':
    raise SystemExit(main())
