"""
A file-backed stand-in for the serial port, used to replay a recorded screen dump.

The dump is either raw binary (as written by --dump) or a text file of
whitespace-separated hex values, e.g. "57 00 00 0a". Every write() is taken as a
new capture request and rewinds the data, so the live viewer can loop on one file.
self.index tracks the position of the next byte to be read.
"""

from __future__ import annotations

import logging
import string

from pyscopeview.raster import SCREEN_DUMP_SIZE

LOG = logging.getLogger("PyScopeView")

_HEX_TEXT = set(string.hexdigits + string.whitespace + "x")


class ByteReader:

    def __init__(self, file_path):
        self.file_path = file_path
        self.byte_array = self._read_file_to_byte_array()
        self.index = len(self.byte_array)  # nothing pending until requested
        self.is_open = True

    def _read_file_to_byte_array(self):
        with open(self.file_path, 'rb') as file:
            raw = file.read()
        if len(raw) == SCREEN_DUMP_SIZE:
            return bytearray(raw)
        try:
            text = raw.decode('ascii')
        except UnicodeDecodeError:
            return bytearray(raw)
        if not text.strip() or not set(text) <= _HEX_TEXT:
            return bytearray(raw)
        byte_array = bytearray()
        for value in text.split():
            try:
                byte_array.append(int(value, 16))
            except ValueError as e:
                raise ValueError(f"{self.file_path}: bad hex byte {value!r}") from e
        return byte_array

    @property
    def in_waiting(self):
        return len(self.byte_array) - self.index

    def write(self, data):
        LOG.debug('BR: Command %s', bytes(data).hex(' '))
        self.index = 0
        return len(data)

    def read(self, size=1):
        if self.index + size > len(self.byte_array):
            size = len(self.byte_array) - self.index
        bytes_to_return = bytes(self.byte_array[self.index:self.index + size])
        self.index += size
        return bytes_to_return

    def reset_input_buffer(self):
        self.index = len(self.byte_array)

    def close(self):
        self.is_open = False
