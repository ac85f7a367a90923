#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Bounds-checked cursors for building and picking apart single records.

"""
from struct import Struct

from fitcsv._util.exceptions import FormatError, TruncatedInputError


class RecordBuffer:
    """An owned, growable buffer with a fixed capacity.

    Records are assembled piece by piece; every piece must land inside the
    capacity declared up front, and the finished record must fill it.
    """
    __slots__ = ('capacity', '_data')

    def __init__(self, capacity):
        self.capacity = capacity
        self._data = bytearray()

    def put(self, data, size=None):
        """Append `data`, optionally insisting it is exactly `size` bytes."""
        if size is not None and len(data) != size:
            raise FormatError('encoded %d bytes for a %d byte field' %
                              (len(data), size))
        if len(self._data) + len(data) > self.capacity:
            raise FormatError('record overruns its %d byte capacity' %
                              self.capacity)
        self._data.extend(data)

    def pack(self, fmt, *values):
        if isinstance(fmt, str):
            fmt = Struct(fmt)
        self.put(fmt.pack(*values))

    def getvalue(self):
        if len(self._data) != self.capacity:
            raise FormatError('record is %d bytes short' %
                              (self.capacity - len(self._data)))
        return bytes(self._data)


class ReadCursor:
    """Read-only cursor over a payload that has already been read."""
    __slots__ = ('_view', 'offset')

    def __init__(self, raw):
        self._view = memoryview(raw)
        self.offset = 0

    @property
    def remaining(self):
        return len(self._view) - self.offset

    def take(self, size):
        if size > self.remaining:
            raise TruncatedInputError(size, self.remaining, 'field')
        chunk = self._view[self.offset:self.offset + size].tobytes()
        self.offset += size
        return chunk
