#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
FIT base types and their text representations.

Each base type knows how to turn the raw bytes of one field into a text
token and back again. The text is deliberately dumb:

    + integers are fixed-width, zero-padded columns; array fields join
      their elements with ``|``
    + strings are copied verbatim, with ``NULL`` standing in for an empty
      (all zero) buffer
    + floats are *not* formatted as decimals: their bit patterns are
      written as unsigned integers of the same width, so existing text
      fixtures keep round-tripping
    + anything we don't recognise (including all developer fields) is an
      opaque byte array, written as 3-digit decimals joined by ``/``

"""
import numpy as np

from fitcsv._util.exceptions import FormatError, TruncatedInputError


ARRAY_DELIMITER = '|'
BYTES_DELIMITER = '/'
NULL_STRING = 'NULL'

# Characters the text grammar can't carry inside a single value.
RESERVED_CHARS = frozenset(',:\r\n')

# Column width by integer width (bytes); room for the widest value + sign.
PAD_WIDTHS = {1: 3, 2: 6, 4: 11, 8: 21}


class BaseType:
    __slots__ = ('name', 'identifier')

    def __init__(self, **kwargs):
        for name, value in kwargs.items():
            setattr(self, name, value)

    def __repr__(self):
        return '<%s %s (0x%02X)>' % (type(self).__name__, self.name,
                                      self.identifier)

    def fits(self, size):
        """Can a field of `size` bytes be coded as this type?"""
        return size > 0

    def encode(self, text, size, big_endian=False):
        raise NotImplementedError

    def decode(self, raw, size, big_endian=False):
        raise NotImplementedError

    @staticmethod
    def _check_size(raw, size):
        if len(raw) != size:
            raise TruncatedInputError(size, len(raw), 'field')


class IntegerType(BaseType):
    """Signed/unsigned integers of 1, 2, 4 or 8 bytes.

    A field may hold several elements (size // width of them).
    """
    __slots__ = ('dtype',)

    @property
    def width(self):
        return self.dtype.itemsize

    @property
    def pad(self):
        return PAD_WIDTHS[self.width]

    def fits(self, size):
        return size > 0 and size % self.width == 0

    def _dtype(self, big_endian):
        return self.dtype.newbyteorder('>') if big_endian else self.dtype

    def encode(self, text, size, big_endian=False):
        tokens = text.split(ARRAY_DELIMITER)
        count = size // self.width
        if len(tokens) != count:
            raise FormatError('%s field of %d bytes needs %d element(s), '
                              'got %d in %r' % (self.name, size, count,
                                                len(tokens), text))
        info = np.iinfo(self.dtype)
        values = []
        for token in tokens:
            try:
                value = int(token.strip())
            except ValueError:
                raise FormatError('%r is not a valid %s value' %
                                  (token, self.name)) from None
            if not info.min <= value <= info.max:
                raise FormatError('%d is out of range for %s' %
                                  (value, self.name))
            values.append(value)
        return np.array(values, dtype=self._dtype(big_endian)).tobytes()

    def decode(self, raw, size, big_endian=False):
        self._check_size(raw, size)
        values = np.frombuffer(raw, dtype=self._dtype(big_endian))
        return ARRAY_DELIMITER.join('{:0{pad}d}'.format(int(value),
                                                        pad=self.pad)
                                    for value in values)


class OpaqueFloatType(IntegerType):
    """Floats travel as the unsigned integer with the same bit pattern."""
    __slots__ = tuple()


class StringType(BaseType):
    __slots__ = tuple()

    def encode(self, text, size, big_endian=False):
        buf = bytearray(size)    # zero initialised
        if text != NULL_STRING:
            data = text.encode('utf-8', 'surrogateescape')
            if len(data) > size:
                raise FormatError('%r does not fit in a %d byte string' %
                                  (text, size))
            buf[:len(data)] = data
        return bytes(buf)

    def decode(self, raw, size, big_endian=False):
        self._check_size(raw, size)
        content, __, padding = bytes(raw).partition(b'\x00')
        if any(padding):
            raise FormatError('string %r has data after its terminator'
                              % bytes(raw))
        if not content:
            return NULL_STRING
        text = content.decode('utf-8', 'surrogateescape')
        if text == NULL_STRING:
            raise FormatError('string %r reads the same as an empty one'
                              % text)
        if text != text.strip() or RESERVED_CHARS.intersection(text):
            raise FormatError('string %r cannot be written as a text value'
                              % text)
        return text


class ByteArrayType(BaseType):
    """Opaque bytes: the fallback for anything we can't (or won't) type."""
    __slots__ = tuple()

    def encode(self, text, size, big_endian=False):
        tokens = [token for token in text.split(BYTES_DELIMITER)
                  if token.strip()]
        if len(tokens) > size:
            raise FormatError('%d bytes given for a %d byte field: %r' %
                              (len(tokens), size, text))
        buf = bytearray(size)    # shortfall stays zero
        for i, token in enumerate(tokens):
            try:
                value = int(token.strip())
            except ValueError:
                raise FormatError('%r is not a valid byte' % token) from None
            if not 0 <= value <= 0xFF:
                raise FormatError('%d is out of range for a byte' % value)
            buf[i] = value
        return bytes(buf)

    def decode(self, raw, size, big_endian=False):
        self._check_size(raw, size)
        return BYTES_DELIMITER.join('%03d' % byte for byte in raw)


def _int(name, identifier, fmt, cls=IntegerType):
    return cls(name=name, identifier=identifier, dtype=np.dtype('<' + fmt))


BASE_TYPE_BYTE = ByteArrayType(name='byte', identifier=0x0D)

BASE_TYPES = {
    0x00: _int('enum',    0x00, 'u1'),
    0x01: _int('sint8',   0x01, 'i1'),
    0x02: _int('uint8',   0x02, 'u1'),
    0x83: _int('sint16',  0x83, 'i2'),
    0x84: _int('uint16',  0x84, 'u2'),
    0x85: _int('sint32',  0x85, 'i4'),
    0x86: _int('uint32',  0x86, 'u4'),
    0x07: StringType(name='string', identifier=0x07),
    0x88: _int('float32', 0x88, 'u4', OpaqueFloatType),
    0x89: _int('float64', 0x89, 'u8', OpaqueFloatType),
    0x0A: _int('uint8z',  0x0A, 'u1'),
    0x8B: _int('uint16z', 0x8B, 'u2'),
    0x8C: _int('uint32z', 0x8C, 'u4'),
    0x0D: BASE_TYPE_BYTE,
    0x8E: _int('sint64',  0x8E, 'i8'),
    0x8F: _int('uint64',  0x8F, 'u8'),
    0x90: _int('uint64z', 0x90, 'u8')}

BASE_TYPES_BY_NAME = {bt.name: bt for bt in BASE_TYPES.values()}


def get_base_type(identifier, size):
    """The codec for a field of declared type `identifier` and `size` bytes.

    Unknown type codes, and sizes that aren't a whole number of elements,
    fall back to opaque bytes.
    """
    base_type = BASE_TYPES.get(identifier, BASE_TYPE_BYTE)
    if not base_type.fits(size):
        return BASE_TYPE_BYTE
    return base_type
