#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Read and write the Flexible and Interoperable data Transfer (FIT) protocol.

A FIT file is a fixed size file header, a body made of records, and a
two byte CRC::

    [file header][record][record]...[record][CRC]

Every record starts with a one byte record header. A definition record
binds a layout (a global message number and a list of field definitions)
to one of 16 local message types; a data record carries values laid out
by the definition most recently bound to its local message type.

Nothing here knows what a field *means*; only its declared size and base
type.

"""
from struct import Struct, pack

from fitcsv.fit import _crc
from fitcsv.fit._base_types import BASE_TYPE_BYTE, get_base_type
from fitcsv.fit._buffer import ReadCursor, RecordBuffer
from fitcsv._util.exceptions import (
    ChecksumError, FormatError, TruncatedInputError, UndefinedSlotError)


FIT_MAGIC = b'.FIT'
HEADER_SIZE = 14           # current header, with CRC
LEGACY_HEADER_SIZE = 12    # older header, no CRC
CRC_SIZE = 2

DEFAULT_PROTOCOL_VERSION = 0x20    # 2.0; major in the upper nibble
DEFAULT_PROFILE_VERSION = 21141    # 21.141

N_LOCAL_MESSAGE_TYPES = 16
MAX_COMPRESSED_LOCAL_MESSAGE_TYPE = 3
MAX_TIME_OFFSET = 31
MAX_DATA_SIZE = 0xFFFFFFFF

# Record header bits.
COMPRESSED_TIMESTAMP_BIT = 0x80
DEFINITION_BIT = 0x40
DEVELOPER_DATA_BIT = 0x20
LOCAL_MESSAGE_TYPE_MASK = 0x0F
COMPRESSED_LOCAL_MESSAGE_TYPE_SHIFT = 5
COMPRESSED_LOCAL_MESSAGE_TYPE_MASK = 0x03
TIME_OFFSET_MASK = 0x1F

FILE_HEADER = Struct('<2BHI4s')
FILE_HEADER_CRC = Struct('<H')
DEFINITION_PREFIX = Struct('<2BHB')   # reserved, arch, global number, count
FIELD_TRIPLE = Struct('<3B')


class FileHeader:
    """From the FIT SDK release 21.141.00

    File Header Contents
    --------------------

    ======  ======================  =======================================
     Byte    Name                    Description
    ======  ======================  =======================================
      0     Header size             12 (legacy) or 14
      1     Protocol version        Major version in the upper nibble
     2-3    Profile version         Little endian
     4-7    Data size               Length of the body, little endian
     8-11   Data type               ".FIT"
    12-13   CRC                     Of bytes 0-11; 0 means "not computed"
    ======  ======================  =======================================

    """
    __slots__ = ('header_size', 'protocol_version', 'profile_version',
                 'data_size', 'crc')

    def __init__(self, protocol_version=DEFAULT_PROTOCOL_VERSION,
                 profile_version=DEFAULT_PROFILE_VERSION, data_size=0,
                 header_size=HEADER_SIZE, crc=0):
        self.header_size = header_size
        self.protocol_version = protocol_version
        self.profile_version = profile_version
        self.data_size = data_size
        self.crc = crc

    def __repr__(self):
        return ('FileHeader(protocol_version={0.protocol_version}, '
                'profile_version={0.profile_version}, '
                'data_size={0.data_size})'.format(self))

    def encode(self):
        """The 14 byte header, with a freshly computed CRC."""
        if not 0 <= self.protocol_version <= 0xFF:
            raise FormatError('protocol version %r does not fit in a byte'
                              % self.protocol_version)
        if not 0 <= self.profile_version <= 0xFFFF:
            raise FormatError('profile version %r does not fit in two bytes'
                              % self.profile_version)
        if not 0 <= self.data_size <= MAX_DATA_SIZE:
            raise FormatError('body of %d bytes is too large' % self.data_size)

        raw = FILE_HEADER.pack(HEADER_SIZE, self.protocol_version,
                               self.profile_version, self.data_size,
                               FIT_MAGIC)
        self.header_size = HEADER_SIZE
        self.crc = _crc.calculate(raw)
        return raw + FILE_HEADER_CRC.pack(self.crc)

    @staticmethod
    def check_prefix(raw):
        """Validate the first 12 bytes; returns the declared header size."""
        if len(raw) < LEGACY_HEADER_SIZE:
            raise TruncatedInputError(LEGACY_HEADER_SIZE, len(raw),
                                      'file header')
        if raw[8:12] != FIT_MAGIC:
            raise FormatError("this doesn't look like a fit file!")
        header_size = raw[0]
        if header_size < LEGACY_HEADER_SIZE:
            raise FormatError('irregular file header size (%d)' % header_size)
        return header_size

    @classmethod
    def decode(cls, raw):
        """Parse a complete header (`header_size` bytes of it).

        A zero CRC is taken to mean the writer didn't bother; anything else
        has to match.
        """
        header_size = cls.check_prefix(raw)
        if len(raw) < header_size:
            raise TruncatedInputError(header_size, len(raw), 'file header')

        __, prot, prof, data_size, __ = FILE_HEADER.unpack_from(raw)

        crc = 0
        if header_size >= HEADER_SIZE:
            crc, = FILE_HEADER_CRC.unpack_from(raw, LEGACY_HEADER_SIZE)
            if crc:
                computed = _crc.calculate(raw[:LEGACY_HEADER_SIZE])
                if computed != crc:
                    raise ChecksumError('file header', crc, computed)

        return cls(protocol_version=prot, profile_version=prof,
                   data_size=data_size, header_size=header_size, crc=crc)


class RecordHeader:
    """From the FIT SDK release 21.141.00

    The record header is a one byte bit field. There are two types of
    record header: normal header and compressed timestamp header. The
    header type is indicated in the most significant bit.
    """
    __slots__ = ('local_message_type', 'is_definition', 'has_developer_data',
                 'time_offset')

    @staticmethod
    def from_byte(header_byte):
        header_cls = (CompressedTimestampHeader
                      if header_byte & COMPRESSED_TIMESTAMP_BIT
                      else NormalHeader)
        return header_cls.from_byte(header_byte)

    @property
    def is_compressed(self):
        return self.time_offset is not None

    def __repr__(self):
        return '<%s 0x%02X>' % (type(self).__name__, self.to_byte())

    def __eq__(self, other):
        return (isinstance(other, RecordHeader) and
                self.to_byte() == other.to_byte())

    def __hash__(self):
        return hash(self.to_byte())


class NormalHeader(RecordHeader):
    """From the FIT SDK release 21.141.00

    Normal Header Bit Field Description
    -----------------------------------

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          0        Normal header
      6        0 or 1     Message type:
                            1: definition message
                            0: data message
      5        0 or 1     Definition: developer
                          data present
      4          0        Reserved
     0-3        0-15      Local message type
    =====  =============  ========================
    """
    __slots__ = tuple()

    def __init__(self, local_message_type, is_definition=False,
                 has_developer_data=False):
        check_local_message_type(local_message_type)
        self.local_message_type = local_message_type
        self.is_definition = is_definition
        self.has_developer_data = is_definition and has_developer_data
        self.time_offset = None

    @classmethod
    def from_byte(cls, header_byte):
        return cls(header_byte & LOCAL_MESSAGE_TYPE_MASK,
                   is_definition=bool(header_byte & DEFINITION_BIT),
                   has_developer_data=bool(header_byte & DEVELOPER_DATA_BIT))

    def to_byte(self):
        header_byte = self.local_message_type
        if self.is_definition:
            header_byte |= DEFINITION_BIT
            if self.has_developer_data:
                header_byte |= DEVELOPER_DATA_BIT
        return header_byte


class CompressedTimestampHeader(RecordHeader):
    """From the FIT SDK release 21.141.00

    Compressed Timestamp Header Description
    ---------------------------------------

    =====  =============  ========================
    Bit        Value      Description
    =====  =============  ========================
      7          1        Compressed timestamp
     5-6        0-3       Local message type
     0-4        0-31      Time offset (seconds)
    =====  =============  ========================

    NOTE: this type of record header is used for a *data message only*.
    """
    __slots__ = tuple()

    def __init__(self, local_message_type, time_offset):
        if not 0 <= local_message_type <= MAX_COMPRESSED_LOCAL_MESSAGE_TYPE:
            raise FormatError('local message type %r cannot be compressed'
                              % local_message_type)
        if not 0 <= time_offset <= MAX_TIME_OFFSET:
            raise FormatError('time offset %r is out of range (0-%d)' %
                              (time_offset, MAX_TIME_OFFSET))
        self.local_message_type = local_message_type
        self.is_definition = False
        self.has_developer_data = False
        self.time_offset = time_offset

    @classmethod
    def from_byte(cls, header_byte):
        return cls((header_byte >> COMPRESSED_LOCAL_MESSAGE_TYPE_SHIFT)
                   & COMPRESSED_LOCAL_MESSAGE_TYPE_MASK,
                   header_byte & TIME_OFFSET_MASK)

    def to_byte(self):
        return (COMPRESSED_TIMESTAMP_BIT |
                self.local_message_type << COMPRESSED_LOCAL_MESSAGE_TYPE_SHIFT |
                self.time_offset)


class FieldDefinition:
    """From the FIT SDK release 21.141.00

    Field Definition Contents
    -------------------------

    ======  =================  ===============================================
     Byte    Name               Description
    ======  =================  ===============================================
      0     Field definition   Defined in the global FIT profile for the
            number             specified FIT message.
      1     Size               Size (in bytes) of the specified FIT message's
                               field.
      2     Base type          Base type of the specified FIT message's field.
    ======  =================  ===============================================

    """
    __slots__ = ('number', 'size', 'base_type_num', 'base_type')

    def __init__(self, number, size, base_type_num):
        check_byte('field number', number)
        check_byte('field size', size)
        check_byte('base type', base_type_num)
        if size == 0:
            raise FormatError('field %d has zero size' % number)
        self.number, self.size, self.base_type_num = number, size, base_type_num
        self.base_type = get_base_type(base_type_num, size)

    def __repr__(self):
        return 'FieldDefinition(%d, %d, 0x%02X)' % self.triple

    def __eq__(self, other):
        return (type(other) is type(self) and
                self.triple == other.triple)

    @property
    def triple(self):
        return self.number, self.size, self.base_type_num

    def encode(self, text, big_endian=False):
        return self.base_type.encode(text, self.size, big_endian)

    def decode(self, raw, big_endian=False):
        return self.base_type.decode(raw, self.size, big_endian)


class DeveloperFieldDefinition(FieldDefinition):
    """A vendor extension field: number, size, developer data index.

    We don't have the developer's field description, so the value is
    always treated as opaque bytes.
    """
    __slots__ = tuple()

    def __init__(self, number, size, developer_index):
        check_byte('developer field number', number)
        check_byte('developer field size', size)
        check_byte('developer data index', developer_index)
        if size == 0:
            raise FormatError('developer field %d has zero size' % number)
        self.number, self.size = number, size
        self.base_type_num = developer_index
        self.base_type = BASE_TYPE_BYTE

    def __repr__(self):
        return 'DeveloperFieldDefinition(%d, %d, %d)' % self.triple

    @property
    def developer_index(self):
        return self.base_type_num


class MessageDefinition:
    """From the FIT SDK release 21.141.00

    The definition message is used to create an association between the
    local message type contained in the record header, and a Global Message
    Number that relates to the global FIT message.

    Definition Message Contents
    ---------------------------

    ======  =======================  =============  ===========================
    Byte    Description                 Length      Value
    (bytes)
    ======  =======================  =============  ===========================
      0     Reserved                       1         0
      1     Architecture                   1         0: little endian
                                                     1: big endian
     2-3    Global message number          2         Unique to each message
      4     Fields                         1         Number of fields
      5     Field definition(s)            3         (per field)
     ...    Developer fields               1         Only when the header's
                                                     developer bit is set
     ...    Developer field def(s)         3         (per developer field)
    ======  =======================  =============  ===========================

    """
    __slots__ = ('local_message_type', 'global_message_number', 'field_defs',
                 'developer_field_defs', 'big_endian', 'payload_length')

    def __init__(self, local_message_type, global_message_number, field_defs,
                 developer_field_defs=(), big_endian=False):
        check_local_message_type(local_message_type)
        if not 0 <= global_message_number <= 0xFFFF:
            raise FormatError('global message number %r is out of range'
                              % global_message_number)
        self.local_message_type = local_message_type
        self.global_message_number = global_message_number
        self.field_defs = list(field_defs)
        self.developer_field_defs = list(developer_field_defs)
        self.big_endian = big_endian

        if len(self.field_defs) > 0xFF or len(self.developer_field_defs) > 0xFF:
            raise FormatError('too many fields in one definition')

        # Every data message for this definition is exactly this long.
        self.payload_length = sum(fd.size for fd in self.all_field_defs)

    def __repr__(self):
        return ('<MessageDefinition local={0.local_message_type} '
                'global={0.global_message_number} '
                'fields={1} developer_fields={2}>'.format(
                    self, len(self.field_defs), len(self.developer_field_defs)))

    @property
    def has_developer_data(self):
        return bool(self.developer_field_defs)

    @property
    def all_field_defs(self):
        return self.field_defs + self.developer_field_defs

    @property
    def header(self):
        return NormalHeader(self.local_message_type, is_definition=True,
                            has_developer_data=self.has_developer_data)

    @property
    def record_length(self):
        length = (1 + DEFINITION_PREFIX.size +
                  FIELD_TRIPLE.size * len(self.field_defs))
        if self.has_developer_data:
            length += 1 + FIELD_TRIPLE.size * len(self.developer_field_defs)
        return length

    def encode(self):
        """The whole definition record, always written little endian."""
        buf = RecordBuffer(self.record_length)
        buf.put(bytes((self.header.to_byte(),)))
        buf.pack(DEFINITION_PREFIX, 0, 0, self.global_message_number,
                 len(self.field_defs))
        for field_def in self.field_defs:
            buf.pack(FIELD_TRIPLE, *field_def.triple)
        if self.has_developer_data:
            buf.put(bytes((len(self.developer_field_defs),)))
            for field_def in self.developer_field_defs:
                buf.pack(FIELD_TRIPLE, *field_def.triple)
        return buf.getvalue()


class LocalDefinitionTable:
    """The 16 local message types and the definitions bound to them.

    Binding a definition to a slot throws away whatever was there before;
    nothing is ever shared between slots.
    """
    __slots__ = ('_slots',)

    def __init__(self):
        self._slots = [None] * N_LOCAL_MESSAGE_TYPES

    def __contains__(self, slot):
        return (0 <= slot < N_LOCAL_MESSAGE_TYPES and
                self._slots[slot] is not None)

    def define(self, slot, definition):
        check_local_message_type(slot)
        self._slots[slot] = definition

    def lookup(self, slot):
        check_local_message_type(slot)
        definition = self._slots[slot]
        if definition is None:
            raise UndefinedSlotError(slot)
        return definition

    def payload_length(self, slot):
        return self.lookup(slot).payload_length


class DataMessage:
    """One data record: a header, the definition it was laid out by, and a
    text value per field (developer fields last)."""
    __slots__ = ('header', 'definition', 'field_values')

    def __init__(self, header, definition, field_values):
        self.header = header
        self.definition = definition
        self.field_values = list(field_values)

    def __repr__(self):
        return '<DataMessage local=%d values=%r>' % (self.local_message_type,
                                                     self.field_values)

    @property
    def local_message_type(self):
        return self.header.local_message_type

    @property
    def time_offset(self):
        return self.header.time_offset

    @property
    def global_message_number(self):
        return self.definition.global_message_number

    def encode(self):
        definition = self.definition
        buf = RecordBuffer(1 + definition.payload_length)
        buf.put(bytes((self.header.to_byte(),)))
        for field_def, text in zip(definition.all_field_defs,
                                   self.field_values):
            buf.put(field_def.encode(text), field_def.size)
        return buf.getvalue()


class FitReader:
    """A file-like object for reading *.fit files, one record at a time.

    Attributes
    ----------
    reader : io.BufferedReader
        Open binary file to be read.
    header : FileHeader
        Set by `read_header`.
    local_messages : LocalDefinitionTable
        Definitions parsed from the file so far.
    crc : int
        Running CRC of every byte read so far, header included.
    bytes_read : int
        Body bytes read so far.
    """
    def __init__(self, reader):
        self.reader = reader
        self.header = None
        self.local_messages = LocalDefinitionTable()
        self.crc = 0
        self.bytes_read = 0

    @property
    def bytes_left(self):
        return self.header.data_size - self.bytes_read

    def _read_exactly(self, size, what):
        raw = self.reader.read(size)
        if len(raw) < size:
            raise TruncatedInputError(size, len(raw), what)
        return raw

    def read(self, size, what='record'):
        """Read body bytes, keeping track of the CRC and bytes read."""
        raw = self._read_exactly(size, what)
        self.crc = _crc.update(self.crc, raw)
        self.bytes_read += size
        return raw

    def read_header(self):
        raw = self._read_exactly(LEGACY_HEADER_SIZE, 'file header')
        header_size = FileHeader.check_prefix(raw)
        if header_size > LEGACY_HEADER_SIZE:
            raw += self._read_exactly(header_size - LEGACY_HEADER_SIZE,
                                      'file header')
        self.header = FileHeader.decode(raw)

        # The file CRC covers the header too. A header ending in its own
        # CRC sums to zero, but a legacy or zero-CRC header does not.
        self.crc = _crc.calculate(raw)
        self.bytes_read = 0
        return self.header

    def gen_records(self):
        """Yield a MessageDefinition or DataMessage per body record."""
        while self.bytes_read < self.header.data_size:
            yield read_record(self)

        if self.bytes_read != self.header.data_size:
            raise FormatError('last record overran the declared body size '
                              '(%d > %d bytes)' % (self.bytes_read,
                                                   self.header.data_size))

    def read_trailer(self):
        """Check the file CRC, which is *not* part of the running CRC."""
        want, = FILE_HEADER_CRC.unpack(self._read_exactly(CRC_SIZE, 'file CRC'))
        if want != self.crc:
            raise ChecksumError('file', want, self.crc)
        if self.reader.read(1):
            raise FormatError('unexpected data after the file CRC')


class FitWriter:
    """A file-like object for writing *.fit files.

    The body size isn't known until the end, so the header is written twice:
    once provisionally by `write_header`, and again by `finish`, which also
    appends the file CRC. `writer` must therefore be seekable.
    """
    def __init__(self, writer, protocol_version=DEFAULT_PROTOCOL_VERSION,
                 profile_version=DEFAULT_PROFILE_VERSION):
        self.writer = writer
        self.header = FileHeader(protocol_version, profile_version)
        self.local_messages = LocalDefinitionTable()
        self.crc = 0
        self.bytes_written = 0

    def write(self, data):
        """Write body bytes, keeping track of the CRC and bytes written."""
        self.writer.write(data)
        self.crc = _crc.update(self.crc, data)
        self.bytes_written += len(data)

    def write_header(self):
        self.writer.seek(0)
        self.writer.write(self.header.encode())
        self.crc = 0
        self.bytes_written = 0

    def write_definition(self, slot, global_message_number, field_defs,
                         developer_field_defs=()):
        record = encode_definition(self.local_messages, slot,
                                   global_message_number, field_defs,
                                   developer_field_defs)
        self.write(record)
        return self.local_messages.lookup(slot)

    def write_data(self, slot, time_offset, field_values):
        record = encode_data(self.local_messages, slot, time_offset,
                             field_values)
        self.write(record)
        return record

    def finish(self):
        self.header.data_size = self.bytes_written
        self.writer.seek(0)
        self.writer.write(self.header.encode())
        self.writer.seek(0, 2)    # end of file
        self.writer.write(pack('<H', self.crc))


def check_byte(what, value):
    if not 0 <= value <= 0xFF:
        raise FormatError('%s %r does not fit in a byte' % (what, value))


def check_local_message_type(slot):
    if not 0 <= slot < N_LOCAL_MESSAGE_TYPES:
        raise FormatError('local message type %r is out of range (0-%d)' %
                          (slot, N_LOCAL_MESSAGE_TYPES - 1))


def encode_definition(table, slot, global_message_number, field_defs,
                      developer_field_defs=()):
    """Build a definition record and bind it to `slot` in `table`.

    Parameters
    ----------
    table : LocalDefinitionTable
    slot : int
        Local message type, 0-15.
    global_message_number : int
    field_defs : iterable of FieldDefinition or (number, size, type) tuples
    developer_field_defs : iterable of DeveloperFieldDefinition or
        (number, size, developer_index) tuples

    Returns
    -------
    bytes
        The record, header byte included.
    """
    definition = MessageDefinition(
        slot, global_message_number,
        [_as(FieldDefinition, fd) for fd in field_defs],
        [_as(DeveloperFieldDefinition, fd) for fd in developer_field_defs])
    record = definition.encode()
    table.define(slot, definition)
    return record


def decode_definition(fitfile, header):
    """Read the rest of a definition record and bind it to its slot."""
    __, arch = fitfile.read(2)   # ignore reserved
    if arch not in (0, 1):
        raise FormatError('unknown architecture (%d) in definition' % arch)
    big_endian = arch == 1
    endian = '>' if big_endian else '<'

    global_message_number, field_count = Struct(endian + 'HB').unpack(
        fitfile.read(3))

    field_defs = [FieldDefinition(*FIELD_TRIPLE.unpack(fitfile.read(3)))
                  for _ in range(field_count)]

    developer_field_defs = []
    if header.has_developer_data:
        developer_count, = fitfile.read(1)
        developer_field_defs = [
            DeveloperFieldDefinition(*FIELD_TRIPLE.unpack(fitfile.read(3)))
            for _ in range(developer_count)]

    definition = MessageDefinition(header.local_message_type,
                                   global_message_number, field_defs,
                                   developer_field_defs, big_endian)
    fitfile.local_messages.define(header.local_message_type, definition)
    return definition


def encode_data(table, slot, time_offset, field_values):
    """Build a data record for the definition currently bound to `slot`.

    The compressed timestamp header is used only when `time_offset` is given
    and `slot` fits in its two bits; otherwise a normal header is written.
    `field_values` holds a text value per field, developer fields last.
    """
    definition = table.lookup(slot)

    field_values = list(field_values)
    n_fields = len(definition.all_field_defs)
    if len(field_values) != n_fields:
        raise FormatError('local message type %d has %d field(s), got %d '
                          'value(s)' % (slot, n_fields, len(field_values)))

    if time_offset is not None and not 0 <= time_offset <= MAX_TIME_OFFSET:
        raise FormatError('time offset %d is out of range (0-%d)'
                          % (time_offset, MAX_TIME_OFFSET))

    if time_offset is not None and slot <= MAX_COMPRESSED_LOCAL_MESSAGE_TYPE:
        header = CompressedTimestampHeader(slot, time_offset)
    else:
        header = NormalHeader(slot)

    return DataMessage(header, definition, field_values).encode()


def decode_data(fitfile, header):
    """Read a data record's payload and turn it into text values."""
    definition = fitfile.local_messages.lookup(header.local_message_type)

    cursor = ReadCursor(fitfile.read(definition.payload_length))
    field_values = [field_def.decode(cursor.take(field_def.size),
                                     definition.big_endian)
                    for field_def in definition.all_field_defs]

    return DataMessage(header, definition, field_values)


def read_record(fitfile):
    """Parse a record (header + contents)."""
    header_byte, = fitfile.read(1)
    header = RecordHeader.from_byte(header_byte)

    if header.is_definition:
        return decode_definition(fitfile, header)
    else:
        return decode_data(fitfile, header)


def _as(cls, field_def):
    return field_def if isinstance(field_def, cls) else cls(*field_def)
