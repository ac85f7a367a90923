#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import io
from struct import pack

import pytest

from fitcsv.fit import _crc
from fitcsv.fit._protocol import (
    CompressedTimestampHeader, DataMessage, DeveloperFieldDefinition,
    FieldDefinition, FileHeader, FitReader, FitWriter, LocalDefinitionTable,
    MessageDefinition, NormalHeader, RecordHeader, decode_data,
    encode_data, encode_definition, read_record)
from fitcsv._util.exceptions import (
    ChecksumError, FormatError, TruncatedInputError, UndefinedSlotError)


UINT8, UINT16, STRING = 0x02, 0x84, 0x07


def body_reader(body, table=None):
    """A FitReader positioned at the start of `body`."""
    fitfile = FitReader(io.BytesIO(body))
    if table is not None:
        fitfile.local_messages = table
    return fitfile


# File header
# -----------
def test_file_header_encode():
    raw = FileHeader(2, 21141, data_size=11).encode()
    assert len(raw) == 14
    assert raw[:12] == b'\x0e\x02\x95\x52\x0b\x00\x00\x00.FIT'
    assert raw[12:] == pack('<H', _crc.calculate(raw[:12]))
    assert _crc.calculate(raw) == 0


def test_file_header_decode():
    header = FileHeader.decode(FileHeader(0x20, 2093, data_size=99).encode())
    assert header.header_size == 14
    assert header.protocol_version == 0x20
    assert header.profile_version == 2093
    assert header.data_size == 99


def test_file_header_bad_magic():
    raw = bytearray(FileHeader().encode())
    raw[8:12] = b'.FOO'
    with pytest.raises(FormatError):
        FileHeader.decode(bytes(raw))


def test_file_header_bad_crc():
    raw = bytearray(FileHeader().encode())
    raw[2] ^= 0xFF
    with pytest.raises(ChecksumError):
        FileHeader.decode(bytes(raw))


def test_file_header_zero_crc_is_skipped():
    raw = bytearray(FileHeader().encode())
    raw[2] ^= 0xFF
    raw[12:14] = b'\x00\x00'
    assert FileHeader.decode(bytes(raw)).crc == 0


def test_legacy_file_header():
    raw = b'\x0c\x10\x64\x00\x00\x00\x00\x00.FIT'
    header = FileHeader.decode(raw)
    assert header.header_size == 12
    assert header.profile_version == 100
    assert header.crc == 0


def test_file_header_too_short():
    with pytest.raises(TruncatedInputError):
        FileHeader.decode(b'\x0e\x20')


# Record headers
# --------------
def test_record_header_shapes():
    header = RecordHeader.from_byte(0x45)
    assert isinstance(header, NormalHeader)
    assert header.is_definition and not header.has_developer_data
    assert header.local_message_type == 5

    header = RecordHeader.from_byte(0x6F)
    assert header.is_definition and header.has_developer_data
    assert header.local_message_type == 15

    header = RecordHeader.from_byte(0x03)
    assert not header.is_definition and not header.is_compressed

    header = RecordHeader.from_byte(0xBF)   # 1 01 11111
    assert isinstance(header, CompressedTimestampHeader)
    assert header.local_message_type == 1
    assert header.time_offset == 31
    assert not header.is_definition


def test_record_header_round_trip():
    for byte in range(256):
        if byte & 0x10 or (byte & 0xE0) == 0x20:
            continue    # reserved bit / developer bit on a data header
        assert RecordHeader.from_byte(byte).to_byte() == byte


def test_compressed_header_limits():
    with pytest.raises(FormatError):
        CompressedTimestampHeader(4, 0)
    with pytest.raises(FormatError):
        CompressedTimestampHeader(0, 32)


# Definition table
# ----------------
def test_lookup_undefined_slot():
    table = LocalDefinitionTable()
    with pytest.raises(UndefinedSlotError):
        table.lookup(3)
    with pytest.raises(FormatError):
        table.lookup(16)


def test_payload_length_is_cached():
    table = LocalDefinitionTable()
    encode_definition(table, 2, 20, [(253, 4, 0x86), (3, 1, UINT8)],
                      [(0, 2, 0)])
    definition = table.lookup(2)
    assert definition.payload_length == 7
    assert table.payload_length(2) == 7
    assert 2 in table and 3 not in table


def test_definition_replacement():
    table = LocalDefinitionTable()
    encode_definition(table, 5, 20, [(3, 1, UINT8)])
    encode_definition(table, 5, 21, [(0, 2, UINT16), (1, 4, STRING)])

    second = table.lookup(5)
    assert second.global_message_number == 21
    assert second.field_defs == [FieldDefinition(0, 2, UINT16),
                                 FieldDefinition(1, 4, STRING)]

    body = bytes((0x05,)) + b'\x07\x00' + b'abc\x00'
    message = read_record(body_reader(body, table))
    assert message.field_values == ['000007', 'abc']


# Record codec
# ------------
def test_encode_definition_layout():
    table = LocalDefinitionTable()
    record = encode_definition(table, 0, 0, [(0, 1, UINT8)])
    assert record == b'\x40\x00\x00\x00\x00\x01\x00\x01\x02'


def test_encode_definition_with_developer_fields():
    table = LocalDefinitionTable()
    record = encode_definition(table, 1, 20, [(3, 1, UINT8)], [(0, 2, 0)])
    assert record == (b'\x61' + b'\x00\x00\x14\x00\x01' + b'\x03\x01\x02' +
                      b'\x01' + b'\x00\x02\x00')
    definition = table.lookup(1)
    assert definition.developer_field_defs == [
        DeveloperFieldDefinition(0, 2, 0)]


def test_decode_definition_round_trip():
    table = LocalDefinitionTable()
    record = encode_definition(table, 7, 0xABCD,
                               [(1, 2, UINT16), (2, 3, STRING)],
                               [(9, 1, 2)])
    fitfile = body_reader(record)
    definition = read_record(fitfile)
    assert isinstance(definition, MessageDefinition)
    assert fitfile.local_messages.lookup(7) is definition
    assert definition.encode() == record
    assert fitfile.bytes_read == len(record)


def test_big_endian_definition():
    record = (b'\x40' + b'\x00\x01' + b'\x00\x14' + b'\x01' +
              b'\x03\x02\x84')                  # arch=1, mesg 20
    data = b'\x00' + b'\x01\x02'
    fitfile = body_reader(record + data)
    definition = read_record(fitfile)
    assert definition.big_endian
    assert definition.global_message_number == 20
    assert read_record(fitfile).field_values == ['000258']


def test_zero_size_field_is_rejected():
    with pytest.raises(FormatError):
        encode_definition(LocalDefinitionTable(), 0, 0, [(0, 0, UINT8)])


def test_encode_data():
    table = LocalDefinitionTable()
    encode_definition(table, 0, 0, [(0, 1, UINT8)])
    assert encode_data(table, 0, None, ['4']) == b'\x00\x04'


def test_encode_data_compressed_timestamp():
    table = LocalDefinitionTable()
    encode_definition(table, 2, 20, [(3, 1, UINT8)])
    assert encode_data(table, 2, 17, ['142']) == b'\xd1\x8e'


def test_encode_data_compressed_needs_a_small_slot():
    table = LocalDefinitionTable()
    encode_definition(table, 9, 20, [(3, 1, UINT8)])
    assert encode_data(table, 9, 17, ['142']) == b'\x09\x8e'


@pytest.mark.parametrize('slot', [2, 9])
def test_encode_data_time_offset_range(slot):
    table = LocalDefinitionTable()
    encode_definition(table, slot, 20, [(3, 1, UINT8)])
    with pytest.raises(FormatError):
        encode_data(table, slot, 32, ['142'])
    with pytest.raises(FormatError):
        encode_data(table, slot, -1, ['142'])


def test_encode_data_undefined_slot():
    with pytest.raises(UndefinedSlotError):
        encode_data(LocalDefinitionTable(), 4, None, ['1'])


def test_encode_data_value_count():
    table = LocalDefinitionTable()
    encode_definition(table, 0, 0, [(0, 1, UINT8)], [(0, 2, 0)])
    with pytest.raises(FormatError):
        encode_data(table, 0, None, ['1'])
    with pytest.raises(FormatError):
        encode_data(table, 0, None, ['1', '2', '3'])
    assert encode_data(table, 0, None, ['1', '2/3']) == b'\x00\x01\x02\x03'


def test_decode_data_developer_fields_are_bytes():
    table = LocalDefinitionTable()
    encode_definition(table, 0, 0, [(0, 1, UINT8)], [(0, 2, 0)])
    message = decode_data(body_reader(b'\x01\x02\x03', table),
                          NormalHeader(0))
    assert isinstance(message, DataMessage)
    assert message.field_values == ['001', '002/003']


def test_decode_data_undefined_slot_reads_nothing():
    fitfile = body_reader(b'\x01\x02\x03')
    with pytest.raises(UndefinedSlotError):
        decode_data(fitfile, NormalHeader(6))
    assert fitfile.bytes_read == 0
    assert fitfile.reader.tell() == 0


def test_decode_data_truncated():
    table = LocalDefinitionTable()
    encode_definition(table, 0, 0, [(0, 4, 0x86)])
    with pytest.raises(TruncatedInputError):
        read_record(body_reader(b'\x00\x01\x02', table))


# Sessions
# --------
def test_writer_then_reader():
    out = io.BytesIO()
    writer = FitWriter(out, protocol_version=2, profile_version=21141)
    writer.write_header()
    writer.write_definition(0, 0, [(0, 1, UINT8)])
    writer.write_data(0, None, ['4'])
    writer.finish()

    raw = out.getvalue()
    assert len(raw) == 14 + 9 + 2 + 2
    assert raw[4:8] == pack('<I', 11)
    assert raw[-2:] == pack('<H', _crc.calculate(raw[14:-2]))
    # header + its CRC sum to zero, so this is a whole-file CRC too
    assert raw[-2:] == pack('<H', _crc.calculate(raw[:-2]))

    fitfile = FitReader(io.BytesIO(raw))
    header = fitfile.read_header()
    assert header.data_size == 11
    records = list(fitfile.gen_records())
    assert len(records) == 2
    assert records[1].field_values == ['004']
    fitfile.read_trailer()


def test_reader_bad_trailing_crc():
    out = io.BytesIO()
    writer = FitWriter(out)
    writer.write_header()
    writer.write_definition(0, 0, [(0, 1, UINT8)])
    writer.finish()
    raw = bytearray(out.getvalue())
    raw[-1] ^= 0x01

    fitfile = FitReader(io.BytesIO(bytes(raw)))
    fitfile.read_header()
    list(fitfile.gen_records())
    with pytest.raises(ChecksumError):
        fitfile.read_trailer()
