#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
The FIT 16-bit CRC.

From the FIT SDK release 21.141.00: the CRC is computed a nibble at a time
with a 16 entry lookup table. It is the familiar CRC-16/ARC (reflected
polynomial 0xA001, zero initial value, no final xor), so appending a CRC to
the data it was computed over brings the running value back to zero.

"""

CRC_TABLE = (
    0x0000, 0xCC01, 0xD801, 0x1400, 0xF001, 0x3C00, 0x2800, 0xE401,
    0xA001, 0x6C00, 0x7800, 0xB401, 0x5000, 0x9C01, 0x8801, 0x4400,
)


def update(crc, data):
    """Continue a running CRC over `data` (any bytes-like object)."""
    for byte in bytes(data):
        # lower nibble
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[byte & 0xF]
        # upper nibble
        tmp = CRC_TABLE[crc & 0xF]
        crc = (crc >> 4) & 0x0FFF
        crc = crc ^ tmp ^ CRC_TABLE[(byte >> 4) & 0xF]
    return crc


def calculate(data):
    """CRC of `data` from a zero initial state."""
    return update(0, data)
