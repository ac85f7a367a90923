#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Exceptions for this package.

Every failure is fatal to a conversion run. The orchestrator stamps the
stage it was in (and, reading text, the offending line number) onto the
exception before letting it propagate.

"""


class FitCSVError(Exception):
    """Base exception."""
    _default_message = ''

    def __init__(self, message=None):
        super().__init__(message if message else self._default_message)
        self.stage = None
        self.line_number = None

    def __str__(self):
        message = super().__str__()
        where = []
        if self.stage is not None:
            where.append('stage: %s' % self.stage)
        if self.line_number is not None:
            where.append('line %d' % self.line_number)
        if where:
            return '%s (%s)' % (message, ', '.join(where))
        return message


class FormatError(FitCSVError):
    """Bad magic, a malformed line or an unexpected token."""
    _default_message = 'malformed input'


class ChecksumError(FitCSVError):
    def __init__(self, what, want, got):
        message = '%s checksum mismatch: expected 0x%04X, computed 0x%04X' % (
            what, want, got)
        super().__init__(message)
        self.want, self.got = want, got


class UndefinedSlotError(FormatError):
    def __init__(self, slot):
        super().__init__('no active definition for local message type %d'
                         % slot)
        self.slot = slot


class TruncatedInputError(FitCSVError):
    def __init__(self, wanted, got, what='input'):
        message = 'truncated %s: wanted %d bytes but only %d available' % (
            what, wanted, got)
        super().__init__(message)
        self.wanted, self.got = wanted, got


class IncompleteStreamError(FitCSVError):
    _default_message = 'text stream must end with an "END," line'
