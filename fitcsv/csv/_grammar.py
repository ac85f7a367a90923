#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Translate between text lines and the units of a FIT stream.

Tokens are separated by commas and colons; surrounding whitespace and
empty tokens (the ``,,`` group separators) are ignored. Values are written
by the base type codecs, which never produce either delimiter.

"""
from collections import namedtuple
import re

from fitcsv._util.exceptions import FormatError


PROTOCOL_VERSION = 'FIT_PROTOCOL_VERSION'
PROFILE_VERSION = 'FIT_PROFILE_VERSION'
DEFINITION = 'DEF'
DATA = 'DATA'
END = 'END'
COMMENT_MARKER = '#'

RE_DELIMITERS = re.compile(r'[:,]')


VersionLine = namedtuple('VersionLine', ('keyword', 'value'))
DefinitionLine = namedtuple('DefinitionLine', (
    'local_message_type', 'global_message_number', 'field_defs',
    'developer_field_defs'))
DataLine = namedtuple('DataLine', (
    'local_message_type', 'time_offset', 'field_values'))
EndLine = namedtuple('EndLine', ())


class Tokens:
    """Walk the tokens of one line, complaining about anything unexpected."""

    def __init__(self, tokens):
        self._tokens = list(tokens)
        self._i = 0

    def next(self, what):
        try:
            token = self._tokens[self._i]
        except IndexError:
            raise FormatError('line ended early: missing %s' % what) from None
        self._i += 1
        return token

    def expect(self, label):
        token = self.next(label)
        if token != label:
            raise FormatError('expected %r but found %r' % (label, token))

    def integer(self, what):
        token = self.next(what)
        try:
            return int(token)
        except ValueError:
            raise FormatError('%s should be an integer, not %r' %
                              (what, token)) from None

    def labelled(self, label):
        """e.g. ``M_TYPE,3`` --> 3"""
        self.expect(label)
        return self.integer(label)

    def rest(self):
        rest, self._i = self._tokens[self._i:], len(self._tokens)
        return rest

    def done(self):
        if self._i < len(self._tokens):
            raise FormatError('unexpected token %r' % self._tokens[self._i])


def tokenize(line):
    return [token for token in (t.strip() for t in RE_DELIMITERS.split(line))
            if token]


def parse_line(line):
    """Parse one line of text.

    Returns
    -------
    VersionLine, DefinitionLine, DataLine, EndLine or None
        None for blank lines and comments.

    Raises
    ------
    FormatError
        If the keyword is unknown or the line is malformed.
    """
    stripped = line.strip()
    if not stripped or stripped.startswith(COMMENT_MARKER):
        return None

    tokens = tokenize(stripped)
    if not tokens:    # nothing but delimiters
        return None

    keyword, *args = tokens
    try:
        parser = PARSERS[keyword]
    except KeyError:
        raise FormatError('unknown line type %r' % keyword) from None

    tokens = Tokens(args)
    parsed = parser(keyword, tokens)
    tokens.done()
    return parsed


def _parse_version(keyword, tokens):
    return VersionLine(keyword, tokens.integer('version'))


def _parse_definition(keyword, tokens):
    local_message_type = tokens.labelled('M_TYPE')
    global_message_number = tokens.labelled('M_NUM')
    n_fields = tokens.labelled('FIELDS')
    n_developer_fields = tokens.labelled('DEV_FIELDS')

    def triples(n, what):
        return [(tokens.integer(what + ' number'),
                 tokens.integer(what + ' size'),
                 tokens.integer(what + ' type'))
                for _ in range(n)]

    return DefinitionLine(local_message_type, global_message_number,
                          triples(n_fields, 'field'),
                          triples(n_developer_fields, 'developer field'))


def _parse_data(keyword, tokens):
    compressed = tokens.labelled('CT')
    if compressed not in (0, 1):
        raise FormatError('CT should be 0 or 1, not %d' % compressed)
    local_message_type = tokens.labelled('M_TYPE')
    time_offset = tokens.integer('time offset') if compressed else None
    return DataLine(local_message_type, time_offset, tokens.rest())


def _parse_end(keyword, tokens):
    return EndLine()


PARSERS = {
    PROTOCOL_VERSION: _parse_version,
    PROFILE_VERSION: _parse_version,
    DEFINITION: _parse_definition,
    DATA: _parse_data,
    END: _parse_end,
}


def format_version(keyword, value):
    return '%s, %d' % (keyword, value)


def format_definition(definition):
    parts = ['DEF: M_TYPE,%d, M_NUM,%d, FIELDS,%d, DEV_FIELDS,%d,,' % (
        definition.local_message_type, definition.global_message_number,
        len(definition.field_defs), len(definition.developer_field_defs))]
    parts.extend('%d,%d,%d,,' % field_def.triple
                 for field_def in definition.all_field_defs)
    return ''.join(parts)


def format_data(message):
    header = message.header
    parts = ['DATA: CT,%d, M_TYPE,%02d,,' % (header.is_compressed,
                                            header.local_message_type)]
    if header.is_compressed:
        parts.append('%d,,' % header.time_offset)
    parts.extend('%s,' % value for value in message.field_values)
    return ''.join(parts)


def format_end():
    return END + ','


def format_comment(definition, titles):
    """Name a definition and its fields, e.g. ``# record: 253 timestamp``.

    `titles` is called as ``titles(global_message_number)`` and
    ``titles(global_message_number, field_number)``.
    """
    number = definition.global_message_number
    fields = ['%d %s' % (field_def.number, titles(number, field_def.number))
              for field_def in definition.field_defs]
    fields.extend('dev %d/%d' % (field_def.developer_index, field_def.number)
                  for field_def in definition.developer_field_defs)
    return '%s %s: %s' % (COMMENT_MARKER, titles(number), ', '.join(fields))
