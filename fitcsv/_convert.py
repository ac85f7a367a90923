#!/usr/bin/env python3
# -*- coding: utf-8 -*-
r"""
Drive whole conversions, FIT --> text and text --> FIT.

Each direction is a small state machine::

    header --> body --> trailer --> done
       \________\__________\______> error

Anything that goes wrong aborts the run. The exception raised is stamped
with the stage it happened in (and, reading text, the line number) so the
caller can say where things went wrong. Output written before the failure
is left where it is.

"""
import io

from fitcsv.csv._grammar import (
    DataLine, DefinitionLine, EndLine, VersionLine, PROFILE_VERSION,
    PROTOCOL_VERSION, format_comment, format_data, format_definition,
    format_end, format_version, parse_line)
from fitcsv.fit._profile import lookup_title
from fitcsv.fit._protocol import (
    DEFAULT_PROFILE_VERSION, DEFAULT_PROTOCOL_VERSION, FitReader, FitWriter,
    MessageDefinition)
from fitcsv._util.exceptions import (
    FitCSVError, FormatError, IncompleteStreamError)


HEADER, BODY, TRAILER, DONE, ERROR = 'header', 'body', 'trailer', 'done', 'error'

TEXT_ENCODING = 'utf-8'
TEXT_ERRORS = 'surrogateescape'    # arbitrary string bytes survive the trip


class FitToCSV:
    """One FIT --> text conversion.

    Parameters
    ----------
    reader : binary file-like
        The FIT stream.
    writer : text file-like
        Receives one line per unit.
    titles : callable, optional
        Advisory name lookup (see `fitcsv.fit._profile.lookup_title`) used to
        write a comment after every definition; None for no comments.
    on_record : callable, optional
        Called with every line written.
    """
    def __init__(self, reader, writer, *, titles=lookup_title, on_record=None):
        self.fitfile = FitReader(reader)
        self.writer = writer
        self.titles = titles
        self.on_record = on_record
        self.state = HEADER

    def emit(self, line, announce=True):
        self.writer.write(line + '\n')
        if announce and self.on_record is not None:
            self.on_record(line)

    def run(self):
        """Convert the whole stream; returns the FIT file header."""
        try:
            header = self.fitfile.read_header()
            self.emit(format_version(PROTOCOL_VERSION,
                                     header.protocol_version))
            self.emit(format_version(PROFILE_VERSION, header.profile_version))

            self.state = BODY
            for record in self.fitfile.gen_records():
                if isinstance(record, MessageDefinition):
                    self.emit(format_definition(record))
                    if self.titles is not None:
                        self.emit(format_comment(record, self.titles),
                                  announce=False)
                else:
                    self.emit(format_data(record))

            self.state = TRAILER
            self.fitfile.read_trailer()
            self.emit(format_end())
        except FitCSVError as e:
            e.stage, self.state = self.state, ERROR
            raise

        self.state = DONE
        return header


class CSVToFit:
    """One text --> FIT conversion.

    Parameters
    ----------
    reader : iterable of str
        Lines of text (an open text file will do).
    writer : binary file-like
        Must be seekable: the header is rewritten once the body is done.
    protocol_version, profile_version : int, optional
        Header values to use unless the text overrides them.
    on_record : callable, optional
        Called with every line converted.
    """
    def __init__(self, reader, writer, *,
                 protocol_version=DEFAULT_PROTOCOL_VERSION,
                 profile_version=DEFAULT_PROFILE_VERSION, on_record=None):
        self.reader = reader
        self.fitfile = FitWriter(writer, protocol_version, profile_version)
        self.on_record = on_record
        self.state = HEADER
        self.line_number = None
        self.started = False    # any records yet?

    def run(self):
        """Convert the whole stream; returns the final FIT file header."""
        try:
            self.fitfile.write_header()

            self.state = BODY
            for self.line_number, line in enumerate(self.reader, 1):
                unit = parse_line(line)
                if unit is None:
                    continue
                if self.state == TRAILER:
                    raise FormatError('nothing but comments may follow "END,"')
                self.convert(unit)
                if self.on_record is not None:
                    self.on_record(line.rstrip('\r\n'))
        except FitCSVError as e:
            e.stage, e.line_number = self.state, self.line_number
            self.state = ERROR
            raise

        try:
            if self.state != TRAILER:
                raise IncompleteStreamError()
            self.fitfile.finish()
        except FitCSVError as e:
            e.stage, self.state = self.state, ERROR
            raise

        self.state = DONE
        return self.fitfile.header

    def convert(self, unit):
        fitfile = self.fitfile

        if isinstance(unit, VersionLine):
            if self.started:
                raise FormatError('version lines must come before any records')
            if unit.keyword == PROTOCOL_VERSION:
                if not 0 <= unit.value <= 0xFF:
                    raise FormatError('protocol version %d does not fit in a '
                                      'byte' % unit.value)
                fitfile.header.protocol_version = unit.value
            else:
                if not 0 <= unit.value <= 0xFFFF:
                    raise FormatError('profile version %d does not fit in two '
                                      'bytes' % unit.value)
                fitfile.header.profile_version = unit.value

        elif isinstance(unit, DefinitionLine):
            self.started = True
            fitfile.write_definition(unit.local_message_type,
                                     unit.global_message_number,
                                     unit.field_defs, unit.developer_field_defs)

        elif isinstance(unit, DataLine):
            self.started = True
            fitfile.write_data(unit.local_message_type, unit.time_offset,
                               unit.field_values)

        elif isinstance(unit, EndLine):
            self.state = TRAILER


def fit_to_csv(fit_path, csv_path, **kwargs):
    """Convert the FIT file at `fit_path` to text at `csv_path`.

    Keyword arguments are passed on to `FitToCSV`.
    """
    with open(fit_path, 'rb') as reader, \
         open(csv_path, 'w', encoding=TEXT_ENCODING, errors=TEXT_ERRORS,
              newline='\n') as writer:
        return FitToCSV(reader, writer, **kwargs).run()


def csv_to_fit(csv_path, fit_path, **kwargs):
    """Convert the text file at `csv_path` to FIT at `fit_path`.

    Keyword arguments are passed on to `CSVToFit`.
    """
    with open(csv_path, 'r', encoding=TEXT_ENCODING,
              errors=TEXT_ERRORS) as reader, \
         open(fit_path, 'w+b') as writer:
        return CSVToFit(reader, writer, **kwargs).run()


def fit_to_text(data, **kwargs):
    """In-memory version of `fit_to_csv`: bytes in, str out."""
    writer = io.StringIO()
    FitToCSV(io.BytesIO(data), writer, **kwargs).run()
    return writer.getvalue()


def text_to_fit(text, **kwargs):
    """In-memory version of `csv_to_fit`: str (or lines) in, bytes out."""
    lines = io.StringIO(text) if isinstance(text, str) else text
    writer = io.BytesIO()
    CSVToFit(lines, writer, **kwargs).run()
    return writer.getvalue()
