#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
A tabular view of a FIT file's data messages.

Values are the same text tokens the converter writes; nothing is scaled or
interpreted.

"""
from pandas import DataFrame

from fitcsv.fit._profile import UNKNOWN, lookup_title
from fitcsv.fit._protocol import DataMessage, FitReader


def message_filter(message, keep=None):
    if not isinstance(message, DataMessage):
        return False
    return keep is None or lookup_title(message.global_message_number) in keep


def make_key(global_message_number, field_def):
    name = lookup_title(global_message_number, field_def.number)
    if name == UNKNOWN:
        return 'field_%d' % field_def.number
    return name


def format_message(message):
    definition = message.definition
    number = definition.global_message_number

    record = {'message': lookup_title(number),
              'local_message_type': message.local_message_type,
              'time_offset': message.time_offset}

    values = iter(message.field_values)
    for field_def, value in zip(definition.field_defs, values):
        record[make_key(number, field_def)] = value
    for field_def, value in zip(definition.developer_field_defs, values):
        key = 'dev_%d_%d' % (field_def.developer_index, field_def.number)
        record[key] = value

    return record


def gen_records(file_path, *, messages=None):
    """Generator function for iterating over the data messages of a FIT file.

    Parameters
    ----------
    file_path : str
        Path to the FIT file.
    messages : container of str, optional
        Only yield messages with these names (e.g. ``('record', 'lap')``).

    Yields
    ------
    dict
        One per data message, keyed by field name. Suitable for
        `pandas.DataFrame.from_records`.
    """
    with open(file_path, 'rb') as reader:
        fitfile = FitReader(reader)
        fitfile.read_header()

        for message in fitfile.gen_records():
            if message_filter(message, messages):
                yield format_message(message)

        fitfile.read_trailer()


def read(file_path, *, messages=None):
    """Read a FIT file's data messages into a `pandas.DataFrame`."""
    return DataFrame.from_records(list(gen_records(file_path,
                                                   messages=messages)))
