"""
The line-oriented text side of the conversion.

One logical unit per line, selected by a leading keyword::

    FIT_PROTOCOL_VERSION, 32
    FIT_PROFILE_VERSION, 21141
    DEF: M_TYPE,0, M_NUM,0, FIELDS,1, DEV_FIELDS,0,,0,1,2,,
    # file_id: 0 type
    DATA: CT,0, M_TYPE,00,,004,
    END,

Lines starting with ``#`` are comments and are ignored when read.

"""
from fitcsv.csv._grammar import parse_line, format_definition, format_data
