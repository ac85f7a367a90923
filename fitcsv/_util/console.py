#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Prettified console output for the command line tools.

"""
import sys


TEXT_DECORATIONS = {
    'header': '\033[95m',
    'blue': '\033[94m',
    'green': '\033[92m',
    'warning': '\033[93m',
    'fail': '\033[91m',
    'bold': '\033[1m',
    'underline': '\033[4m',
    'end': '\033[0m',
}


class indented_stdout:
    """Context manager for indenting anything sent to stdout.

        >>> with indented_stdout(2):
        ...    print('DATA: CT,0, M_TYPE,00,,004,')
        ...
          DATA: CT,0, M_TYPE,00,,004,
    """
    def __init__(self, indent=4):
        self.indent = ' ' * indent
        self.should_indent = True
        self._stdout = None

    def write(self, text):
        if self.should_indent and text:
            text = self.indent + text
        self._stdout.write(text)
        self.should_indent = text.endswith('\n')    # for next time

    def flush(self):
        self._stdout.flush()

    def __enter__(self):
        self._stdout, sys.stdout = sys.stdout, self
        return self

    def __exit__(self, type, value, traceback):
        sys.stdout = self._stdout


def decorate(text, *decorations):
    """Return a text string with ANSI escape codes pre- and appended.

    Parameters
    ----------
    text : str
        Text to be decorated.
    *decorations : str
        Keys of `TEXT_DECORATIONS`.
    """
    if not decorations:
        return text
    decors = ''.join(TEXT_DECORATIONS[d] for d in decorations)
    end = TEXT_DECORATIONS['end']
    return decors + text + end


def printd(text, *decorations, **kwargs):
    """Print decorated."""
    to_write = decorate(text, *decorations)
    print(to_write, **kwargs)


def fail(text):
    """Report a fatal problem on stderr."""
    printd(text, 'fail', file=sys.stderr)
