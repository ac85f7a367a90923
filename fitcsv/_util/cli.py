#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
fit2csv and csv2fit are installed as executable console_scripts with this
package.

"""
from argparse import ArgumentParser

from fitcsv._convert import csv_to_fit, fit_to_csv
from fitcsv.fit._profile import lookup_title
from fitcsv._util.console import fail, indented_stdout, printd
from fitcsv._util.exceptions import FitCSVError


def make_parser(prog, source, destination):
    parser = ArgumentParser(prog=prog,
                            description='convert a %s file to %s' %
                                        (source, destination))

    parser.add_argument('source',
                        type=str,
                        help='%s file to read' % source)
    parser.add_argument('destination',
                        type=str,
                        help='%s file to write' % destination)
    parser.add_argument('--verbose',
                        action='store_true',
                        help='optional; echo every record converted')
    return parser


def run(convert, args, source, destination, **kwargs):
    """Run one conversion, reporting the outcome; returns an exit code."""
    try:
        if args.verbose:
            with indented_stdout(2):
                convert(args.source, args.destination, on_record=print,
                        **kwargs)
        else:
            convert(args.source, args.destination, **kwargs)
    except (OSError, FitCSVError) as e:
        fail('%s to %s conversion failed: %s' % (source, destination, e))
        return 1

    printd('Converting %s to %s file completed successfully' %
           (source, destination), 'green')
    return 0


def fit2csv(argv=None):
    parser = make_parser('fit2csv', 'FIT', 'CSV')
    parser.add_argument('--no-comments',
                        action='store_true',
                        help='optional; leave out the message/field name '
                             'comments')
    args = parser.parse_args(argv)

    titles = None if args.no_comments else lookup_title
    return run(fit_to_csv, args, 'FIT', 'CSV', titles=titles)


def csv2fit(argv=None):
    args = make_parser('csv2fit', 'CSV', 'FIT').parse_args(argv)
    return run(csv_to_fit, args, 'CSV', 'FIT')
