#!/usr/bin/env python3
# -*- coding: utf-8 -*-
import pytest

from fitcsv._util import cli


TEXT = '''\
FIT_PROTOCOL_VERSION, 32
FIT_PROFILE_VERSION, 21141
DEF: M_TYPE,0, M_NUM,20, FIELDS,1, DEV_FIELDS,0,,3,1,2,,
DATA: CT,0, M_TYPE,00,,142,
END,
'''


def test_round_trip(tmp_path, capsys):
    csv_path, fit_path, back_path = (str(tmp_path / name) for name in
                                     ('in.csv', 'out.fit', 'back.csv'))
    with open(csv_path, 'w') as f:
        f.write(TEXT)

    assert cli.csv2fit([csv_path, fit_path]) == 0
    assert 'completed successfully' in capsys.readouterr().out

    assert cli.fit2csv([fit_path, back_path, '--no-comments']) == 0
    with open(back_path) as f:
        assert f.read() == TEXT


def test_verbose(tmp_path, capsys):
    csv_path, fit_path = str(tmp_path / 'in.csv'), str(tmp_path / 'out.fit')
    with open(csv_path, 'w') as f:
        f.write(TEXT)

    assert cli.csv2fit([csv_path, fit_path, '--verbose']) == 0
    out = capsys.readouterr().out
    assert '  DATA: CT,0, M_TYPE,00,,142,\n' in out


def test_missing_argument(capsys):
    with pytest.raises(SystemExit) as info:
        cli.fit2csv(['only_one.fit'])
    assert info.value.code != 0
    assert 'usage' in capsys.readouterr().err


def test_unreadable_source(tmp_path, capsys):
    missing = str(tmp_path / 'missing.fit')
    assert cli.fit2csv([missing, str(tmp_path / 'out.csv')]) == 1
    assert 'missing.fit' in capsys.readouterr().err


def test_conversion_failure(tmp_path, capsys):
    csv_path, fit_path = str(tmp_path / 'in.csv'), str(tmp_path / 'out.fit')
    with open(csv_path, 'w') as f:
        f.write(TEXT.replace('END,\n', ''))

    assert cli.csv2fit([csv_path, fit_path]) == 1
    assert 'END' in capsys.readouterr().err
