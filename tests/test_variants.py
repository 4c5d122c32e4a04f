"""
Unit tests for annotation field helpers.
"""

import numpy as np
import pytest

from isomirs.variants import (has_change, is_reference, normalize_field, parse_substitution,
                              seed_change, trim_size)


def test_normalize_field_missing_values():
    assert normalize_field(None) == '0'
    assert normalize_field(np.nan) == '0'
    assert normalize_field('') == '0'
    assert normalize_field(0.0) == '0'
    assert normalize_field(' AT ') == 'AT'


def test_has_change():
    assert not has_change('0')
    assert has_change('A')
    assert has_change('tt')


def test_is_reference():
    assert is_reference('0', '0', '0', '0')
    assert not is_reference('0', 'A', '0', '0')
    assert not is_reference('0', '0', '0', 'tt')


@pytest.mark.parametrize("value,end,expected", [
    ('0', 't5', 0),
    ('T', 't5', -1),
    ('ag', 't5', 2),
    ('AA', 't3', 2),
    ('tt', 't3', -2),
])
def test_trim_size(value, end, expected):
    assert trim_size(value, end) == expected


def test_trim_size_unknown_end():
    with pytest.raises(ValueError):
        trim_size('A', 'add')


def test_parse_substitution():
    assert parse_substitution('0') is None
    assert parse_substitution('7AT') == (7, 'A', 'T')
    assert parse_substitution('12ac') == (12, 'A', 'C')
    with pytest.raises(ValueError):
        parse_substitution('AT7')


def test_seed_change():
    assert seed_change('7AT') == '7AT'
    assert seed_change('2GC') == '2GC'
    assert seed_change('1GC') == '0'
    assert seed_change('8GC') == '0'
    assert seed_change('0') == '0'
