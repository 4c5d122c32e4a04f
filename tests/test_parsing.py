"""
Tests for reading annotation and design files.
"""

import pandas as pd
import pytest

from isomirs.utils.parsing import (chunks, read_count_matrix, read_design, read_isomir_file,
                                   summarize_isomirs)

from .conftest import make_row, write_mirna


def test_chunks_split_evenly():
    assert chunks([1, 2, 3, 4, 5], 2) == [[1, 2, 3], [4, 5]]
    assert chunks([1, 2], 5) == [[1], [2]]
    assert chunks([], 3) == []


def test_read_isomir_file_filters(mirna_files):
    table = read_isomir_file(mirna_files[0])

    # precursor hit and second hit of the multi-mapped read are removed
    assert set(table['mir']) == {'hsa-let-7a-5p', 'hsa-miR-21-5p', 'hsa-miR-122-5p'}
    assert not table['seq'].duplicated().any()
    assert table['freq'].sum() == 135 + 59 + 30
    assert table.loc[table['mism'] == '7AT', 'seed'].tolist() == ['7AT']
    assert table.loc[table['mism'] == '12AC', 'seed'].tolist() == ['0']


def test_read_isomir_file_min_count(mirna_files):
    table = read_isomir_file(mirna_files[0], min_count=10)
    assert table['freq'].min() >= 10
    assert '12AC' not in set(table['mism'])


def test_read_isomir_file_missing_columns(tmp_path):
    path = tmp_path / 'bad.mirna'
    pd.DataFrame({'seq': ['ACGT'], 'freq': [3]}).to_csv(path, sep='\t', index=False)
    with pytest.raises(ValueError, match='missing columns'):
        read_isomir_file(str(path))


def test_read_isomir_file_not_found(tmp_path):
    with pytest.raises(FileNotFoundError):
        read_isomir_file(str(tmp_path / 'nothing.mirna'))


def test_summarize_isomirs(mirna_files):
    summary = summarize_isomirs(read_isomir_file(mirna_files[0]))

    assert summary['iso5'][['mir', 'size', 'freq']].values.tolist() == [['hsa-miR-21-5p', -1, 8]]
    assert summary['iso3'][['mir', 'size', 'freq']].values.tolist() == [['hsa-let-7a-5p', -2, 20]]
    assert summary['add'][['size', 'freq']].values.tolist() == [[1, 10]]

    subs = summary['subs'].sort_values('size')
    assert subs['size'].tolist() == [7, 12]
    assert subs['reference'].tolist() == ['A', 'A']
    assert subs['current'].tolist() == ['T', 'C']

    types = summary['summary'].set_index('type')
    assert types.loc['ref', 'freq'] == 180
    assert types.loc['ref', 'n'] == 3
    assert types.loc['subs', 'n'] == 2


def test_summarize_isomirs_without_variants(tmp_path):
    path = write_mirna(tmp_path / 'ref.mirna', [make_row('ACGTACGT', 'hsa-miR-1', 5)])
    summary = summarize_isomirs(read_isomir_file(path))
    assert summary['subs'].empty
    assert list(summary['subs'].columns) == ['seq', 'mir', 'size', 'freq', 'reference', 'current']
    assert summary['summary'].set_index('type').loc['iso5', 'n'] == 0


def test_read_design(design_file):
    design = read_design(design_file)
    assert list(design.index) == ['S1', 'S2', 'S3', 'S4']
    assert list(design.columns) == ['condition', 'batch']


def test_read_design_duplicated(tmp_path):
    path = tmp_path / 'design.tsv'
    path.write_text('sample\tcondition\nS1\ta\nS1\tb\n')
    with pytest.raises(ValueError, match='Duplicated'):
        read_design(str(path))


def test_read_count_matrix(tmp_path, ids):
    path = tmp_path / 'counts.tsv'
    ids.counts.to_csv(path, sep='\t')
    counts = read_count_matrix(str(path))
    pd.testing.assert_frame_equal(counts, ids.counts, check_names=False)
