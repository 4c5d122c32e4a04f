"""
Pytest configuration and common fixtures for isomirs tests.
"""
import matplotlib

matplotlib.use("Agg")

import numpy as np
import pandas as pd
import pytest

from isomirs.core import isomir_dataseq_from_files
from isomirs.utils.parsing import read_design

COLUMNS = ['seq', 'name', 'freq', 'mir', 'start', 'end', 'mism', 'add', 't5', 't3',
           's5', 's3', 'DB', 'precursor', 'ambiguity']

SAMPLES = ['S1', 'S2', 'S3', 'S4']
CONDITIONS = ['ctrl', 'ctrl', 'treat', 'treat']

# (seq, mir, mism, add, t5, t3, DB, reads per sample)
SEQUENCES = [
    ('TGAGGTAGTAGGTTGTATAGTT', 'hsa-let-7a-5p', '0', '0', '0', '0', 'miRNA', [100, 200, 100, 300]),
    ('TGAGGTAGTAGGTTGTATAG', 'hsa-let-7a-5p', '0', '0', '0', 'tt', 'miRNA', [20, 40, 20, 60]),
    ('TGAGGTAGTAGGTTGTATAGTTA', 'hsa-let-7a-5p', '0', 'A', '0', '0', 'miRNA', [10, 20, 10, 30]),
    ('TGAGGTTGTAGGTTGTATAGTT', 'hsa-let-7a-5p', '7AT', '0', '0', '0', 'miRNA', [5, 10, 5, 15]),
    ('TAGCTTATCAGACTGATGTTGA', 'hsa-miR-21-5p', '0', '0', '0', '0', 'miRNA', [50, 100, 50, 150]),
    ('TTAGCTTATCAGACTGATGTTGA', 'hsa-miR-21-5p', '0', '0', 'T', '0', 'miRNA', [8, 16, 8, 24]),
    ('TAGCTTATCAGCCTGATGTTGA', 'hsa-miR-21-5p', '12AC', '0', '0', '0', 'miRNA', [1, 1, 1, 1]),
    ('TGGAGTGTGACAATGGTGTTTG', 'hsa-miR-122-5p', '0', '0', '0', '0', 'miRNA', [30, 0, 0, 0]),
    # second hit of a multi-mapped read
    ('TGAGGTAGTAGGTTGTATAGTT', 'hsa-let-7c-5p', '0', '0', '0', '0', 'miRNA', [100, 200, 100, 300]),
    ('GCATTGGTGGTTCAGTGGTAGA', 'hsa-mir-21', '0', '0', '0', '0', 'precursor', [40, 40, 40, 40]),
]


def make_row(seq, mir, freq, mism='0', add='0', t5='0', t3='0', db='miRNA'):
    return {
        'seq': seq, 'name': f'seq_{seq}_x{freq}', 'freq': freq, 'mir': mir,
        'start': 1, 'end': len(seq), 'mism': mism, 'add': add, 't5': t5, 't3': t3,
        's5': '0', 's3': '0', 'DB': db, 'precursor': mir.lower(), 'ambiguity': 1,
    }


def write_mirna(path, rows):
    pd.DataFrame(rows, columns=COLUMNS).to_csv(path, sep='\t', index=False)
    return str(path)


@pytest.fixture
def design():
    return pd.DataFrame({'condition': CONDITIONS, 'batch': ['b1', 'b2', 'b1', 'b2']},
                        index=pd.Index(SAMPLES, name='sample'))


@pytest.fixture
def mirna_files(tmp_path):
    """One annotation file per sample built from SEQUENCES."""
    files = []
    for i, sample in enumerate(SAMPLES):
        rows = [make_row(seq, mir, freqs[i], mism, add, t5, t3, db)
                for seq, mir, mism, add, t5, t3, db, freqs in SEQUENCES if freqs[i] > 0]
        files.append(write_mirna(tmp_path / f'{sample}.mirna', rows))
    return files


@pytest.fixture
def design_file(tmp_path, design):
    path = tmp_path / 'design.tsv'
    design.to_csv(path, sep='\t')
    return str(path)


@pytest.fixture
def ids(mirna_files, design):
    return isomir_dataseq_from_files(mirna_files, design, formula='~condition')


@pytest.fixture
def de_files(tmp_path):
    """Six samples, forty miRNAs, the first five up in the treated group."""
    rng = np.random.default_rng(7)
    samples = [f'D{i}' for i in range(6)]
    conditions = ['ctrl'] * 3 + ['treat'] * 3
    design = pd.DataFrame({'condition': conditions}, index=pd.Index(samples, name='sample'))
    design_path = tmp_path / 'de_design.tsv'
    design.to_csv(design_path, sep='\t')

    means = rng.uniform(50, 1000, 40)
    files = []
    for sample, condition in zip(samples, conditions):
        rows = []
        for m, mean in enumerate(means):
            mu = mean * 4 if condition == 'treat' and m < 5 else mean
            ref = int(rng.negative_binomial(20, 20 / (20 + mu)))
            iso = int(rng.negative_binomial(20, 20 / (20 + mu / 5)))
            mir = f'hsa-miR-{m}-5p'
            if ref > 0:
                rows.append(make_row(f'ACGT{m:04d}TTGCA', mir, ref))
            if iso > 0:
                rows.append(make_row(f'ACGT{m:04d}TTGC', mir, iso, t3='a'))
        files.append(write_mirna(tmp_path / f'{sample}.mirna', rows))

    return str(design_path), files


@pytest.fixture
def de_ids(de_files):
    design_file, files = de_files
    return isomir_dataseq_from_files(files, read_design(design_file), formula='~condition')
