"""
Parsing utilities for isomirs.
"""

import os
import logging

import numpy as np
import pandas as pd

from ..variants import normalize_field, parse_substitution, seed_change, trim_size, is_reference

# Get logger
logger = logging.getLogger('isomirs')

REQUIRED_COLUMNS = ['seq', 'name', 'freq', 'mir', 'start', 'end', 'mism', 'add', 't5', 't3',
                    's5', 's3', 'DB', 'precursor', 'ambiguity']
VARIANT_COLUMNS = ['mism', 'add', 't5', 't3']
TYPE_COLUMNS = ['seq', 'mir', 'size', 'freq']


def chunks(l, nproc):
    """
    Divide a list into n sublists.

    Args:
        l: The list to divide.
        nproc: Number of chunks.

    Returns:
        List of sublists.
    """
    if not l or nproc <= 0:
        return []

    if nproc > len(l):
        logger.debug(f"Reducing number of processes from {nproc} to {len(l)} to match list length")
        nproc = len(l)

    right_div = len(l) // nproc
    nmore = len(l) % nproc

    result = [l[i * (right_div + 1):i * (right_div + 1) + right_div + 1] for i in range(nmore)]
    start = nmore * (right_div + 1)
    result += [l[start + i * right_div:start + (i + 1) * right_div] for i in range(nproc - nmore)]

    logger.debug(f"Split list of {len(l)} items into {len(result)} chunks")
    return result


def read_isomir_file(path, min_count=1):
    """
    Read one seqbuster/miraligner annotation file.

    Args:
        path: Path to the tab-separated file.
        min_count: Sequences with fewer reads are discarded.

    Returns:
        DataFrame with one row per sequence annotated to a miRNA.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Cannot open {path}")

    logger.debug(f"Reading annotation file: {path}")
    table = pd.read_csv(path, sep='\t', dtype={x: str for x in VARIANT_COLUMNS})

    missing = [x for x in REQUIRED_COLUMNS if x not in table.columns]
    if missing:
        raise ValueError(f"{path} is missing columns: {', '.join(missing)}")

    total = len(table)
    table = table[table['DB'] == 'miRNA']
    # multi-mapped reads count only once
    table = table.drop_duplicates(subset='seq', keep='first')
    table = table[table['freq'] >= min_count].copy()
    logger.debug(f"Kept {len(table)} of {total} sequences from {path}")

    for col in VARIANT_COLUMNS:
        table[col] = table[col].map(normalize_field)
    table['freq'] = table['freq'].astype(int)
    table['seed'] = table['mism'].map(seed_change)
    return table.reset_index(drop=True)


def _type_table(table, column, size):
    selected = table[table[column] != '0']
    result = pd.DataFrame({
        'seq': selected['seq'].values,
        'mir': selected['mir'].values,
        'size': [size(x) for x in selected[column]],
        'freq': selected['freq'].values,
    })
    return result


def summarize_isomirs(table):
    """
    Split a sample annotation into isomiR type tables.

    Args:
        table: Output of read_isomir_file.

    Returns:
        Dictionary with keys summary, iso5, iso3, subs and add.
    """
    iso5 = _type_table(table, 't5', lambda x: trim_size(x, 't5'))
    iso3 = _type_table(table, 't3', lambda x: trim_size(x, 't3'))
    add = _type_table(table, 'add', len)

    subs = _type_table(table, 'mism', lambda x: parse_substitution(x)[0])
    changes = [parse_substitution(x) for x in table.loc[table['mism'] != '0', 'mism']]
    subs['reference'] = [x[1] for x in changes]
    subs['current'] = [x[2] for x in changes]

    is_ref = np.array([is_reference(*x) for x in table[['mism', 'add', 't5', 't3']].itertuples(index=False)],
                      dtype=bool)
    reference = table[is_ref]
    summary = pd.DataFrame({
        'type': ['ref', 'iso5', 'iso3', 'subs', 'add'],
        'freq': [int(x['freq'].sum()) for x in (reference, iso5, iso3, subs, add)],
        'n': [len(x) for x in (reference, iso5, iso3, subs, add)],
    })

    return {'summary': summary, 'iso5': iso5, 'iso3': iso3, 'subs': subs, 'add': add}


def read_design(path):
    """
    Read the experimental design table.

    Args:
        path: Tab-separated file, first column sample names.

    Returns:
        DataFrame indexed by sample name.
    """
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Cannot open {path}")
    design = pd.read_csv(path, sep='\t', index_col=0)
    design.index = design.index.astype(str)
    if design.index.duplicated().any():
        raise ValueError(f"Duplicated sample names in {path}")
    logger.debug(f"Read design with {len(design)} samples and columns {list(design.columns)}")
    return design


def read_count_matrix(path):
    """Read a count matrix written by isomirs (features x samples)."""
    if not os.path.isfile(path):
        raise FileNotFoundError(f"Cannot open {path}")
    counts = pd.read_csv(path, sep='\t', index_col=0)
    counts.columns = counts.columns.astype(str)
    return counts
