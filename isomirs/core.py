"""
Core functionality for isomirs: loading samples and collapsing isomiRs into count matrices.
"""

import logging
import multiprocessing

import pandas as pd

from .dataset import IsomirDataSeq
from .variants import is_reference
from .utils.merge import merge_counts
from .utils.parsing import chunks, read_isomir_file, summarize_isomirs

logger = logging.getLogger('isomirs')


# Helper function for multiprocessing - must be at module level
def _read_files_wrapper(args_tuple):
    """Read a chunk of (sample, path) pairs and summarize them."""
    pairs, min_count = args_tuple
    result = {}
    for sample, path in pairs:
        table = read_isomir_file(path, min_count=min_count)
        result[sample] = (table, summarize_isomirs(table))
    return result


def isomir_dataseq_from_files(files, design, min_count=1, formula=None, processes=1):
    """
    Load annotation files into an IsomirDataSeq.

    Args:
        files: List of paths in the same order as the design rows, or a
            dictionary sample -> path.
        design: DataFrame indexed by sample name.
        min_count: Sequences with fewer reads are discarded.
        formula: Default design formula for normalization and DE.
        processes: Number of files read in parallel.

    Returns:
        IsomirDataSeq whose counts have all isomiRs merged into miRNAs.
    """
    if isinstance(files, dict):
        missing = [x for x in design.index if x not in files]
        if missing:
            raise ValueError(f"No file given for samples: {', '.join(missing)}")
        pairs = [(x, files[x]) for x in design.index]
    else:
        files = list(files)
        if len(files) != len(design):
            raise ValueError(f"Got {len(files)} files for {len(design)} samples in the design")
        pairs = list(zip(design.index, files))

    logger.info(f"Reading {len(pairs)} annotation files")
    if processes > 1:
        with multiprocessing.Pool(processes=processes) as pool:
            all_parsing = pool.map(_read_files_wrapper, [(x, min_count) for x in chunks(pairs, processes)])
    else:
        all_parsing = [_read_files_wrapper((pairs, min_count))]

    parsed = {sample: result[sample] for result in all_parsing for sample in result}
    raw_list = {sample: parsed[sample][0] for sample in design.index}
    iso_list = {sample: parsed[sample][1] for sample in design.index}

    counts = iso_counts_from_matrix(raw_list, design)
    logger.info(f"Loaded {counts.shape[0]} miRNAs from {counts.shape[1]} samples")
    return IsomirDataSeq(counts, design, raw_list, iso_list, design=formula)


def collapse_mirs(table, ref=False, iso5=False, iso3=False, add=False, subs=False, seed=False):
    """
    Label each sequence by its isomiR class and sum reads per label.

    The label starts with the miRNA name, and each enabled flag appends one
    field, e.g. hsa-miR-124a-5p.iso.t3:AAA.

    Args:
        table: Annotated sequences of one sample.
        ref: Separate reference sequences (.ref) from the rest (.iso).
        iso5: Separate by 5' trimming.
        iso3: Separate by 3' trimming.
        add: Separate by non-template additions.
        subs: Separate by nucleotide substitutions.
        seed: Separate by substitutions in the seed region.

    Returns:
        Series of counts indexed by label.
    """
    if table.empty:
        return pd.Series(dtype=int)

    label = table['mir'].astype(str)
    if ref:
        is_ref = [is_reference(*x) for x in table[['mism', 'add', 't5', 't3']].itertuples(index=False)]
        label = label + pd.Series(['.ref' if x else '.iso' for x in is_ref], index=table.index)
    if iso5:
        label = label + '.t5:' + table['t5']
    if iso3:
        label = label + '.t3:' + table['t3']
    if add:
        label = label + '.ad:' + table['add']
    if subs:
        label = label + '.mm:' + table['mism']
    if seed:
        label = label + '.seed:' + table['seed']

    collapsed = table['freq'].groupby(label.values).sum()
    return collapsed.astype(int)


def iso_counts_from_matrix(raw_list, col_data, ref=False, iso5=False, iso3=False,
                           add=False, subs=False, seed=False):
    """Collapse every sample in col_data order and merge into one matrix."""
    missing = [x for x in col_data.index if x not in raw_list]
    if missing:
        raise ValueError(f"No annotation data for samples: {', '.join(map(str, missing))}")

    per_sample = {}
    for sample in col_data.index:
        per_sample[sample] = collapse_mirs(raw_list[sample], ref=ref, iso5=iso5, iso3=iso3,
                                           add=add, subs=subs, seed=seed)
        logger.debug(f"Sample {sample}: {len(per_sample[sample])} features")
    return merge_counts(per_sample)


def iso_counts(ids, ref=False, iso5=False, iso3=False, add=False, subs=False, seed=False, minc=1, mins=1):
    """
    Create a count matrix with different summarizing options.

    Calling it with only ids merges all isomiRs into miRNAs; setting every
    flag gives one row per distinct sequence variant.

    Args:
        ids: IsomirDataSeq.
        ref, iso5, iso3, add, subs, seed: See collapse_mirs.
        minc: Minimum count a sample needs (strictly above) to support a feature.
        mins: Minimum number of supporting samples to keep a feature.

    Returns:
        IsomirDataSeq with the new count matrix.
    """
    counts = iso_counts_from_matrix(ids.raw_list, ids.col_data, ref=ref, iso5=iso5, iso3=iso3,
                                    add=add, subs=subs, seed=seed)
    keep = (counts > minc).sum(axis=1) >= mins
    logger.info(f"Keeping {int(keep.sum())} of {len(counts)} features (minc={minc}, mins={mins})")
    return ids.copy_with_counts(counts[keep])


def iso_select(ids, mirna, minc=10):
    """
    Show every sequence annotated to one miRNA across samples.

    Args:
        ids: IsomirDataSeq.
        mirna: miRNA name.
        minc: Sequences with total reads not above this are dropped.

    Returns:
        DataFrame indexed by sequence with variant columns and one count
        column per sample, sorted by total reads.
    """
    ids.check_annotation()
    per_sample = {}
    variants = []
    for sample in ids.samples:
        table = ids.raw_list[sample]
        table = table[table['mir'] == mirna]
        per_sample[sample] = table.set_index('seq')['freq']
        variants.append(table[['seq', 'mism', 'add', 't5', 't3']])

    if not any(len(x) for x in per_sample.values()):
        logger.warning(f"No sequences found for {mirna}")
        return pd.DataFrame(columns=['mism', 'add', 't5', 't3'] + ids.samples)

    counts = merge_counts(per_sample)
    counts.index.name = 'seq'
    counts = counts[counts.sum(axis=1) > minc]
    variants = pd.concat(variants).drop_duplicates(subset='seq').set_index('seq')
    result = variants.join(counts, how='inner')
    order = result[ids.samples].sum(axis=1).sort_values(ascending=False, kind='mergesort').index
    return result.loc[order]
