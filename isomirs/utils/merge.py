"""
Utilities for merging per-sample counts into a single table.
"""

import os
import logging

import pandas as pd

# Get logger
logger = logging.getLogger('isomirs')


def merge_counts(per_sample):
    """
    Outer-join per-sample counts into a matrix.

    Args:
        per_sample: Ordered mapping sample -> Series of counts indexed by label.

    Returns:
        DataFrame with labels as rows (sorted) and samples as columns.
        Labels absent from a sample get 0.
    """
    if not per_sample:
        return pd.DataFrame(dtype=int)

    matrix = pd.concat(per_sample, axis=1, join='outer', sort=True)
    matrix = matrix.reindex(columns=list(per_sample.keys()))
    matrix = matrix.fillna(0).astype(int)
    matrix.index.name = 'id'
    logger.debug(f"Merged {matrix.shape[1]} samples into {matrix.shape[0]} features")
    return matrix


def merge_count_tables(count_folder, output_table):
    """
    Merge count matrices from several isomirs runs into one table.

    Args:
        count_folder: Folder containing count tables (*_counts.tsv).
        output_table: Path to the output table file.

    Returns:
        The merged DataFrame.
    """
    if not os.path.isdir(count_folder):
        raise ValueError(f"{count_folder} is not a valid directory")

    logger.info(f"Scanning directory: {count_folder}")
    files = [x for x in sorted(os.listdir(count_folder))
             if x.endswith('_counts.tsv') and os.path.isfile(os.path.join(count_folder, x))]

    if not files:
        raise ValueError(f"No *_counts.tsv files found in {count_folder}")

    logger.info(f"Found {len(files)} files to merge")

    per_sample = {}
    for file in files:
        table = pd.read_csv(os.path.join(count_folder, file), sep='\t', index_col=0)
        for sample in table.columns:
            if sample in per_sample:
                logger.warning(f"Sample {sample} in {file} was already read, skipping")
                continue
            per_sample[sample] = table[sample]
        logger.debug(f"Added {table.shape[1]} samples from {file}")

    merged = merge_counts(per_sample)

    logger.info(f"Writing merged table to {output_table}")
    merged.to_csv(output_table, sep='\t')
    logger.info(f"Successfully merged {len(files)} files into {output_table}")
    return merged
