"""
Container for isomiR count data.
"""

import logging

import pandas as pd

logger = logging.getLogger('isomirs')

ISO_TYPES = ('iso5', 'iso3', 'subs', 'add')


class IsomirDataSeq:
    """
    Count matrix together with the per-sample annotation it was built from.

    Args:
        counts: DataFrame with features as rows and samples as columns.
        col_data: DataFrame indexed by sample name describing the experiment.
        raw_list: Dictionary sample -> annotated variant records. May be
            empty for a matrix read from disk, which can be normalized but
            not collapsed again.
        iso_list: Dictionary sample -> isomiR type summaries.
        design: Optional design formula, e.g. "~condition".
    """

    def __init__(self, counts, col_data, raw_list=None, iso_list=None, design=None):
        raw_list = {} if raw_list is None else raw_list
        iso_list = {} if iso_list is None else iso_list
        missing = [x for x in col_data.index if raw_list and x not in raw_list]
        if missing:
            raise ValueError(f"Samples without annotation data: {', '.join(map(str, missing))}")

        self.counts = counts.reindex(columns=list(col_data.index), fill_value=0)
        self.col_data = col_data
        self.raw_list = raw_list
        self.iso_list = iso_list
        self.design = design
        self.norm_counts = None

    def __repr__(self):
        return (f"IsomirDataSeq with {self.counts.shape[0]} features and "
                f"{self.counts.shape[1]} samples")

    @property
    def samples(self):
        return list(self.col_data.index)

    def get_counts(self, norm=False):
        """
        Return the count matrix.

        Args:
            norm: Return the normalized matrix instead of raw counts.
        """
        if norm:
            if self.norm_counts is None:
                raise ValueError('No normalized counts available. Run iso_norm first.')
            return self.norm_counts
        return self.counts

    def set_norm_counts(self, matrix):
        if not isinstance(matrix, pd.DataFrame):
            matrix = pd.DataFrame(matrix, index=self.counts.index, columns=self.counts.columns)
        if not matrix.index.equals(self.counts.index) or not matrix.columns.equals(self.counts.columns):
            raise ValueError('Normalized matrix does not match the count matrix labels')
        self.norm_counts = matrix

    def check_annotation(self):
        """Raise ValueError unless every sample has its annotation tables."""
        missing = [x for x in self.samples if x not in self.raw_list or x not in self.iso_list]
        if missing:
            raise ValueError(f"No annotation data for samples: {', '.join(map(str, missing))}")

    def copy_with_counts(self, counts):
        """Return a new object with a different count matrix and the same annotation."""
        logger.debug(f"New count matrix with {counts.shape[0]} features")
        return IsomirDataSeq(counts, self.col_data, self.raw_list, self.iso_list, design=self.design)
