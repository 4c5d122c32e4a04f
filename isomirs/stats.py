"""
Differential expression and normalization of isomiR count matrices.

Model fitting is delegated to pydeseq2 (DESeq2 negative binomial GLM and
variance stabilizing transform) and to numpy/statsmodels for voom.
"""

import logging
from collections import namedtuple

import numpy as np
import pandas as pd
import patsy
from statsmodels.nonparametric.smoothers_lowess import lowess

from .core import iso_counts

logger = logging.getLogger('isomirs')

VoomResult = namedtuple('VoomResult', ['E', 'weights', 'design'])


def _resolve_formula(ids, formula):
    if formula is None:
        formula = ids.design
    if formula is None:
        raise ValueError('A design formula is needed, e.g. "~condition"')
    if not formula.strip().startswith('~'):
        formula = '~' + formula.strip()
    # unknown design variables raise ValueError here
    design_matrix(formula, ids.col_data)
    return formula


def _deseq_dataset(counts, col_data, formula, quiet=True):
    try:
        from pydeseq2.dds import DeseqDataSet
    except ImportError:
        raise ImportError("PyDESeq2 required. Install with: pip install pydeseq2")

    if counts.shape[0] == 0:
        raise ValueError('The count matrix is empty')

    # samples x features as expected by pydeseq2
    return DeseqDataSet(
        counts=counts.T.astype(int),
        metadata=col_data.loc[counts.columns],
        design=formula,
        quiet=quiet,
    )


def design_matrix(formula, col_data):
    """
    Build the model matrix for a formula.

    Args:
        formula: Formula such as "~condition".
        col_data: DataFrame indexed by sample name.

    Returns:
        DataFrame with one row per sample.
    """
    try:
        return patsy.dmatrix(formula, col_data, return_type='dataframe')
    except patsy.PatsyError as e:
        raise ValueError(f'Cannot use design formula "{formula}" with columns '
                         f'{", ".join(map(str, col_data.columns))}: {e.message}') from e


def iso_de(ids, formula=None, quiet=True, **kwargs):
    """
    Differential expression analysis with DESeq2.

    The isomiRs are first collapsed with iso_counts, then a DeseqDataSet is
    built from the count matrix and the experiment design and fitted.

    Args:
        ids: IsomirDataSeq.
        formula: Design formula. Defaults to ids.design.
        quiet: Silence pydeseq2 progress output.
        **kwargs: Options passed to iso_counts (ref, iso5, iso3, add, subs,
            seed, minc, mins).

    Returns:
        Fitted pydeseq2 DeseqDataSet. Use iso_results to get the statistics
        for a contrast.
    """
    formula = _resolve_formula(ids, formula)
    ids = iso_counts(ids, **kwargs)
    logger.info(f"Running DESeq2 on {ids.counts.shape[0]} features with design {formula}")
    dds = _deseq_dataset(ids.counts, ids.col_data, formula, quiet=quiet)
    dds.deseq2()
    return dds


def iso_results(dds, contrast, alpha=0.05, quiet=True):
    """
    Wald test results for one contrast.

    Args:
        dds: DeseqDataSet returned by iso_de.
        contrast: [factor, tested level, reference level].
        alpha: Significance level for independent filtering.
        quiet: Silence pydeseq2 progress output.

    Returns:
        DataFrame with baseMean, log2FoldChange, lfcSE, stat, pvalue and padj.
    """
    try:
        from pydeseq2.ds import DeseqStats
    except ImportError:
        raise ImportError("PyDESeq2 required. Install with: pip install pydeseq2")

    if len(contrast) != 3:
        raise ValueError('contrast must be [factor, tested level, reference level]')

    stat_res = DeseqStats(dds, contrast=list(contrast), alpha=alpha, quiet=quiet)
    stat_res.summary()
    return stat_res.results_df.copy()


def voom(counts, design, span=0.5):
    """
    Transform counts to log2-CPM and estimate the mean-variance relationship.

    Args:
        counts: Features x samples matrix (DataFrame or array).
        design: Model matrix, one row per sample.
        span: Fraction of points used by the lowess trend.

    Returns:
        VoomResult with E (log2-CPM), precision weights and the design.
    """
    index = counts.index if isinstance(counts, pd.DataFrame) else None
    columns = counts.columns if isinstance(counts, pd.DataFrame) else None
    y = np.asarray(counts, dtype=float)
    x = np.asarray(design, dtype=float)

    n_features, n_samples = y.shape
    if n_features < 2:
        raise ValueError('Need at least two features for voom')
    if x.shape[0] != n_samples:
        raise ValueError(f'Design has {x.shape[0]} rows for {n_samples} samples')

    df_residual = n_samples - np.linalg.matrix_rank(x)
    if df_residual < 1:
        raise ValueError('No residual degrees of freedom left to estimate the variance trend')

    lib_size = y.sum(axis=0)
    E = np.log2((y + 0.5) / (lib_size + 1) * 1e6)

    coef = np.linalg.lstsq(x, E.T, rcond=None)[0]
    fitted = (x @ coef).T
    sigma = np.sqrt(((E - fitted) ** 2).sum(axis=1) / df_residual)

    sx = E.mean(axis=1) + np.mean(np.log2(lib_size + 1)) - np.log2(1e6)
    sy = np.sqrt(sigma)
    expressed = y.sum(axis=1) > 0
    if expressed.sum() < 2:
        raise ValueError('Need at least two expressed features for voom')

    # the smoothing window always holds at least three points
    frac = min(1.0, max(span, 3 / expressed.sum()))
    trend = lowess(sy[expressed], sx[expressed], frac=frac, return_sorted=True)
    fitted_count = np.log2(2 ** fitted * 1e-6 * (lib_size + 1))
    weights = 1 / np.interp(fitted_count, trend[:, 0], trend[:, 1]) ** 4

    if index is not None:
        E = pd.DataFrame(E, index=index, columns=columns)
        weights = pd.DataFrame(weights, index=index, columns=columns)
    return VoomResult(E, weights, design)


def iso_norm(ids, formula=None, max_samples=50):
    """
    Normalize the count matrix.

    With fewer than max_samples samples the DESeq2 variance stabilizing
    transform is used, taking the design into account; otherwise voom
    log2-CPM values are used.

    Args:
        ids: IsomirDataSeq.
        formula: Design formula. Defaults to ids.design.
        max_samples: Sample count from which voom is used.

    Returns:
        The same IsomirDataSeq with normalized counts stored
        (ids.get_counts(norm=True)).
    """
    formula = _resolve_formula(ids, formula)
    counts = ids.get_counts()

    if len(ids.samples) < max_samples:
        logger.info(f"Normalizing {len(ids.samples)} samples with the variance stabilizing transform")
        dds = _deseq_dataset(counts, ids.col_data, formula)
        dds.vst(use_design=True)
        norm = pd.DataFrame(np.asarray(dds.layers['vst_counts']).T, index=counts.index, columns=counts.columns)
    else:
        logger.info(f"Normalizing {len(ids.samples)} samples with voom")
        norm = voom(counts, design_matrix(formula, ids.col_data.loc[counts.columns])).E

    ids.set_norm_counts(norm)
    return ids
