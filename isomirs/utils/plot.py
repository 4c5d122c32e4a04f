"""
Plotting utilities for isomirs.

The table builders are separate from the renderers so the numbers behind
each figure can be inspected or exported.
"""

import logging
import os

import numpy as np
import pandas as pd

from ..dataset import ISO_TYPES
from .parsing import TYPE_COLUMNS
from .interactive_plot import (create_interactive_all_plot, create_interactive_heatmap,
                               create_interactive_scatter)

# Get logger
logger = logging.getLogger('isomirs')

TABLE_COLUMNS = ['size', 'freq', 'n', 'pct_abundance', 'unique', 'sample', 'group']
POSITION_COLUMNS = ['change', 'freq', 'times', 'pct_abundance', 'unique', 'sample', 'group']
ALL_TYPES = ('ref',) + ISO_TYPES


def _resolve_column(ids, column):
    if column is None:
        column = ids.col_data.columns[0]
    if column not in ids.col_data.columns:
        raise ValueError(f'Column "{column}" not found in the design. '
                         f'Available: {", ".join(map(str, ids.col_data.columns))}')
    return column


def _sample_total(ids, sample):
    total = ids.counts[sample].sum()
    return total if total > 0 else np.nan


def iso_type_table(ids, type='iso5', column=None):
    """
    Proportion of isomiRs of one type at each position, per sample.

    Args:
        ids: IsomirDataSeq.
        type: One of iso5, iso3, subs, add.
        column: Design column used to group samples. Defaults to the first one.

    Returns:
        DataFrame with size, freq, n, pct_abundance, unique, sample and group.
    """
    if type not in ISO_TYPES:
        raise ValueError(f'"{type}" is not a valid isomiR type. Use one of {", ".join(ISO_TYPES)}')
    column = _resolve_column(ids, column)
    ids.check_annotation()

    tables = []
    for sample in ids.samples:
        table = ids.iso_list[sample][type]
        if table.empty:
            logger.debug(f"Sample {sample} has no {type} isomiRs")
            continue
        temp = (table[TYPE_COLUMNS].drop_duplicates()
                .groupby('size')
                .agg(freq=('freq', 'sum'), n=('freq', 'size'))
                .reset_index())
        temp['pct_abundance'] = temp['freq'] / _sample_total(ids, sample) * 100
        temp['unique'] = temp['n'] / temp['n'].sum()
        temp['sample'] = sample
        temp['group'] = ids.col_data.loc[sample, column]
        tables.append(temp[TABLE_COLUMNS])

    if not tables:
        return pd.DataFrame(columns=TABLE_COLUMNS)
    return pd.concat(tables, ignore_index=True)


def iso_position_table(ids, position=1, column=None):
    """
    Nucleotide changes at one position of the miRNA, per sample.

    Args:
        ids: IsomirDataSeq.
        position: 1-based position in the reference miRNA.
        column: Design column used to group samples. Defaults to the first one.

    Returns:
        DataFrame with change (reference>current), freq, times, pct_abundance,
        unique, sample and group.
    """
    column = _resolve_column(ids, column)
    ids.check_annotation()

    tables = []
    for sample in ids.samples:
        table = ids.iso_list[sample]['subs']
        table = table[table['size'] == position]
        if table.empty:
            continue
        temp = (table.assign(change=table['reference'] + '>' + table['current'])
                .groupby('change')
                .agg(freq=('freq', 'sum'), times=('freq', 'size'))
                .reset_index())
        temp['pct_abundance'] = temp['freq'] / _sample_total(ids, sample) * 100
        temp['unique'] = temp['times'] / temp['times'].sum()
        temp['sample'] = sample
        temp['group'] = ids.col_data.loc[sample, column]
        tables.append(temp[POSITION_COLUMNS])

    if not tables:
        return pd.DataFrame(columns=POSITION_COLUMNS)
    return pd.concat(tables, ignore_index=True)


def iso_all_table(ids, column=None):
    """
    Abundance of every isomiR type, per sample.

    Percentages are relative to all reads and all unique sequences of the
    sample. Types overlap, so they do not add up to 100.
    """
    column = _resolve_column(ids, column)
    ids.check_annotation()

    rows = []
    for sample in ids.samples:
        raw = ids.raw_list[sample]
        total_reads = raw['freq'].sum()
        total_seqs = len(raw)
        summary = ids.iso_list[sample]['summary'].set_index('type')
        for iso_type in ALL_TYPES:
            freq = summary.loc[iso_type, 'freq']
            n = summary.loc[iso_type, 'n']
            rows.append({
                'type': iso_type,
                'pct_abundance': freq / total_reads * 100 if total_reads else 0.0,
                'unique': n / total_seqs * 100 if total_seqs else 0.0,
                'sample': sample,
                'group': ids.col_data.loc[sample, column],
            })
    return pd.DataFrame(rows, columns=['type', 'pct_abundance', 'unique', 'sample', 'group'])


def top_features(ids, top=20):
    """Rows of the count matrix with the highest mean count."""
    counts = ids.get_counts()
    top = min(top, counts.shape[0])
    order = counts.mean(axis=1).sort_values(ascending=False, kind='mergesort').index[:top]
    return counts.loc[order]


def _group_colors(groups):
    import matplotlib

    cmap = matplotlib.colormaps['Set1']
    return {g: cmap(i % cmap.N) for i, g in enumerate(pd.unique(groups))}


def _is_interactive(output, interactive):
    return interactive or (output is not None and os.path.splitext(output)[1] == '.html')


def _save(fig, output):
    import matplotlib.pyplot as plt

    if output is None:
        return
    try:
        logger.info(f"Saving plot to {output}")
        fig.savefig(output, dpi=300)
        logger.info(f"Plot saved to {output}")
    finally:
        plt.close(fig)


def iso_top(ids, top=20, output=None, interactive=False):
    """
    Heatmap of the raw counts of the top expressed features.

    Args:
        ids: IsomirDataSeq.
        top: Number of features shown.
        output: Optional output file. An .html extension implies interactive.
        interactive: Write a Plotly figure.

    Returns:
        The figure, or None if the plotting library is not installed.
    """
    data = top_features(ids, top)
    if data.empty:
        logger.warning("No features to plot")
        return None

    if _is_interactive(output, interactive):
        return create_interactive_heatmap(data, output)

    try:
        import matplotlib
        import matplotlib.pyplot as plt
    except ImportError:
        logger.error('Cannot generate plot: matplotlib is not installed')
        logger.info('Install matplotlib with: pip install matplotlib')
        return None

    logger.info(f"Creating heatmap of the top {len(data)} features")
    fig, ax = plt.subplots(figsize=(max(6, 0.6 * data.shape[1] + 3), max(5, 0.3 * data.shape[0] + 2)))
    image = ax.imshow(data.values, aspect='auto', cmap=matplotlib.colormaps['RdYlBu'].resampled(100))
    ax.set_xticks(range(data.shape[1]))
    ax.set_xticklabels(data.columns, rotation=90)
    ax.set_yticks(range(data.shape[0]))
    ax.set_yticklabels(data.index, fontsize=8)
    cbar = fig.colorbar(image, ax=ax)
    cbar.set_label('Counts')
    fig.tight_layout()

    _save(fig, output)
    return fig


def _scatter(table, x, title, xlabel, output, categorical=False, seed=42):
    import matplotlib.pyplot as plt

    rng = np.random.default_rng(seed)
    fig, ax = plt.subplots(figsize=(10, 8))

    if categorical:
        levels = sorted(table[x].unique())
        xpos = table[x].map({v: i for i, v in enumerate(levels)}).astype(float)
        ax.set_xticks(range(len(levels)))
        ax.set_xticklabels(levels)
    else:
        xpos = table[x].astype(float)
    xpos = xpos + rng.uniform(-0.2, 0.2, len(table))
    ypos = table['unique'].astype(float) + rng.uniform(-0.01, 0.01, len(table))

    colors = _group_colors(table['group'])
    sizes = np.clip(table['pct_abundance'].fillna(0).astype(float) * 10, 10, 300)
    for group, color in colors.items():
        mask = (table['group'] == group).values
        ax.scatter(xpos[mask], ypos[mask], s=sizes[mask], color=color, alpha=0.7, label=str(group))

    ax.set_title(title)
    ax.set_xlabel(xlabel)
    ax.set_ylabel('# of unique sequences')
    ax.grid(True, alpha=0.3)
    ax.legend(title='Groups', loc='best')
    fig.tight_layout()

    _save(fig, output)
    return fig


def _polar(table, output):
    import matplotlib.pyplot as plt

    angles = np.linspace(0, 2 * np.pi, len(ALL_TYPES), endpoint=False)
    closed = np.concatenate([angles, angles[:1]])
    colors = _group_colors(table['group'])

    fig = plt.figure(figsize=(8, 8))
    ax = fig.add_subplot(projection='polar')
    seen = set()
    for sample, rows in table.groupby('sample', sort=False):
        values = rows.set_index('type').loc[list(ALL_TYPES), 'pct_abundance'].values
        group = rows['group'].iloc[0]
        ax.plot(closed, np.concatenate([values, values[:1]]), color=colors[group], alpha=0.7,
                label=None if group in seen else str(group))
        seen.add(group)
    ax.set_xticks(angles)
    ax.set_xticklabels(ALL_TYPES)
    ax.set_title('isomiR types (% of reads)')
    ax.legend(title='Groups', loc='upper right', bbox_to_anchor=(1.2, 1.1))
    fig.tight_layout()

    _save(fig, output)
    return fig


def iso_plot(ids, type='iso5', column='condition', output=None, interactive=False):
    """
    Plot the amount of isomiRs of one type in different samples.

    For iso5 and iso3 each point is a position relative to the reference
    start/end. For add it is the number of non-template nucleotides and for
    subs the position of the substitution. The y axis is the fraction of
    unique sequences and the point size the percent of reads. type="all"
    draws a polar summary of every isomiR type.

    Args:
        ids: IsomirDataSeq.
        type: iso5, iso3, subs, add or all.
        column: Design column used to color samples.
        output: Optional output file. An .html extension implies interactive.
        interactive: Write a Plotly figure.

    Returns:
        The figure, or None if nothing was plotted.
    """
    if type == 'all':
        table = iso_all_table(ids, column)
        if _is_interactive(output, interactive):
            return create_interactive_all_plot(table, output)
        try:
            return _polar(table, output)
        except ImportError:
            logger.error('Cannot generate plot: matplotlib is not installed')
            return None

    table = iso_type_table(ids, type, column)
    if table.empty:
        logger.warning(f"No {type} isomiRs found, nothing to plot")
        return None

    title = f"{type} distribution"
    xlabel = 'position respect to the reference'
    if _is_interactive(output, interactive):
        return create_interactive_scatter(table, 'size', title, xlabel, output)
    try:
        return _scatter(table, 'size', title, xlabel, output)
    except ImportError:
        logger.error('Cannot generate plot: matplotlib is not installed')
        logger.info('Install matplotlib with: pip install matplotlib')
        return None


def iso_plot_position(ids, position=1, column='condition', output=None, interactive=False):
    """
    Plot the nucleotide changes at a given position.

    Args:
        ids: IsomirDataSeq.
        position: 1-based position in the reference miRNA.
        column: Design column used to color samples.
        output: Optional output file. An .html extension implies interactive.
        interactive: Write a Plotly figure.

    Returns:
        The figure, or None if nothing was plotted.
    """
    table = iso_position_table(ids, position, column)
    if table.empty:
        logger.warning(f"No substitutions at position {position}, nothing to plot")
        return None

    title = 'subs distribution'
    xlabel = f'changes at position {position} respect to the reference'
    if _is_interactive(output, interactive):
        return create_interactive_scatter(table, 'change', title, xlabel, output)
    try:
        return _scatter(table, 'change', title, xlabel, output, categorical=True)
    except ImportError:
        logger.error('Cannot generate plot: matplotlib is not installed')
        logger.info('Install matplotlib with: pip install matplotlib')
        return None
