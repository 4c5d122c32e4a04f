"""
Interactive plotting utilities for isomirs using Plotly.
"""

import logging

# Get logger
logger = logging.getLogger('isomirs')


def _import_plotly():
    try:
        import plotly.graph_objects as go
    except ImportError:
        logger.error('Cannot generate interactive plot: plotly is not installed')
        logger.info('Install plotly with: pip install plotly')
        return None
    return go


def _write(fig, output_html):
    if output_html is None:
        return
    try:
        logger.info(f"Saving interactive plot to {output_html}")
        fig.write_html(output_html, include_plotlyjs='cdn')
        logger.info(f"Interactive plot saved to {output_html}")
    except Exception as e:
        logger.error(f"Error saving interactive plot: {str(e)}")
        raise


def create_interactive_scatter(table, x, title, xlabel, output_html=None):
    """
    Scatter of isomiR positions (or changes) against unique sequence fraction.

    Args:
        table: Output of iso_type_table or iso_position_table.
        x: Column shown on the x axis ("size" or "change").
        title: Plot title.
        xlabel: x axis label.
        output_html: Optional path to the output HTML file.

    Returns:
        Plotly figure, or None if plotly is not installed.
    """
    go = _import_plotly()
    if go is None:
        return None

    logger.debug(f"Plotting {len(table)} data points")
    count_column = 'n' if 'n' in table.columns else 'times'
    fig = go.Figure()
    for group, rows in table.groupby('group', sort=False):
        hover = [
            f"Sample: {s}<br>{x}: {v}<br>Reads: {f}<br>Sequences: {n}<br>Abundance: {p:.2f}%"
            for s, v, f, n, p in zip(rows['sample'], rows[x], rows['freq'], rows[count_column],
                                     rows['pct_abundance'])
        ]
        fig.add_trace(go.Scatter(
            x=rows[x],
            y=rows['unique'],
            mode='markers',
            name=str(group),
            text=hover,
            hoverinfo='text',
            marker=dict(
                size=rows['pct_abundance'].fillna(0).clip(lower=1, upper=30) + 5,
                opacity=0.7,
            ),
        ))

    fig.update_layout(
        title=title,
        xaxis_title=xlabel,
        yaxis_title='# of unique sequences',
        legend_title='Groups',
        template='plotly_white',
    )
    _write(fig, output_html)
    return fig


def create_interactive_heatmap(data, output_html=None):
    """Heatmap of a features x samples count table."""
    go = _import_plotly()
    if go is None:
        return None

    fig = go.Figure(data=go.Heatmap(
        z=data.values,
        x=[str(c) for c in data.columns],
        y=[str(i) for i in data.index],
        colorscale='RdYlBu',
        colorbar=dict(title='Counts'),
    ))
    fig.update_layout(title=f'Top {len(data)} features', template='plotly_white')
    _write(fig, output_html)
    return fig


def create_interactive_all_plot(table, output_html=None):
    """Polar summary of every isomiR type, one trace per sample."""
    go = _import_plotly()
    if go is None:
        return None

    fig = go.Figure()
    seen = set()
    for sample, rows in table.groupby('sample', sort=False):
        group = rows['group'].iloc[0]
        types = list(rows['type'])
        values = list(rows['pct_abundance'])
        fig.add_trace(go.Scatterpolar(
            r=values + values[:1],
            theta=types + types[:1],
            mode='lines',
            name=f'{sample} ({group})',
            legendgroup=str(group),
            showlegend=group not in seen,
        ))
        seen.add(group)

    fig.update_layout(title='isomiR types (% of reads)', template='plotly_white')
    _write(fig, output_html)
    return fig
