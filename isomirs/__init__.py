"""
isomirs: analysis of miRNA sequence variants (isomiRs) from small RNA sequencing.

Annotated sequences from seqbuster/miraligner are collapsed into count
matrices at different isomiR resolutions, normalized, tested for
differential expression and plotted.
"""

__version__ = "1.0.0"

from .dataset import IsomirDataSeq
from .core import isomir_dataseq_from_files, iso_counts, iso_select, collapse_mirs
from .stats import iso_de, iso_results, iso_norm, voom
from .utils.plot import iso_top, iso_plot, iso_plot_position

__all__ = [
    "IsomirDataSeq",
    "isomir_dataseq_from_files",
    "iso_counts",
    "iso_select",
    "collapse_mirs",
    "iso_de",
    "iso_results",
    "iso_norm",
    "voom",
    "iso_top",
    "iso_plot",
    "iso_plot_position",
]
