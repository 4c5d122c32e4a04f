"""
Command-line interface for isomirs.
"""

import argparse
import os
import sys

from . import __version__
from .core import isomir_dataseq_from_files, iso_counts
from .dataset import IsomirDataSeq
from .stats import iso_de, iso_norm, iso_results
from .utils.merge import merge_count_tables
from .utils.parsing import read_count_matrix, read_design
from .utils.plot import iso_plot, iso_plot_position, iso_top
from .utils.logging_config import setup_logging

PLOT_TYPES = ['iso5', 'iso3', 'subs', 'add', 'all']


def _add_collapse_options(parser):
    parser.add_argument("--ref", help="Separate reference sequences from isomiRs. Default: FALSE", action="store_true")
    parser.add_argument("--iso5", help="Separate isomiRs by 5' trimming. Default: FALSE", action="store_true")
    parser.add_argument("--iso3", help="Separate isomiRs by 3' trimming. Default: FALSE", action="store_true")
    parser.add_argument("--add", help="Separate isomiRs by non-template additions. Default: FALSE", action="store_true")
    parser.add_argument("--subs", help="Separate isomiRs by nucleotide substitutions. Default: FALSE", action="store_true")
    parser.add_argument("--seed", help="Separate isomiRs by changes in nucleotides 2-7. Default: FALSE", action="store_true")
    parser.add_argument("-minc", type=int, metavar='[int]', default=1, help="A sample supports a feature if its count is above this value. Default: 1")
    parser.add_argument("-mins", type=int, metavar='[int]', default=1, help="Minimum number of supporting samples to keep a feature. Default: 1")


def _add_logging_options(parser):
    parser.add_argument("--quiet", help='--quiet: suppress informational messages. Default: FALSE', action="store_true")
    parser.add_argument("--verbose", help='--verbose: enable verbose logging. Default: FALSE', action="store_true")
    parser.add_argument('--version', '-v', '-version', action='version', version=f'isomirs {__version__}')


def _collapse_kwargs(args):
    return dict(ref=args.ref, iso5=args.iso5, iso3=args.iso3, add=args.add, subs=args.subs,
                seed=args.seed, minc=args.minc, mins=args.mins)


def _load(args, logger):
    try:
        design = read_design(args.design)
        return isomir_dataseq_from_files(args.files, design, min_count=args.min_count,
                                         formula=getattr(args, 'formula', None), processes=args.p)
    except (OSError, ValueError) as e:
        logger.error(f"Cannot load samples: {str(e)}")
        sys.exit(1)


def main():
    """Main entry point: build the count matrix from annotation files."""
    parser = argparse.ArgumentParser(description="Collapse seqbuster/miraligner annotations into miRNA/isomiR count matrices.")
    parser.add_argument("design", help="Tab-separated design file. First column: sample names, in the same order as <files>.")
    parser.add_argument("files", nargs='+', help="One annotation file (.mirna) per sample.")
    parser.add_argument("-o", metavar='output_prefix', default='isomirs', help="the prefix of the output files. Default: isomirs")
    parser.add_argument("-p", type=int, metavar='processes', default=1, help="number of files read in parallel. Default: 1")
    parser.add_argument("-min_count", type=int, metavar='[int]', default=1, help="Sequences with fewer reads in a sample are discarded. Default: 1")
    _add_collapse_options(parser)

    # Visualization options
    parser.add_argument("--plot_type", choices=PLOT_TYPES, help="Plot the distribution of one isomiR type (or all of them).")
    parser.add_argument("--plot_position", type=int, metavar='[int]', help="Plot nucleotide changes at this position.")
    parser.add_argument("--top", type=int, metavar='[int]', help="Plot a heatmap of the top expressed features.")
    parser.add_argument("-column", metavar='column', default='condition', help="Design column used to color samples. Default: condition")
    parser.add_argument("--interactive", help='--interactive: create interactive HTML plots instead of static images. Requires Plotly. Default: FALSE', action="store_true")
    parser.add_argument("--plot_format", choices=["png", "svg", "pdf"], default="png", help="Format for static plots. Default: png")
    _add_logging_options(parser)

    args = parser.parse_args()

    logger = setup_logging(verbose=args.verbose, quiet=args.quiet)

    if args.interactive:
        try:
            import plotly.graph_objects
            logger.info("Using interactive plots with Plotly")
        except ImportError:
            logger.warning("Plotly is not installed. Interactive plots will not be generated.")
            logger.info("Install plotly with: pip install plotly")
            args.interactive = False

    ids = _load(args, logger)
    ids = iso_counts(ids, **_collapse_kwargs(args))

    output = args.o + "_counts.tsv"
    logger.info(f"Writing count matrix to {output}")
    ids.counts.to_csv(output, sep='\t')

    extension = 'html' if args.interactive else args.plot_format
    try:
        if args.plot_type:
            iso_plot(ids, type=args.plot_type, column=args.column,
                     output=f"{args.o}_{args.plot_type}.{extension}", interactive=args.interactive)
        if args.plot_position is not None:
            iso_plot_position(ids, position=args.plot_position, column=args.column,
                              output=f"{args.o}_position{args.plot_position}.{extension}",
                              interactive=args.interactive)
        if args.top:
            iso_top(ids, top=args.top, output=f"{args.o}_top{args.top}.{extension}",
                    interactive=args.interactive)
    except ValueError as e:
        logger.error(f"Cannot generate plot: {str(e)}")
        sys.exit(1)

    logger.info('All done!')


def norm():
    """Entry point for normalizing a count matrix."""
    parser = argparse.ArgumentParser(description='Normalize a count matrix with the variance stabilizing transform or voom.')
    parser.add_argument('-counts', help='Count matrix written by isomirs (*_counts.tsv).', required=True)
    parser.add_argument('-design', help='Tab-separated design file. First column: sample names.', required=True)
    parser.add_argument('-formula', help='Design formula, e.g. "~condition".', required=True)
    parser.add_argument('-output', help='Output file to store the normalized matrix.', required=True)
    parser.add_argument('-max_samples', type=int, metavar='[int]', default=50, help='Number of samples from which voom is used instead of the variance stabilizing transform. Default: 50')
    _add_logging_options(parser)

    args = parser.parse_args()

    logger = setup_logging(verbose=args.verbose, quiet=args.quiet)

    try:
        counts = read_count_matrix(args.counts)
        design = read_design(args.design)
        missing = [x for x in design.index if x not in counts.columns]
        if missing:
            raise ValueError(f"Samples missing from the count matrix: {', '.join(missing)}")
        ids = IsomirDataSeq(counts, design, design=args.formula)
        ids = iso_norm(ids, max_samples=args.max_samples)
    except (OSError, ValueError) as e:
        logger.error(f"Normalization failed: {str(e)}")
        sys.exit(1)

    logger.info(f"Writing normalized matrix to {args.output}")
    ids.get_counts(norm=True).to_csv(args.output, sep='\t')


def de():
    """Entry point for differential expression."""
    parser = argparse.ArgumentParser(description='Differential expression of miRNAs/isomiRs with DESeq2.')
    parser.add_argument("design", help="Tab-separated design file. First column: sample names, in the same order as <files>.")
    parser.add_argument("files", nargs='+', help="One annotation file (.mirna) per sample.")
    parser.add_argument('-formula', help='Design formula, e.g. "~condition".', required=True)
    parser.add_argument('-contrast', nargs=3, metavar=('factor', 'tested', 'reference'), required=True, help='Contrast to test, e.g. -contrast condition treated control')
    parser.add_argument('-output', help='Output file to store the results table.', required=True)
    parser.add_argument("-p", type=int, metavar='processes', default=1, help="number of files read in parallel. Default: 1")
    parser.add_argument("-min_count", type=int, metavar='[int]', default=1, help="Sequences with fewer reads in a sample are discarded. Default: 1")
    _add_collapse_options(parser)
    _add_logging_options(parser)

    args = parser.parse_args()

    logger = setup_logging(verbose=args.verbose, quiet=args.quiet)

    ids = _load(args, logger)
    try:
        dds = iso_de(ids, **_collapse_kwargs(args))
        results = iso_results(dds, args.contrast)
    except ValueError as e:
        logger.error(f"Differential expression failed: {str(e)}")
        sys.exit(1)

    logger.info(f"Writing results to {args.output}")
    results.to_csv(args.output, sep='\t')


def merge():
    """Entry point for merging count tables."""
    parser = argparse.ArgumentParser(description='Merge count tables from several isomirs runs into a single table')
    parser.add_argument("-count_folder", help="Folder containing *_counts.tsv outputs from isomirs", required=True, metavar='')
    parser.add_argument("-output_table", help="Output file to store merged counts", required=True, metavar='')
    parser.add_argument("--quiet", help='--quiet: suppress informational messages. default: FALSE', action="store_true")
    parser.add_argument("--verbose", help='--verbose: enable verbose logging. default: FALSE', action="store_true")

    args = parser.parse_args()

    logger = setup_logging(verbose=args.verbose, quiet=args.quiet)

    if not os.path.isdir(args.count_folder):
        logger.error(f"{args.count_folder} is not a valid directory")
        sys.exit(1)

    try:
        merge_count_tables(args.count_folder, args.output_table)
    except (OSError, ValueError) as e:
        logger.error(f"Error merging count tables: {str(e)}")
        sys.exit(1)


if __name__ == "__main__":
    main()
