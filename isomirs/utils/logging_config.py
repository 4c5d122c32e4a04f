"""
Logging configuration for the isomirs package.
"""

import logging
import sys


def setup_logging(verbose=False, quiet=False):
    """
    Set up logging configuration.

    Args:
        verbose: Enable verbose logging (DEBUG level).
        quiet: Minimize logging (only show WARN and above).
    """
    logger = logging.getLogger('isomirs')

    if verbose:
        logger.setLevel(logging.DEBUG)
    elif quiet:
        logger.setLevel(logging.WARNING)
    else:
        logger.setLevel(logging.INFO)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.DEBUG)
    console_handler.setFormatter(logging.Formatter('[%(levelname)s] %(message)s'))

    # Clear any existing handlers to avoid duplicates
    logger.handlers = []
    logger.addHandler(console_handler)

    return logger
