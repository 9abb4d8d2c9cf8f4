"""
Argument parsing for the CLI interface.

Provides one parser per command (dedupe, find, cache). Defaults come from
the user configuration, so environment variables and the config file apply
unless overridden on the command line.
"""

from __future__ import annotations

import argparse
from pathlib import Path
from typing import Optional

from ..config import DEDUPE_OUTPUT_FILE
from ..scanner.hashing import HASH_FUNCTIONS
from ..user_config import get_user_config


def _add_common_arguments(parser: argparse.ArgumentParser, algorithm: str, threshold: float) -> None:
    """Hashing, cache and output options shared by dedupe and find."""
    config = get_user_config()

    parser.add_argument(
        '-t', '--threshold',
        type=float,
        default=threshold,
        help=f'Similarity threshold percentage (0-100, 100=identical). Default: {threshold}'
    )

    parser.add_argument(
        '--algorithm',
        choices=sorted(HASH_FUNCTIONS),
        default=algorithm,
        help=f'Perceptual hash algorithm. Default: {algorithm}'
    )

    parser.add_argument(
        '--hash-size',
        type=int,
        default=config.hash_size,
        help=f'Hash matrix size; fingerprints have hash-size squared bits. Default: {config.hash_size}'
    )

    parser.add_argument(
        '-w', '--workers',
        type=int,
        default=config.default_workers,
        help='Number of parallel hashing workers (0 = one per CPU, 1 = sequential). '
             f'Default: {config.default_workers}'
    )

    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument(
        '--cache',
        type=Path,
        default=None,
        help='Path to the fingerprint cache file. Default: .image_hashes.db in the scanned folder'
    )
    cache_group.add_argument(
        '--no-cache',
        action='store_true',
        help='Do not read or write the fingerprint cache'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )

    parser.add_argument(
        '--no-progress',
        action='store_true',
        help='Disable progress bars (useful for piping output)'
    )


def create_dedupe_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for cross-folder de-duplication.

    Returns:
        Configured ArgumentParser instance
    """
    config = get_user_config()
    parser = argparse.ArgumentParser(
        prog='imagematch dedupe',
        description='Find similar images that live in different folders',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s /Volumes/Photos
      Report one similar pair per folder pair to ./results.csv

  %(prog)s /Volumes/Photos --threshold 98 --output matches.csv
      Stricter matching, custom output file

  %(prog)s /Volumes/Photos --workers 1
      Hash sequentially (reference ordering)
        """
    )

    parser.add_argument(
        'directory',
        type=Path,
        help='Root directory to scan'
    )

    parser.add_argument(
        '-o', '--output',
        type=Path,
        default=Path(DEDUPE_OUTPUT_FILE),
        help=f'CSV file for matches. Default: {DEDUPE_OUTPUT_FILE}'
    )

    _add_common_arguments(parser, config.dedupe_algorithm, config.dedupe_threshold)
    return parser


def create_search_parser() -> argparse.ArgumentParser:
    """
    Create the argument parser for single-image search.

    Returns:
        Configured ArgumentParser instance
    """
    config = get_user_config()
    parser = argparse.ArgumentParser(
        prog='imagematch find',
        description='Find the first image in a folder similar to an input image',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
The search stops at the first candidate meeting the threshold, in
enumeration order. It does not look for the closest match.

Exit status: 0 match found, 1 no match, 2 configuration error, 3 I/O error.
        """
    )

    parser.add_argument(
        '-i', '--input',
        type=Path,
        required=True,
        help='Path to the input image file'
    )

    parser.add_argument(
        '-f', '--folder',
        type=Path,
        required=True,
        help='Path to the folder to search'
    )

    _add_common_arguments(parser, config.search_algorithm, config.search_threshold)
    return parser


def create_cache_parser() -> argparse.ArgumentParser:
    """Create the argument parser for cache maintenance."""
    parser = argparse.ArgumentParser(
        prog='imagematch cache',
        description='Inspect or maintain a fingerprint cache file',
    )

    parser.add_argument(
        'path',
        type=Path,
        help='Cache file, or a scanned folder containing .image_hashes.db'
    )

    action_group = parser.add_mutually_exclusive_group()
    action_group.add_argument(
        '--prune',
        action='store_true',
        help='Remove entries for files that were deleted or changed'
    )
    action_group.add_argument(
        '--clear',
        action='store_true',
        help='Delete the cache file'
    )

    parser.add_argument(
        '-v', '--verbose',
        action='store_true',
        help='Verbose output'
    )
    return parser


def parse_dedupe_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """
    Parse dedupe command-line arguments.

    Examples:
        >>> args = parse_dedupe_arguments(['/path/to/photos', '--threshold', '98'])
        >>> args.threshold
        98.0
    """
    return create_dedupe_parser().parse_args(argv)


def parse_search_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse find command-line arguments."""
    return create_search_parser().parse_args(argv)


def parse_cache_arguments(argv: Optional[list[str]] = None) -> argparse.Namespace:
    """Parse cache command-line arguments."""
    return create_cache_parser().parse_args(argv)


__all__ = [
    'create_dedupe_parser',
    'create_search_parser',
    'create_cache_parser',
    'parse_dedupe_arguments',
    'parse_search_arguments',
    'parse_cache_arguments',
]
