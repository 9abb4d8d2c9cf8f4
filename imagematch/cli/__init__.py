"""
CLI package for imagematch.

Provides the command-line interface for cross-folder de-duplication,
single-image search and cache maintenance.

Public API:
- dedupe_main / find_main / cache_main: Entry points returning exit codes
- DedupeOrchestrator / SearchOrchestrator / CacheOrchestrator: Workflows
- exit_codes: Exit status constants
"""

from __future__ import annotations

import logging
from typing import Optional

from . import exit_codes
from .orchestrator import (
    CacheOrchestrator,
    DedupeOrchestrator,
    SearchOrchestrator,
    build_settings,
    setup_logging,
)
from .arg_parser import (
    create_cache_parser,
    create_dedupe_parser,
    create_search_parser,
)
from .reporting import print_search_report


def _run(orchestrator) -> int:
    try:
        return orchestrator.run()
    except KeyboardInterrupt:
        logging.getLogger(__name__).error("Interrupted - fingerprints from this run were not saved")
        return exit_codes.IO_ERROR


def dedupe_main(argv: Optional[list[str]] = None) -> int:
    """
    Entry point for cross-folder de-duplication.

    Returns:
        Exit code (see exit_codes)

    Examples:
        >>> exit_code = dedupe_main(['/path/to/photos', '--threshold', '98'])
    """
    return _run(DedupeOrchestrator(argv))


def find_main(argv: Optional[list[str]] = None) -> int:
    """
    Entry point for single-image search.

    Returns:
        SUCCESS if a match was found, NO_MATCH if not, or an error code
    """
    return _run(SearchOrchestrator(argv))


def cache_main(argv: Optional[list[str]] = None) -> int:
    """Entry point for cache maintenance."""
    return _run(CacheOrchestrator(argv))


__all__ = [
    # Entry points
    'dedupe_main',
    'find_main',
    'cache_main',
    # Core classes
    'DedupeOrchestrator',
    'SearchOrchestrator',
    'CacheOrchestrator',
    # Utilities
    'exit_codes',
    'setup_logging',
    'build_settings',
    'create_dedupe_parser',
    'create_search_parser',
    'create_cache_parser',
    'print_search_report',
]
