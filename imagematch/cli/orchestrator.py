"""
CLI workflow orchestration for imagematch.

Provides one orchestrator per command. Each runs its workflow as a series
of phases that return an exit code; the first non-zero code stops the run.
All parameters are validated before any file is hashed.
"""

from __future__ import annotations

import argparse
import logging
import os
import time
from typing import Optional

from .. import database
from ..database import HashCache
from ..scanner import (
    CrossFolderDeduplicator,
    collect_fingerprints,
    find_cross_folder_duplicates,
    find_first_match,
    find_image_files,
    fingerprint_file,
    get_algorithm,
    iter_fingerprints,
    iter_image_files,
)
from ..models import DispatchStats, ScanSettings, max_distance_for_threshold
from ..user_config import get_user_config
from ..utils.exporters import CsvResultWriter
from ..utils.validators import (
    ConfigurationError,
    validate_directory,
    validate_image_file,
    validate_settings,
)
from . import exit_codes
from .arg_parser import parse_cache_arguments, parse_dedupe_arguments, parse_search_arguments
from .reporting import log_dedupe_summary, print_search_report


def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for the CLI.

    Args:
        verbose: Enable verbose (DEBUG level) logging

    Returns:
        Configured logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%H:%M:%S'
    )
    return logging.getLogger(__name__)


def build_settings(args: argparse.Namespace, folder: str) -> ScanSettings:
    """
    Build the run-scoped settings from parsed arguments.

    Raises:
        ConfigurationError: If any setting is invalid
    """
    config = get_user_config()
    if args.no_cache:
        cache_path = None
    elif args.cache is not None:
        cache_path = str(args.cache)
    else:
        cache_path = config.cache_path_for(folder)

    settings = ScanSettings(
        algorithm=args.algorithm,
        hash_size=args.hash_size,
        threshold=args.threshold,
        workers=args.workers,
        cache_path=cache_path,
        skip_folders=config.skip_folders,
        show_progress=not args.no_progress,
    )
    validate_settings(settings)
    return settings


class _BaseOrchestrator:
    """Shared phases: cache load/save around a hashing run."""

    def __init__(self, argv: Optional[list[str]] = None):
        self.argv = argv
        self.args: Optional[argparse.Namespace] = None
        self.logger: logging.Logger = logging.getLogger(__name__)
        self.settings: Optional[ScanSettings] = None
        self.algorithm = None
        self.cache = HashCache()

    def _load_cache_phase(self) -> None:
        if self.settings.cache_path is None:
            self.logger.info("Cache disabled - hashing all images fresh")
            return
        self.cache = HashCache.load(self.settings.cache_path)

    def _save_cache_phase(self) -> None:
        # A failed save only costs recomputation on the next run
        if self.settings.cache_path is not None:
            self.cache.save(self.settings.cache_path)


class DedupeOrchestrator(_BaseOrchestrator):
    """
    Orchestrates cross-folder de-duplication.

    Enumeration, hashing and comparison are streamed: each fingerprint is
    compared as soon as it is available, and each match is appended to the
    CSV output as soon as it is found.
    """

    def __init__(self, argv: Optional[list[str]] = None):
        super().__init__(argv)
        self.stats = DispatchStats()
        self.deduplicator: Optional[CrossFolderDeduplicator] = None
        self.matches = 0

    def run(self) -> int:
        """
        Execute the dedupe workflow.

        Returns:
            Exit code
        """
        self.args = parse_dedupe_arguments(self.argv)
        self.logger = setup_logging(self.args.verbose)

        exit_code = self._validate_phase()
        if exit_code != exit_codes.SUCCESS:
            return exit_code

        self._load_cache_phase()

        start = time.monotonic()
        exit_code = self._compare_phase()
        if exit_code != exit_codes.SUCCESS:
            return exit_code

        self._save_cache_phase()

        log_dedupe_summary(
            self.logger,
            matches=self.matches,
            files=self.deduplicator.processed_count,
            comparisons=self.deduplicator.comparisons,
            skipped_gated=self.deduplicator.skipped_gated,
            output_path=str(self.args.output),
            elapsed=time.monotonic() - start,
        )
        return exit_codes.SUCCESS

    def _validate_phase(self) -> int:
        is_valid, error = validate_directory(str(self.args.directory))
        if not is_valid:
            self.logger.error(error)
            return exit_codes.CONFIG_ERROR

        try:
            self.settings = build_settings(self.args, str(self.args.directory))
        except ConfigurationError as e:
            self.logger.error(str(e))
            return exit_codes.CONFIG_ERROR

        self.algorithm = get_algorithm(self.settings.algorithm, self.settings.hash_size)
        self.logger.info(
            f"Similarity threshold {self.settings.threshold:.2f}% "
            f"using {self.algorithm.tag} ({self.algorithm.bit_length} bits)"
        )
        return exit_codes.SUCCESS

    def _compare_phase(self) -> int:
        self.deduplicator = CrossFolderDeduplicator(self.settings.threshold)

        try:
            sink = CsvResultWriter(self.args.output).open()
        except OSError as e:
            self.logger.error(f"Cannot create output file {self.args.output}: {e}")
            return exit_codes.IO_ERROR

        self.logger.info(f"Scanning {self.args.directory} for images...")
        paths = iter_image_files(self.args.directory, skip_folders=self.settings.skip_folders)
        results = iter_fingerprints(
            paths,
            self.cache,
            self.algorithm,
            workers=self.settings.workers,
            stats=self.stats,
            show_progress=self.settings.show_progress,
        )
        stream = ((result.path, result.fingerprint) for result in results)

        try:
            for match in find_cross_folder_duplicates(stream, deduplicator=self.deduplicator):
                sink.write(match)
                self.matches += 1
        except OSError as e:
            self.logger.error(f"Cannot write to {self.args.output}: {e}")
            return exit_codes.IO_ERROR
        finally:
            sink.close()

        return exit_codes.SUCCESS


class SearchOrchestrator(_BaseOrchestrator):
    """
    Orchestrates single-image search.

    Hashes the whole folder first (batch), saves the cache, then scans the
    candidates in enumeration order for the first match.
    """

    def __init__(self, argv: Optional[list[str]] = None):
        super().__init__(argv)
        self.candidates = []
        self.match = None

    def run(self) -> int:
        """
        Execute the find workflow.

        Returns:
            SUCCESS if a match was found, NO_MATCH if not, or an error code
        """
        self.args = parse_search_arguments(self.argv)
        self.logger = setup_logging(self.args.verbose)

        exit_code = self._validate_phase()
        if exit_code != exit_codes.SUCCESS:
            return exit_code

        self._load_cache_phase()

        paths = find_image_files(self.args.folder, skip_folders=self.settings.skip_folders)
        self.logger.info(f"Found {len(paths):,} potential image files to check")
        if not paths:
            print("No potential image files found in the search folder.")
            return exit_codes.NO_MATCH

        self.candidates, _ = collect_fingerprints(
            paths,
            self.cache,
            self.algorithm,
            workers=self.settings.workers,
            show_progress=self.settings.show_progress,
        )
        self._save_cache_phase()

        query = fingerprint_file(self.args.input, self.algorithm)
        if query is None:
            self.logger.error(f"Could not process input image: {self.args.input}")
            return exit_codes.IO_ERROR
        self.logger.info(f"Input image hash: {query}")

        self.logger.info(f"Searching for first similar image (threshold >= {self.settings.threshold:.2f}%)...")
        self.match = find_first_match(query, str(self.args.input), self.candidates, self.settings.threshold)

        print_search_report(
            self.match,
            str(self.args.input),
            self.settings.threshold,
            candidates_scanned=self.match.position if self.match else len(self.candidates),
            total_candidates=len(self.candidates),
        )
        return exit_codes.SUCCESS if self.match else exit_codes.NO_MATCH

    def _validate_phase(self) -> int:
        for is_valid, error in (
            validate_image_file(str(self.args.input)),
            validate_directory(str(self.args.folder)),
        ):
            if not is_valid:
                self.logger.error(error)
                return exit_codes.CONFIG_ERROR

        try:
            self.settings = build_settings(self.args, str(self.args.folder))
        except ConfigurationError as e:
            self.logger.error(str(e))
            return exit_codes.CONFIG_ERROR

        self.algorithm = get_algorithm(self.settings.algorithm, self.settings.hash_size)
        max_distance = max_distance_for_threshold(self.settings.threshold, self.algorithm.bit_length)
        self.logger.info(
            f"Similarity threshold: {self.settings.threshold:.2f}% translates to max Hamming "
            f"distance: {max_distance} (for hash size {self.algorithm.bit_length})"
        )
        return exit_codes.SUCCESS


class CacheOrchestrator:
    """Shows statistics of a cache file, prunes it, or deletes it."""

    def __init__(self, argv: Optional[list[str]] = None):
        self.argv = argv

    def run(self) -> int:
        args = parse_cache_arguments(self.argv)
        logger = setup_logging(args.verbose)

        db_path = str(args.path)
        if os.path.isdir(db_path):
            db_path = get_user_config().cache_path_for(db_path)

        if args.clear:
            return exit_codes.SUCCESS if database.clear_cache(db_path) else exit_codes.IO_ERROR

        if args.prune:
            cache = HashCache.load(db_path)
            removed = cache.prune_missing()
            logger.info(f"Removed {removed:,} stale entries")
            if not cache.save(db_path):
                return exit_codes.IO_ERROR

        stats = database.get_stats(db_path)
        print(f"Cache file: {stats['db_path']}")
        print(f"Entries:    {stats['total_entries']:,} ({stats['db_size_mb']} MB)")
        for tag, count in sorted(stats['algorithms'].items()):
            print(f"  {tag}: {count:,}")
        return exit_codes.SUCCESS


__all__ = [
    'setup_logging',
    'build_settings',
    'DedupeOrchestrator',
    'SearchOrchestrator',
    'CacheOrchestrator',
]
