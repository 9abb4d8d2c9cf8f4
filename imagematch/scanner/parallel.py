"""
Parallel processing module for the scanner package.

Dispatches fingerprint computation for every path missing from the cache
over a bounded thread pool. Results are yielded to a single consumer as they
complete; new fingerprints are merged into the cache only after every worker
has finished, so the cache is never touched by two threads at once.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import (
    FIRST_COMPLETED,
    Future,
    ThreadPoolExecutor,
    as_completed,
    wait,
)
from typing import Callable, Iterable, Iterator, Optional

from ..config import DEFAULT_WORKERS, MAX_PENDING_PER_WORKER
from ..database import HashCache
from ..models import DispatchStats, FileIdentity, Fingerprint, HashResult
from .dependencies import make_progress_bar
from .hashing import HashAlgorithm, fingerprint_file


logger = logging.getLogger(__name__)

Hasher = Callable[[str, HashAlgorithm], Optional[Fingerprint]]


def resolve_workers(workers: Optional[int]) -> int:
    """Number of workers to use: one per logical CPU when unspecified or <= 0."""
    if workers is None or workers <= 0:
        return os.cpu_count() or 1
    return workers


def _identify(
    path: str,
    cache: HashCache,
    algorithm: HashAlgorithm,
) -> tuple[Optional[FileIdentity], Optional[HashResult]]:
    """
    Stat a path and look it up in the cache.

    Returns:
        (identity, result): result is set for cache hits and stat failures,
        None when the path still has to be hashed
    """
    try:
        identity = FileIdentity.from_path(path)
    except OSError as e:
        return None, HashResult(path=path, error=f"Cannot stat file: {e}")

    cached = cache.get(identity, algorithm.tag)
    if cached is not None:
        return identity, HashResult(path=path, identity=identity, fingerprint=cached, cached=True)
    return identity, None


def _hash_one(path: str, identity: FileIdentity, algorithm: HashAlgorithm, hasher: Hasher) -> HashResult:
    """Worker body: fingerprint one file, never raising."""
    try:
        fingerprint = hasher(identity.path, algorithm)
    except Exception as e:
        return HashResult(path=path, identity=identity, error=str(e))
    return HashResult(path=path, identity=identity, fingerprint=fingerprint)


def iter_fingerprints(
    paths: Iterable[str],
    cache: HashCache,
    algorithm: HashAlgorithm,
    workers: Optional[int] = DEFAULT_WORKERS,
    stats: Optional[DispatchStats] = None,
    show_progress: bool = False,
    hasher: Hasher = fingerprint_file,
) -> Iterator[HashResult]:
    """
    Yield a HashResult for every path, computing missing fingerprints in parallel.

    Cache hits are yielded as soon as they are looked up; computed results are
    yielded in completion order. When the iterator is exhausted (or closed),
    the worker pool has been joined and the newly computed fingerprints have
    been merged into ``cache``.

    Args:
        paths: Candidate file paths, possibly a lazy enumeration
        cache: Cache consulted for hits and grown with new fingerprints
        algorithm: Hash algorithm for this run
        workers: Parallel workers; None or <= 0 means one per logical CPU,
            1 means strictly sequential in input order on the calling thread
        stats: Optional counters object updated in place
        show_progress: Whether to show a tqdm progress bar
        hasher: Function computing one fingerprint (path, algorithm)

    Yields:
        HashResult per input path. NoHash results have fingerprint None,
        failures have error set; neither stops the batch.
    """
    stats = stats if stats is not None else DispatchStats()
    workers = resolve_workers(workers)
    total = len(paths) if hasattr(paths, '__len__') else None
    pbar = make_progress_bar(total, desc="Hashing images", enabled=show_progress)
    new_entries: list[tuple[FileIdentity, Fingerprint]] = []

    def record(result: HashResult) -> HashResult:
        stats.total_files += 1
        if result.cached:
            stats.cache_hits += 1
        elif result.error is not None:
            stats.errors += 1
            logger.debug(f"Error processing {result.path}: {result.error}")
        elif result.fingerprint is None:
            stats.no_hash += 1
        else:
            stats.computed += 1
            new_entries.append((result.identity, result.fingerprint))
        if pbar is not None:
            pbar.update(1)
        return result

    if workers == 1:
        logger.debug("Calculating image hashes sequentially")
        source = _iter_sequential(paths, cache, algorithm, hasher)
    else:
        logger.debug(f"Using {workers} worker threads for hash calculation")
        source = _iter_parallel(paths, cache, algorithm, hasher, workers)

    try:
        for result in source:
            yield record(result)
    finally:
        # _iter_parallel has left its executor block: all workers are joined
        source.close()
        if pbar is not None:
            pbar.close()

        added = cache.merge(new_entries)
        if added:
            logger.info(f"Merged {added:,} newly calculated fingerprints into the cache")
        _log_summary(stats)


def _iter_sequential(
    paths: Iterable[str],
    cache: HashCache,
    algorithm: HashAlgorithm,
    hasher: Hasher,
) -> Iterator[HashResult]:
    for path in paths:
        identity, result = _identify(path, cache, algorithm)
        if result is None:
            result = _hash_one(path, identity, algorithm, hasher)
        yield result


def _iter_parallel(
    paths: Iterable[str],
    cache: HashCache,
    algorithm: HashAlgorithm,
    hasher: Hasher,
    workers: int,
) -> Iterator[HashResult]:
    max_pending = workers * MAX_PENDING_PER_WORKER

    with ThreadPoolExecutor(max_workers=workers) as executor:
        pending: set[Future] = set()
        try:
            for path in paths:
                identity, result = _identify(path, cache, algorithm)
                if result is not None:
                    yield result
                    continue

                pending.add(executor.submit(_hash_one, path, identity, algorithm, hasher))

                # Bound in-flight work so huge trees never queue every file at once
                if len(pending) >= max_pending:
                    done, pending = wait(pending, return_when=FIRST_COMPLETED)
                    for future in done:
                        yield future.result()

            for future in as_completed(pending):
                yield future.result()
        except GeneratorExit:
            executor.shutdown(wait=True, cancel_futures=True)
            raise


def _log_summary(stats: DispatchStats) -> None:
    if stats.cache_hits > 0:
        logger.info(
            f"Cache: {stats.cache_hits:,} hits, {stats.cache_misses:,} misses "
            f"({stats.hit_rate:.1f}% hit rate)"
        )
    if stats.no_hash:
        logger.info(f"Skipped {stats.no_hash:,} files that could not be decoded")
    if stats.errors:
        logger.warning(f"Could not process {stats.errors:,} files")


def compute_missing(
    paths: Iterable[str],
    cache: HashCache,
    algorithm: HashAlgorithm,
    workers: Optional[int] = DEFAULT_WORKERS,
    show_progress: bool = False,
    hasher: Hasher = fingerprint_file,
) -> tuple[HashCache, DispatchStats]:
    """
    Compute fingerprints for every path not already cached.

    Args:
        paths: Candidate file paths
        cache: Cache to consult and update
        algorithm: Hash algorithm for this run
        workers: Parallel workers (see iter_fingerprints)
        show_progress: Whether to show a tqdm progress bar
        hasher: Function computing one fingerprint

    Returns:
        Tuple of (updated cache, DispatchStats)
    """
    stats = DispatchStats()
    for _ in iter_fingerprints(paths, cache, algorithm, workers, stats, show_progress, hasher):
        pass
    return cache, stats


def collect_fingerprints(
    paths: list[str],
    cache: HashCache,
    algorithm: HashAlgorithm,
    workers: Optional[int] = DEFAULT_WORKERS,
    show_progress: bool = False,
    hasher: Hasher = fingerprint_file,
) -> tuple[list[tuple[str, Optional[Fingerprint]]], DispatchStats]:
    """
    Compute missing fingerprints and return them in input order.

    Returns:
        Tuple of ([(path, fingerprint or None), ...] in the order of paths,
        DispatchStats)
    """
    stats = DispatchStats()
    by_path: dict[str, Optional[Fingerprint]] = {}
    for result in iter_fingerprints(paths, cache, algorithm, workers, stats, show_progress, hasher):
        by_path[result.path] = result.fingerprint
    return [(path, by_path.get(path)) for path in paths], stats


__all__ = [
    'resolve_workers',
    'iter_fingerprints',
    'compute_missing',
    'collect_fingerprints',
]
