"""
Deduplication module for the scanner package.

Finds perceptually similar images that live in different folders. Files are
compared incrementally as their fingerprints become available, against every
file seen before. Once two folders have produced one match, the pair of
folders is gated: no further file pairs between them are compared or
reported for the rest of the run.

The comparator keeps mutable state (processed map and folder-pair gate) and
must be driven by a single consumer; hashing upstream may be parallel.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Iterator, Optional

from ..config import DEDUPE_THRESHOLD
from ..models import (
    ComparisonResult,
    Fingerprint,
    FingerprintMismatchError,
    hamming_distance,
    similarity_percent,
)


logger = logging.getLogger(__name__)


class FolderPairGate:
    """Set of unordered directory pairs that already produced a match."""

    def __init__(self):
        self._pairs: set[frozenset[str]] = set()

    @staticmethod
    def _key(dir_a: str, dir_b: str) -> frozenset[str]:
        return frozenset((dir_a, dir_b))

    def add(self, dir_a: str, dir_b: str) -> None:
        self._pairs.add(self._key(dir_a, dir_b))

    def __contains__(self, pair: tuple[str, str]) -> bool:
        return self._key(*pair) in self._pairs

    def __len__(self) -> int:
        return len(self._pairs)


class CrossFolderDeduplicator:
    """
    Incremental all-pairs comparator with folder-pair gating.

    Usage:
        dedup = CrossFolderDeduplicator(threshold=96)
        for path, fingerprint in stream:
            for result in dedup.add(path, fingerprint):
                sink.write(result)

    Attributes:
        threshold: Minimum similarity percentage for a match
        gate: Folder pairs already reported
        comparisons: Hamming distances computed so far
        skipped_gated: File pairs skipped because their folders were gated
        failures: File pairs skipped because fingerprints were not comparable
    """

    def __init__(self, threshold: float = DEDUPE_THRESHOLD):
        self.threshold = threshold
        self.gate = FolderPairGate()
        self.comparisons = 0
        self.skipped_gated = 0
        self.failures = 0
        self._processed: dict[str, Fingerprint] = {}

    @property
    def processed_count(self) -> int:
        return len(self._processed)

    def add(self, path: str, fingerprint: Fingerprint) -> list[ComparisonResult]:
        """
        Compare a newly available fingerprint with every processed file.

        Args:
            path: Path of the new file
            fingerprint: Its fingerprint

        Returns:
            Matches found for this file, at most one per other folder
        """
        new_dir = os.path.dirname(path)
        results: list[ComparisonResult] = []

        for old_path, old_fingerprint in self._processed.items():
            old_dir = os.path.dirname(old_path)
            if old_dir == new_dir:
                continue

            if (old_dir, new_dir) in self.gate:
                self.skipped_gated += 1
                continue

            try:
                distance = hamming_distance(fingerprint, old_fingerprint)
            except FingerprintMismatchError as e:
                self.failures += 1
                logger.warning(f"Error calculating hash distance for {path} and {old_path}: {e}")
                continue
            self.comparisons += 1

            similarity = similarity_percent(distance, fingerprint.bit_length)
            if similarity >= self.threshold:
                result = ComparisonResult(
                    path_a=old_path,
                    path_b=path,
                    distance=distance,
                    similarity=similarity,
                )
                logger.info(
                    f"Found similar files: {old_path} <-> {path} "
                    f"(similarity {similarity:.2f}%)"
                )
                results.append(result)
                self.gate.add(old_dir, new_dir)

        self._processed[path] = fingerprint
        return results


def find_cross_folder_duplicates(
    stream: Iterable[tuple[str, Optional[Fingerprint]]],
    threshold: float = DEDUPE_THRESHOLD,
    deduplicator: Optional[CrossFolderDeduplicator] = None,
) -> Iterator[ComparisonResult]:
    """
    Find similar images across folders from a stream of fingerprints.

    Args:
        stream: (path, fingerprint) pairs in arrival order; entries without
            a fingerprint are skipped
        threshold: Minimum similarity percentage (ignored if deduplicator given)
        deduplicator: Optional comparator instance, to inspect its counters

    Yields:
        ComparisonResult per matching folder pair, as soon as it is found
    """
    dedup = deduplicator if deduplicator is not None else CrossFolderDeduplicator(threshold)

    for path, fingerprint in stream:
        if fingerprint is None:
            continue
        yield from dedup.add(path, fingerprint)

    logger.debug(
        f"Compared {dedup.comparisons:,} pairs, skipped {dedup.skipped_gated:,} "
        f"in {len(dedup.gate):,} matched folder pairs"
    )


__all__ = [
    'FolderPairGate',
    'CrossFolderDeduplicator',
    'find_cross_folder_duplicates',
]
