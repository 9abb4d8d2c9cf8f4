"""
Single-query search module for the scanner package.

Scans a corpus for the first image similar to a query image. The scan is
linear, in the order candidates are supplied, and stops at the first
candidate meeting the threshold. This is a first-match policy:
a later candidate may be closer than the one returned.
"""

from __future__ import annotations

import logging
import os
from typing import Iterable, Optional

from ..models import (
    Fingerprint,
    FingerprintMismatchError,
    SearchMatch,
    hamming_distance,
    max_distance_for_threshold,
    similarity_percent,
)


logger = logging.getLogger(__name__)


def find_first_match(
    query: Fingerprint,
    query_path: str,
    candidates: Iterable[tuple[str, Optional[Fingerprint]]],
    threshold: float,
) -> Optional[SearchMatch]:
    """
    Find the first candidate whose similarity to the query meets threshold.

    Args:
        query: Fingerprint of the query image
        query_path: Path of the query image; the same file among the
            candidates (after resolving both to real absolute paths) is skipped
        candidates: (path, fingerprint) pairs in enumeration order; a None
            fingerprint is skipped
        threshold: Minimum similarity percentage, 0-100

    Returns:
        SearchMatch for the first match, or None if no candidate matches

    Raises:
        ValueError: If threshold is outside [0, 100]
    """
    bit_length = query.bit_length
    max_distance = max_distance_for_threshold(threshold, bit_length)
    query_abs = os.path.realpath(query_path)

    for position, (candidate_path, fingerprint) in enumerate(candidates, 1):
        if os.path.realpath(candidate_path) == query_abs:
            continue
        if fingerprint is None:
            continue

        try:
            distance = hamming_distance(query, fingerprint)
        except FingerprintMismatchError as e:
            logger.warning(f"Could not compare hashes for {candidate_path}: {e}")
            continue

        if distance > max_distance:
            continue

        # Exact re-check: the floored distance limit may admit a candidate
        # just under the threshold
        similarity = similarity_percent(distance, bit_length)
        if similarity >= threshold:
            return SearchMatch(
                query_path=query_path,
                match_path=candidate_path,
                distance=distance,
                similarity=similarity,
                max_distance=max_distance,
                position=position,
            )

    return None


__all__ = ['find_first_match']
