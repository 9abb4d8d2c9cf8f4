"""
Report formatting and display for the CLI interface.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..models import SearchMatch


def print_search_report(
    match: Optional[SearchMatch],
    input_path: str,
    threshold: float,
    candidates_scanned: int,
    total_candidates: int,
) -> None:
    """
    Print the outcome of a single-image search.

    Args:
        match: First match found, or None
        input_path: Query image as given on the command line
        threshold: Similarity threshold percentage
        candidates_scanned: Candidates examined before stopping
        total_candidates: Candidates available
    """
    if match is None:
        print(f"\nNo similar image found matching the threshold (>= {threshold:.2f}%)")
        print(f"Scanned {total_candidates:,} candidate files.")
        return

    print("\n--- Match Found! ---")
    print(f"Input Image:      '{input_path}'")
    print(f"Similar Image:    '{match.match_path}'")
    print(f"Hamming Distance: {match.distance} (Threshold <= {match.max_distance})")
    print(f"Similarity:       {match.similarity:.2f}% (Threshold >= {threshold:.2f}%)")
    print(f"Processed {candidates_scanned:,} out of {total_candidates:,} candidates before stopping.")


def log_dedupe_summary(
    logger: logging.Logger,
    matches: int,
    files: int,
    comparisons: int,
    skipped_gated: int,
    output_path: str,
    elapsed: float,
) -> None:
    """Log the totals of a de-duplication run."""
    logger.info(
        f"Compared {files:,} images: {comparisons:,} distance calculations, "
        f"{skipped_gated:,} pairs skipped in already matched folders"
    )
    if matches:
        logger.info(f"Found {matches:,} matching folder pairs, written to {output_path}")
    else:
        logger.info("No similar images found across folders")
    logger.info(f"Elapsed time: {elapsed:.1f}s")


__all__ = ['print_search_report', 'log_dedupe_summary']
