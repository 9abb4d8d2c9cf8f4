"""
Unit tests for cross-folder de-duplication.
"""

import itertools
import logging
import os

import pytest
from imagematch.database import HashCache
from imagematch.models import Fingerprint
from imagematch.scanner import (
    CrossFolderDeduplicator,
    FolderPairGate,
    find_cross_folder_duplicates,
    find_image_files,
    get_algorithm,
    iter_fingerprints,
)


def fp(value: int, algorithm: str = 'ahash-8') -> Fingerprint:
    return Fingerprint(algorithm, value.to_bytes(8, 'big'), 64)


def folder_pairs(results):
    return {frozenset((os.path.dirname(r.path_a), os.path.dirname(r.path_b))) for r in results}


class TestFolderPairGate:
    """Test FolderPairGate."""

    def test_unordered(self):
        gate = FolderPairGate()
        gate.add('/X', '/Y')
        assert ('/Y', '/X') in gate
        assert ('/X', '/Z') not in gate
        assert len(gate) == 1


class TestCrossFolderDeduplicator:
    """Test the incremental comparator."""

    def test_one_row_per_folder_pair(self):
        dedup = CrossFolderDeduplicator(threshold=96)
        assert dedup.add('/X/a.png', fp(0xFF)) == []
        assert dedup.add('/X/b.png', fp(0xFF)) == []
        results = dedup.add('/Y/c.png', fp(0xFF))
        assert len(results) == 1
        assert (results[0].path_a, results[0].path_b) == ('/X/a.png', '/Y/c.png')
        assert results[0].similarity == 100.0
        assert dedup.skipped_gated == 1

    def test_gate_blocks_later_files(self):
        dedup = CrossFolderDeduplicator(threshold=96)
        dedup.add('/X/a.png', fp(1))
        assert len(dedup.add('/Y/a.png', fp(1))) == 1
        assert dedup.add('/Y/b.png', fp(1)) == []
        assert dedup.add('/X/c.png', fp(1)) == []

    def test_same_folder_never_compared(self):
        dedup = CrossFolderDeduplicator(threshold=0)
        dedup.add('/X/a.png', fp(1))
        assert dedup.add('/X/b.png', fp(1)) == []
        assert dedup.comparisons == 0

    def test_threshold_boundary(self):
        # Two differing bits: 62/64 = 96.875%
        dedup = CrossFolderDeduplicator(threshold=96.875)
        dedup.add('/X/a.png', fp(0b11))
        results = dedup.add('/Y/a.png', fp(0))
        assert len(results) == 1
        assert results[0].distance == 2

        strict = CrossFolderDeduplicator(threshold=97)
        strict.add('/X/a.png', fp(0b11))
        assert strict.add('/Y/a.png', fp(0)) == []

    def test_mismatched_fingerprints_skipped(self, caplog):
        dedup = CrossFolderDeduplicator(threshold=0)
        dedup.add('/X/a.png', fp(1, 'phash-8'))
        with caplog.at_level(logging.WARNING):
            assert dedup.add('/Y/a.png', fp(1, 'ahash-8')) == []
        assert dedup.failures == 1
        assert "Error calculating hash distance" in caplog.text

    def test_new_file_matches_several_folders(self):
        dedup = CrossFolderDeduplicator(threshold=96)
        dedup.add('/X/a.png', fp(7))
        dedup.add('/Y/a.png', fp(2 ** 63))
        dedup.add('/Z/a.png', fp(7))
        results = dedup.add('/W/a.png', fp(7))
        assert folder_pairs(results) == {frozenset(('/X', '/W')), frozenset(('/Z', '/W'))}


class TestFindCrossFolderDuplicates:
    """Test find_cross_folder_duplicates over real images."""

    def test_no_hash_entries_skipped(self):
        stream = [('/X/a.png', fp(1)), ('/Y/broken.jpg', None), ('/Y/a.png', fp(1))]
        results = list(find_cross_folder_duplicates(stream, threshold=96))
        assert [r.path_b for r in results] == ['/Y/a.png']

    def test_end_to_end(self, sample_corpus):
        paths = find_image_files(sample_corpus['root'])
        results = iter_fingerprints(paths, HashCache(), get_algorithm('ahash'), workers=1)
        stream = ((r.path, r.fingerprint) for r in results)
        matches = list(find_cross_folder_duplicates(stream, threshold=96))

        x_dir = os.path.dirname(sample_corpus['x_a'])
        y_dir = os.path.dirname(sample_corpus['y_a'])
        assert folder_pairs(matches) == {frozenset((x_dir, y_dir))}
        assert len(matches) == 1
        assert (matches[0].path_a, matches[0].path_b) == (sample_corpus['x_a'], sample_corpus['y_a'])

    def test_order_independent_folder_pairs(self, sample_corpus):
        paths = find_image_files(sample_corpus['root'])
        cache = HashCache()
        pairs = [(r.path, r.fingerprint) for r in iter_fingerprints(paths, cache, get_algorithm('ahash'), workers=1)]

        expected = folder_pairs(find_cross_folder_duplicates(pairs, threshold=96))
        for permutation in itertools.islice(itertools.permutations(pairs), 0, 720, 37):
            assert folder_pairs(find_cross_folder_duplicates(permutation, threshold=96)) == expected
