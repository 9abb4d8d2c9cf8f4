"""
Unit tests for single-query first-match search.
"""

import logging
import os
import shutil

import pytest
from imagematch.models import Fingerprint
from imagematch.scanner import find_first_match, fingerprint_file, get_algorithm


def fp(value: int, algorithm: str = 'phash-8') -> Fingerprint:
    return Fingerprint(algorithm, value.to_bytes(8, 'big'), 64)


QUERY = fp(0)


class TestFindFirstMatch:
    """Test find_first_match function."""

    def test_exact_match(self):
        match = find_first_match(QUERY, '/q.png', [('/a.png', fp(0))], threshold=100)
        assert match.match_path == '/a.png'
        assert match.distance == 0
        assert match.similarity == 100.0
        assert match.position == 1

    def test_threshold_100_requires_identical(self):
        assert find_first_match(QUERY, '/q.png', [('/a.png', fp(1))], threshold=100) is None

    def test_threshold_0_matches_first_candidate(self):
        candidates = [('/none.png', None), ('/far.png', fp(2 ** 64 - 1)), ('/near.png', fp(0))]
        match = find_first_match(QUERY, '/q.png', candidates, threshold=0)
        assert match.match_path == '/far.png'
        assert match.similarity == 0.0

    def test_first_match_not_best(self):
        # 90% allows up to 6 differing bits
        candidates = [('/far.png', fp(0b11111)), ('/exact.png', fp(0))]
        match = find_first_match(QUERY, '/q.png', candidates, threshold=90)
        assert match.match_path == '/far.png'
        assert match.distance == 5
        assert match.max_distance == 6

    def test_beyond_max_distance_rejected(self):
        candidates = [('/a.png', fp(0b1111111)), ('/b.png', fp(0b111111))]
        match = find_first_match(QUERY, '/q.png', candidates, threshold=90)
        assert match.match_path == '/b.png'
        assert match.position == 2

    def test_no_hash_candidates_skipped(self):
        candidates = [('/broken.jpg', None), ('/a.png', fp(0))]
        assert find_first_match(QUERY, '/q.png', candidates, threshold=90).match_path == '/a.png'

    def test_mismatched_candidate_skipped(self, caplog):
        candidates = [('/other.png', fp(0, 'ahash-8')), ('/a.png', fp(0))]
        with caplog.at_level(logging.WARNING):
            match = find_first_match(QUERY, '/q.png', candidates, threshold=90)
        assert match.match_path == '/a.png'
        assert "Could not compare hashes" in caplog.text

    def test_empty_corpus(self):
        assert find_first_match(QUERY, '/q.png', [], threshold=90) is None

    @pytest.mark.parametrize("threshold", [-5, 101])
    def test_threshold_out_of_range(self, threshold):
        with pytest.raises(ValueError):
            find_first_match(QUERY, '/q.png', [('/a.png', fp(0))], threshold=threshold)


class TestSelfExclusion:
    """The query file itself is never reported as its own match."""

    def test_same_absolute_path(self):
        assert find_first_match(QUERY, '/photos/q.png', [('/photos/q.png', fp(0))], threshold=100) is None

    def test_relative_query_path(self, image_factory, temp_dir, monkeypatch):
        algorithm = get_algorithm('phash')
        query_path = image_factory('corpus/query.png', seed=9)
        copy_path = str(temp_dir / 'corpus' / 'zz_copy.png')
        shutil.copy(query_path, copy_path)
        candidates = [(p, fingerprint_file(p, algorithm)) for p in (query_path, copy_path)]

        monkeypatch.chdir(temp_dir / 'corpus')
        query = fingerprint_file('query.png', algorithm)
        match = find_first_match(query, 'query.png', candidates, threshold=100)
        assert match.match_path == copy_path
        assert match.position == 2

    def test_symlinked_query(self, image_factory, temp_dir):
        target = image_factory('corpus/query.png', seed=9)
        link = temp_dir / 'link.png'
        try:
            os.symlink(target, link)
        except (OSError, NotImplementedError):
            pytest.skip("symlinks not supported")
        query = fingerprint_file(target, get_algorithm('phash'))
        assert find_first_match(query, str(link), [(target, query)], threshold=100) is None
