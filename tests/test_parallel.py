"""
Unit tests for cached, parallel fingerprint dispatch.
"""

import os
import threading

import pytest
from imagematch.database import HashCache
from imagematch.models import DispatchStats, FileIdentity
from imagematch.scanner import (
    collect_fingerprints,
    compute_missing,
    fingerprint_file,
    find_image_files,
    get_algorithm,
    iter_fingerprints,
    resolve_workers,
)


class CountingHasher:
    """Thread-safe wrapper around fingerprint_file that records its calls."""

    def __init__(self, fail_on=()):
        self.calls = []
        self.fail_on = set(fail_on)
        self._lock = threading.Lock()

    def __call__(self, path, algorithm):
        with self._lock:
            self.calls.append(path)
        if path in self.fail_on:
            raise RuntimeError("decoder crashed")
        return fingerprint_file(path, algorithm)


@pytest.fixture
def corpus_paths(sample_corpus):
    return find_image_files(sample_corpus['root'])


class TestResolveWorkers:
    """Test worker count resolution."""

    def test_explicit(self):
        assert resolve_workers(3) == 3

    @pytest.mark.parametrize("workers", [None, 0, -2])
    def test_defaults_to_cpu_count(self, workers):
        assert resolve_workers(workers) == (os.cpu_count() or 1)


class TestComputeMissing:
    """Test compute_missing batch dispatch."""

    def test_parallel_matches_sequential(self, corpus_paths):
        algorithm = get_algorithm('phash')
        sequential, _ = compute_missing(corpus_paths, HashCache(), algorithm, workers=1)
        parallel, _ = compute_missing(corpus_paths, HashCache(), algorithm, workers=8)
        assert sequential == parallel
        assert len(sequential) == 5

    def test_no_hash_excluded(self, corpus_paths, sample_corpus):
        cache, stats = compute_missing(corpus_paths, HashCache(), get_algorithm('ahash'), workers=2)
        assert stats.total_files == 6
        assert stats.computed == 5
        assert stats.no_hash == 1
        broken = FileIdentity.from_path(sample_corpus['z_broken'])
        assert cache.get(broken, 'ahash-8') is None

    def test_cache_hits_not_recomputed(self, corpus_paths):
        algorithm = get_algorithm('phash')
        hasher = CountingHasher()
        cache, first = compute_missing(corpus_paths, HashCache(), algorithm, workers=4, hasher=hasher)
        assert len(hasher.calls) == 6
        assert first.cache_hits == 0

        cache, second = compute_missing(corpus_paths, cache, algorithm, workers=4, hasher=hasher)
        # Only the undecodable file is tried again; it never enters the cache
        assert len(hasher.calls) == 7
        assert second.cache_hits == 5
        assert second.computed == 0

    def test_other_algorithm_not_a_hit(self, corpus_paths):
        cache, _ = compute_missing(corpus_paths, HashCache(), get_algorithm('phash'), workers=1)
        cache, stats = compute_missing(corpus_paths, cache, get_algorithm('ahash'), workers=1)
        assert stats.cache_hits == 0
        assert len(cache) == 10

    def test_worker_exception_recorded(self, corpus_paths, sample_corpus):
        hasher = CountingHasher(fail_on={sample_corpus['x_a']})
        cache, stats = compute_missing(corpus_paths, HashCache(), get_algorithm('phash'), workers=3, hasher=hasher)
        assert stats.errors == 1
        assert stats.computed == 4
        assert len(cache) == 4

    def test_missing_file_recorded_as_error(self, temp_dir):
        cache, stats = compute_missing([str(temp_dir / "gone.png")], HashCache(), get_algorithm('phash'))
        assert stats.errors == 1
        assert len(cache) == 0

    def test_empty_input(self):
        cache, stats = compute_missing([], HashCache(), get_algorithm('phash'))
        assert len(cache) == 0
        assert stats.total_files == 0


class TestIterFingerprints:
    """Test streaming dispatch."""

    def test_sequential_preserves_order(self, corpus_paths):
        results = list(iter_fingerprints(corpus_paths, HashCache(), get_algorithm('ahash'), workers=1))
        assert [r.path for r in results] == corpus_paths

    def test_parallel_yields_every_path_once(self, corpus_paths):
        results = list(iter_fingerprints(iter(corpus_paths), HashCache(), get_algorithm('ahash'), workers=2))
        assert sorted(r.path for r in results) == sorted(corpus_paths)

    def test_merge_happens_after_completion(self, corpus_paths):
        cache = HashCache()
        stats = DispatchStats()
        for _ in iter_fingerprints(corpus_paths, cache, get_algorithm('ahash'), workers=4, stats=stats):
            assert len(cache) == 0
        assert len(cache) == 5
        assert stats.total_files == 6

    def test_closing_early_keeps_finished_work(self, corpus_paths):
        cache = HashCache()
        results = iter_fingerprints(corpus_paths, cache, get_algorithm('ahash'), workers=1)
        first = next(results)
        results.close()
        assert len(cache) == 1
        assert cache.get(first.identity, 'ahash-8') == first.fingerprint


class TestCollectFingerprints:
    """Test collect_fingerprints ordering."""

    @pytest.mark.parametrize("workers", [1, 4])
    def test_input_order(self, corpus_paths, sample_corpus, workers):
        pairs, stats = collect_fingerprints(corpus_paths, HashCache(), get_algorithm('phash'), workers=workers)
        assert [path for path, _ in pairs] == corpus_paths
        by_path = dict(pairs)
        assert by_path[sample_corpus['z_broken']] is None
        assert by_path[sample_corpus['x_a']] == by_path[sample_corpus['y_a']]
