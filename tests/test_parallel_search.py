# tests/test_parallel_search.py
"""
Tests for shard execution, result reduction and the parallel coordinator.
"""

import io
from math import comb

import pytest

import PowerPairs_Solver as pps
from PowerPairs_Solver import NumberSet, PowerTriplet, ShardResult, ShardTask


@pytest.fixture(scope="module")
def triplets():
    return pps.generate_power_triplets(7)


def shard_result(index, numbers, pairs):
    return ShardResult(index=index, prefix=(index,), best_numbers=tuple(numbers),
                       best_pair_count=pairs, best_improvement_count=0,
                       combination_count=1, improvement_count=0, elapsed_sec=0.0)


class TestRunShard:

    def test_counts_every_combination_of_its_prefix(self, triplets):
        params = pps.SearchParams(triplets=tuple(triplets), set_size=3)
        res = pps.run_shard(ShardTask(index=0, prefix=(1,)), params)
        n = len(triplets)
        assert res.combination_count == comb(n - 2, 2)
        assert res.prefix == (1,)
        assert res.best_pair_count >= 3
        assert len(res.best_numbers) == 3

    def test_zero_set_size(self, triplets):
        params = pps.SearchParams(triplets=tuple(triplets), set_size=0)
        res = pps.run_shard(ShardTask(index=0), params)
        assert res.combination_count == 0
        assert res.best_numbers == ()


class TestReduce:

    def test_keeps_maximum(self):
        results = [shard_result(0, [1, 7, 9], 3), shard_result(1, [-1, 1, 3, 5], 4)]
        best, pairs = pps.reduce_shard_results(results, 4)
        assert pairs == 4
        assert best.numbers == {-1, 1, 3, 5}

    def test_ties_keep_lowest_shard_index(self):
        results = [shard_result(1, [-1, 3, 5], 3), shard_result(0, [1, 7, 9], 3)]
        best, pairs = pps.reduce_shard_results(results, 3)
        assert pairs == 3
        assert best.numbers == {1, 7, 9}

    def test_result_is_simplified(self):
        best, pairs = pps.reduce_shard_results([shard_result(0, [-2, 6, 10], 3)], 3)
        assert best.numbers == {-1, 3, 5}
        assert best.count_pairs() == pairs == 3

    def test_no_results(self):
        best, pairs = pps.reduce_shard_results([], 3)
        assert pairs == 0
        assert len(best) == 0


class TestSearchParallel:

    def test_empty_triplets(self):
        outcome = pps.search_parallel([], set_size=4, levels=1, workers=1)
        assert outcome.shards == 0
        assert outcome.best_pair_count == 0
        assert len(outcome.best) == 0

    def test_zero_set_size(self, triplets):
        outcome = pps.search_parallel(triplets, set_size=0, levels=0, workers=1)
        assert outcome.shards == 0
        assert len(outcome.best) == 0

    def test_single_shard_covers_everything(self, triplets):
        outcome = pps.search_parallel(triplets, set_size=4, levels=0, workers=1)
        assert outcome.shards == 1
        assert outcome.combination_count == comb(len(triplets), 4)
        assert outcome.best.count_pairs() == outcome.best_pair_count
        assert outcome.best_pair_count >= 4

    def test_sharding_does_not_change_the_result(self, triplets):
        whole = pps.search_parallel(triplets, set_size=4, levels=0, workers=1)
        sharded = pps.search_parallel(triplets, set_size=4, levels=2, workers=1)
        assert sharded.shards == len(pps.generate_shard_prefixes(len(triplets), 4, 2))
        assert sharded.combination_count == whole.combination_count
        assert sharded.best_pair_count == whole.best_pair_count

    def test_worker_count_does_not_change_the_result(self, triplets):
        serial = pps.search_parallel(triplets, set_size=4, levels=1, workers=1)
        pooled = pps.search_parallel(triplets, set_size=4, levels=1, workers=2)
        assert pooled.best_pair_count == serial.best_pair_count
        assert pooled.best.numbers == serial.best.numbers
        assert pooled.combination_count == serial.combination_count
        assert [r.index for r in pooled.shard_results] == list(range(pooled.shards))

    def test_batch_strategy(self, triplets):
        outcome = pps.search_parallel(triplets, set_size=4, levels=1, workers=1, strategy="batch")
        assert outcome.best.count_pairs() == outcome.best_pair_count
        assert outcome.best_pair_count >= 4

    def test_writes_log_lines(self, triplets):
        logf = io.StringIO()
        outcome = pps.search_parallel(triplets, set_size=3, levels=1, workers=1, logf=logf)
        text = logf.getvalue()
        assert f"SHARDS set_size=3 triplets={len(triplets)} levels=1 shards={outcome.shards}" in text
        assert f"progress shards_done={outcome.shards}/{outcome.shards}" in text

    def test_debug_logs_each_shard(self, triplets, monkeypatch):
        monkeypatch.setattr(pps, "DEBUG", True)
        logf = io.StringIO()
        outcome = pps.search_parallel(triplets, set_size=3, levels=1, workers=1, logf=logf)
        assert logf.getvalue().count(" shard index=") == outcome.shards

    def test_progress_reporter_finishes_at_100(self, triplets):
        stream = io.StringIO()
        pps.search_parallel(triplets, set_size=3, levels=1, workers=1,
                            progress_stream=stream, report_interval=0.01)
        text = stream.getvalue()
        assert "100%" in text
        assert text.endswith("\n")


class TestProgress:

    def test_snapshot(self):
        progress = pps.SearchProgress(4)
        progress.record(shard_result(0, [1, 3], 1))
        progress.record(shard_result(1, [-1, 3, 5], 3))
        percent, best, improvements, elapsed = progress.snapshot()
        assert percent == 50
        assert best == 3
        assert improvements == 0
        assert progress.combination_count == 2
        assert elapsed >= 0.0

    def test_reporter_stop_prints_final_line(self):
        progress = pps.SearchProgress(1)
        progress.record(shard_result(0, [1, 3], 1))
        stream = io.StringIO()
        reporter = pps.ProgressReporter(progress, stream, interval=0.01)
        reporter.start()
        reporter.stop()
        assert not reporter.is_alive()
        assert "100%" in stream.getvalue()
        assert "1 pairs 0 improvements" in stream.getvalue()


class TestEndToEnd:

    def test_seeded_triplet_before_climbing(self):
        for t in pps.generate_power_triplets(5):
            ns = NumberSet(3)
            ns.add_triplet(t)
            assert ns.count_pairs() == 3

    def test_found_set_is_made_of_distinct_numbers(self, triplets):
        outcome = pps.search_parallel(triplets, set_size=5, levels=1, workers=1)
        assert len(outcome.best) == 5
        assert isinstance(outcome.best.numbers, set)
        assert outcome.best.count_pairs() == len(outcome.best.generate_pairs())
