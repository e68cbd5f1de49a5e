# tests/test_powers_and_triplets.py
"""
Tests for the power-of-two predicate, the power sets and power triplets,
including the growing-radius triplet generator.
"""

import itertools

import pytest

import PowerPairs_Solver as pps
from PowerPairs_Solver import PowerPair, PowerTriplet


class TestIsPowerOfTwo:

    @pytest.mark.parametrize("e", range(0, 62))
    def test_every_power_is_accepted(self, e):
        assert pps.is_power_of_two(1 << e)

    @pytest.mark.parametrize("n", [0, 3, 5, 6, 12, 96, 1023, -1, -2, -4, -1024])
    def test_non_powers_and_negatives_are_rejected(self, n):
        assert not pps.is_power_of_two(n)


class TestPowerSet:

    def test_advanced_bound(self):
        assert pps.POWERS_OF_TWO.bound == 10
        assert pps.POWERS_OF_TWO.values == (1, 2, 4, 8, 16, 32, 64, 128, 256, 512)
        assert 512 in pps.POWERS_OF_TWO
        assert 1024 not in pps.POWERS_OF_TWO
        assert len(pps.POWERS_OF_TWO) == 10

    def test_simple_bound(self):
        assert len(pps.SIMPLE_POWERS_OF_TWO) == 20
        assert max(pps.SIMPLE_POWERS_OF_TWO) == 1 << 19

    def test_iterates_in_increasing_order(self):
        ps = pps.generate_powers_of_two(5)
        assert list(ps) == [1, 2, 4, 8, 16]

    def test_is_immutable(self):
        with pytest.raises(Exception):
            pps.POWERS_OF_TWO.bound = 11


class TestPowerPair:

    def test_canonical_order_and_sum(self):
        p = PowerPair.of(5, -1)
        assert (p.a, p.b) == (-1, 5)
        assert p.sum == 4
        assert p == PowerPair.of(-1, 5)
        assert str(p) == "-1+5=4"

    def test_ordering_is_lexicographic(self):
        assert sorted([PowerPair.of(3, 5), PowerPair.of(-1, 5), PowerPair.of(-1, 3)]) == [
            PowerPair(-1, 3), PowerPair(-1, 5), PowerPair(3, 5)]


class TestPowerTriplet:

    def test_construction_is_order_insensitive(self):
        expected = PowerTriplet(-1, 3, 5)
        for perm in itertools.permutations((5, -1, 3)):
            assert PowerTriplet.of(*perm) == expected

    def test_valid_triplet(self):
        assert PowerTriplet.of(-1, 3, 5).is_valid()
        assert not PowerTriplet.of(1, 2, 3).is_valid()

    def test_count_overlaps_with_itself_is_zero(self):
        t = PowerTriplet.of(-1, 3, 5)
        assert t.count_overlaps(t) == 0
        assert not t.overlaps(t)

    def test_count_overlaps_between_distinct_triplets(self):
        t1 = PowerTriplet.of(-1, 3, 5)
        assert t1.count_overlaps(PowerTriplet.of(-1, 3, 29)) == 2
        assert t1.count_overlaps(PowerTriplet.of(3, 13, 19)) == 1
        assert t1.count_overlaps(PowerTriplet.of(1, 7, 9)) == 0

    def test_overlaps(self):
        t1 = PowerTriplet.of(-1, 3, 5)
        assert t1.overlaps(PowerTriplet.of(3, 13, 19))
        assert not t1.overlaps(PowerTriplet.of(1, 7, 9))

    def test_set_deduplicates(self):
        s = {PowerTriplet.of(3, 5, -1), PowerTriplet.of(-1, 5, 3), PowerTriplet.of(1, 7, 9)}
        assert len(s) == 2


class TestGeneratePowerTriplets:

    def test_small_request_gives_valid_distinct_triplets(self):
        triplets = pps.generate_power_triplets(5)
        assert len(triplets) >= 5
        assert len(set(triplets)) == len(triplets)
        for t in triplets:
            assert t.a <= t.b <= t.c
            assert pps.is_power_of_two(t.a + t.b)
            assert pps.is_power_of_two(t.a + t.c)
            assert pps.is_power_of_two(t.b + t.c)

    def test_zero_request_is_empty(self):
        assert pps.generate_power_triplets(0) == []

    def test_output_is_sorted_list_rotated_by_three_fifths(self):
        triplets = pps.generate_power_triplets(12)
        ordered = sorted(triplets)
        shift = len(ordered) * 3 // 5
        assert triplets == ordered[shift:] + ordered[:shift]

    def test_is_deterministic(self):
        assert pps.generate_power_triplets(10) == pps.generate_power_triplets(10)

    def test_logs_triplet_summary(self):
        import io
        logf = io.StringIO()
        triplets = pps.generate_power_triplets(5, logf=logf)
        assert f"TRIPLETS requested=5 found={len(triplets)}" in logf.getvalue()
