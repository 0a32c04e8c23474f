"""Tests for card drawing and deterministic RNG."""

import random
from collections import Counter

import pytest

from lostitem.errors import EmptyMappingError
from lostitem.utils.rng import draw_indices, draw_three, seeded_random

from .conftest import make_entry


class TestSeededRandom:
    def test_same_seed_and_salt_repeat(self):
        rng1 = seeded_random("test_seed", "test_salt")
        rng2 = seeded_random("test_seed", "test_salt")
        assert [rng1.random() for _ in range(10)] == [rng2.random() for _ in range(10)]

    def test_different_salts_differ(self):
        rng1 = seeded_random("seed", "salt1")
        rng2 = seeded_random("seed", "salt2")
        assert [rng1.random() for _ in range(10)] != [rng2.random() for _ in range(10)]

    def test_seeded_draw_is_reproducible(self, entries):
        assert draw_three(entries, seeded_random("s", "r1")) == draw_three(entries, seeded_random("s", "r1"))


class TestDrawThree:
    def test_three_distinct_from_large_set(self, entries):
        for _ in range(200):
            drawn = draw_three(entries)
            assert len(drawn) == 3
            assert len({e.code for e in drawn}) == 3

    @pytest.mark.parametrize("n", [1, 2])
    def test_small_sets_return_all_entries(self, n):
        mapping = tuple(make_entry(f"S{i}") for i in range(n))
        drawn = draw_three(mapping)
        assert len(drawn) == n
        assert set(drawn) == set(mapping)

    def test_empty_set_fails(self):
        with pytest.raises(EmptyMappingError):
            draw_three(())

    def test_uniform_frequency(self, entries):
        rng = random.Random(1234)
        draws = 6000
        counts = Counter()
        for _ in range(draws):
            counts.update(e.code for e in draw_three(entries, rng))

        expected = 3 / len(entries)
        for entry in entries:
            assert abs(counts[entry.code] / draws - expected) < 0.05

    def test_draw_order_is_kept(self):
        class Scripted:
            def __init__(self, values):
                self.values = list(values)

            def randrange(self, n):
                return self.values.pop(0)

        assert draw_indices(5, 3, Scripted([4, 4, 0, 2])) == [4, 0, 2]

    def test_cannot_draw_more_than_available(self):
        with pytest.raises(ValueError):
            draw_indices(2, 3)
