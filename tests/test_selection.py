"""Tests for random question selection."""

import random
from collections import Counter
from itertools import permutations

from cbt_assembler.selection import select, shuffle


class TestShuffle:
    """Tests for the Fisher-Yates shuffle."""

    def test_is_permutation(self):
        items = list(range(20))

        result = shuffle(items, random.Random(1))

        assert sorted(result) == items

    def test_does_not_modify_input(self):
        items = [1, 2, 3, 4]

        shuffle(items, random.Random(1))

        assert items == [1, 2, 3, 4]

    def test_empty_and_single(self):
        assert shuffle([]) == []
        assert shuffle(["only"]) == ["only"]

    def test_roughly_uniform(self):
        """Every ordering of three items shows up at a similar rate."""
        rng = random.Random(12345)
        counts = Counter(tuple(shuffle("abc", rng)) for _ in range(6000))

        assert set(counts) == set(permutations("abc"))
        assert all(800 < n < 1200 for n in counts.values())


class TestSelect:
    """Tests for select."""

    def test_truncates_to_count(self):
        result = select(list(range(20)), 10, random.Random(2))

        assert len(result) == 10
        assert len(set(result)) == 10

    def test_count_larger_than_pool(self):
        result = select([1, 2, 3], 5, random.Random(2))

        assert sorted(result) == [1, 2, 3]

    def test_non_positive_count(self):
        assert select([1, 2, 3], 0) == []
        assert select([1, 2, 3], -1) == []

    def test_subset_varies_with_seed(self):
        pool = list(range(20))

        picks = {tuple(sorted(select(pool, 10, random.Random(seed)))) for seed in range(5)}

        assert len(picks) > 1
