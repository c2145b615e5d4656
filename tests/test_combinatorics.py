"""
Unit tests for subset enumeration.
"""
import pytest
import sys
import os
from math import comb

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from petanque.combinatorics import combinations


class TestCombinations:
    """Tests for combinations()."""

    def test_pairs_in_index_order(self):
        """Subsets come out lexicographically by index."""
        assert combinations(["A", "B", "C", "D"], 2) == [
            ["A", "B"], ["A", "C"], ["A", "D"],
            ["B", "C"], ["B", "D"],
            ["C", "D"],
        ]

    def test_members_keep_input_order(self):
        """Members keep the relative order of the input, not sorted order."""
        assert combinations(["z", "a", "m"], 2) == [["z", "a"], ["z", "m"], ["a", "m"]]

    def test_zero_size_gives_single_empty_subset(self):
        assert combinations(["A", "B"], 0) == [[]]
        assert combinations([], 0) == [[]]

    def test_size_larger_than_input_gives_nothing(self):
        assert combinations(["A", "B"], 3) == []

    def test_full_size_gives_input(self):
        assert combinations(["A", "B", "C"], 3) == [["A", "B", "C"]]

    def test_negative_size_raises(self):
        with pytest.raises(ValueError):
            combinations(["A", "B"], -1)

    def test_counts_match_binomial(self):
        """C(n, k) subsets, none repeated."""
        for n in range(0, 9):
            items = list(range(n))
            for k in range(0, 4):
                subsets = combinations(items, k)
                assert len(subsets) == comb(n, k)
                assert len({tuple(s) for s in subsets}) == len(subsets)

    def test_subsets_are_independent_lists(self):
        """Returned subsets are fresh lists; the input is untouched."""
        items = ["A", "B", "C"]
        subsets = combinations(items, 2)
        subsets[0].append("X")
        assert items == ["A", "B", "C"]
        assert combinations(items, 2)[0] == ["A", "B"]
