"""
Subset enumeration used to build every possible doublette/triplette team.
"""
import itertools
from typing import List, Sequence, TypeVar

T = TypeVar('T')


def combinations(items: Sequence[T], k: int) -> List[List[T]]:
    """
    Return every size-k subset of items.

    Subsets keep the input relative order of their members and come out in
    lexicographic order of indices. k == 0 yields a single empty subset and
    k > len(items) yields none.

    Raises:
        ValueError: If k is negative
    """
    if k < 0:
        raise ValueError(f"Subset size must be non-negative, got {k}")
    return [list(subset) for subset in itertools.combinations(items, k)]
