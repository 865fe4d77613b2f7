"""
Merge Reducer
Sums partial counts per token. The same functions serve as the map side
combiner and as the final reducer.
"""

from collections import defaultdict
from typing import Dict, Iterable, List, Tuple

from wordfreq.errors import CountOverflowError

MAX_COUNT = 2 ** 63 - 1


def merge(token: str, partial_counts: Iterable[int]) -> Tuple[str, int]:
    """
    Sum all partial counts of a token

    Args:
        token: The token all counts belong to
        partial_counts: Counts from any number of partitions or earlier merges

    Returns:
        (token, total) tuple

    Raises:
        ValueError: If a count is not a non-negative integer
        CountOverflowError: If the total exceeds a signed 64-bit counter
    """
    total = 0
    for count in partial_counts:
        if isinstance(count, bool) or not isinstance(count, int) or count < 0:
            raise ValueError(f"Invalid count {count!r} for token {token!r}")
        total += count
        if total > MAX_COUNT:
            raise CountOverflowError(f"Count for token {token!r} exceeds {MAX_COUNT}")
    return token, total


def group_by_token(records: Iterable[Tuple[str, int]]) -> Dict[str, List[int]]:
    """Group (token, count) records by token, keeping first-seen order"""
    groups = defaultdict(list)
    for token, count in records:
        groups[token].append(count)
    return groups


def combine(records: Iterable[Tuple[str, int]]) -> List[Tuple[str, int]]:
    """Group records by token and merge each group into one record"""
    return [merge(token, counts) for token, counts in group_by_token(records).items()]
