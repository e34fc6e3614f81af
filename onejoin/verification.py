"""Edit distance verification with a diagonal-band algorithm."""

from __future__ import annotations

from typing import Sequence

MAX_K = 20000


def _common_prefix(x: Sequence, i: int, y: Sequence, j: int) -> int:
    length = 0
    while i < len(x) and j < len(y) and x[i] == y[j]:
        i += 1
        j += 1
        length += 1
    return length


def slide(x: Sequence, y: Sequence) -> int:
    """Index of the first position where x and y disagree."""
    return _common_prefix(x, 0, y, 0)


def _trunc_div(a: int, b: int) -> int:
    quotient = abs(a) // abs(b)
    return quotient if (a >= 0) == (b > 0) else -quotient


def edit_distance(x: Sequence, y: Sequence, k: int) -> int | None:
    """Edit distance of x and y if it is at most k, otherwise None.

    Raises ValueError when k is too large for the algorithm.
    """
    if k >= MAX_K:
        raise ValueError(f"threshold k must be below {MAX_K}, got {k}")
    if len(x) > len(y):
        x, y = y, x
    x_len, y_len = len(x), len(y)
    diff = y_len - x_len

    current: dict[int, int] = {0: -1}
    previous: dict[int, int] = {0: -1}

    for h in range(k + 1):
        lower = -min(1 + _trunc_div(k - diff, 2), h)
        upper = min(1 + k // 2 + diff, h)
        for d in (lower - 1, lower, upper, upper + 1):
            previous[d] = -1

        for d in range(lower, upper + 1):
            r = max(previous.get(d - 1, -1), previous.get(d, -1) + 1, previous.get(d + 1, -1) + 1)
            if r >= x_len or r + d >= y_len:
                current[d] = r
            else:
                current[d] = r + _common_prefix(x, r, y, r + d)
            if d == diff and current[d] >= x_len:
                return h
        current, previous = previous, current
    return None