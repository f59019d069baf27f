"""
Divide step of the sort: split a line sequence into two contiguous halves.
"""

from typing import List, Sequence, Tuple


def split_point(count: int) -> int:
    """Size of the first half for a sequence of ``count`` lines (ceil(count / 2))."""
    return (count + 1) // 2


def split_halves(lines: Sequence[bytes]) -> Tuple[List[bytes], List[bytes]]:
    """
    Split lines into two contiguous halves, preserving order within each.

    The first half holds ceil(N/2) lines and the second floor(N/2). No
    comparison happens here.

    Args:
        lines: Sequence of at least two lines

    Returns:
        (first_half, second_half)

    Raises:
        ValueError: If fewer than two lines are given
    """
    if len(lines) < 2:
        raise ValueError(f"Need at least 2 lines to split, got {len(lines)}")

    middle = split_point(len(lines))
    return list(lines[:middle]), list(lines[middle:])
