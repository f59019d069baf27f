"""
Two-Way Stream Merge - Merge two sorted line streams of known length

The merger reads two independently sorted binary streams line by line and
writes one sorted stream. It never buffers a stream: at most one line that has
been read but not yet written is held back (the pending line), together with a
tag saying which side it came from.

Algorithm:
    1. UNLOCKED: read one line from each side, write the smaller one and keep
       the other one pending.
    2. LEFT_PENDING / RIGHT_PENDING: read the next line from the side that has
       nothing pending, compare it with the pending line, write the smaller one
       and keep the larger one pending.
    3. Stop as soon as every line of one side has been written. The pending
       line then belongs to the other side: write it, then copy the rest of
       that side through without comparing.
    4. Both streams must end exactly at their promised count.

Example:

    left = AN, HE (count 2)        right = DO, HU, TH (count 3)

    AN < DO   write AN   pending DO (right)
    DO < HE   write DO   pending HE (left)
    HE < HU   write HE   pending HU (right)   left exhausted
              write HU                        pending line
              write TH                        drain right

    >> AN, DO, HE, HU, TH

Time Complexity: O(N) comparisons for N = left_count + right_count
Space Complexity: O(1) lines held in memory
"""

import enum
from typing import BinaryIO, Optional

from ..errors import ProtocolError
from ..lines import emit_line, read_line


class MergeState(enum.Enum):
    UNLOCKED = 0
    LEFT_PENDING = 1
    RIGHT_PENDING = 2


class Side(enum.Enum):
    LEFT = "left"
    RIGHT = "right"


class _Cursor:  # pylint: disable=too-few-public-methods
    """One input side: its stream, the promised line count and lines sent so far."""

    def __init__(self, side: Side, stream: BinaryIO, count: int):
        self.side = side
        self.stream = stream
        self.count = count
        self.sent = 0

    @property
    def exhausted(self) -> bool:
        return self.sent >= self.count

    def next_line(self) -> bytes:
        line = read_line(self.stream)
        if line is None:
            raise ProtocolError(
                f"{self.side.value} stream ended early: expected {self.count} lines, "
                f"{self.sent} written so far"
            )
        return line


def _merge_pair(left: _Cursor, right: _Cursor, out: BinaryIO) -> None:
    first = left.next_line()
    second = right.next_line()
    if first < second:
        emit_line(out, first)
        emit_line(out, second)
    else:
        emit_line(out, second)
        emit_line(out, first)
    left.sent += 1
    right.sent += 1


def _drain(cursor: _Cursor, out: BinaryIO) -> None:
    while not cursor.exhausted:
        emit_line(out, cursor.next_line())
        cursor.sent += 1


def _expect_end(cursor: _Cursor) -> None:
    if read_line(cursor.stream) is not None:
        raise ProtocolError(
            f"{cursor.side.value} stream holds more than the {cursor.count} lines promised"
        )


def merge_streams(
    left: BinaryIO,
    right: BinaryIO,
    left_count: int,
    right_count: int,
    out: BinaryIO,
) -> int:
    """
    Merge two sorted binary line streams into one sorted output stream.

    Args:
        left: Sorted stream holding exactly left_count lines
        right: Sorted stream holding exactly right_count lines
        left_count: Number of lines promised by the left stream
        right_count: Number of lines promised by the right stream
        out: Binary stream the merged lines are written to

    Returns:
        Number of lines written (left_count + right_count)

    Raises:
        ProtocolError: If a stream ends before delivering its promised count,
            or still has lines after it
        ChannelError: If reading or writing fails
    """
    if left_count < 0 or right_count < 0:
        raise ValueError("Line counts must not be negative")

    lhs = _Cursor(Side.LEFT, left, left_count)
    rhs = _Cursor(Side.RIGHT, right, right_count)

    state = MergeState.UNLOCKED
    pending: Optional[bytes] = None

    if left_count == 1 and right_count == 1:
        _merge_pair(lhs, rhs, out)

    while not lhs.exhausted and not rhs.exhausted:
        if state is MergeState.UNLOCKED:
            left_line = lhs.next_line()
            right_line = rhs.next_line()
        elif state is MergeState.LEFT_PENDING:
            left_line = pending
            right_line = rhs.next_line()
        else:
            left_line = lhs.next_line()
            right_line = pending

        if left_line < right_line:
            emit_line(out, left_line)
            lhs.sent += 1
            pending = right_line
            state = MergeState.RIGHT_PENDING
        else:
            emit_line(out, right_line)
            rhs.sent += 1
            pending = left_line
            state = MergeState.LEFT_PENDING

    if state is not MergeState.UNLOCKED:
        # The side that just ran out cannot own the pending line.
        remaining = rhs if state is MergeState.RIGHT_PENDING else lhs
        if remaining.exhausted:
            raise ProtocolError(f"Pending line belongs to exhausted {remaining.side.value} side")
        emit_line(out, pending)
        remaining.sent += 1

    _drain(lhs, out)
    _drain(rhs, out)
    _expect_end(lhs)
    _expect_end(rhs)

    return lhs.sent + rhs.sent
