"""
Line ingestion and emission.

Lines are handled as raw bytes. The terminator is stripped on the way in and
re-appended on the way out, so comparisons never see it and every emitted line
is terminated exactly once.
"""

from typing import BinaryIO, List, Optional

from .errors import ChannelError

TERMINATOR = b"\n"


def strip_terminator(raw: bytes) -> bytes:
    """Remove a single trailing newline, if present."""
    if raw.endswith(TERMINATOR):
        return raw[:-1]
    return raw


def read_lines(stream: BinaryIO) -> List[bytes]:
    """
    Read a whole binary stream into a list of lines.

    Args:
        stream: Binary stream to read until end-of-stream

    Returns:
        List of lines with terminators stripped, in input order

    Raises:
        ChannelError: If the stream cannot be read
    """
    try:
        return [strip_terminator(raw) for raw in stream]
    except OSError as e:
        raise ChannelError(f"Could not read input: {e}") from e


def read_line(stream: BinaryIO) -> Optional[bytes]:
    """
    Read the next line from a binary stream.

    Returns:
        The line without terminator, or None at end-of-stream. An empty line
        comes back as b"".
    """
    try:
        raw = stream.readline()
    except OSError as e:
        raise ChannelError(f"Could not read line: {e}") from e
    if not raw:
        return None
    return strip_terminator(raw)


def emit_line(out: BinaryIO, line: bytes) -> None:
    """Write one line to a binary stream, terminated by a single newline."""
    try:
        out.write(strip_terminator(line) + TERMINATOR)
    except OSError as e:
        raise ChannelError(f"Could not write line: {e}") from e
