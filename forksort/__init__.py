"""
forksort

Parallel merge sort for text lines, built from a tree of worker processes
connected through pipes. Each worker is another instance of this program.

Modules:
    lines: Reading and writing lines as bytes
    splitter: Split a line sequence into two halves
    merge: Two-way merge of sorted line streams with one pending line
    orchestrator: Start, feed and reap workers, and sort a node of the tree
    config: Settings read from the environment
    cli: Command-line entry point
"""

__version__ = "1.0.0"

from .config import Settings, load_settings
from .errors import (
    ChannelError,
    ForkSortError,
    ProtocolError,
    SpawnError,
    UsageError,
    WorkerFailedError,
)
from .lines import emit_line, read_lines
from .merge import merge_streams
from .orchestrator import Spawner, WorkerTask, await_both, sort_lines, spawn_and_feed
from .splitter import split_halves

__all__ = [
    "sort_lines",
    "merge_streams",
    "split_halves",
    "read_lines",
    "emit_line",
    "spawn_and_feed",
    "await_both",
    "Spawner",
    "WorkerTask",
    "Settings",
    "load_settings",
    "ForkSortError",
    "ChannelError",
    "SpawnError",
    "ProtocolError",
    "UsageError",
    "WorkerFailedError",
    "__version__",
]
