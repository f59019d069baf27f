#!/usr/bin/env python3
"""
forksort - Sort lines with a tree of forked worker processes

Reads newline-terminated lines from stdin and writes them to stdout in
lexicographic byte order. The input is split in half, each half is sorted by a
new instance of this same program connected through pipes, and the two sorted
halves are merged as they stream back.

Usage Examples:
    # Sort a file
    forksort < words.txt > sorted.txt

    # Pipe from other processes
    cut -d' ' -f1 access.log | forksort | uniq -c

    # Show how the work is split across workers
    FORKSORT_VERBOSE=1 forksort < words.txt

Arguments:
    None. Any argument is a usage error.

Environment:
    FORKSORT_VERBOSE       1/true/yes to log [SPLIT]/[SPAWN]/[LEAF]/[MERGE]/[REAP]
                           progress of every worker to stderr
    FORKSORT_BUFFER_SIZE   Pipe I/O buffer size in bytes (default: 65536)

Exit status:
    0    success
    1    any fatal error here or in a worker (diagnostic on stderr)
    2    usage error
    130  interrupted
"""

import argparse
import os
import sys

from .config import load_settings
from .errors import ChannelError, ForkSortError, UsageError
from .lines import read_lines
from .log import log_error, log_progress, log_warning
from .orchestrator import Spawner, sort_lines


def _discard_stdout():
    """
    Point stdout at the null device after an output failure.

    The interpreter flushes sys.stdout again at exit; with the reader gone
    (e.g. `forksort | head`) that flush would fail a second time.
    """
    try:
        fd = sys.stdout.fileno()
    except (AttributeError, OSError, ValueError):
        return
    devnull = os.open(os.devnull, os.O_WRONLY)
    os.dup2(devnull, fd)
    os.close(devnull)


def main(argv=None):
    """Main entry point for command-line usage."""
    parser = argparse.ArgumentParser(
        prog="forksort",
        usage="%(prog)s < input > output",
        description="Sort stdin lines with a parallel merge sort built from forked workers.",
        add_help=False,
    )
    parser.parse_args(argv)

    try:
        settings = load_settings()
    except UsageError as e:
        log_error(str(e))
        return 2

    stdin = sys.stdin.buffer
    stdout = sys.stdout.buffer

    try:
        lines = read_lines(stdin)
        log_progress(f"[READ] {len(lines)} lines", settings.verbose)

        spawner = Spawner.for_current_program(settings)
        sort_lines(lines, stdout, spawner, settings)
        stdout.flush()

    except KeyboardInterrupt:
        log_warning("Interrupted by user")
        return 130
    except ChannelError as e:
        log_error(str(e))
        _discard_stdout()
        return 1
    except ForkSortError as e:
        log_error(str(e))
        return 1
    except OSError as e:
        log_error(f"I/O error: {e}")
        _discard_stdout()
        return 1

    return 0


if __name__ == "__main__":
    sys.exit(main())
