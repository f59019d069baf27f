"""
Logging helpers writing to stderr.

All workers of a tree share the same stderr, so every message carries the pid
of the process that wrote it.
"""

import os
import sys

# ANSI color codes for terminal output
YELLOW = "\033[1;33m"
RED = "\033[0;31m"
NC = "\033[0m"  # No Color


def _prefix() -> str:
    return f"forksort[{os.getpid()}]"


def log_warning(message: str) -> None:
    """Print warning message in yellow."""
    print(f"{YELLOW}[WARNING]{NC} {_prefix()} {message}", file=sys.stderr)


def log_error(message: str) -> None:
    """Print error message in red."""
    print(f"{RED}[ERROR]{NC} {_prefix()} {message}", file=sys.stderr)


def log_progress(message: str, verbose: bool = False) -> None:
    """
    Log progress message to stderr if verbose is enabled.

    Args:
        message: Message to log, usually starting with a tag such as [MERGE]
        verbose: Whether to output the message
    """
    if verbose:
        print(f"{message} (pid {os.getpid()})", file=sys.stderr, flush=True)
