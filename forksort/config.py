"""
Runtime settings for forksort.

The program accepts no command-line arguments (workers are started with none),
so settings come from the environment, which every worker inherits:

    FORKSORT_VERBOSE       1/true/yes enables progress output on stderr
    FORKSORT_BUFFER_SIZE   buffer size in bytes for pipe I/O (default: 64KB, minimum: 512)
"""

import os
from typing import Mapping, NamedTuple, Optional

from .errors import UsageError

DEFAULT_BUFFER_SIZE = 64 * 1024
MIN_BUFFER_SIZE = 512

VERBOSE_ENV = "FORKSORT_VERBOSE"
BUFFER_SIZE_ENV = "FORKSORT_BUFFER_SIZE"


class Settings(NamedTuple):
    verbose: bool = False
    buffer_size: int = DEFAULT_BUFFER_SIZE


def _parse_flag(value: str) -> bool:
    return value.strip().lower() in ("1", "true", "yes", "on")


def _parse_buffer_size(value: str) -> int:
    try:
        size = int(value)
    except ValueError as e:
        raise UsageError(f"{BUFFER_SIZE_ENV} must be an integer, got {value!r}") from e
    if size < MIN_BUFFER_SIZE:
        raise UsageError(f"{BUFFER_SIZE_ENV} must be at least {MIN_BUFFER_SIZE}, got {size}")
    return size


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build settings from environment variables.

    Args:
        environ: Mapping to read from (default: os.environ)

    Returns:
        Settings with defaults for every unset variable

    Raises:
        UsageError: If a variable holds an invalid value
    """
    if environ is None:
        environ = os.environ

    verbose = _parse_flag(environ.get(VERBOSE_ENV, ""))
    buffer_size = DEFAULT_BUFFER_SIZE
    if environ.get(BUFFER_SIZE_ENV):
        buffer_size = _parse_buffer_size(environ[BUFFER_SIZE_ENV])

    return Settings(verbose=verbose, buffer_size=buffer_size)
