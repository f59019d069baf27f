"""
Exceptions raised by the forksort process tree.

Every error is fatal for the process that detects it. Library code raises one
of these and ``forksort.cli.main`` turns it into a diagnostic on stderr and a
non-zero exit status, which the parent worker observes in turn.
"""


class ForkSortError(Exception):
    """Base class for all forksort errors."""


class ChannelError(ForkSortError):
    """Reading from or writing to a pipe channel failed."""


class SpawnError(ForkSortError):
    """A worker process could not be started."""


class ProtocolError(ForkSortError):
    """A worker delivered fewer lines than it was given, or the merge broke."""


class UsageError(ForkSortError):
    """Invalid invocation or configuration."""


class WorkerFailedError(ForkSortError):
    """A worker process terminated with a non-zero exit status."""

    def __init__(self, pid: int, returncode: int):
        self.pid = pid
        self.returncode = returncode
        if returncode < 0:
            detail = f"killed by signal {-returncode}"
        else:
            detail = f"exit status {returncode}"
        super().__init__(f"Worker {pid} failed ({detail})")
