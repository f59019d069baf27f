"""
Process Orchestrator - Sort lines with a tree of worker processes

Each call to ``sort_lines`` handles one node of the tree:

    0 lines    nothing to do
    1 line     write it directly (leaf)
    N lines    split into ceil(N/2) + floor(N/2), start one worker per half,
               feed each worker its half through a pipe, merge both sorted
               outputs as they stream back, then reap the workers

A worker is another instance of this same program (``python -m forksort``) with
stdin and stdout bound to pipes. It cannot tell whether it is the root or a
worker, so it repeats the same steps on its own input.

Pipe ownership:
    parent -> worker stdin    parent writes, worker reads
    worker stdout -> parent   worker writes, parent reads

Workers are started with ``close_fds=True``, so a worker never holds an
endpoint of its sibling's pipes. Popen closes the worker's ends in the parent
once the worker is running, so the parent only keeps the ends it uses. If
either side kept a stray write end open, the reader of that pipe would never
see end-of-stream.

Failures are fatal. A worker that exits with a non-zero status makes its parent
fail in turn, up to the root.
"""

import os
import subprocess
import sys
from typing import BinaryIO, Dict, List, Mapping, NamedTuple, Optional, Sequence, Tuple

from .config import BUFFER_SIZE_ENV, VERBOSE_ENV, Settings
from .errors import ChannelError, ProtocolError, SpawnError, WorkerFailedError
from .lines import emit_line
from .log import log_progress
from .merge import merge_streams
from .splitter import split_halves


class Spawner:
    """
    How to start another instance of this program.

    Passed down the orchestration call path instead of relying on a global
    program name.
    """

    def __init__(self, command: Sequence[str], env: Optional[Mapping[str, str]] = None):
        """
        Args:
            command: Command line that runs forksort with no arguments
            env: Environment for the worker (default: inherit the current one)
        """
        if not command:
            raise ValueError("Spawner command must not be empty")
        self.command: List[str] = list(command)
        self.env: Optional[Dict[str, str]] = dict(env) if env is not None else None

    @classmethod
    def for_current_program(cls, settings: Optional[Settings] = None) -> "Spawner":
        """
        Spawner that re-runs the current interpreter on the forksort package.

        The package directory is put on PYTHONPATH so workers import the same
        code as this process, and the settings are exported so every worker of
        the tree runs with them.
        """
        settings = settings or Settings()
        env = dict(os.environ)
        package_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
        python_path = [p for p in env.get("PYTHONPATH", "").split(os.pathsep) if p]
        if package_root not in python_path:
            python_path.insert(0, package_root)
        env["PYTHONPATH"] = os.pathsep.join(python_path)
        env[VERBOSE_ENV] = "1" if settings.verbose else "0"
        env[BUFFER_SIZE_ENV] = str(settings.buffer_size)
        return cls([sys.executable, "-m", "forksort"], env)

    def __repr__(self):
        return f"Spawner({self.command!r})"


class WorkerTask(NamedTuple):
    """A running worker and the number of lines it was given."""

    process: subprocess.Popen
    count: int

    @property
    def pid(self) -> int:
        return self.process.pid

    @property
    def output(self) -> BinaryIO:
        return self.process.stdout


def spawn_and_feed(
    half: List[bytes], spawner: Spawner, settings: Optional[Settings] = None
) -> WorkerTask:
    """
    Start a worker and write one half of the lines to its stdin.

    The write blocks while the worker is not draining its input fast enough.
    The worker's stdin is closed afterwards so it sees end-of-stream, and
    ``half`` is emptied: the lines now live in the worker only.

    Args:
        half: Lines for this worker, in order (consumed)
        spawner: How to start the worker
        settings: Runtime settings (buffer size, verbosity)

    Returns:
        WorkerTask holding the process (read its stdout for the sorted lines)
        and the number of lines sent

    Raises:
        SpawnError: If the worker cannot be started
        ChannelError: If writing to the worker fails
    """
    settings = settings or Settings()

    try:
        process = subprocess.Popen(
            spawner.command,
            stdin=subprocess.PIPE,
            stdout=subprocess.PIPE,
            close_fds=True,
            bufsize=settings.buffer_size,
            env=spawner.env,
        )
    except (OSError, ValueError) as e:
        raise SpawnError(f"Could not start worker {spawner.command!r}: {e}") from e

    total = len(half)
    log_progress(f"[SPAWN] worker {process.pid} for {total} lines", settings.verbose)

    sent = 0
    try:
        for line in half:
            emit_line(process.stdin, line)
            sent += 1
        process.stdin.close()
    except (ChannelError, OSError) as e:
        raise ChannelError(
            f"Could not feed worker {process.pid} ({sent} of {total} lines sent): {e}"
        ) from e

    half.clear()
    return WorkerTask(process, sent)


def await_both(
    first: WorkerTask, second: WorkerTask, settings: Optional[Settings] = None
) -> Tuple[int, int]:
    """
    Wait for both workers to terminate and check their exit status.

    Our read end of each worker's output is closed first, so a worker still
    trying to write gets a broken pipe instead of blocking forever.

    Returns:
        Exit codes of both workers (always (0, 0) when no error is raised)

    Raises:
        WorkerFailedError: If either worker exited with a non-zero status
    """
    settings = settings or Settings()

    returncodes = []
    for task in (first, second):
        if task.output is not None:
            task.output.close()
        returncode = task.process.wait()
        log_progress(f"[REAP] worker {task.pid} exited with {returncode}", settings.verbose)
        returncodes.append(returncode)

    for task, returncode in zip((first, second), returncodes):
        if returncode != 0:
            raise WorkerFailedError(task.pid, returncode)

    return returncodes[0], returncodes[1]


def sort_lines(
    lines: List[bytes],
    out: BinaryIO,
    spawner: Optional[Spawner] = None,
    settings: Optional[Settings] = None,
) -> int:
    """
    Sort lines with a tree of worker processes and write them to out.

    The list is consumed: it is emptied once its lines have been handed to the
    workers, so no line stays resident in this process during the merge.

    Args:
        lines: Lines to sort (without terminators), emptied on return
        out: Binary stream the sorted lines are written to
        spawner: How to start workers (default: this program)
        settings: Runtime settings (default: Settings())

    Returns:
        Number of lines written

    Raises:
        ForkSortError: On any failure in this process or a worker
    """
    settings = settings or Settings()
    spawner = spawner or Spawner.for_current_program(settings)

    if not lines:
        return 0

    if len(lines) == 1:
        log_progress("[LEAF] single line, writing directly", settings.verbose)
        emit_line(out, lines.pop())
        return 1

    count = len(lines)
    first_half, second_half = split_halves(lines)
    lines.clear()
    log_progress(
        f"[SPLIT] {count} lines into {len(first_half)} + {len(second_half)}",
        settings.verbose,
    )

    first = spawn_and_feed(first_half, spawner, settings)
    second = spawn_and_feed(second_half, spawner, settings)

    try:
        written = merge_streams(first.output, second.output, first.count, second.count, out)
    except ProtocolError:
        # A short stream usually means the worker died; report that if so.
        await_both(first, second, settings)
        raise

    await_both(first, second, settings)
    log_progress(f"[MERGE] {written} lines merged", settings.verbose)
    return written

