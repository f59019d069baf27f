#!/usr/bin/env python3
"""
test_forksort_cli.py - End-to-end tests for the forksort command
================================================================

Runs ``python -m forksort`` as a subprocess with data on stdin, the same way a
parent worker runs its children.
"""

import io
import os
import random
import subprocess
import sys

import pytest

from forksort.cli import main
from forksort.orchestrator import Spawner


def forksort_env(extra_env=None):
    """Helper to build the environment forksort runs with in these tests"""
    env = dict(Spawner.for_current_program().env)
    env.pop("FORKSORT_VERBOSE", None)
    env.pop("FORKSORT_BUFFER_SIZE", None)
    if extra_env:
        env.update(extra_env)
    return env


def run_forksort(data: bytes, args=(), extra_env=None):
    """Helper to run forksort on stdin data"""
    return subprocess.run(
        [sys.executable, "-m", "forksort", *args],
        input=data,
        capture_output=True,
        env=forksort_env(extra_env),
        timeout=120,
    )


class TestSorting:
    """Test sorted output of the command."""

    def test_sort_words(self):
        result = run_forksort(b"pear\napple\nfig\nbanana\ncherry\n")
        assert result.returncode == 0
        assert result.stdout == b"apple\nbanana\ncherry\nfig\npear\n"

    def test_empty_input(self):
        result = run_forksort(b"")
        assert result.returncode == 0
        assert result.stdout == b""

    def test_single_line(self):
        result = run_forksort(b"only line\n")
        assert result.returncode == 0
        assert result.stdout == b"only line\n"

    def test_unterminated_input_is_terminated(self):
        result = run_forksort(b"b\na")
        assert result.returncode == 0
        assert result.stdout == b"a\nb\n"

    def test_single_unterminated_line(self):
        result = run_forksort(b"x")
        assert result.returncode == 0
        assert result.stdout == b"x\n"

    def test_already_sorted_input_unchanged(self):
        data = b"".join(b"line%03d\n" % i for i in range(20))
        result = run_forksort(data)
        assert result.returncode == 0
        assert result.stdout == data

    @pytest.mark.parametrize("count", [2, 3, 7, 16, 31])
    def test_sorted_permutation(self, count):
        rng = random.Random(count)
        lines = [bytes(rng.choice(b"abcAB \t~") for _ in range(rng.randrange(6))) for _ in range(count)]
        data = b"".join(line + b"\n" for line in lines)

        result = run_forksort(data)

        assert result.returncode == 0
        assert result.stdout.split(b"\n")[:-1] == sorted(lines)

    def test_non_utf8_bytes(self):
        result = run_forksort(b"\xff\n\x01\n\x80abc\n")
        assert result.returncode == 0
        assert result.stdout == b"\x01\n\x80abc\n\xff\n"

    def test_large_lines_through_pipes(self):
        """Output larger than a pipe buffer must not deadlock the tree"""
        lines = [bytes([65 + i]) * 40000 for i in reversed(range(6))]
        result = run_forksort(b"\n".join(lines) + b"\n")
        assert result.returncode == 0
        assert result.stdout.split(b"\n")[:-1] == sorted(lines)

    def test_small_buffer_size(self):
        result = run_forksort(b"c\nb\na\n", extra_env={"FORKSORT_BUFFER_SIZE": "512"})
        assert result.returncode == 0
        assert result.stdout == b"a\nb\nc\n"


class TestProcessTree:
    """Test the shape of the worker tree through verbose progress output."""

    @pytest.mark.parametrize("count", [1, 2, 5, 9])
    def test_one_leaf_per_line(self, count):
        data = b"".join(b"%d\n" % (count - i) for i in range(count))

        result = run_forksort(data, extra_env={"FORKSORT_VERBOSE": "1"})

        assert result.returncode == 0
        stderr = result.stderr.decode("utf-8", errors="replace")
        assert stderr.count("[LEAF]") == count
        # A binary tree with N leaves has N - 1 inner nodes, each spawning two
        assert stderr.count("[SPAWN]") == 2 * (count - 1)
        assert stderr.count("[REAP]") == 2 * (count - 1)

    def test_quiet_by_default(self):
        result = run_forksort(b"b\na\n")
        assert result.returncode == 0
        assert result.stderr == b""


class TestErrors:
    """Test usage errors and exit status."""

    def test_argument_is_usage_error(self):
        result = run_forksort(b"a\n", args=["extra"])
        assert result.returncode != 0
        assert b"usage:" in result.stderr
        assert result.stdout == b""

    def test_help_flag_is_usage_error(self):
        result = run_forksort(b"a\n", args=["-h"])
        assert result.returncode != 0
        assert b"usage:" in result.stderr

    def test_invalid_buffer_size(self):
        result = run_forksort(b"b\na\n", extra_env={"FORKSORT_BUFFER_SIZE": "abc"})
        assert result.returncode == 2
        assert b"FORKSORT_BUFFER_SIZE" in result.stderr

    def test_failing_worker_fails_root(self, monkeypatch, capsys):
        """A worker exiting non-zero makes main return 1 with a diagnostic"""
        failing = Spawner([sys.executable, "-c", "import sys; sys.stdin.read(); sys.exit(3)"])
        monkeypatch.setattr(
            Spawner, "for_current_program", classmethod(lambda cls, settings=None: failing)
        )
        monkeypatch.delenv("FORKSORT_VERBOSE", raising=False)
        monkeypatch.delenv("FORKSORT_BUFFER_SIZE", raising=False)
        monkeypatch.setattr(sys, "stdin", io.TextIOWrapper(io.BytesIO(b"b\na\nc\n")))
        stdout = io.TextIOWrapper(io.BytesIO())
        monkeypatch.setattr(sys, "stdout", stdout)

        assert main([]) == 1

        err = capsys.readouterr().err
        assert "[ERROR]" in err
        assert "exit status 3" in err
        assert stdout.buffer.getvalue() == b""

    @pytest.mark.parametrize("line_size", [1, 20000])
    def test_closed_output_fails_quietly(self, line_size):
        """With the reader gone (e.g. `| head`) forksort fails without an interpreter traceback"""
        data = b"".join(bytes([99 - i]) * line_size + b"\n" for i in range(3))
        read_end, write_end = os.pipe()
        os.close(read_end)
        try:
            result = subprocess.run(
                [sys.executable, "-m", "forksort"],
                input=data,
                stdout=write_end,
                stderr=subprocess.PIPE,
                env=forksort_env(),
                timeout=120,
            )
        finally:
            os.close(write_end)

        assert result.returncode == 1
        assert b"[ERROR]" in result.stderr
        assert b"Exception ignored" not in result.stderr
        assert b"Traceback" not in result.stderr
