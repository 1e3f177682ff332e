"""Verification Test: real process trees bound to a port.

Spawns genuine listening processes with descendants, runs the whole
find-and-kill pipeline against them and checks that the port is free and
no member of the tree is left running.
"""

import contextlib
import os
import signal
import socket
import subprocess
import sys
import textwrap
import time

import pytest

from killport.killer import is_alive, kill_port, send_signal, signal_group
from killport.models import TerminationResult
from killport.resolver import find_processes, resolve_pids

# Spawns a chain of `depth` descendants, optionally listens, then prints
# "<port or pid> <descendant pids...>" and sleeps.
TREE_SCRIPT = textwrap.dedent(
    """
    import os, signal, socket, subprocess, sys, time

    depth = int(sys.argv[1])
    mode = sys.argv[2]
    if "ignore-term" in sys.argv[3:]:
        signal.signal(signal.SIGTERM, signal.SIG_IGN)

    descendants = []
    if depth > 0:
        child = subprocess.Popen(
            [sys.executable, __file__, str(depth - 1), "idle"],
            stdout=subprocess.PIPE,
            text=True,
        )
        descendants = child.stdout.readline().split()

    if mode == "listen":
        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        sock.bind(("127.0.0.1", 0))
        sock.listen()
        print(sock.getsockname()[1], *descendants, flush=True)
    else:
        print(os.getpid(), *descendants, flush=True)

    time.sleep(60)
    """
)


@pytest.fixture
def spawn_tree(tmp_path):
    """Start listening trees; everything they spawned is killed afterwards."""
    script = tmp_path / "tree.py"
    script.write_text(TREE_SCRIPT)
    started: list[tuple[subprocess.Popen, list[int]]] = []

    def spawn(depth: int, *flags: str) -> tuple[int, subprocess.Popen, list[int]]:
        proc = subprocess.Popen(
            [sys.executable, str(script), str(depth), "listen", *flags],
            stdout=subprocess.PIPE,
            text=True,
            start_new_session=True,
        )
        fields = [int(field) for field in proc.stdout.readline().split()]
        port, descendants = fields[0], fields[1:]
        started.append((proc, descendants))
        return port, proc, descendants

    yield spawn

    for proc, descendants in started:
        for pid in [proc.pid, *descendants]:
            with contextlib.suppress(ProcessLookupError):
                os.kill(pid, signal.SIGKILL)
        proc.wait(timeout=5)
        proc.stdout.close()


def discover(port: int):
    records = find_processes(port)
    if not records:
        pytest.skip("socket owners are not visible on this host")
    return records


def free_port() -> int:
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        sock.bind(("127.0.0.1", 0))
        return sock.getsockname()[1]


class TestKillTree:
    """End-to-end verification suite tests."""

    def test_chain_is_killed_bottom_up(self, spawn_tree):
        """
        Test a listener -> child -> grandchild chain is removed completely.

        The grandchild must be killed before the child, and the child before
        the listener, so nothing this run owns is orphaned.
        """
        port, proc, (child, grandchild) = spawn_tree(2)

        records = discover(port)
        assert [record.pid for record in records] == [proc.pid]
        assert child in records[0].children

        result = kill_port(port, records=records)

        assert result.failed == []
        assert result.killed == [grandchild, child, proc.pid]
        for pid in (proc.pid, child, grandchild):
            assert not is_alive(pid)
        assert resolve_pids(port) == set()

    def test_sigterm_ignoring_listener_is_forced(self, spawn_tree):
        port, proc, _ = spawn_tree(0, "ignore-term")
        discover(port)

        result = kill_port(port)

        assert result.killed == [proc.pid]
        assert result.failed == []
        assert not is_alive(proc.pid)

    def test_free_port_is_left_alone(self):
        port = free_port()

        assert find_processes(port) == []
        assert kill_port(port) == TerminationResult()


class TestSignalHelpers:
    """Tests for signal delivery and liveness checks on real processes."""

    def test_current_process_is_alive(self):
        assert is_alive(os.getpid())

    def test_exited_process_is_not_alive(self):
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        proc.wait(timeout=10)

        assert not is_alive(proc.pid)

    def test_zombie_is_not_alive(self):
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        try:
            deadline = time.time() + 5.0
            while is_alive(proc.pid) and time.time() < deadline:
                time.sleep(0.05)
            assert not is_alive(proc.pid)
        finally:
            proc.wait(timeout=5)

    def test_delivery_to_missing_process_is_ignored(self):
        proc = subprocess.Popen([sys.executable, "-c", "pass"])
        proc.wait(timeout=10)

        send_signal(proc.pid, signal.SIGKILL)
        signal_group(proc.pid, signal.SIGKILL)
