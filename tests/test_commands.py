"""Tests for running OS utilities."""

import sys

from killport.commands import parse_pids, run_command


class TestRunCommand:
    """Tests for run_command."""

    def test_returns_stripped_stdout(self):
        assert run_command([sys.executable, "-c", "print('  4242  ')"]) == "4242"

    def test_non_zero_exit_still_returns_stdout(self):
        script = "import sys; print(7); sys.exit(1)"
        assert run_command([sys.executable, "-c", script]) == "7"

    def test_missing_utility_is_empty(self):
        assert run_command(["killport-no-such-utility-xyz"]) == ""

    def test_timeout_is_empty(self):
        script = "import time; print(1, flush=True); time.sleep(10)"
        assert run_command([sys.executable, "-c", script], timeout=0.5) == ""


class TestParsePids:
    """Tests for parse_pids."""

    def test_whitespace_separated(self):
        assert parse_pids("101\n102  103\t104") == [101, 102, 103, 104]

    def test_skips_garbage_and_zero(self):
        assert parse_pids("3000/tcp: 0 abc 55 -1") == [55]

    def test_empty(self):
        assert parse_pids("") == []
