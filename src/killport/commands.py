"""Bounded wrapper around the OS utilities killport reads from."""

import logging
import subprocess

logger = logging.getLogger(__name__)

# Seconds before an unresponsive utility is abandoned
COMMAND_TIMEOUT = 5.0


def run_command(args: list[str], timeout: float = COMMAND_TIMEOUT) -> str:
    """
    Run a utility and return its stripped stdout.

    Missing utilities, timeouts and permission problems all yield an empty
    string. A non-zero exit status is not treated as failure, since tools
    like lsof and pgrep exit 1 when nothing matches.
    """
    try:
        completed = subprocess.run(
            args,
            capture_output=True,
            text=True,
            timeout=timeout,
            check=False,
        )
    except subprocess.TimeoutExpired:
        logger.debug("%s timed out after %.1fs", args[0], timeout)
        return ""
    except OSError as exc:
        logger.debug("%s could not be run: %s", args[0], exc)
        return ""
    return completed.stdout.strip()


def parse_pids(output: str) -> list[int]:
    """Parse whitespace-separated PIDs, skipping anything that is not one."""
    pids: list[int] = []
    for token in output.split():
        try:
            pid = int(token)
        except ValueError:
            continue
        if pid > 0:
            pids.append(pid)
    return pids
