"""Port-to-process resolution for killport."""

import logging
import os
import re
import sys
from collections.abc import Callable, Sequence

import psutil

from killport.commands import parse_pids, run_command
from killport.errors import InvalidPortError, UnsupportedPlatformError
from killport.models import ProcessRecord
from killport.procinfo import enrich

logger = logging.getLogger(__name__)

MIN_PORT = 1
MAX_PORT = 65535

_SS_PID = re.compile(r"pid=(\d+)")
_PORT_DIGITS = re.compile(r"\d+", re.ASCII)

Strategy = Callable[[int], set[int]]


def ensure_supported_platform() -> None:
    """Raise UnsupportedPlatformError unless running on Linux or macOS."""
    if not (psutil.LINUX or psutil.MACOS):
        raise UnsupportedPlatformError(sys.platform)


def validate_port(value: object) -> int:
    """Return `value` as a port number, or raise InvalidPortError."""
    if isinstance(value, bool):
        raise InvalidPortError(value)
    if isinstance(value, int):
        port = value
    elif isinstance(value, str):
        digits = value.strip()
        if not _PORT_DIGITS.fullmatch(digits):
            raise InvalidPortError(value)
        port = int(digits)
    else:
        raise InvalidPortError(value)

    if not MIN_PORT <= port <= MAX_PORT:
        raise InvalidPortError(value)
    return port


def parse_lsof_fields(output: str, port: int) -> set[int]:
    """
    PIDs from `lsof -F pn` output whose socket has `port` as its local port.

    Names look like `*:3000` for listeners and `127.0.0.1:52344->127.0.0.1:3000`
    for connected sockets; only the side before `->` is local.
    """
    pids: set[int] = set()
    pid = None
    suffix = f":{port}"
    for line in output.splitlines():
        tag, value = line[:1], line[1:]
        if tag == "p":
            try:
                pid = int(value)
            except ValueError:
                pid = None
        elif tag == "n" and pid is not None:
            if value.split("->", 1)[0].endswith(suffix):
                pids.add(pid)
    return pids


def _pids_from_lsof(port: int) -> set[int]:
    output = run_command(["lsof", "-nP", f"-iTCP:{port}", "-F", "pn"])
    return parse_lsof_fields(output, port)


def pids_from_socket_table(port: int) -> set[int]:
    """PIDs owning a TCP socket whose local port is `port`."""
    try:
        connections = psutil.net_connections(kind="tcp")
    except psutil.AccessDenied:
        # macOS: the socket table needs root, lsof does not
        logger.debug("Socket table not readable, asking lsof")
        return _pids_from_lsof(port)
    except OSError as exc:
        logger.debug("Socket table query failed: %s", exc)
        return set()

    return {
        conn.pid
        for conn in connections
        if conn.laddr and conn.laddr.port == port and conn.pid
    }


def pids_from_fuser(port: int) -> set[int]:
    """PIDs reported by `fuser <port>/tcp` (Linux only)."""
    if not psutil.LINUX:
        return set()
    # fuser prints "<port>/tcp:" on stderr and only the PIDs on stdout
    return set(parse_pids(run_command(["fuser", f"{port}/tcp"])))


def pids_from_ss(port: int) -> set[int]:
    """PIDs annotated in `ss -tlnp sport = :<port>` output (Linux only)."""
    if not psutil.LINUX:
        return set()
    output = run_command(["ss", "-tlnp", "sport", "=", f":{port}"])
    return {int(match) for match in _SS_PID.findall(output)}


PORT_STRATEGIES: tuple[tuple[str, Strategy], ...] = (
    ("socket table", pids_from_socket_table),
    ("fuser", pids_from_fuser),
    ("ss", pids_from_ss),
)


def resolve_pids(
    port: int,
    strategies: Sequence[tuple[str, Strategy]] = PORT_STRATEGIES,
) -> set[int]:
    """
    Return the distinct PIDs holding `port`.

    Strategies are tried in order and the first non-empty answer wins;
    answers are never merged. An empty set means the port is free.
    """
    ensure_supported_platform()
    own_pid = os.getpid()

    for name, strategy in strategies:
        pids = {pid for pid in strategy(port) if pid > 0 and pid != own_pid}
        if pids:
            logger.debug("%s found PIDs %s on port %d", name, sorted(pids), port)
            return pids
        logger.debug("%s found nothing on port %d", name, port)

    return set()


def find_processes(port: object) -> list[ProcessRecord]:
    """
    Discover the processes holding `port` without touching them.

    Raises InvalidPortError or UnsupportedPlatformError before any lookup.
    """
    port = validate_port(port)
    ensure_supported_platform()

    records: list[ProcessRecord] = []
    for pid in sorted(resolve_pids(port)):
        record = enrich(pid)
        if record is not None:
            records.append(record)
    return records
