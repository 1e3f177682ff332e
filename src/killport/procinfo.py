"""Process lookup and enrichment for killport."""

import dataclasses
import logging
import os

import psutil

from killport.commands import parse_pids, run_command
from killport.models import ProcessRecord

logger = logging.getLogger(__name__)

# psutil reports run state as words; killport shows the classic ps letters
STATE_CODES = {
    psutil.STATUS_RUNNING: "R",
    psutil.STATUS_SLEEPING: "S",
    psutil.STATUS_DISK_SLEEP: "D",
    psutil.STATUS_STOPPED: "T",
    psutil.STATUS_TRACING_STOP: "t",
    psutil.STATUS_ZOMBIE: "Z",
    psutil.STATUS_DEAD: "X",
    psutil.STATUS_IDLE: "I",
    psutil.STATUS_WAKING: "W",
}


def parse_ps_line(line: str) -> ProcessRecord | None:
    """
    Parse one line of `ps -o pid=,ppid=,user=,stat=,comm=,args=`.

    Fields are positional. Anything shorter than five fields or with a
    non-numeric pid/ppid is treated as a process that no longer exists.
    """
    parts = line.split()
    if len(parts) < 5:
        return None
    try:
        pid = int(parts[0])
        parent_pid = int(parts[1])
    except ValueError:
        return None

    name = os.path.basename(parts[4]) or "unknown"
    return ProcessRecord(
        pid=pid,
        parent_pid=parent_pid,
        owner=parts[2] or "unknown",
        state=parts[3] or "?",
        name=name,
        command_line=" ".join(parts[5:]) or name,
    )


def _read_with_ps(pid: int) -> ProcessRecord | None:
    output = run_command(["ps", "-o", "pid=,ppid=,user=,stat=,comm=,args=", "-p", str(pid)])
    if not output:
        return None
    return parse_ps_line(output.splitlines()[0])


def read_process(pid: int) -> ProcessRecord | None:
    """
    Read the attributes of a single process, without its children.

    Returns None if the process does not exist. Owner and command line are
    best effort; when psutil is refused access to the process entirely the
    lookup is retried through ps.
    """
    try:
        proc = psutil.Process(pid)
        with proc.oneshot():
            parent_pid = proc.ppid()
            name = proc.name() or "unknown"
            state = STATE_CODES.get(proc.status(), "?")

            try:
                owner = proc.username() or "unknown"
            except psutil.AccessDenied:
                owner = "unknown"

            try:
                cmdline = proc.cmdline()
            except (psutil.ZombieProcess, psutil.AccessDenied):
                # Zombies have no argv left; that is not a reason to skip them
                cmdline = []

    except psutil.NoSuchProcess:
        return None
    except psutil.AccessDenied:
        logger.debug("psutil denied access to PID %d, asking ps", pid)
        return _read_with_ps(pid)

    return ProcessRecord(
        pid=pid,
        parent_pid=parent_pid,
        owner=owner,
        state=state,
        name=name,
        command_line=" ".join(cmdline) if cmdline else name,
    )


def child_pids(pid: int) -> list[int]:
    """Direct children of `pid` at this moment, oldest first."""
    try:
        children = psutil.Process(pid).children()
    except psutil.NoSuchProcess:
        return []
    except psutil.AccessDenied:
        return parse_pids(run_command(["pgrep", "-P", str(pid)]))
    return [child.pid for child in children]


def enrich(pid: int) -> ProcessRecord | None:
    """
    Build a complete record for `pid`, or None if it has already exited.

    A PID vanishing between discovery and enrichment is an expected race.
    """
    record = read_process(pid)
    if record is None:
        logger.debug("PID %d exited before it could be inspected", pid)
        return None
    return dataclasses.replace(record, children=tuple(child_pids(pid)))
