"""
Process-tree termination engine for killport.

Every PID is handled by the same small state machine: graceful signal,
grace period, forceful signal if still alive, process-group sweep, settle
period, then a final existence check that decides killed or failed.
Signal delivery is never trusted on its own; only the existence check is.
"""

import logging
import os
import signal
import time
from collections.abc import Iterable

import psutil

from killport.models import ProcessRecord, TerminationResult, TerminationSession
from killport.procinfo import enrich
from killport.resolver import (
    ensure_supported_platform,
    find_processes,
    resolve_pids,
    validate_port,
)

logger = logging.getLogger(__name__)

GRACE_PERIOD = 0.1  # between SIGTERM and SIGKILL
SETTLE_PERIOD = 0.1  # between the last signal and the existence check
VERIFY_DELAY = 0.2  # before re-resolving the port

# PID 1 reaps orphans on its own
INIT_PID = 1


def send_signal(pid: int, sig: signal.Signals) -> None:
    """Send `sig` to `pid`, ignoring processes that are gone or off-limits."""
    try:
        os.kill(pid, sig)
    except OSError as exc:
        logger.debug("%s to PID %d not delivered: %s", sig.name, pid, exc)
    else:
        logger.debug("%s sent to PID %d", sig.name, pid)


def signal_group(pgid: int, sig: signal.Signals) -> None:
    """Send `sig` to the process group `pgid`, if there is one."""
    try:
        os.killpg(pgid, sig)
    except OSError as exc:
        logger.debug("%s to group %d not delivered: %s", sig.name, pgid, exc)
    else:
        logger.debug("%s sent to group %d", sig.name, pgid)


def is_alive(pid: int) -> bool:
    """
    Check whether `pid` is still running.

    Zombies count as dead: they have exited and released their sockets, only
    their table entry is left for the parent to collect.
    """
    try:
        return psutil.Process(pid).status() != psutil.STATUS_ZOMBIE
    except psutil.NoSuchProcess:
        return False
    except psutil.AccessDenied:
        return True


def _classify(pid: int, result: TerminationResult) -> None:
    if is_alive(pid):
        logger.debug("PID %d survived", pid)
        result.failed.append(pid)
    else:
        logger.debug("PID %d is gone", pid)
        result.killed.append(pid)


def terminate_tree(root: ProcessRecord, session: TerminationSession) -> TerminationResult:
    """
    Terminate `root` and all of its descendants, children first.

    Each child is re-read before descending, since the snapshot in
    `root.children` may be stale. Every PID is attempted at most once per
    session; failures are collected and never stop the rest of the tree.
    """
    result = TerminationResult()

    for child_pid in root.children:
        if session.was_attempted(child_pid):
            continue
        child = enrich(child_pid)
        if child is not None:
            result.extend(terminate_tree(child, session))

    if session.was_attempted(root.pid):
        return result
    session.mark_attempted(root.pid)

    send_signal(root.pid, signal.SIGTERM)
    time.sleep(GRACE_PERIOD)

    if is_alive(root.pid):
        send_signal(root.pid, signal.SIGKILL)

    # Catch group members the parent/child snapshot never saw
    signal_group(root.pid, signal.SIGKILL)

    time.sleep(SETTLE_PERIOD)
    _classify(root.pid, result)
    return result


def reap_zombies(records: Iterable[ProcessRecord]) -> None:
    """Nudge the parents of killed processes to collect their exit status."""
    parents = sorted({record.parent_pid for record in records if record.parent_pid > INIT_PID})
    for parent_pid in parents:
        send_signal(parent_pid, signal.SIGCHLD)


def verify_and_remediate(port: int, session: TerminationSession) -> TerminationResult:
    """
    Re-resolve `port` and force-kill anything the first pass did not attempt.

    Socket teardown lags behind the kill syscalls, and late-binding
    processes can take the port after discovery.
    """
    time.sleep(VERIFY_DELAY)
    result = TerminationResult()

    for pid in sorted(resolve_pids(port)):
        if session.was_attempted(pid):
            continue
        logger.debug("PID %d still holds port %d", pid, port)
        session.mark_attempted(pid)
        send_signal(pid, signal.SIGKILL)
        time.sleep(SETTLE_PERIOD)
        _classify(pid, result)

    return result


def kill_port(port: object, records: list[ProcessRecord] | None = None) -> TerminationResult:
    """
    Free `port` by killing every process tree bound to it.

    `records` are the processes already discovered (and usually shown to the
    user); when omitted they are discovered here. An idle port returns an
    empty result without attempting any termination.
    """
    port = validate_port(port)
    ensure_supported_platform()

    if records is None:
        records = find_processes(port)
    if not records:
        logger.debug("Port %d is already free", port)
        return TerminationResult()

    session = TerminationSession()
    for record in records:
        session.record(terminate_tree(record, session))

    reap_zombies(records)
    session.record(verify_and_remediate(port, session))
    return session.result
