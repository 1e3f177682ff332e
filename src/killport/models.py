"""Data models for killport."""

from dataclasses import dataclass, field


@dataclass(slots=True, frozen=True)
class ProcessRecord:
    """Immutable snapshot of a process bound to (or descended from) a port."""

    pid: int
    parent_pid: int
    owner: str
    state: str  # 'R', 'S', 'Z', 'T', etc.
    name: str
    command_line: str
    children: tuple[int, ...] = ()


@dataclass(slots=True)
class TerminationResult:
    """PIDs partitioned by the outcome of a termination attempt."""

    killed: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def attempted(self) -> list[int]:
        return self.killed + self.failed

    def extend(self, other: "TerminationResult") -> None:
        """Append another result, keeping its order."""
        self.killed.extend(other.killed)
        self.failed.extend(other.failed)


@dataclass(slots=True)
class TerminationSession:
    """
    State for one port-kill operation.

    `attempted` guarantees at most one termination attempt per PID, even when
    a PID shows up in several trees or is reported again after the kill pass.
    """

    attempted: set[int] = field(default_factory=set)
    result: TerminationResult = field(default_factory=TerminationResult)

    def was_attempted(self, pid: int) -> bool:
        return pid in self.attempted

    def mark_attempted(self, pid: int) -> None:
        self.attempted.add(pid)

    def record(self, result: TerminationResult) -> None:
        self.result.extend(result)
