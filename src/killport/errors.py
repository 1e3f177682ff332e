"""Exceptions raised by killport."""


class KillPortError(Exception):
    """Base class for conditions that abort a killport run."""


class InvalidPortError(KillPortError, ValueError):
    """The requested port is not an integer in 1-65535."""

    def __init__(self, value: object) -> None:
        super().__init__(f"Invalid port: {value}. Must be 1-65535.")
        self.value = value


class UnsupportedPlatformError(KillPortError):
    """The host is not a process-list-capable POSIX system."""

    def __init__(self, platform: str) -> None:
        super().__init__(f"Unsupported platform: {platform}")
        self.platform = platform
