"""Command-line entry point for killport."""

import argparse
import logging
from importlib.metadata import PackageNotFoundError, version

from rich.logging import RichHandler

from killport.console import (
    error_console,
    render_error,
    render_port_free,
    render_processes,
    render_results,
)
from killport.errors import KillPortError
from killport.killer import kill_port
from killport.resolver import ensure_supported_platform, find_processes, validate_port

EXAMPLES = """\
examples:
  killport 3000
  killport 5173 --silent
  kp 8080 --interactive
"""


def get_version() -> str:
    try:
        return version("killport")
    except PackageNotFoundError:
        return "0+unknown"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="killport",
        description="Free any port in one command. No zombies left behind.",
        epilog=EXAMPLES,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("port", nargs="?", help="TCP port to free (1-65535)")
    parser.add_argument("-v", "--version", action="version", version=get_version())
    parser.add_argument(
        "-s",
        "--silent",
        action="store_true",
        help="only report the outcome, not the processes found",
    )
    parser.add_argument(
        "-i",
        "--interactive",
        action="store_true",
        help="review the processes in a terminal UI before killing them",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="log every lookup and signal to stderr",
    )
    return parser


def configure_logging(debug: bool = False) -> None:
    """Send killport's log records to stderr through rich."""
    handler = RichHandler(console=error_console, show_path=False, show_time=False)
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("killport")
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.WARNING)
    logger.propagate = False


def run_interactive(port: int, records) -> int:
    from killport.app import KillPortApp

    result = KillPortApp(port, records).run()
    if result is None:
        return 0
    return 0 if result.ok else 1


def main(argv: list[str] | None = None) -> int:
    """Entry point for the killport command. Returns the exit code."""
    args = build_parser().parse_args(argv)
    configure_logging(args.debug)

    if args.port is None:
        render_error("No port specified.")
        error_console.print("[dim]Usage: killport <port>[/dim]")
        return 1

    try:
        port = validate_port(args.port)
        ensure_supported_platform()
        records = find_processes(port)
    except KillPortError as exc:
        render_error(str(exc))
        return 1

    if not records:
        render_port_free(port)
        return 0

    if args.interactive:
        return run_interactive(port, records)

    if not args.silent:
        render_processes(records, port)

    result = kill_port(port, records=records)
    render_results(result, port)
    return 0 if result.ok else 1


if __name__ == "__main__":
    raise SystemExit(main())
