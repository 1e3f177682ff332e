"""Terminal rendering of killport results."""

from rich.console import Console
from rich.markup import escape
from rich.tree import Tree

from killport.models import ProcessRecord, TerminationResult

console = Console(highlight=False)
error_console = Console(stderr=True, highlight=False)

ACCENT = "#00ffc8"
COMMAND_WIDTH = 80

STATE_LABELS = {
    "Z": "[red]zombie[/red]",
    "S": "[green]sleeping[/green]",
    "R": "[yellow]running[/yellow]",
    "T": "[dim]stopped[/dim]",
}


def state_label(state: str) -> str:
    """Describe a ps state code such as 'Ss' or 'R+'."""
    return STATE_LABELS.get(state[:1], f"[dim]{escape(state)}[/dim]")


def truncate(text: str, width: int = COMMAND_WIDTH) -> str:
    """Shorten `text` to `width` characters, marking the cut."""
    if len(text) <= width:
        return text
    return text[: width - 3] + "..."


def plural(count: int, word: str = "process") -> str:
    return f"{count} {word}" + ("es" if count != 1 else "")


def render_processes(records: list[ProcessRecord], port: int) -> None:
    """Show the processes found on `port` as a tree."""
    tree = Tree(
        f"[bold]Found {plural(len(records))}[/bold] on port [bold {ACCENT}]{port}[/bold {ACCENT}]",
        guide_style="dim",
    )
    for record in records:
        node = tree.add(
            f"[bold]PID[/bold] [bold #ff6b35]{record.pid}[/bold #ff6b35]  [dim]│[/dim]  "
            f"[bold]Name[/bold] [cyan]{escape(record.name)}[/cyan]  [dim]│[/dim]  "
            f"[bold]User[/bold] [yellow]{escape(record.owner)}[/yellow]"
        )
        node.add(f"[dim]cmd[/dim]  [dim]{escape(truncate(record.command_line))}[/dim]")
        if record.children:
            node.add(f"[dim]children[/dim]  [dim]{', '.join(map(str, record.children))}[/dim]")
        node.add(f"[dim]state[/dim]  {state_label(record.state)}")

    console.print()
    console.print(tree)
    console.print()


def render_port_free(port: int) -> None:
    console.print(
        f"[cyan]◆[/cyan] No processes found on port [bold {ACCENT}]{port}[/bold {ACCENT}] "
        "[dim]— port is already free[/dim]"
    )


def render_results(result: TerminationResult, port: int) -> None:
    """Summarize which PIDs were killed and which survived."""
    if not result.attempted:
        # Everything found earlier exited before it could be signalled
        console.print(f"[cyan]◆[/cyan] Nothing left to kill on port [bold {ACCENT}]{port}[/bold {ACCENT}]")
        console.print()
        return

    if result.killed:
        console.print(
            f"[red]☠[/red]  [bold]Killed[/bold] {plural(len(result.killed))} "
            f"[dim]—[/dim] port [bold {ACCENT}]{port}[/bold {ACCENT}] is [bold green]free[/bold green]"
        )
        for pid in result.killed:
            console.print(f"     [green]✔[/green] [dim]PID {pid}[/dim]")

    if result.failed:
        console.print(f"[yellow]⚠[/yellow]  [bold yellow]Failed[/bold yellow] to kill {plural(len(result.failed))}")
        for pid in result.failed:
            console.print(f"     [red]✘[/red] [dim]PID {pid} — try with sudo[/dim]")

    console.print()


def render_error(message: str) -> None:
    error_console.print(f"[red]✘ {escape(message)}[/red]")
