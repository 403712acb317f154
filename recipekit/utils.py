"""Shared utility functions for recipekit.

Provides async command execution, Rich-based status reporting and a few
formatting helpers.  The status helpers follow the generator convention of a
right-aligned coloured verb followed by the affected path
(``      create  config/database.yml``).
"""

from __future__ import annotations

import asyncio
import os
from pathlib import Path

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: str | list[str],
    cwd: str | Path | None = None,
    timeout: int = 120,
    env: dict[str, str] | None = None,
) -> tuple[int, str, str]:
    """Run *cmd* in a child process and collect its output.

    A list is executed directly; a string goes through the shell so recipes
    can use redirections and pipes.  *env* is layered over ``os.environ``.

    Returns:
        ``(returncode, stdout, stderr)`` with both streams decoded and
        stripped.  When *timeout* expires the process is killed and the
        return code is ``-1``.
    """
    options = {
        "stdout": asyncio.subprocess.PIPE,
        "stderr": asyncio.subprocess.PIPE,
        "cwd": str(cwd) if cwd else None,
        "env": {**os.environ, **env} if env else None,
    }
    if isinstance(cmd, str):
        process = await asyncio.create_subprocess_shell(cmd, **options)
    else:
        process = await asyncio.create_subprocess_exec(*cmd, **options)

    try:
        out, err = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return -1, "", f"Command timed out after {timeout}s: {format_command(cmd)}"

    return process.returncode or 0, _decode(out), _decode(err)


def format_command(cmd: str | list[str]) -> str:
    """Render a command for display."""
    return cmd if isinstance(cmd, str) else " ".join(cmd)


def _decode(raw: bytes | None) -> str:
    return (raw or b"").decode("utf-8", errors="replace").strip()


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """``3.7`` -> ``"3.7s"``, ``65.2`` -> ``"1m 5s"``; negatives read as zero."""
    seconds = max(seconds, 0.0)
    minutes, rest = divmod(seconds, 60)
    if minutes:
        return f"{int(minutes)}m {int(rest)}s"
    return f"{rest:.1f}s"


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------

STATUS_COLORS: dict[str, str] = {
    "create": "green",
    "force": "yellow",
    "copy": "green",
    "directory": "green",
    "remove": "red",
    "inject": "cyan",
    "append": "cyan",
    "gsub": "cyan",
    "yaml": "cyan",
    "chmod": "cyan",
    "package": "magenta",
    "recipe": "blue",
    "run": "bright_blue",
    "identical": "blue",
    "skip": "dim",
    "info": "white",
}


def print_status(verb: str, message: str, *, quiet: bool = False) -> None:
    """Print a generator-style status line: right-aligned verb, then message."""
    if quiet:
        return
    color = STATUS_COLORS.get(verb, "white")
    console.print(f"[bold {color}]{verb:>12}[/bold {color}]  {escape(message)}", highlight=False)


def print_header(title: str) -> None:
    """Print a full-width rule announcing a stage of the run."""
    console.print()
    console.print(Rule(f"[bold bright_cyan] {escape(title)} [/bold bright_cyan]", style="bright_cyan"))
    console.print()


def print_summary_table(rows: dict[str, str], title: str = "Summary") -> None:
    """Print label/value pairs as a two-column Rich table."""
    table = Table(title=title, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")
    for label, value in rows.items():
        table.add_row(label, escape(str(value)))
    console.print(table)
    console.print()


def print_success(message: str) -> None:
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
