"""Shared utility functions for NFT Bootstrap.

Provides async command execution, JSON I/O, Rich-based progress reporting and
the base exception type.  Output from every module goes through the single
``console`` defined here.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.markup import escape
from rich.rule import Rule
from rich.table import Table

console = Console()

FAILURE_MESSAGE = "Error occurred in script execution. Exiting."


class BootstrapError(Exception):
    """Base class for every error raised by NFT Bootstrap."""


# ---------------------------------------------------------------------------
# Async command execution
# ---------------------------------------------------------------------------


async def run_command(
    cmd: list[str],
    cwd: str | Path | None = None,
    timeout: int | None = None,
) -> tuple[int, str]:
    """Run a command asynchronously and wait for it to exit.

    The child inherits the terminal (stdin, stdout and stderr), so the
    operator sees its output and can answer its prompts.

    Args:
        cmd: Program and its arguments.
        cwd: Working directory for the child process.
        timeout: Maximum wall-clock seconds before the process is killed.
            ``None`` waits for as long as the process runs.

    Returns:
        A ``(returncode, error)`` tuple.  *error* is empty unless the
        command was killed for exceeding *timeout*, in which case the
        return code is ``-1``.

    Raises:
        FileNotFoundError: If the program does not exist.
    """
    process = await asyncio.create_subprocess_exec(
        *cmd,
        stdout=None,
        stderr=None,
        cwd=str(cwd) if cwd else None,
    )

    try:
        await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        process.kill()
        await process.wait()
        return (-1, f"Command timed out after {timeout}s: {format_command(cmd)}")

    return (process.returncode or 0, "")


# ---------------------------------------------------------------------------
# JSON I/O
# ---------------------------------------------------------------------------


async def save_json(data: dict[str, Any] | list[Any], path: str | Path) -> None:
    """Save data as pretty-printed JSON, creating parent directories."""
    file_path = Path(path)
    file_path.parent.mkdir(parents=True, exist_ok=True)
    content = json.dumps(data, indent=2, ensure_ascii=False, default=str)
    await asyncio.to_thread(file_path.write_text, content, "utf-8")


# ---------------------------------------------------------------------------
# Formatting helpers
# ---------------------------------------------------------------------------


def format_duration(seconds: float) -> str:
    """Format a duration in seconds to a human-readable string.

    Examples::

        format_duration(3.7)    -> "3.7s"
        format_duration(65.2)   -> "1m 5s"
        format_duration(3661.0) -> "1h 1m 1s"
    """
    if seconds < 0:
        return "0.0s"

    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = seconds % 60

    parts: list[str] = []
    if hours > 0:
        parts.append(f"{hours}h")
    if minutes > 0:
        parts.append(f"{minutes}m")

    if hours > 0 or minutes > 0:
        parts.append(f"{int(secs)}s")
    else:
        parts.append(f"{secs:.1f}s")

    return " ".join(parts)


def format_command(cmd: list[str]) -> str:
    """Render an argument list the way it would be typed in a shell."""
    return " ".join(arg if arg and " " not in arg else repr(arg) for arg in cmd)


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


STEP_NAMES: dict[int, str] = {
    1: "SYSTEM UPDATE",
    2: "INSTALL DEPENDENCIES",
    3: "INIT PROJECT",
    4: "CLEANUP",
    5: "CAPTURE SECRET",
    6: "NETWORK CONFIG",
    7: "CONTRACT",
    8: "COMPILE",
    9: "DEPLOY",
    10: "MINT",
}


def print_step_header(step: int, name: str) -> None:
    """Print a full-width rule announcing a pipeline step."""
    console.print()
    console.print(
        Rule(
            f"[bold bright_cyan] Step {step}/{len(STEP_NAMES)}: {name.upper()} [/bold bright_cyan]",
            style="bright_cyan",
        )
    )


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table."""
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{escape(message)}[/bold green]")


def print_error(message: str) -> None:
    """Print a red error message."""
    console.print(f"[bold red]{escape(message)}[/bold red]")


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{escape(message)}[/bold yellow]")
