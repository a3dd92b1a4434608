# core/console.py
"""Live progress line and timing summary for the enrichment run."""

import math

from rich.console import Console
from rich.control import Control
from rich.segment import ControlType

console = Console(highlight=False)


def round_half_up(value: float) -> int:
    # round() would send 2.5 to 2
    return math.floor(value + 0.5)


def percent_done(position: int, total: int) -> str:
    if total <= 0:
        return "---.-"
    return f"{round_half_up(position / total * 1000) / 10:g}"


def write_progress(position: int, total: int, out: Console = console) -> None:
    """Rewrite the current terminal line with the cumulative progress."""
    out.control(
        Control(ControlType.CARRIAGE_RETURN),
        Control((ControlType.ERASE_IN_LINE, 2)),
    )
    out.print(
        f"Processing component [cyan]{position}[/cyan]/{total} ({percent_done(position, total)}%)",
        end="",
    )


def format_duration(milliseconds: int) -> str:
    if milliseconds < 1000:
        return f"{milliseconds} ms"
    return f"{round_half_up(milliseconds / 1000)} s"


def write_start(out: Console = console) -> None:
    out.print("Starting...", end="")


def write_done(milliseconds: int, out: Console = console) -> None:
    value, unit = format_duration(milliseconds).split(" ")
    out.print(f" - Done in [yellow]{value}[/yellow] {unit}")
