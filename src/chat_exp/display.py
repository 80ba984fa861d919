"""Rich terminal display for the chat-exp operator console."""

from __future__ import annotations

from datetime import datetime, timezone

from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from chat_exp.levels import LevelInfo

console = Console()

EXP_UNIT = "EXP"


def format_number(n: int) -> str:
    """Format large numbers: 421543 -> '421.5K', 1200 -> '1,200', 1234567 -> '1.2M'."""
    if n >= 1_000_000:
        value = n / 1_000_000
        if value >= 100:
            return f"{value:.0f}M"
        return f"{value:.1f}M"
    if n >= 10_000:
        return f"{n / 1_000:.1f}K"
    return f"{n:,}"


def format_timestamp(ms: int) -> str:
    """Epoch milliseconds -> 'YYYY-MM-DD HH:MM:SS' (UTC)."""
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _exp_bar(percentage: int, width: int = 20) -> str:
    """Render a progress bar as text: [████████░░░░░░░░░░░░]."""
    filled = int(max(0, min(percentage, 100)) / 100 * width)
    return "[" + "█" * filled + "░" * (width - filled) + "]"


def print_level_info(user_id: str, info: LevelInfo) -> None:
    """Print a user's level card."""
    lines = [
        f"  [bold cyan]Level {info.level}[/]",
        f"  {_exp_bar(info.progress_percentage)} {info.progress_percentage}% complete",
        f"  Current: [bold]{format_number(info.current_exp)}[/] {EXP_UNIT}",
        f"  Needed for Level {info.level + 1}: [bold red]{format_number(info.exp_needed)}[/] {EXP_UNIT}",
        f"  Total progress: {info.current_exp}/{info.exp_for_next} {EXP_UNIT}",
    ]
    console.print(Panel("\n".join(lines), title=f"[bold]{user_id}[/]", box=box.ROUNDED, expand=False))


def print_ladder(rows: list[dict]) -> None:
    """Print the EXP ladder as a table."""
    if not rows:
        console.print(f"[dim]No users have any {EXP_UNIT} yet.[/]")
        return
    table = Table(title=f"Top {len(rows)} Users by {EXP_UNIT}", box=box.SIMPLE_HEAVY)
    table.add_column("Rank", justify="right")
    table.add_column("User")
    table.add_column(EXP_UNIT, justify="right")
    table.add_column("Level", justify="right")
    table.add_column("Next Level At", justify="right")
    for row in rows:
        table.add_row(
            str(row["rank"]),
            row["user"],
            format_number(row["exp"]),
            str(row["level"]),
            format_number(row["next_level_at"]),
        )
    console.print(table)


def print_double_exp_status(status: dict) -> None:
    if not status["enabled"]:
        console.print(f"Double {EXP_UNIT} is [bold]off[/]. All {EXP_UNIT} gains are normal.")
        return
    if status["end_time"] is None:
        duration = "No duration specified"
    else:
        duration = f"until {format_timestamp(status['end_time'])} UTC"
    console.print(f"Double {EXP_UNIT} is [bold green]on[/] ({duration}). All {EXP_UNIT} gains are doubled.")


def print_exp_change(verb: str, user_id: str, amount: int, info: LevelInfo, doubled: bool = False) -> None:
    """One line summary after give/take, e.g. 'Gave 10 EXP (Double EXP) to bob'."""
    suffix = f" (Double {EXP_UNIT})" if doubled else ""
    console.print(
        f"{verb} {amount} {EXP_UNIT}{suffix} {'to' if verb == 'Gave' else 'from'} [bold]{user_id}[/]. "
        f"New Level: {info.level} ({info.current_exp}/{info.exp_for_next} {EXP_UNIT})"
    )


def print_error(message: str) -> None:
    console.print(f"[red]{message}[/]")
