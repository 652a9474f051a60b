"""Startup banner for `memo watch`, adapted to terminal width."""

from __future__ import annotations

from datetime import datetime

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

BANNER_ART = [
    "███╗   ███╗███████╗███╗   ███╗ ██████╗ ",
    "████╗ ████║██╔════╝████╗ ████║██╔═══██╗",
    "██╔████╔██║█████╗  ██╔████╔██║██║   ██║",
    "██║╚██╔╝██║██╔══╝  ██║╚██╔╝██║██║   ██║",
    "██║ ╚═╝ ██║███████╗██║ ╚═╝ ██║╚██████╔╝",
    "╚═╝     ╚═╝╚══════╝╚═╝     ╚═╝ ╚═════╝ ",
]

FULL_WIDTH = 60
COMPACT_WIDTH = 40


def greeting(now: datetime | None = None) -> str:
    now = now or datetime.now()
    if now.month == 1 or (now.month == 2 and now.day == 1):
        return f"Welcome to {now.year}! Happy New Year!"
    if 2 <= now.hour < 5:
        return "It's late, take care of yourself."
    if now.hour < 12:
        return "Good morning."
    if now.hour < 18:
        return "Good afternoon."
    return "Good evening."


def print_banner(
    work_dir: str,
    version: str,
    session_id: str,
    console: Console | None = None,
) -> None:
    console = console or Console(stderr=True)
    width = console.width
    details = Text()
    details.append(f"{greeting()}\n", style="bold")
    details.append("dir      ", style="dim")
    details.append(f"{work_dir}\n")
    details.append("version  ", style="dim")
    details.append(f"{version}\n")
    details.append("session  ", style="dim")
    details.append(session_id)

    if width >= FULL_WIDTH:
        art = Text("\n".join(BANNER_ART), style="yellow")
        console.print(Panel(Text.assemble(art, "\n\n", details), border_style="dim yellow", expand=False))
    elif width >= COMPACT_WIDTH:
        console.print(Panel(details, title="memo", border_style="dim yellow", expand=False))
    else:
        console.print(f"memo {version} ({session_id}) - {work_dir}", markup=False)
