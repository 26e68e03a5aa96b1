"""
OpenCode Diagnostics Console Manager

Provides a singleton Rich Console for consistent styled output in the
CLI, plus the status styles shared by tables and summaries.

Usage:
    from opencode_diag.utils.console import get_console
    get_console().print("[ok]AVAILABLE[/ok]")
"""

import threading
from typing import Optional

from rich.console import Console
from rich.theme import Theme

from ..core.models import Status

_console: Optional[Console] = None
_lock = threading.Lock()

DARK_THEME = Theme({
    "ok": "green",
    "unknown": "cyan",
    "warning": "yellow",
    "critical": "red bold",
    "heading": "bold magenta",
    "dim": "dim white",
})

LIGHT_THEME = Theme({
    "ok": "dark_green",
    "unknown": "blue",
    "warning": "dark_orange",
    "critical": "red bold",
    "heading": "bold purple",
    "dim": "grey50",
})

THEMES = {"dark": DARK_THEME, "light": LIGHT_THEME}


def status_style(status: Status) -> str:
    """Theme style name for a status."""
    return status.value


def get_console(theme: str = "dark",
                force_terminal: bool = None,
                no_color: bool = None,
                width: int = None) -> Console:
    """
    Get the singleton Console instance.

    The theme only applies on first creation; call reset_console() to
    switch.
    """
    global _console

    if _console is None:
        with _lock:
            if _console is None:
                _console = Console(
                    theme=THEMES.get(theme, DARK_THEME),
                    force_terminal=force_terminal,
                    no_color=no_color,
                    width=width,
                    highlight=False,
                    markup=True,
                )

    return _console


def reset_console():
    """Reset the console singleton (useful for testing)."""
    global _console
    with _lock:
        _console = None
