"""Terminal colors for podmirror output.

Usage:
    from podmirror.ui import get_theme

    theme = get_theme()
    console.print(theme.success_text("Synced playlist"))

Helper methods escape their text, so feed titles and error messages
containing square brackets print literally.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Literal

from rich.markup import escape


class ThemeMode(str, Enum):
    """Available theme modes."""

    LIGHT = "light"
    DARK = "dark"
    AUTO = "auto"


@dataclass(frozen=True)
class Theme:
    """Color theme for terminal output."""

    mode: str

    # Status colors
    success: str
    error: str
    warning: str
    info: str

    primary: str  # Names, titles
    muted: str  # Progress detail, hints

    table_header: str
    table_border: str

    def success_text(self, text: str) -> str:
        """Format text with success color and checkmark."""
        return f"[{self.success}]✓[/{self.success}] {escape(text)}"

    def error_text(self, text: str) -> str:
        """Format text with error color and X mark."""
        return f"[{self.error}]✗[/{self.error}] {escape(text)}"

    def warning_text(self, text: str) -> str:
        """Format text with warning color and warning symbol."""
        return f"[{self.warning}]⚠[/{self.warning}] {escape(text)}"

    def info_text(self, text: str) -> str:
        """Format text with info color and arrow."""
        return f"[{self.info}]→[/{self.info}] {escape(text)}"

    def muted_text(self, text: str) -> str:
        """Format text as muted/dim."""
        return f"[{self.muted}]{escape(text)}[/{self.muted}]"

    def primary_text(self, text: str) -> str:
        """Format text with primary color."""
        return f"[{self.primary}]{escape(text)}[/{self.primary}]"


DARK_THEME = Theme(
    mode="dark",
    success="green",
    error="red",
    warning="yellow",
    info="cyan",
    primary="cyan",
    muted="dim",
    table_header="bold cyan",
    table_border="dim",
)

LIGHT_THEME = Theme(
    mode="light",
    success="green",
    error="red",
    warning="dark_orange",  # Better contrast on light bg
    info="dark_cyan",
    primary="dark_cyan",
    muted="grey50",
    table_header="bold dark_cyan",
    table_border="grey50",
)


def detect_terminal_theme() -> Literal["light", "dark"]:
    """Guess whether the terminal has a light or dark background.

    Defaults to dark.
    """
    if os.environ.get("PODMIRROR_THEME", "").lower() == "light":
        return "light"

    # Format is "foreground;background" where 15=white bg, 0=black bg
    colorfgbg = os.environ.get("COLORFGBG", "")
    parts = colorfgbg.split(";")
    if len(parts) >= 2:
        try:
            return "light" if int(parts[-1]) >= 7 else "dark"
        except ValueError:
            pass

    if os.environ.get("TERM_PROGRAM", "").lower() == "apple_terminal":
        return "light"

    return "dark"


_current_theme: Theme | None = None


def set_theme(mode: ThemeMode | str) -> Theme:
    """Set and cache the current theme.

    Args:
        mode: Theme mode ('light', 'dark', or 'auto')

    Returns:
        The active Theme instance
    """
    global _current_theme

    if isinstance(mode, str):
        mode = ThemeMode(mode.lower())

    if mode == ThemeMode.AUTO:
        detected = detect_terminal_theme()
        _current_theme = LIGHT_THEME if detected == "light" else DARK_THEME
    elif mode == ThemeMode.LIGHT:
        _current_theme = LIGHT_THEME
    else:
        _current_theme = DARK_THEME

    return _current_theme


def get_theme() -> Theme:
    """Get the current theme, auto-detecting it on first use."""
    if _current_theme is None:
        return set_theme(ThemeMode.AUTO)
    return _current_theme


def reset_theme() -> None:
    """Reset the theme cache, forcing re-detection on next access."""
    global _current_theme
    _current_theme = None
