from __future__ import annotations
import sys
from enum import Enum, unique


_ansi_prefix = "\x1b["

ansi_color_enabled: bool = False


#
# Ansi colors
#


clear: str = f"{_ansi_prefix}0m"


@unique
class Color(Enum):
    """
    The basic ansi colors
    """

    black = 30
    red = 31
    green = 32
    yellow = 33
    blue = 34
    magenta = 35
    cyan = 36
    white = 37


BackgroundColor = unique(Enum("BackgroundColor", {i.name: (i.value + 10) for i in Color}))


#
# Functions
#


def color(c: Color | BackgroundColor, bright: bool):
    """
    Return the ansi prefix using the given code
    Bright may not be used with a BackgroundColor
    """
    if bright and isinstance(c, BackgroundColor):
        raise ValueError("Backgrounds should not be bright")
    return f"{_ansi_prefix}{c.value};1m" if bright else f"{_ansi_prefix}{c.value}m"


def setup_terminal():
    """
    Check if we are running in a TTY. If so, make sure the terminal supports ANSI escape sequences. If not, disable
    colorized output. Sets global `ansi_color_enabled` to True if colorized output should be enabled by default.
    """
    isatty = hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
    if sys.platform == "win32" and isatty:
        import colorama  # pylint:disable=import-outside-toplevel

        colorama.just_fix_windows_console()

    global ansi_color_enabled  # pylint:disable=global-statement
    ansi_color_enabled = isatty
    return ansi_color_enabled
