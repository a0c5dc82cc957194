"""
Help rendering shared by OptionSet and SubCommandSet.

Layout
- optional usage line
- optional heading (e.g. "Commands:"), preceded by a blank line
- one row per entry: prefix + names padded to PADDING columns + one space +
  description. Names as wide as the column push the description to the next
  line, aligned with the description column.

Palette keys
- usage-section, heading, flag-name, field-name, rest-name, placeholder,
  command-name, description, panel-title

Customization
- Define a mapping named __styles__ in __main__ to override palette entries.
- When colorful is False, no style is applied.
"""
import sys
from collections import defaultdict

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

PADDING = 29


def styler(colorful, /):
    """
    Build a text(fragment, style) helper bound to the current palette.

    The returned helper always yields a rich Text; in non-colorful mode the
    style is dropped.
    """
    styles = defaultdict(str, {
        "usage-section": "bold #36C5F0",
        "heading": "bold #FFFFFF",

        "flag-name": "bold #22C55E",
        "field-name": "bold #00E6FF",
        "rest-name": "bold #A78BFA",
        "placeholder": "bold #FFD600",
        "command-name": "bold #36C5F0",

        "description": "#9CA3AF",
        "panel-title": "bold #FF4D94",
    } | getattr(__import__("__main__"), "__styles__", {}))

    def text(fragment, style=""):
        if isinstance(fragment, Text):
            return fragment if colorful else Text(fragment.plain)
        return Text(str(fragment), styles[style] if colorful else "")

    return text


def render(usage, rows, /, *, heading=Unset, prefix="- ", colorful=True, fancy=False, title=""):
    """
    Assemble the help renderable.

    Parameters
    - usage: str | None, printed first when present.
    - rows: iterable of (Text names, str description) pairs in display order.
    - heading: optional section label printed above the rows.
    - prefix: leading text of every row.
    - colorful / fancy: palette and Panel chrome switches.
    - title: Panel title used when fancy is True.
    """
    text = styler(colorful)
    renders = []

    if usage is not None:
        renders.append(text(usage, "usage-section"))

    if heading is not Unset:
        renders.append(Text(""))
        renders.append(text(heading, "heading"))

    column = len(prefix) + PADDING + 1
    for names, description in rows:
        line = Text(prefix)
        line.append_text(names)
        if len(names) >= PADDING:
            line.append("\n").append(" " * column)
        else:
            line.append(" " * (PADDING - len(names) + 1))
        line.append_text(text(description, "description"))
        renders.append(line)

    renderable = Group(*renders)
    if fancy:
        renderable = Panel(
            renderable,
            title=text(title, "panel-title") if title else None,
            title_align="left",
        )
    return renderable


def show(renderable, file=Unset, /):
    """
    Print a renderable to file (a text stream) or stdout, without re-wrapping rows.
    """
    console = Console(file=file if file is not Unset else sys.stdout)
    console.print(renderable, soft_wrap=True)


__all__ = ()
