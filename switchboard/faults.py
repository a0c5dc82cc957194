"""
Switchboard faults (errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every fault, grouped by domain.
- CommandException: base type carrying a message plus read-only options
  (title, code, hint and context) that knows how to render itself with rich.
- ConfigurationError: raised while an OptionSet or SubCommandSet is being
  declared (duplicate keys, mixed alias kinds, bad placeholders, ...).
- DispatchError: raised while a SubCommandSet runs a two-phase handler that
  does not hand back a parse target.
- trigger(): central entry point to surface a fault, respecting shell mode.
- getdoc(): optional description lookup for a code from the host application.

Posture
- Fail fast on misconfiguration, be lenient on unrecognized input: unmatched
  tokens never produce a fault.
- Outside shell mode faults are raised; in shell mode they are printed to
  stderr through rich and the process exits with status 1.
"""
import os.path
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - configuration (1110x/1111x): raised at declaration time
      • EMPTY_KEY, DUPLICATED_KEY, KIND_MISMATCH, MISSING_PLACEHOLDER,
        DUPLICATED_COMMAND
    - dispatch (1112x): raised while running a two-phase handler
      • EMPTY_HANDLER, INVALID_TARGET
    """
    # --- option declaration errors (1110x) ---
    EMPTY_KEY                   = 11101
    DUPLICATED_KEY              = 11102
    KIND_MISMATCH               = 11103
    MISSING_PLACEHOLDER         = 11104

    # --- command declaration errors (1111x) ---
    DUPLICATED_COMMAND          = 11111

    # --- dispatch errors (1112x) ---
    EMPTY_HANDLER               = 11121
    INVALID_TARGET              = 11122

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _program():
    main = __import__("__main__")
    return getattr(main, "__prog__", os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "switchboard")


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",

            # body
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        } | getattr(main, "__styles__", {}))

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            return Text(str(fragment), styles[style])

        code = self.options.get("code")
        header = Text.assemble(
            "[ ",
            text(_program(), "prog-name"),
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "?", "code"),
            " | ",
            text(str(self.options.get("title", type(self).__name__)).title(), "error-title"),
            " ]"
        )
        message = text(self.message, "error-message")
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(hint, "hint")))

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class ConfigurationError(CommandException, ValueError): ...
class EmptyKeyError(ConfigurationError): ...
class DuplicateKeyError(ConfigurationError): ...
class KindMismatchError(ConfigurationError): ...
class MissingPlaceholderError(ConfigurationError): ...
class DuplicateCommandError(ConfigurationError): ...


class DispatchError(CommandException, RuntimeError): ...
class EmptyHandlerError(DispatchError): ...
class InvalidTargetError(DispatchError): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - typical options: shell, fancy, colorful, title, code, hint and any context
      the renderer may want to show (command, target, ...).
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    fault.__replace__(**options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ keyed by
    FaultCode; returns None when no entry exists.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "ConfigurationError",
    "EmptyKeyError",
    "DuplicateKeyError",
    "KindMismatchError",
    "MissingPlaceholderError",
    "DuplicateCommandError",
    "DispatchError",
    "EmptyHandlerError",
    "InvalidTargetError",
    "FaultCode",
    "trigger",
    "getdoc",
)
