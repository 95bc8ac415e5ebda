"""
Argotree faults (structural errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every structural issue
  detected while validating a command tree. Codes are grouped by domain so
  logs and searches stay predictable.
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased and actionable way.
- trigger(): central entry point to surface any fault (respecting shell/fancy/colorful).
- getdoc(): optional description lookup for a code from the host application.

When faults happen
- Only at build time: Application.init() walks the tree once and raises the
  first violation it finds (multiple defaults are reported together).
- Completion never raises; an interactive shell must not see a hard failure
  while a user is mid-keystroke.

Integration
- Validation raises faults carrying code/title/hint/names options.
- Application.init() catches them and calls trigger(fault, **runtime options).
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via rich.
"""
import copy
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
    canonical fault codes used across the tree (stable identifiers).

    grouping (by high-level domain)
    - commands (2110x)
      • DUPLICATE_COMMAND, MULTIPLE_DEFAULTS, ORPHAN_DEFAULT, MIXED_CARDINALS
    - switches (2111x)
      • DUPLICATE_SWITCH
    - cardinals (2112x)
      • DUPLICATE_CARDINAL, CARDINAL_ORDER
    - shared declarations (2113x)
      • REQUIRED_DEFAULT, DELEGATED_ERROR

    spacing leaves room for future additions without reshuffling existing codes.
    """
    # --- command tree errors (21xxx) ---
    DUPLICATE_COMMAND           = 21101
    MULTIPLE_DEFAULTS           = 21102
    ORPHAN_DEFAULT              = 21103
    MIXED_CARDINALS             = 21104

    # --- switch errors (21xxx) ---
    DUPLICATE_SWITCH            = 21111

    # --- cardinal errors (21xxx) ---
    DUPLICATE_CARDINAL          = 21121
    CARDINAL_ORDER              = 21122

    # --- shared declaration errors (21xxx) ---
    REQUIRED_DEFAULT            = 21131
    DELEGATED_ERROR             = 21132

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    @property
    def code(self):
        return self.options.get("code")

    @property
    def names(self):
        return tuple(self.options.get("names", ()))

    def __str__(self):
        return str(self.message)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
            "docs": "underline #00E5FF dim",
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)
        fancy = self.options.get("fancy", False)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if not colorful:
                return Text(str(fragment))
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        tool = self.options.get("tool")
        prog = text(getattr(main, "__prog__", tool.name if tool is not None else "argotree"), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if code is not None else "?", styler("code")),
            " | ",
            text(self.options.get("title", "structural error").title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))
        if code is not None and (docs := getdoc(code)):
            renders.append(text(docs, styler("docs")))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left", width=console.width - 4)

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class DuplicateCommandError(CommandException): ...
class MultipleDefaultsError(CommandException): ...
class OrphanDefaultError(CommandException): ...
class MixedCardinalsError(CommandException): ...
class DuplicateSwitchError(CommandException): ...
class DuplicateCardinalError(CommandException): ...
class CardinalOrderError(CommandException): ...
class RequiredDefaultError(CommandException): ...
class DelegatedCommandError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - in shell mode, rendering happens via rich console; otherwise, exceptions are raised.

    typical options
    - tool, shell, fancy, colorful, title, code, hint, names.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


def getdoc(code, /):
    """
    optional documentation fetch for a fault code.

    the host application may expose a __docs__ mapping in __main__ where keys
    are FaultCode instances and values are short documentation strings.
    when not found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "DuplicateCommandError",
    "MultipleDefaultsError",
    "OrphanDefaultError",
    "MixedCardinalsError",
    "DuplicateSwitchError",
    "DuplicateCardinalError",
    "CardinalOrderError",
    "RequiredDefaultError",
    "DelegatedCommandError",
    "FaultCode",
    "trigger",
    "getdoc",
)
