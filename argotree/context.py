"""
Argotree parse context: the record of what the parse driver already consumed.

The token lexer and the parse driver live outside this package; they report every
consumed element here, tagged with the kind of declaration that produced it. The
completion resolver reads the context (never mutates it) to decide what comes next.

Elements
- ClauseKind.CARDINAL: a positional value matched against a Cardinal.
- ClauseKind.COMMAND: a command (explicit or implicit default) that was entered.
- ClauseKind.SWITCH: an Option or Flag, with its captured value if any.
"""
from enum import Enum
from typing import NamedTuple


class ClauseKind(Enum):
    CARDINAL = "cardinal"
    COMMAND = "command"
    SWITCH = "switch"


class ParseElement(NamedTuple):
    kind: ClauseKind
    clause: object
    value: str | None = None


class ParseContext:
    """
    Ordered sequence of consumed elements.

    The matched_* methods are the only way elements get in, so the clause kind
    is always stated explicitly by the caller rather than guessed from the clause.
    """

    def __init__(self, elements=()):
        self._elements = []
        for element in elements:
            if not isinstance(element, ParseElement):
                raise TypeError("parse context elements must be parse-elements")
            self._elements.append(element)

    @property
    def elements(self):
        return tuple(self._elements)

    def __iter__(self):
        return iter(self._elements)

    def __len__(self):
        return len(self._elements)

    def __repr__(self):
        return f"parse-context({self._elements!r})"

    def matched_cardinal(self, cardinal, value=None, /):
        self._elements.append(ParseElement(ClauseKind.CARDINAL, cardinal, value))
        return self

    def matched_command(self, command, /):
        self._elements.append(ParseElement(ClauseKind.COMMAND, command))
        return self

    def matched_switch(self, switch, value=None, /):
        self._elements.append(ParseElement(ClauseKind.SWITCH, switch, value))
        return self


__all__ = (
    "ClauseKind",
    "ParseElement",
    "ParseContext",
)
