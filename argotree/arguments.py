r"""
Argotree argument declarations and their per-node collections.

Overview
- Declarations
  • Cardinal: positional, value-bearing argument (matched by position).
  • Option: named switch carrying a value, e.g. --timeout=30.
  • Flag: named, presence-only switch, e.g. --verbose.

- Collections (owned by exactly one Command)
  • SwitchGroup: declaration-ordered Options/Flags indexed by long and short name.
  • CardinalGroup: declaration-ordered Cardinals indexed by name.
  Both expose init(), the structural check run once by Application.init().

- Completion candidates
  • resolve_completions() returns an ordered, possibly empty list of legal value
    strings. An empty list means “free-form, not enumerable”.
  • User hints (static `hints` and/or a `hinter` callable) take precedence over the
    built-in candidates derived from `choices`.

Metadata (sanitized on construction)
- name: bare identifier, validated against r"[^\W\d_](-?[^\W_]+)*" (e.g. "dry-run").
- descr: Unset | str | Text (short help), non-empty when provided.
- choices: ordered iterable, duplicates rejected; Sets are sorted for stable order.
- hints: iterable of strings; hinter: callable returning an iterable of strings.
- short (Option/Flag): a single character.
- envar/noenvar (Option/Flag): explicit environment variable name, or opt-out from
  the application-wide default naming.
- required/default (Option/Cardinal): a required declaration cannot carry a default.
- remainder (Cardinal): consumes the rest of the line; must be the last cardinal.
- hidden: suppressed from completion.

Quick example:
    >>> from argotree.arguments import Cardinal, Option, Flag
    >>> Option("color", choices=("red", "green")).resolve_completions()
    ['red', 'green']
    >>> Option("timeout").resolve_completions()
    []
"""
import functools
import logging
import operator
import re
from collections.abc import Iterable, Set

from rich.text import Text

from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


class ArgumentType(type):
    """
    Metaclass that turns declarations into introspectable descriptors.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations for
      diagnostics.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.

            Example
            - option(name='timeout', short='t', ...)
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: normalize and validate metadata shared by every declaration.

    - name: required, stripped, must be a valid bare identifier.
    - descr: optional; if provided, must be a non-empty string (or rich Text).
    - hidden: coerced to bool.

    Mutates the provided metadata dict in place.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
        raise ValueError(f"{cls.__typename__} 'name' must be a valid shell-style name (unicodes are allowed)")
    metadata["name"] = name

    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)

    metadata["hidden"] = bool(metadata["hidden"])


def _sanitize_named_metadata(cls, metadata, /):
    """
    Internal: validate metadata for switches (Option, Flag).

    - short: Unset or a single non-dash, non-space character.
    - envar: Unset or a non-empty string; conflicts with noenvar.
    """
    if not isinstance(short := metadata["short"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'short' must be a string")
    elif isinstance(short, str) and (len(short) != 1 or short in "- \t"):
        raise ValueError(f"{cls.__typename__} 'short' must be a single character")
    metadata["short"] = coalesce(short)

    if not isinstance(envar := metadata["envar"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'envar' must be a string")
    elif isinstance(envar, str) and not (envar := envar.strip()):
        raise ValueError(f"{cls.__typename__} 'envar' cannot be empty")
    metadata["envar"] = coalesce(envar)

    metadata["noenvar"] = bool(metadata["noenvar"])
    if metadata["noenvar"] and metadata["envar"] is not None:
        raise TypeError(f"{cls.__typename__} cannot have both 'envar' and 'noenvar'")


def _sanitize_completion_metadata(cls, metadata, /):
    """
    Internal: validate the candidate sources of value-bearing declarations.

    - choices: iterable; duplicates rejected; Sets sorted for a stable order.
    - hints: iterable of strings (static completion hints).
    - hinter: Unset or a callable returning an iterable of strings.
    """
    if not isinstance(choices := metadata["choices"], Iterable) or isinstance(choices, str):
        raise TypeError(f"{cls.__typename__} 'choices' must be a non-string iterable")
    if isinstance(choices, Set):
        choices = sorted(choices, key=str)
    sanitized = []
    for choice in choices:
        if choice in sanitized:
            raise ValueError(f"{cls.__typename__} 'choices' cannot contain duplicates")
        sanitized.append(choice)
    metadata["choices"] = tuple(sanitized)

    if not isinstance(hints := metadata["hints"], Iterable) or isinstance(hints, str):
        raise TypeError(f"{cls.__typename__} 'hints' must be a non-string iterable")
    hints = tuple(hints)
    if not all(isinstance(hint, str) for hint in hints):
        raise TypeError(f"{cls.__typename__} 'hints' must contain strings")
    metadata["hints"] = hints

    if (hinter := metadata["hinter"]) is not Unset and not callable(hinter):
        raise TypeError(f"{cls.__typename__} 'hinter' must be callable")


def _resolve_completions(self):
    """
    Completion candidates of a value-bearing declaration.

    User hints replace the built-in candidates; choices are used otherwise.
    A failing hinter contributes nothing: completion runs mid-keystroke and
    must not raise.
    """
    if self._hints or self._hinter is not Unset:
        completions = list(self._hints)
        if self._hinter is not Unset:
            try:
                hinted = list(map(str, self._hinter()))
            except Exception:
                logger.debug("hinter of %s %r failed", self.__typename__, self.name, exc_info=True)
            else:
                completions.extend(hinted)
        return completions
    return list(map(str, self._choices))


class Cardinal(metaclass=ArgumentType):
    """
    Positional, value-bearing argument declaration.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes.
    """

    __introspectable__ = (
        "name",
        "descr",
        "required",
        "default",
        "remainder",
        "choices",
        "hints",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            descr=Unset,
            *,
            required=False,
            default=Unset,
            remainder=False,
            choices=(),
            hints=(),
            hinter=Unset,
            hidden=False,
    ):
        """
        Construct a Cardinal declaration.

        Parameters
        - name: str
          Identifier used in usage lines and lookups.
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        - required: bool
          Must be supplied; cannot follow an optional cardinal.
        - default: Any
          Value used when the cardinal is omitted. Unset means no default.
        - remainder: bool
          Consumes every remaining token; must be declared last.
        - choices / hints / hinter
          Completion candidate sources (see resolve_completions()).
        - hidden: bool
          Suppress from completion.
        """
        metadata = {
            "name": name,
            "descr": descr,
            "required": bool(required),
            "default": default,
            "remainder": bool(remainder),
            "choices": choices,
            "hints": hints,
            "hinter": hinter,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_completion_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    resolve_completions = _resolve_completions


class Option(metaclass=ArgumentType):
    """
    Named switch carrying a value (e.g. --timeout=30, -t 30).
    """

    __introspectable__ = (
        "name",
        "descr",
        "short",
        "required",
        "default",
        "envar",
        "noenvar",
        "choices",
        "hints",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            descr=Unset,
            *,
            short=Unset,
            required=False,
            default=Unset,
            envar=Unset,
            noenvar=False,
            choices=(),
            hints=(),
            hinter=Unset,
            hidden=False,
    ):
        """
        Construct an Option declaration.

        Parameters
        - name: str
          Long name without dashes ("timeout" is typed as --timeout).
        - descr: Unset | str | Text
          Short description. If Unset, becomes None.
        - short: Unset | str
          Single-character alias ("t" is typed as -t).
        - required / default
          A required option cannot declare a default.
        - envar / noenvar
          Explicit environment variable name, or opt-out from the default naming
          applied by SwitchGroup.init(envar_prefix).
        - choices / hints / hinter
          Completion candidate sources (see resolve_completions()).
        - hidden: bool
          Suppress from completion.
        """
        metadata = {
            "name": name,
            "descr": descr,
            "short": short,
            "required": bool(required),
            "default": default,
            "envar": envar,
            "noenvar": noenvar,
            "choices": choices,
            "hints": hints,
            "hinter": hinter,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)
        _sanitize_completion_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    resolve_completions = _resolve_completions


class Flag(metaclass=ArgumentType):
    """
    Named, presence-only switch (e.g. --verbose, -v).

    A Flag has no value, so it never offers completion candidates: once its
    name is typed there is nothing left to disambiguate.
    """

    __introspectable__ = (
        "name",
        "descr",
        "short",
        "required",
        "envar",
        "noenvar",
        "hidden",
    )

    def __new__(
            cls,
            name,
            /,
            descr=Unset,
            *,
            short=Unset,
            required=False,
            envar=Unset,
            noenvar=False,
            hidden=False,
    ):
        metadata = {
            "name": name,
            "descr": descr,
            "short": short,
            "required": bool(required),
            "envar": envar,
            "noenvar": noenvar,
            "hidden": hidden,
        }
        _sanitize_metadata(cls, metadata)
        _sanitize_named_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def resolve_completions(self):
        return []


def _check_required_default(declaration):
    if declaration.required and getattr(declaration, "default", Unset) is not Unset:
        typename = type(declaration).__typename__
        raise RequiredDefaultError(
            f"required {typename} {declaration.name!r} with default value that will never be used",
            code=FaultCode.REQUIRED_DEFAULT,
            title="required with default",
            hint=f"drop the default or make the {typename} optional",
            names=(declaration.name,),
        )


class SwitchGroup:
    """
    Declaration-ordered collection of the switches (Options and Flags) of one command.

    Lookups by long name work as soon as a switch is added; short names are indexed
    by init(), which also checks for duplicates and assigns default envar names.
    """

    def __init__(self):
        self._long = {}
        self._short = {}
        self._order = []

    def __iter__(self):
        return iter(self._order)

    def __len__(self):
        return len(self._order)

    def add(self, switch, /):
        if not isinstance(switch, Option | Flag):
            raise TypeError("switch group entries must be options or flags")
        self._long[switch.name] = switch
        self._order.append(switch)
        return switch

    def lookup(self, name, /):
        return self._long.get(name)

    def short(self, name, /):
        return self._short.get(name)

    def _check_duplicates(self):
        seen_long = set()
        seen_short = set()
        for switch in self._order:
            if switch.short is not None:
                if switch.short in seen_short:
                    raise DuplicateSwitchError(
                        f"duplicate short switch -{switch.short}",
                        code=FaultCode.DUPLICATE_SWITCH,
                        title="duplicate switch",
                        hint="give each switch its own short name",
                        names=(switch.short,),
                    )
                seen_short.add(switch.short)
            if switch.name in seen_long:
                raise DuplicateSwitchError(
                    f"duplicate long switch --{switch.name}",
                    code=FaultCode.DUPLICATE_SWITCH,
                    title="duplicate switch",
                    hint="give each switch its own long name",
                    names=(switch.name,),
                )
            seen_long.add(switch.name)

    def init(self, envar_prefix=None, /):
        """
        Validate the switches and wire their derived state.

        - Duplicate long or short names fail with DuplicateSwitchError.
        - With an envar_prefix, switches lacking an explicit envar (and not opted out)
          are named PREFIX_NAME (see envarize()).
        - A required switch with a default fails with RequiredDefaultError.
        """
        self._check_duplicates()
        for switch in self._order:
            if envar_prefix and not switch.noenvar and switch.envar is None:
                switch._envar = envarize(envar_prefix + "_" + switch.name)
                logger.debug("switch --%s reads from $%s", switch.name, switch._envar)
            _check_required_default(switch)
            if switch.short is not None:
                self._short[switch.short] = switch


class CardinalGroup:
    """
    Declaration-ordered collection of the positional arguments of one command.
    """

    def __init__(self):
        self._cardinals = {}
        self._order = []

    def __iter__(self):
        return iter(self._order)

    def __len__(self):
        return len(self._order)

    def __getitem__(self, index):
        return self._order[index]

    def add(self, cardinal, /):
        if not isinstance(cardinal, Cardinal):
            raise TypeError("cardinal group entries must be cardinals")
        self._cardinals[cardinal.name] = cardinal
        self._order.append(cardinal)
        return cardinal

    def lookup(self, name, /):
        return self._cardinals.get(name)

    def init(self):
        """
        Validate positional ordering.

        - A remainder cardinal must be the last one.
        - Names must be unique.
        - Required cardinals cannot follow optional ones, nor declare a default.
        """
        required = 0
        seen = set()
        last = None
        for index, cardinal in enumerate(self._order):
            if last is not None:
                raise CardinalOrderError(
                    f"remainder cardinal {last!r} can't be followed by another cardinal {cardinal.name!r}",
                    code=FaultCode.CARDINAL_ORDER,
                    title="misplaced cardinal",
                    hint="declare the remainder cardinal last",
                    names=(last, cardinal.name),
                )
            if cardinal.remainder:
                last = cardinal.name
            if cardinal.name in seen:
                raise DuplicateCardinalError(
                    f"duplicate cardinal {cardinal.name!r}",
                    code=FaultCode.DUPLICATE_CARDINAL,
                    title="duplicate cardinal",
                    hint="give each cardinal its own name",
                    names=(cardinal.name,),
                )
            seen.add(cardinal.name)
            if cardinal.required and required != index:
                raise CardinalOrderError(
                    f"required cardinal {cardinal.name!r} found after non-required",
                    code=FaultCode.CARDINAL_ORDER,
                    title="misplaced cardinal",
                    hint="declare required cardinals before optional ones",
                    names=(cardinal.name,),
                )
            if cardinal.required:
                required += 1
            _check_required_default(cardinal)


__all__ = (
    "Cardinal",
    "Option",
    "Flag",
    "SwitchGroup",
    "CardinalGroup",
)
