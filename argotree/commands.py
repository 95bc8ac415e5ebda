"""
Argotree command layer: declare a command tree, validate it once, answer completion queries.

What this module provides
- Command: one node of the tree. Owns its switches (SwitchGroup), its positional
  cardinals (CardinalGroup) and its child commands (CommandGroup); holds name,
  aliases, description, default/hidden marks, a validator hook and usage examples.
- CommandGroup: the declaration-ordered, name-indexed children of a node; resolves
  lookups by name or alias and performs the structural validation of the subtree.
- Application: the root node; carries runtime options (shell/fancy/colorful, envar
  naming) and runs the one-shot validation pass through init().
- Completion resolver:
  • Command.complete_position(context): what may be typed at the next position.
  • Command.complete_flag(name, value): complete a switch name, or the value of a
    fully typed switch, with a three-valued answer.

Lifecycle
- Build: Application(...) then repeated .command()/.option()/.flag()/.cardinal().
- Validate: app.init() walks the tree top-down exactly once, registering aliases and
  rejecting structural violations (see argotree.faults).
- Query: completion is pure, never mutates the tree and never raises.

Quick start
    from argotree import Application, ParseContext

    app = Application("app", "file tool")
    ls = app.command("list", "list things").alias("ls").mark_default()
    files = ls.command("files", "list files")
    files.option("color", choices=("red", "green"))
    files.flag("all", short="a")
    app.init()

    files.full_path                      # "app list files"
    files.complete_flag("color", "r")    # (['red', 'green'], True, False)
    ls.complete_position(ParseContext()) # ['files']

Design notes
- The parent link is a weakref.ref: ownership flows parent → child only, and the
  link is used for nothing but path reconstruction.
- Aliases are registered during validation, never on declaration, so the order in
  which siblings were declared cannot change whether a duplicate is detected.
- Completion results are returned in declaration order, without deduplication.
"""
import functools
import logging
import operator
import re
import weakref
from typing import NamedTuple

from rich.text import Text

from .arguments import Cardinal, Option, Flag, SwitchGroup, CardinalGroup
from .context import ClauseKind
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)


class Example(NamedTuple):
    usage: str
    descr: str | None = None


class FlagCompletion(NamedTuple):
    choices: list[str]
    flag_matched: bool
    option_unambiguous: bool


class CommandType(type):
    """
    Metaclass providing the introspection plumbing of command nodes.

    - __typename__ derived from the class name (camel-case split with hyphens).
    - mirrored read-only properties for every name listed in __introspectable__.
    - stable __repr__/__rich_repr__ restricted to __displayable__ when set.
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
            - command(name='list', descr='list things', ...)
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


def _sanitize_name(cls, name, /, what="name"):
    if not isinstance(name, str):
        raise TypeError(f"{cls.__typename__} {what!r} must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} {what!r} cannot be empty")
    elif not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", name):
        raise ValueError(f"{cls.__typename__} {what!r} must be a valid shell-style name (unicodes are allowed)")
    return name


def _sanitize_descr(cls, descr, /):
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


class CommandGroup:
    """
    Direct children of a command.

    Two views are kept: a mapping from name-or-alias to node (aliases point at the
    same node as its canonical name, once validated) and the declaration order, used
    whenever enumeration must be deterministic.
    """

    def __init__(self):
        self._commands = {}
        self._order = []

    def __iter__(self):
        return iter(self._order)

    def __len__(self):
        return len(self._order)

    def __contains__(self, name):
        return name in self._commands

    def add(self, name, descr=Unset, /, parent=None):
        """
        Create a command, register it under its name and append it to the order.

        parent, when given, becomes the (weak) back-reference of the new node.
        """
        command = Command(name, descr)
        if parent is not None:
            command._parent = weakref.ref(parent)
        self._commands[command.name] = command
        self._order.append(command)
        return command

    def lookup(self, name, /):
        """
        Return the command registered under the exact name or alias, or None.

        Aliases only resolve after validation.
        """
        return self._commands.get(name)

    def default(self):
        for command in self._order:
            if command.is_default:
                return command
        return None

    def names(self):
        return [command.name for command in self._order]

    def flatten(self):
        """
        Every leaf command below this group, in declaration order, depth-first.

        Interior commands are skipped, their descendants are not.
        """
        leaves = []
        for command in self._order:
            if not command._commands:
                leaves.append(command)
            leaves.extend(command._commands.flatten())
        return leaves

    def validate(self, envar_prefix=None, /, *, pending=None):
        """
        Validate this group and, recursively, every command below it.

        Order of checks
        - a default child requires a non-empty group;
        - per child, in declaration order: its name and aliases must not repeat any
          name seen so far, then the child validates itself;
        - after the pass, more than one default child fails naming all of them.

        Aliases only become resolvable once validation succeeds. Without `pending`
        they are registered at the end of this group's pass; with it, the
        registrations of the whole subtree are appended there for the caller to
        apply through register().

        The default child also receives the group's names as completion alternatives.
        """
        owner = pending is None
        if owner:
            pending = []
        seen = set()
        if (default := self.default()) is not None and not self:
            raise OrphanDefaultError(
                f"default subcommand {default.name!r} provided but no subcommands defined",
                code=FaultCode.ORPHAN_DEFAULT,
                title="orphan default",
                hint="declare the default among sibling commands",
                names=(default.name,),
            )
        defaults = []
        for command in self._order:
            if command.is_default:
                defaults.append(command.name)
            for name in (command.name, *command.aliases):
                if name not in seen:
                    seen.add(name)
                    continue
                if name == command.name:
                    message = f"duplicate command {name!r}"
                else:
                    message = f"alias duplicates existing command {name!r}"
                raise DuplicateCommandError(
                    message,
                    code=FaultCode.DUPLICATE_COMMAND,
                    title="duplicate command",
                    hint="rename one of the commands or drop the clashing alias",
                    names=(name,),
                )
            pending.extend((self, alias, command) for alias in command.aliases)
            command._init(envar_prefix, pending)
        if len(defaults) > 1:
            raise MultipleDefaultsError(
                "more than one default subcommand exists: %s" % ", ".join(defaults),
                code=FaultCode.MULTIPLE_DEFAULTS,
                title="multiple defaults",
                hint="mark a single sibling as default",
                names=tuple(defaults),
            )
        if default is not None:
            default._completion_alts = self.names()
        if owner:
            self.register(pending)

    @staticmethod
    def register(pending, /):
        """
        Make validated aliases resolvable through lookup().
        """
        for group, alias, command in pending:
            logger.debug("alias %r registered for %s", alias, command.full_path)
            group._commands[alias] = command


class Command(metaclass=CommandType):
    """
    One node of the command tree.

    Ownership
    - exclusively owns one SwitchGroup, one CardinalGroup and one CommandGroup
      (and, through the latter, every descendant);
    - holds a weak, non-owning reference to its parent for path reconstruction.

    Invariants (checked by validation)
    - a command may declare cardinals or subcommands, never both;
    - sibling names and aliases are unique; at most one sibling is default.
    """

    __introspectable__ = (
        "name",
        "descr",
        "aliases",
        "is_default",
        "hidden",
        "completion_alts",
    )

    __displayable__ = (
        "name",
        "descr",
        "aliases",
        "is_default",
        "hidden",
        "children",
    )

    def __new__(cls, name, descr=Unset, /):
        self = super().__new__(cls)
        self._name = _sanitize_name(cls, name)
        self._descr = _sanitize_descr(cls, descr)
        self._aliases = []
        self._examples = []
        self._is_default = False
        self._hidden = False
        self._validator = Unset
        self._completion_alts = []
        self._parent = None
        self._switches = SwitchGroup()
        self._cardinals = CardinalGroup()
        self._commands = CommandGroup()
        return self

    @property
    def parent(self):
        return self._parent() if self._parent is not None else None

    @property
    def root(self):
        """
        Return the topmost command of the hierarchy.
        """
        child, parent = self, self.parent
        while parent is not None:
            child, parent = parent, parent.parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from root to this command as a tuple.
        """
        path = [command := self]
        while (command := command.parent) is not None:
            path.append(command)
        return tuple(reversed(path))

    @property
    def full_path(self):
        """
        Space-joined canonical names from the root to this command, e.g. "app list files".
        """
        return " ".join(command.name for command in self.path)

    @property
    def examples(self):
        return tuple(self._examples)

    @property
    def validator(self):
        return coalesce(self._validator)

    @property
    def children(self):
        return {command.name: command for command in self._commands}

    @property
    def commands(self):
        return self._commands

    @property
    def switches(self):
        return list(self._switches)

    @property
    def cardinals(self):
        return list(self._cardinals)

    def command(self, name, descr=Unset, /):
        """
        Declare a subcommand and return it for further configuration.
        """
        return self._commands.add(name, descr, parent=self)

    def alias(self, name, /):
        """
        Add an alternate name. Clashes are only detected by validation.
        """
        self._aliases.append(_sanitize_name(type(self), name, "alias"))
        return self

    def mark_default(self):
        """
        Make this command the one selected when no sibling is named explicitly.
        """
        self._is_default = True
        return self

    def mark_hidden(self):
        """
        Suppress this command from completion.
        """
        self._hidden = True
        return self

    def set_validator(self, validator, /):
        """
        Register a hook run by verify(); it receives this command and raises on failure.
        """
        if not callable(validator):
            raise TypeError(f"{type(self).__typename__} 'validator' must be callable")
        self._validator = validator
        return self

    def example(self, usage, descr=Unset, /):
        self._examples.append(Example(_sanitize_descr(type(self), usage), _sanitize_descr(type(self), descr)))
        return self

    def option(self, *args, **kwargs):
        return self._switches.add(Option(*args, **kwargs))

    def flag(self, *args, **kwargs):
        return self._switches.add(Flag(*args, **kwargs))

    def cardinal(self, *args, **kwargs):
        return self._cardinals.add(Cardinal(*args, **kwargs))

    def get_switch(self, name, /):
        return self._switches.lookup(name)

    def get_cardinal(self, name, /):
        return self._cardinals.lookup(name)

    def get_command(self, name, /):
        return self._commands.lookup(name)

    def validate_structure(self):
        """
        Fail when this command declares both cardinals and subcommands.
        """
        if self._cardinals and self._commands:
            raise MixedCardinalsError(
                f"{self.full_path!r} can't mix cardinals with commands",
                code=FaultCode.MIXED_CARDINALS,
                title="mixed cardinals",
                hint="move the cardinals into a subcommand",
                names=(self.name,),
            )

    def _init(self, envar_prefix=None, pending=None):
        logger.debug("validating %s", self.full_path)
        self._switches.init(envar_prefix)
        self.validate_structure()
        self._cardinals.init()
        self._commands.validate(envar_prefix, pending=pending)

    def verify(self):
        """
        Run the validator hook, if any, on behalf of the parse driver.

        Faults raised by the hook propagate untouched; any other exception is wrapped
        into a DelegatedCommandError naming this command.
        """
        if self._validator is Unset:
            return
        try:
            self._validator(self)
        except CommandException:
            raise
        except Exception as error:
            raise DelegatedCommandError(
                str(error),
                code=FaultCode.DELEGATED_ERROR,
                title="validation failed",
                hint=f"check the arguments given to {self.full_path!r}",
                names=(self.name,),
            ) from error

    def complete_position(self, context, /):
        """
        Candidates for the next positional token.

        Cardinals with a captured value count as satisfied; commands found in the
        context contribute their completion alternatives to a side pool. If this
        command still has an unsatisfied cardinal, its candidates are returned,
        otherwise the names of the visible subcommands. The side pool is appended
        in both cases.
        """
        satisfied = 0
        alternatives = []
        for element in context:
            match element.kind:
                case ClauseKind.CARDINAL:
                    if element.value:
                        satisfied += 1
                case ClauseKind.COMMAND if isinstance(element.clause, Command):
                    alternatives.extend(element.clause.completion_alts)
                case _:
                    pass

        if satisfied < len(self._cardinals):
            options = self._cardinals[satisfied].resolve_completions()
        else:
            options = [command.name for command in self._commands if not command.hidden]
        return options + alternatives

    def complete_flag(self, name, value, /):
        """
        Complete either a switch name or the value of a switch.

        When `name` is exactly a declared switch, its value candidates are returned
        with flag_matched set; option_unambiguous is true when there is nothing left
        to choose (a free-form switch, or `value` equals a candidate and prefixes no
        other). Otherwise every visible switch is offered as "--name".
        """
        options = []
        for switch in self._switches:
            if switch.name == name:
                options = switch.resolve_completions()
                if not options:
                    return FlagCompletion(options, True, True)
                matched = prefixed = False
                for option in options:
                    if value == option:
                        matched = True
                    elif option.startswith(value):
                        prefixed = True
                return FlagCompletion(options, True, matched and not prefixed)
            if not switch.hidden:
                options.append("--" + switch.name)
        return FlagCompletion(options, False, False)


class Application(Command):
    """
    Root of a command tree.

    Runtime options
    - shell: render faults with rich and exit(1) instead of raising them.
    - fancy: wrap rendered faults in a panel.
    - colorful: style rendered faults (styles overridable via __styles__ in __main__).
    - envar_prefix / default_envars: name switch environment variables PREFIX_NAME;
      default_envars uses the application name as prefix.
    """

    __displayable__ = (
        "name",
        "descr",
        "children",
        "shell",
        "fancy",
        "colorful",
    )

    def __new__(
            cls,
            name,
            descr=Unset,
            /,
            *,
            envar_prefix=Unset,
            default_envars=False,
            shell=False,
            fancy=False,
            colorful=False,
    ):
        self = super().__new__(cls, name, descr)
        if not isinstance(envar_prefix, str | Unset):
            raise TypeError(f"{cls.__typename__} 'envar_prefix' must be a string")
        elif isinstance(envar_prefix, str) and not (envar_prefix := envar_prefix.strip()):
            raise ValueError(f"{cls.__typename__} 'envar_prefix' cannot be empty")
        if envar_prefix is Unset and default_envars:
            envar_prefix = self.name
        self._envar_prefix = coalesce(envar_prefix)
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._initialized = False
        return self

    envar_prefix = mirror("envar_prefix")
    shell = mirror("shell")
    fancy = mirror("fancy")
    colorful = mirror("colorful")
    initialized = mirror("initialized")

    def trigger(self, fault, /, **options):
        """
        Surface a fault with this application's runtime options.
        """
        trigger(fault, **{
            "tool": self,
            "shell": self.shell,
            "fancy": self.fancy,
            "colorful": self.colorful,
        } | options)

    def init(self):
        """
        Validate the whole tree once; later calls are no-ops.

        Structural faults are routed through trigger(): raised in non-shell mode,
        rendered to stderr followed by exit(1) in shell mode.
        """
        if self._initialized:
            return self
        logger.debug("initializing %s", self.name)
        pending = []
        try:
            self._init(self.envar_prefix, pending)
        except CommandException as fault:
            self.trigger(fault)
        CommandGroup.register(pending)
        self._initialized = True
        return self


__all__ = (
    "Example",
    "FlagCompletion",
    "CommandGroup",
    "Command",
    "Application",
)
