"""
Switchboard command layer: sub-command registries and two-phase dispatch.

What this module provides
- CommandEntry: a named command, its description and its handler factory.
- SubCommandSet: resolves the first token to a command and runs its handler;
  falls back to an optional base handler for a missing or unknown command.
- Handler: base class for handlers written as explicit two-phase objects.
- invoke(target, prompt): convenience runner without the two-token shift.

Two-phase handlers
A handler factory is called once per dispatch and returns either

- a generator: the code before the first ``yield`` is the setup phase, the
  yielded OptionSet or SubCommandSet is the parse target, and the code after
  the ``yield`` runs once the target has parsed the remaining tokens::

      def build(commands):
          verbose = False

          def on_verbose():
              nonlocal verbose
              verbose = True

          yield OptionSet(("v|verbose", "talk more", on_verbose))
          run_build(verbose=verbose)

- or an object implementing ``__setup__() -> target`` and ``__teardown__()``
  (see Handler).

Dispatch sequence: create → setup (exactly one target) → target.parse(rest,
shift_first_two=False) → teardown exactly once (its value is ignored) →
close. A setup that produces nothing raises EmptyHandlerError; a target that
is neither an OptionSet nor a SubCommandSet raises InvalidTargetError.

Resolution
- The first remaining token is looked up as-is, then lower-cased when
  case_sensitive is off. A hit consumes the token.
- No token: base handler with command_not_found=False.
- Unknown token: base handler with command_not_found=True; the token is not
  consumed and reaches the base handler's target.
"""
import inspect
import logging as logmod
import sys
from abc import ABC, abstractmethod
from collections.abc import Sequence

from . import rendering
from .faults import *
from .options import OptionSet, _tokenize
from .utils import *

logging = logmod.getLogger(__name__)


class Handler(ABC):
    """
    Explicit two-phase handler.

    Subclasses build their parse target in __setup__ (usually an OptionSet
    whose callbacks write into attributes of self) and act on the parsed
    state in __teardown__.
    """

    @abstractmethod
    def __setup__(self):
        """
        Return the OptionSet or SubCommandSet that parses the remaining tokens.
        """

    def __teardown__(self):
        return None


def _phases(instance, /):
    """
    Internal: adapt a handler instance into (setup, teardown, close) callables.

    - generator: setup is the first next(), teardown the second (StopIteration
      and any produced value are ignored), close() finalizes the generator.
    - __setup__/__teardown__ object: the methods are used as-is.

    setup returns None when the handler produced no target.
    """
    if inspect.isgenerator(instance):
        def setup():
            try:
                return next(instance)
            except StopIteration:
                return None

        def teardown():
            try:
                next(instance)
            except StopIteration:
                pass

        return setup, teardown, instance.close

    if (
        hasattr(instance, "__setup__") and callable(instance.__setup__) and
        hasattr(instance, "__teardown__") and callable(instance.__teardown__)
    ):
        return instance.__setup__, instance.__teardown__, lambda: None

    raise TypeError("handler factories must return a generator or an object with __setup__ and __teardown__ methods")


class CommandEntry:
    """
    A registered command: name, description and handler factory.

    Calling the entry with the owning SubCommandSet creates a fresh handler.
    """

    name = mirror("name")
    description = mirror("description")
    factory = mirror("factory")

    def __init__(self, name, description, factory):
        self._name = name
        self._description = description
        self._factory = factory

    def __call__(self, dispatcher, /):
        return self._factory(dispatcher)

    def __repr__(self):
        return "%s(name=%r, description=%r)" % (type(self).__name__, self._name, self._description)


def _sanitize_command(declaration, /):
    """
    Internal: check the (name, description, factory) shape of one command.

    Raises
    - TypeError: wrong shape, non-string name/description, non-callable factory.
    - EmptyKeyError: the name is empty once trimmed.
    """
    if isinstance(declaration, str) or not isinstance(declaration, Sequence) or len(declaration) != 3:
        raise TypeError("command declarations must be (name, description, factory) triplets")
    name, description, factory = declaration
    if not isinstance(name, str):
        raise TypeError("command name must be a string")
    if not (name := name.strip()):
        raise EmptyKeyError(
            "command names cannot be empty",
            title="empty command name",
            code=FaultCode.EMPTY_KEY,
            hint="give every command a name",
            docs=getdoc(FaultCode.EMPTY_KEY),
        )
    if not isinstance(description, str):
        raise TypeError("command description for %r must be a string" % name)
    if not callable(factory):
        raise TypeError("command factory for %r must be callable" % name)
    return CommandEntry(name, description, factory)


class SubCommandSet:
    """
    Named commands dispatched through two-phase handlers.

    Constructor arguments (any order)
    - str: usage line (the last one wins)
    - callable: base handler factory, called as factory(commands, command_not_found);
      at most one
    - (name, description, factory): a command; factory is called as factory(commands)

    Configuration
    - case_sensitive (mutable, default True)
    - shell / colorful / fancy: fault and help presentation switches
    """

    usage = mirror("usage")
    base = mirror("base")
    commands = mirror("commands")

    def __init__(self, *arguments, case_sensitive=True, shell=False, colorful=True, fancy=False):
        self._usage = None
        self._base = None
        self._commands = {}

        for argument in arguments:
            if isinstance(argument, str):
                self._usage = argument
                continue
            if callable(argument):
                if self._base is not None:
                    raise TypeError("a sub command set accepts at most one base handler")
                self._base = argument
                continue
            entry = _sanitize_command(argument)
            if entry.name in self._commands:
                raise DuplicateCommandError(
                    "a sub command with the name %r already exists" % entry.name,
                    title="duplicated command",
                    code=FaultCode.DUPLICATED_COMMAND,
                    hint="each command name can be registered only once",
                    command=entry.name,
                    docs=getdoc(FaultCode.DUPLICATED_COMMAND),
                )
            self._commands[entry.name] = entry

        self.case_sensitive = bool(case_sensitive)
        self.shell = bool(shell)
        self.colorful = bool(colorful)
        self.fancy = bool(fancy)

    def trigger(self, fault, /, **options):
        trigger(fault, **options, shell=self.shell, fancy=self.fancy, colorful=self.colorful)

    def resolve(self, name, /):
        """
        Return the CommandEntry registered under name, or None.

        An exact match wins; otherwise the lower-cased name is tried when
        case_sensitive is off.
        """
        entry = self._commands.get(name)
        if entry is None and not self.case_sensitive:
            entry = self._commands.get(name.lower())
        return entry

    def _run(self, instance, tokens, /, *, command):
        setup, teardown, close = _phases(instance)
        try:
            target = setup()
            if target is None:
                return self.trigger(EmptyHandlerError(
                    "handler for %s did not yield an option set or a sub command set" % command,
                    title="empty handler",
                    code=FaultCode.EMPTY_HANDLER,
                    hint="yield an OptionSet or SubCommandSet before the post-parse logic",
                    command=command,
                    docs=getdoc(FaultCode.EMPTY_HANDLER),
                ))
            if not isinstance(target, OptionSet | SubCommandSet):
                return self.trigger(InvalidTargetError(
                    "handler for %s yielded %s instead of an option set or a sub command set" % (
                        command, type(target).__name__
                    ),
                    title="invalid parse target",
                    code=FaultCode.INVALID_TARGET,
                    hint="yield an OptionSet or SubCommandSet",
                    command=command,
                    target=target,
                    docs=getdoc(FaultCode.INVALID_TARGET),
                ))
            logging.debug("handing %d token(s) to %s of %s", len(tokens), type(target).__name__, command)
            target.parse(tokens, shift_first_two=False)
            teardown()
        finally:
            close()

    def _fallback(self, tokens, command_not_found, /):
        if self._base is None:
            logging.debug("no base handler, ignoring %d token(s)", len(tokens))
            return
        self._run(self._base(self, command_not_found), tokens, command="the base handler")

    def parse(self, tokens=Unset, /, shift_first_two=True):
        """
        Resolve the first token to a command and dispatch its two-phase handler.

        Parameters
        - tokens: Unset | str | Iterable[str]
          Unset reads the process arguments; a string is split shell-style.
        - shift_first_two: drop the first two tokens (executable and script)
          before resolving. Nested sets are parsed with False.
        """
        tokens = _tokenize(tokens, shift_first_two)

        if not tokens:
            logging.debug("no command given")
            return self._fallback(tokens, False)

        entry = self.resolve(tokens[0])
        if entry is None:
            logging.debug("unknown command %r", tokens[0])
            return self._fallback(tokens, True)

        logging.debug("dispatching command %r", entry.name)
        self._run(entry(self), tokens[1:], command="command %r" % entry.name)

    def __rich__(self):
        text = rendering.styler(self.colorful)
        rows = [(text(name, "command-name"), entry.description) for name, entry in self._commands.items()]
        return rendering.render(
            self._usage,
            rows,
            heading="Commands:",
            prefix="  ",
            colorful=self.colorful,
            fancy=self.fancy,
            title="COMMANDS",
        )

    def print_help(self, file=Unset, /):
        """
        Print the usage line and the command list to file (default stdout).
        """
        rendering.show(self.__rich__(), file)

    def __repr__(self):
        return "%s(usage=%r, commands=%r, case_sensitive=%r)" % (
            type(self).__name__, self._usage, list(self._commands), self.case_sensitive
        )


def invoke(target, prompt=Unset, /):
    """
    Parse a prompt with an OptionSet or SubCommandSet, without the two-token shift.

    Parameters
    - target: anything exposing parse(tokens, shift_first_two=...).
    - prompt:
      • Unset: read tokens from sys.argv[1:].
      • str: shell-like string, split via shlex.split.
      • Iterable[str]: pre-tokenized sequence.
    """
    if not hasattr(target, "parse") or not callable(target.parse):
        raise TypeError("invoke() first argument must provide a parse method")
    target.parse(sys.argv[1:] if prompt is Unset else prompt, shift_first_two=False)


__all__ = (
    "Handler",
    "CommandEntry",
    "SubCommandSet",
    "invoke",
)
