r"""
Switchboard option sets: declaration, key normalization and parsing.

Overview
- OptionKind: FLAG (presence only), FIELD (takes the next token), REST
  (catch-all for tokens that match nothing).
- OptionDefinition: one logical option, its aliases and its bound callback.
- OptionSet: ordered definitions plus the parse loop.

Declaration grammar
    OptionSet(
        "usage: tool [options] <files>",                        # usage line
        ("v|verbose", "print more", on_verbose),                # flag
        ("o=|output=", "write to {path}", on_output),           # field
        ("<>", "input files", on_file),                         # rest
    )

- Aliases are "|"-separated and trimmed. The first alias decides the kind:
  a trailing "=" makes a FIELD, otherwise a FLAG; every other alias must agree.
- FIELD descriptions carry exactly one {placeholder}; the braces are removed
  from the stored description and the word is kept for help output.
- Keys (aliases without "=", plus "<>") are unique across the whole set.

Matching
- A token is turned into a key by normalize():
  • strict (default): "--" needs two or more characters after it, "-" exactly one.
  • non-strict: any dash prefix is accepted.
  • the "--" rule is tried first; the "-" rule only runs when it did not fire.
  • case_sensitive=False lower-cases the key (and the declared keys at comparison).
- Tokens without a leading dash never match a declaration.
- First matching definition wins. A FIELD without a following token does not
  fire; that token is handed to the rest callback instead.
- Unmatched tokens go to the rest callback, or are dropped when there is none.

Quick example
    >>> seen = []
    >>> options = OptionSet(("v|verbose", "talk", lambda: seen.append("v")))
    >>> options.parse(["-v", "x"], shift_first_two=False)
    >>> seen
    ['v']
"""
import logging as logmod
import re
import shlex
import sys
from collections.abc import Iterable, Sequence
from enum import IntEnum

from rich.text import Text

from . import rendering
from .faults import *
from .utils import *

logging = logmod.getLogger(__name__)

REST_KEY = "<>"
_PLACEHOLDER = re.compile(r"\{(\w+)\}")


class OptionKind(IntEnum):
    FLAG = 0
    FIELD = 1
    REST = 2


class OptionDefinition:
    """
    One declared option.

    Properties (read-only)
    - kind: OptionKind
    - keys: tuple[str, ...] aliases as matched (FIELD keys have no "=")
    - placeholder: str | None, the {word} of a FIELD description
    - description: str, braces already stripped for FIELD

    Calling the definition forwards to its callback: no argument for FLAG,
    one string for FIELD and REST.
    """

    __introspectable__ = (
        "kind",
        "keys",
        "placeholder",
        "description",
    )

    kind = mirror("kind")
    keys = mirror("keys")
    placeholder = mirror("placeholder")
    description = mirror("description")

    def __init__(self, kind, keys, description, callback, placeholder=None):
        self._kind = OptionKind(kind)
        self._keys = tuple(keys)
        self._description = description
        self._callback = callback
        self._placeholder = placeholder

    def __call__(self, *values):
        return self._callback(*values)

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return "%s(%s)" % (
            type(self).__name__,
            ", ".join("%s=%r" % pair for pair in self.__rich_repr__()),
        )

    def forms(self):
        """
        Help forms of the keys as (name, placeholder) pairs.

        Names are -x / --xyz, or <> for the rest; the placeholder is None
        except for fields.
        """
        if self._kind is OptionKind.REST:
            return [(REST_KEY, None)]
        return [(("-" if len(key) == 1 else "--") + key, self._placeholder) for key in self._keys]

    def display(self):
        """
        Help forms of the keys: -x / --xyz, with =placeholder for fields, <> for the rest.
        """
        return [name if placeholder is None else name + "=" + placeholder for name, placeholder in self.forms()]


def _sanitize_declaration(declaration, /):
    """
    Internal: check the (key, description, callback) shape of one declaration.

    Raises
    - TypeError: when the declaration is not a 3-item sequence, the key or the
      description is not a string, or the callback is not callable.
    """
    if isinstance(declaration, str) or not isinstance(declaration, Sequence) or len(declaration) != 3:
        raise TypeError("option declarations must be (key, description, callback) triplets")
    key, description, callback = declaration
    if not isinstance(key, str):
        raise TypeError("option key must be a string")
    if not isinstance(description, str):
        raise TypeError("option description for %r must be a string" % key)
    if not callable(callback):
        raise TypeError("option callback for %r must be callable" % key)
    return key, description, callback


def _claim(seen, key, /):
    """
    Internal: reserve a key in the set-wide registry or fail on a repeat.
    """
    if key in seen:
        raise DuplicateKeyError(
            "an option with the key %r already exists" % key,
            title="duplicated key",
            code=FaultCode.DUPLICATED_KEY,
            hint="each key can be declared only once per option set",
            key=key,
            docs=getdoc(FaultCode.DUPLICATED_KEY),
        )
    seen.add(key)


def _sanitize_keys(source, seen, /):
    """
    Internal: split an alias list, decide its kind and reserve its keys.

    The kind comes from the first alias (trailing "=" → FIELD). Aliases are
    checked in order, so the first offending alias is the one reported.

    Raises
    - KindMismatchError: an alias disagrees with the first alias' kind.
    - EmptyKeyError: an alias is empty once trimmed (and stripped of "=").
    - DuplicateKeyError: a key is already declared in the set.
    """
    aliases = [alias.strip() for alias in source.split("|")]
    kind = OptionKind.FIELD if aliases[0].endswith("=") else OptionKind.FLAG

    keys = []
    for alias in aliases:
        if kind is OptionKind.FIELD and not alias.endswith("="):
            raise KindMismatchError(
                "option type cannot be changed after the first key, change %r with %r" % (alias, alias + "="),
                title="mixed option kinds",
                code=FaultCode.KIND_MISMATCH,
                hint="every alias of a field must end with '='",
                key=alias,
                docs=getdoc(FaultCode.KIND_MISMATCH),
            )
        if kind is OptionKind.FLAG and alias.endswith("="):
            raise KindMismatchError(
                "option type cannot be changed after the first key, change %r with %r" % (alias, alias.rstrip("=")),
                title="mixed option kinds",
                code=FaultCode.KIND_MISMATCH,
                hint="aliases of a flag cannot end with '='",
                key=alias,
                docs=getdoc(FaultCode.KIND_MISMATCH),
            )
        key = alias[:-1] if kind is OptionKind.FIELD else alias
        if not key:
            raise EmptyKeyError(
                "option declaration %r contains an empty key" % source,
                title="empty key",
                code=FaultCode.EMPTY_KEY,
                hint="remove the stray '|' or give the alias a name",
                key=source,
                docs=getdoc(FaultCode.EMPTY_KEY),
            )
        _claim(seen, key)
        keys.append(key)

    return kind, keys


def _sanitize_placeholder(source, description, /):
    """
    Internal: extract the single {word} placeholder of a field description.

    Returns (placeholder, description-without-braces).
    """
    matches = _PLACEHOLDER.findall(description)
    if len(matches) != 1:
        raise MissingPlaceholderError(
            "field %r needs exactly one keyword defined with braces, found %d" % (source, len(matches)),
            title="missing placeholder",
            code=FaultCode.MISSING_PLACEHOLDER,
            hint="describe the value with braces, e.g. 'the {path} of the output'",
            key=source,
            docs=getdoc(FaultCode.MISSING_PLACEHOLDER),
        )
    return matches[0], _PLACEHOLDER.sub(r"\1", description, count=1)


def _tokenize(prompt, shift_first_two, /):
    """
    Internal: turn a prompt into a fresh list of tokens.

    - Unset: [sys.executable, *sys.argv], so the two-token shift drops the
      interpreter and the script.
    - str: split with shlex.split.
    - Iterable[str]: copied as-is (the caller's sequence is never mutated).
    """
    if prompt is Unset:
        tokens = [sys.executable, *sys.argv]
    elif isinstance(prompt, str):
        tokens = shlex.split(prompt)
    elif isinstance(prompt, Iterable):
        tokens = list(prompt)
        for token in tokens:
            if not isinstance(token, str):
                raise TypeError("parse() argument must be a string or an iterable of strings")
    else:
        raise TypeError("parse() argument must be a string or an iterable of strings")

    if shift_first_two:
        del tokens[:2]
    return tokens


class OptionSet:
    """
    Ordered option definitions and the parse loop that drives their callbacks.

    Configuration
    - strict (mutable, default True): GNU-style prefixes, "-x" and "--xyz".
    - case_sensitive (mutable, default True): fold keys to lower case when False.
    - colorful / fancy: help presentation switches.

    The definition list is fixed at construction; parse() may run any number
    of times and keeps no state between runs.
    """

    usage = mirror("usage")
    definitions = mirror("definitions")

    def __init__(self, *arguments, strict=True, case_sensitive=True, colorful=True, fancy=False):
        self._usage = None
        self._definitions = []

        seen = set()
        for argument in arguments:
            if isinstance(argument, str):
                # Later usage strings replace earlier ones.
                self._usage = argument
                continue

            source, description, callback = _sanitize_declaration(argument)
            if source.strip() == REST_KEY:
                _claim(seen, REST_KEY)
                definition = OptionDefinition(OptionKind.REST, (REST_KEY,), description, callback)
            else:
                kind, keys = _sanitize_keys(source, seen)
                placeholder = None
                if kind is OptionKind.FIELD:
                    placeholder, description = _sanitize_placeholder(source, description)
                definition = OptionDefinition(kind, keys, description, callback, placeholder)
            self._definitions.append(definition)

        self.strict = bool(strict)
        self.case_sensitive = bool(case_sensitive)
        self.colorful = bool(colorful)
        self.fancy = bool(fancy)

    @property
    def rest(self):
        """
        The REST definition, or None when the set has no catch-all.
        """
        for definition in self._definitions:
            if definition.kind is OptionKind.REST:
                return definition
        return None

    def normalize(self, token):
        """
        Map a raw token to a key comparable with the declared keys.

        "--" is stripped when strict is off or more than one character follows;
        otherwise "-" is stripped when strict is off or exactly one character
        follows; otherwise the token is kept. The result is lower-cased when
        case_sensitive is off.
        """
        if not isinstance(token, str):
            raise TypeError("normalize() argument must be a string")
        key = token[self._prefix(token):]
        return key if self.case_sensitive else key.lower()

    def _prefix(self, token):
        # Length of the dash prefix normalize() strips, 0 when no rule fires.
        if token.startswith("--") and (not self.strict or len(token) > 3):
            return 2
        if token.startswith("-") and (not self.strict or len(token) == 2):
            return 1
        return 0

    def _match(self, token):
        if not self._prefix(token):
            return None
        key = self.normalize(token)
        for definition in self._definitions:
            if definition.kind is OptionKind.REST:
                continue
            keys = definition.keys if self.case_sensitive else [alias.lower() for alias in definition.keys]
            if key in keys:
                return definition
        return None

    def parse(self, tokens=Unset, /, shift_first_two=True):
        """
        Scan tokens left to right and fire the callbacks of matching definitions.

        Parameters
        - tokens: Unset | str | Iterable[str]
          Unset reads the process arguments; a string is split shell-style.
        - shift_first_two: drop the first two tokens (executable and script)
          before scanning. Nested parsers are called with False.

        Returns None; everything happens through callbacks.
        """
        tokens = _tokenize(tokens, shift_first_two)
        rest = self.rest
        logging.debug("parsing %d token(s) against %d option(s)", len(tokens), len(self._definitions))

        index = 0
        while index < len(tokens):
            token = tokens[index]
            definition = self._match(token)

            if definition is not None and definition.kind is OptionKind.FIELD:
                if index + 1 < len(tokens):
                    logging.debug("field %r takes %r", token, tokens[index + 1])
                    definition(tokens[index + 1])
                    index += 2
                    continue
                logging.debug("field %r has no value, handing it to the rest", token)
            elif definition is not None:
                logging.debug("flag %r", token)
                definition()
                index += 1
                continue

            if rest is not None:
                rest(token)
            else:
                logging.debug("dropping unmatched token %r", token)
            index += 1

    def __rich__(self):
        text = rendering.styler(self.colorful)
        styles = {
            OptionKind.FLAG: "flag-name",
            OptionKind.FIELD: "field-name",
            OptionKind.REST: "rest-name",
        }

        rows = []
        for definition in self._definitions:
            names = []
            for name, placeholder in definition.forms():
                segment = text(name, styles[definition.kind])
                if placeholder is not None:
                    segment.append_text(Text("="))
                    segment.append_text(text(placeholder, "placeholder"))
                names.append(segment)
            rows.append((Text(", ").join(names), definition.description))

        return rendering.render(self._usage, rows, colorful=self.colorful, fancy=self.fancy, title="OPTIONS")

    def print_help(self, file=Unset, /):
        """
        Print the usage line and one line per definition to file (default stdout).
        """
        rendering.show(self.__rich__(), file)

    def __repr__(self):
        return "%s(usage=%r, definitions=%r, strict=%r, case_sensitive=%r)" % (
            type(self).__name__, self._usage, self._definitions, self.strict, self.case_sensitive
        )


__all__ = (
    "OptionKind",
    "OptionDefinition",
    "OptionSet",
)
