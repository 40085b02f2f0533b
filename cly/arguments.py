r"""
Cly argument source: turn a raw token list into positionals + named options.

Overview
- ParseOptions: declarative knobs for the parser (booleans, strings, collected
  keys, aliases, defaults, early stop, "--" handling, unknown-key hook).
- ParsedArgs: read-only result. Behaves as a Mapping of option name -> value
  and exposes the ordered positional tokens as `positionals`.
- parse(tokens, options): the parser itself.

Token forms
- "--key=value"  → key = value
- "--key value"  → key = value (unless key is boolean or value starts with "-")
- "--key"        → key = True ("" for string keys)
- "--no-key"     → key = False
- "-abc"         → a = b = c = True (last letter may take the next token)
- "-n5", "-k=v"  → n = 5, k = "v"
- "--"           → stop parsing; the rest is positional (or stored under "--")

Values
- numeric-looking values become int/float ("0x1f" → 31) unless the key is
  declared in `string`; declaring "_" keeps positionals as strings.
- booleans declared in `boolean` default to False when absent.
- keys in `collect` accumulate every occurrence into a tuple.

Quick example:
    >>> from cly.arguments import parse, ParseOptions
    >>> args = parse(["joke", "-C", "Pun", "--count=2"], ParseOptions(alias={"C": "category"}))
    >>> args.positionals
    ('joke',)
    >>> args["category"], args["count"]
    ('Pun', 2)
"""
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import NamedTuple

from .utils import *

_HEX = re.compile(r"0x[0-9a-f]+", re.IGNORECASE)
_INTEGER = re.compile(r"[-+]?\d+")
_NUMBER = re.compile(r"[-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:e[-+]?\d+)?", re.IGNORECASE)
# A short cluster letter followed by something numeric ("-n5", "-n-1.5").
_SHORT_NUMBER = re.compile(r"-?\d+(?:\.\d*)?(?:e-?\d+)?$")


def _coerce(token):
    """
    Convert a numeric-looking token to int/float; return anything else as-is.
    """
    if not isinstance(token, str):
        return token
    if _HEX.fullmatch(token):
        return int(token, 16)
    if _INTEGER.fullmatch(token):
        return int(token)
    if _NUMBER.fullmatch(token):
        return float(token)
    return token


class ParseOptions(NamedTuple):
    """
    Parser configuration. Every field is optional.

    Fields
    - boolean: Iterable[str] | bool
      keys that never take a value; True treats every "--key" as boolean.
    - string: Iterable[str]
      keys whose values stay raw strings ("_" applies to positionals).
    - collect: Iterable[str]
      keys that accumulate repeated occurrences into a tuple.
    - alias: Mapping[str, str | Iterable[str]]
      alias groups; a value set through any name is visible under all of them.
    - default: Mapping[str, object]
      values for keys that were not given.
    - stop_early: bool
      stop at the first positional and keep the remaining tokens raw.
    - double_dash: bool
      store tokens after "--" under the "--" key instead of positionals.
    - unknown: Callable[[str, str | None, object], bool | None] | None
      called for undeclared keys and for positionals; returning False drops
      the token.
    """
    boolean: Iterable[str] | bool = ()
    string: Iterable[str] = ()
    collect: Iterable[str] = ()
    alias: Mapping[str, str | Iterable[str]] = MappingProxyType({})
    default: Mapping[str, object] = MappingProxyType({})
    stop_early: bool = False
    double_dash: bool = False
    unknown: object = None


class _Schema(NamedTuple):
    booleans: frozenset
    every_boolean: bool
    strings: frozenset
    collects: frozenset
    aliases: Mapping
    defaults: Mapping
    stop_early: bool
    double_dash: bool
    unknown: object


def _names(object, field, /):
    if isinstance(object, str):
        return (object,)
    if not isinstance(object, Iterable) or not all(isinstance(name, str) for name in object):
        raise TypeError(f"parse-options {field!r} must be an iterable of strings")
    return tuple(object)


def _process_options(options):
    """
    Validate ParseOptions (or a plain mapping of its fields) and expand alias
    groups into a lookup schema.
    """
    if isinstance(options, Mapping):
        try:
            options = ParseOptions(**options)
        except TypeError:
            unknown = sorted(set(options) - set(ParseOptions._fields))
            raise TypeError(f"parse-options got unexpected fields: {', '.join(unknown)}") from None
    elif not isinstance(options, ParseOptions):
        raise TypeError("parse-options must be a ParseOptions or a mapping")

    if not isinstance(options.alias, Mapping):
        raise TypeError("parse-options 'alias' must be a mapping")
    if not isinstance(options.default, Mapping):
        raise TypeError("parse-options 'default' must be a mapping")
    if options.unknown is not None and not callable(options.unknown):
        raise TypeError("parse-options 'unknown' must be callable")

    # Every name in a group sees all the others.
    aliases = {}
    for key, values in options.alias.items():
        group = (key, *_names(values, "alias"))
        for name in group:
            aliases.setdefault(name, set()).update(other for other in group if other != name)
    aliases = {name: tuple(sorted(others)) for name, others in aliases.items()}

    def spread(names):
        names = set(names)
        for name in tuple(names):
            names.update(aliases.get(name, ()))
        return frozenset(names)

    every_boolean = options.boolean is True
    booleans = () if isinstance(options.boolean, bool) else _names(options.boolean, "boolean")

    return _Schema(
        booleans=spread(booleans),
        every_boolean=every_boolean,
        strings=spread(_names(options.string, "string")),
        collects=spread(_names(options.collect, "collect")),
        aliases=aliases,
        defaults=dict(options.default),
        stop_early=bool(options.stop_early),
        double_dash=bool(options.double_dash),
        unknown=options.unknown,
    )


class ParsedArgs(Mapping):
    """
    Read-only result of parse().

    - Mapping protocol over the named options: args["category"], "verbose" in args.
    - positionals: ordered tuple of non-option tokens; the first one selects the
      command during dispatch.
    """
    __slots__ = ("_positionals", "_options")

    def __init__(self, positionals=(), options=Unset, /):
        self._positionals = tuple(positionals)
        self._options = MappingProxyType(dict(coalesce(options, {})))

    @property
    def positionals(self):
        return self._positionals

    @property
    def options(self):
        return self._options

    def __getitem__(self, key, /):
        return self._options[key]

    def __iter__(self):
        return iter(self._options)

    def __len__(self):
        return len(self._options)

    def __eq__(self, other):
        if isinstance(other, ParsedArgs):
            return self._positionals == other._positionals and dict(self._options) == dict(other._options)
        return NotImplemented

    __hash__ = None

    def __repr__(self):
        return f"parsed-args(positionals={self._positionals!r}, options={dict(self._options)!r})"

    def __rich_repr__(self):
        yield "positionals", self._positionals
        yield "options", dict(self._options)


def parse(tokens, options=Unset, /):
    """
    Parse a token list into ParsedArgs.

    Parameters
    - tokens: Iterable[str]
      raw tokens, typically sys.argv[1:].
    - options: ParseOptions | Mapping | Unset
      parser configuration (see ParseOptions).

    Raises
    - TypeError: when tokens are not strings or options are malformed.
    """
    if isinstance(tokens, str) or not isinstance(tokens, Iterable):
        raise TypeError("parse() argument must be an iterable of strings")
    tokens = list(tokens)
    if not all(isinstance(token, str) for token in tokens):
        raise TypeError("parse() argument must be an iterable of strings")

    schema = _process_options(coalesce(options, ParseOptions()))
    positionals = []
    namespace = {}

    # Anything after a bare "--" is never parsed as an option.
    rest = []
    if "--" in tokens:
        index = tokens.index("--")
        tokens, rest = tokens[:index], tokens[index + 1:]

    def known(key):
        return (
            schema.every_boolean or
            key in schema.booleans or
            key in schema.strings or
            key in schema.collects or
            key in schema.aliases or
            key in schema.defaults
        )

    def boolean(key):
        return key in schema.booleans

    def store(key, value, token):
        if schema.unknown is not None and not known(key):
            if schema.unknown(token, key, value) is False:
                return
        if isinstance(value, str) and key not in schema.strings:
            value = _coerce(value)
        for name in (key, *schema.aliases.get(key, ())):
            if name in schema.collects:
                namespace.setdefault(name, []).append(value)
            else:
                namespace[name] = value

    def positional(token):
        if schema.unknown is not None and schema.unknown(token, None, None) is False:
            return
        positionals.append(token if "_" in schema.strings else _coerce(token))

    index = 0
    while index < len(tokens):
        token = tokens[index]
        following = tokens[index + 1] if index + 1 < len(tokens) else None

        if match := re.fullmatch(r"--([^=]+)=(.*)", token, re.DOTALL):
            key, value = match.groups()
            store(key, value != "false" if boolean(key) else value, token)

        elif match := re.fullmatch(r"--no-(.+)", token, re.DOTALL):
            store(match.group(1), False, token)

        elif match := re.fullmatch(r"--(.+)", token, re.DOTALL):
            key = match.group(1)
            if (
                following is not None and
                not following.startswith("-") and
                not boolean(key) and
                not schema.every_boolean
            ):
                store(key, following, token)
                index += 1
            elif following in ("true", "false"):
                store(key, following == "true", token)
                index += 1
            else:
                store(key, "" if key in schema.strings else True, token)

        elif re.match(r"-[^-]+", token):
            letters = token[1:-1]
            broken = False
            for offset, letter in enumerate(letters):
                tail = token[offset + 2:]
                if tail == "-":
                    store(letter, tail, token)
                    continue
                if letter.isalpha() and "=" in tail:
                    store(letter, tail.partition("=")[2], token)
                    broken = True
                    break
                if letter.isalpha() and _SHORT_NUMBER.match(tail):
                    store(letter, tail, token)
                    broken = True
                    break
                if offset + 1 < len(letters) and re.match(r"\W", letters[offset + 1]):
                    store(letter, tail, token)
                    broken = True
                    break
                store(letter, "" if letter in schema.strings else True, token)

            key = token[-1]
            if not broken and key != "-":
                if following and not re.match(r"--?[^-]", following) and not boolean(key):
                    store(key, following, token)
                    index += 1
                elif following in ("true", "false"):
                    store(key, following == "true", token)
                    index += 1
                else:
                    store(key, "" if key in schema.strings else True, token)

        else:
            positional(token)
            if schema.stop_early:
                positionals.extend(tokens[index + 1:])
                break

        index += 1

    for key, value in schema.defaults.items():
        if key in namespace:
            continue
        for name in (key, *schema.aliases.get(key, ())):
            namespace.setdefault(name, value)

    # Declared booleans are always present.
    for key in schema.booleans:
        namespace.setdefault(key, False)

    if schema.double_dash:
        namespace["--"] = tuple(rest)
    else:
        positionals.extend(rest)

    return ParsedArgs(positionals, {
        key: tuple(value) if isinstance(value, list) else value for key, value in namespace.items()
    })


__all__ = (
    "ParseOptions",
    "ParsedArgs",
    "parse",
)
