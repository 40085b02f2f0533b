"""
Cly command layer: register, resolve, and run named commands.

What this module provides
- App: a registry of named command handlers plus the dispatcher that picks
  one of them from the process arguments.
  • command(...): register a handler under a primary name and aliases.
  • default(...): register the one handler that runs without a command.
  • render_help(): build the "available commands" help text.
  • resolve(argv) / execute(dispatch) / run(argv): dispatch in two steps or one.
  • run_async(argv): the same inside an already running event loop.
- AppConfig: immutable configuration merged once at construction.
- CommandEntry / Dispatch / Action / UnknownPolicy: the value types the
  registry and the dispatcher exchange.
- app(...): factory returning an App (or a decorator registering the default).

Quick start
    from cly import App

    cly = App("CLY", version="1.0.0", exec_name="cly", for_unknown_show="error")

    @cly.default()
    def hello(args):
        print("Hello, from CLY!")

    @cly.command({"command": ["greet", "hi"], "description": "Say hello."})
    def greet(args):
        print("hello", *args.positionals[1:])

    if __name__ == "__main__":
        cly.run()

Resolution (first positional token = candidate)
- an alias is rewritten to its primary name (first entry in insertion order);
- no candidate and a default handler → default handler;
- a registered primary name → that command's handler;
- anything else → the unknown-command policy: run the default handler,
  print the unknown-command message, or print the help text.

Handlers
- receive the full ParsedArgs (positionals included, the command token too).
- may return an awaitable; run() drives it with asyncio.run(), run_async()
  awaits it.
- exceptions are never caught here; they reach the caller of run().
"""
import asyncio
import enum
import inspect
import logging
import re
import shlex
import sys
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import NamedTuple

from rich.console import Console
from rich.text import Text

from .arguments import ParseOptions, ParsedArgs, parse
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

# Head line of the commands block in the generated help.
HEADING = "┌ AVAILABLE COMMANDS"


class UnknownPolicy(enum.StrEnum):
    """
    What run() does when the first positional cannot be resolved.
    """
    ERROR = "error"
    DEFAULT_HANDLER = "default_handler"
    HELP = "help"


class Action(enum.Enum):
    INVOKE_DEFAULT = "invoke-default"
    INVOKE_COMMAND = "invoke-command"
    REPORT_UNKNOWN = "report-unknown"
    SHOW_HELP = "show-help"


def unknown_message(command=None, /):
    """
    Default unknown-command message: "unknown command[: <command>]".
    """
    return f"unknown command{f': {command}' if command else ''}"


class AppConfig(NamedTuple):
    """
    Immutable application configuration.

    Fields
    - parse_options: ParseOptions forwarded verbatim to the argument parser.
    - description: text printed on top of the help.
    - exec_name: executable name used in the "Usage:" line.
    - version: printed after the app name at the bottom of the help.
    - help: static help text; when non-empty it replaces the generated help.
    - for_unknown_show: UnknownPolicy for unresolved commands.
    - unknown_msg: callable building the message for UnknownPolicy.ERROR.
    - strict_aliases: reject aliases that collide with any name or alias.
    """
    parse_options: ParseOptions = ParseOptions()
    description: str | None = None
    exec_name: str | None = None
    version: str | None = None
    help: str = ""
    for_unknown_show: UnknownPolicy = UnknownPolicy.HELP
    unknown_msg: Callable[[str | None], str] = unknown_message
    strict_aliases: bool = True


class CommandEntry(NamedTuple):
    name: str
    aliases: tuple[str, ...]
    description: str | None
    handler: Callable


class Dispatch(NamedTuple):
    """
    Outcome of App.resolve(): what execute() is about to do.

    - action: the selected Action.
    - args: the ParsedArgs handed to the handler.
    - command: resolved primary name (INVOKE_COMMAND) or the raw candidate.
    - handler: callable to invoke, None for message actions or a missing default.
    - message: text to print for REPORT_UNKNOWN and SHOW_HELP.
    """
    action: Action
    args: ParsedArgs
    command: str | None = None
    handler: Callable | None = None
    message: str | None = None


def _process_config(name, options):
    """
    Validate constructor keywords and merge them over AppConfig defaults.

    Mutates nothing; returns the final AppConfig.

    Errors
    - TypeError: wrong type for any field.
    - ValueError: unknown unknown-command policy.
    """
    config = {}
    for field in ("description", "exec_name", "version", "help"):
        object = options[field]
        if object is Unset or object is None:
            continue
        if not isinstance(object, str):
            raise TypeError(f"app {name!r} {field!r} must be a string")
        config[field] = object

    if (parse_options := options["parse_options"]) is not Unset and parse_options is not None:
        if isinstance(parse_options, Mapping):
            try:
                parse_options = ParseOptions(**parse_options)
            except TypeError:
                raise TypeError(f"app {name!r} 'parse_options' has unexpected fields") from None
        elif not isinstance(parse_options, ParseOptions):
            raise TypeError(f"app {name!r} 'parse_options' must be a ParseOptions or a mapping")
        config["parse_options"] = parse_options

    if (policy := options["for_unknown_show"]) is not Unset and policy is not None:
        try:
            config["for_unknown_show"] = UnknownPolicy(policy)
        except ValueError:
            raise ValueError(
                f"app {name!r} 'for_unknown_show' must be one of: {', '.join(map(str, UnknownPolicy))}"
            ) from None

    if (unknown_msg := options["unknown_msg"]) is not Unset and unknown_msg is not None:
        if not callable(unknown_msg):
            raise TypeError(f"app {name!r} 'unknown_msg' must be callable")
        config["unknown_msg"] = unknown_msg

    if (strict := options["strict_aliases"]) is not Unset:
        config["strict_aliases"] = bool(strict)

    return AppConfig(**config)


def _process_source(source):
    """
    Normalize a command() source into (name, aliases, description).

    Accepted shapes
    - "name"
    - ["name", "alias", ...]
    - {"command": "name" | ["name", "alias", ...], "description": "..."}

    The name is returned as None when missing so the caller can report it as
    a registration fault rather than a type error.
    """
    description = None
    if isinstance(source, Mapping):
        description = source.get("description")
        if description is not None and not isinstance(description, str):
            raise TypeError("command 'description' must be a string")
        source = source.get("command")

    if source is None or isinstance(source, str):
        return source, (), description

    if not isinstance(source, Sequence):
        raise TypeError("command() argument must be a string, a sequence of strings or a mapping")
    if not all(isinstance(item, str) for item in source):
        raise TypeError("command names and aliases must be strings")
    if not source:
        return None, (), description
    name, *aliases = source
    return name, tuple(aliases), description


def _tokenize(argv):
    """
    Normalize what run() received into a list of tokens.

    - Unset         → sys.argv[1:]
    - str           → shlex.split()
    - Iterable[str] → list, items kept verbatim (empty tokens are meaningful)
    """
    if argv is Unset:
        return sys.argv[1:]
    if isinstance(argv, str):
        return shlex.split(argv)
    if isinstance(argv, Iterable):
        tokens = list(argv)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("run() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("run() argument must be a string or an iterable of strings")


async def _await(awaitable):
    return await awaitable


class App:
    """
    Command registry and dispatcher.

    Lifecycle
    - Construct with a display name and optional configuration keywords.
    - Register commands and at most one default handler (setup phase).
    - Call run() once per argument vector; the registry is only read there.

    Introspection
    - name, config, console: read-only attributes.
    - commands: read-only mapping of primary name → CommandEntry, in
      registration order (e.g. for a "help" command showing a description).
    - default_handler: the registered default handler or None.
    """

    def __init__(
            self,
            name,
            /,
            parse_options=Unset,
            description=Unset,
            exec_name=Unset,
            version=Unset,
            help=Unset,
            for_unknown_show=Unset,
            unknown_msg=Unset,
            *,
            strict_aliases=Unset,
            console=Unset
    ):
        if not isinstance(name, str):
            raise TypeError("app 'name' must be a string")
        elif not name.strip():
            raise ValueError("app 'name' must be a non-empty string")
        if console is not Unset and not isinstance(console, Console):
            raise TypeError(f"app {name!r} 'console' must be a rich console")

        self._name = name
        self._config = _process_config(name, {
            "parse_options": parse_options,
            "description": description,
            "exec_name": exec_name,
            "version": version,
            "help": help,
            "for_unknown_show": for_unknown_show,
            "unknown_msg": unknown_msg,
            "strict_aliases": strict_aliases,
        })
        self._console = coalesce(console, Console())
        self._commands = {}
        self._default = None

    name = mirror("name")
    config = mirror("config")
    console = mirror("console")
    commands = mirror("commands")

    @property
    def default_handler(self):
        return self._default

    def __repr__(self):
        return f"app({', '.join('%s=%r' % pair for pair in self.__rich_repr__())})"

    def __rich_repr__(self):
        yield "name", self._name
        yield "version", self._config.version
        yield "commands", tuple(self._commands)
        yield "default", self._default is not None
        yield "for_unknown_show", str(self._config.for_unknown_show)

    def command(self, source, handler=Unset, /):
        """
        Register a command handler.

        Forms
        - app.command("greet", handler)                 → app (chainable)
        - app.command(["bye", "farewell"], handler)    → app
        - app.command({"command": ..., "description": ...}, handler) → app
        - @app.command("greet")                         → decorator returning the handler

        Validation (in order, registry untouched on failure)
        - missing/empty name           → NoCommandNameError
        - whitespace in the name       → InvalidCommandNameError
        - empty alias or whitespace    → InvalidAliasError
        - name already registered      → DuplicateCommandError
        - alias/name collision (strict_aliases only) → AliasConflictError

        Raises
        - TypeError: malformed source or a non-callable handler.
        """
        if handler is Unset:
            @rename("command")
            def wrapper(handler, /):
                self.command(source, handler)
                return handler
            return wrapper

        if not callable(handler):
            raise TypeError(f"app {self._name!r} command handler must be callable")

        name, aliases, description = _process_source(source)

        if not name:
            raise NoCommandNameError(
                "no command name provided",
                app=self._name,
                hint="pass a non-empty string as the first command name",
            )
        if re.search(r"\s", name):
            raise InvalidCommandNameError(
                f"command {name!r} contains white space",
                app=self._name,
                command=name,
                hint="use a single word, e.g. '%s'" % re.sub(r"\s+", "-", name.strip()),
            )
        for alias in aliases:
            if not alias or re.search(r"\s", alias):
                raise InvalidAliasError(
                    f"alias {alias!r} of command {name!r} is empty or contains white space",
                    app=self._name,
                    command=name,
                    alias=alias,
                    hint="aliases must be single, non-empty words",
                )
        if name in self._commands:
            raise DuplicateCommandError(
                f"command {name!r} has already been registered",
                app=self._name,
                command=name,
                hint="pick another name or register it as an alias",
            )
        if self._config.strict_aliases:
            self._check_aliases(name, aliases)

        self._commands[name] = CommandEntry(name, aliases, description, handler)
        logger.debug("registered command %r (aliases: %s)", name, ", ".join(aliases) or "none")
        return self

    def _check_aliases(self, name, aliases):
        taken = {}
        for entry in self._commands.values():
            taken[entry.name] = entry.name
            for alias in entry.aliases:
                taken[alias] = entry.name

        if name in taken:
            raise AliasConflictError(
                f"command {name!r} is already an alias of {taken[name]!r}",
                app=self._name,
                command=name,
                hint="pick another name or drop the alias from %r" % taken[name],
            )

        seen = {name}
        for alias in aliases:
            if alias in seen or alias in taken:
                owner = taken.get(alias, name)
                raise AliasConflictError(
                    f"alias {alias!r} of command {name!r} is already used by {owner!r}",
                    app=self._name,
                    command=name,
                    alias=alias,
                    hint="every command name and alias must be unique",
                )
            seen.add(alias)

    def default(self, handler=Unset, /):
        """
        Register the handler that runs when no command is given.

        Forms
        - app.default(handler) → app (chainable)
        - @app.default()       → decorator returning the handler

        Raises
        - DefaultAlreadyRegisteredError on a second registration; the first
          handler is kept.
        - TypeError when the handler is not callable.
        """
        if handler is Unset:
            @rename("default")
            def wrapper(handler, /):
                self.default(handler)
                return handler
            return wrapper

        if not callable(handler):
            raise TypeError(f"app {self._name!r} default handler must be callable")
        if self._default is not None:
            raise DefaultAlreadyRegisteredError(
                "default handler has already been registered",
                app=self._name,
                hint="register the extra behavior as a named command instead",
            )
        self._default = handler
        logger.debug("registered default handler %s", getattr(handler, "__qualname__", handler))
        return self

    def render_help(self):
        """
        Return the help text (no printing).

        A static `help` in the config is returned unchanged. Otherwise, in order:
        description, "Usage: <exec_name> command [options]", the commands block
        (name, "│ "-prefixed description lines, aliases), then the app name with
        its version.
        """
        config = self._config
        if config.help:
            return config.help

        block = HEADING
        for name, entry in self._commands.items():
            block += f"\n├──── {name}"
            if entry.description:
                block += "\n│ " + "\n│ ".join(entry.description.split("\n"))
            if entry.aliases:
                block += f"\n│ Aliases: {', '.join(entry.aliases)}"

        return "".join((
            f"{config.description}\n\n" if config.description else "",
            f"Usage: {config.exec_name} command [options]\n\n" if config.exec_name else "",
            f"{block}\n\n" if self._commands else "",
            self._name,
            f" v{config.version}" if config.version else "",
        ))

    def resolve(self, argv=Unset, /):
        """
        Parse `argv` and decide what run() would do, without running it.

        Parameters
        - argv: Unset | str | Iterable[str]
          • Unset: read tokens from sys.argv[1:].
          • str: shell-like string, split via shlex.split.
          • Iterable[str]: pre-tokenized sequence.

        Returns
        - Dispatch
        """
        args = parse(_tokenize(argv), self._config.parse_options)
        candidate = str(args.positionals[0]) if args.positionals else None

        for entry in self._commands.values():
            if candidate is not None and candidate in entry.aliases:
                logger.debug("alias %r resolved to command %r", candidate, entry.name)
                candidate = entry.name
                break

        if candidate is None and self._default is not None:
            return Dispatch(Action.INVOKE_DEFAULT, args, handler=self._default)

        if candidate is not None and candidate in self._commands:
            return Dispatch(Action.INVOKE_COMMAND, args, candidate, self._commands[candidate].handler)

        logger.debug("unresolved command %r, policy %s", candidate, self._config.for_unknown_show)
        match self._config.for_unknown_show:
            case UnknownPolicy.DEFAULT_HANDLER:
                return Dispatch(Action.INVOKE_DEFAULT, args, candidate, self._default)
            case UnknownPolicy.ERROR:
                return Dispatch(Action.REPORT_UNKNOWN, args, candidate, message=self._config.unknown_msg(candidate or None))
            case _:
                return Dispatch(Action.SHOW_HELP, args, candidate, message=self.render_help())

    def _start(self, dispatch):
        # Returns the handler result (possibly awaitable) or None after printing.
        if not isinstance(dispatch, Dispatch):
            raise TypeError("execute() argument must be a dispatch")

        if dispatch.action in (Action.INVOKE_DEFAULT, Action.INVOKE_COMMAND):
            if dispatch.handler is None:
                return None
            logger.debug("running %s", dispatch.command or "default handler")
            return dispatch.handler(dispatch.args)

        self._console.print(Text(str(dispatch.message)), soft_wrap=True)
        return None

    def execute(self, dispatch, /):
        """
        Carry out a Dispatch. Awaitable handler results are run to completion
        with asyncio.run(), so this must not be called from a running loop
        (use execute_async() there).

        Returns
        - the handler result, or None for message actions.
        """
        result = self._start(dispatch)
        if inspect.isawaitable(result):
            return asyncio.run(_await(result))
        return result

    async def execute_async(self, dispatch, /):
        result = self._start(dispatch)
        if inspect.isawaitable(result):
            return await result
        return result

    def run(self, argv=Unset, /):
        """
        Resolve `argv` and execute the outcome (see resolve() and execute()).
        """
        return self.execute(self.resolve(argv))

    async def run_async(self, argv=Unset, /):
        return await self.execute_async(self.resolve(argv))


def app(name=Unset, /, *args, **kwargs):
    """
    Create an App, or a decorator turning a function into an App's default handler.

    Modes
    - app("CLY", version="1.0.0")  → App
    - @app(name="CLY", ...)        → decorator; the App is returned and the
      function becomes its default handler.
    - @app                          → same, named after the function.

    Parameters are forwarded to App().
    """
    if callable(name):
        return App(getattr(name, "__name__", "app")).default(name)

    if name is not Unset:
        return App(name, *args, **kwargs)

    @rename("app")
    def wrapper(handler, /):
        if not callable(handler):
            raise TypeError("@app() must be applied to a callable")
        return App(kwargs.pop("name", getattr(handler, "__name__", "app")), *args, **kwargs).default(handler)

    return wrapper


__all__ = (
    "App",
    "AppConfig",
    "CommandEntry",
    "Dispatch",
    "Action",
    "UnknownPolicy",
    "unknown_message",
    "app",
)
