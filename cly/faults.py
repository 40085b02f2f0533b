"""
Cly faults (registration errors) and rendering.

Scope
- FaultCode: stable numeric identifiers for every registration fault, so
  messages stay searchable in logs and host applications can remap them.
- CommandException: base type carrying message + hint + options that knows how
  to render itself through rich (header, message, actionable hint).
- Concrete errors raised by App.command() and App.default().

When they fire
- All faults are raised synchronously while an application registers its
  commands. The registry is never modified by a failing call, so a host can
  catch the fault, print it, and either abort or carry on.
- Dispatch has no fault of its own: an unknown command is an ordinary outcome
  governed by the unknown-command policy, and handler errors propagate
  unchanged.

Rendering
- `console.print(fault)` shows "[ <prog> — <code> | <Title> ]", the message and
  a "→ hint" line. The program name comes from `__prog__` in __main__, then
  the `app` option, then "cly". Colors can be overridden with a `__styles__`
  mapping in __main__, and disabled with colorful=False.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Group
from rich.text import Text

from .utils import Unset, coalesce


class FaultCode(IntEnum):
    """
    canonical fault codes (stable identifiers).

    grouping
    - registration (112xx)
      • NO_COMMAND_NAME, INVALID_COMMAND_NAME, INVALID_ALIAS,
        DUPLICATE_COMMAND, ALIAS_CONFLICT
    - default handler (1121x)
      • DEFAULT_ALREADY_REGISTERED

    the spacing leaves room for new codes without reshuffling existing ones.
    """
    # --- registration errors (112xx) ---
    NO_COMMAND_NAME             = 11201
    INVALID_COMMAND_NAME        = 11202
    INVALID_ALIAS               = 11203
    DUPLICATE_COMMAND           = 11204
    ALIAS_CONFLICT              = 11205

    # --- default handler errors (1121x) ---
    DEFAULT_ALREADY_REGISTERED  = 11211

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base class for every cly fault.

    subclasses bind their code and title as class keywords:

        class DuplicateCommandError(CommandException, code=..., title=...): ...

    instances keep the message, an optional hint and any extra options
    (e.g. app="cly", command="greet") as a read-only mapping.
    """
    code = None
    title = "command error"

    def __init_subclass__(cls, code=Unset, title=Unset, **options):
        super().__init_subclass__(**options)
        cls.code = coalesce(code, cls.code)
        cls.title = coalesce(title, cls.title)

    def __init__(self, message, /, *, hint=Unset, **options):
        if not isinstance(message, str):
            raise TypeError(f"{type(self).__name__} message must be a string")
        super().__init__(message)
        self.message = message
        self.hint = coalesce(hint)
        self.options = MappingProxyType(options)

    def __str__(self):
        return self.message

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        def text(fragment, style):
            if not fragment:
                return Text("")
            return Text(str(fragment), styles[style] if colorful else "")

        prog = getattr(main, "__prog__", self.options.get("app") or "cly")
        code = self.code.normalize() if self.code is not None else "-"

        header = Text.assemble(
            "[ ",
            text(prog, "prog-name"),
            " — ",
            text(code, "code"),
            " | ",
            text(self.title.title(), "error-title"),
            " ]",
        )
        renders = [header, text(self.message, "error-message")]
        if self.hint:
            renders.append(Text.assemble(text(" → ", "hint-arrow"), text(self.hint, "hint")))
        return Group(*renders)


class NoCommandNameError(CommandException, code=FaultCode.NO_COMMAND_NAME, title="no command name"): ...
class InvalidCommandNameError(CommandException, code=FaultCode.INVALID_COMMAND_NAME, title="invalid command name"): ...
class InvalidAliasError(CommandException, code=FaultCode.INVALID_ALIAS, title="invalid alias"): ...
class DuplicateCommandError(CommandException, code=FaultCode.DUPLICATE_COMMAND, title="duplicate command"): ...
class AliasConflictError(CommandException, code=FaultCode.ALIAS_CONFLICT, title="alias conflict"): ...
class DefaultAlreadyRegisteredError(CommandException, code=FaultCode.DEFAULT_ALREADY_REGISTERED, title="default already registered"): ...


__all__ = (
    "FaultCode",
    "CommandException",
    "NoCommandNameError",
    "InvalidCommandNameError",
    "InvalidAliasError",
    "DuplicateCommandError",
    "AliasConflictError",
    "DefaultAlreadyRegisteredError",
)
