"""
Commandeer faults (fatal parse errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fatal condition the
  parser can report. Codes are grouped by domain to keep copy consistent and
  make logs/searches predictable.
- CommandException: base type that carries message + options and knows how to
  render itself in a friendly, lowercased and actionable way.
- trigger(): default failure collaborator (raise, or render and exit in shell mode).
- getdoc(): optional description lookup for a code from the host application.

Integration
- The parser builds a fault for the first fatal condition it meets and hands it
  to the injected fail collaborator (see Parser(fail=...)). When none is given,
  trigger() is used with the parser's shell/fancy/colorful options.
- In non-shell mode, exceptions are raised; in shell mode, they are rendered via
  rich on stderr and the process exits with status 1.
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
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x)
      • INVALID_COMMAND, UNKNOWN_COMMAND
    - options (1111x)
      • INLINE_VALUE_NOT_ALLOWED, INVALID_OPTION_VALUE
    - delegated (1113x)
      • VALIDATION_ERROR (raised by a command's validator)

    normalize() allows host remapping to custom labels while keeping the
    numeric codes stable.
    """
    # --- routing errors (11xxx) ---
    INVALID_COMMAND          = 11101
    UNKNOWN_COMMAND          = 11102

    # --- option errors (11xxx) ---
    INLINE_VALUE_NOT_ALLOWED = 11113
    INVALID_OPTION_VALUE     = 11117

    # --- delegated errors (11xxx) ---
    VALIDATION_ERROR         = 11131

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
    base class of every fatal parse fault.

    the message is the one-line, user-facing description (also str(fault));
    options carry rendering context: code, title, hint, prog, token, shell,
    fancy, colorful and anything else the reporter may want to show.
    """

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(*(() if message is Unset else (message,)))
        self.message = message
        self.options = MappingProxyType(options)

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

        prog = text(getattr(main, "__prog__", self.options.get("prog", "commandeer")), styler("prog-name"))
        code = self.options.get("code")

        header = Text.assemble(
            "[ ",
            prog,
            " — ",
            text(code.normalize() if isinstance(code, FaultCode) else "?", styler("code")),
            " | ",
            text(str(self.options.get("title", type(self).__name__)).title(), styler("error-title")),
            " ]"
        )
        message = text(self.message, styler("error-message"))
        renders = [message]
        if hint := self.options.get("hint"):
            renders.append(Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint"))))

        if fancy:
            return Panel(Group(*renders), title=header, title_align="left")

        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from self.options.get("exception")
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidCommandError(CommandException): ...
class UnknownCommandError(CommandException): ...
class InlineValueNotAllowedError(CommandException): ...
class InvalidOptionValueError(CommandException): ...
class ValidationError(CommandException): ...


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before triggering.
    - in shell mode, rendering happens via the rich console and the process exits;
      otherwise the fault is raised.

    typical options
    - prog, shell, fancy, colorful, title, code, hint, docs, token.
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
    are FaultCode instances and values are short documentation strings. when not
    found, returns None.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "CommandException",
    "InvalidCommandError",
    "UnknownCommandError",
    "InlineValueNotAllowedError",
    "InvalidOptionValueError",
    "ValidationError",
    "FaultCode",
    "trigger",
    "getdoc",
)
