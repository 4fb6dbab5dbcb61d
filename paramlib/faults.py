"""
paramlib faults (errors and warnings) and rendering.

Scope
- FaultCode: stable numeric identifiers for every user-facing issue.
- ParameterException / ParameterWarning: base types carrying message + options that
  know how to render themselves (rich) and how to surface (raise, warn, or print).
- ParseExit: the grouped exit raised at the end of a deferred session.
- ConfigurationError: programmer faults (a registry that contradicts its own tables).
  These are never rendered, deferred or mapped to a fault code; they propagate.
- trigger(): central entry point to surface a fault with runtime options.
- getdoc(): optional description lookup for a code from the host application.

Two classes of failure
- user input (UsageError subclasses): unknown/ambiguous options, missing or
  unexpected arguments, text that does not convert to the parameter's type.
  The caller decides whether to report and exit or to retry.
- programmer (ConfigurationError subclasses): the engine could not map a match back
  to a descriptor. Declaring the registry differently is the only fix.

Integration
- The engine calls Session.trigger(fault, **ctx) which merges the session's
  shell/fancy/colorful/deferred options and either collects or surfaces the fault.
- In non-shell mode exceptions are raised and warnings go through warnings.warn;
  in shell mode both are printed on stderr via rich.
"""
import copy
import inspect
import os.path
import sys
import warnings
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
    canonical fault codes (stable identifiers).

    grouping
    - option lexing (1110x): UNKNOWN_OPTION, AMBIGUOUS_OPTION, MISSING_ARGUMENT, UNEXPECTED_ARGUMENT
    - conversion (1111x):    CONVERSION_FAILED
    - warnings (121xx):      IGNORED_VALUE, EMPTY_VALUE

    normalize() lets the host remap codes to its own labels.
    """
    # --- option lexing errors (11xxx) ---
    UNKNOWN_OPTION      = 11101
    AMBIGUOUS_OPTION    = 11102
    MISSING_ARGUMENT    = 11103
    UNEXPECTED_ARGUMENT = 11104

    # --- conversion errors (11xxx) ---
    CONVERSION_FAILED   = 11111

    # --- warnings (12xxx) ---
    IGNORED_VALUE       = 12101
    EMPTY_VALUE         = 12102

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__ to
        override numeric ids; otherwise the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


def _prog(main, options):
    """
    program name for fault headers: __main__.__prog__, then the session, then sys.argv.
    """
    if hasattr(main, "__prog__"):
        return main.__prog__
    if "session" in options:
        return options["session"].prog
    return os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "paramlib"


def _render(fault, message, palette, title):
    """
    shared rich layout for exceptions and warnings: "[ prog — code | title ]", message, hint.
    """
    main = __import__("__main__")
    options = fault.options
    colorful = options.get("colorful", True)
    fancy = options.get("fancy", False)

    styles = defaultdict(str, palette | getattr(main, "__styles__", {}))

    def text(fragment, style=""):
        if not fragment:
            return Text("")
        if isinstance(fragment, Text):
            return fragment
        return Text(str(fragment), styles[style] if colorful else "")

    prog = _prog(main, options)

    header = Text.assemble(
        "[ ",
        text(prog, "prog-name"),
        " — ",
        text(options["code"].normalize() if "code" in options else "", "code"),
        " | ",
        text(options.get("title", "").title(), title),
        " ]"
    )
    body = text(message, title.replace("title", "message"))
    hint = Text.assemble(text(" → ", "hint-arrow"), text(options.get("hint"), "hint"))

    if fancy:
        width = console.width - 4
        try:
            width = int(width * options["ratio"])
        except KeyError:
            width = None
        return Panel(Group(body, hint), title=header, title_align="left", width=width)

    return Group(header, body, hint)


class ParameterException(Exception):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, self.message, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #00E5FF",
            "error-title": "bold #FF4DA6",
            "error-message": "#C8C8D0",
            "hint-arrow": "#9CE19C dim",
            "hint": "italic #9CE19C",
        }, "error-title")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        if self.options.get("deferred", False):
            return
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class UsageError(ParameterException): ...
class UnknownOptionError(UsageError): ...
class AmbiguousOptionError(UsageError): ...
class MissingArgumentError(UsageError): ...
class UnexpectedArgumentError(UsageError): ...
class ConversionError(UsageError): ...


class ParameterWarning(Warning):
    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        self.message = message
        self.options = MappingProxyType(options)

    def __rich__(self):
        return _render(self, self.message, {
            "prog-name": "bold #E6E6F0",
            "code": "bold #FFB400",
            "warning-title": "bold #FFC2E0",
            "warning-message": "#D6D6DE",
            "hint-arrow": "#B8EFAF dim",
            "hint": "italic #B8EFAF",
        }, "warning-title")

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            return warnings.warn(self, stacklevel=len(inspect.stack()))
        console.print(self)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class IgnoredValueWarning(ParameterWarning): ...
class EmptyValueWarning(ParameterWarning): ...


class ParseExit(ExceptionGroup[UsageError]):
    def __new__(cls, exceptions, **options):
        return super().__new__(cls, "bad exit", exceptions)

    def __init__(self, exceptions, **options):
        super().__init__("bad exit", tuple(exceptions))
        self.options = MappingProxyType(options)

    def __rich__(self):
        main = __import__("__main__")
        colorful = self.options.get("colorful", True)
        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",
            "title": "bold #FF4DA6",
        } | getattr(main, "__styles__", {}))

        prog = _prog(main, self.options)

        header = Text.assemble(
            "[ ",
            Text(str(prog), styles["prog-name"] if colorful else ""),
            " — ",
            Text(self.message.title(), styles["title"] if colorful else ""),
            " ]"
        )
        renders = [copy.replace(exception, ratio=2/3) for exception in self.exceptions]

        if self.options.get("fancy", False):
            return Panel(Group(*renders), title=header, title_align="left")
        return Group(header, *renders)

    def __trigger__(self) -> None:
        if not self.options.get("shell", False):
            raise self from None
        console.print(self)
        sys.exit(1)

    def __replace__(self, *unused, **overrides):
        assert not unused, "positional arguments are not allowed"
        return type(self)(self.exceptions, **{**self.options, **overrides})


class ConfigurationError(RuntimeError):
    """
    programmer fault: the registry and the tables built from it disagree.
    """


class UnresolvedOptionError(ConfigurationError):
    """
    the scanner matched an option that no descriptor owns.
    """


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see base classes).
    - options are merged into the fault via copy.replace before triggering.
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
    optional documentation for a fault code, read from a __docs__ mapping in __main__.
    """
    if not isinstance(code, FaultCode):
        raise TypeError("getdoc() argument must be a fault-code")
    try:
        return getattr(__import__("__main__"), "__docs__", {})[code]
    except KeyError:
        return None


__all__ = (
    "FaultCode",
    "ParameterException",
    "UsageError",
    "UnknownOptionError",
    "AmbiguousOptionError",
    "MissingArgumentError",
    "UnexpectedArgumentError",
    "ConversionError",
    "ParameterWarning",
    "IgnoredValueWarning",
    "EmptyValueWarning",
    "ParseExit",
    "ConfigurationError",
    "UnresolvedOptionError",
    "trigger",
    "getdoc",
)
