"""
paramlib dispatch engine: build option tables from a registry, drive the scanner,
convert matched text, and update descriptors in place.

What this module provides
- build_tables(registry): derive the getopt short-option spec, the long-option list,
  and the reverse lookups from a registry (deterministic, no caching).
- Session: one parsing session over one argument vector; owns the scanner cursor,
  so process() can be called again after a pause to resume where it stopped.
- process(args, registry, **options): one-shot convenience over Session.
- ExitState / Outcome: why process() returned and where the residual arguments start.

Algorithm (per process() call)
1. build tables (once per call, never reused across calls).
2. ask the scanner for the next match; None means exhausted.
3. resolve the match to a registry index: long names through `longs`, short
   characters through `shorts`. An unresolvable match is a ConfigurationError.
4. dispatch on the descriptor kind: count the match, convert the text, store it.
5. stop early when the descriptor asks for a pause; otherwise loop.

Faults
- user input (unknown option, missing argument, bad number, ...) goes through
  Session.trigger(): raised immediately, or collected when the session is deferred
  and raised as one ParseExit before process() returns.
- programmer faults (UnresolvedOptionError) are raised directly.
"""
import copy
import enum
import getopt
import os.path
from collections.abc import MutableSequence
from types import MappingProxyType
from typing import NamedTuple

from .faults import *
from .parameters import *
from .scanner import *
from .utils import *


class ExitState(enum.Enum):
    """
    reason process() returned.

    - NO_MORE_ARGS: no options remain; Outcome.index is the first residual argument.
    - PAUSE: a pause parameter matched; call Session.process() again to resume.
    """
    NO_MORE_ARGS = "no-more-args"
    PAUSE = "pause"


class Outcome(NamedTuple):
    reason: ExitState
    index: int


class Tables(NamedTuple):
    """
    getopt-ready view of a registry.

    - shortopts: short option spec ("es:p:f:"), ':' for required, '::' for optional.
    - longopts:  long option list ("enable", "start=", "level=?").
    - shorts:    short character -> registry index (earliest declaration wins).
    - longs:     long name -> registry index (earliest declaration wins).
    """
    shortopts: str
    longopts: tuple[str, ...]
    shorts: MappingProxyType
    longs: MappingProxyType


def build_tables(registry, /):
    """
    Build the scanner tables for `registry` (any sequence of parameters).

    Every descriptor contributes a long entry; those whose dispatch value is a
    printable character also contribute a short one. Building twice from an
    unchanged registry yields equal tables.
    """
    shortopts = []
    longopts = []
    shorts = {}
    longs = {}

    for index, parameter in enumerate(registry):
        longopts.append(parameter.name + parameter.arity.suffix)
        longs.setdefault(parameter.name, index)

        if (short := parameter.short) is not None:
            shortopts.append(short + parameter.arity.colons)
            shorts.setdefault(short, index)

    return Tables("".join(shortopts), tuple(longopts), MappingProxyType(shorts), MappingProxyType(longs))


def _classify(error):
    """
    map a getopt.GetoptError onto the user-input fault it describes.
    """
    message = error.msg
    if "requires argument" in message:
        return MissingArgumentError, FaultCode.MISSING_ARGUMENT, "missing argument"
    if "must not have an argument" in message:
        return UnexpectedArgumentError, FaultCode.UNEXPECTED_ARGUMENT, "unexpected argument"
    if "not a unique prefix" in message:
        return AmbiguousOptionError, FaultCode.AMBIGUOUS_OPTION, "ambiguous option"
    return UnknownOptionError, FaultCode.UNKNOWN_OPTION, "unknown option"


class Session:
    """
    One scan session: an argument vector, a registry, and the scanner cursor between them.

    Parameters
    - args: Sequence[str]
      argv-like vector (element 0 is the program path). Lists are permuted in place
      when ordering is PERMUTE; read the result back through `args`.
    - registry: Registry | Sequence[Parameter]
    - ordering: Unset | Ordering
      PERMUTE (GNU default) or REQUIRE_ORDER; Unset follows POSIXLY_CORRECT.
    - shell: bool
      print faults on stderr (rich) and exit instead of raising.
    - fancy: bool
      render faults inside panels.
    - colorful: bool
      style fault output.
    - deferred: bool
      collect user-input faults and keep scanning; one ParseExit is triggered
      before process() returns.

    Not thread-safe: serialize access to a session externally.
    """

    def __init__(
            self,
            args,
            registry,
            /,
            *,
            ordering=Unset,
            shell=False,
            fancy=False,
            colorful=True,
            deferred=False
    ):
        self._registry = Registry.of(registry)
        self._scanner = Scanner(args, ordering)
        self.shell = bool(shell)
        self.fancy = bool(fancy)
        self.colorful = bool(colorful)
        self.deferred = bool(deferred)
        self._faults = []

    @property
    def args(self):
        return self._scanner.args

    @property
    def index(self):
        return self._scanner.index

    @property
    def registry(self):
        return self._registry

    @property
    def residual(self):
        """
        arguments not consumed as options or option text (so far).
        """
        return tuple(self._scanner.args[self._scanner.index:])

    @property
    def prog(self):
        """
        program name shown in fault headers (basename of args[0]).
        """
        args = self._scanner.args
        return os.path.basename(args[0]) if args and args[0] else "paramlib"

    def trigger(self, fault, /, **options):
        """
        surface a fault with this session's runtime options (collected when deferred).
        """
        if (
                not hasattr(fault, "__trigger__") or
                not callable(fault.__trigger__) or
                not hasattr(fault, "__replace__") or
                not callable(fault.__replace__)
        ):
            raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
        options = dict(
            options,
            session=self,
            shell=self.shell,
            fancy=self.fancy,
            colorful=self.colorful,
            deferred=self.deferred
        )
        if self.deferred:
            self._faults.append((fault, options))
            return
        trigger(fault, **options)

    def process(self):
        """
        Scan until the options are exhausted or a pause parameter matches.

        Returns
        - Outcome(ExitState.NO_MORE_ARGS, index) once no options remain; index is the
          position of the first residual argument in `args`.
        - Outcome(ExitState.PAUSE, index) right after a pause parameter matched; index
          is the position of the next argument to scan.

        Raises
        - UsageError subclasses on bad input (immediately, unless deferred).
        - ParseExit grouping every user-input fault of a deferred session.
        - UnresolvedOptionError when a match cannot be mapped back to the registry.
        """
        tables = build_tables(self._registry)

        while True:
            try:
                match = self._scanner.scan(tables.shortopts, tables.longopts)
            except getopt.GetoptError as error:
                self._reject(error, tables, self._scanner.position)
                continue

            if match is None:
                self._finalize()
                return Outcome(ExitState.NO_MORE_ARGS, self._scanner.index)

            option, text = match
            parameter = self._registry[self._resolve(option, tables)]
            self._apply(parameter, option, text, self._scanner.position)

            if parameter.pause:
                self._finalize()
                return Outcome(ExitState.PAUSE, self._scanner.index)

    def _resolve(self, option, tables):
        """
        map a scanner match ("--name" or "-c") back to its registry index.
        """
        if option.startswith("--"):
            index = tables.longs.get(option[2:])
        else:
            index = tables.shorts.get(option[1:])
        if index is None:
            raise UnresolvedOptionError(
                "scanner returned option %r even though no parameter defines it" % option
            )
        return index

    def _apply(self, parameter, option, text, index):
        """
        count the match, convert its text by parameter kind, and store the result.
        """
        match parameter.arity:
            case Arity.NO_ARGUMENT:
                text = None
            case Arity.OPTIONAL_ARGUMENT:
                text = text or None
            case Arity.REQUIRED_ARGUMENT if not text:
                self.trigger(EmptyValueWarning(
                    "empty value for option %r at position %d" % (option, index),
                    title="empty value",
                    code=FaultCode.EMPTY_VALUE,
                    input=option,
                    index=index,
                    parameter=parameter,
                    hint="pass a value after the option (for example: %s <value>)" % option,
                    docs=getdoc(FaultCode.EMPTY_VALUE)
                ))

        parameter._seen += 1

        match parameter:
            case Boolean():
                if text:
                    self.trigger(IgnoredValueWarning(
                        "value %r given to switch %r at position %d is ignored" % (text, option, index),
                        title="ignored value",
                        code=FaultCode.IGNORED_VALUE,
                        input=option,
                        index=index,
                        parameter=parameter,
                        hint="switches are set by presence alone; drop the value",
                        docs=getdoc(FaultCode.IGNORED_VALUE)
                    ))
                value = parameter.convert(text)
            case Integer() | Float() | Text():
                try:
                    value = parameter.convert(text)
                except ValueError:
                    parameter._failed = True
                    kind = type(parameter).__typename__
                    return self.trigger(ConversionError(
                        "cannot convert %r to %s for option %r at position %d" % (text, kind, option, index),
                        title="conversion failed",
                        code=FaultCode.CONVERSION_FAILED,
                        input=option,
                        index=index,
                        text=text,
                        parameter=parameter,
                        hint="pass a valid %s (for example: %s %s)" % (
                            kind, option, {"integer": "42", "float": "3.14"}.get(kind, "<value>")
                        ),
                        docs=getdoc(FaultCode.CONVERSION_FAILED)
                    ))
            case _:
                raise ConfigurationError("unexpected parameter kind %r" % type(parameter).__name__)

        parameter._value = value
        parameter._failed = False

    def _reject(self, error, tables, index):
        """
        turn a getopt error into a user-input fault, flagging the parameter when known.
        """
        exception, code, title = _classify(error)

        option = error.opt
        parameter = None
        if option:
            # getopt reports bare names; only its message tells "--x" from "-x"
            long = ("option --%s" % option) in error.msg
            position = (tables.longs if long else tables.shorts).get(option)
            if position is not None and exception is not UnknownOptionError:
                parameter = self._registry[position]
                parameter._failed = True
            option = ("--" if long else "-") + option

        hint = {
            MissingArgumentError: "pass a value after %s (for example: %s <value>)" % (option, option),
            UnexpectedArgumentError: "remove everything from '=' (for example: %s)" % option,
            AmbiguousOptionError: "spell out more of the option name",
        }.get(exception, "remove %s or check the spelling" % option)

        self.trigger(exception(
            "%s at position %d" % (error.msg, index),
            title=title,
            code=code,
            input=option,
            index=index,
            parameter=parameter,
            hint=hint,
            docs=getdoc(code)
        ))

    def _finalize(self):
        """
        sweep collected faults: surface warnings, then raise one ParseExit for the errors.
        """
        faults, self._faults = self._faults, []

        exceptions = []
        for fault, options in faults:
            if isinstance(fault, ParameterWarning):
                trigger(fault, **options)
            elif isinstance(fault, UsageError):
                exceptions.append(copy.replace(fault, **options))
            else:
                raise RuntimeError("unexpected fault")

        if not exceptions:
            return

        trigger(
            ParseExit(exceptions),
            session=self,
            shell=self.shell,
            fancy=self.fancy,
            colorful=self.colorful,
            deferred=self.deferred
        )


def process(args, registry, /, **options):
    """
    Parse `args` against `registry` in a fresh session.

    Equivalent to Session(args, registry, **options).process(); see Session for the
    accepted options and the meaning of the returned Outcome.

    `args` must be a mutable sequence: the returned index points into it, so it is
    permuted in place. Pass other iterables to Session and read Session.args back.

    Example
        >>> registry = Registry(Boolean("enable", NO_ARGUMENT, "e"), Integer("start", REQUIRED_ARGUMENT, "s"))
        >>> process(["prog", "-e", "--start", "5", "rest"], registry)
        Outcome(reason=<ExitState.NO_MORE_ARGS: 'no-more-args'>, index=4)
    """
    if not isinstance(args, MutableSequence):
        raise TypeError("process() argument must be a mutable sequence of strings, not %r" % type(args).__name__)
    return Session(args, registry, **options).process()


__all__ = (
    "ExitState",
    "Outcome",
    "Tables",
    "build_tables",
    "Session",
    "process",
)
