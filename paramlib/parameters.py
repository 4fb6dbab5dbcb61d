r"""
paramlib parameter descriptors and the registry that holds them.

Overview
- Arity: whether an option takes no argument, a required argument, or an optional one.
  The numeric values follow getopt_long's no_argument/required_argument/optional_argument.

- Descriptors (closed set, each class sealed against subclassing)
  • Boolean: presence switch; a match always stores True.
  • Integer: optionally signed ASCII decimal digits; absent optional text stores 0.
  • Float:   ASCII decimal or exponent notation (or inf/nan); absent optional text stores 0.0.
  • Text:    the raw text; absent optional text stores "".
  Every descriptor carries the same record: name, arity, dispatch value,
  seen-count, typed value, failed flag.

- Registry
  • Ordered, fixed-length sequence of descriptors. Positions are the indexes the
    dispatch engine resolves options to, so the order is part of the contract.

Dispatch values
- An int (or a one-character string, normalized with ord()). When it is printable
  ASCII other than ':' and '-', it doubles as the short option character; any
  other value, or None, declares a long-only option.

State ownership
- seen/value/failed are exposed as read-only properties. Only the dispatch engine
  writes them (through the private backing fields) while a session is scanning.
- Nothing here checks one descriptor against another: duplicated names or dispatch
  values are accepted and the engine resolves them to the earliest declaration.

Quick example:
    >>> from paramlib import Boolean, Integer, Registry, NO_ARGUMENT, REQUIRED_ARGUMENT
    >>> registry = Registry(
    ...     Boolean("enable", NO_ARGUMENT, "e"),
    ...     Integer("start", REQUIRED_ARGUMENT, "s"),
    ... )
    >>> registry["start"].value
    0
"""
import functools
import operator
import re
from collections.abc import Iterable, Sequence
from enum import IntEnum

from .utils import *


class Arity(IntEnum):
    """
    argument requirement of an option (values match getopt_long's has_arg field).
    """
    NO_ARGUMENT       = 0
    REQUIRED_ARGUMENT = 1
    OPTIONAL_ARGUMENT = 2

    @property
    def colons(self):
        """
        suffix appended to the short option character in a getopt spec string.
        """
        return ("", ":", "::")[self]

    @property
    def suffix(self):
        """
        suffix appended to the long option name in a getopt long-option list.
        """
        return ("", "=", "=?")[self]


NO_ARGUMENT = Arity.NO_ARGUMENT
REQUIRED_ARGUMENT = Arity.REQUIRED_ARGUMENT
OPTIONAL_ARGUMENT = Arity.OPTIONAL_ARGUMENT


class ParameterType(type):
    """
    Metaclass for descriptor classes.

    Responsibilities
    - Derive __typename__ from the class name (used in messages and reprs).
    - Expose every name in __introspectable__ as a read-only property over "_{name}".
    - Provide stable __repr__/__rich_repr__ implementations.
    - Seal concrete kinds (class keyword sealed=True) so the set of descriptor
      shapes stays closed for the engine's type dispatch.
    """

    def __new__(cls, name, bases, namespace, *, sealed=False, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
            **options
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise representation, e.g. integer(name='start', arity=..., seen=1, value=5).
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        if sealed:
            @rename("__init_subclass__")
            def __init_subclass__(cls, **options):  # NOQA: F-841
                raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
            self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_metadata(cls, metadata, /):
    """
    Internal: validate and normalize descriptor metadata in place.

    - name: non-empty string (trimmed).
    - arity: an Arity or one of its integer values.
    - dispatch: Unset | int | one-character str; normalized to int or None.
    - descr: Unset | non-empty string; normalized to str or None.

    Raises
    - TypeError for wrong types, ValueError for empty strings or unknown arity values.
    """
    if not isinstance(name := metadata["name"], str):
        raise TypeError(f"{cls.__typename__} 'name' must be a string")
    elif not (name := name.strip()):
        raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
    metadata["name"] = name

    if isinstance(arity := metadata["arity"], bool) or not isinstance(arity, int):
        raise TypeError(f"{cls.__typename__} 'arity' must be an arity")
    try:
        metadata["arity"] = Arity(arity)
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'arity' must be one of {", ".join(map(str, Arity))}") from None

    dispatch = metadata["dispatch"]
    if isinstance(dispatch, str):
        if len(dispatch) != 1:
            raise TypeError(f"{cls.__typename__} 'dispatch' must be an integer or a single character")
        dispatch = ord(dispatch)
    elif isinstance(dispatch, bool) or not isinstance(dispatch, int | Unset):
        raise TypeError(f"{cls.__typename__} 'dispatch' must be an integer or a single character")
    metadata["dispatch"] = coalesce(dispatch)

    if not isinstance(descr := metadata["descr"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


class Parameter(metaclass=ParameterType):
    """
    Common record layout of every descriptor kind.

    Parameter itself is abstract: instantiate Boolean, Integer, Float or Text.
    Concrete kinds define
    - initial:  value held before the first match,
    - presence: value stored when the option matches without text,
    - _convert: text -> typed value (raises ValueError on malformed text).

    Properties (read-only)
    - name, arity, dispatch, descr, pause: declaration metadata.
    - seen: number of matches so far.
    - value: last converted value.
    - failed: True when the latest match of this parameter was rejected as bad input.
    """

    __introspectable__ = (
        "name",
        "arity",
        "dispatch",
        "seen",
        "value",
        "failed",
        "pause",
        "descr",
    )

    initial = None
    presence = None

    def __init__(self, name, arity=NO_ARGUMENT, dispatch=Unset, /, *, pause=False, descr=Unset):
        """
        Declare a parameter.

        Parameters
        - name: str
          Long option name (matched as --name, unique prefixes accepted).
        - arity: Arity
          NO_ARGUMENT, REQUIRED_ARGUMENT or OPTIONAL_ARGUMENT.
        - dispatch: Unset | int | str
          Dispatch value; doubles as the short option character when printable.
          Omit it for a long-only option.
        - pause: bool
          A match of this parameter makes process() return ExitState.PAUSE so the
          caller can act before resuming the scan.
        - descr: Unset | str
          Short description (display only).
        """
        if type(self) is Parameter:
            raise TypeError("cannot instantiate abstract parameter; use Boolean, Integer, Float or Text")

        metadata = {
            "name": name,
            "arity": arity,
            "dispatch": dispatch,
            "pause": bool(pause),
            "descr": descr,
        }
        _sanitize_metadata(type(self), metadata)

        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        self.reset()

    @property
    def short(self):
        """
        The short option character, or None for long-only parameters.
        """
        if self._dispatch is None or not 0x21 <= self._dispatch <= 0x7E:
            return None
        if (character := chr(self._dispatch)) in ":-":
            return None
        return character

    def reset(self):
        """
        Return to the pre-scan state: never seen, initial value, not failed.
        """
        self._seen = 0
        self._value = type(self).initial
        self._failed = False

    def convert(self, text=None, /):
        """
        Convert raw option text to this parameter's type.

        None means the option carried no text and yields the presence default.
        Malformed text raises ValueError.
        """
        if text is None:
            return type(self).presence
        return self._convert(text)

    def _convert(self, text, /):
        raise NotImplementedError

    def __str__(self):
        return f"{self._name} seen: {self._seen} value: {self._value}"


# plain ASCII numerals only: no surrounding blanks, digit separators or other scripts
_INTEGER = re.compile(r"[+-]?[0-9]+", re.ASCII)
_FLOAT = re.compile(
    r"[+-]?(?:(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?|inf(?:inity)?|nan)",
    re.ASCII | re.IGNORECASE
)


class Boolean(Parameter, sealed=True):
    """
    Presence switch: matching it stores True whatever text came with it.
    """
    initial = False
    presence = True

    def _convert(self, text, /):
        return True


class Integer(Parameter, sealed=True):
    initial = 0
    presence = 0

    def _convert(self, text, /):
        if not _INTEGER.fullmatch(text):
            raise ValueError("invalid integer literal %r" % text)
        return int(text)


class Float(Parameter, sealed=True):
    initial = 0.0
    presence = 0.0

    def _convert(self, text, /):
        if not _FLOAT.fullmatch(text):
            raise ValueError("invalid float literal %r" % text)
        return float(text)


class Text(Parameter, sealed=True):
    initial = ""
    presence = ""

    def _convert(self, text, /):
        return str(text)


class Registry(Sequence):
    """
    Ordered, fixed-length collection of descriptors for one parsing session.

    Indexing
    - registry[0]         -> first descriptor
    - registry["start"]   -> first descriptor named "start" (KeyError when absent)

    The registry never grows or shrinks; the engine only mutates the descriptors it holds.
    """
    __slots__ = ("_parameters",)

    def __init__(self, *parameters):
        for parameter in parameters:
            if not isinstance(parameter, Parameter):
                raise TypeError("registry items must be parameters, not %r" % type(parameter).__name__)
        self._parameters = parameters

    @classmethod
    def of(cls, parameters, /):
        """
        Wrap an iterable of descriptors (a Registry is returned unchanged).
        """
        if isinstance(parameters, cls):
            return parameters
        if not isinstance(parameters, Iterable):
            raise TypeError("Registry.of() argument must be an iterable of parameters")
        return cls(*parameters)

    def __getitem__(self, key, /):
        if isinstance(key, str):
            for parameter in self._parameters:
                if parameter.name == key:
                    return parameter
            raise KeyError(key)
        return self._parameters[key]

    def __len__(self):
        return len(self._parameters)

    def reset(self):
        """
        Reset every descriptor (see Parameter.reset).
        """
        for parameter in self._parameters:
            parameter.reset()

    def __repr__(self):
        return "registry(%s)" % ", ".join(map(repr, self._parameters))

    def __rich_repr__(self):
        yield from self._parameters


__all__ = (
    "Arity",
    "NO_ARGUMENT",
    "REQUIRED_ARGUMENT",
    "OPTIONAL_ARGUMENT",
    "Parameter",
    "Boolean",
    "Integer",
    "Float",
    "Text",
    "Registry",
)

# Not part of the public API.
del ParameterType
