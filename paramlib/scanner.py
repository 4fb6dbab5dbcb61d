"""
Stateful option scanner over the standard library getopt module.

getopt.getopt() lexes a whole argument list in one call. The dispatch engine needs
the getopt_long calling convention instead: one match per call, with a cursor that
survives between calls so a session can stop (pause) and continue later. Scanner
provides that by handing getopt one option token at a time (plus the following
token when the option takes a separate argument) and keeping the cursor itself.

Ordering
- PERMUTE (default): non-option arguments are skipped and each option token is
  moved in front of them, in place, so that when scanning ends every residual
  argument sits at args[index:]. This is what GNU getopt_long does.
- REQUIRE_ORDER: scanning stops at the first non-option argument.
- When no ordering is given, POSIXLY_CORRECT in the environment selects REQUIRE_ORDER.

Tokens
- "--" ends scanning and is consumed.
- "-" alone and anything not starting with "-" are non-options.

Errors
- getopt.GetoptError propagates to the caller after the offending token has been
  consumed, so the next scan() continues with the following argument.
- Unlike GNU getopt_long, a token of combined short options is lexed as a whole:
  in "-ez" with an unknown "z", the valid "-e" is not returned either.

Reentrancy
- A Scanner is not thread-safe. Each session owns its own scanner; nothing here is
  process-wide.
"""
import enum
import getopt
import os
from collections import deque
from collections.abc import Iterable, MutableSequence

from .utils import *


class Ordering(enum.Enum):
    PERMUTE = "permute"
    REQUIRE_ORDER = "require-order"

    @classmethod
    def default(cls):
        """
        the ordering getopt_long would pick for the current environment.
        """
        return cls.REQUIRE_ORDER if "POSIXLY_CORRECT" in os.environ else cls.PERMUTE


def _optionlike(token):
    return token.startswith("-") and token != "-"


class Scanner:
    """
    One-match-at-a-time scanner with a persistent cursor.

    Parameters
    - args: Sequence[str]
      The full argument vector; element 0 is the program path and is never scanned.
      A mutable sequence is permuted in place; anything else is copied to a list first.
    - ordering: Unset | Ordering
      See module docs.

    Attributes
    - args: the (possibly permuted) argument vector.
    - index: position of the next unprocessed argument.
    """

    def __init__(self, args, /, ordering=Unset):
        if isinstance(args, str) or not isinstance(args, Iterable):
            raise TypeError("scanner argument must be a sequence of strings")
        if not isinstance(args, MutableSequence):
            args = list(args)
        if not all(isinstance(arg, str) for arg in args):
            raise TypeError("scanner argument must be a sequence of strings")
        if not isinstance(ordering, Ordering | Unset):
            raise TypeError("scanner 'ordering' must be an ordering")
        self._args = args
        self._ordering = coalesce(ordering, Ordering.default())
        self._index = 1
        self._position = None
        self._pending = deque()

    @property
    def args(self):
        return self._args

    @property
    def index(self):
        return self._index

    @property
    def position(self):
        """
        where the token of the latest match (or error) sits in args, None before any.
        """
        return self._position

    @property
    def ordering(self):
        return self._ordering

    def scan(self, shortopts, longopts):
        """
        Return the next (option, text) match, or None when no options remain.

        - option is "-c" for short matches and "--name" (full name, even when the
          user typed a unique prefix) for long matches.
        - text is "" when the option carried no argument.

        A token holding several short options ("-es5") produces several matches;
        they are returned by successive calls.
        """
        if self._pending:
            return self._pending.popleft()

        args = self._args
        if self._index >= len(args):
            return None

        if args[self._index] == "--":
            self._index += 1
            return None

        position = self._index
        if not _optionlike(args[position]):
            if self._ordering is Ordering.REQUIRE_ORDER:
                return None
            for position in range(self._index + 1, len(args)):
                if _optionlike(args[position]):
                    break
            else:
                return None
            if args[position] == "--":
                self._advance(position, 1)
                return None

        self._position = self._index
        try:
            matches, consumed = self._lex(position, shortopts, longopts)
        except getopt.GetoptError:
            self._advance(position, 1)
            raise

        self._advance(position, consumed)
        self._pending.extend(matches)
        return self._pending.popleft()

    def _lex(self, position, shortopts, longopts):
        """
        Lex the option token at `position` with getopt.

        The token is tried alone first. When getopt rejects it, the only error a
        following token can fix is a missing separate argument ("-s 5", "--start 5"),
        so the token is retried together with its successor; any other error is
        raised again by the retry.
        """
        try:
            matches, rest = getopt.getopt(self._args[position:position + 1], shortopts, longopts)
        except getopt.GetoptError:
            if position + 1 >= len(self._args):
                raise
            matches, rest = getopt.getopt(self._args[position:position + 2], shortopts, longopts)
            return matches, 2 - len(rest)
        return matches, 1 - len(rest)

    def _advance(self, position, consumed):
        """
        Move args[position:position + consumed] to the cursor and step over them.
        """
        if position != self._index:
            args = self._args
            args[self._index:position + consumed] = [
                *args[position:position + consumed],
                *args[self._index:position],
            ]
        self._index += consumed


__all__ = (
    "Ordering",
    "Scanner",
)
