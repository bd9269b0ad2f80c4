"""
Token source and comparison policy.

Scope
- arguments(): the invocation arguments of the running process, minus the
  executable path (sys.argv[1:]), as an immutable tuple.
- argumentstring(): the same arguments joined by single spaces.
- Comparer: how a token is compared to an argument command (ordinal or
  ordinal ignoring case).
- getcomparer()/setcomparer()/comparing(): the process-wide default comparer
  and a scoped override; every matching call also accepts its own comparer.

Notes
- The default comparer is ORDINAL_IGNORE_CASE.
- Delimiter prefixes are always compared ordinally; delimiters never contain
  letters, so case folding would not change them.
"""
import sys
from contextlib import contextmanager
from enum import Enum

from .utils import Unset


class Comparer(Enum):
    """
    string comparison policy used to match tokens against commands.

    members
    - ORDINAL: exact, case-sensitive comparison.
    - ORDINAL_IGNORE_CASE: comparison on casefolded text.
    """
    ORDINAL = "ordinal"
    ORDINAL_IGNORE_CASE = "ordinal-ignore-case"

    def key(self, text, /):
        """
        return the identity of text under this policy (usable as a dict/set key).
        """
        if self is Comparer.ORDINAL_IGNORE_CASE:
            return text.casefold()
        return text

    def equals(self, first, second, /):
        return self.key(first) == self.key(second)


_default = Comparer.ORDINAL_IGNORE_CASE


def getcomparer():
    """
    return the process-wide default comparer.
    """
    return _default


def setcomparer(comparer, /):
    """
    replace the process-wide default comparer and return the previous one.
    """
    global _default
    if not isinstance(comparer, Comparer):
        raise TypeError("setcomparer() argument must be a Comparer")
    previous, _default = _default, comparer
    return previous


@contextmanager
def comparing(comparer, /):
    """
    temporarily override the default comparer; the previous one is restored on exit.

        with comparing(Comparer.ORDINAL):
            found(argument)
    """
    previous = setcomparer(comparer)
    try:
        yield comparer
    finally:
        setcomparer(previous)


def resolve(comparer=Unset, /):
    """
    materialize a per-call comparer, falling back to the process-wide default.
    """
    if comparer is Unset:
        return _default
    if not isinstance(comparer, Comparer):
        raise TypeError("comparer must be a Comparer")
    return comparer


def arguments():
    """
    return the received command line arguments, minus the path to the executing application.
    """
    return tuple(sys.argv[1:])


def argumentstring():
    return " ".join(arguments())


def tokens(source=Unset, /):
    """
    materialize a token stream: the given iterable of strings as a tuple, or arguments() when Unset.
    """
    if source is Unset:
        return arguments()
    if isinstance(source, str):
        raise TypeError("token stream must be an iterable of strings, not a string")
    source = tuple(source)
    for token in source:
        if not isinstance(token, str):
            raise TypeError("token stream must only contain strings")
    return source


__all__ = (
    "Comparer",
    "getcomparer",
    "setcomparer",
    "comparing",
    "resolve",
    "arguments",
    "argumentstring",
    "tokens",
)
