"""
Registry of declared specifications and arguments.

A Registry is an explicit value handed around by the caller: it owns the
identity of every specification and argument declared on it and enforces
their uniqueness. Nothing is process-wide; two registries never interfere.

Rules
- at most one specification per hierarchy value and per delimiter.
- at most one argument per (command, specification) pair, compared with the
  comparison policy in force at declaration time.
- a failed declaration raises before anything is inserted.

Concurrency
- declarations are check-then-insert sequences; they run under a lock so that
  concurrent registration cannot slip a duplicate in between.

Lookups
- tier(token) resolves a token to the specification whose delimiter is the
  longest prefix of it ("--x" belongs to "--", not "-"), or None for a free
  parameter.
"""
from threading import Lock

from . import commandline
from .faults import (
    DuplicateArgumentError,
    DuplicateDelimiterError,
    DuplicateHierarchyError,
    ForeignSpecificationError,
)
from .models import Argument, Specification
from .utils import Unset


class Registry:
    """
    owner of declared specifications and arguments.

        registry = Registry()
        commands = registry.specify(0, "--")
        convert = registry.declare("convert", commands)
    """
    __slots__ = ("_lock", "_specifications", "_arguments")

    def __init__(self):
        self._lock = Lock()
        self._specifications = []
        self._arguments = []

    def specify(self, hierarchy, delimiter, /):
        """
        declare a new tier and return its specification.

        errors
        - TypeError / InvalidDelimiterError from Specification validation.
        - DuplicateHierarchyError when the hierarchy is already declared.
        - DuplicateDelimiterError when the delimiter is already declared.
        """
        specification = Specification(hierarchy, delimiter, registry=self)
        with self._lock:
            for known in self._specifications:
                if known.hierarchy == hierarchy:
                    raise DuplicateHierarchyError(
                        f"hierarchy {hierarchy} has already been declared",
                        hierarchy=hierarchy,
                    )
                if known.delimiter == delimiter:
                    raise DuplicateDelimiterError(
                        f"delimiter {delimiter!r} has already been declared",
                        delimiter=delimiter,
                    )
            self._specifications.append(specification)
        return specification

    def declare(self, name, specification, /, descr=Unset):
        """
        declare a new argument on one of this registry's specifications.

        errors
        - TypeError / InvalidNameError from Argument validation.
        - ForeignSpecificationError when the specification was not created by this registry's specify().
        - DuplicateArgumentError when the command is already declared on that tier.
        """
        argument = Argument(name, specification, descr)
        comparer = commandline.getcomparer()
        with self._lock:
            if specification.registry is not self or specification not in self._specifications:
                raise ForeignSpecificationError(
                    f"specification {specification.delimiter!r} was not specified on this registry",
                    specification=specification,
                )
            for known in self._arguments:
                if known.specification is specification and comparer.equals(known.command, argument.command):
                    raise DuplicateArgumentError(
                        f"argument {argument.command!r} has already been declared",
                        command=argument.command,
                    )
            self._arguments.append(argument)
        return argument

    @property
    def specifications(self):
        """
        declared specifications, ordered from the root tier down.
        """
        return tuple(sorted(self._specifications, key=lambda specification: specification.hierarchy))

    @property
    def arguments(self):
        """
        declared arguments, in declaration order.
        """
        return tuple(self._arguments)

    @property
    def delimiters(self):
        return tuple(specification.delimiter for specification in self.specifications)

    @property
    def root(self):
        """
        the specification with the lowest hierarchy, or None when nothing is declared.
        """
        return min(self._specifications, key=lambda specification: specification.hierarchy, default=None)

    def tier(self, token, /):
        """
        return the specification a token belongs to, or None when it is a parameter.

        the longest matching delimiter wins, so with "--" and "-" declared,
        "--x" belongs to "--" and "-x" to "-".
        """
        best = None
        for specification in self._specifications:
            if token.startswith(specification.delimiter):
                if best is None or len(specification.delimiter) > len(best.delimiter):
                    best = specification
        return best

    def isswitch(self, token, /):
        return self.tier(token) is not None

    def lookup(self, token, /, comparer=Unset):
        """
        return the declared argument whose command equals token, or None.
        """
        comparer = commandline.resolve(comparer)
        for argument in self._arguments:
            if comparer.equals(argument.command, token):
                return argument
        return None

    def __iter__(self):
        return iter(tuple(self._arguments))

    def __len__(self):
        return len(self._arguments)

    def __contains__(self, object, /):
        return object in self._arguments or object in self._specifications

    def __repr__(self):
        return f"registry(specifications={self.specifications!r}, arguments={len(self._arguments)})"


__all__ = (
    "Registry",
)
