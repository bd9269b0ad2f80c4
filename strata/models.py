r"""
Strata declarations: specifications, arguments, groupings and violations.

Overview
- Specification: one tier of the command line (hierarchy + delimiter), e.g.
  hierarchy 0 with "--" for root commands, hierarchy 1 with "-" for their children.
- Argument: a named switch bound to one specification; its command is the
  delimiter followed by the name ("--convert").
- Grouping: one specific legal combination of a parent call-chain and children.
- Violation: the (kind, message) record produced by restrictions.

Construction
- Specifications and arguments are created through a Registry (see
  strata.registry), which owns uniqueness. Constructing them directly only
  validates their own shape.
- Groupings are free values; build as many as there are legal shapes.

Representation
- ModelType provides stable __repr__/__rich_repr__ and exposes the fields
  declared in __introspectable__ as read-only properties (via mirror()).
- All model types are sealed: the set of variants is closed.

Quick example:
    >>> registry = Registry()
    >>> commands = registry.specify(0, "--")
    >>> options = registry.specify(1, "-")
    >>> convert = registry.declare("convert", commands)
    >>> source = registry.declare("in", options)
    >>> Grouping(convert, [source])
    grouping(parents=(argument(command='--convert', ...),), children=(...), descr=None)
"""
import functools
import operator
import re
from collections.abc import Iterable
from typing import NamedTuple

from rich.text import Text

from .faults import InvalidDelimiterError, InvalidNameError
from .utils import *


class ModelType(type):
    """
    Metaclass that turns declarations into sealed, introspectable values.

    Responsibilities
    - Provide stable, readable __repr__/__rich_repr__ implementations.
    - Expose selected fields as read-only properties using mirror() for all
      names listed in __introspectable__.
    - Seal the resulting classes against subclassing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and representations.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__init_subclass__")
        def __init_subclass__(cls, **options):  # NOQA: F-841
            raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
        self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_descr(cls, descr, /):
    """
    Internal: validate an optional description (Unset, or a non-empty string / rich Text).
    """
    if not isinstance(descr, str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    return coalesce(descr)


def _sanitize_arguments(cls, field, arguments, /):
    """
    Internal: normalize a single Argument or an iterable of them into a tuple.
    """
    if isinstance(arguments, Argument):
        return (arguments,)
    if not isinstance(arguments, Iterable) or isinstance(arguments, str):
        raise TypeError(f"{cls.__typename__} '{field}' must be an argument or an iterable of arguments")
    arguments = tuple(arguments)
    for argument in arguments:
        if not isinstance(argument, Argument):
            raise TypeError(f"{cls.__typename__} '{field}' must only contain arguments")
    return arguments


class Specification(metaclass=ModelType):
    """
    One tier of the command line.

    Lower hierarchy values are parents of higher ones; the lowest declared
    hierarchy of a registry is its root. The delimiter is the prefix that marks
    a token as a switch of this tier.

    Rules
    - hierarchy must be an integer (booleans are rejected).
    - delimiter must be a non-empty string that contains neither whitespace
      nor letters/digits.
    """

    __introspectable__ = (
        "hierarchy",
        "delimiter",
    )

    def __new__(cls, hierarchy, delimiter, /, registry=None):
        if not isinstance(hierarchy, int) or isinstance(hierarchy, bool):
            raise TypeError(f"{cls.__typename__} 'hierarchy' must be an integer")
        if not isinstance(delimiter, str):
            raise TypeError(f"{cls.__typename__} 'delimiter' must be a string")
        if not delimiter or any(char.isalnum() or char.isspace() for char in delimiter):
            raise InvalidDelimiterError(
                f"delimiter {delimiter!r} is not supported",
                hierarchy=hierarchy,
                delimiter=delimiter,
            )

        self = super().__new__(cls)
        self._hierarchy = hierarchy
        self._delimiter = delimiter
        self._registry = registry
        return self

    @property
    def registry(self):
        """
        The registry that owns this specification (None until registered).
        """
        return self._registry

    def outranks(self, other, /):
        """
        Whether this tier is the same as, or a parent of, the other tier.
        """
        return self._hierarchy <= other.hierarchy

    def __str__(self):
        return self._delimiter


class Argument(metaclass=ModelType):
    """
    A named switch bound to exactly one specification.

    The command is derived: the specification's delimiter followed by the name.
    Delimiter characters leading the given name are stripped first, so that
    "convert" and "--convert" declare the same command on the "--" tier.
    """

    __introspectable__ = (
        "command",
        "specification",
        "descr",
    )

    def __new__(cls, name, specification, /, descr=Unset):
        if not isinstance(specification, Specification):
            raise TypeError(f"{cls.__typename__} 'specification' must be a specification")
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        stripped = name.strip().lstrip(specification.delimiter)
        if not stripped or any(char.isspace() for char in stripped):
            raise InvalidNameError(f"argument name {name!r} is not supported", name=name)

        self = super().__new__(cls)
        self._name = stripped
        self._specification = specification
        self._command = specification.delimiter + stripped
        self._descr = _sanitize_descr(cls, descr)
        return self

    @property
    def name(self):
        return self._name

    def __str__(self):
        return self._command


class Grouping(metaclass=ModelType):
    """
    One specific legal combination: a parent call-chain plus its children.

    A grouping is not a wildcard. When "--main" accepts "-one" and "-two" with
    "-three" optional, declare two groupings: (--main; -one -two) and
    (--main; -one -two -three).
    """

    __introspectable__ = (
        "parents",
        "children",
        "descr",
    )

    def __new__(cls, parents, children=(), /, descr=Unset):
        parents = _sanitize_arguments(cls, "parents", parents)
        if not parents:
            raise ValueError(f"{cls.__typename__} 'parents' cannot be empty")

        self = super().__new__(cls)
        self._parents = parents
        self._children = _sanitize_arguments(cls, "children", children)
        self._descr = _sanitize_descr(cls, descr)
        return self

    @property
    def chain(self):
        """
        The flattened call-chain: parents followed by children.
        """
        return self._parents + self._children

    @property
    def commands(self):
        return tuple(argument.command for argument in self.chain)

    def __str__(self):
        return " ".join(self.commands)


class Violation(NamedTuple):
    """
    A reported failure of a restriction against the observed tokens.

    kind is the restriction type name (e.g. "UnknownArgumentsRestriction");
    message carries the offending tokens or commands.
    """
    kind: str
    message: str

    def __rich__(self):
        return Text.assemble((self.kind, "bold #FF4DA6"), " → ", (self.message, "#C8C8D0"))

    def __str__(self):
        return f"{self.kind} => {self.message}"


__all__ = (
    "Specification",
    "Argument",
    "Grouping",
    "Violation",
)

# Keep the metaclass out of star-imports and documentation.
del ModelType
