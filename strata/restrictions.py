"""
Restrictions: declarative rules checked against a token stream.

Model
- A restriction is built once and evaluated lazily: violations() returns a new
  generator on every call, so a restriction can be checked again after the
  token stream or the comparer changed.
- Iterating a restriction is the same as iterating violations().
- is_violated is True when at least one violation is produced.
- Every Violation carries the restriction's class name as its kind.

Evaluation context
- Each restriction takes keyword-only tokens= and comparer= options. Unset
  values are resolved when violations are produced (process arguments and
  process-wide comparer), not when the restriction is built.

Catalogue
- LegalArgumentsRestriction: every root segment must equal one of the groupings.
- UnknownArgumentsRestriction: every switch must be a declared command.
- FirstArgMustBeRootRestriction: the first token must belong to the root tier.
- ParameterCountRestriction: a present call-chain has a bounded parameter count.
- IllegalComboRestriction: two groupings cannot be present together.
- MandatedComboRestriction: two groupings are present together or not at all.
- MustContainAtLeastOneArgumentRestriction: the stream is not empty.
- CannotContainAnyArgumentsRestriction: the stream is empty.

Surfacing
- violations(*restrictions) chains the violations of several restrictions.
- enforce(*restrictions, **options) raises (or renders, in shell mode) a
  ViolationExit holding one ViolationError per violation.
"""
import itertools
from abc import ABC, abstractmethod

from . import commandline
from .faults import FaultCode, ViolationError, ViolationExit, trigger
from .matching import exclude_params, found, params, tier, _chain
from .models import Grouping, Specification, Violation
from .registry import Registry
from .utils import Unset, distinct, unordered_equals


def _grouping(cls, field, grouping, /):
    if not isinstance(grouping, Grouping):
        raise TypeError(f"{cls.__name__} {field!r} must be a grouping")
    return grouping


class Restriction(ABC):
    """
    base of all restrictions.

    subclasses implement _evaluate(tokens, comparer) as a generator of messages;
    the base turns each message into a Violation of the subclass kind.
    """
    code = Unset
    title = "restriction violated"
    hint = Unset

    __introspectable__ = ()

    def __init__(self, *, tokens=Unset, comparer=Unset):
        # a one-shot iterable would make the restriction single-use
        self._tokens = tokens if tokens is Unset else commandline.tokens(tokens)
        self._comparer = comparer if comparer is Unset else commandline.resolve(comparer)

    @property
    def kind(self):
        return type(self).__name__

    @property
    def tokens(self):
        return commandline.tokens(self._tokens)

    @property
    def comparer(self):
        return commandline.resolve(self._comparer)

    @abstractmethod
    def _evaluate(self, tokens, comparer):
        raise NotImplementedError

    def violations(self):
        """
        return a fresh generator of Violation records.
        """
        tokens, comparer = self.tokens, self.comparer
        for message in self._evaluate(tokens, comparer):
            yield Violation(self.kind, message)

    def __iter__(self):
        return self.violations()

    @property
    def is_violated(self):
        return next(self.violations(), None) is not None

    def __rich_repr__(self):
        for name in type(self).__introspectable__:
            yield name, getattr(self, name)

    def __repr__(self):
        return f"{self.kind}({', '.join(f'{name}={value!r}' for name, value in self.__rich_repr__())})"


class LegalArgumentsRestriction(Restriction):
    """
    every root segment must match one of the declared groupings.

    the stream is reduced to its switches, then cut into segments at each known
    root command; the commands of a segment must equal the commands of some
    grouping, order aside. a segment matching none is reported as its
    space-joined tokens.
    """
    code = FaultCode.ILLEGAL_ARGUMENTS
    title = "illegal arguments"
    hint = "use one of the documented argument combinations"

    __introspectable__ = ("registry", "groupings")

    def __init__(self, registry, /, *groupings, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        if not isinstance(registry, Registry):
            raise TypeError(f"{self.kind} 'registry' must be a registry")
        self._registry = registry
        self._groupings = tuple(_grouping(type(self), "groupings", grouping) for grouping in groupings)

    @property
    def registry(self):
        return self._registry

    @property
    def groupings(self):
        return self._groupings

    def _segments(self, tokens, comparer):
        root = self._registry.root
        segments = []
        current = None
        for token in exclude_params(tokens, self._registry):
            if self._registry.tier(token) is root:
                current = None
                if self._registry.lookup(token, comparer) is not None:
                    segments.append(current := [token])
            elif current is not None:
                current.append(token)
        return segments

    def _evaluate(self, tokens, comparer):
        if not tokens or self._registry.root is None:
            return
        for segment in self._segments(tokens, comparer):
            if not any(unordered_equals(grouping.commands, segment, key=comparer.key) for grouping in self._groupings):
                yield " ".join(segment)


class UnknownArgumentsRestriction(Restriction):
    """
    every switch in the stream must be a declared command; each unknown one is reported once.
    """
    code = FaultCode.UNKNOWN_ARGUMENT
    title = "unknown argument"
    hint = "check the spelling of the argument"

    __introspectable__ = ("registry",)

    def __init__(self, registry, /, *, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        if not isinstance(registry, Registry):
            raise TypeError(f"{self.kind} 'registry' must be a registry")
        self._registry = registry

    @property
    def registry(self):
        return self._registry

    def _evaluate(self, tokens, comparer):
        for token in distinct(exclude_params(tokens, self._registry), key=comparer.key):
            if self._registry.lookup(token, comparer) is None:
                yield token


class FirstArgMustBeRootRestriction(Restriction):
    code = FaultCode.FIRST_ARGUMENT_NOT_ROOT
    title = "first argument is not a command"
    hint = "start the command line with a root command"

    __introspectable__ = ("root",)

    def __init__(self, root, /, *, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        if not isinstance(root, Specification):
            raise TypeError(f"{self.kind} 'root' must be a specification")
        self._root = root

    @property
    def root(self):
        return self._root

    def _evaluate(self, tokens, comparer):
        if tokens and tier(self._root, tokens[0]) is not self._root:
            yield tokens[0]


class ParameterCountRestriction(Restriction):
    """
    when the call-chain is present, its leaf must carry between minimum and maximum parameters (inclusive).
    """
    code = FaultCode.PARAMETER_COUNT
    title = "wrong number of parameters"

    __introspectable__ = ("minimum", "maximum", "chain")

    def __init__(self, minimum, maximum, /, *chain, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        for name, value in (("minimum", minimum), ("maximum", maximum)):
            if not isinstance(value, int) or isinstance(value, bool):
                raise TypeError(f"{self.kind} {name!r} must be an integer")
        if minimum < 0 or maximum < minimum:
            raise ValueError(f"{self.kind} bounds must satisfy 0 <= minimum <= maximum")
        self._minimum = minimum
        self._maximum = maximum
        self._chain = _chain(chain)

    @property
    def minimum(self):
        return self._minimum

    @property
    def maximum(self):
        return self._maximum

    @property
    def chain(self):
        return self._chain

    @property
    def hint(self):
        if self._minimum == self._maximum:
            return f"expected exactly {self._minimum} parameter(s)"
        return f"expected between {self._minimum} and {self._maximum} parameters"

    def _evaluate(self, tokens, comparer):
        if not found(self._chain, tokens=tokens, comparer=comparer):
            return
        if not self._minimum <= len(params(self._chain, tokens=tokens, comparer=comparer)) <= self._maximum:
            yield " ".join(argument.command for argument in self._chain)


class _ComboRestriction(Restriction):
    __introspectable__ = ("first", "second")

    def __init__(self, first, second, /, *, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        self._first = _grouping(type(self), "first", first)
        self._second = _grouping(type(self), "second", second)

    @property
    def first(self):
        return self._first

    @property
    def second(self):
        return self._second

    def _presence(self, tokens, comparer):
        return (
            found(self._first, tokens=tokens, comparer=comparer),
            found(self._second, tokens=tokens, comparer=comparer),
        )

    def _message(self):
        return f"{self._first} and {self._second}"


class IllegalComboRestriction(_ComboRestriction):
    """
    the two groupings cannot both be present.
    """
    code = FaultCode.ILLEGAL_COMBINATION
    title = "illegal combination"
    hint = "these arguments cannot be used together"

    def _evaluate(self, tokens, comparer):
        if tokens and all(self._presence(tokens, comparer)):
            yield self._message()


class MandatedComboRestriction(_ComboRestriction):
    """
    the two groupings are either both present or both absent.
    """
    code = FaultCode.MANDATED_COMBINATION
    title = "mandated combination"
    hint = "these arguments must be used together"

    def _evaluate(self, tokens, comparer):
        first, second = self._presence(tokens, comparer)
        if tokens and first != second:
            yield self._message()


class MustContainAtLeastOneArgumentRestriction(Restriction):
    code = FaultCode.NO_ARGUMENTS
    title = "no arguments"
    hint = "pass at least one argument"

    def _evaluate(self, tokens, comparer):
        if not tokens:
            yield "No arguments were found."


class CannotContainAnyArgumentsRestriction(Restriction):
    """
    the stream must be empty.

    inverted=True reports the empty stream instead, which makes the restriction
    an alias of MustContainAtLeastOneArgumentRestriction with its own kind.
    reporting the empty stream is the historical behavior of this restriction;
    callers that relied on it keep their meaning by passing inverted=True.
    """
    code = FaultCode.UNEXPECTED_ARGUMENTS
    title = "unexpected arguments"
    hint = "this program does not take arguments"

    __introspectable__ = ("inverted",)

    def __init__(self, *, inverted=False, tokens=Unset, comparer=Unset):
        super().__init__(tokens=tokens, comparer=comparer)
        if not isinstance(inverted, bool):
            raise TypeError(f"{self.kind} 'inverted' must be a boolean")
        self._inverted = inverted

    @property
    def inverted(self):
        return self._inverted

    def _evaluate(self, tokens, comparer):
        if self._inverted and not tokens:
            yield "No arguments were found."
        elif not self._inverted and tokens:
            yield "One or more arguments were found."


def violations(*restrictions):
    """
    yield the violations of every restriction, in order.
    """
    for restriction in restrictions:
        if not isinstance(restriction, Restriction):
            raise TypeError("violations() arguments must be restrictions")
    return itertools.chain.from_iterable(restriction.violations() for restriction in restrictions)


def enforce(*restrictions, **options):
    """
    evaluate restrictions and trigger a ViolationExit when any is violated.

    options are forwarded to trigger() (shell, deferred, fancy, colorful).
    returns the collected violations, which is only useful in deferred shell mode
    or when nothing was violated.
    """
    for restriction in restrictions:
        if not isinstance(restriction, Restriction):
            raise TypeError("enforce() arguments must be restrictions")
    faults = []
    for restriction in restrictions:
        for violation in restriction.violations():
            faults.append(ViolationError(
                violation.message,
                violation=violation,
                code=restriction.code,
                title=restriction.title,
                hint=restriction.hint,
            ))
    if faults:
        trigger(ViolationExit(faults), **options)
    return tuple(fault.violation for fault in faults)


__all__ = (
    "Restriction",
    "LegalArgumentsRestriction",
    "UnknownArgumentsRestriction",
    "FirstArgMustBeRootRestriction",
    "ParameterCountRestriction",
    "IllegalComboRestriction",
    "MandatedComboRestriction",
    "MustContainAtLeastOneArgumentRestriction",
    "CannotContainAnyArgumentsRestriction",
    "violations",
    "enforce",
)
