"""
Matching engine: segments, parameters and presence.

Targets
- an Argument;
- a call-chain: a non-empty sequence of arguments, parent first, leaf last;
- a Grouping: flattened into parents + children and treated as a call-chain.

Segments
- segment(argument) starts at the first token equal to the argument's command
  and runs until the next token of the same or an outranking tier (a repeat of
  the argument itself included). A chain is resolved step by step, each
  argument being searched inside the previous argument's segment, so a child
  only matches when it is nested in its declared parents.
- params(target) is the segment without its leading command, cut at the first
  token that starts with any known delimiter.
- occurrences(argument) yields the segment of every occurrence, not only the first.

Presence
- found(target, options) answers whether the leaf of the target is present in
  its scope (the whole stream for a single argument, the parents' segment for a
  chain), refined by SearchOptions describing children, siblings and params.
- the accepted option combinations form an explicit table (_POLICIES); passing
  both halves of a with/without pair raises ConflictingOptionsError, anything
  outside the table raises UnsupportedOptionsError.

Every function takes the token stream (default: the process arguments) and the
comparer (default: the process-wide comparer) as optional trailing parameters.
"""
import functools
import itertools
from collections.abc import Iterable
from enum import IntFlag

from . import commandline
from .faults import ConflictingOptionsError, UnsupportedOptionsError, UnreachableChainWarning, trigger
from .models import Argument, Grouping
from .utils import Unset


class SearchOptions(IntFlag):
    """
    refinements of a presence check.

    - NONE: present.
    - WITH_CHILDREN / WITHOUT_CHILDREN: the segment holds more than the command / only the command.
    - WITH_SIBLINGS / WITHOUT_SIBLINGS: another switch of the same tier is / is not in scope.
    - WITH_PARAMS / WITHOUT_PARAMS: the argument has / has no parameters.
    """
    NONE = 0
    WITH_CHILDREN = 1
    WITHOUT_CHILDREN = 2
    WITH_SIBLINGS = 4
    WITHOUT_SIBLINGS = 8
    WITH_PARAMS = 16
    WITHOUT_PARAMS = 32


_EXCLUSIVE = (
    (SearchOptions.WITH_CHILDREN, SearchOptions.WITHOUT_CHILDREN),
    (SearchOptions.WITH_SIBLINGS, SearchOptions.WITHOUT_SIBLINGS),
    (SearchOptions.WITH_PARAMS, SearchOptions.WITHOUT_PARAMS),
)


class _Probe:
    """
    lazily evaluated facts about one leaf inside its scope.

    children and params come from the leaf's own segment; siblings come from the
    scope the leaf was searched in.
    """

    def __init__(self, argument, scope, comparer):
        self.argument = argument
        self.scope = scope
        self.comparer = comparer

    @functools.cached_property
    def segment(self):
        return _resolve(self.argument, self.scope, self.comparer)

    @functools.cached_property
    def children(self):
        return len(self.segment) > 1

    @functools.cached_property
    def params(self):
        return bool(_params(self.argument, self.segment))

    @functools.cached_property
    def siblings(self):
        specification = self.argument.specification
        for token in self.scope:
            if tier(specification, token) is specification and not self.comparer.equals(token, self.argument.command):
                return True
        return False


_C, _NC = SearchOptions.WITH_CHILDREN, SearchOptions.WITHOUT_CHILDREN
_S, _NS = SearchOptions.WITH_SIBLINGS, SearchOptions.WITHOUT_SIBLINGS
_P, _NP = SearchOptions.WITH_PARAMS, SearchOptions.WITHOUT_PARAMS

# Presence is checked before the table is consulted; each row only adds its refinements.
_POLICIES = {
    SearchOptions.NONE: lambda probe: True,

    _C: lambda probe: probe.children,
    _NC: lambda probe: not probe.children,
    _S: lambda probe: probe.siblings,
    _NS: lambda probe: not probe.siblings,
    _P: lambda probe: probe.params,
    _NP: lambda probe: not probe.params,

    _C | _S: lambda probe: probe.children and probe.siblings,
    _C | _NS: lambda probe: probe.children and not probe.siblings,
    _NC | _S: lambda probe: not probe.children and probe.siblings,
    _NC | _NS: lambda probe: not probe.children and not probe.siblings,

    _C | _P: lambda probe: probe.children and probe.params,
    _C | _NP: lambda probe: probe.children and not probe.params,
    _NC | _P: lambda probe: not probe.children and probe.params,
    _NC | _NP: lambda probe: not probe.children and not probe.params,

    _S | _P: lambda probe: probe.siblings and probe.params,
    _S | _NP: lambda probe: probe.siblings and not probe.params,
    _NS | _P: lambda probe: not probe.siblings and probe.params,
    _NS | _NP: lambda probe: not probe.siblings and not probe.params,

    _C | _S | _P: lambda probe: probe.children and probe.siblings and probe.params,
    _C | _S | _NP: lambda probe: probe.children and probe.siblings and not probe.params,
    _C | _NS | _P: lambda probe: probe.children and not probe.siblings and probe.params,
    _C | _NS | _NP: lambda probe: probe.children and not probe.siblings and not probe.params,
    _NC | _S | _P: lambda probe: not probe.children and probe.siblings and probe.params,
    _NC | _S | _NP: lambda probe: not probe.children and probe.siblings and not probe.params,
    _NC | _NS | _P: lambda probe: not probe.children and not probe.siblings and probe.params,
    _NC | _NS | _NP: lambda probe: not probe.children and not probe.siblings and not probe.params,
}

del _C, _NC, _S, _NS, _P, _NP


def tier(specification, token):
    """
    the specification a token belongs to, seen from an argument's specification.

    a specification created outside of a registry only knows its own delimiter.
    """
    if (registry := specification.registry) is None:
        return specification if token.startswith(specification.delimiter) else None
    return registry.tier(token)


def _locate(argument, tokens, comparer, start=0):
    """
    return the (start, stop) bounds of the first occurrence at or after start, or None.
    """
    command = argument.command
    for index in range(start, len(tokens)):
        if comparer.equals(tokens[index], command):
            break
    else:
        return None

    specification = argument.specification
    stop = index + 1
    while stop < len(tokens):
        owner = tier(specification, tokens[stop])
        if owner is not None and owner.outranks(specification):
            break
        stop += 1
    return index, stop


def _resolve(argument, tokens, comparer):
    if (bounds := _locate(argument, tokens, comparer)) is None:
        return ()
    return tokens[slice(*bounds)]


def _segment(chain, tokens, comparer):
    for argument in chain:
        if not tokens:
            return ()
        tokens = _resolve(argument, tokens, comparer)
    return tokens


def _params(argument, segment):
    specification = argument.specification
    return tuple(itertools.takewhile(lambda token: tier(specification, token) is None, segment[1:]))


def _chain(target):
    """
    normalize a target into a call-chain tuple.
    """
    if isinstance(target, Argument):
        return (target,)
    if isinstance(target, Grouping):
        chain = target.chain
    elif isinstance(target, Iterable) and not isinstance(target, str):
        chain = tuple(target)
        for argument in chain:
            if not isinstance(argument, Argument):
                raise TypeError("call-chain must only contain arguments")
    else:
        raise TypeError("target must be an argument, a call-chain or a grouping")

    if not chain:
        raise ValueError("call-chain cannot be empty")

    for parent, child in itertools.pairwise(chain):
        if child.specification.hierarchy <= parent.specification.hierarchy:
            # __trigger__, trigger, _chain, the public entry point, then its caller
            trigger(UnreachableChainWarning(
                f"{child.command!r} cannot nest under {parent.command!r}: the call-chain can never be found",
                chain=chain,
            ), stacklevel=5)
            break
    return chain


def _options(options):
    if not isinstance(options, int) or isinstance(options, bool):
        raise TypeError("options must be SearchOptions")
    if (value := int(options)) < 0 or value & ~0b111111:
        raise UnsupportedOptionsError(f"unknown search options: {value!r}", options=value)
    options = SearchOptions(value)
    for first, second in _EXCLUSIVE:
        if options & first and options & second:
            raise ConflictingOptionsError(f"invalid flag combination: {options!r}", options=options)
    if options not in _POLICIES:
        raise UnsupportedOptionsError(f"no search policy for {options!r}", options=options)
    return options


def segment(target, /, tokens=Unset, comparer=Unset):
    """
    return the tokens belonging to the target, starting with its (leaf) command.

    an empty tuple means the target is absent (or not nested as declared).
    """
    return _segment(_chain(target), commandline.tokens(tokens), commandline.resolve(comparer))


def params(target, /, tokens=Unset, comparer=Unset):
    """
    return the free parameters following the target's (leaf) command.

        >>> params([convert, source], ["--convert", "-in", "a.txt", "-out", "b.cs"])
        ('a.txt',)
    """
    chain = _chain(target)
    return _params(chain[-1], _segment(chain, commandline.tokens(tokens), commandline.resolve(comparer)))


def exclude_params(tokens, registry, /):
    """
    return the tokens that are switches of some declared tier, dropping free parameters.
    """
    return tuple(token for token in commandline.tokens(tokens) if registry.isswitch(token))


def occurrences(argument, /, tokens=Unset, comparer=Unset):
    """
    yield the segment of every occurrence of a single argument, left to right.
    """
    if not isinstance(argument, Argument):
        raise TypeError("occurrences() argument must be an argument")
    tokens = commandline.tokens(tokens)
    comparer = commandline.resolve(comparer)
    start = 0
    while (bounds := _locate(argument, tokens, comparer, start)) is not None:
        yield tokens[slice(*bounds)]
        start = bounds[1]


def found(target, options=SearchOptions.NONE, /, tokens=Unset, comparer=Unset):
    """
    determine whether the target is present, refined by options.

    errors
    - ConflictingOptionsError when a with/without pair is combined.
    - UnsupportedOptionsError for bits outside SearchOptions.
    """
    options = _options(options)
    chain = _chain(target)
    tokens = commandline.tokens(tokens)
    comparer = commandline.resolve(comparer)

    *parents, leaf = chain
    probe = _Probe(leaf, _segment(parents, tokens, comparer), comparer)
    if not probe.segment:
        return False
    return _POLICIES[options](probe)


__all__ = (
    "SearchOptions",
    "segment",
    "params",
    "exclude_params",
    "occurrences",
    "found",
    "tier",
)
