"""
Behavioral tests for the matching engine.

Scope
- segment(): first-occurrence boundaries, tier-aware cut, repeats, chains.
- params(): trailing free parameters, cut at the next switch.
- exclude_params() / occurrences().
- found(): presence, the full with/without option table, sibling scoping for
  chains, option conflicts and unsupported bits.
- Comparer: case handling follows the per-call or process-wide policy.

Conventions
- Test method names follow CamelCase per project convention.
- Token streams are always passed explicitly.
"""

from __future__ import annotations

import itertools
import unittest
import warnings
from unittest import TestCase

from strata import (
    Comparer,
    ConflictingOptionsError,
    Grouping,
    Registry,
    SearchOptions,
    Specification,
    Argument,
    UnreachableChainWarning,
    UnsupportedOptionsError,
    exclude_params,
    found,
    occurrences,
    params,
    segment,
    tier,
)

STREAM = ("--convert", "-in", "a.txt", "-out", "b.cs")


class MatchingCase(TestCase):
    """Two tiers ("--" root, "-" children) with convert/list and in/out."""

    def setUp(self):
        self.registry = Registry()
        self.commands = self.registry.specify(0, "--")
        self.options = self.registry.specify(1, "-")
        self.convert = self.registry.declare("convert", self.commands)
        self.list = self.registry.declare("list", self.commands)
        self.source = self.registry.declare("in", self.options)
        self.target = self.registry.declare("out", self.options)


class SegmentTest(MatchingCase):

    def testRootSegmentSpansChildren(self):
        self.assertEqual(segment(self.convert, tokens=STREAM), STREAM)

    def testChildSegmentStopsAtSibling(self):
        self.assertEqual(segment(self.source, tokens=STREAM), ("-in", "a.txt"))
        self.assertEqual(segment(self.target, tokens=STREAM), ("-out", "b.cs"))

    def testRootSegmentStopsAtNextRoot(self):
        stream = ("--convert", "-in", "a.txt", "--list", "-out")
        self.assertEqual(segment(self.convert, tokens=stream), ("--convert", "-in", "a.txt"))
        self.assertEqual(segment(self.list, tokens=stream), ("--list", "-out"))

    def testRepeatEndsSegment(self):
        stream = ("--convert", "a", "--convert", "b")
        self.assertEqual(segment(self.convert, tokens=stream), ("--convert", "a"))

    def testChildSegmentStopsAtOutrankingTier(self):
        stream = ("--convert", "-in", "a.txt", "--list")
        self.assertEqual(segment(self.source, tokens=stream), ("-in", "a.txt"))

    def testAbsentArgument(self):
        for argument in (self.convert, self.list, self.source, self.target):
            with self.subTest(argument=argument.command):
                self.assertEqual(segment(argument, tokens=("--other", "x")), ())
                self.assertEqual(params(argument, tokens=("--other", "x")), ())
                self.assertFalse(found(argument, tokens=("--other", "x")))

    def testEmptyStream(self):
        self.assertEqual(segment(self.convert, tokens=()), ())

    def testChainSearchesInsideParent(self):
        self.assertEqual(segment([self.convert, self.source], tokens=STREAM), ("-in", "a.txt"))

    def testChainRequiresNesting(self):
        stream = ("-in", "a.txt", "--convert")
        self.assertEqual(segment(self.source, tokens=stream), ("-in", "a.txt"))
        self.assertEqual(segment([self.convert, self.source], tokens=stream), ())

    def testChainWithAbsentParent(self):
        self.assertEqual(segment([self.list, self.source], tokens=STREAM), ())

    def testGroupingTarget(self):
        self.assertEqual(segment(Grouping(self.convert, self.target), tokens=STREAM), ("-out", "b.cs"))

    def testIdempotent(self):
        for target in (self.convert, [self.convert, self.source], [self.convert, self.target]):
            first = segment(target, tokens=STREAM)
            leaf = target if isinstance(target, Argument) else target[-1]
            self.assertEqual(segment(leaf, tokens=first), first)

    def testComparer(self):
        stream = ("--CONVERT", "-In", "a.txt")
        self.assertEqual(segment(self.convert, tokens=stream), stream)
        self.assertEqual(segment(self.convert, tokens=stream, comparer=Comparer.ORDINAL), ())

    def testInvalidTargets(self):
        with self.assertRaises(TypeError):
            segment("--convert", tokens=STREAM)
        with self.assertRaises(TypeError):
            segment([self.convert, "-in"], tokens=STREAM)
        with self.assertRaises(ValueError):
            segment([], tokens=STREAM)

    def testUnregisteredSpecificationUsesOwnDelimiter(self):
        loose = Argument("run", Specification(0, "/"))
        self.assertEqual(segment(loose, tokens=("/run", "x", "/stop", "y")), ("/run", "x"))

    def testUnreachableChainWarns(self):
        with self.assertWarns(UnreachableChainWarning):
            result = segment([self.source, self.target], tokens=STREAM)
        self.assertEqual(result, ())


class TierTest(MatchingCase):

    def testRegisteredSpecificationDelegatesToRegistry(self):
        self.assertIs(tier(self.options, "--convert"), self.commands)
        self.assertIs(tier(self.commands, "-in"), self.options)
        self.assertIsNone(tier(self.commands, "a.txt"))

    def testLooseSpecificationKnowsOnlyItself(self):
        loose = Specification(3, ":")
        self.assertIs(tier(loose, ":x"), loose)
        self.assertIsNone(tier(loose, "--x"))


class ParamsTest(MatchingCase):

    def testChildParams(self):
        self.assertEqual(params([self.convert, self.source], tokens=STREAM), ("a.txt",))
        self.assertEqual(params(self.target, tokens=STREAM), ("b.cs",))

    def testParamsStopAtAnySwitch(self):
        self.assertEqual(params(self.convert, tokens=STREAM), ())
        stream = ("--convert", "x", "y", "-in", "a.txt")
        self.assertEqual(params(self.convert, tokens=stream), ("x", "y"))

    def testParamsStopAtUnknownSwitch(self):
        stream = ("-in", "a.txt", "-bogus", "b.txt")
        self.assertEqual(segment(self.source, tokens=stream), ("-in", "a.txt"))
        self.assertEqual(params(self.source, tokens=stream), ("a.txt",))

    def testIdempotent(self):
        once = params([self.convert, self.source], tokens=STREAM)
        twice = params([self.convert, self.source], tokens=STREAM)
        self.assertEqual(once, twice)


class ExcludeParamsTest(MatchingCase):

    def testKeepsSwitchesInOrder(self):
        self.assertEqual(exclude_params(STREAM, self.registry), ("--convert", "-in", "-out"))

    def testUnknownSwitchesAreKept(self):
        self.assertEqual(exclude_params(("x", "-bogus", "y"), self.registry), ("-bogus",))


class OccurrencesTest(MatchingCase):

    def testEveryOccurrence(self):
        stream = ("--convert", "-in", "a", "--convert", "-in", "b", "c")
        self.assertEqual(
            list(occurrences(self.source, tokens=stream)),
            [("-in", "a"), ("-in", "b", "c")],
        )
        self.assertEqual(
            list(occurrences(self.convert, tokens=stream)),
            [("--convert", "-in", "a"), ("--convert", "-in", "b", "c")],
        )

    def testNoOccurrence(self):
        self.assertEqual(list(occurrences(self.list, tokens=STREAM)), [])

    def testRequiresArgument(self):
        with self.assertRaises(TypeError):
            list(occurrences([self.convert], tokens=STREAM))


class FoundTest(MatchingCase):

    def testScenario(self):
        self.assertTrue(found(self.convert, SearchOptions.WITH_CHILDREN, tokens=STREAM))
        self.assertTrue(found(self.source, SearchOptions.WITH_SIBLINGS, tokens=STREAM))
        self.assertFalse(found(self.source, SearchOptions.WITHOUT_SIBLINGS, tokens=STREAM))

    def testChildren(self):
        self.assertTrue(found(self.list, SearchOptions.WITHOUT_CHILDREN, tokens=("--list",)))
        self.assertFalse(found(self.list, SearchOptions.WITH_CHILDREN, tokens=("--list",)))
        self.assertTrue(found(self.list, SearchOptions.WITH_CHILDREN, tokens=("--list", "x")))

    def testParams(self):
        self.assertTrue(found(self.target, SearchOptions.WITH_PARAMS, tokens=STREAM))
        self.assertFalse(found(self.convert, SearchOptions.WITH_PARAMS, tokens=STREAM))
        self.assertTrue(found(self.convert, SearchOptions.WITHOUT_PARAMS, tokens=STREAM))

    def testRepeatedSiblingIsNotSibling(self):
        stream = ("--convert", "-in", "a", "-IN", "b")
        self.assertFalse(found(self.source, SearchOptions.WITH_SIBLINGS, tokens=stream))

    def testSiblingsScopedToParentSegment(self):
        stream = ("--convert", "-in", "a", "--list", "-out")
        self.assertFalse(found([self.convert, self.source], SearchOptions.WITH_SIBLINGS, tokens=stream))
        self.assertTrue(found(self.source, SearchOptions.WITH_SIBLINGS, tokens=stream))

    def testChainLeafEvaluated(self):
        self.assertTrue(found([self.convert, self.target], SearchOptions.WITH_PARAMS, tokens=STREAM))
        self.assertFalse(found([self.list, self.target], tokens=STREAM))

    def testGrouping(self):
        self.assertTrue(found(Grouping(self.convert, self.source), tokens=STREAM))
        self.assertFalse(found(Grouping(self.list, self.source), tokens=STREAM))

    def testAbsentIsFalseForEveryOption(self):
        for options in (SearchOptions.NONE, SearchOptions.WITHOUT_CHILDREN, SearchOptions.WITHOUT_SIBLINGS):
            with self.subTest(options=options):
                self.assertFalse(found(self.list, options, tokens=STREAM))

    def testEveryCombinationIsSupported(self):
        groups = (
            (SearchOptions.NONE, SearchOptions.WITH_CHILDREN, SearchOptions.WITHOUT_CHILDREN),
            (SearchOptions.NONE, SearchOptions.WITH_SIBLINGS, SearchOptions.WITHOUT_SIBLINGS),
            (SearchOptions.NONE, SearchOptions.WITH_PARAMS, SearchOptions.WITHOUT_PARAMS),
        )
        combinations = list(itertools.product(*groups))
        self.assertEqual(len(combinations), 27)
        for children, siblings, parameters in combinations:
            options = children | siblings | parameters
            with self.subTest(options=options):
                self.assertIsInstance(found(self.source, options, tokens=STREAM), bool)

    def testCombinationsAgreeWithSingleFlags(self):
        options = SearchOptions.WITH_CHILDREN | SearchOptions.WITH_SIBLINGS | SearchOptions.WITH_PARAMS
        self.assertTrue(found(self.source, options, tokens=STREAM))
        options = SearchOptions.WITH_CHILDREN | SearchOptions.WITHOUT_SIBLINGS
        self.assertFalse(found(self.source, options, tokens=STREAM))
        options = SearchOptions.WITHOUT_CHILDREN | SearchOptions.WITHOUT_PARAMS
        self.assertTrue(found(self.list, options, tokens=("--list",)))

    def testConflictingOptions(self):
        pairs = (
            SearchOptions.WITH_CHILDREN | SearchOptions.WITHOUT_CHILDREN,
            SearchOptions.WITH_SIBLINGS | SearchOptions.WITHOUT_SIBLINGS,
            SearchOptions.WITH_PARAMS | SearchOptions.WITHOUT_PARAMS,
            SearchOptions.WITH_CHILDREN | SearchOptions.WITHOUT_CHILDREN | SearchOptions.WITH_PARAMS,
        )
        for options in pairs:
            with self.subTest(options=options):
                with self.assertRaises(ConflictingOptionsError):
                    found(self.convert, options, tokens=STREAM)

    def testConflictRaisedEvenWhenAbsent(self):
        with self.assertRaises(ConflictingOptionsError):
            found(self.list, SearchOptions.WITH_CHILDREN | SearchOptions.WITHOUT_CHILDREN, tokens=())

    def testUsageErrorsAreValueErrors(self):
        with self.assertRaises(ValueError):
            found(self.convert, SearchOptions.WITH_PARAMS | SearchOptions.WITHOUT_PARAMS, tokens=STREAM)

    def testUnsupportedOptions(self):
        for options in (64, -1, 1 << 10):
            with self.subTest(options=options):
                with self.assertRaises(UnsupportedOptionsError):
                    found(self.convert, options, tokens=STREAM)

    def testOptionsType(self):
        with self.assertRaises(TypeError):
            found(self.convert, True, tokens=STREAM)
        with self.assertRaises(TypeError):
            found(self.convert, "children", tokens=STREAM)

    def testPlainIntegersAccepted(self):
        self.assertTrue(found(self.convert, 1, tokens=STREAM))

    def testComparer(self):
        self.assertTrue(found(self.convert, tokens=("--Convert",)))
        self.assertFalse(found(self.convert, tokens=("--Convert",), comparer=Comparer.ORDINAL))

    def testReachableChainDoesNotWarn(self):
        with warnings.catch_warnings():
            warnings.simplefilter("error", UnreachableChainWarning)
            self.assertTrue(found([self.convert, self.source], tokens=STREAM))


class NestedTiersTest(TestCase):
    """Three tiers whose root delimiter is a prefix of the child delimiter: "-" (0), "--" (1), ":" (2)."""

    STREAM = ("-run", "--job", ":fast", "x", "--job2", "-stop")

    def setUp(self):
        self.registry = Registry()
        self.roots = self.registry.specify(0, "-")
        self.jobs = self.registry.specify(1, "--")
        self.flags = self.registry.specify(2, ":")
        self.run = self.registry.declare("run", self.roots)
        self.stop = self.registry.declare("stop", self.roots)
        self.job = self.registry.declare("job", self.jobs)
        self.job2 = self.registry.declare("job2", self.jobs)
        self.fast = self.registry.declare("fast", self.flags)

    def testLongerDelimiterDoesNotEndRootSegment(self):
        self.assertEqual(segment(self.run, tokens=self.STREAM), ("-run", "--job", ":fast", "x", "--job2"))

    def testChildSegmentEndsAtSameTier(self):
        self.assertEqual(segment([self.run, self.job], tokens=self.STREAM), ("--job", ":fast", "x"))

    def testGrandchildParams(self):
        self.assertEqual(params([self.run, self.job, self.fast], tokens=self.STREAM), ("x",))
        self.assertEqual(params([self.run, self.job], tokens=self.STREAM), ())

    def testChildEndsAtRootTier(self):
        self.assertEqual(segment(self.job2, tokens=self.STREAM), ("--job2",))
        self.assertEqual(segment(self.stop, tokens=self.STREAM), ("-stop",))

    def testGrandchildCountsAsChild(self):
        self.assertFalse(found([self.run, self.job], SearchOptions.WITHOUT_CHILDREN, tokens=self.STREAM))
        self.assertTrue(found([self.run, self.job], SearchOptions.WITH_CHILDREN, tokens=self.STREAM))
        self.assertTrue(found([self.run, self.job2], SearchOptions.WITHOUT_CHILDREN, tokens=self.STREAM))

    def testGrandchildIsNotAParameter(self):
        self.assertTrue(found([self.run, self.job], SearchOptions.WITHOUT_PARAMS, tokens=self.STREAM))

    def testSiblingsWithinRootSegment(self):
        self.assertTrue(found([self.run, self.job], SearchOptions.WITH_SIBLINGS, tokens=self.STREAM))
        self.assertFalse(found([self.run, self.job, self.fast], SearchOptions.WITH_SIBLINGS, tokens=self.STREAM))

    def testExcludeParams(self):
        self.assertEqual(
            exclude_params(self.STREAM, self.registry),
            ("-run", "--job", ":fast", "--job2", "-stop"),
        )


class UnreachableChainTest(MatchingCase):

    def testWarningPointsAtCaller(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("always")
            found([self.source, self.target], tokens=STREAM)
        self.assertEqual(len(caught), 1)
        self.assertIs(caught[0].category, UnreachableChainWarning)
        self.assertEqual(caught[0].filename, __file__)

    def testWarnedOncePerCallSite(self):
        with warnings.catch_warnings(record=True) as caught:
            warnings.simplefilter("default")
            for _ in range(3):
                segment([self.source, self.target], tokens=STREAM)
        self.assertEqual(len(caught), 1)


if __name__ == "__main__":
    unittest.main()
