"""
Tests for the internal helpers.

Scope
- Unset: singleton identity, falsy semantics, representation, finality, unions.
- coalesce / rename / mirror: contracts relied upon by the models.
- distinct / unordered_equals: keyed de-duplication and multiset equality used by restrictions.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from types import MappingProxyType
from unittest import TestCase

from strata.utils import *


class UnsetTest(TestCase):

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(UnsetType(), UnsetType())

    def testFalsyButDistinct(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)
        self.assertNotEqual(Unset, 0)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testCannotSubclass(self):
        with self.assertRaises(TypeError):
            class Sub(UnsetType):  # NOQA: F-841
                pass

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, str | Unset))
        self.assertTrue(isinstance("text", str | Unset))
        self.assertFalse(isinstance(None, str | Unset))


class CoalesceTest(TestCase):

    def testUnsetIsReplaced(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))

    def testFalseyValuesArePreserved(self):
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertEqual(coalesce("", "x"), "")


class RenameTest(TestCase):

    def testFunctionForm(self):
        def anonymous():
            pass
        renamed = rename(anonymous, "named")
        self.assertIs(renamed, anonymous)
        self.assertEqual(anonymous.__name__, "named")
        self.assertEqual(anonymous.__qualname__, "named")

    def testDecoratorForm(self):
        @rename("decorated")
        def anonymous():
            pass
        self.assertEqual(anonymous.__name__, "decorated")

    def testRejectsNonCallable(self):
        with self.assertRaises(TypeError):
            rename(1, "name")

    def testRejectsWrongArity(self):
        with self.assertRaises(TypeError):
            rename()


class MirrorTest(TestCase):

    def setUp(self):
        class Holder:
            items = mirror("items")
            table = mirror("table")
            tags = mirror("tags")
            scalar = mirror("scalar")

            def __init__(self):
                self._items = ["-a", "-b"]
                self._table = {"a": 1}
                self._tags = {"x"}
                self._scalar = "value"

        self.holder = Holder()

    def testContainersAreFrozen(self):
        self.assertEqual(self.holder.items, ("-a", "-b"))
        self.assertIsInstance(self.holder.table, MappingProxyType)
        self.assertEqual(self.holder.tags, frozenset({"x"}))
        self.assertEqual(self.holder.scalar, "value")

    def testPropertyIsReadOnly(self):
        with self.assertRaises(AttributeError):
            self.holder.items = ()

    def testRejectsNonString(self):
        with self.assertRaises(TypeError):
            mirror(1)


class DistinctTest(TestCase):

    def testFirstOccurrenceWins(self):
        self.assertEqual(distinct(["-b", "-a", "-b"]), ("-b", "-a"))

    def testKeyedIdentity(self):
        self.assertEqual(distinct(["-bogus", "-BOGUS", "-x"], key=str.casefold), ("-bogus", "-x"))

    def testRejectsNonIterable(self):
        with self.assertRaises(TypeError):
            distinct(1)


class UnorderedEqualsTest(TestCase):

    def testOrderIgnored(self):
        self.assertTrue(unordered_equals(["--main", "-one", "-two"], ("-two", "--main", "-one")))

    def testMultiplicityCounts(self):
        self.assertFalse(unordered_equals(["-a", "-a"], ["-a"]))

    def testKeyApplied(self):
        self.assertTrue(unordered_equals(["--Main"], ["--main"], key=str.casefold))
        self.assertFalse(unordered_equals(["--Main"], ["--main"]))


if __name__ == "__main__":
    unittest.main()
