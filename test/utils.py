"""
Utility tests (sentinel, coalescing, renaming, mirrored properties, helpers).

Scope
- Validate the Unset singleton semantics.
- Validate coalesce/rename/mirror behavior.
- Validate the lookup and padding helpers used by the parser.

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import copy
import unittest
from unittest import TestCase

from commandeer.utils import *


class TestUnset(TestCase):
    """Unset is a falsy, sealed singleton."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.deepcopy(Unset), Unset)

    def testFalsy(self):
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testSealed(self):
        with self.assertRaises(TypeError):
            class Custom(UnsetType):  # NOQA: F-841
                pass


class TestCoalesce(TestCase):

    def testReplacesUnsetOnly(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)
        self.assertIsNone(coalesce(Unset))


class TestRename(TestCase):

    def testFunctionForm(self):
        def work():
            pass

        self.assertIs(rename(work, "do_work"), work)
        self.assertEqual(work.__name__, "do_work")
        self.assertEqual(work.__qualname__, "do_work")

    def testDecoratorForm(self):
        @rename("do_work")
        def work():
            pass

        self.assertEqual(work.__name__, "do_work")

    def testRejectsBadArguments(self):
        with self.assertRaises(TypeError):
            rename(1, "name")
        with self.assertRaises(TypeError):
            rename()


class TestMirror(TestCase):
    """mirror() exposes copies of private fields."""

    def testReturnsCopies(self):
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = {"keys": ["a"]}

        holder = Holder()
        holder.items["keys"].append("b")
        self.assertEqual(holder.items, {"keys": ["a"]})

    def testPreservesTuples(self):
        class Holder:
            items = mirror("items")
            _items = (1, 2)

        self.assertEqual(Holder().items, (1, 2))

    def testReadOnly(self):
        class Holder:
            items = mirror("items")
            _items = ()

        with self.assertRaises(AttributeError):
            Holder().items = (1,)


class TestHelpers(TestCase):

    def testFind(self):
        self.assertEqual(find(["a", "bb", "cc"], lambda x: len(x) == 2), "bb")
        self.assertIsNone(find([], lambda x: True))
        self.assertEqual(find([], lambda x: True, default="none"), "none")

    def testContains(self):
        self.assertTrue(contains(["all"], "all"))
        self.assertFalse(contains(["a"], "all"))
        self.assertFalse(contains(Unset, "all"))
        self.assertFalse(contains(None, "all"))

    def testRpad(self):
        self.assertEqual(rpad(" -i", 5), " -i  ")
        self.assertEqual(rpad(" -info", 3), " -info")
        self.assertEqual(rpad("x", 3, "."), "x..")
        with self.assertRaises(TypeError):
            rpad("x", 3, "..")


if __name__ == "__main__":
    unittest.main()
