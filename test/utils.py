"""
Utils module behavioral tests (Unset sentinel and helpers).

Conventions
- Test method names follow CamelCase per project convention.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from paramlib.utils import Unset, UnsetType, coalesce, rename, mirror


class TestUnset(TestCase):
    """Behavioral tests for the Unset sentinel."""

    def testSingleton(self):
        self.assertIs(UnsetType(), Unset)

    def testFalsey(self):
        self.assertFalse(Unset)

    def testRepr(self):
        self.assertEqual(repr(Unset), "Unset")

    def testNotSubclassable(self):
        with self.assertRaises(TypeError):
            type("Derived", (UnsetType,), {})

    def testUnionInIsinstance(self):
        self.assertTrue(isinstance(Unset, int | Unset))
        self.assertTrue(isinstance(3, Unset | int))
        self.assertFalse(isinstance("3", int | Unset))


class TestHelpers(TestCase):
    """Behavioral tests for coalesce, rename and mirror."""

    def testCoalesce(self):
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertEqual(coalesce(0, "fallback"), 0)
        self.assertIsNone(coalesce(None, "fallback"))

    def testRename(self):
        @rename("renamed")
        def function():
            pass

        self.assertEqual(function.__name__, "renamed")
        self.assertEqual(function.__qualname__, "renamed")

    def testRenameRejectsNonString(self):
        with self.assertRaises(TypeError):
            rename(42)

    def testMirrorIsReadOnly(self):
        class Holder:
            count = mirror("count")

            def __init__(self):
                self._count = 3

        holder = Holder()
        self.assertEqual(holder.count, 3)
        with self.assertRaises(AttributeError):
            holder.count = 4


if __name__ == "__main__":
    unittest.main()
