"""
Tests for the internal utilities (Unset, coalesce, rename, mirror, envarize).
"""
import copy
import unittest
from unittest import TestCase

from argotree.utils import *


class UnsetTest(TestCase):
    """
    Semantic guarantees of the Unset sentinel.
    """

    def testSingleton(self) -> None:
        self.assertIs(UnsetType(), Unset)
        self.assertIs(copy.copy(Unset), Unset)

    def testFalsey(self) -> None:
        self.assertFalse(Unset)
        self.assertIsNot(Unset, None)

    def testRepr(self) -> None:
        self.assertEqual(repr(Unset), "Unset")

    def testUnionWithTypes(self) -> None:
        self.assertIsInstance(Unset, str | Unset)
        self.assertIsInstance("x", str | Unset)
        self.assertNotIsInstance(3, str | Unset)

    def testFinal(self) -> None:
        with self.assertRaises(TypeError):
            type("Subclass", (UnsetType,), {})


class HelpersTest(TestCase):
    """
    coalesce/rename/mirror/envarize behavior.
    """

    def testCoalesce(self) -> None:
        self.assertEqual(coalesce(Unset, "fallback"), "fallback")
        self.assertIsNone(coalesce(Unset))
        self.assertIsNone(coalesce(None, "fallback"))
        self.assertEqual(coalesce(0, 1), 0)

    def testRenameFunctionForm(self) -> None:
        def f():
            pass

        self.assertIs(rename(f, "work"), f)
        self.assertEqual(f.__name__, "work")
        self.assertEqual(f.__qualname__, "work")

    def testRenameDecoratorForm(self) -> None:
        @rename("work")
        def f():
            pass

        self.assertEqual(f.__name__, "work")

    def testRenameArity(self) -> None:
        with self.assertRaises(TypeError):
            rename()
        with self.assertRaises(TypeError):
            rename(len, "length")

    def testMirrorReturnsCopies(self) -> None:
        class Holder:
            items = mirror("items")

            def __init__(self):
                self._items = [1, [2, 3]]

        holder = Holder()
        items = holder.items
        items[1].append(4)
        self.assertEqual(holder.items, [1, [2, 3]])
        with self.assertRaises(AttributeError):
            holder.items = []

    def testEnvarize(self) -> None:
        self.assertEqual(envarize("app_dry-run"), "APP_DRY_RUN")
        self.assertEqual(envarize("my app..name"), "MY_APP_NAME")
        with self.assertRaises(TypeError):
            envarize(1)


if __name__ == "__main__":
    unittest.main()
