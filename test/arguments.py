"""
Arguments module behavioral tests (declarations, candidate sources, group checks).

Scope
- Validate Cardinal/Option/Flag construction and metadata normalization.
- Validate resolve_completions() precedence (hints/hinter over choices).
- Validate SwitchGroup.init() and CardinalGroup.init() structural faults.

Conventions
- Test method names follow CamelCase per project convention.
- Never pass explicit None for any parameter; omit instead.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from argotree import Cardinal, Option, Flag, SwitchGroup, CardinalGroup
from argotree.faults import (
    CardinalOrderError,
    DuplicateCardinalError,
    DuplicateSwitchError,
    FaultCode,
    RequiredDefaultError,
)


class TestDeclarations(TestCase):
    """Behavioral tests for declaration metadata."""

    def testNameIsStripped(self):
        self.assertEqual(Option("  timeout ").name, "timeout")

    def testNameMustBeShellStyle(self):
        with self.assertRaises(ValueError):
            Option("--timeout")
        with self.assertRaises(ValueError):
            Cardinal("two words")
        with self.assertRaises(ValueError):
            Flag("")
        with self.assertRaises(TypeError):
            Flag(42)

    def testDescrDefaultsToNone(self):
        self.assertIsNone(Cardinal("file").descr)
        self.assertEqual(Cardinal("file", "  input file ").descr, "input file")

    def testDescrEmptyRejected(self):
        with self.assertRaises(ValueError):
            Option("timeout", "  ")

    def testShortMustBeSingleCharacter(self):
        self.assertEqual(Flag("verbose", short="v").short, "v")
        with self.assertRaises(ValueError):
            Flag("verbose", short="vv")
        with self.assertRaises(ValueError):
            Option("timeout", short="-")
        with self.assertRaises(TypeError):
            Option("timeout", short=1)

    def testEnvarConflictsWithNoenvar(self):
        with self.assertRaises(TypeError):
            Option("timeout", envar="TIMEOUT", noenvar=True)

    def testDefaultsToUnset(self):
        option = Option("timeout")
        self.assertFalse(option.required)
        self.assertFalse(option.hidden)
        self.assertIsNone(option.envar)
        self.assertIsNone(option.short)

    def testChoicesDuplicatesRejected(self):
        with self.assertRaises(ValueError):
            Option("color", choices=("red", "red"))

    def testChoicesMustNotBeString(self):
        with self.assertRaises(TypeError):
            Option("color", choices="red")

    def testChoicesSetIsSorted(self):
        self.assertEqual(Option("color", choices={"red", "green", "blue"}).choices, ["blue", "green", "red"])

    def testHintsMustBeStrings(self):
        with self.assertRaises(TypeError):
            Cardinal("file", hints=(1, 2))

    def testHinterMustBeCallable(self):
        with self.assertRaises(TypeError):
            Cardinal("file", hinter="nope")

    def testMirroredPropertiesAreCopies(self):
        option = Option("color", choices=("red", "green"))
        choices = option.choices
        choices.append("blue")
        self.assertEqual(option.choices, ["red", "green"])

    def testReprUsesTypename(self):
        self.assertTrue(repr(Option("timeout")).startswith("option(name='timeout'"))
        self.assertTrue(repr(Cardinal("file")).startswith("cardinal(name='file'"))


class TestCompletionCandidates(TestCase):
    """resolve_completions() precedence and ordering."""

    def testChoicesAreCandidates(self):
        self.assertEqual(Option("color", choices=("red", "green")).resolve_completions(), ["red", "green"])

    def testChoicesAreStringified(self):
        self.assertEqual(Option("level", choices=(1, 2, 3)).resolve_completions(), ["1", "2", "3"])

    def testNoSourcesMeansFreeForm(self):
        self.assertEqual(Option("timeout").resolve_completions(), [])
        self.assertEqual(Flag("verbose").resolve_completions(), [])

    def testHintsOverrideChoices(self):
        option = Option("color", choices=("red",), hints=("crimson", "scarlet"))
        self.assertEqual(option.resolve_completions(), ["crimson", "scarlet"])

    def testHinterFollowsHints(self):
        cardinal = Cardinal("file", hints=("a",), hinter=lambda: ["b", "c"])
        self.assertEqual(cardinal.resolve_completions(), ["a", "b", "c"])

    def testHinterCalledOnEveryResolution(self):
        calls = []

        def hinter():
            calls.append(None)
            return ["x"]

        cardinal = Cardinal("file", hinter=hinter)
        cardinal.resolve_completions()
        cardinal.resolve_completions()
        self.assertEqual(len(calls), 2)


class TestSwitchGroup(TestCase):
    """SwitchGroup lookups and init() checks."""

    def testLongLookupAndOrder(self):
        group = SwitchGroup()
        timeout = group.add(Option("timeout"))
        verbose = group.add(Flag("verbose"))
        self.assertIs(group.lookup("timeout"), timeout)
        self.assertEqual(list(group), [timeout, verbose])
        self.assertEqual(len(group), 2)

    def testShortIndexedByInit(self):
        group = SwitchGroup()
        verbose = group.add(Flag("verbose", short="v"))
        self.assertIsNone(group.short("v"))
        group.init()
        self.assertIs(group.short("v"), verbose)

    def testDuplicateLongFails(self):
        group = SwitchGroup()
        group.add(Option("timeout"))
        group.add(Flag("timeout"))
        with self.assertRaises(DuplicateSwitchError) as context:
            group.init()
        self.assertEqual(context.exception.names, ("timeout",))
        self.assertEqual(context.exception.code, FaultCode.DUPLICATE_SWITCH)

    def testDuplicateShortFails(self):
        group = SwitchGroup()
        group.add(Option("timeout", short="t"))
        group.add(Option("token", short="t"))
        with self.assertRaises(DuplicateSwitchError):
            group.init()

    def testRequiredWithDefaultFails(self):
        group = SwitchGroup()
        group.add(Option("timeout", required=True, default="30"))
        with self.assertRaises(RequiredDefaultError):
            group.init()

    def testRequiredFlagIsFine(self):
        group = SwitchGroup()
        group.add(Flag("yes", required=True))
        group.init()

    def testEnvarNamingWithPrefix(self):
        group = SwitchGroup()
        option = group.add(Option("dry-run"))
        group.init("tool")
        self.assertEqual(option.envar, "TOOL_DRY_RUN")

    def testRejectsCardinals(self):
        with self.assertRaises(TypeError):
            SwitchGroup().add(Cardinal("file"))


class TestCardinalGroup(TestCase):
    """CardinalGroup lookups and init() checks."""

    def testLookupIndexAndOrder(self):
        group = CardinalGroup()
        source = group.add(Cardinal("source", required=True))
        target = group.add(Cardinal("target"))
        group.init()
        self.assertIs(group.lookup("target"), target)
        self.assertIs(group[0], source)
        self.assertEqual(list(group), [source, target])

    def testRequiredAfterOptionalFails(self):
        group = CardinalGroup()
        group.add(Cardinal("source"))
        group.add(Cardinal("target", required=True))
        with self.assertRaises(CardinalOrderError) as context:
            group.init()
        self.assertEqual(context.exception.names, ("target",))

    def testRemainderMustBeLast(self):
        group = CardinalGroup()
        group.add(Cardinal("files", remainder=True))
        group.add(Cardinal("target"))
        with self.assertRaises(CardinalOrderError) as context:
            group.init()
        self.assertEqual(context.exception.names, ("files", "target"))

    def testDuplicateFails(self):
        group = CardinalGroup()
        group.add(Cardinal("file"))
        group.add(Cardinal("file"))
        with self.assertRaises(DuplicateCardinalError):
            group.init()

    def testRequiredWithDefaultFails(self):
        group = CardinalGroup()
        group.add(Cardinal("file", required=True, default="a.txt"))
        with self.assertRaises(RequiredDefaultError):
            group.init()

    def testRejectsSwitches(self):
        with self.assertRaises(TypeError):
            CardinalGroup().add(Option("timeout"))


if __name__ == "__main__":
    unittest.main()
