"""
Faults module behavioral tests (trigger, replace, rendering, host overrides).

Conventions
- Test method names follow CamelCase per project convention.
- Host overrides (__codes__, __docs__, __prog__) are patched onto __main__.
"""

from __future__ import annotations

import copy
import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from argotree.faults import (
    CommandException,
    DuplicateCommandError,
    FaultCode,
    MultipleDefaultsError,
    getdoc,
    trigger,
)


def _render(fault):
    buffer = io.StringIO()
    Console(file=buffer, width=120, color_system=None).print(fault)
    return buffer.getvalue()


class TestTrigger(TestCase):
    """trigger() merges options and raises outside shell mode."""

    def testRaisesWithMergedOptions(self):
        fault = DuplicateCommandError("duplicate command 'list'", code=FaultCode.DUPLICATE_COMMAND)
        with self.assertRaises(DuplicateCommandError) as context:
            trigger(fault, shell=False, title="duplicate command")
        self.assertIsNot(context.exception, fault)
        self.assertEqual(context.exception.options["title"], "duplicate command")
        self.assertEqual(context.exception.code, FaultCode.DUPLICATE_COMMAND)

    def testShellModeExits(self):
        fault = MultipleDefaultsError("more than one default subcommand exists: a, b", names=("a", "b"))
        buffer = io.StringIO()
        with mock.patch("argotree.faults.console", Console(file=buffer, width=120, color_system=None)):
            with self.assertRaises(SystemExit) as context:
                trigger(fault, shell=True)
        self.assertEqual(context.exception.code, 1)
        self.assertIn("a, b", buffer.getvalue())

    def testRejectsNonFaults(self):
        with self.assertRaises(TypeError):
            trigger(object())

    def testReplaceKeepsTypeAndMessage(self):
        fault = DuplicateCommandError("boom", names=("x",))
        replaced = copy.replace(fault, hint="rename it")
        self.assertIsInstance(replaced, DuplicateCommandError)
        self.assertEqual(replaced.message, "boom")
        self.assertEqual(replaced.names, ("x",))
        self.assertEqual(replaced.options["hint"], "rename it")
        self.assertNotIn("hint", fault.options)

    def testStrIsMessage(self):
        self.assertEqual(str(CommandException("plain message")), "plain message")


class TestRendering(TestCase):
    """Faults render through rich with header, message and hint."""

    def testPlainRendering(self):
        fault = DuplicateCommandError(
            "duplicate command 'list'",
            code=FaultCode.DUPLICATE_COMMAND,
            title="duplicate command",
            hint="rename one of the commands",
        )
        output = _render(fault)
        self.assertIn("21101", output)
        self.assertIn("Duplicate Command", output)
        self.assertIn("duplicate command 'list'", output)
        self.assertIn("rename one of the commands", output)

    def testFancyRenderingUsesPanel(self):
        fault = DuplicateCommandError("duplicate command 'list'", code=FaultCode.DUPLICATE_COMMAND, fancy=True)
        output = _render(fault)
        self.assertIn("duplicate command 'list'", output)
        self.assertIn("╭", output)

    def testHostProgramName(self):
        fault = DuplicateCommandError("boom", code=FaultCode.DUPLICATE_COMMAND)
        with mock.patch.object(sys.modules["__main__"], "__prog__", "mytool", create=True):
            self.assertIn("mytool", _render(fault))

    def testHostCodesAndDocs(self):
        fault = DuplicateCommandError("boom", code=FaultCode.DUPLICATE_COMMAND)
        main = sys.modules["__main__"]
        with mock.patch.object(main, "__codes__", {FaultCode.DUPLICATE_COMMAND: "DUP"}, create=True):
            with mock.patch.object(main, "__docs__", {FaultCode.DUPLICATE_COMMAND: "names must be unique"}, create=True):
                output = _render(fault)
        self.assertIn("DUP", output)
        self.assertIn("names must be unique", output)


class TestFaultCodes(TestCase):
    """FaultCode normalization and documentation lookup."""

    def testNormalizeDefaultsToNumber(self):
        self.assertEqual(FaultCode.MIXED_CARDINALS.normalize(), "21104")

    def testGetdocMissing(self):
        self.assertIsNone(getdoc(FaultCode.ORPHAN_DEFAULT))

    def testGetdocRejectsNonCodes(self):
        with self.assertRaises(TypeError):
            getdoc(21101)


if __name__ == "__main__":
    unittest.main()
