"""
Option set behavioral tests (declaration, normalization, parse loop, help).

Scope
- Validate declarations: kinds, aliases, placeholders, usage lines and the
  configuration errors raised for bad ones.
- Validate the key normalizer under strict and case-sensitivity settings.
- Validate the parse loop: flags, fields, rest routing and callback order.
- Validate help output layout.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (OptionSet, OptionKind and the faults).
"""

from __future__ import annotations

import io
import unittest
from unittest import TestCase

from switchboard import (
    OptionSet,
    OptionKind,
    ConfigurationError,
    DuplicateKeyError,
    KindMismatchError,
    MissingPlaceholderError,
    EmptyKeyError,
    FaultCode,
)


class TestDeclaration(TestCase):
    """Behavioral tests for building an OptionSet from its arguments."""

    def testFlagKindFromFirstAlias(self):
        options = OptionSet(("v|verbose", "be loud", lambda: None))
        definition, = options.definitions
        self.assertIs(definition.kind, OptionKind.FLAG)
        self.assertEqual(definition.keys, ("v", "verbose"))
        self.assertIsNone(definition.placeholder)

    def testFieldKeysLoseTrailingEquals(self):
        options = OptionSet(("o=|output=", "write to {path}", lambda value: None))
        definition, = options.definitions
        self.assertIs(definition.kind, OptionKind.FIELD)
        self.assertEqual(definition.keys, ("o", "output"))

    def testFieldPlaceholderExtracted(self):
        options = OptionSet(("o=|output=", "write to {path} now", lambda value: None))
        definition, = options.definitions
        self.assertEqual(definition.placeholder, "path")
        self.assertEqual(definition.description, "write to path now")

    def testAliasesAreTrimmed(self):
        options = OptionSet((" v | verbose ", "be loud", lambda: None))
        self.assertEqual(options.definitions[0].keys, ("v", "verbose"))

    def testRestDeclaration(self):
        options = OptionSet(("<>", "inputs", lambda value: None))
        self.assertIs(options.rest.kind, OptionKind.REST)
        self.assertEqual(options.rest.keys, ("<>",))

    def testNoRestByDefault(self):
        self.assertIsNone(OptionSet(("v", "be loud", lambda: None)).rest)

    def testDeclarationOrderKept(self):
        options = OptionSet(
            ("b", "second letter", lambda: None),
            ("a", "first letter", lambda: None),
            ("<>", "rest", lambda value: None),
        )
        self.assertEqual([d.keys for d in options.definitions], [("b",), ("a",), ("<>",)])

    def testUsageDefaultsToNone(self):
        self.assertIsNone(OptionSet().usage)

    def testLastUsageWins(self):
        options = OptionSet("usage: one", ("v", "be loud", lambda: None), "usage: two")
        self.assertEqual(options.usage, "usage: two")

    def testDefinitionsAreReadOnly(self):
        options = OptionSet(("v", "be loud", lambda: None))
        self.assertIsInstance(options.definitions, tuple)
        with self.assertRaises(AttributeError):
            options.definitions = ()

    def testDuplicateKeyAcrossDeclarations(self):
        with self.assertRaises(DuplicateKeyError) as context:
            OptionSet(
                ("v|verbose", "be loud", lambda: None),
                ("verbose", "again", lambda: None),
            )
        self.assertIn("verbose", str(context.exception))
        self.assertIs(context.exception.options["code"], FaultCode.DUPLICATED_KEY)

    def testDuplicateKeyWithinDeclaration(self):
        with self.assertRaises(DuplicateKeyError):
            OptionSet(("v|v", "be loud", lambda: None))

    def testFlagAndFieldShareKeySpace(self):
        with self.assertRaises(DuplicateKeyError):
            OptionSet(
                ("o", "a flag", lambda: None),
                ("o=", "a {field}", lambda value: None),
            )

    def testSecondRestRejected(self):
        with self.assertRaises(DuplicateKeyError):
            OptionSet(
                ("<>", "rest", lambda value: None),
                ("<>", "more rest", lambda value: None),
            )

    def testFieldThenFlagAliasMismatch(self):
        with self.assertRaises(KindMismatchError) as context:
            OptionSet(("o=|output", "write to {path}", lambda value: None))
        self.assertIn("output", str(context.exception))

    def testFlagThenFieldAliasMismatch(self):
        with self.assertRaises(KindMismatchError):
            OptionSet(("v|verbose=", "be loud", lambda: None))

    def testFieldWithoutPlaceholder(self):
        with self.assertRaises(MissingPlaceholderError):
            OptionSet(("o=", "write somewhere", lambda value: None))

    def testFieldWithMalformedPlaceholder(self):
        with self.assertRaises(MissingPlaceholderError):
            OptionSet(("o=", "write to {the path}", lambda value: None))

    def testFieldWithTwoPlaceholders(self):
        with self.assertRaises(MissingPlaceholderError):
            OptionSet(("o=", "copy {source} to {target}", lambda value: None))

    def testEmptyAliasRejected(self):
        with self.assertRaises(EmptyKeyError):
            OptionSet(("v||x", "be loud", lambda: None))

    def testBareEqualsRejected(self):
        with self.assertRaises(EmptyKeyError):
            OptionSet(("=", "a {value}", lambda value: None))

    def testConfigurationErrorsAreValueErrors(self):
        with self.assertRaises(ValueError):
            OptionSet(("v|v", "be loud", lambda: None))
        with self.assertRaises(ConfigurationError):
            OptionSet(("v|v", "be loud", lambda: None))

    def testBadShapeRejected(self):
        with self.assertRaises(TypeError):
            OptionSet(("v", "be loud"))
        with self.assertRaises(TypeError):
            OptionSet(42)

    def testNonCallableCallbackRejected(self):
        with self.assertRaises(TypeError):
            OptionSet(("v", "be loud", "not callable"))


class TestNormalize(TestCase):
    """Behavioral tests for OptionSet.normalize()."""

    def testStrictSingleDashSingleChar(self):
        self.assertEqual(OptionSet().normalize("-o"), "o")

    def testStrictDoubleDashLongName(self):
        self.assertEqual(OptionSet().normalize("--output"), "output")

    def testStrictSingleDashLongNameUnchanged(self):
        self.assertEqual(OptionSet().normalize("-output"), "-output")

    def testStrictDoubleDashSingleCharUnchanged(self):
        self.assertEqual(OptionSet().normalize("--o"), "--o")

    def testNonStrictSingleDashLongName(self):
        self.assertEqual(OptionSet(strict=False).normalize("-output"), "output")

    def testNonStrictDoubleDashStripsOnlyOnce(self):
        self.assertEqual(OptionSet(strict=False).normalize("--output"), "output")
        self.assertEqual(OptionSet(strict=False).normalize("--o"), "o")

    def testBareWordUnchanged(self):
        self.assertEqual(OptionSet().normalize("build"), "build")

    def testCaseFolding(self):
        self.assertEqual(OptionSet(case_sensitive=False).normalize("--Output"), "output")
        self.assertEqual(OptionSet().normalize("--Output"), "Output")

    def testSettingsAreReadAtCallTime(self):
        options = OptionSet()
        options.strict = False
        self.assertEqual(options.normalize("-output"), "output")


class TestParse(TestCase):
    """Behavioral tests for the OptionSet parse loop."""

    def setUp(self):
        self.events = []
        self.options = OptionSet(
            "usage: tool [options] <files>",
            ("v|verbose", "be loud", lambda: self.events.append(("verbose",))),
            ("o=|output=", "write to {path}", lambda value: self.events.append(("output", value))),
            ("<>", "input files", lambda value: self.events.append(("rest", value))),
        )

    def testShiftsFirstTwoByDefault(self):
        self.options.parse(["python", "tool.py", "-v"])
        self.assertEqual(self.events, [("verbose",)])

    def testNoShift(self):
        self.options.parse(["-v", "file"], shift_first_two=False)
        self.assertEqual(self.events, [("verbose",), ("rest", "file")])

    def testFieldTakesNextToken(self):
        self.options.parse(["-o", "a.txt", "--output", "b.txt"], shift_first_two=False)
        self.assertEqual(self.events, [("output", "a.txt"), ("output", "b.txt")])

    def testFieldValueMayLookLikeAFlag(self):
        self.options.parse(["-o", "-v"], shift_first_two=False)
        self.assertEqual(self.events, [("output", "-v")])

    def testFieldWithoutValueGoesToRest(self):
        self.options.parse(["-v", "-o"], shift_first_two=False)
        self.assertEqual(self.events, [("verbose",), ("rest", "-o")])

    def testFieldWithoutValueAndNoRestIsDropped(self):
        values = []
        options = OptionSet(("o=", "write to {path}", values.append))
        options.parse(["-o"], shift_first_two=False)
        self.assertEqual(values, [])

    def testUnmatchedWithoutRestIsDropped(self):
        seen = []
        options = OptionSet(("v", "be loud", lambda: seen.append(True)))
        options.parse(["file", "--unknown", "-v"], shift_first_two=False)
        self.assertEqual(seen, [True])

    def testStrictRejectsSingleDashLongName(self):
        self.options.parse(["-output", "x"], shift_first_two=False)
        self.assertEqual(self.events, [("rest", "-output"), ("rest", "x")])

    def testUnstrippedTokenNeverMatchesDashedAlias(self):
        events = []
        options = OptionSet(
            ("-output|--v", "dashed aliases", lambda: events.append(("flag",))),
            ("<>", "input files", lambda value: events.append(("rest", value))),
        )
        options.parse(["-output", "--v"], shift_first_two=False)
        self.assertEqual(events, [("rest", "-output"), ("rest", "--v")])

    def testNonStrictAcceptsSingleDashLongName(self):
        self.options.strict = False
        self.options.parse(["-output", "x"], shift_first_two=False)
        self.assertEqual(self.events, [("output", "x")])

    def testStrictRejectsDoubleDashSingleChar(self):
        self.options.parse(["--v"], shift_first_two=False)
        self.assertEqual(self.events, [("rest", "--v")])

    def testCaseSensitiveByDefault(self):
        self.options.parse(["--Verbose"], shift_first_two=False)
        self.assertEqual(self.events, [("rest", "--Verbose")])

    def testCaseInsensitiveMatch(self):
        self.options.case_sensitive = False
        self.options.parse(["--Output", "x", "--VERBOSE"], shift_first_two=False)
        self.assertEqual(self.events, [("output", "x"), ("verbose",)])

    def testCaseInsensitiveMatchesMixedCaseDeclaration(self):
        seen = []
        options = OptionSet(("dryRun", "simulate", lambda: seen.append(True)), case_sensitive=False)
        options.parse(["--dryrun"], shift_first_two=False)
        self.assertEqual(seen, [True])

    def testRestReceivesRawToken(self):
        self.options.case_sensitive = False
        self.options.parse(["--Unknown"], shift_first_two=False)
        self.assertEqual(self.events, [("rest", "--Unknown")])

    def testBareWordNeverMatchesDeclaration(self):
        self.options.parse(["verbose"], shift_first_two=False)
        self.assertEqual(self.events, [("rest", "verbose")])

    def testCallbacksFollowTokenOrder(self):
        self.options.parse(["a", "-v", "--output", "o", "b", "-v"], shift_first_two=False)
        self.assertEqual(self.events, [
            ("rest", "a"),
            ("verbose",),
            ("output", "o"),
            ("rest", "b"),
            ("verbose",),
        ])

    def testReparseIsIdentical(self):
        tokens = ["a", "-v", "-o", "x"]
        self.options.parse(tokens, shift_first_two=False)
        first = list(self.events)
        self.events.clear()
        self.options.parse(tokens, shift_first_two=False)
        self.assertEqual(self.events, first)

    def testCallerTokensNotMutated(self):
        tokens = ["python", "tool.py", "-v"]
        self.options.parse(tokens)
        self.assertEqual(tokens, ["python", "tool.py", "-v"])

    def testStringPromptIsSplit(self):
        self.options.parse("-o 'a b' c", shift_first_two=False)
        self.assertEqual(self.events, [("output", "a b"), ("rest", "c")])

    def testNonStringTokenRejected(self):
        with self.assertRaises(TypeError):
            self.options.parse(["-v", 3], shift_first_two=False)

    def testNonIterablePromptRejected(self):
        with self.assertRaises(TypeError):
            self.options.parse(42)

    def testEmptyInput(self):
        self.options.parse([], shift_first_two=False)
        self.options.parse(["python"])
        self.assertEqual(self.events, [])


class TestHelp(TestCase):
    """Behavioral tests for OptionSet help output."""

    def render(self, options):
        stream = io.StringIO()
        options.print_help(stream)
        return stream.getvalue()

    def testUsageLineFirst(self):
        output = self.render(OptionSet("usage: tool [options]", ("v", "be loud", lambda: None)))
        self.assertTrue(output.startswith("usage: tool [options]\n"))

    def testFlagRow(self):
        output = self.render(OptionSet(("v|verbose", "be loud", lambda: None), colorful=False))
        self.assertIn("- " + "-v, --verbose".ljust(29) + " be loud", output)

    def testFieldRow(self):
        output = self.render(OptionSet(("o=|output=", "write to {path}", lambda value: None)))
        self.assertIn("- " + "-o=path, --output=path".ljust(29) + " write to path", output)

    def testRestRow(self):
        output = self.render(OptionSet(("<>", "input files", lambda value: None)))
        self.assertIn("- " + "<>".ljust(29) + " input files", output)

    def testLongKeysPushDescriptionDown(self):
        options = OptionSet(("a-very-long-option-name|another-long-alias", "too wide", lambda: None))
        output = self.render(options)
        self.assertIn("--another-long-alias\n" + " " * 32 + "too wide", output)

    def testFlagWithEqualsInName(self):
        options = OptionSet(("a=b|c", "odd name", lambda: None), colorful=False)
        definition, = options.definitions
        self.assertEqual(definition.forms(), [("--a=b", None), ("-c", None)])
        self.assertIn("- " + "--a=b, -c".ljust(29) + " odd name", self.render(options))

    def testFieldForms(self):
        definition, = OptionSet(("o=|output=", "write to {path}", lambda value: None)).definitions
        self.assertEqual(definition.forms(), [("-o", "path"), ("--output", "path")])
        self.assertEqual(definition.display(), ["-o=path", "--output=path"])

    def testNoShellSetting(self):
        with self.assertRaises(TypeError):
            OptionSet(shell=True)

    def testFancyPanel(self):
        output = self.render(OptionSet(("v", "be loud", lambda: None), fancy=True))
        self.assertIn("OPTIONS", output)
        self.assertIn("be loud", output)


if __name__ == "__main__":
    unittest.main()
