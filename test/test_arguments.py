"""
Arguments module behavioral tests (token parsing into ParsedArgs).

Scope
- Validate long/short option forms, booleans, negation and value coercion.
- Validate strings, collect, alias, default, stop_early and "--" handling.
- Validate the unknown-key hook and ParsedArgs read-only behavior.

Conventions
- Test method names follow CamelCase per project convention.
- Tests use the public API (parse, ParseOptions, ParsedArgs).
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from cly import parse, ParseOptions, ParsedArgs


class TestLongOptions(TestCase):
    """--key forms."""

    def testInlineValue(self):
        args = parse(["--name=cly"])
        self.assertEqual(args["name"], "cly")

    def testSpacedValue(self):
        args = parse(["--name", "cly", "rest"])
        self.assertEqual(args["name"], "cly")
        self.assertEqual(args.positionals, ("rest",))

    def testBareFlagIsTrue(self):
        args = parse(["--verbose"])
        self.assertIs(args["verbose"], True)

    def testFlagBeforeOptionIsTrue(self):
        args = parse(["--verbose", "--name", "x"])
        self.assertIs(args["verbose"], True)
        self.assertEqual(args["name"], "x")

    def testNegation(self):
        args = parse(["--no-color"])
        self.assertIs(args["color"], False)

    def testTrueFalseAfterBoolean(self):
        args = parse(["--debug", "false", "cmd"], ParseOptions(boolean=["debug"]))
        self.assertIs(args["debug"], False)
        self.assertEqual(args.positionals, ("cmd",))

    def testBooleanDoesNotConsumeNextToken(self):
        args = parse(["--debug", "cmd"], ParseOptions(boolean=["debug"]))
        self.assertIs(args["debug"], True)
        self.assertEqual(args.positionals, ("cmd",))

    def testBooleanInlineValue(self):
        args = parse(["--debug=false"], ParseOptions(boolean=["debug"]))
        self.assertIs(args["debug"], False)

    def testAllBooleans(self):
        args = parse(["--debug", "cmd"], ParseOptions(boolean=True))
        self.assertIs(args["debug"], True)
        self.assertEqual(args.positionals, ("cmd",))

    def testDeclaredBooleansDefaultToFalse(self):
        args = parse([], ParseOptions(boolean=["debug"]))
        self.assertIs(args["debug"], False)


class TestShortOptions(TestCase):
    """-x forms and clusters."""

    def testCluster(self):
        args = parse(["-abc"])
        self.assertTrue(args["a"] and args["b"] and args["c"])

    def testLastLetterTakesNextToken(self):
        args = parse(["-vC", "Pun"])
        self.assertIs(args["v"], True)
        self.assertEqual(args["C"], "Pun")

    def testAttachedNumber(self):
        args = parse(["-n5"])
        self.assertEqual(args["n"], 5)

    def testAttachedAssignment(self):
        args = parse(["-k=value"])
        self.assertEqual(args["k"], "value")

    def testNextOptionIsNotConsumed(self):
        args = parse(["-v", "-x"])
        self.assertIs(args["v"], True)
        self.assertIs(args["x"], True)


class TestValues(TestCase):
    """Coercion and declared strings."""

    def testNumbersAreCoerced(self):
        args = parse(["--count", "3", "--ratio=0.5", "--mask", "0x1f", "7"])
        self.assertEqual(args["count"], 3)
        self.assertEqual(args["ratio"], 0.5)
        self.assertEqual(args["mask"], 31)
        self.assertEqual(args.positionals, (7,))

    def testStringsStayRaw(self):
        args = parse(["--id", "007"], ParseOptions(string=["id"]))
        self.assertEqual(args["id"], "007")

    def testBareStringOptionIsEmpty(self):
        args = parse(["--id"], ParseOptions(string=["id"]))
        self.assertEqual(args["id"], "")

    def testUnderscoreKeepsPositionalsRaw(self):
        args = parse(["42", "1.50"], ParseOptions(string=["_"]))
        self.assertEqual(args.positionals, ("42", "1.50"))

    def testRepeatedKeyOverwrites(self):
        args = parse(["--tag", "a", "--tag", "b"])
        self.assertEqual(args["tag"], "b")

    def testCollect(self):
        args = parse(["--tag", "a", "--tag=b"], ParseOptions(collect=["tag"]))
        self.assertEqual(args["tag"], ("a", "b"))


class TestAliasesAndDefaults(TestCase):
    """Alias groups and defaults."""

    def testAliasMirrorsValue(self):
        args = parse(["-C", "Pun"], ParseOptions(alias={"C": "category"}))
        self.assertEqual(args["C"], "Pun")
        self.assertEqual(args["category"], "Pun")

    def testAliasListMirrorsValue(self):
        args = parse(["--colour", "red"], ParseOptions(alias={"color": ["colour", "c"]}))
        self.assertEqual(args["color"], "red")
        self.assertEqual(args["c"], "red")

    def testAliasOfBooleanIsBoolean(self):
        args = parse(["-d", "cmd"], ParseOptions(boolean=["debug"], alias={"d": "debug"}))
        self.assertIs(args["debug"], True)
        self.assertEqual(args.positionals, ("cmd",))

    def testDefaultsFillMissingKeys(self):
        options = ParseOptions(default={"category": "Any"}, alias={"C": "category"})
        self.assertEqual(parse([], options)["C"], "Any")
        self.assertEqual(parse(["-C", "Pun"], options)["category"], "Pun")

    def testDefaultForBoolean(self):
        options = ParseOptions(boolean=["color"], default={"color": True})
        self.assertIs(parse([], options)["color"], True)
        self.assertIs(parse(["--no-color"], options)["color"], False)


class TestStopping(TestCase):
    """stop_early and "--"."""

    def testDoubleDashEndsOptions(self):
        args = parse(["cmd", "--", "--not-an-option", "5"])
        self.assertEqual(args.positionals, ("cmd", "--not-an-option", "5"))
        self.assertNotIn("not-an-option", args)

    def testDoubleDashKey(self):
        args = parse(["cmd", "--", "x"], ParseOptions(double_dash=True))
        self.assertEqual(args.positionals, ("cmd",))
        self.assertEqual(args["--"], ("x",))

    def testStopEarly(self):
        args = parse(["run", "--fast", "9"], ParseOptions(stop_early=True))
        self.assertEqual(args.positionals, ("run", "--fast", "9"))
        self.assertNotIn("fast", args)


class TestUnknownHook(TestCase):
    """unknown(token, key, value) filtering."""

    def testUnknownKeysCanBeDropped(self):
        seen = []

        def unknown(token, key, value):
            seen.append((token, key, value))
            return False

        args = parse(["--known", "1", "--other=2", "cmd"], ParseOptions(string=["known"], unknown=unknown))
        self.assertEqual(dict(args), {"known": "1"})
        self.assertEqual(args.positionals, ())
        self.assertEqual(seen, [("--other=2", "other", "2"), ("cmd", None, None)])

    def testUnknownReturningNoneKeepsToken(self):
        args = parse(["--other", "x"], ParseOptions(unknown=lambda *unused: None))
        self.assertEqual(args["other"], "x")


class TestParsedArgs(TestCase):
    """ParsedArgs result object."""

    def testMappingProtocol(self):
        args = ParsedArgs(("cmd",), {"a": 1})
        self.assertEqual(len(args), 1)
        self.assertEqual(list(args), ["a"])
        self.assertEqual(args.get("missing", "fallback"), "fallback")
        self.assertEqual(args.positionals, ("cmd",))

    def testReadOnly(self):
        args = parse(["--a", "1"])
        with self.assertRaises(TypeError):
            args["a"] = 2  # type: ignore[index]
        with self.assertRaises(TypeError):
            args.options["a"] = 2  # type: ignore[index]

    def testEquality(self):
        self.assertEqual(parse(["x", "--a=1"]), ParsedArgs(("x",), {"a": 1}))
        self.assertNotEqual(parse(["x"]), parse(["y"]))

    def testEmptyInput(self):
        args = parse([])
        self.assertEqual(args.positionals, ())
        self.assertEqual(len(args), 0)


class TestValidation(TestCase):
    """Malformed input."""

    def testTokensMustBeStrings(self):
        with self.assertRaises(TypeError):
            parse("--a 1")
        with self.assertRaises(TypeError):
            parse(["--a", 1])

    def testMalformedOptions(self):
        with self.assertRaises(TypeError):
            parse([], ParseOptions(alias=["a"]))
        with self.assertRaises(TypeError):
            parse([], ParseOptions(unknown="nope"))
        with self.assertRaises(TypeError):
            parse([], {"unexpected": True})

    def testMappingOptionsAccepted(self):
        args = parse(["--debug", "x"], {"boolean": ["debug"]})
        self.assertIs(args["debug"], True)
        self.assertEqual(args.positionals, ("x",))


if __name__ == "__main__":
    unittest.main()
