"""
Command definition and builder tests.

Scope
- Validate the chainable CommandBuilder: metadata setters, option registration,
  fail-fast checks on option names and property bags.
- Validate done(): immutable Command snapshots independent from later builder
  changes.
- Validate Command lookups by name/alias.

Conventions
- Test method names follow CamelCase per project convention.
- Builders are obtained through the public Parser.command() entry point.
"""

from __future__ import annotations

import unittest
from unittest import TestCase

from commandeer import Command, CommandBuilder, Option, OptionType, Parser


class TestCommandBuilder(TestCase):
    """Behavioral tests for CommandBuilder."""

    def setUp(self):
        self.parser = Parser("tool")

    def testCommandReturnsBuilder(self):
        builder = self.parser.command("convert")
        self.assertIsInstance(builder, CommandBuilder)
        self.assertEqual(builder.name, "convert")

    def testChaining(self):
        builder = self.parser.command("convert")
        self.assertIs(builder.alias("c"), builder)
        self.assertIs(builder.title("Editing commands"), builder)
        self.assertIs(builder.describe("convert a dataset"), builder)
        self.assertIs(builder.validate(lambda command: None), builder)
        self.assertIs(builder.option("verbose", type="flag"), builder)

    def testDoneSnapshot(self):
        builder = (self.parser.command("convert")
                   .alias("c")
                   .title("Editing commands")
                   .describe("convert a dataset")
                   .option("verbose", type="flag")
                   .option("precision", {"type": "number", "describe": "decimals"}))
        command = builder.done()

        self.assertIsInstance(command, Command)
        self.assertEqual(command.name, "convert")
        self.assertEqual(command.alias, "c")
        self.assertEqual(command.title, "Editing commands")
        self.assertEqual(command.describe, "convert a dataset")
        self.assertEqual([option.name for option in command.options], ["verbose", "precision"])
        self.assertIs(command.options[1].type, OptionType.NUMBER)
        self.assertEqual(command.options[1].describe, "decimals")
        self.assertIsNone(command.validate)

    def testDoneIsIndependentOfLaterChanges(self):
        builder = self.parser.command("convert").option("verbose", type="flag")
        before = builder.done()
        builder.option("precision", type="number").describe("later")
        self.assertEqual(len(before.options), 1)
        self.assertIsNone(before.describe)
        self.assertEqual(len(builder.done().options), 2)

    def testOptionWithoutProperties(self):
        command = self.parser.command("i").option("files").done()
        self.assertIs(command.options[0].type, OptionType.STRING)

    def testOptionKeywordsOverrideProperties(self):
        command = self.parser.command("i").option("n", {"type": "number"}, type="integer").done()
        self.assertIs(command.options[0].type, OptionType.INTEGER)

    def testOptionAcceptsCamelCaseAssignTo(self):
        command = self.parser.command("o").option("geojson", {"assignTo": "format"}).done()
        self.assertEqual(command.options[0].assign_to, "format")

    def testOptionNoneValuesAreIgnored(self):
        command = self.parser.command("o").option("file", {"alias": None}).done()
        self.assertIsNone(command.options[0].alias)

    def testOptionNameRequired(self):
        builder = self.parser.command("convert")
        with self.assertRaises(ValueError):
            builder.option("")
        with self.assertRaises(TypeError):
            builder.option(None)

    def testOptionPropertiesMustBeMapping(self):
        builder = self.parser.command("convert")
        with self.assertRaises(TypeError):
            builder.option("precision", "number")
        with self.assertRaises(TypeError):
            builder.option("precision", ["number"])

    def testOptionUnknownPropertyRejected(self):
        with self.assertRaises(TypeError):
            self.parser.command("convert").option("precision", {"kind": "number"})

    def testOptionUnknownTypeRejectedAtBuildTime(self):
        with self.assertRaises(ValueError):
            self.parser.command("convert").option("precision", type="decimal")

    def testValidateRequiresCallable(self):
        with self.assertRaises(TypeError):
            self.parser.command("convert").validate("not callable")

    def testEmptyMetadataRejected(self):
        builder = self.parser.command("convert")
        with self.assertRaises(ValueError):
            builder.describe("")
        with self.assertRaises(TypeError):
            builder.alias(1)

    def testCommandNameRequired(self):
        with self.assertRaises(ValueError):
            self.parser.command(" ")
        with self.assertRaises(TypeError):
            self.parser.command(3)


class TestCommand(TestCase):
    """Behavioral tests for Command definitions."""

    def testMatches(self):
        command = Command("convert", alias="c")
        self.assertTrue(command.matches("convert"))
        self.assertTrue(command.matches("c"))
        self.assertFalse(command.matches("conv"))

    def testLookupByNameOrAlias(self):
        precision = Option("precision", alias="p", type="number")
        command = Command("convert", options=(Option("verbose", type="flag"), precision))
        self.assertIs(command.lookup("precision"), precision)
        self.assertIs(command.lookup("p"), precision)
        self.assertIsNone(command.lookup("scale"))

    def testOptionsMustBeDefinitions(self):
        with self.assertRaises(TypeError):
            Command("convert", options=("verbose",))

    def testReadOnly(self):
        command = Command("convert")
        with self.assertRaises(AttributeError):
            command.name = "other"

    def testOptionsAreTuple(self):
        self.assertEqual(Command("convert").options, ())


if __name__ == "__main__":
    unittest.main()
