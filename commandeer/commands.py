"""
Commandeer command definitions and their builder.

What this module provides
- Command: immutable definition of one sub-command (name, alias, title,
  describe, options, validate). The parsing engine only ever sees this form.
- CommandBuilder: scoped, chainable builder returned by Parser.command(name).
  It accumulates metadata and options and produces a Command snapshot via done().

Builder contract
- option(name, properties) requires a non-empty string name; properties, when
  given, must be a mapping. Both are checked immediately so a broken grammar
  fails while it is being described, not while parsing.
- Several definitions registered under the same name make the grammar
  ambiguous; this is not detected (the first match wins during lookup).

Quick start
    from commandeer import Parser

    parser = Parser()
    (parser.command("convert")
        .alias("c")
        .describe("convert a dataset")
        .option("verbose", type="flag", describe="print progress")
        .option("precision", {"type": "number"}))
"""
from collections.abc import Mapping

from .arguments import DefinitionType, Option, _sanitize_string
from .utils import *


class Command(metaclass=DefinitionType):
    """
    Immutable definition of one sub-command.

    Fields
    - name: unique identifier matched against a leading -name/--name token.
    - alias: optional alternate matcher.
    - title: optional section heading shown above the command in full listings.
    - describe: optional one-line help; commands without it are hidden from
      summary help.
    - options: tuple of Option definitions (order only matters for help).
    - validate: optional callable(ParsedCommand) raising on semantic violations.
    """

    __introspectable__ = (
        "name",
        "alias",
        "title",
        "describe",
        "options",
        "validate",
    )

    def __new__(cls, name, /, alias=Unset, title=Unset, describe=Unset, options=(), validate=Unset):
        self = super().__new__(cls)
        self._name = _sanitize_string(cls, "name", name, required=True)
        self._alias = _sanitize_string(cls, "alias", alias)
        self._title = _sanitize_string(cls, "title", title)
        self._describe = _sanitize_string(cls, "describe", describe)
        if not all(isinstance(option, Option) for option in options):
            raise TypeError(f"{cls.__typename__} 'options' must only contain option definitions")
        self._options = tuple(options)
        if validate is not Unset and not callable(validate):
            raise TypeError(f"{cls.__typename__} 'validate' must be callable")
        self._validate = coalesce(validate)
        return self

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, "_validate"):
            raise AttributeError(f"{type(self).__typename__} definitions are read-only")
        super().__setattr__(name, value)

    def matches(self, name, /):
        return name == self._name or (self._alias is not None and name == self._alias)

    def lookup(self, name, /):
        """
        Return the option definition matching name (by name or alias), or None.
        """
        return find(self._options, lambda option: option.matches(name))


# Property keys accepted by CommandBuilder.option(); "assignTo" is accepted as
# a spelling of "assign_to".
_PROPERTIES = frozenset(("alias", "type", "assign_to", "label", "describe"))


class CommandBuilder:
    """
    Chainable builder for one command; created by Parser.command(name).

    Every setter returns the builder. done() returns an immutable Command
    snapshot reflecting the builder's current state; later changes to the
    builder do not affect snapshots already taken.
    """

    def __init__(self, name, /):
        if not isinstance(name, str):
            raise TypeError("command name must be a string")
        elif not name.strip():
            raise ValueError("command name cannot be empty")
        self._name = name.strip()
        self._metadata = {}
        self._options = []

    @property
    def name(self):
        return self._name

    def alias(self, name, /):
        self._metadata["alias"] = _sanitize_string(Command, "alias", name, required=True)
        return self

    def title(self, text, /):
        self._metadata["title"] = _sanitize_string(Command, "title", text, required=True)
        return self

    def describe(self, text, /):
        self._metadata["describe"] = _sanitize_string(Command, "describe", text, required=True)
        return self

    def validate(self, callback, /):
        if not callable(callback):
            raise TypeError("validate() argument must be callable")
        self._metadata["validate"] = callback
        return self

    def option(self, name, properties=Unset, /, **overrides):
        """
        Register an option for this command.

        Parameters
        - name: non-empty string identifier.
        - properties: optional mapping of alias/type/assign_to/label/describe.
        - overrides: the same keys as keyword arguments, merged over properties.

        Raises
        - TypeError: name is not a string, properties is not a mapping, or an
          unknown property key was given.
        - ValueError: name is empty or a property value is invalid.
        """
        if not isinstance(name, str):
            raise TypeError("option() name must be a string")
        elif not name:
            raise ValueError("option() missing option name")
        if properties is not Unset and not isinstance(properties, Mapping):
            raise TypeError(f"option() invalid option definition: {properties!r}")

        merged = {}
        for key, value in {**coalesce(properties, {}), **overrides}.items():
            key = "assign_to" if key == "assignTo" else key
            if key not in _PROPERTIES:
                raise TypeError(f"option() got an unexpected property {key!r}")
            if value is not None:
                merged[key] = value

        self._options.append(Option(name, **merged))
        return self

    def done(self):
        """
        Finalize into an immutable Command definition.
        """
        return Command(self._name, options=self._options, **self._metadata)


__all__ = (
    "Command",
    "CommandBuilder",
)
