"""
Commandeer parser: describe a multi-command grammar, then parse argv against it.

What this module provides
- Parser: process-wide configuration object. It carries the usage string,
  examples, closing note, default command and the registered commands, and
  exposes the parsing engine (parse_argv) and the help formatter
  (get_help_message / print_help).
- ParsedCommand: one element of a parse result (canonical command name, option
  mapping, positional list).

Grammar
- command switch:    -name or --name      (r"--?([A-Za-z0-9_-]+)")
- inline assignment: name=value           (r"([A-Za-z0-9_+-]+)=(.+)")
- anything else inside a command segment is an option name (when defined on
  the command) or a positional token. A switch-shaped token that names no
  registered command but names an option of the current command (-verbose for
  option verbose) is read as that option; command switches always win.

Quick start
    from commandeer import Parser

    parser = Parser("mapper").usage("Usage: mapper -<command> [options ...]")
    parser.default("i")
    parser.command("i").describe("input files")
    (parser.command("convert")
        .alias("c")
        .describe("convert a dataset")
        .option("verbose", type="flag")
        .option("precision", type="number"))

    parser.parse_argv(["in.shp", "-c", "verbose", "precision=3"])
    # [parsed-command(name='i', options={}, positionals=['in.shp']),
    #  parsed-command(name='convert', options={'verbose': True, 'precision': 3.0}, positionals=[])]

Failure reporting
- Every fatal condition is handed to the injected fail collaborator
  (Parser(fail=...)) as a CommandException subclass. The collaborator is
  expected not to return; when it does, the fault is raised anyway so parsing
  never continues past a failure. Without a collaborator, faults are raised
  (library use) or rendered and turned into exit status 1 (shell=True).
"""
import copy
import difflib
import logging
import math
import os.path
import re
import shlex
import sys
from collections import deque
from collections.abc import Iterable

from rich.console import Console

from .arguments import DefinitionType, OptionType
from .commands import CommandBuilder
from .faults import *
from .utils import *

logger = logging.getLogger(__name__)

_COMMAND = re.compile(r"--?([A-Za-z0-9_-]+)")
_ASSIGNMENT = re.compile(r"([A-Za-z0-9_+-]+)=(.+)")
_NUMERAL = re.compile(r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|Infinity)")

_CMD_PREFIX = " "
_OPT_PREFIX = "  "
_GUTTER = "  "


class ParsedCommand(metaclass=DefinitionType):
    """
    One parsed command invocation.

    Fields
    - name: canonical name of the resolved command (never the alias).
    - options: mapping from option key to coerced value (last write wins).
    - positionals: tokens of the segment that matched no option, in order.

    Instances are read-only; the properties return copies.
    """

    __introspectable__ = (
        "name",
        "options",
        "positionals",
    )

    def __new__(cls, name, /, options=Unset, positionals=()):
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        self = super().__new__(cls)
        self._name = name
        self._options = dict(coalesce(options, {}))
        self._positionals = list(positionals)
        return self

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, "_positionals"):
            raise AttributeError(f"{type(self).__typename__} is read-only")
        super().__setattr__(name, value)

    def __eq__(self, other):
        if not isinstance(other, ParsedCommand):
            return NotImplemented
        return (
            self._name == other._name and
            self._options == other._options and
            self._positionals == other._positionals
        )

    __hash__ = None


def _tokenize(prompt, /):
    """
    Normalize the accepted input forms into a fresh list of tokens.

    - Unset: sys.argv[1:]
    - str: shell-like string split with shlex.split
    - Iterable[str]: copied as-is (items must be strings)
    """
    if prompt is Unset:
        return list(sys.argv[1:])
    if isinstance(prompt, str):
        return shlex.split(prompt)
    if isinstance(prompt, Iterable):
        tokens = list(prompt)
        if not all(isinstance(token, str) for token in tokens):
            raise TypeError("parse_argv() argument must be a string or an iterable of strings")
        return tokens
    raise TypeError("parse_argv() argument must be a string or an iterable of strings")


def _tonumber(raw, /):
    """
    Parse raw as a decimal numeral (or signed Infinity); Unset when it is not one.
    """
    if not isinstance(raw, str) or not _NUMERAL.fullmatch(raw.strip()):
        return Unset
    return float(raw)


def _echo(message, /):
    Console().print(message, markup=False, emoji=False, highlight=False, soft_wrap=True)


def _lookup(definition, name, /):
    """
    Find the option named by a token: as written first, then without its
    leading "-" or "--" so that -verbose and verbose select the same option.
    """
    return definition.lookup(name) or definition.lookup(re.sub(r"^--?", "", name))


class Parser:
    """
    Declarative multi-command parser.

    Lifecycle
    - Builder phase: configure metadata (usage, example, note, default) and
      register commands via command(name), which returns a CommandBuilder.
    - Use phase: parse_argv() and get_help_message() read immutable Command
      snapshots of the registered builders. The parser keeps no state between
      calls; treat the grammar as frozen once parsing starts.

    Configuration
    - prog: program name shown in fault headers (defaults to __prog__ in
      __main__, then to the basename of sys.argv[0]).
    - shell: render faults with rich and exit(1) instead of raising them.
    - fancy: render faults inside a panel.
    - colorful: style rendered faults (palette overridable via __styles__).
    - fail: failure collaborator, called with the fault; expected not to return.
    - sink: single write function receiving print_help() output.
    """

    def __init__(self, prog=Unset, /, *, shell=False, fancy=False, colorful=True, fail=Unset, sink=Unset):
        if prog is not Unset and not isinstance(prog, str):
            raise TypeError("parser 'prog' must be a string")
        if fail is not Unset and not callable(fail):
            raise TypeError("parser 'fail' must be callable")
        if sink is not Unset and not callable(sink):
            raise TypeError("parser 'sink' must be callable")
        self._prog = coalesce(prog, getattr(
            __import__("__main__"), "__prog__", os.path.basename(sys.argv[0]) or "commandeer"
        ))
        self._shell = bool(shell)
        self._fancy = bool(fancy)
        self._colorful = bool(colorful)
        self._fallback = fail
        self._sink = coalesce(sink, _echo)
        self._usage = ""
        self._examples = []
        self._note = None
        self._default = None
        self._builders = []

    @property
    def prog(self):
        return self._prog

    @property
    def commands(self):
        """
        Immutable Command snapshots of every registered builder, in order.
        """
        return tuple(builder.done() for builder in self._builders)

    def usage(self, text, /):
        if not isinstance(text, str):
            raise TypeError("usage() argument must be a string")
        self._usage = text
        return self

    def note(self, text, /):
        if not isinstance(text, str):
            raise TypeError("note() argument must be a string")
        self._note = text
        return self

    def example(self, text, /):
        if not isinstance(text, str):
            raise TypeError("example() argument must be a string")
        self._examples.append(text)
        return self

    def default(self, name, /):
        """
        Set the command applied to arguments preceding the first explicit command.
        """
        if not isinstance(name, str):
            raise TypeError("default() argument must be a string")
        elif not name.strip():
            raise ValueError("default() argument cannot be empty")
        self._default = name.strip()
        return self

    def command(self, name, /):
        """
        Register a command and return its builder.
        """
        self._builders.append(builder := CommandBuilder(name))
        return builder

    def trigger(self, fault, /, **options):
        """
        Hand a fault to the failure collaborator; never returns.
        """
        if not isinstance(fault, CommandException):
            raise TypeError("trigger() argument must be a command exception")
        fault = copy.replace(
            fault,
            **options,
            prog=self._prog,
            shell=self._shell,
            fancy=self._fancy,
            colorful=self._colorful,
        )
        logger.debug("surfacing %s: %s", type(fault).__name__, fault.message)
        coalesce(self._fallback, trigger)(fault)
        raise fault from fault.options.get("exception")

    def parse_argv(self, tokens=Unset, /):
        """
        Parse a token sequence into an ordered list of ParsedCommand.

        Phases (repeated until the working copy is empty)
        - resolve the command name: tokens before the first explicit command go
          to the default command; otherwise the next token must be a command
          switch (InvalidCommandError).
        - resolve the definition by name or alias (UnknownCommandError).
        - consume the segment: defined options are coerced and stored, anything
          else becomes a positional.
        - run the command's validator, if any (ValidationError).
        """
        tokens = deque(_tokenize(tokens))
        definitions = self.commands
        commands = []

        while tokens:
            if not commands and not _COMMAND.fullmatch(tokens[0]):
                name = self._default
            elif match := _COMMAND.fullmatch(tokens[0]):
                tokens.popleft()
                name = match[1]
            else:
                name = None

            if not name:
                self.trigger(InvalidCommandError(
                    "invalid command %r" % tokens[0],
                    title="invalid command",
                    code=FaultCode.INVALID_COMMAND,
                    hint="commands start with '-' or '--' (for example: -%s)" % (
                        definitions[0].name if definitions else "command"
                    ),
                    token=tokens[0],
                    docs=getdoc(FaultCode.INVALID_COMMAND),
                ))

            definition = find(definitions, lambda x: x.matches(name))
            if definition is None:
                self.trigger(UnknownCommandError(
                    "unknown command %r" % ("-" + name),
                    title="unknown command",
                    code=FaultCode.UNKNOWN_COMMAND,
                    hint=self._suggest(name, definitions),
                    token="-" + name,
                    docs=getdoc(FaultCode.UNKNOWN_COMMAND),
                ))

            options = {}
            positionals = []
            while tokens and not self._ends_segment(definition, tokens[0], definitions):
                if (resolved := self._read_option(definition, tokens)) is None:
                    positionals.append(tokens.popleft())
                else:
                    key, value = resolved
                    options[key] = value

            command = ParsedCommand(definition.name, options, positionals)
            logger.debug("parsed %r", command)

            if definition.validate is not None:
                try:
                    definition.validate(command)
                except Exception as exception:
                    self.trigger(ValidationError(
                        "[%s] %s" % (name, exception),
                        title="invalid command arguments",
                        code=FaultCode.VALIDATION_ERROR,
                        hint="check the arguments given to -%s" % definition.name,
                        token="-" + name,
                        exception=exception,
                        docs=getdoc(FaultCode.VALIDATION_ERROR),
                    ))

            commands.append(command)

        return commands

    def _ends_segment(self, definition, token, definitions, /):
        """
        Whether token starts a new command segment: it looks like a command
        switch and either names a registered command or names no option of the
        current command.
        """
        if (match := _COMMAND.fullmatch(token)) is None:
            return False
        if find(definitions, lambda x: x.matches(match[1])) is not None:
            return True
        return _lookup(definition, token) is None

    def _suggest(self, name, definitions, /):
        names = [x.name for x in definitions] + [x.alias for x in definitions if x.alias]
        try:
            return "did you mean %r? run with no arguments to see all commands" % (
                "-" + difflib.get_close_matches(name, names, 1)[0]
            )
        except IndexError:
            return "run with no arguments to see all commands"

    def _read_option(self, definition, tokens, /):
        """
        Read one option from the head of tokens; None when the head token is
        not an option of definition (the token is then left in place).

        Returns a (key, value) pair and consumes the option token plus its
        value token, if any.
        """
        token = tokens[0]
        match = _ASSIGNMENT.fullmatch(token)
        name = match[1] if match else token

        if (option := _lookup(definition, name)) is None:
            return None

        if match and not option.takes_value:
            self.trigger(InlineValueNotAllowedError(
                "-%s %s doesn't take a value" % (definition.name, name),
                title="option cannot take a value",
                code=FaultCode.INLINE_VALUE_NOT_ALLOWED,
                hint="remove everything from '=' (for example: %s)" % name,
                token=token,
                docs=getdoc(FaultCode.INLINE_VALUE_NOT_ALLOWED),
            ))

        if match:
            tokens[0] = match[2]
        else:
            tokens.popleft()

        value = self._read_value(option, tokens)
        if value is Unset:
            self.trigger(InvalidOptionValueError(
                ("invalid value for -%s %s" if tokens else "missing value for -%s %s") % (definition.name, option.key),
                title="invalid option value",
                code=FaultCode.INVALID_OPTION_VALUE,
                hint="%s expects a %s value" % (name, option.type),
                token=tokens[0] if tokens else token,
                docs=getdoc(FaultCode.INVALID_OPTION_VALUE),
            ))

        logger.debug("option %r of -%s set to %r", option.key, definition.name, value)
        return option.key, value

    def _read_value(self, option, tokens, /):
        """
        Coerce the option value; Unset signals an invalid or missing value.

        Flags and enumerated members never consume a token. Other kinds consume
        the head token only when it yields a valid value.
        """
        if option.type is OptionType.FLAG:
            return True
        if option.assign_to is not None:
            return option.name
        if not tokens:
            return Unset

        raw = tokens[0]
        match option.type:
            case OptionType.NUMBER:
                value = _tonumber(raw)
            case OptionType.INTEGER:
                value = _tonumber(raw)
                if value is not Unset:
                    value = math.floor(value + 0.5) if math.isfinite(value) else Unset
            case OptionType.COMMA_SEP:
                value = raw.split(",")
            case _:
                value = raw

        if value is not Unset:
            tokens.popleft()
        return value

    def get_help_message(self, commands=Unset, /):
        """
        Render the help text.

        Modes
        - summary (no names, or names matching no command): usage, one line per
          described command, examples, closing note.
        - detail (one or more command names, or "all"): for each selected
          command, its description followed by one line per described option.

        Labels are column-aligned to the widest label rendered by this call.
        """
        definitions = self.commands
        shown = definitions
        detail = False

        if commands is not Unset and commands is not None:
            names = [commands] if isinstance(commands, str) else list(commands)
            detail = True
            if not contains(names, "all"):
                shown = tuple(x for x in definitions if contains(names, x.name))
            if not shown:
                detail = False
                shown = definitions

        complete = shown is definitions

        labels = {}
        for position, command in enumerate(shown):
            if command.describe:
                labels[position] = _CMD_PREFIX + "-" + command.name + (
                    ", -" + command.alias if command.alias else ""
                )
            if detail:
                for index, option in enumerate(command.options):
                    if option.describe:
                        labels[position, index] = _OPT_PREFIX + (option.label or option.name + (
                            ", " + option.alias if option.alias else ""
                        ) + ("=" if option.takes_value else ""))

        width = max(map(len, labels.values()), default=0)

        def line(label, describe):
            return rpad(label, width) + _GUTTER + (describe or "") + "\n"

        if detail:
            message = "\n"
        elif self._usage:
            message = self._usage + "\n\n"
        else:
            message = ""

        for position, command in enumerate(shown):
            if complete and command.title:
                message += command.title + "\n"
            if command.describe:
                message += line(labels[position], command.describe)
            if (command.title or command.describe) and detail and command.options:
                for index, option in enumerate(command.options):
                    if (position, index) in labels:
                        message += line(labels[position, index], option.describe)
                message += "\n"

        if not detail and self._examples:
            message += "\nExamples\n"
            for example in self._examples:
                message += "\n" + example + "\n"

        if not detail and self._note:
            message += "\n" + self._note

        return message

    def print_help(self, commands=Unset, /):
        """
        Send get_help_message(commands) to the configured sink.
        """
        self._sink(self.get_help_message(commands))


__all__ = (
    "Parser",
    "ParsedCommand",
)
