r"""
Commandeer option definitions.

Overview
- OptionType: closed enumeration of the value kinds an option can carry
  (flag, number, integer, comma-sep, string). Unknown kinds are rejected when
  the definition is built, never at parse time.
- Option: immutable description of one recognized option of a command
  (name, alias, type, assign_to, label, describe).
- DefinitionType: metaclass shared by the definition classes; it exposes the
  names listed in __introspectable__ as read-only properties and provides a
  stable __repr__/__rich_repr__.

Enumerated members
- An option with assign_to is a member of a mutually-exclusive group: selecting
  it writes the option's own name under the assign_to key and consumes no
  value. Several options may share one assign_to key; the last one wins.

Quick example:
    >>> Option("precision", type="number", describe="coordinate precision")
    option(name='precision', alias=None, type=<OptionType.NUMBER: 'number'>, ...)
    >>> Option("geojson", assign_to="format")
    option(name='geojson', alias=None, type=<OptionType.STRING: 'string'>, assign_to='format', ...)
"""
import functools
import operator
import re
from enum import StrEnum

from .utils import *


class OptionType(StrEnum):
    """
    value kinds accepted by an option definition.

    - FLAG: presence-only, stored as True.
    - NUMBER: floating-point numeral.
    - INTEGER: numeral rounded half up to a whole value.
    - COMMA_SEP: comma separated list of strings (empty segments kept).
    - STRING: raw token, used verbatim (default).
    """
    FLAG = "flag"
    NUMBER = "number"
    INTEGER = "integer"
    COMMA_SEP = "comma-sep"
    STRING = "string"


class DefinitionType(type):
    """
    Metaclass that turns definitions into read-only, introspectable values.

    Responsibilities
    - Expose the fields listed in __introspectable__ as read-only properties
      (via mirror()) backed by "_{name}" attributes.
    - Provide stable, readable __repr__/__rich_repr__ implementations.
    - Seal definition classes against subclassing.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages.
    """
    __introspectable__ = ()

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in type(self).__introspectable__:
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        @rename("__init_subclass__")
        def __init_subclass__(cls, **options):  # NOQA: F-841
            raise TypeError(f"type {self.__name__!r} is not an acceptable base type")
        self.__init_subclass__ = classmethod(__init_subclass__)

        return self


def _sanitize_string(cls, field, value, /, *, required=False):
    """
    Internal: validate an optional (or required) non-empty string field.

    Returns the trimmed string, or None when the field was left Unset.
    """
    if value is Unset and not required:
        return None
    if not isinstance(value, str):
        raise TypeError(f"{cls.__typename__} {field!r} must be a string")
    elif not (value := value.strip()):
        raise ValueError(f"{cls.__typename__} {field!r} cannot be empty")
    return value


def _sanitize_type(cls, type, /):
    """
    Internal: resolve an option type from an OptionType or its string value.
    """
    if isinstance(type, OptionType):
        return type
    if not isinstance(type, str):
        raise TypeError(f"{cls.__typename__} 'type' must be a string or an option-type")
    try:
        return OptionType(type.strip())
    except ValueError:
        raise ValueError(f"{cls.__typename__} 'type' must be one of {
            ", ".join(map(repr, map(str, OptionType)))
        }, not {type!r}") from None


class Option(metaclass=DefinitionType):
    """
    Immutable definition of one option recognized by a command.

    Fields
    - name: unique identifier within its command (matched as a bare token, or
      as the left half of a name=value token).
    - alias: optional alternate name, equally unique within the command.
    - type: OptionType (string by default).
    - assign_to: optional shared key; selecting the option stores its own name
      under that key instead of reading a value.
    - label: optional help label override.
    - describe: optional one-line help text; options without it are left out
      of detail help.
    """

    __introspectable__ = (
        "name",
        "alias",
        "type",
        "assign_to",
        "label",
        "describe",
    )

    def __new__(
            cls,
            name,
            /,
            alias=Unset,
            type=OptionType.STRING,
            assign_to=Unset,
            label=Unset,
            describe=Unset,
    ):
        self = super().__new__(cls)
        self._name = _sanitize_string(cls, "name", name, required=True)
        self._alias = _sanitize_string(cls, "alias", alias)
        self._type = _sanitize_type(cls, type)
        self._assign_to = _sanitize_string(cls, "assign_to", assign_to)
        self._label = _sanitize_string(cls, "label", label)
        self._describe = _sanitize_string(cls, "describe", describe)
        return self

    def __setattr__(self, name, value):
        if not name.startswith("_") or hasattr(self, "_describe"):
            raise AttributeError(f"{type(self).__typename__} definitions are read-only")
        super().__setattr__(name, value)

    @property
    def key(self):
        """
        Key written into a parsed command's options: assign_to when set,
        otherwise the name with hyphens mapped to underscores.
        """
        return self._assign_to or self._name.replace("-", "_")

    @property
    def takes_value(self):
        """
        Whether the option consumes a value (inline or following token).
        """
        return self._type is not OptionType.FLAG and self._assign_to is None

    def matches(self, name, /):
        return name == self._name or (self._alias is not None and name == self._alias)


__all__ = (
    "OptionType",
    "Option",
)
