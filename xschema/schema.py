"""
Canonical schema node model.

A schema is a tree of frozen dataclasses, one class per type variant. Each
variant carries the keywords meaningful for its type plus the universal
keywords (enum, not_, all_of, any_of, one_of). Children may be other schema
nodes or references (see xschema.ref.Ref).

Nodes are normalized on construction (tuples instead of lists, read-only
mappings, compiled regular expressions) and are never changed afterwards, so
one tree can be shared by any number of validations.
"""

# pylint: disable=too-many-instance-attributes

import re
from dataclasses import dataclass, field, fields
from enum import Enum
from types import MappingProxyType
from typing import Any, Iterator, Mapping, Optional, Pattern, Tuple, Union

from xschema.exceptions import SchemaError


@dataclass(frozen=True)
class Symbol:
    """
    Symbolic form of a map key.

    Python has a single string type, so the symbolic encoding of a key is
    modelled as a distinct value type. Symbol('a') and 'a' name the same
    property but are different keys of a dict.
    """
    name: str

    def __str__(self) -> str:
        return self.name


class KeyForm(Enum):
    """Allowed key representation of a map."""
    STRINGS = 'strings'
    SYMBOLS = 'symbols'


def canonical_key(key: Any) -> Any:
    """Returns the string form of a declared property key."""
    if isinstance(key, Symbol):
        return key.name
    return key


def _set(node: Any, name: str, value: Any) -> None:
    object.__setattr__(node, name, value)


def _tuple(value: Any) -> Optional[tuple]:
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        return tuple(value)
    return (value,)


def _mapping(value: Optional[Mapping]) -> Optional[Mapping]:
    if value is None:
        return None
    return MappingProxyType(dict(value))


def _compile(pattern: Union[str, Pattern]) -> Pattern:
    if isinstance(pattern, re.Pattern):
        return pattern
    try:
        return re.compile(pattern)
    except re.error as e:
        raise SchemaError(f"Invalid regular expression {pattern!r}: {e}") from e


def _iter_nested(value: Any) -> Iterator[Any]:
    if isinstance(value, Mapping):
        for item in value.values():
            yield from _iter_nested(item)
    elif isinstance(value, (list, tuple)):
        for item in value:
            yield from _iter_nested(item)
    elif value is not None and not isinstance(value, (bool, int, float, str, Enum, re.Pattern)):
        yield value


@dataclass(frozen=True)
class Schema:
    """
    Base of all schema variants.

    Attributes:
        enum: Closed list of accepted literal values
        not_: Schema the value must not match
        all_of: Schemas the value must all match
        any_of: Schemas of which the value must match at least one
        one_of: Schemas of which the value must match exactly one
        id: Explicit identifier, indexed by the root graph
        data: Extension keywords, e.g. definitions
        as_: Type label used in error reports
        lenient: Values of another type skip the type-specific keywords
    """
    enum: Optional[Tuple[Any, ...]] = None
    not_: Any = None
    all_of: Optional[Tuple[Any, ...]] = None
    any_of: Optional[Tuple[Any, ...]] = None
    one_of: Optional[Tuple[Any, ...]] = None
    id: Optional[str] = None
    data: Optional[Mapping[str, Any]] = None
    as_: str = 'any'
    lenient: bool = False

    def __post_init__(self) -> None:
        if self.enum is not None:
            _set(self, 'enum', tuple(self.enum))
        for name in ('all_of', 'any_of', 'one_of'):
            _set(self, name, _tuple(getattr(self, name)))
        _set(self, 'data', _mapping(self.data))

    @property
    def type_name(self) -> str:
        """The name of the variant, independent of as_."""
        return self.__class__.__dataclass_fields__['as_'].default

    def subschemas(self) -> Iterator[Any]:
        """Yields every schema or reference nested directly or through data."""
        for f in fields(self):
            if f.name in ('enum', 'id', 'as_') or not f.init:
                continue
            yield from _iter_nested(getattr(self, f.name))


@dataclass(frozen=True)
class NullSchema(Schema):
    """Accepts None."""
    as_: str = 'null'


@dataclass(frozen=True)
class BooleanSchema(Schema):
    """Accepts True and False."""
    as_: str = 'boolean'


@dataclass(frozen=True)
class _NumericSchema(Schema):
    minimum: Optional[Union[int, float]] = None
    maximum: Optional[Union[int, float]] = None
    # bool: legacy flag for minimum/maximum, number: strict bound
    exclusive_minimum: Optional[Union[bool, int, float]] = None
    exclusive_maximum: Optional[Union[bool, int, float]] = None
    multiple_of: Optional[Union[int, float]] = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.multiple_of is not None and not self.multiple_of > 0:
            raise SchemaError(f"multiple_of must be greater than 0, got {self.multiple_of}")


@dataclass(frozen=True)
class IntegerSchema(_NumericSchema):
    """Accepts int values (bool excluded)."""
    as_: str = 'integer'


@dataclass(frozen=True)
class FloatSchema(_NumericSchema):
    """Accepts float values."""
    as_: str = 'float'


@dataclass(frozen=True)
class NumberSchema(_NumericSchema):
    """Accepts int and float values (bool excluded)."""
    as_: str = 'number'


@dataclass(frozen=True)
class StringSchema(Schema):
    """Accepts str values."""
    min_length: Optional[int] = None
    max_length: Optional[int] = None
    pattern: Optional[Union[str, Pattern]] = None
    as_: str = 'string'

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.pattern is not None:
            _set(self, 'pattern', _compile(self.pattern))


@dataclass(frozen=True)
class ListSchema(Schema):
    """
    Accepts list and tuple values.

    items is either one schema for every element or a sequence of schemas
    applied by position. additional_items governs elements beyond such a
    sequence and is a bool or a schema.
    """
    items: Any = None
    additional_items: Any = None
    min_items: Optional[int] = None
    max_items: Optional[int] = None
    unique_items: Optional[bool] = None
    as_: str = 'list'

    def __post_init__(self) -> None:
        super().__post_init__()
        if isinstance(self.items, list):
            _set(self, 'items', tuple(self.items))

    @property
    def is_tuple(self) -> bool:
        """True if items holds one schema per position."""
        return isinstance(self.items, tuple)


@dataclass(frozen=True)
class MapSchema(Schema):
    """
    Accepts mapping values.

    Declared keys in properties, required and dependencies are stored in
    string form; the validator matches them against string and Symbol keys.
    """
    properties: Optional[Mapping[Any, Any]] = None
    pattern_properties: Optional[Mapping[str, Any]] = None
    additional_properties: Any = None
    required: Optional[Tuple[Any, ...]] = None
    dependencies: Optional[Mapping[Any, Any]] = None
    min_properties: Optional[int] = None
    max_properties: Optional[int] = None
    keys: Optional[KeyForm] = None
    as_: str = 'map'
    patterns: Tuple[Tuple[Pattern, Any], ...] = field(
        init=False, repr=False, compare=False, default=())

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.properties is not None:
            _set(self, 'properties', MappingProxyType(
                {canonical_key(key): value for key, value in self.properties.items()}))
        if self.required is not None:
            _set(self, 'required', tuple(dict.fromkeys(canonical_key(key) for key in self.required)))
        if self.dependencies is not None:
            dependencies = {}
            for key, value in self.dependencies.items():
                if isinstance(value, (list, tuple)):
                    value = tuple(canonical_key(item) for item in value)
                dependencies[canonical_key(key)] = value
            _set(self, 'dependencies', MappingProxyType(dependencies))
        if self.pattern_properties is not None:
            pattern_properties = {}
            for pattern, value in self.pattern_properties.items():
                if isinstance(pattern, re.Pattern):
                    pattern = pattern.pattern
                pattern_properties[pattern] = value
            _set(self, 'pattern_properties', MappingProxyType(pattern_properties))
            _set(self, 'patterns', tuple(
                (_compile(pattern), value) for pattern, value in pattern_properties.items()))
        if self.keys is not None and not isinstance(self.keys, KeyForm):
            try:
                _set(self, 'keys', KeyForm(self.keys))
            except ValueError as e:
                raise SchemaError(f"Invalid keys constraint: {self.keys!r}") from e


@dataclass(frozen=True)
class AnySchema(Schema):
    """Accepts every value; only enum and composition keywords apply."""
    as_: str = 'any'


TRUE_SCHEMA = AnySchema()
FALSE_SCHEMA = AnySchema(not_=AnySchema())

SCHEMA_TYPES = {
    'null': NullSchema,
    'boolean': BooleanSchema,
    'integer': IntegerSchema,
    'float': FloatSchema,
    'number': NumberSchema,
    'string': StringSchema,
    'list': ListSchema,
    'map': MapSchema,
    'any': AnySchema,
}
