"""Validates values against xschema schema graphs.

The validator walks a schema tree alongside a value and returns None when the
value matches, or an error tree otherwise. Every error is a dict with a
'reason' key plus keyword-specific context; errors found in nested values are
wrapped by their parent with the 'property' or 'at' of the nested value, so
the tree mirrors the path from the root to the failing leaf:

    {'reason': 'invalid_property', 'property': 'foo',
     'error': {'reason': 'too_small', 'minimum': 2}}

Data mismatches are never raised. A reference that cannot be resolved, or
that is entered again with the same value while it is still being checked,
raises a RefError, because the schema and not the value is broken.
"""

# pylint: disable=too-many-return-statements

import logging
import math
from dataclasses import replace
from typing import Any, Dict, Mapping, Optional

from xschema.exceptions import CircularRefError, RefDepthError, SchemaError
from xschema.ref import Context, Ref, as_root, resolve
from xschema.schema import (AnySchema, BooleanSchema, FloatSchema, IntegerSchema, KeyForm, ListSchema,
                            MapSchema, NullSchema, NumberSchema, Schema, StringSchema, Symbol,
                            FALSE_SCHEMA, TRUE_SCHEMA)
from xschema.utils import MISSING, MixedMapError, first_duplicate, get_key, get_value, has_key, values_equal

logger = logging.getLogger(__name__)

# Nested reference resolutions allowed on one validation path
DEFAULT_MAX_DEPTH = None

Result = Optional[Dict[str, Any]]


def error(reason: str, **info: Any) -> Dict[str, Any]:
    """Builds an error record."""
    info['reason'] = reason
    return info


class Validator:
    """
    Validates values against a schema graph.

    A validator holds no state between calls and can be shared by threads.
    """

    def __init__(self, schema: Any, max_depth: Optional[int] = DEFAULT_MAX_DEPTH):
        """Initialize the validator.

        Args:
            schema: A Root, or a schema node that is wrapped into one
            max_depth: Nested reference resolutions allowed on one path, if limited
        """
        self.root = as_root(schema)
        self.max_depth = max_depth

    def validate(self, value: Any) -> Result:
        """Validates a value.

        Args:
            value: The value to validate

        Returns:
            None if the value matches, else the error tree.

        Raises:
            RefError: If the schema holds an unresolvable reference.
        """
        return self._validate(self.root.schema, value, Context(self.root))

    def is_valid(self, value: Any) -> bool:
        """Checks a value, discarding error details."""
        return self.validate(value) is None

    def _validate(self, schema: Any, value: Any, context: Context) -> Result:
        if isinstance(schema, Ref):
            return self._validate_ref(schema, value, context)
        if schema is True:
            schema = TRUE_SCHEMA
        elif schema is False:
            schema = FALSE_SCHEMA
        elif not isinstance(schema, Schema):
            raise SchemaError(f"Unknown schema node: {schema!r}")

        if schema.lenient and self._type(schema, value) is not None:
            reason = self._enum(schema, value)
        elif isinstance(schema, NullSchema):
            reason = self._validate_null(schema, value)
        elif isinstance(schema, BooleanSchema):
            reason = self._validate_boolean(schema, value)
        elif isinstance(schema, (IntegerSchema, FloatSchema, NumberSchema)):
            reason = self._validate_number(schema, value)
        elif isinstance(schema, StringSchema):
            reason = self._validate_string(schema, value)
        elif isinstance(schema, ListSchema):
            reason = self._validate_list(schema, value, context)
        elif isinstance(schema, MapSchema):
            reason = self._validate_map(schema, value, context)
        elif isinstance(schema, AnySchema):
            reason = self._enum(schema, value)
        else:
            raise SchemaError(f"Unknown schema node: {schema!r}")
        return reason or self._composition(schema, value, context)

    def _validate_ref(self, ref: Ref, value: Any, context: Context) -> Result:
        target = ref.uri or ref.pointer
        if self.max_depth is not None and context.depth >= self.max_depth:
            raise RefDepthError(target, self.max_depth)
        # the same reference entered again with the same value never terminates
        entry = (id(context.root), target, id(value))
        if entry in context.active:
            start = context.active.index(entry)
            raise CircularRefError([key for _, key, _ in context.active[start:]] + [target])
        schema, context = resolve(ref, context)
        logger.debug("Validating against %s (depth %d)", target, context.depth + 1)
        return self._validate(schema, value, replace(
            context, depth=context.depth + 1, active=context.active + (entry,)))

    def _validate_null(self, schema: NullSchema, value: Any) -> Result:
        return self._type(schema, value) or self._enum(schema, value)

    def _validate_boolean(self, schema: BooleanSchema, value: Any) -> Result:
        return self._type(schema, value) or self._enum(schema, value)

    def _validate_number(self, schema: Any, value: Any) -> Result:
        return (self._type(schema, value)
                or self._minimum(schema, value)
                or self._maximum(schema, value)
                or self._exclusive_maximum(schema, value)
                or self._exclusive_minimum(schema, value)
                or self._multiple_of(schema, value)
                or self._enum(schema, value))

    def _validate_string(self, schema: StringSchema, value: Any) -> Result:
        reason = self._type(schema, value)
        if reason:
            return reason
        length = len(value)
        if schema.min_length is not None and length < schema.min_length:
            return error('too_short', min_length=schema.min_length)
        if schema.max_length is not None and length > schema.max_length:
            return error('too_long', max_length=schema.max_length)
        if schema.pattern is not None and not schema.pattern.search(value):
            return error('no_match', pattern=schema.pattern.pattern)
        return self._enum(schema, value)

    def _validate_list(self, schema: ListSchema, value: Any, context: Context) -> Result:
        reason = self._type(schema, value)
        if reason:
            return reason
        if schema.min_items is not None and len(value) < schema.min_items:
            return error('too_few_items', min_items=schema.min_items)
        if schema.max_items is not None and len(value) > schema.max_items:
            return error('too_many_items', max_items=schema.max_items)
        return (self._items(schema, value, context)
                or self._unique(schema, value)
                or self._enum(schema, value))

    def _validate_map(self, schema: MapSchema, value: Any, context: Context) -> Result:
        return (self._type(schema, value)
                or self._size(schema, value)
                or self._keys(schema, value)
                or self._required(schema, value)
                or self._dependencies(schema, value, context)
                or self._properties(schema, value, context)
                or self._enum(schema, value))

    @staticmethod
    def _type(schema: Schema, value: Any) -> Result:
        if isinstance(schema, NullSchema):
            matches = value is None
        elif isinstance(schema, BooleanSchema):
            matches = isinstance(value, bool)
        elif isinstance(schema, IntegerSchema):
            matches = isinstance(value, int) and not isinstance(value, bool)
        elif isinstance(schema, FloatSchema):
            matches = isinstance(value, float)
        elif isinstance(schema, NumberSchema):
            matches = isinstance(value, (int, float)) and not isinstance(value, bool)
        elif isinstance(schema, StringSchema):
            matches = isinstance(value, str)
        elif isinstance(schema, ListSchema):
            matches = isinstance(value, (list, tuple))
        elif isinstance(schema, MapSchema):
            matches = isinstance(value, Mapping)
        else:
            matches = True
        if matches:
            return None
        return error('wrong_type', type=schema.as_, value=value)

    @staticmethod
    def _enum(schema: Schema, value: Any) -> Result:
        if schema.enum is None:
            return None
        if any(values_equal(item, value) for item in schema.enum):
            return None
        return error('not_in_enum', enum=list(schema.enum), value=value)

    @staticmethod
    def _minimum(schema: Any, value: Any) -> Result:
        minimum = schema.minimum
        if minimum is None or value > minimum:
            return None
        if value == minimum and schema.exclusive_minimum is not True:
            return None
        if value != minimum:
            return error('too_small', minimum=minimum)
        return error('too_small', minimum=minimum, exclusive_minimum=True)

    @staticmethod
    def _maximum(schema: Any, value: Any) -> Result:
        maximum = schema.maximum
        if maximum is None or value < maximum:
            return None
        if value == maximum and schema.exclusive_maximum is not True:
            return None
        if value != maximum:
            return error('too_big', maximum=maximum)
        return error('too_big', maximum=maximum, exclusive_maximum=True)

    @staticmethod
    def _exclusive_maximum(schema: Any, value: Any) -> Result:
        maximum = schema.exclusive_maximum
        if maximum is None or isinstance(maximum, bool) or value < maximum:
            return None
        return error('too_big', exclusive_maximum=maximum)

    @staticmethod
    def _exclusive_minimum(schema: Any, value: Any) -> Result:
        minimum = schema.exclusive_minimum
        if minimum is None or isinstance(minimum, bool) or value > minimum:
            return None
        return error('too_small', exclusive_minimum=minimum)

    @staticmethod
    def _multiple_of(schema: Any, value: Any) -> Result:
        multiple_of = schema.multiple_of
        if multiple_of is None:
            return None
        if isinstance(value, int) and isinstance(multiple_of, int):
            if value % multiple_of == 0:
                return None
        else:
            try:
                quotient = value / multiple_of
            except OverflowError:
                quotient = math.inf
            if math.isfinite(quotient) and quotient - math.floor(quotient) == 0:
                return None
        return error('not_multiple', multiple_of=multiple_of)

    def _items(self, schema: ListSchema, value: Any, context: Context) -> Result:
        if schema.items is None:
            return None
        if schema.is_tuple:
            return self._items_tuple(schema, value, context)
        for at, item in enumerate(value):
            reason = self._validate(schema.items, item, context)
            if reason:
                return error('invalid_item', at=at, error=reason)
        return None

    def _items_tuple(self, schema: ListSchema, value: Any, context: Context) -> Result:
        additional_items = schema.additional_items
        for at, item in enumerate(value):
            if at < len(schema.items):
                item_schema = schema.items[at]
            elif additional_items is False:
                return error('additional_item', at=at)
            elif additional_items is None or additional_items is True:
                return None
            else:
                item_schema = additional_items
            reason = self._validate(item_schema, item, context)
            if reason:
                return error('invalid_item', at=at, error=reason)
        return None

    @staticmethod
    def _unique(schema: ListSchema, value: Any) -> Result:
        if not schema.unique_items:
            return None
        at = first_duplicate(value)
        if at < 0:
            return None
        return error('not_unique', at=at)

    @staticmethod
    def _size(schema: MapSchema, value: Any) -> Result:
        if schema.min_properties is not None and len(value) < schema.min_properties:
            return error('too_few_properties', min_properties=schema.min_properties)
        if schema.max_properties is not None and len(value) > schema.max_properties:
            return error('too_many_properties', max_properties=schema.max_properties)
        return None

    @staticmethod
    def _keys(schema: MapSchema, value: Any) -> Result:
        if schema.keys is None:
            return None
        key_type = str if schema.keys is KeyForm.STRINGS else Symbol
        if all(isinstance(key, key_type) for key in value.keys()):
            return None
        return error('invalid_keys', keys=schema.keys.value)

    @staticmethod
    def _required(schema: MapSchema, value: Any) -> Result:
        if schema.required is None:
            return None
        missing = [key for key in schema.required if not has_key(value, key)]
        if not missing:
            return None
        return error('missing_properties', missing=missing, required=list(schema.required))

    def _dependencies(self, schema: MapSchema, value: Any, context: Context) -> Result:
        if schema.dependencies is None:
            return None
        for key, dependency in schema.dependencies.items():
            if not has_key(value, key):
                continue
            if isinstance(dependency, tuple):
                for item in dependency:
                    if not has_key(value, item):
                        return error('missing_dependency', **{'for': key, 'dependency': item})
            else:
                reason = self._validate(dependency, value, context)
                if reason:
                    return error('invalid_dependency', **{'for': key, 'error': reason})
        return None

    def _properties(self, schema: MapSchema, value: Any, context: Context) -> Result:
        remaining = dict(value.items())
        if schema.properties is not None:
            for key, property_schema in schema.properties.items():
                try:
                    item = get_value(value, key)
                except MixedMapError:
                    return error('mixed_map', property=key)
                if item is MISSING:
                    continue
                data_key = get_key(value, key)
                reason = self._validate(property_schema, item, context)
                if reason:
                    return error('invalid_property', property=data_key, error=reason)
                remaining.pop(data_key, None)

        if schema.patterns:
            matched = set()
            for pattern, pattern_schema in schema.patterns:
                for key, item in remaining.items():
                    if not pattern.search(str(key)):
                        continue
                    reason = self._validate(pattern_schema, item, context)
                    if reason:
                        return error('invalid_property', property=key, error=reason)
                    matched.add(key)
            for key in matched:
                del remaining[key]

        return self._additional_properties(schema, remaining, context)

    def _additional_properties(self, schema: MapSchema, remaining: Dict[Any, Any], context: Context) -> Result:
        additional_properties = schema.additional_properties
        if additional_properties is None or additional_properties is True:
            return None
        if additional_properties is False:
            if not remaining:
                return None
            return error('no_additional_properties_allowed', additional_properties=list(remaining))
        for key, item in remaining.items():
            reason = self._validate(additional_properties, item, context)
            if reason:
                return error('invalid_property', property=key, error=reason)
        return None

    def _composition(self, schema: Schema, value: Any, context: Context) -> Result:
        if schema.not_ is not None and self._validate(schema.not_, value, context) is None:
            return error('not')
        if schema.all_of is not None:
            for at, branch in enumerate(schema.all_of):
                reason = self._validate(branch, value, context)
                if reason:
                    return error('all_of', at=at, error=reason)
        if schema.any_of is not None:
            if not any(self._validate(branch, value, context) is None for branch in schema.any_of):
                return error('any_of')
        if schema.one_of is not None:
            passed = [branch for branch in schema.one_of if self._validate(branch, value, context) is None]
            if len(passed) != 1:
                return error('one_of')
        return None
