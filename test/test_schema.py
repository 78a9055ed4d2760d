"""Tests for the schema node model and key helpers."""

import os
import sys
import unittest
from dataclasses import FrozenInstanceError

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from xschema.exceptions import SchemaError
from xschema.ref import Ref
from xschema.schema import (AnySchema, IntegerSchema, KeyForm, ListSchema, MapSchema, StringSchema, Symbol,
                            FALSE_SCHEMA, SCHEMA_TYPES, TRUE_SCHEMA)
from xschema.utils import (MISSING, MixedMapError, error_path, first_duplicate, get_key, get_value, has_key,
                           toggle_key, values_equal)


class TestSchemaNodes(unittest.TestCase):
    """Test construction and normalization of schema nodes."""

    def test_type_names(self):
        """Test that as_ defaults to the variant name."""
        for name, schema_class in SCHEMA_TYPES.items():
            self.assertEqual(schema_class().as_, name)
            self.assertEqual(schema_class().type_name, name)
        schema = IntegerSchema(as_='age')
        self.assertEqual(schema.as_, 'age')
        self.assertEqual(schema.type_name, 'integer')

    def test_frozen(self):
        """Test that nodes cannot be changed."""
        schema = IntegerSchema(minimum=1)
        with self.assertRaises(FrozenInstanceError):
            schema.minimum = 2
        schema = MapSchema(properties={'a': IntegerSchema()})
        with self.assertRaises(TypeError):
            schema.properties['b'] = StringSchema()

    def test_sequences_become_tuples(self):
        """Test normalization of list keywords."""
        schema = AnySchema(enum=[1, 2], all_of=[IntegerSchema()], any_of=[IntegerSchema()])
        self.assertEqual(schema.enum, (1, 2))
        self.assertIsInstance(schema.all_of, tuple)
        self.assertIsInstance(schema.any_of, tuple)
        self.assertIsNone(schema.one_of)

    def test_list_items(self):
        """Test single and positional items."""
        self.assertFalse(ListSchema(items=IntegerSchema()).is_tuple)
        schema = ListSchema(items=[IntegerSchema(), StringSchema()])
        self.assertTrue(schema.is_tuple)
        self.assertEqual(schema.items, (IntegerSchema(), StringSchema()))
        self.assertFalse(ListSchema().is_tuple)

    def test_map_keys_normalized(self):
        """Test that declared keys are stored in string form."""
        schema = MapSchema(
            properties={Symbol('a'): IntegerSchema(), 'b': StringSchema()},
            required=[Symbol('a'), 'b', 'a'],
            dependencies={Symbol('a'): [Symbol('b')], 'b': MapSchema()})
        self.assertEqual(list(schema.properties), ['a', 'b'])
        self.assertEqual(schema.required, ('a', 'b'))
        self.assertEqual(schema.dependencies['a'], ('b',))
        self.assertEqual(schema.dependencies['b'], MapSchema())

    def test_key_form(self):
        """Test the keys constraint."""
        self.assertIs(MapSchema(keys='strings').keys, KeyForm.STRINGS)
        self.assertIs(MapSchema(keys=KeyForm.SYMBOLS).keys, KeyForm.SYMBOLS)
        with self.assertRaises(SchemaError):
            MapSchema(keys='atoms')

    def test_patterns_compiled(self):
        """Test that patterns are compiled once."""
        self.assertTrue(StringSchema(pattern='^a').pattern.search('abc'))
        schema = MapSchema(pattern_properties={'^x-': IntegerSchema()})
        self.assertEqual(list(schema.pattern_properties), ['^x-'])
        pattern, value = schema.patterns[0]
        self.assertTrue(pattern.search('x-a'))
        self.assertEqual(value, IntegerSchema())
        with self.assertRaises(SchemaError):
            MapSchema(pattern_properties={'[': IntegerSchema()})

    def test_boolean_schemas(self):
        """Test the accept-all and reject-all schemas."""
        self.assertEqual(TRUE_SCHEMA, AnySchema())
        self.assertEqual(FALSE_SCHEMA.not_, AnySchema())

    def test_subschemas(self):
        """Test iterating nested schemas and references."""
        item = IntegerSchema()
        definition = StringSchema()
        ref = Ref('#/definitions/b')
        schema = MapSchema(properties={'a': item, 'c': ref}, data={'definitions': {'b': definition}, 'title': 'x'},
                           additional_properties=False)
        nested = list(schema.subschemas())
        self.assertIn(item, nested)
        self.assertIn(definition, nested)
        self.assertIn(ref, nested)
        self.assertNotIn('x', nested)
        self.assertNotIn(False, nested)


class TestKeyHelpers(unittest.TestCase):
    """Test lookups across key forms."""

    def test_toggle_key(self):
        """Test switching key forms."""
        self.assertEqual(toggle_key('a'), Symbol('a'))
        self.assertEqual(toggle_key(Symbol('a')), 'a')
        self.assertIsNone(toggle_key(1))
        self.assertEqual(str(Symbol('a')), 'a')

    def test_get_value(self):
        """Test reading a key in either form."""
        self.assertEqual(get_value({'a': 1}, 'a'), 1)
        self.assertEqual(get_value({Symbol('a'): 1}, 'a'), 1)
        self.assertIs(get_value({}, 'a'), MISSING)
        self.assertIsNone(get_value({'a': None}, 'a'))
        with self.assertRaises(MixedMapError):
            get_value({'a': 1, Symbol('a'): 2}, 'a')

    def test_get_key_and_has_key(self):
        """Test locating the key form in use."""
        self.assertEqual(get_key({Symbol('a'): 1}, 'a'), Symbol('a'))
        self.assertEqual(get_key({'a': 1}, 'a'), 'a')
        self.assertTrue(has_key({Symbol('a'): 1}, 'a'))
        self.assertFalse(has_key({'b': 1}, 'a'))


class TestEquality(unittest.TestCase):
    """Test JSON equality helpers."""

    def test_values_equal(self):
        """Test that booleans are not numbers and 1 equals 1.0."""
        self.assertTrue(values_equal(1, 1.0))
        self.assertFalse(values_equal(1, True))
        self.assertTrue(values_equal({'a': [1, {'b': 2}]}, {'a': [1, {'b': 2.0}]}))
        self.assertFalse(values_equal([1, 2], [2, 1]))
        self.assertTrue(values_equal([1, 2], (1, 2)))

    def test_first_duplicate(self):
        """Test finding the first repeated element."""
        self.assertEqual(first_duplicate([1, 2, 3]), -1)
        self.assertEqual(first_duplicate([1, 2, 1, 2]), 2)
        self.assertEqual(first_duplicate([[1], {'a': 1}, [1]]), 2)
        self.assertEqual(first_duplicate([False, 0]), -1)


class TestErrorPath(unittest.TestCase):
    """Test locating the failing value in an error tree."""

    def test_error_path(self):
        """Test following properties and positions."""
        reason = {'reason': 'invalid_property', 'property': 'a/b',
                  'error': {'reason': 'invalid_item', 'at': 3,
                            'error': {'reason': 'too_small', 'minimum': 0}}}
        self.assertEqual(error_path(reason), ('#/a~1b/3', {'reason': 'too_small', 'minimum': 0}))

    def test_composition_not_followed(self):
        """Test that all_of positions are not value positions."""
        reason = {'reason': 'all_of', 'at': 1, 'error': {'reason': 'not'}}
        self.assertEqual(error_path(reason), ('#', {'reason': 'not'}))
        self.assertEqual(error_path({'reason': 'not_unique', 'at': 2})[0], '#/2')


if __name__ == '__main__':
    unittest.main()
