"""Tests for the shared helpers."""

import copy
import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from schemaresolve.common import (MISSING, deep_assign, deep_equal, default_get_value, filter_props,
                                  format_value, get_value_type, grapheme_length, has_duplicates, infer_type,
                                  is_absent, is_integer, is_number, segment, unique)
from schemaresolve.errors import SchemaResolveError
from schemaresolve.options import ResolveOptions


class TestMissing(unittest.TestCase):
    """Test the MISSING marker."""

    def test_falsy_and_distinct_from_none(self):
        """Test that MISSING is falsy and not None."""
        self.assertFalse(MISSING)
        self.assertIsNot(MISSING, None)
        self.assertEqual(repr(MISSING), 'MISSING')

    def test_copy_keeps_identity(self):
        """Test that copies of MISSING are MISSING."""
        self.assertIs(copy.copy(MISSING), MISSING)
        self.assertIs(copy.deepcopy({'a': MISSING})['a'], MISSING)

    def test_is_absent(self):
        """Test which values count as absent."""
        self.assertTrue(is_absent(MISSING, {'type': 'string'}))
        self.assertTrue(is_absent(None, {'type': 'string'}))
        self.assertFalse(is_absent(None, {'type': ['string', 'null']}))
        self.assertFalse(is_absent(None, {}))
        self.assertFalse(is_absent('', {'type': 'string'}))


class TestTypes(unittest.TestCase):
    """Test type classification."""

    def test_numbers(self):
        """Test number and integer predicates."""
        self.assertTrue(is_number(1.5))
        self.assertFalse(is_number(True))
        self.assertTrue(is_integer(2.0))
        self.assertFalse(is_integer(2.5))
        self.assertFalse(is_integer(False))

    def test_value_type_priority(self):
        """Test the order in which types are tried."""
        self.assertEqual(get_value_type(None, ['string', 'null']), 'null')
        self.assertEqual(get_value_type(True, ['number', 'boolean']), 'boolean')
        self.assertEqual(get_value_type(3, ['integer', 'number']), 'number')
        self.assertEqual(get_value_type(3, ['integer', 'string']), 'integer')
        self.assertIsNone(get_value_type(3.5, ['integer', 'string']))
        self.assertEqual(get_value_type([], ['object', 'array']), 'array')

    def test_infer_type(self):
        """Test type inference for schemas without type."""
        self.assertEqual(infer_type({'minLength': 1}, 'abc'), 'string')
        self.assertIsNone(infer_type({'minLength': 1}, 5))
        self.assertEqual(infer_type({'properties': {}}, MISSING), 'object')
        self.assertEqual(infer_type({'items': {}}, MISSING), 'array')
        self.assertIsNone(infer_type({}, MISSING))

    def test_filter_props(self):
        """Test reducing a schema to one type."""
        schema = {'type': ['string', 'number'], 'minLength': 2, 'minimum': 10, 'default': 'x'}
        self.assertEqual(filter_props(schema, 'string'), {'type': 'string', 'minLength': 2, 'default': 'x'})
        self.assertEqual(filter_props(schema, 'number'), {'type': 'number', 'minimum': 10, 'default': 'x'})


class TestEquality(unittest.TestCase):
    """Test structural equality."""

    def test_deep_equal(self):
        """Test equality that ignores key order and keeps booleans apart."""
        self.assertTrue(deep_equal({'a': [1, {'b': 2}]}, {'a': [1, {'b': 2.0}]}))
        self.assertFalse(deep_equal(1, True))
        self.assertFalse(deep_equal(0, None))
        self.assertFalse(deep_equal([1, 2], [2, 1]))

    def test_duplicates(self):
        """Test duplicate detection and removal."""
        self.assertTrue(has_duplicates([{'x': 1, 'y': 2}, {'y': 2, 'x': 1}]))
        self.assertFalse(has_duplicates([0, False, None, '0']))
        self.assertEqual(unique(['a', 'b', 'a', 'c']), ['a', 'b', 'c'])


class TestFormatting(unittest.TestCase):
    """Test value formatting for messages."""

    def test_format_value(self):
        """Test JSON-like formatting."""
        self.assertEqual(format_value(True), 'true')
        self.assertEqual(format_value(None), 'null')
        self.assertEqual(format_value(5.0), '5')
        self.assertEqual(format_value(0.5), '0.5')
        self.assertEqual(format_value('active'), 'active')
        self.assertEqual(format_value([1, 'a']), '[1, "a"]')


class TestValueHelpers(unittest.TestCase):
    """Test value access and merging."""

    def test_default_get_value(self):
        """Test the default accessor."""
        self.assertEqual(default_get_value({'a': 1}, 'a'), 1)
        self.assertIs(default_get_value({'a': 1}, 'b'), MISSING)
        self.assertEqual(default_get_value([1, 2], 1), 2)
        self.assertIs(default_get_value([1, 2], 5), MISSING)
        self.assertIs(default_get_value('text', 0), MISSING)

    def test_deep_assign(self):
        """Test merging objects and arrays into a working value."""
        target = {'a': {'b': 1}, 'list': [1, {'x': 1}]}
        merged = deep_assign(target, {'a': {'c': 2}, 'list': [1, {'y': 2}, 3]})
        self.assertIs(merged, target)
        self.assertEqual(merged, {'a': {'b': 1, 'c': 2}, 'list': [1, {'x': 1, 'y': 2}, 3]})
        self.assertEqual(deep_assign('old', 'new'), 'new')
        self.assertEqual(deep_assign('old', MISSING), 'old')


class TestGraphemes(unittest.TestCase):
    """Test grapheme segmentation."""

    def test_segment(self):
        """Test clusters of emoji and combining marks."""
        family = '\U0001F468\u200d\U0001F469\u200d\U0001F467\u200d\U0001F466'
        self.assertEqual(len(segment(family)), 1)
        self.assertEqual(grapheme_length('cafe\u0301'), 4)
        self.assertEqual(grapheme_length('\U0001F1FA\U0001F1F8'), 1)
        self.assertEqual(grapheme_length(''), 0)

    def test_custom_segmenter(self):
        """Test a replacement segmenter."""
        self.assertEqual(grapheme_length('cafe\u0301', list), 5)


class TestOptions(unittest.TestCase):
    """Test building options."""

    def test_create_from_kwargs(self):
        """Test options from keyword arguments."""
        options = ResolveOptions.create(skip_validation=1, current_path=['a', 1])
        self.assertIs(options.skip_validation, True)
        self.assertEqual(options.current_path, ['a', '1'])
        self.assertIs(options.get_value, default_get_value)

    def test_create_merges_dict_and_kwargs(self):
        """Test that keyword arguments override a dict."""
        options = ResolveOptions.create({'current_path': ['a']}, current_path=['b'])
        self.assertEqual(options.current_path, ['b'])

    def test_create_copies_instance(self):
        """Test that an existing instance is copied, not shared."""
        original = ResolveOptions(current_path=['a'])
        options = ResolveOptions.create(original, skip_validation=True)
        self.assertIsNot(options, original)
        self.assertEqual(options.current_path, ['a'])
        self.assertFalse(original.skip_validation)

    def test_create_rejects_unknown(self):
        """Test unknown option names and option types."""
        with self.assertRaises(SchemaResolveError):
            ResolveOptions.create({'getValue': len})
        with self.assertRaises(SchemaResolveError):
            ResolveOptions.create(42)


if __name__ == '__main__':
    unittest.main()
