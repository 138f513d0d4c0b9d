"""Tests for '$ref' resolution."""

import os
import sys
import unittest

current_script_path = os.path.abspath(__file__)
project_root = os.path.dirname(os.path.dirname(current_script_path))
sys.path.append(project_root)

from schemaresolve.refs import resolve_reference
from schemaresolve.resolve import resolve_values
from schemaresolve.validate import validate_value


class TestResolveReference(unittest.TestCase):
    """Test resolve_reference."""

    root = {
        'definitions': {
            'tag': {'type': 'string', 'maxLength': 3},
            'a/b': {'type': 'number'},
            'with space': {'type': 'boolean'}
        },
        '$defs': {'id': {'type': 'integer'}}
    }

    def test_local_pointer(self):
        """Test local JSON pointers."""
        self.assertEqual(resolve_reference('#/definitions/tag', self.root), {'type': 'string', 'maxLength': 3})
        self.assertEqual(resolve_reference('#/$defs/id', self.root), {'type': 'integer'})

    def test_root(self):
        """Test that '#' is the whole document."""
        self.assertIs(resolve_reference('#', self.root), self.root)

    def test_escaped_pointer(self):
        """Test pointer escapes and percent-encoding."""
        self.assertEqual(resolve_reference('#/definitions/a~1b', self.root), {'type': 'number'})
        self.assertEqual(resolve_reference('#/definitions/with%20space', self.root), {'type': 'boolean'})

    def test_unresolvable(self):
        """Test missing targets and remote documents."""
        self.assertIsNone(resolve_reference('#/definitions/missing', self.root))
        self.assertIsNone(resolve_reference('http://example.com/schema.json#/definitions/tag', self.root))
        self.assertIsNone(resolve_reference('other.json', self.root))
        self.assertIsNone(resolve_reference(42, self.root))


class TestAdditionalPropertiesReference(unittest.TestCase):
    """Test '$ref' in additionalProperties."""

    schema = {
        'type': 'object',
        'properties': {'name': {'type': 'string'}},
        'additionalProperties': {'$ref': '#/definitions/tag'},
        'definitions': {'tag': {'type': 'string', 'maxLength': 3, 'default': 'new'}}
    }

    def test_resolve(self):
        """Test that additional keys resolve against the referenced schema."""
        result = resolve_values(self.schema, {'name': 'n', 'x': 'ab'})
        self.assertTrue(result.ok)
        self.assertEqual(result.value, {'name': 'n', 'x': 'ab'})
        invalid = resolve_values(self.schema, {'name': 'n', 'x': 'abcd'})
        self.assertFalse(invalid.ok)
        self.assertEqual(invalid.errors, [{'message': 'String length must be <= 3', 'path': ['x']}])

    def test_validate(self):
        """Test that the validator follows the reference too."""
        self.assertEqual(validate_value({'x': 'abcd'}, self.schema),
                         [{'message': 'String length must be <= 3', 'path': ['x']}])

    def test_sibling_keywords(self):
        """Test that keywords next to '$ref' apply as well."""
        schema = dict(self.schema, additionalProperties={'$ref': '#/definitions/tag', 'minLength': 2})
        result = resolve_values(schema, {'x': 'a'})
        self.assertEqual(result.errors, [{'message': 'String length must be >= 2', 'path': ['x']}])

    def test_unresolved(self):
        """Test a reference that points nowhere."""
        schema = dict(self.schema, additionalProperties={'$ref': '#/definitions/nope'})
        result = resolve_values(schema, {'x': 'a'})
        self.assertFalse(result.ok)
        self.assertEqual(result.errors, [{'message': 'Unable to resolve reference: #/definitions/nope', 'path': ['x']}])

    def test_custom_resolver(self):
        """Test replacing the reference resolver."""
        result = resolve_values(self.schema, {'x': 'abc'}, ref_resolver=lambda ref, root: {'type': 'number'})
        self.assertFalse(result.ok)
        self.assertEqual(result.errors[0]['message'], 'Value must be a number')


if __name__ == '__main__':
    unittest.main()
