"""Validates values against schemas without changing them.

The validator here is the probe used by the resolver to answer yes/no
questions (does this value satisfy the 'if' schema, which 'oneOf' branch
matches, does the value match a 'not' schema). It never applies defaults and
returns a flat list of error records. It checks:
- Types, including type lists and schemas that only carry keywords
- const and enum
- String length (in graphemes), pattern and format
- Number ranges, exclusive bounds and multipleOf
- Array length, uniqueness, contains and items
- Object size, required, properties, patternProperties, additionalProperties,
  propertyNames, dependentRequired and dependentSchemas
- if/then/else, allOf, anyOf, oneOf and not
"""

# pylint: disable=too-many-branches, too-many-return-statements, line-too-long

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Sequence

from schemaresolve.common import (MISSING, deep_equal, filter_props, format_value, get_value_type,
                                  grapheme_length, has_duplicates, infer_type, is_absent, is_integer,
                                  is_number, is_object, matches_pattern, omit, schema_types, unique)
from schemaresolve.constants import (CONTAINS, FORMAT_LABELS, FORMAT_PATTERNS, MSG_ANY_OF, MSG_CONTAINS,
                                     MSG_MISSING_REQUIRED, MSG_NOT, MSG_ONE_OF, MSG_UNIQUE, PROPERTY_NAMES)
from schemaresolve.errors import SchemaResolveError, create_error
from schemaresolve.merge import merge_schemas
from schemaresolve.options import ResolveOptions

logger = logging.getLogger(__name__)

Path = List[str]


def check_format(value: str, format_name: str) -> bool:
    """
    Check a string against one of the supported formats.

    Args:
        value (str): The string.
        format_name (str): date-time, date, time, email, ipv4 or uuid.

    Returns:
        bool: False only when the format is known and the value does not match it.
    """
    pattern = FORMAT_PATTERNS.get(format_name)
    if pattern is None:
        return True
    match = pattern.match(value)
    if not match:
        return False
    if format_name == 'ipv4':
        return all(int(octet) <= 255 for octet in match.groups())
    return True


def is_multiple_of(value: Any, divisor: Any) -> bool:
    """Check divisibility on the decimal representation to avoid float remainders."""
    try:
        return Decimal(str(value)) % Decimal(str(divisor)) == 0
    except (InvalidOperation, ZeroDivisionError):
        return False


class SchemaValidator:
    """Validates values against schemas without applying defaults."""

    def __init__(self, options: Optional[ResolveOptions] = None, root_schema: Any = None):
        """Initialize the validator.

        Args:
            options: Accessor, segmenter and '$ref' resolver to use.
            root_schema: The document '$ref' pointers resolve against.
        """
        self.options = options or ResolveOptions()
        self.root_schema = root_schema

    def validate(self, value: Any, schema: Any, path: Optional[Sequence[str]] = None) -> List[Dict[str, Any]]:
        """Validate a value and return the error records, empty when the value is valid.

        Args:
            value: The value to check. MISSING is never invalid.
            schema: The schema node.
            path: Path of the value, defaults to options.current_path.
        """
        if path is None:
            path = self.options.current_path
        return self._validate(value, schema, list(path))

    def is_valid(self, value: Any, schema: Any, path: Optional[Sequence[str]] = None) -> bool:
        """Probe a value against a schema."""
        return not self.validate(value, schema, path)

    def evaluate_condition(self, if_schema: Any, value: Any, path: Optional[Sequence[str]] = None) -> bool:
        """
        Decide whether an 'if' schema holds for a value.

        With 'if.properties', every named property is checked on its own. A
        missing property, or one outside a 'minimum'/'maximum' bound, means the
        condition is not met. Remaining 'if' keywords are checked against the
        whole value.

        Args:
            if_schema: The 'if' schema.
            value: The value being resolved.
            path: Path of the value.

        Returns:
            bool: True if the condition is met.
        """
        path = list(self.options.current_path if path is None else path)
        if value is MISSING:
            return False
        if isinstance(if_schema, dict) and isinstance(if_schema.get('properties'), dict):
            if not is_object(value):
                return False
            for name, condition in if_schema['properties'].items():
                prop_value = self.options.get_value(value, name)
                if prop_value is MISSING:
                    return False
                if isinstance(condition, dict):
                    if 'minimum' in condition and not (is_number(prop_value) and prop_value >= condition['minimum']):
                        return False
                    if 'maximum' in condition and not (is_number(prop_value) and prop_value <= condition['maximum']):
                        return False
                if self._validate(prop_value, condition, path + [name]):
                    return False
            rest = omit(if_schema, 'properties')
            return not rest or not self._validate(value, rest, path)
        return not self._validate(value, if_schema, path)

    def resolve_ref(self, schema: Any, path: Path) -> Any:
        """
        Replace a '$ref' node by the schema it points to, keeping sibling keywords.

        Returns:
            The referenced schema, or None if the reference cannot be resolved.
        """
        if not isinstance(schema, dict) or '$ref' not in schema:
            return schema
        target = self.options.ref_resolver(schema['$ref'], self.root_schema)
        if target is None:
            logger.debug("Unresolved reference %s at %s", schema['$ref'], path)
            return None
        siblings = omit(schema, '$ref')
        return merge_schemas(target, siblings) if siblings else target

    def _validate(self, value: Any, schema: Any, path: Path) -> List[Dict[str, Any]]:
        if schema is True or schema is None:
            return []
        if schema is False:
            return [] if value is MISSING else [create_error(path, 'Value is not allowed')]
        if not isinstance(schema, dict):
            raise SchemaResolveError(f"Invalid schema node: {schema!r}", path)
        if value is MISSING:
            return []

        if 'const' in schema and not deep_equal(value, schema['const']):
            return [create_error(path, f"Value must be {format_value(schema['const'])}")]
        if 'enum' in schema and not any(deep_equal(value, option) for option in schema['enum']):
            return [create_error(path, 'Value must be one of: ' + ', '.join(format_value(v) for v in schema['enum']))]

        errors: List[Dict[str, Any]] = []
        if 'if' in schema:
            branch = schema.get('then') if self.evaluate_condition(schema['if'], value, path) else schema.get('else')
            if branch is not None:
                errors.extend(self._validate(value, branch, path))
        for sub_schema in schema.get('allOf', []):
            errors.extend(self._validate(value, sub_schema, path))
        if 'anyOf' in schema and not any(self.is_valid(value, branch, path) for branch in schema['anyOf']):
            errors.append(create_error(path, MSG_ANY_OF))
        if 'oneOf' in schema:
            passing = sum(1 for branch in schema['oneOf'] if self.is_valid(value, branch, path))
            if passing != 1:
                errors.append(create_error(path, MSG_ONE_OF))
        if 'not' in schema and self.is_valid(value, schema['not'], path):
            errors.append(create_error(path, MSG_NOT))

        errors.extend(self._validate_type(value, schema, path))
        return errors

    def _validate_type(self, value: Any, schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        types = schema_types(schema)
        if not types:
            type_name = infer_type(schema, value)
            if type_name is None:
                return []
        elif len(types) > 1:
            type_name = get_value_type(value, types)
            if type_name is None:
                return [create_error(path, 'Value must be one of type: ' + ', '.join(types))]
            schema = filter_props(schema, type_name)
        else:
            type_name = types[0]

        if type_name == 'null':
            return [] if value is None else [create_error(path, 'Value must be null')]
        if type_name == 'boolean':
            return [] if isinstance(value, bool) else [create_error(path, 'Value must be a boolean')]
        if type_name in ('number', 'integer'):
            return self.check_number(value, schema, path, type_name)
        if type_name == 'string':
            return self.check_string(value, schema, path)
        if type_name == 'array':
            return self._validate_array(value, schema, path)
        if type_name == 'object':
            return self._validate_object(value, schema, path)
        return [create_error(path, f"Unsupported type: {type_name}")]

    def check_string(self, value: Any, schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        """Validate a string's type, grapheme length, pattern and format."""
        if not isinstance(value, str):
            return [create_error(path, 'Value must be a string')]
        errors = []
        if 'minLength' in schema or 'maxLength' in schema:
            length = grapheme_length(value, self.options.segment)
            if 'minLength' in schema and length < schema['minLength']:
                errors.append(create_error(path, f"String length must be >= {schema['minLength']}"))
            if 'maxLength' in schema and length > schema['maxLength']:
                errors.append(create_error(path, f"String length must be <= {schema['maxLength']}"))
        if 'pattern' in schema and not matches_pattern(schema['pattern'], value):
            errors.append(create_error(path, f"String must match pattern: {schema['pattern']}"))
        if 'format' in schema and not check_format(value, schema['format']):
            label = FORMAT_LABELS.get(schema['format'], schema['format'])
            errors.append(create_error(path, f"Invalid {label} format"))
        return errors

    def check_number(self, value: Any, schema: Dict[str, Any], path: Path, type_name: str = 'number') -> List[Dict[str, Any]]:
        """Validate a number's type, integer-ness, bounds and multipleOf, reporting every violation."""
        if not is_number(value):
            return [create_error(path, 'Value must be a number')]
        errors = []
        if type_name == 'integer' and not is_integer(value):
            errors.append(create_error(path, 'Value must be an integer'))
        minimum = schema.get('minimum')
        maximum = schema.get('maximum')
        exclusive_minimum = schema.get('exclusiveMinimum')
        exclusive_maximum = schema.get('exclusiveMaximum')
        # draft-04 boolean form turns minimum/maximum exclusive
        if exclusive_minimum is True and minimum is not None:
            exclusive_minimum, minimum = minimum, None
        if exclusive_maximum is True and maximum is not None:
            exclusive_maximum, maximum = maximum, None
        if is_number(minimum) and value < minimum:
            errors.append(create_error(path, f"Value must be >= {format_value(minimum)}"))
        if is_number(maximum) and value > maximum:
            errors.append(create_error(path, f"Value must be <= {format_value(maximum)}"))
        if is_number(exclusive_minimum) and value <= exclusive_minimum:
            errors.append(create_error(path, f"Value must be > {format_value(exclusive_minimum)}"))
        if is_number(exclusive_maximum) and value >= exclusive_maximum:
            errors.append(create_error(path, f"Value must be < {format_value(exclusive_maximum)}"))
        if is_number(schema.get('multipleOf')) and not is_multiple_of(value, schema['multipleOf']):
            errors.append(create_error(path, f"Value must be multiple of {format_value(schema['multipleOf'])}"))
        return errors

    def check_array(self, value: List[Any], schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        """Validate the container constraints of an array: length, uniqueness and contains."""
        errors = []
        if 'minItems' in schema and len(value) < schema['minItems']:
            errors.append(create_error(path, f"Array length must be >= {schema['minItems']}"))
        if 'maxItems' in schema and len(value) > schema['maxItems']:
            errors.append(create_error(path, f"Array length must be <= {schema['maxItems']}"))
        if schema.get('uniqueItems') and has_duplicates(value):
            errors.append(create_error(path, MSG_UNIQUE))
        if 'contains' in schema:
            matches = sum(1 for index, item in enumerate(value)
                          if self.is_valid(item, schema['contains'], path + [str(index)]))
            min_contains = schema.get('minContains', 1)
            if matches == 0 and min_contains > 0:
                errors.append(create_error(path + [CONTAINS], MSG_CONTAINS))
            elif matches < min_contains:
                errors.append(create_error(path + [CONTAINS], f"Array must contain at least {min_contains} matching items"))
            if 'maxContains' in schema and matches > schema['maxContains']:
                errors.append(create_error(path + [CONTAINS], f"Array must contain at most {schema['maxContains']} matching items"))
        return errors

    def item_schema(self, schema: Dict[str, Any], index: int) -> Any:
        """
        Find the schema governing one array position.

        Returns:
            The item schema, MISSING when the item passes through unchecked, or
            False when no further items are allowed.
        """
        prefix_items = schema.get('prefixItems')
        items = schema.get('items', MISSING)
        if isinstance(prefix_items, list):
            if index < len(prefix_items):
                return prefix_items[index]
            index -= len(prefix_items)
            if isinstance(items, list):
                return items[index] if index < len(items) else schema.get('additionalItems', MISSING)
            return items
        if isinstance(items, list):
            if index < len(items):
                return items[index]
            return schema.get('additionalItems', MISSING)
        return items

    def _validate_array(self, value: Any, schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        if not isinstance(value, list):
            return [create_error(path, 'Value must be an array')]
        errors = self.check_array(value, schema, path)
        for index, item in enumerate(value):
            item_schema = self.item_schema(schema, index)
            if item_schema is MISSING or item_schema is True:
                continue
            if item_schema is False:
                errors.append(create_error(path + [str(index)], 'Additional items not allowed'))
                continue
            errors.extend(self._validate(item, item_schema, path + [str(index)]))
        return errors

    def check_object_size(self, value: Dict[str, Any], schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        """Validate minProperties and maxProperties."""
        errors = []
        if 'minProperties' in schema and len(value) < schema['minProperties']:
            errors.append(create_error(path, f"Object must have >= {schema['minProperties']} properties"))
        if 'maxProperties' in schema and len(value) > schema['maxProperties']:
            errors.append(create_error(path, f"Object must have <= {schema['maxProperties']} properties"))
        return errors

    def check_dependent_required(self, value: Dict[str, Any], schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        """Validate that every dependentRequired property is present when its trigger is."""
        errors = []
        for trigger, names in schema.get('dependentRequired', {}).items():
            if self.options.get_value(value, trigger) is MISSING:
                continue
            for name in names:
                if self.options.get_value(value, name) is MISSING:
                    errors.append(create_error(path + [name], MSG_MISSING_REQUIRED.format(name)))
        return errors

    def check_property_names(self, value: Dict[str, Any], schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        """Validate every key of an object against propertyNames."""
        if 'propertyNames' not in schema:
            return []
        errors = []
        for name in value:
            errors.extend(self._validate(name, schema['propertyNames'], path + [PROPERTY_NAMES]))
        return errors

    def is_additional(self, name: str, schema: Dict[str, Any]) -> bool:
        """Check whether a key is neither declared in properties nor matched by patternProperties."""
        if name in schema.get('properties', {}):
            return False
        return not any(matches_pattern(pattern, name) for pattern in schema.get('patternProperties', {}))

    def _validate_object(self, value: Any, schema: Dict[str, Any], path: Path) -> List[Dict[str, Any]]:
        if not is_object(value):
            return [create_error(path, 'Value must be an object')]
        errors = self.check_object_size(value, schema, path)
        properties = schema.get('properties', {})

        for name in unique(schema.get('required', [])):
            if is_absent(self.options.get_value(value, name), properties.get(name)):
                errors.append(create_error(path + [name], MSG_MISSING_REQUIRED.format(name)))
        errors.extend(self.check_dependent_required(value, schema, path))

        for name, prop_schema in properties.items():
            prop_value = self.options.get_value(value, name)
            if is_absent(prop_value, prop_schema):
                continue
            errors.extend(self._validate(prop_value, prop_schema, path + [name]))

        for name, prop_value in value.items():
            if name in properties:
                continue
            for pattern, prop_schema in schema.get('patternProperties', {}).items():
                if matches_pattern(pattern, name):
                    errors.extend(self._validate(prop_value, prop_schema, path + [name]))

        if 'additionalProperties' in schema:
            additional = schema['additionalProperties']
            for name, prop_value in value.items():
                if not self.is_additional(name, schema):
                    continue
                if additional is False:
                    errors.append(create_error(path + [name], f"Additional property not allowed: {name}"))
                    continue
                prop_schema = self.resolve_ref(additional, path + [name])
                if prop_schema is None:
                    errors.append(create_error(path + [name], f"Unable to resolve reference: {additional['$ref']}"))
                    continue
                errors.extend(self._validate(prop_value, prop_schema, path + [name]))

        errors.extend(self.check_property_names(value, schema, path))

        for trigger, dependent_schema in schema.get('dependentSchemas', {}).items():
            if self.options.get_value(value, trigger) is not MISSING:
                errors.extend(self._validate(value, dependent_schema, path))
        return errors


def validate_value(value: Any, schema: Any, options: Any = None, **kwargs) -> List[Dict[str, Any]]:
    """Validates a value against a schema without applying defaults.

    Args:
        value: The value to validate.
        schema: The schema node.
        options: ResolveOptions, a dict of option values, or None.
        **kwargs: Option values, e.g. current_path or get_value.

    Returns:
        List of error records ({'message': ..., 'path': [...]}), empty when valid.
    """
    resolved_options = ResolveOptions.create(options, **kwargs)
    validator = SchemaValidator(resolved_options, root_schema=schema)
    return validator.validate(value, schema)

