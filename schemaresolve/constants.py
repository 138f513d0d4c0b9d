"""Constants for the schemaresolve package.

Keyword groups used to filter a schema down to one concrete type, the
format patterns checked for strings, and the limits and messages shared by
the resolver and the probe validator.
"""

import regex

# Maximum schema nesting below the starting path, and maximum number of times a
# single node may be re-dispatched (if/then/else, allOf, anyOf, oneOf, not),
# before a schema is considered cyclic
MAX_RESOLVE_DEPTH = 100

# Types in the order a value is classified against a multi-type schema
TYPE_PRIORITY = ('null', 'array', 'object', 'boolean', 'string', 'number', 'integer')

BASE_KEYWORDS = (
    'type', 'title', 'description', 'default', 'examples', 'deprecated',
    'readOnly', 'writeOnly', '$id', '$schema', '$ref', '$defs', 'definitions',
    'enum', 'const', 'allOf', 'anyOf', 'oneOf', 'not', 'if', 'then', 'else',
)

STRING_KEYWORDS = (
    'maxLength', 'minLength', 'pattern', 'format', 'contentMediaType', 'contentEncoding',
)

NUMBER_KEYWORDS = (
    'multipleOf', 'maximum', 'exclusiveMaximum', 'minimum', 'exclusiveMinimum',
)

ARRAY_KEYWORDS = (
    'items', 'prefixItems', 'additionalItems', 'maxItems', 'minItems',
    'uniqueItems', 'contains', 'maxContains', 'minContains',
)

OBJECT_KEYWORDS = (
    'maxProperties', 'minProperties', 'required', 'properties', 'patternProperties',
    'additionalProperties', 'dependencies', 'dependentRequired', 'dependentSchemas',
    'propertyNames',
)

SCHEMA_KEYWORDS = {
    'null': (),
    'boolean': (),
    'string': STRING_KEYWORDS,
    'number': NUMBER_KEYWORDS,
    'integer': NUMBER_KEYWORDS,
    'array': ARRAY_KEYWORDS,
    'object': OBJECT_KEYWORDS,
}

# Keywords that make an allOf member resolve on its own instead of being flattened
COMPOSITE_KEYWORDS = ('if', 'then', 'else', 'not', 'allOf', 'anyOf', 'oneOf')

# Path markers
ALL_OF = 'allOf'
ONE_OF = 'oneOf'
NOT = 'not'
ITEMS = 'items'
PROPERTY_NAMES = 'propertyNames'
CONTAINS = 'contains'

FORMAT_PATTERNS = {
    'date-time': regex.compile(
        r'^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])[Tt ]'
        r'([01]\d|2[0-3]):[0-5]\d:([0-5]\d|60)(\.\d+)?([Zz]|[+-]([01]\d|2[0-3]):?[0-5]\d)?$'),
    'date': regex.compile(r'^\d{4}-(0[1-9]|1[0-2])-(0[1-9]|[12]\d|3[01])$'),
    'time': regex.compile(
        r'^([01]\d|2[0-3]):[0-5]\d:([0-5]\d|60)(\.\d+)?([Zz]|[+-]([01]\d|2[0-3]):?[0-5]\d)?$'),
    'email': regex.compile(r'^[^\s@]+@[^\s@]+\.[^\s@]+$'),
    'ipv4': regex.compile(r'^(\d{1,3})\.(\d{1,3})\.(\d{1,3})\.(\d{1,3})$'),
    'uuid': regex.compile(
        r'^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$', regex.IGNORECASE),
}

# Format names as they appear in error messages
FORMAT_LABELS = {
    'ipv4': 'IPv4',
    'uuid': 'UUID',
}

# Messages
MSG_MISSING_REQUIRED = 'Missing required property: {}'
MSG_ANY_OF = 'Value must match at least one schema in anyOf'
MSG_ONE_OF = 'Value must match exactly one schema in oneOf'
MSG_NOT = 'Value must not match schema'
MSG_CONTAINS = 'Array must contain at least one matching item'
MSG_UNIQUE = 'Array items must be unique'
MSG_NO_COMMON_TYPE = 'No valid type satisfies both schemas'
MSG_MAX_DEPTH = 'Maximum schema depth exceeded'
