"""
Common utility functions for schemaresolve.
"""

# pylint: disable=too-many-return-statements, line-too-long

import copy
import json
from typing import Any, Callable, Dict, List, Optional, Sequence

import regex

from schemaresolve.constants import BASE_KEYWORDS, SCHEMA_KEYWORDS, TYPE_PRIORITY
from schemaresolve.errors import SchemaResolveError


class _Missing:
    """Marker for an absent value, as opposed to an explicit JSON null."""

    def __repr__(self) -> str:
        return 'MISSING'

    def __bool__(self) -> bool:
        return False

    def __copy__(self):
        return self

    def __deepcopy__(self, memo):
        return self


MISSING = _Missing()


def is_object(value: Any) -> bool:
    """Check whether the value is a JSON object."""
    return isinstance(value, dict)


def is_number(value: Any) -> bool:
    """Check whether the value is a JSON number (booleans excluded)."""
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def is_integer(value: Any) -> bool:
    """Check whether the value is an integral JSON number."""
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def schema_types(schema: Any) -> List[str]:
    """
    Get the declared types of a schema node as a list.

    Args:
        schema: The schema node.

    Returns:
        List[str]: The declared type names, empty when the node has no type.
    """
    if not isinstance(schema, dict) or 'type' not in schema:
        return []
    declared = schema['type']
    if isinstance(declared, list):
        return list(declared)
    return [declared]


def allows_null(schema: Any) -> bool:
    """A None value is a real value unless the schema declares types that exclude null."""
    declared = schema_types(schema)
    return not declared or 'null' in declared


def is_absent(value: Any, schema: Any) -> bool:
    """Check whether a value counts as missing for the given schema."""
    return value is MISSING or (value is None and not allows_null(schema))


def _normalize(value: Any) -> Any:
    if isinstance(value, bool) or value is None:
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, dict):
        return {str(k): _normalize(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_normalize(v) for v in value]
    return value


def canonical_json(value: Any) -> str:
    """
    Render a value as canonical JSON text, so that structurally equal values render identically.

    Args:
        value: The value.

    Returns:
        str: JSON with sorted keys and integral floats rendered as integers.
    """
    return json.dumps(_normalize(value), sort_keys=True, ensure_ascii=False)


def deep_equal(a: Any, b: Any) -> bool:
    """Structural equality that keeps booleans and numbers apart."""
    return canonical_json(a) == canonical_json(b)


def has_duplicates(items: Sequence[Any]) -> bool:
    """Check a list for structurally equal items."""
    seen = set()
    for item in items:
        key = canonical_json(item)
        if key in seen:
            return True
        seen.add(key)
    return False


def unique(values: Sequence[Any]) -> List[Any]:
    """Remove structurally equal values, keeping the first occurrence."""
    result = []
    seen = set()
    for value in values:
        key = canonical_json(value)
        if key not in seen:
            seen.add(key)
            result.append(value)
    return result


def format_value(value: Any) -> str:
    """Render a value for an error message the way JSON prints it."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if value is None:
        return 'null'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (dict, list)):
        return json.dumps(value)
    return str(value)


def get_value_type(value: Any, types: Sequence[str]) -> Optional[str]:
    """
    Find the first of the given types the value structurally fits.

    Types are tried in a fixed priority order: null, array, object, boolean,
    string, number, integer. A number is only classified as integer when
    'integer' is listed and the value is integral.

    Args:
        value: The value to classify.
        types: The candidate type names.

    Returns:
        Optional[str]: The matching type name, or None.
    """
    for type_name in TYPE_PRIORITY:
        if type_name not in types:
            continue
        if type_name == 'null' and value is None:
            return type_name
        if type_name == 'array' and isinstance(value, list):
            return type_name
        if type_name == 'object' and is_object(value):
            return type_name
        if type_name == 'boolean' and isinstance(value, bool):
            return type_name
        if type_name == 'string' and isinstance(value, str):
            return type_name
        if type_name == 'number' and is_number(value):
            return type_name
        if type_name == 'integer' and is_integer(value):
            return type_name
    return None


def infer_type(schema: Dict[str, Any], value: Any) -> Optional[str]:
    """
    Infer the concrete type for a schema node without a 'type' keyword.

    The value's own type is used when the node carries at least one keyword
    meaningful for it. A missing value is treated as an object when the node
    declares properties and as an array when it declares items.

    Args:
        schema: The schema node.
        value: The value being resolved.

    Returns:
        Optional[str]: The inferred type, or None when nothing applies.
    """
    if value is MISSING:
        if 'properties' in schema:
            return 'object'
        if 'items' in schema or 'prefixItems' in schema:
            return 'array'
        return None
    value_type = get_value_type(value, TYPE_PRIORITY)
    if value_type and any(k in schema for k in SCHEMA_KEYWORDS[value_type]):
        return value_type
    return None


def filter_props(schema: Dict[str, Any], type_name: str) -> Dict[str, Any]:
    """
    Reduce a schema node to the base keywords plus those of one concrete type.

    Args:
        schema: The schema node.
        type_name: The concrete type.

    Returns:
        Dict[str, Any]: A new schema node typed as type_name.
    """
    allowed = set(BASE_KEYWORDS) | set(SCHEMA_KEYWORDS.get(type_name, ()))
    filtered = {k: v for k, v in schema.items() if k in allowed}
    filtered['type'] = type_name
    return filtered


def omit(schema: Dict[str, Any], *keys: str) -> Dict[str, Any]:
    """Return a shallow copy of the schema without the given keywords."""
    return {k: v for k, v in schema.items() if k not in keys}


def deep_assign(target: Any, source: Any) -> Any:
    """
    Merge source into target, recursing into objects and merging lists index by index.

    The target is modified in place when it is a container.

    Args:
        target: The working value.
        source: The value to merge in.

    Returns:
        Any: The merged value.
    """
    if source is MISSING:
        return target
    if is_object(target) and is_object(source):
        for key, value in source.items():
            if key in target:
                target[key] = deep_assign(target[key], value)
            else:
                target[key] = copy.deepcopy(value)
        return target
    if isinstance(target, list) and isinstance(source, list):
        for index, value in enumerate(source):
            if index < len(target):
                target[index] = deep_assign(target[index], value)
            else:
                target.append(copy.deepcopy(value))
        return target
    return copy.deepcopy(source)


def default_get_value(container: Any, key: Any) -> Any:
    """Read a property or index from a container, returning MISSING when absent."""
    if is_object(container):
        return container.get(key, MISSING)
    if isinstance(container, list) and isinstance(key, int):
        if 0 <= key < len(container):
            return container[key]
    return MISSING


_GRAPHEME = regex.compile(r'\X')


def segment(text: str) -> List[str]:
    """Split text into extended grapheme clusters."""
    return _GRAPHEME.findall(text)


def grapheme_length(text: str, segmenter: Optional[Callable[[str], Sequence[str]]] = None) -> int:
    """
    Count user-perceived characters.

    Args:
        text: The string to measure.
        segmenter: Optional replacement for segment().

    Returns:
        int: The number of grapheme clusters.
    """
    return len((segmenter or segment)(text))


def matches_pattern(pattern: str, text: str) -> bool:
    """
    Test a Unicode-aware regular expression against a string (unanchored search).

    Args:
        pattern: The ECMA-style pattern, e.g. '^\\p{L}+$'.
        text: The string to test.

    Returns:
        bool: True if the pattern matches somewhere in the text.

    Raises:
        SchemaResolveError: If the pattern is not a valid regular expression.
    """
    try:
        return regex.search(pattern, text) is not None
    except regex.error as e:
        raise SchemaResolveError(f"Invalid pattern: {pattern}", cause=e) from e
