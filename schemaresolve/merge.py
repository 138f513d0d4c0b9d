"""
Merges two schema nodes into one effective schema.

The merge is used to flatten 'allOf' members (conjunction mode, where types
intersect) and to apply 'then'/'else' branches and chosen composition
branches onto their base schema (additive mode, where the second schema's
scalar keywords and type override the first's).
"""

# pylint: disable=too-many-branches

import copy
import logging
from typing import Any, Dict, List, Optional

from schemaresolve.common import deep_equal, schema_types, unique
from schemaresolve.constants import MSG_NO_COMMON_TYPE
from schemaresolve.errors import SchemaMergeError

logger = logging.getLogger(__name__)

_COMPOSITION_KEYWORDS = ('allOf', 'anyOf', 'oneOf')
_CONDITIONAL_KEYWORDS = ('if', 'then', 'else')


def merge_schemas(schema1: Optional[Any], schema2: Optional[Any], treat_as_conjunction: bool = False) -> Any:
    """
    Merge two schema nodes.

    Args:
        schema1: The base schema. None and True are treated as an empty schema.
        schema2: The schema merged on top of schema1.
        treat_as_conjunction (bool): Intersect 'type' instead of letting schema2's type win.

    Returns:
        The merged schema node. Neither input is modified. A boolean False operand yields False.

    Raises:
        SchemaMergeError: If conjunction mode leaves no type that satisfies both schemas.
    """
    if schema1 is False or schema2 is False:
        return False
    a: Dict[str, Any] = schema1 if isinstance(schema1, dict) else {}
    b: Dict[str, Any] = schema2 if isinstance(schema2, dict) else {}
    result: Dict[str, Any] = {**a, **b}

    if 'type' in a and 'type' in b:
        if treat_as_conjunction:
            result['type'] = intersect_types(a['type'], b['type'])
        else:
            result['type'] = copy.deepcopy(b['type'])

    _merge_const_enum(a, b, result)

    if 'required' in a or 'required' in b:
        result['required'] = unique(list(a.get('required', [])) + list(b.get('required', [])))

    if 'properties' in a and 'properties' in b:
        properties = dict(a['properties'])
        for key, prop_schema in b['properties'].items():
            if key in properties:
                properties[key] = merge_schemas(properties[key], prop_schema, treat_as_conjunction)
            else:
                properties[key] = prop_schema
        result['properties'] = properties

    for keyword in ('patternProperties', 'dependentSchemas'):
        if keyword in a and keyword in b:
            result[keyword] = deep_merge(a[keyword], b[keyword])

    for keyword in ('additionalProperties', 'items'):
        if isinstance(a.get(keyword), dict) and isinstance(b.get(keyword), dict):
            result[keyword] = merge_schemas(a[keyword], b[keyword], treat_as_conjunction)

    if 'if' in b:
        for keyword in _CONDITIONAL_KEYWORDS:
            if keyword in b:
                result[keyword] = b[keyword]
            else:
                result.pop(keyword, None)

    if 'not' in a and 'not' in b:
        result['not'] = merge_schemas(a['not'], b['not'], treat_as_conjunction)

    for keyword in _COMPOSITION_KEYWORDS:
        if keyword in a and keyword in b:
            combined: List[Any] = []
            for sub_schema in list(a[keyword]) + list(b[keyword]):
                if not any(sub_schema is existing for existing in combined):
                    combined.append(sub_schema)
            result[keyword] = combined

    return result


def intersect_types(type1: Any, type2: Any) -> Any:
    """
    Intersect two 'type' declarations.

    When the intersection is empty but one side admits 'number' and the other
    'integer', the result is 'integer'.

    Args:
        type1: A type name or list of type names.
        type2: A type name or list of type names.

    Returns:
        A single type name when one type remains, otherwise a list.

    Raises:
        SchemaMergeError: If no type satisfies both declarations.
    """
    left = schema_types({'type': type1})
    right = schema_types({'type': type2})
    common = [t for t in left if t in right]
    if not common and (('number' in left and 'integer' in right) or ('integer' in left and 'number' in right)):
        common = ['integer']
    if not common:
        logger.debug("Type intersection of %s and %s is empty", left, right)
        raise SchemaMergeError(MSG_NO_COMMON_TYPE, left, right)
    if len(common) == 1:
        return common[0]
    return common


def deep_merge(target: Any, source: Any) -> Any:
    """
    Merge two JSON documents, last write wins per leaf; lists are unioned.

    Args:
        target: The base document.
        source: The document merged on top.

    Returns:
        A new merged document.
    """
    if isinstance(target, dict) and isinstance(source, dict):
        merged = dict(target)
        for key, value in source.items():
            merged[key] = deep_merge(target[key], value) if key in target else value
        return merged
    if isinstance(target, list) and isinstance(source, list):
        return unique(list(target) + list(source))
    return source


def _pinned_value(schema: Dict[str, Any]) -> List[Any]:
    if 'const' in schema:
        return [schema['const']]
    if isinstance(schema.get('enum'), list) and len(schema['enum']) == 1:
        return [schema['enum'][0]]
    return []


def _merge_const_enum(a: Dict[str, Any], b: Dict[str, Any], result: Dict[str, Any]):
    pinned_a = _pinned_value(a)
    pinned_b = _pinned_value(b)
    if pinned_a and pinned_b and deep_equal(pinned_a[0], pinned_b[0]):
        result.pop('enum', None)
        result['const'] = pinned_a[0]
        return
    if 'enum' in a and 'enum' in b:
        result['enum'] = unique(list(a['enum']) + list(b['enum']))
