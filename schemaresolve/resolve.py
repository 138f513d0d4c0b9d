"""Resolves values against schemas.

Resolution walks a schema and a value together. Along the way it injects
defaults and const values, evaluates if/then/else, flattens allOf, selects
anyOf and oneOf branches, enforces not, and dispatches to a resolver per
concrete type. The outcome is either the completed value or a list of error
records with paths.

The order of work for every schema node is:
1. default, const and enum
2. if/then/else
3. allOf, anyOf, oneOf, not
4. the resolver for the node's type
"""

# pylint: disable=too-many-arguments, too-many-locals, too-many-branches, too-many-return-statements, line-too-long

import copy
import logging
from contextlib import contextmanager
from typing import Any, Callable, Dict, List, Optional

from schemaresolve.common import (MISSING, allows_null, deep_assign, deep_equal, filter_props, format_value,
                                  get_value_type, infer_type, is_absent, is_object, matches_pattern, omit,
                                  schema_types, unique)
from schemaresolve.constants import (ALL_OF, COMPOSITE_KEYWORDS, MAX_RESOLVE_DEPTH, MSG_ANY_OF,
                                     MSG_MAX_DEPTH, MSG_MISSING_REQUIRED, MSG_NOT, MSG_ONE_OF, NOT, ONE_OF)
from schemaresolve.errors import (SchemaMergeError, SchemaResolveError, create_error, dedupe_errors,
                                  filter_disposable_errors)
from schemaresolve.merge import merge_schemas
from schemaresolve.options import ResolveOptions
from schemaresolve.validate import SchemaValidator

logger = logging.getLogger(__name__)


class ResolveResult:
    """Outcome of resolving a value: either a resolved value or a list of errors."""

    def __init__(self, ok: bool, value: Any = MISSING, errors: Optional[List[Dict[str, Any]]] = None,
                 parent: Any = None, key: Any = None):
        self.ok = ok
        self.value = value
        self.errors = errors or []
        self.parent = parent
        self.key = key

    @classmethod
    def success(cls, value: Any, parent: Any = None, key: Any = None) -> 'ResolveResult':
        """A resolved value, with the container schema and key it was resolved under."""
        return cls(True, value, parent=parent, key=key)

    @classmethod
    def failure(cls, errors: List[Dict[str, Any]]) -> 'ResolveResult':
        """A failed resolution. There is always at least one error."""
        if not errors:
            raise ValueError('A failed resolution needs at least one error')
        return cls(False, errors=list(errors))

    def to_dict(self) -> Dict[str, Any]:
        """Returns {'ok': True, 'value': ...} or {'ok': False, 'errors': [...]}."""
        if self.ok:
            return {'ok': True, 'value': None if self.value is MISSING else self.value}
        return {'ok': False, 'errors': self.errors}

    def __str__(self) -> str:
        if self.ok:
            return f"✓ Resolved: {self.value!r}"
        return "✗ Invalid: " + "; ".join(
            f"{'.'.join(e['path']) or '<root>'}: {e['message']}" for e in self.errors)

    def __repr__(self) -> str:
        if self.ok:
            return f"ResolveResult(ok=True, value={self.value!r})"
        return f"ResolveResult(ok=False, errors={self.errors!r})"


class SchemaResolver:
    """Resolves one value against one schema.

    A resolver keeps the path stack, the errors recorded under negation and
    the depth guard for a single top-level call; create a new one per call.
    The probe validator and the merge function are injected so either can be
    replaced independently.
    """

    def __init__(self,
                 options: Optional[ResolveOptions] = None,
                 validator: Optional[SchemaValidator] = None,
                 merger: Callable[..., Any] = merge_schemas,
                 root_schema: Any = None):
        self.options = options or ResolveOptions()
        self.root_schema = root_schema
        self.validator = validator or SchemaValidator(self.options, root_schema)
        self.merge = merger
        self.path: List[str] = list(self.options.current_path)
        self.soft_errors: List[Dict[str, Any]] = []
        self._start_level = len(self.path)
        # path length of every active frame, never decreasing from bottom to top
        self._levels: List[int] = []
        self._type_resolvers = {
            'null': self._resolve_null,
            'boolean': self._resolve_boolean,
            'integer': self._resolve_number,
            'number': self._resolve_number,
            'string': self._resolve_string,
            'array': self._resolve_array,
            'object': self._resolve_object,
        }

    def resolve_values(self, schema: Any, value: Any = MISSING) -> ResolveResult:
        """
        Resolve a value and aggregate the errors for the caller.

        Errors are deduplicated by message and generic oneOf / shallow
        missing-required errors are dropped when more specific ones exist.

        Args:
            schema: The schema node.
            value: The value, MISSING when there is none.

        Returns:
            ResolveResult: The resolved value (None when nothing resolved) or the errors.
        """
        if self.root_schema is None:
            self.root_schema = schema
        if self.validator.root_schema is None:
            self.validator.root_schema = schema
        result = self.resolve(schema, value)
        if result.ok:
            return ResolveResult.success(None if result.value is MISSING else result.value)
        errors = filter_disposable_errors(dedupe_errors(self.soft_errors + result.errors))
        logger.debug("Resolution failed with %d error(s)", len(errors))
        return ResolveResult.failure(errors)

    @contextmanager
    def _at(self, *segments: Any):
        """Push path segments for the duration of a block."""
        self.path.extend(str(s) for s in segments)
        try:
            yield
        finally:
            del self.path[len(self.path) - len(segments):]

    def _error(self, message: str, *segments: Any) -> Dict[str, Any]:
        return create_error(self.path + [str(s) for s in segments], message)

    def _fail(self, message: str, *segments: Any) -> ResolveResult:
        return ResolveResult.failure([self._error(message, *segments)])

    def resolve(self, schema: Any, value: Any = MISSING, parent: Any = None, key: Any = None,
                negated: bool = False) -> ResolveResult:
        """
        Resolve a value against a schema node.

        Args:
            schema: The schema node.
            value: The value, MISSING when absent.
            parent: The schema of the containing object or array.
            key: The property name or index under which the value sits in its container.
            negated: True while resolving the sub-schema of a 'not'.

        Returns:
            ResolveResult: Errors are not yet deduplicated.
        """
        if self._too_deep():
            logger.warning("Maximum resolve depth exceeded at: %s", '.'.join(self.path) or '<root>')
            return self._fail(MSG_MAX_DEPTH)
        self._levels.append(len(self.path))
        try:
            return self._resolve(schema, value, parent, key, negated)
        finally:
            self._levels.pop()

    def _too_deep(self) -> bool:
        level = len(self.path)
        if level - self._start_level >= MAX_RESOLVE_DEPTH:
            return True
        return len(self._levels) >= MAX_RESOLVE_DEPTH and self._levels[-MAX_RESOLVE_DEPTH] == level

    def _resolve(self, schema: Any, value: Any, parent: Any, key: Any, negated: bool) -> ResolveResult:
        if schema is None or schema is True:
            return ResolveResult.success(value, parent, key)
        if schema is False:
            if value is MISSING:
                return ResolveResult.success(MISSING, parent, key)
            return self._fail('Value is not allowed')
        if not isinstance(schema, dict):
            raise SchemaResolveError(f"Invalid schema node: {schema!r}", self.path)

        value, errors = self._resolve_basic(schema, value)
        if errors:
            return ResolveResult.failure(errors)

        if 'if' in schema:
            return self._resolve_conditional(schema, value, parent, key, negated)
        if 'allOf' in schema:
            return self._resolve_all_of(schema, value, parent, key, negated)
        if 'anyOf' in schema:
            return self._resolve_any_of(schema, value, parent, key, negated)
        if 'oneOf' in schema:
            return self._resolve_one_of(schema, value, parent, key, negated)
        if 'not' in schema:
            return self._resolve_not(schema, value, parent, key, negated)
        return self._resolve_type(schema, value, parent, key, negated)

    def _resolve_basic(self, schema: Dict[str, Any], value: Any):
        """Apply default and const to a missing value, then check const and enum."""
        if is_absent(value, schema):
            if 'default' in schema:
                value = copy.deepcopy(schema['default'])
            elif 'const' in schema:
                value = copy.deepcopy(schema['const'])
            else:
                value = MISSING
        if value is MISSING or self.options.skip_validation:
            return value, []
        if 'const' in schema and not deep_equal(value, schema['const']):
            return value, [self._error(f"Value must be {format_value(schema['const'])}")]
        if 'enum' in schema and not any(deep_equal(value, option) for option in schema['enum']):
            return value, [self._error('Value must be one of: ' + ', '.join(format_value(v) for v in schema['enum']))]
        return value, []

    def _resolve_conditional(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                             negated: bool) -> ResolveResult:
        met = self.validator.evaluate_condition(schema['if'], value, self.path)
        logger.debug("Condition at %s %s", '.'.join(self.path) or '<root>', 'met' if met else 'not met')
        base = omit(schema, 'if', 'then', 'else')
        branch = schema.get('then') if met else schema.get('else')
        effective = base if branch is None else self.merge(base, branch)
        return self.resolve(effective, value, parent, key, negated)

    def _resolve_all_of(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        """
        Resolve allOf by resolving conditional and composite members on their own
        and merging the remaining members into the node.

        The merge lets later scalar keywords and enums replace earlier ones, so
        the resolved value is checked against every merged member afterwards.
        """
        working = copy.deepcopy(value)
        base = omit(schema, 'allOf')
        merged: Any = base
        plain: List[Any] = [omit(base, *COMPOSITE_KEYWORDS)]
        errors: List[Dict[str, Any]] = []
        with self._at(ALL_OF):
            for member in schema['allOf']:
                if isinstance(member, dict) and any(k in member for k in COMPOSITE_KEYWORDS):
                    result = self.resolve(member, working, parent, key, negated)
                    if result.ok:
                        working = deep_assign(working, result.value)
                    else:
                        errors.extend(result.errors)
                    member = omit(member, *COMPOSITE_KEYWORDS)
                plain.append(member)
                try:
                    merged = self.merge(merged, member, treat_as_conjunction=True)
                except SchemaMergeError as e:
                    logger.debug("Unable to merge allOf member at %s: %s", '.'.join(self.path), e)
                    return ResolveResult.failure(errors + [self._error(e.message)])

        result = self.resolve(merged, working, parent, key, negated)
        if errors:
            return ResolveResult.failure(errors + ([] if result.ok else result.errors))
        if not result.ok:
            return result
        with self._at(ALL_OF):
            for member in plain:
                errors.extend(self.validator.validate(result.value, member, self.path))
        if errors:
            return ResolveResult.failure(errors)
        return result

    def _resolve_any_of(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        base = omit(schema, 'anyOf')
        if value is MISSING:
            return self.resolve(base, value, parent, key, negated)
        branch_errors: List[Dict[str, Any]] = []
        for index, branch in enumerate(schema['anyOf']):
            errors = self.validator.validate(value, branch, self.path)
            if not errors:
                logger.debug("anyOf branch %d matched at %s", index, '.'.join(self.path) or '<root>')
                return self.resolve(base, value, parent, key, negated)
            branch_errors.extend(errors)
        if 'default' in schema:
            return ResolveResult.success(copy.deepcopy(schema['default']), parent, key)
        return ResolveResult.failure([self._error(MSG_ANY_OF)] + branch_errors)

    def _resolve_one_of(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        base = omit(schema, 'oneOf')
        if value is MISSING:
            return self.resolve(base, value, parent, key, negated)
        branches = schema['oneOf']
        outcomes = [self.validator.validate(value, branch, self.path) for branch in branches]
        passing = [index for index, errors in enumerate(outcomes) if not errors]

        if len(passing) == 1:
            logger.debug("oneOf branch %d matched at %s", passing[0], '.'.join(self.path) or '<root>')
            try:
                effective = self.merge(base, branches[passing[0]], treat_as_conjunction=True)
            except SchemaMergeError as e:
                return self._fail(e.message, ONE_OF)
            return self.resolve(effective, value, parent, key, negated)

        if 'default' in schema:
            return ResolveResult.success(copy.deepcopy(schema['default']), parent, key)
        if passing or not branches:
            return self._fail(MSG_ONE_OF, ONE_OF)
        candidate = self._closest_branch(branches, value)
        if candidate is not None:
            logger.debug("No oneOf branch matched, reporting branch %d", candidate)
            return ResolveResult.failure(outcomes[candidate])
        return ResolveResult.failure(outcomes[0] + [self._error(MSG_ONE_OF, ONE_OF)])

    @staticmethod
    def _closest_branch(branches: List[Any], value: Any) -> Optional[int]:
        """Pick the branch whose declared properties share the most keys with the value."""
        if not is_object(value):
            return None
        best, best_overlap = None, 0
        for index, branch in enumerate(branches):
            if not isinstance(branch, dict) or not isinstance(branch.get('properties'), dict):
                continue
            overlap = len(set(branch['properties']) & set(value))
            if overlap > best_overlap:
                best, best_overlap = index, overlap
        return best

    def _resolve_not(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                     negated: bool) -> ResolveResult:
        base = omit(schema, 'not')
        if value is MISSING:
            return self.resolve(base, value, parent, key, negated)
        negated_schema = schema['not']
        with self._at(NOT):
            if self.validator.is_valid(value, negated_schema, self.path):
                if is_object(value) and isinstance(negated_schema, dict) and 'required' in negated_schema:
                    # records absent nested properties as soft errors, the result itself is irrelevant
                    self.resolve(negated_schema, value, parent, key, negated=True)
                return self._fail(MSG_NOT)
        return self.resolve(base, value, parent, key, negated)

    def _resolve_type(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                      negated: bool) -> ResolveResult:
        types = schema_types(schema)
        if not types:
            type_name = infer_type(schema, value)
            if type_name is None:
                return ResolveResult.success(value, parent, key)
        elif len(types) > 1:
            if value is MISSING:
                if self._is_required(parent, key):
                    return self._fail(MSG_MISSING_REQUIRED.format(key))
                return ResolveResult.success(MISSING, parent, key)
            type_name = get_value_type(value, types)
            if type_name is None:
                return self._fail('Value must be one of type: ' + ', '.join(types))
            schema = filter_props(schema, type_name)
        else:
            type_name = types[0]

        resolver = self._type_resolvers.get(type_name)
        if resolver is None:
            return self._fail(f"Unsupported type: {type_name}")
        return resolver(schema, value, parent, key, negated)

    def _required_names(self, schema: Dict[str, Any]) -> List[str]:
        """The de-duplicated required list, restricted to declared properties when there are any."""
        if self.options.skip_validation:
            return []
        required = unique(schema.get('required', []))
        if isinstance(schema.get('properties'), dict):
            required = [name for name in required if name in schema['properties']]
        return required

    def _is_required(self, parent: Any, key: Any) -> bool:
        if not isinstance(parent, dict) or key is None:
            return False
        return key in self._required_names(parent)

    @staticmethod
    def _is_root(parent: Any, key: Any) -> bool:
        return parent is None and key is None

    def _resolve_null(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                      negated: bool) -> ResolveResult:
        if value is MISSING or value is None:
            return ResolveResult.success(None, parent, key)
        return self._fail('Value must be null')

    def _resolve_boolean(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                         negated: bool) -> ResolveResult:
        if value is MISSING:
            return ResolveResult.success(False, parent, key)
        if not isinstance(value, bool):
            return self._fail('Value must be a boolean')
        return ResolveResult.success(value, parent, key)

    def _resolve_number(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        if value is MISSING:
            if self._is_required(parent, key):
                return self._fail(MSG_MISSING_REQUIRED.format(key))
            return ResolveResult.success(0 if self._is_root(parent, key) else MISSING, parent, key)
        type_name = 'integer' if 'integer' in schema_types(schema) else 'number'
        errors = self.validator.check_number(value, schema, self.path, type_name)
        if errors:
            return ResolveResult.failure(errors)
        return ResolveResult.success(value, parent, key)

    def _resolve_string(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        if value is MISSING:
            if self._is_required(parent, key):
                return self._fail(MSG_MISSING_REQUIRED.format(key))
            return ResolveResult.success(MISSING, parent, key)
        errors = self.validator.check_string(value, schema, self.path)
        if errors:
            return ResolveResult.failure(errors)
        return ResolveResult.success(value, parent, key)

    def _resolve_array(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                       negated: bool) -> ResolveResult:
        if value is MISSING:
            if self._is_required(parent, key):
                return self._fail(MSG_MISSING_REQUIRED.format(key))
            return ResolveResult.success([] if self._is_root(parent, key) else MISSING, parent, key)
        if not isinstance(value, list):
            return self._fail('Value must be an array')

        errors = self.validator.check_array(value, schema, self.path)
        if errors:
            return ResolveResult.failure(errors)

        result = []
        for index, item in enumerate(value):
            item_schema = self.validator.item_schema(schema, index)
            if item_schema is MISSING or item_schema is True:
                result.append(item)
                continue
            with self._at(index):
                if item_schema is False:
                    errors.append(self._error('Additional items not allowed'))
                    continue
                if item is None and not allows_null(item_schema):
                    # null is a present item, only object properties treat it as absent
                    errors.extend(self.validator.validate(item, item_schema, self.path))
                    continue
                resolved = self.resolve(item_schema, item, schema, index, negated)
            if not resolved.ok:
                errors.extend(resolved.errors)
                continue
            result.append(None if resolved.value is MISSING else resolved.value)

        if errors:
            return ResolveResult.failure(errors)
        return ResolveResult.success(result, parent, key)

    def _resolve_object(self, schema: Dict[str, Any], value: Any, parent: Any, key: Any,
                        negated: bool) -> ResolveResult:
        if value is MISSING:
            if self._is_required(parent, key):
                return self._fail(MSG_MISSING_REQUIRED.format(key))
            materialized = self._resolve_properties(schema, {}, parent, key, negated)
            if self._is_root(parent, key):
                return materialized
            if materialized.ok and materialized.value:
                return materialized
            return ResolveResult.success(MISSING, parent, key)
        if not is_object(value):
            return self._fail('Value must be an object')
        return self._resolve_properties(schema, value, parent, key, negated)

    def _resolve_properties(self, schema: Dict[str, Any], value: Dict[str, Any], parent: Any, key: Any,
                            negated: bool) -> ResolveResult:
        """
        Resolve the members of an object.

        Absent required properties with a default are filled in first. The
        remaining absent required properties are reported; under negation they
        are recorded as soft errors instead. Then properties, dependentSchemas,
        patternProperties, additionalProperties and propertyNames are resolved
        in that order.
        """
        get_value = self.options.get_value
        properties: Dict[str, Any] = schema.get('properties') or {}
        errors = self.validator.check_object_size(value, schema, self.path)

        working = dict(value)
        required = self._required_names(schema)
        for name in required:
            prop_schema = properties.get(name)
            if isinstance(prop_schema, dict) and 'default' in prop_schema and is_absent(get_value(working, name), prop_schema):
                working[name] = copy.deepcopy(prop_schema['default'])
        missing = [name for name in required if is_absent(get_value(working, name), properties.get(name))]
        for name in missing:
            error = self._error(MSG_MISSING_REQUIRED.format(name), name)
            if negated:
                self.soft_errors.append(error)
            else:
                errors.append(error)

        result: Dict[str, Any] = {}
        for name, prop_schema in properties.items():
            if name in missing:
                continue
            with self._at(name):
                resolved = self.resolve(prop_schema, get_value(working, name), schema, name, negated)
            if not resolved.ok:
                errors.extend(resolved.errors)
            elif resolved.value is not MISSING:
                result[name] = resolved.value
        for name, prop_value in working.items():
            if name not in properties:
                result[name] = prop_value

        if not self.options.skip_validation:
            errors.extend(self.validator.check_dependent_required(working, schema, self.path))
        for trigger, dependent_schema in (schema.get('dependentSchemas') or {}).items():
            if get_value(working, trigger) is MISSING:
                continue
            resolved = self.resolve(dependent_schema, result, parent, key, negated)
            if not resolved.ok:
                errors.extend(resolved.errors)
            elif is_object(resolved.value):
                result.update(resolved.value)

        for name in list(result):
            if name in properties:
                continue
            for pattern, prop_schema in (schema.get('patternProperties') or {}).items():
                if not matches_pattern(pattern, name):
                    continue
                with self._at(name):
                    resolved = self.resolve(prop_schema, result[name], schema, name, negated)
                if not resolved.ok:
                    errors.extend(resolved.errors)
                elif resolved.value is not MISSING:
                    result[name] = resolved.value

        if 'additionalProperties' in schema:
            errors.extend(self._resolve_additional(schema, working, result, negated))

        errors.extend(self.validator.check_property_names(result, schema, self.path))

        if errors:
            return ResolveResult.failure(errors)
        return ResolveResult.success(result, parent, key)

    def _resolve_additional(self, schema: Dict[str, Any], working: Dict[str, Any], result: Dict[str, Any],
                            negated: bool) -> List[Dict[str, Any]]:
        """Resolve the keys of the value that neither properties nor patternProperties cover."""
        additional = schema['additionalProperties']
        errors: List[Dict[str, Any]] = []
        if additional is True or additional is None:
            return errors
        for name in list(result):
            if name not in working or not self.validator.is_additional(name, schema):
                continue
            if additional is False:
                errors.append(self._error(f"Additional property not allowed: {name}", name))
                continue
            prop_schema = self.validator.resolve_ref(additional, self.path + [name])
            if prop_schema is None:
                errors.append(self._error(f"Unable to resolve reference: {additional['$ref']}", name))
                continue
            with self._at(name):
                resolved = self.resolve(prop_schema, result[name], schema, name, negated)
            if not resolved.ok:
                errors.extend(resolved.errors)
            elif resolved.value is not MISSING:
                result[name] = resolved.value
        return errors


def resolve_values(schema: Any, value: Any = MISSING, options: Any = None, **kwargs) -> ResolveResult:
    """Resolves a value against a schema, injecting defaults and collecting validation errors.

    Args:
        schema: The schema node.
        value: The value to resolve. Omit it (or pass MISSING) when there is no value.
        options: ResolveOptions, a dict of option values, or None.
        **kwargs: Option values, e.g. get_value=lambda obj, key: obj.get(key).

    Returns:
        ResolveResult with ok and value, or ok=False and errors.
    """
    resolved_options = ResolveOptions.create(options, **kwargs)
    resolver = SchemaResolver(resolved_options, root_schema=schema)
    return resolver.resolve_values(schema, value)
