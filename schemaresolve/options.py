"""Options accepted by the resolver and the probe validator."""

from typing import Any, Callable, Dict, List, Optional, Sequence

from schemaresolve.common import default_get_value, segment as split_graphemes
from schemaresolve.errors import SchemaResolveError
from schemaresolve.refs import resolve_reference


class ResolveOptions:
    """Per-call configuration.

    Args:
        get_value: Reads a property or index from a container, (container, key) -> value.
        skip_validation: Skip const, enum and required checks.
        current_path: Path prefix for every reported error.
        segment: Splits a string into grapheme clusters for length checks.
        ref_resolver: Resolves a '$ref' pointer, (pointer, root_schema) -> schema or None.
    """

    FIELDS = ('get_value', 'skip_validation', 'current_path', 'segment', 'ref_resolver')

    def __init__(self,
                 get_value: Optional[Callable[[Any, Any], Any]] = None,
                 skip_validation: bool = False,
                 current_path: Optional[Sequence[Any]] = None,
                 segment: Optional[Callable[[str], Sequence[str]]] = None,
                 ref_resolver: Optional[Callable[[str, Any], Any]] = None):
        self.get_value = get_value or default_get_value
        self.skip_validation = bool(skip_validation)
        self.current_path: List[str] = [str(p) for p in (current_path or [])]
        self.segment = segment or split_graphemes
        self.ref_resolver = ref_resolver or resolve_reference

    @classmethod
    def create(cls, options: Any = None, **kwargs) -> 'ResolveOptions':
        """Builds options from an existing instance, a dict, keyword arguments or a mix.

        Raises:
            SchemaResolveError: If an unknown option is given.
        """
        values: Dict[str, Any] = {}
        if isinstance(options, ResolveOptions):
            values = {name: getattr(options, name) for name in cls.FIELDS}
        elif isinstance(options, dict):
            values = dict(options)
        elif options is not None:
            raise SchemaResolveError(f"Unsupported options object: {type(options).__name__}")
        values.update(kwargs)
        unknown = [k for k in values if k not in cls.FIELDS]
        if unknown:
            raise SchemaResolveError(f"Unknown option(s): {', '.join(sorted(unknown))}")
        return cls(**values)

    def __repr__(self) -> str:
        return (f"ResolveOptions(skip_validation={self.skip_validation}, "
                f"current_path={self.current_path})")