"""Error types and error records for schemaresolve."""

from typing import Any, Dict, List, Optional, Sequence

from schemaresolve.constants import MSG_ONE_OF, ONE_OF


class SchemaResolveError(Exception):
    """Raised when a schema or option cannot be interpreted at all."""

    def __init__(self, message: str, path: Optional[Sequence[str]] = None, cause: Optional[Exception] = None):
        self.message = message
        self.path = list(path) if path else []
        self.cause = cause
        super().__init__(self._format_message())

    def _format_message(self) -> str:
        msg = self.message
        if self.path:
            msg += f" (at: {'.'.join(self.path)})"
        if self.cause:
            msg += f" - caused by: {self.cause}"
        return msg


class SchemaMergeError(SchemaResolveError):
    """Raised when two schemas cannot be merged, e.g. an empty type intersection."""

    def __init__(self, message: str, left_type: Any = None, right_type: Any = None):
        self.left_type = left_type
        self.right_type = right_type
        super().__init__(message)


def create_error(path: Sequence[Any], message: str) -> Dict[str, Any]:
    """Builds a wire-stable error record.

    Args:
        path: Property names, array indices and composition markers.
        message: The human readable message.

    Returns:
        Dict with 'message' and 'path', where every path element is a string.
    """
    return {'message': message, 'path': [str(p) for p in path]}


def dedupe_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Removes errors whose message was already seen, keeping the first."""
    seen = set()
    result = []
    for error in errors:
        if error['message'] in seen:
            continue
        seen.add(error['message'])
        result.append(error)
    return result


def _is_disposable(error: Dict[str, Any]) -> bool:
    if error['message'] == MSG_ONE_OF:
        return True
    return error['message'].startswith('Missing required property') and len(error['path']) <= 1


def filter_disposable_errors(errors: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    """Drops generic oneOf and shallow missing-required errors when a more specific error exists.

    Args:
        errors: Deduplicated error records.

    Returns:
        The filtered list, never empty when the input was not empty.
    """
    if not any(_is_disposable(e) for e in errors):
        return errors
    has_specific = any(
        not _is_disposable(e) or (len(e['path']) > 1 and ONE_OF not in e['path'])
        for e in errors)
    if not has_specific:
        return errors
    return [e for e in errors if not _is_disposable(e)] or errors
