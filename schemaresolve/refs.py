"""Resolution of local '$ref' pointers within a schema document."""

import logging
from typing import Any, Optional
from urllib.parse import unquote, urlparse

import jsonpointer
from jsonpointer import JsonPointerException

logger = logging.getLogger(__name__)


def resolve_reference(ref: str, root_schema: Any) -> Optional[Any]:
    """
    Resolve a '$ref' against the root schema document.

    Only fragment references ('#' or '#/json/pointer') are followed; references
    with a scheme or a path would require fetching another document and resolve
    to None.

    Args:
        ref (str): The reference, e.g. '#/definitions/address'.
        root_schema (Any): The schema document the reference points into.

    Returns:
        Optional[Any]: The referenced schema node, or None if it cannot be found.
    """
    if not isinstance(ref, str):
        return None
    url = urlparse(ref)
    if url.scheme or url.path:
        logger.debug("Not following non-local reference %s", ref)
        return None
    if not url.fragment:
        return root_schema
    json_pointer = unquote(url.fragment)
    try:
        return jsonpointer.resolve_pointer(root_schema, json_pointer)
    except JsonPointerException as e:
        logger.debug("Unable to resolve reference %s: %s", ref, e)
        return None
