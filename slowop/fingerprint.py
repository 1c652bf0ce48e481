"""Structural fingerprints for query documents.

A fingerprint keeps the key names and nesting of a document and drops every
literal value, so that ``{"_id": 1}`` and ``{"_id": 2}`` share the signature
``{ _id }``.

Keys are visited in the mapping's own iteration order (insertion order for
``dict`` and for documents decoded by pymongo). Two documents with the same keys
in a different order therefore produce different fingerprints.
"""

from typing import Any, Mapping


class _Undefined:
    """Marker for a key that is present but has no value."""

    _instance = None

    def __new__(cls) -> "_Undefined":
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNDEFINED"

    def __bool__(self) -> bool:
        return False


UNDEFINED = _Undefined()


def _is_document(value: Any) -> bool:
    return isinstance(value, Mapping)


def _is_array(value: Any) -> bool:
    return isinstance(value, (list, tuple))


def _is_empty(value: Any) -> bool:
    return value is None or value is UNDEFINED


def _nested(value: Any) -> str:
    if _is_array(value):
        return array_fingerprint(value)
    return fingerprint(value)


def array_fingerprint(values: Any) -> str:
    """Fingerprint an array.

    Only nested documents and arrays contribute tokens; scalar elements leave an
    empty slot. A non-empty array holding nothing but null/undefined collapses
    to ``[ null ]``.
    """
    if values and all(_is_empty(v) for v in values):
        return "[ null ]"

    parts = []
    for value in values:
        if _is_document(value) or _is_array(value):
            parts.append(_nested(value))
        else:
            parts.append("")

    return "[ " + ", ".join(parts) + " ]"


def fingerprint(document: Any) -> str:
    """Return the structural fingerprint of a document.

    Args:
        document: A mapping, typically a query filter. Arrays (e.g. an
            aggregation pipeline) are fingerprinted as arrays. Anything else
            is treated as a document with no keys.

    Returns:
        The fingerprint string, e.g. ``{ _id, $or: [ { createdAt: { $gt } } ] }``.
    """
    if _is_array(document):
        return array_fingerprint(document)
    if not _is_document(document):
        return "{  }"

    parts = []
    for key, value in document.items():
        if _is_document(value) or _is_array(value):
            parts.append(f"{key}: {_nested(value)}")
        elif value is UNDEFINED:
            parts.append(f"{key}: undefined")
        elif value is None:
            parts.append(f"{key}: null")
        else:
            parts.append(str(key))

    return "{ " + ", ".join(parts) + " }"
