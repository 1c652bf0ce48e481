"""Classification of raw operation documents."""

import logging
from typing import Any, Callable, Dict, Mapping, Optional, Tuple

from slowop.fingerprint import fingerprint
from slowop.models import NO_COLLECTION, FingerprintedRecord


logger = logging.getLogger(__name__)


# planSummary markers
INDEX_SCAN = "IXSCAN"
ID_LOOKUP = "IDHACK"
COLLECTION_SCAN = "COLLSCAN"

_MISSING = object()


def _field(*path: str) -> Callable[[Mapping[str, Any]], Any]:
    """Return an accessor for a nested field, yielding _MISSING if absent."""

    def get(operation: Mapping[str, Any]) -> Any:
        current: Any = operation
        for part in path:
            if not isinstance(current, Mapping) or part not in current:
                return _MISSING
            current = current[part]
        return current

    return get


# Tried in order; the first field present is the query shape
QUERY_SHAPE_FIELDS: Tuple[Tuple[str, Callable[[Mapping[str, Any]], Any]], ...] = (
    ("query", _field("query")),
    ("command.q", _field("command", "q")),
    ("command.filter", _field("command", "filter")),
    ("command.query", _field("command", "query")),
    ("command.pipeline", _field("command", "pipeline")),
)


def extract_query_shape(operation: Mapping[str, Any]) -> Any:
    """Return the filter, update query or pipeline of an operation.

    Returns an empty document when none of the known fields is present.
    """
    for label, accessor in QUERY_SHAPE_FIELDS:
        value = accessor(operation)
        if value is not _MISSING:
            logger.debug("Query shape taken from %s", label)
            return value
    return {}


def collection_name(namespace: Optional[str]) -> str:
    """Strip the database prefix from a "database.collection" namespace."""
    if not namespace:
        return NO_COLLECTION
    return namespace.rsplit(".", 1)[-1]


def is_indexed(plan_summary: Optional[str]) -> bool:
    """True if the plan used an index scan or an _id lookup."""
    if not isinstance(plan_summary, str):
        return False
    return INDEX_SCAN in plan_summary or ID_LOOKUP in plan_summary


def is_collection_scan(plan_summary: Optional[str]) -> bool:
    """True if the plan scanned the whole collection."""
    if not isinstance(plan_summary, str):
        return False
    return COLLECTION_SCAN in plan_summary


def elapsed_millis(operation: Mapping[str, Any]) -> Optional[float]:
    """Elapsed time in milliseconds, from whichever field the source reports.

    system.profile entries carry ``millis``; currentOp entries carry
    ``microsecs_running`` and ``secs_running``.
    """
    millis = operation.get("millis")
    if isinstance(millis, (int, float)):
        return float(millis)
    micros = operation.get("microsecs_running")
    if isinstance(micros, (int, float)):
        return micros / 1000
    secs = operation.get("secs_running")
    if isinstance(secs, (int, float)):
        return float(secs) * 1000
    return None


def classify(operation: Dict[str, Any]) -> FingerprintedRecord:
    """Fingerprint and classify one raw operation document."""
    plan_summary = operation.get("planSummary")
    namespace = operation.get("ns") or None

    return FingerprintedRecord(
        original_operation=operation,
        fingerprint=fingerprint(extract_query_shape(operation)),
        collection_name=collection_name(namespace),
        is_indexed=is_indexed(plan_summary),
        is_collection_scan=is_collection_scan(plan_summary),
        waiting_for_lock=operation.get("waitingForLock"),
        application_name=operation.get("appName"),
        namespace=namespace,
        op=operation.get("op"),
        elapsed_millis=elapsed_millis(operation),
        timestamp=operation.get("ts"),
    )
