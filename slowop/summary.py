"""Grouping of fingerprinted records by query shape."""

from typing import Dict, Iterable, List, Tuple

from slowop.models import FingerprintedRecord, FingerprintSummary


def summarize(records: Iterable[FingerprintedRecord]) -> List[FingerprintSummary]:
    """Group records by collection and fingerprint.

    Args:
        records: Records from one or more polls.

    Returns:
        One summary per (collection, fingerprint) pair, most frequent first.
        Groups with equal counts keep the order in which they first appeared.
    """
    groups: Dict[Tuple[str, str], FingerprintSummary] = {}

    for record in records:
        key = (record.collection_name, record.fingerprint)
        group = groups.get(key)
        if group is None:
            group = FingerprintSummary(
                collection_name=record.collection_name,
                fingerprint=record.fingerprint,
            )
            groups[key] = group

        group.count += 1
        if record.is_collection_scan:
            group.collection_scans += 1
        if record.waiting_for_lock:
            group.waiting_for_lock += 1
        if record.is_indexed:
            group.indexed = True

        if record.elapsed_millis is not None and (
            group.max_elapsed_millis is None
            or record.elapsed_millis > group.max_elapsed_millis
        ):
            group.max_elapsed_millis = record.elapsed_millis

        if record.application_name and record.application_name not in group.application_names:
            group.application_names.append(record.application_name)

    # sorted() is stable, so ties keep first-seen order
    return sorted(groups.values(), key=lambda group: group.count, reverse=True)
