"""slowop - MongoDB slow operation fingerprinting.

Finds slow operations on a MongoDB deployment and reduces each one to a
structural fingerprint of its query, so that repeated occurrences of the same
query shape can be grouped and counted regardless of literal values.

Example usage:

    from slowop import SlowOperationMonitor, fingerprint, summarize

    fingerprint({"_id": 1, "tags": {"$in": ["a", "b"]}})
    # '{ _id, tags: { $in: [ ,  ] } }'

    # Poll currentOp for operations running longer than 10 seconds
    monitor = SlowOperationMonitor("mongodb://localhost:27017/app", query_threshold_seconds=10)
    records = monitor.retrieve_slow_operations()

    # Or poll system.profile, returning only entries not seen before
    monitor = SlowOperationMonitor(
        client["app"],
        use_historical_log=True,
        report_all_collection_scans=True,
    )
    for summary in summarize(monitor.retrieve_slow_operations()):
        print(summary.count, summary.collection_name, summary.fingerprint)
"""

from slowop.backends import Backend
from slowop.backends.mongo import MongoBackend
from slowop.config import MonitorConfig
from slowop.errors import ConfigurationError, RetrievalError, SlowOpError
from slowop.fingerprint import UNDEFINED, fingerprint
from slowop.models import NO_COLLECTION, FingerprintedRecord, FingerprintSummary, Record
from slowop.monitor import SlowOperationMonitor
from slowop.summary import summarize

__version__ = "0.1.0"

__all__ = [
    # Fingerprinting
    "fingerprint",
    "UNDEFINED",
    # Monitoring
    "SlowOperationMonitor",
    "MonitorConfig",
    "summarize",
    # Backends
    "Backend",
    "MongoBackend",
    # Models
    "FingerprintedRecord",
    "FingerprintSummary",
    "Record",
    "NO_COLLECTION",
    # Errors
    "SlowOpError",
    "ConfigurationError",
    "RetrievalError",
]
