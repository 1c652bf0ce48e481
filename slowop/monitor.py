"""SlowOperationMonitor and its retrieval strategies."""

import logging
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Union

from pymongo import MongoClient
from pymongo.database import Database

from slowop.backends import Backend
from slowop.backends.mongo import PROFILE_COLLECTION, MongoBackend
from slowop.classify import COLLECTION_SCAN, classify, elapsed_millis
from slowop.config import MonitorConfig, load_config
from slowop.errors import ConfigurationError
from slowop.models import FingerprintedRecord


logger = logging.getLogger(__name__)


class LiveStrategy:
    """Polls currentOp for operations that are running right now."""

    def retrieve(
        self, backend: Backend, config: MonitorConfig
    ) -> List[Dict[str, Any]]:
        command = {
            "currentOp": True,
            "active": True,
            "op": {"$ne": "none"},
            "secs_running": {"$gte": config.query_threshold_seconds},
        }
        logger.debug("Running %s", command)

        reply = backend.current_op(command)
        in_progress = reply.get("inprog") or []

        # Drop anything the server let through below the threshold
        return [
            operation
            for operation in in_progress
            if operation.get("op") != "none"
            and not _below_threshold(operation, config)
        ]


class HistoricalStrategy:
    """Polls system.profile for operations recorded since the previous poll."""

    def __init__(self) -> None:
        self._watermark: Optional[datetime] = None

    @property
    def watermark(self) -> Optional[datetime]:
        """Latest ``ts`` returned so far, or None before the first result."""
        return self._watermark

    def build_filter(self, backend: Backend, config: MonitorConfig) -> Dict[str, Any]:
        """Compose the system.profile filter for the next poll."""
        slow: List[Dict[str, Any]] = [
            {"millis": {"$gte": config.query_threshold_millis}},
        ]
        if config.report_all_collection_scans:
            slow.append({"planSummary": COLLECTION_SCAN})

        query: Dict[str, Any] = {
            "$or": slow,
            "ns": {"$ne": f"{backend.name}.{PROFILE_COLLECTION}"},
        }
        if self._watermark is not None:
            query["ts"] = {"$gt": self._watermark}
        return query

    def retrieve(
        self, backend: Backend, config: MonitorConfig
    ) -> List[Dict[str, Any]]:
        query = self.build_filter(backend, config)
        logger.debug("Querying %s with %s", PROFILE_COLLECTION, query)

        entries = backend.find_profile(query)

        timestamps = [entry["ts"] for entry in entries if entry.get("ts") is not None]
        if timestamps:
            latest = max(timestamps)
            if self._watermark is None or latest > self._watermark:
                logger.debug("Advancing watermark to %s", latest)
                self._watermark = latest

        return entries


def _below_threshold(operation: Mapping[str, Any], config: MonitorConfig) -> bool:
    elapsed = elapsed_millis(operation)
    return elapsed is not None and elapsed < config.query_threshold_millis


class SlowOperationMonitor:
    """Retrieves slow operations from MongoDB and fingerprints them.

    Each call to retrieve_slow_operations() performs a single poll. The caller
    decides how often to poll, and must not poll the same monitor from two
    threads at once: the historical watermark is read and updated without a
    lock.
    """

    def __init__(
        self,
        db: Union[str, MongoClient, Database, Backend],
        config: Optional[Union[MonitorConfig, Mapping[str, Any]]] = None,
        **options: Any,
    ):
        """Initialize a monitor.

        Args:
            db: The monitored database. Either a Backend instance, a pymongo
                Database, or a MongoClient or connection string naming a
                default database (mongodb://host:port/dbname).
            config: Optional MonitorConfig or mapping of options.
            **options: Options overriding ``config``:
                - query_threshold_seconds (default 5)
                - use_historical_log (default False)
                - report_all_collection_scans (default False)

        Raises:
            ConfigurationError: If db is missing or an option is invalid.
        """
        if db is None or (isinstance(db, str) and not db):
            raise ConfigurationError("Must provide a valid DB reference")

        self._config = load_config(config, **options)

        if isinstance(db, str):
            self._backend: Backend = MongoBackend.from_uri(db)
        elif isinstance(db, MongoClient):
            self._backend = MongoBackend.from_client(db)
        elif isinstance(db, Database):
            self._backend = MongoBackend(db)
        elif isinstance(db, Backend):
            self._backend = db
        else:
            raise ConfigurationError(
                f"Unsupported DB reference of type {type(db).__name__}"
            )

        self._strategy: Union[LiveStrategy, HistoricalStrategy]
        if self._config.use_historical_log:
            self._strategy = HistoricalStrategy()
        else:
            self._strategy = LiveStrategy()

    @property
    def config(self) -> MonitorConfig:
        """Get the monitor configuration."""
        return self._config

    @property
    def backend(self) -> Backend:
        """Get the backend instance."""
        return self._backend

    @property
    def watermark(self) -> Optional[datetime]:
        """Latest system.profile timestamp returned, or None.

        Always None when polling currentOp.
        """
        if isinstance(self._strategy, HistoricalStrategy):
            return self._strategy.watermark
        return None

    def retrieve_slow_operations(self) -> List[FingerprintedRecord]:
        """Poll once for slow operations.

        Returns:
            One FingerprintedRecord per slow operation; empty if there are none.

        Raises:
            RetrievalError: If the database call fails. Nothing is retried and
                the watermark is left unchanged.
        """
        operations = self._strategy.retrieve(self._backend, self._config)
        logger.debug("Retrieved %d slow operation(s)", len(operations))
        return [classify(operation) for operation in operations]
