"""pymongo-based backend implementation."""

import logging
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, MongoClient
from pymongo.collection import Collection
from pymongo.database import Database
from pymongo.errors import ConfigurationError as MongoConfigurationError
from pymongo.errors import PyMongoError

from slowop.errors import ConfigurationError, RetrievalError


logger = logging.getLogger(__name__)

PROFILE_COLLECTION = "system.profile"


class MongoBackend:
    """Backend reading currentOp and system.profile through pymongo."""

    def __init__(self, database: Database):
        """Initialize the Mongo backend.

        Args:
            database: The monitored database. currentOp is issued against the
                admin database of the same client.
        """
        self._database = database
        self._profile: Optional[Collection] = None

    @classmethod
    def from_uri(cls, uri: str, **client_options: Any) -> "MongoBackend":
        """Create a backend from a connection string.

        The connection string must name a default database
        (mongodb://host:port/dbname).

        Raises:
            ConfigurationError: If the connection string names no database.
        """
        client: MongoClient = MongoClient(uri, **client_options)
        try:
            return cls.from_client(client)
        except ConfigurationError:
            client.close()
            raise

    @classmethod
    def from_client(cls, client: MongoClient) -> "MongoBackend":
        """Create a backend for the default database of a client.

        Raises:
            ConfigurationError: If the client names no default database.
        """
        try:
            database = client.get_default_database()
        except MongoConfigurationError as exc:
            raise ConfigurationError(f"Connection string names no database: {exc}") from exc
        return cls(database)

    @property
    def name(self) -> str:
        """Name of the monitored database."""
        return self._database.name

    @property
    def database(self) -> Database:
        """The wrapped pymongo database."""
        return self._database

    def current_op(self, command: Dict[str, Any]) -> Dict[str, Any]:
        """Run an admin currentOp command. Returns the reply document."""
        try:
            reply = self._database.client.admin.command(command)
        except PyMongoError as exc:
            raise RetrievalError(f"currentOp failed: {exc}") from exc

        if not isinstance(reply, dict):
            raise RetrievalError(
                f"currentOp returned {type(reply).__name__}, expected a document"
            )
        return reply

    def find_profile(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Query the system.profile collection, oldest entries first."""
        try:
            cursor = self._profile_collection().find(filter).sort("ts", ASCENDING)
            return list(cursor)
        except PyMongoError as exc:
            raise RetrievalError(f"system.profile query failed: {exc}") from exc

    def _profile_collection(self) -> Collection:
        """Open the system.profile collection handle on first use."""
        if self._profile is None:
            logger.debug("Opening %s.%s", self.name, PROFILE_COLLECTION)
            self._profile = self._database[PROFILE_COLLECTION]
        return self._profile
