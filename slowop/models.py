"""Pydantic models for slowop."""

from datetime import datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, SkipValidation


NO_COLLECTION = "(no collection)"


class FingerprintedRecord(BaseModel):
    """A slow operation together with its fingerprint and classification."""

    # Source document, as returned by the database
    original_operation: SkipValidation[Dict[str, Any]]

    # Classification
    fingerprint: str
    collection_name: str = NO_COLLECTION
    is_indexed: bool = False
    is_collection_scan: bool = False
    waiting_for_lock: Optional[bool] = None
    application_name: Optional[str] = None

    # Operation details
    namespace: Optional[str] = None
    op: Optional[str] = None
    elapsed_millis: Optional[float] = None

    # Historical log only
    timestamp: Optional[datetime] = None


class FingerprintSummary(BaseModel):
    """Occurrences of one query shape against one collection."""

    collection_name: str
    fingerprint: str
    count: int = 0
    collection_scans: int = 0
    waiting_for_lock: int = 0
    indexed: bool = False
    max_elapsed_millis: Optional[float] = None
    application_names: List[str] = Field(default_factory=list)


# Type alias for retrieval results
Record = FingerprintedRecord
