"""Shared fixtures: an in-memory stand-in for a MongoDB deployment."""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List

import pytest


class FakeBackend:
    """Backend serving canned currentOp and system.profile documents.

    find_profile() evaluates the subset of the query language the monitor
    uses: $or, $gte, $gt, $ne and equality.
    """

    def __init__(self, name: str = "app"):
        self._name = name
        self.in_progress: List[Dict[str, Any]] = []
        self.profile: List[Dict[str, Any]] = []
        self.commands: List[Dict[str, Any]] = []
        self.filters: List[Dict[str, Any]] = []
        self.error = None
        self.reply_without_inprog = False

    @property
    def name(self) -> str:
        return self._name

    def current_op(self, command: Dict[str, Any]) -> Dict[str, Any]:
        self.commands.append(command)
        if self.error is not None:
            raise self.error
        if self.reply_without_inprog:
            return {"ok": 1}
        return {"inprog": list(self.in_progress), "ok": 1}

    def find_profile(self, filter: Dict[str, Any]) -> List[Dict[str, Any]]:
        self.filters.append(filter)
        if self.error is not None:
            raise self.error
        matches = [entry for entry in self.profile if _matches(entry, filter)]
        return sorted(matches, key=lambda entry: entry["ts"])


def _matches(document: Dict[str, Any], query: Dict[str, Any]) -> bool:
    for key, condition in query.items():
        if key == "$or":
            if not any(_matches(document, branch) for branch in condition):
                return False
            continue

        value = document.get(key)
        if isinstance(condition, dict):
            for operator, operand in condition.items():
                if operator == "$gte" and not (value is not None and value >= operand):
                    return False
                if operator == "$gt" and not (value is not None and value > operand):
                    return False
                if operator == "$ne" and value == operand:
                    return False
        elif value != condition:
            return False
    return True


BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


def at(seconds: int) -> datetime:
    """A timestamp ``seconds`` after BASE_TIME."""
    return BASE_TIME + timedelta(seconds=seconds)


def profile_entry(ts: datetime, millis: int = 6000, **fields: Any) -> Dict[str, Any]:
    """Build a system.profile entry."""
    entry = {
        "op": "query",
        "ns": "app.users",
        "command": {"find": "users", "filter": {"email": "a@example.com"}},
        "millis": millis,
        "planSummary": "IXSCAN { email: 1 }",
        "ts": ts,
        "appName": "web",
    }
    entry.update(fields)
    return entry


@pytest.fixture
def backend():
    """A fresh fake backend."""
    return FakeBackend()
