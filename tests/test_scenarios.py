"""
Practical scenarios for slowop.

These scenarios walk through typical monitoring sessions against a fake
deployment. Run with: python -m pytest tests/test_scenarios.py -v
"""

from conftest import FakeBackend, at, profile_entry
from slowop import SlowOperationMonitor, summarize


# =============================================================================
# Scenario 1: Regex search hammering the users collection
# The same search shape arrives with different terms and should group together
# =============================================================================


def test_regex_searches_group_together():
    """Searches with different terms share one fingerprint."""
    backend = FakeBackend()
    backend.in_progress = [
        {
            "opid": opid,
            "op": "query",
            "ns": "app.users",
            "secs_running": 8,
            "command": {
                "find": "users",
                "filter": {"$or": [{"name": {"$regex": term, "$options": "i"}}]},
                "limit": 10,
            },
            "planSummary": "COLLSCAN",
            "appName": "search-api",
        }
        for opid, term in enumerate(["foo", "bar", "baz"])
    ]
    monitor = SlowOperationMonitor(backend)

    records = monitor.retrieve_slow_operations()
    [summary] = summarize(records)

    assert summary.count == 3
    assert summary.fingerprint == "{ $or: [ { name: { $regex, $options } } ] }"
    assert summary.collection_scans == 3
    assert summary.application_names == ["search-api"]


# =============================================================================
# Scenario 2: Lock contention during a bulk update
# One writer holds the lock; readers queue behind it
# =============================================================================


def test_lock_contention():
    """Waiting readers and the blocking writer are told apart."""
    backend = FakeBackend()
    backend.in_progress = [
        {
            "op": "update",
            "ns": "app.orders",
            "secs_running": 30,
            "command": {"q": {"status": "pending"}, "u": {"$set": {"status": "late"}}},
            "planSummary": "IXSCAN { status: 1 }",
            "waitingForLock": False,
        },
        {
            "op": "query",
            "ns": "app.orders",
            "secs_running": 6,
            "command": {"find": "orders", "filter": {"_id": 17}},
            "planSummary": "IDHACK",
            "waitingForLock": True,
        },
        {
            "op": "query",
            "ns": "app.orders",
            "secs_running": 5,
            "command": {"find": "orders", "filter": {"_id": 18}},
            "planSummary": "IDHACK",
            "waitingForLock": True,
        },
    ]

    records = SlowOperationMonitor(backend).retrieve_slow_operations()
    waiting = [r for r in records if r.waiting_for_lock]

    assert len(waiting) == 2
    assert all(r.is_indexed for r in records)
    assert {r.fingerprint for r in waiting} == {"{ _id }"}
    assert records[0].fingerprint == "{ status }"


# =============================================================================
# Scenario 3: Polling the profiler on an interval
# Each poll reports only what the profiler recorded since the previous poll
# =============================================================================


def test_profiler_polling_session():
    """Three polls over a growing profile collection."""
    backend = FakeBackend(name="shop")
    monitor = SlowOperationMonitor(
        backend,
        useHistoricalLog=True,
        reportAllCollectionScans=True,
    )

    backend.profile = [
        profile_entry(at(10), ns="shop.carts", command={"find": "carts", "filter": {"user": 1}}),
        profile_entry(at(20), ns="shop.carts", millis=15, planSummary="COLLSCAN",
                      command={"find": "carts", "filter": {"sku": "a"}}),
        profile_entry(at(25), ns="shop.carts", millis=15),
    ]
    first = monitor.retrieve_slow_operations()
    assert [r.timestamp for r in first] == [at(10), at(20)]

    # Nothing new
    assert monitor.retrieve_slow_operations() == []
    assert monitor.watermark == at(20)

    backend.profile.append(
        profile_entry(at(30), ns="shop.carts", command={"find": "carts", "filter": {"user": 2}})
    )
    third = monitor.retrieve_slow_operations()
    assert [r.timestamp for r in third] == [at(30)]

    summaries = summarize(first + third)
    assert [(s.fingerprint, s.count) for s in summaries] == [
        ("{ user }", 2),
        ("{ sku }", 1),
    ]


# =============================================================================
# Scenario 4: Aggregations
# Pipelines are fingerprinted stage by stage
# =============================================================================


def test_aggregation_pipeline():
    """An aggregate command is fingerprinted by its pipeline."""
    backend = FakeBackend()
    backend.in_progress = [
        {
            "op": "command",
            "ns": "app.events",
            "secs_running": 40,
            "command": {
                "aggregate": "events",
                "pipeline": [
                    {"$match": {"type": "click", "at": {"$gte": 0}}},
                    {"$group": {"_id": "$page", "n": {"$sum": 1}}},
                ],
            },
        }
    ]

    [record] = SlowOperationMonitor(backend).retrieve_slow_operations()

    assert record.fingerprint == (
        "[ { $match: { type, at: { $gte } } }, { $group: { _id, n: { $sum } } } ]"
    )
    assert record.is_indexed is False
    assert record.is_collection_scan is False
