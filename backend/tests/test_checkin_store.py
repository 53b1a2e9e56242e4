"""
Tests for the check-in stores
=============================
Covers:
- InMemoryCheckinStore: insert, overwrite keeps id + created_at and
  refreshes updated_at, per-user isolation, range reads, date listing,
  concurrent upserts for one key collapse into one row
- SupabaseCheckinStore: upsert goes through .upsert(on_conflict=...)
  (not .insert()), query shapes for the reads, client errors become
  StoreUnavailableError, an empty upsert result is a StoreWriteError
- FallbackCheckinStore: passes through while healthy, switches to memory
  on the first failure and stays there
- build_checkin_store: selection by settings

Run: pytest tests/test_checkin_store.py -v
"""

from __future__ import annotations

import threading
import time
from datetime import date
from unittest.mock import MagicMock

import pytest

from mindtune.config import Settings
from mindtune.db.checkins import (
    FallbackCheckinStore,
    InMemoryCheckinStore,
    SupabaseCheckinStore,
    build_checkin_store,
)
from mindtune.db.stores import StoreUnavailableError, StoreWriteError

# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

_FIELDS = {
    "mood_rating": 7,
    "stress_level": 4,
    "energy_level": 6,
    "sleep_quality": 8,
    "anxiety_level": 3,
    "activities": ["exercise", "reading"],
    "goals_achieved": 2,
    "notes": "Good day",
    "gratitude_notes": None,
}

_DAY = date(2026, 3, 10)

_ROW = {
    "id": 41,
    "user_id": 1,
    "checkin_date": "2026-03-10",
    **_FIELDS,
    "created_at": "2026-03-10T08:00:00+00:00",
    "updated_at": "2026-03-10T08:00:00+00:00",
}


def _mock_db(data=None, error: Exception | None = None) -> MagicMock:
    """Supabase client whose every query chain resolves to *data* (or raises)."""
    mock_db = MagicMock()
    table = mock_db.table.return_value

    result = MagicMock()
    result.data = data

    chains = [
        table.upsert.return_value,
        table.select.return_value.eq.return_value.eq.return_value.limit.return_value,
        table.select.return_value.eq.return_value.gte.return_value.lt.return_value.order.return_value,
        table.select.return_value.eq.return_value.lte.return_value.order.return_value,
    ]
    for chain in chains:
        if error is not None:
            chain.execute.side_effect = error
        else:
            chain.execute.return_value = result
    return mock_db


# ---------------------------------------------------------------------------
# In-memory
# ---------------------------------------------------------------------------

class TestInMemoryStore:

    def test_insert_assigns_id_and_timestamps(self):
        store = InMemoryCheckinStore()
        row = store.upsert(1, _DAY, _FIELDS)
        assert row["id"] == 1
        assert row["user_id"] == 1
        assert row["checkin_date"] == _DAY
        assert row["created_at"] == row["updated_at"]
        assert row["activities"] == ["exercise", "reading"]

    def test_overwrite_keeps_id_and_created_at(self):
        store = InMemoryCheckinStore()
        first = store.upsert(1, _DAY, _FIELDS)
        time.sleep(0.001)
        second = store.upsert(1, _DAY, {**_FIELDS, "mood_rating": 2, "activities": []})

        assert second["id"] == first["id"]
        assert second["created_at"] == first["created_at"]
        assert second["updated_at"] > first["updated_at"]
        assert second["mood_rating"] == 2
        assert second["activities"] == []
        assert len(store.list_between(1, _DAY, date(2026, 3, 11))) == 1

    def test_unknown_fields_ignored(self):
        store = InMemoryCheckinStore()
        row = store.upsert(1, _DAY, {**_FIELDS, "id": 999, "user_id": 42})
        assert row["id"] == 1
        assert row["user_id"] == 1

    def test_users_isolated(self):
        store = InMemoryCheckinStore()
        store.upsert(1, _DAY, _FIELDS)
        store.upsert(2, _DAY, _FIELDS)
        assert store.get(1, _DAY)["id"] != store.get(2, _DAY)["id"]
        assert store.get(3, _DAY) is None

    def test_returned_rows_are_copies(self):
        store = InMemoryCheckinStore()
        row = store.upsert(1, _DAY, _FIELDS)
        row["mood_rating"] = 1
        assert store.get(1, _DAY)["mood_rating"] == 7

    def test_list_between_end_exclusive_and_ascending(self):
        store = InMemoryCheckinStore()
        for day in (date(2026, 3, 31), date(2026, 3, 1), date(2026, 4, 1), date(2026, 2, 28)):
            store.upsert(1, day, _FIELDS)
        rows = store.list_between(1, date(2026, 3, 1), date(2026, 4, 1))
        assert [r["checkin_date"] for r in rows] == [date(2026, 3, 1), date(2026, 3, 31)]

    def test_list_dates_until_descending(self):
        store = InMemoryCheckinStore()
        for day in (date(2026, 3, 8), date(2026, 3, 10), date(2026, 3, 12), date(2026, 3, 9)):
            store.upsert(1, day, _FIELDS)
        assert store.list_dates_until(1, _DAY) == [date(2026, 3, 10), date(2026, 3, 9), date(2026, 3, 8)]

    def test_concurrent_upserts_collapse_to_one_row(self):
        store = InMemoryCheckinStore()
        barrier = threading.Barrier(8)
        results: list[dict] = []

        def submit(mood: int) -> None:
            barrier.wait()
            results.append(store.upsert(1, _DAY, {**_FIELDS, "mood_rating": mood}))

        threads = [threading.Thread(target=submit, args=(m,)) for m in range(1, 9)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        assert {r["id"] for r in results} == {1}
        rows = store.list_between(1, _DAY, date(2026, 3, 11))
        assert len(rows) == 1
        assert rows[0]["mood_rating"] in range(1, 9)


# ---------------------------------------------------------------------------
# Supabase
# ---------------------------------------------------------------------------

class TestSupabaseStore:

    def test_upsert_uses_on_conflict(self):
        mock_db = _mock_db(data=[_ROW])
        store = SupabaseCheckinStore(client=mock_db, table="daily_checkins")

        row = store.upsert(1, _DAY, _FIELDS)

        assert row == _ROW
        mock_db.table.assert_called_with("daily_checkins")
        table = mock_db.table.return_value
        table.upsert.assert_called_once()
        table.insert.assert_not_called()
        sent, kwargs = table.upsert.call_args
        assert kwargs == {"on_conflict": "user_id,checkin_date"}
        assert sent[0]["user_id"] == 1
        assert sent[0]["checkin_date"] == "2026-03-10"
        assert sent[0]["mood_rating"] == 7
        assert "created_at" not in sent[0]
        assert "updated_at" in sent[0]

    def test_upsert_empty_result_is_write_error(self):
        store = SupabaseCheckinStore(client=_mock_db(data=[]), table="daily_checkins")
        with pytest.raises(StoreWriteError):
            store.upsert(1, _DAY, _FIELDS)

    @pytest.mark.parametrize(
        "call",
        [
            lambda s: s.upsert(1, _DAY, _FIELDS),
            lambda s: s.get(1, _DAY),
            lambda s: s.list_between(1, date(2026, 3, 1), date(2026, 4, 1)),
            lambda s: s.list_dates_until(1, _DAY),
        ],
        ids=["upsert", "get", "list_between", "list_dates_until"],
    )
    def test_client_error_becomes_store_unavailable(self, call):
        store = SupabaseCheckinStore(
            client=_mock_db(error=ConnectionError("connection refused")),
            table="daily_checkins",
        )
        with pytest.raises(StoreUnavailableError):
            call(store)

    def test_get_found_and_missing(self):
        assert SupabaseCheckinStore(client=_mock_db(data=[_ROW]), table="t").get(1, _DAY) == _ROW
        assert SupabaseCheckinStore(client=_mock_db(data=[]), table="t").get(1, _DAY) is None

    def test_list_between_query_shape(self):
        mock_db = _mock_db(data=[_ROW])
        store = SupabaseCheckinStore(client=mock_db, table="t")

        rows = store.list_between(1, date(2026, 3, 1), date(2026, 4, 1))

        assert rows == [_ROW]
        chain = mock_db.table.return_value.select.return_value.eq.return_value
        chain.gte.assert_called_once_with("checkin_date", "2026-03-01")
        chain.gte.return_value.lt.assert_called_once_with("checkin_date", "2026-04-01")
        chain.gte.return_value.lt.return_value.order.assert_called_once_with("checkin_date", desc=False)

    def test_list_dates_until_parses_dates(self):
        mock_db = _mock_db(data=[{"checkin_date": "2026-03-10"}, {"checkin_date": "2026-03-09"}])
        store = SupabaseCheckinStore(client=mock_db, table="t")
        assert store.list_dates_until(1, _DAY) == [date(2026, 3, 10), date(2026, 3, 9)]

    def test_none_data_reads_as_empty(self):
        store = SupabaseCheckinStore(client=_mock_db(data=None), table="t")
        assert store.list_between(1, date(2026, 3, 1), date(2026, 4, 1)) == []
        assert store.list_dates_until(1, _DAY) == []


# ---------------------------------------------------------------------------
# Fallback
# ---------------------------------------------------------------------------

class TestFallbackStore:

    def test_healthy_primary_is_used(self):
        primary = InMemoryCheckinStore()
        fallback = InMemoryCheckinStore()
        store = FallbackCheckinStore(primary, fallback)

        store.upsert(1, _DAY, _FIELDS)

        assert primary.get(1, _DAY) is not None
        assert fallback.get(1, _DAY) is None
        assert store.degraded is False

    def test_switches_on_first_failure_and_stays(self):
        primary = MagicMock()
        primary.upsert.side_effect = StoreUnavailableError("down")
        fallback = InMemoryCheckinStore()
        store = FallbackCheckinStore(primary, fallback)

        row = store.upsert(1, _DAY, _FIELDS)
        assert row["id"] == 1
        assert store.degraded is True

        # later calls never touch the primary, even if it has recovered
        primary.get.return_value = {"id": 999}
        assert store.get(1, _DAY)["id"] == 1
        primary.get.assert_not_called()
        assert store.list_dates_until(1, _DAY) == [_DAY]

    def test_write_error_does_not_degrade(self):
        primary = MagicMock()
        primary.upsert.side_effect = StoreWriteError("no row")
        store = FallbackCheckinStore(primary, InMemoryCheckinStore())

        with pytest.raises(StoreWriteError):
            store.upsert(1, _DAY, _FIELDS)
        assert store.degraded is False


# ---------------------------------------------------------------------------
# Selection
# ---------------------------------------------------------------------------

class TestBuildCheckinStore:

    def test_no_key_in_development_is_memory(self):
        store = build_checkin_store(Settings(supabase_service_key="", environment="development"))
        assert isinstance(store, InMemoryCheckinStore)

    def test_no_key_in_production_fails(self):
        with pytest.raises(RuntimeError):
            build_checkin_store(Settings(supabase_service_key="", environment="production"))

    def test_development_with_key_wraps_in_fallback(self, monkeypatch):
        monkeypatch.setattr("mindtune.db.stores.get_supabase_client", MagicMock)
        store = build_checkin_store(Settings(supabase_service_key="key", environment="development"))
        assert isinstance(store, FallbackCheckinStore)

    def test_fallback_disabled_is_bare_supabase(self, monkeypatch):
        monkeypatch.setattr("mindtune.db.stores.get_supabase_client", MagicMock)
        store = build_checkin_store(
            Settings(supabase_service_key="key", environment="development", memory_fallback=False)
        )
        assert isinstance(store, SupabaseCheckinStore)

    def test_production_never_degrades(self, monkeypatch):
        monkeypatch.setattr("mindtune.db.stores.get_supabase_client", MagicMock)
        store = build_checkin_store(
            Settings(supabase_service_key="key", environment="production", memory_fallback=True)
        )
        assert isinstance(store, SupabaseCheckinStore)
